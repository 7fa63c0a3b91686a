"""engine.schema
-----------------
Column typing and summary statistics. A column is numeric when every
non-missing cell parses as a real number; statistics are computed over
the non-missing values only and reported as absent (``None``) when the
column has nothing to summarise.
"""

from __future__ import annotations

import logging
from typing import Iterable

import pandas as pd

from .types import ColumnSummary, ColumnType, finite_or_none

logger = logging.getLogger(__name__)


def is_numeric_column(series: pd.Series) -> bool:
    """True when every non-missing value of ``series`` parses as a real number."""
    if pd.api.types.is_bool_dtype(series):
        return False
    if pd.api.types.is_numeric_dtype(series):
        return True

    present = series.dropna()
    if present.empty:
        return True
    if not (pd.api.types.is_object_dtype(present) or pd.api.types.is_string_dtype(present)):
        return False
    if present.map(lambda v: isinstance(v, bool)).any():
        return False
    parsed = pd.to_numeric(present, errors="coerce")
    return bool(parsed.notna().all())


def numeric_series(df: pd.DataFrame, column: str) -> pd.Series:
    """Column as float values, missing cells as NaN; index preserved."""
    return pd.to_numeric(df[column], errors="coerce").astype(float)


def summarize_column(name: str, series: pd.Series) -> ColumnSummary:
    count = int(series.notna().sum())
    summary = ColumnSummary(
        name=name,
        type=ColumnType.NUMERIC if is_numeric_column(series) else ColumnType.NON_NUMERIC,
        missing_count=int(series.isna().sum()),
        count=count,
    )
    if not summary.is_numeric or count == 0:
        return summary

    values = pd.to_numeric(series, errors="coerce").dropna().astype(float)
    summary.mean = finite_or_none(values.mean())
    # a single observation has no sample spread
    summary.std = finite_or_none(values.std()) if count > 1 else None
    summary.min = finite_or_none(values.min())
    summary.max = finite_or_none(values.max())
    summary.median = finite_or_none(values.median())
    return summary


def summarize(df: pd.DataFrame) -> list[ColumnSummary]:
    """One ``ColumnSummary`` per column, in column order, from the current table."""
    return [summarize_column(str(col), df[col]) for col in df.columns]


def numeric_columns(summaries: Iterable[ColumnSummary]) -> list[str]:
    """Columns offered for variable selection: numeric and with at least one value."""
    return [s.name for s in summaries if s.is_numeric and s.count > 0]


__all__: list[str] = [
    "is_numeric_column",
    "numeric_series",
    "summarize_column",
    "summarize",
    "numeric_columns",
]
