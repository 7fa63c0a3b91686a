"""engine.quality
=================
Missing-value scan and remediation:
• issue listing in row-major order;
• bulk remediation (delete / mean / median / mode);
• manual single-cell correction.

Every function returns a new frame; the input is never modified.
"""

from __future__ import annotations

# ── STD / THIRD-PARTY ───────────────────────────────────────────────
import logging
import math
from typing import Sequence

import numpy as np
import pandas as pd

# ── LOCAL ────────────────────────────────────────────────────────────
from statscope.core.exceptions import InvalidNumericInput, ValidationError

from .schema import is_numeric_column, numeric_series
from .types import DataIssue, QualityAction

logger = logging.getLogger(__name__)
DF = pd.DataFrame

# ════════════════════════════════════════════════════════════════════
# 1. Issue scan
# ════════════════════════════════════════════════════════════════════

def find_issues(df: DF) -> list[DataIssue]:
    """One ``DataIssue`` per missing cell, ordered by row then column."""
    if df.empty:
        return []
    rows, cols = np.nonzero(df.isna().to_numpy())
    columns = list(df.columns)
    return [DataIssue(row=int(r), column=str(columns[c])) for r, c in zip(rows, cols)]

# ════════════════════════════════════════════════════════════════════
# 2. Bulk remediation
# ════════════════════════════════════════════════════════════════════

def remediate(
    df: DF,
    action: QualityAction | str,
    target_columns: Sequence[str] | None = None,
) -> DF:
    """
    Apply a bulk remediation.

    ``delete`` drops every row with a missing value in *any* column and
    renumbers the rest; the impute actions fill only ``target_columns``
    (all columns when ``None``). Mean/median skip non-numeric targets;
    mode leaves a column alone when it has no values at all.
    """
    try:
        action = QualityAction(action)
    except ValueError as exc:
        raise ValidationError(f"Unsupported remediation: {action!r}", field="action") from exc

    if action is QualityAction.DELETE:
        out = df.dropna().reset_index(drop=True)
        logger.info("[remediate] delete: removed %d rows with missing values", len(df) - len(out))
        return out

    if target_columns is None:
        target_columns = list(df.columns)

    missing_cols = [c for c in target_columns if c not in df.columns]
    if missing_cols:
        logger.warning("[remediate] columns %s not found, skipping them", missing_cols)
    columns = [c for c in target_columns if c in df.columns]

    out = df.copy()
    if action in (QualityAction.IMPUTE_MEAN, QualityAction.IMPUTE_MEDIAN):
        for col in columns:
            if not is_numeric_column(out[col]):
                logger.warning("[remediate] '%s' is not numeric, excluded from %s", col, action.value)
                continue
            values = numeric_series(out, col)
            fill = values.mean() if action is QualityAction.IMPUTE_MEAN else values.median()
            if pd.isna(fill):
                continue
            out[col] = values.fillna(fill)

    elif action is QualityAction.IMPUTE_MODE:
        for col in columns:
            mode = out[col].mode(dropna=True)
            if not mode.empty:
                # several modes: the smallest one wins (pandas sorts them)
                out[col] = out[col].fillna(mode.iloc[0])

    logger.info(
        "[remediate] '%s' finished; missing values left in targets: %d",
        action.value,
        int(out[columns].isna().sum().sum()) if columns else 0,
    )
    return out

# ════════════════════════════════════════════════════════════════════
# 3. Manual correction
# ════════════════════════════════════════════════════════════════════

def parse_numeric(raw_text: str) -> float:
    """Parse user input as a finite real number or raise ``InvalidNumericInput``."""
    try:
        value = float(str(raw_text).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidNumericInput(str(raw_text)) from exc
    if not math.isfinite(value):
        raise InvalidNumericInput(str(raw_text))
    return value


def edit_cell(
    df: DF,
    row: int,
    column: str,
    raw_text: str,
    *,
    strict: bool = False,
) -> DF:
    """
    Set one cell from user text.

    Unparseable text leaves the table unchanged; with ``strict=True`` it
    raises ``InvalidNumericInput`` instead so the caller can report it.
    """
    if column not in df.columns:
        raise ValidationError(f"Unknown column: {column}", field="column")
    if not 0 <= int(row) < len(df):
        raise ValidationError(f"Row {row!r} is outside 0..{len(df) - 1}", field="row")

    try:
        value = parse_numeric(raw_text)
    except InvalidNumericInput as exc:
        exc.details.update({"row": int(row), "field": column})
        if strict:
            raise
        logger.info("[edit_cell] rejected %r for (%s, %s)", raw_text, row, column)
        return df.copy()

    if not is_numeric_column(df[column]):
        raise ValidationError(f"Column '{column}' is not numeric", field="column")

    out = df.copy()
    if not pd.api.types.is_float_dtype(out[column]):
        out[column] = numeric_series(out, column)
    out.at[int(row), column] = value
    return out


__all__: list[str] = [
    "find_issues",
    "remediate",
    "parse_numeric",
    "edit_cell",
]
