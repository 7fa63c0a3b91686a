"""engine.outliers
==================
Per-column outlier detection (IQR / Z-score / modified Z-score) and
per-column treatments.

Flags are always computed from the frame that is passed in: ``treat``
re-detects before acting and never trusts indices produced earlier.
"""

from __future__ import annotations

# ── STD / THIRD-PARTY ───────────────────────────────────────────────
import logging
from dataclasses import dataclass
from typing import Sequence

import numpy as np
import pandas as pd
from scipy.stats import zscore

# ── LOCAL ────────────────────────────────────────────────────────────
from statscope.core.exceptions import ValidationError

from .schema import is_numeric_column, numeric_series
from .types import OutlierAction, OutlierMethod, OutlierRecord

logger = logging.getLogger(__name__)
DF = pd.DataFrame


@dataclass
class OutlierFlags:
    """Boolean mask over a column's non-missing values plus any natural bounds."""

    mask: pd.Series
    lower: float | None = None
    upper: float | None = None

    @property
    def indices(self) -> list[int]:
        return [int(i) for i in self.mask.index[self.mask]]


def _parse_method(method: OutlierMethod | str) -> OutlierMethod:
    try:
        return OutlierMethod(method)
    except ValueError as exc:
        raise ValidationError(f"Unsupported outlier method: {method!r}", field="method") from exc


# ════════════════════════════════════════════════════════════════════
# 1. Flagging
# ════════════════════════════════════════════════════════════════════

def flag_values(
    data: pd.Series,
    method: OutlierMethod | str = OutlierMethod.IQR,
    *,
    iqr_multiplier: float = 1.5,
    z_threshold: float = 3.0,
    modified_z_threshold: float = 3.5,
    modified_z_scale: float = 0.6745,
) -> OutlierFlags:
    """Flag outliers in ``data`` (missing values are ignored and never flagged)."""
    method = _parse_method(method)
    data = data.dropna().astype(float)
    none = pd.Series(False, index=data.index)
    if data.empty:
        return OutlierFlags(none)

    # --- IQR - Tukey -----------------------------------------------------------------
    if method is OutlierMethod.IQR:
        q1, q3 = data.quantile([0.25, 0.75])
        iqr = q3 - q1
        lb, ub = q1 - iqr_multiplier * iqr, q3 + iqr_multiplier * iqr
        return OutlierFlags((data < lb) | (data > ub), lower=float(lb), upper=float(ub))

    # --- Z-score ----------------------------------------------------------------------
    if method is OutlierMethod.Z_SCORE:
        if len(data) < 2 or data.std(ddof=0) == 0:
            return OutlierFlags(none)
        z = zscore(data.to_numpy())
        return OutlierFlags(pd.Series(np.abs(z) > z_threshold, index=data.index))

    # --- Modified Z-score (median / MAD) ---------------------------------------------
    median = float(np.median(data))
    mad = float(np.median(np.abs(data - median)))
    if mad == 0:
        logger.debug("[flag_values] MAD is zero, nothing flagged")
        return OutlierFlags(none)
    modified_z = modified_z_scale * (data - median) / mad
    return OutlierFlags(modified_z.abs() > modified_z_threshold)


def detect(
    df: DF,
    method: OutlierMethod | str = OutlierMethod.IQR,
    *,
    columns: Sequence[str] | None = None,
    **thresholds: float,
) -> dict[str, OutlierRecord]:
    """
    Outlier records per numeric column of the current frame.

    Columns without flagged values are left out of the result.
    ``thresholds`` are forwarded to :func:`flag_values`.
    """
    method = _parse_method(method)
    candidates = list(df.columns) if columns is None else [c for c in columns if c in df.columns]

    records: dict[str, OutlierRecord] = {}
    for col in candidates:
        if not is_numeric_column(df[col]):
            continue
        values = numeric_series(df, col)
        flags = flag_values(values, method, **thresholds)
        indices = flags.indices
        if not indices:
            continue
        records[str(col)] = OutlierRecord(
            column=str(col),
            method=method,
            indices=indices,
            values=[float(v) for v in values.loc[indices]],
            lower=flags.lower,
            upper=flags.upper,
        )

    logger.info(
        "[detect] %s: %d column(s) with outliers, %d value(s) flagged",
        method.value,
        len(records),
        sum(r.count for r in records.values()),
    )
    return records

# ════════════════════════════════════════════════════════════════════
# 2. Treatment
# ════════════════════════════════════════════════════════════════════

def treat(
    df: DF,
    column: str,
    action: OutlierAction | str,
    method: OutlierMethod | str = OutlierMethod.IQR,
    **thresholds: float,
) -> DF:
    """
    Apply ``action`` to ``column`` using outliers re-detected on ``df``.

    ``delete`` and the imputations touch only flagged rows/cells; the
    winsorize, log and sqrt treatments rewrite the whole column. For the
    z-score methods winsorizing clips to the min/max of the non-flagged
    values since those methods have no natural bound.
    """
    try:
        action = OutlierAction(action)
    except ValueError as exc:
        raise ValidationError(f"Unsupported outlier action: {action!r}", field="action") from exc
    method = _parse_method(method)

    if column not in df.columns:
        raise ValidationError(f"Unknown column: {column}", field="column")
    if not is_numeric_column(df[column]):
        raise ValidationError(f"Column '{column}' is not numeric", field="column")

    if action is OutlierAction.IGNORE:
        return df.copy()

    values = numeric_series(df, column)
    flags = flag_values(values, method, **thresholds)
    indices = flags.indices
    out = df.copy()

    if action is OutlierAction.DELETE:
        out = out.drop(index=indices).reset_index(drop=True)

    elif action is OutlierAction.WINSORIZE:
        if method is OutlierMethod.IQR:
            lower, upper = flags.lower, flags.upper
        else:
            kept = values.drop(index=indices)
            lower, upper = kept.min(), kept.max()
        out[column] = values.clip(lower=lower, upper=upper)

    elif action in (OutlierAction.IMPUTE_MEAN, OutlierAction.IMPUTE_MEDIAN):
        kept = values.drop(index=indices)
        fill = kept.mean() if action is OutlierAction.IMPUTE_MEAN else kept.median()
        values.loc[indices] = fill
        out[column] = values

    elif action is OutlierAction.TRANSFORM_LOG:
        min_val = values.min()
        shift = abs(min_val) + 1 if min_val <= 0 else 0.0
        out[column] = np.log(values + shift)

    elif action is OutlierAction.TRANSFORM_SQRT:
        min_val = values.min()
        shift = abs(min_val) if min_val < 0 else 0.0
        out[column] = np.sqrt(values + shift)

    logger.info(
        "[treat] %s on '%s' (%s): %d flagged value(s)",
        action.value,
        column,
        method.value,
        len(indices),
    )
    return out


__all__: list[str] = [
    "OutlierFlags",
    "flag_values",
    "detect",
    "treat",
]
