"""engine.correlation
====================
Dependent-vs-independent correlation table (Pearson with a Fisher-z
confidence interval, Spearman, Kendall) and full correlation matrices
for the heatmaps.

Each independent variable uses its own pairwise-complete sample, so
``n`` can differ between rows.
"""

from __future__ import annotations

# ── STD / THIRD-PARTY ───────────────────────────────────────────────
import logging
import math
from typing import Sequence

import numpy as np
import pandas as pd
from scipy import stats

# ── LOCAL ────────────────────────────────────────────────────────────
from statscope.core.exceptions import ValidationError

from .schema import is_numeric_column, numeric_series
from .types import CorrelationMethod, CorrelationRow, CorrelationStat

logger = logging.getLogger(__name__)
DF = pd.DataFrame


def fisher_confidence_interval(
    r: float,
    n: int,
    level: float = 0.95,
    clamp: float = 0.999,
) -> tuple[float, float]:
    """
    Confidence interval for a Pearson coefficient via the Fisher z-transform.

    ``r`` is clamped to ``[-clamp, clamp]`` before ``atanh``; the interval
    is symmetric in z-space and mapped back with ``tanh``. With n = 3 the
    standard error is unbounded and the interval is (-1, 1).
    """
    if not 0 < level < 1:
        raise ValidationError(f"Confidence level must be in (0, 1), got {level}", field="level")
    if n <= 3:
        return (-1.0, 1.0)
    z = math.atanh(max(-clamp, min(clamp, r)))
    se = 1.0 / math.sqrt(n - 3)
    z_crit = float(stats.norm.ppf(0.5 + level / 2))
    return (math.tanh(z - z_crit * se), math.tanh(z + z_crit * se))


def _degenerate(with_ci: bool = False) -> CorrelationStat:
    return CorrelationStat(r=0.0, p=1.0, ci=(0.0, 0.0) if with_ci else None)


def _stat(result, *, ci_level: float | None = None, n: int = 0, clamp: float = 0.999) -> CorrelationStat:
    r, p = float(result[0]), float(result[1])
    if not (math.isfinite(r) and math.isfinite(p)):
        return _degenerate(with_ci=ci_level is not None)
    ci = fisher_confidence_interval(r, n, ci_level, clamp) if ci_level is not None else None
    return CorrelationStat(r=r, p=p, ci=ci)


def correlate_pair(
    x: np.ndarray,
    y: np.ndarray,
    variable: str,
    *,
    confidence_level: float = 0.95,
    fisher_clamp: float = 0.999,
    min_observations: int = 3,
) -> CorrelationRow:
    """Correlation row for already paired, complete observations."""
    n = int(len(x))
    if n < min_observations or np.ptp(x) == 0 or np.ptp(y) == 0:
        logger.info("[correlate] '%s': degenerate sample (n=%d)", variable, n)
        return CorrelationRow(
            variable=variable,
            n=n,
            pearson=_degenerate(with_ci=True),
            spearman=_degenerate(),
            kendall=_degenerate(),
        )

    return CorrelationRow(
        variable=variable,
        n=n,
        pearson=_stat(stats.pearsonr(x, y), ci_level=confidence_level, n=n, clamp=fisher_clamp),
        spearman=_stat(stats.spearmanr(x, y)),
        kendall=_stat(stats.kendalltau(x, y)),
    )


def _require_numeric(df: DF, column: str, field: str) -> None:
    if column not in df.columns:
        raise ValidationError(f"Unknown column: {column}", field=field)
    if not is_numeric_column(df[column]):
        raise ValidationError(f"Column '{column}' is not numeric", field=field)


def correlate(
    df: DF,
    dependent: str,
    independents: Sequence[str],
    *,
    confidence_level: float = 0.95,
    fisher_clamp: float = 0.999,
    min_observations: int = 3,
) -> list[CorrelationRow]:
    """One ``CorrelationRow`` per independent variable, in the given order."""
    _require_numeric(df, dependent, "dependent")
    if not independents:
        raise ValidationError("At least one independent variable is required", field="independents")
    for col in independents:
        _require_numeric(df, col, "independents")

    dep = numeric_series(df, dependent)
    rows = []
    for col in independents:
        paired = pd.DataFrame({"y": dep, "x": numeric_series(df, col)}).dropna()
        rows.append(
            correlate_pair(
                paired["x"].to_numpy(),
                paired["y"].to_numpy(),
                col,
                confidence_level=confidence_level,
                fisher_clamp=fisher_clamp,
                min_observations=min_observations,
            )
        )
    logger.info("[correlate] %s vs %d variable(s)", dependent, len(rows))
    return rows


def correlation_matrices(df: DF, columns: Sequence[str]) -> dict[str, DF]:
    """Pairwise-complete correlation matrices keyed by method name."""
    for col in columns:
        _require_numeric(df, col, "columns")
    numeric = pd.DataFrame({col: numeric_series(df, col) for col in columns})
    return {m.value: numeric.corr(method=m.value) for m in CorrelationMethod}


__all__: list[str] = [
    "fisher_confidence_interval",
    "correlate_pair",
    "correlate",
    "correlation_matrices",
]
