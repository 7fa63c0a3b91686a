"""engine.distribution
======================
Statistical descriptors behind the univariate (KDE, box, Q-Q) and
bivariate (scatter + fitted curves) views. Nothing here draws; the
rendering layer turns these descriptors into figures.
"""

from __future__ import annotations

# ─── std / typing ────────────────────────────────────────────────────────────
import logging

# ─── third-party ─────────────────────────────────────────────────────────────
import numpy as np
import pandas as pd
from scipy import stats
from sklearn.linear_model import LinearRegression
from sklearn.pipeline import Pipeline
from sklearn.preprocessing import PolynomialFeatures
from statsmodels.nonparametric.smoothers_lowess import lowess as sm_lowess

# ─── local ───────────────────────────────────────────────────────────────────
from statscope.core.exceptions import ValidationError

from .schema import is_numeric_column, numeric_series
from .types import (
    BivariateDescriptors,
    BoxSummary,
    FitCurve,
    KdeCurve,
    QuantilePairs,
    ReferenceDistribution,
    UnivariateDescriptors,
)

logger = logging.getLogger(__name__)


def _numeric_column(df: pd.DataFrame, column: str) -> pd.Series:
    if column not in df.columns:
        raise ValidationError(f"Unknown column: {column}", field="column")
    if not is_numeric_column(df[column]):
        raise ValidationError(f"Column '{column}' is not numeric", field="column")
    return numeric_series(df, column)


# -----------------------------------------------------------------------------
# 1. univariate
# -----------------------------------------------------------------------------
def kde_curve(data: np.ndarray, points: int = 200) -> KdeCurve | None:
    """Gaussian KDE evaluated on an even grid over the data range (``None`` if degenerate)."""
    if data.size < 2 or np.ptp(data) == 0:
        return None
    kde = stats.gaussian_kde(data)
    bandwidth = float(kde.factor * data.std(ddof=1))
    # pad the grid like seaborn's default cut=3 so the tails are visible
    grid = np.linspace(data.min() - 3 * bandwidth, data.max() + 3 * bandwidth, points)
    return KdeCurve(x=grid.tolist(), density=kde(grid).tolist(), bandwidth=bandwidth)


def box_summary(data: np.ndarray, whisker: float = 1.5) -> BoxSummary | None:
    """Five-number summary with Tukey whiskers and the points beyond them."""
    if data.size == 0:
        return None
    q1, median, q3 = np.percentile(data, [25, 50, 75])
    iqr = q3 - q1
    low_fence, high_fence = q1 - whisker * iqr, q3 + whisker * iqr
    inside = data[(data >= low_fence) & (data <= high_fence)]
    fliers = data[(data < low_fence) | (data > high_fence)]
    return BoxSummary(
        min=float(data.min()),
        q1=float(q1),
        median=float(median),
        q3=float(q3),
        max=float(data.max()),
        whisker_low=float(inside.min()) if inside.size else float(q1),
        whisker_high=float(inside.max()) if inside.size else float(q3),
        fliers=np.sort(fliers).tolist(),
    )


def quantile_pairs(
    data: np.ndarray,
    reference: ReferenceDistribution = ReferenceDistribution.NORMAL,
    *,
    t_df: int = 10,
) -> QuantilePairs | None:
    """Theoretical vs ordered sample quantiles plus the least-squares reference line."""
    if data.size < 2:
        return None
    if reference is ReferenceDistribution.STUDENT_T:
        (osm, osr), (slope, intercept, r) = stats.probplot(data, dist=stats.t, sparams=(t_df,))
    elif reference is ReferenceDistribution.UNIFORM:
        (osm, osr), (slope, intercept, r) = stats.probplot(data, dist="uniform")
    else:
        (osm, osr), (slope, intercept, r) = stats.probplot(data, dist="norm")
    return QuantilePairs(
        reference=reference,
        theoretical=np.asarray(osm).tolist(),
        ordered=np.asarray(osr).tolist(),
        slope=float(slope),
        intercept=float(intercept),
        r=float(r),
    )


def univariate_descriptors(
    df: pd.DataFrame,
    column: str,
    reference: ReferenceDistribution | str = ReferenceDistribution.NORMAL,
    *,
    kde_points: int = 200,
    t_df: int = 10,
) -> UnivariateDescriptors:
    """KDE, box and Q-Q descriptors for one numeric column's non-missing values."""
    try:
        reference = ReferenceDistribution(reference)
    except ValueError as exc:
        raise ValidationError(
            f"Unsupported reference distribution: {reference!r}", field="reference"
        ) from exc

    data = _numeric_column(df, column).dropna().to_numpy()
    desc = UnivariateDescriptors(
        column=column,
        n=int(data.size),
        reference=reference,
        kde=kde_curve(data, kde_points),
        box=box_summary(data),
        qq=quantile_pairs(data, reference, t_df=t_df),
    )
    logger.debug("univariate descriptors for '%s' (n=%d, reference=%s)", column, desc.n, reference.value)
    return desc


# -----------------------------------------------------------------------------
# 2. bivariate
# -----------------------------------------------------------------------------
def _r_squared(y: np.ndarray, fitted: np.ndarray) -> float | None:
    ss_tot = float(np.sum((y - y.mean()) ** 2))
    if ss_tot == 0:
        return None
    return 1.0 - float(np.sum((y - fitted) ** 2)) / ss_tot


def linear_fit(x: np.ndarray, y: np.ndarray, points: int = 100) -> FitCurve | None:
    """Ordinary least-squares line over the data range."""
    if x.size < 2 or np.ptp(x) == 0:
        return None
    model = LinearRegression().fit(x.reshape(-1, 1), y)
    grid = np.linspace(x.min(), x.max(), points)
    return FitCurve(
        kind="line",
        x=grid.tolist(),
        y=model.predict(grid.reshape(-1, 1)).tolist(),
        params={
            "slope": float(model.coef_[0]),
            "intercept": float(model.intercept_),
            "r_squared": _r_squared(y, model.predict(x.reshape(-1, 1))),
        },
    )


def lowess_fit(x: np.ndarray, y: np.ndarray, frac: float = 2 / 3) -> FitCurve | None:
    """Locally weighted regression, evaluated at the sorted observations."""
    if x.size < 3 or np.ptp(x) == 0:
        return None
    fitted = sm_lowess(y, x, frac=frac, return_sorted=True)
    return FitCurve(
        kind="lowess",
        x=fitted[:, 0].tolist(),
        y=fitted[:, 1].tolist(),
        params={"frac": frac},
    )


def polynomial_fit(x: np.ndarray, y: np.ndarray, degree: int, points: int = 100) -> FitCurve | None:
    """Least-squares polynomial of ``degree``; needs more distinct x values than the degree."""
    if np.unique(x).size <= degree:
        return None
    model = Pipeline(
        [
            ("poly", PolynomialFeatures(degree=degree, include_bias=False)),
            ("ols", LinearRegression()),
        ]
    )
    model.fit(x.reshape(-1, 1), y)
    grid = np.linspace(x.min(), x.max(), points)
    ols = model.named_steps["ols"]
    return FitCurve(
        kind="polynomial",
        x=grid.tolist(),
        y=model.predict(grid.reshape(-1, 1)).tolist(),
        params={
            "degree": degree,
            # ascending powers: intercept, x, x^2, ...
            "coefficients": [float(ols.intercept_)] + [float(c) for c in ols.coef_],
            "r_squared": _r_squared(y, model.predict(x.reshape(-1, 1))),
        },
    )


def bivariate_descriptors(
    df: pd.DataFrame,
    x: str,
    y: str,
    *,
    line: bool = True,
    lowess: bool = False,
    polynomial_degree: int | None = None,
    lowess_frac: float = 2 / 3,
    curve_points: int = 100,
    max_polynomial_degree: int = 10,
) -> BivariateDescriptors:
    """Paired observations of (x, y) and the requested fitted curves."""
    if polynomial_degree is not None and (
        isinstance(polynomial_degree, bool)
        or int(polynomial_degree) != polynomial_degree
        or not 1 <= polynomial_degree <= max_polynomial_degree
    ):
        raise ValidationError(
            f"Polynomial degree must be an integer in 1..{max_polynomial_degree}",
            field="polynomial_degree",
        )

    paired = pd.DataFrame({"x": _numeric_column(df, x), "y": _numeric_column(df, y)}).dropna()
    xs = paired["x"].to_numpy()
    ys = paired["y"].to_numpy()

    fits: list[FitCurve | None] = []
    if line:
        fits.append(linear_fit(xs, ys, curve_points))
    if lowess:
        fits.append(lowess_fit(xs, ys, lowess_frac))
    if polynomial_degree is not None:
        fits.append(polynomial_fit(xs, ys, int(polynomial_degree), curve_points))

    desc = BivariateDescriptors(
        x=x,
        y=y,
        n=len(paired),
        x_values=xs.tolist(),
        y_values=ys.tolist(),
        fits=[f for f in fits if f is not None],
    )
    logger.debug("bivariate descriptors %s ~ %s (n=%d, fits=%s)", y, x, desc.n, [f.kind for f in desc.fits])
    return desc


__all__: list[str] = [
    "kde_curve",
    "box_summary",
    "quantile_pairs",
    "univariate_descriptors",
    "linear_fit",
    "lowess_fit",
    "polynomial_fit",
    "bivariate_descriptors",
]
