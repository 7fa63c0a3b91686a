"""Value objects and enums shared by the analysis engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

# ─── Enums ───────────────────────────────────────────────────────────────────


class ColumnType(str, Enum):
    NUMERIC = "numeric"
    NON_NUMERIC = "non-numeric"


class QualityAction(str, Enum):
    """Bulk remediation for missing values."""

    DELETE = "delete"
    IMPUTE_MEAN = "impute_mean"
    IMPUTE_MEDIAN = "impute_median"
    IMPUTE_MODE = "impute_mode"


class OutlierMethod(str, Enum):
    IQR = "IQR"
    Z_SCORE = "Z_SCORE"
    MODIFIED_Z = "MODIFIED_Z"


class OutlierAction(str, Enum):
    IGNORE = "ignore"
    DELETE = "delete"
    WINSORIZE = "winsorize"
    IMPUTE_MEAN = "impute_mean"
    IMPUTE_MEDIAN = "impute_median"
    TRANSFORM_LOG = "log"
    TRANSFORM_SQRT = "sqrt"


class ReferenceDistribution(str, Enum):
    """Reference distributions for the Q-Q comparison."""

    NORMAL = "normal"
    STUDENT_T = "t"
    UNIFORM = "uniform"


class CorrelationMethod(str, Enum):
    PEARSON = "pearson"
    SPEARMAN = "spearman"
    KENDALL = "kendall"


class WorkflowStep(IntEnum):
    INIT = 0
    UPLOAD = 1
    VARIABLE_SELECTION = 2
    QUALITY = 3
    OUTLIERS = 4
    UNIVARIATE = 5
    BIVARIATE = 6
    CORRELATION = 7


# ─── Helpers ─────────────────────────────────────────────────────────────────


def finite_or_none(value: Any) -> float | None:
    """Plain float for finite numbers, ``None`` for NaN/inf/missing."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def float_list(values: Any) -> list[float | None]:
    return [finite_or_none(v) for v in values]


# ─── Table level ─────────────────────────────────────────────────────────────


@dataclass
class ColumnSummary:
    """Per-column schema and summary statistics (numeric stats only for numeric columns)."""

    name: str
    type: ColumnType
    missing_count: int
    count: int
    mean: float | None = None
    std: float | None = None
    min: float | None = None
    max: float | None = None
    median: float | None = None

    @property
    def is_numeric(self) -> bool:
        return self.type is ColumnType.NUMERIC

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type.value,
            "missing_count": self.missing_count,
            "count": self.count,
        }
        if self.is_numeric:
            data.update(
                mean=self.mean,
                std=self.std,
                min=self.min,
                max=self.max,
                median=self.median,
            )
        return data


@dataclass
class DatasetMetadata:
    rows: int
    cols: int
    columns: list[str]
    summary: list[ColumnSummary]
    version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows": self.rows,
            "cols": self.cols,
            "columns": list(self.columns),
            "summary": [s.to_dict() for s in self.summary],
            "version": self.version,
        }


@dataclass(frozen=True)
class DataIssue:
    row: int
    column: str
    kind: str = "missing"
    value: Any = None

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row, "column": self.column, "issue": self.kind, "value": None}


@dataclass
class IssueScan:
    """Missing-value issues valid only for ``version`` of the table."""

    version: int
    issues: list[DataIssue] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.issues)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "count": len(self.issues),
            "issues": [i.to_dict() for i in self.issues],
        }


@dataclass
class EditResult:
    """Outcome of a manual cell correction."""

    applied: bool
    row: int
    column: str
    version: int
    value: float | None = None
    message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": self.applied,
            "row": self.row,
            "column": self.column,
            "value": self.value,
            "message": self.message,
            "version": self.version,
        }


# ─── Outliers ────────────────────────────────────────────────────────────────


@dataclass
class OutlierRecord:
    column: str
    method: OutlierMethod
    indices: list[int]
    values: list[float]
    lower: float | None = None
    upper: float | None = None

    @property
    def count(self) -> int:
        return len(self.indices)

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "method": self.method.value,
            "count": self.count,
            "indices": list(self.indices),
            "values": float_list(self.values),
            "lower": finite_or_none(self.lower),
            "upper": finite_or_none(self.upper),
        }


@dataclass
class OutlierScan:
    """Outlier records for every flagged column, valid only for ``version``."""

    version: int
    method: OutlierMethod
    records: dict[str, OutlierRecord] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "method": self.method.value,
            "outliers": {col: rec.to_dict() for col, rec in self.records.items()},
        }


# ─── Distribution descriptors ────────────────────────────────────────────────


@dataclass
class KdeCurve:
    x: list[float]
    density: list[float]
    bandwidth: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": float_list(self.x),
            "density": float_list(self.density),
            "bandwidth": finite_or_none(self.bandwidth),
        }


@dataclass
class BoxSummary:
    """Five-number summary with Tukey whiskers."""

    min: float
    q1: float
    median: float
    q3: float
    max: float
    whisker_low: float
    whisker_high: float
    fliers: list[float] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "min": self.min,
            "q1": self.q1,
            "median": self.median,
            "q3": self.q3,
            "max": self.max,
            "whisker_low": self.whisker_low,
            "whisker_high": self.whisker_high,
            "fliers": float_list(self.fliers),
        }


@dataclass
class QuantilePairs:
    reference: ReferenceDistribution
    theoretical: list[float]
    ordered: list[float]
    slope: float
    intercept: float
    r: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "reference": self.reference.value,
            "theoretical": float_list(self.theoretical),
            "ordered": float_list(self.ordered),
            "slope": finite_or_none(self.slope),
            "intercept": finite_or_none(self.intercept),
            "r": finite_or_none(self.r),
        }


@dataclass
class UnivariateDescriptors:
    column: str
    n: int
    reference: ReferenceDistribution
    kde: KdeCurve | None = None
    box: BoxSummary | None = None
    qq: QuantilePairs | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "column": self.column,
            "n": self.n,
            "reference": self.reference.value,
            "kde": self.kde.to_dict() if self.kde else None,
            "box": self.box.to_dict() if self.box else None,
            "qq": self.qq.to_dict() if self.qq else None,
        }


@dataclass
class FitCurve:
    kind: str  # "line", "lowess", "polynomial"
    x: list[float]
    y: list[float]
    params: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "x": float_list(self.x),
            "y": float_list(self.y),
            "params": self.params,
        }


@dataclass
class BivariateDescriptors:
    x: str
    y: str
    n: int
    x_values: list[float] = field(default_factory=list)
    y_values: list[float] = field(default_factory=list)
    fits: list[FitCurve] = field(default_factory=list)

    def fit(self, kind: str) -> FitCurve | None:
        return next((f for f in self.fits if f.kind == kind), None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "x": self.x,
            "y": self.y,
            "n": self.n,
            "points": {"x": float_list(self.x_values), "y": float_list(self.y_values)},
            "fits": [f.to_dict() for f in self.fits],
        }


# ─── Correlation ─────────────────────────────────────────────────────────────


@dataclass
class CorrelationStat:
    r: float
    p: float
    ci: tuple[float, float] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"r": finite_or_none(self.r), "p": finite_or_none(self.p)}
        if self.ci is not None:
            data["ci"] = float_list(self.ci)
        return data


@dataclass
class CorrelationRow:
    variable: str
    n: int
    pearson: CorrelationStat
    spearman: CorrelationStat
    kendall: CorrelationStat

    def to_dict(self) -> dict[str, Any]:
        return {
            "variable": self.variable,
            "n": self.n,
            "pearson": self.pearson.to_dict(),
            "spearman": self.spearman.to_dict(),
            "kendall": self.kendall.to_dict(),
        }


@dataclass
class CorrelationResult:
    """Correlation rows for one dependent variable, valid only for ``version``."""

    version: int
    dependent: str
    rows: list[CorrelationRow] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "dependent": self.dependent,
            "table": [row.to_dict() for row in self.rows],
        }
