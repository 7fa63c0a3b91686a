"""StatScope analysis engine."""

from .correlation import correlate, correlation_matrices, fisher_confidence_interval
from .distribution import bivariate_descriptors, univariate_descriptors
from .ingestion import CSV, EXCEL, format_from_filename, read_table
from .outliers import detect, flag_values, treat
from .quality import edit_cell, find_issues, parse_numeric, remediate
from .schema import is_numeric_column, numeric_columns, numeric_series, summarize
from .table_store import TableStore
from .types import (
    BivariateDescriptors,
    ColumnSummary,
    ColumnType,
    CorrelationMethod,
    CorrelationResult,
    CorrelationRow,
    CorrelationStat,
    DataIssue,
    DatasetMetadata,
    EditResult,
    IssueScan,
    OutlierAction,
    OutlierMethod,
    OutlierRecord,
    OutlierScan,
    QualityAction,
    ReferenceDistribution,
    UnivariateDescriptors,
    WorkflowStep,
)

__all__ = [
    # Table
    "TableStore",
    "read_table",
    "format_from_filename",
    "CSV",
    "EXCEL",
    # Schema
    "is_numeric_column",
    "numeric_series",
    "summarize",
    "numeric_columns",
    # Quality
    "find_issues",
    "remediate",
    "parse_numeric",
    "edit_cell",
    # Outliers
    "flag_values",
    "detect",
    "treat",
    # Distribution
    "univariate_descriptors",
    "bivariate_descriptors",
    # Correlation
    "fisher_confidence_interval",
    "correlate",
    "correlation_matrices",
    # Types
    "ColumnType",
    "ColumnSummary",
    "DatasetMetadata",
    "DataIssue",
    "IssueScan",
    "EditResult",
    "QualityAction",
    "OutlierMethod",
    "OutlierAction",
    "OutlierRecord",
    "OutlierScan",
    "ReferenceDistribution",
    "UnivariateDescriptors",
    "BivariateDescriptors",
    "CorrelationMethod",
    "CorrelationStat",
    "CorrelationRow",
    "CorrelationResult",
    "WorkflowStep",
]
