"""StatScope reports."""

from .correlation_report import CorrelationReportGenerator, build_correlation_report

__all__ = ["CorrelationReportGenerator", "build_correlation_report"]
