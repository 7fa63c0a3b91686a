"""
Workflow controller.

Owns one session's TableStore and drives it through the analysis steps
Init -> Upload -> VariableSelection -> Quality -> Outliers -> Univariate
-> Bivariate -> Correlation. Operations are serialized by a busy flag;
each runs its computation on a worker thread under a timeout and only
the calling thread commits the result, so a timed out or failed
operation never changes the table.
"""

from __future__ import annotations

import threading
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Sequence, TypeVar

import pandas as pd

from statscope.config import Settings, get_settings
from statscope.core.exceptions import (
    InvalidNumericInput,
    OperationTimeoutError,
    StepPreconditionError,
    ValidationError,
    WorkflowBusyError,
)
from statscope.core.logging import get_logger
from statscope.engine import correlation, distribution, outliers, quality
from statscope.engine.ingestion import format_from_filename, read_table
from statscope.engine.schema import numeric_columns, summarize
from statscope.engine.table_store import TableStore
from statscope.engine.types import (
    BivariateDescriptors,
    CorrelationResult,
    DatasetMetadata,
    EditResult,
    IssueScan,
    OutlierAction,
    OutlierMethod,
    OutlierScan,
    QualityAction,
    ReferenceDistribution,
    UnivariateDescriptors,
    WorkflowStep,
)
from statscope.reports import build_correlation_report

T = TypeVar("T")


class WorkflowController:
    """One analysis session: the table, the current step and the variable selection."""

    def __init__(
        self,
        session_id: str | None = None,
        *,
        settings: Settings | None = None,
        store: TableStore | None = None,
    ):
        self.session_id = session_id or uuid.uuid4().hex
        self.settings = settings or get_settings()
        self.store = store or TableStore()
        self.step = WorkflowStep.INIT
        self.dependent: str | None = None
        self.independents: list[str] = []
        self.outlier_method = OutlierMethod.IQR
        self._remediated = False
        self._busy = threading.Lock()
        self._running: str | None = None
        self.log = get_logger(__name__).bind(session_id=self.session_id)

    # ------------------------------------------------------------------
    # Execution plumbing
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self._busy.locked()

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if not self._busy.acquire(blocking=False):
            self.log.warning("operation_rejected", operation=name, running=self._running)
            raise WorkflowBusyError(name, self._running)
        self._running = name
        try:
            yield
        finally:
            self._running = None
            self._busy.release()

    def _call(self, name: str, fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run ``fn`` on a worker thread, giving up after the configured timeout."""
        timeout = self.settings.operation_timeout_seconds
        if not timeout:
            return fn(*args, **kwargs)

        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"statscope-{name}")
        future = executor.submit(fn, *args, **kwargs)
        try:
            return future.result(timeout=timeout)
        except FuturesTimeoutError as exc:
            future.cancel()
            self.log.error("operation_timeout", operation=name, timeout=timeout)
            raise OperationTimeoutError(name, timeout) from exc
        finally:
            # a timed out worker finishes in the background; its result is dropped
            executor.shutdown(wait=False)

    def _commit(self, frame: pd.DataFrame, base_version: int) -> int:
        return self.store.replace(frame, expected_version=base_version)

    def _require_step(self, step: WorkflowStep, *, exact: bool = False, action: str = "") -> None:
        allowed = self.step == step if exact else self.step >= step
        if not allowed:
            where = "during" if exact else "from"
            raise StepPreconditionError(
                f"'{action}' is only available {where} the {step.name.lower()} step "
                f"(current step: {self.step.name.lower()})",
                current_step=self.step.name,
                requested_step=step.name,
            )

    def _check_version(self, expected_version: int | None) -> None:
        if expected_version is not None:
            self.store.ensure_current(expected_version)

    @property
    def _thresholds(self) -> dict[str, float]:
        return self.settings.outliers.model_dump()

    @property
    def selected_columns(self) -> list[str]:
        return ([self.dependent] if self.dependent else []) + list(self.independents)

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def initialize(self) -> WorkflowStep:
        """Init -> Upload. Calling it again later is a no-op."""
        if self.step == WorkflowStep.INIT:
            self.step = WorkflowStep.UPLOAD
            self.log.info("workflow_initialized")
        return self.step

    def advance(self) -> WorkflowStep:
        """Move one step forward if the current step's precondition holds."""
        with self._operation("advance"):
            current = self.step
            if current == WorkflowStep.INIT:
                self.step = WorkflowStep.UPLOAD
            elif current == WorkflowStep.UPLOAD:
                if not self.store.loaded:
                    raise StepPreconditionError(
                        "Load a dataset before selecting variables", current_step=current.name
                    )
                self.step = WorkflowStep.VARIABLE_SELECTION
            elif current == WorkflowStep.VARIABLE_SELECTION:
                raise StepPreconditionError(
                    "Select one dependent and at least one independent variable",
                    current_step=current.name,
                )
            elif current == WorkflowStep.QUALITY:
                outstanding = len(quality.find_issues(self.store.snapshot()))
                if outstanding and not self._remediated:
                    raise StepPreconditionError(
                        f"{outstanding} missing value(s) remain; remediate them before continuing",
                        current_step=current.name,
                    )
                self.step = WorkflowStep.OUTLIERS
            elif current == WorkflowStep.CORRELATION:
                raise StepPreconditionError("Already at the final step", current_step=current.name)
            else:
                self.step = WorkflowStep(current + 1)

            self.log.info("workflow_advanced", from_step=current.name, to_step=self.step.name)
            return self.step

    # ── Upload ──────────────────────────────────────────────────────

    def load_dataset(
        self,
        raw: bytes,
        format_hint: str | None = None,
        *,
        filename: str | None = None,
    ) -> DatasetMetadata:
        """Parse an upload and make it the session table (Upload -> VariableSelection)."""
        self.initialize()
        if self.step > WorkflowStep.VARIABLE_SELECTION:
            self._require_step(WorkflowStep.UPLOAD, exact=True, action="load dataset")
        hint = format_hint or format_from_filename(filename or "")

        with self._operation("load_dataset"):
            max_size = self.settings.ingestion.max_file_size
            frame = self._call("load_dataset", read_table, raw, hint, max_size=max_size)
            self.store.load_frame(frame)
            self.dependent, self.independents = None, []
            self.step = WorkflowStep.VARIABLE_SELECTION
            metadata = self.store.metadata()

        self.log.info(
            "dataset_loaded",
            filename=filename,
            format=hint,
            rows=metadata.rows,
            cols=metadata.cols,
            version=metadata.version,
        )
        return metadata

    # ── Variable selection ──────────────────────────────────────────

    def summary(self) -> DatasetMetadata:
        with self._operation("summary"):
            self._require_step(WorkflowStep.VARIABLE_SELECTION, action="summary")
            return self._call("summary", self.store.metadata)

    def numeric_variables(self) -> list[str]:
        """Columns that can be picked as dependent/independent variables."""
        with self._operation("numeric_variables"):
            self._require_step(WorkflowStep.VARIABLE_SELECTION, action="numeric variables")
            return numeric_columns(summarize(self.store.snapshot()))

    def select_variables(self, dependent: str, independents: Sequence[str]) -> DatasetMetadata:
        """Pick the variables and project the table onto them (VariableSelection -> Quality)."""
        with self._operation("select_variables"):
            self._require_step(WorkflowStep.VARIABLE_SELECTION, exact=True, action="select variables")
            if not dependent:
                raise ValidationError("A dependent variable is required", field="dependent")
            chosen = [c for c in dict.fromkeys(independents) if c != dependent]
            if not chosen:
                raise ValidationError(
                    "At least one independent variable is required", field="independents"
                )

            available = numeric_columns(summarize(self.store.snapshot()))
            rejected = [c for c in [dependent, *chosen] if c not in available]
            if rejected:
                raise ValidationError(
                    f"Not numeric or not in the dataset: {', '.join(rejected)}",
                    field="variables",
                )

            self.store.project([dependent, *chosen])
            self.dependent, self.independents = dependent, chosen
            self._remediated = False
            self.step = WorkflowStep.QUALITY
            self.log.info("variables_selected", dependent=dependent, independents=chosen)
            return self.store.metadata()

    # ── Quality ─────────────────────────────────────────────────────

    def list_issues(self) -> IssueScan:
        with self._operation("list_issues"):
            self._require_step(WorkflowStep.QUALITY, action="list issues")
            version = self.store.version
            issues = self._call("list_issues", quality.find_issues, self.store.snapshot())
            return IssueScan(version=version, issues=issues)

    def remediate(
        self,
        action: QualityAction | str,
        target_columns: Sequence[str] | None = None,
        *,
        expected_version: int | None = None,
    ) -> IssueScan:
        """Apply a bulk remediation and return the issues left on the new table."""
        with self._operation("remediate"):
            self._require_step(WorkflowStep.QUALITY, exact=True, action="remediate")
            self._check_version(expected_version)
            base = self.store.version
            frame = self._call(
                "remediate", quality.remediate, self.store.snapshot(), action, target_columns
            )
            version = self._commit(frame, base)
            self._remediated = True
            issues = quality.find_issues(frame)
            self.log.info(
                "remediation_applied",
                action=str(getattr(action, "value", action)),
                version=version,
                remaining=len(issues),
            )
            return IssueScan(version=version, issues=issues)

    def edit_cell(
        self,
        row: int,
        column: str,
        raw_text: str,
        *,
        strict: bool = False,
        expected_version: int | None = None,
    ) -> EditResult:
        """
        Manually correct one cell.

        Text that is not a finite number is rejected without touching the
        table: lenient callers get ``applied=False``, strict callers get
        ``InvalidNumericInput``.
        """
        with self._operation("edit_cell"):
            self._require_step(WorkflowStep.QUALITY, exact=True, action="edit cell")
            self._check_version(expected_version)
            base = self.store.version
            try:
                frame = quality.edit_cell(self.store.snapshot(), row, column, raw_text, strict=True)
            except InvalidNumericInput as exc:
                self.log.info("cell_edit_rejected", row=row, column=column, raw_text=raw_text)
                if strict:
                    raise
                return EditResult(
                    applied=False, row=row, column=column, version=base, message=exc.message
                )

            version = self._commit(frame, base)
            self._remediated = True
            value = float(frame.at[int(row), column])
            self.log.info("cell_edited", row=row, column=column, version=version)
            return EditResult(applied=True, row=row, column=column, version=version, value=value)

    # ── Outliers ────────────────────────────────────────────────────

    def set_outlier_method(self, method: OutlierMethod | str) -> OutlierMethod:
        try:
            parsed = OutlierMethod(method)
        except ValueError as exc:
            raise ValidationError(f"Unsupported outlier method: {method!r}", field="method") from exc
        with self._operation("set_outlier_method"):
            self._require_step(WorkflowStep.OUTLIERS, action="set outlier method")
            self.outlier_method = parsed
            self.log.info("outlier_method_set", method=parsed.value)
            return parsed

    def _scan(self, method: OutlierMethod) -> OutlierScan:
        version = self.store.version
        records = self._call(
            "detect_outliers",
            outliers.detect,
            self.store.snapshot(),
            method,
            columns=self.selected_columns or None,
            **self._thresholds,
        )
        return OutlierScan(version=version, method=method, records=records)

    def detect_outliers(self, method: OutlierMethod | str | None = None) -> OutlierScan:
        """Outliers of the current table for the session method (or ``method``)."""
        with self._operation("detect_outliers"):
            self._require_step(WorkflowStep.OUTLIERS, action="detect outliers")
            try:
                chosen = OutlierMethod(method) if method is not None else self.outlier_method
            except ValueError as exc:
                raise ValidationError(f"Unsupported outlier method: {method!r}", field="method") from exc
            return self._scan(chosen)

    def treat_outliers(
        self,
        column: str,
        action: OutlierAction | str,
        *,
        expected_version: int | None = None,
    ) -> OutlierScan:
        """Treat one column's outliers (re-detected first) and return a fresh scan."""
        with self._operation("treat_outliers"):
            self._require_step(WorkflowStep.OUTLIERS, exact=True, action="treat outliers")
            self._check_version(expected_version)
            if column not in self.store.columns:
                raise ValidationError(f"Unknown column: {column}", field="column")
            base = self.store.version
            method = self.outlier_method
            thresholds = self._thresholds
            scope = self.selected_columns or None

            def treat_and_rescan(df: pd.DataFrame):
                treated = outliers.treat(df, column, action, method, **thresholds)
                return treated, outliers.detect(treated, method, columns=scope, **thresholds)

            # treatment and rescan share one timeout; nothing is committed until both finish
            frame, records = self._call("treat_outliers", treat_and_rescan, self.store.snapshot())
            version = self._commit(frame, base)
            self.log.info(
                "outliers_treated",
                column=column,
                action=str(getattr(action, "value", action)),
                method=method.value,
                version=version,
            )
            return OutlierScan(version=version, method=method, records=records)

    # ── Descriptors ─────────────────────────────────────────────────

    def univariate(
        self,
        column: str,
        reference: ReferenceDistribution | str = ReferenceDistribution.NORMAL,
    ) -> UnivariateDescriptors:
        with self._operation("univariate"):
            self._require_step(WorkflowStep.UNIVARIATE, action="univariate")
            cfg = self.settings.distribution
            return self._call(
                "univariate",
                distribution.univariate_descriptors,
                self.store.snapshot(),
                column,
                reference,
                kde_points=cfg.kde_points,
                t_df=cfg.t_degrees_of_freedom,
            )

    def bivariate(
        self,
        x: str,
        y: str | None = None,
        *,
        line: bool = True,
        lowess: bool = False,
        polynomial_degree: int | None = None,
    ) -> BivariateDescriptors:
        """Scatter data and fits of ``y`` (the dependent variable by default) against ``x``."""
        with self._operation("bivariate"):
            self._require_step(WorkflowStep.BIVARIATE, action="bivariate")
            cfg = self.settings.distribution
            return self._call(
                "bivariate",
                distribution.bivariate_descriptors,
                self.store.snapshot(),
                x,
                y or self.dependent,
                line=line,
                lowess=lowess,
                polynomial_degree=polynomial_degree,
                lowess_frac=cfg.lowess_frac,
                curve_points=cfg.curve_points,
                max_polynomial_degree=cfg.max_polynomial_degree,
            )

    # ── Correlation ─────────────────────────────────────────────────

    def compute_correlations(self) -> CorrelationResult:
        with self._operation("compute_correlations"):
            self._require_step(WorkflowStep.CORRELATION, action="correlations")
            cfg = self.settings.correlation
            version = self.store.version
            rows = self._call(
                "compute_correlations",
                correlation.correlate,
                self.store.snapshot(),
                self.dependent,
                self.independents,
                confidence_level=cfg.confidence_level,
                fisher_clamp=cfg.fisher_clamp,
                min_observations=cfg.min_observations,
            )
            return CorrelationResult(version=version, dependent=self.dependent, rows=rows)

    def correlation_matrices(self) -> dict[str, pd.DataFrame]:
        with self._operation("correlation_matrices"):
            self._require_step(WorkflowStep.CORRELATION, action="correlation matrices")
            return self._call(
                "correlation_matrices",
                correlation.correlation_matrices,
                self.store.snapshot(),
                self.selected_columns,
            )

    def export_report(self) -> bytes:
        """PDF with a title page and one heatmap per correlation method."""
        with self._operation("export_report"):
            self._require_step(WorkflowStep.CORRELATION, action="export report")

            def build() -> bytes:
                matrices = correlation.correlation_matrices(self.store.snapshot(), self.selected_columns)
                return build_correlation_report(
                    self.dependent, self.independents, matrices, settings=self.settings.render
                )

            pdf = self._call("export_report", build)
            self.log.info("report_exported", size=len(pdf))
            return pdf

    # ------------------------------------------------------------------

    def state(self) -> dict[str, Any]:
        return {
            "session_id": self.session_id,
            "step": self.step.name,
            "version": self.store.version,
            "loaded": self.store.loaded,
            "dependent": self.dependent,
            "independents": list(self.independents),
            "outlier_method": self.outlier_method.value,
            "busy": self.busy,
        }


__all__ = ["WorkflowController"]
