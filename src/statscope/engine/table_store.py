"""engine.table_store
=====================
Single owner of the session's mutable table.

Every published snapshot gets a new integer version. Results derived
from the table (issues, outlier scans, correlations) carry the version
they were computed against; ``ensure_current`` rejects them once the
table has moved on. Row-count-changing operations always renumber the
rows 0..n-1.
"""

from __future__ import annotations

import logging
import threading
from numbers import Integral
from typing import Any, Iterable, Sequence

import pandas as pd

from statscope.core.exceptions import StaleResultError, ValidationError

from .ingestion import CSV, read_table
from .schema import is_numeric_column, summarize
from .types import DatasetMetadata

logger = logging.getLogger(__name__)


class TableStore:
    """Holds the current table snapshot and its version."""

    def __init__(self, frame: pd.DataFrame | None = None) -> None:
        self._lock = threading.RLock()
        self._frame: pd.DataFrame | None = None
        self._version = 0
        if frame is not None:
            self._publish(frame.reset_index(drop=True))

    # ── state ───────────────────────────────────────────────────────

    @property
    def version(self) -> int:
        return self._version

    @property
    def loaded(self) -> bool:
        return self._frame is not None

    @property
    def columns(self) -> list[str]:
        return list(self._require_frame().columns)

    @property
    def row_count(self) -> int:
        return len(self._require_frame())

    def snapshot(self) -> pd.DataFrame:
        """Independent copy of the current table."""
        with self._lock:
            return self._require_frame().copy()

    def metadata(self) -> DatasetMetadata:
        with self._lock:
            frame = self._require_frame()
            return DatasetMetadata(
                rows=len(frame),
                cols=len(frame.columns),
                columns=[str(c) for c in frame.columns],
                summary=summarize(frame),
                version=self._version,
            )

    def ensure_current(self, version: int) -> None:
        """Raise ``StaleResultError`` unless ``version`` is the current table version."""
        if version != self._version:
            raise StaleResultError(version, self._version)

    # ── mutations ───────────────────────────────────────────────────

    def load(self, raw: bytes, format_hint: str = CSV, *, max_size: int | None = None) -> int:
        """Parse ``raw`` and make it the current table. A failed parse leaves the store untouched."""
        frame = read_table(raw, format_hint, max_size=max_size)
        return self.load_frame(frame)

    def load_frame(self, frame: pd.DataFrame) -> int:
        """Make an already parsed frame the current table, replacing whatever was loaded."""
        return self._publish(frame.reset_index(drop=True))

    def project(self, columns: Sequence[str]) -> int:
        """Keep exactly ``columns`` (in the given order), preserving row order."""
        with self._lock:
            frame = self._require_frame()
            wanted = list(dict.fromkeys(columns))
            unknown = [c for c in wanted if c not in frame.columns]
            if unknown:
                raise ValidationError(f"Unknown columns: {', '.join(unknown)}", field="columns")
            if not wanted:
                raise ValidationError("At least one column must be kept", field="columns")
            return self._publish(frame[wanted].copy())

    def get_cell(self, row: int, column: str) -> Any:
        with self._lock:
            frame = self._require_frame()
            self._check_cell(frame, row, column)
            return frame.at[row, column]

    def set_cell(self, row: int, column: str, value: Any) -> int:
        with self._lock:
            frame = self._require_frame()
            self._check_cell(frame, row, column)
            updated = frame.copy()
            if isinstance(value, float) and not pd.api.types.is_float_dtype(updated[column]):
                if is_numeric_column(updated[column]):
                    updated[column] = pd.to_numeric(updated[column], errors="coerce").astype(float)
                else:
                    # mixed values; the other cells keep their text
                    updated[column] = updated[column].astype(object)
            updated.at[row, column] = value
            return self._publish(updated)

    def drop_rows(self, indices: Iterable[int]) -> int:
        """Remove rows, then renumber the remaining rows contiguously from zero."""
        with self._lock:
            frame = self._require_frame()
            to_drop = sorted(set(int(i) for i in indices))
            unknown = [i for i in to_drop if i not in frame.index]
            if unknown:
                raise ValidationError(f"Unknown rows: {unknown}", field="rows")
            return self._publish(frame.drop(index=to_drop).reset_index(drop=True))

    def replace(self, frame: pd.DataFrame, *, expected_version: int | None = None) -> int:
        """Publish ``frame`` as the new snapshot if the store is still at ``expected_version``."""
        with self._lock:
            if expected_version is not None:
                self.ensure_current(expected_version)
            self._require_frame()
            if not frame.index.equals(pd.RangeIndex(len(frame))):
                frame = frame.reset_index(drop=True)
            return self._publish(frame)

    # ── internals ───────────────────────────────────────────────────

    def _publish(self, frame: pd.DataFrame) -> int:
        with self._lock:
            self._frame = frame
            self._version += 1
            logger.debug(
                "table version %d published (%d rows x %d cols)",
                self._version,
                frame.shape[0],
                frame.shape[1],
            )
            return self._version

    def _require_frame(self) -> pd.DataFrame:
        if self._frame is None:
            raise ValidationError("No dataset loaded")
        return self._frame

    @staticmethod
    def _check_cell(frame: pd.DataFrame, row: int, column: str) -> None:
        if column not in frame.columns:
            raise ValidationError(f"Unknown column: {column}", field="column")
        if not isinstance(row, Integral) or isinstance(row, bool) or not 0 <= row < len(frame):
            raise ValidationError(f"Row {row!r} is outside 0..{len(frame) - 1}", field="row")


__all__ = ["TableStore"]
