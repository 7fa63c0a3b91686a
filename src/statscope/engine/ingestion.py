# ingestion.py
from __future__ import annotations

import io
import logging
import zipfile
from pathlib import PurePath

import pandas as pd

from statscope.core.exceptions import FileTooLargeError, ParseError

logger = logging.getLogger(__name__)

# ═══════════════════════════════════════════════════════════════
#  Format hints
# ═══════════════════════════════════════════════════════════════
CSV = "csv"
EXCEL = "excel"
FORMATS = (CSV, EXCEL)

_EXTENSION_FORMATS = {
    ".csv": CSV,
    ".xls": EXCEL,
    ".xlsx": EXCEL,
}


def format_from_filename(filename: str) -> str:
    """Map an uploaded filename to a format hint; anything not Excel is read as CSV."""
    suffix = PurePath(filename or "").suffix.lower()
    return _EXTENSION_FORMATS.get(suffix, CSV)


# ═══════════════════════════════════════════════════════════════
#  Helpers
# ═══════════════════════════════════════════════════════════════
def _ensure_not_empty(df: pd.DataFrame, format_hint: str) -> pd.DataFrame:
    if df.shape[1] == 0:
        raise ParseError("File contains no columns", format_hint=format_hint)
    if df.shape[0] == 0:
        raise ParseError("File contains no data rows", format_hint=format_hint)
    df.columns = [str(col) for col in df.columns]
    return df.reset_index(drop=True)


# ═══════════════════════════════════════════════════════════════
#  CSV / Excel
# ═══════════════════════════════════════════════════════════════
def read_table(
    raw: bytes,
    format_hint: str = CSV,
    *,
    max_size: int | None = None,
) -> pd.DataFrame:
    """
    Parse raw upload bytes into a table.

    Raises ``ParseError`` for empty payloads, parser failures and unknown
    format hints, ``FileTooLargeError`` when ``max_size`` is exceeded.
    The returned frame always has a zero-based ``RangeIndex``.
    """
    if format_hint not in FORMATS:
        raise ParseError(f"Unsupported format: {format_hint!r}", format_hint=format_hint)

    if max_size is not None and len(raw) > max_size:
        raise FileTooLargeError(len(raw), max_size)

    if not raw:
        raise ParseError("Uploaded file is empty", format_hint=format_hint)

    buffer = io.BytesIO(raw)
    try:
        if format_hint == EXCEL:
            df = pd.read_excel(buffer)
        else:
            df = pd.read_csv(buffer)
    except pd.errors.EmptyDataError as exc:
        logger.error("%s upload contains no data (EmptyDataError)", format_hint)
        raise ParseError("File contains no data", format_hint=format_hint) from exc
    except (pd.errors.ParserError, UnicodeDecodeError) as exc:
        logger.error("%s parsing error: %s", format_hint, exc)
        raise ParseError(f"Could not parse file: {exc}", format_hint=format_hint) from exc
    except (ValueError, ImportError, OSError, zipfile.BadZipFile) as exc:
        # read_excel reports unreadable workbooks as ValueError / zipfile errors
        logger.error("%s read error: %s", format_hint, exc)
        raise ParseError(f"Could not read file: {exc}", format_hint=format_hint) from exc

    df = _ensure_not_empty(df, format_hint)
    logger.info("Loaded %s table: %d rows x %d columns", format_hint, *df.shape)
    return df
