"""StatScope custom exceptions and error handlers."""

import logging
import traceback
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("statscope")


# ─────────────────────────────────────────────────────────────────────────────
# Custom Exceptions
# ─────────────────────────────────────────────────────────────────────────────

class StatScopeException(Exception):
    """Base exception for StatScope."""

    def __init__(
        self,
        message: str,
        code: str = "STATSCOPE_ERROR",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class ParseError(StatScopeException):
    """Uploaded file could not be turned into a table."""

    def __init__(self, message: str, format_hint: str | None = None):
        super().__init__(
            message=message,
            code="PARSE_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"format": format_hint} if format_hint else {},
        )


class FileTooLargeError(ParseError):
    """File exceeds size limit."""

    def __init__(self, size: int, max_size: int):
        super().__init__(message=f"File too large: {size} bytes (max: {max_size})")
        self.code = "FILE_TOO_LARGE"
        self.status_code = status.HTTP_413_REQUEST_ENTITY_TOO_LARGE
        self.details = {"size": size, "max_size": max_size}


class ValidationError(StatScopeException):
    """Recoverable, user-facing validation problem."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            details={"field": field} if field else {},
        )


class StepPreconditionError(ValidationError):
    """A workflow step was requested before its precondition holds."""

    def __init__(self, message: str, current_step: str, requested_step: str | None = None):
        super().__init__(message)
        self.code = "STEP_PRECONDITION"
        self.details = {"current_step": current_step}
        if requested_step is not None:
            self.details["requested_step"] = requested_step


class InvalidNumericInput(ValidationError):
    """Manual cell edit text is not a finite real number."""

    def __init__(self, raw_text: str, row: int | None = None, column: str | None = None):
        super().__init__(f"Not a valid number: {raw_text!r}", field=column)
        self.code = "INVALID_NUMERIC_INPUT"
        self.raw_text = raw_text
        self.details.update({"raw_text": raw_text, "row": row})


class StaleResultError(StatScopeException):
    """A derived result was used against a table version it was not computed on."""

    def __init__(self, computed_version: int, current_version: int):
        super().__init__(
            message=(
                f"Result computed against table version {computed_version}, "
                f"current version is {current_version}"
            ),
            code="STALE_RESULT",
            status_code=status.HTTP_409_CONFLICT,
            details={
                "computed_version": computed_version,
                "current_version": current_version,
            },
        )


class WorkflowBusyError(StatScopeException):
    """Another operation is already running against the table."""

    def __init__(self, operation: str, running: str | None = None):
        super().__init__(
            message=f"Cannot start '{operation}': another operation is in progress",
            code="WORKFLOW_BUSY",
            status_code=status.HTTP_409_CONFLICT,
            details={"operation": operation, "running": running},
        )


class OperationTimeoutError(StatScopeException):
    """Operation exceeded its time budget; the table was left unchanged."""

    def __init__(self, operation: str, timeout: float):
        super().__init__(
            message=f"Operation '{operation}' timed out after {timeout:g}s",
            code="OPERATION_TIMEOUT",
            status_code=status.HTTP_504_GATEWAY_TIMEOUT,
            details={"operation": operation, "timeout": timeout},
        )


class SessionNotFoundError(StatScopeException):
    """Unknown analysis session."""

    def __init__(self, session_id: str):
        super().__init__(
            message=f"Session not found: {session_id}",
            code="NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"session_id": session_id},
        )


# ─────────────────────────────────────────────────────────────────────────────
# Exception Handlers
# ─────────────────────────────────────────────────────────────────────────────

def install_exception_handlers(app: FastAPI, include_trace: bool = False) -> None:
    """Install exception handlers on FastAPI app."""

    @app.exception_handler(StatScopeException)
    async def statscope_exception_handler(request: Request, exc: StatScopeException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": exc.code,
                "message": exc.message,
                "details": exc.details,
            },
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "HTTP_ERROR",
                "message": str(exc.detail),
            },
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning("Validation error: %s", exc)
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={
                "error": "VALIDATION_ERROR",
                "message": "Request validation failed",
                "details": jsonable_errors(exc),
            },
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error: %s", exc)
        content = {
            "error": "INTERNAL_ERROR",
            "message": "An unexpected error occurred",
        }
        if include_trace:
            content["trace"] = traceback.format_exc()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=content,
        )


def jsonable_errors(exc: RequestValidationError) -> list[dict[str, Any]]:
    """Strip non-serializable context (e.g. raised exceptions) from pydantic errors."""
    return [
        {key: value for key, value in err.items() if key in {"type", "loc", "msg"}}
        for err in exc.errors()
    ]
