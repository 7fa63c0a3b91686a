"""Core module - exceptions and logging."""

from .exceptions import (
    FileTooLargeError,
    InvalidNumericInput,
    OperationTimeoutError,
    ParseError,
    SessionNotFoundError,
    StaleResultError,
    StatScopeException,
    StepPreconditionError,
    ValidationError,
    WorkflowBusyError,
    install_exception_handlers,
)
from .logging import (
    bind_context,
    clear_context,
    get_logger,
    setup_logging,
)

__all__ = [
    # Exceptions
    "StatScopeException",
    "ParseError",
    "FileTooLargeError",
    "ValidationError",
    "StepPreconditionError",
    "InvalidNumericInput",
    "StaleResultError",
    "WorkflowBusyError",
    "OperationTimeoutError",
    "SessionNotFoundError",
    "install_exception_handlers",
    # Logging
    "setup_logging",
    "get_logger",
    "bind_context",
    "clear_context",
]
