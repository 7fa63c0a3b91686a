"""
Logging for StatScope.

Workflow and API code log structured events through structlog; engine
modules keep plain ``logging.getLogger(__name__)`` loggers. Both end up in
one stdout handler with the same renderer, so a session's events and the
engine's ``[func]`` messages interleave in a single stream.
"""

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor

# plotting libraries log font and backend chatter at INFO/DEBUG
QUIET_LOGGERS = ("uvicorn.access", "matplotlib", "PIL", "fontTools")


def _renderer(json_format: bool) -> Processor:
    if json_format:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def setup_logging(
    level: str = "INFO",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """
    Route structlog and stdlib records through one stdout handler.

    ``json_format`` switches the console renderer for one JSON object per
    line, which is what the production profile uses.
    """
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if add_timestamp:
        chain.insert(0, structlog.processors.TimeStamper(fmt="iso"))
    if json_format:
        chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(json_format),
            ],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper()))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach request_id / session_id to every event logged from this context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()
