# =============================================================================================
# AUTHAPI/CORE/LOGGING.PY - STRUCTURED LOGGING WITH STRUCTLOG
# =============================================================================================
# Every module gets its logger with:
#   from authapi.core.logging import get_logger
#   logger = get_logger(__name__)
#   logger.info("User logged in", user_id=user.id)
#
# OUTPUT:
# - LOG_FORMAT=console → colored, human-readable lines (local development)
# - LOG_FORMAT=json    → one JSON object per line (log shippers)
#
# REQUEST CONTEXT:
# - The request middleware in main.py binds a request_id into contextvars
# - merge_contextvars copies it onto every log line emitted during that request
#
# NEVER LOG: plaintext passwords, password hashes, raw access/refresh tokens
# =============================================================================================

import logging
import sys
from typing import Any

import structlog
from structlog.types import Processor


def configure_logging(settings: Any) -> None:
    """
    Configure structlog (and stdlib logging for third-party libraries).

    Called once by create_app(). Safe to call again (tests build several apps).

    Args:
        settings: Settings instance providing LOG_LEVEL and LOG_FORMAT
    """
    level = getattr(logging, settings.LOG_LEVEL, logging.INFO)

    # -------------------------
    # Processors shared by both renderers
    # -------------------------
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.LOG_FORMAT == "json":
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )

    # Third-party libraries (uvicorn, sqlalchemy) keep using stdlib logging
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for logger_name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
        logging.getLogger(logger_name).setLevel(level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger; ``name`` is attached as the ``logger_name`` field."""
    # Initial values keep the proxy lazy, so configure_logging() still applies later
    return structlog.get_logger(logger_name=name or "authapi")


def bind_request_id(request_id: str) -> None:
    """Attach a request id to every log line emitted in the current context."""
    structlog.contextvars.bind_contextvars(request_id=request_id)


def clear_context() -> None:
    """Drop per-request context so it never leaks into the next request."""
    structlog.contextvars.clear_contextvars()
