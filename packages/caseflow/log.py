"""Structured logging for the engines.

The engines only ever call ``structlog.get_logger()``; the host application
calls setup_logging() once at startup to decide where those events go.
"""

import logging

import structlog

from caseflow.settings import get_settings

RENDERERS = ("json", "console")


def setup_logging(level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog on top of the stdlib logging module.

    Args:
        level: Log level name, CASEFLOW_LOG_LEVEL when omitted
        log_format: "json" or "console", CASEFLOW_LOG_FORMAT when omitted

    Raises:
        ValueError: If log_format is not one of RENDERERS
    """
    settings = get_settings()
    level = (level or settings.log_level).upper()
    log_format = (log_format or settings.log_format).lower()
    if log_format not in RENDERERS:
        raise ValueError(f"Unknown log format {log_format!r}, expected one of {RENDERERS}")

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger("caseflow").setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    structlog.get_logger().debug(
        "Logging configured", environment=settings.environment, format=log_format
    )
