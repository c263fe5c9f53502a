from __future__ import annotations

import logging
import os
import sys
from typing import Any, Dict

import structlog


# PUBLIC_INTERFACE
def setup_logging(
    log_level: str = "INFO",
    log_format: str = "console",
    service_name: str = "todo-assistant",
) -> None:
    """
    Configure structlog on top of the standard logging module.

    Args:
        log_level: Level name such as 'INFO' or 'DEBUG'.
        log_format: 'json' for one JSON object per line, anything else for the
            human-readable console renderer.
        service_name: Bound into every log entry as 'service'.
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.bind_contextvars(service=service_name)


def add_service_context(logger: logging.Logger, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add the deployment environment to every log entry."""
    event_dict.setdefault("environment", os.getenv("ENVIRONMENT", "development"))
    return event_dict
