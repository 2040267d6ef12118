"""Structured logging setup for bulkplan.

The kernel only calls ``structlog.get_logger()``; configuring output is left
to the application, which calls ``setup_logging`` once at startup. Both
structlog and stdlib records are rendered by one ProcessorFormatter, to
stderr so that command output on stdout stays machine-readable.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.stdlib import ProcessorFormatter

from bulkplan.config import Settings


def _remove_internal_fields(
    logger: Optional[logging.Logger],
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Drop ProcessorFormatter bookkeeping from rendered output."""
    event_dict.pop("_record", None)
    event_dict.pop("_from_structlog", None)
    return event_dict


def setup_logging(settings: Optional[Settings] = None) -> None:
    """Configure structlog and stdlib logging from settings.

    Args:
        settings: Log level and format; defaults to ``Settings()``.
    """
    settings = settings or Settings()
    level = getattr(logging, settings.log_level.upper(), logging.INFO)

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if settings.log_format == "json":
        final_processors: list[Any] = [
            _remove_internal_fields,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        final_processors = [
            _remove_internal_fields,
            structlog.dev.ConsoleRenderer(colors=False),
        ]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # reconfigured by tests
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=final_processors,
            foreign_pre_chain=shared_processors,
        )
    )

    root = logging.getLogger()
    root.handlers = []
    root.addHandler(handler)
    root.setLevel(level)
