"""Structured logging configuration using structlog.

All ClusterIQ components log JSON lines to stderr.  Records from stdlib
loggers (uvicorn, redis) are routed through the same renderer so a single
stream carries every log line.
"""

from __future__ import annotations

import logging
import sys

import structlog

_SERVICE = "clusteriq"


def _add_service(_logger: object, _method: str, event_dict: structlog.types.EventDict) -> structlog.types.EventDict:
    event_dict.setdefault("service", _SERVICE)
    return event_dict


def setup_logging(level: str = "info") -> None:
    """Configure structlog and stdlib logging for JSON output to stderr."""
    log_level = getattr(logging, level.upper(), logging.INFO)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_service,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="ts"),
    ]

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=[structlog.stdlib.add_logger_name, *shared_processors],
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.JSONRenderer(),
            ],
        )
    )
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(log_level)


def get_logger(component: str) -> structlog.stdlib.BoundLogger:
    """Get a logger bound with a component name."""
    return structlog.get_logger(component=component)  # type: ignore[return-value]
