"""Structured logging shared by the library and the command line."""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import structlog

LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


class StderrHandler(logging.StreamHandler):
    """Stream handler bound to whatever ``sys.stderr`` is at emit time."""

    def __init__(self, level=logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add ISO format timestamp to log events."""
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def build_processors(format_type: str = "text") -> List[Any]:
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if format_type == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))
    return processors


def configure_logging(level: str = "warning", format_type: str = "text", stream: Any = None) -> None:
    """
    Configure structured logging for the command line.

    Args:
        level: Log level (debug, info, warn, error)
        format_type: Output format ('json' or 'text')
        stream: Output stream (default: the current sys.stderr)
    """
    log_level = LEVELS.get(level.lower(), logging.WARNING)

    handler = logging.StreamHandler(stream) if stream is not None else StderrHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))

    package_logger = logging.getLogger("fsmparse")
    package_logger.handlers = [handler]
    package_logger.setLevel(log_level)
    package_logger.propagate = False

    structlog.configure(
        processors=build_processors(format_type),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None):
    """
    Get a structlog logger backed by the stdlib logger ``name``.

    The global structlog configuration is left alone; events use whatever
    processors the host (or ``configure_logging``) installed and are
    filtered by the stdlib logger's level.
    """
    return structlog.wrap_logger(logging.getLogger(name), wrapper_class=structlog.stdlib.BoundLogger)
