"""
Logger configuration.

Stdout logging with timestamps plus the correlation and request IDs of the
record's context.

Dependencies: logging (stdlib)
System role: Centralized logging configuration
"""

import logging
import sys

from askrag.observability.context import get_correlation_id, get_request_id

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s [%(correlation_id)s|%(request_id)s] %(message)s"
NOISY_LOGGERS = ("httpx", "httpcore", "openai", "aiosqlite", "sqlalchemy.engine")


class ContextFilter(logging.Filter):
    """Copy the tracing IDs of the current context onto each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "-"
        record.request_id = get_request_id() or "-"
        return True


def configure_logging(level: str = "INFO") -> None:
    """
    Install the stdout handler on the root logger.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        level: Root log level name
    """
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(ContextFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%dT%H:%M:%S"))

    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
