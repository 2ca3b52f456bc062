"""
Observability package.

Logging configuration, request tracing context and HTTP middleware.
"""

from askrag.observability.context import get_correlation_id, get_request_id, request_scope
from askrag.observability.logger import configure_logging

__all__ = ["configure_logging", "get_correlation_id", "get_request_id", "request_scope"]
