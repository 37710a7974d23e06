"""Observability for oidcore: structured logging and in-process metrics.

Example:
    >>> from oidcore.observability import get_logger, get_metrics
    >>> logger = get_logger(__name__)
    >>> logger.info("oidcore.token.issued", client_id="client1")
    >>> get_metrics().increment_counter(
    ...     "oidcore_token_requests_total", {"grant_type": "password", "status": "success"}
    ... )
"""

from oidcore.observability.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
    is_debug_mode,
    sanitize_for_logging,
)
from oidcore.observability.metrics import (
    MetricsCollector,
    get_metrics,
    reset_metrics,
)

__all__ = [
    "bind_context",
    "clear_context",
    "configure_logging",
    "get_logger",
    "get_metrics",
    "is_debug_mode",
    "reset_metrics",
    "MetricsCollector",
    "sanitize_for_logging",
]
