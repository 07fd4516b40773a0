"""Utility modules for the Phase Workflow Engine."""

from .datetime_utils import (
    Clock,
    get_local_tz,
    get_local_now,
    to_naive_local,
    to_aware_utc,
    resolve_now,
    fixed_clock,
)
from .retry import RetryExhausted, retry_with_backoff, backoff_delay, WEBHOOK_RETRY

__all__ = [
    # Datetime utilities
    "Clock",
    "get_local_tz",
    "get_local_now",
    "to_naive_local",
    "to_aware_utc",
    "resolve_now",
    "fixed_clock",
    # Retry
    "RetryExhausted",
    "retry_with_backoff",
    "backoff_delay",
    "WEBHOOK_RETRY",
]
