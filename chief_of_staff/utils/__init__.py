"""Utility modules for the task automation engine."""

from .datetime_utils import (
    get_local_tz,
    get_local_now,
    to_naive_local,
    format_log_timestamp,
    now_iso,
    parse_datetime,
)

from .retry import (
    RetryExhausted,
    is_transient_error,
    retry_with_backoff,
    with_retry,
    with_google_api_retry,
)

__all__ = [
    # Datetime utilities
    "get_local_tz",
    "get_local_now",
    "to_naive_local",
    "format_log_timestamp",
    "now_iso",
    "parse_datetime",
    # Retry utilities
    "RetryExhausted",
    "is_transient_error",
    "retry_with_backoff",
    "with_retry",
    "with_google_api_retry",
]
