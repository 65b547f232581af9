"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SENTRY_BASE_URL,
    DEFAULT_SYNC_ISSUE_LIMIT,
    LINEAR_API_URL,
)

__all__ = [
    "DEFAULT_HTTP_TIMEOUT",
    "DEFAULT_SENTRY_BASE_URL",
    "DEFAULT_SYNC_ISSUE_LIMIT",
    "LINEAR_API_URL",
]
