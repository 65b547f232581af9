"""Enums describing how a synchronization ended."""

from enum import Enum


class SyncOutcome(str, Enum):
    """Enum for the ways a single sync attempt can end."""

    CREATED = "created"
    CANCELLED = "cancelled"
    NO_ISSUES = "no_issues"
    NOT_CONFIGURED = "not_configured"
