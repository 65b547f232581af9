"""Shared constants used across the application."""

from pathlib import Path

# Configuration Constants
# -----------------------

DEFAULT_CONFIG_PATH = Path.home() / ".devtools" / "config.yaml"
"""Default location of the shared YAML configuration document."""

DEFAULT_INSTANCE_KEY = "default"
"""Key used for instances synthesized from legacy single-instance configuration."""

DEFAULT_SENTRY_INSTANCE_NAME = "Default Sentry"
DEFAULT_LINEAR_INSTANCE_NAME = "Default Linear"
DEFAULT_CONNECTION_NAME = "Default Connection"

DEFAULT_MAPPING_LABELS = ["bug", "sentry"]
"""Default labels suggested when a new project mapping is added."""

# API Constants
# -------------

DEFAULT_SENTRY_BASE_URL = "https://sentry.io/api/0"
"""Base URL of the hosted Sentry API."""

LINEAR_API_URL = "https://api.linear.app/graphql"
"""Single GraphQL endpoint of the Linear API."""

DEFAULT_HTTP_TIMEOUT = 30.0
"""Timeout in seconds applied to every Sentry and Linear request."""

SENTRY_ISSUES_STATS_PERIOD = "24h"

# Synchronization Constants
# -------------------------

DEFAULT_SYNC_ISSUE_LIMIT = 20
"""Maximum number of unresolved Sentry issues offered for selection."""

SOURCE_TITLE_PREFIX = "Sentry"
"""Prefix used in Linear issue titles, e.g. ``[Sentry ABC-1] NullPointer``."""

HIGH_IMPACT_USER_COUNT = 100
"""Affected-user count above which an issue becomes Urgent and is labelled ``high-impact``."""

MEDIUM_IMPACT_USER_COUNT = 50
"""Affected-user count above which an issue is at least High and is labelled ``medium-impact``."""

DESCRIPTION_PREVIEW_LENGTH = 500
"""Number of description characters shown before asking for confirmation."""

SEEN_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

MANUAL_ISSUE_TYPES = ["Bug", "Feature", "Task", "Improvement", "Story"]
MANUAL_ISSUE_TITLE_MIN_LENGTH = 3

# Label Colors
# ------------

LABEL_COLORS: dict[str, str] = {
    "bug": "#e11d48",
    "sentry": "#8b5cf6",
    "level:fatal": "#991b1b",
    "level:error": "#dc2626",
    "level:warning": "#f59e0b",
    "level:info": "#3b82f6",
    "high-impact": "#ef4444",
    "medium-impact": "#f97316",
}
"""Exact-name label colors. Anything not listed falls back to the prefix rules below."""

LEVEL_LABEL_COLOR = "#8b5cf6"
PLATFORM_LABEL_COLOR = "#10b981"
DEFAULT_LABEL_COLOR = "#6b7280"
