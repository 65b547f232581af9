"""Derives Linear issue fields from a Sentry issue and its latest event."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Iterable

import structlog

from bug_sync_manager.schemas.sentry import SentryEvent, SentryException, SentryIssue, SentryStackFrame
from bug_sync_manager.utils.constants import (
    DEFAULT_LABEL_COLOR,
    HIGH_IMPACT_USER_COUNT,
    LABEL_COLORS,
    LEVEL_LABEL_COLOR,
    MEDIUM_IMPACT_USER_COUNT,
    PLATFORM_LABEL_COLOR,
    SEEN_TIMESTAMP_FORMAT,
    SOURCE_TITLE_PREFIX,
)
from bug_sync_manager.utils.helpers import dedupe_preserving_order
from bug_sync_manager.utils.templates import (
    TEMPLATES_DIRECTORY,
    construct_jinja2_template_from_file,
    render_template_with_context,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

DESCRIPTION_TEMPLATE_PATH = TEMPLATES_DIRECTORY / "sentry_issue_description.md.j2"

# Linear priorities: 0 = No priority, 1 = Urgent, 2 = High, 3 = Medium, 4 = Low
PRIORITY_NO_PRIORITY = 0
PRIORITY_URGENT = 1
PRIORITY_HIGH = 2
PRIORITY_MEDIUM = 3
PRIORITY_LOW = 4

PRIORITY_NAMES: dict[int, str] = {
    PRIORITY_NO_PRIORITY: "No priority",
    PRIORITY_URGENT: "Urgent",
    PRIORITY_HIGH: "High",
    PRIORITY_MEDIUM: "Medium",
    PRIORITY_LOW: "Low",
}

LEVEL_PRIORITIES: dict[str, int] = {
    "fatal": PRIORITY_URGENT,
    "critical": PRIORITY_URGENT,
    "error": PRIORITY_HIGH,
    "warning": PRIORITY_MEDIUM,
    "info": PRIORITY_LOW,
    "debug": PRIORITY_LOW,
}


@dataclass
class BugDetails:
    """Linear issue fields derived from a Sentry issue."""

    title: str
    description: str
    priority: int
    labels: list[str] = field(default_factory=list)

    @property
    def priority_name(self) -> str:
        return get_priority_name(self.priority)


def calculate_priority(level: str, user_count: int) -> int:
    """Map a Sentry level and affected-user count onto a Linear priority.

    The level sets the base priority (unknown levels are Medium). More than 100
    affected users makes any issue Urgent; more than 50 raises it to at least High.
    User impact only ever raises the priority.
    """
    priority = LEVEL_PRIORITIES.get(level, PRIORITY_MEDIUM)
    if user_count > HIGH_IMPACT_USER_COUNT and priority > PRIORITY_URGENT:
        priority = PRIORITY_URGENT
    elif user_count > MEDIUM_IMPACT_USER_COUNT and priority > PRIORITY_HIGH:
        priority = PRIORITY_HIGH
    return priority


def get_priority_name(priority: int) -> str:
    """Return the Linear name of a priority value."""
    return PRIORITY_NAMES.get(priority, PRIORITY_NAMES[PRIORITY_NO_PRIORITY])


def get_sentry_labels(issue: SentryIssue) -> list[str]:
    """Return the labels describing a Sentry issue's level, platform and impact."""
    labels = []
    if issue.level:
        labels.append(f"level:{issue.level}")
    if issue.platform:
        labels.append(f"platform:{issue.platform}")

    if issue.user_count > HIGH_IMPACT_USER_COUNT:
        labels.append("high-impact")
    elif issue.user_count > MEDIUM_IMPACT_USER_COUNT:
        labels.append("medium-impact")
    return labels


def merge_labels(default_labels: Iterable[str], issue_labels: Iterable[str]) -> list[str]:
    """Combine mapping default labels with issue labels, defaults first, without duplicates."""
    return dedupe_preserving_order([*default_labels, *issue_labels])


def get_label_color(label: str) -> str:
    """Return the hex color used when a label has to be created in Linear."""
    if label in LABEL_COLORS:
        return LABEL_COLORS[label]
    if label.startswith("level:"):
        return LEVEL_LABEL_COLOR
    if label.startswith("platform:"):
        return PLATFORM_LABEL_COLOR
    return DEFAULT_LABEL_COLOR


def build_title(issue: SentryIssue) -> str:
    """Build the Linear title, e.g. ``[Sentry ABC-1] NullPointer``."""
    return f"[{SOURCE_TITLE_PREFIX} {issue.short_id}] {issue.title}"


def _format_timestamp(value: datetime | None) -> str:
    return value.strftime(SEEN_TIMESTAMP_FORMAT) if value is not None else ""


def _metadata_string(metadata: dict[str, Any], key: str) -> str:
    value = metadata.get(key)
    return value if isinstance(value, str) else ""


def _metadata_line_number(metadata: dict[str, Any]) -> int:
    value = metadata.get("lineNo")
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        return 0
    return int(value)


def _additional_information(issue: SentryIssue) -> dict[str, Any]:
    if not issue.metadata:
        return {}
    return {
        "error_message": _metadata_string(issue.metadata, "value"),
        "error_type": _metadata_string(issue.metadata, "type"),
        "filename": _metadata_string(issue.metadata, "filename"),
        "function": _metadata_string(issue.metadata, "function"),
        "line_no": _metadata_line_number(issue.metadata),
    }


def _frame_context(frame: SentryStackFrame) -> dict[str, Any]:
    line_no = frame.line_no or 0
    return {
        "function": frame.function,
        "filename": frame.filename,
        "line_no": line_no,
        "col_no": frame.col_no or 0,
        "context_path": frame.abs_path if frame.context and line_no > 0 else "",
    }


def _exception_context(exception: SentryException) -> dict[str, Any]:
    frames = exception.stacktrace.frames
    return {
        "type": exception.type,
        "value": exception.value,
        "has_frames": bool(frames),
        # Sentry orders frames oldest first.
        "frames": [_frame_context(frame) for frame in reversed(frames) if frame.in_app],
    }


def find_error_location(event: SentryEvent) -> SentryStackFrame | None:
    """Return the most recent in-app frame with a line number of the event's first exception."""
    if not event.exceptions:
        return None
    for frame in reversed(event.exceptions[0].stacktrace.frames):
        if frame.in_app and frame.line_no and frame.line_no > 0:
            return frame
    return None


def build_description(issue: SentryIssue, event: SentryEvent | None = None) -> str:
    """Render the Markdown description of a Linear issue created from a Sentry issue.

    Args:
        issue: The Sentry issue, with details.
        event: The latest event of the issue. When given, its stack traces are
            included.

    Returns:
        Markdown ending with a link back to Sentry.
    """
    exceptions = event.exceptions if event is not None else []
    error_location = find_error_location(event) if event is not None else None
    template = construct_jinja2_template_from_file(DESCRIPTION_TEMPLATE_PATH)
    return render_template_with_context(
        template,
        issue=issue,
        first_seen=_format_timestamp(issue.first_seen),
        last_seen=_format_timestamp(issue.last_seen),
        additional_information=_additional_information(issue),
        exceptions=[_exception_context(exception) for exception in exceptions],
        error_location=_frame_context(error_location) if error_location is not None else None,
    )


def prepare_bug_details(issue: SentryIssue, event: SentryEvent | None, default_labels: Iterable[str]) -> BugDetails:
    """Derive every Linear issue field from a Sentry issue.

    Args:
        issue: The Sentry issue, with details.
        event: The latest event of the issue, if it could be fetched.
        default_labels: The default labels of the project mapping.

    Returns:
        The title, description, priority and labels of the Linear issue.
    """
    details = BugDetails(
        title=build_title(issue),
        description=build_description(issue, event),
        priority=calculate_priority(issue.level, issue.user_count),
        labels=merge_labels(default_labels, get_sentry_labels(issue)),
    )
    logger.debug(
        "Prepared bug details",
        sentry_issue=issue.short_id,
        priority=details.priority,
        labels=details.labels,
        has_event=event is not None,
    )
    return details
