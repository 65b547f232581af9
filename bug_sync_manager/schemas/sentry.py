"""Pydantic models for the Sentry REST API payloads used by the sync."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class _SentryModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class SentryOrganization(_SentryModel):
    """Organization reference embedded in a Sentry project."""

    id: str = ""
    slug: str = ""
    name: str = ""


class SentryProject(_SentryModel):
    """Pydantic model for a Sentry project."""

    id: str
    slug: str
    name: str = ""
    organization: SentryOrganization = Field(default_factory=SentryOrganization)
    organization_slug: str = ""

    @model_validator(mode="after")
    def _fill_organization_slug(self) -> "SentryProject":
        if not self.organization_slug and self.organization.slug:
            self.organization_slug = self.organization.slug
        return self

    @property
    def full_slug(self) -> str:
        """The project as ``organization/project``."""
        return f"{self.organization_slug}/{self.slug}"


class SentryIssueProject(_SentryModel):
    """Project reference embedded in a Sentry issue."""

    id: str = ""
    name: str = ""
    slug: str = ""


class SentryIssue(_SentryModel):
    """Pydantic model for a Sentry issue (a group of events)."""

    id: str
    short_id: str = Field("", alias="shortId")
    title: str = ""
    culprit: str = ""
    permalink: str = ""
    count: str = "0"
    user_count: int = Field(0, alias="userCount")
    first_seen: datetime | None = Field(None, alias="firstSeen")
    last_seen: datetime | None = Field(None, alias="lastSeen")
    level: str = ""
    status: str = ""
    platform: str = ""
    type: str = ""
    project: SentryIssueProject = Field(default_factory=SentryIssueProject)
    metadata: dict[str, Any] = Field(default_factory=dict)

    @field_validator("count", mode="before")
    @classmethod
    def _count_to_string(cls, value: Any) -> Any:
        # Sentry returns the occurrence count as a string; older instances send a number.
        return "0" if value is None else str(value)

    @field_validator("culprit", "permalink", "level", "status", "platform", "type", "title", "short_id", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("user_count", mode="before")
    @classmethod
    def _none_user_count_to_zero(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("metadata", mode="before")
    @classmethod
    def _none_metadata_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SentryStackFrame(_SentryModel):
    """A single frame of a Sentry stack trace."""

    filename: str = ""
    function: str = ""
    module: str = ""
    line_no: int | None = Field(None, alias="lineNo")
    col_no: int | None = Field(None, alias="colNo")
    abs_path: str = Field("", alias="absPath")
    context: list[list[Any]] = Field(default_factory=list)
    in_app: bool = Field(False, alias="inApp")

    @field_validator("filename", "function", "module", "abs_path", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("context", mode="before")
    @classmethod
    def _none_context_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("in_app", mode="before")
    @classmethod
    def _none_in_app_to_false(cls, value: Any) -> Any:
        return False if value is None else value


class SentryStacktrace(_SentryModel):
    """Stack trace attached to a Sentry exception; frames are ordered oldest first."""

    frames: list[SentryStackFrame] = Field(default_factory=list)

    @field_validator("frames", mode="before")
    @classmethod
    def _none_frames_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SentryException(_SentryModel):
    """A single exception value of a Sentry event."""

    type: str = ""
    value: str = ""
    stacktrace: SentryStacktrace = Field(default_factory=SentryStacktrace)

    @field_validator("type", "value", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("stacktrace", mode="before")
    @classmethod
    def _none_stacktrace_to_empty(cls, value: Any) -> Any:
        return {} if value is None else value


class SentryExceptionInterface(_SentryModel):
    """The ``exception`` interface of a Sentry event."""

    values: list[SentryException] = Field(default_factory=list)

    @field_validator("values", mode="before")
    @classmethod
    def _none_values_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SentryEvent(_SentryModel):
    """Pydantic model for a Sentry event, used for its stack trace.

    Sentry exposes exceptions either as a top-level ``exception`` interface or as an
    ``entries`` item of type ``exception``; both shapes are accepted.
    """

    id: str = ""
    event_id: str = Field("", alias="eventID")
    title: str = ""
    message: str = ""
    platform: str = ""
    date_time: datetime | None = Field(None, alias="dateTime")
    exception: SentryExceptionInterface = Field(default_factory=SentryExceptionInterface)

    @model_validator(mode="before")
    @classmethod
    def _exception_from_entries(cls, data: Any) -> Any:
        if not isinstance(data, dict) or data.get("exception"):
            return data
        for entry in data.get("entries") or []:
            if isinstance(entry, dict) and entry.get("type") == "exception":
                return {**data, "exception": entry.get("data") or {}}
        return {key: value for key, value in data.items() if key != "exception"}

    @property
    def exceptions(self) -> list[SentryException]:
        """Exception values of the event."""
        return self.exception.values
