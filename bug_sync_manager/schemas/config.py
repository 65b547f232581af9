"""Pydantic schema for the shared YAML configuration document.

Only the ``sentry``, ``linear`` and ``bug_manager`` sections are modelled. Every
model allows extra fields so that sections and keys owned by other tools survive
a load and save round trip untouched.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from bug_sync_manager.utils.constants import DEFAULT_SENTRY_BASE_URL
from bug_sync_manager.utils.helpers import dedupe_preserving_order


class SentryInstanceModel(BaseModel):
    """Pydantic model for a named Sentry instance."""

    model_config = ConfigDict(extra="allow")

    name: str
    api_key: str
    base_url: str = DEFAULT_SENTRY_BASE_URL


class LinearInstanceModel(BaseModel):
    """Pydantic model for a named Linear instance."""

    model_config = ConfigDict(extra="allow")

    name: str
    api_key: str


class LegacySentryProjectModel(BaseModel):
    """Pydantic model for a Sentry project in the pre-connection flat mapping table."""

    model_config = ConfigDict(extra="allow")

    organization_slug: str = ""
    project_slug: str = ""
    linear_project_id: str = ""


class LegacyLinearProjectModel(BaseModel):
    """Pydantic model for a Linear project in the pre-connection flat mapping table."""

    model_config = ConfigDict(extra="allow")

    team_id: str = ""
    project_id: str = ""
    project_name: str = ""
    labels: list[str] = Field(default_factory=list)

    @field_validator("labels", mode="before")
    @classmethod
    def _none_labels_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SentrySectionModel(BaseModel):
    """Pydantic model for the ``sentry`` section.

    ``api_key``, ``base_url`` and ``projects`` are the legacy single-instance fields.
    They are kept and written back even after migration.
    """

    model_config = ConfigDict(extra="allow")

    api_key: str | None = None
    base_url: str | None = None
    projects: dict[str, LegacySentryProjectModel] = Field(default_factory=dict)
    instances: dict[str, SentryInstanceModel] = Field(default_factory=dict)


class LinearSectionModel(BaseModel):
    """Pydantic model for the ``linear`` section, including its legacy fields."""

    model_config = ConfigDict(extra="allow")

    api_key: str | None = None
    projects: dict[str, LegacyLinearProjectModel] = Field(default_factory=dict)
    instances: dict[str, LinearInstanceModel] = Field(default_factory=dict)


class ProjectMappingModel(BaseModel):
    """Pydantic model mapping one Sentry project onto a Linear team and optional project."""

    model_config = ConfigDict(extra="allow")

    sentry_organization: str
    sentry_project: str
    linear_team_id: str
    linear_project_id: str | None = None
    linear_project_name: str = ""
    default_labels: list[str] = Field(default_factory=list)

    @field_validator("linear_project_id", mode="before")
    @classmethod
    def _blank_project_id_to_none(cls, value: Any) -> Any:
        return value or None

    @field_validator("default_labels", mode="before")
    @classmethod
    def _dedupe_default_labels(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return dedupe_preserving_order(str(label) for label in value)
        return value

    @property
    def source_label(self) -> str:
        """The Sentry side of the mapping as ``organization/project``."""
        return f"{self.sentry_organization}/{self.sentry_project}"

    def matches_source(self, sentry_organization: str, sentry_project: str) -> bool:
        """Whether this mapping is for the given Sentry organization and project."""
        return self.sentry_organization == sentry_organization and self.sentry_project == sentry_project


class ConnectionModel(BaseModel):
    """Pydantic model pairing one Sentry instance with one Linear instance."""

    model_config = ConfigDict(extra="allow")

    name: str
    linear_instance: str
    sentry_instance: str
    project_mappings: list[ProjectMappingModel] = Field(default_factory=list)


class BugManagerSectionModel(BaseModel):
    """Pydantic model for the ``bug_manager`` section."""

    model_config = ConfigDict(extra="allow")

    connections: list[ConnectionModel] = Field(default_factory=list)


class AppConfigModel(BaseModel):
    """Pydantic model for the whole configuration document."""

    model_config = ConfigDict(extra="allow")

    sentry: SentrySectionModel = Field(default_factory=SentrySectionModel)
    linear: LinearSectionModel = Field(default_factory=LinearSectionModel)
    bug_manager: BugManagerSectionModel = Field(default_factory=BugManagerSectionModel)
