"""Normalization and legacy migration of the shared configuration document.

Older versions of the configuration held a single Sentry API key, a single
Linear API key and a flat table of Sentry-project to Linear-project mappings.
The functions here lift that layout into named instances and a default
connection. Every step is additive: legacy fields are left in place, and a step
that has already run is a no-op on the next load.
"""

from enum import Enum
from typing import Any

import structlog

from bug_sync_manager.schemas.config import (
    AppConfigModel,
    ConnectionModel,
    LinearInstanceModel,
    ProjectMappingModel,
    SentryInstanceModel,
)
from bug_sync_manager.utils.constants import (
    DEFAULT_CONNECTION_NAME,
    DEFAULT_INSTANCE_KEY,
    DEFAULT_LINEAR_INSTANCE_NAME,
    DEFAULT_SENTRY_BASE_URL,
    DEFAULT_SENTRY_INSTANCE_NAME,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_SECTION_COLLECTIONS: dict[str, dict[str, type]] = {
    "sentry": {"projects": dict, "instances": dict},
    "linear": {"projects": dict, "instances": dict},
    "bug_manager": {"connections": list},
}


class MigrationStep(str, Enum):
    """Enum for the legacy migration steps that can run on load."""

    SENTRY_DEFAULT_INSTANCE = "sentry_default_instance"
    LINEAR_DEFAULT_INSTANCE = "linear_default_instance"
    DEFAULT_CONNECTION = "default_connection"


def ensure_collections(raw: dict[str, Any]) -> dict[str, Any]:
    """Replace null sections and collections in a raw document with empty ones.

    Also defaults ``sentry.base_url``. Unknown sections and keys are left untouched.

    Args:
        raw: The document as parsed from YAML. Modified in place.

    Returns:
        The same dictionary, for chaining.
    """
    for section_name, collections in _SECTION_COLLECTIONS.items():
        section = raw.get(section_name)
        if section is None:
            section = raw[section_name] = {}
        if not isinstance(section, dict):
            # Left for schema validation to reject.
            continue
        for key, factory in collections.items():
            if section.get(key) is None:
                section[key] = factory()

    sentry_section = raw["sentry"]
    if isinstance(sentry_section, dict) and not sentry_section.get("base_url"):
        sentry_section["base_url"] = DEFAULT_SENTRY_BASE_URL

    bug_manager_section = raw["bug_manager"]
    connections = bug_manager_section.get("connections") if isinstance(bug_manager_section, dict) else None
    for connection in connections if isinstance(connections, list) else []:
        if isinstance(connection, dict) and connection.get("project_mappings") is None:
            connection["project_mappings"] = []
    return raw


def migrate_legacy_instances(config: AppConfigModel) -> list[MigrationStep]:
    """Create ``default`` instances from legacy single API keys.

    An instance is only synthesized for a kind that has an API key set and no
    instances yet.
    """
    steps: list[MigrationStep] = []

    if config.sentry.api_key and not config.sentry.instances:
        config.sentry.instances[DEFAULT_INSTANCE_KEY] = SentryInstanceModel(
            name=DEFAULT_SENTRY_INSTANCE_NAME,
            api_key=config.sentry.api_key,
            base_url=config.sentry.base_url or DEFAULT_SENTRY_BASE_URL,
        )
        logger.info("Migrated legacy Sentry API key to instance", instance=DEFAULT_INSTANCE_KEY)
        steps.append(MigrationStep.SENTRY_DEFAULT_INSTANCE)

    if config.linear.api_key and not config.linear.instances:
        config.linear.instances[DEFAULT_INSTANCE_KEY] = LinearInstanceModel(
            name=DEFAULT_LINEAR_INSTANCE_NAME,
            api_key=config.linear.api_key,
        )
        logger.info("Migrated legacy Linear API key to instance", instance=DEFAULT_INSTANCE_KEY)
        steps.append(MigrationStep.LINEAR_DEFAULT_INSTANCE)

    return steps


def build_legacy_project_mappings(config: AppConfigModel) -> list[ProjectMappingModel]:
    """Build project mappings from the legacy flat project tables.

    Legacy Sentry projects whose ``linear_project_id`` does not name an entry of
    ``linear.projects`` are skipped.
    """
    mappings: list[ProjectMappingModel] = []
    for sentry_project_name, sentry_project in config.sentry.projects.items():
        linear_project = config.linear.projects.get(sentry_project.linear_project_id)
        if linear_project is None:
            logger.debug(
                "Skipping legacy Sentry project without a Linear project",
                sentry_project=sentry_project_name,
                linear_project_id=sentry_project.linear_project_id,
            )
            continue
        mappings.append(
            ProjectMappingModel(
                sentry_organization=sentry_project.organization_slug,
                sentry_project=sentry_project.project_slug,
                linear_team_id=linear_project.team_id,
                linear_project_id=linear_project.project_id,
                linear_project_name=linear_project.project_name,
                default_labels=list(linear_project.labels),
            )
        )
    return mappings


def migrate_legacy_projects(config: AppConfigModel) -> list[MigrationStep]:
    """Create a default connection from the legacy flat project tables.

    Only runs when there are no connections yet. The connection points at the
    ``default`` instances of both kinds.
    """
    if config.bug_manager.connections or not config.sentry.projects:
        return []

    mappings = build_legacy_project_mappings(config)
    if not mappings:
        logger.info("No legacy project mappings could be migrated", legacy_projects=len(config.sentry.projects))
        return []

    config.bug_manager.connections.append(
        ConnectionModel(
            name=DEFAULT_CONNECTION_NAME,
            linear_instance=DEFAULT_INSTANCE_KEY,
            sentry_instance=DEFAULT_INSTANCE_KEY,
            project_mappings=mappings,
        )
    )
    logger.info("Migrated legacy project mappings to connection", connection=DEFAULT_CONNECTION_NAME, mappings=len(mappings))
    missing_instances = [
        kind
        for kind, instances in (("sentry", config.sentry.instances), ("linear", config.linear.instances))
        if DEFAULT_INSTANCE_KEY not in instances
    ]
    if missing_instances:
        logger.warning(
            "Migrated connection references instances that do not exist yet; add them before syncing",
            connection=DEFAULT_CONNECTION_NAME,
            instance_key=DEFAULT_INSTANCE_KEY,
            missing_instances=missing_instances,
        )
    return [MigrationStep.DEFAULT_CONNECTION]


def migrate_config(config: AppConfigModel) -> list[MigrationStep]:
    """Run every legacy migration step against a loaded configuration.

    Args:
        config: The validated configuration. Modified in place.

    Returns:
        The steps that changed the configuration. Empty when nothing was migrated,
        which is always the case on a second run.
    """
    if not config.sentry.base_url:
        config.sentry.base_url = DEFAULT_SENTRY_BASE_URL
    steps = migrate_legacy_instances(config)
    steps.extend(migrate_legacy_projects(config))
    return steps
