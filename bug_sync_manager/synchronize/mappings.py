"""Interactive construction of project mappings from live Sentry and Linear data."""

import structlog

from bug_sync_manager.configuration.exceptions import DuplicateMappingError
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.linear.abc import LinearClientBase
from bug_sync_manager.linear.adapter import LinearAdapter
from bug_sync_manager.registry.connections import ConnectionStore
from bug_sync_manager.registry.resolver import MappingResolver
from bug_sync_manager.schemas.config import ConnectionModel, ProjectMappingModel
from bug_sync_manager.sentry.abc import SentryClientBase
from bug_sync_manager.sentry.adapter import SentryAdapter
from bug_sync_manager.synchronize.manual import NO_PROJECT_OPTION
from bug_sync_manager.synchronize.prompts import PrompterBase
from bug_sync_manager.utils.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_MAPPING_LABELS, LINEAR_API_URL
from bug_sync_manager.utils.helpers import parse_label_list

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


def team_only_project_name(team_name: str) -> str:
    """Display name stored for a mapping that targets a team without a project."""
    return f"{team_name} (Team)"


async def build_project_mapping(
    sentry: SentryClientBase,
    linear: LinearClientBase,
    connection: ConnectionModel,
    prompter: PrompterBase,
) -> ProjectMappingModel | None:
    """Ask the user for a Sentry project and a Linear target and return the mapping.

    Returns ``None`` when either side has nothing to choose from.

    Raises:
        DuplicateMappingError: If the chosen Sentry project is already mapped in the connection.
        UserCancelledError: If the user cancels a choice.
    """
    prompter.info("Fetching Sentry projects...")
    sentry_projects = await sentry.list_projects()
    if not sentry_projects:
        prompter.warning("No Sentry projects found.")
        return None
    sentry_project = sentry_projects[prompter.select("Select Sentry project", [project.full_slug for project in sentry_projects])]

    if any(mapping.matches_source(sentry_project.organization_slug, sentry_project.slug) for mapping in connection.project_mappings):
        raise DuplicateMappingError(connection.name, sentry_project.organization_slug, sentry_project.slug)

    prompter.info("Fetching Linear teams...")
    teams = await linear.list_teams()
    if not teams:
        prompter.warning("No Linear teams found.")
        return None
    team = teams[prompter.select("Select Linear team", [team.display_name for team in teams])]

    prompter.info("Fetching Linear projects...")
    linear_projects = await linear.list_projects(team.id)
    choice = prompter.select("Select Linear project (optional)", [NO_PROJECT_OPTION, *[project.name for project in linear_projects]])
    if choice > 0:
        linear_project_id: str | None = linear_projects[choice - 1].id
        linear_project_name = linear_projects[choice - 1].name
    else:
        linear_project_id = None
        linear_project_name = team_only_project_name(team.name)

    labels = parse_label_list(prompter.text("Default labels for synced bugs (comma-separated)", default=",".join(DEFAULT_MAPPING_LABELS)))

    return ProjectMappingModel(
        sentry_organization=sentry_project.organization_slug,
        sentry_project=sentry_project.slug,
        linear_team_id=team.id,
        linear_project_id=linear_project_id,
        linear_project_name=linear_project_name,
        default_labels=labels,
    )


async def run_add_mapping_workflow(
    store: ConfigStore,
    prompter: PrompterBase,
    connection_name: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    linear_api_url: str = LINEAR_API_URL,
) -> ProjectMappingModel | None:
    """Interactively add a project mapping to a connection and save it."""
    connections = ConnectionStore(store)
    connection = connections.get(connection_name)
    sentry_instance, linear_instance = MappingResolver(store).resolve_instances(connection)

    sentry = await SentryAdapter.create(sentry_instance, timeout=timeout)
    try:
        linear = await LinearAdapter.create(linear_instance, api_url=linear_api_url, timeout=timeout)
        try:
            mapping = await build_project_mapping(sentry, linear, connection, prompter)
        finally:
            await linear.close()
    finally:
        await sentry.close()

    if mapping is None:
        return None
    connections.add_mapping(connection_name, mapping)
    prompter.success(f"Project mapping {mapping.source_label} → {mapping.linear_project_name} added successfully!")
    return mapping
