"""Interactive creation of a Linear issue that does not originate from Sentry."""

import structlog

from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.linear.abc import LinearClientBase
from bug_sync_manager.linear.adapter import LinearAdapter
from bug_sync_manager.registry.instances import linear_instances
from bug_sync_manager.schemas.config import LinearInstanceModel
from bug_sync_manager.schemas.linear import LinearProject, LinearTeam
from bug_sync_manager.synchronize.driver import PREVIEW_SEPARATOR, select_workflow_state
from bug_sync_manager.synchronize.labels import resolve_label_ids
from bug_sync_manager.synchronize.models import SyncOutcome
from bug_sync_manager.synchronize.prompts import PrompterBase
from bug_sync_manager.synchronize.results import ManualIssueResult
from bug_sync_manager.synchronize.transform import PRIORITY_NAMES
from bug_sync_manager.utils.constants import (
    DEFAULT_HTTP_TIMEOUT,
    LINEAR_API_URL,
    MANUAL_ISSUE_TITLE_MIN_LENGTH,
    MANUAL_ISSUE_TYPES,
)
from bug_sync_manager.utils.helpers import parse_label_list

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

NO_PROJECT_OPTION = "No Project (Team only)"


def prefix_title_with_type(title: str, issue_type: str) -> str:
    """Prefix a title with ``[Type]`` unless it already starts with the type name."""
    if title.lower().startswith(issue_type.lower()):
        return title
    return f"[{issue_type}] {title}"


def validate_title(title: str) -> str | None:
    if len(title) < MANUAL_ISSUE_TITLE_MIN_LENGTH:
        return f"Title must be at least {MANUAL_ISSUE_TITLE_MIN_LENGTH} characters"
    return None


def select_linear_instance(store: ConfigStore, prompter: PrompterBase, instance_key: str | None = None) -> tuple[str, LinearInstanceModel]:
    """Pick the Linear instance to create the issue in, automatically when there is only one.

    Raises:
        UnknownInstanceError: If ``instance_key`` does not exist.
        UserCancelledError: If the user cancels the choice.
    """
    registry = linear_instances(store)
    if instance_key is not None:
        return instance_key, registry.get(instance_key)
    items = registry.items()
    if len(items) == 1:
        return items[0]
    choice = prompter.select("Select Linear instance", [f"{instance.name} ({key})" for key, instance in items])
    return items[choice]


async def select_team_and_project(linear: LinearClientBase, prompter: PrompterBase) -> tuple[LinearTeam, LinearProject | None] | None:
    """Pick a team and, optionally, one of its projects.

    Returns ``None`` when the Linear instance has no teams.
    """
    prompter.info("Fetching Linear teams...")
    teams = await linear.list_teams()
    if not teams:
        prompter.warning("No teams found in Linear.")
        return None
    team = teams[prompter.select("Select team", [team.display_name for team in teams])]

    prompter.info("Fetching projects...")
    projects = await linear.list_projects(team.id)
    if not projects:
        return team, None
    choice = prompter.select("Select project (optional)", [NO_PROJECT_OPTION, *[project.name for project in projects]])
    return team, projects[choice - 1] if choice > 0 else None


async def create_manual_issue(linear: LinearClientBase, instance: LinearInstanceModel, prompter: PrompterBase) -> ManualIssueResult:
    """Walk the user through creating a Linear issue by hand.

    Raises:
        UserCancelledError: If the user cancels any required choice.
        TransportError: If teams or projects cannot be listed or the issue cannot be created.
    """
    selection = await select_team_and_project(linear, prompter)
    if selection is None:
        return ManualIssueResult(SyncOutcome.NOT_CONFIGURED)
    team, project = selection

    prompter.info("\nCreate New Issue")
    issue_type = MANUAL_ISSUE_TYPES[prompter.select("Select issue type", MANUAL_ISSUE_TYPES)]
    title = prefix_title_with_type(prompter.text("Issue Title", validate=validate_title), issue_type)
    description = prompter.multiline("Issue Description")
    priority = prompter.select("Select priority", [PRIORITY_NAMES[value] for value in sorted(PRIORITY_NAMES)])
    label_names = parse_label_list(prompter.text("Labels (comma-separated)", default=issue_type.lower()))

    state = await select_workflow_state(linear, team.id, prompter)

    prompter.info("\n" + PREVIEW_SEPARATOR)
    prompter.info("Issue Summary:")
    prompter.info(PREVIEW_SEPARATOR)
    prompter.info(f"Linear Instance: {instance.name}")
    prompter.info(f"Type: {issue_type}")
    prompter.info(f"Title: {title}")
    prompter.info(f"Team: {team.name}")
    if project is not None:
        prompter.info(f"Project: {project.name}")
    prompter.info(f"Priority: {PRIORITY_NAMES[priority]}")
    prompter.info(f"Labels: {', '.join(label_names)}")
    if state is not None:
        prompter.info(f"State: {state.name}")
    prompter.info(PREVIEW_SEPARATOR)

    if not prompter.confirm("Create this issue?"):
        logger.info("Manual issue creation cancelled", team_id=team.id)
        return ManualIssueResult(SyncOutcome.CANCELLED, label_names=label_names)

    label_ids = await resolve_label_ids(linear, team.id, label_names) if label_names else []

    prompter.info("Creating issue in Linear...")
    linear_issue = await linear.create_issue(
        team_id=team.id,
        title=title,
        description=description,
        label_ids=label_ids,
        priority=priority,
        project_id=project.id if project is not None else None,
        state_id=state.id if state is not None else None,
    )
    prompter.success(f"Issue created successfully!\nURL: {linear_issue.url}")
    return ManualIssueResult(SyncOutcome.CREATED, linear_issue=linear_issue, label_names=label_names)


async def run_create_issue_workflow(
    store: ConfigStore,
    prompter: PrompterBase,
    instance_key: str | None = None,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    linear_api_url: str = LINEAR_API_URL,
) -> ManualIssueResult:
    """Run the manual issue creation workflow against a configured Linear instance."""
    if not linear_instances(store).list_keys():
        prompter.error("No Linear instances configured. Please add a Linear instance first.")
        return ManualIssueResult(SyncOutcome.NOT_CONFIGURED)

    key, instance = select_linear_instance(store, prompter, instance_key)
    logger.info("Starting manual issue creation", instance=key)
    linear = await LinearAdapter.create(instance, api_url=linear_api_url, timeout=timeout)
    try:
        return await create_manual_issue(linear, instance, prompter)
    finally:
        await linear.close()
