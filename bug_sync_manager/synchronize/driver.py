"""Orchestrates the synchronization of Sentry issues into Linear."""

import structlog

from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.exceptions import DataError, TransportError, UserCancelledError
from bug_sync_manager.linear.abc import LinearClientBase
from bug_sync_manager.linear.adapter import LinearAdapter
from bug_sync_manager.registry.connections import ConnectionStore
from bug_sync_manager.registry.instances import linear_instances, sentry_instances
from bug_sync_manager.registry.resolver import MappingResolver, ResolvedMapping
from bug_sync_manager.schemas.config import ConnectionModel, LinearInstanceModel, ProjectMappingModel, SentryInstanceModel
from bug_sync_manager.schemas.linear import LinearWorkflowState
from bug_sync_manager.schemas.sentry import SentryEvent, SentryIssue
from bug_sync_manager.sentry.abc import SentryClientBase
from bug_sync_manager.sentry.adapter import SentryAdapter
from bug_sync_manager.synchronize.labels import resolve_label_ids
from bug_sync_manager.synchronize.models import SyncOutcome
from bug_sync_manager.synchronize.prompts import PrompterBase
from bug_sync_manager.synchronize.results import SyncResult
from bug_sync_manager.synchronize.transform import BugDetails, prepare_bug_details
from bug_sync_manager.utils.constants import (
    DEFAULT_HTTP_TIMEOUT,
    DEFAULT_SYNC_ISSUE_LIMIT,
    DESCRIPTION_PREVIEW_LENGTH,
    LINEAR_API_URL,
)
from bug_sync_manager.utils.helpers import truncate_preview

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

PREVIEW_SEPARATOR = "─" * 60


def describe_connection(store: ConfigStore, connection: ConnectionModel) -> str:
    """One-line summary of a connection, tolerating dangling instance keys."""
    sentry_registry = sentry_instances(store)
    linear_registry = linear_instances(store)
    sentry_name = sentry_registry.get(connection.sentry_instance).name if sentry_registry.exists(connection.sentry_instance) else "Unknown"
    linear_name = linear_registry.get(connection.linear_instance).name if linear_registry.exists(connection.linear_instance) else "Unknown"
    return f"{connection.name}: {sentry_name} → {linear_name} ({len(connection.project_mappings)} mappings)"


def describe_mapping(mapping: ProjectMappingModel) -> str:
    target = mapping.linear_project_name or mapping.linear_team_id
    return f"{mapping.source_label} → {target}"


def select_connection(store: ConfigStore, prompter: PrompterBase, connection_name: str | None = None) -> ConnectionModel:
    """Pick the connection to work with.

    An explicit name wins. Otherwise a single connection is used automatically and
    the user chooses among several.

    Raises:
        UnknownConnectionError: If ``connection_name`` does not exist.
        UserCancelledError: If the user cancels the choice.
    """
    connections = ConnectionStore(store)
    if connection_name is not None:
        return connections.get(connection_name)

    available = connections.list_connections()
    if len(available) == 1:
        return available[0]
    choice = prompter.select("Select connection to sync", [describe_connection(store, connection) for connection in available])
    return available[choice]


def select_mapping(connection: ConnectionModel, prompter: PrompterBase) -> ProjectMappingModel:
    """Pick the project mapping of a connection, automatically when there is only one."""
    if len(connection.project_mappings) == 1:
        return connection.project_mappings[0]
    choice = prompter.select("Select project to sync from", [describe_mapping(mapping) for mapping in connection.project_mappings])
    return connection.project_mappings[choice]


def _confirm_or_decline(prompter: PrompterBase, message: str) -> bool:
    try:
        return prompter.confirm(message)
    except UserCancelledError:
        return False


def describe_sentry_issue(issue: SentryIssue) -> str:
    return f"[{issue.short_id}] {issue.title} (Level: {issue.level}, Count: {issue.count}, Users: {issue.user_count})"


async def fetch_latest_event(sentry: SentryClientBase, issue_id: str, prompter: PrompterBase) -> SentryEvent | None:
    """Fetch the latest event of an issue, returning ``None`` instead of failing."""
    try:
        return await sentry.get_latest_event(issue_id)
    except (TransportError, DataError) as exc:
        logger.warning("Could not fetch latest Sentry event, continuing without it", issue_id=issue_id, error=str(exc))
        prompter.warning(f"Could not fetch event details: {exc}")
        return None


async def select_workflow_state(linear: LinearClientBase, team_id: str, prompter: PrompterBase) -> LinearWorkflowState | None:
    """Let the user pick the initial workflow state of a new issue.

    Returns ``None`` to use the team's default state, which happens when the states
    cannot be fetched, the team has none, or the user cancels the pick.
    """
    try:
        states = await linear.list_workflow_states(team_id)
    except (TransportError, DataError) as exc:
        logger.warning("Could not fetch Linear workflow states, using default state", team_id=team_id, error=str(exc))
        prompter.warning(f"Could not fetch workflow states: {exc}")
        return None
    if not states:
        return None

    try:
        choice = prompter.select("Select the initial state for the issue", [state.display_name for state in states])
    except UserCancelledError:
        prompter.info("Using default state")
        return None
    return states[choice]


def show_bug_preview(prompter: PrompterBase, bug_details: BugDetails, target: str) -> None:
    """Print the Linear issue that is about to be created."""
    prompter.info("\n" + PREVIEW_SEPARATOR)
    prompter.info("Bug Details to be Created in Linear:")
    prompter.info(PREVIEW_SEPARATOR)
    prompter.info(f"Title: {bug_details.title}")
    prompter.info(f"Priority: {bug_details.priority_name}")
    prompter.info(f"Target: {target}")
    prompter.info(f"Labels: {', '.join(bug_details.labels)}")
    prompter.info("\nDescription Preview:")
    prompter.info(truncate_preview(bug_details.description, DESCRIPTION_PREVIEW_LENGTH))
    prompter.info(PREVIEW_SEPARATOR)


async def sync_sentry_issue(
    sentry: SentryClientBase,
    linear: LinearClientBase,
    mapping: ResolvedMapping,
    issue_id: str,
    prompter: PrompterBase,
) -> SyncResult:
    """Create a Linear issue from one selected Sentry issue.

    Fetches the issue details (required) and latest event (optional), previews the
    derived Linear issue and asks for confirmation. Nothing is written to Linear
    unless the user confirms. After creation the user may resolve the Sentry issue;
    a failure there is reported but does not undo the Linear issue.

    Raises:
        TransportError: If the issue details cannot be fetched or the Linear issue
            cannot be created.
        DataError: If Sentry or Linear return malformed data for a required call.
    """
    prompter.info("Fetching issue details...")
    issue = await sentry.get_issue_detail(issue_id)
    prompter.info("Fetching error event details...")
    event = await fetch_latest_event(sentry, issue_id, prompter)

    bug_details = prepare_bug_details(issue, event, mapping.default_labels)
    show_bug_preview(prompter, bug_details, mapping.target_label)

    if not prompter.confirm("Create this issue in Linear?"):
        logger.info("Sync cancelled before creating Linear issue", sentry_issue=issue.short_id)
        return SyncResult(SyncOutcome.CANCELLED, sentry_issue=issue, bug_details=bug_details)

    prompter.info("Fetching workflow states...")
    state = await select_workflow_state(linear, mapping.linear_team_id, prompter)

    prompter.info("Creating labels in Linear...")
    label_ids = await resolve_label_ids(linear, mapping.linear_team_id, bug_details.labels)

    prompter.info("Creating issue in Linear...")
    linear_issue = await linear.create_issue(
        team_id=mapping.linear_team_id,
        title=bug_details.title,
        description=bug_details.description,
        label_ids=label_ids,
        priority=bug_details.priority,
        project_id=mapping.linear_project_id,
        state_id=state.id if state is not None else None,
    )
    logger.info(
        "Synced Sentry issue to Linear",
        connection=mapping.connection_name,
        sentry_issue=issue.short_id,
        linear_issue_id=linear_issue.id,
        url=linear_issue.url,
    )
    prompter.success(f"Issue created successfully!\nURL: {linear_issue.url}")

    result = SyncResult(SyncOutcome.CREATED, sentry_issue=issue, bug_details=bug_details, linear_issue=linear_issue)
    if _confirm_or_decline(prompter, "Mark this issue as resolved in Sentry?"):
        prompter.info("Resolving issue in Sentry...")
        try:
            await sentry.resolve_issue(issue.id)
        except (TransportError, DataError) as exc:
            logger.error("Failed to resolve Sentry issue", sentry_issue=issue.short_id, error=str(exc))
            prompter.error(f"Failed to resolve issue in Sentry: {exc}")
            result.resolve_error = str(exc)
        else:
            prompter.success("Issue marked as resolved in Sentry")
            result.resolved_in_sentry = True
    return result


async def sync_mapping(
    sentry: SentryClientBase,
    linear: LinearClientBase,
    mapping: ResolvedMapping,
    prompter: PrompterBase,
    limit: int = DEFAULT_SYNC_ISSUE_LIMIT,
) -> SyncResult:
    """Offer the unresolved issues of a mapped Sentry project and sync the chosen one.

    Raises:
        UserCancelledError: If the user cancels the issue selection.
    """
    prompter.info(f"Fetching unresolved issues from {mapping.sentry_organization}/{mapping.sentry_project}...")
    issues = await sentry.list_unresolved_issues(mapping.sentry_organization, mapping.sentry_project, limit)
    if not issues:
        prompter.success("No unresolved issues found in Sentry!")
        return SyncResult(SyncOutcome.NO_ISSUES)

    prompter.info(f"\nFound {len(issues)} unresolved issues:")
    choice = prompter.select("Select issue to sync to Linear", [describe_sentry_issue(issue) for issue in issues])
    return await sync_sentry_issue(sentry, linear, mapping, issues[choice].id, prompter)


async def run_sync_workflow(
    store: ConfigStore,
    prompter: PrompterBase,
    connection_name: str | None = None,
    limit: int = DEFAULT_SYNC_ISSUE_LIMIT,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    linear_api_url: str = LINEAR_API_URL,
) -> list[SyncResult]:
    """Run the interactive sync workflow for one project mapping.

    Picks the connection and mapping, then syncs one issue at a time for as long as
    the user asks to sync another one from the same project. Cancelling any prompt
    ends the workflow normally.

    Raises:
        ConfigError: If the connection does not exist or references missing instances.
        TransportError: If a required Sentry or Linear call fails.
        DataError: If a required call returns malformed data.
    """
    if not store.config.bug_manager.connections and connection_name is None:
        prompter.error("No Sentry-Linear connections configured. Please add a connection first.")
        return [SyncResult(SyncOutcome.NOT_CONFIGURED)]

    try:
        connection = select_connection(store, prompter, connection_name)
        if not connection.project_mappings:
            prompter.error("Selected connection has no project mappings. Please configure project mappings first.")
            return [SyncResult(SyncOutcome.NOT_CONFIGURED)]
        mapping = MappingResolver(store).resolve(connection, select_mapping(connection, prompter))
    except UserCancelledError:
        return [SyncResult(SyncOutcome.CANCELLED)]

    logger.info(
        "Starting sync",
        connection=connection.name,
        sentry_project=f"{mapping.sentry_organization}/{mapping.sentry_project}",
        linear_team_id=mapping.linear_team_id,
        limit=limit,
    )
    prompter.info(f"Sync Bugs: {connection.name}")

    sentry = await SentryAdapter.create(mapping.sentry_instance, timeout=timeout)
    results: list[SyncResult] = []
    try:
        linear = await LinearAdapter.create(mapping.linear_instance, api_url=linear_api_url, timeout=timeout)
        try:
            while True:
                try:
                    result = await sync_mapping(sentry, linear, mapping, prompter, limit=limit)
                except UserCancelledError:
                    result = SyncResult(SyncOutcome.CANCELLED)
                results.append(result)
                if result.outcome != SyncOutcome.CREATED:
                    break
                if not _confirm_or_decline(prompter, "Sync another issue from the same project?"):
                    break
        finally:
            await linear.close()
    finally:
        await sentry.close()

    logger.info("Finished sync", connection=connection.name, created=sum(1 for result in results if result.created))
    return results


async def verify_connection(
    store: ConfigStore,
    connection_name: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    linear_api_url: str = LINEAR_API_URL,
) -> tuple[int, int]:
    """Check that both instances of a connection are reachable.

    Returns:
        The number of Sentry projects and Linear teams visible to the credentials.

    Raises:
        ReferentialIntegrityError: If the connection references missing instances.
        TransportError: On the first instance that cannot be reached.
    """
    connection = ConnectionStore(store).get(connection_name)
    sentry_instance, linear_instance = MappingResolver(store).resolve_instances(connection)
    project_count = await verify_sentry_instance(sentry_instance, timeout=timeout)
    team_count = await verify_linear_instance(linear_instance, timeout=timeout, linear_api_url=linear_api_url)
    logger.info("Verified connection", connection=connection_name, sentry_projects=project_count, linear_teams=team_count)
    return project_count, team_count


async def verify_sentry_instance(instance: SentryInstanceModel, timeout: float = DEFAULT_HTTP_TIMEOUT) -> int:
    """Check that a Sentry instance is reachable and return how many projects it exposes."""
    sentry = await SentryAdapter.create(instance, timeout=timeout)
    try:
        return len(await sentry.list_projects())
    finally:
        await sentry.close()


async def verify_linear_instance(instance: LinearInstanceModel, timeout: float = DEFAULT_HTTP_TIMEOUT, linear_api_url: str = LINEAR_API_URL) -> int:
    """Check that a Linear instance is reachable and return how many teams it exposes."""
    linear = await LinearAdapter.create(instance, api_url=linear_api_url, timeout=timeout)
    try:
        return len(await linear.list_teams())
    finally:
        await linear.close()
