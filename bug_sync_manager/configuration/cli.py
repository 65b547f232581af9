"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

import structlog
import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from bug_sync_manager.configuration.env import settings
from bug_sync_manager.configuration.exceptions import ConfigError
from bug_sync_manager.configuration.models import InstanceKind
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.exceptions import DataError, TransportError, UserCancelledError
from bug_sync_manager.registry.connections import ConnectionStore
from bug_sync_manager.registry.instances import instance_registry
from bug_sync_manager.schemas.config import LinearInstanceModel, SentryInstanceModel
from bug_sync_manager.synchronize.driver import (
    describe_connection,
    describe_mapping,
    run_sync_workflow,
    verify_connection,
    verify_linear_instance,
    verify_sentry_instance,
)
from bug_sync_manager.synchronize.manual import run_create_issue_workflow
from bug_sync_manager.synchronize.mappings import run_add_mapping_workflow
from bug_sync_manager.synchronize.models import SyncOutcome
from bug_sync_manager.synchronize.prompts import TyperPrompter
from bug_sync_manager.utils.helpers import parse_label_list
from bug_sync_manager.utils.logging import configure_logging

load_dotenv()

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Sync bugs from Sentry instances into Linear instances.")


@contextmanager
def handle_cli_errors() -> Iterator[None]:
    """Report expected failures on stderr and exit 1; treat cancellation as a normal exit."""
    try:
        yield
    except UserCancelledError:
        typer.echo("Cancelled.")
        raise typer.Exit(0) from None
    except (ConfigError, TransportError, DataError) as exc:
        logger.debug("Command failed", error_type=type(exc).__name__, error=str(exc))
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(1) from exc


def get_store(ctx: typer.Context) -> ConfigStore:
    """Load the configuration on first use, migrating legacy layouts."""
    if "store" not in ctx.obj:
        with handle_cli_errors():
            store = ConfigStore.load(ctx.obj["config_path"])
        for step in store.applied_migrations:
            typer.echo(f"Migrated configuration: {step.value}")
        ctx.obj["store"] = store
    return ctx.obj["store"]


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    config_path: Annotated[
        Path,
        Option("--config", envvar="BUG_SYNC_CONFIG_PATH", help="Path to the shared YAML configuration file."),
    ] = settings.BUG_SYNC_CONFIG_PATH,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = settings.DEBUG,
) -> None:
    """Set up logging and remember where the configuration lives."""
    if ctx.resilient_parsing:
        return
    configure_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path.expanduser()


# --- Sync and issue creation ---
@typer_app.command(name="sync")
def sync_cli(
    ctx: typer.Context,
    connection: Annotated[str | None, Option(help="Name of the connection to sync. Prompts when several exist.")] = None,
    limit: Annotated[int, Option(envvar="SYNC_ISSUE_LIMIT", min=1, help="Maximum number of unresolved Sentry issues to offer.")] = settings.SYNC_ISSUE_LIMIT,
) -> None:
    """Pick an unresolved Sentry issue and create a matching Linear issue."""
    with handle_cli_errors():
        results = asyncio.run(
            run_sync_workflow(
                store=get_store(ctx),
                prompter=TyperPrompter(),
                connection_name=connection,
                limit=limit,
                timeout=settings.HTTP_TIMEOUT,
                linear_api_url=settings.LINEAR_API_URL,
            )
        )
    created = [result for result in results if result.outcome == SyncOutcome.CREATED]
    if created:
        typer.echo(f"Created {len(created)} Linear issue(s).")


@typer_app.command(name="create-issue")
def create_issue_cli(
    ctx: typer.Context,
    instance: Annotated[str | None, Option(help="Key of the Linear instance. Prompts when several exist.")] = None,
) -> None:
    """Create a Linear issue by hand."""
    with handle_cli_errors():
        asyncio.run(
            run_create_issue_workflow(
                store=get_store(ctx),
                prompter=TyperPrompter(),
                instance_key=instance,
                timeout=settings.HTTP_TIMEOUT,
                linear_api_url=settings.LINEAR_API_URL,
            )
        )


# --- Instances ---
instances_app = typer.Typer(help="Manage Sentry and Linear instances.")

KindOption = Annotated[InstanceKind, Option("--kind", help="Instance kind.", case_sensitive=False)]


async def _verify_instance(kind: InstanceKind, instance: SentryInstanceModel | LinearInstanceModel) -> int:
    if kind == InstanceKind.SENTRY:
        return await verify_sentry_instance(instance, timeout=settings.HTTP_TIMEOUT)  # type: ignore[arg-type]
    return await verify_linear_instance(instance, timeout=settings.HTTP_TIMEOUT, linear_api_url=settings.LINEAR_API_URL)  # type: ignore[arg-type]


def _describe_reachable(kind: InstanceKind, count: int) -> str:
    noun = "projects" if kind == InstanceKind.SENTRY else "teams"
    return f"Connected successfully! Found {count} {noun}."


@instances_app.command(name="list")
def instances_list_cli(ctx: typer.Context, kind: KindOption) -> None:
    """List the configured instances of a kind."""
    registry = instance_registry(get_store(ctx), kind)
    items = registry.items()
    if not items:
        typer.echo(f"No {kind.display_name} instances configured.")
        return
    for key, instance in items:
        used_by = [connection.name for connection in registry.connections_using(key)]
        line = f"{key}: {instance.name}"
        if isinstance(instance, SentryInstanceModel):
            line += f" ({instance.base_url})"
        if used_by:
            line += f" [used by: {', '.join(used_by)}]"
        typer.echo(line)


@instances_app.command(name="add")
def instances_add_cli(
    ctx: typer.Context,
    kind: KindOption,
    key: Annotated[str, Option(prompt="Instance key (e.g. 'work', 'personal')", help="Unique key of the instance.")],
    name: Annotated[str, Option(prompt="Instance name (display name)", help="Display name of the instance.")],
    api_key: Annotated[str, Option(prompt="API key", hide_input=True, help="API token for the instance.")],
    base_url: Annotated[str, Option(help="Sentry API base URL. Ignored for Linear.")] = settings.SENTRY_BASE_URL,
    skip_test: Annotated[bool, Option(help="Do not test the credentials before saving.")] = False,
) -> None:
    """Add a Sentry or Linear instance, testing its credentials first."""
    registry = instance_registry(get_store(ctx), kind)
    if kind == InstanceKind.SENTRY and not base_url.startswith(("http://", "https://")):
        typer.echo("Error: URL must start with http:// or https://", err=True)
        raise typer.Exit(1)

    instance: SentryInstanceModel | LinearInstanceModel
    if kind == InstanceKind.SENTRY:
        instance = SentryInstanceModel(name=name, api_key=api_key, base_url=base_url)
    else:
        instance = LinearInstanceModel(name=name, api_key=api_key)
    with handle_cli_errors():
        registry.check_new(key, instance)

    if not skip_test:
        typer.echo(f"Testing {kind.display_name} API connection...")
        try:
            count = asyncio.run(_verify_instance(kind, instance))
        except (TransportError, DataError) as exc:
            typer.echo(f"Failed to connect to {kind.display_name}: {exc}", err=True)
            if not typer.confirm("Continue anyway?", default=False):
                raise typer.Exit(1) from exc
        else:
            typer.echo(_describe_reachable(kind, count))

    with handle_cli_errors():
        registry.add(key, instance)
    typer.echo(f"{kind.display_name} instance '{name}' added successfully!")


@instances_app.command(name="edit")
def instances_edit_cli(
    ctx: typer.Context,
    kind: KindOption,
    key: Annotated[str, Argument(help="Key of the instance to edit.")],
    name: Annotated[str | None, Option(help="New display name.")] = None,
    api_key: Annotated[str | None, Option(help="New API token.")] = None,
    base_url: Annotated[str | None, Option(help="New Sentry API base URL.")] = None,
) -> None:
    """Edit the name, API key or base URL of an instance."""
    with handle_cli_errors():
        instance = instance_registry(get_store(ctx), kind).update(key, name=name, api_key=api_key, base_url=base_url)
    typer.echo(f"{kind.display_name} instance '{instance.name}' updated.")


@instances_app.command(name="remove")
def instances_remove_cli(
    ctx: typer.Context,
    kind: KindOption,
    key: Annotated[str, Argument(help="Key of the instance to remove.")],
    yes: Annotated[bool, Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Remove an instance that no connection uses."""
    if not yes and not typer.confirm(f"Remove {kind.display_name} instance '{key}'?", default=False):
        raise typer.Exit(0)
    with handle_cli_errors():
        instance_registry(get_store(ctx), kind).remove(key)
    typer.echo(f"{kind.display_name} instance '{key}' removed.")


@instances_app.command(name="test")
def instances_test_cli(
    ctx: typer.Context,
    kind: KindOption,
    key: Annotated[str, Argument(help="Key of the instance to test.")],
) -> None:
    """Test the credentials of an instance."""
    with handle_cli_errors():
        instance = instance_registry(get_store(ctx), kind).get(key)
        count = asyncio.run(_verify_instance(kind, instance))
    typer.echo(_describe_reachable(kind, count))


typer_app.add_typer(instances_app, name="instances")


# --- Connections ---
connections_app = typer.Typer(help="Manage Sentry to Linear connections.")


@connections_app.command(name="list")
def connections_list_cli(ctx: typer.Context) -> None:
    """List the configured connections."""
    store = get_store(ctx)
    connections = ConnectionStore(store).list_connections()
    if not connections:
        typer.echo("No connections configured.")
        return
    for connection in connections:
        typer.echo(describe_connection(store, connection))


@connections_app.command(name="add")
def connections_add_cli(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Unique name of the connection.")],
    sentry_instance: Annotated[str, Option(prompt="Sentry instance key", help="Key of the Sentry instance.")],
    linear_instance: Annotated[str, Option(prompt="Linear instance key", help="Key of the Linear instance.")],
) -> None:
    """Connect a Sentry instance to a Linear instance."""
    with handle_cli_errors():
        ConnectionStore(get_store(ctx)).add(name, sentry_instance, linear_instance)
    typer.echo(f"Connection '{name}' created successfully!")


@connections_app.command(name="rename")
def connections_rename_cli(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Current name of the connection.")],
    new_name: Annotated[str, Argument(help="New name of the connection.")],
) -> None:
    """Rename a connection."""
    with handle_cli_errors():
        ConnectionStore(get_store(ctx)).rename(name, new_name)
    typer.echo(f"Connection '{name}' renamed to '{new_name}'.")


@connections_app.command(name="set-instance")
def connections_set_instance_cli(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Name of the connection.")],
    sentry_instance: Annotated[str | None, Option(help="Key of the new Sentry instance.")] = None,
    linear_instance: Annotated[str | None, Option(help="Key of the new Linear instance.")] = None,
) -> None:
    """Point a connection at different instances."""
    if sentry_instance is None and linear_instance is None:
        typer.echo("Error: provide --sentry-instance and/or --linear-instance.", err=True)
        raise typer.Exit(1)
    connections = ConnectionStore(get_store(ctx))
    with handle_cli_errors():
        if sentry_instance is not None:
            connections.set_sentry_instance(name, sentry_instance)
        if linear_instance is not None:
            connections.set_linear_instance(name, linear_instance)
    typer.echo(f"Connection '{name}' updated.")


@connections_app.command(name="remove")
def connections_remove_cli(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Name of the connection to remove.")],
    yes: Annotated[bool, Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
) -> None:
    """Remove a connection and its project mappings."""
    if not yes and not typer.confirm(f"Remove connection '{name}' and all its project mappings?", default=False):
        raise typer.Exit(0)
    with handle_cli_errors():
        ConnectionStore(get_store(ctx)).remove(name)
    typer.echo(f"Connection '{name}' removed.")


@connections_app.command(name="test")
def connections_test_cli(
    ctx: typer.Context,
    name: Annotated[str, Argument(help="Name of the connection to test.")],
) -> None:
    """Test that both instances of a connection are reachable."""
    with handle_cli_errors():
        project_count, team_count = asyncio.run(
            verify_connection(get_store(ctx), name, timeout=settings.HTTP_TIMEOUT, linear_api_url=settings.LINEAR_API_URL)
        )
    typer.echo(f"Sentry: found {project_count} projects. Linear: found {team_count} teams.")


typer_app.add_typer(connections_app, name="connections")


# --- Project mappings ---
mappings_app = typer.Typer(help="Manage the project mappings of a connection.")

MappingNumberArgument = Annotated[int, Argument(min=1, help="Number of the mapping, as shown by 'mappings list'.")]


@mappings_app.command(name="list")
def mappings_list_cli(
    ctx: typer.Context,
    connection: Annotated[str, Argument(help="Name of the connection.")],
) -> None:
    """List the project mappings of a connection."""
    with handle_cli_errors():
        mappings = ConnectionStore(get_store(ctx)).get(connection).project_mappings
    if not mappings:
        typer.echo(f"Connection '{connection}' has no project mappings.")
        return
    for number, mapping in enumerate(mappings, start=1):
        labels = ", ".join(mapping.default_labels) or "-"
        typer.echo(f"{number}) {describe_mapping(mapping)} [labels: {labels}]")


@mappings_app.command(name="add")
def mappings_add_cli(
    ctx: typer.Context,
    connection: Annotated[str, Argument(help="Name of the connection.")],
) -> None:
    """Interactively map a Sentry project onto a Linear team or project."""
    with handle_cli_errors():
        asyncio.run(
            run_add_mapping_workflow(
                store=get_store(ctx),
                prompter=TyperPrompter(),
                connection_name=connection,
                timeout=settings.HTTP_TIMEOUT,
                linear_api_url=settings.LINEAR_API_URL,
            )
        )


@mappings_app.command(name="edit-labels")
def mappings_edit_labels_cli(
    ctx: typer.Context,
    connection: Annotated[str, Argument(help="Name of the connection.")],
    number: MappingNumberArgument,
    labels: Annotated[str, Argument(help="Comma-separated default labels. An empty string clears them.")],
) -> None:
    """Replace the default labels of a project mapping."""
    with handle_cli_errors():
        mapping = ConnectionStore(get_store(ctx)).update_mapping_labels(connection, number - 1, parse_label_list(labels))
    typer.echo(f"Labels of {mapping.source_label} set to: {', '.join(mapping.default_labels) or '-'}")


@mappings_app.command(name="remove")
def mappings_remove_cli(
    ctx: typer.Context,
    connection: Annotated[str, Argument(help="Name of the connection.")],
    number: MappingNumberArgument,
) -> None:
    """Remove a project mapping from a connection."""
    with handle_cli_errors():
        mapping = ConnectionStore(get_store(ctx)).remove_mapping(connection, number - 1)
    typer.echo(f"Project mapping {mapping.source_label} removed from '{connection}'.")


typer_app.add_typer(mappings_app, name="mappings")


if __name__ == "__main__":
    typer_app()
