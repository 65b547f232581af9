"""Unit tests for the interactive project mapping wizard."""

from typing import Any, Callable
from unittest.mock import AsyncMock, patch

import pytest

from bug_sync_manager.configuration.exceptions import DuplicateMappingError
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.registry.connections import ConnectionStore
from bug_sync_manager.schemas.linear import LinearProject, LinearTeam
from bug_sync_manager.schemas.sentry import SentryProject
from bug_sync_manager.synchronize.mappings import build_project_mapping, run_add_mapping_workflow


@pytest.fixture
def sentry(mock_sentry: AsyncMock) -> AsyncMock:
    mock_sentry.list_projects.return_value = [
        SentryProject.model_validate({"id": "1", "slug": "backend", "organization": {"slug": "acme"}}),
        SentryProject.model_validate({"id": "2", "slug": "frontend", "organization": {"slug": "acme"}}),
    ]
    return mock_sentry


@pytest.fixture
def linear(mock_linear: AsyncMock) -> AsyncMock:
    mock_linear.list_teams.return_value = [LinearTeam(id="t1", name="Web", key="WEB")]
    mock_linear.list_projects.return_value = [LinearProject(id="p1", name="Website")]
    return mock_linear


@pytest.mark.asyncio
async def test_build_team_only_mapping(configured_store: ConfigStore, sentry: AsyncMock, linear: AsyncMock, make_prompter: Callable[..., Any]) -> None:
    """Test a mapping to a team without a project and with default labels."""
    connection = ConnectionStore(configured_store).get("Work")
    prompter = make_prompter(selects=[1, 0, 0], texts=[""])

    mapping = await build_project_mapping(sentry, linear, connection, prompter)

    assert mapping is not None
    assert mapping.source_label == "acme/frontend"
    assert mapping.linear_team_id == "t1"
    assert mapping.linear_project_id is None
    assert mapping.linear_project_name == "Web (Team)"
    assert mapping.default_labels == ["bug", "sentry"]
    assert prompter.select_options[0] == ["acme/backend", "acme/frontend"]


@pytest.mark.asyncio
async def test_already_mapped_project_is_rejected(configured_store: ConfigStore, sentry: AsyncMock, linear: AsyncMock, make_prompter: Callable[..., Any]) -> None:
    """Test that picking a Sentry project already mapped in the connection fails before asking more."""
    connection = ConnectionStore(configured_store).get("Work")
    with pytest.raises(DuplicateMappingError):
        await build_project_mapping(sentry, linear, connection, make_prompter(selects=[0]))
    linear.list_teams.assert_not_awaited()


@pytest.mark.asyncio
async def test_no_sentry_projects(configured_store: ConfigStore, mock_sentry: AsyncMock, linear: AsyncMock, make_prompter: Callable[..., Any]) -> None:
    """Test that nothing is built when Sentry has no projects."""
    connection = ConnectionStore(configured_store).get("Work")
    assert await build_project_mapping(mock_sentry, linear, connection, make_prompter()) is None


@pytest.mark.asyncio
async def test_run_add_mapping_workflow_saves(configured_store: ConfigStore, sentry: AsyncMock, linear: AsyncMock, make_prompter: Callable[..., Any]) -> None:
    """Test that the wizard saves the mapping with a Linear project and custom labels."""
    prompter = make_prompter(selects=[1, 0, 1], texts=["web, bug"])
    with (
        patch("bug_sync_manager.synchronize.mappings.SentryAdapter.create", new=AsyncMock(return_value=sentry)),
        patch("bug_sync_manager.synchronize.mappings.LinearAdapter.create", new=AsyncMock(return_value=linear)),
    ):
        mapping = await run_add_mapping_workflow(configured_store, prompter, "Work")

    assert mapping is not None
    saved = ConfigStore.load(configured_store.path).config.bug_manager.connections[0].project_mappings
    assert [m.source_label for m in saved] == ["acme/backend", "acme/frontend"]
    assert saved[1].linear_project_id == "p1"
    assert saved[1].linear_project_name == "Website"
    assert saved[1].default_labels == ["web", "bug"]
    sentry.close.assert_awaited_once()
    linear.close.assert_awaited_once()
