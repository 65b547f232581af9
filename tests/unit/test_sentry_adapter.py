"""Unit tests for the SentryAdapter class against a mocked Sentry REST API."""

import json
from typing import Callable

import httpx
import pytest

from bug_sync_manager.configuration.exceptions import MissingApiKeyError
from bug_sync_manager.exceptions import DataError, SourceUnavailableError
from bug_sync_manager.schemas.config import SentryInstanceModel
from bug_sync_manager.sentry.adapter import SentryAdapter
from bug_sync_manager.sentry.client import get_sentry_client

INSTANCE = SentryInstanceModel(name="Work", api_key="sntrys_token", base_url="https://sentry.example.com/api/0/")


async def make_adapter(handler: Callable[[httpx.Request], httpx.Response]) -> SentryAdapter:
    return await SentryAdapter.create(INSTANCE, timeout=5.0, transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_list_projects_sends_token_and_fills_organization() -> None:
    """Test that projects are fetched with the bearer token from the instance base URL."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "10", "slug": "backend", "name": "Backend", "organization": {"id": "1", "slug": "acme"}}])

    adapter = await make_adapter(handler)
    projects = await adapter.list_projects()
    await adapter.close()

    assert str(seen[0].url) == "https://sentry.example.com/api/0/projects/"
    assert seen[0].headers["Authorization"] == "Bearer sntrys_token"
    assert [project.full_slug for project in projects] == ["acme/backend"]


@pytest.mark.asyncio
async def test_list_unresolved_issues_query() -> None:
    """Test the query parameters used to list unresolved issues."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=[{"id": "1", "shortId": "ABC-1", "title": "Boom", "count": "7", "userCount": 2, "level": "error"}])

    adapter = await make_adapter(handler)
    issues = await adapter.list_unresolved_issues("acme", "backend", 20)

    request = seen[0]
    assert request.url.path == "/api/0/projects/acme/backend/issues/"
    assert request.url.params["query"] == "is:unresolved"
    assert request.url.params["limit"] == "20"
    assert request.url.params["sort"] == "date"
    assert request.url.params["statsPeriod"] == "24h"
    assert issues[0].short_id == "ABC-1"
    assert issues[0].count == "7"


@pytest.mark.asyncio
async def test_resolve_issue_puts_resolved_status() -> None:
    """Test that resolving an issue sends a PUT with the resolved status."""
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"status": "resolved"})

    adapter = await make_adapter(handler)
    await adapter.resolve_issue("4242")

    assert seen[0].method == "PUT"
    assert seen[0].url.path == "/api/0/issues/4242/"
    assert json.loads(seen[0].content) == {"status": "resolved"}


@pytest.mark.asyncio
async def test_get_latest_event_parses_exception_entries() -> None:
    """Test that stack traces are read from the exception entry of the event."""

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/0/issues/4242/events/latest/"
        return httpx.Response(
            200,
            json={
                "eventID": "abc",
                "entries": [
                    {
                        "type": "exception",
                        "data": {"values": [{"type": "KeyError", "value": "'id'", "stacktrace": {"frames": [{"filename": "app.py", "lineNo": 3, "inApp": True}]}}]},
                    }
                ],
            },
        )

    adapter = await make_adapter(handler)
    event = await adapter.get_latest_event("4242")
    assert event.exceptions[0].type == "KeyError"
    assert event.exceptions[0].stacktrace.frames[0].line_no == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("status_code", [401, 404, 500])
async def test_error_status_raises_source_unavailable(status_code: int) -> None:
    """Test that non-2xx responses become SourceUnavailableError with the status code."""
    adapter = await make_adapter(lambda request: httpx.Response(status_code, text="nope"))
    with pytest.raises(SourceUnavailableError) as exc_info:
        await adapter.get_issue_detail("1")
    assert exc_info.value.status_code == status_code
    assert "nope" in str(exc_info.value)


@pytest.mark.asyncio
async def test_connection_failure_raises_source_unavailable() -> None:
    """Test that transport failures are not retried and become SourceUnavailableError."""
    calls: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    adapter = await make_adapter(handler)
    with pytest.raises(SourceUnavailableError, match="connection refused"):
        await adapter.list_projects()
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_timeout_raises_source_unavailable() -> None:
    """Test that timeouts become SourceUnavailableError."""

    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("timed out", request=request)

    adapter = await make_adapter(handler)
    with pytest.raises(SourceUnavailableError, match="timed out"):
        await adapter.list_projects()


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        pytest.param(httpx.Response(200, text="<html>"), id="not json"),
        pytest.param(httpx.Response(200, json=[{"slug": "missing-id"}]), id="schema mismatch"),
    ],
)
async def test_malformed_response_raises_data_error(response: httpx.Response) -> None:
    """Test that malformed bodies become DataError."""
    adapter = await make_adapter(lambda request: response)
    with pytest.raises(DataError):
        await adapter.list_projects()


def test_get_sentry_client_requires_api_key() -> None:
    """Test that a client cannot be built without an API key."""
    with pytest.raises(MissingApiKeyError, match="Sentry authentication requires an API key"):
        get_sentry_client("")
