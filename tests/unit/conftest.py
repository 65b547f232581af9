"""Fixtures for unit tests."""

from pathlib import Path
from typing import Any, Callable, Generator
from unittest.mock import AsyncMock

import pytest
import structlog

from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.exceptions import UserCancelledError
from bug_sync_manager.linear.abc import LinearClientBase
from bug_sync_manager.schemas.config import ConnectionModel, LinearInstanceModel, ProjectMappingModel, SentryInstanceModel
from bug_sync_manager.schemas.linear import LinearIssue
from bug_sync_manager.schemas.sentry import SentryIssue
from bug_sync_manager.sentry.abc import SentryClientBase
from bug_sync_manager.synchronize.prompts import PrompterBase


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )
    yield
    structlog.reset_defaults()


class ScriptedPrompter(PrompterBase):
    """Prompter answering from pre-recorded answers and recording everything it shows.

    A ``None`` in ``selects`` or ``confirms`` simulates the user cancelling that prompt.
    Running out of answers also cancels, so an unexpected prompt never hangs a test.
    """

    def __init__(
        self,
        selects: list[int | None] | None = None,
        confirms: list[bool | None] | None = None,
        texts: list[str | None] | None = None,
        multilines: list[str] | None = None,
    ) -> None:
        """Initialize the prompter with the answers to give, in order."""
        self.selects = list(selects or [])
        self.confirms = list(confirms or [])
        self.texts = list(texts or [])
        self.multilines = list(multilines or [])
        self.asked: list[str] = []
        self.select_options: list[list[str]] = []
        self.messages: list[tuple[str, str]] = []

    @staticmethod
    def _next(answers: list[Any], message: str) -> Any:
        if not answers:
            raise UserCancelledError(message)
        answer = answers.pop(0)
        if answer is None:
            raise UserCancelledError(message)
        return answer

    def select(self, message: str, options: list[str]) -> int:
        self.asked.append(message)
        self.select_options.append(options)
        return self._next(self.selects, message)

    def confirm(self, message: str, default: bool = False) -> bool:
        self.asked.append(message)
        return self._next(self.confirms, message)

    def text(self, message: str, default: str = "", validate: Callable[[str], str | None] | None = None) -> str:
        self.asked.append(message)
        answer = self._next(self.texts, message) or default
        if validate is not None:
            problem = validate(answer)
            assert problem is None, problem
        return answer

    def multiline(self, message: str) -> str:
        self.asked.append(message)
        return self.multilines.pop(0) if self.multilines else ""

    def info(self, message: str) -> None:
        self.messages.append(("info", message))

    def success(self, message: str) -> None:
        self.messages.append(("success", message))

    def warning(self, message: str) -> None:
        self.messages.append(("warning", message))

    def error(self, message: str) -> None:
        self.messages.append(("error", message))

    def output(self, level: str | None = None) -> str:
        """Everything shown to the user, optionally only at one level, joined by newlines."""
        return "\n".join(message for message_level, message in self.messages if level is None or message_level == level)


@pytest.fixture
def make_prompter() -> Callable[..., ScriptedPrompter]:
    """Factory for scripted prompters."""
    return ScriptedPrompter


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path of a configuration file inside a temporary directory."""
    return tmp_path / ".devtools" / "config.yaml"


@pytest.fixture
def store(config_path: Path) -> ConfigStore:
    """An empty configuration store backed by a temporary file."""
    return ConfigStore.load(config_path)


@pytest.fixture
def configured_store(store: ConfigStore) -> ConfigStore:
    """A store with one Sentry instance, one Linear instance and a connection with one mapping."""
    store.config.sentry.instances["work"] = SentryInstanceModel(name="Work Sentry", api_key="sntrys_work", base_url="https://sentry.example.com/api/0")
    store.config.linear.instances["work"] = LinearInstanceModel(name="Work Linear", api_key="lin_api_work")
    store.config.bug_manager.connections.append(
        ConnectionModel(
            name="Work",
            sentry_instance="work",
            linear_instance="work",
            project_mappings=[
                ProjectMappingModel(
                    sentry_organization="acme",
                    sentry_project="backend",
                    linear_team_id="team-1",
                    linear_project_id="project-1",
                    linear_project_name="Backend",
                    default_labels=["bug", "sentry"],
                )
            ],
        )
    )
    store.save()
    return store


@pytest.fixture
def sentry_issue() -> SentryIssue:
    """A Sentry issue as returned by the issue detail endpoint."""
    return SentryIssue.model_validate(
        {
            "id": "4242",
            "shortId": "ABC-1",
            "title": "NullPointer",
            "culprit": "app.handlers in handle",
            "permalink": "https://sentry.example.com/organizations/acme/issues/4242/",
            "count": "17",
            "userCount": 10,
            "firstSeen": "2024-03-01T10:00:00Z",
            "lastSeen": "2024-03-02T11:30:00Z",
            "level": "error",
            "status": "unresolved",
            "platform": "python",
            "metadata": {"type": "NullPointer", "value": "x is None"},
        }
    )


@pytest.fixture
def linear_issue() -> LinearIssue:
    """An issue as returned by Linear's issueCreate mutation."""
    return LinearIssue.model_validate(
        {
            "id": "issue-uuid",
            "identifier": "BE-12",
            "title": "[Sentry ABC-1] NullPointer",
            "url": "https://linear.app/acme/issue/BE-12",
            "priority": 2,
        }
    )


@pytest.fixture
def mock_sentry(sentry_issue: SentryIssue) -> AsyncMock:
    """A Sentry client mock returning one unresolved issue."""
    sentry = AsyncMock(spec=SentryClientBase)
    sentry.list_unresolved_issues.return_value = [sentry_issue]
    sentry.get_issue_detail.return_value = sentry_issue
    sentry.get_latest_event.return_value = None
    sentry.list_projects.return_value = []
    return sentry


@pytest.fixture
def mock_linear(linear_issue: LinearIssue) -> AsyncMock:
    """A Linear client mock that creates every label and issue it is asked for."""
    linear = AsyncMock(spec=LinearClientBase)
    linear.list_workflow_states.return_value = []
    linear.list_teams.return_value = []
    linear.list_projects.return_value = []
    linear.get_or_create_label.side_effect = lambda team_id, name, color: f"label-{name}"
    linear.create_issue.return_value = linear_issue
    return linear
