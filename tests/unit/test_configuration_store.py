"""Unit tests for loading and saving the configuration document."""

import stat
from pathlib import Path

import pytest
from ruamel.yaml import YAML

from bug_sync_manager.configuration.exceptions import ConfigFileError
from bug_sync_manager.configuration.migrate import MigrationStep
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.schemas.config import LinearInstanceModel


def read_yaml(path: Path) -> dict:
    return YAML(typ="safe").load(path.read_text(encoding="utf-8"))


def test_load_missing_file_creates_empty_configuration(config_path: Path) -> None:
    """Test that loading a missing file creates it with empty sections."""
    store = ConfigStore.load(config_path)

    assert config_path.exists()
    assert store.config.sentry.instances == {}
    assert store.config.bug_manager.connections == []
    assert read_yaml(config_path)["bug_manager"] == {"connections": []}


def test_saved_file_is_owner_only(config_path: Path) -> None:
    """Test that the configuration file is written with 0600 permissions."""
    ConfigStore.load(config_path)
    assert stat.S_IMODE(config_path.stat().st_mode) == 0o600


def test_unknown_sections_survive_round_trip(config_path: Path) -> None:
    """Test that sections and keys owned by other tools are preserved."""
    config_path.parent.mkdir(parents=True)
    config_path.write_text(
        "jira:\n  token: abc\n  projects: [A, B]\nlinear:\n  team_hint: BE\n  instances: {}\n",
        encoding="utf-8",
    )
    store = ConfigStore.load(config_path)
    store.config.linear.instances["work"] = LinearInstanceModel(name="Work", api_key="k")
    store.save()

    saved = read_yaml(config_path)
    assert saved["jira"] == {"token": "abc", "projects": ["A", "B"]}
    assert saved["linear"]["team_hint"] == "BE"
    assert saved["linear"]["instances"]["work"] == {"name": "Work", "api_key": "k"}


def test_load_migrates_and_saves_legacy_configuration(config_path: Path) -> None:
    """Test that a legacy configuration is migrated and written back on load."""
    config_path.parent.mkdir(parents=True)
    config_path.write_text("sentry:\n  api_key: sntrys_legacy\n", encoding="utf-8")

    store = ConfigStore.load(config_path)

    assert store.applied_migrations == [MigrationStep.SENTRY_DEFAULT_INSTANCE]
    saved = read_yaml(config_path)
    assert saved["sentry"]["instances"]["default"]["api_key"] == "sntrys_legacy"
    assert saved["sentry"]["api_key"] == "sntrys_legacy"

    reloaded = ConfigStore.load(config_path)
    assert reloaded.applied_migrations == []


def test_empty_file_loads_as_empty_configuration(config_path: Path) -> None:
    """Test that an empty file is treated like an empty document."""
    config_path.parent.mkdir(parents=True)
    config_path.write_text("", encoding="utf-8")
    store = ConfigStore.load(config_path)
    assert store.config.linear.instances == {}


@pytest.mark.parametrize(
    "content, message",
    [
        pytest.param("sentry: [unclosed\n", "Failed to parse", id="malformed yaml"),
        pytest.param("- just\n- a list\n", "mapping at the top level", id="top level list"),
        pytest.param("bug_manager:\n  connections:\n    - name: Missing instances\n", "Invalid configuration", id="schema violation"),
    ],
)
def test_load_rejects_bad_documents(config_path: Path, content: str, message: str) -> None:
    """Test that unreadable documents raise ConfigFileError."""
    config_path.parent.mkdir(parents=True)
    config_path.write_text(content, encoding="utf-8")
    with pytest.raises(ConfigFileError, match=message):
        ConfigStore.load(config_path)


def test_save_failure_raises_config_file_error(tmp_path: Path) -> None:
    """Test that a write failure is reported as ConfigFileError."""
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("", encoding="utf-8")
    store = ConfigStore(blocker / "config.yaml")
    with pytest.raises(ConfigFileError, match="Failed to write"):
        store.save()
