"""Unit tests for the registry of named Sentry and Linear instances."""

import pytest

from bug_sync_manager.configuration.exceptions import (
    BlankNameError,
    DuplicateKeyError,
    InstanceInUseError,
    InvalidInstanceKeyError,
    MissingApiKeyError,
    UnknownInstanceError,
)
from bug_sync_manager.configuration.models import InstanceKind
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.registry.instances import instance_registry, linear_instances, sentry_instances
from bug_sync_manager.schemas.config import LinearInstanceModel, SentryInstanceModel


class TestInstanceRegistry:
    """Tests for InstanceRegistry."""

    def test_add_and_get(self, store: ConfigStore) -> None:
        registry = sentry_instances(store)
        registry.add("work", SentryInstanceModel(name="Work", api_key="k"))

        assert registry.exists("work")
        assert registry.get("work").name == "Work"
        assert registry.get("work").base_url == "https://sentry.io/api/0"
        assert ConfigStore.load(store.path).config.sentry.instances["work"].api_key == "k"

    def test_list_keys_is_sorted(self, store: ConfigStore) -> None:
        registry = linear_instances(store)
        for key in ("personal", "acme", "work"):
            registry.add(key, LinearInstanceModel(name=key.title(), api_key="k"))
        assert registry.list_keys() == ["acme", "personal", "work"]
        assert [key for key, _ in registry.items()] == ["acme", "personal", "work"]

    def test_same_key_in_both_kinds_is_allowed(self, store: ConfigStore) -> None:
        sentry_instances(store).add("work", SentryInstanceModel(name="Work", api_key="k"))
        linear_instances(store).add("work", LinearInstanceModel(name="Work", api_key="k"))
        assert instance_registry(store, InstanceKind.SENTRY).exists("work")
        assert instance_registry(store, InstanceKind.LINEAR).exists("work")

    def test_add_duplicate_key_raises(self, store: ConfigStore) -> None:
        registry = linear_instances(store)
        registry.add("work", LinearInstanceModel(name="Work", api_key="k"))
        with pytest.raises(DuplicateKeyError, match="Linear instance with key 'work' already exists"):
            registry.add("work", LinearInstanceModel(name="Other", api_key="k2"))
        assert registry.get("work").name == "Work"

    @pytest.mark.parametrize("key", ["", "my work", "tab\tkey"])
    def test_add_invalid_key_raises(self, store: ConfigStore, key: str) -> None:
        with pytest.raises(InvalidInstanceKeyError):
            sentry_instances(store).add(key, SentryInstanceModel(name="Work", api_key="k"))
        assert store.config.sentry.instances == {}

    @pytest.mark.parametrize("name", ["", "   "])
    def test_add_blank_name_raises(self, store: ConfigStore, name: str) -> None:
        with pytest.raises(BlankNameError, match="name must not be empty"):
            linear_instances(store).add("work", LinearInstanceModel(name=name, api_key="k"))
        assert store.config.linear.instances == {}

    def test_add_empty_api_key_raises(self, store: ConfigStore) -> None:
        with pytest.raises(MissingApiKeyError, match="Sentry authentication requires an API key"):
            sentry_instances(store).add("work", SentryInstanceModel(name="Work", api_key=""))
        assert store.config.sentry.instances == {}

    def test_update_blank_name_raises(self, store: ConfigStore) -> None:
        registry = linear_instances(store)
        registry.add("work", LinearInstanceModel(name="Work", api_key="k"))
        with pytest.raises(BlankNameError):
            registry.update("work", name="  ")
        assert registry.get("work").name == "Work"

    def test_get_unknown_raises(self, store: ConfigStore) -> None:
        with pytest.raises(UnknownInstanceError, match="Sentry instance 'nope' not found"):
            sentry_instances(store).get("nope")

    def test_update_keeps_unset_fields(self, store: ConfigStore) -> None:
        registry = sentry_instances(store)
        registry.add("work", SentryInstanceModel(name="Work", api_key="k", base_url="https://a.example.com/api/0"))
        registry.update("work", name="Renamed", api_key="", base_url=None)

        instance = registry.get("work")
        assert instance.name == "Renamed"
        assert instance.api_key == "k"
        assert instance.base_url == "https://a.example.com/api/0"

    def test_update_base_url_ignored_for_linear(self, store: ConfigStore) -> None:
        registry = linear_instances(store)
        registry.add("work", LinearInstanceModel(name="Work", api_key="k"))
        registry.update("work", base_url="https://example.com")
        assert "base_url" not in registry.get("work").model_dump()

    def test_remove_unused_instance(self, store: ConfigStore) -> None:
        registry = linear_instances(store)
        registry.add("work", LinearInstanceModel(name="Work", api_key="k"))
        registry.remove("work")
        assert not registry.exists("work")
        assert ConfigStore.load(store.path).config.linear.instances == {}

    def test_remove_unknown_raises(self, store: ConfigStore) -> None:
        with pytest.raises(UnknownInstanceError):
            linear_instances(store).remove("nope")

    def test_remove_in_use_raises_and_keeps_everything(self, configured_store: ConfigStore) -> None:
        registry = sentry_instances(configured_store)
        with pytest.raises(InstanceInUseError) as exc_info:
            registry.remove("work")

        assert exc_info.value.connection_names == ["Work"]
        assert "'Work'" in str(exc_info.value)
        assert registry.exists("work")
        assert len(configured_store.config.bug_manager.connections) == 1

    def test_connections_using(self, configured_store: ConfigStore) -> None:
        assert [connection.name for connection in linear_instances(configured_store).connections_using("work")] == ["Work"]
        assert linear_instances(configured_store).connections_using("other") == []
