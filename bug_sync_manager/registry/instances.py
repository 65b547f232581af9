"""Registry of named Sentry and Linear instances."""

from typing import Generic, TypeVar

import structlog

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
from bug_sync_manager.schemas.config import ConnectionModel, LinearInstanceModel, SentryInstanceModel
from bug_sync_manager.utils.helpers import is_blank, is_valid_instance_key

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

InstanceModelT = TypeVar("InstanceModelT", SentryInstanceModel, LinearInstanceModel)


class InstanceRegistry(Generic[InstanceModelT]):
    """Keyed collection of the instances of one kind.

    Keys are unique within a kind and are what connections refer to. Every
    mutation is saved through the store immediately.
    """

    def __init__(self, store: ConfigStore, kind: InstanceKind) -> None:
        """Initialize the registry for one instance kind."""
        self.store = store
        self.kind = kind

    @property
    def _instances(self) -> dict[str, InstanceModelT]:
        if self.kind == InstanceKind.SENTRY:
            return self.store.config.sentry.instances  # type: ignore[return-value]
        return self.store.config.linear.instances  # type: ignore[return-value]

    def list_keys(self) -> list[str]:
        """Return the instance keys, sorted."""
        return sorted(self._instances)

    def items(self) -> list[tuple[str, InstanceModelT]]:
        """Return ``(key, instance)`` pairs, sorted by key."""
        return [(key, self._instances[key]) for key in self.list_keys()]

    def exists(self, key: str) -> bool:
        return key in self._instances

    def get(self, key: str) -> InstanceModelT:
        """Return the instance stored under a key.

        Raises:
            UnknownInstanceError: If no instance of this kind has the key.
        """
        try:
            return self._instances[key]
        except KeyError:
            raise UnknownInstanceError(self.kind, key) from None

    def check_new(self, key: str, instance: InstanceModelT) -> None:
        """Validate an instance before it is added, without saving anything.

        Raises:
            InvalidInstanceKeyError: If the key is empty or contains whitespace.
            BlankNameError: If the display name is blank.
            MissingApiKeyError: If the API key is empty.
            DuplicateKeyError: If the key is already used by an instance of this kind.
        """
        if not is_valid_instance_key(key):
            raise InvalidInstanceKeyError(key)
        if is_blank(instance.name):
            raise BlankNameError("instance")
        if is_blank(instance.api_key):
            raise MissingApiKeyError(self.kind.display_name)
        if self.exists(key):
            raise DuplicateKeyError(self.kind, key)

    def add(self, key: str, instance: InstanceModelT) -> InstanceModelT:
        """Add an instance under a new key.

        Raises:
            ConfigError: If ``check_new`` rejects the key or the instance.
        """
        self.check_new(key, instance)
        self._instances[key] = instance
        self.store.save()
        logger.info("Added instance", kind=self.kind.value, key=key, name=instance.name)
        return instance

    def update(
        self,
        key: str,
        name: str | None = None,
        api_key: str | None = None,
        base_url: str | None = None,
    ) -> InstanceModelT:
        """Edit fields of an existing instance in place.

        Fields left as ``None`` keep their current value, as do an empty ``api_key``
        or ``base_url``. ``base_url`` only applies to Sentry instances.

        Raises:
            UnknownInstanceError: If no instance of this kind has the key.
            BlankNameError: If ``name`` is given but blank.
        """
        instance = self.get(key)
        if name is not None and is_blank(name):
            raise BlankNameError("instance")
        if name:
            instance.name = name
        if api_key:
            instance.api_key = api_key
        if base_url and isinstance(instance, SentryInstanceModel):
            instance.base_url = base_url
        self.store.save()
        logger.info("Updated instance", kind=self.kind.value, key=key, name=instance.name)
        return instance

    def connections_using(self, key: str) -> list[ConnectionModel]:
        """Return the connections that reference the instance with the given key."""
        if self.kind == InstanceKind.SENTRY:
            return [connection for connection in self.store.config.bug_manager.connections if connection.sentry_instance == key]
        return [connection for connection in self.store.config.bug_manager.connections if connection.linear_instance == key]

    def remove(self, key: str) -> None:
        """Remove an instance that no connection references.

        Raises:
            UnknownInstanceError: If no instance of this kind has the key.
            InstanceInUseError: If one or more connections reference the instance.
        """
        if not self.exists(key):
            raise UnknownInstanceError(self.kind, key)
        in_use_by = self.connections_using(key)
        if in_use_by:
            raise InstanceInUseError(self.kind, key, [connection.name for connection in in_use_by])
        del self._instances[key]
        self.store.save()
        logger.info("Removed instance", kind=self.kind.value, key=key)


def sentry_instances(store: ConfigStore) -> InstanceRegistry[SentryInstanceModel]:
    """Return the registry of Sentry instances."""
    return InstanceRegistry(store, InstanceKind.SENTRY)


def linear_instances(store: ConfigStore) -> InstanceRegistry[LinearInstanceModel]:
    """Return the registry of Linear instances."""
    return InstanceRegistry(store, InstanceKind.LINEAR)


def instance_registry(store: ConfigStore, kind: InstanceKind) -> InstanceRegistry:
    """Return the registry for an instance kind."""
    return sentry_instances(store) if kind == InstanceKind.SENTRY else linear_instances(store)
