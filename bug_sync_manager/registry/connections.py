"""Store of connections and their Sentry to Linear project mappings."""

import structlog

from bug_sync_manager.configuration.exceptions import (
    BlankNameError,
    DuplicateConnectionError,
    DuplicateMappingError,
    UnknownConnectionError,
    UnknownMappingError,
)
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.registry.instances import linear_instances, sentry_instances
from bug_sync_manager.schemas.config import ConnectionModel, ProjectMappingModel
from bug_sync_manager.utils.helpers import dedupe_preserving_order, is_blank

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ConnectionStore:
    """Ordered collection of connections, each pairing one Sentry and one Linear instance.

    Connection names are unique. Within a connection, a Sentry project is mapped at
    most once. Every mutation is saved through the store immediately.
    """

    def __init__(self, store: ConfigStore) -> None:
        """Initialize the connection store on top of a configuration store."""
        self.store = store

    @property
    def _connections(self) -> list[ConnectionModel]:
        return self.store.config.bug_manager.connections

    def list_connections(self) -> list[ConnectionModel]:
        """Return the connections in configuration order."""
        return list(self._connections)

    def names(self) -> list[str]:
        return [connection.name for connection in self._connections]

    def exists(self, name: str) -> bool:
        return any(connection.name == name for connection in self._connections)

    def get(self, name: str) -> ConnectionModel:
        """Return the connection with the given name.

        Raises:
            UnknownConnectionError: If no connection has the name.
        """
        for connection in self._connections:
            if connection.name == name:
                return connection
        raise UnknownConnectionError(name)

    def add(self, name: str, sentry_instance: str, linear_instance: str) -> ConnectionModel:
        """Create a connection between two existing instances.

        Raises:
            BlankNameError: If the name is blank.
            DuplicateConnectionError: If the name is already taken.
            UnknownInstanceError: If either instance key does not exist.
        """
        if is_blank(name):
            raise BlankNameError("connection")
        if self.exists(name):
            raise DuplicateConnectionError(name)
        sentry_instances(self.store).get(sentry_instance)
        linear_instances(self.store).get(linear_instance)

        connection = ConnectionModel(name=name, sentry_instance=sentry_instance, linear_instance=linear_instance)
        self._connections.append(connection)
        self.store.save()
        logger.info("Added connection", connection=name, sentry_instance=sentry_instance, linear_instance=linear_instance)
        return connection

    def rename(self, name: str, new_name: str) -> ConnectionModel:
        """Rename a connection.

        Raises:
            UnknownConnectionError: If no connection has the current name.
            BlankNameError: If the new name is blank.
            DuplicateConnectionError: If another connection already uses the new name.
        """
        connection = self.get(name)
        if is_blank(new_name):
            raise BlankNameError("connection")
        if new_name != name and self.exists(new_name):
            raise DuplicateConnectionError(new_name)
        connection.name = new_name
        self.store.save()
        logger.info("Renamed connection", connection=name, new_name=new_name)
        return connection

    def set_sentry_instance(self, name: str, sentry_instance: str) -> ConnectionModel:
        """Point a connection at another existing Sentry instance."""
        connection = self.get(name)
        sentry_instances(self.store).get(sentry_instance)
        connection.sentry_instance = sentry_instance
        self.store.save()
        logger.info("Changed connection Sentry instance", connection=name, sentry_instance=sentry_instance)
        return connection

    def set_linear_instance(self, name: str, linear_instance: str) -> ConnectionModel:
        """Point a connection at another existing Linear instance."""
        connection = self.get(name)
        linear_instances(self.store).get(linear_instance)
        connection.linear_instance = linear_instance
        self.store.save()
        logger.info("Changed connection Linear instance", connection=name, linear_instance=linear_instance)
        return connection

    def remove(self, name: str) -> None:
        """Remove a connection together with its project mappings.

        Raises:
            UnknownConnectionError: If no connection has the name.
        """
        connection = self.get(name)
        self._connections.remove(connection)
        self.store.save()
        logger.info("Removed connection", connection=name, mappings=len(connection.project_mappings))

    def get_mapping(self, name: str, index: int) -> ProjectMappingModel:
        """Return a project mapping of a connection by position.

        Raises:
            UnknownConnectionError: If no connection has the name.
            UnknownMappingError: If the index is out of range.
        """
        connection = self.get(name)
        if not 0 <= index < len(connection.project_mappings):
            raise UnknownMappingError(name, index)
        return connection.project_mappings[index]

    def add_mapping(self, name: str, mapping: ProjectMappingModel) -> ProjectMappingModel:
        """Append a project mapping to a connection.

        Raises:
            UnknownConnectionError: If no connection has the name.
            DuplicateMappingError: If the connection already maps the same Sentry project.
        """
        connection = self.get(name)
        if any(existing.matches_source(mapping.sentry_organization, mapping.sentry_project) for existing in connection.project_mappings):
            raise DuplicateMappingError(name, mapping.sentry_organization, mapping.sentry_project)
        connection.project_mappings.append(mapping)
        self.store.save()
        logger.info(
            "Added project mapping",
            connection=name,
            sentry_project=mapping.source_label,
            linear_team_id=mapping.linear_team_id,
            linear_project_id=mapping.linear_project_id,
        )
        return mapping

    def update_mapping_labels(self, name: str, index: int, labels: list[str]) -> ProjectMappingModel:
        """Replace the default labels of a project mapping."""
        mapping = self.get_mapping(name, index)
        mapping.default_labels = dedupe_preserving_order(labels)
        self.store.save()
        logger.info("Updated project mapping labels", connection=name, sentry_project=mapping.source_label, labels=mapping.default_labels)
        return mapping

    def remove_mapping(self, name: str, index: int) -> ProjectMappingModel:
        """Remove a project mapping from a connection and return it."""
        mapping = self.get_mapping(name, index)
        self.get(name).project_mappings.pop(index)
        self.store.save()
        logger.info("Removed project mapping", connection=name, sentry_project=mapping.source_label)
        return mapping
