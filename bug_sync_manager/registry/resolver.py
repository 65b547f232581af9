"""Resolves a connection's project mapping into the concrete instances it targets."""

from dataclasses import dataclass, field

from bug_sync_manager.configuration.exceptions import ReferentialIntegrityError
from bug_sync_manager.configuration.models import InstanceKind
from bug_sync_manager.configuration.store import ConfigStore
from bug_sync_manager.registry.instances import linear_instances, sentry_instances
from bug_sync_manager.schemas.config import ConnectionModel, LinearInstanceModel, ProjectMappingModel, SentryInstanceModel


@dataclass
class ResolvedMapping:
    """Everything a sync needs to move issues along one project mapping."""

    connection_name: str
    sentry_instance: SentryInstanceModel
    linear_instance: LinearInstanceModel
    sentry_organization: str
    sentry_project: str
    linear_team_id: str
    linear_project_id: str | None = None
    linear_project_name: str = ""
    default_labels: list[str] = field(default_factory=list)

    @property
    def target_label(self) -> str:
        """Human-readable description of where issues will be created."""
        if self.linear_project_name:
            return f"{self.linear_instance.name} / {self.linear_project_name}"
        return f"{self.linear_instance.name} / team {self.linear_team_id}"


class MappingResolver:
    """Looks up the instances behind a connection and flattens them with a mapping."""

    def __init__(self, store: ConfigStore) -> None:
        """Initialize the resolver on top of a configuration store."""
        self.store = store

    def resolve_instances(self, connection: ConnectionModel) -> tuple[SentryInstanceModel, LinearInstanceModel]:
        """Return the Sentry and Linear instances a connection points at.

        Raises:
            ReferentialIntegrityError: If the connection references a Sentry or Linear
                instance that does not exist.
        """
        sentry_registry = sentry_instances(self.store)
        if not sentry_registry.exists(connection.sentry_instance):
            raise ReferentialIntegrityError(connection.name, InstanceKind.SENTRY, connection.sentry_instance)
        linear_registry = linear_instances(self.store)
        if not linear_registry.exists(connection.linear_instance):
            raise ReferentialIntegrityError(connection.name, InstanceKind.LINEAR, connection.linear_instance)
        return sentry_registry.get(connection.sentry_instance), linear_registry.get(connection.linear_instance)

    def resolve(self, connection: ConnectionModel, mapping: ProjectMappingModel) -> ResolvedMapping:
        """Resolve a project mapping of a connection.

        Raises:
            ReferentialIntegrityError: If the connection references a Sentry or Linear
                instance that does not exist.
        """
        sentry_instance, linear_instance = self.resolve_instances(connection)
        return ResolvedMapping(
            connection_name=connection.name,
            sentry_instance=sentry_instance,
            linear_instance=linear_instance,
            sentry_organization=mapping.sentry_organization,
            sentry_project=mapping.sentry_project,
            linear_team_id=mapping.linear_team_id,
            linear_project_id=mapping.linear_project_id,
            linear_project_name=mapping.linear_project_name,
            default_labels=list(mapping.default_labels),
        )
