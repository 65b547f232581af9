"""Loads, migrates and persists the shared YAML configuration document."""

from pathlib import Path
from typing import Any, Self

import structlog
from pydantic import ValidationError
from ruamel.yaml.error import YAMLError

from bug_sync_manager.configuration.exceptions import ConfigFileError
from bug_sync_manager.configuration.migrate import MigrationStep, ensure_collections, migrate_config
from bug_sync_manager.schemas.config import AppConfigModel
from bug_sync_manager.utils.yaml import dump_yaml_to_file, load_yaml_file

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class ConfigStore:
    """Handle on the configuration document.

    The store is passed explicitly to every registry and workflow. Mutating
    operations change ``config`` in memory and then call ``save()`` so the file
    on disk always reflects the last successful change.
    """

    def __init__(self, path: Path, config: AppConfigModel | None = None) -> None:
        """Initialize the store for a path with an already-loaded configuration."""
        self.path = path
        self._config = config if config is not None else AppConfigModel.model_validate(ensure_collections({}))
        self.applied_migrations: list[MigrationStep] = []

    @property
    def config(self) -> AppConfigModel:
        """The in-memory configuration."""
        return self._config

    @classmethod
    def load(cls, path: Path) -> Self:
        """Load the configuration from a path, migrating legacy layouts.

        A missing file is created with an empty configuration. When a migration
        step changed the document, it is written back immediately.

        Raises:
            ConfigFileError: If the file cannot be read, is not valid YAML, or does not
                match the configuration schema.
        """
        if not path.exists():
            logger.info("Configuration file not found, creating a default one", path=str(path))
            store = cls(path)
            store.save()
            return store

        raw = cls._read_raw_document(path)
        try:
            config = AppConfigModel.model_validate(ensure_collections(raw))
        except ValidationError as exc:
            raise ConfigFileError(f"Invalid configuration in {path}: {exc}") from exc

        store = cls(path, config)
        store.applied_migrations = migrate_config(config)
        if store.applied_migrations:
            logger.info(
                "Applied configuration migrations",
                path=str(path),
                steps=[step.value for step in store.applied_migrations],
            )
            store.save()
        else:
            logger.debug("Loaded configuration", path=str(path))
        return store

    @staticmethod
    def _read_raw_document(path: Path) -> dict[str, Any]:
        try:
            raw = load_yaml_file(path)
        except OSError as exc:
            raise ConfigFileError(f"Failed to read configuration file {path}: {exc}") from exc
        except YAMLError as exc:
            raise ConfigFileError(f"Failed to parse configuration file {path}: {exc}") from exc

        if raw is None:
            return {}
        if not isinstance(raw, dict):
            raise ConfigFileError(f"Configuration file {path} must contain a mapping at the top level")
        return raw

    def to_document(self) -> dict[str, Any]:
        """Serialize the configuration, including sections owned by other tools."""
        return self._config.model_dump(mode="json", exclude_none=True)

    def save(self) -> None:
        """Write the configuration back to its file with owner-only permissions.

        Raises:
            ConfigFileError: If the file cannot be written.
        """
        try:
            dump_yaml_to_file(self.to_document(), self.path)
        except OSError as exc:
            raise ConfigFileError(f"Failed to write configuration file {self.path}: {exc}") from exc
        logger.debug("Saved configuration", path=str(self.path))
