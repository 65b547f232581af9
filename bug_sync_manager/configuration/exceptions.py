"""Contains exceptions raised when reading or mutating the sync configuration."""

from bug_sync_manager.configuration.models import InstanceKind


class ConfigError(Exception):
    """Base class for configuration errors (duplicates, in-use deletion, broken references)."""

    pass


class ConfigFileError(ConfigError):
    """Raised when the configuration document cannot be read, parsed or validated."""

    pass


class InvalidInstanceKeyError(ConfigError):
    """Raised when an instance key is empty or contains whitespace."""

    def __init__(self, key: str) -> None:
        """Initializes the exception with the rejected key."""
        super().__init__(f"Invalid instance key '{key}': key must not be empty or contain whitespace")
        self.key = key


class BlankNameError(ConfigError):
    """Raised when an instance or connection name is empty or only whitespace."""

    def __init__(self, subject: str) -> None:
        """Initializes the exception with what was being named."""
        super().__init__(f"Invalid {subject} name: name must not be empty")
        self.subject = subject


class MissingApiKeyError(ConfigError):
    """Raised when an instance has no API key to authenticate with."""

    def __init__(self, service: str) -> None:
        """Initializes the exception with the service that needs the key."""
        super().__init__(f"{service} authentication requires an API key")
        self.service = service


class DuplicateKeyError(ConfigError):
    """Raised when adding an instance whose key already exists for its kind."""

    def __init__(self, kind: InstanceKind, key: str) -> None:
        """Initializes the exception with the kind and the duplicate key."""
        super().__init__(f"{kind.display_name} instance with key '{key}' already exists")
        self.kind = kind
        self.key = key


class UnknownInstanceError(ConfigError):
    """Raised when an instance key does not exist for its kind."""

    def __init__(self, kind: InstanceKind, key: str) -> None:
        """Initializes the exception with the kind and the missing key."""
        super().__init__(f"{kind.display_name} instance '{key}' not found")
        self.kind = kind
        self.key = key


class InstanceInUseError(ConfigError):
    """Raised when removing an instance that one or more connections still reference."""

    def __init__(self, kind: InstanceKind, key: str, connection_names: list[str]) -> None:
        """Initializes the exception with the referencing connection names."""
        super().__init__(
            f"Cannot remove {kind.display_name} instance '{key}': it is used in connection(s) " + ", ".join(f"'{name}'" for name in connection_names)
        )
        self.kind = kind
        self.key = key
        self.connection_names = connection_names


class DuplicateConnectionError(ConfigError):
    """Raised when a connection name is already taken."""

    def __init__(self, name: str) -> None:
        """Initializes the exception with the duplicate connection name."""
        super().__init__(f"Connection with name '{name}' already exists")
        self.name = name


class UnknownConnectionError(ConfigError):
    """Raised when a connection name does not exist."""

    def __init__(self, name: str) -> None:
        """Initializes the exception with the missing connection name."""
        super().__init__(f"Connection '{name}' not found")
        self.name = name


class DuplicateMappingError(ConfigError):
    """Raised when a Sentry project is mapped twice within one connection."""

    def __init__(self, connection_name: str, sentry_organization: str, sentry_project: str) -> None:
        """Initializes the exception with the connection and the duplicate Sentry project."""
        super().__init__(f"Sentry project '{sentry_organization}/{sentry_project}' is already mapped in connection '{connection_name}'")
        self.connection_name = connection_name
        self.sentry_organization = sentry_organization
        self.sentry_project = sentry_project


class UnknownMappingError(ConfigError):
    """Raised when a project mapping index is out of range for its connection."""

    def __init__(self, connection_name: str, index: int) -> None:
        """Initializes the exception with the connection and the bad index."""
        super().__init__(f"Connection '{connection_name}' has no project mapping at index {index}")
        self.connection_name = connection_name
        self.index = index


class ReferentialIntegrityError(ConfigError):
    """Raised when a connection references an instance that no longer exists."""

    def __init__(self, connection_name: str, kind: InstanceKind, key: str) -> None:
        """Initializes the exception with the connection and the dangling instance reference."""
        super().__init__(f"Connection '{connection_name}' references missing {kind.display_name} instance '{key}'")
        self.connection_name = connection_name
        self.kind = kind
        self.key = key
