"""Models shared between CLI arguments, environment variables and the registries."""

from enum import Enum


class InstanceKind(str, Enum):
    """Enum for the two kinds of configured instances."""

    SENTRY = "sentry"
    LINEAR = "linear"

    @property
    def display_name(self) -> str:
        """Human-readable name of the instance kind."""
        return self.value.capitalize()
