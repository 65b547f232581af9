"""Exceptions raised while talking to Sentry and Linear or while prompting the user."""


class TransportError(Exception):
    """Raised when a request to a Sentry or Linear instance fails in transit.

    Covers connection errors, timeouts, authentication failures and non-2xx
    responses. Requests are never retried automatically.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initializes the exception with an optional HTTP status code."""
        super().__init__(message)
        self.status_code = status_code


class SourceUnavailableError(TransportError):
    """Raised when a Sentry instance cannot be reached or rejects a request."""

    pass


class SinkUnavailableError(TransportError):
    """Raised when a Linear instance cannot be reached or rejects a request."""

    pass


class DataError(Exception):
    """Raised when an API response is malformed or does not match the expected shape."""

    pass


class UserCancelledError(Exception):
    """Raised when the user declines or aborts an interactive prompt.

    Callers treat this as a normal return to the invoking menu, not a failure.
    """

    pass
