"""Shared HTTP helpers for the Sentry and Linear adapters."""

from functools import wraps
from typing import Any, Awaitable, Callable, TypeVar

import httpx
import structlog
from pydantic import ValidationError

from bug_sync_manager.exceptions import DataError, TransportError

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])

_MAX_ERROR_BODY_LENGTH = 300


def summarize_response_body(response: httpx.Response) -> str:
    """Return a short, single-line excerpt of a response body for error messages."""
    try:
        text = response.text
    except (httpx.ResponseNotRead, UnicodeDecodeError):
        return ""
    text = " ".join(text.split())
    if len(text) > _MAX_ERROR_BODY_LENGTH:
        return text[:_MAX_ERROR_BODY_LENGTH] + "..."
    return text


def handle_api_errors(service: str, unavailable_error: type[TransportError]) -> Callable[[F], F]:
    """Decorator factory translating httpx and decoding errors into application errors.

    Requests are never retried. Connection failures, timeouts and non-2xx responses
    become ``unavailable_error``; bodies that are not JSON or do not match the
    expected schema become ``DataError``.

    Args:
        service: Name of the remote service, used in messages and logs.
        unavailable_error: The ``TransportError`` subclass to raise for transport failures.
    """

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except httpx.HTTPStatusError as exc:
                status_code = exc.response.status_code
                body = summarize_response_body(exc.response)
                logger.error(
                    f"{service} API returned an error status",
                    function=func.__name__,
                    status_code=status_code,
                    url=str(exc.request.url),
                )
                raise unavailable_error(f"{service} API error (status {status_code}) in {func.__name__}: {body}", status_code=status_code) from exc
            except httpx.TimeoutException as exc:
                logger.error(f"{service} API request timed out", function=func.__name__)
                raise unavailable_error(f"{service} API request timed out in {func.__name__}") from exc
            except httpx.HTTPError as exc:
                logger.error(f"{service} API request failed", function=func.__name__, error=str(exc))
                raise unavailable_error(f"{service} API request failed in {func.__name__}: {exc}") from exc
            except ValidationError as exc:
                logger.error(f"{service} API response did not match the expected schema", function=func.__name__, errors=exc.error_count())
                raise DataError(f"Unexpected {service} API response in {func.__name__}: {exc}") from exc
            except ValueError as exc:
                # json.JSONDecodeError is a ValueError
                logger.error(f"{service} API response could not be decoded", function=func.__name__, error=str(exc))
                raise DataError(f"Failed to decode {service} API response in {func.__name__}: {exc}") from exc

        return wrapper  # type: ignore

    return decorator
