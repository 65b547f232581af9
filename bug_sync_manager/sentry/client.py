"""Sets up the authenticated httpx client for the Sentry REST API."""

import httpx

from bug_sync_manager.configuration.exceptions import MissingApiKeyError
from bug_sync_manager.utils.constants import DEFAULT_HTTP_TIMEOUT, DEFAULT_SENTRY_BASE_URL


def get_sentry_client(
    api_key: str,
    base_url: str = DEFAULT_SENTRY_BASE_URL,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Returns an httpx client authenticated against a Sentry instance.

    Supports self-hosted Sentry through ``base_url``, which must point at the
    API root (for example ``https://sentry.example.com/api/0``).

    Raises:
        MissingApiKeyError: If no API key is given.
    """
    if not api_key:
        raise MissingApiKeyError("Sentry")
    return httpx.AsyncClient(
        base_url=base_url.rstrip("/") + "/",
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        timeout=timeout,
        transport=transport,
    )
