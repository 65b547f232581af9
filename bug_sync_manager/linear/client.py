"""Sets up the authenticated httpx client for the Linear GraphQL API."""

import httpx

from bug_sync_manager.configuration.exceptions import MissingApiKeyError
from bug_sync_manager.utils.constants import DEFAULT_HTTP_TIMEOUT


def get_linear_client(
    api_key: str,
    timeout: float = DEFAULT_HTTP_TIMEOUT,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Returns an httpx client authenticated against Linear.

    Linear personal API keys are sent as-is in the Authorization header, without
    a ``Bearer`` prefix.

    Raises:
        MissingApiKeyError: If no API key is given.
    """
    if not api_key:
        raise MissingApiKeyError("Linear")
    return httpx.AsyncClient(
        headers={
            "Authorization": api_key,
            "Content-Type": "application/json",
        },
        timeout=timeout,
        transport=transport,
    )
