# src/client/client_factory.py — v1
"""Factory: open an authenticated Monitor client from credentials.

Every failure while establishing the session surfaces as ClientInitError
so the CLI can report it uniformly.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from runbook.client.http_client import MonitorApiError, MonitorHttpClient
from runbook.core.errors import ClientInitError

if TYPE_CHECKING:
    from runbook.config.settings import Settings
    from runbook.core.models import Credentials

logger = logging.getLogger(__name__)


async def connect_client(
    credentials: Credentials,
    settings: Settings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> MonitorHttpClient:
    """Log in to Monitor core and return a ready client.

    Args:
        credentials: Monitor URL, username and API secret.
        settings: Application settings (HTTP timeout).
        transport: Optional httpx transport override.

    Returns:
        Authenticated MonitorHttpClient.

    Raises:
        ClientInitError: If the URL is unusable or login fails.
    """
    if not credentials.url.startswith(("http://", "https://")):
        raise ClientInitError(
            f"failed to initialize client: invalid monitor url {credentials.url!r}"
        )

    timeout_s = settings.http_timeout_s if settings is not None else None
    logger.debug("Connecting to %s (timeout=%s)", credentials.url, timeout_s)
    try:
        client = await MonitorHttpClient.login(
            credentials.url,
            credentials.username,
            credentials.secret.get_secret_value(),
            timeout_s=timeout_s,
            transport=transport,
        )
    except MonitorApiError as exc:
        raise ClientInitError(
            f"failed to initialize client for {credentials.url}"
        ) from exc

    logger.info("Connected to %s as %s", credentials.url, credentials.username)
    return client
