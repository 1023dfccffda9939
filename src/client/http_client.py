# src/client/http_client.py — v1
"""Monitor core HTTP client implementing BaseMonitorClient.

Uses one shared httpx.AsyncClient, so concurrent calls from the
dispatcher share a connection pool. No timeout is applied unless one is
configured: a remote operation such as a build may legitimately run for
a long time.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from runbook.client.base_client import BaseMonitorClient
from runbook.client.models import DeploymentListItem, ResourceSummary, Update

logger = logging.getLogger(__name__)

LOGIN_PATH = "/auth/secret/login"
LIST_BUILDS_PATH = "/api/build/list"
LIST_DEPLOYMENTS_PATH = "/api/deployment/list"

_BUILD_LIST = TypeAdapter(list[ResourceSummary])
_DEPLOYMENT_LIST = TypeAdapter(list[DeploymentListItem])

_BODY_EXCERPT = 300


class MonitorApiError(Exception):
    """Transport or protocol failure talking to Monitor core."""

    def __init__(self, method: str, path: str, message: str, status_code: int | None = None):
        self.method = method
        self.path = path
        self.status_code = status_code
        prefix = f"{method} {path}"
        if status_code is not None:
            prefix += f" returned {status_code}"
        super().__init__(f"{prefix}: {message}" if message else prefix)


class MonitorHttpClient(BaseMonitorClient):
    """Authenticated Monitor core client.

    Args:
        base_url: Monitor core URL (e.g. https://monitor.example.com).
        token: JWT obtained from login().
        timeout_s: Per-request timeout in seconds; None disables it.
        transport: Optional httpx transport (tests use httpx.MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self._base_url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout_s,
            transport=transport,
        )

    @classmethod
    async def login(
        cls,
        base_url: str,
        username: str,
        secret: str,
        timeout_s: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> MonitorHttpClient:
        """Exchange an API secret for a JWT and return a ready client.

        Raises:
            MonitorApiError: If the login request fails or returns no token.
        """
        base_url = base_url.rstrip("/")
        try:
            http = httpx.AsyncClient(base_url=base_url, timeout=timeout_s, transport=transport)
        except httpx.InvalidURL as exc:
            raise MonitorApiError("POST", LOGIN_PATH, f"invalid url {base_url!r}: {exc}") from exc

        async with http:
            try:
                resp = await http.post(
                    LOGIN_PATH, json={"username": username, "secret": secret},
                )
            except httpx.HTTPError as exc:
                raise MonitorApiError("POST", LOGIN_PATH, str(exc)) from exc

        _raise_for_status(resp, "POST", LOGIN_PATH)
        token = _extract_token(resp)
        if not token:
            raise MonitorApiError("POST", LOGIN_PATH, "response carried no token")

        logger.debug("Logged in to %s as %s", base_url, username)
        return cls(base_url, token, timeout_s=timeout_s, transport=transport)

    @property
    def base_url(self) -> str:
        return self._base_url

    async def list_builds(self) -> list[ResourceSummary]:
        data = await self._request("GET", LIST_BUILDS_PATH)
        return self._parse(_BUILD_LIST, data, "GET", LIST_BUILDS_PATH)

    async def list_deployments(self) -> list[DeploymentListItem]:
        data = await self._request("GET", LIST_DEPLOYMENTS_PATH)
        return self._parse(_DEPLOYMENT_LIST, data, "GET", LIST_DEPLOYMENTS_PATH)

    async def build(self, build_id: str) -> Update:
        return await self._update(f"/api/build/{build_id}/build")

    async def deploy_container(self, deployment_id: str) -> Update:
        return await self._update(f"/api/deployment/{deployment_id}/deploy")

    async def start_container(self, deployment_id: str) -> Update:
        return await self._update(f"/api/deployment/{deployment_id}/start_container")

    async def stop_container(self, deployment_id: str) -> Update:
        return await self._update(f"/api/deployment/{deployment_id}/stop_container")

    async def remove_container(self, deployment_id: str) -> Update:
        return await self._update(f"/api/deployment/{deployment_id}/remove_container")

    async def aclose(self) -> None:
        await self._http.aclose()

    # --- internals ---

    async def _update(self, path: str) -> Update:
        data = await self._request("POST", path)
        return self._parse(Update, data, "POST", path)

    async def _request(self, method: str, path: str) -> Any:
        logger.debug("%s %s", method, path)
        try:
            resp = await self._http.request(method, path)
        except httpx.HTTPError as exc:
            raise MonitorApiError(method, path, str(exc)) from exc
        _raise_for_status(resp, method, path)
        try:
            return resp.json()
        except ValueError as exc:
            raise MonitorApiError(method, path, "response is not valid JSON") from exc

    @staticmethod
    def _parse(model: Any, data: Any, method: str, path: str) -> Any:
        try:
            if isinstance(model, TypeAdapter):
                return model.validate_python(data)
            return model.model_validate(data)
        except ValidationError as exc:
            raise MonitorApiError(method, path, f"unexpected response shape: {exc}") from exc


def _raise_for_status(resp: httpx.Response, method: str, path: str) -> None:
    if resp.is_success:
        return
    body = resp.text[:_BODY_EXCERPT].strip()
    raise MonitorApiError(method, path, body, status_code=resp.status_code)


def _extract_token(resp: httpx.Response) -> str:
    """Login answers with a JSON string, a {"jwt": ...} object, or raw text."""
    try:
        payload = resp.json()
    except ValueError:
        return resp.text.strip()
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        return str(payload.get("jwt") or payload.get("token") or "")
    return ""
