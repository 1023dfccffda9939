# src/client/base_client.py — v1
"""Abstract remote management client interface.

The engine only ever talks to this interface; test doubles and the
httpx-backed MonitorHttpClient both implement it. Implementations must
support several calls in flight at once on a single instance.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from runbook.client.models import DeploymentListItem, ResourceSummary, Update


class BaseMonitorClient(ABC):
    """Listing and per-action operations of the Monitor core API."""

    @abstractmethod
    async def list_builds(self) -> list[ResourceSummary]:
        """List every build visible to the session."""

    @abstractmethod
    async def list_deployments(self) -> list[DeploymentListItem]:
        """List every deployment visible to the session."""

    @abstractmethod
    async def build(self, build_id: str) -> Update:
        """Trigger a build."""

    @abstractmethod
    async def deploy_container(self, deployment_id: str) -> Update:
        """(Re)deploy the container of a deployment."""

    @abstractmethod
    async def start_container(self, deployment_id: str) -> Update:
        """Start a stopped container."""

    @abstractmethod
    async def stop_container(self, deployment_id: str) -> Update:
        """Stop a running container."""

    @abstractmethod
    async def remove_container(self, deployment_id: str) -> Update:
        """Stop and remove a container."""

    async def aclose(self) -> None:
        """Release transport resources. Default is a no-op."""

    async def __aenter__(self) -> BaseMonitorClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
