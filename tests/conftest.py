# tests/conftest.py — v1
"""Shared test fixtures for all unit and integration tests.

Provides an in-memory FakeMonitorClient, sample run-books, and document
writers. No network access; every remote call is served from memory.
"""

from __future__ import annotations

import asyncio
from collections import Counter
from pathlib import Path

import pytest

from runbook.client.base_client import BaseMonitorClient
from runbook.client.models import DeploymentListItem, ResourceSummary, Update
from runbook.core.models import ActionKind, RunBook, Stage
from runbook.logging.context import clear_context


class FakeMonitorClient(BaseMonitorClient):
    """In-memory Monitor double recording every call.

    Args:
        builds: Build name -> id.
        deployments: Deployment name -> id.
        unsuccessful: Ids whose operations answer ``success = false``.
        failures: Ids whose operations raise the given exception.
        delays: Ids whose operations sleep this many seconds first.
        listing_error: Raised by both listing calls when set.
    """

    def __init__(
        self,
        builds: dict[str, str] | None = None,
        deployments: dict[str, str] | None = None,
        unsuccessful: set[str] | None = None,
        failures: dict[str, Exception] | None = None,
        delays: dict[str, float] | None = None,
        listing_error: Exception | None = None,
    ) -> None:
        self.builds = dict(builds or {})
        self.deployments = dict(deployments or {})
        self.unsuccessful = set(unsuccessful or ())
        self.failures = dict(failures or {})
        self.delays = dict(delays or {})
        self.listing_error = listing_error
        self.calls: list[tuple[str, str | None]] = []
        self.completed: list[tuple[str, str]] = []
        self.closed = False

    @property
    def counts(self) -> Counter[str]:
        return Counter(method for method, _ in self.calls)

    @property
    def action_calls(self) -> list[tuple[str, str | None]]:
        return [c for c in self.calls if not c[0].startswith("list_")]

    async def list_builds(self) -> list[ResourceSummary]:
        self.calls.append(("list_builds", None))
        if self.listing_error is not None:
            raise self.listing_error
        return [ResourceSummary(id=i, name=n) for n, i in self.builds.items()]

    async def list_deployments(self) -> list[DeploymentListItem]:
        self.calls.append(("list_deployments", None))
        if self.listing_error is not None:
            raise self.listing_error
        return [
            DeploymentListItem(deployment=ResourceSummary(id=i, name=n), state="running")
            for n, i in self.deployments.items()
        ]

    async def build(self, build_id: str) -> Update:
        return await self._act("build", build_id)

    async def deploy_container(self, deployment_id: str) -> Update:
        return await self._act("deploy_container", deployment_id)

    async def start_container(self, deployment_id: str) -> Update:
        return await self._act("start_container", deployment_id)

    async def stop_container(self, deployment_id: str) -> Update:
        return await self._act("stop_container", deployment_id)

    async def remove_container(self, deployment_id: str) -> Update:
        return await self._act("remove_container", deployment_id)

    async def aclose(self) -> None:
        self.closed = True

    async def _act(self, method: str, ident: str) -> Update:
        self.calls.append((method, ident))
        delay = self.delays.get(ident, 0.0)
        if delay:
            await asyncio.sleep(delay)
        self.completed.append((method, ident))
        if ident in self.failures:
            raise self.failures[ident]
        return Update(
            id=f"upd-{ident}",
            operation=method,
            success=ident not in self.unsuccessful,
        )


# === FIXTURES: Clients ===


@pytest.fixture
def make_client() -> type[FakeMonitorClient]:
    """The FakeMonitorClient class, for tests needing custom behaviour."""
    return FakeMonitorClient


@pytest.fixture
def fake_client() -> FakeMonitorClient:
    """Client knowing builds and deployments for svc-a and svc-b."""
    return FakeMonitorClient(
        builds={"svc-a": "b-1", "svc-b": "b-2"},
        deployments={"svc-a": "d-1", "svc-b": "d-2"},
    )


# === FIXTURES: Run-books ===


@pytest.fixture
def release_runbook() -> RunBook:
    """Build both services, then deploy both."""
    return RunBook(
        name="release",
        stage=(
            Stage(name="build-all", action=ActionKind.BUILD, targets=("svc-a", "svc-b")),
            Stage(name="go-live", action=ActionKind.DEPLOY, targets=("svc-a", "svc-b")),
        ),
    )


RELEASE_TOML = """\
name = "release"

[[stage]]
name = "build-all"
action = "build"
targets = ["svc-a", "svc-b"]

[[stage]]
name = "go-live"
action = "deploy"
targets = ["svc-a", "svc-b"]
"""

CREDS_TOML = """\
url = "https://monitor.example.com"
username = "ci"
secret = "s3cr3t"
"""


@pytest.fixture
def runbook_file(tmp_path: Path) -> Path:
    path = tmp_path / "release.toml"
    path.write_text(RELEASE_TOML, encoding="utf-8")
    return path


@pytest.fixture
def creds_file(tmp_path: Path) -> Path:
    path = tmp_path / "creds.toml"
    path.write_text(CREDS_TOML, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def _reset_log_context():
    clear_context()
    yield
    clear_context()
