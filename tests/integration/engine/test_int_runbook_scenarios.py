# tests/integration/engine/test_int_runbook_scenarios.py — v1
"""Integration tests for full run-book execution.

Covers: config/loader.py, client/client_factory.py, client/http_client.py,
        engine/resolver.py, engine/dispatcher.py, engine/runner.py

No network required: Monitor core is served by an httpx.MockTransport
backed by the in-memory MonitorServer below.

Source API:
- parse_runbook_file(path) / parse_creds_file(path)       — config/loader.py v1
- connect_client(credentials, settings, transport)         — client_factory.py v1
- StageRunner(client).run(runbook) → RunResult             — engine/runner.py v1
- run_stages(client, stages) raises StageFailedError       — engine/runner.py v1
"""

from __future__ import annotations

import asyncio
import json
from collections import Counter

import httpx
import pytest

from runbook.client.client_factory import connect_client
from runbook.config.loader import parse_creds_file, parse_runbook_file
from runbook.core.errors import (
    ClientInitError,
    InvocationError,
    NameNotFoundError,
    OperationUnsuccessfulError,
    RemoteListingError,
    StageFailedError,
    format_error_chain,
)
from runbook.core.models import ActionKind, Stage
from runbook.engine.runner import StageRunner, StageState, run_stages

pytestmark = [pytest.mark.integration]


class MonitorServer:
    """Minimal in-memory Monitor core speaking the HTTP routes the client uses."""

    def __init__(
        self,
        builds: dict[str, str],
        deployments: dict[str, str],
        unsuccessful: set[str] | None = None,
        broken: set[str] | None = None,
        fail_listing: bool = False,
    ) -> None:
        self.builds = builds
        self.deployments = deployments
        self.unsuccessful = set(unsuccessful or ())
        self.broken = set(broken or ())
        self.fail_listing = fail_listing
        self.hits: Counter[str] = Counter()
        self.actions: list[tuple[str, str]] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def handle(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        self.hits[path] += 1

        if path == "/auth/secret/login":
            body = json.loads(request.content)
            if body.get("secret") != "s3cr3t":
                return httpx.Response(401, text="invalid secret")
            return httpx.Response(200, json={"jwt": "jwt-ok"})

        if request.headers.get("Authorization") != "Bearer jwt-ok":
            return httpx.Response(401, text="unauthorized")

        if path == "/api/build/list":
            if self.fail_listing:
                return httpx.Response(503, text="database unavailable")
            return httpx.Response(
                200, json=[{"_id": i, "name": n} for n, i in self.builds.items()],
            )
        if path == "/api/deployment/list":
            return httpx.Response(200, json=[
                {"deployment": {"_id": i, "name": n}, "state": "running"}
                for n, i in self.deployments.items()
            ])

        _, _, _, ident, operation = path.split("/")
        self.actions.append((operation, ident))
        if ident in self.broken:
            return httpx.Response(500, text="internal error")
        success = ident not in self.unsuccessful
        logs = [] if success else [{"stage": operation, "stderr": "exit code 1", "success": False}]
        return httpx.Response(200, json={
            "_id": f"upd-{ident}", "operation": operation, "success": success, "logs": logs,
        })


def _server(**kwargs) -> MonitorServer:
    return MonitorServer(
        builds={"svc-a": "b-1", "svc-b": "b-2"},
        deployments={"svc-a": "d-1", "svc-b": "d-2"},
        **kwargs,
    )


async def _run(server: MonitorServer, runbook_file, creds_file):
    credentials = parse_creds_file(creds_file)
    runbook = parse_runbook_file(runbook_file)
    client = await connect_client(credentials, transport=server.transport())
    async with client:
        return await StageRunner(client).run(runbook)


class TestReleaseScenario:
    @pytest.mark.asyncio
    async def test_build_then_deploy(self, runbook_file, creds_file):
        server = _server()
        result = await _run(server, runbook_file, creds_file)

        assert result.success is True
        assert result.stages_completed == 2
        assert server.hits["/api/build/list"] == 1
        assert server.hits["/api/deployment/list"] == 1
        assert sorted(server.actions[:2]) == [("build", "b-1"), ("build", "b-2")]
        assert sorted(server.actions[2:]) == [("deploy", "d-1"), ("deploy", "d-2")]

    @pytest.mark.asyncio
    async def test_unsuccessful_build_blocks_deploy(self, runbook_file, creds_file):
        server = _server(unsuccessful={"b-2"})
        result = await _run(server, runbook_file, creds_file)

        assert result.success is False
        assert result.failed_stage == "build-all"
        assert [op for op, _ in server.actions] == ["build", "build"]
        assert [s.state for s in result.stages] == [StageState.FAILED, StageState.PENDING]
        assert isinstance(result.error.__cause__, OperationUnsuccessfulError)
        assert result.error.__cause__.identifier == "b-2"

    @pytest.mark.asyncio
    async def test_server_error_is_transport_failure(self, runbook_file, creds_file):
        server = _server(broken={"b-1"})
        result = await _run(server, runbook_file, creds_file)

        cause = result.error.__cause__
        assert isinstance(cause, InvocationError)
        assert cause.kind == "transport"
        report = format_error_chain(result.error)
        assert "failed to build b-1" in report
        assert "returned 500: internal error" in report

    @pytest.mark.asyncio
    async def test_unknown_target_dispatches_nothing(self, tmp_path, creds_file):
        path = tmp_path / "rb.toml"
        path.write_text(
            'name = "typo"\n'
            '[[stage]]\nname = "halt"\naction = "StopContainer"\n'
            'targets = ["svc-a", "svc-c"]\n',
            encoding="utf-8",
        )
        server = _server()
        result = await _run(server, path, creds_file)

        assert server.actions == []
        assert isinstance(result.error.__cause__, NameNotFoundError)
        assert "svc-c" in str(result.error.__cause__)

    @pytest.mark.asyncio
    async def test_listing_failure(self, runbook_file, creds_file):
        server = _server(fail_listing=True)
        result = await _run(server, runbook_file, creds_file)

        assert isinstance(result.error, RemoteListingError)
        assert server.actions == []


class TestContainerLifecycle:
    @pytest.mark.asyncio
    async def test_stop_start_destroy(self, tmp_path, creds_file):
        path = tmp_path / "lifecycle.json"
        path.write_text(json.dumps({
            "name": "lifecycle",
            "stage": [
                {"name": "halt", "action": "stop_container", "targets": ["svc-a"]},
                {"name": "resume", "action": "start-container", "targets": ["svc-a"]},
                {"name": "teardown", "action": "DestroyContainer", "targets": ["svc-b"]},
            ],
        }), encoding="utf-8")
        server = _server()
        result = await _run(server, path, creds_file)

        assert result.success is True
        assert server.actions == [
            ("stop_container", "d-1"),
            ("start_container", "d-1"),
            ("remove_container", "d-2"),
        ]


class TestConcurrentFanOut:
    @pytest.mark.asyncio
    async def test_first_failure_in_input_order(self, make_client):
        names = [f"t{i}" for i in range(1, 6)]
        client = make_client(
            builds={n: f"id-{n}" for n in names},
            unsuccessful={"id-t2", "id-t5"},
            delays={"id-t2": 0.05},
        )
        with pytest.raises(StageFailedError) as exc_info:
            await run_stages(client, [Stage(name="all", action=ActionKind.BUILD, targets=names)])

        assert exc_info.value.__cause__.identifier == "id-t2"
        assert len(client.completed) == 5

    @pytest.mark.asyncio
    async def test_slow_invocation_does_not_serialize_stage(self, make_client):
        client = make_client(
            deployments={"a": "d-a", "b": "d-b", "c": "d-c"},
            delays={"d-a": 0.2, "d-b": 0.2, "d-c": 0.2},
        )
        stage = Stage(name="up", action=ActionKind.DEPLOY, targets=("a", "b", "c"))
        # Sequential execution would need 0.6s.
        await asyncio.wait_for(run_stages(client, [stage]), timeout=0.5)


class TestBadCredentials:
    @pytest.mark.asyncio
    async def test_wrong_secret(self, tmp_path):
        path = tmp_path / "creds.toml"
        path.write_text(
            'url = "https://monitor.example.com"\nusername = "ci"\nsecret = "wrong"\n',
            encoding="utf-8",
        )
        with pytest.raises(ClientInitError) as exc_info:
            await connect_client(parse_creds_file(path), transport=_server().transport())
        assert "401" in format_error_chain(exc_info.value)
