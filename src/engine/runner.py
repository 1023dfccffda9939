# src/engine/runner.py — v1
"""Stage runner — execute a run-book stage by stage.

Walks the RunBook in order. Each stage resolves its targets against the
namespace its action selects, then dispatches the action to all of them
concurrently. The first stage that fails ends the run; later stages stay
pending and are never dispatched. Effects of completed stages are not
undone.

No timeout and no cancellation: a remote call that never returns stalls
the run indefinitely.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING

from runbook.core.errors import RunbookError, StageFailedError
from runbook.core.models import ActionKind, NameIndex, Namespace, RunBook, Stage
from runbook.engine.dispatcher import dispatch
from runbook.engine.resolver import build_index, deployment_index, resolve
from runbook.logging.context import set_run_context, set_stage_context

if TYPE_CHECKING:
    from runbook.client.base_client import BaseMonitorClient

logger = logging.getLogger(__name__)


class StageState(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    FAILED = "failed"
    COMPLETED = "completed"


@dataclass
class StageReport:
    """Execution record of one stage."""

    name: str
    action: ActionKind
    targets: list[str]
    state: StageState = StageState.PENDING
    identifiers: list[str] = field(default_factory=list)
    duration_ms: int = 0
    error: RunbookError | None = None


@dataclass
class RunResult:
    """Result of a full run-book execution."""

    runbook: str
    run_id: str
    success: bool = True
    stages: list[StageReport] = field(default_factory=list)
    failed_stage: str | None = None
    failed_action: ActionKind | None = None
    error: RunbookError | None = None
    duration_ms: int = 0
    stages_completed: int = 0

    def raise_for_failure(self) -> None:
        """Re-raise the recorded failure, if any."""
        if self.error is not None:
            raise self.error


class StageRunner:
    """Execute a RunBook against a remote client.

    Args:
        client: Remote client shared by every stage and invocation.
    """

    def __init__(self, client: BaseMonitorClient) -> None:
        self._client = client

    async def run(self, runbook: RunBook) -> RunResult:
        """Run every stage in order, stopping at the first failure.

        Resolution and dispatch failures are recorded in the RunResult,
        not raised. Both name indices are built once, before any stage.
        """
        start_ns = time.monotonic_ns()
        run_id = uuid.uuid4().hex[:12]
        set_run_context(runbook.name, run_id)
        result = RunResult(
            runbook=runbook.name,
            run_id=run_id,
            stages=[
                StageReport(name=s.name, action=s.action, targets=list(s.targets))
                for s in runbook.stages
            ],
        )
        logger.info("Running %s (%d stages)", runbook.name, len(runbook.stages))

        try:
            indices = await self._build_indices()
        except RunbookError as exc:
            logger.error("Could not build name indices: %s", exc)
            result.success = False
            result.error = exc
            result.duration_ms = _elapsed_ms(start_ns)
            return result

        for report, stage in zip(result.stages, runbook.stages):
            await self._run_stage(stage, report, indices)
            if report.state is StageState.FAILED:
                result.success = False
                result.failed_stage = stage.name
                result.failed_action = stage.action
                result.error = report.error
                break
            result.stages_completed += 1

        set_stage_context(None)
        result.duration_ms = _elapsed_ms(start_ns)
        if result.success:
            logger.info(
                "Finished %s: %d stages in %dms",
                runbook.name, result.stages_completed, result.duration_ms,
            )
        else:
            logger.error(
                "Stopped %s at stage '%s' after %d completed stages",
                runbook.name, result.failed_stage, result.stages_completed,
            )
        return result

    async def _build_indices(self) -> dict[Namespace, NameIndex]:
        return {
            Namespace.BUILD: await build_index(self._client),
            Namespace.DEPLOYMENT: await deployment_index(self._client),
        }

    async def _run_stage(
        self,
        stage: Stage,
        report: StageReport,
        indices: dict[Namespace, NameIndex],
    ) -> None:
        set_stage_context(stage.name, stage.action.value)
        report.state = StageState.RUNNING
        stage_start = time.monotonic_ns()
        logger.info("running %s stage: %s", stage.action.value, stage.name)

        namespace = stage.action.namespace
        try:
            report.identifiers = resolve(stage.targets, indices[namespace], namespace)
            await dispatch(self._client, stage.action, report.identifiers)
        except RunbookError as exc:
            error = StageFailedError(stage.name, stage.action)
            error.__cause__ = exc
            report.state = StageState.FAILED
            report.error = error
            report.duration_ms = _elapsed_ms(stage_start)
            logger.error("%s stage '%s' failed: %s", stage.action.value, stage.name, exc)
            return

        report.state = StageState.COMPLETED
        report.duration_ms = _elapsed_ms(stage_start)
        logger.info(
            "finished %s stage: %s (%d targets, %dms)",
            stage.action.value, stage.name, len(report.identifiers), report.duration_ms,
        )


async def run_stages(client: BaseMonitorClient, stages: Sequence[Stage], name: str = "runbook") -> RunResult:
    """Run stages and raise the failure, if any.

    Raises:
        RunbookError: StageFailedError for a failed stage, or
            RemoteListingError if an index could not be built.
    """
    result = await StageRunner(client).run(RunBook(name=name, stage=tuple(stages)))
    result.raise_for_failure()
    return result


def _elapsed_ms(start_ns: int) -> int:
    return (time.monotonic_ns() - start_ns) // 1_000_000
