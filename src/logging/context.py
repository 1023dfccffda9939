# src/logging/context.py — v1
"""Contextual logging support — attach run, stage and target to log records.

The dispatcher sets the target inside each concurrent task; asyncio copies
the context per task, so sibling invocations never see each other's target.
"""

from __future__ import annotations

import contextvars
from dataclasses import dataclass
from typing import Any

# Context variables for structured logging, set per run-book execution.
_runbook: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "runbook", default=None
)
_run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "run_id", default=None
)
_stage: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "stage", default=None
)
_action: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "action", default=None
)
_target: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "target", default=None
)


@dataclass
class LogContext:
    """Immutable snapshot of current logging context."""

    runbook: str | None = None
    run_id: str | None = None
    stage: str | None = None
    action: str | None = None
    target: str | None = None

    def as_dict(self) -> dict[str, Any]:
        """Return non-None fields as dict for JSON log injection."""
        return {k: v for k, v in self.__dict__.items() if v is not None}


def get_context() -> LogContext:
    """Snapshot current context variables."""
    return LogContext(
        runbook=_runbook.get(),
        run_id=_run_id.get(),
        stage=_stage.get(),
        action=_action.get(),
        target=_target.get(),
    )


def set_run_context(runbook: str, run_id: str) -> None:
    """Set run-level context (called once per run-book execution)."""
    _runbook.set(runbook)
    _run_id.set(run_id)


def set_stage_context(stage: str | None, action: str | None = None) -> None:
    """Set stage-level context (called per stage)."""
    _stage.set(stage)
    _action.set(action)


def set_target_context(target: str | None) -> None:
    """Set the target identifier of the current invocation task."""
    _target.set(target)


def clear_context() -> None:
    """Reset all context variables."""
    _runbook.set(None)
    _run_id.set(None)
    _stage.set(None)
    _action.set(None)
    _target.set(None)
