# src/engine/__init__.py — v1
"""Stage execution engine: name resolver, action dispatcher, stage runner."""

from runbook.engine.runner import RunResult, StageRunner, StageState, run_stages

__all__ = ["RunResult", "StageRunner", "StageState", "run_stages"]
