# src/main.py — v1
"""CLI entry point — run and show commands.

Usage:
    runbook run <runbook.toml> [creds.toml] [--yes]
    runbook show <runbook.toml>

Exit code is 0 only when every stage succeeded; any failure prints the
cause chain on stderr and exits 1.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from runbook.config.settings import ConfigurationError, Settings, load_settings
from runbook.core.errors import RunbookError, format_error_chain
from runbook.core.models import RunBook
from runbook.logging.logger import setup_logging
from runbook.version import __version__

if TYPE_CHECKING:
    from runbook.engine.runner import RunResult

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValueError) as exc:
        print(f"Error: invalid configuration: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        level=settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except RunbookError as exc:
        print(format_error_chain(exc), file=sys.stderr)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="runbook",
        description=f"runbook v{__version__} — staged Monitor run-book executor",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument(
        "--log-format", choices=("text", "json"), default=None,
        help="Log output format (default: RUNBOOK_LOG_FORMAT or text)",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- run ---
    p_run = subparsers.add_parser("run", help="Execute a run-book")
    p_run.add_argument("path", type=Path, help="Path to run-book file")
    p_run.add_argument(
        "creds", type=Path, nargs="?", default=None,
        help="Path to credentials file (default: RUNBOOK_CREDS_PATH or ./creds.toml)",
    )
    p_run.add_argument(
        "-y", "--yes", action="store_true",
        help="Run without waiting for ENTER",
    )
    p_run.set_defaults(func=_cmd_run)

    # --- show ---
    p_show = subparsers.add_parser("show", help="Print the stages of a run-book")
    p_show.add_argument("path", type=Path, help="Path to run-book file")
    p_show.set_defaults(func=_cmd_show)

    return parser


def _load_settings(args: argparse.Namespace) -> Settings:
    overrides: dict[str, object] = {}
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    if args.log_format:
        overrides["log_format"] = args.log_format
    return load_settings(**overrides)


async def _cmd_run(args: argparse.Namespace, settings: Settings) -> int:
    """Parse inputs, connect, confirm, then execute every stage."""
    from runbook.client.client_factory import connect_client
    from runbook.config.loader import parse_creds_file, parse_runbook_file
    from runbook.core.errors import ConfigError
    from runbook.engine.runner import StageRunner

    creds_path: Path = args.creds or settings.creds_path
    try:
        credentials = parse_creds_file(creds_path)
    except ConfigError as exc:
        raise ConfigError("failed to parse credentials file") from exc

    client = await connect_client(credentials, settings)
    async with client:
        try:
            runbook = parse_runbook_file(args.path)
        except ConfigError as exc:
            raise ConfigError("failed to parse run-book file") from exc

        logger.info("%s", runbook.name)
        logger.info("path: %s", args.path)
        _print_plan(runbook)

        if settings.confirm and not args.yes and not _wait_for_enter():
            logger.error("Run not confirmed, nothing executed")
            return 1

        result = await StageRunner(client).run(runbook)

    _print_run_summary(result)
    if not result.success:
        err = RunbookError("failed during a stage. terminating run.")
        err.__cause__ = result.error
        print(format_error_chain(err), file=sys.stderr)
        return 1

    logger.info("finished successfully")
    return 0


async def _cmd_show(args: argparse.Namespace, settings: Settings) -> int:
    """Print the parsed plan without contacting the remote service."""
    from runbook.config.loader import parse_runbook_file

    runbook = parse_runbook_file(args.path)
    _print_plan(runbook)
    return 0


def _wait_for_enter() -> bool:
    """Block until ENTER; False when stdin is closed."""
    print("\nPress ENTER to RUN", flush=True)
    return bool(sys.stdin.readline())


def _print_plan(runbook: RunBook) -> None:
    """Print a human-readable listing of the stages."""
    print(f"\nRun-book: {runbook.name}")
    if not runbook.stages:
        print("  (no stages)")
    for idx, stage in enumerate(runbook.stages, start=1):
        targets = ", ".join(stage.targets) if stage.targets else "(none)"
        print(f"  {idx}. {stage.name} [{stage.action.value}] -> {targets}")


def _print_run_summary(result: RunResult) -> None:
    """Print per-stage states of a RunResult."""
    print(f"\nRun {result.run_id} ({result.runbook}):")
    for report in result.stages:
        print(f"  {report.name:<24} {report.action.value:<18} {report.state.value}")
    print(f"  Completed:  {result.stages_completed}/{len(result.stages)}")
    print(f"  Duration:   {result.duration_ms}ms")


if __name__ == "__main__":
    sys.exit(main())
