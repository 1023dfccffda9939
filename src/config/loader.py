# src/config/loader.py — v1
"""Run-book and credentials document parsing.

Documents are TOML by default; a ``.json`` suffix selects JSON. Every
failure (unreadable file, syntax error, schema violation) is raised as
ConfigError naming the offending path, with the parser error chained.

Run-book shape::

    name = "release"

    [[stage]]
    name = "build-all"
    action = "build"
    targets = ["svc-a", "svc-b"]
"""

from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from runbook.core.errors import ConfigError
from runbook.core.models import Credentials, RunBook

logger = logging.getLogger(__name__)

_M = TypeVar("_M", bound=BaseModel)


def parse_runbook_file(path: str | Path) -> RunBook:
    """Parse a run-book document into an immutable RunBook."""
    runbook = _load_model(Path(path), RunBook, "run-book")
    logger.debug("Parsed run-book %r with %d stages", runbook.name, len(runbook.stages))
    return runbook


def parse_creds_file(path: str | Path) -> Credentials:
    """Parse a credentials document ({url, username, secret})."""
    return _load_model(Path(path), Credentials, "credentials")


def _load_model(path: Path, model: type[_M], label: str) -> _M:
    data = _read_document(path, label)
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(f"failed to parse {label} file {path}: {_summarize(exc)}") from exc


def _read_document(path: Path, label: str) -> dict[str, Any]:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to read {label} file {path}") from exc

    try:
        if path.suffix.lower() == ".json":
            data = json.loads(contents)
        else:
            data = tomllib.loads(contents)
    except (tomllib.TOMLDecodeError, json.JSONDecodeError) as exc:
        raise ConfigError(f"failed to parse {label} file {path}") from exc

    if not isinstance(data, dict):
        raise ConfigError(f"failed to parse {label} file {path}: top level must be a table")
    return data


def _summarize(exc: ValidationError) -> str:
    """One line per field error: 'stage.0.action: Input should be ...'."""
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"])
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)
