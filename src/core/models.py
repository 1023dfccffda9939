# src/core/models.py — v1
"""Shared Pydantic domain models: ActionKind, Stage, RunBook, Credentials.

No module redefines these types; all imports come from core.models.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator

# Mapping from resource name to remote-assigned identifier, one per namespace.
NameIndex = dict[str, str]

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")
_NON_ALNUM = re.compile(r"[^A-Za-z0-9]+")


def normalize_action_token(token: str) -> str:
    """Normalize an action token to the lower-snake-case vocabulary.

    >>> normalize_action_token("StartContainer")
    'start_container'
    >>> normalize_action_token("stop-container")
    'stop_container'
    """
    value = _CAMEL_BOUNDARY.sub("_", token.strip())
    value = _NON_ALNUM.sub("_", value)
    return value.strip("_").lower()


class Namespace(str, Enum):
    """Resolution namespace a target name is looked up in."""

    BUILD = "build"
    DEPLOYMENT = "deployment"


class ActionKind(str, Enum):
    """Closed set of operations a stage may perform."""

    BUILD = "build"
    DEPLOY = "deploy"
    START_CONTAINER = "start_container"
    STOP_CONTAINER = "stop_container"
    DESTROY_CONTAINER = "destroy_container"

    @classmethod
    def parse(cls, token: str) -> ActionKind:
        """Parse a free-form action token (case and punctuation insensitive)."""
        return cls(normalize_action_token(token))

    @property
    def namespace(self) -> Namespace:
        """Namespace that targets of this action resolve against."""
        match self:
            case ActionKind.BUILD:
                return Namespace.BUILD
            case (
                ActionKind.DEPLOY
                | ActionKind.START_CONTAINER
                | ActionKind.STOP_CONTAINER
                | ActionKind.DESTROY_CONTAINER
            ):
                return Namespace.DEPLOYMENT

    @property
    def verb(self) -> str:
        """Human phrase used in diagnostics ("failed to <verb> <id>")."""
        return self.value.replace("_", " ")

    def __str__(self) -> str:
        return self.value


class Stage(BaseModel):
    """One named unit of a run-book: one action over a set of targets."""

    model_config = ConfigDict(frozen=True)

    name: str
    action: ActionKind
    targets: tuple[str, ...]

    @field_validator("action", mode="before")
    @classmethod
    def _normalize_action(cls, v: Any) -> Any:
        if isinstance(v, str):
            return normalize_action_token(v)
        return v


class RunBook(BaseModel):
    """Ordered stage sequence supplied as the plan for one invocation."""

    model_config = ConfigDict(frozen=True)

    name: str
    # Only the document key is accepted; a stray `stages` key is ignored, not read.
    stages: tuple[Stage, ...] = Field(alias="stage")


class Credentials(BaseModel):
    """Monitor core URL and API secret used to open a session."""

    url: str
    username: str
    secret: SecretStr
