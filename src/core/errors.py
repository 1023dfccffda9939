# src/core/errors.py — v1
"""Error taxonomy for run-book execution.

Every layer wraps the error it receives with its own context using
``raise ... from ...`` so the final report reads as a chain from the
stage down to the root cause (see format_error_chain).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from runbook.core.models import ActionKind, Namespace


class RunbookError(Exception):
    """Base class for every error raised by the run-book executor."""


class ConfigError(RunbookError):
    """Credentials or run-book document is unreadable or malformed."""


class ClientInitError(RunbookError):
    """Could not establish an authenticated session with the remote service."""


class RemoteListingError(RunbookError):
    """Listing resources to build a NameIndex failed."""

    def __init__(self, namespace: Namespace) -> None:
        self.namespace = namespace
        super().__init__(f"failed to list {namespace.value}s to build name index")


class NameNotFoundError(RunbookError):
    """A target name is absent from the applicable NameIndex."""

    def __init__(self, name: str, namespace: Namespace | None = None) -> None:
        self.name = name
        self.namespace = namespace
        where = f" in {namespace.value} index" if namespace is not None else ""
        super().__init__(f"no id found for name {name}{where}")


class InvocationError(RunbookError):
    """A per-target remote invocation failed.

    ``kind`` is ``"transport"`` when the call itself raised (the original
    exception is chained as ``__cause__``) and ``"unsuccessful"`` when the
    remote service answered with ``success = false``.
    """

    kind = "transport"

    def __init__(self, action: ActionKind, identifier: str, message: str | None = None) -> None:
        self.action = action
        self.identifier = identifier
        super().__init__(message or f"failed to {action.verb} {identifier}")


class OperationUnsuccessfulError(InvocationError):
    """The remote service reported the operation as unsuccessful."""

    kind = "unsuccessful"

    def __init__(self, action: ActionKind, identifier: str) -> None:
        super().__init__(
            action,
            identifier,
            f"failed to {action.verb} {identifier}. "
            "operation unsuccessful, see monitor update",
        )


class StageFailedError(RunbookError):
    """A stage failed during resolution or dispatch; wraps the cause."""

    def __init__(self, stage: str, action: ActionKind) -> None:
        self.stage = stage
        self.action = action
        super().__init__(f"{action.value} stage '{stage}' failed")


def iter_error_chain(exc: BaseException) -> list[BaseException]:
    """Return exc followed by its causes, outermost first."""
    chain: list[BaseException] = []
    current: BaseException | None = exc
    while current is not None and current not in chain:
        chain.append(current)
        if current.__cause__ is not None:
            current = current.__cause__
        elif not current.__suppress_context__:
            current = current.__context__
        else:
            current = None
    return chain


def format_error_chain(exc: BaseException) -> str:
    """Render an exception and its causes as a human-readable report."""
    chain = iter_error_chain(exc)
    lines = [f"Error: {_describe(chain[0])}"]
    if len(chain) > 1:
        lines.append("")
        lines.append("Caused by:")
        for idx, cause in enumerate(chain[1:]):
            lines.append(f"    {idx}: {_describe(cause)}")
    return "\n".join(lines)


def _describe(exc: BaseException) -> str:
    text = str(exc)
    if isinstance(exc, RunbookError):
        return text
    return f"{type(exc).__name__}: {text}" if text else type(exc).__name__
