# src/engine/dispatcher.py — v1
"""Action dispatcher — fan one action out over a stage's identifiers.

Aggregation law:
  1. Every invocation is started without waiting on any other.
  2. All of them run to completion; a failure never cancels a sibling.
  3. Outcomes are collected in identifier input order, then scanned; the
     first failure in that order is the one reported, whatever the
     completion timing was. Later failures are logged, not raised.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from runbook.core.errors import InvocationError, OperationUnsuccessfulError
from runbook.core.models import ActionKind
from runbook.logging.context import set_target_context

if TYPE_CHECKING:
    from runbook.client.base_client import BaseMonitorClient
    from runbook.client.models import Update

logger = logging.getLogger(__name__)

Operation = Callable[[str], Awaitable["Update"]]


@dataclass(frozen=True)
class Outcome:
    """Result of one invocation: success, or the error it produced."""

    identifier: str
    error: InvocationError | None = None

    @property
    def success(self) -> bool:
        return self.error is None


def operation_for(client: BaseMonitorClient, action: ActionKind) -> Operation:
    """Select the remote operation an action invokes per identifier."""
    match action:
        case ActionKind.BUILD:
            return client.build
        case ActionKind.DEPLOY:
            return client.deploy_container
        case ActionKind.START_CONTAINER:
            return client.start_container
        case ActionKind.STOP_CONTAINER:
            return client.stop_container
        case ActionKind.DESTROY_CONTAINER:
            return client.remove_container
    raise ValueError(f"Unsupported action: {action!r}")


async def collect_outcomes(
    client: BaseMonitorClient,
    action: ActionKind,
    identifiers: Sequence[str],
) -> list[Outcome]:
    """Run the action on every identifier concurrently; outcomes in input order."""
    operation = operation_for(client, action)
    return list(
        await asyncio.gather(*(_invoke(operation, action, ident) for ident in identifiers))
    )


def first_failure(outcomes: Sequence[Outcome]) -> InvocationError | None:
    """Return the error of the first failed outcome in sequence order."""
    for outcome in outcomes:
        if outcome.error is not None:
            return outcome.error
    return None


async def dispatch(
    client: BaseMonitorClient,
    action: ActionKind,
    identifiers: Sequence[str],
) -> None:
    """Run action on all identifiers; raise the first failure in input order.

    Raises:
        InvocationError: If any invocation failed (transport error or an
            unsuccessful update).
    """
    outcomes = await collect_outcomes(client, action, identifiers)
    error = first_failure(outcomes)
    if error is None:
        return

    suppressed = [o.identifier for o in outcomes if o.error is not None and o.error is not error]
    if suppressed:
        logger.warning(
            "%s also failed for %s; reporting %s only",
            action.value, ", ".join(suppressed), error.identifier,
        )
    raise error


async def trigger_builds(client: BaseMonitorClient, build_ids: Sequence[str]) -> None:
    await dispatch(client, ActionKind.BUILD, build_ids)


async def deploy_containers(client: BaseMonitorClient, deployment_ids: Sequence[str]) -> None:
    await dispatch(client, ActionKind.DEPLOY, deployment_ids)


async def start_containers(client: BaseMonitorClient, deployment_ids: Sequence[str]) -> None:
    await dispatch(client, ActionKind.START_CONTAINER, deployment_ids)


async def stop_containers(client: BaseMonitorClient, deployment_ids: Sequence[str]) -> None:
    await dispatch(client, ActionKind.STOP_CONTAINER, deployment_ids)


async def destroy_containers(client: BaseMonitorClient, deployment_ids: Sequence[str]) -> None:
    await dispatch(client, ActionKind.DESTROY_CONTAINER, deployment_ids)


async def _invoke(operation: Operation, action: ActionKind, identifier: str) -> Outcome:
    """Run one invocation, turning every failure into an Outcome."""
    set_target_context(identifier)
    try:
        update = await operation(identifier)
        succeeded = update.success
        detail = "" if succeeded else update.detail
    except Exception as exc:
        error = InvocationError(action, identifier)
        error.__cause__ = exc
        logger.error("%s failed for %s: %s", action.value, identifier, exc)
        return Outcome(identifier, error)

    if not succeeded:
        logger.error(
            "%s reported unsuccessful for %s%s",
            action.value, identifier, f": {detail}" if detail else "",
        )
        return Outcome(identifier, OperationUnsuccessfulError(action, identifier))

    logger.debug("%s succeeded for %s", action.value, identifier)
    return Outcome(identifier, None)
