# src/engine/resolver.py — v1
"""Name resolver — map human-readable resource names to remote ids.

One NameIndex per namespace (builds, deployments), built from a single
listing call. Indices are snapshots: resources created after listing are
not visible to them.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import TYPE_CHECKING

from runbook.core.errors import NameNotFoundError, RemoteListingError
from runbook.core.models import NameIndex, Namespace

if TYPE_CHECKING:
    from runbook.client.base_client import BaseMonitorClient
    from runbook.client.models import ResourceSummary

logger = logging.getLogger(__name__)


async def build_index(client: BaseMonitorClient) -> NameIndex:
    """List all builds and fold them into a name -> id mapping.

    Raises:
        RemoteListingError: If the listing call fails.
    """
    try:
        builds = await client.list_builds()
    except Exception as exc:
        raise RemoteListingError(Namespace.BUILD) from exc
    return _fold(builds, Namespace.BUILD)


async def deployment_index(client: BaseMonitorClient) -> NameIndex:
    """List all deployments and fold them into a name -> id mapping.

    Raises:
        RemoteListingError: If the listing call fails.
    """
    try:
        items = await client.list_deployments()
    except Exception as exc:
        raise RemoteListingError(Namespace.DEPLOYMENT) from exc
    return _fold((item.deployment for item in items), Namespace.DEPLOYMENT)


def resolve(
    names: Sequence[str],
    index: NameIndex,
    namespace: Namespace | None = None,
) -> list[str]:
    """Resolve names to ids, preserving input order and duplicates.

    All-or-nothing: the first unknown name raises and nothing is returned.

    Raises:
        NameNotFoundError: If any name is absent from the index.
    """
    ids: list[str] = []
    for name in names:
        try:
            ids.append(index[name])
        except KeyError:
            raise NameNotFoundError(name, namespace) from None
    return ids


def _fold(resources: Iterable[ResourceSummary], namespace: Namespace) -> NameIndex:
    index: NameIndex = {}
    for resource in resources:
        if resource.name in index and index[resource.name] != resource.id:
            logger.warning(
                "Duplicate %s name %r (ids %s, %s); using the later one",
                namespace.value, resource.name, index[resource.name], resource.id,
            )
        index[resource.name] = resource.id
    logger.debug("Built %s index with %d entries", namespace.value, len(index))
    return index
