# src/client/models.py — v1
"""Remote Monitor API types: ResourceSummary, DeploymentListItem, Update.

Only the fields the executor reads are declared; everything else the
server returns is ignored.
"""

from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class ResourceSummary(BaseModel):
    """Name and identifier of a listed build or deployment."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str


class DeploymentListItem(BaseModel):
    """Entry of the deployment listing: the deployment plus container state."""

    model_config = ConfigDict(extra="ignore")

    deployment: ResourceSummary
    state: str | None = None
    container: dict[str, Any] | None = None


class Log(BaseModel):
    """One step of an operation, as recorded by the remote service."""

    model_config = ConfigDict(extra="ignore")

    stage: str = ""
    command: str = ""
    stdout: str = ""
    stderr: str = ""
    success: bool = True


class Update(BaseModel):
    """Outcome of one remote operation.

    ``success = false`` means the service accepted the request but the
    operation itself did not succeed; ``logs`` carries the detail.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    success: bool
    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    operation: str = ""
    status: str | None = None
    logs: list[Log] = Field(default_factory=list)

    @property
    def detail(self) -> str:
        """Last failing log line, or empty if the logs carry nothing useful."""
        for log in reversed(self.logs):
            if not log.success:
                return log.stderr or log.stdout or log.stage
        return ""
