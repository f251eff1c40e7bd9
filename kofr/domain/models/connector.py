"""Connector DTOs for the Connect REST payloads and the CLI listings."""
from __future__ import annotations

from enum import Enum
from typing import List, Literal

from pydantic import BaseModel, ConfigDict, Field

from kofr.domain.models.task import Task, TaskStatus
from kofr.domain.models.types import ConnectorConfig, ConnectorName


class ConnectorType(str, Enum):
    """``sink``/``source`` on the wire; upper-cased when shown to humans."""

    SINK = "sink"
    SOURCE = "source"

    def __str__(self) -> str:
        return self.value.upper()


class ConnectorState(str, Enum):
    RUNNING = "RUNNING"
    PAUSED = "PAUSED"
    FAILED = "FAILED"
    UNASSIGNED = "UNASSIGNED"
    RESTARTING = "RESTARTING"

    def __str__(self) -> str:
        return self.value


class CreateConnector(BaseModel):
    """Body of ``POST /connectors``."""

    name: ConnectorName
    config: ConnectorConfig = Field(default_factory=dict)


class Connector(BaseModel):
    """Connector info as returned by create and config replacement."""

    model_config = ConfigDict(populate_by_name=True)

    name: ConnectorName
    config: ConnectorConfig = Field(default_factory=dict)
    tasks: List[Task] = Field(default_factory=list)
    connector_type: ConnectorType = Field(..., alias="type")


class ConnectorStateInfo(BaseModel):
    """The ``connector`` block of a status payload."""

    state: ConnectorState
    worker_id: str
    trace: str | None = None


class ConnectorStatus(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: ConnectorName
    connector_state: ConnectorStateInfo = Field(..., alias="connector")
    tasks: List[TaskStatus] = Field(default_factory=list)
    connector_type: ConnectorType = Field(..., alias="type")


class DescribeConnector(BaseModel):
    """Status and config of one connector merged for display."""

    model_config = ConfigDict(populate_by_name=True)

    name: ConnectorName
    config: ConnectorConfig
    state: ConnectorState
    worker_id: str
    tasks: List[TaskStatus]
    connector_type: ConnectorType = Field(..., alias="type")

    @classmethod
    def from_parts(
        cls, status: ConnectorStatus, config: ConnectorConfig
    ) -> "DescribeConnector":
        return cls(
            name=status.name,
            config=config,
            state=status.connector_state.state,
            worker_id=status.connector_state.worker_id,
            tasks=status.tasks,
            connector_type=status.connector_type,
        )


class VerboseConnector(BaseModel):
    """One row of ``kofr list``; derived from ``?expand=status``."""

    name: ConnectorName
    state: ConnectorState
    tasks: int = Field(..., ge=0)
    type: ConnectorType
    worker_id: str


class RestartOutcome(BaseModel):
    """Result of ``POST /connectors/{name}/restart``.

    The HTTP status decides the shape: 200/204 are a plain restart, 202 means
    the restart is in flight and carries the current status, anything else is
    informational text from the server.
    """

    kind: Literal["restarted", "accepted", "info"]
    status: ConnectorStatus | None = None
    message: str | None = None
