"""Task DTOs returned by the ``/connectors/{name}/tasks`` sub-resources."""
from __future__ import annotations

from enum import Enum
from typing import Dict

from pydantic import BaseModel, ConfigDict, Field

from kofr.domain.models.types import ConnectorName


class TaskState(str, Enum):
    RUNNING = "RUNNING"
    FAILED = "FAILED"
    PAUSED = "PAUSED"
    RESTARTING = "RESTARTING"
    LOST = "LOST"
    CREATED = "CREATED"
    DEAD = "DEAD"
    UNASSIGNED = "UNASSIGNED"

    def __str__(self) -> str:
        return self.value


class Task(BaseModel):
    """Identity of one task: owning connector plus integer index."""

    model_config = ConfigDict(populate_by_name=True)

    connector: ConnectorName
    id: int = Field(..., ge=0, alias="task")


class TaskInfo(BaseModel):
    """One element of the task listing (identity plus task-level config)."""

    id: Task
    config: Dict[str, str] = Field(default_factory=dict)


class TaskStatus(BaseModel):
    id: int = Field(..., ge=0)
    state: TaskState
    worker_id: str
    trace: str | None = None
