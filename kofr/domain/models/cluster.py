"""Cluster contexts, the local configuration document and host health rows."""
from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from kofr.core.exceptions import ClusterNotFoundError, NoCurrentContextError


class ClusterContext(BaseModel):
    """A named group of equivalent Connect REST hosts."""

    name: str = Field(..., min_length=1)
    hosts: List[str]


class Configuration(BaseModel):
    """In-memory view of the YAML config file.

    ``file_path`` is where the document was loaded from and is never written
    into the document itself.
    """

    model_config = ConfigDict(populate_by_name=True)

    current_cluster: str | None = Field(default=None, alias="current-cluster")
    clusters: List[ClusterContext]
    file_path: Path = Field(default=Path(), exclude=True)

    @field_validator("clusters", mode="before")
    @classmethod
    def _null_clusters(cls, v):
        """A bare ``clusters:`` key means no clusters yet."""
        return [] if v is None else v

    def find(self, name: str) -> ClusterContext | None:
        for cluster in self.clusters:
            if cluster.name == name:
                return cluster
        return None

    def current_context(self) -> ClusterContext:
        """Return the cluster named by ``current-cluster``.

        Raises
        ------
        NoCurrentContextError
            If no cluster was ever selected.
        ClusterNotFoundError
            If the selected name has no matching cluster entry.
        """
        if self.current_cluster is None:
            raise NoCurrentContextError()
        cluster = self.find(self.current_cluster)
        if cluster is None:
            raise ClusterNotFoundError(self.current_cluster)
        return cluster

    def to_document(self) -> dict:
        """Return the persisted shape (``current-cluster`` first)."""
        return self.model_dump(mode="json", by_alias=True)


# --------------------------------------------------------------------------- #
# Health probing                                                              #
# --------------------------------------------------------------------------- #
class HostState(str, Enum):
    ONLINE = "Online"
    OFFLINE = "Offline"

    def __str__(self) -> str:
        return self.value


class HostStatus(BaseModel):
    """Liveness of one host; ``cluster_id`` is empty when unknown."""

    host: str
    state: HostState
    cluster_id: str = ""


class ClusterStatus(BaseModel):
    name: str
    hosts: List[HostStatus] = Field(default_factory=list)
    cluster_id: str = ""

    @property
    def online(self) -> List[HostStatus]:
        return [h for h in self.hosts if h.state is HostState.ONLINE]
