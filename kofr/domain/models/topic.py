"""Active-topic payload of ``GET /connectors/{name}/topics``."""
from __future__ import annotations

from typing import Dict, List

from pydantic import BaseModel, Field, RootModel


class TopicsList(BaseModel):
    topics: List[str] = Field(default_factory=list)


class Topic(RootModel[Dict[str, TopicsList]]):
    """Mapping of connector name to the topics it has used."""

    def topics_for(self, connector: str) -> List[str]:
        entry = self.root.get(connector)
        return list(entry.topics) if entry else []
