"""Connector-plugin listing and config-validation DTOs."""
from __future__ import annotations

from typing import Any, Dict, Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict, Field


class ConnectorPlugin(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    class_name: str = Field(..., alias="class")
    type: str | None = None
    version: str | None = None


class ConfigValidation(BaseModel):
    """Answer of ``PUT /connector-plugins/{class}/config/validate``."""

    name: str
    error_count: int = Field(..., ge=0)
    groups: List[str] = Field(default_factory=list)
    configs: List[Dict[str, Any]] = Field(default_factory=list)

    def errors(self) -> Iterator[Tuple[str, List[str]]]:
        """Yield ``(config key, messages)`` for every entry that has errors."""
        for entry in self.configs:
            value = entry.get("value") or {}
            messages = value.get("errors") or []
            if messages:
                yield value.get("name", ""), list(messages)
