"""Use-case coordination on top of the Connect REST façade."""
from __future__ import annotations

import json
import logging
from typing import Any, Callable, Dict, Mapping

from kofr.core.exceptions import DecodeError, MissingConnectorClassError
from kofr.domain.decoder import decode_model
from kofr.domain.models.connector import (
    Connector,
    CreateConnector,
    DescribeConnector,
)
from kofr.domain.models.plugin import ConfigValidation
from kofr.domain.models.types import ConnectorConfig
from kofr.infra.connect.client import ConnectClient

logger = logging.getLogger(__name__)

CONNECTOR_CLASS_KEY = "connector.class"


def parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as exc:
        raise DecodeError("$", "valid JSON", str(exc)) from exc


def parse_create_payload(text: str) -> CreateConnector:
    """Parse a ``{"name": ..., "config": {...}}`` document."""
    return decode_model(CreateConnector, parse_json(text))


def parse_config(text: str) -> ConnectorConfig:
    """Parse a flat string-to-string config document."""
    return decode_model(Dict[str, str], parse_json(text))


def render_config(config: Mapping[str, str]) -> str:
    return json.dumps(dict(config), indent=2, sort_keys=True)


class ConnectorService:
    """Stateless wrapper combining client calls and the CLI's business rules."""

    def __init__(self, client: ConnectClient) -> None:
        self._client = client

    # ------------------------------------------------------------------ #
    # Queries                                                             #
    # ------------------------------------------------------------------ #
    def describe(self, name: str) -> DescribeConnector:
        """Status and config of ``name``; a 404 on either call fails it all."""
        status = self._client.get_connector_status(name)
        config = self._client.get_connector_config(name)
        return DescribeConnector.from_parts(status, config)

    # ------------------------------------------------------------------ #
    # Commands                                                            #
    # ------------------------------------------------------------------ #
    def create(self, payload: CreateConnector) -> Connector:
        return self._client.create_connector(payload.name, payload.config)

    def edit(self, name: str, edit_fn: Callable[[str], str]) -> Connector | None:
        """Let ``edit_fn`` rewrite the current config; PUT it if it changed.

        Returns ``None`` when the edited document equals the original.
        """
        old_config = self._client.get_connector_config(name)
        new_config = parse_config(edit_fn(render_config(old_config)))
        if new_config == old_config:
            logger.debug("edit of %s left the config unchanged", name)
            return None
        return self._client.put_connector_config(name, new_config)

    def patch(self, name: str, changes: Mapping[str, str]) -> Connector | None:
        """Merge ``changes`` into the current config and PUT the result.

        Returns ``None`` when the merge changes nothing.
        """
        old_config = self._client.get_connector_config(name)
        new_config = {**old_config, **changes}
        if new_config == old_config:
            return None
        return self._client.put_connector_config(name, new_config)

    def validate(
        self, config: ConnectorConfig, class_name: str | None = None
    ) -> ConfigValidation:
        """Validate ``config`` against a plugin.

        The plugin is ``class_name`` when given, else ``connector.class``
        from the config itself.
        """
        plugin = class_name or config.get(CONNECTOR_CLASS_KEY)
        if not plugin:
            raise MissingConnectorClassError()
        return self._client.validate_config(plugin, config)
