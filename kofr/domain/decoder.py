"""Decoders turning Connect REST JSON into domain models.

The ``?expand=status`` listing is not formally specified upstream, so it is
walked one key at a time: every step checks the key exists and has the JSON
kind we expect, and a failure names the exact dotted path that broke. The
better-behaved payloads are validated with pydantic and the first error
location is reported the same way.
"""
from __future__ import annotations

from enum import Enum
from typing import Any, List, Type, TypeVar

from pydantic import TypeAdapter, ValidationError

from kofr.core.exceptions import DecodeError
from kofr.domain.models.connector import (
    ConnectorState,
    ConnectorType,
    VerboseConnector,
)

E = TypeVar("E", bound=Enum)
T = TypeVar("T")

_JSON_KINDS = {
    dict: "object",
    list: "array",
    str: "string",
    bool: "boolean",
    int: "number",
    float: "number",
    type(None): "null",
}


def json_kind(value: Any) -> str:
    """Name of the JSON kind of a decoded value."""
    return _JSON_KINDS.get(type(value), type(value).__name__)


# --------------------------------------------------------------------------- #
# Step helpers                                                                #
# --------------------------------------------------------------------------- #
def _get(obj: dict, key: str, path: str) -> Any:
    if key not in obj:
        raise DecodeError(f"{path}.{key}", "key to be present", "no such key")
    return obj[key]


def expect_object(obj: dict, key: str, path: str) -> dict:
    value = _get(obj, key, path)
    if not isinstance(value, dict):
        raise DecodeError(f"{path}.{key}", "object", json_kind(value))
    return value


def expect_array(obj: dict, key: str, path: str) -> list:
    value = _get(obj, key, path)
    if not isinstance(value, list):
        raise DecodeError(f"{path}.{key}", "array", json_kind(value))
    return value


def expect_str(obj: dict, key: str, path: str) -> str:
    value = _get(obj, key, path)
    if not isinstance(value, str):
        raise DecodeError(f"{path}.{key}", "string", json_kind(value))
    return value


def expect_enum(obj: dict, key: str, path: str, enum: Type[E]) -> E:
    """Parse a string against a closed enum; unknown tokens are errors."""
    token = expect_str(obj, key, path)
    try:
        return enum(token)
    except ValueError:
        allowed = "|".join(member.value for member in enum)
        raise DecodeError(f"{path}.{key}", f"one of {allowed}", repr(token)) from None


# --------------------------------------------------------------------------- #
# Verbose listing                                                             #
# --------------------------------------------------------------------------- #
def decode_verbose_connector(name: str, value: Any) -> VerboseConnector:
    """Decode one ``{name: {"status": {...}}}`` entry."""
    if not isinstance(value, dict):
        raise DecodeError(name, "object", json_kind(value))

    status = expect_object(value, "status", name)
    status_path = f"{name}.status"
    tasks = expect_array(status, "tasks", status_path)
    connector = expect_object(status, "connector", status_path)
    connector_path = f"{status_path}.connector"
    state = expect_enum(connector, "state", connector_path, ConnectorState)
    worker_id = expect_str(connector, "worker_id", connector_path)
    connector_type = expect_enum(status, "type", status_path, ConnectorType)

    return VerboseConnector(
        name=name,
        state=state,
        tasks=len(tasks),
        type=connector_type,
        worker_id=worker_id,
    )


def decode_verbose_connectors(payload: Any) -> List[VerboseConnector]:
    """Decode the body of ``GET /connectors?expand=status``.

    An empty object or an empty array (what some workers answer when nothing
    is deployed) is an empty listing.

    Raises
    ------
    DecodeError
        On the first key or JSON kind that does not match; no partial rows.
    """
    if payload == [] or payload == {}:
        return []
    if not isinstance(payload, dict):
        raise DecodeError("$", "object keyed by connector name", json_kind(payload))
    return [decode_verbose_connector(name, value) for name, value in payload.items()]


# --------------------------------------------------------------------------- #
# Schema-validated payloads                                                   #
# --------------------------------------------------------------------------- #
def error_path(exc: ValidationError) -> str:
    """Dotted location of the first pydantic error (``$`` for the root)."""
    errors = exc.errors()
    if not errors:
        return "$"
    loc = [str(part) for part in errors[0].get("loc", ())]
    return ".".join(loc) if loc else "$"


def decode_model(tp: Type[T] | Any, payload: Any) -> T:
    """Validate ``payload`` against ``tp`` (a model or any type pydantic knows).

    Raises
    ------
    DecodeError
        With the path of the first validation error.
    """
    try:
        return TypeAdapter(tp).validate_python(payload)
    except ValidationError as exc:
        first = exc.errors()[0] if exc.errors() else {}
        if first.get("type") == "missing":
            expected, found = "key to be present", "no such key"
        else:
            expected = first.get("msg", "valid value")
            found = json_kind(first.get("input"))
        raise DecodeError(error_path(exc), expected, found) from exc
