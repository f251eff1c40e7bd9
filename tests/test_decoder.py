"""Tests for the ?expand=status decoder and the schema-validated decoders."""
import copy
from typing import Dict

import pytest

from kofr.core.exceptions import DecodeError
from kofr.domain.decoder import decode_model, decode_verbose_connectors
from kofr.domain.models.connector import ConnectorState, ConnectorStatus, ConnectorType

ENTRY = {
    "sink-connector": {
        "status": {
            "name": "sink-connector",
            "connector": {"state": "RUNNING", "worker_id": "10.0.0.1:8083"},
            "tasks": [
                {"id": 0, "state": "RUNNING", "worker_id": "10.0.0.1:8083"},
                {"id": 1, "state": "FAILED", "worker_id": "10.0.0.2:8083", "trace": "boom"},
            ],
            "type": "sink",
        }
    }
}


def entry():
    return copy.deepcopy(ENTRY)


@pytest.mark.parametrize("payload", [{}, []])
def test_empty_listing_is_empty(payload):
    assert decode_verbose_connectors(payload) == []


def test_decodes_one_row():
    [row] = decode_verbose_connectors(entry())

    assert row.name == "sink-connector"
    assert row.state is ConnectorState.RUNNING
    assert row.tasks == 2
    assert row.type is ConnectorType.SINK
    assert row.worker_id == "10.0.0.1:8083"


def test_missing_state_names_the_path():
    payload = entry()
    del payload["sink-connector"]["status"]["connector"]["state"]

    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors(payload)

    assert exc_info.value.path == "sink-connector.status.connector.state"
    assert "sink-connector.status.connector.state" in str(exc_info.value)


@pytest.mark.parametrize(
    "mutate, path, expected",
    [
        (lambda p: p["sink-connector"].pop("status"), "sink-connector.status", "key to be present"),
        (lambda p: p["sink-connector"]["status"].update(tasks={}), "sink-connector.status.tasks", "array"),
        (lambda p: p["sink-connector"]["status"].update(connector=[]), "sink-connector.status.connector", "object"),
        (
            lambda p: p["sink-connector"]["status"]["connector"].update(worker_id=7),
            "sink-connector.status.connector.worker_id",
            "string",
        ),
        (lambda p: p["sink-connector"]["status"].pop("type"), "sink-connector.status.type", "key to be present"),
    ],
)
def test_wrong_shape_is_reported_with_path(mutate, path, expected):
    payload = entry()
    mutate(payload)

    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors(payload)

    assert exc_info.value.path == path
    assert exc_info.value.expected == expected


def test_unknown_state_is_not_defaulted():
    payload = entry()
    payload["sink-connector"]["status"]["connector"]["state"] = "SLEEPING"

    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors(payload)

    assert exc_info.value.found == "'SLEEPING'"


def test_type_is_case_sensitive():
    payload = entry()
    payload["sink-connector"]["status"]["type"] = "SINK"

    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors(payload)

    assert exc_info.value.path == "sink-connector.status.type"


def test_top_level_must_be_an_object():
    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors(["sink-connector"])

    assert exc_info.value.path == "$"


def test_entry_must_be_an_object():
    with pytest.raises(DecodeError) as exc_info:
        decode_verbose_connectors({"sink-connector": "RUNNING"})

    assert exc_info.value.path == "sink-connector"


def test_decode_model_status():
    status = decode_model(ConnectorStatus, entry()["sink-connector"]["status"])

    assert status.connector_state.state is ConnectorState.RUNNING
    assert status.tasks[1].trace == "boom"
    assert status.connector_type is ConnectorType.SINK


def test_decode_model_reports_nested_location():
    raw = entry()["sink-connector"]["status"]
    raw["tasks"][1]["state"] = "ASLEEP"

    with pytest.raises(DecodeError) as exc_info:
        decode_model(ConnectorStatus, raw)

    assert exc_info.value.path == "tasks.1.state"


def test_decode_model_missing_key():
    with pytest.raises(DecodeError) as exc_info:
        decode_model(ConnectorStatus, {"name": "x", "tasks": [], "type": "source"})

    assert exc_info.value.path == "connector"
    assert exc_info.value.found == "no such key"


def test_decode_model_config_values_must_be_strings():
    with pytest.raises(DecodeError) as exc_info:
        decode_model(Dict[str, str], {"tasks.max": 10})

    assert exc_info.value.path == "tasks.max"
