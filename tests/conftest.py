"""Shared fixtures: an in-memory Kafka Connect worker behind httpx.MockTransport."""
from __future__ import annotations

import json
import re
from typing import Callable, Dict, List, Tuple

import httpx
import pytest
import yaml

from kofr.infra.connect.client import ConnectClient


def _error(status: int, message: str) -> httpx.Response:
    return httpx.Response(status, json={"error_code": status, "message": message})


class FakeConnect:
    """Just enough of the Connect REST API to exercise the client."""

    def __init__(self, cluster_id: str = "kofr-test-cluster") -> None:
        self.cluster_id = cluster_id
        self.configs: Dict[str, Dict[str, str]] = {}
        self.states: Dict[str, str] = {}
        self.topics: Dict[str, List[str]] = {}
        self.requests: List[httpx.Request] = []
        self.restart_response: Tuple[int, object] = (204, None)

    # ---------- helpers -----------------------------------------------------

    def add_connector(self, name: str, config: Dict[str, str]) -> None:
        self.configs[name] = {**config, "name": name}
        self.states[name] = "RUNNING"
        self.topics[name] = []

    @staticmethod
    def connector_type(name: str) -> str:
        return "sink" if "sink" in name.lower() else "source"

    def info(self, name: str) -> dict:
        return {
            "name": name,
            "config": self.configs[name],
            "tasks": [{"connector": name, "task": 0}],
            "type": self.connector_type(name),
        }

    def status(self, name: str) -> dict:
        return {
            "name": name,
            "connector": {"state": self.states[name], "worker_id": "127.0.0.1:8083"},
            "tasks": [{"id": 0, "state": self.states[name], "worker_id": "127.0.0.1:8083"}],
            "type": self.connector_type(name),
        }

    # ---------- routing -----------------------------------------------------

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        method, path = request.method, request.url.path.rstrip("/") or "/"

        if path == "/" and method == "GET":
            return httpx.Response(
                200,
                json={"version": "3.6.0", "commit": "abc", "kafka_cluster_id": self.cluster_id},
            )
        if path == "/connectors":
            return self._collection(request)
        if path == "/connector-plugins" and method == "GET":
            return httpx.Response(
                200,
                json=[
                    {"class": "org.example.FileSink", "type": "sink", "version": "1.0"},
                    {"class": "org.example.FileSource", "type": "source", "version": "1.0"},
                ],
            )
        m = re.fullmatch(r"/connector-plugins/([^/]+)/config/validate", path)
        if m and method == "PUT":
            return self._validate(m.group(1), json.loads(request.content))
        m = re.fullmatch(r"/connectors/([^/]+)(/.*)?", path)
        if m:
            return self._connector(request, m.group(1), m.group(2) or "")
        return _error(404, f"no route for {method} {path}")

    def _collection(self, request: httpx.Request) -> httpx.Response:
        if request.method == "POST":
            body = json.loads(request.content)
            name = body["name"]
            if name in self.configs:
                return _error(409, f"Connector {name} already exists")
            self.add_connector(name, body.get("config", {}))
            return httpx.Response(201, json=self.info(name))
        if request.url.params.get("expand") == "status":
            return httpx.Response(
                200, json={n: {"status": self.status(n)} for n in self.configs}
            )
        return httpx.Response(200, json=list(self.configs))

    def _connector(self, request: httpx.Request, name: str, rest: str) -> httpx.Response:
        method = request.method
        if name not in self.configs:
            if method == "PUT" and rest == "/config":
                self.add_connector(name, json.loads(request.content))
                return httpx.Response(201, json=self.info(name))
            return _error(404, f"Connector {name} not found")

        if rest == "" and method == "DELETE":
            for table in (self.configs, self.states, self.topics):
                table.pop(name, None)
            return httpx.Response(204)
        if rest == "/config" and method == "GET":
            return httpx.Response(200, json=self.configs[name])
        if rest == "/config" and method == "PUT":
            self.configs[name] = json.loads(request.content)
            return httpx.Response(200, json=self.info(name))
        if rest == "/status" and method == "GET":
            return httpx.Response(200, json=self.status(name))
        if rest == "/pause" and method == "PUT":
            self.states[name] = "PAUSED"
            return httpx.Response(202)
        if rest == "/resume" and method == "PUT":
            self.states[name] = "RUNNING"
            return httpx.Response(202)
        if rest == "/restart" and method == "POST":
            status, body = self.restart_response
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        if rest == "/tasks" and method == "GET":
            return httpx.Response(
                200,
                json=[{"id": {"connector": name, "task": 0}, "config": {"task.class": "T"}}],
            )
        m = re.fullmatch(r"/tasks/(\d+)/(status|restart)", rest)
        if m:
            if int(m.group(1)) != 0:
                return _error(404, f"Task {name}-{m.group(1)} not found")
            if m.group(2) == "status" and method == "GET":
                return httpx.Response(200, json=self.status(name)["tasks"][0])
            if m.group(2) == "restart" and method == "POST":
                return httpx.Response(204)
        if rest == "/topics" and method == "GET":
            return httpx.Response(200, json={name: {"topics": self.topics[name]}})
        if rest == "/topics/reset" and method == "PUT":
            self.topics[name] = []
            return httpx.Response(200)
        return _error(405, f"{method} not allowed on {rest or '/'}")

    def _validate(self, plugin: str, config: Dict[str, str]) -> httpx.Response:
        missing = "topics" not in config
        return httpx.Response(
            200,
            json={
                "name": plugin,
                "error_count": 1 if missing else 0,
                "groups": ["Common"],
                "configs": [
                    {
                        "definition": {"name": "topics"},
                        "value": {
                            "name": "topics",
                            "value": config.get("topics"),
                            "errors": ["Missing required configuration"] if missing else [],
                        },
                    }
                ],
            },
        )


class FakeNetwork:
    """Routes requests to fake workers by ``host:port``; unknown hosts refuse."""

    def __init__(self) -> None:
        self.workers: Dict[str, FakeConnect] = {}

    def add(self, base_url: str, **kwargs) -> FakeConnect:
        worker = FakeConnect(**kwargs)
        self.workers[httpx.URL(base_url).netloc.decode()] = worker
        return worker

    def remove(self, base_url: str) -> None:
        self.workers.pop(httpx.URL(base_url).netloc.decode(), None)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        worker = self.workers.get(request.url.netloc.decode())
        if worker is None:
            raise httpx.ConnectError("[Errno 111] Connection refused", request=request)
        return worker(request)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)


CONNECT_URL = "http://connect-1:8083"


@pytest.fixture
def network() -> FakeNetwork:
    return FakeNetwork()


@pytest.fixture
def connect(network: FakeNetwork) -> FakeConnect:
    return network.add(CONNECT_URL)


@pytest.fixture
def client(network: FakeNetwork, connect: FakeConnect):
    with ConnectClient(CONNECT_URL, transport=network.transport) as c:
        yield c


@pytest.fixture
def write_config(tmp_path) -> Callable[..., str]:
    """Write a kofr config document and return its path."""

    def _write(document=None, *, text: str | None = None, name: str = "config") -> str:
        path = tmp_path / name
        path.write_text(text if text is not None else yaml.safe_dump(document, sort_keys=False))
        return str(path)

    return _write


@pytest.fixture
def responder() -> Callable[..., httpx.MockTransport]:
    """Factory for a transport that answers every request the same way."""

    def _make(status: int, **kwargs) -> httpx.MockTransport:
        return httpx.MockTransport(lambda request: httpx.Response(status, **kwargs))

    return _make


@pytest.fixture
def refusing() -> httpx.MockTransport:
    def _handle(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("[Errno 111] Connection refused", request=request)

    return httpx.MockTransport(_handle)
