"""Kafka Connect REST façade built on httpx."""
from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Type, TypeVar
from urllib.parse import quote

import httpx

from kofr.core.exceptions import (
    ConnectorNotFoundError,
    DecodeError,
    MalformedResponseError,
    NotFoundError,
    ServerRejectedError,
    TaskNotFoundError,
    TransportError,
)
from kofr.domain.decoder import decode_model, decode_verbose_connectors
from kofr.domain.models.connector import (
    Connector,
    ConnectorStatus,
    CreateConnector,
    RestartOutcome,
    VerboseConnector,
)
from kofr.domain.models.plugin import ConfigValidation, ConnectorPlugin
from kofr.domain.models.task import TaskInfo, TaskStatus
from kofr.domain.models.topic import Topic
from kofr.domain.models.types import ConnectorConfig

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TIMEOUT_SEC = 5.0


def join_uri(base: str, segment: str) -> str:
    """Append ``segment`` to ``base``, adding ``/`` only when it is missing."""
    if base.endswith("/"):
        return f"{base}{segment}"
    return f"{base}/{segment}"


def connectors_endpoint(base: str) -> str:
    return join_uri(base, "connectors")


def plugins_endpoint(base: str) -> str:
    return join_uri(base, "connector-plugins")


def _segment(value: Any) -> str:
    return quote(str(value), safe="")


class ConnectClient:
    """Stateless request/response calls against one Connect worker.

    Parameters
    ----------
    connect_uri : str
        Root URI of the worker (``http://host:8083`` or with a trailing ``/``).
    timeout : float
        Connect/read/write/pool timeout in seconds.
    transport : httpx.BaseTransport | None
        Injected transport (tests use ``httpx.MockTransport``).
    """

    def __init__(
        self,
        connect_uri: str,
        *,
        timeout: float = DEFAULT_TIMEOUT_SEC,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.connect_uri = connect_uri
        self._client = httpx.Client(
            timeout=httpx.Timeout(timeout),
            headers={"Accept": "application/json"},
            transport=transport,
        )

    def __enter__(self) -> "ConnectClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    # ---------- endpoints --------------------------------------------------

    @property
    def connectors_url(self) -> str:
        return connectors_endpoint(self.connect_uri)

    @property
    def plugins_url(self) -> str:
        return plugins_endpoint(self.connect_uri)

    def _connector_url(self, name: str, *parts: Any) -> str:
        url = f"{self.connectors_url}/{_segment(name)}"
        for part in parts:
            url = f"{url}/{_segment(part)}"
        return url

    # ---------- plumbing ---------------------------------------------------

    def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = self._client.request(method, url, **kwargs)
        except (httpx.TransportError, httpx.InvalidURL) as exc:
            raise TransportError(
                f"Failed sending request to {url}: {exc}", url=url
            ) from exc
        logger.debug("%s %s -> %s", method, url, response.status_code)
        return response

    @staticmethod
    def _check(
        response: httpx.Response,
        not_found: Callable[[], NotFoundError] | None = None,
    ) -> None:
        """Map a non-2xx answer to NotFound (when asked) or ServerRejected."""
        if response.is_success:
            return
        if not_found is not None and response.status_code == 404:
            raise not_found()
        raise ServerRejectedError(response.status_code, response.text)

    @staticmethod
    def _json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise MalformedResponseError(
                "$", response.text, "body is not valid JSON"
            ) from exc

    def _decode(self, tp: Type[T] | Any, response: httpx.Response) -> T:
        payload = self._json(response)
        try:
            return decode_model(tp, payload)
        except DecodeError as exc:
            raise MalformedResponseError(
                exc.path, response.text, f"expected {exc.expected}, found {exc.found}"
            ) from exc

    # --------------------------------------------------------------------- #
    # Connectors                                                            #
    # --------------------------------------------------------------------- #
    def list_connector_names(self) -> List[str]:
        response = self._request("GET", self.connectors_url)
        self._check(response)
        return self._decode(List[str], response)

    def list_connectors_verbose(self) -> List[VerboseConnector]:
        """Return one row per connector from ``?expand=status``."""
        response = self._request(
            "GET", self.connectors_url, params={"expand": "status"}
        )
        self._check(response)
        payload = self._json(response)
        try:
            return decode_verbose_connectors(payload)
        except DecodeError as exc:
            raise MalformedResponseError(
                exc.path, response.text, f"expected {exc.expected}, found {exc.found}"
            ) from exc

    def create_connector(self, name: str, config: ConnectorConfig) -> Connector:
        """Create a connector; server rejections are passed through verbatim."""
        body = CreateConnector(name=name, config=config)
        response = self._request(
            "POST", self.connectors_url, json=body.model_dump(mode="json")
        )
        self._check(response)
        return self._decode(Connector, response)

    def get_connector_config(self, name: str) -> ConnectorConfig:
        response = self._request("GET", self._connector_url(name, "config"))
        self._check(response, lambda: ConnectorNotFoundError(name))
        return self._decode(Dict[str, str], response)

    def get_connector_status(self, name: str) -> ConnectorStatus:
        response = self._request("GET", self._connector_url(name, "status"))
        self._check(response, lambda: ConnectorNotFoundError(name))
        return self._decode(ConnectorStatus, response)

    def put_connector_config(self, name: str, config: ConnectorConfig) -> Connector:
        """Replace the whole config of ``name`` (edit and patch both land here)."""
        response = self._request(
            "PUT", self._connector_url(name, "config"), json=dict(config)
        )
        self._check(response, lambda: ConnectorNotFoundError(name))
        return self._decode(Connector, response)

    def pause(self, name: str) -> None:
        self._check(self._request("PUT", self._connector_url(name, "pause")))

    def resume(self, name: str) -> None:
        self._check(self._request("PUT", self._connector_url(name, "resume")))

    def delete(self, name: str) -> None:
        self._check(self._request("DELETE", self._connector_url(name)))

    def restart(
        self, name: str, include_tasks: bool = False, only_failed: bool = False
    ) -> RestartOutcome:
        """Restart ``name``; the status code picks the outcome.

        200/204 -> ``restarted``; 202 -> ``accepted`` with the in-flight
        status; anything else -> ``info`` carrying the raw body. Only
        transport failures and a malformed 202 body raise.
        """
        response = self._request(
            "POST",
            self._connector_url(name, "restart"),
            params={
                "includeTasks": str(include_tasks).lower(),
                "onlyFailed": str(only_failed).lower(),
            },
        )
        if response.status_code in (200, 204):
            return RestartOutcome(kind="restarted")
        if response.status_code == 202:
            return RestartOutcome(
                kind="accepted", status=self._decode(ConnectorStatus, response)
            )
        return RestartOutcome(kind="info", message=response.text)

    # --------------------------------------------------------------------- #
    # Tasks                                                                 #
    # --------------------------------------------------------------------- #
    def list_tasks(self, connector: str) -> List[TaskInfo]:
        response = self._request("GET", self._connector_url(connector, "tasks"))
        self._check(response, lambda: ConnectorNotFoundError(connector))
        return self._decode(List[TaskInfo], response)

    def task_status(self, connector: str, task_id: int) -> TaskStatus:
        response = self._request(
            "GET", self._connector_url(connector, "tasks", task_id, "status")
        )
        self._check(response, lambda: TaskNotFoundError(connector, task_id))
        return self._decode(TaskStatus, response)

    def restart_task(self, connector: str, task_id: int) -> None:
        response = self._request(
            "POST", self._connector_url(connector, "tasks", task_id, "restart")
        )
        self._check(response, lambda: TaskNotFoundError(connector, task_id))

    # --------------------------------------------------------------------- #
    # Topics                                                                #
    # --------------------------------------------------------------------- #
    def list_topics(self, connector: str) -> Topic:
        response = self._request("GET", self._connector_url(connector, "topics"))
        self._check(response)
        return self._decode(Topic, response)

    def reset_topics(self, connector: str) -> None:
        self._check(
            self._request("PUT", self._connector_url(connector, "topics", "reset"))
        )

    # --------------------------------------------------------------------- #
    # Plugins                                                               #
    # --------------------------------------------------------------------- #
    def list_plugins(self) -> List[ConnectorPlugin]:
        response = self._request("GET", self.plugins_url)
        self._check(response)
        return self._decode(List[ConnectorPlugin], response)

    def validate_config(
        self, class_name: str, config: ConnectorConfig
    ) -> ConfigValidation:
        url = f"{self.plugins_url}/{_segment(class_name)}/config/validate"
        response = self._request("PUT", url, json=dict(config))
        self._check(response)
        return self._decode(ConfigValidation, response)
