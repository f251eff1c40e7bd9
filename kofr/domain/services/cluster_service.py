"""Host-level operations: liveness probing and first-responder failover."""
from __future__ import annotations

import logging
from typing import List

import httpx

from kofr.core.exceptions import NoAvailableHostError
from kofr.domain.models.cluster import (
    ClusterContext,
    ClusterStatus,
    HostState,
    HostStatus,
)

logger = logging.getLogger(__name__)

CLUSTER_ID_FIELD = "kafka_cluster_id"


class ClusterService:
    """Probes the hosts of a cluster context.

    Hosts are probed one after another with a bounded timeout; nothing is
    cached between calls or invocations.
    """

    def __init__(
        self,
        *,
        timeout: float = 5.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._timeout = httpx.Timeout(timeout)
        self._transport = transport

    def _get(self, host: str) -> httpx.Response:
        with httpx.Client(
            timeout=self._timeout,
            headers={"Accept": "application/json"},
            transport=self._transport,
        ) as client:
            return client.get(host)

    def probe(self, host: str) -> HostStatus:
        """Return Online/Offline for ``host``.

        Every failure (DNS, refused, timeout, error status) folds into
        Offline here; this is the only place errors are swallowed.
        """
        try:
            response = self._get(host)
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            logger.debug("probe %s failed: %s", host, exc)
            return HostStatus(host=host, state=HostState.OFFLINE)
        if response.is_error:
            logger.debug("probe %s answered %s", host, response.status_code)
            return HostStatus(host=host, state=HostState.OFFLINE)

        cluster_id = ""
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and body.get(CLUSTER_ID_FIELD) is not None:
            cluster_id = str(body[CLUSTER_ID_FIELD])
        return HostStatus(host=host, state=HostState.ONLINE, cluster_id=cluster_id)

    def status(self, cluster: ClusterContext) -> ClusterStatus:
        """Probe every host of ``cluster`` in list order."""
        rows: List[HostStatus] = [self.probe(host) for host in cluster.hosts]
        cluster_id = next((r.cluster_id for r in rows if r.cluster_id), "")
        return ClusterStatus(name=cluster.name, hosts=rows, cluster_id=cluster_id)

    def available_host(self, cluster: ClusterContext) -> str:
        """Return the first host, in list order, that answers a GET.

        Raises
        ------
        NoAvailableHostError
            If no host responds (or the list is empty).
        """
        for host in cluster.hosts:
            try:
                response = self._get(host)
            except (httpx.HTTPError, httpx.InvalidURL) as exc:
                logger.info("host %s of cluster %s unreachable: %s", host, cluster.name, exc)
                continue
            if response.is_error:
                logger.info(
                    "host %s of cluster %s answered %s", host, cluster.name, response.status_code
                )
                continue
            return host
        raise NoAvailableHostError(cluster.name)
