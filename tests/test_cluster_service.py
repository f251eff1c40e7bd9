"""Tests for host probing and first-responder failover."""
import httpx
import pytest

from kofr.core.exceptions import NoAvailableHostError
from kofr.domain.models.cluster import ClusterContext, HostState
from kofr.domain.services.cluster_service import ClusterService

UP = "http://connect-up:8083"
DOWN = "http://connect-down:8083"


def test_probe_one_online_one_offline(network):
    network.add(UP, cluster_id="abc123")
    service = ClusterService(transport=network.transport)

    status = service.status(ClusterContext(name="test", hosts=[UP, DOWN]))

    assert [(h.host, h.state) for h in status.hosts] == [
        (UP, HostState.ONLINE),
        (DOWN, HostState.OFFLINE),
    ]
    assert status.cluster_id == "abc123"
    assert [h.host for h in status.online] == [UP]


def test_probe_order_is_preserved_when_first_host_is_down(network):
    network.add(UP)
    service = ClusterService(transport=network.transport)

    status = service.status(ClusterContext(name="test", hosts=[DOWN, UP]))

    assert [h.state for h in status.hosts] == [HostState.OFFLINE, HostState.ONLINE]


def test_all_hosts_down(network):
    service = ClusterService(transport=network.transport)

    status = service.status(ClusterContext(name="test", hosts=[UP, DOWN]))

    assert [h.state for h in status.hosts] == [HostState.OFFLINE, HostState.OFFLINE]
    assert status.cluster_id == ""


def test_missing_cluster_id_is_not_an_error(responder):
    service = ClusterService(transport=responder(200, json={"version": "3.6.0"}))

    row = service.probe(UP)

    assert row.state is HostState.ONLINE
    assert row.cluster_id == ""


def test_non_json_root_is_still_online(responder):
    service = ClusterService(transport=responder(200, text="ok"))

    assert service.probe(UP).state is HostState.ONLINE


def test_error_status_is_offline(responder):
    service = ClusterService(transport=responder(503, text="starting"))

    assert service.probe(UP).state is HostState.OFFLINE


def test_timeout_is_offline():
    def _timeout(request):
        raise httpx.ReadTimeout("timed out", request=request)

    service = ClusterService(transport=httpx.MockTransport(_timeout))

    assert service.probe(UP).state is HostState.OFFLINE


def test_available_host_picks_first_responder(network):
    network.add(UP)
    network.add("http://connect-2:8083")
    service = ClusterService(transport=network.transport)

    host = service.available_host(
        ClusterContext(name="test", hosts=[DOWN, UP, "http://connect-2:8083"])
    )

    assert host == UP


def test_available_host_none_responding(network):
    service = ClusterService(transport=network.transport)

    with pytest.raises(NoAvailableHostError) as exc_info:
        service.available_host(ClusterContext(name="test", hosts=[UP, DOWN]))

    assert exc_info.value.cluster_name == "test"


def test_available_host_empty_list(network):
    service = ClusterService(transport=network.transport)

    with pytest.raises(NoAvailableHostError):
        service.available_host(ClusterContext(name="empty", hosts=[]))
