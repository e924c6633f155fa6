"""Unit tests for the Scaleway flexible IP client."""

from unittest.mock import Mock

import pytest
import requests

from ip_unban.config import ScalewayConfig
from ip_unban.errors import AllocationError
from ip_unban.models.address import AddressCandidate, AddressRecord
from ip_unban.services.scaleway_client import ScalewayClient


IPS_URL = "https://api.scaleway.com/instance/v1/zones/nl-ams-1/ips"


def response(status=200, payload=None):
    mock = Mock(status_code=status, ok=200 <= status < 300)
    mock.content = b"{}" if payload is not None else b""
    mock.json.return_value = payload
    mock.text = str(payload)
    return mock


@pytest.fixture
def session():
    return Mock()


@pytest.fixture
def client(session):
    config = ScalewayConfig(secret_key="secret", project_id="proj", server_name="vpn-gw")
    return ScalewayClient(config, session=session)


def test_session_carries_auth_token():
    config = ScalewayConfig(secret_key="secret", project_id="proj", server_name="vpn-gw")

    client = ScalewayClient(config)

    assert client._session.headers["X-Auth-Token"] == "secret"


def test_list_server_addresses(client, session):
    session.request.return_value = response(
        payload={
            "ips": [
                {
                    "id": "ip-1",
                    "address": "203.0.113.45",
                    "server": {"id": "srv-1", "name": "vpn-gw"},
                },
                {"id": "ip-2", "address": "198.51.100.7", "server": None},
            ]
        }
    )

    records = client.list_server_addresses()

    assert records == [
        AddressRecord("ip-1", "203.0.113.45", "srv-1", "vpn-gw"),
        AddressRecord("ip-2", "198.51.100.7"),
    ]
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "GET"
    assert kwargs["url"] == IPS_URL
    assert kwargs["params"] == {"project": "proj", "page": 1, "per_page": 100}


def test_list_server_addresses_paginates(client, session):
    full_page = {
        "ips": [{"id": f"ip-{i}", "address": f"10.0.0.{i % 250}"} for i in range(100)]
    }
    session.request.side_effect = [
        response(payload=full_page),
        response(payload={"ips": [{"id": "ip-last", "address": "10.0.1.1"}]}),
    ]

    records = client.list_server_addresses()

    assert len(records) == 101
    assert session.request.call_args.kwargs["params"]["page"] == 2


def test_allocate_address(client, session):
    session.request.return_value = response(
        payload={"ip": {"id": "ip-new", "address": "198.51.100.20"}}
    )

    candidate = client.allocate_address()

    assert candidate == AddressCandidate("ip-new", "198.51.100.20")
    kwargs = session.request.call_args.kwargs
    assert kwargs["method"] == "POST"
    assert kwargs["json"] == {"project": "proj"}


def test_allocate_address_http_error(client, session):
    """Test that a quota error surfaces as AllocationError."""
    session.request.return_value = response(
        status=403, payload={"message": "quota exceeded"}
    )

    with pytest.raises(AllocationError, match="HTTP 403: quota exceeded"):
        client.allocate_address()


def test_transport_error(client, session):
    session.request.side_effect = requests.ConnectionError("unreachable")

    with pytest.raises(AllocationError, match="unreachable"):
        client.release_address("ip-1")


def test_release_detach_attach(client, session):
    session.request.return_value = response(status=204)

    client.release_address("ip-1")
    client.detach("ip-2")
    client.attach("ip-3", "srv-1")

    calls = [c.kwargs for c in session.request.call_args_list]
    assert (calls[0]["method"], calls[0]["url"]) == ("DELETE", f"{IPS_URL}/ip-1")
    assert (calls[1]["method"], calls[1]["json"]) == ("PATCH", {"server": None})
    assert calls[1]["url"] == f"{IPS_URL}/ip-2"
    assert (calls[2]["method"], calls[2]["json"]) == ("PATCH", {"server": "srv-1"})
