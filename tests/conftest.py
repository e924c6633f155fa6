"""pytest fixtures for testing."""

import pytest
from unittest.mock import Mock


@pytest.fixture
def mock_jira():
    """Mock Jira client for unit tests."""
    mock = Mock()
    mock.create_issue.return_value = Mock(key="OPS-123")
    return mock


@pytest.fixture
def sample_blocklist():
    """Blocklist holding a few documentation addresses."""
    from ip_unban.models.blocklist import Blocklist
    from ip_unban.utils.ip_utils import parse_ip

    return Blocklist.from_addresses(
        parse_ip(a) for a in ["203.0.113.45", "203.0.113.46", "2001:db8::1"]
    )


@pytest.fixture
def server_address():
    """Address currently attached to the managed server."""
    from ip_unban.models.address import AddressRecord

    return AddressRecord(
        id="ip-old",
        address="203.0.113.45",
        server_id="srv-1",
        server_name="vpn-gw",
    )


@pytest.fixture
def mock_allocator(server_address):
    """Allocator that reports the sample server address."""
    mock = Mock()
    mock.list_server_addresses.return_value = [server_address]
    return mock
