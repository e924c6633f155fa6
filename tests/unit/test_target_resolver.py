"""Unit tests for reachability target resolution."""

from unittest.mock import Mock, patch

import dns.exception
import dns.resolver
import pytest

from ip_unban.errors import ReachabilityError
from ip_unban.utils.target_resolver import TargetResolver


def test_literal_address_is_not_resolved():
    with patch("ip_unban.utils.target_resolver.dns.resolver.Resolver") as resolver_cls:
        assert TargetResolver.resolve("198.51.100.20") == "198.51.100.20"
        assert TargetResolver.resolve("::ffff:203.0.113.7") == "203.0.113.7"

    resolver_cls.assert_not_called()


@patch("ip_unban.utils.target_resolver.dns.resolver.Resolver")
def test_hostname_resolves_a_record(mock_resolver_cls):
    resolver = mock_resolver_cls.return_value
    resolver.resolve.return_value = ["198.51.100.20"]

    assert TargetResolver.resolve("vpn.example.org", timeout=3) == "198.51.100.20"
    resolver.resolve.assert_called_once_with("vpn.example.org", "A")
    assert resolver.timeout == 3
    assert resolver.lifetime == 3


@patch("ip_unban.utils.target_resolver.dns.resolver.Resolver")
def test_hostname_falls_back_to_aaaa(mock_resolver_cls):
    resolver = mock_resolver_cls.return_value
    resolver.resolve.side_effect = [dns.resolver.NoAnswer(), ["2001:db8::20"]]

    assert TargetResolver.resolve("vpn.example.org") == "2001:db8::20"


@patch("ip_unban.utils.target_resolver.dns.resolver.Resolver")
def test_nxdomain(mock_resolver_cls):
    mock_resolver_cls.return_value.resolve.side_effect = dns.resolver.NXDOMAIN()

    with pytest.raises(ReachabilityError, match="NXDOMAIN"):
        TargetResolver.resolve("missing.example.org")


@patch("ip_unban.utils.target_resolver.dns.resolver.Resolver")
def test_no_records(mock_resolver_cls):
    mock_resolver_cls.return_value.resolve.side_effect = dns.resolver.NoAnswer()

    with pytest.raises(ReachabilityError, match="no A or AAAA records"):
        TargetResolver.resolve("empty.example.org")


@patch("ip_unban.utils.target_resolver.dns.resolver.Resolver")
def test_resolver_timeout(mock_resolver_cls):
    mock_resolver_cls.return_value.resolve.side_effect = dns.exception.Timeout()

    with pytest.raises(ReachabilityError, match="cannot resolve slow.example.org"):
        TargetResolver.resolve("slow.example.org")
