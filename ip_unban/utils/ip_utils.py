"""IP address utilities shared by the blocklist and the probe."""

import ipaddress
from typing import Optional, Union

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


def canonical_address(addr: IPAddress) -> IPAddress:
    """Reduce an address to its canonical form for equality checks.

    IPv4-mapped IPv6 addresses are reduced to plain IPv4 so that
    ``::ffff:1.2.3.4`` and ``1.2.3.4`` compare equal.

    Args:
        addr: Parsed IPv4 or IPv6 address.

    Returns:
        IPAddress: Canonical address.

    Examples:
        >>> canonical_address(ipaddress.ip_address("::ffff:1.2.3.4"))
        IPv4Address('1.2.3.4')
    """
    if isinstance(addr, ipaddress.IPv6Address) and addr.ipv4_mapped is not None:
        return addr.ipv4_mapped
    return addr


def parse_ip(text: str) -> Optional[IPAddress]:
    """Parse text into a canonical IP address.

    Args:
        text: Candidate address string (IPv4 or IPv6).

    Returns:
        Optional[IPAddress]: Canonical address, or None if the text is not a
        syntactically valid address.

    Examples:
        >>> parse_ip("203.0.113.45")
        IPv4Address('203.0.113.45')
        >>> parse_ip("5.5.5.5xxx") is None
        True
    """
    try:
        return canonical_address(ipaddress.ip_address(text))
    except ValueError:
        return None


def is_valid_ip(text: str) -> bool:
    """Check whether text is a syntactically valid IPv4 or IPv6 address."""
    return parse_ip(text) is not None


def split_address_field(field: str) -> list[str]:
    """Split an address column value into stripped candidate strings.

    The column holds either one address or several joined by ``|``.

    Examples:
        >>> split_address_field("1.1.1.1 | 2.2.2.2")
        ['1.1.1.1', '2.2.2.2']
    """
    return [segment.strip() for segment in field.split("|")]
