"""Blocklist membership test."""

from typing import Union

from ip_unban.models.blocklist import Blocklist
from ip_unban.utils.ip_utils import IPAddress, canonical_address, parse_ip


def is_blocked(blocklist: Blocklist, address: Union[str, IPAddress]) -> bool:
    """Check whether an address is on the blocklist.

    Comparison is by canonical address value, so ``::ffff:1.2.3.4`` matches
    ``1.2.3.4``. Text that is not a valid address is never blocked.

    Args:
        blocklist: Parsed blocklist.
        address: Address as text or as an ``ipaddress`` object.

    Returns:
        bool: True if the address is listed.
    """
    if isinstance(address, str):
        addr = parse_ip(address.strip())
        if addr is None:
            return False
    else:
        addr = canonical_address(address)
    return addr in blocklist
