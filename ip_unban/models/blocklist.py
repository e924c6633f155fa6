"""Blocklist model."""

from dataclasses import dataclass, field
from typing import Iterable, Iterator

from ip_unban.utils.ip_utils import IPAddress, canonical_address


@dataclass(frozen=True)
class Blocklist:
    """Set of banned addresses built from one feed snapshot.

    Read-only after construction. Addresses are stored canonicalized, so
    duplicates and equivalent textual forms collapse.

    Attributes:
        addresses: Canonical banned addresses.
    """

    addresses: frozenset = field(default_factory=frozenset)

    @classmethod
    def from_addresses(cls, addresses: Iterable[IPAddress]) -> "Blocklist":
        return cls(frozenset(canonical_address(a) for a in addresses))

    def __contains__(self, addr: object) -> bool:
        return addr in self.addresses

    def __iter__(self) -> Iterator[IPAddress]:
        return iter(self.addresses)

    def __len__(self) -> int:
        return len(self.addresses)
