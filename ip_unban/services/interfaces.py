"""Capability interfaces of the external collaborators.

The workflow depends only on these operations; concrete vendor clients live
in their own modules and tests substitute mocks.
"""

from typing import List, Protocol

from ip_unban.models.address import AddressCandidate, AddressRecord


class AddressAllocator(Protocol):
    """Cloud provider address lifecycle."""

    def list_server_addresses(self) -> List[AddressRecord]: ...

    def allocate_address(self) -> AddressCandidate: ...

    def release_address(self, address_id: str) -> None: ...

    def detach(self, address_id: str) -> None: ...

    def attach(self, address_id: str, server_id: str) -> None: ...


class DNSUpdater(Protocol):
    """DNS provider scoped to one zone and record name."""

    def update_record(self, address: str) -> None: ...


class TunnelPeerUpdater(Protocol):
    """Router or remote host holding IPsec configuration for the server."""

    def update_peer(self, old_address: str, new_address: str) -> None: ...


class Notifier(Protocol):
    """Human-facing status channel."""

    def send(self, subject: str, message: str) -> None: ...


class NullNotifier:
    """Notifier used when no channel is configured; drops every message."""

    def send(self, subject: str, message: str) -> None:
        return None
