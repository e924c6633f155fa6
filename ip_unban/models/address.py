"""Cloud address models returned by the allocator."""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class AddressRecord:
    """Address currently known to the provider.

    Attributes:
        id: Provider-assigned identifier of the address.
        address: Address in textual form.
        server_id: Identifier of the server it is attached to (None if free).
        server_name: Name of that server (None if free).
    """

    id: str
    address: str
    server_id: Optional[str] = None
    server_name: Optional[str] = None


@dataclass(frozen=True)
class AddressCandidate:
    """Freshly allocated address not yet attached to a server.

    A candidate is either attached to the server or released back to the
    provider; it is never left allocated and unreferenced.
    """

    id: str
    address: str


@dataclass
class RotationResult:
    """Outcome of acquiring a clean address.

    Filled in while rotation runs, so it is meaningful even when rotation
    fails part way.

    Attributes:
        candidate: The clean candidate that was kept (None until found).
        rejected: Blocked candidates that were handed back for release.
        release_failures: Addresses whose release call failed.
    """

    candidate: Optional[AddressCandidate] = None
    rejected: list[AddressCandidate] = field(default_factory=list)
    release_failures: list[str] = field(default_factory=list)
