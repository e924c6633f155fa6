"""Acquisition of a replacement address that is not on the blocklist."""

import logging
import threading
from typing import Optional

from ip_unban.errors import AddressSwapError, RotationExhausted, RunCancelled
from ip_unban.models.address import AddressCandidate, AddressRecord, RotationResult
from ip_unban.models.blocklist import Blocklist
from ip_unban.services.block_checker import is_blocked
from ip_unban.services.interfaces import AddressAllocator


logger = logging.getLogger(__name__)


class AddressRotator:
    """Generate-and-test loop over the provider's address allocator.

    Without ``max_attempts`` the loop keeps allocating until a clean address
    comes back, the allocator errors, or ``cancel_event`` is set. Every
    rejected candidate is released exactly once, whichever way the loop ends.
    """

    def __init__(
        self,
        allocator: AddressAllocator,
        max_attempts: Optional[int] = None,
        cancel_event: Optional[threading.Event] = None,
    ):
        """Initialize rotator.

        Args:
            allocator: Cloud address allocator.
            max_attempts: Upper bound on allocation calls (None = unbounded).
            cancel_event: Checked before every allocation.

        Raises:
            ValueError: If max_attempts is not positive.
        """
        if max_attempts is not None and max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.allocator = allocator
        self.max_attempts = max_attempts
        self.cancel_event = cancel_event or threading.Event()

    def acquire(
        self, blocklist: Blocklist, result: Optional[RotationResult] = None
    ) -> RotationResult:
        """Allocate addresses until one is absent from the blocklist.

        Args:
            blocklist: Current blocklist.
            result: Bookkeeping to fill in; callers pass their own to keep
                the rejected candidates and release failures when this raises.

        Returns:
            RotationResult: The clean candidate plus cleanup bookkeeping.

        Raises:
            AllocationError: If an allocation call fails (not retried).
            RotationExhausted: If max_attempts allocations were all blocked.
            RunCancelled: If the cancel event was set.
        """
        result = result if result is not None else RotationResult()

        try:
            attempts = 0
            while self.max_attempts is None or attempts < self.max_attempts:
                if self.cancel_event.is_set():
                    raise RunCancelled(
                        f"address rotation cancelled after {attempts} allocation(s)"
                    )
                attempts += 1
                candidate = self.allocator.allocate_address()
                if not is_blocked(blocklist, candidate.address):
                    result.candidate = candidate
                    break
                logger.info(
                    f"Allocated IP {candidate.address} is banned, requesting another",
                    extra={"candidate_id": candidate.id, "attempt": attempts},
                )
                result.rejected.append(candidate)
            else:
                raise RotationExhausted(attempts)
        finally:
            result.release_failures.extend(self._release(result.rejected))

        logger.info(f"Got new clean IP from provider: {result.candidate.address}")
        return result

    def _release(self, rejected: list[AddressCandidate]) -> list[str]:
        """Release rejected candidates, best-effort.

        Returns:
            list[str]: Addresses whose release failed.
        """
        failures = []
        for candidate in rejected:
            try:
                self.allocator.release_address(candidate.id)
                logger.info(f"Released banned candidate IP {candidate.address}")
            except Exception as e:
                logger.error(
                    f"Failed to release candidate IP {candidate.address}: {e}",
                    extra={"candidate_id": candidate.id},
                )
                failures.append(candidate.address)
        return failures


def find_server_address(
    allocator: AddressAllocator, server_name: str
) -> Optional[AddressRecord]:
    """Find the address attached to the named server.

    Returns:
        Optional[AddressRecord]: The attached address, or None.
    """
    for record in allocator.list_server_addresses():
        if record.server_name == server_name:
            logger.info(f"Current IP for server [{server_name}]: {record.address}")
            return record
    return None


def swap_server_address(
    allocator: AddressAllocator, current: AddressRecord, new: AddressCandidate
) -> None:
    """Detach the current address and attach the new one to the same server.

    If the detach fails the server is untouched and the new candidate is
    released so it is not left allocated. A failed attach leaves the server
    without an address and the candidate allocated for the operator.

    Raises:
        AddressSwapError: If either call fails; says how far the swap got.
    """
    try:
        allocator.detach(current.id)
    except Exception as e:
        released = True
        try:
            allocator.release_address(new.id)
        except Exception as release_error:
            logger.error(
                f"Failed to release unused candidate IP {new.address}: {release_error}"
            )
            released = False
        raise AddressSwapError(
            f"detach of {current.address} failed: {e}",
            detached=False,
            candidate_released=released,
        ) from e
    logger.info(
        f"Detached banned IP [{current.address}] from server [{current.server_name}]"
    )

    try:
        allocator.attach(new.id, current.server_id)
    except Exception as e:
        logger.error(
            f"Server [{current.server_name}] has no address: attach of "
            f"{new.address} ({new.id}) failed: {e}"
        )
        raise AddressSwapError(
            f"attach of {new.address} ({new.id}) failed: {e}",
            detached=True,
            candidate_released=False,
        ) from e
    logger.info(
        f"Attached new clean IP [{new.address}] to server [{current.server_name}]"
    )
