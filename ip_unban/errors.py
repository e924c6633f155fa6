"""Error taxonomy for the remediation run.

Every stage of the workflow raises one of these; the workflow turns them into
a FAILED outcome naming the stage.
"""


class UnbanError(Exception):
    """Base class for all remediation errors."""


class RunCancelled(UnbanError):
    """Run stopped on SIGTERM or SIGINT before it finished."""


class FetchError(UnbanError):
    """Blocklist feed could not be downloaded."""


class ParseError(UnbanError):
    """Blocklist feed could not be tokenized.

    Distinct from a skipped entry: an unparseable address in the address
    column is not an error, a broken record is.
    """


class AllocationError(UnbanError):
    """Cloud address allocator call failed."""


class ServerAddressNotFound(AllocationError):
    """No address is attached to the configured server."""


class RotationExhausted(AllocationError):
    """Configured allocation limit reached without a clean address."""

    def __init__(self, attempts: int):
        super().__init__(
            f"No clean address obtained after {attempts} allocation attempt(s)"
        )
        self.attempts = attempts


class AddressSwapError(AllocationError):
    """Moving the server from its old address to the candidate failed.

    Attributes:
        detached: The old address was detached, so the server has no address.
        candidate_released: The unused candidate was handed back.
    """

    def __init__(self, message: str, detached: bool, candidate_released: bool):
        super().__init__(message)
        self.detached = detached
        self.candidate_released = candidate_released


class ReconfigurationError(UnbanError):
    """A downstream system (DNS, router, remote host) rejected an update."""


class ReachabilityError(UnbanError):
    """Base class for reachability failures."""


class ReachabilityTimeout(ReachabilityError):
    """Deadline elapsed without a successful probe."""

    def __init__(self, target: str, deadline: float, attempts: int):
        super().__init__(
            f"connectivity check [{target}]: timeout exceeded after "
            f"{deadline:g}s ({attempts} probe(s))"
        )
        self.target = target
        self.deadline = deadline
        self.attempts = attempts


class ReachabilityCancelled(ReachabilityError, RunCancelled):
    """Wait aborted because the run was cancelled."""
