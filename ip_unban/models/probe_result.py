"""Reachability probe result models."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class ProbeStatus(Enum):
    """Outcome classification of a single echo probe."""

    SUCCESS = "SUCCESS"
    SEND_ERROR = "SEND_ERROR"  # Socket could not be opened or written
    TIMEOUT = "TIMEOUT"  # No reply before the per-attempt timeout
    MALFORMED = "MALFORMED"  # Reply too short or unparseable
    WRONG_TYPE = "WRONG_TYPE"  # Reply is not an echo reply
    ADDRESS_MISMATCH = "ADDRESS_MISMATCH"  # Reply came from another host


@dataclass(frozen=True)
class ProbeResult:
    """Result of one reachability attempt. Not persisted.

    Attributes:
        target: Address that was probed.
        status: Classification of the attempt.
        detail: Human-readable failure description (empty on success).
        responder: Address the reply came from, if any.
    """

    target: str
    status: ProbeStatus
    detail: str = ""
    responder: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ProbeStatus.SUCCESS
