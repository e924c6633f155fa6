"""Remediation workflow states and terminal outcome.

The workflow is a short linear state machine; its result is a value, not a
process exit, so the whole run can be exercised in tests.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

import yaml


class Stage(Enum):
    """Workflow stages in execution order."""

    FETCH_BLOCKLIST = "FETCH_BLOCKLIST"
    CHECK_CURRENT_ADDRESS = "CHECK_CURRENT_ADDRESS"
    ROTATE_ADDRESS = "ROTATE_ADDRESS"
    RECONFIGURE_DOWNSTREAM = "RECONFIGURE_DOWNSTREAM"
    AWAIT_REACHABILITY = "AWAIT_REACHABILITY"


class OutcomeKind(Enum):
    """Terminal result of one run."""

    NO_ACTION = "NO_ACTION"  # Current address is not blocked
    REMEDIATED = "REMEDIATED"  # Address replaced and host reachable
    DRY_RUN = "DRY_RUN"  # Blocked, but DRY_RUN prevented any change
    FAILED = "FAILED"  # A stage failed; see stage and cause


# Downstream reconfiguration steps, applied strictly in this order.
DOWNSTREAM_STEPS = ["dns", "router", "remote_host"]


@dataclass
class WorkflowOutcome:
    """Terminal result of one remediation run, used only for reporting.

    Attributes:
        kind: Outcome classification.
        stage: Stage that failed (FAILED) or the last stage reached.
        cause: Failure description (FAILED only).
        old_address: Server address at the start of the run.
        new_address: Clean candidate, recorded before it is attached.
        new_address_id: Provider identifier of that candidate.
        server_detached: The old address was detached but the candidate was
            not attached, so the server has no public address.
        blocklist_size: Number of addresses in the parsed blocklist.
        rejected_candidates: Blocked candidates discarded during rotation.
        release_failures: Rejected candidates whose release failed.
        completed_steps: Downstream steps that were applied.
        probe_attempts: Probes sent before reachability was confirmed.
        duration_ms: Wall-clock duration of the run.
        finished_at: Completion timestamp (UTC), set when the run ends.

    Invariants:
        - cause is set if and only if kind == FAILED.
        - new_address is None for NO_ACTION and DRY_RUN.
        - completed_steps is a prefix of DOWNSTREAM_STEPS.
    """

    kind: OutcomeKind
    stage: Stage
    cause: Optional[str] = None
    old_address: Optional[str] = None
    new_address: Optional[str] = None
    new_address_id: Optional[str] = None
    server_detached: bool = False
    blocklist_size: int = 0
    rejected_candidates: List[str] = field(default_factory=list)
    release_failures: List[str] = field(default_factory=list)
    completed_steps: List[str] = field(default_factory=list)
    probe_attempts: int = 0
    duration_ms: int = 0
    finished_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def succeeded(self) -> bool:
        return self.kind != OutcomeKind.FAILED

    @property
    def exit_code(self) -> int:
        """Process exit code: 0 unless the run failed."""
        return 0 if self.succeeded else 1

    @property
    def inconsistent_downstream(self) -> bool:
        """True when the run left the server or downstream config half moved.

        Either the old address was detached and the candidate never attached,
        or the server moved but downstream config only partly did.
        """
        if self.kind != OutcomeKind.FAILED:
            return False
        return self.server_detached or (
            self.stage == Stage.RECONFIGURE_DOWNSTREAM
            and self.new_address is not None
        )

    def summary(self) -> str:
        """One-line human-readable description of the outcome."""
        if self.kind == OutcomeKind.NO_ACTION:
            return (
                f"Current IP [{self.old_address}] is not found in banned IP list"
            )
        if self.kind == OutcomeKind.DRY_RUN:
            return (
                f"DRY_RUN: current IP [{self.old_address}] is banned, "
                "would rotate to a clean address"
            )
        if self.kind == OutcomeKind.REMEDIATED:
            return (
                f"Replaced banned IP [{self.old_address}] with [{self.new_address}]"
            )
        return f"Remediation failed at {self.stage.value}: {self.cause}"

    def to_json(self) -> dict:
        """Serialize to a JSON-compatible dict.

        Returns:
            dict: Representation matching contracts/outcome-schema.json.
        """
        return {
            "outcome": self.kind.value,
            "stage": self.stage.value,
            "cause": self.cause,
            "old_address": self.old_address,
            "new_address": self.new_address,
            "new_address_id": self.new_address_id,
            "blocklist_size": self.blocklist_size,
            "rotation": {
                "rejected_candidates": sorted(self.rejected_candidates),
                "release_failures": sorted(self.release_failures),
                "server_detached": self.server_detached,
            },
            "downstream": {
                "completed_steps": list(self.completed_steps),
                "consistent": not self.inconsistent_downstream,
            },
            "probe_attempts": self.probe_attempts,
            "duration_ms": self.duration_ms,
            "finished_at": self.finished_at.isoformat(),
        }

    def to_yaml_checklist(self) -> str:
        """Operator checklist for a run that left downstream config mixed.

        Returns:
            str: YAML listing applied and pending downstream steps.
        """
        applied = list(self.completed_steps)
        pending = [s for s in DOWNSTREAM_STEPS if s not in self.completed_steps]
        header = ["# Downstream configuration state (manual intervention required)"]
        if self.server_detached:
            applied = ["detach"]
            pending = ["attach"] + pending
            header.append(
                f"# Server has no address: {self.old_address} was detached, "
                f"{self.new_address} ({self.new_address_id}) is allocated but not attached"
            )
        else:
            header.append(
                f"# Server address moved: {self.old_address} -> {self.new_address}"
            )
        body = yaml.safe_dump(
            {"applied": applied, "pending": pending},
            default_flow_style=False,
            sort_keys=False,
        )
        return "\n".join(header) + "\n" + body
