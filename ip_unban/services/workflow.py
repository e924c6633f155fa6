"""Remediation workflow.

Implements the linear state machine

    FETCH_BLOCKLIST -> CHECK_CURRENT_ADDRESS -> (not blocked) NO_ACTION
                                             -> (blocked) ROTATE_ADDRESS
                                                -> RECONFIGURE_DOWNSTREAM
                                                -> AWAIT_REACHABILITY
                                                -> REMEDIATED

Any stage failure ends the run as FAILED(stage, cause). Nothing is retried
across stages and nothing is rolled back. A set cancel event stops the run
at the next stage boundary, between two allocations, or during the
reachability wait.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from ip_unban.errors import AddressSwapError, RunCancelled, ServerAddressNotFound
from ip_unban.models.address import RotationResult
from ip_unban.models.blocklist import Blocklist
from ip_unban.models.workflow_outcome import OutcomeKind, Stage, WorkflowOutcome
from ip_unban.services.address_rotator import (
    AddressRotator,
    find_server_address,
    swap_server_address,
)
from ip_unban.services.block_checker import is_blocked
from ip_unban.services.interfaces import (
    AddressAllocator,
    DNSUpdater,
    Notifier,
    NullNotifier,
    TunnelPeerUpdater,
)
from ip_unban.services.logger import log_outcome, log_stage
from ip_unban.services.outcome_reporter import OutcomeReporter
from ip_unban.services.reachability_waiter import ReachabilityWaiter
from ip_unban.utils.target_resolver import TargetResolver


logger = logging.getLogger(__name__)


class RemediationWorkflow:
    """Runs one detection and remediation pass.

    Collaborators are injected so the whole run can be driven by mocks.
    """

    def __init__(
        self,
        fetch_blocklist: Callable[[], Blocklist],
        allocator: AddressAllocator,
        dns: DNSUpdater,
        router: TunnelPeerUpdater,
        remote_host: TunnelPeerUpdater,
        waiter: ReachabilityWaiter,
        server_name: str,
        probe_target: Optional[str] = None,
        rotation_max_attempts: Optional[int] = None,
        dry_run: bool = False,
        notifier: Optional[Notifier] = None,
        cancel_event: Optional[threading.Event] = None,
        resolve_target: Callable[[str], str] = TargetResolver.resolve,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize workflow.

        Args:
            fetch_blocklist: Returns a freshly parsed blocklist.
            allocator: Cloud address allocator.
            dns: DNS record updater.
            router: Router IPsec peer updater.
            remote_host: Remote host IPsec updater.
            waiter: Reachability waiter.
            server_name: Name of the server whose address is checked.
            probe_target: Address or hostname to probe (default: new address).
            rotation_max_attempts: Allocation bound (None = unbounded).
            dry_run: Stop before changing anything when the address is blocked.
            notifier: Status channel (no-op if None).
            cancel_event: Set on SIGTERM or SIGINT to stop the run.
            resolve_target: Maps the probe target to an address.
            clock: Monotonic clock for the run duration.
        """
        self.fetch_blocklist = fetch_blocklist
        self.allocator = allocator
        self.cancel_event = cancel_event or threading.Event()
        self.rotator = AddressRotator(
            allocator, rotation_max_attempts, cancel_event=self.cancel_event
        )
        self.dns = dns
        self.router = router
        self.remote_host = remote_host
        self.waiter = waiter
        self.server_name = server_name
        self.probe_target = probe_target
        self.dry_run = dry_run
        self.notifier = notifier or NullNotifier()
        self.resolve_target = resolve_target
        self.clock = clock

    def run(self) -> WorkflowOutcome:
        """Execute the workflow, log and report its outcome.

        Returns:
            WorkflowOutcome: Terminal outcome; never raises for stage errors.
        """
        start = self.clock()
        outcome = self._execute()
        outcome.duration_ms = int((self.clock() - start) * 1000)
        outcome.finished_at = datetime.now(timezone.utc)

        log_outcome(outcome)
        self._notify(outcome)
        return outcome

    def _execute(self) -> WorkflowOutcome:
        outcome = WorkflowOutcome(
            kind=OutcomeKind.NO_ACTION, stage=Stage.FETCH_BLOCKLIST
        )

        try:
            log_stage(Stage.FETCH_BLOCKLIST)
            blocklist = self.fetch_blocklist()
            outcome.blocklist_size = len(blocklist)

            outcome.stage = Stage.CHECK_CURRENT_ADDRESS
            self._check_cancelled(outcome.stage)
            log_stage(outcome.stage, server=self.server_name)
            current = find_server_address(self.allocator, self.server_name)
            if current is None:
                raise ServerAddressNotFound(
                    f"error getting server ip: no address attached to {self.server_name}"
                )
            outcome.old_address = current.address

            if not is_blocked(blocklist, current.address):
                logger.info(
                    f"Current IP [{current.address}] is not found in banned IP list. Exiting."
                )
                return outcome

            logger.warning(f"Current IP [{current.address}] is in banned IP list")
            if self.dry_run:
                logger.info(
                    "DRY_RUN: Would rotate server address and reconfigure DNS, router and host"
                )
                outcome.kind = OutcomeKind.DRY_RUN
                return outcome

            outcome.stage = Stage.ROTATE_ADDRESS
            self._check_cancelled(outcome.stage)
            log_stage(outcome.stage, old_address=current.address)
            rotation = RotationResult()
            try:
                self.rotator.acquire(blocklist, rotation)
            finally:
                outcome.rejected_candidates = [c.address for c in rotation.rejected]
                outcome.release_failures = list(rotation.release_failures)

            new = rotation.candidate
            outcome.new_address = new.address
            outcome.new_address_id = new.id
            try:
                swap_server_address(self.allocator, current, new)
            except AddressSwapError as e:
                outcome.server_detached = e.detached
                if not e.detached:
                    if e.candidate_released:
                        outcome.new_address = None
                        outcome.new_address_id = None
                    else:
                        outcome.release_failures.append(new.address)
                raise

            outcome.stage = Stage.RECONFIGURE_DOWNSTREAM
            self._check_cancelled(outcome.stage)
            log_stage(outcome.stage, new_address=new.address)
            self.dns.update_record(new.address)
            outcome.completed_steps.append("dns")
            self.router.update_peer(current.address, new.address)
            outcome.completed_steps.append("router")
            self.remote_host.update_peer(current.address, new.address)
            outcome.completed_steps.append("remote_host")

            outcome.stage = Stage.AWAIT_REACHABILITY
            target = self.resolve_target(self.probe_target or new.address)
            log_stage(outcome.stage, target=target)
            outcome.probe_attempts = self.waiter.wait(target)

            outcome.kind = OutcomeKind.REMEDIATED
            return outcome

        except Exception as e:
            logger.error(
                f"Stage {outcome.stage.value} failed: {e}",
                exc_info=True,
                extra={"stage": outcome.stage.value},
            )
            outcome.kind = OutcomeKind.FAILED
            outcome.cause = f"{type(e).__name__}: {e}"
            return outcome

    def _notify(self, outcome: WorkflowOutcome) -> None:
        """Send the outcome to the notifier; a quiet NO_ACTION run is not sent.

        Delivery is best-effort: a notifier failure is logged and does not
        change the outcome.
        """
        if outcome.kind == OutcomeKind.NO_ACTION:
            return

        subject, body = OutcomeReporter.build_message(outcome)
        try:
            self.notifier.send(subject, body)
        except Exception as e:
            logger.error(f"Failed to send notification: {e}")

    def _check_cancelled(self, stage: Stage) -> None:
        if self.cancel_event.is_set():
            raise RunCancelled(f"run cancelled before {stage.value}")
