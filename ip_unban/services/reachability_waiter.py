"""Bounded polling of the reachability probe."""

import logging
import threading
import time
from typing import Callable, Optional, Protocol

from ip_unban.errors import ReachabilityCancelled, ReachabilityTimeout
from ip_unban.models.probe_result import ProbeResult


logger = logging.getLogger(__name__)


class Probe(Protocol):
    def probe(self, target: str) -> ProbeResult: ...


class ReachabilityWaiter:
    """Probes a target on a fixed cadence until success or a deadline.

    Ticks fall at ``start + k * interval``; the first probe is sent one
    interval after the wait starts, so at most ``floor(deadline / interval)``
    probes are sent. Waiting between ticks is done on ``cancel_event`` so a
    cancellation interrupts it immediately.

    Example:
        >>> waiter = ReachabilityWaiter(IcmpEchoProbe(), interval=1, deadline=15)
        >>> waiter.wait("203.0.113.7")
        3
    """

    def __init__(
        self,
        probe: Probe,
        interval: float = 1.0,
        deadline: float = 15.0,
        cancel_event: Optional[threading.Event] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if interval <= 0:
            raise ValueError("interval must be positive")
        if deadline < interval:
            raise ValueError("deadline must be at least one interval")
        self.probe = probe
        self.interval = interval
        self.deadline = deadline
        self.cancel_event = cancel_event or threading.Event()
        self.clock = clock

    def wait(self, target: str) -> int:
        """Wait until the target answers a probe.

        Args:
            target: Address to probe.

        Returns:
            int: Number of the attempt that succeeded (1-based).

        Raises:
            ReachabilityTimeout: If no probe succeeded before the deadline.
            ReachabilityCancelled: If the cancel event was set. A probe result
                that arrives after cancellation is discarded.
        """
        start = self.clock()
        deadline_at = start + self.deadline
        attempts = 0
        tick = 1
        # Whole ticks; deadline / interval can land just below an integer
        last_tick = int(self.deadline / self.interval + 1e-9)

        while tick <= last_tick:
            next_tick = start + tick * self.interval

            if self._sleep_until(next_tick):
                raise ReachabilityCancelled(f"connectivity check [{target}]: cancelled")

            attempts += 1
            result = self.probe.probe(target)

            if self.cancel_event.is_set():
                raise ReachabilityCancelled(f"connectivity check [{target}]: cancelled")

            if result.ok:
                logger.info(
                    f"Host {target} is reachable",
                    extra={"attempt": attempts, "elapsed_sec": self.clock() - start},
                )
                return attempts

            logger.debug(
                f"Probe {attempts} to {target} failed: {result.status.value}",
                extra={"detail": result.detail},
            )

            # Ticks that passed while the probe was running are dropped
            elapsed_ticks = int((self.clock() - start) // self.interval)
            tick = max(tick + 1, elapsed_ticks + 1)

        if self._sleep_until(deadline_at):
            raise ReachabilityCancelled(f"connectivity check [{target}]: cancelled")
        raise ReachabilityTimeout(target, self.deadline, attempts)

    def _sleep_until(self, when: float) -> bool:
        """Block until ``when`` or cancellation; returns True if cancelled."""
        delay = when - self.clock()
        if delay <= 0:
            return self.cancel_event.is_set()
        return self.cancel_event.wait(delay)
