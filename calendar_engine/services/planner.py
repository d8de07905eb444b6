"""Time-window planning and the per-source circuit breaker.

The legacy source scans a large, sparsely indexed table, so its windows are
truncated to the soft ceiling. Any window above the hard ceiling is refused
before a single source is queried.

Once a source signals a timeout its breaker opens and stays open for the life
of the process; there is no half-open probe. Re-enable with ``reset()``.

Usage:
    from calendar_engine.services.planner import TimeWindowPlanner

    planner = TimeWindowPlanner()
    rejection = planner.check(window)
    if rejection is None:
        legacy_window = planner.plan(SourceKind.LEGACY, window)  # None => skip
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from calendar_engine.config import BreakerPolicy, WindowPolicy
from calendar_engine.domain.meeting import DateWindow, SourceKind
from calendar_engine.errors import WindowTooLarge

logger = logging.getLogger(__name__)


@dataclass
class BreakerState:
    """Internal state for a single source circuit."""

    consecutive_timeouts: int = 0
    total_timeouts: int = 0
    state: str = "closed"  # "closed" | "open"


class SourceCircuitBreaker:
    """Thread-safe, process-wide breaker keyed by source name.

    Args:
        failure_threshold: Consecutive timeouts before the circuit opens.
    """

    def __init__(self, failure_threshold: int = 1):
        self.failure_threshold = failure_threshold
        self._circuits: Dict[str, BreakerState] = {}
        self._lock = threading.Lock()

    def _get_circuit(self, source: str) -> BreakerState:
        """Get or create circuit state for a source. Must hold _lock."""
        if source not in self._circuits:
            self._circuits[source] = BreakerState()
        return self._circuits[source]

    def can_execute(self, source: str) -> bool:
        with self._lock:
            return self._get_circuit(source).state == "closed"

    def record_timeout(self, source: str, threshold: Optional[int] = None) -> None:
        """Record a timeout/cost-limit signal; opens the circuit at the threshold.

        Args:
            source: Source name
            threshold: Caller's threshold; defaults to the breaker's own
        """
        threshold = threshold if threshold is not None else self.failure_threshold
        with self._lock:
            circuit = self._get_circuit(source)
            circuit.consecutive_timeouts += 1
            circuit.total_timeouts += 1
            if circuit.state == "closed" and circuit.consecutive_timeouts >= threshold:
                circuit.state = "open"
                logger.warning(
                    "Source '%s' disabled after %d consecutive timeout(s); re-enable explicitly",
                    source,
                    circuit.consecutive_timeouts,
                )

    def record_success(self, source: str) -> None:
        with self._lock:
            circuit = self._get_circuit(source)
            if circuit.state == "closed":
                circuit.consecutive_timeouts = 0

    def reset(self, source: Optional[str] = None) -> None:
        """Re-enable one source, or all of them."""
        with self._lock:
            if source is None:
                self._circuits.clear()
            else:
                self._circuits.pop(source, None)
        logger.info("Circuit breaker reset for %s", source or "all sources")

    def get_state(self, source: str) -> str:
        with self._lock:
            return self._get_circuit(source).state

    def get_all_states(self) -> Dict[str, Dict[str, Any]]:
        with self._lock:
            return {
                source: {
                    "state": circuit.state,
                    "consecutive_timeouts": circuit.consecutive_timeouts,
                    "total_timeouts": circuit.total_timeouts,
                }
                for source, circuit in self._circuits.items()
            }


# Process-wide instance shared by every planner that is not given its own.
source_breaker = SourceCircuitBreaker()


class TimeWindowPlanner:
    """Clamp and validate requested windows per source."""

    def __init__(
        self,
        policy: Optional[WindowPolicy] = None,
        breaker: Optional[SourceCircuitBreaker] = None,
        failure_threshold: Optional[int] = None,
    ):
        self.policy = policy or WindowPolicy()
        self.breaker = breaker if breaker is not None else source_breaker
        self.failure_threshold = failure_threshold

    @classmethod
    def from_config(cls, window: WindowPolicy, breaker: BreakerPolicy) -> "TimeWindowPlanner":
        """Planner sharing the process-wide breaker; the threshold stays with this planner."""
        return cls(policy=window, breaker=source_breaker, failure_threshold=breaker.failure_threshold)

    def check(self, window: DateWindow) -> Optional[WindowTooLarge]:
        """Return a rejection when the window exceeds the hard ceiling, else None."""
        if window.days > self.policy.hard_ceiling_days:
            logger.warning(
                "Rejected window %s..%s (%d days > %d)",
                window.start, window.end, window.days, self.policy.hard_ceiling_days,
            )
            return WindowTooLarge(requested_days=window.days, ceiling_days=self.policy.hard_ceiling_days)
        return None

    def is_cost_sensitive(self, source: SourceKind) -> bool:
        return source.value in self.policy.cost_sensitive_sources

    def plan(self, source: SourceKind, window: DateWindow) -> Optional[DateWindow]:
        """
        Effective window for one source.

        Returns:
            The window to fetch, or None when the request must be skipped
            (hard ceiling exceeded or the source's breaker is open)
        """
        if self.check(window) is not None:
            return None
        if not self.breaker.can_execute(source.value):
            logger.info("Skipping source '%s': circuit open", source.value)
            return None
        if self.is_cost_sensitive(source) and window.days > self.policy.soft_ceiling_days:
            truncated = window.truncated(self.policy.soft_ceiling_days)
            logger.info(
                "Truncated %s window %s..%s to %s..%s",
                source.value, window.start, window.end, truncated.start, truncated.end,
            )
            return truncated
        return window

    def plan_all(self, window: DateWindow, sources: Iterable[SourceKind]) -> Dict[SourceKind, Optional[DateWindow]]:
        return {source: self.plan(source, window) for source in sources}

    def record_timeout(self, source: SourceKind) -> None:
        self.breaker.record_timeout(source.value, self.failure_threshold)

    def record_success(self, source: SourceKind) -> None:
        self.breaker.record_success(source.value)

    def reenable(self, source: SourceKind) -> None:
        self.breaker.reset(source.value)
