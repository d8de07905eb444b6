"""CalendarEngine - fans out to the meeting sources, reconciles, and guards assignments."""

from __future__ import annotations

import logging
import threading
import time as clock
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from dataclasses import dataclass, field, replace
from datetime import date, time
from typing import Any, Dict, Iterable, List, Optional, Union

from calendar_engine.adapters import ADAPTERS, BaseSourceAdapter, SourceContext, SourceResult
from calendar_engine.config import EngineConfig
from calendar_engine.domain.availability import UnavailableSlot
from calendar_engine.domain.meeting import ROLE_NAMES, DateWindow, EmployeeRef, Meeting, ResolvedRole, SourceKind
from calendar_engine.errors import (
    AmbiguousIdentity,
    AssignmentConflict,
    SourceTimeout,
    SourceUnavailable,
    WindowTooLarge,
    WriteFailed,
)
from calendar_engine.interfaces import IdentityLookup, MeetingStore, Notifier
from calendar_engine.services.cache import SessionCache
from calendar_engine.services.currency import total_in_nis
from calendar_engine.services.directory import EmployeeDirectory
from calendar_engine.services.lookups import LookupTables
from calendar_engine.services.notifications import dispatch_notification
from calendar_engine.services.planner import TimeWindowPlanner
from calendar_engine.services.timeplan import time_to_minutes

from .availability import AvailabilityIndex, AvailabilityIndexHolder
from .conflicts import ConflictEvaluator, ConflictResult
from .pipeline import MeetingFilters, run_pipeline
from .reconciler import Reconciler

logger = logging.getLogger(__name__)

EMPLOYEES_KEY = "employees"
LOOKUPS_KEY = "lookups"

SOURCE_ORDER = (SourceKind.CURRENT, SourceKind.LEGACY, SourceKind.STAFF)


@dataclass
class ReconciledMeetings:
    """One reconciled window, tagged with the request generation that produced it."""

    window: DateWindow
    meetings: List[Meeting] = field(default_factory=list)
    rejection: Optional[WindowTooLarge] = None
    degraded_sources: Dict[SourceKind, SourceUnavailable] = field(default_factory=dict)
    skipped_sources: List[SourceKind] = field(default_factory=list)
    source_windows: Dict[SourceKind, DateWindow] = field(default_factory=dict)
    ambiguous: List[AmbiguousIdentity] = field(default_factory=list)
    discarded: int = 0
    generation: int = 0
    stale: bool = False

    @property
    def total_nis(self) -> float:
        return total_in_nis(self.meetings)

    @property
    def complete(self) -> bool:
        return self.rejection is None and not self.degraded_sources and not self.skipped_sources


@dataclass
class AssignmentOutcome:
    """Result of an assignment attempt: written, held back by a conflict, or failed."""

    meeting_id: str
    role: str
    employee: EmployeeRef
    written: bool = False
    conflict: Optional[AssignmentConflict] = None
    failure: Optional[WriteFailed] = None
    changed_by: Optional[EmployeeRef] = None

    @property
    def ok(self) -> bool:
        return self.written and self.failure is None

    @property
    def status(self) -> str:
        if self.failure is not None:
            return "write_failed"
        if not self.written:
            return "conflict"
        return "ok"


class CalendarEngine:
    """
    Facade over planner, adapters, reconciler, pipeline and conflict checks.

    One engine serves one operator session: it owns the session cache, the
    thread pool used for source fan-out and the published availability index.
    """

    def __init__(
        self,
        store: MeetingStore,
        config: Optional[EngineConfig] = None,
        identity: Optional[IdentityLookup] = None,
        notifier: Optional[Notifier] = None,
        cache: Optional[SessionCache] = None,
        planner: Optional[TimeWindowPlanner] = None,
        adapters: Optional[Iterable[BaseSourceAdapter]] = None,
    ):
        """
        Args:
            store: Persistent store the adapters and writes go through
            config: Engine configuration (defaults when omitted)
            identity: Maps a principal to the employee making a change
            notifier: Receives assignment events; failures are only logged
            cache: Session cache for employees and lookup rows
            planner: Window planner; defaults to one sharing the process-wide breaker
            adapters: Source adapters; defaults to current, legacy and staff
        """
        self.store = store
        self.config = config or EngineConfig()
        self.identity = identity
        self.notifier = notifier
        self.cache = cache or SessionCache(ttl_seconds=self.config.cache.ttl_seconds)
        self.planner = planner or TimeWindowPlanner.from_config(self.config.window, self.config.breaker)
        if adapters is None:
            adapters = [ADAPTERS[kind](store) for kind in SOURCE_ORDER]
        self.adapters: Dict[SourceKind, BaseSourceAdapter] = {adapter.kind: adapter for adapter in adapters}

        self.reconciler = Reconciler()
        self._index = AvailabilityIndexHolder()
        self.evaluator = ConflictEvaluator(self._index)
        self._executor = ThreadPoolExecutor(
            max_workers=self.config.sources.max_workers,
            thread_name_prefix="calendar-source",
        )
        self._lock = threading.Lock()
        self._generation = 0
        self._latest: Optional[ReconciledMeetings] = None
        self._meetings: Dict[str, Meeting] = {}
        self._index_loaded = False

    def __enter__(self) -> "CalendarEngine":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        """Release the worker pool without waiting for abandoned source fetches."""
        self._executor.shutdown(wait=False)

    # Reference data

    def directory(self) -> EmployeeDirectory:
        def load() -> EmployeeDirectory:
            return EmployeeDirectory.from_rows(self.store.query_employees({"with_availability": True}))

        return self.cache.get_or_load(EMPLOYEES_KEY, load)

    def lookups(self) -> LookupTables:
        def load() -> LookupTables:
            try:
                return LookupTables.from_rows(
                    self.store.query_lookup("locations"),
                    self.store.query_lookup("currencies"),
                )
            except Exception as exc:
                logger.warning("Lookup tables unavailable, using built-in tables: %s", exc)
                return LookupTables.seed()

        return self.cache.get_or_load(LOOKUPS_KEY, load)

    def _context(self) -> SourceContext:
        try:
            directory = self.directory()
        except Exception as exc:
            logger.warning("Employee directory unavailable, roles stay unresolved: %s", exc)
            directory = EmployeeDirectory()
        return SourceContext(directory=directory, lookups=self.lookups(), staff=self.config.staff)

    # Reads

    @property
    def latest(self) -> Optional[ReconciledMeetings]:
        with self._lock:
            return self._latest

    def get_meeting(self, meeting_id: str) -> Optional[Meeting]:
        with self._lock:
            return self._meetings.get(meeting_id)

    def get_reconciled_meetings(
        self,
        window: DateWindow,
        filters: Optional[MeetingFilters] = None,
    ) -> ReconciledMeetings:
        """
        Fetch every source for the window, reconcile, filter and sort.

        A window over the hard ceiling is rejected before any fetch. Sources
        that fail or time out are reported in ``degraded_sources`` and
        contribute nothing.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation

        rejection = self.planner.check(window)
        if rejection is not None:
            return ReconciledMeetings(window=window, rejection=rejection, generation=generation)

        result = ReconciledMeetings(window=window, generation=generation)
        context = self._context()
        results = self._fan_out(window, context, result)

        report = self.reconciler.reconcile(
            current=results[SourceKind.CURRENT].meetings if SourceKind.CURRENT in results else (),
            legacy=results[SourceKind.LEGACY].meetings if SourceKind.LEGACY in results else (),
            staff=results[SourceKind.STAFF].meetings if SourceKind.STAFF in results else (),
        )
        result.ambiguous = report.ambiguous
        result.discarded = len(report.discarded)
        result.meetings = run_pipeline(report.meetings, filters, context.directory)

        with self._lock:
            if generation != self._generation:
                result.stale = True
                logger.info("Discarding stale result for generation %d", generation)
            else:
                self._latest = result
                self._meetings = {meeting.id: meeting for meeting in report.meetings}
        return result

    def _fan_out(
        self,
        window: DateWindow,
        context: SourceContext,
        result: ReconciledMeetings,
    ) -> Dict[SourceKind, SourceResult]:
        """Run the planned sources in parallel and join them within the source timeout."""
        futures: Dict[SourceKind, Future] = {}
        for kind, adapter in self.adapters.items():
            planned = self.planner.plan(kind, window)
            if planned is None:
                result.skipped_sources.append(kind)
                continue
            result.source_windows[kind] = planned
            futures[kind] = self._executor.submit(adapter.fetch_result, planned, context)

        deadline = clock.monotonic() + self.config.sources.timeout_seconds
        results: Dict[SourceKind, SourceResult] = {}
        for kind, future in futures.items():
            try:
                source_result = future.result(timeout=max(0.0, deadline - clock.monotonic()))
            except FutureTimeout:
                if future.cancel():
                    logger.warning("Source '%s' never started before the deadline; skipped", kind.value)
                    result.skipped_sources.append(kind)
                    results[kind] = SourceResult(kind, result.source_windows[kind], [], skipped=True)
                    continue
                logger.warning(
                    "Source '%s' exceeded %.1fs; result will be discarded",
                    kind.value, self.config.sources.timeout_seconds,
                )
                source_result = SourceResult(
                    kind, result.source_windows[kind], [], SourceTimeout(kind.value, "fetch timed out")
                )

            if source_result.timed_out:
                self.planner.record_timeout(kind)
            elif source_result.ok:
                self.planner.record_success(kind)
            if source_result.error is not None:
                result.degraded_sources[kind] = source_result.error
            results[kind] = source_result
        return results

    def reenable_source(self, kind: SourceKind) -> None:
        self.planner.reenable(kind)

    # Availability

    def refresh_availability(self) -> AvailabilityIndex:
        """Reload employees, build a fresh index off to the side and publish it."""
        self.cache.invalidate(EMPLOYEES_KEY)
        index = AvailabilityIndex.build(self.directory().members)
        self._index.publish(index)
        self._index_loaded = True
        return index

    def _ensure_index(self) -> None:
        if not self._index_loaded:
            self.refresh_availability()

    def check_assignment(self, employee: Union[str, EmployeeRef], day: date, at: Optional[time] = None) -> ConflictResult:
        self._ensure_index()
        name = employee.display_name if isinstance(employee, EmployeeRef) else str(employee)
        return self.evaluator.evaluate(name, day, at)

    def add_unavailable_slot(
        self,
        employee: Union[str, int, EmployeeRef],
        slot: UnavailableSlot,
        today: Optional[date] = None,
    ) -> UnavailableSlot:
        """
        Validate and persist a new unavailable slot, then republish the index.

        Raises:
            ValueError: If the employee is unknown or the slot is invalid or
                clashes with an existing slot on the same date
        """
        member = self.directory().find(employee)
        if member is None:
            raise ValueError(f"Unknown employee: {employee}")
        if not (slot.reason or "").strip():
            raise ValueError("A reason is required")
        if slot.start_time >= slot.end_time:
            raise ValueError("Start time must be before end time")
        today = today or date.today()
        if slot.date < today:
            raise ValueError(f"Cannot declare unavailability in the past ({slot.date})")

        start, end = time_to_minutes(slot.start_time), time_to_minutes(slot.end_time)
        for existing in member.slots:
            if existing.date != slot.date:
                continue
            if existing.key == slot.key:
                raise ValueError(f"{member.display_name} already has this slot on {slot.date}")
            if time_to_minutes(existing.start_time) < end and start < time_to_minutes(existing.end_time):
                raise ValueError(
                    f"Overlaps existing slot {existing.key[1]}-{existing.key[2]} on {slot.date}"
                )

        self.store.insert_unavailable_slot(member.id, slot)
        logger.info("Declared unavailability for %s on %s %s-%s", member.display_name, *slot.key)
        self.refresh_availability()
        return slot

    # Writes

    def _resolve_employee(self, employee: Union[str, int, EmployeeRef]) -> EmployeeRef:
        if isinstance(employee, EmployeeRef):
            return employee
        member = self.directory().find(employee)
        if member is None:
            raise ValueError(f"Unknown employee: {employee}")
        return member.ref

    def assign(
        self,
        meeting_id: str,
        role: str,
        employee: Union[str, int, EmployeeRef],
        acknowledge_conflict: bool = False,
        principal: Optional[str] = None,
    ) -> AssignmentOutcome:
        """
        Assign an employee to one role of one loaded meeting.

        A conflict with declared unavailability is returned as a warning and
        nothing is written unless ``acknowledge_conflict`` is set. The loaded
        meeting is only updated after the store confirms the write.

        Raises:
            ValueError: If the role or employee is unknown
        """
        if role not in ROLE_NAMES:
            raise ValueError(f"Unknown participant role: {role}")
        ref = self._resolve_employee(employee)
        outcome = AssignmentOutcome(meeting_id=meeting_id, role=role, employee=ref)

        meeting = self.get_meeting(meeting_id)
        if meeting is None:
            outcome.failure = WriteFailed(meeting_id, role, "meeting is not in the loaded meeting set")
            logger.error("%s", outcome.failure)
            return outcome

        conflict = self.check_assignment(ref, meeting.date, meeting.time).as_warning()
        outcome.conflict = conflict
        if conflict is not None and not acknowledge_conflict:
            logger.info("Assignment held back: %s", conflict)
            return outcome

        changed_by = self._changed_by(principal)
        try:
            self.store.update_assignment(meeting_id, role, ref)
        except Exception as exc:
            outcome.failure = WriteFailed(meeting_id, role, str(exc) or type(exc).__name__)
            logger.error("%s", outcome.failure)
            return outcome

        outcome.written = True
        self._apply_assignment(meeting, role, ref)
        outcome.changed_by = changed_by
        logger.info("Assigned %s as %s on %s", ref.display_name, role, meeting_id)

        dispatch_notification(self.notifier, "assignment.updated", self._event_payload(outcome, meeting))
        return outcome

    def _changed_by(self, principal: Optional[str]) -> Optional[EmployeeRef]:
        """Resolve who is making a change; a failing lookup leaves it unattributed."""
        if not principal or self.identity is None:
            return None
        try:
            return self.identity.resolve(principal)
        except Exception as exc:
            logger.error("Identity lookup failed for %s: %s", principal, exc)
            return None

    def _apply_assignment(self, meeting: Meeting, role: str, ref: EmployeeRef) -> None:
        updated = replace(meeting, participants=replace(meeting.participants, **{role: ResolvedRole(ref)}))
        with self._lock:
            self._meetings[meeting.id] = updated
            if self._latest is not None:
                self._latest.meetings = [updated if m.id == meeting.id else m for m in self._latest.meetings]

    @staticmethod
    def _event_payload(outcome: AssignmentOutcome, meeting: Meeting) -> Dict[str, Any]:
        return {
            "meeting_id": outcome.meeting_id,
            "role": outcome.role,
            "employee_id": outcome.employee.id,
            "employee": outcome.employee.display_name,
            "date": meeting.date.isoformat(),
            "time": meeting.time.strftime("%H:%M") if meeting.time else None,
            "conflict_acknowledged": outcome.conflict is not None,
            "changed_by": outcome.changed_by.display_name if outcome.changed_by else None,
        }
