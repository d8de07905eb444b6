"""Availability index: employee unavailability compiled into a date-keyed lookup."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, time
from typing import Dict, Iterable, List, Optional

from calendar_engine.domain.availability import StaffMember, UnavailabilityType, normalize_name

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AvailabilityEntry:
    """One unavailable period on one date. ``start``/``end`` are None for all-day entries."""

    date: date
    start: Optional[time] = None
    end: Optional[time] = None
    reason: Optional[str] = None
    kind: UnavailabilityType = UnavailabilityType.GENERAL

    @property
    def all_day(self) -> bool:
        return self.start is None or self.end is None

    def matches(self, at: Optional[time]) -> bool:
        if self.all_day or at is None:
            return True
        return self.start <= at <= self.end


class AvailabilityIndex:
    """
    Immutable per-employee, per-date lookup.

    Built once from a directory snapshot and never mutated; refreshing means
    building a new index and swapping it in.
    """

    def __init__(self, entries: Optional[Dict[str, Dict[date, List[AvailabilityEntry]]]] = None):
        self._entries = entries or {}

    @classmethod
    def build(cls, employees: Iterable[StaffMember]) -> "AvailabilityIndex":
        entries: Dict[str, Dict[date, List[AvailabilityEntry]]] = {}
        for employee in employees:
            key = normalize_name(employee.display_name)
            if not key:
                continue
            by_date = entries.setdefault(key, defaultdict(list))
            for slot in employee.slots:
                by_date[slot.date].append(
                    AvailabilityEntry(slot.date, slot.start_time, slot.end_time, slot.reason, slot.kind)
                )
            for unavailable in employee.ranges:
                for day in unavailable.dates():
                    by_date[day].append(AvailabilityEntry(day, reason=unavailable.reason, kind=unavailable.kind))
        return cls({name: dict(by_date) for name, by_date in entries.items()})

    def __len__(self) -> int:
        return len(self._entries)

    def entries_for(self, name: Optional[str], day: date) -> List[AvailabilityEntry]:
        return list(self._entries.get(normalize_name(name), {}).get(day, ()))

    def reason_for(self, name: Optional[str], day: date, at: Optional[time] = None) -> Optional[AvailabilityEntry]:
        """The matching entry, all-day entries first, then timed ones in declaration order."""
        entries = self.entries_for(name, day)
        for entry in entries:
            if entry.all_day:
                return entry
        for entry in entries:
            if entry.matches(at):
                return entry
        return None

    def is_unavailable(self, name: Optional[str], day: date, at: Optional[time] = None) -> bool:
        return self.reason_for(name, day, at) is not None


class AvailabilityIndexHolder:
    """Publishes the current index; readers always see a complete snapshot."""

    def __init__(self, index: Optional[AvailabilityIndex] = None):
        self._index = index or AvailabilityIndex()
        self._lock = threading.Lock()
        self.version = 0

    @property
    def current(self) -> AvailabilityIndex:
        with self._lock:
            return self._index

    def publish(self, index: AvailabilityIndex) -> None:
        with self._lock:
            self._index = index
            self.version += 1
        logger.info("Published availability index v%d (%d employees)", self.version, len(index))
