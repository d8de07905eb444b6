"""Conflict evaluator for candidate assignments."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional

from calendar_engine.errors import AssignmentConflict

from .availability import AvailabilityEntry, AvailabilityIndex, AvailabilityIndexHolder


@dataclass(frozen=True)
class ConflictResult:
    employee: str
    date: date
    time: Optional[time]
    entry: Optional[AvailabilityEntry] = None

    @property
    def available(self) -> bool:
        return self.entry is None

    @property
    def reason(self) -> Optional[str]:
        return self.entry.reason if self.entry else None

    def as_warning(self) -> Optional[AssignmentConflict]:
        if self.available:
            return None
        return AssignmentConflict(employee=self.employee, date=self.date, time=self.time, reason=self.reason)


class ConflictEvaluator:
    """Reads whichever index is published at call time; never blocks an assignment."""

    def __init__(self, source: AvailabilityIndex | AvailabilityIndexHolder):
        self._source = source

    @property
    def index(self) -> AvailabilityIndex:
        if isinstance(self._source, AvailabilityIndexHolder):
            return self._source.current
        return self._source

    def evaluate(self, employee: str, day: date, at: Optional[time] = None) -> ConflictResult:
        return ConflictResult(employee, day, at, self.index.reason_for(employee, day, at))
