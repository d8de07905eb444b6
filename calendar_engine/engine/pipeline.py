"""Filter/sort pipeline over reconciled meetings."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import FrozenSet, Iterable, List, Optional

from calendar_engine.domain.availability import normalize_name
from calendar_engine.domain.meeting import PLACEHOLDER, CalendarType, Meeting, RawRole
from calendar_engine.services.directory import EmployeeDirectory


@dataclass(frozen=True)
class MeetingFilters:
    """Optional predicates, ANDed together. Unset fields match everything."""

    start: Optional[date] = None
    end: Optional[date] = None
    staff_name: Optional[str] = None
    calendar_types: FrozenSet[CalendarType] = field(default_factory=frozenset)
    paid_only: bool = False

    @classmethod
    def build(cls, start=None, end=None, staff_name=None, calendar_types=(), paid_only=False) -> "MeetingFilters":
        return cls(
            start=start,
            end=end,
            staff_name=staff_name or None,
            calendar_types=frozenset(CalendarType.parse(t) for t in calendar_types or ()),
            paid_only=paid_only,
        )


def participant_names(meeting: Meeting, directory: Optional[EmployeeDirectory] = None) -> List[str]:
    """Normalized names of everyone on the meeting; numeric raw ids go through the directory."""
    names = []
    for _, value in meeting.participants.items():
        if value is None:
            continue
        text = value.display
        if isinstance(value, RawRole) and directory is not None and text.isdigit():
            text = directory.display_name(text)
        if text and text != PLACEHOLDER:
            names.append(normalize_name(text))
    names.extend(normalize_name(name) for name in meeting.attendees)
    return names


def matches(meeting: Meeting, filters: MeetingFilters, directory: Optional[EmployeeDirectory] = None) -> bool:
    if filters.start is not None and meeting.date < filters.start:
        return False
    if filters.end is not None and meeting.date > filters.end:
        return False
    if filters.calendar_types and meeting.calendar_type not in filters.calendar_types:
        return False
    if filters.paid_only and not meeting.is_paid:
        return False
    if filters.staff_name:
        wanted = normalize_name(filters.staff_name)
        if wanted not in participant_names(meeting, directory):
            return False
    return True


def apply_filters(
    meetings: Iterable[Meeting],
    filters: Optional[MeetingFilters] = None,
    directory: Optional[EmployeeDirectory] = None,
) -> List[Meeting]:
    if filters is None:
        return list(meetings)
    return [meeting for meeting in meetings if matches(meeting, filters, directory)]


def sort_meetings(meetings: Iterable[Meeting]) -> List[Meeting]:
    """Ascending by date, then time with timed before untimed; stable for equal keys."""
    return sorted(meetings, key=lambda m: (m.date, m.time is None, m.time or time.min))


def run_pipeline(
    meetings: Iterable[Meeting],
    filters: Optional[MeetingFilters] = None,
    directory: Optional[EmployeeDirectory] = None,
) -> List[Meeting]:
    return sort_meetings(apply_filters(meetings, filters, directory))
