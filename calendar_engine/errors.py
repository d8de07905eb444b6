"""Error taxonomy for the reconciliation engine.

Source failures are exceptions, but they never travel past an adapter: the
adapter absorbs them and hands them back inside a ``SourceResult``. Everything
else the caller sees is a typed result object rather than a raised exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Optional


class SourceUnavailable(Exception):
    """A source adapter could not fetch or shape its rows."""

    def __init__(self, source: str, message: str):
        super().__init__(f"{source}: {message}")
        self.source = source
        self.message = message


class SourceTimeout(SourceUnavailable):
    """A source exceeded its time or cost limit."""


@dataclass(frozen=True)
class WindowTooLarge:
    """The requested window exceeds the hard ceiling; nothing was fetched."""

    requested_days: int
    ceiling_days: int

    def __str__(self) -> str:
        return f"Requested window of {self.requested_days} days exceeds the {self.ceiling_days}-day limit"


@dataclass(frozen=True)
class AmbiguousIdentity:
    """A record whose duplicate status could not be determined; kept as distinct."""

    source_kind: str
    assigned_id: str
    detail: str


@dataclass(frozen=True)
class AssignmentConflict:
    """Warning: the employee declared unavailability at the meeting time."""

    employee: str
    date: date
    time: Optional[time]
    reason: Optional[str]

    def __str__(self) -> str:
        when = f"{self.date.isoformat()} {self.time.strftime('%H:%M')}" if self.time else self.date.isoformat()
        suffix = f" ({self.reason})" if self.reason else ""
        return f"{self.employee} is unavailable on {when}{suffix}"


@dataclass(frozen=True)
class WriteFailed:
    """The store rejected an assignment update. Not retried."""

    meeting_id: str
    role: str
    message: str

    def __str__(self) -> str:
        return f"Failed to update {self.role} on meeting {self.meeting_id}: {self.message}"
