"""Employee unavailability types."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from enum import Enum
from typing import Iterator, List, Optional

from .meeting import EmployeeRef


class UnavailabilityType(str, Enum):
    GENERAL = "general"
    SICK_DAYS = "sick_days"
    VACATION = "vacation"

    @classmethod
    def parse(cls, value) -> "UnavailabilityType":
        text = str(value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return member
        return cls.GENERAL


@dataclass(frozen=True)
class UnavailableSlot:
    """A declared unavailable period on a single date. Times are inclusive."""

    date: date
    start_time: time
    end_time: time
    reason: Optional[str] = None
    kind: UnavailabilityType = UnavailabilityType.GENERAL

    def __post_init__(self):
        if self.end_time < self.start_time:
            raise ValueError(
                f"Slot on {self.date} ends ({self.end_time}) before it starts ({self.start_time})"
            )

    @property
    def key(self) -> tuple:
        return (self.date, self.start_time.strftime("%H:%M"), self.end_time.strftime("%H:%M"))


@dataclass(frozen=True)
class UnavailableRange:
    """A multi-day all-day unavailability, inclusive on both dates."""

    start_date: date
    end_date: date
    reason: Optional[str] = None
    kind: UnavailabilityType = UnavailabilityType.GENERAL

    def __post_init__(self):
        if self.end_date < self.start_date:
            raise ValueError(f"Range ends ({self.end_date}) before it starts ({self.start_date})")

    def dates(self) -> Iterator[date]:
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)


@dataclass
class StaffMember:
    """An employee as seen by the availability index and the directory."""

    id: int
    display_name: str
    email: Optional[str] = None
    photo_url: Optional[str] = None
    role_code: Optional[str] = None
    department: Optional[str] = None
    is_active: bool = True
    slots: List[UnavailableSlot] = field(default_factory=list)
    ranges: List[UnavailableRange] = field(default_factory=list)

    @property
    def ref(self) -> EmployeeRef:
        return EmployeeRef(id=self.id, display_name=self.display_name)


def normalize_name(name: Optional[str]) -> str:
    """Case- and whitespace-insensitive key for employee names."""
    if not name:
        return ""
    return " ".join(str(name).split()).casefold()
