"""Canonical meeting types produced by the source adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time, timedelta
from enum import Enum
from typing import Iterator, Optional, Tuple, Union

PLACEHOLDER = "---"

ROLE_NAMES = ("manager", "helper", "scheduler", "expert", "handler", "guest_1", "guest_2")


class SourceKind(str, Enum):
    CURRENT = "current"
    LEGACY = "legacy"
    STAFF = "staff"


class CalendarType(str, Enum):
    POTENTIAL_CLIENT = "potential_client"
    ACTIVE_CLIENT = "active_client"
    STAFF = "staff"

    @classmethod
    def parse(cls, value, default: Optional["CalendarType"] = None) -> "CalendarType":
        """Parse a stored calendar type, falling back to ``default`` (potential client)."""
        if isinstance(value, CalendarType):
            return value
        text = str(value or "").strip().lower().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == text:
                return member
        return default or cls.POTENTIAL_CLIENT


# Roles that carry meaning per calendar; the rest render as placeholders.
MEANINGFUL_ROLES = {
    CalendarType.POTENTIAL_CLIENT: ("manager", "helper", "scheduler", "expert", "guest_1", "guest_2"),
    CalendarType.ACTIVE_CLIENT: ("manager", "helper", "scheduler", "expert", "handler", "guest_1", "guest_2"),
    CalendarType.STAFF: ("manager", "guest_1", "guest_2"),
}


class Confirmation(Enum):
    """Tri-state meeting confirmation. Only CONFIRMED is truthy."""

    CONFIRMED = "confirmed"
    DECLINED = "declined"
    UNSET = "unset"

    def __bool__(self) -> bool:
        return self is Confirmation.CONFIRMED

    @classmethod
    def from_fields(cls, flag=None, confirmed_at=None) -> "Confirmation":
        """
        Derive confirmation from a boolean flag and/or a confirmation timestamp.

        A truthy timestamp confirms regardless of the flag; an explicit False flag
        declines; anything else is unset.
        """
        if confirmed_at not in (None, ""):
            return cls.CONFIRMED
        if isinstance(flag, str):
            lowered = flag.strip().lower()
            if lowered in ("true", "t", "1", "yes"):
                return cls.CONFIRMED
            if lowered in ("false", "f", "0", "no"):
                return cls.DECLINED
            return cls.UNSET
        if flag is True:
            return cls.CONFIRMED
        if flag is False:
            return cls.DECLINED
        return cls.UNSET


@dataclass(frozen=True)
class EmployeeRef:
    id: int
    display_name: str


@dataclass(frozen=True)
class RawRole:
    """A role value that could not be resolved to an employee; shown verbatim."""

    text: str

    @property
    def display(self) -> str:
        return self.text or PLACEHOLDER


@dataclass(frozen=True)
class ResolvedRole:
    employee: EmployeeRef

    @property
    def display(self) -> str:
        return self.employee.display_name or PLACEHOLDER


RoleValue = Union[RawRole, ResolvedRole]


@dataclass(frozen=True)
class Participants:
    manager: Optional[RoleValue] = None
    helper: Optional[RoleValue] = None
    scheduler: Optional[RoleValue] = None
    expert: Optional[RoleValue] = None
    handler: Optional[RoleValue] = None
    guest_1: Optional[RoleValue] = None
    guest_2: Optional[RoleValue] = None

    def get(self, role: str) -> Optional[RoleValue]:
        if role not in ROLE_NAMES:
            raise ValueError(f"Unknown participant role: {role}")
        return getattr(self, role)

    def display(self, role: str) -> str:
        value = self.get(role)
        return value.display if value is not None else PLACEHOLDER

    def items(self) -> Iterator[Tuple[str, Optional[RoleValue]]]:
        for role in ROLE_NAMES:
            yield role, getattr(self, role)


@dataclass(frozen=True)
class Money:
    amount: float
    code: str
    symbol: str
    nis: float


@dataclass(frozen=True)
class Subject:
    """The lead (or synthetic staff subject) a meeting is about."""

    name: str
    number: Optional[str] = None
    category: Optional[str] = None
    balance: Optional[Money] = None
    stage: Optional[str] = None
    eligibility: Optional[str] = None
    probability: Optional[float] = None
    payment_ref: Optional[str] = None


@dataclass(frozen=True)
class Location:
    name: str
    link: Optional[str] = None


@dataclass(frozen=True)
class MeetingIdentity:
    """Structural identity used for duplicate detection."""

    source_kind: SourceKind
    raw_id: Optional[str]
    legacy_back_ref: Optional[str] = None

    @property
    def meeting_id(self) -> Optional[str]:
        """Id as exposed on the canonical Meeting, or None when the raw id is missing."""
        if not self.raw_id:
            return None
        if self.source_kind is SourceKind.LEGACY:
            return f"legacy_{self.raw_id}"
        if self.source_kind is SourceKind.STAFF:
            return f"staff_{self.raw_id}"
        return self.raw_id


def normalize_raw_id(value) -> Optional[str]:
    """Stringify a source id; numeric strings lose leading zeros and whitespace."""
    if value is None:
        return None
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return str(int(text))
    return text


@dataclass(frozen=True)
class Meeting:
    id: str
    identity: MeetingIdentity
    date: date
    time: Optional[time]
    calendar_type: CalendarType
    subject: Subject
    participants: Participants = field(default_factory=Participants)
    location: Location = field(default_factory=lambda: Location(name="Not specified"))
    confirmation: Confirmation = Confirmation.UNSET
    brief: str = ""
    attendees: Tuple[str, ...] = ()
    attendee_label: str = ""

    @property
    def source_kind(self) -> SourceKind:
        return self.identity.source_kind

    @property
    def is_paid(self) -> bool:
        if self.calendar_type is CalendarType.STAFF:
            return False
        return bool(self.subject.payment_ref)

    @property
    def value_nis(self) -> float:
        return self.subject.balance.nis if self.subject.balance else 0.0


@dataclass(frozen=True)
class DateWindow:
    """Inclusive calendar-date window."""

    start: date
    end: date

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError(f"Window end {self.end} precedes start {self.start}")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def truncated(self, max_days: int) -> "DateWindow":
        if self.days <= max_days:
            return self
        return DateWindow(self.start, self.start + timedelta(days=max_days - 1))

    def dates(self) -> Iterator[date]:
        current = self.start
        while current <= self.end:
            yield current
            current += timedelta(days=1)
