"""Domain types, models and data access layer."""

from .availability import StaffMember, UnavailabilityType, UnavailableRange, UnavailableSlot
from .meeting import (
    CalendarType,
    Confirmation,
    DateWindow,
    EmployeeRef,
    Location,
    Meeting,
    MeetingIdentity,
    Money,
    Participants,
    RawRole,
    ResolvedRole,
    SourceKind,
    Subject,
)
from .models import Base
from .store import SqlMeetingStore

__all__ = [
    "StaffMember",
    "UnavailabilityType",
    "UnavailableRange",
    "UnavailableSlot",
    "CalendarType",
    "Confirmation",
    "DateWindow",
    "EmployeeRef",
    "Location",
    "Meeting",
    "MeetingIdentity",
    "Money",
    "Participants",
    "RawRole",
    "ResolvedRole",
    "SourceKind",
    "Subject",
    "Base",
    "SqlMeetingStore",
]
