"""SQLAlchemy implementation of the MeetingStore protocol."""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Mapping, Optional

from .availability import UnavailableSlot
from .db import DatabaseManager
from .meeting import DateWindow, EmployeeRef, SourceKind
from .models import Employee, UnavailableTime
from .repositories import (
    EmployeeRepository,
    LegacyLeadRepository,
    LookupRepository,
    MeetingRepository,
    StaffMeetingRepository,
)

logger = logging.getLogger(__name__)

# Role -> column on the current meetings table (stores display names).
CURRENT_ROLE_COLUMNS = {
    "manager": "meeting_manager",
    "helper": "helper",
    "scheduler": "meeting_scheduler",
    "expert": "expert",
    "handler": "handler",
    "guest_1": "guest_1",
    "guest_2": "guest_2",
}

# Role -> column on the legacy leads table (stores employee ids).
LEGACY_ROLE_COLUMNS = {
    "manager": "meeting_manager_id",
    "helper": "meeting_lawyer_id",
    "scheduler": "meeting_scheduler_id",
    "expert": "expert_id",
    "handler": "case_handler_id",
}


def _columns(obj) -> Dict[str, Any]:
    return {column.key: getattr(obj, column.key) for column in obj.__table__.columns}


def _employee_row(emp: Employee, with_availability: bool) -> Dict[str, Any]:
    row = _columns(emp)
    if with_availability:
        row["unavailable_times"] = [_columns(t) for t in emp.unavailable_times]
        row["unavailability_reasons"] = [_columns(r) for r in emp.unavailability_reasons]
    return row


class SqlMeetingStore:
    """
    Store backed by the relational tables in ``models``.

    Every call opens its own session, so concurrent adapter fetches never
    share a session.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    def query_meetings(
        self,
        kind: SourceKind,
        window: DateWindow,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        with self.db.session_scope() as session:
            if kind is SourceKind.CURRENT:
                meetings = MeetingRepository.get_in_window(
                    session, window.start, window.end,
                    include_canceled=bool(filters.get("include_canceled", False)),
                )
                rows = []
                for meeting in meetings:
                    row = _columns(meeting)
                    row["lead"] = _columns(meeting.lead) if meeting.lead is not None else None
                    rows.append(row)
                return rows
            if kind is SourceKind.LEGACY:
                return [_columns(lead) for lead in LegacyLeadRepository.get_meetings_in_window(session, window.start, window.end)]
            if kind is SourceKind.STAFF:
                return [_columns(m) for m in StaffMeetingRepository.get_in_window(session, window.start, window.end)]
        raise ValueError(f"Unknown source kind: {kind}")

    def query_employees(self, filters: Optional[Mapping[str, Any]] = None) -> List[Dict[str, Any]]:
        filters = filters or {}
        with_availability = bool(filters.get("with_availability", False))
        with self.db.session_scope() as session:
            if filters.get("department"):
                employees = EmployeeRepository.get_by_department(session, filters["department"])
            elif filters.get("include_inactive"):
                employees = EmployeeRepository.get_all(session)
            else:
                employees = EmployeeRepository.get_active(session)
            if not filters.get("include_inactive"):
                employees = [e for e in employees if e.is_active]
            return [_employee_row(emp, with_availability) for emp in employees]

    def query_lookup(self, name: str) -> List[Dict[str, Any]]:
        with self.db.session_scope() as session:
            if name == "locations":
                return [_columns(loc) for loc in LookupRepository.get_locations(session)]
            if name == "currencies":
                return [_columns(cur) for cur in LookupRepository.get_currencies(session)]
        raise ValueError(f"Unknown lookup table: {name}")

    def update_assignment(self, meeting_id: str, role: str, employee: EmployeeRef) -> None:
        """
        Write one participant role.

        Current meetings store the display name; legacy rows store the employee id.

        Raises:
            ValueError: If the role is not assignable for this meeting's source
            LookupError: If the meeting does not exist
        """
        with self.db.session_scope() as session:
            if meeting_id.startswith("staff_"):
                raise ValueError("Staff calendar meetings have no assignable roles")

            if meeting_id.startswith("legacy_"):
                column = LEGACY_ROLE_COLUMNS.get(role)
                if column is None:
                    raise ValueError(f"Role '{role}' cannot be assigned on legacy meetings")
                legacy_id = int(meeting_id[len("legacy_"):])
                row = LegacyLeadRepository.get_by_id(session, legacy_id)
                if row is None:
                    raise LookupError(f"Legacy meeting {meeting_id} not found")
                setattr(row, column, str(employee.id))
            else:
                column = CURRENT_ROLE_COLUMNS.get(role)
                if column is None:
                    raise ValueError(f"Unknown role '{role}'")
                row = MeetingRepository.get_by_id(session, meeting_id)
                if row is None:
                    raise LookupError(f"Meeting {meeting_id} not found")
                setattr(row, column, employee.display_name)
        logger.info("Store updated %s on %s -> %s", role, meeting_id, employee.display_name)

    def insert_unavailable_slot(self, employee_id: int, slot: UnavailableSlot) -> None:
        with self.db.session_scope() as session:
            session.add(
                UnavailableTime(
                    employee_id=employee_id,
                    date=slot.date,
                    start_time=slot.start_time.strftime("%H:%M"),
                    end_time=slot.end_time.strftime("%H:%M"),
                    reason=slot.reason,
                )
            )

