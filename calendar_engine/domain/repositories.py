"""Repository classes for data access."""

from __future__ import annotations

from datetime import date, timedelta
from typing import List, Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session, joinedload

from .models import (
    Currency,
    Employee,
    Lead,
    LeadMeeting,
    LegacyLead,
    MeetingLocation,
    StaffMeeting,
    UnavailabilityReason,
    UnavailableTime,
)

LEGACY_INACTIVE_STATUS = 10


class EmployeeRepository:
    """Repository for employee data access."""

    @staticmethod
    def get_all(session: Session) -> List[Employee]:
        """Get all employees."""
        return session.query(Employee).order_by(Employee.id).all()

    @staticmethod
    def get_active(session: Session) -> List[Employee]:
        """Get employees that are still active."""
        return session.query(Employee).filter(Employee.is_active.is_(True)).order_by(Employee.id).all()

    @staticmethod
    def get_by_id(session: Session, employee_id: int) -> Optional[Employee]:
        """Get employee by ID."""
        return session.query(Employee).filter(Employee.id == employee_id).first()

    @staticmethod
    def get_by_department(session: Session, department: str) -> List[Employee]:
        return session.query(Employee).filter(Employee.department == department).order_by(Employee.id).all()

    @staticmethod
    def bulk_create(session: Session, employees: List[Employee]) -> None:
        """Create multiple employees."""
        session.add_all(employees)
        session.commit()


class UnavailabilityRepository:
    """Repository for declared unavailability (timed list and typed reasons)."""

    @staticmethod
    def get_times_for_employee(session: Session, employee_id: int) -> List[UnavailableTime]:
        return (
            session.query(UnavailableTime)
            .filter(UnavailableTime.employee_id == employee_id)
            .order_by(UnavailableTime.date, UnavailableTime.start_time)
            .all()
        )

    @staticmethod
    def bulk_create_times(session: Session, rows: List[UnavailableTime]) -> None:
        session.add_all(rows)
        session.commit()

    @staticmethod
    def bulk_create_reasons(session: Session, rows: List[UnavailabilityReason]) -> None:
        session.add_all(rows)
        session.commit()


class MeetingRepository:
    """Repository for current-system meetings."""

    @staticmethod
    def get_in_window(session: Session, start: date, end: date, include_canceled: bool = False) -> List[LeadMeeting]:
        """
        Get meetings dated within [start, end] together with their lead.

        Meetings whose lead is soft-deleted or inactive are excluded; meetings
        without a lead are kept.
        """
        query = (
            session.query(LeadMeeting)
            .outerjoin(Lead, LeadMeeting.lead_id == Lead.id)
            .options(joinedload(LeadMeeting.lead))
            .filter(LeadMeeting.meeting_date >= start, LeadMeeting.meeting_date <= end)
            .filter(
                or_(
                    LeadMeeting.lead_id.is_(None),
                    and_(Lead.is_deleted.is_(False), Lead.status != "inactive"),
                )
            )
        )
        if not include_canceled:
            query = query.filter(or_(LeadMeeting.status.is_(None), LeadMeeting.status != "canceled"))
        return query.order_by(LeadMeeting.meeting_date, LeadMeeting.meeting_time).all()

    @staticmethod
    def get_by_id(session: Session, meeting_id: str) -> Optional[LeadMeeting]:
        return session.query(LeadMeeting).filter(LeadMeeting.id == meeting_id).first()


class LegacyLeadRepository:
    """Repository for the legacy leads table."""

    @staticmethod
    def get_meetings_in_window(session: Session, start: date, end: date) -> List[LegacyLead]:
        """
        Get active legacy leads with a meeting inside [start, end].

        Rows without a split meeting_date are matched on the ISO meeting_datetime text.
        """
        upper = (end + timedelta(days=1)).isoformat()
        return (
            session.query(LegacyLead)
            .filter(LegacyLead.status != LEGACY_INACTIVE_STATUS)
            .filter(
                or_(
                    and_(LegacyLead.meeting_date >= start, LegacyLead.meeting_date <= end),
                    and_(
                        LegacyLead.meeting_date.is_(None),
                        LegacyLead.meeting_datetime >= start.isoformat(),
                        LegacyLead.meeting_datetime < upper,
                    ),
                )
            )
            .order_by(LegacyLead.id)
            .all()
        )

    @staticmethod
    def get_by_id(session: Session, legacy_id: int) -> Optional[LegacyLead]:
        return session.query(LegacyLead).filter(LegacyLead.id == legacy_id).first()


class StaffMeetingRepository:
    """Repository for staff calendar entries."""

    @staticmethod
    def get_in_window(session: Session, start: date, end: date) -> List[StaffMeeting]:
        return (
            session.query(StaffMeeting)
            .filter(StaffMeeting.meeting_date >= start, StaffMeeting.meeting_date <= end)
            .filter(StaffMeeting.is_canceled.is_(False))
            .order_by(StaffMeeting.meeting_date, StaffMeeting.meeting_time)
            .all()
        )


class LookupRepository:
    """Repository for the dynamic location and currency tables."""

    @staticmethod
    def get_locations(session: Session) -> List[MeetingLocation]:
        return session.query(MeetingLocation).filter(MeetingLocation.is_active.is_(True)).all()

    @staticmethod
    def get_currencies(session: Session) -> List[Currency]:
        return session.query(Currency).filter(Currency.is_active.is_(True)).all()
