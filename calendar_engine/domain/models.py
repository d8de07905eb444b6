"""SQLAlchemy models for the tables the calendar engine reads and updates."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Employee(Base):
    """Staff member that can be assigned to meeting roles."""

    __tablename__ = "employees"

    id = Column(Integer, primary_key=True)
    display_name = Column(String(200), nullable=False)
    email = Column(String(200), nullable=True)
    photo_url = Column(Text, nullable=True)
    role_code = Column(String(20), nullable=True)  # e.g. "e" expert, "h" handler, "s" scheduler
    department = Column(String(100), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    unavailable_times = relationship("UnavailableTime", back_populates="employee")
    unavailability_reasons = relationship("UnavailabilityReason", back_populates="employee")

    def __repr__(self) -> str:
        return f"<Employee(id={self.id}, name='{self.display_name}', role='{self.role_code}')>"


class UnavailableTime(Base):
    """Single-day timed unavailability (the older per-employee list)."""

    __tablename__ = "employee_unavailable_times"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(String(8), nullable=False)  # HH:MM or HH:MM:SS
    end_time = Column(String(8), nullable=False)
    reason = Column(Text, nullable=True)

    employee = relationship("Employee", back_populates="unavailable_times")

    def __repr__(self) -> str:
        return f"<UnavailableTime(emp={self.employee_id}, date={self.date}, {self.start_time}-{self.end_time})>"


class UnavailabilityReason(Base):
    """Typed unavailability spanning one or more days, timed or all-day."""

    __tablename__ = "employee_unavailability_reasons"

    id = Column(Integer, primary_key=True, autoincrement=True)
    employee_id = Column(Integer, ForeignKey("employees.id"), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=True)  # None means single day
    start_time = Column(String(8), nullable=True)  # both times None means all day
    end_time = Column(String(8), nullable=True)
    unavailability_type = Column(String(20), nullable=False, default="general")  # general, sick_days, vacation
    general_reason = Column(Text, nullable=True)
    sick_days_reason = Column(Text, nullable=True)
    vacation_reason = Column(Text, nullable=True)

    employee = relationship("Employee", back_populates="unavailability_reasons")

    def __repr__(self) -> str:
        return (
            f"<UnavailabilityReason(emp={self.employee_id}, {self.start_date}..{self.end_date}, "
            f"type={self.unavailability_type})>"
        )


class Lead(Base):
    """Lead in the current system."""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True)
    name = Column(String(200), nullable=False)
    lead_number = Column(String(50), nullable=True)
    category = Column(String(100), nullable=True)
    balance = Column(Float, nullable=True)
    balance_currency = Column(String(10), nullable=True)  # ISO code or symbol
    stage = Column(String(100), nullable=True)
    eligibility_status = Column(String(100), nullable=True)
    probability = Column(Float, nullable=True)
    payment_collection_ref = Column(String(100), nullable=True)
    status = Column(String(20), nullable=False, default="active")  # active, inactive
    is_deleted = Column(Boolean, nullable=False, default=False)

    meetings = relationship("LeadMeeting", back_populates="lead")

    def __repr__(self) -> str:
        return f"<Lead(id={self.id}, number='{self.lead_number}', name='{self.name}')>"


class LeadMeeting(Base):
    """Meeting in the current system. Role columns hold an employee name or id."""

    __tablename__ = "meetings"

    id = Column(String(36), primary_key=True)
    lead_id = Column(String(36), ForeignKey("leads.id"), nullable=True)
    legacy_lead_id = Column(Integer, nullable=True)  # back-reference to leads_lead.id
    meeting_date = Column(Date, nullable=False)
    meeting_time = Column(String(8), nullable=True)
    meeting_manager = Column(String(200), nullable=True)
    helper = Column(String(200), nullable=True)
    meeting_scheduler = Column(String(200), nullable=True)
    expert = Column(String(200), nullable=True)
    handler = Column(String(200), nullable=True)
    guest_1 = Column(String(200), nullable=True)
    guest_2 = Column(String(200), nullable=True)
    meeting_location = Column(String(200), nullable=True)  # location id or name
    teams_meeting_url = Column(Text, nullable=True)  # plain URL or JSON with joinUrl
    meeting_amount = Column(Float, nullable=True)
    meeting_currency = Column(String(10), nullable=True)
    meeting_brief = Column(Text, nullable=True)
    calendar_type = Column(String(30), nullable=True)  # potential_client, active_client
    meeting_confirmation = Column(Boolean, nullable=True)
    confirmed_at = Column(DateTime, nullable=True)
    confirmed_by = Column(Integer, nullable=True)
    status = Column(String(20), nullable=True)  # scheduled, canceled
    attendance_probability = Column(Float, nullable=True)
    last_edited_by = Column(Integer, nullable=True)

    lead = relationship("Lead", back_populates="meetings")

    def __repr__(self) -> str:
        return f"<LeadMeeting(id={self.id}, lead={self.lead_id}, date={self.meeting_date})>"


class LegacyLead(Base):
    """Row of the legacy leads table; a lead carries at most one meeting."""

    __tablename__ = "leads_lead"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    category = Column(String(100), nullable=True)
    stage = Column(String(100), nullable=True)
    status = Column(Integer, nullable=False, default=0)  # 0 active, 10 inactive
    eligibile = Column(String(50), nullable=True)
    probability = Column(Float, nullable=True)
    meeting_date = Column(Date, nullable=True)
    meeting_time = Column(String(8), nullable=True)
    meeting_datetime = Column(String(40), nullable=True)  # ISO datetime, used when date/time are empty
    meeting_url = Column(Text, nullable=True)
    meeting_brief = Column(Text, nullable=True)
    meeting_location_id = Column(Integer, nullable=True)
    meeting_location_old = Column(String(200), nullable=True)
    meeting_total = Column(String(40), nullable=True)  # free text, may contain separators
    meeting_total_currency = Column(String(10), nullable=True)  # ISO code when present
    currency_id = Column(Integer, nullable=True)  # numeric currency id
    meeting_manager_id = Column(String(100), nullable=True)
    meeting_lawyer_id = Column(String(100), nullable=True)
    meeting_scheduler_id = Column(String(100), nullable=True)
    expert_id = Column(String(100), nullable=True)
    case_handler_id = Column(String(100), nullable=True)
    meeting_confirmation = Column(String(40), nullable=True)  # timestamp text when confirmed
    meeting_paid = Column(String(100), nullable=True)  # payment collection reference
    calendar_type = Column(String(30), nullable=True)

    def __repr__(self) -> str:
        return f"<LegacyLead(id={self.id}, name='{self.name}', meeting={self.meeting_date})>"


class StaffMeeting(Base):
    """Internal staff-only calendar entry."""

    __tablename__ = "staff_meetings"

    id = Column(Integer, primary_key=True, autoincrement=True)
    meeting_date = Column(Date, nullable=False)
    meeting_time = Column(String(8), nullable=True)
    subject = Column(String(300), nullable=False)
    description = Column(Text, nullable=True)
    attendees = Column(JSON, nullable=True)  # list of email addresses
    organizer_email = Column(String(200), nullable=True)
    location = Column(String(200), nullable=True)
    teams_meeting_url = Column(Text, nullable=True)
    is_canceled = Column(Boolean, nullable=False, default=False)

    def __repr__(self) -> str:
        return f"<StaffMeeting(id={self.id}, date={self.meeting_date}, subject='{self.subject}')>"


class MeetingLocation(Base):
    """Dynamic meeting location table; overrides the built-in seed names."""

    __tablename__ = "meeting_locations"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    default_link = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<MeetingLocation(id={self.id}, name='{self.name}')>"


class Currency(Base):
    """Dynamic currency table keyed by the numeric id used in legacy rows."""

    __tablename__ = "currencies"

    id = Column(Integer, primary_key=True)
    iso_code = Column(String(10), nullable=False)
    name = Column(String(50), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Currency(id={self.id}, iso='{self.iso_code}')>"
