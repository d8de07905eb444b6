"""Tests for the source adapters against an in-memory SQLite store."""

import datetime as dt
import json

import pytest
from sqlalchemy.exc import OperationalError

from calendar_engine.adapters import (
    CurrentLeadAdapter,
    LegacyLeadAdapter,
    SourceContext,
    StaffCalendarAdapter,
    extract_join_link,
    is_timeout_error,
)
from calendar_engine.domain.db import DatabaseManager
from calendar_engine.domain.meeting import CalendarType, Confirmation, DateWindow, RawRole, ResolvedRole
from calendar_engine.domain.models import Employee, Lead, LeadMeeting, LegacyLead, MeetingLocation, StaffMeeting
from calendar_engine.domain.store import SqlMeetingStore
from calendar_engine.errors import SourceTimeout, SourceUnavailable
from calendar_engine.services.directory import EmployeeDirectory
from calendar_engine.services.lookups import LookupTables

WINDOW = DateWindow(dt.date(2024, 3, 1), dt.date(2024, 3, 7))


@pytest.fixture
def db():
    """Create in-memory database for testing."""
    manager = DatabaseManager("sqlite:///:memory:")
    manager.create_tables()
    return manager


@pytest.fixture
def store(db):
    return SqlMeetingStore(db)


@pytest.fixture
def context(store, seeded):
    directory = EmployeeDirectory.from_rows(store.query_employees({"with_availability": True}))
    lookups = LookupTables.from_rows(store.query_lookup("locations"), store.query_lookup("currencies"))
    return SourceContext(directory=directory, lookups=lookups)


@pytest.fixture
def seeded(db):
    """Employees, leads and meetings across all three sources."""
    with db.session_scope() as session:
        session.add_all(
            [
                Employee(id=1, display_name="Jane Doe", email="jane.doe@example.com"),
                Employee(id=2, display_name="Avi Cohen", email="avi@example.com"),
                Employee(id=3, display_name="Noa Levi", department="Legal"),
                MeetingLocation(id=9, name="Board Room", default_link="https://rooms.example/board"),
                Lead(id="L1", name="Acme", lead_number="1001", balance=1000, balance_currency="USD",
                     payment_collection_ref="PAY-1"),
                Lead(id="L2", name="Deleted Co", is_deleted=True),
                Lead(id="L3", name="Sleeping Co", status="inactive"),
            ]
        )
        session.flush()
        session.add_all(
            [
                LeadMeeting(id="abc", lead_id="L1", legacy_lead_id=501, meeting_date=dt.date(2024, 3, 2),
                            meeting_time="10:30:00", meeting_manager="Jane Doe", helper="2",
                            expert="External Expert", handler="Noa Levi", meeting_location="9",
                            teams_meeting_url=json.dumps({"joinUrl": "https://teams.example/j/1"}),
                            calendar_type="potential_client", confirmed_at=dt.datetime(2024, 2, 28, 9, 0)),
                LeadMeeting(id="gone", lead_id="L2", meeting_date=dt.date(2024, 3, 2)),
                LeadMeeting(id="asleep", lead_id="L3", meeting_date=dt.date(2024, 3, 2)),
                LeadMeeting(id="canceled", lead_id="L1", meeting_date=dt.date(2024, 3, 3), status="canceled"),
                LeadMeeting(id="late", lead_id="L1", meeting_date=dt.date(2024, 3, 20)),
                LeadMeeting(id="declined", lead_id="L1", meeting_date=dt.date(2024, 3, 4),
                            meeting_confirmation=False, meeting_amount=200, meeting_currency="EUR"),
                LegacyLead(id=501, name="Acme (legacy)", meeting_date=dt.date(2024, 3, 2), meeting_time="10:30",
                           meeting_total="3,500", currency_id=3, meeting_manager_id="1",
                           meeting_lawyer_id="3", meeting_location_id=2),
                LegacyLead(id=502, name="Beta", meeting_datetime="2024-03-05T14:15:00",
                           meeting_location_old="Cafe Nimrod", meeting_total_currency="GBP",
                           meeting_total="100", expert_id="2", meeting_lawyer_id="3",
                           meeting_confirmation="2024-03-01 08:00", meeting_paid="PAY-9"),
                LegacyLead(id=503, name="No meeting"),
                LegacyLead(id=504, name="Inactive", status=10, meeting_date=dt.date(2024, 3, 3)),
                StaffMeeting(id=1, meeting_date=dt.date(2024, 3, 6), meeting_time="09:00", subject="Weekly sync",
                             attendees=["jane.doe@example.com", "avi@example.com"],
                             organizer_email="avi@example.com",
                             teams_meeting_url="https://teams.example/j/staff"),
                StaffMeeting(id=2, meeting_date=dt.date(2024, 3, 6), subject="Offsite",
                             attendees=[f"person{i}@example.com" for i in range(12)]),
                StaffMeeting(id=3, meeting_date=dt.date(2024, 3, 6), subject="Canceled", is_canceled=True),
            ]
        )


def test_current_adapter_shapes_meeting(store, context):
    """Current rows resolve roles, value, location link and confirmation."""
    meetings = {m.id: m for m in CurrentLeadAdapter(store).fetch(WINDOW, context)}
    assert set(meetings) == {"abc", "declined"}

    meeting = meetings["abc"]
    assert meeting.identity.legacy_back_ref == "501"
    assert meeting.time == dt.time(10, 30)
    assert meeting.subject.name == "Acme"
    assert meeting.subject.balance.code == "USD"
    assert meeting.subject.balance.nis == pytest.approx(3700.0)
    assert meeting.participants.manager == ResolvedRole(context.directory.get(1).ref)
    assert meeting.participants.helper.display == "Avi Cohen"
    assert meeting.participants.expert == RawRole("External Expert")
    # handler is not meaningful on the potential-client calendar
    assert meeting.participants.handler is None
    assert meeting.location.name == "Board Room"
    assert meeting.location.link == "https://teams.example/j/1"
    assert meeting.confirmation is Confirmation.CONFIRMED
    assert meeting.is_paid


def test_current_adapter_value_chain_and_declined(store, context):
    meeting = {m.id: m for m in CurrentLeadAdapter(store).fetch(WINDOW, context)}["declined"]
    # the lead balance wins over the meeting amount
    assert meeting.subject.balance.amount == 1000
    assert meeting.confirmation is Confirmation.DECLINED
    assert not meeting.confirmation


def test_legacy_adapter_shapes_meetings(store, context):
    meetings = {m.id: m for m in LegacyLeadAdapter(store).fetch(WINDOW, context)}
    assert set(meetings) == {"legacy_501", "legacy_502"}

    first = meetings["legacy_501"]
    assert first.subject.balance.amount == 3500
    assert first.subject.balance.symbol == "$"
    assert first.location.name == "Tel Aviv Office"
    assert first.participants.manager.display == "Jane Doe"
    # helper and expert both come from the lawyer field when no expert is set
    assert first.participants.helper.display == "Noa Levi"
    assert first.participants.expert.display == "Noa Levi"
    assert first.confirmation is Confirmation.UNSET


def test_legacy_adapter_datetime_fallback(store, context):
    meeting = {m.id: m for m in LegacyLeadAdapter(store).fetch(WINDOW, context)}["legacy_502"]
    assert meeting.date == dt.date(2024, 3, 5)
    assert meeting.time == dt.time(14, 15)
    assert meeting.location.name == "Cafe Nimrod"
    assert meeting.subject.balance.code == "GBP"
    assert meeting.participants.expert.display == "Avi Cohen"
    assert meeting.confirmation is Confirmation.CONFIRMED
    assert meeting.is_paid


def test_staff_adapter_attendees(store, context):
    meetings = {m.id: m for m in StaffCalendarAdapter(store).fetch(WINDOW, context)}
    assert set(meetings) == {"staff_1", "staff_2"}

    sync = meetings["staff_1"]
    assert sync.calendar_type is CalendarType.STAFF
    assert sync.attendees == ("Jane Doe", "Avi Cohen")
    assert sync.attendee_label == "Jane Doe, Avi Cohen"
    assert sync.participants.manager.display == "Avi Cohen"
    assert sync.location.link == "https://teams.example/j/staff"
    assert not sync.is_paid

    assert meetings["staff_2"].attendee_label == "All Staff"
    assert meetings["staff_2"].time is None


class _BrokenStore:
    def __init__(self, exc):
        self.exc = exc

    def query_meetings(self, kind, window, filters=None):
        raise self.exc


def test_fetch_errors_never_escape():
    """A failing store yields an empty list and a SourceUnavailable in the result."""
    adapter = CurrentLeadAdapter(_BrokenStore(RuntimeError("connection refused")))
    assert adapter.fetch(WINDOW) == []

    result = adapter.fetch_result(WINDOW)
    assert isinstance(result.error, SourceUnavailable)
    assert not result.timed_out
    assert not result.ok


def test_statement_timeout_classified():
    exc = OperationalError("SELECT 1", {}, Exception("canceling statement due to statement timeout"))
    result = LegacyLeadAdapter(_BrokenStore(exc)).fetch_result(WINDOW)
    assert isinstance(result.error, SourceTimeout)
    assert result.timed_out
    assert is_timeout_error(TimeoutError())


class _RowStore:
    def __init__(self, rows):
        self.rows = rows

    def query_meetings(self, kind, window, filters=None):
        return self.rows


def test_shaping_error_yields_empty_result():
    rows = [{"id": "ok", "meeting_date": "2024-03-02"}, {"id": "bad", "meeting_date": "not-a-date"}]
    result = CurrentLeadAdapter(_RowStore(rows)).fetch_result(WINDOW)
    assert result.meetings == []
    assert isinstance(result.error, SourceUnavailable)


def test_rows_outside_window_dropped():
    rows = [{"id": "in", "meeting_date": "2024-03-02"}, {"id": "out", "meeting_date": "2024-04-02"}]
    assert [m.id for m in CurrentLeadAdapter(_RowStore(rows)).fetch(WINDOW)] == ["in"]


def test_malformed_time_treated_as_untimed():
    rows = [{"id": "x", "meeting_date": "2024-03-02", "meeting_time": "soon"}]
    meetings = CurrentLeadAdapter(_RowStore(rows)).fetch(WINDOW)
    assert meetings[0].time is None


def test_extract_join_link():
    assert extract_join_link("https://teams.example/j/1") == "https://teams.example/j/1"
    assert extract_join_link('{"joinWebUrl": "https://teams.example/j/2"}') == "https://teams.example/j/2"
    assert extract_join_link({"joinUrl": "https://teams.example/j/3"}) == "https://teams.example/j/3"
    assert extract_join_link('{"joinUrl": "not a url"}') is None
    assert extract_join_link("meet me downstairs") is None
    assert extract_join_link(None) is None
