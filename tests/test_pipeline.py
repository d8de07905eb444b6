"""Tests for the filter/sort pipeline."""

import datetime as dt

from calendar_engine.domain.availability import StaffMember
from calendar_engine.domain.meeting import (
    CalendarType,
    Meeting,
    MeetingIdentity,
    Participants,
    RawRole,
    ResolvedRole,
    SourceKind,
    Subject,
)
from calendar_engine.engine.pipeline import MeetingFilters, apply_filters, run_pipeline, sort_meetings
from calendar_engine.services.directory import EmployeeDirectory

DAY = dt.date(2024, 3, 4)


def _meeting(raw_id, at=None, day=DAY, calendar_type=CalendarType.POTENTIAL_CLIENT, payment_ref=None, **roles):
    identity = MeetingIdentity(SourceKind.CURRENT, raw_id)
    return Meeting(
        id=raw_id,
        identity=identity,
        date=day,
        time=at,
        calendar_type=calendar_type,
        subject=Subject(name=f"Lead {raw_id}", payment_ref=payment_ref),
        participants=Participants(**roles),
    )


def test_sort_timed_first_and_stable():
    """[None, 09:00, None, 08:00] sorts to [08:00, 09:00, None, None], untimed in input order."""
    meetings = [
        _meeting("a"),
        _meeting("b", dt.time(9, 0)),
        _meeting("c"),
        _meeting("d", dt.time(8, 0)),
    ]
    assert [m.id for m in sort_meetings(meetings)] == ["d", "b", "a", "c"]


def test_sort_groups_by_date():
    meetings = [
        _meeting("late", dt.time(8, 0), day=DAY + dt.timedelta(days=1)),
        _meeting("early", None, day=DAY),
    ]
    assert [m.id for m in sort_meetings(meetings)] == ["early", "late"]


def test_staff_filter_matches_any_role_normalized():
    meetings = [
        _meeting("1", manager=RawRole("Jane  Doe")),
        _meeting("2", expert=RawRole("jane doe")),
        _meeting("3", helper=RawRole("John Roe")),
    ]
    result = apply_filters(meetings, MeetingFilters.build(staff_name=" JANE DOE"))
    assert [m.id for m in result] == ["1", "2"]


def test_staff_filter_resolves_numeric_ids():
    """A numeric role value is resolved to a name through the directory before comparing."""
    directory = EmployeeDirectory([StaffMember(id=42, display_name="Jane Doe")])
    meetings = [_meeting("1", scheduler=RawRole("42")), _meeting("2", scheduler=RawRole("43"))]
    result = apply_filters(meetings, MeetingFilters.build(staff_name="Jane Doe"), directory)
    assert [m.id for m in result] == ["1"]


def test_staff_filter_on_resolved_role():
    directory = EmployeeDirectory([StaffMember(id=42, display_name="Jane Doe")])
    meeting = _meeting("1", handler=ResolvedRole(directory.get(42).ref))
    assert apply_filters([meeting], MeetingFilters.build(staff_name="jane doe")) == [meeting]


def test_calendar_type_and_paid_filters():
    meetings = [
        _meeting("p", calendar_type=CalendarType.POTENTIAL_CLIENT, payment_ref="PAY-1"),
        _meeting("a", calendar_type=CalendarType.ACTIVE_CLIENT),
        _meeting("s", calendar_type=CalendarType.STAFF, payment_ref="PAY-2"),
    ]
    by_type = apply_filters(meetings, MeetingFilters.build(calendar_types=["active_client", "staff"]))
    assert [m.id for m in by_type] == ["a", "s"]

    paid = apply_filters(meetings, MeetingFilters.build(paid_only=True))
    assert [m.id for m in paid] == ["p"]


def test_date_range_filter():
    meetings = [_meeting(str(i), day=DAY + dt.timedelta(days=i)) for i in range(5)]
    filters = MeetingFilters.build(start=DAY + dt.timedelta(days=1), end=DAY + dt.timedelta(days=3))
    assert [m.id for m in apply_filters(meetings, filters)] == ["1", "2", "3"]


def test_predicates_are_anded():
    meetings = [
        _meeting("1", dt.time(10, 0), payment_ref="X", manager=RawRole("Jane Doe")),
        _meeting("2", dt.time(9, 0), manager=RawRole("Jane Doe")),
        _meeting("3", dt.time(8, 0), payment_ref="Y", manager=RawRole("John Roe")),
    ]
    filters = MeetingFilters.build(staff_name="Jane Doe", paid_only=True)
    assert [m.id for m in run_pipeline(meetings, filters)] == ["1"]


def test_no_filters_returns_everything_sorted():
    meetings = [_meeting("1", dt.time(10, 0)), _meeting("2", dt.time(9, 0))]
    assert [m.id for m in run_pipeline(meetings)] == ["2", "1"]
