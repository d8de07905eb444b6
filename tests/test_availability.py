"""Tests for the availability index and the conflict evaluator."""

import datetime as dt

import pytest

from calendar_engine.domain.availability import StaffMember, UnavailableRange, UnavailableSlot
from calendar_engine.engine.availability import AvailabilityIndex, AvailabilityIndexHolder
from calendar_engine.engine.conflicts import ConflictEvaluator
from calendar_engine.services.directory import EmployeeDirectory


@pytest.fixture
def jane():
    return StaffMember(
        id=1,
        display_name="Jane Doe",
        slots=[UnavailableSlot(dt.date(2024, 3, 1), dt.time(10, 0), dt.time(11, 0), "Dentist")],
        ranges=[UnavailableRange(dt.date(2024, 1, 1), dt.date(2024, 1, 3), "Vacation")],
    )


@pytest.fixture
def evaluator(jane):
    return ConflictEvaluator(AvailabilityIndex.build([jane]))


def test_timed_slot_boundaries_inclusive(evaluator):
    """10:00-11:00: 10:30 and 11:00 conflict, 11:01 is available."""
    day = dt.date(2024, 3, 1)
    assert not evaluator.evaluate("Jane Doe", day, dt.time(10, 30)).available
    assert not evaluator.evaluate("Jane Doe", day, dt.time(10, 0)).available
    assert not evaluator.evaluate("Jane Doe", day, dt.time(11, 0)).available
    assert evaluator.evaluate("Jane Doe", day, dt.time(11, 1)).available
    assert evaluator.evaluate("Jane Doe", day, dt.time(9, 59)).available


def test_conflict_carries_reason(evaluator):
    result = evaluator.evaluate("Jane Doe", dt.date(2024, 3, 1), dt.time(10, 30))
    assert result.reason == "Dentist"
    warning = result.as_warning()
    assert warning.employee == "Jane Doe"
    assert "Dentist" in str(warning)


def test_range_expands_to_every_date(evaluator):
    """2024-01-01..2024-01-03 blocks all three dates at any time, not the 4th."""
    for day in (1, 2, 3):
        for at in (dt.time(0, 0), dt.time(12, 0), dt.time(23, 59), None):
            assert not evaluator.evaluate("Jane Doe", dt.date(2024, 1, day), at).available
    assert evaluator.evaluate("Jane Doe", dt.date(2024, 1, 4), dt.time(12, 0)).available


def test_names_match_case_and_whitespace_insensitively(evaluator):
    assert not evaluator.evaluate("  jane   DOE ", dt.date(2024, 3, 1), dt.time(10, 30)).available


def test_unknown_employee_is_available(evaluator):
    assert evaluator.evaluate("John Roe", dt.date(2024, 3, 1), dt.time(10, 30)).available


def test_query_without_time_matches_timed_slot(evaluator):
    assert not evaluator.evaluate("Jane Doe", dt.date(2024, 3, 1)).available


def test_reason_for_prefers_all_day():
    member = StaffMember(
        id=2,
        display_name="Sam Lee",
        slots=[UnavailableSlot(dt.date(2024, 5, 2), dt.time(9, 0), dt.time(10, 0), "Meeting")],
        ranges=[UnavailableRange(dt.date(2024, 5, 1), dt.date(2024, 5, 2), "Sick")],
    )
    index = AvailabilityIndex.build([member])
    entry = index.reason_for("Sam Lee", dt.date(2024, 5, 2), dt.time(9, 30))
    assert entry.all_day
    assert entry.reason == "Sick"


def test_holder_swaps_whole_index(jane):
    """Evaluators see whichever complete index was published last."""
    holder = AvailabilityIndexHolder()
    evaluator = ConflictEvaluator(holder)
    day = dt.date(2024, 3, 1)
    assert evaluator.evaluate("Jane Doe", day, dt.time(10, 30)).available

    holder.publish(AvailabilityIndex.build([jane]))
    assert holder.version == 1
    assert not evaluator.evaluate("Jane Doe", day, dt.time(10, 30)).available


def test_index_from_store_rows():
    """Timed reasons spanning days expand per day; the older list is merged without duplicates."""
    rows = [
        {
            "id": 7,
            "display_name": "Dana Levi",
            "unavailability_reasons": [
                {
                    "start_date": "2024-06-10",
                    "end_date": "2024-06-11",
                    "start_time": "14:00:00",
                    "end_time": "16:00:00",
                    "unavailability_type": "general",
                    "general_reason": "Course",
                },
                {
                    "start_date": dt.date(2024, 6, 20),
                    "end_date": dt.date(2024, 6, 21),
                    "unavailability_type": "vacation",
                    "vacation_reason": "Trip",
                },
            ],
            "unavailable_times": [
                {"date": "2024-06-10", "start_time": "14:00", "end_time": "16:00", "reason": "Course (old)"},
                {"date": "2024-06-12", "start_time": "08:00", "end_time": "09:00", "reason": "Errand"},
            ],
        }
    ]
    directory = EmployeeDirectory.from_rows(rows)
    member = directory.get(7)
    assert len(member.slots) == 3
    assert [s.reason for s in member.slots if s.date == dt.date(2024, 6, 10)] == ["Course"]

    index = AvailabilityIndex.build(directory.members)
    assert index.is_unavailable("Dana Levi", dt.date(2024, 6, 11), dt.time(15, 0))
    assert index.is_unavailable("Dana Levi", dt.date(2024, 6, 12), dt.time(8, 30))
    assert index.is_unavailable("Dana Levi", dt.date(2024, 6, 21), dt.time(8, 30))
    assert index.reason_for("Dana Levi", dt.date(2024, 6, 20)).reason == "Trip"
    assert not index.is_unavailable("Dana Levi", dt.date(2024, 6, 11), dt.time(16, 1))
