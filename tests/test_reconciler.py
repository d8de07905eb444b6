"""Tests for merging the three sources into one duplicate-free set."""

import datetime as dt

from calendar_engine.domain.meeting import CalendarType, Meeting, MeetingIdentity, SourceKind, Subject
from calendar_engine.engine.reconciler import Reconciler, merge, reconcile


def _meeting(kind, raw_id, back_ref=None, day=dt.date(2024, 3, 1), name="Lead"):
    identity = MeetingIdentity(kind, raw_id, back_ref)
    calendar_type = CalendarType.STAFF if kind is SourceKind.STAFF else CalendarType.POTENTIAL_CLIENT
    return Meeting(
        id=identity.meeting_id or "",
        identity=identity,
        date=day,
        time=None,
        calendar_type=calendar_type,
        subject=Subject(name=name),
    )


def test_back_reference_duplicate_keeps_current():
    """Legacy 501 and current "abc" pointing back at 501 leave one meeting, id "abc"."""
    legacy = _meeting(SourceKind.LEGACY, "501")
    current = _meeting(SourceKind.CURRENT, "abc", back_ref="501")

    merged = merge([current], [legacy], [])
    assert [m.id for m in merged] == ["abc"]
    assert merged[0].source_kind is SourceKind.CURRENT


def test_synthesized_id_duplicate():
    """A current record whose id equals the legacy synthesized id wins."""
    legacy = _meeting(SourceKind.LEGACY, "77")
    current = _meeting(SourceKind.CURRENT, "legacy_77", name="Current copy")

    report = reconcile([current], [legacy], [])
    assert [m.id for m in report.meetings] == ["legacy_77"]
    assert report.meetings[0].subject.name == "Current copy"
    assert report.discarded == [legacy]


def test_distinct_records_survive_in_source_order():
    """Output is current, then surviving legacy, then staff, each in input order."""
    current = [_meeting(SourceKind.CURRENT, "b"), _meeting(SourceKind.CURRENT, "a")]
    legacy = [_meeting(SourceKind.LEGACY, "2"), _meeting(SourceKind.LEGACY, "1")]
    staff = [_meeting(SourceKind.STAFF, "9")]

    merged = merge(current, legacy, staff)
    assert [m.id for m in merged] == ["b", "a", "legacy_2", "legacy_1", "staff_9"]


def test_staff_deduplicated_among_themselves():
    staff = [_meeting(SourceKind.STAFF, "5"), _meeting(SourceKind.STAFF, "5"), _meeting(SourceKind.STAFF, "6")]
    assert [m.id for m in merge([], [], staff)] == ["staff_5", "staff_6"]


def test_staff_ids_never_collide_with_legacy():
    """Staff and legacy share raw ids without being treated as duplicates."""
    merged = merge([], [_meeting(SourceKind.LEGACY, "5")], [_meeting(SourceKind.STAFF, "5")])
    assert [m.id for m in merged] == ["legacy_5", "staff_5"]


def test_current_duplicates_first_wins():
    first = _meeting(SourceKind.CURRENT, "x", name="first")
    second = _meeting(SourceKind.CURRENT, "x", name="second")
    report = Reconciler().reconcile([first, second])
    assert [m.subject.name for m in report.meetings] == ["first"]
    assert len(report.discarded) == 1


def test_missing_identity_is_kept_and_reported():
    """A record without a raw id is kept under a unique synthetic id and reported."""
    anonymous = [_meeting(SourceKind.LEGACY, None), _meeting(SourceKind.LEGACY, None)]
    report = reconcile([], anonymous, [])

    assert len(report.meetings) == 2
    ids = [m.id for m in report.meetings]
    assert len(set(ids)) == 2
    assert all(i.startswith("unidentified_legacy_") for i in ids)
    assert [a.assigned_id for a in report.ambiguous] == ids


def test_ids_unique_after_merge():
    current = [_meeting(SourceKind.CURRENT, str(i), back_ref=str(i)) for i in range(5)]
    legacy = [_meeting(SourceKind.LEGACY, str(i)) for i in range(10)]
    merged = merge(current, legacy, [])
    ids = [m.id for m in merged]
    assert len(ids) == len(set(ids)) == 10
