"""Tests for CSV import/export functionality."""

import datetime as dt

import pandas as pd
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from calendar_engine.domain.meeting import (
    CalendarType,
    Location,
    Meeting,
    MeetingIdentity,
    Participants,
    RawRole,
    SourceKind,
    Subject,
)
from calendar_engine.domain.models import Base, Currency, MeetingLocation, UnavailabilityReason
from calendar_engine.domain.repositories import EmployeeRepository, UnavailabilityRepository
from calendar_engine.io.export_csv import export_meetings_csv
from calendar_engine.io.import_csv import import_employees_csv, import_locations_csv, import_unavailability_csv
from calendar_engine.services.currency import make_money


@pytest.fixture
def db_session():
    """Create in-memory database session for testing."""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


def test_import_employees_csv(db_session, tmp_path):
    """Test importing employees from CSV."""
    csv_content = """ID, Display_Name ,Email,Department,Is_Active
1,Jane Doe,Jane.Doe@Example.com,Legal,true
2,Avi Cohen,,Sales,
3,Noa Levi,noa@example.com,,false
"""
    csv_file = tmp_path / "employees.csv"
    csv_file.write_text(csv_content)

    count = import_employees_csv(db_session, csv_file)
    assert count == 3

    jane = EmployeeRepository.get_by_id(db_session, 1)
    assert jane.display_name == "Jane Doe"
    assert jane.email == "jane.doe@example.com"
    assert jane.department == "Legal"

    avi = EmployeeRepository.get_by_id(db_session, 2)
    assert avi.email is None
    assert avi.is_active

    assert [e.id for e in EmployeeRepository.get_active(db_session)] == [1, 2]


def test_import_unavailable_times_csv(db_session, tmp_path):
    """The single-day list drops exact duplicate rows and normalizes times."""
    csv_content = """employee_id,date,start_time,end_time,reason
1,2024-03-01,10:00:00,11:00:00,Dentist
1,2024-03-01,10:00:00,11:00:00,Dentist
1,2024-03-02,9:00,9:30,
"""
    csv_file = tmp_path / "times.csv"
    csv_file.write_text(csv_content)

    assert import_unavailability_csv(db_session, csv_file) == 2

    rows = UnavailabilityRepository.get_times_for_employee(db_session, 1)
    assert [(r.start_time, r.end_time) for r in rows] == [("10:00", "11:00"), ("09:00", "09:30")]
    assert rows[1].reason is None


def test_import_unavailability_reasons_csv(db_session, tmp_path):
    csv_content = """employee_id,start_date,end_date,start_time,end_time,type,reason
1,2024-01-01,2024-01-03,,,vacation,Eilat
2,2024-02-05,,13:00,14:00,sick_days,Clinic
"""
    csv_file = tmp_path / "reasons.csv"
    csv_file.write_text(csv_content)

    assert import_unavailability_csv(db_session, csv_file) == 2

    rows = {r.employee_id: r for r in db_session.query(UnavailabilityReason).all()}
    assert rows[1].unavailability_type == "vacation"
    assert rows[1].vacation_reason == "Eilat"
    assert rows[1].start_time is None
    assert rows[1].end_date == dt.date(2024, 1, 3)
    assert rows[2].sick_days_reason == "Clinic"
    assert rows[2].end_date is None
    assert rows[2].start_time == "13:00"


def test_import_lookup_csvs(db_session, tmp_path):
    locations = tmp_path / "locations.csv"
    locations.write_text("id,name,default_link\n1,Microsoft Teams,https://teams.example/room\n12,Annex,\n")
    currencies = tmp_path / "currencies.csv"
    currencies.write_text("id,iso_code,name\n5,cad,Canadian dollar\n")

    assert import_locations_csv(db_session, locations) == 2
    assert import_locations_csv(db_session, currencies) == 1

    annex = db_session.query(MeetingLocation).filter_by(id=12).one()
    assert annex.default_link is None
    assert db_session.query(Currency).filter_by(id=5).one().iso_code == "CAD"


def test_export_meetings_csv(tmp_path):
    identity = MeetingIdentity(SourceKind.LEGACY, "501")
    meeting = Meeting(
        id=identity.meeting_id,
        identity=identity,
        date=dt.date(2024, 3, 1),
        time=dt.time(10, 30),
        calendar_type=CalendarType.ACTIVE_CLIENT,
        subject=Subject(name="Acme", number="501", balance=make_money(1000, "USD"), payment_ref="PAY-1"),
        participants=Participants(manager=RawRole("Jane Doe")),
        location=Location(name="Teams", link="https://teams.example/j/1"),
    )
    out = tmp_path / "meetings.csv"

    assert export_meetings_csv([meeting], out) == 1

    df = pd.read_csv(out, keep_default_na=False)
    row = df.iloc[0]
    assert row["id"] == "legacy_501"
    assert row["source"] == "legacy"
    assert row["time"] == "10:30"
    assert row["manager"] == "Jane Doe"
    assert row["helper"] == "---"
    assert row["value_nis"] == pytest.approx(3700.0)
    assert row["confirmation"] == "unset"
    assert bool(row["paid"]) is True


def test_export_empty(tmp_path):
    out = tmp_path / "empty.csv"
    assert export_meetings_csv([], out) == 0
    assert "value_nis" in out.read_text()
