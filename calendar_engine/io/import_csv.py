"""CSV import utilities to seed the store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Optional

import pandas as pd
from sqlalchemy.orm import Session

from calendar_engine.domain.availability import UnavailabilityType
from calendar_engine.domain.models import (
    Currency,
    Employee,
    MeetingLocation,
    UnavailabilityReason,
    UnavailableTime,
)
from calendar_engine.domain.repositories import EmployeeRepository, UnavailabilityRepository
from calendar_engine.services.timeplan import normalize_time_text

logger = logging.getLogger(__name__)

TRUE_VALUES = {"TRUE", "T", "1", "YES", "Y"}


def _read(csv_path: str | Path) -> pd.DataFrame:
    df = pd.read_csv(csv_path, dtype=str, keep_default_na=False, na_values=[""])
    df.columns = df.columns.str.lower().str.strip()
    return df


def _text(row: pd.Series, column: str) -> Optional[str]:
    value = row.get(column)
    if value is None or pd.isna(value):
        return None
    text = str(value).strip()
    return text or None


def _flag(row: pd.Series, column: str, default: bool = True) -> bool:
    text = _text(row, column)
    if text is None:
        return default
    return text.upper() in TRUE_VALUES


def _time_text(value: Any) -> Optional[str]:
    if value is None or pd.isna(value):
        return None
    return normalize_time_text(value) or None


def import_employees_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import employees from CSV into database.

    Expected columns: id, display_name; optional email, photo_url, role_code,
    department, is_active.

    Returns:
        Number of employees imported
    """
    df = _read(csv_path)

    employees = []
    for _, row in df.iterrows():
        employees.append(
            Employee(
                id=int(row["id"]),
                display_name=str(row["display_name"]).strip(),
                email=(_text(row, "email") or "").lower() or None,
                photo_url=_text(row, "photo_url"),
                role_code=_text(row, "role_code"),
                department=_text(row, "department"),
                is_active=_flag(row, "is_active"),
            )
        )

    EmployeeRepository.bulk_create(session, employees)

    logger.info("Imported %d employees from %s", len(employees), csv_path)
    return len(employees)


def import_unavailability_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import unavailability from CSV.

    Files with a ``start_date`` column load typed reasons (optionally
    multi-day, timed or all-day); files with a ``date`` column load the older
    single-day timed list.

    Returns:
        Number of rows imported
    """
    df = _read(csv_path)

    records = []
    if "start_date" in df.columns:
        for _, row in df.iterrows():
            kind = UnavailabilityType.parse(_text(row, "type") or _text(row, "unavailability_type"))
            reason = _text(row, "reason")
            end_date = _text(row, "end_date")
            records.append(
                UnavailabilityReason(
                    employee_id=int(row["employee_id"]),
                    start_date=pd.to_datetime(row["start_date"]).date(),
                    end_date=pd.to_datetime(end_date).date() if end_date else None,
                    start_time=_time_text(row.get("start_time")),
                    end_time=_time_text(row.get("end_time")),
                    unavailability_type=kind.value,
                    general_reason=reason if kind is UnavailabilityType.GENERAL else None,
                    sick_days_reason=reason if kind is UnavailabilityType.SICK_DAYS else None,
                    vacation_reason=reason if kind is UnavailabilityType.VACATION else None,
                )
            )
    else:
        df = df.drop_duplicates(subset=["employee_id", "date", "start_time", "end_time"], keep="first")
        for _, row in df.iterrows():
            records.append(
                UnavailableTime(
                    employee_id=int(row["employee_id"]),
                    date=pd.to_datetime(row["date"]).date(),
                    start_time=_time_text(row["start_time"]),
                    end_time=_time_text(row["end_time"]),
                    reason=_text(row, "reason"),
                )
            )

    if "start_date" in df.columns:
        UnavailabilityRepository.bulk_create_reasons(session, records)
    else:
        UnavailabilityRepository.bulk_create_times(session, records)

    logger.info("Imported %d unavailability rows from %s", len(records), csv_path)
    return len(records)


def import_locations_csv(session: Session, csv_path: str | Path) -> int:
    """
    Import dynamic lookup rows.

    A file with ``iso_code`` loads currencies; otherwise it loads meeting
    locations (id, name, optional default_link).

    Returns:
        Number of rows imported
    """
    df = _read(csv_path)

    if "iso_code" in df.columns:
        rows = [
            Currency(
                id=int(row["id"]),
                iso_code=str(row["iso_code"]).strip().upper(),
                name=_text(row, "name"),
                is_active=_flag(row, "is_active"),
            )
            for _, row in df.iterrows()
        ]
    else:
        rows = [
            MeetingLocation(
                id=int(row["id"]),
                name=str(row["name"]).strip(),
                default_link=_text(row, "default_link"),
                is_active=_flag(row, "is_active"),
            )
            for _, row in df.iterrows()
        ]

    session.add_all(rows)
    session.commit()

    logger.info("Imported %d lookup rows from %s", len(rows), csv_path)
    return len(rows)
