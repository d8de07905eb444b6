"""CSV export of reconciled meetings."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable

import pandas as pd

from calendar_engine.domain.meeting import PLACEHOLDER, ROLE_NAMES, Meeting

COLUMNS = [
    "id",
    "source",
    "date",
    "time",
    "calendar_type",
    "subject",
    "subject_number",
    *ROLE_NAMES,
    "attendees",
    "location",
    "link",
    "amount",
    "currency",
    "value_nis",
    "confirmation",
    "paid",
]


def meetings_to_dataframe(meetings: Iterable[Meeting]) -> pd.DataFrame:
    records = []
    for meeting in meetings:
        balance = meeting.subject.balance
        record = {
            "id": meeting.id,
            "source": meeting.source_kind.value,
            "date": meeting.date.isoformat(),
            "time": meeting.time.strftime("%H:%M") if meeting.time else "",
            "calendar_type": meeting.calendar_type.value,
            "subject": meeting.subject.name,
            "subject_number": meeting.subject.number or "",
            "attendees": meeting.attendee_label or "",
            "location": meeting.location.name,
            "link": meeting.location.link or "",
            "amount": balance.amount if balance else 0.0,
            "currency": balance.code if balance else "",
            "value_nis": round(meeting.value_nis, 2),
            "confirmation": meeting.confirmation.value,
            "paid": meeting.is_paid,
        }
        for role in ROLE_NAMES:
            record[role] = meeting.participants.display(role)
        records.append(record)
    return pd.DataFrame.from_records(records, columns=COLUMNS)


def export_meetings_csv(meetings: Iterable[Meeting], csv_path: str | Path) -> int:
    """
    Export reconciled meetings to CSV.

    Unset roles are written as the ``---`` placeholder.

    Returns:
        Number of meetings exported
    """
    df = meetings_to_dataframe(meetings)
    df[list(ROLE_NAMES)] = df[list(ROLE_NAMES)].fillna(PLACEHOLDER)
    df.to_csv(csv_path, index=False)
    return len(df)
