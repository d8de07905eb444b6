"""Adapter for the legacy leads table, read until migration completes."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from calendar_engine.domain.meeting import (
    CalendarType,
    Confirmation,
    Location,
    Meeting,
    MeetingIdentity,
    SourceKind,
    Subject,
    normalize_raw_id,
)
from calendar_engine.services.currency import meeting_value, parse_amount
from calendar_engine.services.timeplan import parse_date_value, split_datetime

from .base import BaseSourceAdapter, SourceContext, extract_join_link, safe_time
from .current import build_participants

MEETING_INFO_FIELDS = (
    "meeting_date",
    "meeting_datetime",
    "meeting_time",
    "meeting_location_id",
    "meeting_location_old",
    "meeting_url",
)


def has_meeting_info(row: Mapping[str, Any]) -> bool:
    return any(row.get(name) not in (None, "") for name in MEETING_INFO_FIELDS)


class LegacyLeadAdapter(BaseSourceAdapter):
    """Legacy leads carry their single meeting inline on the lead row."""

    kind = SourceKind.LEGACY

    ROLE_FIELDS = {
        "manager": "meeting_manager_id",
        "helper": "meeting_lawyer_id",
        "scheduler": "meeting_scheduler_id",
        "expert": "expert_id",
        "handler": "case_handler_id",
    }

    def shape(self, row: Mapping[str, Any], context: SourceContext) -> Optional[Meeting]:
        if not has_meeting_info(row):
            return None

        identity = MeetingIdentity(source_kind=self.kind, raw_id=normalize_raw_id(row.get("id")))

        dt_date, dt_time = split_datetime(row.get("meeting_datetime"))
        day = parse_date_value(row.get("meeting_date")) or dt_date
        if day is None:
            return None
        meeting_time = safe_time(row.get("meeting_time"), self.kind, row.get("id")) or dt_time

        calendar_type = CalendarType.parse(row.get("calendar_type"))
        fields = dict(self.ROLE_FIELDS)
        if not row.get("expert_id"):
            fields["expert"] = "meeting_lawyer_id"

        subject = Subject(
            name=str(row.get("name") or "Unknown lead"),
            number=identity.raw_id,
            category=row.get("category"),
            balance=meeting_value(
                legacy_total=row.get("meeting_total"),
                legacy_currency_code=row.get("meeting_total_currency"),
                legacy_currency_id=row.get("currency_id"),
                lookups=context.lookups,
            ),
            stage=str(row["stage"]) if row.get("stage") is not None else None,
            eligibility=row.get("eligibile"),
            probability=parse_amount(row.get("probability")),
            payment_ref=row.get("meeting_paid") or None,
        )

        name, default_link = context.lookups.location(
            row.get("meeting_location_id"), fallback_text=row.get("meeting_location_old")
        )
        location = Location(name=name, link=extract_join_link(row.get("meeting_url")) or default_link)

        return Meeting(
            id=identity.meeting_id or "",
            identity=identity,
            date=day,
            time=meeting_time,
            calendar_type=calendar_type,
            subject=subject,
            participants=build_participants(row, calendar_type, context, fields),
            location=location,
            confirmation=Confirmation.from_fields(None, row.get("meeting_confirmation")),
            brief=str(row.get("meeting_brief") or ""),
        )
