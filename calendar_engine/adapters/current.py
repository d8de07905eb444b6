"""Adapter for meetings of the current lead system."""

from __future__ import annotations

from typing import Any, Mapping, Optional

from calendar_engine.domain.meeting import (
    MEANINGFUL_ROLES,
    CalendarType,
    Confirmation,
    Location,
    Meeting,
    MeetingIdentity,
    Participants,
    SourceKind,
    Subject,
    normalize_raw_id,
)
from calendar_engine.services.currency import meeting_value, parse_amount
from calendar_engine.services.timeplan import parse_date_value

from .base import BaseSourceAdapter, SourceContext, extract_join_link, safe_time

# Role -> column carrying it on a current meeting row.
ROLE_FIELDS = {
    "manager": "meeting_manager",
    "helper": "helper",
    "scheduler": "meeting_scheduler",
    "expert": "expert",
    "handler": "handler",
    "guest_1": "guest_1",
    "guest_2": "guest_2",
}


def build_participants(row: Mapping[str, Any], calendar_type: CalendarType, context: SourceContext, fields) -> Participants:
    meaningful = MEANINGFUL_ROLES[calendar_type]
    resolved = {}
    for role, column in fields.items():
        if role not in meaningful or column is None:
            continue
        resolved[role] = context.directory.resolve_role(row.get(column))
    return Participants(**resolved)


class CurrentLeadAdapter(BaseSourceAdapter):
    """Meetings table joined with leads; the authoritative source."""

    kind = SourceKind.CURRENT

    def shape(self, row: Mapping[str, Any], context: SourceContext) -> Optional[Meeting]:
        identity = MeetingIdentity(
            source_kind=self.kind,
            raw_id=normalize_raw_id(row.get("id")),
            legacy_back_ref=normalize_raw_id(row.get("legacy_lead_id")),
        )
        day = parse_date_value(row.get("meeting_date"))
        if day is None:
            return None

        lead = row.get("lead") or {}
        calendar_type = CalendarType.parse(row.get("calendar_type"))

        balance = meeting_value(
            lead_balance=lead.get("balance"),
            lead_currency=lead.get("balance_currency"),
            meeting_amount=row.get("meeting_amount"),
            meeting_currency=row.get("meeting_currency"),
            lookups=context.lookups,
        )
        probability = parse_amount(row.get("attendance_probability"))
        if probability is None:
            probability = parse_amount(lead.get("probability"))

        subject = Subject(
            name=str(lead.get("name") or row.get("meeting_brief") or "Unknown lead"),
            number=str(lead["lead_number"]) if lead.get("lead_number") else None,
            category=lead.get("category"),
            balance=balance,
            stage=lead.get("stage"),
            eligibility=lead.get("eligibility_status"),
            probability=probability,
            payment_ref=lead.get("payment_collection_ref"),
        )

        name, default_link = context.lookups.location(row.get("meeting_location"))
        location = Location(name=name, link=extract_join_link(row.get("teams_meeting_url")) or default_link)

        return Meeting(
            id=identity.meeting_id or "",
            identity=identity,
            date=day,
            time=safe_time(row.get("meeting_time"), self.kind, row.get("id")),
            calendar_type=calendar_type,
            subject=subject,
            participants=build_participants(row, calendar_type, context, ROLE_FIELDS),
            location=location,
            confirmation=Confirmation.from_fields(row.get("meeting_confirmation"), row.get("confirmed_at")),
            brief=str(row.get("meeting_brief") or ""),
        )
