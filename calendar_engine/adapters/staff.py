"""Adapter for the internal staff calendar."""

from __future__ import annotations

import json
from typing import Any, List, Mapping, Optional

from calendar_engine.domain.meeting import (
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
from calendar_engine.services.directory import attendee_summary
from calendar_engine.services.lookups import NOT_SPECIFIED
from calendar_engine.services.timeplan import parse_date_value

from .base import BaseSourceAdapter, SourceContext, extract_join_link, safe_time

STAFF_CATEGORY = "Staff Meeting"


def parse_attendees(value: Any) -> List[str]:
    """Attendee emails from a list, a JSON array or a comma/semicolon separated string."""
    if value is None:
        return []
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return []
        if text.startswith("["):
            try:
                value = json.loads(text)
            except ValueError:
                value = text.strip("[]")
        if isinstance(value, str):
            return [part.strip() for part in value.replace(";", ",").split(",") if part.strip()]
    emails = []
    for item in value:
        if isinstance(item, Mapping):
            item = item.get("email") or item.get("address")
        if item and str(item).strip():
            emails.append(str(item).strip())
    return emails


class StaffCalendarAdapter(BaseSourceAdapter):
    """Staff meetings have no lead; the subject line stands in for one."""

    kind = SourceKind.STAFF

    def shape(self, row: Mapping[str, Any], context: SourceContext) -> Optional[Meeting]:
        day = parse_date_value(row.get("meeting_date"))
        if day is None:
            return None
        identity = MeetingIdentity(source_kind=self.kind, raw_id=normalize_raw_id(row.get("id")))
        domain = context.staff.email_domain

        names = context.directory.attendee_names(parse_attendees(row.get("attendees")), domain)
        organizer = context.directory.name_for_email(row.get("organizer_email"), domain)

        return Meeting(
            id=identity.meeting_id or "",
            identity=identity,
            date=day,
            time=safe_time(row.get("meeting_time"), self.kind, row.get("id")),
            calendar_type=CalendarType.STAFF,
            subject=Subject(name=str(row.get("subject") or STAFF_CATEGORY), category=STAFF_CATEGORY),
            participants=Participants(manager=context.directory.resolve_role(organizer)),
            location=Location(
                name=str(row.get("location") or NOT_SPECIFIED),
                link=extract_join_link(row.get("teams_meeting_url")),
            ),
            confirmation=Confirmation.UNSET,
            brief=str(row.get("description") or ""),
            attendees=tuple(names),
            attendee_label=attendee_summary(names, context.staff.all_staff_threshold),
        )
