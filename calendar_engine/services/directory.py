"""Employee directory: role resolution, attendee labels and availability rows."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from calendar_engine.domain.availability import (
    StaffMember,
    UnavailabilityType,
    UnavailableRange,
    UnavailableSlot,
    normalize_name,
)
from calendar_engine.domain.meeting import PLACEHOLDER, EmployeeRef, RawRole, ResolvedRole, RoleValue

from .timeplan import parse_date_value, parse_time_string

logger = logging.getLogger(__name__)

ALL_STAFF_LABEL = "All Staff"

_REASON_FIELDS = {
    UnavailabilityType.SICK_DAYS: "sick_days_reason",
    UnavailabilityType.VACATION: "vacation_reason",
    UnavailabilityType.GENERAL: "general_reason",
}


def _reason_text(row: Mapping[str, Any], kind: UnavailabilityType) -> Optional[str]:
    text = row.get(_REASON_FIELDS[kind]) or row.get("reason")
    return str(text).strip() if text else None


def _reason_entries(reason: Mapping[str, Any]) -> Tuple[List[UnavailableSlot], List[UnavailableRange]]:
    kind = UnavailabilityType.parse(reason.get("unavailability_type"))
    start_date = parse_date_value(reason.get("start_date"))
    if start_date is None:
        return [], []
    end_date = parse_date_value(reason.get("end_date")) or start_date
    text = _reason_text(reason, kind)
    start_time = parse_time_string(reason.get("start_time"))
    end_time = parse_time_string(reason.get("end_time"))

    if start_time is not None and end_time is not None:
        days = UnavailableRange(start_date, end_date).dates()
        return [UnavailableSlot(day, start_time, end_time, text, kind) for day in days], []
    return [], [UnavailableRange(start_date, end_date, text, kind)]


def _timed_entry(item: Mapping[str, Any]) -> Optional[UnavailableSlot]:
    day = parse_date_value(item.get("date"))
    start_time = parse_time_string(item.get("start_time") or item.get("startTime"))
    end_time = parse_time_string(item.get("end_time") or item.get("endTime"))
    if day is None or start_time is None or end_time is None:
        return None
    return UnavailableSlot(day, start_time, end_time, item.get("reason") or None)


def _availability_from_row(row: Mapping[str, Any]) -> Tuple[List[UnavailableSlot], List[UnavailableRange]]:
    """
    Build slots and ranges from an employee row.

    Typed reasons are authoritative. Rows from the older timed list are added
    only when no reason already covers the same (date, start, end). A
    malformed row is logged and skipped; the employee keeps the rest.
    """
    slots: List[UnavailableSlot] = []
    ranges: List[UnavailableRange] = []

    for reason in row.get("unavailability_reasons") or []:
        try:
            new_slots, new_ranges = _reason_entries(reason)
        except ValueError as exc:
            logger.warning("Skipping unavailability reason %s of employee %s: %s", reason.get("id"), row.get("id"), exc)
            continue
        slots.extend(new_slots)
        ranges.extend(new_ranges)

    seen = {slot.key for slot in slots}
    for item in row.get("unavailable_times") or []:
        try:
            slot = _timed_entry(item)
        except ValueError as exc:
            logger.warning("Skipping unavailable time %s of employee %s: %s", item.get("id"), row.get("id"), exc)
            continue
        if slot is None or slot.key in seen:
            continue
        seen.add(slot.key)
        slots.append(slot)

    return slots, ranges


def staff_member_from_row(row: Mapping[str, Any]) -> StaffMember:
    slots, ranges = _availability_from_row(row)
    return StaffMember(
        id=int(row["id"]),
        display_name=str(row.get("display_name") or "").strip(),
        email=(str(row["email"]).strip().lower() if row.get("email") else None),
        photo_url=row.get("photo_url"),
        role_code=row.get("role_code"),
        department=row.get("department"),
        is_active=bool(row.get("is_active", True)),
        slots=slots,
        ranges=ranges,
    )


class EmployeeDirectory:
    """Lookup of employees by id, normalized name and email."""

    def __init__(self, members: Iterable[StaffMember] = ()):
        self.members: List[StaffMember] = list(members)
        self._by_id: Dict[int, StaffMember] = {}
        self._by_name: Dict[str, StaffMember] = {}
        self._by_email: Dict[str, StaffMember] = {}
        for member in self.members:
            self._by_id[member.id] = member
            if member.display_name:
                self._by_name.setdefault(normalize_name(member.display_name), member)
            if member.email:
                self._by_email.setdefault(member.email.lower(), member)

    @classmethod
    def from_rows(cls, rows: Iterable[Mapping[str, Any]]) -> "EmployeeDirectory":
        return cls(staff_member_from_row(row) for row in rows)

    def __len__(self) -> int:
        return len(self.members)

    def get(self, employee_id: int) -> Optional[StaffMember]:
        return self._by_id.get(employee_id)

    def find_by_name(self, name: Optional[str]) -> Optional[StaffMember]:
        return self._by_name.get(normalize_name(name))

    def find(self, value: Any) -> Optional[StaffMember]:
        """Find by id (int or digit string) or by display name."""
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, EmployeeRef):
            return self.get(value.id)
        text = str(value).strip()
        if text.isdigit():
            return self.get(int(text))
        return self.find_by_name(text)

    def resolve_role(self, value: Any) -> Optional[RoleValue]:
        """
        Resolve a raw role field once, at the adapter boundary.

        Numeric ids and names that match an employee become ResolvedRole;
        anything else is kept verbatim as RawRole. Empty values and the
        placeholder give None.
        """
        if value is None or isinstance(value, bool):
            return None
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        text = str(value).strip()
        if not text or text == PLACEHOLDER:
            return None
        member = self.find(text)
        if member is not None and member.display_name:
            return ResolvedRole(member.ref)
        return RawRole(text)

    def display_name(self, value: Any) -> str:
        """Display text for an id or name; unresolved values are returned as given."""
        role = self.resolve_role(value)
        return role.display if role is not None else PLACEHOLDER

    def name_for_email(self, email: Optional[str], domain: Optional[str] = None) -> Optional[str]:
        """
        Map an attendee email to a display name.

        The employee email table is consulted first; then ``first.last@domain``
        is matched against display names. Unmatched addresses return None.
        """
        if not email:
            return None
        address = email.strip().lower()
        member = self._by_email.get(address)
        if member is not None:
            return member.display_name

        local, _, host = address.partition("@")
        if domain and host != domain.lower():
            return None
        if "." not in local:
            return None
        candidate = " ".join(part for part in local.split(".") if part)
        member = self._by_name.get(normalize_name(candidate))
        return member.display_name if member is not None else None

    def attendee_names(self, emails: Sequence[str], domain: Optional[str] = None) -> List[str]:
        names = []
        for email in emails:
            name = self.name_for_email(email, domain)
            names.append(name or str(email).strip())
        return names


def attendee_summary(names: Sequence[str], all_staff_threshold: int = 10) -> str:
    """
    Collapse attendee names into a single label.

    More than ``all_staff_threshold`` -> "All Staff"; up to three -> comma list;
    otherwise the first two plus "+N more".
    """
    if not names:
        return PLACEHOLDER
    if len(names) > all_staff_threshold:
        return ALL_STAFF_LABEL
    if len(names) <= 3:
        return ", ".join(names)
    return f"{names[0]}, {names[1]} +{len(names) - 2} more"
