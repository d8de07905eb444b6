"""Collaborator protocols consumed by the engine."""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Optional, Protocol

from calendar_engine.domain.availability import UnavailableSlot
from calendar_engine.domain.meeting import DateWindow, EmployeeRef, SourceKind

Row = Dict[str, Any]


class MeetingStore(Protocol):
    """Generic fetch-by-filter access to the persistent store."""

    def query_meetings(
        self,
        kind: SourceKind,
        window: DateWindow,
        filters: Optional[Mapping[str, Any]] = None,
    ) -> List[Row]:
        """Raw rows of one source within the window."""
        ...

    def query_employees(self, filters: Optional[Mapping[str, Any]] = None) -> List[Row]:
        """Employee rows; ``{"with_availability": True}`` adds unavailability lists."""
        ...

    def query_lookup(self, name: str) -> List[Row]:
        """Rows of a dynamic lookup table ("locations" or "currencies")."""
        ...

    def update_assignment(self, meeting_id: str, role: str, employee: EmployeeRef) -> None:
        """Write one role of one meeting. Raises on failure."""
        ...

    def insert_unavailable_slot(self, employee_id: int, slot: UnavailableSlot) -> None:
        ...


class IdentityLookup(Protocol):
    def resolve(self, principal: str) -> Optional[EmployeeRef]:
        """Map a session principal (e.g. a login email) to an employee."""
        ...


class Notifier(Protocol):
    def send(self, event: str, payload: Mapping[str, Any]) -> None:
        ...
