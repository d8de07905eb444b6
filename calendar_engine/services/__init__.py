"""Services shared by the adapters and the engine."""

from .cache import SessionCache
from .currency import format_nis, meeting_value, normalize_currency_code, to_nis, total_in_nis
from .directory import EmployeeDirectory, attendee_summary
from .lookups import LookupTables
from .planner import SourceCircuitBreaker, TimeWindowPlanner, source_breaker

__all__ = [
    "SessionCache",
    "format_nis",
    "meeting_value",
    "normalize_currency_code",
    "to_nis",
    "total_in_nis",
    "EmployeeDirectory",
    "attendee_summary",
    "LookupTables",
    "SourceCircuitBreaker",
    "TimeWindowPlanner",
    "source_breaker",
]
