"""Source adapters: one per meeting source, all sharing the BaseSourceAdapter boundary."""

from .base import BaseSourceAdapter, SourceContext, SourceResult, extract_join_link, is_timeout_error
from .current import CurrentLeadAdapter
from .legacy import LegacyLeadAdapter
from .staff import StaffCalendarAdapter

ADAPTERS = {
    adapter.kind: adapter
    for adapter in (CurrentLeadAdapter, LegacyLeadAdapter, StaffCalendarAdapter)
}

__all__ = [
    "ADAPTERS",
    "BaseSourceAdapter",
    "CurrentLeadAdapter",
    "LegacyLeadAdapter",
    "SourceContext",
    "SourceResult",
    "StaffCalendarAdapter",
    "extract_join_link",
    "is_timeout_error",
]
