"""Reconciliation engine: merge, availability, conflicts, filtering and the facade."""

from .availability import AvailabilityEntry, AvailabilityIndex, AvailabilityIndexHolder
from .conflicts import ConflictEvaluator, ConflictResult
from .orchestrator import AssignmentOutcome, CalendarEngine, ReconciledMeetings
from .pipeline import MeetingFilters, apply_filters, run_pipeline, sort_meetings
from .reconciler import MergeReport, Reconciler, merge, reconcile

__all__ = [
    "AssignmentOutcome",
    "AvailabilityEntry",
    "AvailabilityIndex",
    "AvailabilityIndexHolder",
    "CalendarEngine",
    "ConflictEvaluator",
    "ConflictResult",
    "MeetingFilters",
    "MergeReport",
    "ReconciledMeetings",
    "Reconciler",
    "apply_filters",
    "merge",
    "reconcile",
    "run_pipeline",
    "sort_meetings",
]
