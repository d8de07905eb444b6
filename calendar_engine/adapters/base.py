"""Base source adapter that every meeting source must implement."""

from __future__ import annotations

import concurrent.futures
import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import time
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.exc import DBAPIError

from calendar_engine.config import StaffPolicy
from calendar_engine.domain.meeting import DateWindow, Meeting, SourceKind
from calendar_engine.errors import SourceTimeout, SourceUnavailable
from calendar_engine.interfaces import MeetingStore
from calendar_engine.services.directory import EmployeeDirectory
from calendar_engine.services.lookups import LookupTables
from calendar_engine.services.timeplan import parse_time_string

logger = logging.getLogger(__name__)

# Postgres "query_canceled", raised when statement_timeout fires.
STATEMENT_TIMEOUT_CODE = "57014"


@dataclass
class SourceContext:
    """Auxiliary lookups handed to every adapter for one fetch."""

    directory: EmployeeDirectory = field(default_factory=EmployeeDirectory)
    lookups: LookupTables = field(default_factory=LookupTables.seed)
    staff: StaffPolicy = field(default_factory=StaffPolicy)


@dataclass
class SourceResult:
    """Meetings from one source plus the error absorbed at its boundary, if any."""

    source: SourceKind
    window: Optional[DateWindow]
    meetings: List[Meeting] = field(default_factory=list)
    error: Optional[SourceUnavailable] = None
    skipped: bool = False

    @property
    def ok(self) -> bool:
        return self.error is None and not self.skipped

    @property
    def timed_out(self) -> bool:
        return isinstance(self.error, SourceTimeout)


def is_timeout_error(exc: BaseException) -> bool:
    """True for client-side timeouts and database statement-timeout cancellations."""
    if isinstance(exc, (TimeoutError, concurrent.futures.TimeoutError, SourceTimeout)):
        return True
    if isinstance(exc, DBAPIError):
        code = getattr(exc.orig, "pgcode", None) or getattr(exc.orig, "sqlstate", None)
        if code == STATEMENT_TIMEOUT_CODE:
            return True
    message = str(exc).lower()
    return "statement timeout" in message or "canceling statement" in message


def classify_error(source: SourceKind, exc: BaseException) -> SourceUnavailable:
    if isinstance(exc, SourceUnavailable):
        return exc
    if is_timeout_error(exc):
        return SourceTimeout(source.value, str(exc) or "timed out")
    return SourceUnavailable(source.value, f"{type(exc).__name__}: {exc}")


def extract_join_link(value: Any) -> Optional[str]:
    """
    Extract a joinable URL from a plain URL or a JSON blob.

    JSON blobs may carry ``joinUrl`` or ``joinWebUrl``. Anything that does not
    yield an http(s) URL gives None.
    """
    if value is None:
        return None
    if isinstance(value, Mapping):
        payload = value
    else:
        text = str(value).strip()
        if not text:
            return None
        if text.startswith("http"):
            return text
        try:
            payload = json.loads(text)
        except ValueError:
            return None
    if not isinstance(payload, Mapping):
        return None
    for key in ("joinUrl", "joinWebUrl"):
        link = payload.get(key)
        if isinstance(link, str) and link.startswith("http"):
            return link
    return None


def safe_time(value: Any, source: SourceKind, row_id: Any) -> Optional[time]:
    """Parse a time of day; malformed values are logged and treated as missing."""
    try:
        return parse_time_string(value)
    except ValueError:
        logger.warning("%s row %s has malformed time %r; treating as untimed", source.value, row_id, value)
        return None


class BaseSourceAdapter(ABC):
    """
    Abstract base class for all meeting sources.

    Subclasses turn one raw row into a canonical Meeting. The base class owns
    the boundary policy: nothing raised while fetching or shaping escapes
    ``fetch``; the error is logged and the source contributes no meetings.
    """

    kind: SourceKind

    def __init__(self, store: MeetingStore, filters: Optional[Dict[str, Any]] = None):
        self.store = store
        self.filters = dict(filters or {})

    @abstractmethod
    def shape(self, row: Mapping[str, Any], context: SourceContext) -> Optional[Meeting]:
        """
        Convert one raw row to a Meeting.

        Args:
            row: Raw row from the store
            context: Employee directory, lookup tables and staff policy

        Returns:
            Meeting, or None when the row carries no meeting
        """
        pass

    def fetch_rows(self, window: DateWindow) -> List[Mapping[str, Any]]:
        return self.store.query_meetings(self.kind, window, self.filters)

    def fetch_result(self, window: DateWindow, context: Optional[SourceContext] = None) -> SourceResult:
        """Fetch and shape, absorbing every error at this boundary."""
        context = context or SourceContext()
        try:
            rows = self.fetch_rows(window)
        except Exception as exc:
            error = classify_error(self.kind, exc)
            logger.warning("Source '%s' fetch failed: %s", self.kind.value, error)
            return SourceResult(self.kind, window, [], error)

        meetings: List[Meeting] = []
        try:
            for row in rows:
                meeting = self.shape(row, context)
                if meeting is None:
                    continue
                if not window.contains(meeting.date):
                    logger.debug("Dropping %s outside window %s..%s", meeting.id, window.start, window.end)
                    continue
                meetings.append(meeting)
        except Exception as exc:
            error = classify_error(self.kind, exc)
            logger.warning("Source '%s' shaping failed: %s", self.kind.value, error)
            return SourceResult(self.kind, window, [], error)

        logger.debug("Source '%s' produced %d meetings", self.kind.value, len(meetings))
        return SourceResult(self.kind, window, meetings)

    def fetch(self, window: DateWindow, context: Optional[SourceContext] = None) -> List[Meeting]:
        return self.fetch_result(window, context).meetings
