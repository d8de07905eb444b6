"""Reconciler - merges the three source outputs into one duplicate-free set."""

from __future__ import annotations

import itertools
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, List, Optional, Set

from calendar_engine.domain.meeting import Meeting, SourceKind
from calendar_engine.errors import AmbiguousIdentity

logger = logging.getLogger(__name__)

_synthetic_ids = itertools.count(1)


@dataclass
class MergeReport:
    """Outcome of a merge: surviving meetings plus what was dropped or flagged."""

    meetings: List[Meeting] = field(default_factory=list)
    discarded: List[Meeting] = field(default_factory=list)
    ambiguous: List[AmbiguousIdentity] = field(default_factory=list)


def _synthetic_id(kind: SourceKind) -> str:
    return f"unidentified_{kind.value}_{next(_synthetic_ids)}"


class Reconciler:
    """
    Merge current, legacy and staff meetings.

    A legacy meeting is a duplicate of a current one when the current id equals
    the legacy synthesized id, or the current back-reference equals the legacy
    raw id. The current record always wins.
    """

    def reconcile(
        self,
        current: Iterable[Meeting] = (),
        legacy: Iterable[Meeting] = (),
        staff: Iterable[Meeting] = (),
    ) -> MergeReport:
        report = MergeReport()
        seen_ids: Set[str] = set()

        current_ids: Set[str] = set()
        back_refs: Set[str] = set()
        for meeting in current:
            kept = self._keep(meeting, seen_ids, report)
            if kept is None:
                continue
            current_ids.add(kept.id)
            if kept.identity.legacy_back_ref:
                back_refs.add(kept.identity.legacy_back_ref)

        for meeting in legacy:
            raw_id = meeting.identity.raw_id
            if raw_id and (meeting.identity.meeting_id in current_ids or raw_id in back_refs):
                logger.debug("Discarding legacy duplicate %s", meeting.identity.meeting_id)
                report.discarded.append(meeting)
                continue
            self._keep(meeting, seen_ids, report)

        for meeting in staff:
            self._keep(meeting, seen_ids, report)

        logger.info(
            "Reconciled %d meetings (%d duplicates discarded, %d ambiguous)",
            len(report.meetings), len(report.discarded), len(report.ambiguous),
        )
        return report

    def merge(
        self,
        current: Iterable[Meeting] = (),
        legacy: Iterable[Meeting] = (),
        staff: Iterable[Meeting] = (),
    ) -> List[Meeting]:
        return self.reconcile(current, legacy, staff).meetings

    def _keep(self, meeting: Meeting, seen_ids: Set[str], report: MergeReport) -> Optional[Meeting]:
        """Append a meeting unless its id was already taken; flag missing identities."""
        if not meeting.identity.raw_id:
            assigned = _synthetic_id(meeting.source_kind)
            issue = AmbiguousIdentity(
                source_kind=meeting.source_kind.value,
                assigned_id=assigned,
                detail=f"{meeting.source_kind.value} meeting on {meeting.date} has no source id",
            )
            logger.warning("Ambiguous identity: %s; kept as %s", issue.detail, assigned)
            report.ambiguous.append(issue)
            meeting = replace(meeting, id=assigned)
        elif meeting.id in seen_ids:
            report.discarded.append(meeting)
            return None

        seen_ids.add(meeting.id)
        report.meetings.append(meeting)
        return meeting


def merge(
    current: Iterable[Meeting] = (),
    legacy: Iterable[Meeting] = (),
    staff: Iterable[Meeting] = (),
) -> List[Meeting]:
    return Reconciler().merge(current, legacy, staff)


def reconcile(
    current: Iterable[Meeting] = (),
    legacy: Iterable[Meeting] = (),
    staff: Iterable[Meeting] = (),
) -> MergeReport:
    return Reconciler().reconcile(current, legacy, staff)
