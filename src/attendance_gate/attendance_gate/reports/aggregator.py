from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional, Sequence

from ..attendance.model import ActorDailyState, ClockEvent
from ..core.constants import DEFAULT_RECENT_CAPTURES_LIMIT
from ..core.enums import PresenceStatus
from ..sites.model import Site


@dataclass(frozen=True)
class SiteHeadcount:
    site_id: int
    name: str
    count: int


@dataclass(frozen=True)
class LateArrival:
    actor_id: Optional[int]
    first_in: datetime
    late_by_minutes: int


@dataclass(frozen=True)
class PresentActor:
    actor_id: Optional[int]
    first_in: datetime


@dataclass(frozen=True)
class OrgSummary:
    """Read-model: tổng hợp chấm công toàn tổ chức trong ngày."""

    total_actors: int
    present_today: int
    clocked_in_now: int
    attendance_rate: int
    staff_by_site: list[SiteHeadcount]
    late_arrivals: list[LateArrival]
    recent_biometric_captures: list[ClockEvent]
    present_staff: list[PresentActor]


def percentage(part: int, whole: int) -> int:
    """Whole-number percentage, half-up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return int(100 * part / whole + 0.5)


@dataclass(frozen=True)
class Aggregator:
    """Rolls per-actor day states into org-wide views.

    Expects one state per actor on the roster, including actors with no events.
    """

    recent_captures_limit: int = DEFAULT_RECENT_CAPTURES_LIMIT

    def summarize(self, states: Sequence[ActorDailyState], sites: Iterable[Site]) -> OrgSummary:
        total = len(states)

        clocked_in = {s.actor_id for s in states if s.current_status == PresenceStatus.CLOCKED_IN}
        present = [s for s in states if s.is_present]
        present_ids = {s.actor_id for s in present}

        staff_by_site = []
        for site in sites:
            actors = {s.actor_id for s in present if s.first_in_site_id == site.site_id}
            staff_by_site.append(SiteHeadcount(site_id=site.site_id, name=site.name, count=len(actors)))

        late = [
            LateArrival(actor_id=s.actor_id, first_in=s.first_in, late_by_minutes=s.late_by_minutes)
            for s in present
            if s.late_by_minutes > 0
        ]
        late.sort(key=lambda x: x.late_by_minutes, reverse=True)

        return OrgSummary(
            total_actors=total,
            present_today=len(present_ids),
            clocked_in_now=len(clocked_in),
            attendance_rate=percentage(len(present_ids), total),
            staff_by_site=staff_by_site,
            late_arrivals=late,
            recent_biometric_captures=self.recent_captures(states),
            present_staff=[PresentActor(actor_id=s.actor_id, first_in=s.first_in) for s in present],
        )

    def recent_captures(self, states: Iterable[ActorDailyState]) -> list[ClockEvent]:
        captures = [e for s in states for e in s.captures if e.photo_ref]
        captures.sort(key=lambda e: (e.timestamp, e.event_id), reverse=True)
        return captures[: max(0, int(self.recent_captures_limit))]
