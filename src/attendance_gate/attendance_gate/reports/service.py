from __future__ import annotations

from collections import defaultdict
from datetime import datetime, tzinfo
from typing import Callable, Optional

from ..actors.repository import ActorDirectory
from ..attendance.deriver import StateDeriver
from ..attendance.model import ActorDailyState, ClockEvent, DayWindow
from ..attendance.repository import AttendanceStore
from ..attendance.service import event_to_ui, state_to_dict
from ..common.datetime_utils import now_local
from ..sites.repository import SiteDirectory
from .aggregator import Aggregator, OrgSummary


class OrgReportService:
    def __init__(
        self,
        store: AttendanceStore,
        actors: ActorDirectory,
        sites: SiteDirectory,
        *,
        tz: tzinfo,
        deriver: Optional[StateDeriver] = None,
        aggregator: Optional[Aggregator] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._actors = actors
        self._sites = sites
        self._tz = tz
        self._deriver = deriver or StateDeriver()
        self._aggregator = aggregator or Aggregator()
        self._clock = clock or (lambda: now_local(tz))

    def daily_states(self, *, now: Optional[datetime] = None) -> list[ActorDailyState]:
        """One derived state per active actor, from a single snapshot of today's log."""
        now = now or self._clock()
        window = DayWindow.containing(now, self._tz)

        by_actor: dict[int, list[ClockEvent]] = defaultdict(list)
        for e in self._store.list_window(window):
            by_actor[e.actor_id].append(e)

        return [
            self._deriver.derive(by_actor.get(a.actor_id, []), window, now=now, actor_id=a.actor_id)
            for a in self._actors.list_active()
        ]

    def summarize_today(self, *, now: Optional[datetime] = None) -> OrgSummary:
        states = self.daily_states(now=now)
        return self._aggregator.summarize(states, self._sites.list_active_sites())

    def build_dashboard(self, *, now: Optional[datetime] = None) -> dict:
        now = now or self._clock()
        states = self.daily_states(now=now)
        summary = self._aggregator.summarize(states, self._sites.list_active_sites())
        names = {a.actor_id: a.display_name for a in self._actors.list_active()}

        def _iso(value: datetime) -> str:
            return value.astimezone(self._tz).isoformat()

        return {
            "total_staff": summary.total_actors,
            "present_today": summary.present_today,
            "clocked_in_now": summary.clocked_in_now,
            "attendance_rate": summary.attendance_rate,
            "staff_by_site": [{"site_id": s.site_id, "name": s.name, "count": s.count} for s in summary.staff_by_site],
            "late_arrivals": [
                {
                    "actor_id": x.actor_id,
                    "name": names.get(x.actor_id, "Unknown"),
                    "time": _iso(x.first_in),
                    "late_by_minutes": x.late_by_minutes,
                }
                for x in summary.late_arrivals
            ],
            "recent_photos": [
                {
                    "id": e.event_id,
                    "actor_id": e.actor_id,
                    "name": names.get(e.actor_id, "Unknown"),
                    "photo_ref": e.photo_ref,
                    "timestamp": _iso(e.timestamp),
                }
                for e in summary.recent_biometric_captures
            ],
            "present_staff": [
                {"actor_id": p.actor_id, "name": names.get(p.actor_id, "Unknown"), "time": _iso(p.first_in)}
                for p in summary.present_staff
            ],
            "states": [state_to_dict(s, self._tz) for s in states],
        }

    def actor_day(self, actor_id: int, *, now: Optional[datetime] = None) -> Optional[dict]:
        """Hồ sơ + log hôm nay của một nhân viên (màn hình chi tiết cho admin); None nếu không tồn tại."""
        actor = self._actors.get_by_id(int(actor_id))
        if actor is None:
            return None

        now = now or self._clock()
        window = DayWindow.containing(now, self._tz)
        events = list(self._store.list_today(actor.actor_id, window=window))
        state = self._deriver.derive(events, window, now=now, actor_id=actor.actor_id)
        site_names = {s.site_id: s.name for s in self._sites.list_active_sites()}

        return {
            "profile": {
                "actor_id": actor.actor_id,
                "name": actor.display_name,
                "username": actor.username,
                "department": actor.department,
                "is_active": actor.is_active,
                "has_reference_photo": bool(actor.reference_photo),
            },
            "state": state_to_dict(state, self._tz),
            "events": [event_to_ui(e, self._tz, site_names.get(e.site_id)) for e in events],
        }
