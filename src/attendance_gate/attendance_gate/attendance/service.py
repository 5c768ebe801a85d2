from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Callable, Optional

from ..common.datetime_utils import now_local
from ..core.enums import ClockType, PresenceStatus
from ..geofence.evaluator import Position, format_distance
from .coordinator import ClockCoordinator, Transition, run_to_completion
from .deriver import StateDeriver
from .model import ActorDailyState, ClockEvent, DayWindow
from .providers import CaptureProvider, PositionProvider
from .repository import AttendanceStore


@dataclass(frozen=True)
class ClockOutcome:
    final: Transition
    transitions: list[Transition]

    @property
    def committed(self) -> bool:
        return self.final.event is not None

    def raise_for_rejection(self) -> None:
        """Raise the domain error for a rejected attempt (InputError, GateFailure, BusyError or InfrastructureError)."""
        error = self.final.to_error()
        if error is not None:
            raise error


class AttendanceService:
    """Per-actor attendance façade: clock, today's view, today's log."""

    def __init__(
        self,
        store: AttendanceStore,
        coordinator: ClockCoordinator,
        *,
        deriver: StateDeriver | None = None,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._store = store
        self._coordinator = coordinator
        self._deriver = deriver or StateDeriver()
        self._tz = tz
        self._clock = clock or (lambda: now_local(tz))

    def window_for(self, now: Optional[datetime] = None) -> DayWindow:
        return DayWindow.containing(now or self._clock(), self._tz)

    async def clock(
        self,
        actor_id: int,
        site_id: Optional[int],
        *,
        locate: PositionProvider,
        capture: CaptureProvider,
        position: Optional[Position] = None,
        note: Optional[str] = None,
    ) -> ClockOutcome:
        stream = self._coordinator.request_clock(
            actor_id,
            site_id,
            locate=locate,
            capture=capture,
            position=position,
            note=note,
        )
        final, transitions = await run_to_completion(stream)
        return ClockOutcome(final=final, transitions=transitions)

    def today_state(self, actor_id: int, *, now: Optional[datetime] = None) -> ActorDailyState:
        # Always re-derived from the log; there is no cached status to invalidate.
        now = now or self._clock()
        window = self.window_for(now)
        events = self._store.list_today(int(actor_id), window=window)
        return self._deriver.derive(events, window, now=now, actor_id=int(actor_id))

    def get_today_ui(self, actor_id: int, *, now: Optional[datetime] = None) -> dict:
        now = now or self._clock()
        window = self.window_for(now)
        events = list(self._store.list_today(int(actor_id), window=window))
        state = self._deriver.derive(events, window, now=now, actor_id=int(actor_id))
        return {
            "state": state_to_dict(state, self._tz),
            "events": [event_to_ui(e, self._tz) for e in events],
        }


def event_to_ui(e: ClockEvent, tz: tzinfo, site_name: Optional[str] = None) -> dict:
    label = {
        ClockType.CLOCK_IN: "Clock in",
        ClockType.CLOCK_OUT: "Clock out",
    }.get(e.clock_type, e.clock_type.value)

    css = {
        ClockType.CLOCK_IN: "bg-success",
        ClockType.CLOCK_OUT: "bg-secondary",
    }.get(e.clock_type, "bg-secondary")

    return {
        "id": e.event_id,
        "type": e.clock_type.value,
        "label": label,
        "css_class": css,
        "site_id": e.site_id,
        "site_name": site_name,
        "time": e.timestamp.astimezone(tz).strftime("%H:%M:%S"),
        "timestamp": e.timestamp.isoformat(),
        "distance": format_distance(e.distance_meters),
        "distance_meters": e.distance_meters,
        "photo_ref": e.photo_ref,
        "note": e.note or "",
    }


def state_to_dict(state: ActorDailyState, tz: tzinfo) -> dict:
    def _iso(value: Optional[datetime]) -> Optional[str]:
        return value.astimezone(tz).isoformat() if value else None

    return {
        "actor_id": state.actor_id,
        "first_in": _iso(state.first_in),
        "last_out": _iso(state.last_out),
        "current_status": state.current_status.value,
        "is_clocked_in": state.current_status == PresenceStatus.CLOCKED_IN,
        "work_minutes": state.work_minutes,
        "work_hours": f"{state.work_minutes // 60:02d}:{state.work_minutes % 60:02d}",
        "late_by_minutes": state.late_by_minutes,
    }
