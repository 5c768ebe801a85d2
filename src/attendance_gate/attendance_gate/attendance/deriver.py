from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time
from typing import Iterable, Optional, Sequence

from ..common.datetime_utils import as_aware, rounded_minutes, whole_minutes
from ..core.constants import DEFAULT_SHIFT_START
from ..core.enums import ClockType, PresenceStatus
from .model import ActorDailyState, ClockEvent, DayWindow


@dataclass(frozen=True)
class StateDeriver:
    """Folds one actor's day of clock events into an ``ActorDailyState``.

    Events are expected in log order. They are filtered to the window and
    folded as given; timestamps never reorder them.
    """

    shift_start: time = DEFAULT_SHIFT_START

    def derive(
        self,
        events: Iterable[ClockEvent],
        window: DayWindow,
        *,
        now: datetime,
        actor_id: Optional[int] = None,
    ) -> ActorDailyState:
        day_events = [e for e in events if window.contains(e.timestamp)]
        now = as_aware(now, window.tz)

        first_in_event = next((e for e in day_events if e.clock_type == ClockType.CLOCK_IN), None)
        first_in = as_aware(first_in_event.timestamp, window.tz) if first_in_event else None

        last_out = None
        if first_in is not None:
            for e in day_events:
                ts = as_aware(e.timestamp, window.tz)
                if e.clock_type == ClockType.CLOCK_OUT and ts > first_in:
                    last_out = ts

        if day_events and day_events[-1].clock_type == ClockType.CLOCK_IN:
            status = PresenceStatus.CLOCKED_IN
        else:
            status = PresenceStatus.CLOCKED_OUT

        work_minutes = 0
        late_by = 0
        if first_in is not None:
            work_minutes = max(0, whole_minutes(first_in, last_out or now))
            threshold = window.at(self.shift_start)
            if first_in > threshold:
                late_by = max(0, rounded_minutes(threshold, first_in))

        captures = tuple(e for e in day_events if e.clock_type == ClockType.CLOCK_IN and e.photo_ref)

        if actor_id is None and day_events:
            actor_id = day_events[0].actor_id

        return ActorDailyState(
            actor_id=actor_id,
            first_in=first_in,
            last_out=last_out,
            current_status=status,
            work_minutes=work_minutes,
            late_by_minutes=late_by,
            first_in_site_id=first_in_event.site_id if first_in_event else None,
            captures=captures,
        )


def infer_next_type(events: Sequence[ClockEvent]) -> ClockType:
    """Complement of the last logged event; ``clock_in`` for an empty log."""
    if not events:
        return ClockType.CLOCK_IN
    return events[-1].clock_type.complement()
