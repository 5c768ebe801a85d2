from __future__ import annotations

from typing import Optional, Protocol, Sequence

from .model import ClockEvent, DayWindow, NewClockEvent


class AttendanceStore(Protocol):
    """Append-only clock log owned by an external store.

    Reads return events already ordered by write sequence.
    """

    def append(self, event: NewClockEvent, *, window: DayWindow, expected_last_id: Optional[int]) -> ClockEvent:
        """Append one event.

        Raises StoreConflict when the actor's last event in ``window`` is no
        longer ``expected_last_id``, StoreUnavailable when the store cannot be
        reached.
        """

        raise NotImplementedError

    def list_today(self, actor_id: int, *, window: DayWindow) -> Sequence[ClockEvent]:
        raise NotImplementedError

    def list_window(self, window: DayWindow) -> Sequence[ClockEvent]:
        """Every actor's events in the window, in write order."""

        raise NotImplementedError
