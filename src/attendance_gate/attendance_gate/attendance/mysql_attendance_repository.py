from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import ClockType
from ..core.exceptions import StoreConflict
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, from_db_datetime, to_db_datetime
from .model import ClockEvent, DayWindow, NewClockEvent
from .repository import AttendanceStore

_COLUMNS = (
    "event_id, actor_id, site_id, clock_type, event_time, latitude, longitude, distance_meters, photo_ref, note"
)


def _row_to_event(r: dict) -> ClockEvent:
    return ClockEvent(
        event_id=int(r["event_id"]),
        actor_id=int(r["actor_id"]),
        site_id=int(r["site_id"]),
        clock_type=ClockType(r["clock_type"]),
        timestamp=from_db_datetime(r["event_time"]),
        latitude=float(r["latitude"]),
        longitude=float(r["longitude"]),
        distance_meters=int(r["distance_meters"]),
        photo_ref=r.get("photo_ref"),
        note=r.get("note"),
    )


class MySQLAttendanceStore(AttendanceStore):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def append(self, event: NewClockEvent, *, window: DayWindow, expected_last_id: Optional[int]) -> ClockEvent:
        with db_cursor(self._conn_factory) as (_, cur):
            # Locks the actor's rows for the day until commit.
            cur.execute(
                """
                SELECT event_id
                FROM clock_events
                WHERE actor_id=%s AND event_time >= %s AND event_time < %s
                ORDER BY event_id DESC
                LIMIT 1
                FOR UPDATE
                """,
                (event.actor_id, to_db_datetime(window.start), to_db_datetime(window.end)),
            )
            r = fetchone(cur)
            last_id = int(r["event_id"]) if r else None
            if last_id != expected_last_id:
                raise StoreConflict(
                    f"Log for actor {event.actor_id} moved: expected last={expected_last_id}, found {last_id}"
                )

            cur.execute(
                """
                INSERT INTO clock_events(
                    actor_id, site_id, clock_type, event_time, latitude, longitude, distance_meters, photo_ref, note
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    event.actor_id,
                    event.site_id,
                    event.clock_type.value,
                    to_db_datetime(event.timestamp),
                    event.latitude,
                    event.longitude,
                    event.distance_meters,
                    event.photo_ref,
                    event.note,
                ),
            )
            return ClockEvent.from_new(int(cur.lastrowid), event)

    def list_today(self, actor_id: int, *, window: DayWindow) -> Sequence[ClockEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM clock_events
                WHERE actor_id=%s AND event_time >= %s AND event_time < %s
                ORDER BY event_id ASC
                """,
                (int(actor_id), to_db_datetime(window.start), to_db_datetime(window.end)),
            )
            return [_row_to_event(r) for r in fetchall(cur)]

    def list_window(self, window: DayWindow) -> Sequence[ClockEvent]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_COLUMNS}
                FROM clock_events
                WHERE event_time >= %s AND event_time < %s
                ORDER BY event_id ASC
                """,
                (to_db_datetime(window.start), to_db_datetime(window.end)),
            )
            return [_row_to_event(r) for r in fetchall(cur)]
