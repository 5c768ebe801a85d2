from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import Actor
from .repository import ActorDirectory

_COLUMNS = "actor_id, full_name, username, department, reference_photo, is_active"


def _row_to_actor(row: dict) -> Actor:
    return Actor(
        actor_id=int(row["actor_id"]),
        full_name=row["full_name"],
        username=row["username"],
        department=row.get("department"),
        reference_photo=row.get("reference_photo") or None,
        is_active=bool(row.get("is_active", True)),
    )


class MySQLActorDirectory(ActorDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, actor_id: int) -> Optional[Actor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM actors WHERE actor_id=%s", (int(actor_id),))
            row = fetchone(cur)
            return _row_to_actor(row) if row else None

    def list_active(self) -> Sequence[Actor]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM actors WHERE is_active=1 ORDER BY actor_id")
            return [_row_to_actor(r) for r in fetchall(cur)]
