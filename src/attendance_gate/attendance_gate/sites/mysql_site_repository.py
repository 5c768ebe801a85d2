from __future__ import annotations

from typing import Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall
from .model import Site
from .repository import SiteDirectory


class MySQLSiteDirectory(SiteDirectory):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def list_active_sites(self) -> Sequence[Site]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT site_id, name, address, latitude, longitude, radius_meters, is_active
                FROM sites
                WHERE is_active=1
                ORDER BY site_id
                """
            )
            rows = fetchall(cur)
            return [
                Site(
                    site_id=int(r["site_id"]),
                    name=r["name"],
                    address=r.get("address"),
                    latitude=float(r["latitude"]),
                    longitude=float(r["longitude"]),
                    radius_meters=float(r["radius_meters"]),
                    is_active=bool(r.get("is_active", True)),
                )
                for r in rows
            ]
