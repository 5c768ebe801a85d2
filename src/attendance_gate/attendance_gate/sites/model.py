from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Site:
    """Thực thể miền (domain): Địa điểm làm việc có vùng geofence.

    Sites are managed elsewhere; this engine only reads them.
    """

    site_id: int
    name: str
    latitude: float
    longitude: float
    radius_meters: float
    address: Optional[str] = None
    is_active: bool = True
