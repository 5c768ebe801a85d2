from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Protocol

from ..core.exceptions import InputError, PositionUnavailable
from ..geofence.evaluator import Position


class PositionProvider(Protocol):
    """Device location source.

    Raises PositionPermissionDenied, PositionUnavailable or PositionTimeout.
    """

    async def get_position(self) -> Position:
        raise NotImplementedError


class CaptureProvider(Protocol):
    """Camera source; returns an image reference, or None when nothing was captured."""

    async def capture(self) -> Optional[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class ReportedPosition:
    """Position already reported by the client (e.g. in a request payload)."""

    latitude: Optional[float]
    longitude: Optional[float]
    accuracy: Optional[float] = None

    async def get_position(self) -> Position:
        if self.latitude is None and self.longitude is None:
            raise PositionUnavailable("Location was not reported")
        if self.latitude is None or self.longitude is None:
            raise InputError("Both latitude and longitude are required")
        return Position(latitude=self.latitude, longitude=self.longitude, accuracy=self.accuracy)


@dataclass(frozen=True)
class SubmittedPhoto:
    """Photo already uploaded by the client; storage is handled elsewhere."""

    photo_ref: Optional[str]

    async def capture(self) -> Optional[str]:
        return (self.photo_ref or "").strip() or None
