from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Optional

from ..common.datetime_utils import as_aware
from ..core.enums import ClockType, PresenceStatus


@dataclass(frozen=True)
class NewClockEvent:
    """Sự kiện chấm công đã qua kiểm tra, chưa được log cấp id."""

    actor_id: int
    site_id: int
    clock_type: ClockType
    timestamp: datetime
    latitude: float
    longitude: float
    distance_meters: int
    photo_ref: Optional[str] = None
    note: Optional[str] = None


@dataclass(frozen=True)
class ClockEvent:
    """Thực thể miền (domain): Sự kiện chấm công trong log (bất biến)."""

    event_id: int
    actor_id: int
    site_id: int
    clock_type: ClockType
    timestamp: datetime
    latitude: float
    longitude: float
    distance_meters: int
    photo_ref: Optional[str] = None
    note: Optional[str] = None

    @classmethod
    def from_new(cls, event_id: int, new: NewClockEvent) -> "ClockEvent":
        return cls(
            event_id=int(event_id),
            actor_id=new.actor_id,
            site_id=new.site_id,
            clock_type=new.clock_type,
            timestamp=new.timestamp,
            latitude=new.latitude,
            longitude=new.longitude,
            distance_meters=new.distance_meters,
            photo_ref=new.photo_ref,
            note=new.note,
        )


@dataclass(frozen=True)
class DayWindow:
    """Half-open ``[start, end)`` covering one calendar day in the org timezone."""

    start: datetime
    end: datetime

    @classmethod
    def for_date(cls, day: date, tz: tzinfo) -> "DayWindow":
        start = datetime.combine(day, time.min, tzinfo=tz)
        end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
        return cls(start=start, end=end)

    @classmethod
    def containing(cls, moment: datetime, tz: tzinfo) -> "DayWindow":
        return cls.for_date(as_aware(moment, tz).astimezone(tz).date(), tz)

    @property
    def tz(self) -> tzinfo:
        return self.start.tzinfo

    @property
    def day(self) -> date:
        return self.start.date()

    def at(self, moment: time) -> datetime:
        return datetime.combine(self.day, moment, tzinfo=self.tz)

    def contains(self, moment: datetime) -> bool:
        return self.start <= as_aware(moment, self.tz) < self.end


@dataclass(frozen=True)
class ActorDailyState:
    """Read-model: trạng thái trong ngày của một nhân viên, luôn tính lại từ log."""

    actor_id: Optional[int]
    first_in: Optional[datetime]
    last_out: Optional[datetime]
    current_status: PresenceStatus
    work_minutes: int
    late_by_minutes: int
    first_in_site_id: Optional[int] = None
    captures: tuple[ClockEvent, ...] = field(default=())

    @property
    def is_present(self) -> bool:
        return self.first_in is not None
