from __future__ import annotations

from enum import Enum


class ClockType(str, Enum):
    """Loại sự kiện chấm công lưu trong log."""

    CLOCK_IN = "clock_in"
    CLOCK_OUT = "clock_out"

    def complement(self) -> "ClockType":
        return ClockType.CLOCK_OUT if self is ClockType.CLOCK_IN else ClockType.CLOCK_IN


class PresenceStatus(str, Enum):
    """Trạng thái hiện tại suy ra từ log trong ngày."""

    CLOCKED_IN = "clocked_in"
    CLOCKED_OUT = "clocked_out"


class ClockState(str, Enum):
    """States of one clock attempt."""

    IDLE = "idle"
    LOCATION_PENDING = "location_pending"
    LOCATION_READY = "location_ready"
    PHOTO_PENDING = "photo_pending"
    PHOTO_READY = "photo_ready"
    VERIFYING = "verifying"
    ADMITTED = "admitted"
    COMMITTED = "committed"
    REJECTED = "rejected"

    @property
    def is_terminal(self) -> bool:
        return self in (ClockState.COMMITTED, ClockState.REJECTED)


class RejectionKind(str, Enum):
    INPUT = "input"
    GATE = "gate"
    INFRASTRUCTURE = "infrastructure"
    BUSY = "busy"


class RejectionReason(str, Enum):
    """Why a clock attempt ended without an event."""

    NO_SITE_SELECTED = "no_site_selected"
    UNKNOWN_SITE = "unknown_site"
    INVALID_POSITION = "invalid_position"
    OUT_OF_RANGE = "out_of_range"
    NO_PHOTO = "no_photo"
    VERIFICATION_FAILED = "verification_failed"
    POSITION_UNAVAILABLE = "position_unavailable"
    CAPTURE_UNAVAILABLE = "capture_unavailable"
    STORE_UNAVAILABLE = "store_unavailable"
    BUSY = "busy"

    @property
    def kind(self) -> RejectionKind:
        return _REASON_KINDS[self]


_REASON_KINDS = {
    RejectionReason.NO_SITE_SELECTED: RejectionKind.INPUT,
    RejectionReason.UNKNOWN_SITE: RejectionKind.INPUT,
    RejectionReason.INVALID_POSITION: RejectionKind.INPUT,
    RejectionReason.OUT_OF_RANGE: RejectionKind.GATE,
    RejectionReason.NO_PHOTO: RejectionKind.GATE,
    RejectionReason.VERIFICATION_FAILED: RejectionKind.GATE,
    RejectionReason.POSITION_UNAVAILABLE: RejectionKind.INFRASTRUCTURE,
    RejectionReason.CAPTURE_UNAVAILABLE: RejectionKind.INFRASTRUCTURE,
    RejectionReason.STORE_UNAVAILABLE: RejectionKind.INFRASTRUCTURE,
    RejectionReason.BUSY: RejectionKind.BUSY,
}
