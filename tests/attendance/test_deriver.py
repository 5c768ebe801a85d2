from __future__ import annotations

from datetime import date, datetime, time, timezone
from zoneinfo import ZoneInfo

from attendance_gate.attendance.deriver import StateDeriver, infer_next_type
from attendance_gate.attendance.model import DayWindow
from attendance_gate.core.enums import ClockType, PresenceStatus

from fakes import make_event

UTC = timezone.utc
DAY = date(2026, 2, 2)
WINDOW = DayWindow.for_date(DAY, UTC)
NOW = datetime(2026, 2, 2, 17, 0, tzinfo=UTC)

IN = ClockType.CLOCK_IN
OUT = ClockType.CLOCK_OUT


def at(hour: int, minute: int = 0) -> datetime:
    return datetime(2026, 2, 2, hour, minute, tzinfo=UTC)


def test_no_events_means_clocked_out():
    state = StateDeriver().derive([], WINDOW, now=NOW, actor_id=7)

    assert state.actor_id == 7
    assert state.current_status == PresenceStatus.CLOCKED_OUT
    assert state.first_in is None
    assert state.last_out is None
    assert state.work_minutes == 0
    assert state.late_by_minutes == 0


def test_derive_is_idempotent():
    events = (make_event(1, 1, IN, at(9, 20)), make_event(2, 1, OUT, at(12, 5)))
    deriver = StateDeriver()

    assert deriver.derive(events, WINDOW, now=NOW) == deriver.derive(events, WINDOW, now=NOW)


def test_on_time_before_threshold():
    state = StateDeriver(shift_start=time(9, 0)).derive([make_event(1, 1, IN, at(8, 55))], WINDOW, now=NOW)

    assert state.late_by_minutes == 0


def test_late_by_fifteen_minutes():
    state = StateDeriver(shift_start=time(9, 0)).derive([make_event(1, 1, IN, at(9, 15))], WINDOW, now=NOW)

    assert state.late_by_minutes == 15


def test_duplicate_clock_in_keeps_clocked_in():
    events = [make_event(1, 1, IN, at(8, 0)), make_event(2, 1, IN, at(8, 1))]

    state = StateDeriver().derive(events, WINDOW, now=NOW)

    assert state.current_status == PresenceStatus.CLOCKED_IN
    assert state.first_in == at(8, 0)
    assert infer_next_type(events) == ClockType.CLOCK_OUT


def test_infer_next_type():
    assert infer_next_type([]) == IN
    assert infer_next_type([make_event(1, 1, IN, at(8))]) == OUT
    assert infer_next_type([make_event(1, 1, IN, at(8)), make_event(2, 1, OUT, at(9))]) == IN


def test_open_session_counts_until_now():
    state = StateDeriver().derive([make_event(1, 1, IN, at(8))], WINDOW, now=at(10, 30))

    assert state.last_out is None
    assert state.work_minutes == 150


def test_closed_session_counts_until_last_out():
    events = [make_event(1, 1, IN, at(8)), make_event(2, 1, OUT, at(12)), make_event(3, 1, IN, at(13))]

    state = StateDeriver().derive(events, WINDOW, now=at(16))

    assert state.current_status == PresenceStatus.CLOCKED_IN
    assert state.last_out == at(12)
    assert state.work_minutes == 240


def test_clock_out_before_first_in_is_not_last_out():
    events = [make_event(1, 1, OUT, at(7)), make_event(2, 1, IN, at(8))]

    state = StateDeriver().derive(events, WINDOW, now=at(9, 30))

    assert state.last_out is None
    assert state.work_minutes == 90


def test_status_follows_log_order_not_timestamps():
    # Same-minute device clocks can disagree; the log sequence wins.
    events = [make_event(1, 1, IN, at(10, 0)), make_event(2, 1, OUT, at(9, 59))]

    state = StateDeriver().derive(events, WINDOW, now=NOW)

    assert state.current_status == PresenceStatus.CLOCKED_OUT
    assert state.last_out is None


def test_events_outside_window_are_ignored():
    yesterday = datetime(2026, 2, 1, 23, 50, tzinfo=UTC)
    events = [make_event(1, 1, IN, yesterday), make_event(2, 1, OUT, at(0, 10))]

    state = StateDeriver().derive(events, WINDOW, now=NOW)

    assert state.first_in is None
    assert state.current_status == PresenceStatus.CLOCKED_OUT
    assert state.work_minutes == 0


def test_lateness_uses_window_timezone():
    tz = ZoneInfo("Asia/Ho_Chi_Minh")
    window = DayWindow.for_date(DAY, tz)
    # 02:15 UTC is 09:15 in Ho Chi Minh City.
    first_in = datetime(2026, 2, 2, 2, 15, tzinfo=UTC)

    state = StateDeriver().derive([make_event(1, 1, IN, first_in)], window, now=NOW)

    assert state.late_by_minutes == 15


def test_captures_and_first_in_site():
    events = [
        make_event(1, 1, IN, at(8), site_id=2, photo_ref="p1"),
        make_event(2, 1, OUT, at(12), site_id=2, photo_ref="p2"),
        make_event(3, 1, IN, at(13), site_id=1),
    ]

    state = StateDeriver().derive(events, WINDOW, now=NOW)

    assert state.first_in_site_id == 2
    assert [e.event_id for e in state.captures] == [1]
