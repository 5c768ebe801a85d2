from __future__ import annotations

import asyncio
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from attendance_gate.actors.model import Actor
from attendance_gate.attendance.coordinator import ClockCoordinator, Transition, run_to_completion
from attendance_gate.attendance.providers import ReportedPosition
from attendance_gate.biometrics.gate import BiometricGate
from attendance_gate.biometrics.model import VerificationResult
from attendance_gate.core.constants import VERIFICATION_UNAVAILABLE
from attendance_gate.core.enums import ClockState, ClockType, RejectionKind, RejectionReason
from attendance_gate.core.exceptions import (
    BusyError,
    GateFailure,
    InfrastructureError,
    InputError,
    PositionPermissionDenied,
    StoreUnavailable,
    VerificationNetworkError,
)

from fakes import (
    DEPOT,
    HQ,
    FailingPosition,
    FakeVerifier,
    FixedPhoto,
    FixedPosition,
    InMemoryActors,
    InMemorySites,
    InMemoryStore,
    make_event,
    meters_north,
)

UTC = timezone.utc
NOW = datetime(2026, 2, 2, 9, 30, tzinfo=UTC)

ALICE = Actor(actor_id=1, full_name="Alice", username="alice", reference_photo="refs/alice.jpg")
BOB = Actor(actor_id=2, full_name="Bob", username="bob", reference_photo=None)


def _coordinator(store=None, verifier=None, *, timeout_seconds=1.0, require_reference=True, sites=None):
    store = store if store is not None else InMemoryStore()
    verifier = verifier or FakeVerifier()
    gate = BiometricGate(verifier, timeout_seconds=timeout_seconds, require_reference=require_reference)
    coordinator = ClockCoordinator(
        store=store,
        sites=sites or InMemorySites(HQ, DEPOT),
        actors=InMemoryActors(ALICE, BOB),
        gate=gate,
        tz=UTC,
        clock=lambda: NOW,
    )
    return coordinator, store, verifier


def _clock(coordinator, actor_id=1, site_id=1, *, locate=None, capture=None, **kwargs):
    stream = coordinator.request_clock(
        actor_id,
        site_id,
        locate=locate or FixedPosition(meters_north(HQ, 20)),
        capture=capture or FixedPhoto(),
        **kwargs,
    )
    return asyncio.run(run_to_completion(stream))


def test_happy_path_walks_every_state_and_commits_clock_in():
    coordinator, store, _ = _coordinator()

    final, seen = _clock(coordinator, note=" first day ")

    assert [t.state for t in seen] == [
        ClockState.IDLE,
        ClockState.LOCATION_PENDING,
        ClockState.LOCATION_READY,
        ClockState.PHOTO_PENDING,
        ClockState.PHOTO_READY,
        ClockState.VERIFYING,
        ClockState.ADMITTED,
        ClockState.COMMITTED,
    ]
    assert final.event.clock_type == ClockType.CLOCK_IN
    assert final.event.distance_meters == 20
    assert final.event.photo_ref == "photos/selfie.jpg"
    assert final.event.note == "first day"
    assert final.event.timestamp == NOW
    assert store.events == [final.event]


def test_second_commit_infers_clock_out():
    coordinator, store, _ = _coordinator()

    _clock(coordinator)
    final, _ = _clock(coordinator)

    assert final.event.clock_type == ClockType.CLOCK_OUT
    assert [e.clock_type for e in store.events] == [ClockType.CLOCK_IN, ClockType.CLOCK_OUT]


def test_duplicate_clock_in_in_log_leads_to_clock_out():
    store = InMemoryStore(
        [
            make_event(1, 1, ClockType.CLOCK_IN, datetime(2026, 2, 2, 8, 0, tzinfo=UTC)),
            make_event(2, 1, ClockType.CLOCK_IN, datetime(2026, 2, 2, 8, 1, tzinfo=UTC)),
        ]
    )
    coordinator, _, _ = _coordinator(store)

    final, _ = _clock(coordinator)

    assert final.event.clock_type == ClockType.CLOCK_OUT


def test_yesterdays_open_session_does_not_carry_over():
    store = InMemoryStore([make_event(1, 1, ClockType.CLOCK_IN, datetime(2026, 2, 1, 8, 0, tzinfo=UTC))])
    coordinator, _, _ = _coordinator(store)

    final, _ = _clock(coordinator)

    assert final.event.clock_type == ClockType.CLOCK_IN


@pytest.mark.parametrize("site_id", [None, ""])
def test_no_site_selected_is_rejected_before_any_call(site_id):
    coordinator, store, verifier = _coordinator()
    locate = FixedPosition(meters_north(HQ, 20))

    final, seen = _clock(coordinator, site_id=site_id, locate=locate)

    assert final.reason == RejectionReason.NO_SITE_SELECTED
    assert final.kind == RejectionKind.INPUT
    assert len(seen) == 1
    assert locate.calls == 0
    assert verifier.calls == []
    assert store.events == []


def test_unknown_site_is_rejected():
    coordinator, store, _ = _coordinator()

    final, _ = _clock(coordinator, site_id=99)

    assert final.reason == RejectionReason.UNKNOWN_SITE
    assert store.events == []


def test_out_of_range_reports_distance_and_keeps_position():
    coordinator, store, verifier = _coordinator()

    final, seen = _clock(coordinator, locate=FixedPosition(meters_north(HQ, 250)))

    assert final.state == ClockState.REJECTED
    assert final.reason == RejectionReason.OUT_OF_RANGE
    assert final.kind == RejectionKind.GATE
    assert final.retryable is False
    assert final.distance_meters == 250
    assert "250 m" in final.message
    assert final.position == meters_north(HQ, 250)
    assert ClockState.ADMITTED not in [t.state for t in seen]
    assert verifier.calls == []
    assert store.events == []


def test_retained_position_skips_reacquisition():
    wide_hq = replace(HQ, radius_meters=300)
    coordinator, store, _ = _coordinator(sites=InMemorySites(wide_hq))
    locate = FixedPosition(meters_north(HQ, 0))

    final, _ = _clock(coordinator, locate=locate, position=meters_north(HQ, 250))

    assert locate.calls == 0
    assert final.state == ClockState.COMMITTED
    assert final.event.distance_meters == 250


def test_invalid_position_is_an_input_error():
    from attendance_gate.geofence.evaluator import Position

    coordinator, store, _ = _coordinator()

    final, _ = _clock(coordinator, locate=FixedPosition(Position(latitude=95.0, longitude=10.0)))

    assert final.reason == RejectionReason.INVALID_POSITION
    assert final.kind == RejectionKind.INPUT
    assert store.events == []


def test_position_permission_denied_is_infrastructure():
    coordinator, store, _ = _coordinator()

    final, _ = _clock(coordinator, locate=FailingPosition(PositionPermissionDenied("denied")))

    assert final.reason == RejectionReason.POSITION_UNAVAILABLE
    assert final.kind == RejectionKind.INFRASTRUCTURE
    assert final.retryable is True
    assert store.events == []


def test_missing_photo_is_rejected():
    coordinator, store, verifier = _coordinator()

    final, _ = _clock(coordinator, capture=FixedPhoto(None))

    assert final.reason == RejectionReason.NO_PHOTO
    assert verifier.calls == []
    assert store.events == []


def test_low_match_score_fails_verification():
    verifier = FakeVerifier(VerificationResult(face_detected=True, match_score=42, match=False, reason="mismatch"))
    coordinator, store, _ = _coordinator(verifier=verifier)

    final, _ = _clock(coordinator)

    assert final.reason == RejectionReason.VERIFICATION_FAILED
    assert final.decision.match_score == 42
    assert final.retryable is False
    assert verifier.calls == [("photos/selfie.jpg", "refs/alice.jpg")]
    assert store.events == []


def test_verification_timeout_fails_without_writing():
    verifier = FakeVerifier(delay=1.0)
    coordinator, store, _ = _coordinator(verifier=verifier, timeout_seconds=0.02)

    final, _ = _clock(coordinator)

    assert final.reason == RejectionReason.VERIFICATION_FAILED
    assert final.decision.reason == VERIFICATION_UNAVAILABLE
    assert final.retryable is True
    assert store.events == []


def test_verification_network_error_fails_without_writing():
    coordinator, store, _ = _coordinator(verifier=FakeVerifier(error=VerificationNetworkError("down")))

    final, _ = _clock(coordinator)

    assert final.reason == RejectionReason.VERIFICATION_FAILED
    assert final.decision.unavailable is True
    assert store.events == []


def test_actor_without_reference_is_rejected():
    coordinator, store, verifier = _coordinator()

    final, _ = _clock(coordinator, actor_id=BOB.actor_id)

    assert final.reason == RejectionReason.VERIFICATION_FAILED
    assert verifier.calls == []
    assert store.events == []


def test_store_failure_is_reported_as_infrastructure():
    class BrokenStore(InMemoryStore):
        def append(self, event, *, window, expected_last_id):
            raise StoreUnavailable("db down")

    coordinator, store, _ = _coordinator(store=BrokenStore())

    final, _ = _clock(coordinator)

    assert final.reason == RejectionReason.STORE_UNAVAILABLE
    assert final.kind == RejectionKind.INFRASTRUCTURE
    assert store.events == []


def test_concurrent_requests_for_same_actor_one_commits_other_busy():
    coordinator, store, _ = _coordinator()

    async def both():
        return await asyncio.gather(
            run_to_completion(
                coordinator.request_clock(
                    1, 1, locate=FixedPosition(meters_north(HQ, 20), delay=0.01), capture=FixedPhoto()
                )
            ),
            run_to_completion(
                coordinator.request_clock(
                    1, 1, locate=FixedPosition(meters_north(HQ, 20), delay=0.01), capture=FixedPhoto()
                )
            ),
        )

    results = asyncio.run(both())
    finals = sorted((final.state.value, final.reason) for final, _ in results)

    assert finals == [(ClockState.COMMITTED.value, None), (ClockState.REJECTED.value, RejectionReason.BUSY)]
    assert len(store.events) == 1
    assert coordinator.registry.is_busy(1) is False


def test_different_actors_can_clock_concurrently():
    coordinator, store, _ = _coordinator(require_reference=False)

    async def both():
        return await asyncio.gather(
            run_to_completion(
                coordinator.request_clock(1, 1, locate=FixedPosition(meters_north(HQ, 5), delay=0.01), capture=FixedPhoto())
            ),
            run_to_completion(
                coordinator.request_clock(2, 1, locate=FixedPosition(meters_north(HQ, 5), delay=0.01), capture=FixedPhoto())
            ),
        )

    results = asyncio.run(both())

    assert all(final.state == ClockState.COMMITTED for final, _ in results)
    assert sorted(e.actor_id for e in store.events) == [1, 2]


def test_abandoned_flow_discards_state_and_releases_actor():
    coordinator, store, _ = _coordinator()

    async def abandon():
        stream = coordinator.request_clock(1, 1, locate=FixedPosition(meters_north(HQ, 20)), capture=FixedPhoto())
        async for t in stream:
            if t.state == ClockState.PHOTO_READY:
                break
        await stream.aclose()

    asyncio.run(abandon())

    assert store.events == []
    assert coordinator.registry.is_busy(1) is False

    final, _ = _clock(coordinator)
    assert final.state == ClockState.COMMITTED


def test_partial_reported_position_is_invalid_input():
    coordinator, store, _ = _coordinator()

    final, _ = _clock(coordinator, locate=ReportedPosition(latitude=10.0, longitude=None))

    assert final.reason == RejectionReason.INVALID_POSITION
    assert isinstance(final.to_error(), InputError)
    assert store.events == []


@pytest.mark.parametrize(
    "reason, error_cls",
    [
        (RejectionReason.UNKNOWN_SITE, InputError),
        (RejectionReason.OUT_OF_RANGE, GateFailure),
        (RejectionReason.BUSY, BusyError),
        (RejectionReason.STORE_UNAVAILABLE, InfrastructureError),
    ],
)
def test_rejection_maps_to_domain_error(reason, error_cls):
    t = Transition(state=ClockState.REJECTED, actor_id=1, reason=reason, message="nope")

    error = t.to_error()

    assert isinstance(error, error_cls)
    assert str(error) == "nope"


def test_committed_step_has_no_error():
    assert Transition(state=ClockState.COMMITTED, actor_id=1).to_error() is None


class RacingStore(InMemoryStore):
    """Another writer appends for the actor right after the coordinator reads today's log."""

    def __init__(self, events=()):
        super().__init__(events)
        self.raced = False

    def list_today(self, actor_id, *, window):
        today = super().list_today(actor_id, window=window)
        if not self.raced:
            self.raced = True
            self._events.append(make_event(99, actor_id, ClockType.CLOCK_IN, NOW))
        return today


def test_log_moving_before_append_rejects_without_writing():
    store = RacingStore()
    coordinator, _, _ = _coordinator(store=store)

    final, _ = _clock(coordinator)

    assert final.state == ClockState.REJECTED
    assert final.reason == RejectionReason.STORE_UNAVAILABLE
    assert final.retryable is True
    assert [e.event_id for e in store.events] == [99]
    assert coordinator.registry.is_busy(1) is False


def test_cancelled_task_discards_attempt_and_releases_actor():
    coordinator, store, verifier = _coordinator()

    async def cancel_midway():
        task = asyncio.create_task(
            run_to_completion(
                coordinator.request_clock(
                    1, 1, locate=FixedPosition(meters_north(HQ, 20), delay=1.0), capture=FixedPhoto()
                )
            )
        )
        await asyncio.sleep(0.02)
        assert coordinator.registry.is_busy(1) is True
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(cancel_midway())

    assert store.events == []
    assert verifier.calls == []
    assert coordinator.registry.is_busy(1) is False
