from __future__ import annotations

import threading
from contextlib import aclosing, contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, tzinfo
from typing import AsyncIterator, Callable, Iterator, Optional

import structlog

from ..actors.repository import ActorDirectory
from ..biometrics.gate import BiometricGate
from ..biometrics.model import BiometricDecision
from ..common.datetime_utils import now_local
from ..core.enums import ClockState, RejectionKind, RejectionReason
from ..core.exceptions import BusyError, DomainError, GateFailure, InfrastructureError, InputError
from ..geofence.evaluator import Position, evaluate, format_distance
from ..sites.model import Site
from ..sites.repository import SiteDirectory, find_active_site
from .deriver import infer_next_type
from .model import ClockEvent, DayWindow, NewClockEvent
from .providers import CaptureProvider, PositionProvider
from .repository import AttendanceStore

logger = structlog.get_logger(__name__)

_ERROR_BY_KIND = {
    RejectionKind.INPUT: InputError,
    RejectionKind.GATE: GateFailure,
    RejectionKind.BUSY: BusyError,
    RejectionKind.INFRASTRUCTURE: InfrastructureError,
}


@dataclass(frozen=True)
class Transition:
    """One step of a clock attempt.

    Terminal steps are ``COMMITTED`` (with ``event``) and ``REJECTED`` (with
    ``reason``). A rejection keeps whatever was measured so far, so the caller
    can explain the shortfall or re-run with the retained ``position``.
    """

    state: ClockState
    actor_id: int
    site_id: Optional[int] = None
    position: Optional[Position] = None
    distance_meters: Optional[int] = None
    photo_ref: Optional[str] = None
    decision: Optional[BiometricDecision] = None
    event: Optional[ClockEvent] = None
    reason: Optional[RejectionReason] = None
    message: str = ""

    @property
    def is_terminal(self) -> bool:
        return self.state.is_terminal

    @property
    def kind(self) -> Optional[RejectionKind]:
        return self.reason.kind if self.reason else None

    @property
    def retryable(self) -> bool:
        if self.reason is None:
            return False
        if self.reason.kind in (RejectionKind.INFRASTRUCTURE, RejectionKind.BUSY):
            return True
        return bool(self.decision and self.decision.unavailable)

    def to_error(self) -> Optional[DomainError]:
        """The domain exception matching this rejection; None unless rejected."""
        if self.reason is None:
            return None
        return _ERROR_BY_KIND[self.reason.kind](self.message or self.reason.value)


class InFlightRegistry:
    """Per-actor token: at most one clock attempt per actor at a time."""

    def __init__(self):
        self._lock = threading.Lock()
        self._actors: set[int] = set()

    def try_claim(self, actor_id: int) -> bool:
        with self._lock:
            if actor_id in self._actors:
                return False
            self._actors.add(actor_id)
            return True

    def release(self, actor_id: int) -> None:
        with self._lock:
            self._actors.discard(actor_id)

    def is_busy(self, actor_id: int) -> bool:
        with self._lock:
            return actor_id in self._actors

    @contextmanager
    def claim(self, actor_id: int) -> Iterator[bool]:
        claimed = self.try_claim(actor_id)
        try:
            yield claimed
        finally:
            if claimed:
                self.release(actor_id)


class ClockCoordinator:
    """Runs the admission gates for one clock request, then commits one event.

    ``request_clock`` is an async generator of ``Transition``s. Closing it (or
    cancelling the task driving it) before the end discards the attempt; the
    only write happens in the final commit step.

    Site, actor and store calls are synchronous (mysql-connector) and run on
    the event loop thread. The Flask controller drives each request on its own
    ``asyncio.run`` loop, so they only block that request; a shared loop would
    need them moved to ``asyncio.to_thread``.
    """

    def __init__(
        self,
        *,
        store: AttendanceStore,
        sites: SiteDirectory,
        actors: ActorDirectory,
        gate: BiometricGate,
        tz: tzinfo,
        clock: Optional[Callable[[], datetime]] = None,
        registry: Optional[InFlightRegistry] = None,
    ):
        self._store = store
        self._sites = sites
        self._actors = actors
        self._gate = gate
        self._tz = tz
        self._clock = clock or (lambda: now_local(tz))
        self._registry = registry or InFlightRegistry()

    @property
    def registry(self) -> InFlightRegistry:
        return self._registry

    async def request_clock(
        self,
        actor_id: int,
        site_id: Optional[int],
        *,
        locate: PositionProvider,
        capture: CaptureProvider,
        position: Optional[Position] = None,
        note: Optional[str] = None,
        verify_timeout_seconds: Optional[float] = None,
    ) -> AsyncIterator[Transition]:
        step = Transition(state=ClockState.IDLE, actor_id=int(actor_id), site_id=site_id)

        if site_id is None or site_id == "":
            yield self._reject(step, RejectionReason.NO_SITE_SELECTED, "Please select a working location")
            return

        with self._registry.claim(step.actor_id) as claimed:
            if not claimed:
                yield self._reject(step, RejectionReason.BUSY, "A clock action is already in progress")
                return

            yield step
            async with aclosing(self._run(step, locate, capture, position, note, verify_timeout_seconds)) as steps:
                async for t in steps:
                    yield t

    async def _run(
        self,
        step: Transition,
        locate: PositionProvider,
        capture: CaptureProvider,
        position: Optional[Position],
        note: Optional[str],
        verify_timeout_seconds: Optional[float],
    ) -> AsyncIterator[Transition]:
        try:
            site = find_active_site(self._sites, int(step.site_id))
        except (TypeError, ValueError):
            site = None
        except InfrastructureError as e:
            yield self._reject(step, RejectionReason.STORE_UNAVAILABLE, str(e))
            return
        if site is None:
            yield self._reject(step, RejectionReason.UNKNOWN_SITE, f"Unknown or inactive site: {step.site_id}")
            return

        step = replace(step, state=ClockState.LOCATION_PENDING, site_id=site.site_id)
        yield step

        if position is None:
            try:
                position = await locate.get_position()
            except InputError as e:
                yield self._reject(step, RejectionReason.INVALID_POSITION, str(e))
                return
            except InfrastructureError as e:
                yield self._reject(step, RejectionReason.POSITION_UNAVAILABLE, str(e) or "Location unavailable")
                return

        try:
            fence = evaluate(position, site)
        except InputError as e:
            yield self._reject(step, RejectionReason.INVALID_POSITION, str(e))
            return

        step = replace(step, position=position, distance_meters=fence.distance_meters)
        if not fence.within_radius:
            yield self._reject(
                step,
                RejectionReason.OUT_OF_RANGE,
                f"You are {format_distance(fence.distance_meters)} from {site.name}. "
                f"You must be within {format_distance(fence.radius_meters)} to clock.",
            )
            return

        step = replace(step, state=ClockState.LOCATION_READY)
        yield step

        step = replace(step, state=ClockState.PHOTO_PENDING)
        yield step
        try:
            photo_ref = await capture.capture()
        except InfrastructureError as e:
            yield self._reject(step, RejectionReason.CAPTURE_UNAVAILABLE, str(e) or "Camera unavailable")
            return
        if not photo_ref:
            yield self._reject(step, RejectionReason.NO_PHOTO, "A photo is required to clock")
            return

        step = replace(step, state=ClockState.PHOTO_READY, photo_ref=photo_ref)
        yield step

        step = replace(step, state=ClockState.VERIFYING)
        yield step
        try:
            actor = self._actors.get_by_id(step.actor_id)
        except InfrastructureError as e:
            yield self._reject(step, RejectionReason.STORE_UNAVAILABLE, str(e))
            return
        reference = actor.reference_photo if actor else None
        decision = await self._gate.evaluate(photo_ref, reference, timeout_seconds=verify_timeout_seconds)
        step = replace(step, decision=decision)
        if not decision.passed:
            yield self._reject(step, RejectionReason.VERIFICATION_FAILED, decision.reason or "Face verification failed")
            return

        step = replace(step, state=ClockState.ADMITTED)
        yield step

        try:
            event = self._commit(step, site, position, note)
        except InfrastructureError as e:
            yield self._reject(step, RejectionReason.STORE_UNAVAILABLE, str(e))
            return

        logger.info(
            "clock_committed",
            actor_id=event.actor_id,
            site_id=event.site_id,
            clock_type=event.clock_type.value,
            event_id=event.event_id,
            distance_meters=event.distance_meters,
        )
        yield replace(step, state=ClockState.COMMITTED, event=event)

    def _commit(self, step: Transition, site: Site, position: Position, note: Optional[str]) -> ClockEvent:
        # Runs while the actor's claim is held: inference and append see the same log.
        now = self._clock()
        window = DayWindow.containing(now, self._tz)
        events = list(self._store.list_today(step.actor_id, window=window))
        new_event = NewClockEvent(
            actor_id=step.actor_id,
            site_id=site.site_id,
            clock_type=infer_next_type(events),
            timestamp=now,
            latitude=position.latitude,
            longitude=position.longitude,
            distance_meters=int(step.distance_meters or 0),
            photo_ref=step.photo_ref,
            note=(note or "").strip() or None,
        )
        expected_last_id = events[-1].event_id if events else None
        return self._store.append(new_event, window=window, expected_last_id=expected_last_id)

    @staticmethod
    def _reject(step: Transition, reason: RejectionReason, message: str) -> Transition:
        logger.info(
            "clock_rejected",
            actor_id=step.actor_id,
            site_id=step.site_id,
            at_state=step.state.value,
            reason=reason.value,
            distance_meters=step.distance_meters,
        )
        return replace(step, state=ClockState.REJECTED, reason=reason, message=message)


async def run_to_completion(transitions: AsyncIterator[Transition]) -> tuple[Transition, list[Transition]]:
    """Drain a transition stream; returns (terminal step, every step seen)."""
    seen: list[Transition] = []
    try:
        async for t in transitions:
            seen.append(t)
    finally:
        await transitions.aclose()
    return seen[-1], seen
