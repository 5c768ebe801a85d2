from __future__ import annotations

import asyncio
from functools import wraps

import structlog
from flask import Flask, jsonify, request, session

from ..container import Container
from ..core.enums import ClockType, RejectionKind
from ..core.exceptions import BusyError, DomainError, GateFailure, InfrastructureError, InputError
from .coordinator import Transition
from .providers import ReportedPosition, SubmittedPhoto
from .service import ClockOutcome

logger = structlog.get_logger(__name__)

_STATUS_BY_ERROR = (
    (InputError, 400),
    (GateFailure, 422),
    (BusyError, 409),
    (InfrastructureError, 503),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def login_required(view):
    """The session is populated by the auth collaborator; we only read it."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Please sign in to continue"}), 401
        return view(*args, **kwargs)

    return wrapper


def _optional_float(data: dict, key: str):
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise InputError(f"{key} must be a number")


def _transition_to_dict(t: Transition) -> dict:
    return {
        "state": t.state.value,
        "distance_meters": t.distance_meters,
    }


def outcome_to_dict(outcome: ClockOutcome) -> dict:
    final = outcome.final
    body = {
        "success": outcome.committed,
        "state": final.state.value,
        "distance_meters": final.distance_meters,
        "transitions": [_transition_to_dict(t) for t in outcome.transitions],
    }
    if final.position is not None:
        body["position"] = {
            "latitude": final.position.latitude,
            "longitude": final.position.longitude,
            "accuracy": final.position.accuracy,
        }
    if final.decision is not None:
        body["verification"] = {
            "face_detected": final.decision.face_detected,
            "match_score": final.decision.match_score,
            "passed": final.decision.passed,
            "reason": final.decision.reason,
        }

    if outcome.committed:
        e = final.event
        body["event"] = {
            "id": e.event_id,
            "type": e.clock_type.value,
            "site_id": e.site_id,
            "timestamp": e.timestamp.isoformat(),
            "distance_meters": e.distance_meters,
        }
        body["message"] = "Clocked in successfully!" if e.clock_type == ClockType.CLOCK_IN else "Clocked out successfully!"
    else:
        body["reason"] = final.reason.value
        body["kind"] = final.kind.value
        body["retryable"] = final.retryable
        body["message"] = final.message
    return body


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/clock", methods=["POST"], endpoint="api_attendance_clock")
    @login_required
    def api_attendance_clock():
        """Clock in or out; the action type is decided from today's log."""
        data = request.get_json(silent=True) or {}
        try:
            latitude = _optional_float(data, "latitude")
            longitude = _optional_float(data, "longitude")
            accuracy = _optional_float(data, "accuracy")
        except InputError as e:
            return jsonify({"success": False, "message": str(e), "kind": RejectionKind.INPUT.value}), status_for(e)

        try:
            outcome = asyncio.run(
                container.attendance_service.clock(
                    int(session["user_id"]),
                    data.get("site_id"),
                    locate=ReportedPosition(latitude=latitude, longitude=longitude, accuracy=accuracy),
                    capture=SubmittedPhoto(photo_ref=data.get("photo_ref")),
                    note=data.get("note"),
                )
            )
        except Exception:
            logger.exception("clock_request_failed", actor_id=session.get("user_id"))
            return jsonify({"success": False, "message": "System error while clocking"}), 500

        body = outcome_to_dict(outcome)
        try:
            outcome.raise_for_rejection()
        except DomainError as e:
            return jsonify(body), status_for(e)
        return jsonify(body), 201

    @app.route("/api/attendance/today", methods=["GET"], endpoint="api_attendance_today")
    @login_required
    def api_attendance_today():
        try:
            data = container.attendance_service.get_today_ui(int(session["user_id"]))
        except DomainError as e:
            logger.warning("today_view_failed", error=str(e))
            return jsonify({"success": False, "message": str(e)}), status_for(e)
        return jsonify({"success": True, **data}), 200
