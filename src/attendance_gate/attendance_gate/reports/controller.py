from __future__ import annotations

from functools import wraps

import structlog
from flask import Flask, jsonify, session

from ..container import Container
from ..core.exceptions import DomainError

logger = structlog.get_logger(__name__)


def register(app: Flask, container: Container) -> None:
    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Please sign in to continue"}), 401
            if session.get("role") != "admin":
                return jsonify({"success": False, "message": "Forbidden"}), 403
            return view(*args, **kwargs)

        return wrapper

    @app.route("/api/admin/attendance/summary", methods=["GET"], endpoint="api_admin_attendance_summary")
    @admin_required
    def api_admin_attendance_summary():
        try:
            data = container.org_report_service.build_dashboard()
        except DomainError as e:
            logger.warning("org_summary_failed", error=str(e))
            return jsonify({"success": False, "message": str(e)}), 503
        return jsonify({"success": True, **data}), 200

    @app.route("/api/admin/attendance/<int:actor_id>", methods=["GET"], endpoint="api_admin_attendance_actor")
    @admin_required
    def api_admin_attendance_actor(actor_id: int):
        """Chi tiết chấm công hôm nay của một nhân viên."""
        try:
            data = container.org_report_service.actor_day(actor_id)
        except DomainError as e:
            logger.warning("actor_day_failed", actor_id=actor_id, error=str(e))
            return jsonify({"success": False, "message": str(e)}), 503
        if data is None:
            return jsonify({"success": False, "message": "Staff member not found"}), 404
        return jsonify({"success": True, **data}), 200
