from __future__ import annotations

from flask import Flask, request

from ..common.web import (
    admin_required,
    current_user_id,
    json_body,
    login_required,
    ok,
    parse_int,
    parse_location,
)
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/attendance/check-in", methods=["POST"], endpoint="attendance_check_in")
    @login_required
    def check_in():
        data = json_body()
        record = container.attendance_service.check_in(
            current_user_id(),
            location=parse_location(data.get("location")),
            photo_ref=data.get("photo_ref"),
        )
        message = f"Checked in late by {record.late_minutes} minutes" if record.is_late else "Checked in"
        return ok(201, message=message, attendance=record.to_dict())

    @app.route("/api/attendance/check-out", methods=["POST"], endpoint="attendance_check_out")
    @login_required
    def check_out():
        data = json_body()
        record = container.attendance_service.check_out(
            current_user_id(),
            location=parse_location(data.get("location")),
            photo_ref=data.get("photo_ref"),
            reason=data.get("reason"),
        )
        return ok(message=f"Checked out after {record.working_hours:g}h", attendance=record.to_dict())

    @app.route("/api/attendance/today", methods=["GET"], endpoint="attendance_today")
    @login_required
    def today():
        record = container.attendance_service.get_today_record(current_user_id())
        return ok(attendance=record.to_dict() if record else None)

    @app.route("/api/attendance/history", methods=["GET"], endpoint="attendance_history")
    @login_required
    def history():
        limit = parse_int(request.args.get("limit", 15), "limit")
        rows = container.attendance_service.get_history(current_user_id(), limit=min(max(limit, 1), 100))
        return ok(records=[r.to_dict() for r in rows])

    @app.route("/api/admin/attendance/auto-checkout", methods=["POST"], endpoint="admin_run_auto_checkout")
    @admin_required
    def run_auto_checkout():
        summary = container.auto_checkout_service.run()
        return ok(summary=summary.to_dict())
