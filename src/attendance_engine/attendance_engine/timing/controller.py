from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, json_body, login_required, ok
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/department-timings", methods=["GET"], endpoint="department_timings")
    @login_required
    def list_timings():
        return ok(timings=[t.to_dict() for t in container.timing_store.list_all()])

    @app.route("/api/department-timings/<department>", methods=["GET"], endpoint="department_timing")
    @login_required
    def get_timing(department: str):
        return ok(timing=container.timing_store.get(department).to_dict())

    @app.route("/api/admin/department-timings/<department>", methods=["PUT"], endpoint="department_timing_update")
    @admin_required
    def update_timing(department: str):
        data = json_body()
        timing = container.timing_store.update(
            department,
            check_in_time=data.get("check_in_time") or "",
            check_out_time=data.get("check_out_time") or "",
            working_hours=data.get("working_hours"),
            overtime_threshold_minutes=data.get("overtime_threshold_minutes"),
            late_threshold_minutes=data.get("late_threshold_minutes"),
            auto_checkout_grace_minutes=data.get("auto_checkout_grace_minutes"),
            weekly_off_days=data.get("weekly_off_days"),
        )
        return ok(message="Department timing updated", timing=timing.to_dict())
