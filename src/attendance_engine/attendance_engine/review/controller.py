from __future__ import annotations

from flask import Flask

from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    json_body,
    ok,
    parse_datetime,
    parse_int,
)
from ..container import Container
from ..core.enums import ReviewAction
from ..core.exceptions import ValidationError
from .model import PayrollPeriod


def _period_dict(p: PayrollPeriod) -> dict:
    return {
        "period_id": p.period_id,
        "year": p.year,
        "month": p.month,
        "status": p.status.value,
        "locked_at": p.locked_at.isoformat() if p.locked_at else None,
        "locked_by": p.locked_by,
        "unlocked_at": p.unlocked_at.isoformat() if p.unlocked_at else None,
        "unlocked_by": p.unlocked_by,
        "unlock_reason": p.unlock_reason,
    }


def _parse_action(value) -> ReviewAction:
    try:
        return ReviewAction(str(value or "").lower())
    except ValueError as exc:
        raise ValidationError("Action must be accept, adjust or reject", missing_fields=["action"]) from exc


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/attendance/pending", methods=["GET"], endpoint="admin_attendance_pending")
    @admin_required
    def pending():
        rows = container.review_service.list_pending()
        return ok(count=len(rows), records=[r.to_dict() for r in rows])

    @app.route("/api/admin/attendance/<int:attendance_id>/review", methods=["POST"], endpoint="admin_attendance_review")
    @admin_required
    def review(attendance_id: int):
        data = json_body()
        record = container.review_service.review(
            attendance_id,
            action=_parse_action(data.get("action")),
            reviewer_id=current_user_id(),
            current_role=current_role(),
            check_in_time=parse_datetime(data.get("check_in_time"), "check_in_time"),
            check_out_time=parse_datetime(data.get("check_out_time"), "check_out_time"),
            notes=data.get("notes"),
        )
        return ok(message=f"Attendance {record.admin_review_status.value}", attendance=record.to_dict())

    @app.route("/api/admin/payroll-periods/<int:year>", methods=["GET"], endpoint="payroll_periods")
    @admin_required
    def periods(year: int):
        return ok(periods=[_period_dict(p) for p in container.lock_service.list_for_year(year)])

    @app.route("/api/admin/payroll-periods/lock", methods=["POST"], endpoint="payroll_period_lock")
    @admin_required
    def lock():
        data = json_body()
        period = container.lock_service.lock(
            current_role=current_role(),
            actor_id=current_user_id(),
            year=parse_int(data.get("year"), "year"),
            month=parse_int(data.get("month"), "month"),
        )
        return ok(message=f"Payroll {period.month:02d}/{period.year} locked", period=_period_dict(period))

    @app.route("/api/admin/payroll-periods/unlock", methods=["POST"], endpoint="payroll_period_unlock")
    @admin_required
    def unlock():
        data = json_body()
        period = container.lock_service.unlock(
            current_role=current_role(),
            actor_id=current_user_id(),
            year=parse_int(data.get("year"), "year"),
            month=parse_int(data.get("month"), "month"),
            reason=data.get("reason") or "",
        )
        return ok(message=f"Payroll {period.month:02d}/{period.year} unlocked", period=_period_dict(period))
