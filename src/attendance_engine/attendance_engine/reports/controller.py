from __future__ import annotations

from datetime import timedelta

from flask import Flask, request

from ..common.datetime_utils import now_utc, utc_date_key
from ..common.web import admin_required, current_user_id, login_required, ok, parse_date, parse_int
from ..container import Container
from ..core.constants import DEFAULT_REPORT_DAYS
from ..core.exceptions import ValidationError


def register(app: Flask, container: Container) -> None:
    def _range():
        today = utc_date_key(now_utc())
        start = parse_date(request.args.get("start"), "start", default=today - timedelta(days=DEFAULT_REPORT_DAYS))
        end = parse_date(request.args.get("end"), "end", default=today)
        if start > end:
            raise ValidationError("start must be on or before end")
        return start, end

    def _payload(start, end, data):
        return ok(start=start.isoformat(), end=end.isoformat(), rows=data.rows, summary=data.summary)

    @app.route("/api/me/report", methods=["GET"], endpoint="me_report")
    @login_required
    def me_report():
        start, end = _range()
        data = container.report_service.build_attendance_report(start=start, end=end, user_id=current_user_id())
        return _payload(start, end, data)

    @app.route("/api/admin/report", methods=["GET"], endpoint="admin_report")
    @admin_required
    def admin_report():
        start, end = _range()
        user_id = request.args.get("user_id")
        data = container.report_service.build_attendance_report(
            start=start,
            end=end,
            user_id=parse_int(user_id, "user_id") if user_id else None,
            department=request.args.get("department") or None,
        )
        return _payload(start, end, data)
