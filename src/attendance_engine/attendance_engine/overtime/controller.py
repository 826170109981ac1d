from __future__ import annotations

from flask import Flask, request

from ..common.datetime_utils import now_utc, utc_date_key
from ..common.web import (
    admin_required,
    current_role,
    current_user_id,
    json_body,
    login_required,
    ok,
    parse_date,
)
from ..container import Container
from ..core.enums import OTReviewAction
from ..core.exceptions import ValidationError


def _parse_action(value) -> OTReviewAction:
    try:
        return OTReviewAction(str(value or "").upper())
    except ValueError as exc:
        raise ValidationError("Action must be APPROVED, ADJUSTED or REJECTED", missing_fields=["action"]) from exc


def register(app: Flask, container: Container) -> None:
    @app.route("/api/ot/start", methods=["POST"], endpoint="ot_start")
    @login_required
    def start():
        data = json_body()
        session = container.ot_service.start(
            current_user_id(), reason=data.get("reason"), photo_ref=data.get("photo_ref")
        )
        return ok(201, message=f"Overtime session #{session.session_number} started", session=session.to_dict())

    @app.route("/api/ot/end", methods=["POST"], endpoint="ot_end")
    @login_required
    def end():
        data = json_body()
        result = container.ot_service.end(
            current_user_id(), session_id=data.get("session_id"), photo_ref=data.get("photo_ref")
        )
        return ok(
            message=result.message,
            session=result.session.to_dict(),
            total_ot_hours=result.total_ot_hours,
            exceeds_daily_limit=result.exceeds_daily_limit,
        )

    @app.route("/api/ot/status", methods=["GET"], endpoint="ot_status")
    @login_required
    def status():
        st = container.ot_service.get_status(current_user_id())
        return ok(
            state=st.state,
            can_start=st.can_start,
            can_end=st.can_end,
            active_session=st.active_session.to_dict() if st.active_session else None,
            current_ot_hours=st.current_ot_hours,
        )

    @app.route("/api/ot/sessions", methods=["GET"], endpoint="ot_sessions")
    @login_required
    def sessions():
        day = parse_date(request.args.get("date"), "date", default=utc_date_key(now_utc()))
        rows = container.ot_service.sessions_for_date(current_user_id(), day)
        return ok(date=day.isoformat(), sessions=[s.to_dict() for s in rows])

    @app.route("/api/admin/ot/pending", methods=["GET"], endpoint="admin_ot_pending")
    @admin_required
    def pending():
        items = container.ot_service.list_pending_review(
            start_date=parse_date(request.args.get("start"), "start"),
            end_date=parse_date(request.args.get("end"), "end"),
        )
        return ok(
            sessions=[
                {"attendance_id": r.attendance_id, "user_id": r.user_id, "date": r.work_date.isoformat(), **s.to_dict()}
                for r, s in items
            ]
        )

    @app.route("/api/admin/ot/<session_id>/review", methods=["POST"], endpoint="admin_ot_review")
    @admin_required
    def review(session_id: str):
        data = json_body()
        adjusted = data.get("adjusted_hours")
        try:
            adjusted_hours = float(adjusted) if adjusted not in (None, "") else None
        except (TypeError, ValueError) as exc:
            raise ValidationError("Adjusted hours must be a number", missing_fields=["adjusted_hours"]) from exc

        session = container.ot_service.review(
            session_id,
            action=_parse_action(data.get("action")),
            reviewer_id=current_user_id(),
            current_role=current_role(),
            adjusted_hours=adjusted_hours,
            notes=data.get("notes"),
        )
        return ok(message=f"Overtime {session.review_action.value.lower()}", session=session.to_dict())
