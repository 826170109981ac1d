from __future__ import annotations

from flask import Flask

from ..common.web import admin_required, current_role, current_user_id, json_body, ok, parse_int
from ..container import Container


def register(app: Flask, container: Container) -> None:
    @app.route("/api/admin/payroll/generate", methods=["POST"], endpoint="payroll_generate")
    @admin_required
    def generate():
        data = json_body()
        user_ids = [parse_int(u, "user_ids") for u in data.get("user_ids") or []]
        run = container.payroll_aggregator.generate(
            parse_int(data.get("year"), "year"),
            parse_int(data.get("month"), "month"),
            current_role=current_role(),
            actor_id=current_user_id(),
            force=bool(data.get("force", False)),
            user_ids=user_ids or None,
        )
        return ok(payroll=run.to_dict())
