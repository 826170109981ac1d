"""Flask glue shared by every controller.

Authentication is owned by the user-management system; it leaves ``user_id``
and ``role`` in the signed session and the engine only reads them.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from functools import wraps
from typing import Any, Optional

from flask import Flask, jsonify, request, session
from werkzeug.exceptions import HTTPException

from ..attendance.model import Location
from ..core.enums import Role
from ..core.exceptions import (
    AuthorizationError,
    BusinessRuleViolation,
    ConcurrentModificationError,
    ConfigurationError,
    DomainError,
    NotFoundError,
    PayrollLockedError,
    PendingReviewBlockError,
    RateLimitExceeded,
    ValidationError,
)
from .datetime_utils import ensure_aware, parse_iso_date

logger = logging.getLogger(__name__)

# Most specific first.
_STATUS_BY_ERROR = (
    (PayrollLockedError, 423),
    (RateLimitExceeded, 429),
    (PendingReviewBlockError, 409),
    (ConcurrentModificationError, 409),
    (ValidationError, 400),
    (BusinessRuleViolation, 400),
    (AuthorizationError, 403),
    (NotFoundError, 404),
    (ConfigurationError, 500),
)


def status_for(error: DomainError) -> int:
    for cls, status in _STATUS_BY_ERROR:
        if isinstance(error, cls):
            return status
    return 400


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(DomainError)
    def handle_domain_error(error: DomainError):
        status = status_for(error)
        if status >= 500:
            logger.error("%s: %s", error.code, error.message)
        return jsonify({"success": False, **error.to_dict()}), status

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"success": False, "message": error.description, "code": error.name}), error.code
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "message": "Internal server error", "code": "INTERNAL_ERROR"}), 500


def ok(status: int = 200, **data: Any):
    return jsonify({"success": True, **data}), status


def current_user_id() -> int:
    return int(session["user_id"])


def current_role() -> Role:
    return Role(session.get("role", Role.EMPLOYEE.value))


def login_required(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if "user_id" not in session:
            return jsonify({"success": False, "message": "Login required", "code": "UNAUTHENTICATED"}), 401
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    allowed = {r.value for r in roles}

    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            if "user_id" not in session:
                return jsonify({"success": False, "message": "Login required", "code": "UNAUTHENTICATED"}), 401
            if session.get("role") not in allowed:
                raise AuthorizationError("You do not have permission for this action")
            return view(*args, **kwargs)

        return wrapper

    return decorator


admin_required = roles_required(Role.ADMIN, Role.MASTER_ADMIN)


def json_body() -> dict:
    return request.get_json(silent=True) or {}


def parse_datetime(value: Optional[str], field: str) -> Optional[datetime]:
    if value in (None, ""):
        return None
    try:
        return ensure_aware(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except ValueError as exc:
        raise ValidationError(f"{field} must be an ISO-8601 datetime", missing_fields=[field]) from exc


def parse_date(value: Optional[str], field: str, default: Optional[date] = None) -> Optional[date]:
    if value in (None, ""):
        return default
    try:
        return parse_iso_date(str(value))
    except ValueError as exc:
        raise ValidationError(f"{field} must be YYYY-MM-DD", missing_fields=[field]) from exc


def parse_location(data: Any) -> Optional[Location]:
    if not data:
        return None
    try:
        return Location.from_dict(data)
    except (KeyError, TypeError, ValueError) as exc:
        raise ValidationError("Location needs latitude and longitude", missing_fields=["location"]) from exc


def parse_int(value: Any, field: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{field} must be an integer", missing_fields=[field]) from exc
