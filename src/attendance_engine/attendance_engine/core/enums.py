from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """Roles used for authorisation checks."""

    EMPLOYEE = "employee"
    ADMIN = "admin"
    MASTER_ADMIN = "master_admin"

    @property
    def is_admin(self) -> bool:
        return self in (Role.ADMIN, Role.MASTER_ADMIN)


class AttendanceStatus(str, Enum):
    """Day classification stored on an attendance record."""

    PRESENT = "present"
    LATE = "late"
    HALF_DAY = "half_day"
    ABSENT = "absent"
    HOLIDAY = "holiday"
    WEEKLY_OFF = "weekly_off"
    # Historical rows written before status tagging was unified.
    OVERTIME = "overtime"
    EARLY_CHECKOUT = "early_checkout"


class AttendanceType(str, Enum):
    """Only one way to record attendance remains; legacy types are read-only."""

    ON_SITE = "office"


class ReviewStatus(str, Enum):
    NONE = "none"
    PENDING = "pending"
    ACCEPTED = "accepted"
    ADJUSTED = "adjusted"
    REJECTED = "rejected"


class ReviewAction(str, Enum):
    """Admin decision on an auto-corrected attendance record."""

    ACCEPT = "accept"
    ADJUST = "adjust"
    REJECT = "reject"

    @property
    def outcome(self) -> ReviewStatus:
        return {
            ReviewAction.ACCEPT: ReviewStatus.ACCEPTED,
            ReviewAction.ADJUST: ReviewStatus.ADJUSTED,
            ReviewAction.REJECT: ReviewStatus.REJECTED,
        }[self]


class OTType(str, Enum):
    EARLY_ARRIVAL = "early_arrival"
    LATE_DEPARTURE = "late_departure"
    WEEKEND = "weekend"
    HOLIDAY = "holiday"


class OTSessionStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    PENDING_REVIEW = "PENDING_REVIEW"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"
    LOCKED = "locked"

    @property
    def is_payable(self) -> bool:
        return self in (OTSessionStatus.COMPLETED, OTSessionStatus.APPROVED, OTSessionStatus.LOCKED)


class OTReviewAction(str, Enum):
    APPROVED = "APPROVED"
    ADJUSTED = "ADJUSTED"
    REJECTED = "REJECTED"


class PayrollPeriodStatus(str, Enum):
    OPEN = "open"
    LOCKED = "locked"


class NotificationKind(str, Enum):
    AUTO_CHECKOUT = "auto_checkout"
    ADMIN_REVIEW_PENDING = "admin_review_pending"
    ATTENDANCE_REVIEWED = "attendance_reviewed"
    OT_AUTO_CLOSED = "ot_auto_closed"
    OT_REVIEW_REQUIRED = "ot_review_required"
    OT_REVIEWED = "ot_reviewed"
