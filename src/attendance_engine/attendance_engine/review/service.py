from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..collaborators.notifier import SafeNotifier
from ..common.datetime_utils import Clock, ensure_aware, hours_between, now_utc
from ..common.locks import KeyedLock
from ..core.enums import AttendanceStatus, NotificationKind, ReviewAction, ReviewStatus, Role
from ..core.exceptions import AuthorizationError, BusinessRuleViolation, NotFoundError, ValidationError
from .lock_service import PayrollLockService

logger = logging.getLogger(__name__)


class AdminReviewService:
    """Human adjudication of auto-corrected attendance records.

    Only this service moves a record out of ``pending``; every action is a
    single compare-and-set write of the record.
    """

    def __init__(
        self,
        attendance: AttendanceRepository,
        locks: PayrollLockService,
        notifier: SafeNotifier,
        *,
        record_lock: KeyedLock | None = None,
        clock: Clock = now_utc,
    ):
        self._attendance = attendance
        self._locks = locks
        self._notifier = notifier
        self._record_lock = record_lock or KeyedLock()
        self._clock = clock

    def list_pending(self) -> Sequence[AttendanceRecord]:
        return self._attendance.list_pending_review()

    def review(
        self,
        attendance_id: int,
        *,
        action: ReviewAction,
        reviewer_id: int,
        current_role: Role,
        check_in_time: Optional[datetime] = None,
        check_out_time: Optional[datetime] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        if not current_role.is_admin:
            raise AuthorizationError("Only admins can review attendance")
        now = ensure_aware(now or self._clock())

        record = self._attendance.get(int(attendance_id))
        if record is None:
            raise NotFoundError("Attendance record not found")
        self._locks.assert_not_locked(record.work_date)

        with self._record_lock.hold((record.user_id, record.work_date)):
            record = self._attendance.get(int(attendance_id)) or record
            if not record.is_pending_review:
                raise BusinessRuleViolation("Attendance record is not pending review", code="NOT_PENDING")

            updated = replace(
                self._apply(record, action, check_in_time, check_out_time),
                admin_review_status=action.outcome,
                admin_reviewed_by=int(reviewer_id),
                admin_reviewed_at=now,
                admin_review_notes=notes,
            )
            saved = self._attendance.update(updated)

        logger.info(
            "Attendance %s reviewed by %s: %s (status %s, %.2fh)",
            saved.attendance_id, reviewer_id, action.value, saved.status.value, saved.working_hours,
        )
        self._notifier.notify(
            saved.user_id,
            NotificationKind.ATTENDANCE_REVIEWED,
            {
                "attendance_id": saved.attendance_id,
                "date": saved.work_date.isoformat(),
                "outcome": saved.admin_review_status.value,
                "status": saved.status.value,
                "working_hours": saved.working_hours,
                "notes": notes,
            },
        )
        return saved

    @staticmethod
    def _apply(
        record: AttendanceRecord,
        action: ReviewAction,
        check_in_time: Optional[datetime],
        check_out_time: Optional[datetime],
    ) -> AttendanceRecord:
        if action == ReviewAction.ACCEPT:
            return replace(record, status=AttendanceStatus.PRESENT)

        if action == ReviewAction.ADJUST:
            if check_out_time is None:
                raise ValidationError("New check-out time is required", missing_fields=["check_out_time"])
            new_in = ensure_aware(check_in_time) if check_in_time else record.check_in_time
            new_out = ensure_aware(check_out_time)
            if new_in is None or new_out <= new_in:
                raise ValidationError("Check-out time must be after check-in time", code="INVALID_CHECKOUT_TIME")
            return replace(
                record,
                status=AttendanceStatus.PRESENT,
                check_in_time=new_in,
                check_out_time=new_out,
                original_check_out_time=record.check_out_time,
                working_hours=hours_between(new_in, new_out),
            )

        if action == ReviewAction.REJECT:
            return replace(
                record,
                status=AttendanceStatus.ABSENT,
                check_out_time=None,
                working_hours=0.0,
                overtime_hours=0.0,
            )

        raise ValidationError(f"Unknown review action: {action!r}")
