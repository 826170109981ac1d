"""Forgotten-checkout sweep.

Closes records still open past the department's shift end plus grace, at the
expected checkout instant, and parks them as pending review. Status is left
as it was at check-in; only a human review decides the day.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo

from ..collaborators.notifier import SafeNotifier
from ..collaborators.repository import HolidayService, LeaveService, UserDirectory
from ..common.datetime_utils import (
    Clock,
    ensure_aware,
    hours_between,
    is_overdue,
    now_utc,
    resolve_shift_instant,
    utc_date_key,
    weekday_index,
)
from ..common.locks import KeyedLock
from ..common.sweep import SweepSummary
from ..core.constants import SWEEP_MAX_RECORDS
from ..core.enums import NotificationKind, ReviewStatus
from ..review.lock_service import PayrollLockService
from ..timing.store import DepartmentTimingStore
from .model import AttendanceRecord
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AutoCheckoutService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserDirectory,
        timings: DepartmentTimingStore,
        holidays: HolidayService,
        leaves: LeaveService,
        locks: PayrollLockService,
        notifier: SafeNotifier,
        *,
        record_lock: KeyedLock | None = None,
        business_tz: tzinfo = timezone.utc,
        max_records: int = SWEEP_MAX_RECORDS,
        clock: Clock = now_utc,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._holidays = holidays
        self._leaves = leaves
        self._locks = locks
        self._notifier = notifier
        self._record_lock = record_lock or KeyedLock()
        self._tz = business_tz
        self._max_records = int(max_records)
        self._clock = clock

    def run(self, *, now: datetime | None = None) -> SweepSummary:
        now = ensure_aware(now or self._clock())
        today = utc_date_key(now)
        summary = SweepSummary(name="auto_checkout")

        for work_date in (today - timedelta(days=1), today):
            remaining = self._max_records - summary.scanned
            if remaining <= 0:
                logger.warning("Auto-checkout stopped at the %d record cap", self._max_records)
                break
            for record in self._attendance.list_open(work_date, limit=remaining):
                summary.scanned += 1
                try:
                    if self._process(record, now):
                        summary.processed += 1
                    else:
                        summary.skipped += 1
                except Exception as exc:
                    logger.exception("Auto-checkout failed for attendance %s", record.attendance_id)
                    summary.record_failure(record.attendance_id, exc)

        logger.info(
            "Auto-checkout finished: %d scanned, %d corrected, %d skipped, %d failed",
            summary.scanned, summary.processed, summary.skipped, summary.failed,
        )
        return summary

    def _process(self, record: AttendanceRecord, now: datetime) -> bool:
        user = self._users.get_user(record.user_id)
        if user is None or not user.department:
            logger.info("Skip attendance %s: user has no department", record.attendance_id)
            return False
        if self._leaves.has_approved_leave(record.user_id, record.work_date):
            return False
        if self._holidays.is_holiday(record.work_date, user.department).is_holiday:
            return False

        timing = self._timings.get(user.department)
        if weekday_index(record.work_date) in timing.weekly_off_days:
            return False
        if record.active_session() is not None:
            return False
        if self._locks.is_locked(record.work_date):
            return False

        check_in = record.check_in_time.astimezone(self._tz)
        grace = timing.auto_checkout_grace_minutes
        if not is_overdue(check_in, timing.shift_end, grace, now=now):
            return False
        expected = resolve_shift_instant(timing.shift_end, check_in).astimezone(timezone.utc)

        with self._record_lock.hold((record.user_id, record.work_date)):
            current = self._attendance.get(record.attendance_id)
            if current is None or not current.is_open:
                return False
            reason = f"Forgotten checkout (system auto-corrected after {grace} minutes past {timing.check_out_time})"
            saved = self._attendance.update(
                replace(
                    current,
                    check_out_time=expected,
                    working_hours=hours_between(current.check_in_time, expected),
                    overtime_hours=0.0,
                    auto_corrected=True,
                    auto_corrected_at=now,
                    auto_correction_reason=reason,
                    admin_review_status=ReviewStatus.PENDING,
                )
            )

        logger.info("Auto-checked-out attendance %s for user %s at %s", saved.attendance_id, saved.user_id, expected)
        payload = {
            "attendance_id": saved.attendance_id,
            "user_id": saved.user_id,
            "date": saved.work_date.isoformat(),
            "check_out_time": expected.isoformat(),
            "reason": reason,
        }
        self._notifier.notify(saved.user_id, NotificationKind.AUTO_CHECKOUT, payload)
        self._notifier.notify_admins(NotificationKind.ADMIN_REVIEW_PENDING, {**payload, "employee": user.display_name})
        return True
