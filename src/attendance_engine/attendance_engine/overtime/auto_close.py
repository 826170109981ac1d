"""Force-close overtime sessions left running.

A session older than the auto-close threshold is ended at 23:59:59 of its
start date with zero hours and sent to admin review.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..collaborators.notifier import SafeNotifier
from ..collaborators.repository import LeaveService
from ..common.datetime_utils import Clock, end_of_day, ensure_aware, now_utc, utc_date_key
from ..common.locks import KeyedLock
from ..common.sweep import SweepSummary
from ..core.constants import OT_AUTO_CLOSE_HOURS, OT_LOOKBACK_DAYS, SWEEP_MAX_RECORDS
from ..core.enums import NotificationKind, OTSessionStatus
from ..review.lock_service import PayrollLockService

logger = logging.getLogger(__name__)


class OTAutoCloseService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        leaves: LeaveService,
        locks: PayrollLockService,
        notifier: SafeNotifier,
        *,
        record_lock: KeyedLock | None = None,
        business_tz: tzinfo = timezone.utc,
        max_open_hours: int = OT_AUTO_CLOSE_HOURS,
        lookback_days: int = OT_LOOKBACK_DAYS,
        max_records: int = SWEEP_MAX_RECORDS,
        clock: Clock = now_utc,
    ):
        self._attendance = attendance
        self._leaves = leaves
        self._locks = locks
        self._notifier = notifier
        self._record_lock = record_lock or KeyedLock()
        self._tz = business_tz
        self._max_open = timedelta(hours=int(max_open_hours))
        self._lookback_days = int(lookback_days)
        self._max_records = int(max_records)
        self._clock = clock

    def run(self, *, now: datetime | None = None) -> SweepSummary:
        now = ensure_aware(now or self._clock())
        today = utc_date_key(now)
        summary = SweepSummary(name="ot_auto_close")

        records = self._attendance.list_with_session_status(
            OTSessionStatus.IN_PROGRESS.value,
            start_date=today - timedelta(days=self._lookback_days),
            end_date=today,
            limit=self._max_records,
        )
        for record in records:
            summary.scanned += 1
            try:
                closed = self._process(record, now)
                if closed:
                    summary.processed += closed
                else:
                    summary.skipped += 1
            except Exception as exc:
                logger.exception("OT auto-close failed for attendance %s", record.attendance_id)
                summary.record_failure(record.attendance_id, exc)

        logger.info(
            "OT auto-close finished: %d scanned, %d closed, %d skipped, %d failed",
            summary.scanned, summary.processed, summary.skipped, summary.failed,
        )
        return summary

    def _process(self, record: AttendanceRecord, now: datetime) -> int:
        if self._locks.is_locked(record.work_date):
            return 0
        if self._leaves.has_approved_leave(record.user_id, record.work_date):
            return 0

        closed = []
        with self._record_lock.hold_all(("ot", record.user_id), (record.user_id, record.work_date)):
            current = self._attendance.get(record.attendance_id)
            if current is None:
                return 0
            updated = current
            for session in current.ot_sessions:
                if not session.is_open or now - session.start_time <= self._max_open:
                    continue
                end = end_of_day(session.start_time.astimezone(self._tz)).astimezone(timezone.utc)
                forced = replace(
                    session,
                    end_time=end,
                    ot_hours=0.0,
                    status=OTSessionStatus.PENDING_REVIEW,
                    auto_closed_at=now,
                    auto_closed_note=(
                        f"Auto-closed: session open for more than {int(self._max_open.total_seconds() // 3600)} hours"
                    ),
                )
                updated = updated.with_session(forced)
                closed.append(forced)
            if closed:
                self._attendance.update(updated)

        for session in closed:
            logger.info("Auto-closed OT session %s of user %s", session.session_id, record.user_id)
            payload = {
                "session_id": session.session_id,
                "user_id": record.user_id,
                "date": record.work_date.isoformat(),
                "start_time": session.start_time.isoformat(),
            }
            self._notifier.notify(record.user_id, NotificationKind.OT_AUTO_CLOSED, payload)
            self._notifier.notify_admins(NotificationKind.OT_REVIEW_REQUIRED, payload)
        return len(closed)
