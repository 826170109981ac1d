from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Optional, Sequence

from ..collaborators.model import User
from ..collaborators.repository import HolidayService, UserDirectory
from ..common.datetime_utils import Clock, ensure_aware, hours_between, now_utc, shift_instant_on, utc_date_key
from ..common.locks import KeyedLock
from ..common.rate_limiter import RateLimiter
from ..common.validators import has_min_length, require_non_empty
from ..core.constants import EARLY_CHECKOUT_MIN_REASON, EARLY_MORNING_CUTOFF_HOUR
from ..core.enums import AttendanceStatus, AttendanceType
from ..core.exceptions import BusinessRuleViolation, NotFoundError, ValidationError
from ..review.lock_service import PayrollLockService
from ..timing.store import DepartmentTimingStore
from .factory import AttendanceStrategyFactory
from .model import AttendanceRecord, Location
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


def require_active_user(users: UserDirectory, user_id: int) -> User:
    user = users.get_user(int(user_id))
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")
    if not user.is_active:
        raise BusinessRuleViolation("User account is inactive", code="USER_INACTIVE")
    return user


def _require_unreviewed(record: AttendanceRecord) -> None:
    if record.is_review_closed:
        raise BusinessRuleViolation(
            f"Attendance for {record.work_date} was already reviewed ({record.admin_review_status.value})",
            code="REVIEW_CLOSED",
        )


class AttendanceService:
    """Check-in / check-out pipeline for one attendance record per user and day."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserDirectory,
        timings: DepartmentTimingStore,
        holidays: HolidayService,
        locks: PayrollLockService,
        *,
        rate_limiter: RateLimiter | None = None,
        record_lock: KeyedLock | None = None,
        strategy_factory: AttendanceStrategyFactory | None = None,
        business_tz: tzinfo = timezone.utc,
        early_morning_cutoff_hour: int = EARLY_MORNING_CUTOFF_HOUR,
        early_checkout_min_reason: int = EARLY_CHECKOUT_MIN_REASON,
        clock: Clock = now_utc,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._holidays = holidays
        self._locks = locks
        self._rate_limiter = rate_limiter or RateLimiter()
        self._record_lock = record_lock or KeyedLock()
        self._factory = strategy_factory or AttendanceStrategyFactory()
        self._tz = business_tz
        self._cutoff_hour = int(early_morning_cutoff_hour)
        self._min_reason = int(early_checkout_min_reason)
        self._clock = clock

    def check_in(
        self,
        user_id: int,
        *,
        location: Optional[Location] = None,
        photo_ref: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = ensure_aware(now or self._clock())
        self._rate_limiter.hit(f"checkin:{user_id}")

        user = require_active_user(self._users, user_id)
        timing = self._timings.get(user.department or "")
        today = utc_date_key(now)

        holiday = self._holidays.is_holiday(today, user.department)
        if holiday.is_holiday:
            name = holiday.holiday.name if holiday.holiday else "a company holiday"
            raise BusinessRuleViolation(f"Cannot check in on a holiday ({name})", code="HOLIDAY")

        photo_ref = require_non_empty(photo_ref, "photo")
        self._locks.assert_not_locked(today)

        local_now = now.astimezone(self._tz)
        shift_start = shift_instant_on(timing.shift_start, local_now)
        strategy = self._factory.for_checkin(now=local_now, shift_start=shift_start, timing=timing)
        decision = strategy.decide_checkin(now=local_now, shift_start=shift_start, timing=timing)

        with self._record_lock.hold((user.user_id, today)):
            existing = self._attendance.get_for_user_and_date(user.user_id, today)
            if existing is not None and existing.check_in_time is not None:
                raise BusinessRuleViolation("Already checked in today", code="DUPLICATE_CHECK_IN")

            if existing is not None:
                # Record opened earlier by an OT start with no check-in yet.
                record = replace(
                    existing,
                    check_in_time=now,
                    status=decision.status,
                    is_late=decision.is_late,
                    late_minutes=decision.late_minutes,
                    check_in_photo=photo_ref,
                    check_in_location=location,
                    attendance_type=AttendanceType.ON_SITE,
                )
                saved = self._attendance.update(record)
            else:
                saved = self._attendance.create(
                    AttendanceRecord(
                        attendance_id=None,
                        user_id=user.user_id,
                        work_date=today,
                        status=decision.status,
                        check_in_time=now,
                        attendance_type=AttendanceType.ON_SITE,
                        is_late=decision.is_late,
                        late_minutes=decision.late_minutes,
                        check_in_photo=photo_ref,
                        check_in_location=location,
                    )
                )

        logger.info("User %s checked in for %s (%s)", user.user_id, today, decision.status.value)
        return saved

    def check_out(
        self,
        user_id: int,
        *,
        location: Optional[Location] = None,
        photo_ref: Optional[str] = None,
        reason: Optional[str] = None,
        now: datetime | None = None,
    ) -> AttendanceRecord:
        now = ensure_aware(now or self._clock())
        self._rate_limiter.hit(f"checkout:{user_id}")

        user = require_active_user(self._users, user_id)
        timing = self._timings.get(user.department or "")

        record = self._find_open_record(user.user_id, now)
        self._locks.assert_not_locked(record.work_date)

        with self._record_lock.hold((user.user_id, record.work_date)):
            record = self._attendance.get(record.attendance_id) or record
            _require_unreviewed(record)
            if record.check_out_time is not None:
                raise BusinessRuleViolation("Already checked out", code="ALREADY_CHECKED_OUT")
            if now <= record.check_in_time:
                raise ValidationError("Check-out time must be after check-in time", code="INVALID_CHECKOUT_TIME")

            working_hours = hours_between(record.check_in_time, now)
            overtime_hours = round(max(0.0, working_hours - timing.working_hours), 2)
            needs_ot_details = overtime_hours > 0 and overtime_hours * 60 >= timing.overtime_threshold_minutes

            if needs_ot_details:
                missing = []
                if not (reason and reason.strip()):
                    missing.append("reason")
                if not (photo_ref and photo_ref.strip()):
                    missing.append("photo")
                if missing:
                    raise ValidationError(
                        f"Overtime of {overtime_hours}h requires: {', '.join(missing)}",
                        code="OT_DETAILS_REQUIRED",
                        missing_fields=missing,
                    )

            strategy = self._factory.for_checkout(
                working_hours=working_hours, timing=timing, current_status=record.status
            )
            decision = strategy.decide_checkout(working_hours=working_hours, timing=timing, current=record.status)

            if (
                not needs_ot_details
                and decision.status != AttendanceStatus.HALF_DAY
                and working_hours < timing.working_hours
                and not has_min_length(reason, self._min_reason)
            ):
                logger.warning(
                    "Early checkout by user %s after %.2fh without a reason of %d+ characters",
                    user.user_id, working_hours, self._min_reason,
                )

            saved = self._attendance.update(
                replace(
                    record,
                    check_out_time=now,
                    working_hours=working_hours,
                    overtime_hours=overtime_hours,
                    status=decision.status,
                    check_out_photo=photo_ref or record.check_out_photo,
                    check_out_location=location,
                    checkout_reason=(reason or "").strip() or None,
                )
            )

        logger.info(
            "User %s checked out for %s: %.2fh worked, %.2fh overtime (%s)",
            user.user_id, saved.work_date, working_hours, overtime_hours, decision.status.value,
        )
        return saved

    def _find_open_record(self, user_id: int, now: datetime) -> AttendanceRecord:
        today = utc_date_key(now)
        record = self._attendance.get_for_user_and_date(user_id, today)
        if (record is None or record.check_in_time is None) and now.astimezone(self._tz).hour < self._cutoff_hour:
            previous = self._attendance.get_for_user_and_date(user_id, today - timedelta(days=1))
            if previous is not None and previous.is_open:
                record = previous
        if record is None or record.check_in_time is None:
            raise NotFoundError("No check-in found for today", code="NO_OPEN_RECORD")
        _require_unreviewed(record)
        return record

    def get_today_record(self, user_id: int, *, now: datetime | None = None) -> Optional[AttendanceRecord]:
        today = utc_date_key(ensure_aware(now or self._clock()))
        return self._attendance.get_for_user_and_date(int(user_id), today)

    def get_history(self, user_id: int, *, limit: int = 15) -> Sequence[AttendanceRecord]:
        """The employee's own recent days, including ones still awaiting review."""
        return self._attendance.get_recent_for_user(int(user_id), int(limit))
