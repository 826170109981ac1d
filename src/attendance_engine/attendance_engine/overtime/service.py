from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from datetime import date, datetime, timezone, tzinfo
from typing import List, Optional, Sequence, Tuple

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..attendance.service import require_active_user
from ..collaborators.notifier import SafeNotifier
from ..collaborators.repository import CompanySettingsService, HolidayService, LeaveService, UserDirectory
from ..common.datetime_utils import (
    Clock,
    ensure_aware,
    hours_between,
    now_utc,
    shift_instant_on,
    utc_date_key,
    weekday_index,
)
from ..common.locks import KeyedLock
from ..common.rate_limiter import RateLimiter
from ..core.enums import AttendanceStatus, NotificationKind, OTReviewAction, OTSessionStatus, OTType, Role
from ..core.exceptions import AuthorizationError, BusinessRuleViolation, NotFoundError, ValidationError
from ..review.lock_service import PayrollLockService
from ..timing.model import DepartmentTiming
from ..timing.store import DepartmentTimingStore
from .model import OTEndResult, OTSession, OTStatus

logger = logging.getLogger(__name__)

REVIEWABLE_STATUSES = (OTSessionStatus.PENDING_REVIEW, OTSessionStatus.COMPLETED)


def new_session_id() -> str:
    return f"ot_{uuid.uuid4().hex}"


def classify_ot_type(
    *, is_holiday: bool, work_date: date, local_now: datetime, timing: DepartmentTiming
) -> OTType:
    """holiday > weekend > early arrival > late departure."""
    if is_holiday:
        return OTType.HOLIDAY
    if weekday_index(work_date) in timing.weekly_off_days:
        return OTType.WEEKEND
    if local_now < shift_instant_on(timing.shift_start, local_now):
        return OTType.EARLY_ARRIVAL
    return OTType.LATE_DEPARTURE


class OTSessionService:
    """Multi-session overtime per day, embedded in the attendance record."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserDirectory,
        timings: DepartmentTimingStore,
        holidays: HolidayService,
        leaves: LeaveService,
        settings: CompanySettingsService,
        locks: PayrollLockService,
        notifier: SafeNotifier,
        *,
        rate_limiter: RateLimiter | None = None,
        record_lock: KeyedLock | None = None,
        business_tz: tzinfo = timezone.utc,
        clock: Clock = now_utc,
        id_factory=new_session_id,
    ):
        self._attendance = attendance
        self._users = users
        self._timings = timings
        self._holidays = holidays
        self._leaves = leaves
        self._settings = settings
        self._locks = locks
        self._notifier = notifier
        self._rate_limiter = rate_limiter or RateLimiter()
        self._record_lock = record_lock or KeyedLock()
        self._tz = business_tz
        self._clock = clock
        self._id_factory = id_factory

    def start(
        self,
        user_id: int,
        *,
        reason: Optional[str] = None,
        photo_ref: Optional[str] = None,
        now: datetime | None = None,
    ) -> OTSession:
        now = ensure_aware(now or self._clock())
        self._rate_limiter.hit(f"ot_start:{user_id}")

        user = require_active_user(self._users, user_id)
        timing = self._timings.get(user.department or "")
        today = utc_date_key(now)

        if self._leaves.has_approved_leave(user.user_id, today):
            raise BusinessRuleViolation("Cannot start overtime on an approved leave day", code="ON_LEAVE")
        self._locks.assert_not_locked(today)

        holiday = self._holidays.is_holiday(today, user.department)
        if holiday.is_holiday and not (holiday.holiday and holiday.holiday.allow_ot):
            raise BusinessRuleViolation("Overtime is not allowed on this holiday", code="OT_NOT_ALLOWED")

        ot_type = classify_ot_type(
            is_holiday=holiday.is_holiday, work_date=today, local_now=now.astimezone(self._tz), timing=timing
        )

        with self._record_lock.hold_all(("ot", user.user_id), (user.user_id, today)):
            if self._attendance.find_with_active_session(user.user_id) is not None:
                raise BusinessRuleViolation("An overtime session is already in progress", code="OT_ALREADY_ACTIVE")

            record = self._attendance.get_for_user_and_date(user.user_id, today)
            session = OTSession(
                session_id=self._id_factory(),
                session_number=len(record.ot_sessions) + 1 if record else 1,
                ot_type=ot_type,
                start_time=now,
                reason=(reason or "").strip() or None,
                start_photo=photo_ref,
            )
            if record is None:
                # Weekend-only or early-arrival work: the day's record starts here.
                self._attendance.create(
                    AttendanceRecord(
                        attendance_id=None,
                        user_id=user.user_id,
                        work_date=today,
                        status=AttendanceStatus.PRESENT,
                    ).with_session(session)
                )
            else:
                self._attendance.update(record.with_session(session))

        logger.info("OT session %s (#%d, %s) started by user %s", session.session_id, session.session_number, ot_type.value, user.user_id)
        return session

    def end(
        self,
        user_id: int,
        *,
        session_id: Optional[str] = None,
        photo_ref: Optional[str] = None,
        now: datetime | None = None,
    ) -> OTEndResult:
        now = ensure_aware(now or self._clock())
        self._rate_limiter.hit(f"ot_end:{user_id}")

        with self._record_lock.hold(("ot", int(user_id))):
            located, _ = self._locate_open_session(int(user_id), session_id)
            with self._record_lock.hold((located.user_id, located.work_date)):
                # Fresh read under the day lock.
                record, session = self._locate_open_session(int(user_id), session_id)
                self._locks.assert_not_locked(record.work_date)
                if now <= session.start_time:
                    raise ValidationError("Overtime end must be after its start", code="INVALID_OT_END")

                hours = hours_between(session.start_time, now)
                others = sum(
                    s.ot_hours for s in record.ot_sessions
                    if s.session_id != session.session_id and s.status.is_payable
                )
                total = round(others + hours, 2)
                cap = float(self._settings.get_settings().max_ot_hours_per_day)
                exceeds = total > cap

                closed = replace(
                    session,
                    end_time=now,
                    end_photo=photo_ref,
                    status=OTSessionStatus.PENDING_REVIEW if exceeds else OTSessionStatus.COMPLETED,
                    ot_hours=0.0 if exceeds else hours,
                )
                self._attendance.update(record.with_session(closed))

        if exceeds:
            message = f"Daily overtime limit of {cap:g}h exceeded ({total:g}h). The session was sent for admin review."
            logger.warning("OT session %s exceeds daily cap for user %s: %.2fh > %.2fh", closed.session_id, user_id, total, cap)
            self._notifier.notify_admins(
                NotificationKind.OT_REVIEW_REQUIRED,
                {"session_id": closed.session_id, "user_id": int(user_id), "date": record.work_date.isoformat(), "hours": hours},
            )
        else:
            message = f"Overtime session ended: {hours:g}h recorded."
            logger.info("OT session %s ended by user %s: %.2fh", closed.session_id, user_id, hours)
        return OTEndResult(session=closed, total_ot_hours=total, exceeds_daily_limit=exceeds, message=message)

    def _locate_open_session(self, user_id: int, session_id: Optional[str]) -> Tuple[AttendanceRecord, OTSession]:
        if session_id:
            record = self._attendance.find_by_session(session_id)
            session = record.session(session_id) if record else None
        else:
            record = self._attendance.find_with_active_session(user_id)
            session = record.active_session() if record else None
        if record is None or session is None or record.user_id != user_id:
            raise NotFoundError("No active overtime session found", code="NO_ACTIVE_SESSION")
        if not session.is_open:
            raise BusinessRuleViolation("Overtime session is already closed", code="SESSION_NOT_ACTIVE")
        return record, session

    def get_status(self, user_id: int, *, now: datetime | None = None) -> OTStatus:
        now = ensure_aware(now or self._clock())
        active_record = self._attendance.find_with_active_session(int(user_id))
        if active_record is not None:
            active = active_record.active_session()
            return OTStatus(
                state="in_progress",
                can_start=False,
                can_end=True,
                active_session=active,
                current_ot_hours=hours_between(active.start_time, now),
            )

        today = utc_date_key(now)
        can_start = not self._locks.is_locked(today)
        record = self._attendance.get_for_user_and_date(int(user_id), today)
        if record is not None and record.ot_sessions:
            return OTStatus(state="completed", can_start=can_start, can_end=False)
        return OTStatus(state="not_started", can_start=can_start, can_end=False)

    def sessions_for_date(self, user_id: int, work_date: date) -> Sequence[OTSession]:
        record = self._attendance.get_for_user_and_date(int(user_id), work_date)
        return record.ot_sessions if record else ()

    def list_pending_review(
        self, *, start_date: Optional[date] = None, end_date: Optional[date] = None, limit: int = 500
    ) -> List[Tuple[AttendanceRecord, OTSession]]:
        records = self._attendance.list_with_session_status(
            OTSessionStatus.PENDING_REVIEW.value, start_date=start_date, end_date=end_date, limit=limit
        )
        return [
            (record, session)
            for record in records
            for session in record.ot_sessions
            if session.status == OTSessionStatus.PENDING_REVIEW
        ]

    def review(
        self,
        session_id: str,
        *,
        action: OTReviewAction,
        reviewer_id: int,
        current_role: Role,
        adjusted_hours: Optional[float] = None,
        notes: Optional[str] = None,
        now: datetime | None = None,
    ) -> OTSession:
        if not current_role.is_admin:
            raise AuthorizationError("Only admins can review overtime")
        now = ensure_aware(now or self._clock())

        record = self._attendance.find_by_session(session_id)
        session = record.session(session_id) if record else None
        if record is None or session is None:
            raise NotFoundError("Overtime session not found")

        with self._record_lock.hold_all(("ot", record.user_id), (record.user_id, record.work_date)):
            self._locks.assert_not_locked(record.work_date)
            record = self._attendance.get(record.attendance_id) or record
            session = record.session(session_id)
            if session.status not in REVIEWABLE_STATUSES:
                raise BusinessRuleViolation(
                    f"Overtime session in status {session.status.value} cannot be reviewed", code="NOT_REVIEWABLE"
                )

            reviewed = replace(
                self._apply_review(session, action, adjusted_hours),
                reviewed_by=int(reviewer_id),
                reviewed_at=now,
                review_action=action,
                review_notes=notes,
            )
            self._attendance.update(record.with_session(reviewed))

        logger.info(
            "OT session %s %s by %s: %.2fh -> %.2fh",
            session_id, action.value, reviewer_id, session.ot_hours, reviewed.ot_hours,
        )
        self._notifier.notify(
            record.user_id,
            NotificationKind.OT_REVIEWED,
            {"session_id": session_id, "action": action.value, "ot_hours": reviewed.ot_hours, "notes": notes},
        )
        return reviewed

    @staticmethod
    def _apply_review(session: OTSession, action: OTReviewAction, adjusted_hours: Optional[float]) -> OTSession:
        if action == OTReviewAction.APPROVED:
            hours = session.ot_hours
            # Capped sessions kept their real timestamps; auto-closed ones stay at zero.
            if session.status == OTSessionStatus.PENDING_REVIEW and session.auto_closed_at is None and session.end_time:
                hours = hours_between(session.start_time, session.end_time)
            return replace(session, status=OTSessionStatus.APPROVED, ot_hours=hours, original_ot_hours=session.ot_hours)

        if action == OTReviewAction.ADJUSTED:
            if adjusted_hours is None:
                raise ValidationError("Adjusted hours are required", missing_fields=["adjusted_hours"])
            adjusted = round(float(adjusted_hours), 2)
            if adjusted < 0:
                raise ValidationError("Adjusted hours cannot be negative")
            return replace(
                session,
                status=OTSessionStatus.APPROVED,
                ot_hours=adjusted,
                original_ot_hours=session.ot_hours,
                adjusted_ot_hours=adjusted,
            )

        if action == OTReviewAction.REJECTED:
            return replace(session, status=OTSessionStatus.REJECTED, ot_hours=0.0, original_ot_hours=session.ot_hours)

        raise ValidationError(f"Unknown review action: {action!r}")
