from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Callable, Optional, Sequence

from ..attendance.model import AttendanceRecord
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import month_bounds, now_utc
from ..common.validators import require_min_length
from ..core.constants import MIN_PAYROLL_YEAR, UNLOCK_REASON_MIN_LENGTH
from ..core.enums import OTSessionStatus, PayrollPeriodStatus, Role
from ..core.exceptions import (
    AuthorizationError,
    BusinessRuleViolation,
    ConcurrentModificationError,
    NotFoundError,
    PayrollLockedError,
    ValidationError,
)
from .model import PayrollPeriod
from .repository import PayrollPeriodRepository

logger = logging.getLogger(__name__)

_UPDATE_ATTEMPTS = 3


class PayrollLockService:
    """Per-(year, month) lock gating every attendance and OT mutation."""

    def __init__(
        self,
        periods: PayrollPeriodRepository,
        attendance: AttendanceRepository,
        *,
        unlock_reason_min_length: int = UNLOCK_REASON_MIN_LENGTH,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._periods = periods
        self._attendance = attendance
        self._unlock_reason_min_length = int(unlock_reason_min_length)
        self._clock = clock

    def get_period(self, year: int, month: int) -> Optional[PayrollPeriod]:
        return self._periods.get(int(year), int(month))

    def list_for_year(self, year: int) -> Sequence[PayrollPeriod]:
        return self._periods.list_for_year(int(year))

    def is_locked(self, day: date) -> bool:
        period = self._periods.get(day.year, day.month)
        return bool(period and period.is_locked)

    def assert_not_locked(self, day: date) -> None:
        if self.is_locked(day):
            raise PayrollLockedError(
                f"Payroll for {day.month:02d}/{day.year} is locked. Unlock the period before changing attendance."
            )

    def lock(self, *, current_role: Role, actor_id: int, year: int, month: int) -> PayrollPeriod:
        self._require_master(current_role, "lock")
        self._validate_period(year, month)

        existing = self._periods.get(year, month)
        if existing and existing.is_locked:
            raise BusinessRuleViolation("Payroll period is already locked", code="ALREADY_LOCKED")

        period = replace(
            existing or PayrollPeriod(year=year, month=month),
            status=PayrollPeriodStatus.LOCKED,
            locked_at=self._clock(),
            locked_by=int(actor_id),
        )
        self._periods.save(period)
        changed = self._transition_sessions(year, month, OTSessionStatus.COMPLETED, OTSessionStatus.LOCKED)
        logger.info("Payroll %02d/%d locked by %s (%d OT sessions locked)", month, year, actor_id, changed)
        return period

    def unlock(self, *, current_role: Role, actor_id: int, year: int, month: int, reason: str) -> PayrollPeriod:
        self._require_master(current_role, "unlock")
        reason = require_min_length(reason, "reason", self._unlock_reason_min_length)

        existing = self._periods.get(year, month)
        if existing is None:
            raise NotFoundError("Payroll period not found")
        if not existing.is_locked:
            raise BusinessRuleViolation("Payroll period is not locked", code="NOT_LOCKED")

        period = replace(
            existing,
            status=PayrollPeriodStatus.OPEN,
            unlocked_at=self._clock(),
            unlocked_by=int(actor_id),
            unlock_reason=reason,
        )
        self._periods.save(period)
        changed = self._transition_sessions(year, month, OTSessionStatus.LOCKED, OTSessionStatus.COMPLETED)
        logger.warning(
            "AUDIT payroll %02d/%d unlocked by %s (%d OT sessions reopened). Reason: %s",
            month, year, actor_id, changed, reason,
        )
        return period

    def _transition_sessions(self, year: int, month: int, source: OTSessionStatus, target: OTSessionStatus) -> int:
        first, last = month_bounds(year, month)
        return sum(
            self._transition_record(record, source, target)
            for record in self._attendance.list_range(first, last)
        )

    def _transition_record(self, record: AttendanceRecord, source: OTSessionStatus, target: OTSessionStatus) -> int:
        for _ in range(_UPDATE_ATTEMPTS):
            moved = [s for s in record.ot_sessions if s.status == source]
            if not moved:
                return 0
            updated = record
            for session in moved:
                updated = updated.with_session(replace(session, status=target))
            try:
                self._attendance.update(updated)
                return len(moved)
            except ConcurrentModificationError:
                logger.warning("Attendance %s changed while moving OT sessions to %s; retrying", record.attendance_id, target.value)
                record = self._attendance.get(record.attendance_id)
                if record is None:
                    return 0
        raise ConcurrentModificationError(
            f"Attendance {record.attendance_id} kept changing while moving OT sessions to {target.value}"
        )

    @staticmethod
    def _require_master(role: Role, verb: str) -> None:
        if role != Role.MASTER_ADMIN:
            raise AuthorizationError(f"Only master admin can {verb} payroll periods")

    @staticmethod
    def _validate_period(year: int, month: int) -> None:
        if not 1 <= int(month) <= 12:
            raise ValidationError("Invalid month")
        if int(year) < MIN_PAYROLL_YEAR:
            raise ValidationError("Invalid year")
