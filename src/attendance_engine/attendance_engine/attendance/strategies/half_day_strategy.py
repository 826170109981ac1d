from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...timing.model import DepartmentTiming
from .base import AttendanceStrategy, StatusDecision


class HalfDayStrategy(AttendanceStrategy):
    """Normal checkout below half the standard hours; overrides present/late."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, timing: DepartmentTiming) -> StatusDecision:
        raise NotImplementedError("Half-day is only decided at check-out")

    def decide_checkout(self, *, working_hours: float, timing: DepartmentTiming, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(
            status=AttendanceStatus.HALF_DAY,
            note=f"Worked {working_hours:.2f}h of {timing.working_hours}h standard",
        )
