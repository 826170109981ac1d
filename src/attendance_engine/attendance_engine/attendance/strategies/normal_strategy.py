from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...timing.model import DepartmentTiming
from .base import AttendanceStrategy, StatusDecision


class NormalStrategy(AttendanceStrategy):
    """On-time check-in, normal check-out (status kept)."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, timing: DepartmentTiming) -> StatusDecision:
        return StatusDecision(status=AttendanceStatus.PRESENT)

    def decide_checkout(self, *, working_hours: float, timing: DepartmentTiming, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
