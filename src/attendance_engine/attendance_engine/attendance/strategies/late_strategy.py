from __future__ import annotations

from datetime import datetime

from ...core.enums import AttendanceStatus
from ...timing.model import DepartmentTiming
from .base import AttendanceStrategy, StatusDecision


class LateStrategy(AttendanceStrategy):
    """Check-in after the shift start plus the late threshold."""

    def decide_checkin(self, *, now: datetime, shift_start: datetime, timing: DepartmentTiming) -> StatusDecision:
        late_minutes = int((now - shift_start).total_seconds() // 60)
        return StatusDecision(
            status=AttendanceStatus.LATE,
            is_late=True,
            late_minutes=late_minutes,
            note=f"Late by {late_minutes} minutes",
        )

    def decide_checkout(self, *, working_hours: float, timing: DepartmentTiming, current: AttendanceStatus) -> StatusDecision:
        return StatusDecision(status=current)
