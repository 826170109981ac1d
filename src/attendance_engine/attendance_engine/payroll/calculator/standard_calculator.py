from __future__ import annotations

from .base import PayrollCalculator
from ...attendance.model import AttendanceRecord
from ...core.enums import AttendanceStatus

FULL_DAY_STATUSES = frozenset(
    {
        AttendanceStatus.PRESENT,
        AttendanceStatus.LATE,
        AttendanceStatus.OVERTIME,
        AttendanceStatus.EARLY_CHECKOUT,
        AttendanceStatus.HOLIDAY,
        AttendanceStatus.WEEKLY_OFF,
    }
)


class StandardPayrollCalculator(PayrollCalculator):
    """Standard rule: half day counts 0.5, worked/statutory days 1.0, anything else 0."""

    def day_weight(self, status: AttendanceStatus) -> float:
        if status == AttendanceStatus.HALF_DAY:
            return 0.5
        if status in FULL_DAY_STATUSES:
            return 1.0
        return 0.0

    def worked_minutes(self, record: AttendanceRecord) -> int:
        if not record.check_in_time or not record.check_out_time:
            return 0
        minutes = int((record.check_out_time - record.check_in_time).total_seconds() // 60)
        return max(minutes, 0)
