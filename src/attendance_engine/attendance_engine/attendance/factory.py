from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from ..core.constants import HALF_DAY_RATIO
from ..core.enums import AttendanceStatus
from ..timing.model import DepartmentTiming
from .strategies.base import AttendanceStrategy
from .strategies.half_day_strategy import HalfDayStrategy
from .strategies.late_strategy import LateStrategy
from .strategies.normal_strategy import NormalStrategy


@dataclass
class AttendanceStrategyFactory:
    """Factory Pattern: choose appropriate strategy based on rules."""

    half_day_ratio: float = HALF_DAY_RATIO

    def for_checkin(self, *, now: datetime, shift_start: datetime, timing: DepartmentTiming) -> AttendanceStrategy:
        if now <= shift_start + timedelta(minutes=timing.late_threshold_minutes):
            return NormalStrategy()
        return LateStrategy()

    def for_checkout(self, *, working_hours: float, timing: DepartmentTiming, current_status: AttendanceStatus) -> AttendanceStrategy:
        if working_hours < timing.working_hours * self.half_day_ratio:
            return HalfDayStrategy()
        return NormalStrategy()
