from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import time
from typing import FrozenSet

from ..common.datetime_utils import parse_shift_time
from ..core.constants import (
    DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES,
    DEFAULT_CHECK_IN_TIME,
    DEFAULT_CHECK_OUT_TIME,
    DEFAULT_LATE_THRESHOLD_MINUTES,
    DEFAULT_OVERTIME_THRESHOLD_MINUTES,
    DEFAULT_WEEKLY_OFF_DAYS,
    DEFAULT_WORKING_HOURS,
)


@dataclass(frozen=True)
class DepartmentTiming:
    """Shift configuration of one department (12-hour canonical strings)."""

    department: str
    check_in_time: str
    check_out_time: str
    working_hours: int = DEFAULT_WORKING_HOURS
    overtime_threshold_minutes: int = DEFAULT_OVERTIME_THRESHOLD_MINUTES
    late_threshold_minutes: int = DEFAULT_LATE_THRESHOLD_MINUTES
    auto_checkout_grace_minutes: int = DEFAULT_AUTO_CHECKOUT_GRACE_MINUTES
    weekly_off_days: FrozenSet[int] = DEFAULT_WEEKLY_OFF_DAYS
    is_default: bool = False

    @property
    def shift_start(self) -> time:
        return parse_shift_time(self.check_in_time)

    @property
    def shift_end(self) -> time:
        return parse_shift_time(self.check_out_time)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["weekly_off_days"] = sorted(self.weekly_off_days)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "DepartmentTiming":
        return cls(
            department=str(data["department"]),
            check_in_time=str(data["check_in_time"]),
            check_out_time=str(data["check_out_time"]),
            working_hours=int(data.get("working_hours") or DEFAULT_WORKING_HOURS),
            overtime_threshold_minutes=int(data.get("overtime_threshold_minutes") or 0),
            late_threshold_minutes=int(data.get("late_threshold_minutes") or 0),
            auto_checkout_grace_minutes=int(data.get("auto_checkout_grace_minutes") or 0),
            weekly_off_days=frozenset(int(d) for d in data.get("weekly_off_days") or ()),
            is_default=bool(data.get("is_default", False)),
        )


def default_timing(department: str) -> DepartmentTiming:
    return DepartmentTiming(
        department=department,
        check_in_time=DEFAULT_CHECK_IN_TIME,
        check_out_time=DEFAULT_CHECK_OUT_TIME,
        is_default=True,
    )
