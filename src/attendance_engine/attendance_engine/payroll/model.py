from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import List, Tuple


@dataclass(frozen=True)
class ExcludedDay:
    """A day left out of a forced payroll run, kept for audit."""

    attendance_id: int
    user_id: int
    work_date: date
    reason: str

    def to_dict(self) -> dict:
        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "reason": self.reason,
        }


@dataclass(frozen=True)
class PayrollLine:
    user_id: int
    payable_days: float
    daily_rate: float
    hourly_rate: float
    earned_amount: float
    ot_hours: float
    ot_pay: float
    holidays: int = 0
    weekly_offs: int = 0

    @property
    def total(self) -> float:
        return round(self.earned_amount + self.ot_pay, 2)

    def to_dict(self) -> dict:
        return {
            "user_id": self.user_id,
            "payable_days": self.payable_days,
            "daily_rate": self.daily_rate,
            "hourly_rate": self.hourly_rate,
            "earned_amount": self.earned_amount,
            "ot_hours": self.ot_hours,
            "ot_pay": self.ot_pay,
            "holidays": self.holidays,
            "weekly_offs": self.weekly_offs,
            "total": self.total,
        }


@dataclass(frozen=True)
class PayrollRun:
    year: int
    month: int
    period: Tuple[date, date]
    forced: bool = False
    lines: List[PayrollLine] = field(default_factory=list)
    excluded_days: List[ExcludedDay] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "year": self.year,
            "month": self.month,
            "start_date": self.period[0].isoformat(),
            "end_date": self.period[1].isoformat(),
            "forced": self.forced,
            "lines": [line.to_dict() for line in self.lines],
            "excluded_days": [d.to_dict() for d in self.excluded_days],
        }
