from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import FrozenSet, Optional

from ..core.constants import (
    DEFAULT_MAX_OT_HOURS_PER_DAY,
    DEFAULT_OT_RATE,
    STANDARD_WORKING_DAYS,
    STANDARD_WORKING_HOURS,
)
from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Directory entry as seen by the engine (identity only, no credentials)."""

    user_id: int
    display_name: str
    role: Role
    department: Optional[str]
    is_active: bool = True


@dataclass(frozen=True)
class Holiday:
    name: str
    holiday_date: date
    allow_ot: bool = False
    departments: FrozenSet[str] = frozenset()  # empty = company wide

    def applies_to(self, department: Optional[str]) -> bool:
        if not self.departments:
            return True
        return (department or "").lower() in self.departments


@dataclass(frozen=True)
class HolidayCheck:
    is_holiday: bool
    holiday: Optional[Holiday] = None


@dataclass(frozen=True)
class CompanySettings:
    weekend_days: FrozenSet[int] = frozenset({0})
    default_ot_rate: float = DEFAULT_OT_RATE
    max_ot_hours_per_day: float = DEFAULT_MAX_OT_HOURS_PER_DAY
    standard_working_days: int = STANDARD_WORKING_DAYS
    standard_working_hours: float = STANDARD_WORKING_HOURS


@dataclass(frozen=True)
class SalaryStructure:
    user_id: int
    fixed_basic: float = 0.0
    fixed_hra: float = 0.0
    fixed_conveyance: float = 0.0
    extras: dict = field(default_factory=dict)

    @property
    def fixed_monthly_components(self) -> float:
        return float(self.fixed_basic) + float(self.fixed_hra) + float(self.fixed_conveyance)
