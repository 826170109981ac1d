from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import PayrollPeriodStatus


@dataclass(frozen=True)
class PayrollPeriod:
    """Lock flag for one (year, month) of attendance and OT data."""

    year: int
    month: int
    status: PayrollPeriodStatus = PayrollPeriodStatus.OPEN
    locked_at: Optional[datetime] = None
    locked_by: Optional[int] = None
    unlocked_at: Optional[datetime] = None
    unlocked_by: Optional[int] = None
    unlock_reason: Optional[str] = None

    @property
    def period_id(self) -> str:
        return f"payroll_{self.year}_{self.month:02d}"

    @property
    def is_locked(self) -> bool:
        return self.status == PayrollPeriodStatus.LOCKED
