from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ...core.enums import AttendanceStatus
from ...timing.model import DepartmentTiming


@dataclass(frozen=True)
class StatusDecision:
    status: AttendanceStatus
    is_late: bool = False
    late_minutes: int = 0
    note: Optional[str] = None


class AttendanceStrategy(ABC):
    """Strategy Pattern: encapsulate how we decide an attendance status."""

    @abstractmethod
    def decide_checkin(self, *, now: datetime, shift_start: datetime, timing: DepartmentTiming) -> StatusDecision:
        raise NotImplementedError

    @abstractmethod
    def decide_checkout(self, *, working_hours: float, timing: DepartmentTiming, current: AttendanceStatus) -> StatusDecision:
        raise NotImplementedError
