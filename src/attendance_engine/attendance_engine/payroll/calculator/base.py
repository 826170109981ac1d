from __future__ import annotations

from abc import ABC, abstractmethod

from ...attendance.model import AttendanceRecord
from ...core.enums import AttendanceStatus


class PayrollCalculator(ABC):
    """Calculator interface (Strategy Pattern for payroll)."""

    @abstractmethod
    def day_weight(self, status: AttendanceStatus) -> float:
        raise NotImplementedError

    @abstractmethod
    def worked_minutes(self, record: AttendanceRecord) -> int:
        raise NotImplementedError
