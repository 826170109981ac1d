from __future__ import annotations

from datetime import date
from typing import Optional, Protocol, Sequence

from .model import AttendanceRecord


class AttendanceRepository(Protocol):
    """Persistence port for attendance records and their embedded OT sessions.

    ``update`` is a compare-and-set on ``version``: the whole record (sessions
    included) is written at once or not at all.
    """

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def update(self, record: AttendanceRecord) -> AttendanceRecord:
        raise NotImplementedError

    def list_open(self, work_date: date, *, limit: int) -> Sequence[AttendanceRecord]:
        """Records checked in but not checked out on ``work_date``."""
        raise NotImplementedError

    def list_range(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        """Raw range read, pending rows included (sweeps, locking, payroll gate)."""
        raise NotImplementedError

    def list_for_report(
        self,
        start_date: date,
        end_date: date,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        """Range read for reports and payroll; pending-review rows are excluded."""
        raise NotImplementedError

    def list_pending_review(self) -> Sequence[AttendanceRecord]:
        raise NotImplementedError

    def find_by_session(self, session_id: str) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def find_with_active_session(self, user_id: int) -> Optional[AttendanceRecord]:
        raise NotImplementedError

    def list_with_session_status(
        self,
        status: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 500,
    ) -> Sequence[AttendanceRecord]:
        raise NotImplementedError
