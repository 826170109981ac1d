"""Pending-review propagation.

Every report, dashboard and payroll read path passes its records through
``exclude_pending`` even when the query already filtered them.
"""

from __future__ import annotations

from typing import Iterable, List

from ..attendance.model import AttendanceRecord


def exclude_pending(records: Iterable[AttendanceRecord]) -> List[AttendanceRecord]:
    return [r for r in records if not r.is_pending_review]
