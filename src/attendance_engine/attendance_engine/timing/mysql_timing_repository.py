from __future__ import annotations

from typing import Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from .model import DepartmentTiming
from .repository import DepartmentTimingRepository

_COLUMNS = """
    department, check_in_time, check_out_time, working_hours, overtime_threshold_minutes,
    late_threshold_minutes, auto_checkout_grace_minutes, weekly_off_days
"""


def _row_to_timing(r: dict) -> DepartmentTiming:
    return DepartmentTiming.from_dict({**r, "weekly_off_days": load_json(r.get("weekly_off_days"), default=[])})


class MySQLDepartmentTimingRepository(DepartmentTimingRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, department: str) -> Optional[DepartmentTiming]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM department_timings WHERE department=%s", (department,))
            row = fetchone(cur)
            return _row_to_timing(row) if row else None

    def list_all(self) -> Sequence[DepartmentTiming]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM department_timings ORDER BY department")
            return [_row_to_timing(r) for r in fetchall(cur)]

    def upsert(self, timing: DepartmentTiming) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO department_timings(
                    department, check_in_time, check_out_time, working_hours, overtime_threshold_minutes,
                    late_threshold_minutes, auto_checkout_grace_minutes, weekly_off_days)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    check_in_time=VALUES(check_in_time), check_out_time=VALUES(check_out_time),
                    working_hours=VALUES(working_hours),
                    overtime_threshold_minutes=VALUES(overtime_threshold_minutes),
                    late_threshold_minutes=VALUES(late_threshold_minutes),
                    auto_checkout_grace_minutes=VALUES(auto_checkout_grace_minutes),
                    weekly_off_days=VALUES(weekly_off_days)
                """,
                (
                    timing.department,
                    timing.check_in_time,
                    timing.check_out_time,
                    int(timing.working_hours),
                    int(timing.overtime_threshold_minutes),
                    int(timing.late_threshold_minutes),
                    int(timing.auto_checkout_grace_minutes),
                    dump_json(sorted(timing.weekly_off_days)),
                ),
            )
