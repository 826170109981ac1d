from __future__ import annotations

from datetime import date
from typing import Optional

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, load_json
from .model import Holiday, HolidayCheck
from .repository import HolidayService, LeaveService


class MySQLHolidayService(HolidayService):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def is_holiday(self, day: date, department: Optional[str]) -> HolidayCheck:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT name, holiday_date, allow_ot, departments FROM holidays WHERE holiday_date=%s",
                (day,),
            )
            for r in fetchall(cur):
                holiday = Holiday(
                    name=r["name"],
                    holiday_date=r["holiday_date"],
                    allow_ot=bool(r.get("allow_ot")),
                    departments=frozenset(d.lower() for d in load_json(r.get("departments"), default=[]) or []),
                )
                if holiday.applies_to(department):
                    return HolidayCheck(is_holiday=True, holiday=holiday)
        return HolidayCheck(is_holiday=False)


class MySQLLeaveService(LeaveService):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def has_approved_leave(self, user_id: int, day: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT leave_id FROM leave_requests
                WHERE user_id=%s AND status='approved' AND start_date<=%s AND end_date>=%s
                LIMIT 1
                """,
                (int(user_id), day, day),
            )
            return fetchone(cur) is not None
