from __future__ import annotations

from typing import Optional, Sequence

from ..common.datetime_utils import ensure_aware, to_db
from ..core.enums import PayrollPeriodStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import PayrollPeriod
from .repository import PayrollPeriodRepository


def _row_to_period(r: dict) -> PayrollPeriod:
    def aware(v):
        return ensure_aware(v) if v is not None else None

    return PayrollPeriod(
        year=int(r["year"]),
        month=int(r["month"]),
        status=PayrollPeriodStatus(r["status"]),
        locked_at=aware(r.get("locked_at")),
        locked_by=r.get("locked_by"),
        unlocked_at=aware(r.get("unlocked_at")),
        unlocked_by=r.get("unlocked_by"),
        unlock_reason=r.get("unlock_reason"),
    )


class MySQLPayrollPeriodRepository(PayrollPeriodRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get(self, year: int, month: int) -> Optional[PayrollPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT year, month, status, locked_at, locked_by, unlocked_at, unlocked_by, unlock_reason
                FROM payroll_periods
                WHERE year=%s AND month=%s
                """,
                (int(year), int(month)),
            )
            r = fetchone(cur)
            return _row_to_period(r) if r else None

    def save(self, period: PayrollPeriod) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO payroll_periods(year, month, status, locked_at, locked_by, unlocked_at, unlocked_by, unlock_reason)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                ON DUPLICATE KEY UPDATE
                    status=VALUES(status), locked_at=VALUES(locked_at), locked_by=VALUES(locked_by),
                    unlocked_at=VALUES(unlocked_at), unlocked_by=VALUES(unlocked_by),
                    unlock_reason=VALUES(unlock_reason)
                """,
                (
                    period.year,
                    period.month,
                    period.status.value,
                    to_db(period.locked_at),
                    period.locked_by,
                    to_db(period.unlocked_at),
                    period.unlocked_by,
                    period.unlock_reason,
                ),
            )

    def list_for_year(self, year: int) -> Sequence[PayrollPeriod]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                SELECT year, month, status, locked_at, locked_by, unlocked_at, unlocked_by, unlock_reason
                FROM payroll_periods
                WHERE year=%s
                ORDER BY month
                """,
                (int(year),),
            )
            return [_row_to_period(r) for r in fetchall(cur)]
