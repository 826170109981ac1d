from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Optional, Sequence

import mysql.connector

from ..common.datetime_utils import ensure_aware, to_db
from ..core.enums import AttendanceStatus, AttendanceType, ReviewStatus
from ..core.exceptions import BusinessRuleViolation, ConcurrentModificationError
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json, fetchall, fetchone, load_json
from ..overtime.model import OTSession
from .model import CLOSED_REVIEW_STATUSES, AttendanceRecord, Location
from .repository import AttendanceRepository

_COLUMNS = """
    attendance_id, user_id, work_date, status, attendance_type,
    check_in_time, check_out_time, working_hours, overtime_hours, is_late, late_minutes,
    check_in_photo, check_out_photo, check_in_location, check_out_location, checkout_reason,
    auto_corrected, auto_corrected_at, auto_correction_reason, original_check_out_time,
    admin_review_status, admin_reviewed_by, admin_reviewed_at, admin_review_notes,
    ot_sessions, total_ot_hours, version
"""


def _aware(value):
    return ensure_aware(value) if value is not None else None


def _location_json(location: Optional[Location]) -> Optional[str]:
    return dump_json(location.to_dict()) if location else None


def _row_to_record(r: dict) -> AttendanceRecord:
    sessions = load_json(r.get("ot_sessions"), default=[]) or []
    return AttendanceRecord(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        work_date=r["work_date"],
        status=AttendanceStatus(r["status"]),
        attendance_type=AttendanceType(r.get("attendance_type") or AttendanceType.ON_SITE.value),
        check_in_time=_aware(r.get("check_in_time")),
        check_out_time=_aware(r.get("check_out_time")),
        working_hours=float(r.get("working_hours") or 0),
        overtime_hours=float(r.get("overtime_hours") or 0),
        is_late=bool(r.get("is_late")),
        late_minutes=int(r.get("late_minutes") or 0),
        check_in_photo=r.get("check_in_photo"),
        check_out_photo=r.get("check_out_photo"),
        check_in_location=Location.from_dict(load_json(r.get("check_in_location"))),
        check_out_location=Location.from_dict(load_json(r.get("check_out_location"))),
        checkout_reason=r.get("checkout_reason"),
        auto_corrected=bool(r.get("auto_corrected")),
        auto_corrected_at=_aware(r.get("auto_corrected_at")),
        auto_correction_reason=r.get("auto_correction_reason"),
        original_check_out_time=_aware(r.get("original_check_out_time")),
        admin_review_status=ReviewStatus(r.get("admin_review_status") or ReviewStatus.NONE.value),
        admin_reviewed_by=r.get("admin_reviewed_by"),
        admin_reviewed_at=_aware(r.get("admin_reviewed_at")),
        admin_review_notes=r.get("admin_review_notes"),
        ot_sessions=tuple(OTSession.from_dict(s) for s in sessions),
        total_ot_hours=float(r.get("total_ot_hours") or 0),
        version=int(r.get("version") or 0),
    )


def _values(record: AttendanceRecord) -> tuple:
    return (
        record.status.value,
        record.attendance_type.value,
        to_db(record.check_in_time),
        to_db(record.check_out_time),
        record.working_hours,
        record.overtime_hours,
        int(record.is_late),
        int(record.late_minutes),
        record.check_in_photo,
        record.check_out_photo,
        _location_json(record.check_in_location),
        _location_json(record.check_out_location),
        record.checkout_reason,
        int(record.auto_corrected),
        to_db(record.auto_corrected_at),
        record.auto_correction_reason,
        to_db(record.original_check_out_time),
        record.admin_review_status.value,
        record.admin_reviewed_by,
        to_db(record.admin_reviewed_at),
        record.admin_review_notes,
        dump_json([s.to_dict() for s in record.ot_sessions]),
        record.total_ot_hours,
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _select(self, where: str, params: tuple, *, order: str = "work_date DESC", limit: Optional[int] = None):
        sql = f"SELECT {_COLUMNS} FROM attendance_records WHERE {where} ORDER BY {order}"
        if limit is not None:
            sql += " LIMIT %s"
            params = (*params, int(limit))
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, params)
            return [_row_to_record(r) for r in fetchall(cur)]

    def get(self, attendance_id: int) -> Optional[AttendanceRecord]:
        rows = self._select("attendance_id=%s", (int(attendance_id),))
        return rows[0] if rows else None

    def get_for_user_and_date(self, user_id: int, work_date: date) -> Optional[AttendanceRecord]:
        rows = self._select("user_id=%s AND work_date=%s", (int(user_id), work_date))
        return rows[0] if rows else None

    def get_recent_for_user(self, user_id: int, limit: int) -> Sequence[AttendanceRecord]:
        return self._select("user_id=%s", (int(user_id),), limit=limit)

    def create(self, record: AttendanceRecord) -> AttendanceRecord:
        try:
            with db_cursor(self._conn_factory) as (_, cur):
                cur.execute(
                    """
                    INSERT INTO attendance_records(
                        user_id, work_date, status, attendance_type,
                        check_in_time, check_out_time, working_hours, overtime_hours, is_late, late_minutes,
                        check_in_photo, check_out_photo, check_in_location, check_out_location, checkout_reason,
                        auto_corrected, auto_corrected_at, auto_correction_reason, original_check_out_time,
                        admin_review_status, admin_reviewed_by, admin_reviewed_at, admin_review_notes,
                        ot_sessions, total_ot_hours, version)
                    VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,%s,1)
                    """,
                    (int(record.user_id), record.work_date, *_values(record)),
                )
                new_id = int(cur.lastrowid)
        except mysql.connector.IntegrityError as exc:
            raise BusinessRuleViolation(
                "An attendance record already exists for this day", code="DUPLICATE_CHECK_IN"
            ) from exc
        return replace(record, attendance_id=new_id, version=1)

    def update(self, record: AttendanceRecord) -> AttendanceRecord:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE attendance_records
                SET status=%s, attendance_type=%s,
                    check_in_time=%s, check_out_time=%s, working_hours=%s, overtime_hours=%s,
                    is_late=%s, late_minutes=%s,
                    check_in_photo=%s, check_out_photo=%s, check_in_location=%s, check_out_location=%s,
                    checkout_reason=%s,
                    auto_corrected=%s, auto_corrected_at=%s, auto_correction_reason=%s, original_check_out_time=%s,
                    admin_review_status=%s, admin_reviewed_by=%s, admin_reviewed_at=%s, admin_review_notes=%s,
                    ot_sessions=%s, total_ot_hours=%s, version=version+1
                WHERE attendance_id=%s AND version=%s
                """,
                (*_values(record), int(record.attendance_id), int(record.version)),
            )
            if cur.rowcount == 0:
                raise ConcurrentModificationError(
                    f"Attendance record {record.attendance_id} was modified concurrently; retry"
                )
        return replace(record, version=record.version + 1)

    def list_open(self, work_date: date, *, limit: int) -> Sequence[AttendanceRecord]:
        closed = sorted(s.value for s in CLOSED_REVIEW_STATUSES)
        placeholders = ",".join(["%s"] * len(closed))
        return self._select(
            "work_date=%s AND check_in_time IS NOT NULL AND check_out_time IS NULL"
            f" AND admin_review_status NOT IN ({placeholders})",
            (work_date, *closed),
            order="attendance_id",
            limit=limit,
        )

    def list_range(
        self,
        start_date: date,
        end_date: date,
        *,
        user_id: Optional[int] = None,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = self._range_clause(start_date, end_date, user_id=user_id, user_ids=user_ids)
        return self._select(where, params, order="work_date, user_id")

    def list_for_report(
        self,
        start_date: date,
        end_date: date,
        *,
        user_ids: Optional[Sequence[int]] = None,
    ) -> Sequence[AttendanceRecord]:
        where, params = self._range_clause(start_date, end_date, user_ids=user_ids)
        where += " AND admin_review_status <> %s"
        params = (*params, ReviewStatus.PENDING.value)
        return self._select(where, params, order="work_date DESC, user_id")

    def list_pending_review(self) -> Sequence[AttendanceRecord]:
        return self._select("admin_review_status=%s", (ReviewStatus.PENDING.value,), order="work_date, attendance_id")

    def find_by_session(self, session_id: str) -> Optional[AttendanceRecord]:
        rows = self._select(
            "JSON_CONTAINS(ot_sessions, JSON_OBJECT('session_id', %s))",
            (str(session_id),),
            limit=1,
        )
        return rows[0] if rows else None

    def find_with_active_session(self, user_id: int) -> Optional[AttendanceRecord]:
        rows = self._select(
            "user_id=%s AND JSON_CONTAINS(ot_sessions, JSON_OBJECT('status', 'in_progress'))",
            (int(user_id),),
            limit=1,
        )
        return rows[0] if rows else None

    def list_with_session_status(
        self,
        status: str,
        *,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        limit: int = 500,
    ) -> Sequence[AttendanceRecord]:
        clauses = ["JSON_CONTAINS(ot_sessions, JSON_OBJECT('status', %s))"]
        params: list[object] = [str(status)]
        if start_date is not None:
            clauses.append("work_date >= %s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date <= %s")
            params.append(end_date)
        return self._select(" AND ".join(clauses), tuple(params), order="work_date, attendance_id", limit=limit)

    @staticmethod
    def _range_clause(start_date, end_date, *, user_id=None, user_ids=None) -> tuple[str, tuple]:
        clauses = ["work_date BETWEEN %s AND %s"]
        params: list[object] = [start_date, end_date]
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if user_ids:
            placeholders = ",".join(["%s"] * len(user_ids))
            clauses.append(f"user_id IN ({placeholders})")
            params.extend(int(u) for u in user_ids)
        return " AND ".join(clauses), tuple(params)
