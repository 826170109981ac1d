from __future__ import annotations

from datetime import date

from attendance_engine.attendance.model import AttendanceRecord
from attendance_engine.core.enums import AttendanceStatus, ReviewStatus
from attendance_engine.reports.service import AttendanceReportService

from conftest import ADMIN, EMPLOYEE, InMemoryAttendance, InMemoryUsers, MONDAY, at


def closed(repo, user_id, check_in, check_out, *, review=ReviewStatus.NONE):
    return repo.create(
        AttendanceRecord(
            attendance_id=None,
            user_id=user_id,
            work_date=check_in.date(),
            status=AttendanceStatus.PRESENT,
            check_in_time=check_in,
            check_out_time=check_out,
            admin_review_status=review,
        )
    )


def test_report_totals(env):
    closed(env.attendance, EMPLOYEE, at(MONDAY, 8, 30), at(MONDAY, 17, 30))

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY)

    assert report.summary[0]["total_hours"] == "09:00"
    assert report.rows[0]["worked_hours"] == "09:00"
    assert report.rows[0]["full_name"] == "Asha"
    assert report.rows[0]["department"] == "engineering"


def test_report_skips_pending_rows(env):
    closed(env.attendance, EMPLOYEE, at(MONDAY, 9, 0), at(MONDAY, 18, 0), review=ReviewStatus.PENDING)
    closed(env.attendance, ADMIN, at(MONDAY, 9, 0), at(MONDAY, 13, 0))

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY)

    assert [row["user_id"] for row in report.rows] == [ADMIN]


def test_report_filters_by_department(env):
    closed(env.attendance, EMPLOYEE, at(MONDAY, 9, 0), at(MONDAY, 18, 0))
    closed(env.attendance, ADMIN, at(MONDAY, 9, 0), at(MONDAY, 18, 0))

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY, department="Engineering")

    assert [row["user_id"] for row in report.rows] == [EMPLOYEE]


def test_report_forwards_user_id_filter(env):
    closed(env.attendance, EMPLOYEE, at(MONDAY, 9, 0), at(MONDAY, 18, 0))
    closed(env.attendance, ADMIN, at(MONDAY, 9, 0), at(MONDAY, 18, 0))

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY, user_id=ADMIN)

    assert [row["user_id"] for row in report.rows] == [ADMIN]


def test_summary_is_sorted_by_worked_time(env):
    closed(env.attendance, EMPLOYEE, at(MONDAY, 9, 0), at(MONDAY, 13, 0))
    closed(env.attendance, ADMIN, at(MONDAY, 9, 0), at(MONDAY, 19, 0))

    report = env.container.report_service.build_attendance_report(start=MONDAY, end=MONDAY)

    assert [s["user_id"] for s in report.summary] == [ADMIN, EMPLOYEE]


def test_unknown_department_gives_empty_report():
    service = AttendanceReportService(InMemoryAttendance(), InMemoryUsers({}))

    report = service.build_attendance_report(start=date(2025, 3, 1), end=date(2025, 3, 31), department="ghost")

    assert report.rows == [] and report.summary == []
