from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..attendance.repository import AttendanceRepository
from ..collaborators.repository import UserDirectory
from ..payroll.calculator.base import PayrollCalculator
from ..payroll.calculator.standard_calculator import StandardPayrollCalculator
from ..review.gate import exclude_pending


@dataclass(frozen=True)
class ReportData:
    rows: list[dict]
    summary: list[dict]


class AttendanceReportService:
    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserDirectory,
        *,
        calculator: Optional[PayrollCalculator] = None,
    ):
        self._attendance = attendance
        self._users = users
        self._calculator = calculator or StandardPayrollCalculator()

    def build_attendance_report(
        self,
        *,
        start: date,
        end: date,
        user_id: Optional[int] = None,
        department: Optional[str] = None,
    ) -> ReportData:
        user_ids: Optional[list[int]] = None
        if department:
            user_ids = [u.user_id for u in self._users.list_by_department(department)]
            if user_id is not None:
                user_ids = [u for u in user_ids if u == int(user_id)]
            if not user_ids:
                return ReportData(rows=[], summary=[])
        elif user_id is not None:
            user_ids = [int(user_id)]

        records = exclude_pending(self._attendance.list_for_report(start, end, user_ids=user_ids))

        names: dict[int, tuple[str, str]] = {}
        summary_map: dict[int, dict] = {}
        out_rows: list[dict] = []

        for r in records:
            if r.user_id not in names:
                user = self._users.get_user(r.user_id)
                names[r.user_id] = (user.display_name, user.department or "-") if user else (f"#{r.user_id}", "-")
            full_name, dept = names[r.user_id]

            minutes = self._calculator.worked_minutes(r)
            out_rows.append(
                {
                    "attendance_id": r.attendance_id,
                    "user_id": r.user_id,
                    "full_name": full_name,
                    "department": dept,
                    "work_date": r.work_date.strftime("%Y-%m-%d"),
                    "check_in": r.check_in_time.isoformat() if r.check_in_time else "-",
                    "check_out": r.check_out_time.isoformat() if r.check_out_time else "-",
                    "worked_hours": f"{minutes // 60:02d}:{minutes % 60:02d}",
                    "status": r.status.value,
                    "ot_hours": r.total_ot_hours,
                    "review_status": r.admin_review_status.value,
                    "auto_corrected": r.auto_corrected,
                }
            )

            s = summary_map.get(r.user_id)
            if not s:
                s = {"user_id": r.user_id, "full_name": full_name, "total_minutes": 0, "total_ot_hours": 0.0, "days": 0}
                summary_map[r.user_id] = s
            s["total_minutes"] += minutes
            s["total_ot_hours"] += r.total_ot_hours
            s["days"] += 1

        summary = []
        for s in summary_map.values():
            total_minutes = int(s["total_minutes"])
            summary.append(
                {
                    "user_id": s["user_id"],
                    "full_name": s["full_name"],
                    "days": s["days"],
                    "total_minutes": total_minutes,
                    "total_hours": f"{total_minutes // 60:02d}:{total_minutes % 60:02d}",
                    "total_ot_hours": round(s["total_ot_hours"], 2),
                }
            )

        summary.sort(key=lambda x: x["total_minutes"], reverse=True)
        return ReportData(rows=out_rows, summary=summary)
