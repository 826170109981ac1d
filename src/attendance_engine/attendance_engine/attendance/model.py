from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from typing import Optional, Tuple

from ..core.enums import AttendanceStatus, AttendanceType, OTSessionStatus, ReviewStatus
from ..overtime.model import OTSession

CLOSED_REVIEW_STATUSES = frozenset({ReviewStatus.ACCEPTED, ReviewStatus.ADJUSTED, ReviewStatus.REJECTED})


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None

    def to_dict(self) -> dict:
        return {"latitude": self.latitude, "longitude": self.longitude, "address": self.address}

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> Optional["Location"]:
        if not data:
            return None
        return cls(latitude=float(data["latitude"]), longitude=float(data["longitude"]), address=data.get("address"))


@dataclass(frozen=True)
class AttendanceRecord:
    """Domain entity: one attendance record per (user, UTC date key).

    ``work_date`` never changes once the record exists. ``attendance_id`` is
    None for virtual days injected by payroll (holidays, weekly offs).
    """

    attendance_id: Optional[int]
    user_id: int
    work_date: date
    status: AttendanceStatus
    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None
    attendance_type: AttendanceType = AttendanceType.ON_SITE
    working_hours: float = 0.0
    overtime_hours: float = 0.0
    is_late: bool = False
    late_minutes: int = 0

    check_in_photo: Optional[str] = None
    check_out_photo: Optional[str] = None
    check_in_location: Optional[Location] = None
    check_out_location: Optional[Location] = None
    checkout_reason: Optional[str] = None

    auto_corrected: bool = False
    auto_corrected_at: Optional[datetime] = None
    auto_correction_reason: Optional[str] = None
    original_check_out_time: Optional[datetime] = None

    admin_review_status: ReviewStatus = ReviewStatus.NONE
    admin_reviewed_by: Optional[int] = None
    admin_reviewed_at: Optional[datetime] = None
    admin_review_notes: Optional[str] = None

    ot_sessions: Tuple[OTSession, ...] = field(default_factory=tuple)
    total_ot_hours: float = 0.0
    version: int = 0

    @property
    def is_open(self) -> bool:
        return self.check_in_time is not None and self.check_out_time is None and not self.is_review_closed

    @property
    def is_review_closed(self) -> bool:
        return self.admin_review_status in CLOSED_REVIEW_STATUSES

    @property
    def is_pending_review(self) -> bool:
        return self.admin_review_status == ReviewStatus.PENDING

    @property
    def is_virtual(self) -> bool:
        return self.attendance_id is None

    def active_session(self) -> Optional[OTSession]:
        return next((s for s in self.ot_sessions if s.status == OTSessionStatus.IN_PROGRESS), None)

    def session(self, session_id: str) -> Optional[OTSession]:
        return next((s for s in self.ot_sessions if s.session_id == session_id), None)

    def with_session(self, session: OTSession) -> "AttendanceRecord":
        """Insert or replace a session and recompute the payable OT total."""
        sessions = [s for s in self.ot_sessions if s.session_id != session.session_id]
        sessions.append(session)
        sessions.sort(key=lambda s: s.session_number)
        total = round(sum(s.payable_hours for s in sessions), 2)
        return replace(self, ot_sessions=tuple(sessions), total_ot_hours=total)

    def to_dict(self) -> dict:
        def iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "attendance_id": self.attendance_id,
            "user_id": self.user_id,
            "date": self.work_date.isoformat(),
            "status": self.status.value,
            "attendance_type": self.attendance_type.value,
            "check_in_time": iso(self.check_in_time),
            "check_out_time": iso(self.check_out_time),
            "working_hours": self.working_hours,
            "overtime_hours": self.overtime_hours,
            "is_late": self.is_late,
            "late_minutes": self.late_minutes,
            "check_in_location": self.check_in_location.to_dict() if self.check_in_location else None,
            "check_out_location": self.check_out_location.to_dict() if self.check_out_location else None,
            "checkout_reason": self.checkout_reason,
            "auto_corrected": self.auto_corrected,
            "auto_corrected_at": iso(self.auto_corrected_at),
            "auto_correction_reason": self.auto_correction_reason,
            "original_check_out_time": iso(self.original_check_out_time),
            "admin_review_status": self.admin_review_status.value,
            "admin_reviewed_by": self.admin_reviewed_by,
            "admin_reviewed_at": iso(self.admin_reviewed_at),
            "admin_review_notes": self.admin_review_notes,
            "ot_sessions": [s.to_dict() for s in self.ot_sessions],
            "total_ot_hours": self.total_ot_hours,
        }
