from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional

from ..common.datetime_utils import ensure_aware
from ..core.enums import OTReviewAction, OTSessionStatus, OTType


def _dt(value: Any) -> Optional[datetime]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    return ensure_aware(datetime.fromisoformat(str(value)))


def _iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


@dataclass(frozen=True)
class OTSession:
    """One overtime session, embedded in the day's attendance record."""

    session_id: str
    session_number: int
    ot_type: OTType
    start_time: datetime
    status: OTSessionStatus = OTSessionStatus.IN_PROGRESS
    end_time: Optional[datetime] = None
    ot_hours: float = 0.0
    reason: Optional[str] = None
    start_photo: Optional[str] = None
    end_photo: Optional[str] = None

    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    review_action: Optional[OTReviewAction] = None
    review_notes: Optional[str] = None
    original_ot_hours: Optional[float] = None
    adjusted_ot_hours: Optional[float] = None

    auto_closed_at: Optional[datetime] = None
    auto_closed_note: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.status == OTSessionStatus.IN_PROGRESS

    @property
    def payable_hours(self) -> float:
        return float(self.ot_hours) if self.status.is_payable else 0.0

    def to_dict(self) -> dict:
        return {
            "session_id": self.session_id,
            "session_number": self.session_number,
            "ot_type": self.ot_type.value,
            "start_time": _iso(self.start_time),
            "status": self.status.value,
            "end_time": _iso(self.end_time),
            "ot_hours": self.ot_hours,
            "reason": self.reason,
            "start_photo": self.start_photo,
            "end_photo": self.end_photo,
            "reviewed_by": self.reviewed_by,
            "reviewed_at": _iso(self.reviewed_at),
            "review_action": self.review_action.value if self.review_action else None,
            "review_notes": self.review_notes,
            "original_ot_hours": self.original_ot_hours,
            "adjusted_ot_hours": self.adjusted_ot_hours,
            "auto_closed_at": _iso(self.auto_closed_at),
            "auto_closed_note": self.auto_closed_note,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "OTSession":
        action = data.get("review_action")
        return cls(
            session_id=str(data["session_id"]),
            session_number=int(data.get("session_number") or 1),
            ot_type=OTType(data.get("ot_type") or OTType.LATE_DEPARTURE.value),
            start_time=_dt(data["start_time"]),
            status=OTSessionStatus(data.get("status") or OTSessionStatus.IN_PROGRESS.value),
            end_time=_dt(data.get("end_time")),
            ot_hours=float(data.get("ot_hours") or 0),
            reason=data.get("reason"),
            start_photo=data.get("start_photo"),
            end_photo=data.get("end_photo"),
            reviewed_by=data.get("reviewed_by"),
            reviewed_at=_dt(data.get("reviewed_at")),
            review_action=OTReviewAction(action) if action else None,
            review_notes=data.get("review_notes"),
            original_ot_hours=data.get("original_ot_hours"),
            adjusted_ot_hours=data.get("adjusted_ot_hours"),
            auto_closed_at=_dt(data.get("auto_closed_at")),
            auto_closed_note=data.get("auto_closed_note"),
        )


@dataclass(frozen=True)
class OTEndResult:
    session: OTSession
    total_ot_hours: float
    exceeds_daily_limit: bool
    message: str


@dataclass(frozen=True)
class OTStatus:
    state: str  # not_started | in_progress | completed
    can_start: bool
    can_end: bool
    active_session: Optional[OTSession] = None
    current_ot_hours: Optional[float] = None
