from __future__ import annotations

from datetime import date
from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import NotificationKind, Role
from .model import CompanySettings, HolidayCheck, SalaryStructure, User


class UserDirectory(Protocol):
    """Port for the user-management system.

    Note (DIP): services depend on this interface, never on a concrete store.
    """

    def get_user(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def list_by_role(self, role: Role) -> Sequence[User]:
        raise NotImplementedError

    def list_by_department(self, department: str) -> Sequence[User]:
        raise NotImplementedError


class LeaveService(Protocol):
    def has_approved_leave(self, user_id: int, day: date) -> bool:
        raise NotImplementedError


class HolidayService(Protocol):
    def is_holiday(self, day: date, department: Optional[str]) -> HolidayCheck:
        raise NotImplementedError


class CompanySettingsService(Protocol):
    def get_settings(self) -> CompanySettings:
        raise NotImplementedError


class SalaryStructureService(Protocol):
    def get_structure(self, user_id: int) -> Optional[SalaryStructure]:
        raise NotImplementedError


class PhotoStore(Protocol):
    def upload(self, image_data: bytes) -> str:
        raise NotImplementedError


class NotificationService(Protocol):
    """Fire-and-forget delivery; failures never roll back the caller."""

    def notify(self, user_id: int, kind: NotificationKind, payload: Mapping[str, Any]) -> None:
        raise NotImplementedError
