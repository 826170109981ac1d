from __future__ import annotations

from typing import Optional, Sequence

from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import User
from .repository import UserDirectory

_SELECT = "SELECT user_id, display_name, role, department, is_active FROM users"


def _row_to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        display_name=r["display_name"],
        role=Role(r["role"]),
        department=(r.get("department") or None),
        is_active=bool(r.get("is_active", True)),
    )


class MySQLUserDirectory(UserDirectory):
    """Read-only view of the users table owned by the user-management system."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_user(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE user_id=%s", (int(user_id),))
            row = fetchone(cur)
            return _row_to_user(row) if row else None

    def list_by_role(self, role: Role) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE role=%s AND is_active=1 ORDER BY user_id", (role.value,))
            return [_row_to_user(r) for r in fetchall(cur)]

    def list_by_department(self, department: str) -> Sequence[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"{_SELECT} WHERE LOWER(department)=LOWER(%s) ORDER BY user_id", (department,))
            return [_row_to_user(r) for r in fetchall(cur)]
