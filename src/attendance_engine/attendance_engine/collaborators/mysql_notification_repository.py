from __future__ import annotations

from typing import Any, Mapping

from ..core.enums import NotificationKind
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, dump_json
from .repository import NotificationService


class MySQLNotificationOutbox(NotificationService):
    """Writes notifications to an outbox table read by the delivery system."""

    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def notify(self, user_id: int, kind: NotificationKind, payload: Mapping[str, Any]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO notifications(user_id, kind, payload) VALUES(%s,%s,%s)",
                (int(user_id), kind.value, dump_json(dict(payload))),
            )
