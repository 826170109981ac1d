from __future__ import annotations

import logging
from typing import Any, Mapping, Sequence

from ..core.enums import NotificationKind, Role
from .repository import NotificationService, UserDirectory

logger = logging.getLogger(__name__)


class SafeNotifier:
    """Wraps a NotificationService so delivery errors are logged, never raised."""

    def __init__(self, delivery: NotificationService, users: UserDirectory | None = None):
        self._delivery = delivery
        self._users = users

    def notify(self, user_id: int, kind: NotificationKind, payload: Mapping[str, Any]) -> bool:
        try:
            self._delivery.notify(int(user_id), kind, dict(payload))
            return True
        except Exception:
            logger.exception("Notification %s to user %s failed", kind.value, user_id)
            return False

    def notify_admins(self, kind: NotificationKind, payload: Mapping[str, Any]) -> int:
        if self._users is None:
            return 0
        admins: Sequence = []
        try:
            admins = [*self._users.list_by_role(Role.ADMIN), *self._users.list_by_role(Role.MASTER_ADMIN)]
        except Exception:
            logger.exception("Could not list admins for %s notification", kind.value)
            return 0
        return sum(1 for admin in admins if self.notify(admin.user_id, kind, payload))
