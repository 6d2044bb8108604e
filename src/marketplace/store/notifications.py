"""Notification rows."""

from __future__ import annotations

from typing import ClassVar

from marketplace.domain.models import Notification
from marketplace.store.base import Repository


class NotificationRepository(Repository[Notification]):
    table: ClassVar[str] = "notifications"
    model = Notification
    touches_updated_at: ClassVar[bool] = False

    def mark_all_read(self, user_id: str) -> int:
        cursor = self._conn.execute(
            "UPDATE notifications SET is_read = 1 WHERE user_id = ? AND is_read = 0",
            (user_id,),
        )
        return cursor.rowcount
