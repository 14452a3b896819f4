"""
Responses to action buttons on delivered notifications.

Only snooze changes state (it schedules the same content again); the other
actions are recorded in the log. An action the notification's category does not
offer is logged and ignored.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..audit.models import AuditCategory
from .manager import NotificationManager
from .models import NotificationAction, NotificationRecord

logger = logging.getLogger(__name__)

_ALWAYS_AVAILABLE = {NotificationAction.default, NotificationAction.dismissed}


class NotificationResponseHandler:
    def __init__(
        self, manager: NotificationManager, snooze_seconds: Optional[float] = None
    ) -> None:
        self.manager = manager
        self.snooze_seconds = (
            snooze_seconds
            if snooze_seconds is not None
            else manager.settings.snooze_seconds
        )

    def allows(self, action: str, record: NotificationRecord) -> bool:
        """Whether ``record`` offers ``action``.

        Tapping the body and swiping it away are always possible; buttons come
        from the record's category.
        """
        try:
            resolved = NotificationAction(action)
        except ValueError:
            return False
        if resolved in _ALWAYS_AVAILABLE:
            return True
        return resolved in record.content.category.actions

    async def handle(
        self,
        action: str,
        record: NotificationRecord,
        text: Optional[str] = None,
    ) -> Optional[str]:
        """Dispatch one response. Returns the new id for a snooze, else None."""
        if not self.allows(action, record):
            logger.warning(
                "action=%s not offered by category=%s id=%s",
                action,
                record.content.category.value,
                record.id,
            )
            return None
        resolved = NotificationAction(action)

        if resolved == NotificationAction.snooze:
            return await self.snooze(record)
        if resolved == NotificationAction.reply:
            logger.info(
                "reply received id=%s length=%d", record.id, len(text or "")
            )
        elif resolved == NotificationAction.mark_read:
            logger.info("marked as read id=%s", record.id)
        else:
            logger.debug("action=%s id=%s", resolved.value, record.id)
        return None

    async def snooze(self, record: NotificationRecord) -> Optional[str]:
        new_id = await self.manager.resubmit(record.content, self.snooze_seconds)
        await self.manager.audit_service.log_event(
            event_type="notification_snoozed",
            category=AuditCategory.ACTIONS,
            action="snooze",
            result="success" if new_id else "failed",
            description="Notification snoozed",
            resource_id=record.id,
            details={"new_id": new_id, "seconds": self.snooze_seconds},
        )
        return new_id
