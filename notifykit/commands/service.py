from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Optional

from ..audit.models import AuditCategory
from ..notifications.actions import NotificationResponseHandler
from ..notifications.manager import NotificationManager
from ..notifications.models import (
    InterruptionLevel,
    InvalidTriggerDate,
    NotificationCategory,
    NotificationSound,
    clamp_relevance,
    resolve_trigger,
)
from .errors import (
    ActionNotAvailable,
    FailedToSchedule,
    FailedToSend,
    InvalidDate,
    NotAuthorized,
    NotFound,
)

logger = logging.getLogger(__name__)


class NotificationCommands:
    def __init__(
        self,
        manager: NotificationManager,
        responses: Optional[NotificationResponseHandler] = None,
    ) -> None:
        self.manager = manager
        self.responses = responses or NotificationResponseHandler(manager)

    def _require_authorized(self) -> None:
        if not self.manager.authorized:
            logger.info("command refused: notifications not authorized")
            raise NotAuthorized()

    async def send(
        self,
        title: str,
        body: str,
        subtitle: Optional[str] = None,
        badge: Optional[int] = None,
        sound: NotificationSound = NotificationSound.default,
        image_url: Optional[str] = None,
        thread_id: Optional[str] = None,
        category: NotificationCategory = NotificationCategory.basic,
        urgency: InterruptionLevel = InterruptionLevel.active,
        relevance_score: float = 0.5,
    ) -> bool:
        self._require_authorized()
        ok = await self.manager.send_notification(
            title,
            body,
            subtitle=subtitle,
            badge=badge,
            sound=sound,
            image_url=image_url,
            thread_id=thread_id,
            category=category,
            urgency=urgency,
            relevance_score=clamp_relevance(relevance_score),
        )
        if not ok:
            raise FailedToSend()
        return True

    async def schedule(
        self,
        title: str,
        body: str,
        scheduled_date: Optional[datetime] = None,
        delay_seconds: Optional[int] = None,
        repeats: bool = False,
        subtitle: Optional[str] = None,
        badge: Optional[int] = None,
        sound: NotificationSound = NotificationSound.default,
        image_url: Optional[str] = None,
        thread_id: Optional[str] = None,
        category: NotificationCategory = NotificationCategory.basic,
        urgency: InterruptionLevel = InterruptionLevel.active,
    ) -> str:
        self._require_authorized()
        try:
            trigger = resolve_trigger(
                scheduled_date,
                delay_seconds,
                repeats,
                now=self.manager.now(),
                default_delay=self.manager.settings.default_delay_seconds,
            )
        except InvalidTriggerDate:
            raise InvalidDate() from None

        nid = await self.manager.schedule_notification(
            title,
            body,
            trigger=trigger,
            subtitle=subtitle,
            badge=badge,
            sound=sound,
            image_url=image_url,
            thread_id=thread_id,
            category=category,
            urgency=urgency,
        )
        if not nid:
            raise FailedToSchedule()
        return nid

    async def schedule_delayed(
        self,
        title: str,
        body: str,
        delay_minutes: int = 5,
        sound: NotificationSound = NotificationSound.default,
    ) -> str:
        self._require_authorized()
        nid = await self.manager.schedule_notification(
            title, body, trigger_interval=delay_minutes * 60, sound=sound
        )
        if not nid:
            raise FailedToSchedule()
        return nid

    async def cancel(self, notification_id: str) -> None:
        await self.manager.cancel_notification(notification_id)

    async def cancel_all(self) -> int:
        """Cancel everything and report how many records existed just before.

        The count is best effort: a delivery between the snapshot and the
        removal is not reflected.
        """
        await self.manager.refresh_notification_lists()
        count = len(self.manager.pending) + len(self.manager.delivered)
        await self.manager.cancel_all_notifications()
        return count

    async def cancel_by_thread(self, thread_id: str) -> int:
        return len(await self.manager.cancel_notifications_by_thread(thread_id))

    async def set_badge(self, badge_number: int) -> None:
        self._require_authorized()
        if badge_number <= 0:
            self.manager.clear_badge()
        else:
            self.manager.set_badge(badge_number)
        await self._audit_badge(max(badge_number, 0))

    async def clear_badge(self) -> None:
        self.manager.clear_badge()
        await self._audit_badge(0)

    async def get_pending_count(self) -> int:
        await self.manager.refresh_notification_lists()
        return len(self.manager.pending)

    async def list_notifications(self) -> Dict[str, Any]:
        await self.manager.refresh_notification_lists()
        return {
            "authorized": self.manager.authorized,
            "pending": [r.model_dump(mode="json") for r in self.manager.pending],
            "delivered": [r.model_dump(mode="json") for r in self.manager.delivered],
        }

    async def respond(
        self, notification_id: str, action: str, text: Optional[str] = None
    ) -> Optional[str]:
        await self.manager.refresh_notification_lists()
        record = self.manager.find(notification_id)
        if record is None:
            raise NotFound()
        if not self.responses.allows(action, record):
            raise ActionNotAvailable()
        return await self.responses.handle(action, record, text=text)

    async def _audit_badge(self, count: int) -> None:
        await self.manager.audit_service.log_event(
            event_type="badge_updated",
            category=AuditCategory.BADGE,
            action="set_badge",
            result="success",
            description="App badge updated",
            details={"count": count},
        )
