"""
Notification lifecycle manager.

Responsibilities:
- Track authorization status reported by the notification store
- Build content/trigger descriptors and resolve image attachments
- Submit, cancel and query requests against the store
- Mirror the store's pending and delivered sets; every mutation ends with a
  wholesale refresh of both mirrors

The manager never raises for store, permission or attachment failures. It
reports outcomes through return values and logs the cause.
"""

from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Union
from uuid import uuid4

from ..audit.models import AuditCategory
from ..audit.service import AuditService
from ..config import Settings
from ..monitoring.metrics import (
    delivered_notifications,
    notifications_cancelled_total,
    notifications_send_latency,
    notifications_submitted_total,
    pending_notifications,
)
from .attachments import AttachmentResolver
from .models import (
    AfterTrigger,
    AtTrigger,
    AuthorizationOption,
    AuthorizationStatus,
    ContentDescriptor,
    ImmediateTrigger,
    InterruptionLevel,
    InvalidTriggerDate,
    NotificationCategory,
    NotificationMetadata,
    NotificationRecord,
    NotificationRequest,
    NotificationSound,
    resolve_trigger,
    utcnow,
)
from .store import NotificationStore

logger = logging.getLogger(__name__)

PERMISSION_OPTIONS = {
    AuthorizationOption.alert,
    AuthorizationOption.badge,
    AuthorizationOption.sound,
    AuthorizationOption.critical_alert,
}


class NotificationManager:
    def __init__(
        self,
        store: NotificationStore,
        attachment_resolver: Optional[AttachmentResolver] = None,
        audit_service: Optional[AuditService] = None,
        settings: Optional[Settings] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.store = store
        self.settings = settings or Settings()
        self.attachment_resolver = attachment_resolver or AttachmentResolver(
            self.settings.attachment_dir,
            timeout=self.settings.attachment_timeout,
            max_bytes=self.settings.attachment_max_bytes,
        )
        self.audit_service = audit_service or AuditService()
        self._clock = clock or utcnow
        self.authorized = False
        self.pending: List[NotificationRecord] = []
        self.delivered: List[NotificationRecord] = []
        self._refresh_lock = asyncio.Lock()
        self._running = False

    async def start(self) -> None:
        if self._running:
            return
        await self.attachment_resolver.start()
        await self.check_permission_status()
        await self.refresh_notification_lists()
        self._running = True
        logger.info("Notification manager started")

    async def stop(self) -> None:
        await self.attachment_resolver.stop()
        self._running = False
        logger.info("Notification manager stopped")

    def now(self) -> datetime:
        return self._clock()

    # Permission management
    async def check_permission_status(self) -> None:
        try:
            status = await self.store.get_authorization_status()
        except Exception as e:  # noqa: BLE001
            logger.error("permission status check failed: %s", e)
            return
        self.authorized = status == AuthorizationStatus.authorized

    async def request_permission(self) -> None:
        try:
            granted = await self.store.request_authorization(set(PERMISSION_OPTIONS))
        except Exception as e:  # noqa: BLE001
            logger.error("Permission error: %s", e)
            granted = False
        changed = granted != self.authorized
        self.authorized = bool(granted)
        if changed:
            await self.audit_service.log_event(
                event_type="permission_changed",
                category=AuditCategory.PERMISSIONS,
                action="request_permission",
                result="granted" if granted else "denied",
                description="Notification permission updated",
            )

    # Content
    def build_content(
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
        user_info: Optional[Dict[str, Any]] = None,
    ) -> ContentDescriptor:
        return ContentDescriptor(
            title=title,
            body=body,
            subtitle=subtitle,
            badge=badge,
            sound=sound,
            image_url=image_url,
            thread_id=thread_id,
            category=category,
            urgency=urgency,
            relevance_score=relevance_score,
            metadata=NotificationMetadata(
                created_at=self._clock(), extra=dict(user_info or {})
            ),
        )

    async def _with_attachment(self, content: ContentDescriptor) -> ContentDescriptor:
        if not content.image_url:
            return content
        try:
            attachment = await self.attachment_resolver.resolve(content.image_url)
        except Exception as e:  # noqa: BLE001
            logger.error("attachment resolution error: %s", e)
            attachment = None
        if attachment is None:
            return content
        return content.model_copy(update={"attachments": [attachment]})

    # Submission
    async def send_notification(self, title: str, body: str, **options: Any) -> bool:
        """Deliver immediately. Returns False when the store rejects the request."""
        start = time.perf_counter()
        content = await self._with_attachment(self.build_content(title, body, **options))
        request = NotificationRequest(
            id=str(uuid4()), content=content, trigger=ImmediateTrigger()
        )
        ok = await self._submit(request)
        await self.refresh_notification_lists()
        notifications_send_latency.observe(time.perf_counter() - start)
        if ok:
            await self._audit_submission("notification_sent", "send", request)
        return ok

    async def schedule_notification(
        self,
        title: str,
        body: str,
        trigger_date: Optional[datetime] = None,
        trigger_interval: Optional[float] = None,
        repeats: bool = False,
        trigger: Optional[Union[AtTrigger, AfterTrigger]] = None,
        **options: Any,
    ) -> Optional[str]:
        """Schedule for later. Returns the new identifier, or None on failure.

        With neither a date nor a positive interval the request fires after
        the configured default delay. A ``trigger`` the caller has already
        resolved is submitted as given and the other timing arguments are
        ignored.
        """
        start = time.perf_counter()
        if trigger is None:
            try:
                trigger = resolve_trigger(
                    trigger_date,
                    trigger_interval,
                    repeats,
                    now=self._clock(),
                    default_delay=self.settings.default_delay_seconds,
                )
            except InvalidTriggerDate as e:
                logger.warning("schedule rejected: %s", e)
                return None

        content = await self._with_attachment(self.build_content(title, body, **options))
        request = NotificationRequest(id=str(uuid4()), content=content, trigger=trigger)
        ok = await self._submit(request)
        await self.refresh_notification_lists()
        notifications_send_latency.observe(time.perf_counter() - start)
        if not ok:
            return None
        await self._audit_submission("notification_scheduled", "schedule", request)
        return request.id

    async def resubmit(
        self, content: ContentDescriptor, seconds: float
    ) -> Optional[str]:
        """Submit existing content again under a fresh id after ``seconds``."""
        request = NotificationRequest(
            id=str(uuid4()),
            content=content,
            trigger=AfterTrigger(seconds=seconds, repeats=False),
        )
        ok = await self._submit(request)
        await self.refresh_notification_lists()
        return request.id if ok else None

    async def _submit(self, request: NotificationRequest) -> bool:
        kind = request.trigger.kind
        try:
            await self.store.submit(request)
        except Exception as e:  # noqa: BLE001
            logger.error("Failed to submit notification id=%s: %s", request.id, e)
            notifications_submitted_total.labels(kind=kind, outcome="failed").inc()
            return False
        notifications_submitted_total.labels(kind=kind, outcome="accepted").inc()
        return True

    async def _audit_submission(
        self, event_type: str, action: str, request: NotificationRequest
    ) -> None:
        content = request.content
        await self.audit_service.log_event(
            event_type=event_type,
            category=AuditCategory.NOTIFICATIONS,
            action=action,
            result="success",
            description=f"Notification {action} accepted by store",
            resource_id=request.id,
            details={
                "trigger": request.trigger.kind,
                "category": content.category,
                "urgency": content.urgency,
                "thread_id": content.thread_id,
                "attachments": len(content.attachments),
            },
        )

    # Cancellation
    async def cancel_notification(self, identifier: str) -> None:
        """Remove ``identifier`` from both sets; unknown ids are a no-op."""
        self.store.remove_pending([identifier])
        self.store.remove_delivered([identifier])
        notifications_cancelled_total.labels(scope="id").inc()
        await self.refresh_notification_lists()
        await self.audit_service.log_event(
            event_type="notification_cancelled",
            category=AuditCategory.NOTIFICATIONS,
            action="cancel",
            result="success",
            description="Notification cancelled",
            resource_id=identifier,
        )

    async def cancel_all_notifications(self) -> None:
        self.store.remove_all_pending()
        self.store.remove_all_delivered()
        notifications_cancelled_total.labels(scope="all").inc()
        await self.refresh_notification_lists()
        await self.audit_service.log_event(
            event_type="notifications_cancelled_all",
            category=AuditCategory.NOTIFICATIONS,
            action="cancel_all",
            result="success",
            description="All notifications cancelled",
        )

    async def cancel_notifications_by_thread(self, thread_id: str) -> List[str]:
        # Read the store, not the mirror; the mirror may be stale
        try:
            pending = await self.store.list_pending()
        except Exception as e:  # noqa: BLE001
            logger.error("could not list pending notifications: %s", e)
            pending = []
        ids = [r.id for r in pending if r.content.thread_id == thread_id]
        self.store.remove_pending(ids)
        self.store.remove_delivered(ids)
        notifications_cancelled_total.labels(scope="thread").inc()
        await self.refresh_notification_lists()
        await self.audit_service.log_event(
            event_type="notifications_cancelled_thread",
            category=AuditCategory.NOTIFICATIONS,
            action="cancel_by_thread",
            result="success",
            description="Thread notifications cancelled",
            resource_id=thread_id,
            details={"count": len(ids)},
        )
        return ids

    # Badge
    def set_badge(self, count: int) -> None:
        self.store.set_badge_count(count)
        logger.debug("badge set to %d", count)

    def clear_badge(self) -> None:
        self.set_badge(0)

    # Lists
    async def refresh_notification_lists(self) -> None:
        """Replace both mirrors with what the store currently holds.

        Pending and delivered are fetched one after the other, so a record
        may move between them in the gap; the result is best effort.
        """
        async with self._refresh_lock:
            try:
                pending = await self.store.list_pending()
                delivered = await self.store.list_delivered()
            except Exception as e:  # noqa: BLE001
                logger.error("notification list refresh failed: %s", e)
                return
            self.pending = list(pending)
            self.delivered = list(delivered)
        pending_notifications.set(len(self.pending))
        delivered_notifications.set(len(self.delivered))

    def find(self, identifier: str) -> Optional[NotificationRecord]:
        for record in self.pending + self.delivered:
            if record.id == identifier:
                return record
        return None
