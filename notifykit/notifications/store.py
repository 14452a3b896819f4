"""
Notification store adapters.

The store is the authoritative holder of pending requests and delivered
notifications (on a device this is the OS notification center). The manager
only mirrors it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Protocol, Set

from .models import (
    AfterTrigger,
    AuthorizationOption,
    AuthorizationStatus,
    NotificationRecord,
    NotificationRequest,
    RecordState,
    fire_date,
    utcnow,
)

logger = logging.getLogger(__name__)

# Platform minimum for repeating time-interval triggers
MIN_REPEAT_INTERVAL = 60.0


class StoreError(Exception):
    """Raised by a store when it rejects or fails an operation."""


class NotificationStore(Protocol):
    async def get_authorization_status(self) -> AuthorizationStatus: ...
    async def request_authorization(self, options: Set[AuthorizationOption]) -> bool: ...
    async def submit(self, request: NotificationRequest) -> None: ...
    def remove_pending(self, ids: Iterable[str]) -> None: ...
    def remove_delivered(self, ids: Iterable[str]) -> None: ...
    def remove_all_pending(self) -> None: ...
    def remove_all_delivered(self) -> None: ...
    async def list_pending(self) -> List[NotificationRecord]: ...
    async def list_delivered(self) -> List[NotificationRecord]: ...
    def set_badge_count(self, count: int) -> None: ...


class InMemoryNotificationStore:
    """Process-local store used by default and for tests.

    Immediate requests are delivered on submission; timed requests wait in the
    pending set until ``deliver_due`` is called with a time at or past their
    fire date.
    """

    def __init__(
        self,
        authorization_status: AuthorizationStatus = AuthorizationStatus.not_determined,
        grant_on_request: bool = True,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.authorization_status = authorization_status
        self.grant_on_request = grant_on_request
        self.fail_submissions = False
        self.badge_count = 0
        self.requested_options: Set[AuthorizationOption] = set()
        self._clock = clock or utcnow
        # Insertion order is submission order / delivery order
        self._pending: Dict[str, NotificationRecord] = {}
        self._delivered: Dict[str, NotificationRecord] = {}

    async def get_authorization_status(self) -> AuthorizationStatus:
        return self.authorization_status

    async def request_authorization(self, options: Set[AuthorizationOption]) -> bool:
        self.requested_options = set(options)
        if self.authorization_status == AuthorizationStatus.not_determined:
            self.authorization_status = (
                AuthorizationStatus.authorized
                if self.grant_on_request
                else AuthorizationStatus.denied
            )
        return self.authorization_status == AuthorizationStatus.authorized

    async def submit(self, request: NotificationRequest) -> None:
        if self.fail_submissions:
            raise StoreError("store rejected the request")
        trigger = request.trigger
        if (
            isinstance(trigger, AfterTrigger)
            and trigger.repeats
            and trigger.seconds < MIN_REPEAT_INTERVAL
        ):
            raise StoreError(
                f"repeating interval must be at least {MIN_REPEAT_INTERVAL:g} seconds"
            )

        now = self._clock()
        when = fire_date(trigger, now)
        # Same identifier replaces the earlier pending request
        self._pending.pop(request.id, None)
        if when is None:
            self._deliver(
                NotificationRecord(
                    id=request.id,
                    content=request.content,
                    trigger=trigger,
                    state=RecordState.pending,
                ),
                now,
            )
            return
        self._pending[request.id] = NotificationRecord(
            id=request.id,
            content=request.content,
            trigger=trigger,
            state=RecordState.pending,
            scheduled_for=when,
        )

    def _deliver(self, record: NotificationRecord, now: datetime) -> None:
        self._delivered.pop(record.id, None)
        self._delivered[record.id] = record.model_copy(
            update={"state": RecordState.delivered, "delivered_at": now}
        )

    def deliver_due(self, now: Optional[datetime] = None) -> List[str]:
        """Deliver every pending request whose fire date has passed."""
        now = now or self._clock()
        fired: List[str] = []
        for record in list(self._pending.values()):
            if record.scheduled_for is None or record.scheduled_for > now:
                continue
            self._deliver(record, now)
            fired.append(record.id)
            trigger = record.trigger
            if isinstance(trigger, AfterTrigger) and trigger.repeats:
                self._pending[record.id] = record.model_copy(
                    update={
                        "scheduled_for": record.scheduled_for
                        + timedelta(seconds=trigger.seconds)
                    }
                )
            else:
                # Calendar triggers match down to the year, so they never recur
                del self._pending[record.id]
        if fired:
            logger.debug("delivered %d due notifications", len(fired))
        return fired

    def remove_pending(self, ids: Iterable[str]) -> None:
        for nid in ids:
            self._pending.pop(nid, None)

    def remove_delivered(self, ids: Iterable[str]) -> None:
        for nid in ids:
            self._delivered.pop(nid, None)

    def remove_all_pending(self) -> None:
        self._pending.clear()

    def remove_all_delivered(self) -> None:
        self._delivered.clear()

    async def list_pending(self) -> List[NotificationRecord]:
        return list(self._pending.values())

    async def list_delivered(self) -> List[NotificationRecord]:
        return list(self._delivered.values())

    def set_badge_count(self, count: int) -> None:
        self.badge_count = count
