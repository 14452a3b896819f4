"""
Notification lifecycle.

This package provides:
- Content and trigger descriptors
- The notification store protocol and an in-memory store
- Remote image attachment resolution
- The lifecycle manager mirroring pending and delivered notifications
- Handling of action responses on delivered notifications
"""

from .models import (
    AfterTrigger,
    AtTrigger,
    ContentDescriptor,
    ImmediateTrigger,
    InterruptionLevel,
    NotificationCategory,
    NotificationRecord,
    NotificationSound,
)
from .store import InMemoryNotificationStore, NotificationStore, StoreError
from .attachments import AttachmentResolver
from .manager import NotificationManager
from .actions import NotificationResponseHandler

__all__ = [
    "AfterTrigger",
    "AtTrigger",
    "ContentDescriptor",
    "ImmediateTrigger",
    "InterruptionLevel",
    "NotificationCategory",
    "NotificationRecord",
    "NotificationSound",
    "InMemoryNotificationStore",
    "NotificationStore",
    "StoreError",
    "AttachmentResolver",
    "NotificationManager",
    "NotificationResponseHandler",
]
