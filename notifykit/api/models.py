from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from ..notifications.models import (
    InterruptionLevel,
    NotificationCategory,
    NotificationSound,
)


class ContentFields(BaseModel):
    title: str
    body: str
    subtitle: Optional[str] = None
    badge: Optional[int] = None
    sound: NotificationSound = NotificationSound.default
    image_url: Optional[str] = None
    thread_id: Optional[str] = None
    category: NotificationCategory = NotificationCategory.basic
    urgency: InterruptionLevel = InterruptionLevel.active


class SendRequest(ContentFields):
    relevance_score: float = 0.5


class ScheduleRequest(ContentFields):
    scheduled_date: Optional[datetime] = None
    delay_seconds: Optional[int] = None
    repeats: bool = False


class ScheduleDelayedRequest(BaseModel):
    title: str
    body: str
    delay_minutes: int = Field(default=5, ge=0)
    sound: NotificationSound = NotificationSound.default


class BadgeRequest(BaseModel):
    badge_number: int


class ActionRequest(BaseModel):
    text: Optional[str] = None
