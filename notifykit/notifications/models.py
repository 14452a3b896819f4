"""
Notification domain models.

Content and trigger descriptors are immutable values; records mirror what the
notification store currently holds.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union
from datetime import datetime, timedelta, timezone
from pydantic import BaseModel, ConfigDict, Field, field_validator

# Used when the caller gives no usable relevance score
DEFAULT_RELEVANCE = 0.5


class NotificationSound(str, Enum):
    default = "default"
    none = "none"
    tritone = "tritone"
    chime = "chime"
    glass = "glass"
    horn = "horn"
    bell = "bell"
    electronic = "electronic"

    @property
    def display_name(self) -> str:
        return _SOUND_NAMES[self]

    @property
    def sound_file(self) -> Optional[str]:
        """Platform sound resource; None plays nothing, "default" the system sound."""
        if self is NotificationSound.none:
            return None
        if self is NotificationSound.default:
            return "default"
        if self is NotificationSound.tritone:
            return "tri-tone.caf"
        return f"{self.value}.caf"


_SOUND_NAMES = {
    NotificationSound.default: "Default",
    NotificationSound.none: "None (Silent)",
    NotificationSound.tritone: "Tri-tone",
    NotificationSound.chime: "Chime",
    NotificationSound.glass: "Glass",
    NotificationSound.horn: "Horn",
    NotificationSound.bell: "Bell",
    NotificationSound.electronic: "Electronic",
}


class InterruptionLevel(str, Enum):
    passive = "passive"
    active = "active"
    time_sensitive = "timeSensitive"
    critical = "critical"

    @property
    def display_name(self) -> str:
        return _LEVEL_TEXT[self][0]

    @property
    def description(self) -> str:
        return _LEVEL_TEXT[self][1]


_LEVEL_TEXT = {
    InterruptionLevel.passive: (
        "Passive (Silent)",
        "Delivered quietly, no sound or vibration",
    ),
    InterruptionLevel.active: ("Active (Normal)", "Normal notification with sound"),
    InterruptionLevel.time_sensitive: ("Time Sensitive", "Breaks through Focus modes"),
    InterruptionLevel.critical: (
        "Critical",
        "Bypasses all settings (requires entitlement)",
    ),
}


class NotificationAction(str, Enum):
    reply = "REPLY_ACTION"
    open = "OPEN_ACTION"
    dismiss = "DISMISS_ACTION"
    mark_read = "MARK_READ_ACTION"
    snooze = "SNOOZE_ACTION"
    # Tapping the notification body / swiping it away
    default = "DEFAULT_ACTION"
    dismissed = "DISMISSED_ACTION"


class NotificationCategory(str, Enum):
    basic = "BASIC"
    interactive = "INTERACTIVE"
    quick_actions = "QUICK_ACTIONS"
    reminder = "REMINDER"

    @property
    def actions(self) -> Tuple[NotificationAction, ...]:
        return _CATEGORY_ACTIONS[self]

    @property
    def custom_dismiss(self) -> bool:
        return self is NotificationCategory.interactive


_CATEGORY_ACTIONS = {
    NotificationCategory.basic: (NotificationAction.open, NotificationAction.dismiss),
    NotificationCategory.interactive: (
        NotificationAction.reply,
        NotificationAction.open,
        NotificationAction.dismiss,
    ),
    NotificationCategory.quick_actions: (
        NotificationAction.mark_read,
        NotificationAction.snooze,
        NotificationAction.dismiss,
    ),
    NotificationCategory.reminder: (
        NotificationAction.snooze,
        NotificationAction.mark_read,
        NotificationAction.dismiss,
    ),
}


class AuthorizationStatus(str, Enum):
    not_determined = "not_determined"
    denied = "denied"
    authorized = "authorized"
    provisional = "provisional"


class AuthorizationOption(str, Enum):
    alert = "alert"
    badge = "badge"
    sound = "sound"
    critical_alert = "critical_alert"


class RecordState(str, Enum):
    pending = "pending"
    delivered = "delivered"


class NotificationMetadata(BaseModel):
    """System-owned creation timestamp plus caller-owned extension keys."""

    model_config = ConfigDict(frozen=True)

    created_at: datetime
    extra: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("extra")
    @classmethod
    def _drop_reserved(cls, v: Dict[str, Any]) -> Dict[str, Any]:
        return {k: val for k, val in v.items() if k not in ("createdAt", "created_at")}


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str
    path: str
    extension: str


class ContentDescriptor(BaseModel):
    model_config = ConfigDict(frozen=True)

    title: str
    body: str
    subtitle: Optional[str] = None
    badge: Optional[int] = None
    sound: NotificationSound = NotificationSound.default
    image_url: Optional[str] = None
    thread_id: Optional[str] = None
    category: NotificationCategory = NotificationCategory.basic
    urgency: InterruptionLevel = InterruptionLevel.active
    relevance_score: float = DEFAULT_RELEVANCE
    metadata: NotificationMetadata
    attachments: List[Attachment] = Field(default_factory=list)

    @field_validator("subtitle", "thread_id", "image_url", mode="before")
    @classmethod
    def _empty_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and v == "":
            return None
        return v

    @field_validator("relevance_score")
    @classmethod
    def _clamp_relevance(cls, v: float) -> float:
        return clamp_relevance(v)


def clamp_relevance(score: float) -> float:
    score = float(score)
    if math.isnan(score):
        return DEFAULT_RELEVANCE
    return min(max(score, 0.0), 1.0)


class ImmediateTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["immediate"] = "immediate"


class AtTrigger(BaseModel):
    """Calendar trigger matching year..second of the target date."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["at"] = "at"
    date: datetime
    repeats: bool = False

    def date_components(self) -> Dict[str, int]:
        d = self.date
        return {
            "year": d.year,
            "month": d.month,
            "day": d.day,
            "hour": d.hour,
            "minute": d.minute,
            "second": d.second,
        }


class AfterTrigger(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["after"] = "after"
    seconds: float = Field(gt=0)
    repeats: bool = False


Trigger = Annotated[
    Union[ImmediateTrigger, AtTrigger, AfterTrigger], Field(discriminator="kind")
]


class InvalidTriggerDate(ValueError):
    pass


def utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def resolve_trigger(
    date: Optional[datetime],
    delay_seconds: Optional[float],
    repeats: bool,
    now: datetime,
    default_delay: float = 60.0,
) -> Union[AtTrigger, AfterTrigger]:
    """Pick the trigger for a scheduled request.

    An explicit date wins and must be strictly after ``now``; a non-positive
    delay counts as not supplied.
    """
    if date is not None:
        if date.tzinfo is None:
            date = date.replace(tzinfo=timezone.utc)
        if date <= now:
            raise InvalidTriggerDate(f"trigger date {date.isoformat()} is not in the future")
        return AtTrigger(date=date, repeats=repeats)
    if delay_seconds is not None and delay_seconds > 0:
        return AfterTrigger(seconds=float(delay_seconds), repeats=repeats)
    return AfterTrigger(seconds=float(default_delay), repeats=repeats)


def fire_date(trigger: Any, submitted_at: datetime) -> Optional[datetime]:
    """When a trigger first fires for a request submitted at ``submitted_at``."""
    if isinstance(trigger, ImmediateTrigger):
        return None
    if isinstance(trigger, AtTrigger):
        return trigger.date
    if isinstance(trigger, AfterTrigger):
        return submitted_at + timedelta(seconds=trigger.seconds)
    raise TypeError(f"unsupported trigger: {trigger!r}")


class NotificationRequest(BaseModel):
    """What the manager submits to the store."""

    model_config = ConfigDict(frozen=True)

    id: str
    content: ContentDescriptor
    trigger: Trigger = Field(default_factory=ImmediateTrigger)


class NotificationRecord(BaseModel):
    id: str
    content: ContentDescriptor
    trigger: Trigger
    state: RecordState
    scheduled_for: Optional[datetime] = None
    delivered_at: Optional[datetime] = None
