"""
Command surface for automation callers.

Each verb is a thin call into NotificationManager that checks authorization
where required and turns manager results into NotificationError subclasses.
"""

from .errors import (
    NotificationError,
    NotAuthorized,
    FailedToSend,
    FailedToSchedule,
    InvalidDate,
    NotFound,
    ActionNotAvailable,
)
from .service import NotificationCommands

__all__ = [
    "NotificationCommands",
    "NotificationError",
    "NotAuthorized",
    "FailedToSend",
    "FailedToSchedule",
    "InvalidDate",
    "NotFound",
    "ActionNotAvailable",
]
