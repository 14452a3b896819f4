from __future__ import annotations


class NotificationError(Exception):
    """Base class for outcomes the command surface reports to its caller."""

    message = "Notification error."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)


class NotAuthorized(NotificationError):
    message = (
        "Notification permission not granted. "
        "Please enable notifications in Settings."
    )


class FailedToSend(NotificationError):
    message = "Failed to send notification."


class FailedToSchedule(NotificationError):
    message = "Failed to schedule notification."


class InvalidDate(NotificationError):
    message = "The scheduled date must be in the future."


class NotFound(NotificationError):
    message = "Notification not found."


class ActionNotAvailable(NotificationError):
    message = "This action is not available for the notification."
