"""
HTTP endpoints for the notification command surface.
"""

from .notifications import notifications_router, configure_notifications_api
from .dependencies import require_token

__all__ = [
    "notifications_router",
    "configure_notifications_api",
    "require_token",
]
