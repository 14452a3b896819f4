from enum import Enum


class AuditCategory(str, Enum):
    NOTIFICATIONS = "notifications"
    PERMISSIONS = "permissions"
    BADGE = "badge"
    ACTIONS = "actions"
