"""
Audit trail for notification lifecycle events.

Events are written as single JSON lines through the logger and kept in a
bounded in-memory buffer for listing. Only identifiers, counts and enum
values are recorded; notification text never is.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
import json
import logging

from .models import AuditCategory


class AuditLevel(str, Enum):
    MINIMAL = "minimal"
    STANDARD = "standard"
    DETAILED = "detailed"


logger = logging.getLogger(__name__)

_TEXT_KEYS = {"title", "body", "subtitle", "text", "reply"}


class AuditService:
    def __init__(self, buffer_limit: int = 1000) -> None:
        self.buffer_limit = buffer_limit
        self._events: List[Dict[str, Any]] = []

    @staticmethod
    def _scrub(details: Dict[str, Any]) -> Dict[str, Any]:
        out: Dict[str, Any] = {}
        for k, v in details.items():
            if str(k).lower() in _TEXT_KEYS:
                out[k] = "[REDACTED]"
            elif isinstance(v, Enum):
                out[k] = v.value
            elif isinstance(v, (list, tuple)):
                out[k] = [str(x) for x in v[:50]]  # cap length
            elif isinstance(v, (str, int, float, bool)) or v is None:
                out[k] = v
            else:
                out[k] = str(v)
        return out

    async def log_event(
        self,
        event_type: str,
        category: Any,
        action: str,
        result: str,
        description: str,
        resource_id: Optional[str] = None,
        level: AuditLevel = AuditLevel.STANDARD,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        category_str = (
            category.value if isinstance(category, AuditCategory) else str(category)
        )
        payload = {
            "type": event_type,
            "category": category_str,
            "action": action,
            "result": result,
            "level": level.value,
            "resource_id": resource_id,
            "description": description,
            "details": self._scrub(details or {}),
            "ts": datetime.now(tz=timezone.utc).isoformat(),
        }
        logger.info("audit_event=%s", json.dumps(payload, separators=(",", ":")))
        self._events.append(payload)
        if len(self._events) > self.buffer_limit:
            del self._events[: len(self._events) - self.buffer_limit]

    async def list_events(self, limit: int = 100, offset: int = 0) -> dict:
        items = list(reversed(self._events))
        return {
            "items": items[offset : offset + limit],
            "total": len(self._events),
            "limit": limit,
            "offset": offset,
        }


_AUDIT_SERVICE: Optional[AuditService] = None


async def get_audit_service() -> AuditService:
    global _AUDIT_SERVICE
    if _AUDIT_SERVICE is None:
        _AUDIT_SERVICE = AuditService()
    return _AUDIT_SERVICE
