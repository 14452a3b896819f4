from __future__ import annotations

from typing import Dict, Optional

from fastapi import APIRouter, Depends, HTTPException

from .dependencies import require_token
from .models import (
    ActionRequest,
    BadgeRequest,
    ScheduleDelayedRequest,
    ScheduleRequest,
    SendRequest,
)
from ..commands import (
    ActionNotAvailable,
    FailedToSchedule,
    FailedToSend,
    InvalidDate,
    NotAuthorized,
    NotFound,
    NotificationCommands,
    NotificationError,
)


notifications_router = APIRouter(
    prefix="/notifications",
    tags=["notifications"],
    dependencies=[Depends(require_token)],
)

_commands: Optional[NotificationCommands] = None

_STATUS_CODES = {
    NotAuthorized: 403,
    InvalidDate: 422,
    FailedToSend: 502,
    FailedToSchedule: 502,
    NotFound: 404,
    ActionNotAvailable: 422,
}


def configure_notifications_api(*, commands: Optional[NotificationCommands]) -> None:
    global _commands
    _commands = commands


def _resolve_commands() -> NotificationCommands:
    if _commands is None:
        raise HTTPException(status_code=503, detail="Notifications service unavailable")
    return _commands


def _http_error(e: NotificationError) -> HTTPException:
    code = _STATUS_CODES.get(type(e), 400)
    return HTTPException(status_code=code, detail=str(e))


# Badge routes come first so "/badge" is not taken for a notification id
@notifications_router.put("/badge")
async def set_badge(req: BadgeRequest) -> Dict:
    try:
        await _resolve_commands().set_badge(req.badge_number)
    except NotificationError as e:
        raise _http_error(e) from e
    return {"ok": True}


@notifications_router.delete("/badge")
async def clear_badge() -> Dict:
    await _resolve_commands().clear_badge()
    return {"ok": True}


@notifications_router.get("/permission")
async def get_permission() -> Dict:
    cmds = _resolve_commands()
    await cmds.manager.check_permission_status()
    return {"authorized": cmds.manager.authorized}


@notifications_router.post("/permission")
async def request_permission() -> Dict:
    cmds = _resolve_commands()
    await cmds.manager.request_permission()
    return {"authorized": cmds.manager.authorized}


@notifications_router.get("/pending/count")
async def pending_count() -> Dict:
    return {"count": await _resolve_commands().get_pending_count()}


@notifications_router.get("")
async def list_notifications() -> Dict:
    return await _resolve_commands().list_notifications()


@notifications_router.post("/send")
async def send_notification(req: SendRequest) -> Dict:
    try:
        ok = await _resolve_commands().send(**req.model_dump())
    except NotificationError as e:
        raise _http_error(e) from e
    return {"ok": ok}


@notifications_router.post("/schedule")
async def schedule_notification(req: ScheduleRequest) -> Dict:
    try:
        nid = await _resolve_commands().schedule(**req.model_dump())
    except NotificationError as e:
        raise _http_error(e) from e
    return {"notification_id": nid}


@notifications_router.post("/schedule-delayed")
async def schedule_delayed(req: ScheduleDelayedRequest) -> Dict:
    try:
        nid = await _resolve_commands().schedule_delayed(**req.model_dump())
    except NotificationError as e:
        raise _http_error(e) from e
    return {"notification_id": nid}


@notifications_router.delete("")
async def cancel_all() -> Dict:
    return {"cancelled": await _resolve_commands().cancel_all()}


@notifications_router.delete("/threads/{thread_id}")
async def cancel_thread(thread_id: str) -> Dict:
    return {"cancelled": await _resolve_commands().cancel_by_thread(thread_id)}


@notifications_router.delete("/{notification_id}")
async def cancel_notification(notification_id: str) -> Dict:
    await _resolve_commands().cancel(notification_id)
    return {"ok": True}


@notifications_router.post("/{notification_id}/actions/{action}")
async def respond(
    notification_id: str, action: str, req: Optional[ActionRequest] = None
) -> Dict:
    try:
        new_id = await _resolve_commands().respond(
            notification_id, action, text=req.text if req else None
        )
    except NotificationError as e:
        raise _http_error(e) from e
    return {"ok": True, "notification_id": new_id}
