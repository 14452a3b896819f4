from fastapi import FastAPI
import logging
from datetime import datetime
from typing import Optional

from .config import get_settings
from .audit.service import get_audit_service
from .monitoring.metrics import metrics_router
from .notifications.attachments import AttachmentResolver
from .notifications.manager import NotificationManager
from .notifications.store import InMemoryNotificationStore
from .commands import NotificationCommands
from .api.notifications import notifications_router, configure_notifications_api


class AddTraceIdFilter(logging.Filter):
    def filter(self, record):
        if not hasattr(record, "trace_id"):
            record.trace_id = "system"
        return True


settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s - %(name)s - %(levelname)s - trace_id=%(trace_id)s - %(message)s",
)
for _handler in logging.getLogger().handlers:
    _handler.addFilter(AddTraceIdFilter())
logger = logging.getLogger("notifykit")

app = FastAPI(title="NotifyKit", version="1.0.0")

app.include_router(metrics_router)
app.include_router(notifications_router)

# Resolved on startup; one manager for the lifetime of the process
notification_manager: Optional[NotificationManager] = None


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": "1.0.0",
    }


@app.on_event("startup")
async def startup_event():
    global notification_manager
    logger.info("NotifyKit starting")
    if notification_manager is None:
        notification_manager = NotificationManager(
            InMemoryNotificationStore(),
            attachment_resolver=AttachmentResolver(
                settings.attachment_dir,
                timeout=settings.attachment_timeout,
                max_bytes=settings.attachment_max_bytes,
            ),
            audit_service=await get_audit_service(),
            settings=settings,
        )
    await notification_manager.start()
    configure_notifications_api(commands=NotificationCommands(notification_manager))
    logger.info("Notification services started")


@app.on_event("shutdown")
async def shutdown_event():
    logger.info("NotifyKit shutting down")
    if notification_manager is not None:
        await notification_manager.stop()
    configure_notifications_api(commands=None)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
