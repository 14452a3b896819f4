from prometheus_client import CollectorRegistry, Histogram, Gauge, Counter
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter
from fastapi.responses import Response

registry = CollectorRegistry()

notifications_submitted_total = Counter(
    "notifykit_notifications_submitted_total",
    "Notification requests submitted to the store",
    ["kind", "outcome"],
    registry=registry,
)

notifications_cancelled_total = Counter(
    "notifykit_notifications_cancelled_total",
    "Cancellation requests issued to the store",
    ["scope"],
    registry=registry,
)

attachment_resolutions_total = Counter(
    "notifykit_attachment_resolutions_total",
    "Attachment resolution attempts by outcome",
    ["outcome"],
    registry=registry,
)

notifications_send_latency = Histogram(
    "notifykit_notifications_send_latency_seconds",
    "Latency from content build to refreshed lists for a submission",
    registry=registry,
)

pending_notifications = Gauge(
    "notifykit_pending_notifications",
    "Pending notifications seen by the last refresh",
    registry=registry,
)

delivered_notifications = Gauge(
    "notifykit_delivered_notifications",
    "Delivered notifications seen by the last refresh",
    registry=registry,
)

metrics_router = APIRouter()


@metrics_router.get("/metrics")
async def get_metrics():
    return Response(generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
