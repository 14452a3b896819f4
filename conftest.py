from datetime import datetime, timedelta, timezone

import httpx
import pytest

from notifykit.audit.service import AuditService
from notifykit.config import Settings
from notifykit.notifications.attachments import AttachmentResolver
from notifykit.notifications.manager import NotificationManager
from notifykit.notifications.models import AuthorizationStatus
from notifykit.notifications.store import InMemoryNotificationStore

NOW = datetime(2026, 1, 15, 9, 30, tzinfo=timezone.utc)

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


def _image_server(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/cat.png":
        return httpx.Response(200, content=PNG_BYTES, headers={"content-type": "image/png"})
    if path == "/photo.webp":
        return httpx.Response(200, content=b"RIFF0000WEBP")
    if path == "/plain":
        return httpx.Response(200, content=b"\xff\xd8\xff\xe0")
    if path == "/jpeg-with-params":
        return httpx.Response(
            200,
            content=b"\xff\xd8\xff\xe0",
            headers={"content-type": "image/jpeg; charset=binary"},
        )
    if path == "/notes.txt":
        return httpx.Response(200, content=b"hello", headers={"content-type": "text/plain"})
    if path == "/big.png":
        return httpx.Response(200, content=b"x" * 2048, headers={"content-type": "image/png"})
    if path == "/down.png":
        raise httpx.ConnectError("connection refused", request=request)
    return httpx.Response(404, text="not found")


@pytest.fixture
def clock():
    return FrozenClock(NOW)


@pytest.fixture
def store(clock):
    return InMemoryNotificationStore(
        authorization_status=AuthorizationStatus.authorized, clock=clock
    )


@pytest.fixture
def attachment_dir(tmp_path):
    return tmp_path / "attachments"


@pytest.fixture
def resolver(attachment_dir):
    return AttachmentResolver(
        str(attachment_dir),
        timeout=2.0,
        max_bytes=1024,
        transport=httpx.MockTransport(_image_server),
    )


@pytest.fixture
def manager(store, resolver, attachment_dir, clock):
    return NotificationManager(
        store,
        attachment_resolver=resolver,
        audit_service=AuditService(),
        settings=Settings(attachment_dir=str(attachment_dir)),
        clock=clock,
    )
