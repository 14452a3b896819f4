"""
Remote image attachments.

Fetches an image once, stages it as a local file and wraps it as an
attachment. Any failure degrades to "no attachment"; nothing raises past
``AttachmentResolver.resolve``.
"""

from __future__ import annotations

import logging
import posixpath
from pathlib import Path
from typing import Optional, Tuple
from uuid import uuid4

import aiofiles
import aiofiles.os
import httpx

from .models import Attachment
from ..monitoring.metrics import attachment_resolutions_total

logger = logging.getLogger(__name__)

MIME_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
}

SUPPORTED_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp", "heic"}


class AttachmentError(Exception):
    """A staged file could not be wrapped as an attachment."""


def extension_for(content_type: Optional[str], url: httpx.URL) -> str:
    """Declared content type first, then the URL's own extension, then jpg."""
    if content_type:
        mime = content_type.split(";", 1)[0].strip().lower()
        if mime in MIME_EXTENSIONS:
            return MIME_EXTENSIONS[mime]
    ext = posixpath.splitext(url.path)[1].lstrip(".").lower()
    return ext or "jpg"


async def create_attachment(path: Path) -> Attachment:
    if not await aiofiles.os.path.isfile(path):
        raise AttachmentError(f"attachment file missing: {path}")
    ext = path.suffix.lstrip(".").lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise AttachmentError(f"unsupported attachment type: {ext or '<none>'}")
    if (await aiofiles.os.stat(path)).st_size == 0:
        raise AttachmentError("attachment file is empty")
    return Attachment(identifier=str(uuid4()), path=str(path), extension=ext)


class AttachmentResolver:
    """Single bounded fetch per URL; no retries."""

    def __init__(
        self,
        directory: str,
        timeout: float = 10.0,
        max_bytes: int = 10 * 1024 * 1024,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.directory = Path(directory)
        self.timeout = timeout
        self.max_bytes = max_bytes
        self._transport = transport
        self._http_client: Optional[httpx.AsyncClient] = None

    async def start(self) -> httpx.AsyncClient:
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                follow_redirects=True,
                transport=self._transport,
            )
            logger.info("Attachment resolver started")
        return self._http_client

    async def stop(self) -> None:
        if self._http_client:
            await self._http_client.aclose()
            self._http_client = None
        logger.info("Attachment resolver stopped")

    async def resolve(self, raw_url: str) -> Optional[Attachment]:
        try:
            url = httpx.URL(raw_url)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            logger.warning("attachment url unparseable: %s", e)
            return self._outcome(None, "invalid_url")
        if url.scheme not in ("http", "https") or not url.host:
            logger.warning("attachment url unsupported: %s", raw_url)
            return self._outcome(None, "invalid_url")

        client = await self.start()
        try:
            data, content_type, outcome = await self._fetch(client, url)
        except httpx.HTTPError as e:
            logger.warning("attachment fetch failed url=%s error=%s", url, e)
            return self._outcome(None, "fetch_failed")
        if data is None:
            return self._outcome(None, outcome)

        ext = extension_for(content_type, url)
        path = self.directory / f"{uuid4()}.{ext}"
        try:
            await aiofiles.os.makedirs(self.directory, exist_ok=True)
            async with aiofiles.open(path, "wb") as f:
                await f.write(data)
            attachment = await create_attachment(path)
        except (OSError, AttachmentError) as e:
            logger.warning("failed to create attachment: %s", e)
            try:
                await aiofiles.os.remove(path)
            except OSError:
                pass
            return self._outcome(None, "stage_failed")
        return self._outcome(attachment, "attached")

    async def _fetch(
        self, client: httpx.AsyncClient, url: httpx.URL
    ) -> Tuple[Optional[bytes], Optional[str], str]:
        """Read the body without holding more than ``max_bytes`` of it."""
        async with client.stream("GET", url) as response:
            if response.status_code != 200:
                logger.info(
                    "attachment fetch returned status=%s url=%s",
                    response.status_code,
                    url,
                )
                return None, None, "bad_status"
            declared = response.headers.get("content-length", "")
            if declared.isdigit() and int(declared) > self.max_bytes:
                logger.warning(
                    "attachment too large bytes=%s limit=%d", declared, self.max_bytes
                )
                return None, None, "too_large"
            body = bytearray()
            async for chunk in response.aiter_bytes():
                body.extend(chunk)
                if len(body) > self.max_bytes:
                    logger.warning(
                        "attachment exceeded limit=%d url=%s", self.max_bytes, url
                    )
                    return None, None, "too_large"
            return bytes(body), response.headers.get("content-type"), "fetched"

    @staticmethod
    def _outcome(attachment: Optional[Attachment], outcome: str) -> Optional[Attachment]:
        attachment_resolutions_total.labels(outcome=outcome).inc()
        return attachment
