from __future__ import annotations

import os
import json
import tempfile
from dataclasses import dataclass
from typing import Any, Mapping, Optional, Protocol


class ConfigProvider(Protocol):
    def get(self, key: str, default: Any = None) -> Any: ...
    def get_int(self, key: str, default: int = 0) -> int: ...
    def get_float(self, key: str, default: float = 0.0) -> float: ...


class EnvConfigProvider:
    def get(self, key: str, default: Any = None) -> Any:
        v = os.getenv(key)
        if v is None:
            return default
        try:
            return json.loads(v)
        except Exception:  # noqa: BLE001
            return v

    def get_int(self, key: str, default: int = 0) -> int:
        try:
            return int(os.getenv(key, ""))
        except ValueError:
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        try:
            return float(os.getenv(key, ""))
        except ValueError:
            return default


class InMemoryConfigProvider:
    def __init__(self, data: Optional[Mapping[str, Any]] = None) -> None:
        self.data = dict(data or {})

    def get(self, key: str, default: Any = None) -> Any:
        return self.data.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        try:
            return int(self.data[key])
        except (KeyError, TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        try:
            return float(self.data[key])
        except (KeyError, TypeError, ValueError):
            return default


class HybridConfigProvider:
    """Primary->fallback chain; values set on the primary win."""

    def __init__(
        self,
        primary: Optional[ConfigProvider] = None,
        fallback: Optional[ConfigProvider] = None,
    ) -> None:
        self.primary = primary or InMemoryConfigProvider()
        self.fallback = fallback or EnvConfigProvider()

    def get(self, key: str, default: Any = None) -> Any:
        sentinel = object()
        v = self.primary.get(key, sentinel)
        if v is sentinel:
            v = self.fallback.get(key, default)
        return v

    def get_int(self, key: str, default: int = 0) -> int:
        if self.primary.get(key, None) is None:
            return self.fallback.get_int(key, default)
        return self.primary.get_int(key, default)

    def get_float(self, key: str, default: float = 0.0) -> float:
        if self.primary.get(key, None) is None:
            return self.fallback.get_float(key, default)
        return self.primary.get_float(key, default)


@dataclass(frozen=True)
class Settings:
    attachment_timeout: float = 10.0
    attachment_max_bytes: int = 10 * 1024 * 1024
    attachment_dir: str = os.path.join(tempfile.gettempdir(), "notifykit-attachments")
    default_delay_seconds: float = 60.0
    snooze_seconds: float = 300.0
    api_token: Optional[str] = None
    log_level: str = "INFO"

    @classmethod
    def from_provider(cls, provider: Optional[ConfigProvider] = None) -> "Settings":
        p = provider or HybridConfigProvider()
        base = cls()
        token = p.get("NOTIFYKIT_API_TOKEN", None)
        return cls(
            attachment_timeout=p.get_float(
                "NOTIFYKIT_ATTACHMENT_TIMEOUT", base.attachment_timeout
            ),
            attachment_max_bytes=p.get_int(
                "NOTIFYKIT_ATTACHMENT_MAX_BYTES", base.attachment_max_bytes
            ),
            attachment_dir=str(p.get("NOTIFYKIT_ATTACHMENT_DIR", base.attachment_dir)),
            default_delay_seconds=p.get_float(
                "NOTIFYKIT_DEFAULT_DELAY_SECONDS", base.default_delay_seconds
            ),
            snooze_seconds=p.get_float("NOTIFYKIT_SNOOZE_SECONDS", base.snooze_seconds),
            api_token=str(token) if token else None,
            log_level=str(p.get("LOG_LEVEL", base.log_level)).upper(),
        )


_SETTINGS: Optional[Settings] = None


def get_settings() -> Settings:
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = Settings.from_provider()
    return _SETTINGS
