from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from dotenv import load_dotenv

from shared.protocol.constants import DEFAULT_CONNECT_TIMEOUT_MS
from shared.protocol.errors import ConfigError

ENV_PREFIX = "PIPECHAT_"


@dataclass
class Settings:
    """Runtime knobs; the defaults reproduce the stock two-instance behaviour."""

    channel_dir: Path = Path(tempfile.gettempdir())
    connect_timeout_ms: int = DEFAULT_CONNECT_TIMEOUT_MS
    drain_timeout: float = 1.0  # seconds to wait for the peer to consume a frame
    poll_interval: float = 0.01
    log_level: str = "WARNING"
    log_file: str = ""

    @property
    def connect_timeout(self) -> float:
        return self.connect_timeout_ms / 1000.0

    def channel_path(self, name: str) -> Path:
        return self.channel_dir / name


SETTINGS = Settings()


def load_settings(env_path: str = ".env") -> Settings:
    """Load settings from .env/environment (PIPECHAT_* variables)."""
    if Path(env_path).exists():
        load_dotenv(env_path)
    for item in fields(Settings):
        raw = os.getenv(f"{ENV_PREFIX}{item.name.upper()}")
        if raw is None:
            continue
        current = getattr(SETTINGS, item.name)
        setattr(SETTINGS, item.name, _coerce_type(raw, type(current)))
    _validate_settings(SETTINGS)
    return SETTINGS


def _coerce_type(value: Any, target_type: type) -> Any:
    if isinstance(value, target_type):
        return value
    try:
        if issubclass(target_type, Path):
            return Path(value)
        return target_type(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Cannot convert {value!r} to {target_type.__name__}") from exc


def _validate_settings(settings: Settings) -> None:
    if settings.connect_timeout_ms <= 0:
        raise ConfigError("connect_timeout_ms must be positive")
    if settings.drain_timeout <= 0:
        raise ConfigError("drain_timeout must be positive")
    if settings.poll_interval < 0:
        raise ConfigError("poll_interval must not be negative")
    if settings.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        raise ConfigError(f"unknown log_level {settings.log_level!r}")
    settings.log_level = settings.log_level.upper()
    if not settings.channel_dir.is_dir():
        raise ConfigError(f"channel_dir {settings.channel_dir} is not a directory")


__all__ = ["Settings", "SETTINGS", "ENV_PREFIX", "load_settings"]
