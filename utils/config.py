"""Configuration management utilities for the preset browser.

Provides:
- AppConfig: application settings loaded from environment variables
- Platform defaults for the Komplete Kontrol database and the Native
  Browser Preview Library manifest
"""

import os
import sys
from pathlib import Path
from typing import Optional

_KK_DB_RELATIVE = Path("Native Instruments/Komplete Kontrol/Browser Data/komplete.db3")
_PREVIEW_LIBRARY_NAME = "Native Browser Preview Library.json"

DEFAULT_PAGE_SIZE = 50
DEFAULT_READY_POLL_MS = 100


def local_data_dir() -> Path:
    """Return the per-user local application data directory for this platform."""
    if sys.platform.startswith("win"):
        return Path(os.getenv("LOCALAPPDATA", Path.home() / "AppData" / "Local"))
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support"
    return Path(os.getenv("XDG_DATA_HOME", Path.home() / ".local" / "share"))


def default_db_path() -> Path:
    """Return the default location of komplete.db3."""
    return local_data_dir() / _KK_DB_RELATIVE


def default_preview_library_path() -> Path:
    """Return the default location of the preview library manifest."""
    if sys.platform == "darwin":
        root = Path("/Users/Shared/Native Instruments/installed_products")
    else:
        root = Path("C:/Users/Public/Documents/Native Instruments/installed_products")
    return root / _PREVIEW_LIBRARY_NAME


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _env_float(name: str) -> Optional[float]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


class AppConfig:
    """Application-level configuration loaded from environment variables.

    All env vars have defaults so the browser works out of the box against a
    standard Komplete Kontrol installation.

    Environment variables:
        APP_DB_PATH: Path to komplete.db3 (default: platform data directory)
        APP_HOST: API server bind address (default: 127.0.0.1)
        APP_PORT: API server port (default: 8000)
        APP_LOG_FORMAT: Logging format, "text" or "json" (default: text)
        APP_CORS_ORIGINS: Comma-separated allowed origins (default: *)
        APP_PAGE_SIZE: Presets fetched per page (default: 50)
        APP_READY_POLL_MS: Readiness probe interval in ms (default: 100)
        APP_READY_TIMEOUT: Seconds to wait for the library before giving up
            (default: wait forever)
        APP_PREVIEW_LIBRARY: Path to "Native Browser Preview Library.json"
        APP_PROVIDER_URL: Base URL of a running API for remote browsing
    """

    def __init__(self) -> None:
        raw_db = os.getenv("APP_DB_PATH")
        self.db_path = Path(raw_db) if raw_db else default_db_path()
        self.api_host = os.getenv("APP_HOST", "127.0.0.1")
        self.api_port = _env_int("APP_PORT", 8000, minimum=1)
        self.log_format = os.getenv("APP_LOG_FORMAT", "text")
        raw_origins = os.getenv("APP_CORS_ORIGINS", "*")
        self.cors_origins: list[str] = (
            ["*"] if raw_origins == "*"
            else [o.strip() for o in raw_origins.split(",") if o.strip()]
        )
        self.page_size = _env_int("APP_PAGE_SIZE", DEFAULT_PAGE_SIZE, minimum=1)
        self.ready_poll_ms = _env_int("APP_READY_POLL_MS", DEFAULT_READY_POLL_MS, minimum=1)
        self.ready_timeout: Optional[float] = _env_float("APP_READY_TIMEOUT")
        raw_preview = os.getenv("APP_PREVIEW_LIBRARY")
        self.preview_library_path = (
            Path(raw_preview) if raw_preview else default_preview_library_path()
        )
        self.provider_url: Optional[str] = os.getenv("APP_PROVIDER_URL") or None

    @property
    def ready_poll_interval(self) -> float:
        """Readiness probe interval in seconds."""
        return self.ready_poll_ms / 1000

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Create an AppConfig instance populated from environment variables."""
        return cls()
