"""Runtime configuration read from environment variables.

`main.py` loads a `.env` file (if present) before this module is used, so
values may come from either the process environment or that file.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

APP_NAME = "Screenshot Note"
APP_VERSION = "1.0.0"
APP_DESCRIPTION = "Personal Screenshot Wiki with Note Management"

DEFAULT_PORT = 3019
DEFAULT_MAX_UPLOAD_MB = 10
DEFAULT_AUTOSAVE_MS = 1000
DEFAULT_SEARCH_DEBOUNCE_MS = 300
MAX_FILES_PER_UPLOAD = 10
DEFAULT_SAMPLE_FILE = "screenshot-notes-2025-08-22.json"


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise RuntimeError(f"{name}={raw!r} must be an integer") from exc


@dataclass(frozen=True)
class AppConfig:
    """Settings shared by the storage, ingestion and HTTP layers."""

    data_dir: Path
    assets_dir: Path
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_MB * 1024 * 1024
    autosave_delay: float = DEFAULT_AUTOSAVE_MS / 1000
    search_delay: float = DEFAULT_SEARCH_DEBOUNCE_MS / 1000
    port: int = DEFAULT_PORT
    log_level: str = "INFO"

    @property
    def screenshots_dir(self) -> Path:
        return self.assets_dir / "screenshots"

    @property
    def screenshots_file(self) -> Path:
        return self.data_dir / "screenshots.json"

    @classmethod
    def from_env(cls) -> "AppConfig":
        return cls(
            data_dir=Path(os.getenv("SCREENSHOT_NOTES_DATA_DIR") or "data").expanduser(),
            assets_dir=Path(os.getenv("SCREENSHOT_NOTES_ASSETS_DIR") or "assets").expanduser(),
            max_upload_bytes=_env_int("SCREENSHOT_NOTES_MAX_UPLOAD_MB", DEFAULT_MAX_UPLOAD_MB) * 1024 * 1024,
            autosave_delay=_env_int("SCREENSHOT_NOTES_AUTOSAVE_MS", DEFAULT_AUTOSAVE_MS) / 1000,
            search_delay=_env_int("SCREENSHOT_NOTES_SEARCH_DEBOUNCE_MS", DEFAULT_SEARCH_DEBOUNCE_MS) / 1000,
            port=_env_int("SCREENSHOT_NOTES_PORT", DEFAULT_PORT),
            log_level=(os.getenv("SCREENSHOT_NOTES_LOG_LEVEL") or "INFO").upper(),
        )
