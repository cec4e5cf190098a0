from __future__ import annotations

from pathlib import Path
from typing import Iterable

from utils.app_config import AppConfig


class StorageInitializer:
    """
    Prepare the on-disk layout used by the application.

    - The JSON snapshot lives at: <data_dir>/screenshots.json
    - Assets live under: <assets_dir>/screenshots/
    - Missing directories are created on first use. A configured path that
      exists but is a file is a configuration error (RuntimeError).
    - Existing data is never touched; `ensure_directories()` is idempotent.
    """

    def __init__(self, config: AppConfig) -> None:
        self.config = config
        self.data_dir = config.data_dir
        self.assets_dir = config.assets_dir
        self.screenshots_dir = config.screenshots_dir
        self.screenshots_file = config.screenshots_file

    def _directories(self) -> Iterable[Path]:
        return (self.data_dir, self.assets_dir, self.screenshots_dir)

    def ensure_directories(self) -> None:
        """Create the data and asset directories if they do not exist yet."""
        for directory in self._directories():
            if directory.exists() and not directory.is_dir():
                raise RuntimeError(
                    f"{directory} exists but is not a directory. "
                    "Point the data/assets settings at directory paths."
                )
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise RuntimeError(f"Failed to create or access directory at {directory}") from exc
