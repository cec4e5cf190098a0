"""
Shared fixtures for the screenshot-notes test suite.
"""
import io
from pathlib import Path
from typing import List, Sequence

import pytest
from PIL import Image

from dal.screenshot_dal import ScreenshotDAL
from models.errors import PersistenceError
from models.screenshot_record import ScreenshotRecord
from services.collection_store import CollectionStore
from utils.app_config import AppConfig


# ── Image helpers ─────────────────────────────────────────────────────────────

def png_bytes(color=(255, 0, 0), size=(4, 4), fmt: str = "PNG") -> bytes:
    """Encode a tiny solid-colour image with Pillow."""
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def make_image_file(path: Path, fmt: str = "PNG") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(png_bytes(fmt=fmt))
    return path


def make_record(filename: str = "a.png", description: str = "", date: str = "2025-08-22T10:00:00.000Z") -> ScreenshotRecord:
    return ScreenshotRecord(
        filename=filename,
        path=f"assets/screenshots/{filename}",
        description=description,
        date=date,
    )


class CountingDAL(ScreenshotDAL):
    """ScreenshotDAL that records every saved snapshot.

    Set `fail_saves` to make every save raise PersistenceError, as a full disk would.
    """

    def __init__(self, snapshot_path: Path) -> None:
        super().__init__(snapshot_path)
        self.saved: List[List[dict]] = []
        self.fail_saves = False

    async def save(self, records: Sequence[ScreenshotRecord]) -> None:
        if self.fail_saves:
            raise PersistenceError("disk full")
        self.saved.append([r.to_dict() for r in records])
        await super().save(records)


# ── Fixtures ──────────────────────────────────────────────────────────────────

@pytest.fixture
def snapshot_path(tmp_path: Path) -> Path:
    return tmp_path / "data" / "screenshots.json"


@pytest.fixture
def dal(snapshot_path: Path) -> CountingDAL:
    return CountingDAL(snapshot_path)


@pytest.fixture
def store(dal: CountingDAL) -> CollectionStore:
    return CollectionStore(dal, autosave_delay=0.05)


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    return AppConfig(
        data_dir=tmp_path / "data",
        assets_dir=tmp_path / "assets",
        max_upload_bytes=10 * 1024 * 1024,
        autosave_delay=0.05,
        search_delay=0.01,
    )
