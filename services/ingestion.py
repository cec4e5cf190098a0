"""Turn raw image files into stored assets and screenshot records.

Each file is validated (size and image kind), written under the
screenshots asset directory with a generated, collision-free name, and,
for `ingest`/`ingest_batch`, added to the collection store as a new record.
Batches never abort on a single bad file; failures are collected into the
returned `IngestionSummary`.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Optional

import aiofiles
import aiofiles.os

from models.errors import IngestionError, ScreenshotNotesError
from models.ingestion_models import IngestionSummary, RawFileCandidate, Rejection, StoredAsset
from models.screenshot_record import ScreenshotRecord, utc_now_iso
from services.collection_store import CollectionStore
from utils.media_validation import (
    extension_for,
    is_allowed_image_type,
    normalize_content_type,
    sniff_image_file,
    sniff_image_type,
    type_from_extension,
)

LOGGER = logging.getLogger(__name__)

ASSET_URL_PREFIX = "assets/screenshots"
MAX_COLLISION_ATTEMPTS = 999


def generate_asset_filename(original_name: str, content_type: str, now: Optional[datetime] = None) -> str:
    """Build `screenshot-<timestamp><ext>` with ':' and '.' in the timestamp replaced by '-'."""
    moment = now or datetime.now(timezone.utc)
    stamp = moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    stamp = stamp.replace(":", "-").replace(".", "-")
    return f"screenshot-{stamp}{extension_for(original_name, content_type)}"


def resolve_collision(dest_path: Path) -> Path:
    """
    If dest_path exists, append _2, _3, ... to the stem until a free path is found.
    Raises IngestionError after MAX_COLLISION_ATTEMPTS.
    """
    if not dest_path.exists():
        return dest_path

    for counter in range(2, MAX_COLLISION_ATTEMPTS + 2):
        candidate = dest_path.with_name(f"{dest_path.stem}_{counter}{dest_path.suffix}")
        if not candidate.exists():
            return candidate

    raise IngestionError(f"Could not find a free filename for {dest_path.name}", dest_path.name)


class IngestionPipeline:
    """Validate, store and register screenshot files.

    Args:
        store: Collection store receiving new records.
        screenshots_dir: Directory where asset files are written.
        max_bytes: Largest accepted file size.
    """

    def __init__(self, store: CollectionStore, screenshots_dir: Path, max_bytes: int = 10 * 1024 * 1024) -> None:
        self.store = store
        self.screenshots_dir = Path(screenshots_dir)
        self.max_bytes = max_bytes

    def detect_type(self, candidate: RawFileCandidate) -> str:
        """Return the MIME type of an acceptable image, or raise IngestionError.

        A declared content type (from the upload) wins; otherwise the bytes
        are sniffed with Pillow, falling back to the file extension.
        """
        declared = normalize_content_type(candidate.content_type)
        if declared is None:
            if candidate.content is not None:
                declared = sniff_image_type(candidate.content)
            elif candidate.source_path is not None and candidate.source_path.is_file():
                declared = sniff_image_file(candidate.source_path)
            if declared is None:
                declared = type_from_extension(candidate.original_name)
        if not is_allowed_image_type(declared):
            raise IngestionError("Invalid file type. Only images are allowed.", candidate.original_name)
        return declared

    def validate(self, candidate: RawFileCandidate) -> str:
        """Check size and kind; returns the detected MIME type."""
        if candidate.size > self.max_bytes:
            limit_mb = self.max_bytes / (1024 * 1024)
            raise IngestionError(
                f"File exceeds the {limit_mb:g} MB size limit.", candidate.original_name
            )
        return self.detect_type(candidate)

    async def stage(self, candidate: RawFileCandidate) -> StoredAsset:
        """Validate and write one file into the asset directory (no record is created).

        Raises:
            IngestionError: If validation fails or the bytes cannot be stored.
        """
        mime_type = self.validate(candidate)
        dest = resolve_collision(self.screenshots_dir / generate_asset_filename(candidate.original_name, mime_type))

        try:
            self.screenshots_dir.mkdir(parents=True, exist_ok=True)
            if candidate.content is not None:
                async with aiofiles.open(dest, "xb") as f:
                    await f.write(candidate.content)
            elif candidate.source_path is not None:
                # copying is blocking -> run in thread
                await asyncio.to_thread(shutil.copyfile, candidate.source_path, dest)
            else:
                raise IngestionError("File has no content to store.", candidate.original_name)
        except OSError as exc:
            raise IngestionError(f"Failed to store {candidate.original_name}: {exc}", candidate.original_name) from exc

        return StoredAsset(
            filename=dest.name,
            original_name=candidate.original_name,
            path=f"{ASSET_URL_PREFIX}/{dest.name}",
            size=candidate.size,
            mimetype=mime_type,
            date=utc_now_iso(),
        )

    async def ingest(self, candidate: RawFileCandidate) -> ScreenshotRecord:
        """Store one file and add a new record for it to the collection.

        If the collection cannot be saved, the stored asset is deleted again
        and the store error propagates.
        """
        asset = await self.stage(candidate)
        record = ScreenshotRecord(filename=asset.filename, path=asset.path, date=asset.date)
        try:
            return await self.store.add(record)
        except ScreenshotNotesError:
            await self.discard(asset)
            raise

    async def discard(self, asset: StoredAsset) -> None:
        """Delete a stored asset file; a file that is already gone is ignored."""
        path = self.screenshots_dir / asset.filename
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            LOGGER.warning("Could not delete orphaned asset %s: %s", path, exc)

    async def ingest_batch(self, candidates: Iterable[RawFileCandidate]) -> IngestionSummary:
        """Ingest each file independently and summarize the outcome."""
        summary = IngestionSummary()
        for candidate in candidates:
            try:
                summary.accepted.append(await self.ingest(candidate))
            except ScreenshotNotesError as exc:
                self._reject(summary, candidate, exc)
        LOGGER.info("Ingested %d screenshot(s), rejected %d", summary.accepted_count, summary.failed)
        return summary

    async def stage_batch(self, candidates: Iterable[RawFileCandidate]) -> IngestionSummary:
        """Store each file independently without touching the collection."""
        summary = IngestionSummary()
        for candidate in candidates:
            try:
                summary.staged.append(await self.stage(candidate))
            except ScreenshotNotesError as exc:
                self._reject(summary, candidate, exc)
        return summary

    @staticmethod
    def _reject(summary: IngestionSummary, candidate: RawFileCandidate, exc: ScreenshotNotesError) -> None:
        LOGGER.warning("Rejected %s: %s", candidate.original_name, exc.message)
        summary.rejected.append(Rejection(original_name=candidate.original_name, reason=exc.message))
