"""Persistence gateway for the screenshot collection.

The whole collection is stored as one JSON array in `screenshots.json`.
There are no partial writes: every `save` replaces the file with a full
snapshot.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, List, Sequence

from dal.json_files import read_json_file, write_json_file
from models.errors import CorruptStoreError, PersistenceError
from models.screenshot_record import ScreenshotRecord, duplicate_ids

LOGGER = logging.getLogger(__name__)


class ScreenshotDAL:
    """Load and save the collection snapshot at `snapshot_path`."""

    def __init__(self, snapshot_path: Path) -> None:
        self.snapshot_path = Path(snapshot_path)

    async def load_raw(self) -> List[Any]:
        """Return the stored JSON array as-is, or `[]` if the file is absent.

        Raises:
            CorruptStoreError: If the file is unreadable, not JSON, or not an array.
        """
        try:
            data = await read_json_file(self.snapshot_path)
        except FileNotFoundError:
            return []
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(f"{self.snapshot_path.name} is not valid JSON: {exc}") from exc
        except (OSError, UnicodeDecodeError) as exc:
            raise CorruptStoreError(f"Failed to read {self.snapshot_path.name}: {exc}") from exc

        if not isinstance(data, list):
            raise CorruptStoreError(f"{self.snapshot_path.name} must contain a JSON array")
        return data

    async def load(self) -> List[ScreenshotRecord]:
        """Load the collection as typed records, preserving stored order.

        Raises:
            CorruptStoreError: If the file is invalid, an entry lacks `filename`/`path`,
                or two entries share an id.
        """
        records: List[ScreenshotRecord] = []
        for index, entry in enumerate(await self.load_raw()):
            if not isinstance(entry, dict):
                raise CorruptStoreError(f"Entry {index} in {self.snapshot_path.name} is not an object")
            try:
                records.append(ScreenshotRecord.from_dict(entry))
            except ValueError as exc:
                raise CorruptStoreError(f"Entry {index} in {self.snapshot_path.name}: {exc}") from exc
        duplicates = duplicate_ids(records)
        if duplicates:
            raise CorruptStoreError(f"{self.snapshot_path.name} repeats screenshot id {duplicates[0]}")
        return records

    async def save(self, records: Sequence[ScreenshotRecord]) -> None:
        """Replace the snapshot file with `records`.

        Raises:
            PersistenceError: If the file cannot be written.
        """
        payload = [record.to_dict() for record in records]
        try:
            await write_json_file(self.snapshot_path, payload)
        except OSError as exc:
            raise PersistenceError(f"Failed to save screenshots: {exc}") from exc
        LOGGER.debug("Saved %d screenshots to %s", len(payload), self.snapshot_path)
