"""JSON import/export of the screenshot collection.

The exchange format is a JSON array of `{filename, description, date, path}`
objects; ids are never exported and are regenerated on import.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, List, Optional, Protocol, Sequence

from dal.json_files import read_json_file, write_json_file
from models.errors import PersistenceError, ValidationError
from models.screenshot_record import ScreenshotRecord
from services.collection_store import CollectionStore

LOGGER = logging.getLogger(__name__)


def default_export_name(today: Optional[date] = None) -> str:
    """Suggested export file name, e.g. `screenshot-notes-2025-08-22.json`."""
    return f"screenshot-notes-{(today or date.today()).isoformat()}.json"


class FileDialogs(Protocol):
    """Native file prompts supplied by the desktop shell; each returns None on cancel."""

    def select_image_files(self) -> Optional[List[Path]]:
        ...

    def select_json_file(self) -> Optional[Path]:
        ...

    def save_json_file(self, default_name: str) -> Optional[Path]:
        ...


@dataclass
class ImportResult:
    added: int
    candidates: int

    @property
    def message(self) -> str:
        if self.added == 0:
            return "All screenshots already exist"
        plural = "s" if self.added > 1 else ""
        return f"Successfully imported {self.added} screenshot{plural}"


def export_payload(records: Sequence[ScreenshotRecord]) -> List[dict]:
    return [record.to_export_dict() for record in records]


def valid_import_items(data: Any) -> List[Any]:
    """Return the entries of an import document that can become records.

    Raises:
        ValidationError: If the document is not an array or has no usable entries.
    """
    if not isinstance(data, list):
        raise ValidationError("Invalid JSON format. Expected an array of screenshots.")
    items = [item for item in data if ScreenshotRecord.is_import_candidate(item)]
    if not items:
        raise ValidationError("No valid screenshot entries found")
    return items


class CollectionExchange:
    """Move the collection in and out of standalone JSON files."""

    def __init__(self, store: CollectionStore) -> None:
        self.store = store

    async def export_to(self, file_path: Path) -> int:
        """Write the collection to `file_path`; returns the number exported.

        Raises:
            ValidationError: If there is nothing to export.
            PersistenceError: If the file cannot be written.
        """
        records = self.store.records()
        if not records:
            raise ValidationError("No screenshots to export")
        try:
            await write_json_file(Path(file_path), export_payload(records))
        except OSError as exc:
            raise PersistenceError(f"Failed to export screenshots: {exc}") from exc
        LOGGER.info("Exported %d screenshots to %s", len(records), file_path)
        return len(records)

    async def import_items(self, data: Any) -> ImportResult:
        """Merge already-parsed import data into the store."""
        items = valid_import_items(data)
        added = await self.store.import_merge(items)
        return ImportResult(added=added, candidates=len(items))

    async def import_from(self, file_path: Path) -> ImportResult:
        """Read `file_path` and merge its entries into the store.

        Raises:
            ValidationError: If the file is missing, not JSON, or has no valid entries.
        """
        path = Path(file_path)
        try:
            data = await read_json_file(path)
        except FileNotFoundError as exc:
            raise ValidationError(f"File not found: {path}") from exc
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise ValidationError(f"Failed to read JSON file: {exc}") from exc
        return await self.import_items(data)

    async def replace_with(self, data: Any) -> int:
        """Replace the whole collection with the entries of `data`; returns the new size.

        Every entry gets a fresh id, as in an import.

        Raises:
            ValidationError: If `data` is not an array or has no valid entries.
        """
        records = [ScreenshotRecord.from_import(item) for item in valid_import_items(data)]
        await self.store.replace_all(records)
        LOGGER.info("Replaced collection with %d screenshots", len(records))
        return len(records)
