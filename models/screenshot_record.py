from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping
from uuid import uuid4


def utc_now_iso() -> str:
    """Return the current UTC time as an ISO-8601 string with a `Z` suffix."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")


def new_record_id() -> str:
    return uuid4().hex


@dataclass
class ScreenshotRecord:
    """One screenshot asset plus its user annotation.

    Attributes:
        filename: Name of the stored asset file on disk.
        path: Asset-relative reference, e.g. `assets/screenshots/<filename>`.
        description: Free-text annotation edited by the user.
        date: ISO-8601 creation timestamp, never changed after creation.
        id: Unique identifier, stable for the record's lifetime.
    """

    filename: str
    path: str
    description: str = ""
    date: str = field(default_factory=utc_now_iso)
    id: str = field(default_factory=new_record_id)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "filename": self.filename,
            "description": self.description,
            "date": self.date,
            "path": self.path,
        }

    def to_export_dict(self) -> Dict[str, Any]:
        """Export shape: everything except the id, which is regenerated on import."""
        return {
            "filename": self.filename,
            "description": self.description,
            "date": self.date,
            "path": self.path,
        }

    @staticmethod
    def from_dict(d: Mapping[str, Any]) -> "ScreenshotRecord":
        """Build a record from a stored snapshot entry.

        Older snapshots carry numeric ids (or none at all); those are
        stringified or regenerated so the id stays a unique string.

        Raises:
            ValueError: If `filename` or `path` is missing.
        """
        if not d.get("filename") or not d.get("path"):
            raise ValueError("Screenshot entries require 'filename' and 'path'.")
        raw_id = d.get("id")
        return ScreenshotRecord(
            id=str(raw_id) if raw_id not in (None, "") else new_record_id(),
            filename=str(d["filename"]),
            path=str(d["path"]),
            description=str(d.get("description") or ""),
            date=str(d.get("date") or utc_now_iso()),
        )

    @staticmethod
    def is_import_candidate(item: Any) -> bool:
        """Return True if `item` can be turned into a record by `from_import`."""
        return isinstance(item, Mapping) and bool(item.get("filename")) and bool(item.get("path"))

    @staticmethod
    def from_import(item: Mapping[str, Any]) -> "ScreenshotRecord":
        """Create a new record from an imported entry.

        Any id in the entry is ignored; a fresh one is generated. A missing
        description becomes an empty string and a missing date becomes now.
        """
        if not ScreenshotRecord.is_import_candidate(item):
            raise ValueError("Imported entries require 'filename' and 'path'.")
        return ScreenshotRecord(
            filename=str(item["filename"]),
            path=str(item["path"]),
            description=str(item.get("description") or ""),
            date=str(item.get("date") or utc_now_iso()),
        )


def duplicate_ids(records: Iterable[ScreenshotRecord]) -> List[str]:
    """Return ids that appear more than once, in first-repeat order."""
    seen = set()
    repeated: List[str] = []
    for record in records:
        if record.id in seen and record.id not in repeated:
            repeated.append(record.id)
        seen.add(record.id)
    return repeated
