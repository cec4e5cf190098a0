"""Access to arbitrary named JSON documents kept in the data directory."""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List

from dal.json_files import dumps, read_json_file, write_json_file
from models.errors import PersistenceError, ValidationError


def format_file_size(size: int) -> str:
    """Render a byte count as "0 B", "512 B", "1.5 KB", "2 MB", ..."""
    if size <= 0:
        return "0 B"
    units = ("B", "KB", "MB", "GB")
    index = 0
    while index < len(units) - 1 and size >= 1024 ** (index + 1):
        index += 1
    value = round(size / (1024 ** index), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {units[index]}"


def validate_data_filename(filename: str) -> str:
    """Reject names that could escape the data directory.

    Raises:
        ValidationError: If the name is empty or contains `..`, `/` or `\\`.
    """
    if not filename or ".." in filename or "/" in filename or "\\" in filename:
        raise ValidationError("Invalid filename")
    return filename


class DataFileDAL:
    """Load, save and list named JSON blobs under `data_dir`."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, filename: str) -> Path:
        return self.data_dir / validate_data_filename(filename)

    async def load(self, filename: str) -> Dict[str, Any]:
        """Return the parsed document plus file metadata.

        Raises:
            ValidationError: For unsafe names.
            FileNotFoundError: If no such document exists.
            json.JSONDecodeError: If the document is not valid JSON.
        """
        path = self.path_for(filename)
        data = await read_json_file(path)
        return {
            "data": data,
            "filename": filename,
            "path": str(path),
            "size": format_file_size(path.stat().st_size),
        }

    async def save(self, filename: str, data: Any) -> Dict[str, Any]:
        """Write `data` as `filename` and return where it went.

        Raises:
            ValidationError: For unsafe names.
            PersistenceError: If the write fails.
        """
        path = self.path_for(filename)
        try:
            await write_json_file(path, data)
        except OSError as exc:
            raise PersistenceError(f"Failed to save {filename}: {exc}") from exc
        return {
            "filename": filename,
            "path": str(path),
            "size": format_file_size(len(dumps(data).encode("utf-8"))),
        }

    def list_files(self) -> List[Dict[str, Any]]:
        """Describe every `*.json` document in the data directory, sorted by name."""
        if not self.data_dir.is_dir():
            return []
        files: List[Dict[str, Any]] = []
        for path in sorted(self.data_dir.glob("*.json")):
            stats = path.stat()
            files.append({
                "name": path.name,
                "path": str(path),
                "location": "data",
                "size": format_file_size(stats.st_size),
                "modified": datetime.fromtimestamp(stats.st_mtime, tz=timezone.utc).isoformat(),
            })
        return files
