"""Value objects passed through the ingestion pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from models.screenshot_record import ScreenshotRecord


@dataclass
class RawFileCandidate:
	"""A file offered for ingestion by an upload, drag-drop or file picker.

	Exactly one of `content` (uploaded bytes) or `source_path` (a file on
	disk to copy) is expected.
	"""

	original_name: str
	size: int
	content: Optional[bytes] = None
	source_path: Optional[Path] = None
	content_type: Optional[str] = None

	@classmethod
	def from_path(cls, source_path: Path | str) -> "RawFileCandidate":
		"""Describe a file on disk; a missing file yields size 0 and fails on copy."""
		path = Path(source_path)
		size = path.stat().st_size if path.is_file() else 0
		return cls(original_name=path.name, size=size, source_path=path)


@dataclass
class StoredAsset:
	"""An asset written to the screenshots directory, not yet a record."""

	filename: str
	original_name: str
	path: str
	size: int
	mimetype: str
	date: str

	def to_dict(self) -> Dict[str, Any]:
		return {
			"filename": self.filename,
			"originalName": self.original_name,
			"path": self.path,
			"size": self.size,
			"mimetype": self.mimetype,
			"date": self.date,
			"description": "",
		}


@dataclass
class Rejection:
	original_name: str
	reason: str

	def to_dict(self) -> Dict[str, str]:
		return {"originalName": self.original_name, "reason": self.reason}


@dataclass
class IngestionSummary:
	"""Outcome of a batch: stored items in input order plus per-file rejections.

	`ingest_batch` fills `accepted` and `stage_batch` fills `staged`; the
	other list stays empty.
	"""

	accepted: List[ScreenshotRecord] = field(default_factory=list)
	staged: List[StoredAsset] = field(default_factory=list)
	rejected: List[Rejection] = field(default_factory=list)

	@property
	def accepted_count(self) -> int:
		"""Files that became records (`ingest_batch`)."""
		return len(self.accepted)

	@property
	def staged_count(self) -> int:
		"""Files written as assets only (`stage_batch`)."""
		return len(self.staged)

	@property
	def failed(self) -> int:
		return len(self.rejected)
