"""Typed user intents produced by the gallery UI.

The browser sends loosely-shaped JSON messages; `parse_intent` turns each
one into a dataclass that the dispatcher hands to the collection store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from models.errors import ValidationError
from utils.app_config import DEFAULT_SAMPLE_FILE


@dataclass
class ListRequested:
	pass


@dataclass
class SearchChanged:
	term: str


@dataclass
class DescriptionEdited:
	screenshot_id: str
	text: str


@dataclass
class RemoveRequested:
	screenshot_id: str


@dataclass
class ClearRequested:
	pass


@dataclass
class SaveRequested:
	pass


@dataclass
class ImportRequested:
	"""Import from already-parsed `items`, a JSON file path, or (neither given) a native file prompt."""

	file_path: Optional[str] = None
	items: Optional[List[Any]] = None


@dataclass
class LoadSampleRequested:
	"""Replace the whole collection with the entries of a named data file."""

	filename: str = DEFAULT_SAMPLE_FILE


@dataclass
class ExportRequested:
	file_path: Optional[str] = None


@dataclass
class FilesAdded:
	file_paths: List[str] = field(default_factory=list)


Intent = Union[
	ListRequested,
	SearchChanged,
	DescriptionEdited,
	RemoveRequested,
	ClearRequested,
	SaveRequested,
	ImportRequested,
	ExportRequested,
	FilesAdded,
	LoadSampleRequested,
]


def _require_text(payload: Dict[str, Any], key: str) -> str:
	value = payload.get(key)
	if value is None or not str(value).strip():
		raise ValidationError(f"'{key}' is required.")
	return str(value)


def parse_intent(payload: Dict[str, Any]) -> Intent:
	"""Map a websocket payload onto an intent.

	Raises:
		ValidationError: If the message type is unknown or a field is missing.
	"""
	message_type = payload.get("type")
	if message_type == "screenshots.list":
		return ListRequested()
	if message_type == "search.changed":
		return SearchChanged(term=str(payload.get("term") or ""))
	if message_type == "description.edited":
		return DescriptionEdited(
			screenshot_id=_require_text(payload, "id"),
			text=str(payload.get("text") or ""),
		)
	if message_type == "screenshot.remove":
		return RemoveRequested(screenshot_id=_require_text(payload, "id"))
	if message_type == "collection.clear":
		return ClearRequested()
	if message_type == "collection.save":
		return SaveRequested()
	if message_type == "collection.import":
		return ImportRequested(file_path=payload.get("file_path") or None, items=payload.get("items"))
	if message_type == "collection.export":
		return ExportRequested(file_path=payload.get("file_path") or None)
	if message_type == "files.add":
		paths = payload.get("file_paths") or []
		if not isinstance(paths, list):
			raise ValidationError("'file_paths' must be a list.")
		return FilesAdded(file_paths=[str(p) for p in paths])
	if message_type == "collection.load_sample":
		return LoadSampleRequested(filename=str(payload.get("filename") or DEFAULT_SAMPLE_FILE))
	raise ValidationError("Unsupported message type.")
