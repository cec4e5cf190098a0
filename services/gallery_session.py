"""Dispatch gallery UI intents to the collection store.

Browser events arrive as JSON messages, are parsed into intent objects and
applied to the store, the ingestion pipeline or the import/export service.
Every outcome, including failures, is reported back as plain messages plus
a transient `status` message for the UI to show and auto-dismiss.
"""
from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

from fastapi import WebSocket

from dal.data_file_dal import DataFileDAL
from models.errors import ScreenshotNotesError, ValidationError
from models.ingestion_models import RawFileCandidate
from models.intents import (
	ClearRequested,
	DescriptionEdited,
	ExportRequested,
	FilesAdded,
	ImportRequested,
	Intent,
	ListRequested,
	LoadSampleRequested,
	RemoveRequested,
	SaveRequested,
	SearchChanged,
	parse_intent,
)
from models.screenshot_record import ScreenshotRecord
from services.collection_store import CollectionStore
from services.exchange import CollectionExchange, FileDialogs, default_export_name
from services.ingestion import IngestionPipeline
from services.search_view import SearchView

LOGGER = logging.getLogger(__name__)

STATUS_DISMISS_MS = 4000


def status_message(message: str, level: str = "info") -> Dict[str, Any]:
	"""Build a transient status notification for the UI."""
	return {"type": "status", "level": level, "message": message, "dismiss_after_ms": STATUS_DISMISS_MS}


def collection_message(message_type: str, records: List[ScreenshotRecord], **extra: Any) -> Dict[str, Any]:
	return {"type": message_type, "data": [r.to_dict() for r in records], "count": len(records), **extra}


class GallerySessionHandler:
	"""Apply intents from one connected gallery view.

	Each handler owns its own search view so concurrent tabs filter
	independently; the store itself is shared.
	"""

	def __init__(
		self,
		store: CollectionStore,
		pipeline: IngestionPipeline,
		dialogs: Optional[FileDialogs] = None,
		search_delay: float = 0.3,
		websocket: Optional[WebSocket] = None,
		data_files: Optional[DataFileDAL] = None,
	) -> None:
		self.store = store
		self.pipeline = pipeline
		self.exchange = CollectionExchange(store)
		self.dialogs = dialogs
		self.websocket = websocket
		self.data_files = data_files
		self.search = SearchView(store.records, self._publish_filtered, delay=search_delay)
		store.add_autosave_error_handler(self._autosave_failed)

	async def handle(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		"""Process a single inbound websocket payload."""
		request_id = payload.get("request_id")
		for message in await self.dispatch_payload(payload):
			message["request_id"] = request_id
			await self._send(websocket, message)

	async def dispatch_payload(self, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
		"""Parse and apply a payload; failures become an error plus a status message."""
		try:
			return await self.dispatch(parse_intent(payload))
		except ScreenshotNotesError as exc:
			LOGGER.warning("Gallery intent %s failed: %s", payload.get("type"), exc.message)
			return [{"type": "error", "detail": exc.message}, status_message(exc.message, "error")]
		except Exception as exc:
			LOGGER.exception("Gallery intent %s failed", payload.get("type"))
			return [{"type": "error", "detail": str(exc)}, status_message(f"Operation failed: {exc}", "error")]

	async def dispatch(self, intent: Intent) -> List[Dict[str, Any]]:
		if isinstance(intent, ListRequested):
			return [collection_message("screenshots", self.search.current(), term=self.search.term)]
		if isinstance(intent, SearchChanged):
			self.search.set_term(intent.term)
			return []
		if isinstance(intent, DescriptionEdited):
			record = await self.store.update_description(intent.screenshot_id, intent.text)
			return [{"type": "description.ack", "id": intent.screenshot_id, "found": record is not None}]
		if isinstance(intent, RemoveRequested):
			removed = await self.store.remove(intent.screenshot_id)
			return [
				{"type": "screenshot.removed", "id": intent.screenshot_id, "removed": removed},
				status_message("Screenshot removed" if removed else "Screenshot not found", "success" if removed else "info"),
			]
		if isinstance(intent, ClearRequested):
			await self.store.clear()
			return [collection_message("screenshots", []), status_message("All screenshots cleared", "success")]
		if isinstance(intent, SaveRequested):
			await self.store.save_now()
			return [status_message("All screenshots saved", "success")]
		if isinstance(intent, ImportRequested):
			return await self._import(intent)
		if isinstance(intent, ExportRequested):
			return await self._export(intent)
		if isinstance(intent, FilesAdded):
			return await self._add_files(intent)
		if isinstance(intent, LoadSampleRequested):
			return await self._load_sample(intent)
		raise TypeError(f"Unhandled intent {type(intent).__name__}")

	async def _import(self, intent: ImportRequested) -> List[Dict[str, Any]]:
		if intent.items is not None:
			result = await self.exchange.import_items(intent.items)
		else:
			file_path = Path(intent.file_path) if intent.file_path else self._ask(lambda d: d.select_json_file())
			if file_path is None:
				return [{"type": "import.canceled"}]
			result = await self.exchange.import_from(file_path)
		return [
			{"type": "import.done", "added": result.added, "candidates": result.candidates},
			status_message(result.message, "success" if result.added else "info"),
		]

	async def _export(self, intent: ExportRequested) -> List[Dict[str, Any]]:
		if intent.file_path:
			file_path: Optional[Path] = Path(intent.file_path)
		else:
			file_path = self._ask(lambda d: d.save_json_file(default_export_name()))
		if file_path is None:
			return [{"type": "export.canceled"}]
		count = await self.exchange.export_to(file_path)
		return [
			{"type": "export.done", "path": str(file_path), "count": count},
			status_message(f"Exported {count} screenshots to {file_path}", "success"),
		]

	async def _add_files(self, intent: FilesAdded) -> List[Dict[str, Any]]:
		paths = [Path(p) for p in intent.file_paths] or self._ask(lambda d: d.select_image_files())
		if not paths:
			return [{"type": "files.canceled"}]
		summary = await self.pipeline.ingest_batch(RawFileCandidate.from_path(p) for p in paths)
		messages: List[Dict[str, Any]] = [{
			"type": "files.added",
			"data": [r.to_dict() for r in summary.accepted],
			"rejected": [r.to_dict() for r in summary.rejected],
		}]
		if not summary.accepted:
			limit_mb = self.pipeline.max_bytes / (1024 * 1024)
			messages.append(status_message(f"Please select valid image files (max {limit_mb:g}MB)", "error"))
		elif summary.rejected:
			messages.append(status_message(
				f"Added {summary.accepted_count} screenshot(s), {summary.failed} rejected", "info"
			))
		else:
			messages.append(status_message(f"Added {summary.accepted_count} screenshot(s)", "success"))
		return messages

	async def _load_sample(self, intent: LoadSampleRequested) -> List[Dict[str, Any]]:
		if self.data_files is None:
			raise ValidationError("Sample data is not available")
		try:
			document = await self.data_files.load(intent.filename)
		except FileNotFoundError as exc:
			raise ValidationError(f"Sample file not found: {intent.filename}") from exc
		except (json.JSONDecodeError, UnicodeDecodeError) as exc:
			raise ValidationError(f"Failed to load sample data: {exc}") from exc
		count = await self.exchange.replace_with(document["data"])
		self.search.cancel()
		self.search.term = ""
		return [
			collection_message("screenshots", self.store.records(), term=""),
			status_message(f"Loaded {count} sample screenshots", "success"),
		]

	def _ask(self, prompt):
		"""Run a native dialog prompt; None when no dialog provider is attached or the user cancels."""
		if self.dialogs is None:
			return None
		return prompt(self.dialogs)

	async def _publish_filtered(self, records: List[ScreenshotRecord]) -> None:
		if self.websocket is None:
			return
		await self._send(self.websocket, collection_message("screenshots.filtered", records, term=self.search.term))

	async def _autosave_failed(self, exc: Exception) -> None:
		if self.websocket is None:
			return
		detail = exc.message if isinstance(exc, ScreenshotNotesError) else str(exc)
		await self._send(self.websocket, status_message(f"Auto-save failed: {detail}", "error"))

	async def close(self) -> None:
		self.search.cancel()
		self.store.remove_autosave_error_handler(self._autosave_failed)
		try:
			await self.store.flush()
		except ScreenshotNotesError as exc:
			LOGGER.error("Unsaved screenshot edits could not be written: %s", exc.message)

	async def _send(self, websocket: WebSocket, payload: Dict[str, Any]) -> None:
		await websocket.send_text(json.dumps(payload))
