"""In-memory screenshot collection, mirrored to the JSON snapshot on disk."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Optional

from dal.screenshot_dal import ScreenshotDAL
from models.errors import CorruptStoreError, ScreenshotNotesError, ValidationError
from models.screenshot_record import ScreenshotRecord, duplicate_ids
from utils.debounce import Debouncer, ErrorHandler, invoke

LOGGER = logging.getLogger(__name__)


class CollectionStore:
	"""Own the authoritative, newest-first list of screenshot records.

	One instance exists per application session (attached to `app.state`).
	Discrete operations save immediately; description edits are coalesced
	into a single save once `autosave_delay` seconds pass without a new edit.

	A discrete operation whose save fails is rolled back, so the in-memory
	collection never holds a change the snapshot refused. Description edits
	that could not be written stay in memory and are reported to every
	autosave error handler; `flush` retries them and raises on failure.
	"""

	def __init__(
		self,
		dal: ScreenshotDAL,
		autosave_delay: float = 1.0,
		on_autosave_error: Optional[ErrorHandler] = None,
	) -> None:
		self.dal = dal
		self._records: List[ScreenshotRecord] = []
		self.load_error: Optional[CorruptStoreError] = None
		self._edit_revision = 0
		self._saved_revision = 0
		self._error_handlers: List[ErrorHandler] = []
		if on_autosave_error is not None:
			self._error_handlers.append(on_autosave_error)
		self._autosave = Debouncer(autosave_delay, on_error=self._report_autosave_error)

	@property
	def autosave_pending(self) -> bool:
		return self._autosave.pending

	@property
	def has_unsaved_changes(self) -> bool:
		"""True while a description edit has not reached the snapshot."""
		return self._edit_revision != self._saved_revision

	def __len__(self) -> int:
		return len(self._records)

	def records(self) -> List[ScreenshotRecord]:
		"""Return a shallow copy of the collection in display order."""
		return list(self._records)

	def get(self, screenshot_id: str) -> Optional[ScreenshotRecord]:
		"""Return the record with `screenshot_id`, or None."""
		for record in self._records:
			if record.id == screenshot_id:
				return record
		return None

	def add_autosave_error_handler(self, handler: ErrorHandler) -> None:
		self._error_handlers.append(handler)

	def remove_autosave_error_handler(self, handler: ErrorHandler) -> None:
		if handler in self._error_handlers:
			self._error_handlers.remove(handler)

	async def load(self) -> List[ScreenshotRecord]:
		"""Replace the in-memory collection with the snapshot on disk (no save).

		Unsaved description edits are discarded; call `flush` first to keep
		them. A corrupt snapshot is remembered in `load_error`; until a
		successful load, `clear` or `replace_all`, saves are refused so the
		damaged file is not silently overwritten with a partial collection.
		"""
		self._autosave.cancel()
		try:
			self._records = await self.dal.load()
		except CorruptStoreError as exc:
			self.load_error = exc
			raise
		self.load_error = None
		self._saved_revision = self._edit_revision
		LOGGER.info("Loaded %d screenshots from %s", len(self._records), self.dal.snapshot_path)
		return self.records()

	async def add(self, record: ScreenshotRecord) -> ScreenshotRecord:
		"""Prepend `record` and save."""
		previous = self.records()
		self._records.insert(0, record)
		await self._commit(previous)
		return record

	async def remove(self, screenshot_id: str) -> bool:
		"""Remove the record with `screenshot_id`; returns False if it was absent."""
		for index, record in enumerate(self._records):
			if record.id == screenshot_id:
				previous = self.records()
				del self._records[index]
				await self._commit(previous)
				return True
		return False

	async def update_description(self, screenshot_id: str, text: str) -> Optional[ScreenshotRecord]:
		"""Replace a record's description and schedule a debounced save.

		Returns the updated record, or None if no record has that id.
		"""
		record = self.get(screenshot_id)
		if record is None:
			return None
		record.description = text
		self._edit_revision += 1
		self._autosave.schedule(self.save_now)
		return record

	async def clear(self) -> None:
		await self.replace_all([])

	async def replace_all(self, records: Iterable[ScreenshotRecord]) -> None:
		"""Swap in a whole new collection (sample data, refresh) and save.

		Raises:
			ValidationError: If two records share an id.
		"""
		records = list(records)
		duplicates = duplicate_ids(records)
		if duplicates:
			raise ValidationError(f"Duplicate screenshot id: {duplicates[0]}")
		previous, previous_error = self.records(), self.load_error
		self._records = records
		self.load_error = None
		try:
			await self._commit(previous)
		except ScreenshotNotesError:
			self.load_error = previous_error
			raise

	async def import_merge(self, candidates: Iterable[Any]) -> int:
		"""Merge imported entries, skipping any whose filename is already present.

		Entries without `filename` or `path` are ignored. Each accepted entry
		becomes a new record with a fresh id and is prepended. Saves only if
		something was added.

		Returns:
			Number of records added.
		"""
		previous = self.records()
		known = {record.filename for record in self._records}
		added = 0
		for item in candidates:
			if not ScreenshotRecord.is_import_candidate(item):
				continue
			record = ScreenshotRecord.from_import(item)
			if record.filename in known:
				continue
			known.add(record.filename)
			self._records.insert(0, record)
			added += 1
		if added:
			await self._commit(previous)
		LOGGER.info("Imported %d new screenshots", added)
		return added

	async def save_now(self) -> None:
		"""Persist the current collection, superseding any pending autosave.

		Raises:
			CorruptStoreError: If the last load failed (see `load`).
			PersistenceError: If the snapshot cannot be written.
		"""
		self._autosave.cancel()
		if self.load_error is not None:
			raise self.load_error
		revision = self._edit_revision
		await self.dal.save(self._records)
		self._saved_revision = revision

	async def flush(self) -> None:
		"""Write unsaved description edits now.

		Raises:
			CorruptStoreError, PersistenceError: If the edits cannot be saved;
			they stay in memory.
		"""
		if self.has_unsaved_changes:
			await self.save_now()
		else:
			self._autosave.cancel()

	async def close(self) -> None:
		await self.flush()

	async def _commit(self, previous: List[ScreenshotRecord]) -> None:
		"""Save the current collection, restoring `previous` if the save fails."""
		try:
			await self.save_now()
		except ScreenshotNotesError as exc:
			LOGGER.error("Save failed, change rolled back: %s", exc.message)
			self._records = previous
			raise

	async def _report_autosave_error(self, exc: Exception) -> None:
		for handler in list(self._error_handlers):
			try:
				await invoke(lambda: handler(exc))
			except Exception:
				LOGGER.exception("Autosave error handler failed")
