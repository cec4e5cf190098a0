"""Filtered view over the screenshot collection."""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence

from models.screenshot_record import ScreenshotRecord
from utils.debounce import Debouncer


def filter_records(records: Sequence[ScreenshotRecord], term: Optional[str]) -> List[ScreenshotRecord]:
    """Return the records whose description or filename contains `term`.

    Matching is a case-insensitive substring test. A blank term means no
    filter: the full collection is returned in its current order. The input
    sequence is never modified.
    """
    needle = (term or "").strip().lower()
    if not needle:
        return list(records)
    return [
        record
        for record in records
        if needle in record.description.lower() or needle in record.filename.lower()
    ]


class SearchView:
    """Hold the current search term and publish a recomputed view after a quiet window.

    Args:
        source: Callable returning the records to filter (usually `store.records`).
        publish: Called with the filtered list once the term settles.
        delay: Quiet window in seconds.
    """

    def __init__(
        self,
        source: Callable[[], Sequence[ScreenshotRecord]],
        publish: Callable[[List[ScreenshotRecord]], Any],
        delay: float = 0.3,
    ) -> None:
        self.source = source
        self.publish = publish
        self.term = ""
        self._debouncer = Debouncer(delay)

    def current(self, records: Optional[Sequence[ScreenshotRecord]] = None) -> List[ScreenshotRecord]:
        """Filter `records` (or the source collection) with the current term."""
        return filter_records(self.source() if records is None else records, self.term)

    def set_term(self, term: str) -> None:
        """Record a new term and (re)start the quiet window before publishing."""
        self.term = term or ""
        self._debouncer.schedule(lambda: self.publish(self.current()))

    async def flush(self) -> None:
        await self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
