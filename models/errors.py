"""Exception types raised by the screenshot collection core.

Each error carries the HTTP status the API layer should answer with, so
controllers can translate them without a lookup table.
"""

from __future__ import annotations

from typing import Optional


class ScreenshotNotesError(Exception):
    """Base class for all application errors.

    Attributes:
        message: Human-readable description shown to the user.
        status_code: HTTP status code returned by the API layer.
    """

    status_code: int = 500

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class CorruptStoreError(ScreenshotNotesError):
    """The backing JSON file exists but is unreadable or not an array."""

    status_code = 500


class PersistenceError(ScreenshotNotesError):
    """Writing the backing JSON file failed (disk full, permission denied)."""

    status_code = 500


class IngestionError(ScreenshotNotesError):
    """A single file could not be validated or stored."""

    status_code = 400

    def __init__(self, message: str, filename: Optional[str] = None) -> None:
        self.filename = filename
        super().__init__(message)


class ValidationError(ScreenshotNotesError):
    """A request body or parameter is malformed."""

    status_code = 400
