from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import HTTPException, Request, UploadFile

from models.errors import ScreenshotNotesError, ValidationError
from models.ingestion_models import RawFileCandidate
from models.screenshot_record import ScreenshotRecord, duplicate_ids
from services.collection_store import CollectionStore
from services.ingestion import IngestionPipeline
from utils.app_config import MAX_FILES_PER_UPLOAD

LOGGER = logging.getLogger(__name__)


def to_http_error(exc: ScreenshotNotesError) -> HTTPException:
    """Translate an application error into the matching HTTPException."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)


def _get_store(request: Request) -> CollectionStore:
    store = getattr(request.app.state, "store", None)
    if store is None:
        raise HTTPException(status_code=500, detail="Screenshot store not initialized.")
    return store


def _get_pipeline(request: Request) -> IngestionPipeline:
    pipeline = getattr(request.app.state, "pipeline", None)
    if pipeline is None:
        raise HTTPException(status_code=500, detail="Ingestion pipeline not initialized.")
    return pipeline


async def list_screenshots(request: Request) -> Dict[str, Any]:
    """Return the collection as stored on disk.

    Unsaved description edits are written first and the store is reloaded,
    so the response and the in-memory collection both reflect the file. If
    the edits cannot be written the reload is skipped and they stay in memory.

    Raises:
        HTTPException(500) if the snapshot file is corrupt or cannot be saved.
    """
    store = _get_store(request)
    try:
        await store.flush()
        records = await store.load()
    except ScreenshotNotesError as exc:
        LOGGER.error("Error loading screenshots: %s", exc.message)
        raise to_http_error(exc) from exc
    return {
        "success": True,
        "data": [record.to_dict() for record in records],
        "count": len(records),
    }


def parse_collection(payload: Any) -> List[ScreenshotRecord]:
    """Validate a posted collection body and convert it to records.

    Raises:
        ValidationError: If the body is not an array of screenshot objects
            with distinct ids.
    """
    if not isinstance(payload, list):
        raise ValidationError("Screenshots data must be an array")
    records: List[ScreenshotRecord] = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ValidationError(f"Screenshot {index} must be an object")
        try:
            records.append(ScreenshotRecord.from_dict(item))
        except ValueError as exc:
            raise ValidationError(f"Screenshot {index}: {exc}") from exc
    duplicates = duplicate_ids(records)
    if duplicates:
        raise ValidationError(f"Duplicate screenshot id: {duplicates[0]}")
    return records


async def save_screenshots(request: Request, payload: Any) -> Dict[str, Any]:
    """Replace the whole collection with the posted array and save it."""
    store = _get_store(request)
    try:
        records = parse_collection(payload)
        await store.replace_all(records)
    except ScreenshotNotesError as exc:
        LOGGER.error("Error saving screenshots: %s", exc.message)
        raise to_http_error(exc) from exc
    return {
        "success": True,
        "message": f"Saved {len(records)} screenshots",
        "count": len(records),
    }


async def upload_screenshots(request: Request, files: List[UploadFile]) -> Dict[str, Any]:
    """Store uploaded images as assets and describe them.

    The descriptors are not yet records: the caller still adds them to the
    collection (or posts the updated collection) to persist them.

    Raises:
        HTTPException(400) if nothing was uploaded, too many files were sent,
        or every file was rejected.
    """
    if not files:
        raise HTTPException(status_code=400, detail="No files uploaded")
    if len(files) > MAX_FILES_PER_UPLOAD:
        raise HTTPException(
            status_code=400, detail=f"Too many files. At most {MAX_FILES_PER_UPLOAD} per upload."
        )

    pipeline = _get_pipeline(request)
    candidates = []
    for upload in files:
        content = await upload.read()
        candidates.append(
            RawFileCandidate(
                original_name=upload.filename or "upload",
                size=len(content),
                content=content,
                content_type=upload.content_type,
            )
        )

    summary = await pipeline.stage_batch(candidates)
    rejected = [r.to_dict() for r in summary.rejected]
    if not summary.staged:
        reasons = "; ".join(f"{r.original_name}: {r.reason}" for r in summary.rejected)
        raise HTTPException(status_code=400, detail=reasons or "No files uploaded")

    return {
        "success": True,
        "files": [asset.to_dict() for asset in summary.staged],
        "count": len(summary.staged),
        "rejected": rejected,
    }
