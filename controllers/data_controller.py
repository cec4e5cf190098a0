"""Controllers for named JSON documents and the static app descriptor."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict

from fastapi import HTTPException, Request

from controllers.screenshot_controller import to_http_error
from dal.data_file_dal import DataFileDAL
from models.errors import ScreenshotNotesError
from utils.app_config import APP_DESCRIPTION, APP_NAME, APP_VERSION
from utils.media_validation import SUPPORTED_EXTENSIONS

LOGGER = logging.getLogger(__name__)

FEATURES = [
    "screenshot-upload",
    "description-editing",
    "search-filtering",
    "json-import-export",
    "fullscreen-viewer",
    "drag-drop-support",
]


def _get_data_dal(request: Request) -> DataFileDAL:
    storage = request.app.state.storage
    return DataFileDAL(storage.data_dir)


async def load_data_file(request: Request, filename: str) -> Dict[str, Any]:
    """Return a named JSON document from the data directory."""
    try:
        result = await _get_data_dal(request).load(filename)
    except ScreenshotNotesError as exc:
        raise to_http_error(exc) from exc
    except FileNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"JSON file not found: {filename}") from exc
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        LOGGER.error("Error loading JSON data %s: %s", filename, exc)
        raise HTTPException(status_code=500, detail=f"Failed to load JSON data: {exc}") from exc
    return {"success": True, **result}


async def save_data_file(request: Request, filename: str, data: Any) -> Dict[str, Any]:
    """Write `data` as a named JSON document in the data directory."""
    try:
        result = await _get_data_dal(request).save(filename, data)
    except ScreenshotNotesError as exc:
        LOGGER.error("Error saving JSON data %s: %s", filename, exc.message)
        raise to_http_error(exc) from exc
    return {"success": True, "message": f"Data saved to {filename}", **result}


async def list_data_files(request: Request) -> Dict[str, Any]:
    files = _get_data_dal(request).list_files()
    return {"success": True, "files": files, "total": len(files)}


async def app_info(request: Request) -> Dict[str, Any]:
    """Static capability descriptor."""
    storage = request.app.state.storage
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": APP_DESCRIPTION,
        "features": FEATURES,
        "dataDir": str(storage.data_dir),
        "assetsDir": str(storage.screenshots_dir),
        "supportedFormats": list(SUPPORTED_EXTENSIONS),
    }
