"""Validation helpers for uploaded screenshot images."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

ALLOWED_IMAGE_TYPES = {
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
}

SUPPORTED_EXTENSIONS = ("jpg", "jpeg", "png", "gif", "webp", "bmp")

# Pillow format name -> MIME type
_PIL_FORMATS = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "GIF": "image/gif",
    "WEBP": "image/webp",
    "BMP": "image/bmp",
}

_EXTENSION_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
}

_TYPE_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/bmp": ".bmp",
}


def normalize_content_type(content_type: Optional[str]) -> Optional[str]:
    """Lower-case a MIME type and strip parameters; empty values become None."""
    if not content_type:
        return None
    cleaned = content_type.lower().split(";", 1)[0].strip()
    return cleaned or None


def sniff_image_type(head: bytes) -> Optional[str]:
    """Identify the image kind from the leading bytes of a file using Pillow.

    Returns the MIME type for supported kinds, or None when Pillow cannot
    identify the data or the format is not one we accept.
    """
    if not head:
        return None
    try:
        with Image.open(io.BytesIO(head)) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    return _PIL_FORMATS.get(fmt or "")


def sniff_image_file(path: Path) -> Optional[str]:
    """Like `sniff_image_type` but reads the file lazily from disk."""
    try:
        with Image.open(path) as img:
            fmt = img.format
    except (UnidentifiedImageError, OSError, ValueError):
        return None
    return _PIL_FORMATS.get(fmt or "")


def type_from_extension(filename: str) -> Optional[str]:
    return _EXTENSION_TYPES.get(Path(filename).suffix.lower())


def extension_for(original_name: str, content_type: str) -> str:
    """Return the stored file extension: the original one, else one derived from the type."""
    suffix = Path(original_name).suffix
    if suffix:
        return suffix
    return _TYPE_EXTENSIONS.get(content_type, "")


def is_allowed_image_type(content_type: Optional[str]) -> bool:
    return normalize_content_type(content_type) in ALLOWED_IMAGE_TYPES
