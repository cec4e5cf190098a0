"""Async JSON file helpers shared by the data access classes.

Writes go to a sibling temporary file which is then renamed over the
target, so readers never observe a half-written document.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import aiofiles
import aiofiles.os


def dumps(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


async def read_json_file(path: Path) -> Any:
    """Read and parse a JSON document.

    Raises:
        FileNotFoundError: If `path` does not exist.
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the content is not valid JSON.
    """
    async with aiofiles.open(path, "r", encoding="utf-8") as f:
        text = await f.read()
    return json.loads(text)


async def write_json_file(path: Path, data: Any) -> int:
    """Atomically replace `path` with `data` serialized as JSON.

    Returns:
        Number of characters written.

    Raises:
        OSError: If the temporary file cannot be written or renamed.
    """
    text = dumps(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_name(path.name + ".tmp")
    try:
        async with aiofiles.open(tmp_path, "w", encoding="utf-8") as f:
            await f.write(text)
        await aiofiles.os.replace(tmp_path, path)
    except OSError:
        if tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass
        raise
    return len(text)
