"""Print the descriptions stored in the screenshot collection.

Reads the same snapshot the server uses (`<data_dir>/screenshots.json`,
configured through `SCREENSHOT_NOTES_DATA_DIR`) and prints every record
that has a description. An optional search term filters the output the
same way the gallery search box does.

Run: `python print_notes.py [search term]`
"""
import asyncio
import sys
from typing import List, Optional

from dotenv import load_dotenv

from dal.screenshot_dal import ScreenshotDAL
from models.screenshot_record import ScreenshotRecord
from services.search_view import filter_records
from utils.app_config import AppConfig


def _format_record(record: ScreenshotRecord) -> Optional[str]:
    """Return a one-line summary, or None for records without a description.

    Args:
        record: The screenshot record to render.
    """
    text = record.description.strip()
    if not text:
        return None
    return f"{record.date}  {record.filename}: {text!r}"


async def main(argv: List[str]) -> None:
    """Load the snapshot and print annotated records matching the optional term."""
    load_dotenv()
    config = AppConfig.from_env()
    records = await ScreenshotDAL(config.screenshots_file).load()
    term = " ".join(argv).strip()
    matches = filter_records(records, term)

    print(f"Snapshot: {config.screenshots_file} ({len(records)} screenshots)")
    for record in matches:
        line = _format_record(record)
        if line:
            print(f"  {line}")


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1:]))
