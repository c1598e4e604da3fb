"""
Export directory helpers - reading and writing Event / Snapshot JSON files
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

from pydantic import ValidationError

from ..models import EventWithEditions

logger = logging.getLogger(__name__)


class ImportFileError(Exception):
    """A file in the import directory is not a valid Event export"""
    pass


def write_json_to_file(filename: Union[str, Path], data: Any) -> None:
    with open(filename, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def unique_filename_path(directory: Union[str, Path], name: str, extension: str, used: List[str]) -> str:
    """
    Path for name.extension inside directory that is not already in use.

    Clashes (case-insensitive) are resolved with a -1, -2, ... suffix.
    """
    safe_name = (name or "event").replace("/", "_").replace("\\", "_")
    used_lower = {filename.lower() for filename in used}

    counter = 0
    while True:
        suffix = "" if counter == 0 else f"-{counter}"
        candidate = str(Path(directory) / f"{safe_name}{suffix}.{extension}")
        if candidate.lower() not in used_lower:
            return candidate
        counter += 1


def load_events_from_directory(directory: Union[str, Path], strict: bool = True) -> Dict[str, EventWithEditions]:
    """
    Read every *.json file directly inside directory as an EventWithEditions.

    Args:
        directory: Export directory (subdirectories such as snapshots/ are ignored)
        strict: Raise ImportFileError on a bad file instead of skipping it

    Returns:
        filename -> event
    """
    path = Path(directory)
    if not path.is_dir():
        return {}

    events: Dict[str, EventWithEditions] = {}
    for file_path in sorted(path.glob("*.json")):
        try:
            with open(file_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            events[str(file_path)] = EventWithEditions.from_dict(data)
        except (OSError, ValueError, ValidationError) as e:
            if strict:
                raise ImportFileError(f"Non-event file found: {file_path.name}, aborting import") from e
            logger.warning(f"Ignoring unreadable export file {file_path.name}: {e}")

    return events
