"""
Cross-hub identifier mapping

Source hub id -> destination hub id, per resource kind. Persisted between runs
so a repeated import only touches what changed.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


def get_default_mapping_path(name: str) -> Path:
    """Default mapping file for an import target, e.g. hub-<id>"""
    return Path.home() / ".hubsync" / "imports" / f"{name}.json"


class SerializedContentMapping(BaseModel):
    """On-disk mapping format: one list of [from, to] pairs per kind"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    events: List[Tuple[str, str]] = Field(default_factory=list)
    editions: List[Tuple[str, str]] = Field(default_factory=list)
    slots: List[Tuple[str, str]] = Field(default_factory=list)
    content_items: List[Tuple[str, str]] = Field(default_factory=list)
    snapshots: List[Tuple[str, str]] = Field(default_factory=list)


class ContentMapping:
    """Identity table between a source hub and a destination hub"""

    def __init__(self):
        self.events: Dict[str, str] = {}
        self.editions: Dict[str, str] = {}
        self.slots: Dict[str, str] = {}
        self.content_items: Dict[str, str] = {}
        self.snapshots: Dict[str, str] = {}

    @staticmethod
    def _get(table: Dict[str, str], id: Optional[str]) -> Optional[str]:
        if id is None:
            return None
        return table.get(id)

    def get_event(self, id: Optional[str]) -> Optional[str]:
        return self._get(self.events, id)

    def register_event(self, from_id: str, to_id: str) -> None:
        self.events[from_id] = to_id

    def get_edition(self, id: Optional[str]) -> Optional[str]:
        return self._get(self.editions, id)

    def register_edition(self, from_id: str, to_id: str) -> None:
        self.editions[from_id] = to_id

    def get_slot(self, id: Optional[str]) -> Optional[str]:
        return self._get(self.slots, id)

    def register_slot(self, from_id: str, to_id: str) -> None:
        self.slots[from_id] = to_id

    def get_content_item(self, id: Optional[str]) -> Optional[str]:
        return self._get(self.content_items, id)

    def register_content_item(self, from_id: str, to_id: str) -> None:
        self.content_items[from_id] = to_id

    def get_snapshot(self, id: Optional[str]) -> Optional[str]:
        return self._get(self.snapshots, id)

    def register_snapshot(self, from_id: str, to_id: str) -> None:
        self.snapshots[from_id] = to_id

    def save(self, filename: Union[str, Path]) -> None:
        """Write the whole mapping atomically (temp file + rename)"""
        path = Path(filename)
        path.parent.mkdir(parents=True, exist_ok=True)

        serialized = SerializedContentMapping(
            events=list(self.events.items()),
            editions=list(self.editions.items()),
            slots=list(self.slots.items()),
            content_items=list(self.content_items.items()),
            snapshots=list(self.snapshots.items())
        )
        text = serialized.model_dump_json(by_alias=True, indent=2)

        fd, temp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(temp_name, path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        logger.debug(f"Mapping saved to {path}")

    def load(self, filename: Union[str, Path]) -> bool:
        """Replace the tables with the file contents. False if the file is missing or unusable."""
        try:
            text = Path(filename).read_text(encoding="utf-8")
            serialized = SerializedContentMapping.model_validate_json(text)
        except (OSError, ValidationError) as e:
            logger.debug(f"Mapping not loaded from {filename}: {e}")
            return False

        self.events = dict(serialized.events)
        self.editions = dict(serialized.editions)
        self.slots = dict(serialized.slots)
        self.content_items = dict(serialized.content_items)
        self.snapshots = dict(serialized.snapshots)
        return True
