"""
Hub capability set

Everything the export/import engine needs from a content hub. The engine only
depends on this interface; RestHubClient is the HTTP implementation.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..models import (
    ContentItem, Edition, EditionScheduleError, Event, Hub, Slot, Snapshot
)

logger = logging.getLogger(__name__)


class HubApiError(Exception):
    """Non-success hub response"""

    def __init__(self, message: str, status_code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.data = data

    @property
    def errors(self) -> List[EditionScheduleError]:
        """Structured error entries of the response body, empty when the body has none"""
        if not isinstance(self.data, dict) or not isinstance(self.data.get("errors"), list):
            return []

        errors = []
        for entry in self.data["errors"]:
            try:
                errors.append(EditionScheduleError.model_validate(entry))
            except ValidationError:
                logger.debug(f"Unrecognised error entry: {entry}")
        return errors


class HubNotFoundError(HubApiError):
    """Requested resource does not exist"""
    pass


class HubClient(ABC):
    """Asynchronous hub operations on events, editions, slots, snapshots and content items"""

    @abstractmethod
    async def get_hub(self, hub_id: str) -> Hub:
        pass

    # Events
    @abstractmethod
    async def get_event(self, event_id: str) -> Event:
        pass

    @abstractmethod
    async def list_events(self, hub_id: str) -> List[Event]:
        pass

    @abstractmethod
    async def create_event(self, hub_id: str, event: Event) -> Event:
        pass

    @abstractmethod
    async def update_event(self, event_id: str, event: Event) -> Event:
        pass

    # Editions
    @abstractmethod
    async def get_edition(self, edition_id: str) -> Edition:
        pass

    @abstractmethod
    async def list_editions(self, event_id: str) -> List[Edition]:
        pass

    @abstractmethod
    async def create_edition(self, event_id: str, edition: Edition) -> Edition:
        pass

    @abstractmethod
    async def update_edition(self, edition_id: str, edition: Edition) -> Edition:
        pass

    @abstractmethod
    async def schedule_edition(
        self,
        edition_id: str,
        ignore_warnings: bool,
        last_modified_date: Optional[str]
    ) -> None:
        """Schedule an edition. Rejections carry EditionScheduleError entries in HubApiError.errors."""
        pass

    @abstractmethod
    async def unschedule_edition(self, edition_id: str) -> None:
        pass

    # Slots
    @abstractmethod
    async def list_slots(self, edition_id: str) -> List[Slot]:
        pass

    @abstractmethod
    async def create_slot(self, edition_id: str, content_item_id: str) -> Slot:
        pass

    @abstractmethod
    async def update_slot_content(self, edition_id: str, slot_id: str, content: Dict[str, Any]) -> Slot:
        pass

    # Snapshots / content items
    @abstractmethod
    async def get_snapshot(self, snapshot_id: str) -> Snapshot:
        pass

    @abstractmethod
    async def get_snapshot_content_item(self, snapshot_id: str, content_item_id: str) -> ContentItem:
        """Content item as captured by the snapshot"""
        pass

    @abstractmethod
    async def create_snapshot(self, hub_id: str, snapshot: Snapshot) -> Snapshot:
        pass

    @abstractmethod
    async def get_content_item(self, content_item_id: str) -> ContentItem:
        pass
