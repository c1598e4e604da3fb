"""
Shared fixtures - an in-memory hub implementing HubClient
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

import pytest

from hubsync.integrations import HubApiError, HubClient, HubNotFoundError
from hubsync.models import (
    ContentItem, Edition, Event, Hub, PublishingStatus, Slot, Snapshot
)

MUTATING_CALLS = (
    "create_event", "update_event",
    "create_edition", "update_edition", "schedule_edition", "unschedule_edition",
    "create_slot", "update_slot_content",
    "create_snapshot",
)


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FakeHub(HubClient):
    """In-memory hub. Every call is recorded in calls."""

    def __init__(self, hub_id: str = "hub-1"):
        self.hub = Hub(id=hub_id, name="test-hub", label="Test Hub")
        self.events: Dict[str, Event] = {}
        self.editions: Dict[str, Edition] = {}
        self.edition_events: Dict[str, str] = {}
        self.slots: Dict[str, Dict[str, Slot]] = {}
        self.snapshots: Dict[str, Snapshot] = {}
        self.snapshot_items: Dict[Tuple[str, str], ContentItem] = {}
        self.content_items: Dict[str, ContentItem] = {}

        self.calls: List[str] = []
        self.schedule_errors: List[Exception] = []
        self.unschedule_error: Optional[Exception] = None
        self._counter = 0

    async def __aenter__(self) -> "FakeHub":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        pass

    def _next_id(self, prefix: str) -> str:
        self._counter += 1
        return f"{prefix}-{self._counter}"

    def mutations(self) -> List[str]:
        return [call for call in self.calls if call in MUTATING_CALLS]

    # Seeding (not recorded)
    def add_event(self, event: Event) -> Event:
        self.events[event.id] = event
        return event

    def add_edition(self, event_id: str, edition: Edition) -> Edition:
        self.editions[edition.id] = edition
        self.edition_events[edition.id] = event_id
        self.slots.setdefault(edition.id, {})
        return edition

    def add_slot(self, edition_id: str, slot: Slot) -> Slot:
        self.slots.setdefault(edition_id, {})[slot.id] = slot
        return slot

    def add_snapshot(self, snapshot: Snapshot, items: List[ContentItem]) -> Snapshot:
        self.snapshots[snapshot.id] = snapshot
        for item in items:
            self.snapshot_items[(snapshot.id, item.id)] = item
        return snapshot

    @staticmethod
    def _get(table: Dict[str, Any], id: str, kind: str):
        if id not in table:
            raise HubNotFoundError(f"{kind} {id} not found", status_code=404)
        return table[id].model_copy(deep=True)

    async def get_hub(self, hub_id: str) -> Hub:
        self.calls.append("get_hub")
        if hub_id != self.hub.id:
            raise HubNotFoundError(f"hub {hub_id} not found", status_code=404)
        return self.hub.model_copy()

    async def get_event(self, event_id: str) -> Event:
        self.calls.append("get_event")
        return self._get(self.events, event_id, "event")

    async def list_events(self, hub_id: str) -> List[Event]:
        self.calls.append("list_events")
        return [event.model_copy(deep=True) for event in self.events.values()]

    async def create_event(self, hub_id: str, event: Event) -> Event:
        self.calls.append("create_event")
        created = Event.from_dict({**event.to_payload(), "id": self._next_id("event")})
        return self.add_event(created).model_copy(deep=True)

    async def update_event(self, event_id: str, event: Event) -> Event:
        self.calls.append("update_event")
        stored = self._get(self.events, event_id, "event")
        self.events[event_id] = Event.from_dict({**stored.to_dict(), **event.to_payload()})
        return self.events[event_id].model_copy(deep=True)

    async def get_edition(self, edition_id: str) -> Edition:
        self.calls.append("get_edition")
        return self._get(self.editions, edition_id, "edition")

    async def list_editions(self, event_id: str) -> List[Edition]:
        self.calls.append("list_editions")
        return [
            edition.model_copy(deep=True) for id, edition in self.editions.items()
            if self.edition_events[id] == event_id
        ]

    async def create_edition(self, event_id: str, edition: Edition) -> Edition:
        self.calls.append("create_edition")
        created = Edition.from_dict({
            **edition.to_payload(),
            "id": self._next_id("edition"),
            "publishingStatus": "DRAFT",
            "lastModifiedDate": "2020-01-01T00:00:00.000Z"
        })
        return self.add_edition(event_id, created).model_copy(deep=True)

    async def update_edition(self, edition_id: str, edition: Edition) -> Edition:
        self.calls.append("update_edition")
        stored = self._get(self.editions, edition_id, "edition")
        self.editions[edition_id] = Edition.from_dict({**stored.to_dict(), **edition.to_payload()})
        return self.editions[edition_id].model_copy(deep=True)

    async def schedule_edition(self, edition_id: str, ignore_warnings: bool,
                               last_modified_date: Optional[str]) -> None:
        self.calls.append("schedule_edition")
        if self.schedule_errors:
            raise self.schedule_errors.pop(0)
        self.editions[edition_id].publishing_status = PublishingStatus.SCHEDULED

    async def unschedule_edition(self, edition_id: str) -> None:
        self.calls.append("unschedule_edition")
        if self.unschedule_error is not None:
            raise self.unschedule_error
        self.editions[edition_id].publishing_status = PublishingStatus.DRAFT

    async def list_slots(self, edition_id: str) -> List[Slot]:
        self.calls.append("list_slots")
        if edition_id not in self.slots:
            raise HubApiError(f"edition {edition_id} has no slots", status_code=400)
        return [slot.model_copy(deep=True) for slot in self.slots[edition_id].values()]

    async def create_slot(self, edition_id: str, content_item_id: str) -> Slot:
        self.calls.append("create_slot")
        slot = Slot(id=self._next_id("slot"), slot_id=content_item_id, content={})
        return self.add_slot(edition_id, slot).model_copy(deep=True)

    async def update_slot_content(self, edition_id: str, slot_id: str, content: Dict[str, Any]) -> Slot:
        self.calls.append("update_slot_content")
        slot = self.slots[edition_id][slot_id]
        slot.content = copy.deepcopy(content)
        return slot.model_copy(deep=True)

    async def get_snapshot(self, snapshot_id: str) -> Snapshot:
        self.calls.append("get_snapshot")
        return self._get(self.snapshots, snapshot_id, "snapshot")

    async def get_snapshot_content_item(self, snapshot_id: str, content_item_id: str) -> ContentItem:
        self.calls.append("get_snapshot_content_item")
        key = (snapshot_id, content_item_id)
        if key not in self.snapshot_items:
            raise HubNotFoundError(f"item {content_item_id} not in snapshot {snapshot_id}", status_code=404)
        return self.snapshot_items[key].model_copy(deep=True)

    async def get_content_item(self, content_item_id: str) -> ContentItem:
        self.calls.append("get_content_item")
        return self._get(self.content_items, content_item_id, "content item")

    async def create_snapshot(self, hub_id: str, snapshot: Snapshot) -> Snapshot:
        self.calls.append("create_snapshot")
        created = snapshot.model_copy(update={"id": self._next_id("snapshot")})
        self.snapshots[created.id] = created
        return created.model_copy(deep=True)


def content_link(snapshot_id: str, item_id: str, content_type: str = "https://example.com/banner") -> Dict[str, Any]:
    return {
        "_meta": {
            "schema": "http://bigcontent.io/cms/schema/v1/core#/definitions/content-link",
            "rootContentItemId": item_id,
            "locked": True
        },
        "contentType": content_type,
        "id": snapshot_id
    }


def content_reference(snapshot_id: str, item_id: str, content_type: str = "https://example.com/banner") -> Dict[str, Any]:
    return {
        "_meta": {
            "schema": "http://bigcontent.io/cms/schema/v1/core#/definitions/content-reference",
            "rootContentItemId": item_id,
            "locked": True
        },
        "contentType": content_type,
        "id": snapshot_id
    }


@pytest.fixture
def fake_hub() -> FakeHub:
    return FakeHub()
