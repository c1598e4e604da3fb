"""
Event export

Fetches Events with their Editions and Slots, filters them by date and writes
one file per Event. Optionally saves the Snapshots referenced from Slot
content under snapshots/.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Set, Tuple, Union

from pydantic import BaseModel

from ..integrations import HubApiError, HubClient
from ..models import (
    ActionLog, ContentItem, Edition, EditionWithSlots, Event, EventWithEditions, Slot
)
from .dependency_scanner import find_dependency_ids, scan
from .event_files import load_events_from_directory, unique_filename_path, write_json_to_file

logger = logging.getLogger(__name__)


class ExportStatus(str, Enum):
    """Export result per file"""
    CREATED = "CREATED"
    UPDATED = "UPDATED"


class ExportRecord(BaseModel):
    """File to be written for one Event"""
    filename: str
    status: ExportStatus
    event: EventWithEditions


def relative_date(relative: str, now: Optional[datetime] = None) -> datetime:
    """
    Parse "NOW" or "<number>:DAYS" (e.g. "-7:DAYS") relative to now.

    Raises:
        ValueError: Unknown format or unit
    """
    now = now or datetime.now(timezone.utc)
    if relative == "NOW":
        return now

    parts = relative.split(":")
    if len(parts) != 2:
        raise ValueError(f"Unexpected relative date format: {relative}")

    amount, unit = parts
    if unit != "DAYS":
        raise ValueError(f"Unexpected relative date units: {unit}")

    try:
        return now + timedelta(days=float(amount))
    except ValueError:
        raise ValueError(f"Unexpected relative date amount: {amount}")


def _overlaps(start: Optional[datetime], end: Optional[datetime],
              from_date: Optional[datetime], to_date: Optional[datetime]) -> bool:
    if from_date is not None and end is not None and end < from_date:
        return False

    if to_date is not None and start is not None and start > to_date:
        return False

    return True


def filter_events(events: Iterable[Event], from_date: Optional[datetime] = None,
                  to_date: Optional[datetime] = None) -> List[Event]:
    """Keep events whose [start, end] intersects [from_date, to_date]; both bounds optional"""
    return [event for event in events if _overlaps(event.start, event.end, from_date, to_date)]


def filter_editions(editions: Iterable[Edition], from_date: Optional[datetime] = None,
                    to_date: Optional[datetime] = None) -> List[Edition]:
    """Same rule as filter_events, for editions"""
    return [edition for edition in editions if _overlaps(edition.start, edition.end, from_date, to_date)]


def locate_snapshots(slots: Iterable[Slot], snapshots: Set[str]) -> None:
    """Add the snapshot id of every link/reference in the slots' content to snapshots"""
    for slot in slots:
        if slot.body:
            snapshots.update(find_dependency_ids(slot.content))


class EventExporter:
    """
    Event exporter
    - Edition / Slot enrichment with per-resource failure handling
    - Export file naming and overwrite detection
    - Snapshot discovery and export
    """

    def __init__(self, client: HubClient, log: ActionLog):
        self.client = client
        self.log = log

    async def enrich_editions(self, editions: List[Edition]) -> List[EditionWithSlots]:
        """Attach slots to each edition. An edition whose slots cannot be listed is left out."""
        enriched = []

        for edition in editions:
            try:
                slots = await self.client.list_slots(edition.id)
            except HubApiError as e:
                self.log.warn(f"Failed to fetch slots for edition {edition.name}, skipping.", e)
                continue

            enriched.append(EditionWithSlots.model_validate({
                **edition.model_dump(by_alias=True, exclude_none=True),
                "slots": slots
            }))

        return enriched

    async def enrich_events(self, events: List[Event]) -> List[EventWithEditions]:
        """Attach editions (with slots) to each event, dropping events whose editions cannot be listed"""
        enriched = []

        for event in events:
            self.log.append_line(f"Fetching {event.name} with editions.")

            with_editions = EventWithEditions.model_validate(event.model_dump(by_alias=True, exclude_none=True))
            try:
                editions = await self.client.list_editions(event.id)
                with_editions.editions = await self.enrich_editions(editions)
            except HubApiError as e:
                self.log.warn(f"Failed to fetch editions for {event.name}, skipping.", e)

            enriched.append(with_editions)

        return [event for event in enriched if event.editions is not None]

    async def _scan_snapshot_item(self, snapshot_id: str, item: ContentItem) -> None:
        # Diagnostic only: nested snapshots are not exported
        for dependency in scan(item.body):
            item_id = dependency.root_content_item_id
            kind = "link" if dependency.is_link else "reference"
            self.log.append_line(f"... scanning item {item_id} ({kind}) {dependency.schema}")
            if not item_id:
                continue

            try:
                await self.client.get_snapshot_content_item(snapshot_id, item_id)
                self.log.append_line("... found in snapshot")
            except HubApiError:
                self.log.append_line("... not in snapshot")

    async def export_snapshots(self, output_dir: Union[str, Path], snapshots: Set[str]) -> None:
        """Write snapshots/<id>.json with the snapshot and its resolved root content items"""
        base_dir = Path(output_dir) / "snapshots"
        base_dir.mkdir(parents=True, exist_ok=True)

        self.log.append_line(f"Saving {len(snapshots)} snapshots to './snapshots/'.")

        for snapshot_id in sorted(snapshots):
            self.log.append_line(f"Fetching snapshot {snapshot_id}.")

            try:
                snapshot = await self.client.get_snapshot(snapshot_id)

                content = []
                for root_item in snapshot.root_content_items:
                    item = await self.client.get_snapshot_content_item(snapshot_id, root_item.get("id"))
                    await self._scan_snapshot_item(snapshot_id, item)
                    content.append(item.to_dict())

                snapshot.content = content
            except HubApiError as e:
                self.log.warn(f"Could not fetch snapshot {snapshot_id}, continuing: ", e)
                continue

            try:
                write_json_to_file(base_dir / f"{snapshot_id}.json", snapshot.to_dict())
            except OSError as e:
                self.log.warn(f"Could not write snapshot {snapshot_id}, continuing: ", e)

    async def locate_and_export_snapshots(self, output_dir: Union[str, Path],
                                          events: List[EventWithEditions]) -> Set[str]:
        snapshots: Set[str] = set()

        self.log.append_line("Scanning slots for snapshots.")

        for event in events:
            for edition in event.editions or []:
                locate_snapshots(edition.slots, snapshots)

        await self.export_snapshots(output_dir, snapshots)
        return snapshots

    @staticmethod
    def get_export_record_for_event(event: EventWithEditions, output_dir: Union[str, Path],
                                    previously_exported: Dict[str, EventWithEditions]) -> ExportRecord:
        for filename, previous in previously_exported.items():
            if previous.id == event.id:
                return ExportRecord(filename=filename, status=ExportStatus.UPDATED, event=event)

        filename = unique_filename_path(output_dir, event.name, "json", list(previously_exported.keys()))

        # This filename is now taken
        previously_exported[filename] = event

        return ExportRecord(filename=filename, status=ExportStatus.CREATED, event=event)

    def get_event_exports(self, output_dir: Union[str, Path],
                          previously_exported: Dict[str, EventWithEditions],
                          events: List[EventWithEditions]) -> Tuple[List[ExportRecord], List[ExportRecord]]:
        """All export records, and the subset that overwrites existing files"""
        all_exports = []
        updated = []

        for event in events:
            if not event.id:
                continue

            record = self.get_export_record_for_event(event, output_dir, previously_exported)
            all_exports.append(record)
            if record.status == ExportStatus.UPDATED:
                updated.append(record)

        return all_exports, updated

    async def _fetch_events(self, hub_id: str, event_id: Optional[str],
                            from_date: Optional[datetime], to_date: Optional[datetime]) -> Optional[List[Event]]:
        if event_id:
            try:
                event = await self.client.get_event(event_id)
            except HubApiError as e:
                self.log.error(f"Failed to get event with id {event_id}, aborting.", e)
                return None

            self.log.append_line(f"Exporting single event {event.name}.")
            return [event]

        try:
            stored_events = await self.client.list_events(hub_id)
        except HubApiError as e:
            self.log.error("Failed to list events.", e)
            return []

        filtered = filter_events(stored_events, from_date, to_date)
        self.log.append_line(f"Exporting {len(filtered)} of {len(stored_events)} events...")
        return filtered

    async def export(
        self,
        hub_id: str,
        output_dir: Union[str, Path],
        event_id: Optional[str] = None,
        from_date: Optional[datetime] = None,
        to_date: Optional[datetime] = None,
        snapshots: bool = False,
        confirm_overwrite: Optional[Callable[[List[ExportRecord]], bool]] = None
    ) -> List[ExportRecord]:
        """
        Export events from a hub into output_dir.

        Args:
            hub_id: Source hub
            output_dir: Export directory, created if needed
            event_id: Export only this event (date filters are ignored)
            from_date: Drop events that end before this
            to_date: Drop events that start after this
            snapshots: Also export referenced snapshots to snapshots/
            confirm_overwrite: Asked before overwriting files; None overwrites

        Returns:
            Written export records (empty when nothing was exported)
        """
        previously_exported = load_events_from_directory(output_dir, strict=False)

        try:
            hub = await self.client.get_hub(hub_id)
        except HubApiError as e:
            self.log.error(f"Couldn't get hub with id {hub_id}, aborting.", e)
            return []

        events = await self._fetch_events(hub.id, event_id, from_date, to_date)
        if events is None:
            return []

        enriched = await self.enrich_events(events)

        if not enriched:
            self.log.append_line("No events to export from this hub, exiting.")
            return []

        all_exports, updated = self.get_event_exports(output_dir, previously_exported, enriched)
        if not all_exports or (updated and confirm_overwrite is not None and not confirm_overwrite(updated)):
            self.log.append_line("Nothing was exported, exiting.")
            return []

        Path(output_dir).mkdir(parents=True, exist_ok=True)

        for record in all_exports:
            write_json_to_file(record.filename, record.event.to_dict())
            self.log.add_comment(f"{record.status.value} {record.filename}")

        if snapshots:
            await self.locate_and_export_snapshots(output_dir, enriched)

        return all_exports
