"""
Event synchronizer

Imports an exported Event tree into a destination hub:
- re-identifies Events, Editions and Slots through the ContentMapping
- rewrites snapshot references inside Slot content
- drives Edition scheduling (unschedule, update, reschedule)

Everything is sequential; the mapping and the log are owned by one run.
"""

import asyncio
import copy
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar, Union

from ..config import (
    INSTANT_ALLOWANCE_SECONDS,
    SCHEDULE_MIN_DURATION_SECONDS,
    SCHEDULE_START_ALLOWANCE_SECONDS,
    ImportOptions,
)
from ..integrations import HubApiError, HubClient, HubNotFoundError
from ..models import (
    ActionLog, ContentMapping, Edition, EditionWithSlots, Event, EventWithEditions,
    Hub, PublishingStatus, ScheduleErrorLevel, Slot, Snapshot
)
from .dependency_scanner import scan

logger = logging.getLogger(__name__)

T = TypeVar("T")

_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


class EditionStateTimeoutError(Exception):
    """Edition did not leave a transient publishing state in time"""

    def __init__(self, edition_id: str, status: Optional[PublishingStatus]):
        super().__init__(f"Edition {edition_id} is still {status.value if status else 'unknown'}")
        self.edition_id = edition_id
        self.status = status


def _now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def bound_time_range(real: Union[Event, Edition], proposed: Union[Event, Edition]) -> None:
    """
    Keep an existing destination window from being rewound.

    The end is never moved earlier than the destination end. The start is
    reset to the destination start once the window has begun.
    """
    instant = _now() + timedelta(seconds=INSTANT_ALLOWANCE_SECONDS)

    if real.end is not None and proposed.end is not None and proposed.end < real.end:
        proposed.end = real.end

    # TODO: existing_start is read from proposed, so the first comparison is always False; confirm with product whether real.start was meant
    existing_start = proposed.start
    if existing_start is not None and (existing_start < proposed.start or existing_start <= instant):
        proposed.start = real.start


def prepare_edition_for_schedule(edition: Edition, force: bool = False) -> None:
    """Move start/end of a to-be-scheduled edition far enough into the future"""
    if not (edition.is_scheduled() or force):
        return

    min_start = _now() + timedelta(seconds=SCHEDULE_START_ALLOWANCE_SECONDS)
    if edition.start is None or edition.start < min_start:
        edition.start = min_start

    min_end = edition.start + timedelta(seconds=SCHEDULE_MIN_DURATION_SECONDS)
    if edition.end is None or edition.end < min_end:
        edition.end = min_end


def skip_schedule_if_needed(edition: Edition, catchup: bool) -> None:
    """An edition that has already ended is imported as a draft unless catching up"""
    if edition.is_scheduled() and not catchup and edition.end is not None and edition.end < _now():
        edition.publishing_status = PublishingStatus.DRAFT


def should_update_event(proposed: Event, real: Event) -> bool:
    return (
        proposed.name != real.name
        or proposed.brief != real.brief
        or proposed.comment != real.comment
        or proposed.start != real.start
        or proposed.end != real.end
    )


def mapped_content(content: Dict[str, Any], mapping: ContentMapping) -> Dict[str, Any]:
    """Copy of slot content with every already-mapped reference translated"""
    result = copy.deepcopy(content)

    for dependency in scan(result):
        snapshot_id = mapping.get_snapshot(dependency.id)
        if snapshot_id:
            dependency.id = snapshot_id

        item_id = mapping.get_content_item(dependency.root_content_item_id)
        if item_id:
            dependency.root_content_item_id = item_id

    return result


def should_update_edition(
    proposed: Edition,
    real: Edition,
    slots: List[Slot],
    real_slots: List[Slot],
    mapping: ContentMapping
) -> bool:
    if (
        proposed.name != real.name
        or proposed.comment != real.comment
        or proposed.start != real.start
        or proposed.end != real.end
        or proposed.active_end_date != real.active_end_date
    ):
        return True

    if len(slots) != len(real_slots):
        return True

    real_by_id = {slot.id: slot for slot in real_slots}
    for slot in slots:
        real_slot = real_by_id.get(mapping.get_slot(slot.id) or slot.id)
        if real_slot is None:
            return True

        if mapped_content(slot.content, mapping) != real_slot.content:
            return True

    return False


async def rewrite_snapshots(
    content: Dict[str, Any],
    mapping: ContentMapping,
    client: HubClient,
    hub: Hub,
    log: ActionLog
) -> bool:
    """
    Point every reference in content at a destination snapshot, creating
    snapshots for references seen for the first time.

    Returns:
        True when at least one snapshot was created
    """
    created = False

    for dependency in scan(content):
        if not dependency.id:
            log.warn(f"Reference at {dependency.path_string()} has no snapshot id, leaving it unchanged.")
            continue

        snapshot_id = mapping.get_snapshot(dependency.id)
        item_id = mapping.get_content_item(dependency.root_content_item_id) or dependency.root_content_item_id

        if snapshot_id is None:
            if item_id is None:
                log.warn(f"Reference at {dependency.path_string()} has no content item, leaving it unchanged.")
                continue

            snapshot = await client.create_snapshot(hub.id, Snapshot.generated_from(item_id))
            mapping.register_snapshot(dependency.id, snapshot.id)
            log.add_action("SNAPSHOT-CREATE", snapshot.id)

            snapshot_id = snapshot.id
            created = True

        dependency.id = snapshot_id
        dependency.root_content_item_id = item_id

    return created


async def schedule_edition(client: HubClient, edition: Edition, log: ActionLog) -> None:
    """
    Schedule an edition, retrying once with warnings ignored after a
    structured rejection. An unstructured or second rejection propagates.
    """
    try:
        await client.schedule_edition(edition.id, False, edition.last_modified_date)
        return
    except HubApiError as e:
        errors = e.errors
        if not errors:
            raise

        for entry in errors:
            if entry.level == ScheduleErrorLevel.WARNING:
                log.warn(entry.describe())
            else:
                log.error(entry.describe())

    await client.schedule_edition(edition.id, True, edition.last_modified_date)


async def wait_until_unscheduled(client: HubClient, edition_id: str, options: ImportOptions) -> Edition:
    """
    Refetch an edition until it leaves UNSCHEDULING.

    Raises:
        EditionStateTimeoutError: Still UNSCHEDULING after the configured attempts
    """
    delay = options.unschedule_poll_delay_seconds
    edition = await client.get_edition(edition_id)

    for attempt in range(options.unschedule_poll_attempts):
        if edition.publishing_status != PublishingStatus.UNSCHEDULING:
            return edition

        logger.debug(f"Edition {edition_id} still unscheduling (attempt {attempt + 1})")
        await asyncio.sleep(delay)
        delay = min(delay * 2, options.unschedule_poll_max_delay_seconds)
        edition = await client.get_edition(edition_id)

    if edition.publishing_status == PublishingStatus.UNSCHEDULING:
        raise EditionStateTimeoutError(edition_id, edition.publishing_status)

    return edition


def _end_sort_key(edition: Edition) -> datetime:
    return edition.end or _FAR_FUTURE


class EventSynchronizer:
    """
    Event importer
    - resolution: mapping, then original id, then create
    - diff predicates skip unchanged resources
    - the mapping is updated as resources are created
    """

    def __init__(
        self,
        client: HubClient,
        hub: Hub,
        mapping: ContentMapping,
        log: ActionLog,
        options: Optional[ImportOptions] = None
    ):
        """
        Args:
            client: Destination hub
            hub: Destination hub record
            mapping: Source -> destination ids, mutated during the run
            log: Run log
            options: Import options
        """
        self.client = client
        self.hub = hub
        self.mapping = mapping
        self.log = log
        self.options = options or ImportOptions()

    @staticmethod
    async def _fetch(getter: Callable[[str], Awaitable[T]], id: Optional[str]) -> Optional[T]:
        if not id:
            return None
        try:
            return await getter(id)
        except HubNotFoundError:
            return None

    async def _resolve(
        self,
        source_id: Optional[str],
        mapped_id: Optional[str],
        getter: Callable[[str], Awaitable[T]]
    ) -> Optional[T]:
        """Destination resource by mapped id, then by original id when enabled"""
        resource = await self._fetch(getter, mapped_id)
        if resource is None and self.options.original_ids:
            resource = await self._fetch(getter, source_id)
        return resource

    async def import_events(self, events: List[EventWithEditions]) -> None:
        for event in events:
            await self.import_event(event)

    async def import_event(self, event: EventWithEditions) -> None:
        self.log.append_line(f"Importing event {event.name}.")

        proposed = event.filtered()
        real = await self._resolve(event.id, self.mapping.get_event(event.id), self.client.get_event)

        if real is None:
            real = await self.client.create_event(self.hub.id, proposed)
            self.log.add_comment(f"Created event {real.name}.")
            self.log.add_action("EVENT-CREATE", real.id)
        else:
            bound_time_range(real, proposed)
            if should_update_event(proposed, real):
                real = await self.client.update_event(real.id, proposed)
                self.log.add_comment(f"Updated event {real.name}.")
                self.log.add_action("EVENT-UPDATE", real.id)
            else:
                self.log.add_comment(f"Event {real.name} is unchanged.")

        if event.id:
            self.mapping.register_event(event.id, real.id)

        await self.import_editions(event.editions or [], real)

    async def import_editions(self, editions: List[EditionWithSlots], event: Event) -> None:
        """Import editions in ascending end order"""
        for edition in sorted(editions, key=_end_sort_key):
            await self.import_edition(edition, event)

    async def import_edition(self, edition: EditionWithSlots, event: Event) -> None:
        skip_schedule_if_needed(edition, self.options.catchup)
        if not self.options.schedule and edition.is_scheduled():
            edition.publishing_status = PublishingStatus.DRAFT

        schedule = edition.is_scheduled()
        proposed = edition.filtered()

        real = await self._resolve(edition.id, self.mapping.get_edition(edition.id), self.client.get_edition)

        if real is None:
            prepare_edition_for_schedule(proposed)
            real = await self.client.create_edition(event.id, proposed)
            self.log.add_comment(f"Created edition {real.name}.")
            self.log.add_action("EDITION-CREATE", real.id)
            if edition.id:
                self.mapping.register_edition(edition.id, real.id)
        else:
            if edition.id:
                self.mapping.register_edition(edition.id, real.id)

            real_slots = await self.client.list_slots(real.id)
            bound_time_range(real, proposed)

            schedule_needed = schedule and not real.is_scheduled()
            if not should_update_edition(proposed, real, edition.slots, real_slots, self.mapping) and not schedule_needed:
                self.log.add_comment(f"Edition {real.name} is unchanged.")
                return

            if real.publishing_status == PublishingStatus.UNSCHEDULING or real.can_transition_to(PublishingStatus.UNSCHEDULING):
                try:
                    if real.publishing_status != PublishingStatus.UNSCHEDULING:
                        await self.client.unschedule_edition(real.id)
                    real = await wait_until_unscheduled(self.client, real.id, self.options)
                except (HubApiError, EditionStateTimeoutError) as e:
                    self.log.warn(f"Failed to unschedule edition {real.name}, skipping update.", e)
                    return
            elif real.is_scheduled():
                self.log.add_comment(f"Edition {real.name} is already published, skipping update.")
                return

            prepare_edition_for_schedule(proposed)
            real = await self.client.update_edition(real.id, proposed)
            self.log.add_comment(f"Updated edition {real.name}.")
            self.log.add_action("EDITION-UPDATE", real.id)

        new_snapshots = await self.import_slots(edition.slots, real)

        if schedule and not real.is_scheduled():
            real = await self.client.get_edition(real.id)

            if new_snapshots:
                previous_start = proposed.start
                prepare_edition_for_schedule(proposed, force=True)
                if proposed.start != previous_start:
                    real = await self.client.update_edition(real.id, proposed)

            await schedule_edition(self.client, real, self.log)
            self.log.add_comment(f"Scheduled edition {real.name}.")

    async def import_slots(self, slots: List[Slot], edition: Edition) -> bool:
        """
        Create or update every slot of an edition.

        Returns:
            True when snapshot rewriting created new snapshots
        """
        real_slots = {slot.id: slot for slot in await self.client.list_slots(edition.id)}
        created = False

        for slot in slots:
            real = real_slots.get(self.mapping.get_slot(slot.id))
            if real is None and self.options.original_ids:
                real = real_slots.get(slot.id)

            action = "SLOT-UPDATE"
            if real is None:
                item_id = self.mapping.get_content_item(slot.slot_id) or slot.slot_id
                real = await self.client.create_slot(edition.id, item_id)
                action = "SLOT-CREATE"

            if slot.id:
                self.mapping.register_slot(slot.id, real.id)

            content = copy.deepcopy(slot.content)
            if await self.rewrite_snapshots(content):
                created = True

            await self.client.update_slot_content(edition.id, real.id, content)
            self.log.add_comment(f"{'Created' if action == 'SLOT-CREATE' else 'Updated'} slot {real.id}.")
            self.log.add_action(action, real.id)

        return created

    async def rewrite_snapshots(self, content: Dict[str, Any]) -> bool:
        return await rewrite_snapshots(content, self.mapping, self.client, self.hub, self.log)
