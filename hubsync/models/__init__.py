"""
Data models - hub resources, the cross-hub id mapping and the action log
"""

from .resource import HubResource, Hub, ContentItem
from .event import (
    Event, Edition, Slot, EventWithEditions, EditionWithSlots,
    PublishingStatus, SCHEDULED_STATUSES,
    EditionScheduleError, EditionScheduleOverlap, ScheduleErrorLevel
)
from .snapshot import Snapshot, SnapshotType, SnapshotCreator
from .content_mapping import ContentMapping, get_default_mapping_path
from .action_log import ActionLog, FileLog, LogErrorLevel, get_default_log_path

__all__ = [
    # Hub resources
    "HubResource",
    "Hub",
    "ContentItem",

    # Event related
    "Event",
    "Edition",
    "Slot",
    "EventWithEditions",
    "EditionWithSlots",
    "PublishingStatus",
    "SCHEDULED_STATUSES",
    "EditionScheduleError",
    "EditionScheduleOverlap",
    "ScheduleErrorLevel",

    # Snapshot related
    "Snapshot",
    "SnapshotType",
    "SnapshotCreator",

    # Run state
    "ContentMapping",
    "get_default_mapping_path",
    "ActionLog",
    "FileLog",
    "LogErrorLevel",
    "get_default_log_path",
]
