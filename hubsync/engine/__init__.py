"""
Export / import engine
"""

from .dependency_scanner import ContentDependency, scan, find_dependency_ids, is_content_dependency
from .event_files import ImportFileError, load_events_from_directory, unique_filename_path, write_json_to_file
from .exporter import (
    EventExporter, ExportRecord, ExportStatus,
    filter_editions, filter_events, locate_snapshots, relative_date
)
from .synchronizer import (
    EditionStateTimeoutError, EventSynchronizer,
    bound_time_range, prepare_edition_for_schedule, rewrite_snapshots, schedule_edition,
    should_update_edition, should_update_event, skip_schedule_if_needed, wait_until_unscheduled
)

__all__ = [
    # Dependency scanning
    "ContentDependency",
    "scan",
    "find_dependency_ids",
    "is_content_dependency",

    # Files
    "ImportFileError",
    "load_events_from_directory",
    "unique_filename_path",
    "write_json_to_file",

    # Export
    "EventExporter",
    "ExportRecord",
    "ExportStatus",
    "filter_editions",
    "filter_events",
    "locate_snapshots",
    "relative_date",

    # Import
    "EditionStateTimeoutError",
    "EventSynchronizer",
    "bound_time_range",
    "prepare_edition_for_schedule",
    "rewrite_snapshots",
    "schedule_edition",
    "should_update_edition",
    "should_update_event",
    "skip_schedule_if_needed",
    "wait_until_unscheduled",
]
