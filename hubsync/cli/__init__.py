"""
Command line interface
"""

from .event_cli import EventSyncCLI, app

__all__ = [
    "EventSyncCLI",
    "app"
]
