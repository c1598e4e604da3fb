"""
Snapshot model - an immutable capture of a content item tree
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import Field

from .resource import HubResource


class SnapshotType(str, Enum):
    """Snapshot type"""
    USER = "USER"
    GENERATED = "GENERATED"


class SnapshotCreator(str, Enum):
    """What a snapshot was taken from"""
    CONTENT_ITEM = "content-item"
    USER = "user"


class Snapshot(HubResource):
    """Snapshot entity"""
    comment: Optional[str] = None
    created_from: Optional[SnapshotCreator] = None
    type: Optional[SnapshotType] = None
    content_root: Optional[str] = Field(None, description="Content item the snapshot was taken from")
    root_content_items: List[Dict[str, Any]] = Field(default_factory=list)

    # Only present in exported files: resolved bodies of root_content_items
    content: Optional[List[Dict[str, Any]]] = None

    @classmethod
    def generated_from(cls, content_item_id: str) -> "Snapshot":
        """New snapshot of the current state of a content item"""
        return cls(
            content_root=content_item_id,
            comment="",
            created_from=SnapshotCreator.CONTENT_ITEM,
            type=SnapshotType.GENERATED
        )
