"""
Event / Edition / Slot models

An Event holds Editions; an Edition holds Slots whose content is scheduled
and published together. Editions move through the hub's publishing states.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .resource import HubResource


class PublishingStatus(str, Enum):
    """Edition publishing status"""
    DRAFT = "DRAFT"
    SCHEDULING = "SCHEDULING"
    SCHEDULED = "SCHEDULED"
    PUBLISHING = "PUBLISHING"
    PUBLISHED = "PUBLISHED"
    UNSCHEDULING = "UNSCHEDULING"


SCHEDULED_STATUSES = {
    PublishingStatus.SCHEDULING,
    PublishingStatus.SCHEDULED,
    PublishingStatus.PUBLISHING,
    PublishingStatus.PUBLISHED,
}


class Event(HubResource):
    """Event entity"""
    name: Optional[str] = Field(None, description="Display name, not unique across hubs")
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    comment: Optional[str] = None
    brief: Optional[str] = Field(None, description="Brief URL")

    def filtered(self) -> "Event":
        """Copy holding only the fields accepted on create/update"""
        return Event(
            name=self.name,
            start=self.start,
            end=self.end,
            comment=self.comment,
            brief=self.brief
        )

    def to_payload(self) -> Dict[str, Any]:
        """Request body for create/update"""
        return self.filtered().to_dict()


class Edition(HubResource):
    """Edition entity"""
    name: Optional[str] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    comment: Optional[str] = None
    active_end_date: Optional[bool] = None
    publishing_status: Optional[PublishingStatus] = None
    last_modified_date: Optional[str] = None

    def filtered(self) -> "Edition":
        """Copy holding the writable fields, plus the status used to plan scheduling"""
        return Edition(
            name=self.name,
            start=self.start,
            end=self.end,
            comment=self.comment,
            active_end_date=self.active_end_date,
            publishing_status=self.publishing_status
        )

    def to_payload(self) -> Dict[str, Any]:
        """Request body for create/update"""
        data = self.filtered().to_dict()
        data.pop("publishingStatus", None)
        return data

    def is_scheduled(self) -> bool:
        """Scheduled, or already on its way to publish"""
        return self.publishing_status in SCHEDULED_STATUSES

    def can_transition_to(self, new_status: PublishingStatus) -> bool:
        """Check whether the hub allows moving to the given status"""
        transitions = {
            PublishingStatus.DRAFT: [
                PublishingStatus.SCHEDULING,
                PublishingStatus.SCHEDULED
            ],
            PublishingStatus.SCHEDULING: [
                PublishingStatus.SCHEDULED,
                PublishingStatus.UNSCHEDULING,
                PublishingStatus.DRAFT  # scheduling rejected
            ],
            PublishingStatus.SCHEDULED: [
                PublishingStatus.PUBLISHING,
                PublishingStatus.UNSCHEDULING
            ],
            PublishingStatus.PUBLISHING: [
                PublishingStatus.PUBLISHED
            ],
            PublishingStatus.PUBLISHED: [],
            PublishingStatus.UNSCHEDULING: [
                PublishingStatus.DRAFT
            ]
        }

        return new_status in transitions.get(self.publishing_status or PublishingStatus.DRAFT, [])


class Slot(HubResource):
    """Edition slot"""
    slot_id: Optional[str] = Field(None, description="Content item backing the slot")
    content: Dict[str, Any] = Field(default_factory=dict, description="Slot content, scheduled as a whole")

    @property
    def body(self) -> Optional[Dict[str, Any]]:
        return self.content.get("body")


class EditionWithSlots(Edition):
    """Edition as written to export files"""
    slots: List[Slot] = Field(default_factory=list)


class EventWithEditions(Event):
    """Event as written to export files. editions is None when they could not be fetched."""
    editions: Optional[List[EditionWithSlots]] = None


class ScheduleErrorLevel(str, Enum):
    """Severity of a scheduling rejection entry"""
    WARNING = "WARNING"
    ERROR = "ERROR"


class EditionScheduleOverlap(BaseModel):
    """Another edition overlapping the one being scheduled"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    edition_id: str
    name: Optional[str] = None
    start: Optional[str] = None


class EditionScheduleError(BaseModel):
    """Entry of the structured error list returned when scheduling is rejected"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    level: ScheduleErrorLevel
    code: str = ""
    message: str = ""
    overlaps: List[EditionScheduleOverlap] = Field(default_factory=list)

    def describe(self) -> str:
        text = f"{self.code}: {self.message}" if self.code else self.message
        for overlap in self.overlaps:
            text += f"\n  overlaps {overlap.name} ({overlap.edition_id}) starting {overlap.start}"
        return text
