"""
Hub resource base model

Hub records are camelCase JSON documents carrying HAL links and fields this
tool never looks at; the base model keeps them so exported files round-trip.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class HubResource(BaseModel):
    """Base class for every record read from or written to a hub"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        validate_assignment=True,
    )

    id: Optional[str] = Field(None, description="Hub-assigned identifier")
    links: Optional[Dict[str, Any]] = Field(None, alias="_links", description="HAL links")

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready dictionary using hub field names"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Build an instance from a hub record"""
        return cls.model_validate(data)


class Hub(HubResource):
    """Content hub"""
    name: Optional[str] = None
    label: Optional[str] = None


class ContentItem(HubResource):
    """Content item (only the fields this tool reads)"""
    label: Optional[str] = None
    body: Dict[str, Any] = Field(default_factory=dict)
    status: Optional[str] = None
    version: Optional[int] = None
