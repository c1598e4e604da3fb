"""
Content dependency scanner

Finds content links and references embedded in a JSON document. Each match
is returned as a handle on the live object inside the document, so setting
its id or root content item id rewrites the document in place.
"""

from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

CONTENT_LINK_SCHEMA = "http://bigcontent.io/cms/schema/v1/core#/definitions/content-link"
CONTENT_REFERENCE_SCHEMA = "http://bigcontent.io/cms/schema/v1/core#/definitions/content-reference"

REFERENCE_SCHEMA_SUFFIXES = ("/definitions/content-link", "/definitions/content-reference")

PathElement = Union[str, int]


def is_content_dependency(value: Any) -> bool:
    """True for an object whose _meta.schema is a content link or content reference"""
    if not isinstance(value, dict):
        return False

    meta = value.get("_meta")
    if not isinstance(meta, dict):
        return False

    schema = meta.get("schema")
    return isinstance(schema, str) and schema.endswith(REFERENCE_SCHEMA_SUFFIXES)


class ContentDependency:
    """
    Live handle on a link/reference object.

    Before rewriting, id holds a source hub snapshot id and
    root_content_item_id the content item the snapshot was taken from.
    """

    def __init__(self, node: Dict[str, Any], path: Tuple[PathElement, ...]):
        self.node = node
        self.path = path

    @property
    def meta(self) -> Dict[str, Any]:
        return self.node["_meta"]

    @property
    def schema(self) -> str:
        return self.meta["schema"]

    @property
    def is_link(self) -> bool:
        return self.schema.endswith("/definitions/content-link")

    @property
    def id(self) -> Optional[str]:
        return self.node.get("id")

    @id.setter
    def id(self, value: str) -> None:
        self.node["id"] = value

    @property
    def root_content_item_id(self) -> Optional[str]:
        return self.meta.get("rootContentItemId")

    @root_content_item_id.setter
    def root_content_item_id(self, value: str) -> None:
        self.meta["rootContentItemId"] = value

    @property
    def content_type(self) -> Optional[str]:
        return self.node.get("contentType")

    @property
    def locked(self) -> Optional[bool]:
        return self.meta.get("locked")

    def path_string(self) -> str:
        return "".join(f"[{p}]" if isinstance(p, int) else f".{p}" for p in self.path) or "."

    def __repr__(self) -> str:
        return f"ContentDependency(path={self.path_string()!r}, id={self.id!r})"


def scan(root: Any) -> Iterator[ContentDependency]:
    """
    Depth-first, document-order walk yielding every content dependency.

    A matched object is not searched further. Each call starts a new walk.
    """
    yield from _scan(root, ())


def _scan(value: Any, path: Tuple[PathElement, ...]) -> Iterator[ContentDependency]:
    if isinstance(value, list):
        for index, item in enumerate(value):
            yield from _scan(item, path + (index,))
    elif isinstance(value, dict):
        if is_content_dependency(value):
            yield ContentDependency(value, path)
            return

        for key, prop in value.items():
            if isinstance(prop, (dict, list)):
                yield from _scan(prop, path + (key,))


def find_dependency_ids(root: Any) -> List[str]:
    """ids of every dependency in the document, in document order"""
    return [dependency.id for dependency in scan(root) if dependency.id]
