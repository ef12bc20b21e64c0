"""Tagged canvas objects and the node-tag index."""

import json
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Tuple

from .tags import normalize_tags

logger = logging.getLogger(__name__)


class ObjectKind(str, Enum):
    """Closed set of canvas object categories."""

    STICKY = "sticky"
    SHAPE = "shape"
    TEXT = "text"
    CONNECTOR = "connector"
    WIDGET = "widget"
    FRAME = "frame"
    OTHER = "other"

    @classmethod
    def from_value(cls, value: Any) -> "ObjectKind":
        try:
            return cls(value)
        except ValueError:
            return cls.OTHER


# Host node types -> kind. Anything missing maps to OTHER.
HOST_TYPE_KINDS = {
    "STICKY": ObjectKind.STICKY,
    "TEXT": ObjectKind.TEXT,
    "FRAME": ObjectKind.FRAME,
    "GROUP": ObjectKind.FRAME,
    "SECTION": ObjectKind.FRAME,
    "RECTANGLE": ObjectKind.SHAPE,
    "ELLIPSE": ObjectKind.SHAPE,
    "POLYGON": ObjectKind.SHAPE,
    "STAR": ObjectKind.SHAPE,
    "VECTOR": ObjectKind.SHAPE,
    "LINE": ObjectKind.SHAPE,
    "SHAPE_WITH_TEXT": ObjectKind.SHAPE,
    "CONNECTOR": ObjectKind.CONNECTOR,
    "WIDGET": ObjectKind.WIDGET,
}


def kind_for_host_type(host_type: Optional[str]) -> ObjectKind:
    """Map a host node type such as ``"RECTANGLE"`` (or an already-mapped kind) to a kind."""
    if not host_type:
        return ObjectKind.OTHER
    if host_type in HOST_TYPE_KINDS:
        return HOST_TYPE_KINDS[host_type]
    return ObjectKind.from_value(host_type.lower())


@dataclass(frozen=True)
class TaggedObject:
    """A canvas object plus its normalized tag set."""

    id: str
    name: str = ""
    kind: ObjectKind = ObjectKind.OTHER
    tags: Tuple[str, ...] = field(default_factory=tuple)
    description: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "kind", ObjectKind.from_value(self.kind))
        object.__setattr__(self, "tags", normalize_tags(self.tags))

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def with_tags(self, tags: Iterable[str]) -> "TaggedObject":
        return replace(self, tags=normalize_tags(tags))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "kind": self.kind.value,
            "tags": list(self.tags),
        }
        if self.description is not None:
            data["description"] = self.description
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TaggedObject":
        tags = data.get("tags")
        if not isinstance(tags, list):
            tags = []
        description = data.get("description")
        return cls(
            id=str(data["id"]),
            name=str(data.get("name") or ""),
            kind=ObjectKind.from_value(data.get("kind")),
            tags=[t for t in tags if isinstance(t, str)],
            description=description if isinstance(description, str) else None,
        )


# object id -> tagged object
NodeIndex = Dict[str, TaggedObject]


def iter_objects(index: Mapping[str, TaggedObject]) -> Iterator[TaggedObject]:
    """Enumerate the index in ascending object id order."""
    for object_id in sorted(index):
        yield index[object_id]


def serialize_object_tags(tags: Iterable[str]) -> str:
    """Encode the per-object tag blob (sorted, deduplicated JSON array)."""
    return json.dumps(list(normalize_tags(tags)), ensure_ascii=False)


def parse_object_tags(raw: Optional[str]) -> Tuple[str, ...]:
    """Decode the per-object tag blob. Missing or unparsable data loads as no tags."""
    if not raw:
        return ()
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.debug(f"Unparsable object tag blob, treating as empty: {e}")
        return ()
    if not isinstance(data, list):
        return ()
    return normalize_tags(t for t in data if isinstance(t, str))


def index_to_dict(index: Mapping[str, TaggedObject]) -> Dict[str, Dict[str, Any]]:
    return {obj.id: obj.to_dict() for obj in iter_objects(index)}


def index_from_dict(data: Any) -> NodeIndex:
    """Load an index from decoded JSON, skipping entries without a usable shape."""
    if not isinstance(data, Mapping):
        return {}
    index: NodeIndex = {}
    for object_id, entry in data.items():
        if not isinstance(entry, Mapping):
            continue
        obj = TaggedObject.from_dict({**entry, "id": object_id})
        index[obj.id] = obj
    return index


def serialize_index(index: Mapping[str, TaggedObject]) -> str:
    return json.dumps(index_to_dict(index), ensure_ascii=False)


def parse_index(raw: Optional[str]) -> NodeIndex:
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.debug(f"Unparsable index blob, treating as empty: {e}")
        return {}
    return index_from_dict(data)


def objects_to_list(objects: Iterable[TaggedObject]) -> List[Dict[str, Any]]:
    return [obj.to_dict() for obj in objects]
