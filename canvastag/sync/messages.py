"""Sync protocol messages.

Every message on the wire is a flat JSON object with a ``type`` discriminator.
Inside Python each kind is its own frozen dataclass; ``parse_intent`` and
``parse_push`` turn wire dicts into those classes and raise
MalformedMessageError for anything outside the closed set or missing a
required field.

View -> Controller (intents):
    get-bootstrap, create-tag, update-tag, delete-tag, rename-tag, merge-tags,
    assign-tags, remove-tags, find-by-tag, focus-object, export

Controller -> View (pushes):
    bootstrap, registry-updated, object-updated, selection-changed,
    export-ready, operation-failed
"""

from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, Mapping, Tuple, Union

from ..config.constants import CSV_HEADERS, DEFAULT_CSV_VARIANT, EXPORT_FORMATS
from ..exceptions import MalformedMessageError
from ..models.objects import TaggedObject, index_from_dict, index_to_dict, objects_to_list
from ..models.state import TagState
from ..models.tags import TagMeta, registry_from_dict, registry_to_dict

# ---------------------------------------------------------------------------
# field helpers
# ---------------------------------------------------------------------------


def _require_str(raw: Mapping[str, Any], name: str, message_type: str) -> str:
    value = raw.get(name)
    if not isinstance(value, str) or not value:
        raise MalformedMessageError(f"Field '{name}' must be a non-empty string", message_type=message_type)
    return value


def _require_str_list(raw: Mapping[str, Any], name: str, message_type: str) -> Tuple[str, ...]:
    value = raw.get(name)
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise MalformedMessageError(
            f"Field '{name}' must be a list of non-empty strings", message_type=message_type
        )
    return tuple(value)


def _optional_meta(raw: Mapping[str, Any], name: str, message_type: str) -> TagMeta:
    value = raw.get(name)
    if value is None:
        return TagMeta()
    if not isinstance(value, Mapping):
        raise MalformedMessageError(f"Field '{name}' must be an object", message_type=message_type)
    for key in ("color", "emoji"):
        if value.get(key) is not None and not isinstance(value.get(key), str):
            raise MalformedMessageError(f"Field '{name}.{key}' must be a string", message_type=message_type)
    return TagMeta.from_dict(value)


def _require_mapping(raw: Mapping[str, Any], name: str, message_type: str) -> Mapping[str, Any]:
    value = raw.get(name)
    if not isinstance(value, Mapping):
        raise MalformedMessageError(f"Field '{name}' must be an object", message_type=message_type)
    return value


# ---------------------------------------------------------------------------
# View -> Controller
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GetBootstrap:
    type: ClassVar[str] = "get-bootstrap"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class CreateTag:
    tag: str
    meta: TagMeta = field(default_factory=TagMeta)
    type: ClassVar[str] = "create-tag"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "tag": self.tag, "meta": self.meta.to_dict()}


@dataclass(frozen=True)
class UpdateTag:
    tag: str
    meta: TagMeta
    type: ClassVar[str] = "update-tag"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "tag": self.tag, "meta": self.meta.to_dict()}


@dataclass(frozen=True)
class DeleteTag:
    tag: str
    type: ClassVar[str] = "delete-tag"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "tag": self.tag}


@dataclass(frozen=True)
class RenameTag:
    source: str
    target: str
    type: ClassVar[str] = "rename-tag"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "from": self.source, "to": self.target}


@dataclass(frozen=True)
class MergeTags:
    into: str
    sources: Tuple[str, ...]
    type: ClassVar[str] = "merge-tags"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "into": self.into, "fromList": list(self.sources)}


@dataclass(frozen=True)
class AssignTags:
    object_ids: Tuple[str, ...]
    tags: Tuple[str, ...]
    type: ClassVar[str] = "assign-tags"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "objectIds": list(self.object_ids), "tags": list(self.tags)}


@dataclass(frozen=True)
class RemoveTags:
    object_ids: Tuple[str, ...]
    tags: Tuple[str, ...]
    type: ClassVar[str] = "remove-tags"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "objectIds": list(self.object_ids), "tags": list(self.tags)}


@dataclass(frozen=True)
class FindByTag:
    tag: str
    type: ClassVar[str] = "find-by-tag"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "tag": self.tag}


@dataclass(frozen=True)
class FocusObject:
    object_id: str
    type: ClassVar[str] = "focus-object"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "objectId": self.object_id}


@dataclass(frozen=True)
class Export:
    format: str = "csv"
    variant: str = DEFAULT_CSV_VARIANT
    include_untagged: bool = False
    type: ClassVar[str] = "export"

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "format": self.format,
            "variant": self.variant,
            "includeUntagged": self.include_untagged,
        }


Intent = Union[
    GetBootstrap,
    CreateTag,
    UpdateTag,
    DeleteTag,
    RenameTag,
    MergeTags,
    AssignTags,
    RemoveTags,
    FindByTag,
    FocusObject,
    Export,
]

# Intents that change the registry or index and must be answered with a refresh
MUTATION_TYPES = frozenset(
    {
        CreateTag.type,
        UpdateTag.type,
        DeleteTag.type,
        RenameTag.type,
        MergeTags.type,
        AssignTags.type,
        RemoveTags.type,
    }
)


def _parse_export(raw: Mapping[str, Any]) -> Export:
    fmt = raw.get("format", "csv")
    variant = raw.get("variant", DEFAULT_CSV_VARIANT)
    include_untagged = raw.get("includeUntagged", False)
    if fmt not in EXPORT_FORMATS:
        raise MalformedMessageError(f"Unknown export format: {fmt!r}", message_type=Export.type)
    if variant not in CSV_HEADERS:
        raise MalformedMessageError(f"Unknown export variant: {variant!r}", message_type=Export.type)
    if not isinstance(include_untagged, bool):
        raise MalformedMessageError("Field 'includeUntagged' must be a boolean", message_type=Export.type)
    return Export(format=fmt, variant=variant, include_untagged=include_untagged)


_INTENT_PARSERS: Dict[str, Callable[[Mapping[str, Any]], Intent]] = {
    GetBootstrap.type: lambda raw: GetBootstrap(),
    CreateTag.type: lambda raw: CreateTag(
        tag=_require_str(raw, "tag", CreateTag.type),
        meta=_optional_meta(raw, "meta", CreateTag.type),
    ),
    UpdateTag.type: lambda raw: UpdateTag(
        tag=_require_str(raw, "tag", UpdateTag.type),
        meta=_optional_meta(raw, "meta", UpdateTag.type),
    ),
    DeleteTag.type: lambda raw: DeleteTag(tag=_require_str(raw, "tag", DeleteTag.type)),
    RenameTag.type: lambda raw: RenameTag(
        source=_require_str(raw, "from", RenameTag.type),
        target=_require_str(raw, "to", RenameTag.type),
    ),
    MergeTags.type: lambda raw: MergeTags(
        into=_require_str(raw, "into", MergeTags.type),
        sources=_require_str_list(raw, "fromList", MergeTags.type),
    ),
    AssignTags.type: lambda raw: AssignTags(
        object_ids=_require_str_list(raw, "objectIds", AssignTags.type),
        tags=_require_str_list(raw, "tags", AssignTags.type),
    ),
    RemoveTags.type: lambda raw: RemoveTags(
        object_ids=_require_str_list(raw, "objectIds", RemoveTags.type),
        tags=_require_str_list(raw, "tags", RemoveTags.type),
    ),
    FindByTag.type: lambda raw: FindByTag(tag=_require_str(raw, "tag", FindByTag.type)),
    FocusObject.type: lambda raw: FocusObject(
        object_id=_require_str(raw, "objectId", FocusObject.type)
    ),
    Export.type: _parse_export,
}


def parse_intent(raw: Any) -> Intent:
    """Validate a View -> Controller wire message.

    Raises:
        MalformedMessageError: Unknown type, or a required field is missing or mistyped.
    """
    if not isinstance(raw, Mapping):
        raise MalformedMessageError("Message must be a JSON object")
    message_type = raw.get("type")
    parser = _INTENT_PARSERS.get(message_type) if isinstance(message_type, str) else None
    if parser is None:
        raise MalformedMessageError(f"Unknown message type: {message_type!r}")
    return parser(raw)


# ---------------------------------------------------------------------------
# Controller -> View
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Bootstrap:
    state: TagState
    selection: Tuple[str, ...] = ()
    type: ClassVar[str] = "bootstrap"

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "registry": registry_to_dict(self.state.registry),
            "objects": index_to_dict(self.state.index),
            "selection": list(self.selection),
        }


@dataclass(frozen=True)
class RegistryUpdated:
    state: TagState
    affected: int = 0
    type: ClassVar[str] = "registry-updated"

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "registry": registry_to_dict(self.state.registry),
            "objects": index_to_dict(self.state.index),
            "affected": self.affected,
        }


@dataclass(frozen=True)
class ObjectUpdated:
    objects: Tuple[TaggedObject, ...]
    affected: int = 0
    skipped: Tuple[str, ...] = ()
    type: ClassVar[str] = "object-updated"

    def to_wire(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "objects": objects_to_list(self.objects),
            "affected": self.affected,
            "skipped": list(self.skipped),
        }


@dataclass(frozen=True)
class SelectionChanged:
    selection: Tuple[str, ...]
    type: ClassVar[str] = "selection-changed"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "selection": list(self.selection)}


@dataclass(frozen=True)
class ExportReady:
    format: str
    content: str
    type: ClassVar[str] = "export-ready"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "format": self.format, "content": self.content}


@dataclass(frozen=True)
class OperationFailed:
    request: str
    error: str
    message: str
    type: ClassVar[str] = "operation-failed"

    def to_wire(self) -> Dict[str, Any]:
        return {"type": self.type, "request": self.request, "error": self.error, "message": self.message}


Push = Union[Bootstrap, RegistryUpdated, ObjectUpdated, SelectionChanged, ExportReady, OperationFailed]


def _parse_objects_list(raw: Mapping[str, Any]) -> Tuple[TaggedObject, ...]:
    value = raw.get("objects")
    if not isinstance(value, list) or not all(isinstance(v, Mapping) and "id" in v for v in value):
        raise MalformedMessageError("Field 'objects' must be a list of objects", message_type=ObjectUpdated.type)
    return tuple(TaggedObject.from_dict(v) for v in value)


def _parse_state(raw: Mapping[str, Any], message_type: str) -> TagState:
    return TagState(
        registry=registry_from_dict(_require_mapping(raw, "registry", message_type)),
        index=index_from_dict(_require_mapping(raw, "objects", message_type)),
    )


def _optional_count(raw: Mapping[str, Any]) -> int:
    value = raw.get("affected", 0)
    return value if isinstance(value, int) and not isinstance(value, bool) else 0


def _parse_selection(raw: Mapping[str, Any], message_type: str) -> Tuple[str, ...]:
    value = raw.get("selection")
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MalformedMessageError("Field 'selection' must be a list of strings", message_type=message_type)
    return tuple(value)


_PUSH_PARSERS: Dict[str, Callable[[Mapping[str, Any]], Push]] = {
    Bootstrap.type: lambda raw: Bootstrap(
        state=_parse_state(raw, Bootstrap.type),
        selection=_parse_selection(raw, Bootstrap.type),
    ),
    RegistryUpdated.type: lambda raw: RegistryUpdated(
        state=_parse_state(raw, RegistryUpdated.type),
        affected=_optional_count(raw),
    ),
    ObjectUpdated.type: lambda raw: ObjectUpdated(
        objects=_parse_objects_list(raw),
        affected=_optional_count(raw),
        skipped=tuple(s for s in raw.get("skipped") or () if isinstance(s, str)),
    ),
    SelectionChanged.type: lambda raw: SelectionChanged(
        selection=_parse_selection(raw, SelectionChanged.type)
    ),
    ExportReady.type: lambda raw: ExportReady(
        format=_require_str(raw, "format", ExportReady.type),
        content=raw.get("content") if isinstance(raw.get("content"), str) else "",
    ),
    OperationFailed.type: lambda raw: OperationFailed(
        request=_require_str(raw, "request", OperationFailed.type),
        error=_require_str(raw, "error", OperationFailed.type),
        message=_require_str(raw, "message", OperationFailed.type),
    ),
}


def parse_push(raw: Any) -> Push:
    """Validate a Controller -> View wire message."""
    if not isinstance(raw, Mapping):
        raise MalformedMessageError("Message must be a JSON object")
    message_type = raw.get("type")
    parser = _PUSH_PARSERS.get(message_type) if isinstance(message_type, str) else None
    if parser is None:
        raise MalformedMessageError(f"Unknown message type: {message_type!r}")
    return parser(raw)
