"""View side of the sync protocol.

The view keeps a disposable cache of the registry, index and selection. It
never edits that cache on its own: every change arrives as a snapshot from
the controller and replaces what was there.
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..exceptions import MalformedMessageError
from ..models.objects import TaggedObject
from ..models.state import TagState
from ..models.tags import TagMeta
from .channel import ChannelEndpoint
from .messages import (
    AssignTags,
    Bootstrap,
    CreateTag,
    DeleteTag,
    Export,
    ExportReady,
    FindByTag,
    FocusObject,
    GetBootstrap,
    Intent,
    MergeTags,
    ObjectUpdated,
    OperationFailed,
    Push,
    RegistryUpdated,
    RemoveTags,
    RenameTag,
    SelectionChanged,
    UpdateTag,
    parse_push,
)

logger = logging.getLogger(__name__)

Sender = Callable[[Dict[str, Any]], Any]


class TagView:
    """Cache of controller state plus helpers that issue intents."""

    def __init__(self, send: Optional[Sender] = None):
        self._send = send
        self.state = TagState()
        self.selection: List[str] = []
        self.notifications: List[str] = []
        self.last_export: Optional[ExportReady] = None
        self.last_push: Optional[Push] = None
        self.connected = False

    # -- inbound ------------------------------------------------------------

    def apply(self, raw: Any) -> Optional[Push]:
        """Replace cached state from one controller push. Malformed pushes are logged and ignored."""
        try:
            push = parse_push(raw)
        except MalformedMessageError as e:
            logger.warning(f"View ignoring malformed push: {e}")
            return None

        if isinstance(push, Bootstrap):
            self.state = push.state
            self.selection = list(push.selection)
            self.connected = True
        elif isinstance(push, RegistryUpdated):
            self.state = push.state
        elif isinstance(push, ObjectUpdated):
            index = dict(self.state.index)
            for obj in push.objects:
                index[obj.id] = obj
            self.state = TagState(registry=self.state.registry, index=index)
        elif isinstance(push, SelectionChanged):
            self.selection = list(push.selection)
        elif isinstance(push, ExportReady):
            self.last_export = push
        elif isinstance(push, OperationFailed):
            self.notifications.append(push.message)

        self.last_push = push
        return push

    async def listen(self, endpoint: ChannelEndpoint) -> None:
        """Apply pushes from ``endpoint`` until the channel closes."""
        while True:
            raw = await endpoint.receive()
            if raw is None:
                break
            self.apply(raw)

    # -- derived views ------------------------------------------------------

    def selected_objects(self) -> List[TaggedObject]:
        return [self.state.index[oid] for oid in self.selection if oid in self.state.index]

    def selection_tags(self) -> List[str]:
        """Union of the tags on every selected object, sorted."""
        return sorted({tag for obj in self.selected_objects() for tag in obj.tags})

    # -- outbound -----------------------------------------------------------

    def request(self, intent: Intent) -> Any:
        if self._send is None:
            raise RuntimeError("View is not connected to a controller")
        return self._send(intent.to_wire())

    def bootstrap(self) -> Any:
        return self.request(GetBootstrap())

    def create_tag(self, name: str, color: Optional[str] = None, emoji: Optional[str] = None) -> Any:
        return self.request(CreateTag(tag=name, meta=TagMeta(color=color, emoji=emoji)))

    def update_tag(self, name: str, color: Optional[str] = None, emoji: Optional[str] = None) -> Any:
        return self.request(UpdateTag(tag=name, meta=TagMeta(color=color, emoji=emoji)))

    def delete_tag(self, name: str) -> Any:
        return self.request(DeleteTag(tag=name))

    def rename_tag(self, source: str, target: str) -> Any:
        return self.request(RenameTag(source=source, target=target))

    def merge_tags(self, into: str, sources: Sequence[str]) -> Any:
        return self.request(MergeTags(into=into, sources=tuple(sources)))

    def assign_tags(self, object_ids: Sequence[str], tags: Sequence[str]) -> Any:
        return self.request(AssignTags(object_ids=tuple(object_ids), tags=tuple(tags)))

    def remove_tags(self, object_ids: Sequence[str], tags: Sequence[str]) -> Any:
        return self.request(RemoveTags(object_ids=tuple(object_ids), tags=tuple(tags)))

    def find_by_tag(self, tag: str) -> Any:
        return self.request(FindByTag(tag=tag))

    def focus_object(self, object_id: str) -> Any:
        return self.request(FocusObject(object_id=object_id))

    def export(self, fmt: str = "csv", variant: str = "nodes", include_untagged: bool = False) -> Any:
        return self.request(Export(format=fmt, variant=variant, include_untagged=include_untagged))
