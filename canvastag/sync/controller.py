"""Controller side of the sync protocol.

The controller is the only writer. It owns the durable registry and per-object
tag blobs (stored through the host's key/value data), applies intents with the
mutation engine, persists the result and pushes snapshots to whoever
subscribed. Exactly one inbound message is processed at a time.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

from ..config.constants import DOCUMENT_ID, NODE_TAGS_KEY, TAG_REGISTRY_KEY
from ..exceptions import CanvasTagError, MalformedMessageError
from ..export.csv_codec import export_csv, export_json
from ..host.base import CanvasHost
from ..models.objects import TaggedObject, kind_for_host_type, parse_object_tags, serialize_object_tags
from ..models.state import TagState
from ..models.tags import parse_registry, serialize_registry
from ..services import mutations
from ..services.mutations import MutationResult
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
    MergeTags,
    ObjectUpdated,
    OperationFailed,
    Push,
    RegistryUpdated,
    RemoveTags,
    RenameTag,
    SelectionChanged,
    UpdateTag,
    parse_intent,
)

logger = logging.getLogger(__name__)

PushSink = Callable[[Dict[str, Any]], None]


def load_state(host: CanvasHost) -> TagState:
    """Read the registry blob and scan every host object into a full index."""
    registry = parse_registry(host.get_data(DOCUMENT_ID, TAG_REGISTRY_KEY))
    index = {}
    for canvas_obj in host.iter_objects():
        index[canvas_obj.id] = TaggedObject(
            id=canvas_obj.id,
            name=canvas_obj.name,
            kind=kind_for_host_type(canvas_obj.host_type),
            tags=parse_object_tags(host.get_data(canvas_obj.id, NODE_TAGS_KEY)),
            description=canvas_obj.description,
        )
    return TagState(registry=registry, index=index)


class TagController:
    """Applies intents against the host canvas and pushes snapshots."""

    def __init__(self, host: CanvasHost):
        self.host = host
        self.state = load_state(host)
        self._sinks: List[PushSink] = []
        self._captured: Optional[List[Dict[str, Any]]] = None
        self._unsubscribe_selection = host.on_selection_change(self._on_selection_change)

        self._handlers = {
            GetBootstrap.type: self._handle_bootstrap,
            CreateTag.type: self._handle_create,
            UpdateTag.type: self._handle_update,
            DeleteTag.type: self._handle_delete,
            RenameTag.type: self._handle_rename,
            MergeTags.type: self._handle_merge,
            AssignTags.type: self._handle_assign,
            RemoveTags.type: self._handle_remove,
            FindByTag.type: self._handle_find,
            FocusObject.type: self._handle_focus,
            Export.type: self._handle_export,
        }

    # -- push plumbing ------------------------------------------------------

    def subscribe(self, sink: PushSink) -> Callable[[], None]:
        """Register a receiver for outbound wire messages. Returns an unsubscribe function."""
        self._sinks.append(sink)

        def unsubscribe():
            if sink in self._sinks:
                self._sinks.remove(sink)

        return unsubscribe

    def _emit(self, push: Push) -> None:
        wire = push.to_wire()
        if self._captured is not None:
            self._captured.append(wire)
        for sink in list(self._sinks):
            sink(wire)

    def _on_selection_change(self, selection: List[str]) -> None:
        self._emit(SelectionChanged(selection=tuple(selection)))

    def close(self) -> None:
        self._unsubscribe_selection()
        self._sinks.clear()

    # -- inbound ------------------------------------------------------------

    def handle(self, raw: Any) -> List[Dict[str, Any]]:
        """Process one inbound wire message.

        Returns the wire messages pushed while handling it. Malformed
        messages are logged and dropped without a push.
        """
        try:
            intent = parse_intent(raw)
        except MalformedMessageError as e:
            logger.warning(f"Dropping malformed message: {e}")
            return []

        self._captured = []
        try:
            try:
                # The host store is authoritative; pick up objects added or
                # removed since the last message.
                self.state = load_state(self.host)
                self._handlers[intent.type](intent)
            except CanvasTagError as e:
                logger.info(f"{intent.type} failed: {e}")
                self._emit(OperationFailed(request=intent.type, error=e.kind, message=str(e)))
            return self._captured
        finally:
            self._captured = None

    def _commit(self, result: MutationResult) -> None:
        """Persist what the mutation changed, then adopt the new state.

        Either every changed blob is written or, when a write fails, the
        blobs already written are restored before the error propagates.
        """
        new_state = result.state
        writes = []
        if new_state.registry != self.state.registry:
            writes.append((DOCUMENT_ID, TAG_REGISTRY_KEY, serialize_registry(new_state.registry)))
        for object_id in result.changed_ids:
            writes.append(
                (object_id, NODE_TAGS_KEY, serialize_object_tags(new_state.index[object_id].tags))
            )

        written = []
        try:
            for owner_id, key, value in writes:
                previous = self.host.get_data(owner_id, key)
                self.host.set_data(owner_id, key, value)
                written.append((owner_id, key, previous))
        except CanvasTagError:
            for owner_id, key, previous in reversed(written):
                self.host.set_data(owner_id, key, previous)
            logger.warning(f"Rolled back {len(written)} blob write(s) after a failed commit")
            raise
        self.state = new_state

    # -- handlers -----------------------------------------------------------

    def _handle_bootstrap(self, intent: GetBootstrap) -> None:
        self._emit(Bootstrap(state=self.state, selection=tuple(self.host.get_selection())))

    def _registry_refresh(self, result: MutationResult) -> None:
        self._commit(result)
        self._emit(RegistryUpdated(state=self.state, affected=result.affected))

    def _handle_create(self, intent: CreateTag) -> None:
        self._registry_refresh(mutations.create_tag(self.state, intent.tag, intent.meta))
        logger.info(f"Created tag {intent.tag!r}")

    def _handle_update(self, intent: UpdateTag) -> None:
        self._registry_refresh(mutations.update_tag(self.state, intent.tag, intent.meta))

    def _handle_delete(self, intent: DeleteTag) -> None:
        result = mutations.delete_tag(self.state, intent.tag)
        self._registry_refresh(result)
        logger.info(f"Deleted tag {intent.tag!r} from {result.affected} object(s)")

    def _handle_rename(self, intent: RenameTag) -> None:
        result = mutations.rename_tag(self.state, intent.source, intent.target)
        self._registry_refresh(result)
        self.host.notify(f"Renamed on {result.affected} object(s)")

    def _handle_merge(self, intent: MergeTags) -> None:
        result = mutations.merge_tags(self.state, intent.into, intent.sources)
        self._registry_refresh(result)
        self.host.notify(f"Merged into “{intent.into}” across {result.affected} object(s)")

    def _object_refresh(self, result: MutationResult, object_ids) -> None:
        self._commit(result)
        objects = tuple(
            self.state.index[oid] for oid in dict.fromkeys(object_ids) if oid in self.state.index
        )
        self._emit(ObjectUpdated(objects=objects, affected=result.affected, skipped=result.skipped))

    def _handle_assign(self, intent: AssignTags) -> None:
        result = mutations.assign_tags(self.state, intent.object_ids, intent.tags)
        self._object_refresh(result, intent.object_ids)
        self.host.notify(f"Tagged {result.affected} item(s)")

    def _handle_remove(self, intent: RemoveTags) -> None:
        result = mutations.remove_tags(self.state, intent.object_ids, intent.tags)
        self._object_refresh(result, intent.object_ids)
        self.host.notify(f"Removed from {result.affected} item(s)")

    def _handle_find(self, intent: FindByTag) -> None:
        matches = [obj.id for obj in mutations.find_by_tag(self.state, intent.tag)]
        if not matches:
            self.host.notify(f"No objects with tag “{intent.tag}”")
            return
        # selection-changed reaches the view through the host's selection event
        self.host.set_selection(matches)
        self.host.scroll_into_view(matches)

    def _handle_focus(self, intent: FocusObject) -> None:
        if self.host.get_object(intent.object_id) is None:
            logger.warning(f"focus-object: unknown object {intent.object_id!r}")
            return
        self.host.scroll_into_view([intent.object_id])
        self.host.set_selection([intent.object_id])

    def _handle_export(self, intent: Export) -> None:
        if intent.format == "json":
            content = export_json(self.state, tagged_only=not intent.include_untagged)
        else:
            content = export_csv(
                self.state.index, variant=intent.variant, tagged_only=not intent.include_untagged
            )
        self.host.write_clipboard(content)
        self.host.notify(f"Tag map copied to clipboard as {intent.format.upper()}")
        self._emit(ExportReady(format=intent.format, content=content))

    # -- async transport ----------------------------------------------------

    async def serve(self, endpoint: ChannelEndpoint) -> None:
        """Consume intents from ``endpoint`` until it closes, pushing replies back through it."""
        unsubscribe = self.subscribe(endpoint.send)
        try:
            while True:
                raw = await endpoint.receive()
                if raw is None:
                    break
                try:
                    self.handle(raw)
                except Exception as e:
                    logger.error(f"Error handling inbound message: {e}", exc_info=True)
        finally:
            unsubscribe()
