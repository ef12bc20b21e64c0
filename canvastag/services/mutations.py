"""Tag mutation engine.

Every operation takes a TagState and returns a MutationResult holding the
new state and the number of objects touched. Inputs are never modified, so
calls can be repeated or discarded freely; the controller decides what gets
persisted.

Metadata folding uses one rule everywhere (merge and rename-onto-existing):
the destination keeps any value it already has and adopts the source's value
only where its own is missing.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..exceptions import DuplicateTagError
from ..models.objects import NodeIndex, TaggedObject, iter_objects
from ..models.state import TagState
from ..models.tags import TagMeta, normalize_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MutationResult:
    """Outcome of a mutation: the new state and how many objects changed."""

    state: TagState
    affected: int = 0
    skipped: Tuple[str, ...] = field(default_factory=tuple)
    changed_ids: Tuple[str, ...] = field(default_factory=tuple)


def _rewrite_objects(index: NodeIndex, rewrite) -> Tuple[NodeIndex, List[str]]:
    """Apply ``rewrite(obj) -> tags`` to every object, returning the new index and changed ids."""
    new_index = dict(index)
    changed = []
    for obj in iter_objects(index):
        new_tags = normalize_tags(rewrite(obj))
        if new_tags != obj.tags:
            new_index[obj.id] = obj.with_tags(new_tags)
            changed.append(obj.id)
    return new_index, changed


def create_tag(state: TagState, name: str, meta: Optional[TagMeta] = None) -> MutationResult:
    """Register a new tag.

    Raises:
        DuplicateTagError: If ``name`` is already registered (exact match).
    """
    if name in state.registry:
        raise DuplicateTagError(name)

    registry = dict(state.registry)
    registry[name] = meta or TagMeta()
    logger.debug(f"Created tag {name!r}")
    return MutationResult(state=TagState(registry=registry, index=state.index))


def update_tag(state: TagState, name: str, meta: TagMeta) -> MutationResult:
    """Replace the color/emoji of an existing tag. Unknown tags are left alone."""
    if name not in state.registry:
        logger.debug(f"update_tag: {name!r} not registered, nothing to do")
        return MutationResult(state=state)

    registry = dict(state.registry)
    registry[name] = meta
    return MutationResult(state=TagState(registry=registry, index=state.index))


def delete_tag(state: TagState, name: str) -> MutationResult:
    """Remove a tag from the registry and strip it from every object."""
    registry = dict(state.registry)
    registry.pop(name, None)

    index, changed = _rewrite_objects(
        state.index, lambda obj: [t for t in obj.tags if t != name]
    )
    logger.debug(f"Deleted tag {name!r} from {len(changed)} object(s)")
    return MutationResult(
        state=TagState(registry=registry, index=index),
        affected=len(changed),
        changed_ids=tuple(changed),
    )


def rename_tag(state: TagState, source: str, target: str) -> MutationResult:
    """Rename ``source`` to ``target`` in the registry and on every object.

    If ``target`` is already registered the two entries are folded together
    (target's own values win) and ``source`` disappears. An object carrying
    both ends up with a single ``target``.
    """
    if source == target:
        return MutationResult(state=state)

    registry = dict(state.registry)
    if source in registry:
        source_meta = registry.pop(source)
        existing = registry.get(target)
        registry[target] = existing.fold(source_meta) if existing else source_meta

    index, changed = _rewrite_objects(
        state.index,
        lambda obj: [target if t == source else t for t in obj.tags],
    )
    logger.debug(f"Renamed tag {source!r} -> {target!r} on {len(changed)} object(s)")
    return MutationResult(
        state=TagState(registry=registry, index=index),
        affected=len(changed),
        changed_ids=tuple(changed),
    )


def merge_tags(state: TagState, into: str, sources: Sequence[str]) -> MutationResult:
    """Fold every tag in ``sources`` into ``into``.

    Sources missing from the registry contribute no metadata but are still
    replaced on objects. ``into`` is registered if anything was folded or
    any object changed.
    """
    from_set = {tag for tag in sources if tag != into}

    registry = dict(state.registry)
    folded = False
    merged_meta = registry.get(into, TagMeta())
    for tag in sources:
        if tag == into or tag not in registry:
            continue
        merged_meta = merged_meta.fold(registry.pop(tag))
        folded = True

    def _merge(obj: TaggedObject) -> List[str]:
        if not from_set.intersection(obj.tags):
            return list(obj.tags)
        return [t for t in obj.tags if t not in from_set] + [into]

    index, changed = _rewrite_objects(state.index, _merge)

    if folded or changed or into in registry:
        registry[into] = merged_meta

    logger.debug(f"Merged {sorted(from_set)} into {into!r} on {len(changed)} object(s)")
    return MutationResult(
        state=TagState(registry=registry, index=index),
        affected=len(changed),
        changed_ids=tuple(changed),
    )


def _update_objects(
    state: TagState, object_ids: Iterable[str], tags: Iterable[str], adding: bool
) -> MutationResult:
    tag_set = set(tags)
    index = dict(state.index)
    changed = []
    skipped = []

    for object_id in dict.fromkeys(object_ids):
        obj = index.get(object_id)
        if obj is None:
            skipped.append(object_id)
            continue
        current = set(obj.tags)
        new_tags = normalize_tags(current | tag_set if adding else current - tag_set)
        if new_tags != obj.tags:
            index[object_id] = obj.with_tags(new_tags)
            changed.append(object_id)

    if skipped:
        logger.warning(f"Skipped {len(skipped)} unknown object id(s): {skipped}")

    return MutationResult(
        state=TagState(registry=state.registry, index=index),
        affected=len(changed),
        skipped=tuple(skipped),
        changed_ids=tuple(changed),
    )


def assign_tags(state: TagState, object_ids: Iterable[str], tags: Iterable[str]) -> MutationResult:
    """Add ``tags`` to each object. Unknown object ids are dropped and reported in ``skipped``."""
    return _update_objects(state, object_ids, tags, adding=True)


def remove_tags(state: TagState, object_ids: Iterable[str], tags: Iterable[str]) -> MutationResult:
    """Remove ``tags`` from each object. Unknown object ids are dropped and reported in ``skipped``."""
    return _update_objects(state, object_ids, tags, adding=False)


def find_by_tag(source: Union[TagState, Mapping[str, TaggedObject]], tag: str) -> List[TaggedObject]:
    """Objects carrying ``tag``, in ascending id order."""
    index = source.index if isinstance(source, TagState) else source
    return [obj for obj in iter_objects(index) if obj.has_tag(tag)]
