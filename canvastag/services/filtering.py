"""Filtering, suggestions and usage statistics over the node-tag index."""

from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from ..config.constants import DEFAULT_SUGGESTION_LIMIT
from ..models.objects import TaggedObject, iter_objects
from ..models.tags import TagMeta


@dataclass(frozen=True)
class FilterState:
    """What the user is currently filtering on.

    Attributes:
        search_query: Case-insensitive substring matched against name,
            description and tag names.
        selected_tags: Objects must carry at least one of these.
        show_untagged: Only objects with no tags at all.
    """

    search_query: str = ""
    selected_tags: Tuple[str, ...] = field(default_factory=tuple)
    show_untagged: bool = False

    @property
    def is_active(self) -> bool:
        return bool(self.search_query or self.selected_tags or self.show_untagged)


def _matches_query(obj: TaggedObject, query: str) -> bool:
    if query in obj.name.lower():
        return True
    if obj.description and query in obj.description.lower():
        return True
    return any(query in tag.lower() for tag in obj.tags)


def filter_objects(index: Mapping[str, TaggedObject], state: FilterState) -> List[TaggedObject]:
    """Apply every active criterion of ``state``; results keep index order."""
    query = state.search_query.strip().lower()
    results = []
    for obj in iter_objects(index):
        if query and not _matches_query(obj, query):
            continue
        if state.selected_tags and not any(obj.has_tag(t) for t in state.selected_tags):
            continue
        if state.show_untagged and obj.tags:
            continue
        results.append(obj)
    return results


def tag_usage(index: Mapping[str, TaggedObject]) -> Dict[str, int]:
    """Count how many objects carry each tag."""
    counts = Counter(tag for obj in index.values() for tag in obj.tags)
    return dict(counts)


def tag_suggestions(
    registry: Mapping[str, TagMeta],
    index: Mapping[str, TaggedObject],
    partial: str,
    limit: int = DEFAULT_SUGGESTION_LIMIT,
) -> List[str]:
    """Known tag names starting with ``partial`` (case-insensitive), most used first."""
    prefix = partial.lower()
    usage = tag_usage(index)
    candidates = set(registry) | set(usage)
    matches = [name for name in candidates if name.lower().startswith(prefix)]
    matches.sort(key=lambda name: (-usage.get(name, 0), name))
    return matches[:limit]
