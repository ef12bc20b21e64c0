"""Registry + index pair handed to and returned from the mutation engine."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .objects import NodeIndex, TaggedObject, index_from_dict, index_to_dict, iter_objects
from .tags import TagMeta, TagRegistry, registry_from_dict, registry_to_dict


@dataclass(frozen=True)
class TagState:
    """Snapshot of the tag registry and the node-tag index.

    Treated as immutable: mutation functions build new dicts and return a new
    TagState rather than editing these in place.
    """

    registry: TagRegistry = field(default_factory=dict)
    index: NodeIndex = field(default_factory=dict)

    def get_tag(self, name: str) -> Optional[TagMeta]:
        return self.registry.get(name)

    def get_object(self, object_id: str) -> Optional[TaggedObject]:
        return self.index.get(object_id)

    def objects(self) -> List[TaggedObject]:
        return list(iter_objects(self.index))

    def orphan_tags(self) -> Tuple[str, ...]:
        """Tags used on objects but missing from the registry."""
        used = {tag for obj in self.index.values() for tag in obj.tags}
        return tuple(sorted(used - set(self.registry)))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "registry": registry_to_dict(self.registry),
            "objects": index_to_dict(self.index),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "TagState":
        return cls(
            registry=registry_from_dict(data.get("registry")),
            index=index_from_dict(data.get("objects")),
        )
