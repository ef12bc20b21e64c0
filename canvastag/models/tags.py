"""Tag registry model for canvastag.

A tag is identified by its name alone. Names are case-sensitive and are never
trimmed or lowercased; "Urgent" and "urgent" are two different tags.

The registry is advisory metadata (color, emoji). Whether an object is tagged
is decided by the object's own tag set, see ``canvastag.models.objects``.
"""

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagMeta:
    """Display metadata attached to a tag. Empty strings count as unset."""

    color: Optional[str] = None
    emoji: Optional[str] = None

    def __post_init__(self):
        if not self.color:
            object.__setattr__(self, "color", None)
        if not self.emoji:
            object.__setattr__(self, "emoji", None)

    def fold(self, other: "TagMeta") -> "TagMeta":
        """Keep our values where set, adopt ``other``'s where ours are missing."""
        return replace(
            self,
            color=self.color or other.color,
            emoji=self.emoji or other.emoji,
        )

    def to_dict(self) -> Dict[str, str]:
        data = {}
        if self.color:
            data["color"] = self.color
        if self.emoji:
            data["emoji"] = self.emoji
        return data

    @classmethod
    def from_dict(cls, data: Any) -> "TagMeta":
        """Build metadata from a loose mapping, ignoring unknown or non-string values."""
        if not isinstance(data, Mapping):
            return cls()
        color = data.get("color")
        emoji = data.get("emoji")
        return cls(
            color=color if isinstance(color, str) else None,
            emoji=emoji if isinstance(emoji, str) else None,
        )


# tag name -> metadata
TagRegistry = Dict[str, TagMeta]


def normalize_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    """Collapse duplicates and sort ascending so equal sets compare and serialize equally."""
    return tuple(sorted(set(tags)))


def registry_to_dict(registry: Mapping[str, TagMeta]) -> Dict[str, Dict[str, str]]:
    return {name: meta.to_dict() for name, meta in registry.items()}


def registry_from_dict(data: Any) -> TagRegistry:
    """Load a registry from decoded JSON, skipping entries with non-string names."""
    if not isinstance(data, Mapping):
        return {}
    return {
        name: TagMeta.from_dict(meta)
        for name, meta in data.items()
        if isinstance(name, str)
    }


def serialize_registry(registry: Mapping[str, TagMeta]) -> str:
    """Encode the registry blob stored under the document-level key."""
    return json.dumps(registry_to_dict(registry), ensure_ascii=False)


def parse_registry(raw: Optional[str]) -> TagRegistry:
    """Decode the registry blob. Missing or unparsable data loads as empty."""
    if not raw:
        return {}
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        logger.debug(f"Unparsable tag registry blob, treating as empty: {e}")
        return {}
    return registry_from_dict(data)
