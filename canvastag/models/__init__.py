"""Data models for canvastag.

This package defines the core data models:

- tags: TagMeta, the tag registry and its persisted blob format
- objects: TaggedObject, object kinds and the node-tag index
- state: TagState, the registry and index passed through every mutation
"""

from canvastag.models.objects import NodeIndex, ObjectKind, TaggedObject
from canvastag.models.state import TagState
from canvastag.models.tags import TagMeta, TagRegistry

__all__ = ["NodeIndex", "ObjectKind", "TaggedObject", "TagMeta", "TagRegistry", "TagState"]
