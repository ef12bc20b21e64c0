"""Service modules for canvastag."""

from .filtering import FilterState, filter_objects, tag_suggestions, tag_usage
from .mutations import (
    MutationResult,
    assign_tags,
    create_tag,
    delete_tag,
    find_by_tag,
    merge_tags,
    remove_tags,
    rename_tag,
    update_tag,
)

__all__ = [
    "FilterState",
    "MutationResult",
    "assign_tags",
    "create_tag",
    "delete_tag",
    "filter_objects",
    "find_by_tag",
    "merge_tags",
    "remove_tags",
    "rename_tag",
    "tag_suggestions",
    "tag_usage",
    "update_tag",
]
