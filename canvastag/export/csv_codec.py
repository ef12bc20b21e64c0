"""Export the node-tag index as CSV or JSON text."""

import csv
import io
import json
from typing import Mapping

from ..config.constants import CSV_HEADERS, DEFAULT_CSV_VARIANT, TAG_DELIMITER
from ..exceptions import ConfigurationError
from ..models.objects import TaggedObject, iter_objects
from ..models.state import TagState


def _row(obj: TaggedObject, variant: str) -> list:
    tags = TAG_DELIMITER.join(obj.tags)
    if variant == "items":
        return [obj.id, obj.name, obj.description or "", tags]
    return [obj.id, obj.name, obj.kind.value, tags]


def export_csv(
    index: Mapping[str, TaggedObject],
    variant: str = DEFAULT_CSV_VARIANT,
    tagged_only: bool = True,
) -> str:
    """Serialize objects to CSV text.

    The header row is written bare; every data field is double-quoted with
    embedded quotes doubled. Tags are joined with ``|`` and rows with ``\\n``,
    without a trailing newline.

    Args:
        index: Objects to export, written in ascending id order.
        variant: "nodes" or "items", selecting the header and third column.
        tagged_only: Skip objects that carry no tags.
    """
    if variant not in CSV_HEADERS:
        raise ConfigurationError(f"Unknown CSV variant: {variant}", setting="variant")

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for obj in iter_objects(index):
        if tagged_only and not obj.tags:
            continue
        writer.writerow(_row(obj, variant))

    body = buffer.getvalue().rstrip("\n")
    if not body:
        return CSV_HEADERS[variant]
    return f"{CSV_HEADERS[variant]}\n{body}"


def export_json(state: TagState, tagged_only: bool = False) -> str:
    """Serialize the registry and index together for portability."""
    data = state.to_dict()
    if tagged_only:
        data["objects"] = {k: v for k, v in data["objects"].items() if v["tags"]}
    return json.dumps(data, indent=2, ensure_ascii=False)
