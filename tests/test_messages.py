"""Tests for sync protocol message parsing."""

import pytest

from canvastag.exceptions import MalformedMessageError
from canvastag.models.objects import TaggedObject
from canvastag.models.state import TagState
from canvastag.models.tags import TagMeta
from canvastag.sync.messages import (
    AssignTags,
    Bootstrap,
    CreateTag,
    Export,
    MergeTags,
    ObjectUpdated,
    OperationFailed,
    RenameTag,
    SelectionChanged,
    parse_intent,
    parse_push,
)


class TestParseIntent:
    def test_create_tag(self):
        intent = parse_intent({"type": "create-tag", "tag": "urgent", "meta": {"color": "#f00"}})
        assert intent == CreateTag(tag="urgent", meta=TagMeta(color="#f00"))

    def test_meta_is_optional(self):
        assert parse_intent({"type": "create-tag", "tag": "x"}).meta == TagMeta()

    def test_wire_field_names(self):
        assert parse_intent({"type": "rename-tag", "from": "a", "to": "b"}) == RenameTag(source="a", target="b")
        assert parse_intent({"type": "merge-tags", "into": "c", "fromList": ["a", "b"]}) == MergeTags(
            into="c", sources=("a", "b")
        )
        assert parse_intent({"type": "assign-tags", "objectIds": ["1:1"], "tags": ["a"]}) == AssignTags(
            object_ids=("1:1",), tags=("a",)
        )

    def test_export_defaults(self):
        assert parse_intent({"type": "export"}) == Export()

    def test_to_wire_parses_back(self):
        intent = Export(format="json", variant="items", include_untagged=True)
        assert parse_intent(intent.to_wire()) == intent

    @pytest.mark.parametrize(
        "raw",
        [
            None,
            [],
            {},
            {"type": "launch-rockets"},
            {"type": 42},
            {"type": "create-tag"},
            {"type": "create-tag", "tag": ""},
            {"type": "create-tag", "tag": "x", "meta": "red"},
            {"type": "create-tag", "tag": "x", "meta": {"color": 1}},
            {"type": "rename-tag", "from": "a"},
            {"type": "merge-tags", "into": "a", "fromList": "b"},
            {"type": "assign-tags", "objectIds": [1], "tags": ["a"]},
            {"type": "export", "format": "xml"},
            {"type": "export", "variant": "rows"},
            {"type": "export", "includeUntagged": "yes"},
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedMessageError):
            parse_intent(raw)

    def test_error_carries_message_type(self):
        with pytest.raises(MalformedMessageError) as exc_info:
            parse_intent({"type": "delete-tag"})
        assert exc_info.value.message_type == "delete-tag"


class TestParsePush:
    def test_bootstrap(self, sample_state):
        push = parse_push(Bootstrap(state=sample_state, selection=("1",)).to_wire())
        assert push.state == sample_state
        assert push.selection == ("1",)

    def test_object_updated(self):
        wire = ObjectUpdated(
            objects=(TaggedObject(id="1", tags=("a",)),), affected=1, skipped=("9",)
        ).to_wire()
        assert wire["objects"] == [{"id": "1", "name": "", "kind": "other", "tags": ["a"]}]
        push = parse_push(wire)
        assert push.affected == 1
        assert push.skipped == ("9",)

    def test_operation_failed(self):
        wire = {"type": "operation-failed", "request": "create-tag", "error": "DuplicateTag", "message": "m"}
        assert parse_push(wire) == OperationFailed(request="create-tag", error="DuplicateTag", message="m")

    def test_registry_updated_bad_count_defaults_to_zero(self):
        wire = {"type": "registry-updated", "registry": {}, "objects": {}, "affected": True}
        assert parse_push(wire).affected == 0

    @pytest.mark.parametrize(
        "raw",
        [
            "bootstrap",
            {"type": "bootstrap", "registry": {}, "objects": {}},
            {"type": "registry-updated", "registry": [], "objects": {}},
            {"type": "object-updated", "objects": {"1": {}}},
            {"type": "selection-changed", "selection": [1]},
            {"type": "operation-failed", "request": "x"},
            {"type": "get-bootstrap"},
        ],
    )
    def test_malformed(self, raw):
        with pytest.raises(MalformedMessageError):
            parse_push(raw)

    def test_selection_changed(self):
        assert parse_push({"type": "selection-changed", "selection": []}) == SelectionChanged(selection=())

    def test_empty_state_round_trip(self):
        push = parse_push(Bootstrap(state=TagState()).to_wire())
        assert push.state == TagState()
