"""Tests for the view cache and the in-process session."""

import pytest

from canvastag.models.objects import TaggedObject
from canvastag.models.state import TagState
from canvastag.models.tags import TagMeta
from canvastag.sync.messages import (
    Bootstrap,
    ExportReady,
    ObjectUpdated,
    OperationFailed,
    RegistryUpdated,
    SelectionChanged,
)
from canvastag.sync.session import LocalSession
from canvastag.sync.view import TagView


class TestTagViewApply:
    def test_bootstrap_replaces_cache(self, sample_state):
        view = TagView()
        view.apply(Bootstrap(state=sample_state, selection=("2",)).to_wire())
        assert view.connected
        assert view.state == sample_state
        assert [obj.id for obj in view.selected_objects()] == ["2"]
        assert view.selection_tags() == ["bug", "urgent"]

    def test_object_updated_replaces_only_named_entries(self, sample_state):
        view = TagView()
        view.apply(Bootstrap(state=sample_state).to_wire())
        view.apply(ObjectUpdated(objects=(TaggedObject(id="3", name="Third", kind="text", tags=("new",)),)).to_wire())
        assert view.state.index["3"].tags == ("new",)
        assert view.state.index["1"] == sample_state.index["1"]
        assert view.state.registry == sample_state.registry

    def test_registry_updated_replaces_everything(self, sample_state):
        view = TagView()
        view.apply(Bootstrap(state=sample_state).to_wire())
        view.apply(RegistryUpdated(state=TagState(registry={"only": TagMeta()})).to_wire())
        assert view.state.registry == {"only": TagMeta()}
        assert view.state.index == {}

    def test_selection_export_and_failures(self):
        view = TagView()
        view.apply(SelectionChanged(selection=("a", "b")).to_wire())
        view.apply(ExportReady(format="csv", content="x").to_wire())
        view.apply(OperationFailed(request="create-tag", error="DuplicateTag", message="taken").to_wire())
        assert view.selection == ["a", "b"]
        assert view.last_export.content == "x"
        assert view.notifications == ["taken"]
        assert isinstance(view.last_push, OperationFailed)

    def test_malformed_push_ignored(self, sample_state):
        view = TagView()
        view.apply(Bootstrap(state=sample_state).to_wire())
        assert view.apply({"type": "registry-updated"}) is None
        assert view.state == sample_state

    def test_object_with_scalar_tags_loads_untagged(self, sample_state):
        view = TagView()
        view.apply(Bootstrap(state=sample_state).to_wire())
        push = view.apply({"type": "object-updated", "objects": [{"id": "1", "name": "First", "tags": 7}]})
        assert isinstance(push, ObjectUpdated)
        assert view.state.index["1"].tags == ()

    def test_request_without_sender(self):
        with pytest.raises(RuntimeError):
            TagView().bootstrap()


class TestLocalSession:
    def test_bootstraps_on_open(self, canvas):
        with LocalSession(canvas) as session:
            assert session.view.connected
            assert len(session.view.state.index) == 3

    def test_view_follows_pushes(self, canvas):
        with LocalSession(canvas) as session:
            session.view.create_tag("urgent", emoji="🔥")
            session.view.assign_tags(["1:1"], ["urgent"])
            assert session.view.state.get_tag("urgent").emoji == "🔥"
            assert session.view.state.index["1:1"].tags == ("urgent",)

    def test_duplicate_leaves_cache_unchanged(self, canvas):
        with LocalSession(canvas) as session:
            session.view.create_tag("urgent", color="#ff0000")
            before = session.view.state
            pushes = session.view.create_tag("urgent", color="#000000")
            assert [p["type"] for p in pushes] == ["operation-failed"]
            assert session.view.state == before
            assert session.view.notifications == ["Tag already exists: urgent"]

    def test_export_helper(self, canvas):
        with LocalSession(canvas) as session:
            session.view.assign_tags(["1:3"], ["b", "a"])
            session.view.export(fmt="csv", variant="items")
            assert session.view.last_export.content.splitlines() == [
                "itemId,itemName,description,tags",
                '"1:3","Say ""hi""","Greeting copy","a|b"',
            ]

    def test_rename_merge_remove_update(self, canvas):
        with LocalSession(canvas) as session:
            view = session.view
            view.create_tag("old", color="#123456")
            view.assign_tags(["1:1", "1:2"], ["old", "other"])
            view.rename_tag("old", "new")
            view.merge_tags("final", ["new", "other"])
            view.update_tag("final", emoji="✅")
            view.remove_tags(["1:2"], ["final"])
            view.delete_tag("missing")
            view.focus_object("1:1")

            assert view.state.registry == {"final": TagMeta(emoji="✅")}
            assert view.state.index["1:1"].tags == ("final",)
            assert view.state.index["1:2"].tags == ()
            assert view.selection == ["1:1"]
