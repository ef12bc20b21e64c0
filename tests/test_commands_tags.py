"""Tests for the tag and object CLI commands."""

import json
import re
from unittest.mock import patch

from typer.testing import CliRunner

from canvastag import __version__
from canvastag.config.constants import DOCUMENT_ID, TAG_REGISTRY_KEY
from canvastag.exceptions import StorageError
from canvastag.host.sqlite import SqliteCanvas
from canvastag.main import app
from canvastag.sync.controller import load_state

runner = CliRunner()


def _out(result) -> str:
    """Strip ANSI escape sequences from CliRunner output for assertions."""
    return re.sub(r"\x1b\[[0-9;]*m", "", result.stdout)


def _state(db_path):
    return load_state(SqliteCanvas(db_path))


class TestVersion:
    def test_version(self):
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert __version__ in result.stdout


class TestTagCreate:
    def test_create_and_list(self, board, db_path):
        result = runner.invoke(app, ["tag", "create", "urgent", "--color", "#ff0000", "--emoji", "🔥"])
        assert result.exit_code == 0
        assert "Created tag" in _out(result)

        result = runner.invoke(app, ["tag", "list"])
        assert result.exit_code == 0
        assert "urgent" in _out(result)
        assert "#ff0000" in _out(result)

    def test_duplicate_fails(self, board, db_path):
        runner.invoke(app, ["tag", "create", "urgent", "--color", "#ff0000"])
        result = runner.invoke(app, ["tag", "create", "urgent", "--color", "#000000"])
        assert result.exit_code == 1
        assert "already exists" in _out(result)
        assert _state(db_path).registry["urgent"].color == "#ff0000"

    def test_empty_name_rejected(self, board, db_path):
        result = runner.invoke(app, ["tag", "create", ""])
        assert result.exit_code == 1
        assert SqliteCanvas(db_path).get_data(DOCUMENT_ID, TAG_REGISTRY_KEY) == ""

    def test_update_keeps_unset_fields(self, board, db_path):
        runner.invoke(app, ["tag", "create", "urgent", "--color", "#ff0000"])
        result = runner.invoke(app, ["tag", "update", "urgent", "--emoji", "🔥"])
        assert result.exit_code == 0
        meta = _state(db_path).registry["urgent"]
        assert meta.color == "#ff0000"
        assert meta.emoji == "🔥"


class TestTagAssignRemove:
    def test_assign_explicit_objects(self, board, db_path):
        result = runner.invoke(app, ["tag", "assign", "urgent", "bug", "-o", "1:1", "-o", "1:2"])
        assert result.exit_code == 0
        assert "Tagged 2 object(s)" in _out(result)
        state = _state(db_path)
        assert state.index["1:1"].tags == ("bug", "urgent")
        assert "urgent" not in state.registry

    def test_assign_uses_selection(self, board, db_path):
        runner.invoke(app, ["object", "select", "1:3"])
        result = runner.invoke(app, ["tag", "assign", "pricing"])
        assert result.exit_code == 0
        assert _state(db_path).index["1:3"].tags == ("pricing",)

    def test_assign_without_targets(self, board):
        result = runner.invoke(app, ["tag", "assign", "urgent"])
        assert result.exit_code == 1
        assert "nothing selected" in _out(result)

    def test_assign_reports_skipped(self, board):
        result = runner.invoke(app, ["tag", "assign", "urgent", "-o", "1:1", "-o", "8:8"])
        assert result.exit_code == 0
        assert "8:8" in _out(result)

    def test_remove(self, board, db_path):
        runner.invoke(app, ["tag", "assign", "a", "b", "-o", "1:1"])
        result = runner.invoke(app, ["tag", "remove", "b", "c", "-o", "1:1"])
        assert result.exit_code == 0
        assert "Untagged 1 object(s)" in _out(result)
        assert _state(db_path).index["1:1"].tags == ("a",)


class TestTagDeleteRenameMerge:
    def test_delete_cancelled(self, board, db_path):
        runner.invoke(app, ["tag", "create", "urgent"])
        result = runner.invoke(app, ["tag", "delete", "urgent"], input="n\n")
        assert result.exit_code == 0
        assert "Cancelled" in _out(result)
        assert "urgent" in _state(db_path).registry

    def test_delete_force_cascades(self, board, db_path):
        runner.invoke(app, ["tag", "create", "urgent"])
        runner.invoke(app, ["tag", "assign", "urgent", "-o", "1:1", "-o", "1:2"])
        result = runner.invoke(app, ["tag", "delete", "urgent", "--force"])
        assert result.exit_code == 0
        assert "Removed from 2 object(s)" in _out(result)
        state = _state(db_path)
        assert "urgent" not in state.registry
        assert state.index["1:1"].tags == ()

    def test_delete_unknown(self, board):
        result = runner.invoke(app, ["tag", "delete", "ghost", "--force"])
        assert result.exit_code == 0
        assert "nothing to delete" in _out(result)

    def test_rename(self, board, db_path):
        runner.invoke(app, ["tag", "create", "bug", "--color", "#00ff00"])
        runner.invoke(app, ["tag", "assign", "bug", "-o", "1:2"])
        result = runner.invoke(app, ["tag", "rename", "bug", "defect"], input="y\n")
        assert result.exit_code == 0
        state = _state(db_path)
        assert state.registry["defect"].color == "#00ff00"
        assert state.index["1:2"].tags == ("defect",)

    def test_rename_unknown(self, board):
        result = runner.invoke(app, ["tag", "rename", "ghost", "spirit", "--force"])
        assert result.exit_code == 1
        assert "not found" in _out(result)

    def test_merge(self, board, db_path):
        runner.invoke(app, ["tag", "assign", "urgent", "-o", "1:1"])
        runner.invoke(app, ["tag", "assign", "bug", "urgent", "-o", "1:2"])
        result = runner.invoke(app, ["tag", "merge", "urgent", "bug", "--into", "triage", "--force"])
        assert result.exit_code == 0
        assert "Updated 2 object(s)" in _out(result)
        state = _state(db_path)
        assert state.index["1:1"].tags == ("triage",)
        assert state.index["1:2"].tags == ("triage",)
        assert "triage" in state.registry

    def test_merge_no_valid_sources(self, board):
        result = runner.invoke(app, ["tag", "merge", "ghost", "--into", "triage", "--force"])
        assert result.exit_code == 1


class TestTagFindFocus:
    def test_find_selects(self, board, db_path):
        runner.invoke(app, ["tag", "assign", "urgent", "-o", "1:3", "-o", "1:1"])
        result = runner.invoke(app, ["tag", "find", "urgent"])
        assert result.exit_code == 0
        assert "Selected 2 object(s)" in _out(result)
        assert SqliteCanvas(db_path).get_selection() == ["1:1", "1:3"]

    def test_find_no_matches(self, board):
        result = runner.invoke(app, ["tag", "find", "ghost"])
        assert result.exit_code == 0
        assert "No objects with tag" in _out(result)

    def test_focus(self, board, db_path):
        result = runner.invoke(app, ["tag", "focus", "1:2"])
        assert result.exit_code == 0
        assert SqliteCanvas(db_path).get_selection() == ["1:2"]

    def test_focus_unknown(self, board):
        result = runner.invoke(app, ["tag", "focus", "4:4"])
        assert result.exit_code == 1
        assert "not found" in _out(result)


class TestTagBrowse:
    def test_list_shows_unregistered(self, board):
        runner.invoke(app, ["tag", "assign", "loose", "-o", "1:1"])
        result = runner.invoke(app, ["tag", "list"])
        assert result.exit_code == 0
        assert "unregistered" in _out(result)

    def test_list_empty(self, board):
        result = runner.invoke(app, ["tag", "list"])
        assert "No tags found" in _out(result)

    def test_filter_untagged(self, board):
        runner.invoke(app, ["tag", "assign", "urgent", "-o", "1:1"])
        result = runner.invoke(app, ["tag", "filter", "--untagged"])
        assert result.exit_code == 0
        out = _out(result)
        assert "Checkout" in out
        assert "Login flow" not in out

    def test_suggest(self, board):
        runner.invoke(app, ["tag", "create", "urgent"])
        runner.invoke(app, ["tag", "create", "ux"])
        result = runner.invoke(app, ["tag", "suggest", "ur"])
        assert result.exit_code == 0
        assert "urgent" in _out(result)
        assert "ux" not in _out(result)


class TestTagExport:
    def test_csv_to_stdout(self, board):
        runner.invoke(app, ["tag", "assign", "b", "a", "-o", "1:2"])
        result = runner.invoke(app, ["tag", "export"])
        assert result.exit_code == 0
        assert result.stdout.splitlines() == [
            "nodeId,nodeName,nodeType,tags",
            '"1:2","Checkout","shape","a|b"',
        ]

    def test_items_variant_from_env(self, board, monkeypatch):
        monkeypatch.setenv("CANVASTAG_CSV_VARIANT", "items")
        runner.invoke(app, ["tag", "assign", "x", "-o", "1:3"])
        result = runner.invoke(app, ["tag", "export"])
        assert result.stdout.splitlines()[1] == '"1:3","Pricing","Plans page","x"'

    def test_json_to_file(self, board, tmp_path):
        out_file = tmp_path / "tags.json"
        result = runner.invoke(app, ["tag", "export", "--format", "json", "--all", "--output", str(out_file)])
        assert result.exit_code == 0
        data = json.loads(out_file.read_text(encoding="utf-8"))
        assert list(data["objects"]) == ["1:1", "1:2", "1:3"]

    def test_unknown_format(self, board):
        result = runner.invoke(app, ["tag", "export", "--format", "xml"])
        assert result.exit_code == 1
        assert "Unknown format" in _out(result)


class TestObjectCommands:
    def test_add_and_list(self, db_path):
        result = runner.invoke(app, ["object", "add", "Roadmap", "--type", "frame"])
        assert result.exit_code == 0
        assert "1:1" in _out(result)

        result = runner.invoke(app, ["object", "list", "--json"])
        assert json.loads(result.stdout) == [{"id": "1:1", "name": "Roadmap", "kind": "frame", "tags": []}]

    def test_add_duplicate_id(self, board):
        result = runner.invoke(app, ["object", "add", "Clash", "--id", "1:1"])
        assert result.exit_code == 1

    def test_remove(self, board, db_path):
        result = runner.invoke(app, ["object", "remove", "1:1"])
        assert result.exit_code == 0
        assert SqliteCanvas(db_path).get_object("1:1") is None

        result = runner.invoke(app, ["object", "remove", "1:1"])
        assert result.exit_code == 1

    def test_select_show_and_clear(self, board):
        result = runner.invoke(app, ["object", "select", "1:2", "5:5"])
        assert "Unknown object(s) ignored" in _out(result)

        result = runner.invoke(app, ["object", "select"])
        assert "1:2" in _out(result)

        runner.invoke(app, ["object", "select", "--clear"])
        result = runner.invoke(app, ["object", "select"])
        assert "Nothing selected" in _out(result)

    def test_list_empty_board(self, db_path):
        result = runner.invoke(app, ["object", "list"])
        assert "No objects on the board" in _out(result)


class TestErrorHandling:
    @patch("canvastag.commands.tags.open_session")
    def test_unexpected_error_exits_nonzero(self, mock_open):
        mock_open.side_effect = StorageError("Could not open board database")
        result = runner.invoke(app, ["tag", "list"])
        assert result.exit_code == 1
        assert "Error listing tags" in _out(result)

    def test_verbose_and_quiet_conflict(self):
        result = runner.invoke(app, ["--verbose", "--quiet", "version"])
        assert result.exit_code == 1
