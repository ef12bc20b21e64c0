"""Shared pytest fixtures for canvastag tests."""

import pytest

from canvastag.host.base import CanvasObject
from canvastag.host.memory import InMemoryCanvas
from canvastag.host.sqlite import SqliteCanvas
from canvastag.models.objects import ObjectKind, TaggedObject
from canvastag.models.state import TagState
from canvastag.models.tags import TagMeta


@pytest.fixture
def canvas():
    """An in-memory canvas with a few untagged objects of different kinds."""
    return InMemoryCanvas(
        [
            CanvasObject(id="1:1", name="Login flow", host_type="STICKY"),
            CanvasObject(id="1:2", name="Checkout", host_type="RECTANGLE"),
            CanvasObject(id="1:3", name='Say "hi"', host_type="TEXT", description="Greeting copy"),
        ]
    )


@pytest.fixture
def sample_state():
    """Registry with two styled tags and an index with one untagged object."""
    return TagState(
        registry={
            "urgent": TagMeta(color="#ff0000", emoji="🔥"),
            "bug": TagMeta(color="#00ff00"),
        },
        index={
            "1": TaggedObject(id="1", name="First", kind=ObjectKind.STICKY, tags=("urgent",)),
            "2": TaggedObject(id="2", name="Second", kind=ObjectKind.SHAPE, tags=("bug", "urgent")),
            "3": TaggedObject(id="3", name="Third", kind=ObjectKind.TEXT),
        },
    )


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    """Point CANVASTAG_DB at a temp board so nothing touches the real one."""
    path = tmp_path / "board.db"
    monkeypatch.setenv("CANVASTAG_DB", str(path))
    return path


@pytest.fixture
def board(db_path):
    """A SQLite-backed board with three objects."""
    canvas = SqliteCanvas(db_path)
    canvas.add_object("Login flow", host_type="STICKY", object_id="1:1")
    canvas.add_object("Checkout", host_type="RECTANGLE", object_id="1:2")
    canvas.add_object("Pricing", host_type="FRAME", object_id="1:3", description="Plans page")
    return canvas
