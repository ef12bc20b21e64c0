"""Sync protocol between the controller (durable state) and the view (cache)."""

from .channel import ChannelEndpoint, MessageChannel
from .controller import TagController, load_state
from .session import LocalSession
from .view import TagView

__all__ = [
    "ChannelEndpoint",
    "LocalSession",
    "MessageChannel",
    "TagController",
    "TagView",
    "load_state",
]
