"""Host canvas implementations the controller can run against."""

from .base import CanvasHost, CanvasObject
from .memory import InMemoryCanvas
from .sqlite import SqliteCanvas

__all__ = ["CanvasHost", "CanvasObject", "InMemoryCanvas", "SqliteCanvas"]
