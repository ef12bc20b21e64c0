"""Host canvas boundary.

The controller never talks to a concrete canvas; it uses this interface for
object enumeration, key/value plugin data, selection, viewport, notifications
and the clipboard.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterable, Iterator, List, Optional, Sequence

logger = logging.getLogger(__name__)

SelectionListener = Callable[[List[str]], None]


@dataclass(frozen=True)
class CanvasObject:
    """An object as the host reports it, before any tag data is attached."""

    id: str
    name: str
    host_type: str = "OTHER"
    description: Optional[str] = None


class CanvasHost(ABC):
    """Abstract canvas the controller runs against."""

    def __init__(self):
        self._selection_listeners: List[SelectionListener] = []
        self.notifications: List[str] = []
        self.clipboard: Optional[str] = None
        self.viewport: List[str] = []

    # -- objects and storage ------------------------------------------------

    @abstractmethod
    def iter_objects(self) -> Iterator[CanvasObject]:
        """Every object on the canvas, in host order."""

    @abstractmethod
    def get_object(self, object_id: str) -> Optional[CanvasObject]:
        """One object, or None if the host does not know the id."""

    @abstractmethod
    def get_data(self, owner_id: str, key: str) -> str:
        """Stored string for (owner, key); empty string when unset."""

    @abstractmethod
    def set_data(self, owner_id: str, key: str, value: str) -> None:
        """Overwrite the string stored for (owner, key)."""

    @abstractmethod
    def get_selection(self) -> List[str]:
        """Currently selected object ids, in selection order."""

    @abstractmethod
    def _store_selection(self, object_ids: List[str]) -> None:
        pass

    # -- selection ----------------------------------------------------------

    def set_selection(self, object_ids: Sequence[str]) -> List[str]:
        """Select the given objects (unknown ids are ignored) and notify listeners."""
        selection = [oid for oid in dict.fromkeys(object_ids) if self.get_object(oid) is not None]
        self._store_selection(selection)
        for listener in list(self._selection_listeners):
            listener(list(selection))
        return selection

    def on_selection_change(self, listener: SelectionListener) -> Callable[[], None]:
        """Subscribe to selection changes. Returns an unsubscribe function."""
        self._selection_listeners.append(listener)

        def unsubscribe():
            if listener in self._selection_listeners:
                self._selection_listeners.remove(listener)

        return unsubscribe

    # -- viewport, notifications, clipboard ---------------------------------

    def scroll_into_view(self, object_ids: Sequence[str]) -> None:
        self.viewport = list(object_ids)

    def notify(self, message: str) -> None:
        logger.info(f"notify: {message}")
        self.notifications.append(message)

    def write_clipboard(self, text: str) -> None:
        self.clipboard = text


def next_object_id(existing_ids: Iterable[str], prefix: str = "1") -> str:
    """Next free ``prefix:N`` id, host-style."""
    numbers = []
    for object_id in existing_ids:
        head, _, tail = object_id.partition(":")
        if head == prefix and tail.isdigit():
            numbers.append(int(tail))
    return f"{prefix}:{max(numbers, default=0) + 1}"
