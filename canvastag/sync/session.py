"""Controller and view wired together in one process without a queue."""

import json
from typing import Any, Dict, List

from ..host.base import CanvasHost
from .controller import TagController
from .messages import Intent, Push, parse_push
from .view import TagView


class LocalSession:
    """Synchronous round trips: every ``send`` is handled before it returns.

    Used by the CLI. Messages still cross as JSON wire dicts, and the view only
    learns about changes through controller pushes.
    """

    def __init__(self, host: CanvasHost, bootstrap: bool = True):
        self.host = host
        self.controller = TagController(host)
        self.view = TagView(send=self._deliver)
        self._unsubscribe = self.controller.subscribe(self.view.apply)
        if bootstrap:
            self.view.bootstrap()

    def _deliver(self, wire: Dict[str, Any]) -> List[Dict[str, Any]]:
        return self.controller.handle(json.loads(json.dumps(wire)))

    def send(self, intent: Intent) -> List[Push]:
        """Send one intent and return the pushes it produced."""
        return [parse_push(wire) for wire in self.view.request(intent)]

    def close(self) -> None:
        self._unsubscribe()
        self.controller.close()

    def __enter__(self) -> "LocalSession":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
