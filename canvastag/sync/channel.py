"""Bidirectional asyncio message channel between a controller and a view.

Each direction is an ``asyncio.Queue`` so delivery is FIFO. Messages are
round-tripped through JSON on send: only JSON-serializable payloads cross and
no object is shared between the two sides.
"""

import asyncio
import json
from typing import Any, Dict, Optional

_CLOSED = object()


class ChannelEndpoint:
    """One side of a MessageChannel."""

    def __init__(self, name: str, inbox: asyncio.Queue, outbox: asyncio.Queue):
        self.name = name
        self._inbox = inbox
        self._outbox = outbox

    def send(self, message: Dict[str, Any]) -> None:
        """Queue a message for the other side. Raises TypeError if it is not JSON-serializable."""
        self._outbox.put_nowait(json.loads(json.dumps(message)))

    async def receive(self) -> Optional[Dict[str, Any]]:
        """Next message from the other side, or None once the channel is closed."""
        message = await self._inbox.get()
        if message is _CLOSED:
            return None
        return message

    def close(self) -> None:
        """Tell the other side no more messages will follow."""
        self._outbox.put_nowait(_CLOSED)


class MessageChannel:
    """A pair of FIFO queues wired into a controller endpoint and a view endpoint."""

    def __init__(self):
        to_controller: asyncio.Queue = asyncio.Queue()
        to_view: asyncio.Queue = asyncio.Queue()
        self.controller_end = ChannelEndpoint("controller", inbox=to_controller, outbox=to_view)
        self.view_end = ChannelEndpoint("view", inbox=to_view, outbox=to_controller)

    def close(self) -> None:
        self.controller_end.close()
        self.view_end.close()
