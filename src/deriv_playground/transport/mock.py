"""In-memory channel for tests.

Frames are scripted up front with `feed()` or produced on demand with
`set_response()`. No actual I/O.

Usage:
    channel = MockChannel()
    channel.set_response("ticks", [{"subscription": {"id": "S1"}, "tick": {}}])
    client = ProtocolClient(channel)
    subscription = await client.ticks("R_50")

    assert channel.sent_messages[0] == {"ticks": "R_50", "subscribe": 1}
"""

from __future__ import annotations

import asyncio
import json
from collections import deque
from typing import Any

from .base import BaseChannel


class MockChannel(BaseChannel):
    """Scripted channel.

    Args:
        frames: Frames available to receive() straight away
        eof_when_empty: If True, receive() reports end of stream once no
            frames are queued. If False, it waits for more frames until
            end() or close() is called.
    """

    def __init__(
        self,
        frames: list[str | dict[str, Any]] | None = None,
        eof_when_empty: bool = True,
    ) -> None:
        super().__init__()
        self._frames: deque[str] = deque()
        self._responses: dict[str, list[str]] = {}
        self._arrived = asyncio.Event()
        self._eof = eof_when_empty
        self.sent: list[str] = []
        self.open_calls = 0
        self.close_calls = 0
        if frames:
            self.feed(*frames)

    @property
    def sent_messages(self) -> list[dict[str, Any]]:
        """All sent frames, parsed back into structured values."""
        return [json.loads(text) for text in self.sent]

    def feed(self, *frames: str | dict[str, Any]) -> None:
        """Queue frames for receive()."""
        for frame in frames:
            self._frames.append(frame if isinstance(frame, str) else json.dumps(frame))
        self._arrived.set()

    def set_response(self, op: str, frames: list[str | dict[str, Any]]) -> None:
        """Queue canned frames whenever a request with primary key `op` is sent."""
        self._responses[op] = [f if isinstance(f, str) else json.dumps(f) for f in frames]

    def end(self) -> None:
        """Signal end of stream once the queued frames are consumed."""
        self._eof = True
        self._arrived.set()

    async def _do_open(self) -> None:
        self.open_calls += 1

    async def _do_send(self, text: str) -> None:
        self.sent.append(text)
        try:
            message = json.loads(text)
        except json.JSONDecodeError:
            return
        for op, frames in self._responses.items():
            if isinstance(message, dict) and op in message:
                self.feed(*frames)
                break

    async def _do_receive(self) -> str | None:
        while not self._frames:
            if self._eof:
                return None
            self._arrived.clear()
            await self._arrived.wait()
        return self._frames.popleft()

    async def _do_close(self) -> None:
        self.close_calls += 1
        self._frames.clear()
        self._eof = True
        self._arrived.set()
