"""Transport channel abstraction.

The protocol client talks to the server through a duplex channel of text
frames. The channel knows nothing about JSON or subscriptions:

- send(text): write one frame
- receive(): read one frame (text, or raw bytes for binary frames), or None once
  the channel is closed
- close(): orderly shutdown

Implementations:
- WebSocketChannel: secure websocket via the `websockets` library
- MockChannel: in-memory, scripted frames for tests
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import Protocol, runtime_checkable


class ChannelState(str, Enum):
    """Connection state machine."""

    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"


class ChannelClosed(ConnectionError):
    """Raised when sending on a channel that is no longer open."""

    pass


@runtime_checkable
class Channel(Protocol):
    """Protocol for duplex text-frame channels."""

    @property
    def state(self) -> ChannelState:
        """Current connection state."""
        ...

    @property
    def is_open(self) -> bool:
        ...

    async def open(self) -> None:
        """Establish the connection.

        Raises:
            ConnectionSetupError: If the handshake fails
        """
        ...

    async def send(self, text: str) -> None:
        """Send one text frame.

        Raises:
            ChannelClosed: If the channel is not open
        """
        ...

    async def receive(self) -> str | bytes | None:
        """Receive one text frame; None means end of stream."""
        ...

    async def close(self) -> None:
        """Close the channel. Safe to call more than once."""
        ...


class BaseChannel(ABC):
    """Base class for channels with common state handling."""

    def __init__(self) -> None:
        self._state = ChannelState.DISCONNECTED

    @property
    def state(self) -> ChannelState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state == ChannelState.CONNECTED

    async def open(self) -> None:
        if self._state == ChannelState.CONNECTED:
            return
        self._state = ChannelState.CONNECTING
        try:
            await self._do_open()
        except BaseException:
            self._state = ChannelState.DISCONNECTED
            raise
        self._state = ChannelState.CONNECTED

    async def send(self, text: str) -> None:
        if not self.is_open:
            raise ChannelClosed("Channel is not open")
        await self._do_send(text)

    async def receive(self) -> str | bytes | None:
        if not self.is_open:
            return None
        frame = await self._do_receive()
        if frame is None:
            self._state = ChannelState.CLOSED
        return frame

    async def close(self) -> None:
        if self._state in (ChannelState.DISCONNECTED, ChannelState.CLOSED):
            self._state = ChannelState.CLOSED
            return
        self._state = ChannelState.CLOSED
        await self._do_close()

    # Abstract methods for subclasses
    @abstractmethod
    async def _do_open(self) -> None:
        """Implementation-specific connection logic."""
        ...

    @abstractmethod
    async def _do_send(self, text: str) -> None:
        """Implementation-specific send logic."""
        ...

    @abstractmethod
    async def _do_receive(self) -> str | bytes | None:
        """Implementation-specific receive logic."""
        ...

    @abstractmethod
    async def _do_close(self) -> None:
        """Implementation-specific close logic."""
        ...

    async def __aenter__(self) -> BaseChannel:
        await self.open()
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()
