"""Transport channels for the protocol client."""

from .base import BaseChannel, Channel, ChannelClosed, ChannelState
from .mock import MockChannel
from .websocket import WebSocketChannel

__all__ = [
    "BaseChannel",
    "Channel",
    "ChannelClosed",
    "ChannelState",
    "MockChannel",
    "WebSocketChannel",
]
