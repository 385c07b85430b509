"""Deriv API playground.

An interactive client for the Deriv JSON-over-websocket API:
- ProtocolClient: request/response and subscribe/push/forget exchanges
- CommandDispatcher: operator commands validated and mapped onto the client
- Channels: WebSocketChannel for the real server, MockChannel for tests
"""

from .client import ExchangeState, ProtocolClient, Subscription
from .config import ClientConfig, SubscriptionMode
from .dispatcher import CommandDispatcher, Outcome, OutcomeKind
from .errors import (
    ConnectionSetupError,
    DecodeError,
    DerivPlaygroundError,
    InvalidArgument,
    InvalidCommand,
    MissingSubscriptionId,
    NoResponse,
    ProtocolError,
    ResponseTimeout,
)
from .protocol import ActiveSymbolsMode, Operation, Request, Response, decode, encode
from .transport import Channel, MockChannel, WebSocketChannel

__all__ = [
    # Client
    "ProtocolClient",
    "Subscription",
    "ExchangeState",
    # Commands
    "CommandDispatcher",
    "Outcome",
    "OutcomeKind",
    # Config
    "ClientConfig",
    "SubscriptionMode",
    # Protocol
    "Request",
    "Response",
    "Operation",
    "ActiveSymbolsMode",
    "encode",
    "decode",
    # Transport
    "Channel",
    "WebSocketChannel",
    "MockChannel",
    # Errors
    "DerivPlaygroundError",
    "ConnectionSetupError",
    "ProtocolError",
    "NoResponse",
    "DecodeError",
    "MissingSubscriptionId",
    "ResponseTimeout",
    "InvalidCommand",
    "InvalidArgument",
]

__version__ = "0.1.0"
