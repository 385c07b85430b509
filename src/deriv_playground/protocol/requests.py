"""Request definitions for the Deriv websocket API.

A request is one JSON object per frame. Exactly one "primary" key names the
operation; a few operations carry extra keys, and any request may be marked
as subscribing with `"subscribe": 1`.

Example:
    {"ticks": "R_50", "subscribe": 1}

The subscribe marker is a field of the Request value and is only turned into
a key at serialisation time.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field, model_validator

SUBSCRIBE_KEY = "subscribe"


class Operation(str, Enum):
    """Operations the client knows how to issue."""

    ACTIVE_SYMBOLS = "active_symbols"
    FORGET = "forget"
    PING = "ping"
    TICKS = "ticks"
    WEBSITE_STATUS = "website_status"


class ActiveSymbolsMode(str, Enum):
    """Detail level for `active_symbols`."""

    BRIEF = "brief"
    FULL = "full"


class Request(BaseModel):
    """A request from client to server.

    Attributes:
        op: The primary key, e.g. "ticks"
        value: Value of the primary key ("R_50", 1, "brief", ...)
        extra: Additional top-level keys, e.g. {"product_type": "basic"}
        subscribe: Whether the request creates a subscription
    """

    op: str
    value: Any = 1
    extra: dict[str, Any] = Field(default_factory=dict)
    subscribe: bool = False

    @model_validator(mode="after")
    def _check_keys(self) -> Request:
        if not self.op:
            raise ValueError("Request needs a primary key")
        if self.op == SUBSCRIBE_KEY:
            raise ValueError("'subscribe' cannot be the primary key")
        for key in self.extra:
            if key in (self.op, SUBSCRIBE_KEY):
                raise ValueError(f"Extra key clashes with reserved key: {key}")
        return self

    def to_wire(self) -> dict[str, Any]:
        """Build the structured value that goes on the wire."""
        data: dict[str, Any] = {self.op: self.value}
        data.update(self.extra)
        if self.subscribe:
            data[SUBSCRIBE_KEY] = 1
        return data

    @classmethod
    def from_wire(cls, data: dict[str, Any]) -> Request:
        """Rebuild a Request from its structured wire value.

        The primary key is the first known operation key present; failing
        that, the first key that is not the subscribe marker.
        """
        keys = [k for k in data if k != SUBSCRIBE_KEY]
        if not keys:
            raise ValueError("Request has no primary key")

        known = {op.value for op in Operation}
        op = next((k for k in keys if k in known), keys[0])
        return cls(
            op=op,
            value=data[op],
            extra={k: data[k] for k in keys if k != op},
            subscribe=bool(data.get(SUBSCRIBE_KEY)),
        )

    def subscribing(self) -> Request:
        """Return a copy of this request marked as subscribing."""
        return self.model_copy(update={"subscribe": True})

    @classmethod
    def create(
        cls,
        op: str | Operation,
        value: Any = 1,
        extra: dict[str, Any] | None = None,
        subscribe: bool = False,
    ) -> Request:
        """Factory method for creating requests."""
        return cls(
            op=op.value if isinstance(op, Operation) else op,
            value=value,
            extra=extra or {},
            subscribe=subscribe,
        )

    # Convenience factories for the supported operations
    @classmethod
    def ping(cls, subscribe: bool = False) -> Request:
        return cls.create(Operation.PING, 1, subscribe=subscribe)

    @classmethod
    def ticks(cls, symbol: str) -> Request:
        """Create a subscribing ticks request."""
        return cls.create(Operation.TICKS, symbol, subscribe=True)

    @classmethod
    def forget(cls, subscription_id: str) -> Request:
        return cls.create(Operation.FORGET, subscription_id)

    @classmethod
    def active_symbols(cls, mode: str | ActiveSymbolsMode) -> Request:
        """Create an active_symbols request for basic products."""
        return cls.create(
            Operation.ACTIVE_SYMBOLS,
            mode.value if isinstance(mode, ActiveSymbolsMode) else mode,
            extra={"product_type": "basic"},
        )

    @classmethod
    def website_status(cls) -> Request:
        return cls.create(Operation.WEBSITE_STATUS, 1)
