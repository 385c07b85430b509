"""Response wrapper for server frames.

The client enforces no schema on responses. It only peeks at the handful of
fields it needs for correlation:

    {
        "echo_req": {"ticks": "R_50", "subscribe": 1},
        "msg_type": "tick",
        "subscription": {"id": "b0a3..."},
        "tick": {...}
    }
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class Response(BaseModel):
    """A decoded server frame."""

    data: dict[str, Any] = Field(default_factory=dict)

    def get(self, key: str, default: Any = None) -> Any:
        """Get a top-level field with optional default."""
        return self.data.get(key, default)

    @property
    def msg_type(self) -> str | None:
        return self.data.get("msg_type")

    @property
    def echo_req(self) -> dict[str, Any]:
        echo = self.data.get("echo_req")
        return echo if isinstance(echo, dict) else {}

    @property
    def subscription_id(self) -> str | None:
        """The nested `subscription.id`, if present."""
        subscription = self.data.get("subscription")
        if not isinstance(subscription, dict):
            return None
        sub_id = subscription.get("id")
        return str(sub_id) if sub_id else None

    def is_error(self) -> bool:
        """Check if the server reported an error for this exchange."""
        return "error" in self.data

    @property
    def error_message(self) -> str | None:
        error = self.data.get("error")
        if isinstance(error, dict):
            message = error.get("message", "Unknown error")
            code = error.get("code")
            return f"{code}: {message}" if code else message
        if error is not None:
            return str(error)
        return None

    def is_forget_ack(self, subscription_id: str | None = None) -> bool:
        """Check if this frame acknowledges a `forget` request."""
        if self.msg_type != "forget":
            return False
        if subscription_id is None:
            return True
        echoed = self.echo_req.get("forget")
        return echoed is None or str(echoed) == subscription_id
