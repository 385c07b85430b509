"""Error taxonomy for the Deriv playground client.

Every protocol error is local to the exchange that raised it. Only channel
closure ends the connection; everything else is reported and the operator
moves on to the next command.
"""

from __future__ import annotations

from typing import Any


class DerivPlaygroundError(Exception):
    """Base class for all client errors."""

    pass


class ConnectionSetupError(DerivPlaygroundError):
    """Raised when the websocket handshake fails (DNS, TLS, HTTP upgrade)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to connect to {url}: {reason}")
        self.url = url
        self.reason = reason


class ProtocolError(DerivPlaygroundError):
    """Base class for failures of a single exchange."""

    pass


class NoResponse(ProtocolError):
    """Raised when the channel closes while a reply is awaited."""

    def __init__(self, message: str = "Connection closed before a response arrived") -> None:
        super().__init__(message)


class DecodeError(ProtocolError):
    """Raised when a server frame is not a well-formed JSON object."""

    def __init__(self, message: str, raw: str | None = None) -> None:
        super().__init__(message)
        self.raw = raw


class MissingSubscriptionId(ProtocolError):
    """Raised when the first frame of a subscribing exchange lacks `subscription.id`."""

    def __init__(self, operation: str, response: Any = None) -> None:
        detail = ""
        error = getattr(response, "error_message", None)
        if error:
            detail = f" (server said: {error})"
        super().__init__(f"No subscription id in response to '{operation}'{detail}")
        self.operation = operation
        self.response = response


class ResponseTimeout(ProtocolError):
    """Raised when no frame arrives within the configured request timeout."""

    def __init__(self, timeout: float) -> None:
        super().__init__(f"No response within {timeout:g}s")
        self.timeout = timeout


class InvalidCommand(DerivPlaygroundError):
    """Raised for an unknown operator command. No traffic is produced."""

    def __init__(self, command: str) -> None:
        super().__init__(f"Invalid command: {command}")
        self.command = command


class InvalidArgument(DerivPlaygroundError):
    """Raised when a command argument is outside its domain. No traffic is produced."""

    def __init__(self, command: str, message: str) -> None:
        super().__init__(f"Invalid command: {command}: {message}")
        self.command = command
