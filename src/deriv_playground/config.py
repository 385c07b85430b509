"""Client configuration.

Connection-time parameters (endpoint, app id, language, brand) live here;
nothing per-message does. Values come from defaults, then environment
variables, then CLI options.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from enum import Enum
from typing import Any
from urllib.parse import urlencode

DEFAULT_ENDPOINT = "wss://ws.derivws.com/websockets/v3"
DEFAULT_APP_ID = "1"


class SubscriptionMode(str, Enum):
    """How subscribing commands are run from the command surface."""

    ONCE = "once"  # Display the first response, then forget
    STREAM = "stream"  # Print pushes until interrupted or closed


@dataclass
class ClientConfig:
    """Configuration for the protocol client and command surface."""

    # Connection
    endpoint: str = DEFAULT_ENDPOINT
    app_id: str = DEFAULT_APP_ID
    language: str = "EN"
    brand: str = "deriv"
    open_timeout: float | None = 10.0
    ping_interval: float | None = 20.0

    # Exchanges
    request_timeout: float | None = None  # None waits until the channel closes
    drain_timeout: float = 1.0  # How long to wait for stray pushes after forget

    # Command surface
    subscription_mode: SubscriptionMode = SubscriptionMode.STREAM
    strict_arguments: bool = True
    echo_sent: bool = True

    @property
    def url(self) -> str:
        """Full websocket URL with connection-time query parameters."""
        query = urlencode({"app_id": self.app_id, "l": self.language, "brand": self.brand})
        separator = "&" if "?" in self.endpoint else "?"
        return f"{self.endpoint}{separator}{query}"

    def with_overrides(self, **overrides: Any) -> ClientConfig:
        """Return a copy with the non-None overrides applied."""
        known = {f.name for f in fields(self)}
        changes = {k: v for k, v in overrides.items() if v is not None and k in known}
        if "subscription_mode" in changes:
            changes["subscription_mode"] = SubscriptionMode(changes["subscription_mode"])
        return replace(self, **changes)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None) -> ClientConfig:
        """Build a config from DERIV_* environment variables.

        Recognised: DERIV_ENDPOINT, DERIV_APP_ID, DERIV_LANGUAGE, DERIV_BRAND,
        DERIV_SUBSCRIPTION_MODE, DERIV_REQUEST_TIMEOUT.
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, Any] = {
            "endpoint": env.get("DERIV_ENDPOINT"),
            "app_id": env.get("DERIV_APP_ID"),
            "language": env.get("DERIV_LANGUAGE"),
            "brand": env.get("DERIV_BRAND"),
            "subscription_mode": env.get("DERIV_SUBSCRIPTION_MODE"),
        }
        if timeout := env.get("DERIV_REQUEST_TIMEOUT"):
            try:
                overrides["request_timeout"] = float(timeout)
            except ValueError as e:
                raise ValueError(f"DERIV_REQUEST_TIMEOUT must be a number: {timeout}") from e
        return cls().with_overrides(**overrides)
