"""Pytest configuration and shared fixtures."""

from collections.abc import Callable
from typing import Any

import pytest

from deriv_playground import ClientConfig


@pytest.fixture
def config() -> ClientConfig:
    """Client config with short drain timeout so tests never wait long."""
    return ClientConfig(drain_timeout=0.05, echo_sent=False)


@pytest.fixture
def tick_frame() -> Callable[..., dict[str, Any]]:
    """Factory for tick push frames as the Deriv server sends them."""

    def make(subscription_id: str, quote: float = 1234.5, symbol: str = "R_50") -> dict[str, Any]:
        return {
            "echo_req": {"ticks": symbol, "subscribe": 1},
            "msg_type": "tick",
            "subscription": {"id": subscription_id},
            "tick": {"quote": quote, "symbol": symbol, "epoch": 1700000000},
        }

    return make


@pytest.fixture
def forget_ack() -> Callable[[str], dict[str, Any]]:
    """Factory for forget acknowledgment frames."""

    def make(subscription_id: str) -> dict[str, Any]:
        return {
            "echo_req": {"forget": subscription_id},
            "forget": 1,
            "msg_type": "forget",
        }

    return make
