"""Websocket channel over the `websockets` library."""

from __future__ import annotations

import logging
from typing import Any

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..errors import ConnectionSetupError
from .base import BaseChannel, ChannelClosed, ChannelState

logger = logging.getLogger(__name__)


class WebSocketChannel(BaseChannel):
    """Channel over a (secure) websocket connection.

    Wire format: one UTF-8 JSON text frame per message. Binary frames are
    handed up as raw bytes; the codec decodes them.
    """

    def __init__(
        self,
        url: str,
        open_timeout: float | None = 10.0,
        ping_interval: float | None = 20.0,
    ) -> None:
        super().__init__()
        self.url = url
        self.open_timeout = open_timeout
        self.ping_interval = ping_interval
        self._ws: Any = None

    async def _do_open(self) -> None:
        try:
            self._ws = await websockets.connect(
                self.url,
                open_timeout=self.open_timeout,
                ping_interval=self.ping_interval,
            )
        except (OSError, TimeoutError, InvalidHandshake, InvalidURI) as e:
            raise ConnectionSetupError(self.url, str(e) or type(e).__name__) from e
        logger.info(f"WebSocket connected to {self.url}")

    async def _do_send(self, text: str) -> None:
        try:
            await self._ws.send(text)
        except ConnectionClosed as e:
            self._state = ChannelState.CLOSED
            raise ChannelClosed(f"Connection closed: {e}") from e
        logger.debug(f"Sent frame: {text}")

    async def _do_receive(self) -> str | bytes | None:
        try:
            data = await self._ws.recv()
        except ConnectionClosed as e:
            logger.info(f"WebSocket closed by server: {e}")
            return None
        logger.debug(f"Received frame: {data[:200]!r}")
        return data

    async def _do_close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        logger.info("WebSocket closed")
