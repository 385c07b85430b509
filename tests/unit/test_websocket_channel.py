"""Unit tests for the websocket channel.

The `websockets` connection is replaced by a mock; no network I/O.
"""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosedOK

from deriv_playground import ConnectionSetupError, DecodeError, decode
from deriv_playground.transport import ChannelClosed, ChannelState, WebSocketChannel

URL = "wss://ws.derivws.com/websockets/v3?app_id=1&l=EN&brand=deriv"


def make_ws() -> AsyncMock:
    ws = AsyncMock()
    ws.send = AsyncMock()
    ws.recv = AsyncMock()
    ws.close = AsyncMock()
    return ws


class TestWebSocketChannel:
    """Tests for WebSocketChannel."""

    def test_initial_state(self) -> None:
        channel = WebSocketChannel(URL)

        assert channel.state == ChannelState.DISCONNECTED
        assert not channel.is_open

    @pytest.mark.asyncio
    async def test_open_connects_with_settings(self) -> None:
        ws = make_ws()
        with patch("websockets.connect", AsyncMock(return_value=ws)) as connect:
            channel = WebSocketChannel(URL, open_timeout=5.0, ping_interval=None)
            await channel.open()

        connect.assert_awaited_once_with(URL, open_timeout=5.0, ping_interval=None)
        assert channel.is_open

    @pytest.mark.asyncio
    async def test_open_failure_is_setup_error(self) -> None:
        failing = AsyncMock(side_effect=OSError("Name or service not known"))
        with patch("websockets.connect", failing):
            channel = WebSocketChannel(URL)
            with pytest.raises(ConnectionSetupError, match="Name or service not known"):
                await channel.open()

        assert channel.state == ChannelState.DISCONNECTED

    @pytest.mark.asyncio
    async def test_send_and_receive(self) -> None:
        ws = make_ws()
        ws.recv.return_value = '{"msg_type": "ping"}'
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()

            await channel.send('{"ping":1}')
            frame = await channel.receive()

        ws.send.assert_awaited_once_with('{"ping":1}')
        assert frame == '{"msg_type": "ping"}'

    @pytest.mark.asyncio
    async def test_binary_frames_are_handed_up_unchanged(self) -> None:
        ws = make_ws()
        ws.recv.return_value = b'{"msg_type": "ping"}'
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()

            frame = await channel.receive()

        assert frame == b'{"msg_type": "ping"}'
        assert decode(frame).msg_type == "ping"

    @pytest.mark.asyncio
    async def test_invalid_utf8_binary_frame_is_decode_error(self) -> None:
        ws = make_ws()
        ws.recv.return_value = b'{"msg_type": "\xff\xfe"}'
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()

            frame = await channel.receive()

        with pytest.raises(DecodeError, match="Malformed server payload"):
            decode(frame)

    @pytest.mark.asyncio
    async def test_server_close_is_end_of_stream(self) -> None:
        ws = make_ws()
        ws.recv.side_effect = ConnectionClosedOK(None, None)
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()

            assert await channel.receive() is None

        assert channel.state == ChannelState.CLOSED

    @pytest.mark.asyncio
    async def test_send_after_server_close(self) -> None:
        ws = make_ws()
        ws.send.side_effect = ConnectionClosedOK(None, None)
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()

            with pytest.raises(ChannelClosed):
                await channel.send('{"ping":1}')

        assert not channel.is_open

    @pytest.mark.asyncio
    async def test_send_before_open(self) -> None:
        channel = WebSocketChannel(URL)

        with pytest.raises(ChannelClosed):
            await channel.send('{"ping":1}')

    @pytest.mark.asyncio
    async def test_close(self) -> None:
        ws = make_ws()
        with patch("websockets.connect", AsyncMock(return_value=ws)):
            channel = WebSocketChannel(URL)
            await channel.open()
            await channel.close()
            await channel.close()

        ws.close.assert_awaited_once()
        assert channel.state == ChannelState.CLOSED
