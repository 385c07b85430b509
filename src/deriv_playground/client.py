"""Protocol client for the Deriv websocket API.

Owns the channel and implements the two exchange patterns:

- Request/response: one request frame, exactly one reply frame
- Subscription: one subscribing request, a first reply carrying
  `subscription.id`, then server pushes sharing that id until the
  subscription is forgotten or the channel closes

Exchanges run one at a time on a single event loop. While one exchange is
reading, pushes that belong to another live subscription are buffered for
it rather than mistaken for the reply.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from .config import ClientConfig, SubscriptionMode
from .errors import DecodeError, MissingSubscriptionId, NoResponse, ProtocolError, ResponseTimeout
from .protocol import Request, Response, decode, encode
from .transport import Channel, ChannelClosed

logger = logging.getLogger(__name__)

CONNECTION_CLOSED = "Connection closed"


class ExchangeState(str, Enum):
    """Lifecycle of a single exchange."""

    IDLE = "idle"
    SENT = "sent"
    AWAITING_REPLY = "awaiting_reply"
    COMPLETED = "completed"
    FAILED = "failed"

    # Subscribing exchanges only
    SUBSCRIBED = "subscribed"
    CANCELLED = "cancelled"
    TERMINATED = "terminated"


class Subscription:
    """A live server subscription.

    Iterate it to receive pushes as they arrive. Iteration ends when the
    subscription is cancelled, the channel closes, or `interrupt()` is
    called. Used as an async context manager it forgets itself on exit:

        async with await client.subscribe_stream(Request.ticks("R_50")) as ticks:
            async for push in ticks:
                print(push.data["tick"]["quote"])
    """

    def __init__(
        self,
        client: ProtocolClient,
        subscription_id: str,
        request: Request,
        first_response: Response,
    ) -> None:
        self._client = client
        self.id = subscription_id
        self.request = request
        self.first_response = first_response
        self.state = ExchangeState.SUBSCRIBED
        self.push_count = 0
        self._buffer: deque[Response] = deque()
        self._interrupted = asyncio.Event()

    def __repr__(self) -> str:
        return f"Subscription(id={self.id!r}, op={self.request.op!r}, state={self.state.value})"

    @property
    def is_active(self) -> bool:
        return self.state == ExchangeState.SUBSCRIBED

    @property
    def interrupted(self) -> bool:
        return self._interrupted.is_set()

    def interrupt(self) -> None:
        """Stop iteration at the next suspension point (operator interrupt)."""
        self._interrupted.set()

    def __aiter__(self) -> Subscription:
        return self

    async def __anext__(self) -> Response:
        if not self._buffer and (not self.is_active or self.interrupted):
            raise StopAsyncIteration
        response = await self._client._next_push(self)
        if response is None:
            raise StopAsyncIteration
        self.push_count += 1
        return response

    async def cancel(self) -> Response | None:
        """Forget this subscription on the server."""
        return await self._client.cancel(self.id)

    async def __aenter__(self) -> Subscription:
        return self

    async def __aexit__(self, *args: Any) -> None:
        if self.is_active and self._client.is_connected:
            try:
                await self.cancel()
            except NoResponse:
                logger.debug(f"Channel closed before {self.id} could be forgotten")


class ProtocolClient:
    """Client side of the Deriv request/subscription protocol.

    Usage:
        channel = WebSocketChannel(config.url)
        async with ProtocolClient(channel, config) as client:
            status = await client.website_status()
            subscription = await client.ticks("R_50")
            async for push in subscription:
                ...

    Args:
        channel: The transport channel, owned by this client from now on
        config: Timeouts and connection settings
        sleep: Coroutine used for delays; injectable for simulated time
        on_send: Called with every frame's text after it was sent
    """

    def __init__(
        self,
        channel: Channel,
        config: ClientConfig | None = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        on_send: Callable[[str], None] | None = None,
    ) -> None:
        self._channel = channel
        self.config = config or ClientConfig()
        self._sleep = sleep
        self._on_send = on_send
        self._subscriptions: dict[str, Subscription] = {}
        self._forgotten: set[str] = set()
        self.state = ExchangeState.IDLE

    @property
    def channel(self) -> Channel:
        return self._channel

    @property
    def is_connected(self) -> bool:
        return self._channel.is_open

    @property
    def subscriptions(self) -> dict[str, Subscription]:
        """Live subscriptions keyed by id."""
        return dict(self._subscriptions)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def connect(self) -> None:
        """Open the channel.

        Raises:
            ConnectionSetupError: If the handshake fails
        """
        await self._channel.open()

    async def close(self) -> str:
        """Close the channel. Live subscriptions are terminated implicitly."""
        self._terminate_all()
        await self._channel.close()
        return CONNECTION_CLOSED

    async def __aenter__(self) -> ProtocolClient:
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    # =========================================================================
    # Core exchanges
    # =========================================================================

    async def request(self, request: Request) -> Response:
        """Send a one-shot request and return its single reply.

        Raises:
            NoResponse: The channel closed before a reply arrived
            DecodeError: The reply was not a JSON object
            ResponseTimeout: `request_timeout` elapsed
        """
        if request.subscribe:
            raise ValueError("Subscribing requests must go through subscribe()")

        await self._send(request)
        try:
            response = await self._await_reply()
        except ProtocolError:
            self.state = ExchangeState.FAILED
            raise
        self.state = ExchangeState.COMPLETED
        return response

    async def subscribe(self, request: Request) -> Subscription:
        """Send a subscribing request and confirm the subscription.

        The first reply must carry `subscription.id`; it becomes the
        subscription's `first_response`.

        Raises:
            MissingSubscriptionId: The first reply has no subscription id
            NoResponse, DecodeError, ResponseTimeout: As for request()
        """
        if not request.subscribe:
            request = request.subscribing()

        await self._send(request)
        try:
            first = await self._await_reply()
        except ProtocolError:
            self.state = ExchangeState.FAILED
            raise

        subscription_id = first.subscription_id
        if subscription_id is None:
            self.state = ExchangeState.FAILED
            raise MissingSubscriptionId(request.op, first)

        subscription = Subscription(self, subscription_id, request, first)
        self._subscriptions[subscription_id] = subscription
        self._forgotten.discard(subscription_id)
        self.state = ExchangeState.SUBSCRIBED
        logger.info(f"Subscribed to {request.op} as {subscription_id}")
        return subscription

    async def subscribe_once(self, request: Request) -> Response:
        """Subscribe, return the first reply, and forget the subscription at once."""
        subscription = await self.subscribe(request)
        await self.cancel(subscription.id)
        return subscription.first_response

    async def subscribe_stream(self, request: Request) -> Subscription:
        """Subscribe and hand back the live subscription for iteration."""
        return await self.subscribe(request)

    async def cancel(self, subscription_id: str) -> Response | None:
        """Forget a subscription.

        Sends one `forget` request, then consumes and discards pushes for
        that subscription until the server acknowledges, the channel closes,
        or nothing arrives within `drain_timeout`.

        Returns:
            The acknowledgment, or None if none was observed
        """
        subscription = self._subscriptions.pop(subscription_id, None)
        self._forgotten.add(subscription_id)
        if subscription is not None:
            subscription.state = ExchangeState.CANCELLED

        await self._send(Request.forget(subscription_id))
        ack = await self._drain(subscription_id)
        if ack is None:
            logger.info(f"No acknowledgment for forget {subscription_id}")
        self.state = ExchangeState.COMPLETED
        return ack

    # =========================================================================
    # Operations
    # =========================================================================

    async def subscribe_in(
        self, request: Request, mode: SubscriptionMode
    ) -> Response | Subscription:
        """Subscribe in the given mode.

        ONCE returns the first reply, the subscription already forgotten.
        STREAM returns the live subscription.
        """
        if mode == SubscriptionMode.ONCE:
            return await self.subscribe_once(request)
        return await self.subscribe_stream(request)

    async def ping(
        self, delay_ms: int = 0, mode: SubscriptionMode = SubscriptionMode.STREAM
    ) -> Response | Subscription:
        """Ping the server.

        With no delay this is a plain one-shot ping. With a delay the client
        waits `delay_ms` first and then sends a subscribing ping in `mode`.
        """
        if delay_ms < 0:
            raise ValueError("delay_ms must be non-negative")
        if delay_ms == 0:
            return await self.request(Request.ping())
        await self.pause(delay_ms)
        return await self.subscribe_in(Request.ping(subscribe=True), mode)

    async def ticks(
        self, symbol: str, mode: SubscriptionMode = SubscriptionMode.STREAM
    ) -> Response | Subscription:
        """Subscribe to price ticks for a symbol."""
        return await self.subscribe_in(Request.ticks(symbol), mode)

    async def forget(self, subscription_id: str) -> Response | None:
        return await self.cancel(subscription_id)

    async def website_status(self) -> Response:
        return await self.request(Request.website_status())

    async def active_symbols(self, mode: str) -> Response:
        """Query active symbols in "brief" or "full" detail."""
        return await self.request(Request.active_symbols(mode))

    async def pause(self, delay_ms: int) -> None:
        """Suspend for `delay_ms` milliseconds."""
        await self._sleep(delay_ms / 1000)

    # =========================================================================
    # Internals
    # =========================================================================

    async def _send(self, request: Request) -> None:
        text = encode(request)
        try:
            await self._channel.send(text)
        except ChannelClosed as e:
            self.state = ExchangeState.FAILED
            self._terminate_all()
            raise NoResponse(f"{CONNECTION_CLOSED}: cannot send {request.op}") from e

        self.state = ExchangeState.SENT
        logger.debug(f"Sent: {text}")
        if self._on_send:
            self._on_send(text)

    async def _receive_frame(self, timeout: float | None) -> str | bytes | None:
        if timeout is None:
            return await self._channel.receive()
        try:
            return await asyncio.wait_for(self._channel.receive(), timeout=timeout)
        except TimeoutError:
            raise ResponseTimeout(timeout) from None

    async def _await_reply(self) -> Response:
        """Read frames until one is not a push for a known subscription."""
        self.state = ExchangeState.AWAITING_REPLY
        while True:
            frame = await self._receive_frame(self.config.request_timeout)
            if frame is None:
                self._terminate_all()
                raise NoResponse()

            response = decode(frame)
            if self._route_push(response):
                continue
            return response

    async def _next_push(self, subscription: Subscription) -> Response | None:
        """Next push for `subscription`, or None when the stream is over."""
        while True:
            if subscription._buffer:
                return subscription._buffer.popleft()
            if not subscription.is_active:
                return None

            frame = await self._receive_or_interrupt(subscription._interrupted)
            if subscription.interrupted and frame is None:
                return None
            if frame is None:
                self._terminate_all()
                return None

            try:
                response = decode(frame)
            except DecodeError as e:
                logger.warning(f"Skipping malformed push for {subscription.id}: {e}")
                continue

            if response.subscription_id == subscription.id:
                return response
            if not self._route_push(response):
                logger.warning(f"Dropping uncorrelated frame: msg_type={response.msg_type}")

    async def _receive_or_interrupt(self, interrupted: asyncio.Event) -> str | bytes | None:
        if interrupted.is_set():
            return None

        receive = asyncio.ensure_future(self._channel.receive())
        stop = asyncio.ensure_future(interrupted.wait())
        try:
            await asyncio.wait({receive, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (receive, stop):
                if not task.done():
                    task.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await task

        if receive.done() and not receive.cancelled():
            return receive.result()
        return None

    async def _drain(self, subscription_id: str) -> Response | None:
        """Discard pushes for a forgotten subscription until it is acknowledged."""
        while True:
            try:
                frame = await self._receive_frame(self.config.drain_timeout)
            except ResponseTimeout:
                return None
            if frame is None:
                self._terminate_all()
                return None

            try:
                response = decode(frame)
            except DecodeError as e:
                logger.warning(f"Skipping malformed frame while forgetting {subscription_id}: {e}")
                continue

            if response.is_forget_ack(subscription_id):
                return response
            if self._route_push(response):
                continue
            logger.warning(f"Dropping uncorrelated frame: msg_type={response.msg_type}")

    def _route_push(self, response: Response) -> bool:
        """Buffer or discard a push. Returns False if the frame is not a push."""
        subscription_id = response.subscription_id
        if subscription_id is None:
            return False

        subscription = self._subscriptions.get(subscription_id)
        if subscription is not None:
            subscription._buffer.append(response)
            return True
        if subscription_id in self._forgotten:
            logger.debug(f"Discarding push for forgotten subscription {subscription_id}")
            return True
        return False

    def _terminate_all(self) -> None:
        for subscription in self._subscriptions.values():
            subscription.state = ExchangeState.TERMINATED
        self._subscriptions.clear()
