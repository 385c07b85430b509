"""Operator command dispatcher.

Maps a command line such as `ticks R_50` to exactly one protocol client
operation. Arguments are validated here, before anything is sent; protocol
errors from the client are caught per command and turned into outcomes so
the command loop can carry on.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum

from .client import ProtocolClient, Subscription
from .config import ClientConfig
from .errors import DerivPlaygroundError, InvalidArgument, InvalidCommand, ProtocolError
from .protocol import ActiveSymbolsMode, Response

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """What a dispatched command produced."""

    RESPONSE = "response"  # One-shot exchange finished
    STREAM = "stream"  # Live subscription handed to the caller
    CLOSED = "closed"  # Connection closed by `exit`
    INVALID_COMMAND = "invalid_command"
    INVALID_ARGUMENT = "invalid_argument"
    ERROR = "error"  # Protocol error during the exchange


@dataclass
class Outcome:
    """Result of dispatching one command."""

    kind: OutcomeKind
    command: str
    responses: list[Response] = field(default_factory=list)
    subscription: Subscription | None = None
    subscription_id: str | None = None
    message: str | None = None
    error: DerivPlaygroundError | None = None

    @property
    def ok(self) -> bool:
        return self.kind in (OutcomeKind.RESPONSE, OutcomeKind.STREAM, OutcomeKind.CLOSED)

    @classmethod
    def failure(cls, command: str, error: DerivPlaygroundError) -> Outcome:
        if isinstance(error, InvalidCommand):
            kind = OutcomeKind.INVALID_COMMAND
        elif isinstance(error, InvalidArgument):
            kind = OutcomeKind.INVALID_ARGUMENT
        else:
            kind = OutcomeKind.ERROR
        return cls(kind=kind, command=command, message=str(error), error=error)


Handler = Callable[[Sequence[str]], Awaitable[Outcome]]


def split_command(line: str) -> tuple[str, list[str]]:
    """Split a space-separated command line into name and arguments."""
    parts = line.split()
    if not parts:
        return "", []
    return parts[0], parts[1:]


def parse_delay(args: Sequence[str]) -> int:
    """Parse the optional ping delay; absent, unparsable or negative means 0."""
    if not args:
        return 0
    try:
        delay = int(args[0])
    except ValueError:
        logger.debug(f"Ignoring unparsable ping delay: {args[0]!r}")
        return 0
    return max(delay, 0)


class CommandDispatcher:
    """Validate operator commands and run them against a ProtocolClient.

    Subscribing commands (`ticks`, delayed `ping`) follow
    `config.subscription_mode`: in ONCE mode the first reply is returned and
    the subscription is forgotten straight away; in STREAM mode the live
    subscription is returned for the caller to iterate.
    """

    def __init__(self, client: ProtocolClient, config: ClientConfig | None = None) -> None:
        self._client = client
        self.config = config or client.config
        self._handlers: dict[str, Handler] = {
            "exit": self._exit,
            "active_symbols": self._active_symbols,
            "forget": self._forget,
            "ping": self._ping,
            "ticks": self._ticks,
            "website_status": self._website_status,
        }

    @property
    def commands(self) -> list[str]:
        """Names of all recognised commands."""
        return list(self._handlers)

    async def dispatch_line(self, line: str) -> Outcome:
        """Dispatch a raw command line."""
        name, args = split_command(line)
        return await self.dispatch(name, args)

    async def dispatch(self, command_name: str, args: Sequence[str] = ()) -> Outcome:
        """Run one command and report its outcome. Never raises DerivPlaygroundError."""
        handler = self._handlers.get(command_name)
        try:
            if handler is None:
                raise InvalidCommand(command_name)
            return await handler(args)
        except (InvalidCommand, InvalidArgument) as e:
            logger.info(str(e))
            return Outcome.failure(command_name, e)
        except ProtocolError as e:
            logger.warning(f"{command_name} failed: {e}")
            return Outcome.failure(command_name, e)

    # =========================================================================
    # Handlers
    # =========================================================================

    async def _exit(self, args: Sequence[str]) -> Outcome:
        message = await self._client.close()
        return Outcome(kind=OutcomeKind.CLOSED, command="exit", message=message)

    async def _active_symbols(self, args: Sequence[str]) -> Outcome:
        mode = self._require(args, "active_symbols", "expected 'brief' or 'full'")
        allowed = [m.value for m in ActiveSymbolsMode]
        if self.config.strict_arguments and mode not in allowed:
            raise InvalidArgument("active_symbols", f"'{mode}' is not one of {', '.join(allowed)}")

        response = await self._client.active_symbols(mode)
        return Outcome(kind=OutcomeKind.RESPONSE, command="active_symbols", responses=[response])

    async def _forget(self, args: Sequence[str]) -> Outcome:
        subscription_id = self._require(args, "forget", "expected a subscription id")
        ack = await self._client.forget(subscription_id)
        if ack is None:
            return Outcome(
                kind=OutcomeKind.RESPONSE,
                command="forget",
                subscription_id=subscription_id,
                message=f"No acknowledgment for forget {subscription_id}",
            )
        return Outcome(
            kind=OutcomeKind.RESPONSE,
            command="forget",
            responses=[ack],
            subscription_id=subscription_id,
        )

    async def _ping(self, args: Sequence[str]) -> Outcome:
        result = await self._client.ping(parse_delay(args), self.config.subscription_mode)
        return self._result_outcome("ping", result)

    async def _ticks(self, args: Sequence[str]) -> Outcome:
        symbol = self._require(args, "ticks", "expected a symbol")
        result = await self._client.ticks(symbol, self.config.subscription_mode)
        return self._result_outcome("ticks", result)

    async def _website_status(self, args: Sequence[str]) -> Outcome:
        response = await self._client.website_status()
        return Outcome(kind=OutcomeKind.RESPONSE, command="website_status", responses=[response])

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _result_outcome(command: str, result: Response | Subscription) -> Outcome:
        """Outcome for a client operation that may have left a live subscription."""
        if isinstance(result, Subscription):
            return Outcome(
                kind=OutcomeKind.STREAM,
                command=command,
                responses=[result.first_response],
                subscription=result,
                subscription_id=result.id,
            )
        # A once-mode reply still names the (now forgotten) subscription
        return Outcome(
            kind=OutcomeKind.RESPONSE,
            command=command,
            responses=[result],
            subscription_id=result.subscription_id,
        )

    @staticmethod
    def _require(args: Sequence[str], command: str, hint: str) -> str:
        if not args or not args[0]:
            raise InvalidArgument(command, hint)
        return args[0]
