"""Deriv API playground CLI.

Connects once, then runs operator commands against the connection.

Usage:
    deriv-playground                              # Interactive prompt
    deriv-playground -e 'active_symbols brief'    # Run one command and exit
    deriv-playground -e 'ticks R_50' --mode once  # One tick, then forget
    deriv-playground --app-id 1089 --log-level DEBUG

Commands:
    exit                        Close the connection
    active_symbols <brief|full> List active symbols
    forget <id>                 Cancel a subscription
    ping [delay_ms]             Ping; with a delay, a subscribing ping
    ticks <symbol>              Subscribe to price ticks
    website_status              Query site status
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from collections.abc import Awaitable, Callable, Iterable

import click

from .client import ExchangeState, ProtocolClient, Subscription
from .config import ClientConfig, SubscriptionMode
from .dispatcher import CommandDispatcher, Outcome, OutcomeKind
from .errors import ConnectionSetupError
from .printer import ResponsePrinter
from .transport import Channel, WebSocketChannel

logger = logging.getLogger(__name__)

HANDSHAKE_COMPLETED = "WebSocket handshake has been successfully completed"

LineReader = Callable[[], Awaitable[str | None]]


async def read_stdin_line() -> str | None:
    """Prompt and read one line from stdin; None on EOF."""
    click.echo("> ", nl=False)
    line = await asyncio.to_thread(sys.stdin.readline)
    return line if line else None


def lines_reader(lines: Iterable[str]) -> LineReader:
    """Turn a fixed list of lines into a LineReader."""
    iterator = iter(lines)

    async def read() -> str | None:
        return next(iterator, None)

    return read


async def stream_subscription(subscription: Subscription, printer: ResponsePrinter) -> None:
    """Print pushes until interrupted or the channel closes, then forget."""
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, subscription.interrupt)
        handler_installed = True
    except (NotImplementedError, RuntimeError):
        # No signal handlers on this platform or outside the main thread
        handler_installed = False

    try:
        async with subscription:
            async for push in subscription:
                printer.response(push)
    finally:
        if handler_installed:
            loop.remove_signal_handler(signal.SIGINT)

    if subscription.state == ExchangeState.TERMINATED:
        printer.note(f"Subscription {subscription.id} ended: connection closed")
    else:
        printer.note(f"Subscription {subscription.id} forgotten")


async def run_command(
    dispatcher: CommandDispatcher, printer: ResponsePrinter, line: str
) -> Outcome:
    """Dispatch one command line and print what it produced."""
    outcome = await dispatcher.dispatch_line(line)
    printer.outcome(outcome)
    if outcome.kind == OutcomeKind.STREAM and outcome.subscription is not None:
        await stream_subscription(outcome.subscription, printer)
    return outcome


async def command_loop(
    dispatcher: CommandDispatcher, printer: ResponsePrinter, read_line: LineReader
) -> None:
    """Run commands until `exit` or end of input."""
    while True:
        line = await read_line()
        if line is None:
            break
        line = line.strip()
        if not line:
            continue

        outcome = await run_command(dispatcher, printer, line)
        if outcome.kind == OutcomeKind.CLOSED:
            break


async def run(
    config: ClientConfig,
    command_line: str | None = None,
    channel: Channel | None = None,
    read_line: LineReader | None = None,
) -> int:
    """Connect, run one command or the interactive loop, and return an exit code."""
    printer = ResponsePrinter()
    channel = channel or WebSocketChannel(
        config.url,
        open_timeout=config.open_timeout,
        ping_interval=config.ping_interval,
    )
    client = ProtocolClient(channel, config, on_send=printer.sent if config.echo_sent else None)

    try:
        await client.connect()
    except ConnectionSetupError as e:
        click.echo(str(e), err=True)
        return 1
    click.echo(HANDSHAKE_COMPLETED)

    dispatcher = CommandDispatcher(client, config)
    try:
        if command_line is not None:
            outcome = await run_command(dispatcher, printer, command_line)
            return 0 if outcome.ok else 1

        await command_loop(dispatcher, printer, read_line or read_stdin_line)
        return 0
    finally:
        if client.is_connected:
            await client.close()


@click.command()
@click.option(
    "-e",
    "--execute",
    "command_line",
    help="Command to run with its arguments divided by spaces (e.g. -e 'active_symbols brief')",
)
@click.option("--endpoint", help="Websocket endpoint (default: Deriv production)")
@click.option("--app-id", help="Application id sent at connection time")
@click.option("--language", help="Response language, e.g. EN")
@click.option("--brand", help="Brand query parameter")
@click.option(
    "--mode",
    "subscription_mode",
    type=click.Choice([m.value for m in SubscriptionMode]),
    help="once: show the first reading then forget; stream: print until Ctrl+C",
)
@click.option("--timeout", "request_timeout", type=float, help="Seconds to wait for each reply")
@click.option("--lenient", is_flag=True, help="Pass unvalidated arguments through to the server")
@click.option("--quiet", is_flag=True, help="Do not echo sent messages")
@click.option(
    "--log-level",
    default="WARNING",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Logging level (logs go to stderr)",
)
@click.version_option(package_name="deriv-playground")
def main(
    command_line: str | None,
    endpoint: str | None,
    app_id: str | None,
    language: str | None,
    brand: str | None,
    subscription_mode: str | None,
    request_timeout: float | None,
    lenient: bool,
    quiet: bool,
    log_level: str,
) -> None:
    """Deriv API playground - a websocket CLI for the Deriv trading API."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    try:
        config = ClientConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from e

    config = config.with_overrides(
        endpoint=endpoint,
        app_id=app_id,
        language=language,
        brand=brand,
        subscription_mode=subscription_mode,
        request_timeout=request_timeout,
    )
    if lenient:
        config.strict_arguments = False
    if quiet:
        config.echo_sent = False

    try:
        exit_code = asyncio.run(run(config, command_line))
    except KeyboardInterrupt:
        click.echo("\nShutting down", err=True)
        exit_code = 130
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
