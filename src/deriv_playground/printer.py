"""Human-readable rendering of responses and outcomes."""

from __future__ import annotations

import json

import click

from .dispatcher import Outcome, OutcomeKind
from .protocol import Response


def format_response(response: Response, indent: int = 2) -> str:
    """Pretty-print a response as indented JSON."""
    return json.dumps(response.data, indent=indent, ensure_ascii=False, default=str)


class ResponsePrinter:
    """Writes responses to stdout and diagnostics to stderr."""

    def __init__(self, indent: int = 2) -> None:
        self.indent = indent

    def sent(self, text: str) -> None:
        click.echo(f"Sent: {text}")

    def response(self, response: Response) -> None:
        click.echo(format_response(response, self.indent))

    def note(self, message: str) -> None:
        click.echo(message, err=True)

    def outcome(self, outcome: Outcome) -> None:
        """Render everything a dispatched command produced so far."""
        if outcome.kind == OutcomeKind.CLOSED:
            click.echo(outcome.message)
            return

        if not outcome.ok:
            prefix = "" if outcome.kind != OutcomeKind.ERROR else "Error: "
            click.echo(f"{prefix}{outcome.message}", err=True)
            return

        for response in outcome.responses:
            self.response(response)
        if outcome.message:
            self.note(outcome.message)

        if outcome.kind == OutcomeKind.STREAM:
            self.note(f"Subscribed as {outcome.subscription_id}; press Ctrl+C to stop")
        elif outcome.subscription_id and outcome.command != "forget":
            self.note(f"Subscription {outcome.subscription_id} forgotten")
