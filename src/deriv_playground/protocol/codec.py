"""JSON codec between Request/Response values and websocket text frames."""

from __future__ import annotations

import json

from ..errors import DecodeError
from .requests import Request
from .responses import Response


def encode(request: Request) -> str:
    """Serialise a request to wire text. Pure, no I/O."""
    return json.dumps(request.to_wire(), separators=(",", ":"), ensure_ascii=False)


def decode(text: str | bytes) -> Response:
    """Parse a wire frame into a Response.

    Raises:
        DecodeError: If the frame is not valid UTF-8 JSON or not an object
    """
    try:
        if isinstance(text, bytes):
            text = text.decode("utf-8")
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Malformed server payload: {e}", raw=_preview(text)) from e

    if not isinstance(data, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(data).__name__}", raw=_preview(text)
        )
    return Response(data=data)


def _preview(text: str | bytes, limit: int = 80) -> str:
    if isinstance(text, bytes):
        text = text.decode("utf-8", errors="replace")
    return text if len(text) <= limit else text[: limit - 3] + "..."
