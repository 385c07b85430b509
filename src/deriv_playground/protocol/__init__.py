"""Wire protocol for the Deriv websocket API.

Key concepts:
- Requests: one JSON object per frame, one primary key per operation
- Responses: arbitrary JSON objects; subscriptions are identified by the
  nested `subscription.id` field
- Codec: Request -> text and text -> Response
"""

from .codec import decode, encode
from .requests import ActiveSymbolsMode, Operation, Request
from .responses import Response

__all__ = [
    "ActiveSymbolsMode",
    "Operation",
    "Request",
    "Response",
    "decode",
    "encode",
]
