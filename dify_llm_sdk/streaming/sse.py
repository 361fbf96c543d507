"""Server-sent event decoding.

Turns the line stream of an ``text/event-stream`` response into decoded JSON
values, one per event. Decoding failures are reported as values rather than
raised so the caller can surface them in-stream and keep reading.
"""

from __future__ import annotations

import json
from typing import AsyncIterable, AsyncIterator, List

from .types import ParseResult


class SSEDecodeError(ValueError):
    """An SSE event whose data field is not valid JSON."""

    def __init__(self, data: str, original_error: Exception):
        self.data = data
        self.original_error = original_error
        super().__init__(f"Invalid JSON in event stream: {original_error}")


def _decode(data_lines: List[str]) -> ParseResult:
    data = "\n".join(data_lines)
    try:
        return ParseResult.ok(json.loads(data), raw_value=data)
    except json.JSONDecodeError as e:
        return ParseResult.fail(SSEDecodeError(data, e), raw_value=data)


async def iter_sse_json(lines: AsyncIterable[str]) -> AsyncIterator[ParseResult]:
    """Yield one decoded JSON value per server-sent event.

    Events are separated by blank lines and may span several ``data:`` lines.
    Comment lines and the ``event``/``id``/``retry`` fields are ignored; the
    event kind travels inside the JSON payload.
    """
    data_lines: List[str] = []
    async for line in lines:
        line = line.rstrip("\r\n")
        if not line:
            if data_lines:
                yield _decode(data_lines)
                data_lines = []
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data_lines.append(value)

    # Stream ended without a trailing blank line
    if data_lines:
        yield _decode(data_lines)
