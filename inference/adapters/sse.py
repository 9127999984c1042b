"""Server-sent event decoding for chat-completion streams.

Upstream bytes arrive in arbitrary slices: a logical line, or even a single
multi-byte character, may be split across two reads.  ``SSELineBuffer``
reassembles complete lines, ``parse_data_line`` turns one ``data:`` line into
a text delta and ``decode_event_stream`` glues both together over an async
byte iterator.
"""

from __future__ import annotations

import codecs
import json
from typing import Any, AsyncIterable, AsyncIterator, List, Optional

from core.errors import FrameParseError
from core.logging import logger

__all__ = [
    "DATA_PREFIX",
    "DONE_SENTINEL",
    "SSELineBuffer",
    "parse_data_line",
    "decode_event_stream",
]

DATA_PREFIX = "data: "
DONE_SENTINEL = "[DONE]"


class SSELineBuffer:
    """Incremental UTF-8 decoder that hands out complete lines only."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, data: bytes) -> List[str]:
        """Add raw bytes and return every line completed by them.

        The trailing fragment after the last newline stays buffered.
        """
        self._buffer += self._decoder.decode(data)
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()
        return lines

    def flush(self) -> List[str]:
        """Return whatever is left once the upstream is exhausted."""
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        return [remainder] if remainder else []


def _first_choice(payload: Any) -> Optional[dict]:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    choice = choices[0]
    return choice if isinstance(choice, dict) else None


def parse_data_line(line: str) -> Optional[str]:
    """
    Extract the text delta carried by one SSE line.

    Returns None for non-data lines, the [DONE] sentinel and frames
    without content. Raises FrameParseError when the payload is not JSON.
    """
    if not line.startswith(DATA_PREFIX):
        return None

    data = line[len(DATA_PREFIX):].strip()
    if data == DONE_SENTINEL:
        return None

    try:
        payload = json.loads(data)
    except (json.JSONDecodeError, ValueError) as e:
        raise FrameParseError(line, str(e)) from e

    choice = _first_choice(payload)
    if choice is None:
        return None
    delta = choice.get("delta")
    if not isinstance(delta, dict):
        return None
    content = delta.get("content")
    if isinstance(content, str) and content:
        return content
    return None


async def decode_event_stream(chunks: AsyncIterable[bytes]) -> AsyncIterator[str]:
    """Yield text deltas from an SSE byte stream as soon as each line completes."""
    buffer = SSELineBuffer()

    async for chunk in chunks:
        for line in buffer.feed(chunk):
            content = _safe_parse(line)
            if content:
                yield content

    for line in buffer.flush():
        content = _safe_parse(line)
        if content:
            yield content


def _safe_parse(line: str) -> Optional[str]:
    try:
        return parse_data_line(line)
    except FrameParseError as e:
        logger.warning(f"Failed to parse SSE chunk: {e}")
        return None
