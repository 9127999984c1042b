from __future__ import annotations
"""Live token streams handed back to callers.

A ``StreamingResponse`` owns exactly one background task which decodes the
upstream SSE bytes and pushes text chunks into a bounded queue.  The consumer
drains the queue through ``async for``; when the queue is full the task
suspends, so a slow consumer backpressures the upstream read.
"""

import asyncio
from typing import AsyncIterable, Awaitable, Callable, List, Optional

from core.config import get_settings
from core.errors import StreamTransportError
from core.logging import logger

from .sse import decode_event_stream

__all__ = ["StreamingResponse"]

_EOF = object()


class _Abort:
    def __init__(self, error: BaseException) -> None:
        self.error = error


class StreamingResponse:
    """Async iterator of decoded text chunks from an upstream SSE stream."""

    def __init__(
        self,
        chunks: AsyncIterable[bytes],
        on_close: Optional[Callable[[], Awaitable[None]]] = None,
        max_queue: Optional[int] = None,
    ) -> None:
        if max_queue is None:
            max_queue = get_settings().STREAM_QUEUE_SIZE
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=max_queue)
        self._on_close = on_close
        self._close_future: Optional[asyncio.Future] = None
        self._finished = False
        self._task = asyncio.create_task(self._pump(chunks))

    # ------------------------------------------------------------------
    async def _pump(self, chunks: AsyncIterable[bytes]) -> None:
        try:
            async for text in decode_event_stream(chunks):
                await self._queue.put(text)
            await self._queue.put(_EOF)
        except Exception as e:
            logger.error(f"Stream processing error: {e}")
            await self._queue.put(_Abort(e))
        finally:
            await self._release()

    async def _release(self) -> None:
        # Runs on_close once; shielded so a cancelled pump cannot interrupt it.
        if self._close_future is None:
            self._close_future = asyncio.ensure_future(self._run_on_close())
        await asyncio.shield(self._close_future)

    async def _run_on_close(self) -> None:
        if self._on_close is None:
            return
        try:
            await self._on_close()
        except Exception as e:
            logger.warning(f"Failed to release upstream stream: {e}")

    # ------------------------------------------------------------------
    def __aiter__(self) -> "StreamingResponse":
        return self

    async def __anext__(self) -> str:
        if self._finished:
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is _EOF:
            self._finished = True
            raise StopAsyncIteration
        if isinstance(item, _Abort):
            self._finished = True
            raise StreamTransportError(f"Stream aborted: {item.error}") from item.error
        return item

    async def read_all(self) -> str:
        """Consume the remaining stream and return it as one string."""
        parts: List[str] = []
        async for text in self:
            parts.append(text)
        return "".join(parts)

    async def aclose(self) -> None:
        """Stop decoding and release the upstream connection."""
        self._finished = True
        if not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        # Wake any reader still waiting in __anext__.
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(_EOF)
        await self._release()

    @property
    def closed(self) -> bool:
        return self._close_future is not None and self._close_future.done()

    async def __aenter__(self) -> "StreamingResponse":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()
