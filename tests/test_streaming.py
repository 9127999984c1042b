"""Tests for the background decode task behind StreamingResponse."""
import asyncio
from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.errors import StreamTransportError
from inference.adapters import StreamingResponse


def _frame(text: str) -> bytes:
    return ('data: {"choices":[{"delta":{"content":"%s"}}]}\n' % text).encode("utf-8")


class CloseCounter:
    def __init__(self):
        self.calls = 0

    async def __call__(self):
        self.calls += 1


async def _frames(*texts: str):
    for text in texts:
        yield _frame(text)


@pytest.mark.asyncio
async def test_yields_chunks_and_closes_once():
    on_close = CloseCounter()
    stream = StreamingResponse(_frames("a", "b", "c"), on_close=on_close, max_queue=1)

    assert await stream.read_all() == "abc"
    await stream.aclose()

    assert stream.closed
    assert on_close.calls == 1
    # exhausted streams stay exhausted
    assert [chunk async for chunk in stream] == []


@pytest.mark.asyncio
async def test_producer_waits_for_consumer():
    produced = []

    async def source():
        for text in ("1", "2", "3", "4"):
            produced.append(text)
            yield _frame(text)

    stream = StreamingResponse(source(), max_queue=1)
    for _ in range(5):
        await asyncio.sleep(0)

    # one chunk queued, one held by the suspended producer
    assert len(produced) < 4

    assert await stream.read_all() == "1234"
    assert produced == ["1", "2", "3", "4"]
    await stream.aclose()


@pytest.mark.asyncio
async def test_aclose_cancels_upstream_read():
    on_close = CloseCounter()
    release = asyncio.Event()

    async def endless():
        yield _frame("first")
        await release.wait()
        yield _frame("never")

    stream = StreamingResponse(endless(), on_close=on_close)
    assert await stream.__anext__() == "first"

    await stream.aclose()

    assert stream.closed
    assert on_close.calls == 1
    with pytest.raises(StopAsyncIteration):
        await stream.__anext__()


@pytest.mark.asyncio
async def test_context_manager_closes():
    on_close = CloseCounter()
    async with StreamingResponse(_frames("x", "y"), on_close=on_close) as stream:
        assert await stream.__anext__() == "x"
    assert on_close.calls == 1


@pytest.mark.asyncio
async def test_error_aborts_stream_after_queued_chunks():
    on_close = CloseCounter()

    async def failing():
        yield _frame("ok")
        raise RuntimeError("socket gone")

    stream = StreamingResponse(failing(), on_close=on_close)

    assert await stream.__anext__() == "ok"
    with pytest.raises(StreamTransportError, match="socket gone") as excinfo:
        await stream.__anext__()
    assert isinstance(excinfo.value.__cause__, RuntimeError)

    await stream.aclose()
    assert on_close.calls == 1


@pytest.mark.asyncio
async def test_failing_on_close_is_logged_not_raised():
    async def broken_close():
        raise OSError("already closed")

    stream = StreamingResponse(_frames("z"), on_close=broken_close)
    assert await stream.read_all() == "z"
    await stream.aclose()
    assert stream.closed


@pytest.mark.asyncio
async def test_aclose_wakes_waiting_reader():
    on_close = CloseCounter()
    release = asyncio.Event()

    async def silent():
        await release.wait()
        yield _frame("never")

    stream = StreamingResponse(silent(), on_close=on_close)
    reader = asyncio.create_task(stream.read_all())
    await asyncio.sleep(0)

    await stream.aclose()
    done, _ = await asyncio.wait({reader}, timeout=1.0)

    assert reader in done
    assert reader.result() == ""
    assert on_close.calls == 1
