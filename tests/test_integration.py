"""End-to-end: router -> Together provider -> mocked upstream."""
import json
from pathlib import Path
import sys

import httpx
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from core.errors import UpstreamHTTPError
from inference import AIModels, InferenceRequest, run_inference
from inference.adapters import ModelRouter, TogetherProvider


async def _sse(*payloads):
    for payload in payloads:
        if payload == "[DONE]":
            yield b"data: [DONE]\n\n"
        else:
            yield f"data: {json.dumps(payload)}\n\n".encode("utf-8")


def _delta(text):
    return {"choices": [{"index": 0, "delta": {"content": text}}]}


def _router(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    provider = TogetherProvider(api_key="test_key", client=client)
    return ModelRouter(providers={"together": provider})


@pytest.mark.asyncio
async def test_streaming_round_trip():
    seen = []

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(
            200,
            headers={"Content-Type": "text/event-stream"},
            content=_sse(_delta("Hel"), {"choices": [{"delta": {}}]}, _delta("lo"), "[DONE]"),
        )

    request = InferenceRequest(
        name=AIModels.TOGETHER_DEEPSEEK_V3.value,
        messages=[{"role": "user", "content": "Say hello"}],
        stream=True,
    )
    result = await run_inference(request, router=_router(handler))

    assert result.content == ""
    assert result.raw is None
    async with result.stream as stream:
        assert [chunk async for chunk in stream] == ["Hel", "lo"]

    assert seen[0]["model"] == "deepseek-ai/DeepSeek-V3"
    assert seen[0]["stream"] is True


@pytest.mark.asyncio
async def test_materialized_round_trip():
    payload = {"id": "x", "choices": [{"message": {"role": "assistant", "content": "hi"}}]}

    def handler(request):
        assert json.loads(request.content)["model"] == "Qwen/QwQ-32B-Preview"
        return httpx.Response(200, json=payload)

    result = await run_inference(
        {"name": "together:qwen2.5", "messages": [{"role": "user", "content": "hey"}]},
        router=_router(handler),
    )

    assert result.content == "hi"
    assert result.raw == payload
    assert result.stream is None


@pytest.mark.asyncio
async def test_upstream_error_propagates():
    result_router = _router(lambda request: httpx.Response(429, text="rate limited"))

    with pytest.raises(UpstreamHTTPError, match="429.*rate limited"):
        await run_inference(
            {"name": "deepseek-v3", "messages": [{"role": "user", "content": "hey"}]},
            router=result_router,
        )
