"""Adapters layer providing provider abstraction, SSE decoding and routing.

The public API is intentionally minimal: build an ``InferenceRequest`` and
hand it to ``run_inference``.
"""

from __future__ import annotations

from .providers import (
    BaseProvider,
    ChatCompletion,
    Message,
    MessageRole,
    TogetherProvider,
    create_provider,
)
from .router import (
    InferenceRequest,
    InferenceResult,
    ModelRouter,
    ProviderRoute,
    is_together_model,
    normalize_together_model_name,
    run_inference,
)
from .streaming import StreamingResponse

__all__ = [
    "BaseProvider",
    "ChatCompletion",
    "Message",
    "MessageRole",
    "TogetherProvider",
    "create_provider",
    "InferenceRequest",
    "InferenceResult",
    "ModelRouter",
    "ProviderRoute",
    "is_together_model",
    "normalize_together_model_name",
    "run_inference",
    "StreamingResponse",
]
