from __future__ import annotations
"""Model router: decides which upstream provider serves a model identifier.

Callers hand over model names in three shapes: fully-qualified provider paths
(``together/deepseek-ai/DeepSeek-V3``), short aliases (``deepseek-v3``) and
ad hoc strings containing the provider name.  Classification walks an ordered
list of predicates and the first match wins; normalization strips the
provider scheme and resolves aliases.  Unknown identifiers fail loudly with
``RoutingError`` instead of falling back to some other provider.
"""

import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple, Union

from pydantic import BaseModel, Field

from core.errors import RoutingError
from core.logging import logger

from .providers import BaseProvider, ChatCompletion, Message, create_provider
from .streaming import StreamingResponse

__all__ = [
    "InferenceRequest",
    "InferenceResult",
    "ProviderRoute",
    "ModelRouter",
    "TOGETHER_MODEL_ALIASES",
    "is_together_model",
    "normalize_together_model_name",
    "run_inference",
]

# ---------------------------------------------------------------------------
# Request / result
# ---------------------------------------------------------------------------


class InferenceRequest(BaseModel):
    """A chat-completion call as issued by the inference framework."""
    name: str = Field(..., description="Model identifier as supplied by the caller")
    messages: List[Message] = Field(..., min_length=1, description="Conversation, oldest first")
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    stream: Optional[bool] = None
    top_p: Optional[float] = None
    stop: Optional[List[str]] = None


@dataclass
class InferenceResult:
    """Uniform response: materialized content or a live stream, never both."""
    content: str
    stream: Optional[StreamingResponse] = None
    raw: Optional[Dict[str, Any]] = None

    @property
    def is_streaming(self) -> bool:
        return self.stream is not None


# ---------------------------------------------------------------------------
# Together AI classification
# ---------------------------------------------------------------------------

TOGETHER_SCHEME = re.compile(r"^together[:/]")

# Friendly name -> canonical Together model path
TOGETHER_MODEL_ALIASES: Dict[str, str] = {
    "deepseek-v3": "deepseek-ai/DeepSeek-V3",
    "qwen2.5-coder": "Qwen/Qwen2.5-Coder-32B-Instruct",
    "qwen2.5-coder-32b-instruct": "Qwen/Qwen2.5-Coder-32B-Instruct",
    "qwen2.5": "Qwen/QwQ-32B-Preview",
}


def _has_together_scheme(name: str) -> bool:
    return TOGETHER_SCHEME.match(name) is not None


def _is_deepseek(name: str) -> bool:
    return (
        name in ("deepseek-v3", "deepseek-ai/DeepSeek-V3")
        or name.startswith("deepseek-")
        or name.startswith("deepseek-ai/")
    )


def _is_qwen(name: str) -> bool:
    return (
        name in ("qwen2.5", "qwen2.5-coder", "qwen2.5-coder-32b-instruct")
        or name.startswith("qwen2.5")
        or name.startswith("Qwen/")
    )


def _mentions_together(name: str) -> bool:
    # Broad: also matches unrelated models that merely contain "together".
    return "together" in name.lower()


# Priority order; the substring rule must stay last.
_TOGETHER_RULES: Tuple[Callable[[str], bool], ...] = (
    _has_together_scheme,
    _is_deepseek,
    _is_qwen,
    _mentions_together,
)


def is_together_model(model_name: str) -> bool:
    """Return True if the model should be served by Together AI."""
    for rule in _TOGETHER_RULES:
        if rule(model_name):
            return True
    return False


def normalize_together_model_name(model_name: str) -> str:
    """Strip the together: / together/ scheme and resolve aliases."""
    normalized = TOGETHER_SCHEME.sub("", model_name, count=1)
    return TOGETHER_MODEL_ALIASES.get(normalized, normalized)


# ---------------------------------------------------------------------------
# Router
# ---------------------------------------------------------------------------


class ProviderRoute(NamedTuple):
    provider: str
    matches: Callable[[str], bool]
    normalize: Callable[[str], str]


# Evaluated in order; add an entry here to wire up another provider.
ROUTES: Tuple[ProviderRoute, ...] = (
    ProviderRoute("together", is_together_model, normalize_together_model_name),
)


class ModelRouter:
    def __init__(
        self,
        routes: Tuple[ProviderRoute, ...] = ROUTES,
        providers: Optional[Dict[str, BaseProvider]] = None,
    ) -> None:
        self._routes = routes
        self._providers: Dict[str, BaseProvider] = dict(providers or {})

    def resolve(self, model_name: str) -> Tuple[ProviderRoute, str]:
        """Return the matching route and the provider-specific model name."""
        for route in self._routes:
            if route.matches(model_name):
                return route, route.normalize(model_name)
        raise RoutingError(model_name)

    def provider_for(self, provider_name: str) -> BaseProvider:
        if provider_name not in self._providers:
            self._providers[provider_name] = create_provider(provider_name)
        return self._providers[provider_name]

    async def run_inference(
        self, request: Union[InferenceRequest, Mapping[str, Any]]
    ) -> InferenceResult:
        if not isinstance(request, InferenceRequest):
            request = InferenceRequest.model_validate(request)

        route, model = self.resolve(request.name)
        logger.info(f"Routing to {route.provider}: {request.name} -> {model}")

        provider = self.provider_for(route.provider)
        result = await provider.achat(
            request.messages,
            model=model,
            temperature=request.temperature,
            max_tokens=request.max_tokens,
            top_p=request.top_p,
            stop=request.stop,
            stream=bool(request.stream),
        )

        if isinstance(result, StreamingResponse):
            return InferenceResult(content="", stream=result)
        if isinstance(result, ChatCompletion):
            return InferenceResult(content=result.content, raw=result.raw)
        raise TypeError(f"Unexpected provider result: {type(result).__name__}")


_router = ModelRouter()


async def run_inference(
    request: Union[InferenceRequest, Mapping[str, Any]],
    router: Optional[ModelRouter] = None,
) -> InferenceResult:
    """Route a request with the default router (or the one given)."""
    return await (router or _router).run_inference(request)
