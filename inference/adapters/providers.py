"""Upstream provider adapters for chat-completion APIs."""
from abc import ABC, abstractmethod
from typing import List, Dict, Any, Union, Optional
from dataclasses import dataclass
from enum import Enum

import httpx

from core.config import get_settings
from core.errors import ConfigurationError, StreamTransportError, UpstreamHTTPError
from core.logging import logger

from .streaming import StreamingResponse


class MessageRole(str, Enum):
    """Message roles for chat completion."""
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """Chat message."""
    role: MessageRole
    content: str


@dataclass
class ChatCompletion:
    """Materialized (non-streaming) completion."""
    content: str
    raw: Dict[str, Any]


# Request defaults applied when the caller leaves a sampling parameter unset
DEFAULT_TEMPERATURE = 0.2
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TOP_P = 1


class BaseProvider(ABC):
    """Base class for AI providers."""

    name = "base"

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None):
        self.api_key = api_key
        self.base_url = base_url

    @abstractmethod
    async def achat(
        self,
        messages: List[Message],
        model: str,
        **kwargs
    ) -> Union[ChatCompletion, StreamingResponse]:
        """Async chat completion, materialized or streamed."""
        pass

    def _convert_messages(self, messages: List[Union[Message, Dict[str, Any]]]) -> List[Dict[str, Any]]:
        """Convert Message objects to provider format, keeping conversation order."""
        converted = []
        for msg in messages:
            if isinstance(msg, Message):
                role = msg.role.value if isinstance(msg.role, MessageRole) else str(msg.role)
                converted.append({"role": role, "content": msg.content})
            else:
                converted.append({"role": msg["role"], "content": msg["content"]})
        return converted


class TogetherProvider(BaseProvider):
    """Together AI chat completions (DeepSeek, Qwen, Llama, ...)."""

    name = "together"
    label = "Together AI"

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
    ):
        settings = get_settings()
        base_url = base_url or settings.TOGETHER_BASE_URL
        super().__init__(api_key, base_url.rstrip("/"))
        self._client = client
        self._timeout = timeout if timeout is not None else settings.REQUEST_TIMEOUT

    def _resolve_api_key(self) -> str:
        api_key = self.api_key if self.api_key is not None else get_settings().TOGETHER_API_KEY
        if not api_key or not api_key.strip():
            raise ConfigurationError("TOGETHER_API_KEY is not configured")
        return api_key

    def _build_payload(
        self,
        messages: List[Message],
        model: str,
        temperature: Optional[float],
        max_tokens: Optional[int],
        top_p: Optional[float],
        stop: Optional[List[str]],
        stream: bool,
    ) -> Dict[str, Any]:
        payload = {
            "model": model,
            "messages": self._convert_messages(messages),
            "temperature": DEFAULT_TEMPERATURE if temperature is None else temperature,
            "max_tokens": DEFAULT_MAX_TOKENS if max_tokens is None else max_tokens,
            "stream": bool(stream),
            "top_p": DEFAULT_TOP_P if top_p is None else top_p,
        }
        if stop:
            payload["stop"] = list(stop)
        return payload

    async def achat(
        self,
        messages: List[Message],
        model: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        top_p: Optional[float] = None,
        stop: Optional[List[str]] = None,
        stream: bool = False,
        **kwargs
    ) -> Union[ChatCompletion, StreamingResponse]:
        """Together AI chat completion.

        Returns a ChatCompletion, or a StreamingResponse when ``stream`` is set.
        The API key is checked before anything touches the network.
        """
        api_key = self._resolve_api_key()

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json"
        }
        payload = self._build_payload(messages, model, temperature, max_tokens, top_p, stop, stream)

        owns_client = self._client is None
        client = self._client or httpx.AsyncClient(timeout=self._timeout)
        response = None
        handed_off = False
        try:
            request = client.build_request(
                "POST",
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
            )
            response = await client.send(request, stream=True)

            if not response.is_success:
                await response.aread()
                logger.error(f"{self.label} API error ({response.status_code})")
                raise UpstreamHTTPError(self.label, response.status_code, response.text)

            if stream:
                if not _has_body(response):
                    raise StreamTransportError(f"{self.label} streaming response has no body")

                async def _close_upstream(resp: httpx.Response = response) -> None:
                    await resp.aclose()
                    if owns_client:
                        await client.aclose()

                streaming = StreamingResponse(response.aiter_bytes(), on_close=_close_upstream)
                handed_off = True
                return streaming

            await response.aread()
            data = response.json()
            return ChatCompletion(content=_message_content(data), raw=data)

        except httpx.HTTPError as e:
            logger.error(f"{self.label} transport error: {e}")
            raise
        finally:
            if not handed_off:
                if response is not None:
                    await response.aclose()
                if owns_client:
                    await client.aclose()


def _has_body(response: httpx.Response) -> bool:
    """False when the upstream explicitly declared an empty body."""
    if response.status_code == httpx.codes.NO_CONTENT:
        return False
    return response.headers.get("content-length") != "0"


def _message_content(data: Any) -> str:
    """Content of the first choice's message, or an empty string."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices or not isinstance(choices[0], dict):
        return ""
    message = choices[0].get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    return content if isinstance(content, str) else ""


# Provider factory
def create_provider(provider_type: str, **kwargs) -> BaseProvider:
    """Create a provider instance by type."""
    providers = {
        "together": TogetherProvider,
    }

    provider_class = providers.get(provider_type.lower())
    if not provider_class:
        raise ValueError(f"Unknown provider type: {provider_type}")

    return provider_class(**kwargs)
