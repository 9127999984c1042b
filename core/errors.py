class InferenceRouterError(Exception):
    """Base exception class for the inference router."""
    pass

class ConfigurationError(InferenceRouterError):
    """Raised when a required setting such as the provider API key is missing."""
    pass

class RoutingError(InferenceRouterError):
    """Raised when a model identifier matches no wired provider."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(
            f"Provider routing not implemented for model: {model}. "
            "Use a together: prefixed model or add a route for its provider."
        )

class UpstreamHTTPError(InferenceRouterError):
    """Raised when the upstream provider answers with a non-2xx status."""

    def __init__(self, provider: str, status_code: int, body: str):
        self.provider = provider
        self.status_code = status_code
        self.body = body
        super().__init__(f"{provider} API error ({status_code}): {body}")

class StreamTransportError(InferenceRouterError):
    """Raised when a streaming response cannot be read or its decoding fails."""
    pass

class FrameParseError(InferenceRouterError):
    """Raised for a single malformed SSE data line. Recovered inside the decode loop."""

    def __init__(self, line: str, reason: str):
        self.line = line
        super().__init__(f"Malformed SSE frame ({reason}): {line!r}")
