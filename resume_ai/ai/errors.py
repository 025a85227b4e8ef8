from __future__ import annotations

from typing import Any


class AIProviderError(RuntimeError):
    """Base error for anything that goes wrong talking to an AI provider."""

    def __init__(self, message: str, provider: str = "unknown", *, code: str = "provider_error"):
        super().__init__(message)
        self.provider = provider
        self.code = code


class RateLimitError(AIProviderError):
    def __init__(self, message: str, provider: str = "unknown", *, retry_after: float | None = None):
        super().__init__(message, provider, code="rate_limit")
        self.retry_after = retry_after


class NetworkError(AIProviderError):
    def __init__(self, message: str, provider: str = "unknown", *, cause: BaseException | None = None):
        super().__init__(message, provider, code="network_error")
        self.cause = cause


class ProviderTimeoutError(AIProviderError):
    def __init__(self, message: str, provider: str = "unknown", *, timeout_ms: int | None = None):
        super().__init__(message, provider, code="timeout")
        self.timeout_ms = timeout_ms


class InvalidResponseError(AIProviderError):
    def __init__(self, message: str, provider: str = "unknown", *, raw: Any = None):
        super().__init__(message, provider, code="invalid_response")
        self.raw = raw


class CostLimitExceededError(AIProviderError):
    def __init__(
        self,
        message: str,
        provider: str = "unknown",
        *,
        estimated_cost: float | None = None,
        limit: float | None = None,
    ):
        super().__init__(message, provider, code="cost_limit_exceeded")
        self.estimated_cost = estimated_cost
        self.limit = limit


class InvalidProviderError(ValueError):
    pass


class ProviderNotFoundError(LookupError):
    def __init__(self, name: str | None = None):
        if name:
            message = f"AI provider '{name}' is not registered"
        else:
            message = "No default AI provider is registered"
        super().__init__(message)
        self.name = name
