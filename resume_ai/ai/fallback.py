from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from resume_ai.ai.errors import (
    AIProviderError,
    CostLimitExceededError,
    InvalidResponseError,
    NetworkError,
    ProviderTimeoutError,
    RateLimitError,
)
from resume_ai.ai.registry import ProviderRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RATE_LIMIT_MARKERS = ("rate limit", "429")
_TIMEOUT_MARKERS = ("timeout", "timed out")
_NETWORK_MARKERS = ("network", "connection", "econnrefused", "enotfound", "fetch")


@dataclass(frozen=True)
class FallbackConfig:
    max_retries: int = 3
    retry_delay_base: int = 1000
    max_retry_delay: int = 30000
    retry_on_rate_limit: bool = True
    retry_on_network_error: bool = True
    retry_on_timeout: bool = True
    retry_on_invalid_response: bool = False


@dataclass
class ErrorStatistics:
    total_errors: int = 0
    errors_by_type: dict[str, int] = field(default_factory=dict)
    total_retries: int = 0
    successful_recoveries: int = 0
    last_error: AIProviderError | None = None
    last_error_time: datetime | None = None


def normalize_error(error: BaseException, provider: str = "unknown") -> AIProviderError:
    """Map any exception onto the provider error taxonomy."""
    if isinstance(error, AIProviderError):
        return error
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ProviderTimeoutError(str(error) or "Request timed out", provider)
    if isinstance(error, ConnectionError):
        return NetworkError(str(error) or "Connection failed", provider, cause=error)

    message = str(error) or error.__class__.__name__
    lowered = message.lower()
    if any(marker in lowered for marker in _RATE_LIMIT_MARKERS):
        return RateLimitError(message, provider)
    if any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return ProviderTimeoutError(message, provider)
    if any(marker in lowered for marker in _NETWORK_MARKERS):
        return NetworkError(message, provider, cause=error)
    return AIProviderError(message, provider)


class FallbackManager:
    """Retries provider calls with exponential backoff and keeps error statistics.

    Statistics belong to the instance; callers sharing a manager share counters.
    """

    def __init__(
        self,
        config: FallbackConfig | None = None,
        *,
        registry: ProviderRegistry | None = None,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
    ) -> None:
        self.config = config or FallbackConfig()
        self._registry = registry
        self._sleep = sleep
        self._stats = ErrorStatistics()

    async def execute_with_retry(
        self,
        fn: Callable[[], Awaitable[T]],
        provider: str,
        operation_name: str,
    ) -> T:
        max_attempts = self.config.max_retries + 1
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await fn()
            except Exception as exc:
                error = normalize_error(exc, provider)
                self._record_error(error)
                if attempt >= max_attempts or not self.should_retry(error):
                    logger.warning(
                        "ai_call_failed provider=%s operation=%s attempts=%s error=%s: %s",
                        provider,
                        operation_name,
                        attempt,
                        type(error).__name__,
                        error,
                    )
                    if error is exc:
                        raise
                    raise error from exc

                delay_ms = self.calculate_retry_delay(attempt, error)
                self._stats.total_retries += 1
                logger.info(
                    "ai_call_retry provider=%s operation=%s attempt=%s/%s delay_ms=%s error=%s",
                    provider,
                    operation_name,
                    attempt,
                    max_attempts,
                    delay_ms,
                    type(error).__name__,
                )
                await self._sleep(delay_ms / 1000)
                continue

            if attempt > 1:
                self._stats.successful_recoveries += 1
                logger.info(
                    "ai_call_recovered provider=%s operation=%s attempts=%s",
                    provider,
                    operation_name,
                    attempt,
                )
            return result

    def should_retry(self, error: AIProviderError) -> bool:
        if isinstance(error, CostLimitExceededError):
            return False
        if isinstance(error, RateLimitError):
            return self.config.retry_on_rate_limit
        if isinstance(error, NetworkError):
            return self.config.retry_on_network_error
        if isinstance(error, ProviderTimeoutError):
            return self.config.retry_on_timeout
        if isinstance(error, InvalidResponseError):
            return self.config.retry_on_invalid_response
        return True

    def calculate_retry_delay(self, attempt: int, error: AIProviderError | None = None) -> float:
        """Delay in milliseconds before the next attempt (attempt is 1-based)."""
        cap = self.config.max_retry_delay
        if isinstance(error, RateLimitError) and error.retry_after is not None:
            return min(error.retry_after * 1000, cap)
        exponent = max(attempt - 1, 0)
        return min(self.config.retry_delay_base * (2**exponent), cap)

    def get_next_provider(self, current: str) -> str | None:
        if self._registry is None or self._registry.get_provider_count() <= 1:
            return None
        current_key = (current or "").strip().lower()
        for name in self._registry.list_providers():
            if name != current_key:
                return name
        return None

    def handle_failure(self, error: AIProviderError, provider: str) -> str | None:
        next_provider = self.get_next_provider(provider)
        logger.warning(
            "ai_provider_failed provider=%s error=%s next=%s",
            provider,
            type(error).__name__,
            next_provider,
        )
        return next_provider

    def get_statistics(self) -> ErrorStatistics:
        return replace(self._stats, errors_by_type=dict(self._stats.errors_by_type))

    def reset_statistics(self) -> None:
        self._stats = ErrorStatistics()

    def _record_error(self, error: AIProviderError) -> None:
        kind = type(error).__name__
        self._stats.total_errors += 1
        self._stats.errors_by_type[kind] = self._stats.errors_by_type.get(kind, 0) + 1
        self._stats.last_error = error
        self._stats.last_error_time = datetime.now(timezone.utc)
