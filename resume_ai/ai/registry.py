from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

from resume_ai.ai.errors import InvalidProviderError, ProviderNotFoundError
from resume_ai.ai.types import CAPABILITIES, AIProvider, ProviderInfo

logger = logging.getLogger(__name__)

_REQUIRED_INFO_FIELDS = ("name", "display_name", "supported_models", "default_model")


def _normalize_name(name: str | None) -> str:
    return (name or "").strip().lower()


def _check_provider_shape(name: str, provider: object) -> None:
    missing = [method for method in CAPABILITIES if not callable(getattr(provider, method, None))]
    if missing:
        raise InvalidProviderError(
            f"Provider '{name}' is missing required methods: {', '.join(missing)}"
        )

    try:
        info = provider.get_provider_info()  # type: ignore[attr-defined]
    except Exception as exc:
        raise InvalidProviderError(f"Provider '{name}' failed to describe itself: {exc}") from exc

    for attr in _REQUIRED_INFO_FIELDS:
        value = getattr(info, attr, None)
        if value is None or value == "":
            raise InvalidProviderError(f"Provider '{name}' info is missing '{attr}'")


class ProviderRegistry:
    """Name to provider map with a default pointer.

    Names are case-insensitive. The first provider registered becomes the
    default; removing the default promotes the oldest remaining provider.
    """

    def __init__(self) -> None:
        self._providers: dict[str, AIProvider] = {}
        self._default: str | None = None
        self._lock = threading.Lock()

    def register_provider(self, name: str, provider: AIProvider) -> None:
        key = _normalize_name(name)
        if not key:
            raise InvalidProviderError("Provider name must be a non-empty string")
        if provider is None:
            raise InvalidProviderError(f"Provider '{key}' must not be None")
        _check_provider_shape(key, provider)

        with self._lock:
            if key in self._providers:
                logger.warning("ai_provider_overwritten name=%s", key)
            self._providers[key] = provider
            if self._default is None:
                self._default = key
        logger.info("ai_provider_registered name=%s default=%s", key, self._default)

    def unregister_provider(self, name: str) -> bool:
        key = _normalize_name(name)
        with self._lock:
            if key not in self._providers:
                return False
            del self._providers[key]
            if self._default == key:
                self._default = next(iter(self._providers), None)
        logger.info("ai_provider_unregistered name=%s default=%s", key, self._default)
        return True

    def get_provider(self, name: str) -> AIProvider | None:
        with self._lock:
            return self._providers.get(_normalize_name(name))

    def get_provider_or_throw(self, name: str) -> AIProvider:
        provider = self.get_provider(name)
        if provider is None:
            raise ProviderNotFoundError(_normalize_name(name) or name)
        return provider

    def get_default_provider(self) -> AIProvider:
        with self._lock:
            if self._default is None:
                raise ProviderNotFoundError()
            return self._providers[self._default]

    def get_default_provider_name(self) -> str | None:
        with self._lock:
            return self._default

    def set_default_provider(self, name: str) -> None:
        key = _normalize_name(name)
        with self._lock:
            if key not in self._providers:
                raise ProviderNotFoundError(key or name)
            self._default = key

    def has_provider(self, name: str) -> bool:
        with self._lock:
            return _normalize_name(name) in self._providers

    def list_providers(self) -> list[str]:
        with self._lock:
            return list(self._providers)

    def get_provider_count(self) -> int:
        with self._lock:
            return len(self._providers)

    def get_provider_info(self, name: str) -> ProviderInfo:
        return self.get_provider_or_throw(name).get_provider_info()

    def clear(self) -> None:
        with self._lock:
            self._providers.clear()
            self._default = None

    @contextmanager
    def scoped(self) -> Iterator["ProviderRegistry"]:
        """Restore the registry to its current contents when the block exits."""
        with self._lock:
            saved_providers = dict(self._providers)
            saved_default = self._default
        try:
            yield self
        finally:
            with self._lock:
                self._providers = saved_providers
                self._default = saved_default
