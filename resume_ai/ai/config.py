from __future__ import annotations

import os
from dataclasses import dataclass, field

DEFAULT_PROVIDER = "openai"
DEFAULT_MODEL = "gpt-4o-mini"
SUPPORTED_MODELS = ("gpt-4o-mini", "gpt-4o", "gpt-4.1-mini", "gpt-4.1", "gpt-4.1-nano")


def _float_env(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _int_env(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


@dataclass(frozen=True)
class AIConfig:
    provider: str
    model: str
    api_key: str | None = None
    base_url: str | None = None
    timeout_s: float = 30.0
    max_retries: int = 0
    temperature: float = 0.7
    max_tokens: int = 2000
    input_cost_per_1k: float = 0.0
    max_cost_per_request: float | None = None


@dataclass(frozen=True)
class ConfigValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def load_ai_config() -> AIConfig:
    provider = os.getenv("AI_PROVIDER", DEFAULT_PROVIDER).strip().lower()
    model = (os.getenv("AI_MODEL") or os.getenv("OPENAI_MODEL") or DEFAULT_MODEL).strip()
    max_cost = _float_env("AI_MAX_COST_PER_REQUEST", 0.0)
    return AIConfig(
        provider=provider,
        model=model,
        api_key=(os.getenv("OPENAI_API_KEY") or "").strip() or None,
        base_url=(os.getenv("OPENAI_BASE_URL") or "").strip() or None,
        timeout_s=_float_env("OPENAI_TIMEOUT_S", 30.0),
        # FallbackManager owns retries; keep the SDK from retrying underneath it.
        max_retries=_int_env("OPENAI_MAX_RETRIES", 0),
        temperature=_float_env("AI_TEMPERATURE", 0.7),
        max_tokens=_int_env("AI_MAX_TOKENS", 2000),
        input_cost_per_1k=_float_env("AI_INPUT_COST_PER_1K", 0.0),
        max_cost_per_request=max_cost if max_cost > 0 else None,
    )


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def validate_api_key(api_key: str | None) -> bool:
    key = (api_key or "").strip()
    return len(key) > 10 and not _looks_like_placeholder(key)


def validate_ai_config(config: AIConfig) -> ConfigValidation:
    errors: list[str] = []
    warnings: list[str] = []

    if config.provider != DEFAULT_PROVIDER:
        errors.append(f"Unsupported AI_PROVIDER='{config.provider}'")
    if not config.api_key:
        errors.append("OPENAI_API_KEY is missing")
    elif not validate_api_key(config.api_key):
        errors.append("OPENAI_API_KEY does not look like a valid key")
    if config.model not in SUPPORTED_MODELS:
        warnings.append(f"Model '{config.model}' is not in the supported list; using it anyway")
    if not 0.0 <= config.temperature <= 1.0:
        errors.append("AI_TEMPERATURE must be between 0 and 1")
    if config.max_tokens <= 0:
        errors.append("AI_MAX_TOKENS must be positive")
    if config.timeout_s <= 0:
        errors.append("OPENAI_TIMEOUT_S must be positive")
    if config.max_retries < 0:
        errors.append("OPENAI_MAX_RETRIES must not be negative")
    if config.input_cost_per_1k < 0:
        errors.append("AI_INPUT_COST_PER_1K must not be negative")

    return ConfigValidation(errors=errors, warnings=warnings)
