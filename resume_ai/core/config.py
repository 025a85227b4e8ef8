from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    rate_limit: str
    rate_limit_enabled: bool
    ai_rate_limit: str
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    max_job_description_chars: int
    fallback_to_rule_based: bool
    truthfulness_check: bool
    truthfulness_strictness: str
    truthfulness_allow_inference: bool
    inference_policy_path: str | None
    retry_max_retries: int
    retry_delay_base_ms: int
    retry_max_delay_ms: int
    retry_on_invalid_response: bool


settings = Settings(
    api_key=_get_env("API_KEY"),
    rate_limit=_get_env("RATE_LIMIT", "30/minute") or "30/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    ai_rate_limit=_get_env("AI_RATE_LIMIT", "10/minute") or "10/minute",
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        ["http://localhost:5173", "http://127.0.0.1:5173", "http://localhost:3000"],
    ),
    max_job_description_chars=_get_env_int("MAX_JOB_DESCRIPTION_CHARS", 50000),
    fallback_to_rule_based=_get_env_bool("FALLBACK_TO_RULE_BASED", True),
    truthfulness_check=_get_env_bool("TRUTHFULNESS_CHECK", False),
    truthfulness_strictness=(_get_env("TRUTHFULNESS_STRICTNESS", "moderate") or "moderate").strip().lower(),
    truthfulness_allow_inference=_get_env_bool("TRUTHFULNESS_ALLOW_INFERENCE", True),
    inference_policy_path=_get_env("INFERENCE_POLICY_PATH"),
    retry_max_retries=_get_env_int("RETRY_MAX_RETRIES", 3),
    retry_delay_base_ms=_get_env_int("RETRY_DELAY_BASE_MS", 1000),
    retry_max_delay_ms=_get_env_int("RETRY_MAX_DELAY_MS", 30000),
    retry_on_invalid_response=_get_env_bool("RETRY_ON_INVALID_RESPONSE", False),
)

if settings.truthfulness_strictness not in {"lenient", "moderate", "strict"}:
    raise RuntimeError("TRUTHFULNESS_STRICTNESS must be one of 'lenient', 'moderate' or 'strict'.")

if settings.retry_max_retries < 0:
    raise RuntimeError("RETRY_MAX_RETRIES must not be negative.")
