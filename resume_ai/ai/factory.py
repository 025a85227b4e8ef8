import logging

from resume_ai.ai.config import AIConfig, load_ai_config, validate_ai_config
from resume_ai.ai.fallback import FallbackConfig, FallbackManager
from resume_ai.ai.providers.openai_provider import OpenAIProvider
from resume_ai.ai.registry import ProviderRegistry
from resume_ai.core.config import settings

logger = logging.getLogger(__name__)


def build_registry(config: AIConfig | None = None) -> ProviderRegistry:
    cfg = config or load_ai_config()
    registry = ProviderRegistry()

    validation = validate_ai_config(cfg)
    for warning in validation.warnings:
        logger.warning("ai_config_warning provider=%s: %s", cfg.provider, warning)
    if not validation.is_valid:
        logger.warning(
            "ai_provider_disabled provider=%s errors=%s",
            cfg.provider,
            "; ".join(validation.errors),
        )
        return registry

    if cfg.provider == "openai":
        registry.register_provider("openai", OpenAIProvider.from_config(cfg))
    return registry


def build_fallback_manager(registry: ProviderRegistry | None = None) -> FallbackManager:
    config = FallbackConfig(
        max_retries=settings.retry_max_retries,
        retry_delay_base=settings.retry_delay_base_ms,
        max_retry_delay=settings.retry_max_delay_ms,
        retry_on_invalid_response=settings.retry_on_invalid_response,
    )
    return FallbackManager(config, registry=registry)
