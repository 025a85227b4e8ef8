from contextlib import asynccontextmanager
import logging

from resume_ai.ai.factory import build_fallback_manager, build_registry
from resume_ai.core.config import settings
from resume_ai.services.enhancement_service import AIResumeEnhancementService

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    registry = build_registry()
    fallback_manager = build_fallback_manager(registry)
    app.state.registry = registry
    app.state.fallback_manager = fallback_manager
    app.state.enhancement_service = AIResumeEnhancementService(
        registry,
        fallback_to_rule_based=settings.fallback_to_rule_based,
        fallback_manager=fallback_manager,
    )
    logger.info(
        "enhancement_service_ready providers=%s default=%s",
        registry.list_providers(),
        registry.get_default_provider_name(),
    )
    yield
    registry.clear()
