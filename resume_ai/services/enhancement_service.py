"""Two-phase (review, then modify) resume enhancement driven by an AI provider.

When no provider is usable, or an AI run fails and fallback is enabled, the
work is handed to the deterministic ``RuleBasedEnhancer``.
"""

from __future__ import annotations

import contextvars
import enum
import logging
from typing import Callable

from resume_ai.ai.errors import AIProviderError, InvalidResponseError, ProviderNotFoundError
from resume_ai.ai.fallback import FallbackManager, normalize_error
from resume_ai.ai.registry import ProviderRegistry
from resume_ai.ai.response_parser import validate_resume_payload, validate_review_payload
from resume_ai.ai.types import AIProvider
from resume_ai.core.config import settings
from resume_ai.normalize.job_description import parse_job_description
from resume_ai.schemas import (
    AIRequest,
    EnhancementOptions,
    EnhancementResult,
    Improvement,
    ParsedJobDescription,
    Resume,
    ReviewRequest,
    ReviewResult,
)
from resume_ai.services.ats_scorer import AtsValidationResult, score_ats
from resume_ai.services.enhancement_diff import (
    calculate_ats_score,
    generate_improvements,
    generate_keyword_suggestions,
    generate_recommendations,
    identify_missing_skills,
    track_changes,
)
from resume_ai.services.rule_based_enhancer import RuleBasedEnhancer
from resume_ai.truthfulness import TruthfulnessOptions, validate_truthfulness

logger = logging.getLogger(__name__)


class EnhancementState(str, enum.Enum):
    IDLE = "idle"
    REVIEWING = "reviewing"
    MODIFYING = "modifying"
    COMPLETED = "completed"
    FAILED = "failed"


class AIResumeEnhancementService:
    """One instance is shared by every request the app serves.

    ``state`` is tracked per asyncio context; each concurrent run sees its own phase.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        provider_name: str | None = None,
        fallback_to_rule_based: bool = True,
        fallback_manager: FallbackManager | None = None,
        fallback_enhancer: RuleBasedEnhancer | None = None,
        ats_scorer: Callable[[Resume], AtsValidationResult] = score_ats,
    ) -> None:
        self.fallback_to_rule_based = fallback_to_rule_based
        self.fallback_manager = fallback_manager or FallbackManager(registry=registry)
        self.fallback_enhancer = fallback_enhancer or RuleBasedEnhancer(ats_scorer=ats_scorer)
        self._state: contextvars.ContextVar[EnhancementState] = contextvars.ContextVar(
            f"enhancement_state_{id(self)}",
            default=EnhancementState.IDLE,
        )
        self._ats_scorer = ats_scorer
        self.provider: AIProvider | None = None
        self.provider_name: str | None = None

        try:
            if provider_name:
                self.provider = registry.get_provider_or_throw(provider_name)
                self.provider_name = provider_name.strip().lower()
            else:
                self.provider = registry.get_default_provider()
                self.provider_name = registry.get_default_provider_name()
        except ProviderNotFoundError as exc:
            logger.warning("ai_provider_unavailable requested=%s: %s", provider_name, exc)
            if not fallback_to_rule_based:
                raise
            logger.info("ai_provider_fallback mode=rule_based")
            return
        logger.info("ai_provider_selected name=%s", self.provider_name)

    @property
    def state(self) -> EnhancementState:
        return self._state.get()

    @property
    def has_provider(self) -> bool:
        return self.provider is not None

    async def enhance_resume(
        self,
        resume: Resume,
        job_text: str,
        options: EnhancementOptions | None = None,
    ) -> EnhancementResult:
        options = options or EnhancementOptions()
        job = parse_job_description(job_text)
        logger.debug("job_description_parsed keywords=%s", len(job.keywords))

        if self.provider is None:
            logger.warning("ai_enhancement_skipped reason=no_provider")
            return await self.fallback_enhancer.enhance_resume(resume, job_text, options, job=job)

        try:
            review = await self._review(resume, job, options)
            logger.debug("review_complete actions=%s", len(review.prioritized_actions))
            result = await self.modify_resume(resume, review, job, options)
            logger.debug("modify_complete improvements=%s", len(result.improvements))
            return result
        except Exception as exc:
            error = normalize_error(exc, self.provider_name or "unknown")
            logger.error("ai_enhancement_failed provider=%s error=%s: %s", error.provider, type(error).__name__, error)
            if self.fallback_to_rule_based:
                logger.warning("ai_enhancement_fallback mode=rule_based")
                return await self.fallback_enhancer.enhance_resume(resume, job_text, options, job=job)
            if error is exc:
                raise
            raise error from exc

    async def review_resume(
        self,
        resume: Resume,
        job_text: str,
        options: EnhancementOptions | None = None,
    ) -> ReviewResult:
        return await self._review(resume, parse_job_description(job_text), options or EnhancementOptions())

    async def modify_resume(
        self,
        resume: Resume,
        review_result: ReviewResult,
        job_info: ParsedJobDescription,
        options: EnhancementOptions | None = None,
    ) -> EnhancementResult:
        provider, provider_name = self._require_provider()
        options = options or EnhancementOptions()
        request = AIRequest(resume=resume, job_info=job_info, options=options, review_result=review_result)

        self._state.set(EnhancementState.MODIFYING)
        try:
            response = await self.fallback_manager.execute_with_retry(
                lambda: provider.modify_resume(request),
                provider_name,
                "modify_resume",
            )
            if not provider.validate_response(response):
                raise InvalidResponseError("Invalid modification response structure", provider_name, raw=response)
            parsed = validate_resume_payload(response.enhanced_resume)
            if not parsed.ok:
                raise InvalidResponseError(
                    f"Invalid enhanced resume structure: {parsed.error}",
                    provider_name,
                    raw=response.enhanced_resume,
                )
            enhanced = parsed.value
            self._check_truthfulness(resume, enhanced, options, provider_name)
            result = self._build_result(resume, enhanced, job_info, response.improvements, response.reasoning)
        except Exception as exc:
            self._state.set(EnhancementState.FAILED)
            error = self._log_failure(exc, provider_name, "modify")
            if error is exc:
                raise
            raise error from exc

        self._state.set(EnhancementState.COMPLETED)
        return result

    async def _review(
        self,
        resume: Resume,
        job: ParsedJobDescription,
        options: EnhancementOptions,
    ) -> ReviewResult:
        provider, provider_name = self._require_provider()
        request = ReviewRequest(resume=resume, job_info=job, options=options)

        self._state.set(EnhancementState.REVIEWING)
        try:
            response = await self.fallback_manager.execute_with_retry(
                lambda: provider.review_resume(request),
                provider_name,
                "review_resume",
            )
            if not provider.validate_response(response):
                raise InvalidResponseError("Invalid review response structure", provider_name, raw=response)
            parsed = validate_review_payload(response.review_result)
            if not parsed.ok:
                raise InvalidResponseError("Invalid review result structure", provider_name, raw=response.review_result)
        except Exception as exc:
            self._state.set(EnhancementState.FAILED)
            error = self._log_failure(exc, provider_name, "review")
            if error is exc:
                raise
            raise error from exc

        logger.debug("review_parsed provider=%s confidence=%s", provider_name, parsed.value.confidence)
        return parsed.value

    def _require_provider(self) -> tuple[AIProvider, str]:
        if self.provider is None:
            raise ProviderNotFoundError(self.provider_name)
        return self.provider, self.provider_name or "unknown"

    @staticmethod
    def _log_failure(exc: Exception, provider_name: str, phase: str) -> AIProviderError:
        error = normalize_error(exc, provider_name)
        logger.error("ai_phase_failed phase=%s provider=%s error=%s: %s", phase, provider_name, type(error).__name__, error)
        return error

    def _check_truthfulness(
        self,
        original: Resume,
        enhanced: Resume,
        options: EnhancementOptions,
        provider_name: str,
    ) -> None:
        enabled = options.validate_truthfulness
        if enabled is None:
            enabled = settings.truthfulness_check
        if not enabled:
            return

        report = validate_truthfulness(
            original,
            enhanced,
            TruthfulnessOptions(
                allow_inference=settings.truthfulness_allow_inference,
                strictness=settings.truthfulness_strictness,
            ),
        )
        for warning in report.warnings:
            logger.info("truthfulness_warning provider=%s: %s", provider_name, warning)
        if not report.is_truthful:
            logger.warning("truthfulness_failed provider=%s errors=%s", provider_name, len(report.errors))
            raise InvalidResponseError(
                "Enhanced resume failed truthfulness validation: " + "; ".join(report.errors),
                provider_name,
                raw=report,
            )

    def _build_result(
        self,
        original: Resume,
        enhanced: Resume,
        job: ParsedJobDescription,
        provider_improvements: list[Improvement],
        reasoning: str | None,
    ) -> EnhancementResult:
        changes = track_changes(original, enhanced)
        keyword_suggestions = generate_keyword_suggestions(job, enhanced)
        missing_skills = identify_missing_skills(job.required_skills, enhanced)
        ats_score = calculate_ats_score(original, enhanced, self._ats_scorer)
        return EnhancementResult(
            original_resume=original,
            enhanced_resume=enhanced,
            improvements=generate_improvements(changes, provider_improvements),
            keyword_suggestions=keyword_suggestions,
            missing_skills=missing_skills,
            ats_score=ats_score,
            recommendations=generate_recommendations(missing_skills, keyword_suggestions, ats_score, reasoning),
        )
