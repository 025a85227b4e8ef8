from __future__ import annotations

import asyncio
import logging
import os
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from resume_ai.ai.config import DEFAULT_MODEL, SUPPORTED_MODELS, AIConfig
from resume_ai.ai.errors import (
    AIProviderError,
    CostLimitExceededError,
    InvalidResponseError,
    NetworkError,
    ProviderTimeoutError,
    RateLimitError,
)
from resume_ai.ai.prompts import (
    PromptBuilderOptions,
    PromptContext,
    build_modify_prompt,
    build_review_prompt,
    estimate_prompt_tokens,
)
from resume_ai.ai.response_parser import extract_json_object, validate_resume_payload, validate_review_payload
from resume_ai.ai.types import ProviderInfo
from resume_ai.schemas import AIRequest, AIResponse, ReviewRequest, ReviewResponse
from resume_ai.services.enhancement_diff import generate_improvements, track_changes

logger = logging.getLogger(__name__)

PROVIDER_NAME = "openai"
PROVIDER_VERSION = "1.0.0"
MODIFY_IMPROVEMENT_CONFIDENCE = 0.85


def _retry_after_seconds(exc: Exception) -> float | None:
    response = getattr(exc, "response", None)
    headers = getattr(response, "headers", None)
    if not headers:
        return None
    raw = headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (TypeError, ValueError):
        return None


class OpenAIProvider:
    name = PROVIDER_NAME

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 30.0,
        max_retries: int = 0,
        temperature: float = 0.7,
        max_tokens: int = 2000,
        input_cost_per_1k: float = 0.0,
        max_cost_per_request: Optional[float] = None,
        json_mode: bool = True,
        client: Any = None,
    ):
        self._model = model
        self._timeout_s = timeout_s
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._input_cost_per_1k = input_cost_per_1k
        self._max_cost_per_request = max_cost_per_request
        self._json_mode = json_mode

        if client is None:
            key = (api_key or os.getenv("OPENAI_API_KEY") or "").strip()
            if not key:
                raise AIProviderError("OPENAI_API_KEY is missing", PROVIDER_NAME, code="missing_api_key")
            client = AsyncOpenAI(
                api_key=key,
                base_url=(base_url or os.getenv("OPENAI_BASE_URL") or None),
                timeout=timeout_s,
                max_retries=max_retries,
            )
        self._client = client

    @classmethod
    def from_config(cls, config: AIConfig, client: Any = None) -> "OpenAIProvider":
        return cls(
            model=config.model,
            api_key=config.api_key,
            base_url=config.base_url,
            timeout_s=config.timeout_s,
            max_retries=config.max_retries,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            input_cost_per_1k=config.input_cost_per_1k,
            max_cost_per_request=config.max_cost_per_request,
            client=client,
        )

    async def _complete(self, prompt: str, operation: str) -> tuple[str, int]:
        create_kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": "user", "content": prompt}],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if self._json_mode:
            create_kwargs["response_format"] = {"type": "json_object"}

        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(**create_kwargs),
                timeout=self._timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeoutError(
                f"{operation} timed out after {self._timeout_s}s",
                PROVIDER_NAME,
                timeout_ms=int(self._timeout_s * 1000),
            ) from exc
        except openai.APITimeoutError as exc:
            raise ProviderTimeoutError(
                f"{operation} timed out: {exc}",
                PROVIDER_NAME,
                timeout_ms=int(self._timeout_s * 1000),
            ) from exc
        except openai.RateLimitError as exc:
            raise RateLimitError(
                f"{operation} hit the rate limit: {exc}",
                PROVIDER_NAME,
                retry_after=_retry_after_seconds(exc),
            ) from exc
        except openai.APIConnectionError as exc:
            raise NetworkError(f"{operation} connection failed: {exc}", PROVIDER_NAME, cause=exc) from exc
        except openai.APIError as exc:
            raise AIProviderError(f"{operation} failed: {exc}", PROVIDER_NAME, code="api_error") from exc

        content = response.choices[0].message.content if response.choices else ""
        if not content:
            raise InvalidResponseError(f"{operation} returned an empty reply", PROVIDER_NAME, raw=content)

        usage = getattr(response, "usage", None)
        total_tokens = getattr(usage, "total_tokens", None)
        if not isinstance(total_tokens, int):
            total_tokens = estimate_prompt_tokens(prompt) + estimate_prompt_tokens(content)
        logger.debug(
            "openai_completion model=%s operation=%s prompt_len=%s tokens=%s",
            self._model,
            operation,
            len(prompt),
            total_tokens,
        )
        return content, total_tokens

    def _guard_cost(self, prompt: str) -> None:
        if self._max_cost_per_request is None:
            return
        estimated = estimate_prompt_tokens(prompt) / 1000 * self._input_cost_per_1k
        if estimated > self._max_cost_per_request:
            raise CostLimitExceededError(
                f"Estimated cost {estimated:.4f} exceeds limit {self._max_cost_per_request:.4f}",
                PROVIDER_NAME,
                estimated_cost=estimated,
                limit=self._max_cost_per_request,
            )

    def _cost(self, tokens: int) -> float:
        return tokens / 1000 * self._input_cost_per_1k

    async def review_resume(self, request: ReviewRequest) -> ReviewResponse:
        prompt = build_review_prompt(PromptContext(resume=request.resume, job_info=request.job_info))
        self._guard_cost(prompt)
        content, tokens = await self._complete(prompt, "review")

        parsed = extract_json_object(content)
        if not parsed.ok:
            raise InvalidResponseError(f"Review reply could not be parsed: {parsed.error}", PROVIDER_NAME, raw=content)
        review = validate_review_payload(parsed.value)
        if not review.ok:
            raise InvalidResponseError(f"Review reply is invalid: {review.error}", PROVIDER_NAME, raw=content)

        return ReviewResponse(review_result=review.value, tokens_used=tokens, cost=self._cost(tokens))

    async def modify_resume(self, request: AIRequest) -> AIResponse:
        if request.review_result is None:
            raise InvalidResponseError("Review result is required for the modify phase", PROVIDER_NAME)

        prompt = build_modify_prompt(
            PromptContext(resume=request.resume, job_info=request.job_info, review_result=request.review_result),
            PromptBuilderOptions(mode=request.options.enhancement_mode),
        )
        self._guard_cost(prompt)
        content, tokens = await self._complete(prompt, "modify")

        parsed = extract_json_object(content)
        if not parsed.ok:
            raise InvalidResponseError(f"Modify reply could not be parsed: {parsed.error}", PROVIDER_NAME, raw=content)
        resume = validate_resume_payload(parsed.value)
        if not resume.ok:
            raise InvalidResponseError(f"Modify reply is invalid: {resume.error}", PROVIDER_NAME, raw=content)

        improvements = generate_improvements(
            track_changes(request.resume, resume.value),
            confidence=MODIFY_IMPROVEMENT_CONFIDENCE,
        )
        return AIResponse(
            enhanced_resume=resume.value,
            improvements=improvements,
            reasoning=request.review_result.reasoning,
            confidence=request.review_result.confidence,
            tokens_used=tokens,
            cost=self._cost(tokens),
        )

    async def enhance_resume(self, request: AIRequest) -> AIResponse:
        review = await self.review_resume(request)
        modified = await self.modify_resume(request.model_copy(update={"review_result": review.review_result}))
        tokens = (review.tokens_used or 0) + (modified.tokens_used or 0)
        return modified.model_copy(update={"tokens_used": tokens, "cost": self._cost(tokens)})

    def validate_response(self, response: object) -> bool:
        if isinstance(response, ReviewResponse):
            return response.review_result is not None and validate_review_payload(response.review_result).ok
        if isinstance(response, AIResponse):
            return response.enhanced_resume is not None and validate_resume_payload(response.enhanced_resume).ok
        if isinstance(response, dict):
            return validate_review_payload(response).ok or validate_resume_payload(response).ok
        return False

    def estimate_cost(self, request: ReviewRequest) -> float:
        prompt = build_review_prompt(PromptContext(resume=request.resume, job_info=request.job_info))
        return estimate_prompt_tokens(prompt) / 1000 * self._input_cost_per_1k

    def get_provider_info(self) -> ProviderInfo:
        return ProviderInfo(
            name=PROVIDER_NAME,
            display_name="OpenAI",
            supported_models=SUPPORTED_MODELS,
            default_model=DEFAULT_MODEL,
            version=PROVIDER_VERSION,
        )
