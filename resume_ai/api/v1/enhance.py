from dataclasses import asdict
from typing import Any, Literal

from fastapi import APIRouter, Header, HTTPException, Request, status
from pydantic import Field
from pydantic.alias_generators import to_camel

from resume_ai.ai.errors import (
    AIProviderError,
    ProviderNotFoundError,
    ProviderTimeoutError,
    RateLimitError,
)
from resume_ai.core.config import settings
from resume_ai.core.rate_limit import rate_limit
from resume_ai.core.security import check_api_key
from resume_ai.schemas import EnhancementOptions, Resume
from resume_ai.schemas.base import CamelModel
from resume_ai.services.enhancement_service import AIResumeEnhancementService
from resume_ai.truthfulness import TruthfulnessOptions, validate_truthfulness

router = APIRouter()


class EnhanceRequest(CamelModel):
    resume: Resume
    job_description: str = Field(min_length=1)
    options: EnhancementOptions | None = None


class TruthfulnessRequest(CamelModel):
    original: Resume
    enhanced: Resume
    strictness: Literal["lenient", "moderate", "strict"] | None = None
    allow_inference: bool | None = None


def _service(request: Request) -> AIResumeEnhancementService:
    service = getattr(request.app.state, "enhancement_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Enhancement service is not ready.",
        )
    return service


def _check_job_description(text: str) -> None:
    if len(text) > settings.max_job_description_chars:
        raise HTTPException(
            status_code=413,
            detail=f"Job description exceeds {settings.max_job_description_chars} characters.",
        )


def _raise_http_error(exc: Exception) -> None:
    if isinstance(exc, ProviderNotFoundError):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(int(exc.retry_after))} if exc.retry_after is not None else None
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="AI provider rate limit reached. Please try again later.",
            headers=headers,
        ) from exc
    if isinstance(exc, ProviderTimeoutError):
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail="AI provider timed out.") from exc
    if isinstance(exc, AIProviderError):
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"code": exc.code, "provider": exc.provider, "message": str(exc)},
        ) from exc
    raise exc


def _camelize(value: Any) -> Any:
    if isinstance(value, dict):
        return {to_camel(key): _camelize(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_camelize(item) for item in value]
    return value


@router.post("/enhance")
@rate_limit(settings.ai_rate_limit)
async def enhance(
    request: Request,
    payload: EnhanceRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)
    _check_job_description(payload.job_description)
    service = _service(request)
    try:
        result = await service.enhance_resume(payload.resume, payload.job_description, payload.options)
    except (AIProviderError, ProviderNotFoundError) as exc:
        _raise_http_error(exc)
    return result.to_wire()


@router.post("/review")
@rate_limit(settings.ai_rate_limit)
async def review(
    request: Request,
    payload: EnhanceRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)
    _check_job_description(payload.job_description)
    service = _service(request)
    try:
        result = await service.review_resume(payload.resume, payload.job_description, payload.options)
    except (AIProviderError, ProviderNotFoundError) as exc:
        _raise_http_error(exc)
    return result.to_wire()


@router.post("/truthfulness")
@rate_limit()
async def truthfulness(
    request: Request,
    payload: TruthfulnessRequest,
    x_api_key: str | None = Header(default=None, alias="X-API-Key"),
):
    check_api_key(x_api_key)
    options = TruthfulnessOptions(
        allow_inference=(
            payload.allow_inference if payload.allow_inference is not None else settings.truthfulness_allow_inference
        ),
        strictness=payload.strictness or settings.truthfulness_strictness,
    )
    report = validate_truthfulness(payload.original, payload.enhanced, options)
    return _camelize(asdict(report))
