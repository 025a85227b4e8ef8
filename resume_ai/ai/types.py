from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from resume_ai.schemas import AIRequest, AIResponse, ReviewRequest, ReviewResponse

CAPABILITIES = (
    "review_resume",
    "modify_resume",
    "enhance_resume",
    "validate_response",
    "estimate_cost",
    "get_provider_info",
)


@dataclass(frozen=True)
class ProviderInfo:
    name: str
    display_name: str
    supported_models: tuple[str, ...] = field(default_factory=tuple)
    default_model: str = ""
    version: str | None = None


@runtime_checkable
class AIProvider(Protocol):
    async def review_resume(self, request: ReviewRequest) -> ReviewResponse: ...

    async def modify_resume(self, request: AIRequest) -> AIResponse: ...

    async def enhance_resume(self, request: AIRequest) -> AIResponse: ...

    def validate_response(self, response: object) -> bool: ...

    def estimate_cost(self, request: ReviewRequest) -> float: ...

    def get_provider_info(self) -> ProviderInfo: ...
