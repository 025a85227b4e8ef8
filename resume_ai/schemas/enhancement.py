from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field, field_validator

from .base import CamelModel
from .job import ParsedJobDescription
from .resume import Resume

ActionType = Literal["enhance", "reorder", "add", "remove", "rewrite"]
Priority = Literal["high", "medium", "low"]
ImprovementType = Literal["bulletPoint", "summary", "skill", "keyword"]
EnhancementMode = Literal["full", "bulletPoints", "skills", "summary"]
FocusArea = Literal["keywords", "bulletPoints", "skills", "summary"]


class PrioritizedAction(CamelModel):
    type: ActionType
    section: str
    priority: Priority
    reason: str
    suggested_change: str | None = None


class ReviewResult(CamelModel):
    strengths: list[str] = Field(default_factory=list)
    weaknesses: list[str] = Field(default_factory=list)
    opportunities: list[str] = Field(default_factory=list)
    prioritized_actions: list[PrioritizedAction] = Field(default_factory=list)
    confidence: float = Field(default=0.5, ge=0.0, le=1.0)
    reasoning: str | None = None


class EnhancementOptions(CamelModel):
    focus_areas: list[FocusArea] = Field(default_factory=list)
    tone: str | None = None
    max_suggestions: int | None = Field(default=None, ge=1)
    enhancement_mode: EnhancementMode = "full"
    validate_truthfulness: bool | None = None


class ReviewRequest(CamelModel):
    resume: Resume
    job_info: ParsedJobDescription
    options: EnhancementOptions = Field(default_factory=EnhancementOptions)


class AIRequest(ReviewRequest):
    review_result: ReviewResult | None = None


class Improvement(CamelModel):
    model_config = ConfigDict(frozen=True)

    type: ImprovementType
    section: str
    original: str
    suggested: str
    reason: str
    confidence: float = Field(ge=0.0, le=1.0)


class ReviewResponse(CamelModel):
    review_result: ReviewResult | None = None
    tokens_used: int | None = None
    cost: float | None = None


class AIResponse(CamelModel):
    enhanced_resume: Resume | None = None
    improvements: list[Improvement] = Field(default_factory=list)
    reasoning: str | None = None
    confidence: float | None = None
    tokens_used: int | None = None
    cost: float | None = None


class KeywordSuggestion(CamelModel):
    model_config = ConfigDict(frozen=True)

    keyword: str
    category: str
    suggested_placement: tuple[str, ...] = ()
    importance: Priority = "medium"


class AtsScore(CamelModel):
    model_config = ConfigDict(frozen=True)

    before: int
    after: int
    improvement: int


class ChangeDetail(CamelModel):
    old: str
    new: str
    section: str | None = None
    type: ImprovementType | None = None


class EnhancementResult(CamelModel):
    """Read-only outcome of one enhancement run.

    Both resumes are private deep copies, so later edits to the caller's
    documents never leak into a returned result. Collections are tuples.
    """

    model_config = ConfigDict(frozen=True)

    original_resume: Resume
    enhanced_resume: Resume
    improvements: tuple[Improvement, ...] = ()
    keyword_suggestions: tuple[KeywordSuggestion, ...] = ()
    missing_skills: tuple[str, ...] = ()
    ats_score: AtsScore
    recommendations: tuple[str, ...] = ()

    @field_validator("original_resume", "enhanced_resume", mode="after")
    @classmethod
    def _own_copy(cls, value: Resume) -> Resume:
        return value.model_copy(deep=True)
