from .enhancement import (
    AIRequest,
    AIResponse,
    AtsScore,
    ChangeDetail,
    EnhancementOptions,
    EnhancementResult,
    Improvement,
    KeywordSuggestion,
    PrioritizedAction,
    ReviewRequest,
    ReviewResponse,
    ReviewResult,
)
from .job import ParsedJobDescription
from .resume import Education, Experience, PersonalInfo, Resume, SkillCategory, Skills

__all__ = [
    "PersonalInfo",
    "Experience",
    "Education",
    "SkillCategory",
    "Skills",
    "Resume",
    "ParsedJobDescription",
    "PrioritizedAction",
    "ReviewResult",
    "EnhancementOptions",
    "ReviewRequest",
    "AIRequest",
    "Improvement",
    "ReviewResponse",
    "AIResponse",
    "KeywordSuggestion",
    "AtsScore",
    "ChangeDetail",
    "EnhancementResult",
]
