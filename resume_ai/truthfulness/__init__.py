from .policy import InferencePolicy, get_default_inference_policy
from .validator import (
    TruthfulnessOptions,
    TruthfulnessValidationResult,
    TruthfulnessValidator,
    validate_bullet_points_only,
    validate_experiences_only,
    validate_skills_only,
    validate_truthfulness,
)

__all__ = [
    "InferencePolicy",
    "get_default_inference_policy",
    "TruthfulnessOptions",
    "TruthfulnessValidationResult",
    "TruthfulnessValidator",
    "validate_truthfulness",
    "validate_experiences_only",
    "validate_skills_only",
    "validate_bullet_points_only",
]
