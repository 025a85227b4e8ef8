from .builder import (
    PromptBuildError,
    PromptBuilderOptions,
    PromptContext,
    build_modify_prompt,
    build_review_prompt,
    compress_prompt,
    estimate_prompt_tokens,
    truncate_prompt,
)
from .modify_template import get_enhancement_areas_for_mode, get_modify_prompt_template
from .review_template import get_review_prompt_template

__all__ = [
    "PromptBuildError",
    "PromptBuilderOptions",
    "PromptContext",
    "build_review_prompt",
    "build_modify_prompt",
    "compress_prompt",
    "estimate_prompt_tokens",
    "truncate_prompt",
    "get_review_prompt_template",
    "get_modify_prompt_template",
    "get_enhancement_areas_for_mode",
]
