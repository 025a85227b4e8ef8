from __future__ import annotations

import json
import logging
import math
import re
from dataclasses import dataclass

from resume_ai.schemas import ParsedJobDescription, Resume, ReviewResult
from resume_ai.schemas.enhancement import EnhancementMode

from .modify_template import get_modify_prompt_template
from .review_template import get_review_prompt_template

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n\n[Content truncated due to length limit]"
CHARS_PER_TOKEN = 4


class PromptBuildError(ValueError):
    pass


@dataclass(frozen=True)
class PromptContext:
    resume: Resume
    job_info: ParsedJobDescription
    review_result: ReviewResult | None = None


@dataclass(frozen=True)
class PromptBuilderOptions:
    include_examples: bool = True
    max_context_length: int | None = None
    compress: bool = False
    mode: EnhancementMode = "full"


def _dump(payload: dict) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False)


def _numbered(items) -> str:
    return "".join(f"{index}. {item}\n" for index, item in enumerate(items, start=1))


def _finish(prompt: str, options: PromptBuilderOptions, kind: str) -> str:
    if options.compress:
        prompt = compress_prompt(prompt)
    if options.max_context_length and len(prompt) > options.max_context_length:
        logger.warning(
            "prompt_too_long kind=%s length=%s max=%s",
            kind,
            len(prompt),
            options.max_context_length,
        )
    return prompt


def build_review_prompt(context: PromptContext, options: PromptBuilderOptions | None = None) -> str:
    options = options or PromptBuilderOptions()
    template = get_review_prompt_template()

    parts = [
        f"{template.system_message}\n\n",
        f"{template.task_description}\n\n",
        "## CONTEXT\n\n",
        f"### RESUME:\n{_dump(context.resume.to_wire())}\n\n",
        f"### JOB REQUIREMENTS:\n{_dump(context.job_info.to_wire())}\n\n",
        "## ANALYSIS FOCUS\n",
        _numbered(template.focus_areas),
        "\n",
    ]

    if options.include_examples and template.examples:
        parts.append("## EXAMPLES\n\n")
        for index, example in enumerate(template.examples, start=1):
            parts.append(f"### Example {index}:\n")
            parts.append(f"Resume Snippet: {example.resume_snippet}\n")
            parts.append(f"Job Requirements: {example.job_snippet}\n")
            parts.append(f"Review Result: {_dump(example.review_result)}\n\n")

    parts.append(f"## OUTPUT FORMAT\n\n{template.output_format}\n")
    return _finish("".join(parts), options, "review")


def build_modify_prompt(context: PromptContext, options: PromptBuilderOptions | None = None) -> str:
    if context.review_result is None:
        raise PromptBuildError("Review result is required for modify prompt")

    options = options or PromptBuilderOptions()
    template = get_modify_prompt_template(options.mode)

    parts = [
        f"{template.system_message}\n\n",
        f"{template.task_description}\n\n",
        "## CONTEXT\n\n",
        f"### ORIGINAL RESUME:\n{_dump(context.resume.to_wire())}\n\n",
        f"### JOB REQUIREMENTS:\n{_dump(context.job_info.to_wire())}\n\n",
        f"### REVIEW FINDINGS:\n{_dump(context.review_result.to_wire())}\n\n",
        "## CRITICAL RULES (MUST FOLLOW)\n\n",
        _numbered(template.truthfulness_rules),
        "\n",
        "## ENHANCEMENT FOCUS\n",
        _numbered(template.enhancement_areas),
        "\n",
    ]
    if template.mode != "full":
        parts.append(f"Only the '{template.mode}' section may be changed. Return every other section unchanged.\n\n")

    if options.include_examples and template.examples:
        parts.append("## EXAMPLES\n\n")
        for index, example in enumerate(template.examples, start=1):
            parts.append(f"### Example {index}:\n")
            parts.append(f"Original: {example.original}\n")
            parts.append(f"Enhanced: {example.enhanced}\n")
            parts.append(f"Explanation: {example.explanation}\n\n")

    parts.append(f"## OUTPUT FORMAT\n\n{template.output_format}\n")
    return _finish("".join(parts), options, "modify")


def compress_prompt(prompt: str) -> str:
    compressed = re.sub(r"\n{3,}", "\n\n", prompt)
    return "\n".join(line.strip() for line in compressed.split("\n"))


def estimate_prompt_tokens(prompt: str) -> int:
    return math.ceil(len(prompt) / CHARS_PER_TOKEN)


def truncate_prompt(prompt: str, max_tokens: int) -> str:
    max_chars = max_tokens * CHARS_PER_TOKEN
    if len(prompt) <= max_chars:
        return prompt

    logger.warning("prompt_truncated from_chars=%s to_chars=%s", len(prompt), max_chars)
    truncated = prompt[:max_chars]
    cut_point = max(truncated.rfind("."), truncated.rfind("\n"))
    if cut_point > max_chars * 0.8:
        return truncated[: cut_point + 1] + TRUNCATION_MARKER
    return truncated + TRUNCATION_MARKER
