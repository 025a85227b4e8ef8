"""Extraction and validation of JSON objects embedded in model replies.

Every step returns a ``ParseResult`` instead of raising, so callers decide
which error to surface. Anything ambiguous fails closed.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from resume_ai.schemas import Resume, ReviewResult

T = TypeVar("T")

_FENCE_RE = re.compile(r"```(?:json|JSON)?[ \t]*\n?")
_REVIEW_LIST_FIELDS = ("strengths", "weaknesses", "opportunities", "prioritizedActions")
DEFAULT_REVIEW_CONFIDENCE = 0.5


@dataclass(frozen=True)
class ParseResult(Generic[T]):
    value: T | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "ParseResult[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: str) -> "ParseResult[T]":
        return cls(error=error)


def _balanced_object_end(text: str, start: int) -> int | None:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def extract_json_object(text: str | None) -> ParseResult[dict[str, Any]]:
    """Return the first balanced ``{...}`` block of ``text`` decoded as a dict.

    A fenced code block is preferred when one precedes an object.
    """
    if not text or not text.strip():
        return ParseResult.failure("empty reply")

    search_from = 0
    fence = _FENCE_RE.search(text)
    if fence and text.find("{", fence.end()) != -1:
        search_from = fence.end()

    start = text.find("{", search_from)
    if start == -1:
        return ParseResult.failure("no JSON object found in reply")

    end = _balanced_object_end(text, start)
    if end is None:
        return ParseResult.failure("unbalanced JSON object in reply")

    try:
        parsed = json.loads(text[start : end + 1])
    except json.JSONDecodeError as exc:
        return ParseResult.failure(f"invalid JSON in reply: {exc.msg}")

    if not isinstance(parsed, dict):
        return ParseResult.failure("reply JSON is not an object")
    return ParseResult.success(parsed)


def validate_review_payload(data: Any) -> ParseResult[ReviewResult]:
    if isinstance(data, ReviewResult):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        return ParseResult.failure("review result must be an object")

    for key in _REVIEW_LIST_FIELDS:
        if not isinstance(data.get(key), list):
            return ParseResult.failure(f"review result field '{key}' must be an array")

    payload = dict(data)
    confidence = payload.get("confidence")
    if confidence is None:
        payload["confidence"] = DEFAULT_REVIEW_CONFIDENCE
    elif isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return ParseResult.failure("review result confidence must be a number")
    elif not 0.0 <= confidence <= 1.0:
        return ParseResult.failure("review result confidence must be between 0 and 1")

    try:
        return ParseResult.success(ReviewResult.model_validate(payload))
    except ValidationError as exc:
        return ParseResult.failure(f"invalid review result: {exc.error_count()} validation error(s)")


def validate_resume_payload(data: Any) -> ParseResult[Resume]:
    if isinstance(data, Resume):
        data = data.model_dump(by_alias=True)
    if not isinstance(data, dict):
        return ParseResult.failure("enhanced resume must be an object")
    if not data.get("personalInfo") and not data.get("personal_info"):
        return ParseResult.failure("enhanced resume is missing personalInfo")
    experience = data.get("experience")
    if not isinstance(experience, list):
        return ParseResult.failure("enhanced resume is missing experience")

    try:
        return ParseResult.success(Resume.model_validate(data))
    except ValidationError as exc:
        return ParseResult.failure(f"invalid enhanced resume: {exc.error_count()} validation error(s)")
