from __future__ import annotations

from pydantic import Field

from .base import CamelModel


class ParsedJobDescription(CamelModel):
    keywords: list[str] = Field(default_factory=list)
    required_skills: list[str] = Field(default_factory=list)
    preferred_skills: list[str] = Field(default_factory=list)
    experience_level: str | None = None
    job_title: str | None = None
    company: str | None = None
    requirements: list[str] = Field(default_factory=list)
