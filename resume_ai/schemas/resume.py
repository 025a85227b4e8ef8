from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field

from .base import CamelModel


class PersonalInfo(CamelModel):
    model_config = ConfigDict(extra="allow")

    name: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    linkedin: str | None = None
    github: str | None = None
    website: str | None = None


class Experience(CamelModel):
    model_config = ConfigDict(extra="allow")

    company: str = ""
    role: str = ""
    start_date: str = ""
    end_date: str = ""
    location: str = ""
    bullet_points: list[str] = Field(default_factory=list)


class Education(CamelModel):
    model_config = ConfigDict(extra="allow")

    institution: str = ""
    degree: str = ""
    field: str = ""
    graduation_date: str = ""
    gpa: str | None = None
    honors: list[str] = Field(default_factory=list)


class SkillCategory(CamelModel):
    name: str = ""
    items: list[str] = Field(default_factory=list)


class Skills(CamelModel):
    categories: list[SkillCategory] = Field(default_factory=list)


class Resume(CamelModel):
    model_config = ConfigDict(extra="allow")

    personal_info: PersonalInfo | None = None
    summary: str | None = None
    experience: list[Experience] | None = None
    education: Education | list[Education] | None = None
    skills: Skills | None = None
    certifications: list[dict[str, Any]] | None = None
    projects: list[dict[str, Any]] | None = None
    languages: list[dict[str, Any]] | None = None
    awards: list[dict[str, Any]] | None = None

    def experience_entries(self) -> list[Experience]:
        return list(self.experience or [])

    def education_entries(self) -> list[Education]:
        if self.education is None:
            return []
        if isinstance(self.education, list):
            return list(self.education)
        return [self.education]

    def flatten_skills(self) -> list[str]:
        if self.skills is None:
            return []
        return [item for category in self.skills.categories for item in category.items]
