from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field

from resume_ai.schemas import Resume

logger = logging.getLogger(__name__)

_DATE_RE = re.compile(r"^\d{4}-\d{2}(-\d{2})?$")
COMPLIANCE_THRESHOLD = 70


@dataclass(frozen=True)
class AtsOptions:
    check_missing_sections: bool = True
    check_bullet_length: bool = True
    check_date_formats: bool = True
    max_bullet_length: int = 150


@dataclass
class AtsValidationResult:
    score: int
    is_compliant: bool
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


def is_valid_date(value: str | None) -> bool:
    if value == "Present":
        return True
    return bool(value and _DATE_RE.match(value))


def _calculate_score(errors: list[str], warnings: list[str], resume: Resume) -> int:
    score = max(100 - len(errors) * 10, 0)
    score = max(score - len(warnings) * 3, 0)

    if resume.summary:
        score += 5
    if resume.education is not None:
        score += 5
    if resume.skills is not None:
        score += 5
    if resume.certifications is not None:
        score += 3
    if resume.projects is not None:
        score += 2
    if len(resume.experience_entries()) >= 3:
        score += 5
    return min(max(score, 0), 100)


def score_ats(resume: Resume, options: AtsOptions | None = None) -> AtsValidationResult:
    opts = options or AtsOptions()
    errors: list[str] = []
    warnings: list[str] = []
    suggestions: list[str] = []
    experience = resume.experience_entries()

    if opts.check_missing_sections:
        if resume.personal_info is None:
            errors.append("Missing required section: personalInfo")
        else:
            if not resume.personal_info.email:
                errors.append("Missing required field: personalInfo.email")
            if not resume.personal_info.phone:
                errors.append("Missing required field: personalInfo.phone")
        if not experience:
            errors.append("Missing required section: experience")
        if not resume.summary:
            warnings.append("Missing recommended section: summary")
            suggestions.append("Add a professional summary to improve ATS keyword matching")
        if resume.education is None:
            warnings.append("Missing recommended section: education")
        if resume.skills is None:
            warnings.append("Missing recommended section: skills")
            suggestions.append("Add a skills section with job-relevant keywords")

    for index, entry in enumerate(experience):
        if opts.check_date_formats:
            if not is_valid_date(entry.start_date):
                errors.append(f"experience[{index}].startDate has invalid format (expected YYYY-MM or YYYY-MM-DD)")
            if not is_valid_date(entry.end_date):
                errors.append(f"experience[{index}].endDate has invalid format (expected YYYY-MM, YYYY-MM-DD or Present)")
        if opts.check_bullet_length:
            for position, bullet in enumerate(entry.bullet_points):
                if len(bullet) > opts.max_bullet_length:
                    warnings.append(
                        f"experience[{index}].bulletPoints[{position}] exceeds {opts.max_bullet_length} characters"
                    )
                    suggestions.append(f"Shorten bullet point {position + 1} in experience entry {index + 1}")
            if not entry.bullet_points:
                warnings.append(f"experience[{index}] has no bullet points")
        if not entry.company:
            errors.append(f"experience[{index}] is missing company name")
        if not entry.role:
            errors.append(f"experience[{index}] is missing role/title")
        if not entry.location:
            warnings.append(f"experience[{index}] is missing location")

    for index, entry in enumerate(resume.education_entries()):
        if opts.check_date_formats and entry.graduation_date and not is_valid_date(entry.graduation_date):
            warnings.append(f"education[{index}].graduationDate has invalid format (expected YYYY-MM)")
        if not entry.institution:
            warnings.append(f"education[{index}] is missing institution name")
        if not entry.degree:
            warnings.append(f"education[{index}] is missing degree")

    if resume.skills is not None:
        if not resume.skills.categories:
            warnings.append("skills section has no categories")
        for index, category in enumerate(resume.skills.categories):
            if not category.items:
                warnings.append(f"skills.categories[{index}] has no items")

    score = _calculate_score(errors, warnings, resume)
    logger.debug("ats_scored score=%s errors=%s warnings=%s", score, len(errors), len(warnings))
    return AtsValidationResult(
        score=score,
        is_compliant=not errors and score >= COMPLIANCE_THRESHOLD,
        errors=errors,
        warnings=warnings,
        suggestions=suggestions,
    )
