from __future__ import annotations

import json
import logging
from typing import Callable

from resume_ai.schemas import (
    AtsScore,
    ChangeDetail,
    Improvement,
    KeywordSuggestion,
    ParsedJobDescription,
    Resume,
)

logger = logging.getLogger(__name__)

DERIVED_IMPROVEMENT_CONFIDENCE = 0.8

_REASONS = {
    "bulletPoint": "Reworded to better match the job requirements",
    "summary": "Summary aligned with the job requirements",
    "skill": "Skills reordered or extended to match the job requirements",
    "keyword": "Job keyword incorporated",
}


def track_changes(original: Resume, enhanced: Resume) -> list[ChangeDetail]:
    changes: list[ChangeDetail] = []
    before = original.experience_entries()
    after = enhanced.experience_entries()
    if len(before) != len(after):
        logger.warning("experience_count_changed original=%s enhanced=%s", len(before), len(after))

    for index, (old, new) in enumerate(zip(before, after)):
        old_bullets, new_bullets = old.bullet_points, new.bullet_points
        for position in range(max(len(old_bullets), len(new_bullets))):
            old_bullet = old_bullets[position] if position < len(old_bullets) else ""
            new_bullet = new_bullets[position] if position < len(new_bullets) else ""
            if old_bullet != new_bullet:
                changes.append(
                    ChangeDetail(
                        old=old_bullet,
                        new=new_bullet,
                        section=f"experience[{index}].bulletPoints[{position}]",
                        type="bulletPoint",
                    )
                )
        if old.role != new.role:
            changes.append(
                ChangeDetail(old=old.role, new=new.role, section=f"experience[{index}].role", type="bulletPoint")
            )

    if original.skills is not None and enhanced.skills is not None:
        old_skills = original.flatten_skills()
        new_skills = enhanced.flatten_skills()
        if old_skills != new_skills:
            changes.append(
                ChangeDetail(old=", ".join(old_skills), new=", ".join(new_skills), section="skills", type="skill")
            )

    if original.summary and enhanced.summary and original.summary != enhanced.summary:
        changes.append(ChangeDetail(old=original.summary, new=enhanced.summary, section="summary", type="summary"))
    return changes


def generate_improvements(
    changes: list[ChangeDetail],
    provider_improvements: list[Improvement] | None = None,
    confidence: float = DERIVED_IMPROVEMENT_CONFIDENCE,
) -> list[Improvement]:
    if provider_improvements:
        return list(provider_improvements)
    improvements = []
    for change in changes:
        kind = change.type or "bulletPoint"
        improvements.append(
            Improvement(
                type=kind,
                section=change.section or "unknown",
                original=change.old,
                suggested=change.new,
                reason=_REASONS[kind],
                confidence=confidence,
            )
        )
    return improvements


def _is_required(keyword: str, required_skills: list[str]) -> bool:
    lowered = keyword.lower()
    return any(lowered == skill.lower() or lowered in skill.lower() for skill in required_skills)


def generate_keyword_suggestions(
    job: ParsedJobDescription,
    enhanced: Resume,
    max_suggestions: int | None = None,
) -> list[KeywordSuggestion]:
    text = json.dumps(enhanced.to_wire(), ensure_ascii=False).lower()
    suggestions = []
    for keyword in job.keywords:
        if keyword.lower() in text:
            continue
        suggestions.append(
            KeywordSuggestion(
                keyword=keyword,
                category="technical",
                suggested_placement=["bulletPoints", "summary"],
                importance="high" if _is_required(keyword, job.required_skills) else "medium",
            )
        )
    if max_suggestions is not None:
        suggestions = suggestions[:max_suggestions]
    return suggestions


def identify_missing_skills(required_skills: list[str], resume: Resume) -> list[str]:
    skills = [skill.lower() for skill in resume.flatten_skills() if skill.strip()]
    missing = []
    for required in required_skills:
        lowered = required.strip().lower()
        if not lowered:
            continue
        if not any(lowered in skill or skill in lowered for skill in skills):
            missing.append(required)
    return missing


def calculate_ats_score(original: Resume, enhanced: Resume, scorer: Callable) -> AtsScore:
    before = scorer(original).score
    after = scorer(enhanced).score
    return AtsScore(before=before, after=after, improvement=after - before)


def ats_score_note(score: AtsScore) -> str | None:
    if score.improvement > 0:
        return f"ATS score improved from {score.before} to {score.after}"
    if score.improvement < 0:
        return f"Warning: ATS score decreased from {score.before} to {score.after}. Review changes carefully."
    return None


def generate_recommendations(
    missing_skills: list[str],
    keyword_suggestions: list[KeywordSuggestion],
    ats_score: AtsScore,
    reasoning: str | None = None,
) -> list[str]:
    recommendations: list[str] = []
    if reasoning:
        recommendations.append(reasoning)
    if missing_skills:
        recommendations.append(f"Consider adding these skills to your resume: {', '.join(missing_skills[:5])}")
    high_priority = [item.keyword for item in keyword_suggestions if item.importance == "high"]
    if high_priority:
        recommendations.append(f"Incorporate these high-priority keywords: {', '.join(high_priority[:5])}")
    note = ats_score_note(ats_score)
    if note:
        recommendations.append(note)
    return recommendations
