from __future__ import annotations

import logging
import re
from typing import Callable

from resume_ai.normalize.job_description import parse_job_description
from resume_ai.schemas import (
    ChangeDetail,
    EnhancementOptions,
    EnhancementResult,
    Improvement,
    KeywordSuggestion,
    ParsedJobDescription,
    Resume,
    Skills,
)
from resume_ai.services.ats_scorer import AtsValidationResult, score_ats
from resume_ai.services.enhancement_diff import ats_score_note, calculate_ats_score, identify_missing_skills

logger = logging.getLogger(__name__)

RULE_BASED_CONFIDENCE = 0.7
MAX_BULLET_GROWTH = 50

_RELATED_TERMS = {
    "react": ("frontend", "ui", "component", "javascript", "typescript"),
    "node.js": ("backend", "server", "api", "javascript"),
    "python": ("data", "script", "backend", "api"),
    "aws": ("cloud", "infrastructure", "deploy", "server"),
    "docker": ("container", "deploy", "infrastructure"),
    "kubernetes": ("container", "orchestration", "deploy"),
}
_TECHNICAL_SKILLS = ("JavaScript", "TypeScript", "Python", "React", "Node.js", "AWS", "Docker")
_LEADING_VERB_RE = re.compile(r"^(Built|Developed|Created|Implemented|Designed)\b", re.IGNORECASE)
_TECH_MENTION_RE = re.compile(r"\b(React|Vue|Angular|Node\.js|Python|Java|TypeScript|JavaScript)\b", re.IGNORECASE)
_TECHNICAL_CONTEXT_RE = re.compile(r"(built|developed|implemented|created|designed|architected)", re.IGNORECASE)
_CATEGORY_MARKERS = (
    ("Frontend Framework", ("react", "vue", "angular", "svelte")),
    ("Backend Framework", ("node.js", "express", "django", "flask", "spring")),
    ("Cloud/DevOps", ("aws", "azure", "gcp", "docker", "kubernetes")),
    ("Programming Language", ("javascript", "typescript", "python", "java", "c++")),
    ("Database", ("postgresql", "mysql", "mongodb", "redis")),
)


def _word_in(text: str, word: str) -> bool:
    return bool(re.search(r"\b" + re.escape(word) + r"\b", text))


def _mentions(text: str, term: str) -> bool:
    return bool(re.search(r"\b" + re.escape(term), text))


def is_keyword_relevant(keyword: str, bullet: str) -> bool:
    lowered_bullet = bullet.lower()
    lowered_keyword = keyword.lower()
    for key, terms in _RELATED_TERMS.items():
        if key in lowered_keyword or (len(lowered_keyword) > 2 and lowered_keyword in key):
            return any(_mentions(lowered_bullet, term) for term in terms)
    return True


def inject_keyword(bullet: str, keyword: str) -> str:
    """Work ``keyword`` into ``bullet`` without dropping any existing words."""
    if keyword.lower() in bullet.lower():
        return bullet

    def after_leading_verb() -> str | None:
        if _LEADING_VERB_RE.match(bullet):
            return _LEADING_VERB_RE.sub(lambda match: f"{match.group(0)} using {keyword}", bullet, count=1)
        return None

    def before_technology() -> str | None:
        if _TECH_MENTION_RE.search(bullet):
            return _TECH_MENTION_RE.sub(lambda match: f"{keyword} and {match.group(0)}", bullet, count=1)
        return None

    def after_first_comma() -> str | None:
        parts = bullet.split(",")
        if len(parts) >= 2:
            parts[1] = f" {keyword}{parts[1]}"
            return ",".join(parts)
        return None

    def at_end() -> str | None:
        if not bullet.endswith((".", "!")):
            return f"{bullet} using {keyword}"
        return None

    for strategy in (after_leading_verb, before_technology, after_first_comma, at_end):
        result = strategy()
        if result and result != bullet and len(result) < len(bullet) + MAX_BULLET_GROWTH:
            return result
    return bullet


def can_add_skill(bullet: str, skill: str) -> bool:
    if skill.lower() in bullet.lower() or len(bullet) > 120:
        return False
    is_technical = any(known in skill for known in _TECHNICAL_SKILLS)
    has_technical_context = bool(_TECHNICAL_CONTEXT_RE.search(bullet))
    return is_technical == has_technical_context


def rewrite_bullet_points(
    bullets: list[str],
    keywords: list[str],
    required_skills: list[str],
) -> list[ChangeDetail]:
    """One entry per bullet, in order; unchanged bullets have ``old == new``."""
    changes = []
    for original in bullets:
        enhanced = original
        relevant = [
            keyword
            for keyword in keywords
            if keyword.lower() not in original.lower() and is_keyword_relevant(keyword, original)
        ]
        if relevant:
            enhanced = inject_keyword(enhanced, relevant[0])
        for skill in required_skills[:2]:
            if can_add_skill(enhanced, skill):
                enhanced = inject_keyword(enhanced, skill)
        changes.append(ChangeDetail(old=original, new=enhanced, type="bulletPoint"))
    return changes


def skill_relevance(skill: str, keywords: list[str]) -> int:
    lowered = skill.lower()
    score = 0
    for keyword in keywords:
        target = keyword.lower()
        if lowered == target:
            score += 10
        elif target in lowered or lowered in target:
            score += 5
        elif _word_in(lowered, target):
            score += 3
    return score


def reorder_skills(skills: Skills, keywords: list[str]) -> list[ChangeDetail]:
    changes: list[ChangeDetail] = []
    for category in skills.categories:
        if not category.items:
            continue
        original = list(category.items)
        # sorted() is stable, so equally relevant skills keep their order
        reordered = sorted(original, key=lambda item: skill_relevance(item, keywords), reverse=True)
        if reordered == original:
            continue
        category.items = reordered
        for old_index, skill in enumerate(original):
            new_index = reordered.index(skill)
            if abs(new_index - old_index) >= 2:
                changes.append(
                    ChangeDetail(
                        old=f"Position {old_index + 1} in {category.name}",
                        new=f"Position {new_index + 1} in {category.name}",
                        section=f"skills.{category.name}",
                        type="skill",
                    )
                )

    original_order = [category.name for category in skills.categories]
    reordered_categories = sorted(
        skills.categories,
        key=lambda category: sum(skill_relevance(item, keywords) for item in category.items),
        reverse=True,
    )
    new_order = [category.name for category in reordered_categories]
    if new_order != original_order:
        skills.categories = reordered_categories
        changes.append(
            ChangeDetail(
                old=f"Category order: {', '.join(original_order)}",
                new=f"Category order: {', '.join(new_order)}",
                section="skills",
                type="skill",
            )
        )
    return changes


def enhance_summary(summary: str, keywords: list[str]) -> ChangeDetail | None:
    candidates = [keyword for keyword in keywords if keyword.lower() not in summary.lower()]
    if not candidates:
        return None
    top = candidates[0]
    if len(summary) < 200:
        enhanced = f"{summary.rstrip()} Specialized in {top} and related technologies."
    else:
        enhanced = re.sub(r"\btechnologies\b", f"{top} and other technologies", summary, count=1, flags=re.IGNORECASE)
    if enhanced == summary:
        return None
    return ChangeDetail(old=summary, new=enhanced, section="summary", type="summary")


def categorize_keyword(keyword: str) -> str:
    lowered = keyword.lower()
    for category, markers in _CATEGORY_MARKERS:
        if any(marker in lowered for marker in markers):
            return category
    return "Technology"


def _keyword_coverage(keywords: list[str], resume: Resume) -> float:
    sample = keywords[:20]
    if not sample:
        return 0.0
    text = resume.model_dump_json(by_alias=True).lower()
    return sum(1 for keyword in sample if keyword.lower() in text) / len(sample)


class RuleBasedEnhancer:
    """Deterministic enhancer used when no AI provider is usable."""

    def __init__(self, ats_scorer: Callable[[Resume], AtsValidationResult] = score_ats) -> None:
        self._ats_scorer = ats_scorer

    async def enhance_resume(
        self,
        resume: Resume,
        job_text: str,
        options: EnhancementOptions | None = None,
        *,
        job: ParsedJobDescription | None = None,
    ) -> EnhancementResult:
        options = options or EnhancementOptions()
        job = job or parse_job_description(job_text)
        enhanced = resume.model_copy(deep=True)
        changes: list[ChangeDetail] = []

        for index, entry in enumerate(enhanced.experience_entries()):
            bullet_changes = rewrite_bullet_points(entry.bullet_points, job.keywords, job.required_skills)
            entry.bullet_points = [change.new for change in bullet_changes]
            for position, change in enumerate(bullet_changes):
                if change.new != change.old:
                    changes.append(change.model_copy(update={"section": f"experience[{index}].bulletPoints[{position}]"}))

        if enhanced.skills is not None:
            changes.extend(reorder_skills(enhanced.skills, job.keywords))

        if enhanced.summary and "summary" in options.focus_areas:
            summary_change = enhance_summary(enhanced.summary, job.keywords)
            if summary_change:
                enhanced.summary = summary_change.new
                changes.append(summary_change)

        improvements = [
            Improvement(
                type=change.type or "bulletPoint",
                section=change.section or "unknown",
                original=change.old,
                suggested=change.new,
                reason="Enhanced to better match job requirements and include relevant keywords",
                confidence=RULE_BASED_CONFIDENCE,
            )
            for change in changes
        ]
        if options.max_suggestions is not None:
            improvements = improvements[: options.max_suggestions]

        missing_skills = [skill for skill in identify_missing_skills(job.required_skills, resume) if 3 < len(skill) < 50][:10]
        ats_score = calculate_ats_score(resume, enhanced, self._ats_scorer)
        result = EnhancementResult(
            original_resume=resume,
            enhanced_resume=enhanced,
            improvements=improvements,
            keyword_suggestions=self._keyword_suggestions(job.keywords, enhanced),
            missing_skills=missing_skills,
            ats_score=ats_score,
            recommendations=self._recommendations(resume, enhanced, job, missing_skills, ats_score),
        )
        logger.info(
            "rule_based_enhancement_done changes=%s ats_before=%s ats_after=%s",
            len(changes),
            ats_score.before,
            ats_score.after,
        )
        return result

    @staticmethod
    def _keyword_suggestions(keywords: list[str], enhanced: Resume) -> list[KeywordSuggestion]:
        text = enhanced.model_dump_json(by_alias=True).lower()
        suggestions = []
        for position, keyword in enumerate(keywords[:10]):
            if keyword.lower() in text:
                continue
            importance = "high" if position < 3 else "low" if position > 7 else "medium"
            suggestions.append(
                KeywordSuggestion(
                    keyword=keyword,
                    category=categorize_keyword(keyword),
                    suggested_placement=["summary", "skills", "experience"],
                    importance=importance,
                )
            )
        return suggestions

    @staticmethod
    def _recommendations(original, enhanced, job, missing_skills, ats_score) -> list[str]:
        recommendations = []
        if missing_skills:
            recommendations.append(f"Consider highlighting experience with: {', '.join(missing_skills[:3])}")
        if not original.summary:
            recommendations.append("Add a professional summary to improve ATS score")
        long_bullets = [bullet for entry in original.experience_entries() for bullet in entry.bullet_points if len(bullet) > 150]
        if long_bullets:
            recommendations.append(f"Consider shortening {len(long_bullets)} bullet point(s) to improve readability")
        if job.keywords and _keyword_coverage(job.keywords, enhanced) < 0.5:
            recommendations.append("Consider adding more job-relevant keywords throughout the resume")
        note = ats_score_note(ats_score)
        if note:
            recommendations.append(note)
        return recommendations
