from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Iterable, Literal

from resume_ai.schemas import Resume

from .policy import InferencePolicy, contains_phrase, get_default_inference_policy, phrase_pattern

logger = logging.getLogger(__name__)

Strictness = Literal["lenient", "moderate", "strict"]

_TOKEN_RE = re.compile(r"[A-Za-z][A-Za-z0-9+#]*(?:\.[A-Za-z0-9+#]+)*")
_SENTENCE_END = ".!?"
_COMMON_CAPITALIZED = frozenset(
    {
        "I", "A", "An", "The", "And", "Or", "Of", "In", "On", "For", "With", "To", "By", "At", "As",
        "January", "February", "March", "April", "May", "June", "July", "August",
        "September", "October", "November", "December",
        "Jan", "Feb", "Mar", "Apr", "Jun", "Jul", "Aug", "Sep", "Sept", "Oct", "Nov", "Dec",
    }
)
_METRIC_PATTERNS = (
    re.compile(r"(\d+(?:\.\d+)?)\s*%"),
    re.compile(r"(\d+(?:\.\d+)?)\s*percent\b", re.IGNORECASE),
    re.compile(r"\bby\s+\$?(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"\bof\s+\$?(\d[\d,]*(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"\$\s?(\d[\d,]*(?:\.\d+)?)"),
    re.compile(r"\b(\d+(?:\.\d+)?)\s*x\b", re.IGNORECASE),
)
_NUMBER_RE = re.compile(r"\d[\d,]*(?:\.\d+)?")
_YEARS_CLAIM_RE = re.compile(r"(\d+)\+?\s*(?:years?|yrs?)\s+(?:of\s+)?experience", re.IGNORECASE)
_DATE_RE = re.compile(r"^(\d{4})-(\d{2})(?:-\d{2})?$")
_OPEN_ENDED = {"present", "current", "now"}


@dataclass(frozen=True)
class TruthfulnessOptions:
    allow_inference: bool = True
    strictness: Strictness = "moderate"
    generate_suggestions: bool = True


@dataclass
class SectionCheck:
    valid: bool = True
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def error(self, message: str) -> None:
        self.valid = False
        self.errors.append(message)


@dataclass
class ExperienceCheck(SectionCheck):
    new_experiences_detected: int = 0
    mismatched_companies: list[str] = field(default_factory=list)
    mismatched_roles: list[str] = field(default_factory=list)
    mismatched_dates: list[str] = field(default_factory=list)


@dataclass
class SkillsCheck(SectionCheck):
    new_skills: list[str] = field(default_factory=list)
    inferred_skills: list[str] = field(default_factory=list)
    unrelated_skills: list[str] = field(default_factory=list)


@dataclass
class EducationCheck(SectionCheck):
    new_entries_detected: int = 0
    mismatched_institutions: list[str] = field(default_factory=list)
    mismatched_degrees: list[str] = field(default_factory=list)
    mismatched_dates: list[str] = field(default_factory=list)


@dataclass
class BulletPointCheck(SectionCheck):
    fabricated_metrics: list[str] = field(default_factory=list)
    inferred_technologies: list[str] = field(default_factory=list)
    unrelated_technologies: list[str] = field(default_factory=list)


@dataclass
class SummaryCheck(SectionCheck):
    mismatched_claims: list[str] = field(default_factory=list)


@dataclass
class TruthfulnessDetails:
    experiences: ExperienceCheck
    skills: SkillsCheck
    education: EducationCheck
    bullet_points: BulletPointCheck
    summary: SummaryCheck

    def sections(self) -> tuple[SectionCheck, ...]:
        return (self.experiences, self.skills, self.education, self.bullet_points, self.summary)


@dataclass
class TruthfulnessValidationResult:
    is_truthful: bool
    errors: list[str]
    warnings: list[str]
    suggestions: list[str]
    details: TruthfulnessDetails


def _collect_strings(value: Any, out: list[str]) -> None:
    if isinstance(value, str):
        out.append(value)
    elif isinstance(value, dict):
        for item in value.values():
            _collect_strings(item, out)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _collect_strings(item, out)


def resume_text(resume: Resume) -> str:
    parts: list[str] = []
    _collect_strings(resume.to_wire(), parts)
    return "\n".join(parts).lower()


def extract_technology_terms(text: str, policy: InferencePolicy) -> list[str]:
    """Technology-like terms in ``text``: policy vocabulary plus capitalized mid-sentence tokens."""
    lowered = text.lower()
    spans: list[tuple[int, int]] = []
    found: list[str] = []

    def overlaps(start: int, end: int) -> bool:
        return any(start < other_end and other_start < end for other_start, other_end in spans)

    for phrase in policy.vocabulary():
        for match in phrase_pattern(phrase).finditer(lowered):
            if overlaps(match.start(), match.end()):
                continue
            spans.append((match.start(), match.end()))
            found.append(text[match.start() : match.end()])

    for match in _TOKEN_RE.finditer(text):
        word = match.group(0)
        if word in _COMMON_CAPITALIZED or not any(char.isupper() for char in word):
            continue
        if overlaps(match.start(), match.end()):
            continue
        prefix = text[: match.start()].rstrip()
        if not prefix or prefix[-1] in _SENTENCE_END:
            continue
        spans.append((match.start(), match.end()))
        found.append(word)

    unique: dict[str, str] = {}
    for term in found:
        unique.setdefault(term.lower(), term)
    return list(unique.values())


def _normalize_number(raw: str) -> str:
    value = raw.replace(",", "")
    if "." in value:
        value = value.rstrip("0").rstrip(".")
    return value


def extract_metrics(text: str) -> list[tuple[str, str]]:
    """(matched text, normalized number) for every metric-like phrase."""
    metrics: list[tuple[str, str]] = []
    seen: set[tuple[int, int]] = set()
    for pattern in _METRIC_PATTERNS:
        for match in pattern.finditer(text):
            span = match.span(1)
            if span in seen:
                continue
            seen.add(span)
            metrics.append((match.group(0).strip(), _normalize_number(match.group(1))))
    return metrics


def _numbers_in(texts: Iterable[str]) -> set[str]:
    return {_normalize_number(raw) for text in texts for raw in _NUMBER_RE.findall(text)}


def _parse_month(value: str, today: date) -> tuple[int, int] | None:
    cleaned = (value or "").strip()
    if cleaned.lower() in _OPEN_ENDED:
        return today.year, today.month
    match = _DATE_RE.match(cleaned)
    if not match:
        return None
    return int(match.group(1)), int(match.group(2))


def experience_years(resume: Resume, today: date | None = None) -> float | None:
    """Years from the earliest start date to the latest end date, inclusive of both months."""
    today = today or date.today()
    starts: list[tuple[int, int]] = []
    ends: list[tuple[int, int]] = []
    for entry in resume.experience_entries():
        start = _parse_month(entry.start_date, today)
        end = _parse_month(entry.end_date, today)
        if start is None or end is None:
            continue
        starts.append(start)
        ends.append(end)
    if not starts:
        return None
    first = min(starts)
    last = max(ends)
    months = (last[0] - first[0]) * 12 + (last[1] - first[1]) + 1
    return max(months, 0) / 12


class TruthfulnessValidator:
    """Checks that an enhanced resume only rewords or infers from the original."""

    def __init__(self, policy: InferencePolicy | None = None) -> None:
        self.policy = policy or get_default_inference_policy()

    def validate(
        self,
        original: Resume,
        enhanced: Resume,
        options: TruthfulnessOptions | None = None,
    ) -> TruthfulnessValidationResult:
        options = options or TruthfulnessOptions()
        context = _Context(original, self.policy)

        details = TruthfulnessDetails(
            experiences=self.check_experiences(original, enhanced),
            skills=self.check_skills(original, enhanced, options, context),
            education=self.check_education(original, enhanced),
            bullet_points=self.check_bullet_points(original, enhanced, options, context),
            summary=self.check_summary(original, enhanced, options, context),
        )
        errors = [message for section in details.sections() for message in section.errors]
        warnings = [message for section in details.sections() for message in section.warnings]
        suggestions = generate_suggestions(details, options)

        logger.debug(
            "truthfulness_validated errors=%s warnings=%s strictness=%s",
            len(errors),
            len(warnings),
            options.strictness,
        )
        return TruthfulnessValidationResult(
            is_truthful=not errors,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
            details=details,
        )

    def check_experiences(self, original: Resume, enhanced: Resume) -> ExperienceCheck:
        check = ExperienceCheck()
        before = original.experience_entries()
        after = enhanced.experience_entries()

        if len(after) > len(before):
            check.new_experiences_detected = len(after) - len(before)
            check.error(
                f"{check.new_experiences_detected} new experience entr"
                f"{'y was' if check.new_experiences_detected == 1 else 'ies were'} added"
            )

        for index, (old, new) in enumerate(zip(before, after)):
            if old.company != new.company:
                check.mismatched_companies.append(f"experience[{index}]: '{old.company}' -> '{new.company}'")
                check.error(f"experience[{index}].company changed from '{old.company}' to '{new.company}'")
            if old.role != new.role:
                check.mismatched_roles.append(f"experience[{index}]: '{old.role}' -> '{new.role}'")
                check.error(f"experience[{index}].role changed from '{old.role}' to '{new.role}'")
            for attr in ("start_date", "end_date"):
                old_value = getattr(old, attr)
                new_value = getattr(new, attr)
                if old_value != new_value:
                    check.mismatched_dates.append(f"experience[{index}].{attr}: '{old_value}' -> '{new_value}'")
                    check.error(f"experience[{index}].{attr} changed from '{old_value}' to '{new_value}'")
        return check

    def check_skills(
        self,
        original: Resume,
        enhanced: Resume,
        options: TruthfulnessOptions,
        context: "_Context | None" = None,
    ) -> SkillsCheck:
        context = context or _Context(original, self.policy)
        check = SkillsCheck()
        known = {skill.strip().lower() for skill in original.flatten_skills()}

        for skill in enhanced.flatten_skills():
            key = skill.strip().lower()
            if not key or key in known or skill in check.new_skills:
                continue
            check.new_skills.append(skill)
            if context.mentions(skill) or self.policy.can_infer(skill, context.seeds):
                check.inferred_skills.append(skill)
                _judge_inferred(check, f"Skill '{skill}'", options)
            else:
                check.unrelated_skills.append(skill)
                check.error(f"Skill '{skill}' cannot be inferred from the original resume")
        return check

    def check_education(self, original: Resume, enhanced: Resume) -> EducationCheck:
        check = EducationCheck()
        before = original.education_entries()
        after = enhanced.education_entries()

        if len(after) > len(before):
            check.new_entries_detected = len(after) - len(before)
            check.error(f"{check.new_entries_detected} new education entr"
                        f"{'y was' if check.new_entries_detected == 1 else 'ies were'} added")

        for index, (old, new) in enumerate(zip(before, after)):
            if old.institution != new.institution:
                check.mismatched_institutions.append(f"education[{index}]: '{old.institution}' -> '{new.institution}'")
                check.error(f"education[{index}].institution changed from '{old.institution}' to '{new.institution}'")
            if old.degree != new.degree:
                check.mismatched_degrees.append(f"education[{index}]: '{old.degree}' -> '{new.degree}'")
                check.error(f"education[{index}].degree changed from '{old.degree}' to '{new.degree}'")
            if old.graduation_date != new.graduation_date:
                check.mismatched_dates.append(
                    f"education[{index}]: '{old.graduation_date}' -> '{new.graduation_date}'"
                )
                check.error(
                    f"education[{index}].graduationDate changed from "
                    f"'{old.graduation_date}' to '{new.graduation_date}'"
                )
        return check

    def check_bullet_points(
        self,
        original: Resume,
        enhanced: Resume,
        options: TruthfulnessOptions,
        context: "_Context | None" = None,
    ) -> BulletPointCheck:
        context = context or _Context(original, self.policy)
        check = BulletPointCheck()

        for index, (old, new) in enumerate(zip(original.experience_entries(), enhanced.experience_entries())):
            if len(new.bullet_points) > len(old.bullet_points):
                check.warnings.append(
                    f"experience[{index}] has {len(new.bullet_points) - len(old.bullet_points)} "
                    "additional bullet point(s)"
                )
            known_numbers = _numbers_in(old.bullet_points)
            unchanged = set(old.bullet_points)

            for position, bullet in enumerate(new.bullet_points):
                if bullet in unchanged:
                    continue
                where = f"experience[{index}].bulletPoints[{position}]"

                for matched, number in extract_metrics(bullet):
                    if number in known_numbers:
                        continue
                    check.fabricated_metrics.append(f"{where}: {matched}")
                    message = f"{where} introduces a metric not in the original: '{matched}'"
                    if options.strictness == "lenient":
                        check.warnings.append(message)
                    else:
                        check.error(message)

                for term in extract_technology_terms(bullet, self.policy):
                    if context.mentions(term):
                        continue
                    if self.policy.can_infer(term, context.seeds):
                        check.inferred_technologies.append(term)
                        _judge_inferred(check, f"{where} technology '{term}'", options)
                    else:
                        check.unrelated_technologies.append(term)
                        check.error(f"{where} mentions '{term}', which the original resume does not support")
        return check

    def check_summary(
        self,
        original: Resume,
        enhanced: Resume,
        options: TruthfulnessOptions,
        context: "_Context | None" = None,
    ) -> SummaryCheck:
        context = context or _Context(original, self.policy)
        check = SummaryCheck()
        before = original.summary or ""
        after = enhanced.summary or ""
        if not after or after == before:
            return check
        if not before:
            check.mismatched_claims.append("summary section added")
            check.error("A summary section was added that the original resume does not have")
            return check

        original_claims = {match.group(1) for match in _YEARS_CLAIM_RE.finditer(before)}
        years = experience_years(original)
        for match in _YEARS_CLAIM_RE.finditer(after):
            claimed = match.group(1)
            if claimed in original_claims:
                continue
            if years is None:
                check.warnings.append(f"Summary claim '{match.group(0)}' could not be verified against experience dates")
                continue
            if int(claimed) > math.ceil(years):
                check.mismatched_claims.append(match.group(0))
                check.error(
                    f"Summary claims '{match.group(0)}' but the experience section covers about {years:.1f} years"
                )

        for term in extract_technology_terms(after, self.policy):
            if context.mentions(term):
                continue
            if self.policy.can_infer(term, context.seeds):
                _judge_inferred(check, f"Summary term '{term}'", options)
            else:
                check.mismatched_claims.append(term)
                check.error(f"Summary mentions '{term}', which the original resume does not support")
        return check


class _Context:
    def __init__(self, original: Resume, policy: InferencePolicy) -> None:
        self.text = resume_text(original)
        self.seeds = policy.seeds_in(self.text)

    def mentions(self, term: str) -> bool:
        return contains_phrase(self.text, term)


def _judge_inferred(check: SectionCheck, label: str, options: TruthfulnessOptions) -> None:
    if not options.allow_inference:
        check.error(f"{label} is inferred, but inference is disabled")
    elif options.strictness == "strict":
        check.warnings.append(f"{label} is inferred from existing content; verify it is accurate")


def generate_suggestions(details: TruthfulnessDetails, options: TruthfulnessOptions) -> list[str]:
    if not options.generate_suggestions:
        return []

    suggestions: list[str] = []
    experiences = details.experiences
    if experiences.new_experiences_detected:
        suggestions.append(
            f"Remove {experiences.new_experiences_detected} newly added experience entr"
            f"{'y' if experiences.new_experiences_detected == 1 else 'ies'}. Only enhance existing experience."
        )
    if experiences.mismatched_companies or experiences.mismatched_roles:
        suggestions.append("Restore original company names and role titles.")
    if experiences.mismatched_dates:
        suggestions.append("Restore original employment dates.")
    if details.education.errors:
        suggestions.append("Restore original education entries; institutions, degrees and dates must not change.")
    if details.skills.unrelated_skills:
        suggestions.append(
            f"Remove unrelated skills: {', '.join(details.skills.unrelated_skills)}. "
            "They cannot be inferred from existing skills."
        )
    if details.skills.inferred_skills and options.strictness == "strict":
        suggestions.append(f"Review inferred skills: {', '.join(details.skills.inferred_skills)}.")
    if details.bullet_points.fabricated_metrics:
        suggestions.append("Remove metrics that are not stated in the original bullet points.")
    if details.bullet_points.unrelated_technologies:
        suggestions.append(
            "Remove unrelated technologies from bullet points: "
            f"{', '.join(details.bullet_points.unrelated_technologies)}"
        )
    if details.summary.mismatched_claims:
        suggestions.append("Review summary claims so they match the experience and skills in the resume.")
    return suggestions


def validate_truthfulness(
    original: Resume,
    enhanced: Resume,
    options: TruthfulnessOptions | None = None,
    *,
    policy: InferencePolicy | None = None,
) -> TruthfulnessValidationResult:
    return TruthfulnessValidator(policy).validate(original, enhanced, options)


def validate_experiences_only(original: Resume, enhanced: Resume) -> bool:
    return TruthfulnessValidator().check_experiences(original, enhanced).valid


def validate_skills_only(original: Resume, enhanced: Resume, options: TruthfulnessOptions | None = None) -> bool:
    return TruthfulnessValidator().check_skills(original, enhanced, options or TruthfulnessOptions()).valid


def validate_bullet_points_only(
    original: Resume,
    enhanced: Resume,
    options: TruthfulnessOptions | None = None,
) -> bool:
    return TruthfulnessValidator().check_bullet_points(original, enhanced, options or TruthfulnessOptions()).valid
