from __future__ import annotations

import logging
import re

from resume_ai.schemas import ParsedJobDescription

from .utils import keyword_pattern, normalize_text, split_items

logger = logging.getLogger(__name__)

TECHNOLOGY_KEYWORDS = (
    "JavaScript", "TypeScript", "Python", "Java", "C++", "C#", "Go", "Rust", "Ruby", "PHP",
    "Swift", "Kotlin", "Scala", "R", "MATLAB", "Perl", "Shell", "Bash",
    "React", "Vue", "Angular", "Next.js", "Nuxt", "Svelte", "HTML", "CSS", "SCSS", "SASS",
    "Tailwind", "Bootstrap", "Webpack", "Vite", "Redux", "MobX", "Zustand",
    "Node.js", "Express", "FastAPI", "Django", "Flask", "Spring", "ASP.NET", "Laravel",
    "Rails", "GraphQL", "REST", "API", "Microservices",
    "PostgreSQL", "MySQL", "MongoDB", "Redis", "Elasticsearch", "DynamoDB", "Cassandra",
    "SQLite", "Oracle", "SQL Server",
    "AWS", "Azure", "GCP", "Docker", "Kubernetes", "Terraform", "Ansible", "Jenkins",
    "CI/CD", "GitHub Actions", "GitLab CI", "CircleCI",
    "Git", "GitHub", "GitLab", "Jira", "Confluence", "Slack", "Agile", "Scrum",
    "Machine Learning", "AI", "Deep Learning", "TensorFlow", "PyTorch", "Pandas", "NumPy",
)

SKILL_KEYWORDS = (
    "Problem Solving", "Communication", "Leadership", "Teamwork", "Agile", "Scrum",
    "Project Management", "Code Review", "Testing", "Debugging", "Architecture",
    "System Design", "Performance Optimization", "Security", "DevOps", "CI/CD",
)

_SECTION_END = r"(?:\n\n|\n[A-Z][a-z]+\s*:|$)"
_REQUIRED_SECTION_RE = re.compile(
    r"\b(?:requirements?|must\s+have|required|qualifications?)[:\s]+(.*?)" + _SECTION_END,
    re.IGNORECASE | re.DOTALL,
)
_PREFERRED_SECTION_RE = re.compile(
    r"\b(?:preferred|nice\s+to\s+have|bonus|plus|advantage)[:\s]+(.*?)" + _SECTION_END,
    re.IGNORECASE | re.DOTALL,
)
_REQUIRED_SENTENCE_RE = re.compile(
    r"(?:you\s+must|must|required\s+to)\s+(?:have|be|know|understand)\s+(.*?)(?:\.|$)",
    re.IGNORECASE,
)
_PREFERRED_SENTENCE_RE = re.compile(
    r"(?:would\s+be\s+great|it's\s+a\s+plus|bonus\s+points)\s+(?:if\s+you\s+)?(?:have|know|are)\s+(.*?)(?:\.|$)",
    re.IGNORECASE,
)
_PROFICIENCY_RES = (
    re.compile(r"(?:proficient|experienced|skilled|expert)\s+(?:in|with|using)\s+([A-Z][A-Za-z ]+)", re.IGNORECASE),
    re.compile(r"(?:knowledge|experience|familiarity)\s+(?:of|with|in)\s+([A-Z][A-Za-z ]+)", re.IGNORECASE),
)
_TITLE_RES = (
    re.compile(r"^(?:Position|Role|Title|Job Title|Job)[:\s]+([A-Z][A-Za-z &]+?)(?:\n|$)", re.IGNORECASE | re.MULTILINE),
    re.compile(
        r"^([A-Z][A-Za-z &]+(?:Engineer|Developer|Manager|Analyst|Specialist|Architect|Lead|Designer|Programmer|Consultant))",
        re.MULTILINE,
    ),
    re.compile(
        r"(?:hiring|seeking|looking for)\s+(?:a|an)?\s*([A-Z][A-Za-z &]+(?:Engineer|Developer|Manager|Analyst|Specialist|Architect|Lead))",
        re.IGNORECASE,
    ),
)
_COMPANY_RES = (
    re.compile(r"^(?:Company|Employer)[:\s]+([A-Z][A-Za-z0-9 &.,-]+?)\s*(?:\n|$)", re.IGNORECASE | re.MULTILINE),
    re.compile(r"\b(?:at|join)\s+([A-Z][A-Za-z0-9&.-]*(?: [A-Z][A-Za-z0-9&.-]*)*)"),
)
_EXPERIENCE_RES = (
    re.compile(r"\d+\s*(?:\+|-\s*\d+|to\s+\d+)?\s*(?:years?|yrs?)\s*(?:of\s*)?(?:experience|exp)\b", re.IGNORECASE),
    re.compile(r"(?:minimum|at least|minimum of)\s+\d+\s*(?:years?|yrs?)", re.IGNORECASE),
    re.compile(r"\b(?:Senior|Mid-level|Junior|Entry-level|Lead|Principal)\s+(?:level|position|role)\b", re.IGNORECASE),
    re.compile(r"\b(?:Senior|Mid-level|Junior|Entry-level|Lead|Principal)\s+(?:engineer|developer)\b", re.IGNORECASE),
)
_FALSE_PREFIX_RE = re.compile(r"^(?:The|A|An|Our|We|This|Job|Position|Role)\b", re.IGNORECASE)


def extract_keywords(text: str) -> list[str]:
    keywords: set[str] = set()
    for keyword in TECHNOLOGY_KEYWORDS + SKILL_KEYWORDS:
        if keyword_pattern(keyword).search(text):
            keywords.add(keyword)
    for pattern in _PROFICIENCY_RES:
        for match in pattern.finditer(text):
            skill = match.group(1).strip()
            if 2 < len(skill) < 50:
                keywords.add(skill)
    return sorted(keywords)


def extract_job_title(text: str) -> str | None:
    for pattern in _TITLE_RES:
        match = pattern.search(text)
        if not match:
            continue
        title = match.group(1).strip()
        if 3 < len(title) < 100 and not _FALSE_PREFIX_RE.match(title):
            return title
    return None


def extract_company(text: str) -> str | None:
    for pattern in _COMPANY_RES:
        match = pattern.search(text)
        if not match:
            continue
        company = match.group(1).strip().rstrip(".,")
        if company and not _FALSE_PREFIX_RE.match(company):
            return company
    return None


def extract_experience_level(text: str) -> str | None:
    for pattern in _EXPERIENCE_RES:
        match = pattern.search(text)
        if match and 0 < len(match.group(0).strip()) < 100:
            return match.group(0).strip()
    return None


def _section_items(text: str, section_re: re.Pattern[str], sentence_re: re.Pattern[str]) -> list[str]:
    items: dict[str, None] = {}
    for match in section_re.finditer(text):
        for item in split_items(match.group(1)):
            items[item] = None
    for match in sentence_re.finditer(text):
        item = match.group(1).strip()
        if 5 < len(item) < 200:
            items[item] = None

    section = section_re.search(text)
    if section:
        body = section.group(1)
        for keyword in extract_keywords(text):
            if keyword_pattern(keyword).search(body):
                items[keyword] = None
    return list(items)


def extract_requirements(text: str) -> list[str]:
    requirements: list[str] = []
    for section_re in (_REQUIRED_SECTION_RE, _PREFERRED_SECTION_RE):
        match = section_re.search(text)
        if match:
            requirements.extend(split_items(match.group(1), max_len=500))
    return requirements


def parse_job_description(text: str | None) -> ParsedJobDescription:
    if not text or not text.strip():
        logger.warning("job_description_empty")
        return ParsedJobDescription()

    normalized = normalize_text(text)
    parsed = ParsedJobDescription(
        keywords=extract_keywords(normalized),
        required_skills=_section_items(normalized, _REQUIRED_SECTION_RE, _REQUIRED_SENTENCE_RE),
        preferred_skills=_section_items(normalized, _PREFERRED_SECTION_RE, _PREFERRED_SENTENCE_RE),
        experience_level=extract_experience_level(normalized),
        job_title=extract_job_title(normalized),
        company=extract_company(normalized),
        requirements=extract_requirements(normalized),
    )
    logger.debug(
        "job_description_parsed title=%s company=%s keywords=%s required=%s",
        parsed.job_title,
        parsed.company,
        len(parsed.keywords),
        len(parsed.required_skills),
    )
    return parsed
