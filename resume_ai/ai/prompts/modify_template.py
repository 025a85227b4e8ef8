from __future__ import annotations

from dataclasses import dataclass, field

from resume_ai.schemas.enhancement import EnhancementMode

SYSTEM_MESSAGE = (
    "You are an expert resume writer specializing in ATS-optimized resumes. You improve "
    "wording and keyword coverage while keeping every statement authentic."
)

TASK_DESCRIPTION = (
    "Enhance the provided resume using the review findings and the job requirements. "
    "Improve alignment with the job posting while keeping the resume completely truthful. "
    "You may add content that is closely associated with what the resume already states "
    "(for example \"backend development\" for a resume that mentions Java).\n\n"
    "Only include sections that exist in the original resume. Items may be added inside "
    "existing sections, never as new sections."
)

OUTPUT_FORMAT = """Respond with the enhanced resume as a single JSON object that matches the original structure exactly:
{
  "personalInfo": { ... },
  "summary": "...",            // only if the original has a summary
  "experience": [
    {
      "company": "...",
      "role": "...",
      "startDate": "...",
      "endDate": "...",
      "location": "...",
      "bulletPoints": ["..."]
    }
  ],
  "education": { ... },         // only if the original has education
  "skills": { "categories": [ { "name": "...", "items": ["..."] } ] }
}
Keep the same number of experience and education entries, in the same order."""

TRUTHFULNESS_RULES = (
    "NEVER add experiences, companies, roles or dates that are not in the original resume",
    "NEVER change company names, role titles, dates, institutions or degrees",
    "NEVER add sections that do not exist in the original resume",
    "NEVER invent metrics, percentages or achievements that the original does not state",
    "You MAY add closely related terms for technologies already listed:",
    "  - Java: backend development, server-side programming, enterprise applications",
    "  - React: frontend development, user interface, client-side applications",
    "  - Python: data science, automation, scripting, backend development",
    "  - AWS: cloud infrastructure, cloud services, cloud deployment",
    "  - Docker: containerization, container orchestration, DevOps",
    "Do not introduce technologies that cannot be inferred from the original resume",
    "Use natural language and avoid keyword stuffing",
    "Preserve the original meaning of every bullet point",
)

ENHANCEMENT_AREAS = (
    "Rewrite bullet points to incorporate job-relevant keywords naturally",
    "Add related content that is inferable from existing resume information",
    "Reorder skills so job-relevant ones come first (only if a skills section exists)",
    "Add inferable related skills inside the existing skills section",
    "Align the summary with the job requirements (only if a summary exists)",
    "Use stronger action verbs and impact language",
    "Keep a professional tone and ATS-friendly wording",
)

_MODE_AREAS: dict[str, tuple[str, ...]] = {
    "bulletPoints": (
        "Focus ONLY on rewriting experience bullet points",
        "Incorporate job-relevant keywords naturally",
        "Add related content only when it is inferable (Java: backend, React: frontend)",
        "Use strong action verbs",
        "Do not modify other sections",
    ),
    "skills": (
        "Focus ONLY on reordering and enhancing the skills section",
        "Prioritize skills named in the job requirements",
        "Add related skills only when they are inferable from existing skills",
        "Group related skills together",
        "Do not modify other sections",
    ),
    "summary": (
        "Focus ONLY on the summary section, and only if it exists in the original resume",
        "Align the summary with the job requirements",
        "Highlight key skills and experience the resume already supports",
        "Do not modify other sections",
        "If the original has no summary, do not add one",
    ),
}


@dataclass(frozen=True)
class EnhancementExample:
    original: str
    enhanced: str
    explanation: str


@dataclass(frozen=True)
class ModifyPromptTemplate:
    system_message: str
    task_description: str
    output_format: str
    truthfulness_rules: tuple[str, ...]
    enhancement_areas: tuple[str, ...]
    mode: EnhancementMode = "full"
    examples: tuple[EnhancementExample, ...] = field(default_factory=tuple)


ENHANCEMENT_EXAMPLES = (
    EnhancementExample(
        original="Worked on web applications using JavaScript",
        enhanced="Developed responsive web applications using JavaScript and modern frontend tooling",
        explanation="Stronger verb and frontend context that JavaScript work implies",
    ),
    EnhancementExample(
        original="Developed applications using Java",
        enhanced="Developed backend applications using Java, exposing RESTful APIs",
        explanation="Backend development and RESTful APIs are closely associated with Java",
    ),
    EnhancementExample(
        original="Worked with Python for data analysis",
        enhanced="Performed data analysis and automation using Python",
        explanation="Automation is a common, inferable use of Python",
    ),
)


def get_enhancement_areas_for_mode(mode: EnhancementMode) -> tuple[str, ...]:
    return _MODE_AREAS.get(mode, ENHANCEMENT_AREAS)


def get_modify_prompt_template(mode: EnhancementMode = "full") -> ModifyPromptTemplate:
    return ModifyPromptTemplate(
        system_message=SYSTEM_MESSAGE,
        task_description=TASK_DESCRIPTION,
        output_format=OUTPUT_FORMAT,
        truthfulness_rules=TRUTHFULNESS_RULES,
        enhancement_areas=get_enhancement_areas_for_mode(mode),
        mode=mode,
        examples=ENHANCEMENT_EXAMPLES,
    )
