from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any

SYSTEM_MESSAGE = (
    "You are an expert resume reviewer and career advisor with deep knowledge of ATS "
    "(Applicant Tracking System) requirements and hiring practices. Analyze resumes "
    "objectively and give actionable feedback that improves a candidate's chances."
)

TASK_DESCRIPTION = (
    "Analyze the provided resume against the job requirements. Identify strengths, "
    "weaknesses and opportunities for improvement, then list prioritized actions that "
    "would bring the resume closer to the job posting. Do not rewrite the resume."
)

OUTPUT_FORMAT = """Respond with a single JSON object with this structure:
{
  "strengths": ["..."],
  "weaknesses": ["..."],
  "opportunities": ["..."],
  "prioritizedActions": [
    {
      "type": "enhance" | "reorder" | "add" | "remove" | "rewrite",
      "section": "experience" | "skills" | "summary" | "education" | ...,
      "priority": "high" | "medium" | "low",
      "reason": "why this action is needed",
      "suggestedChange": "optional concrete suggestion"
    }
  ],
  "confidence": 0.0-1.0,
  "reasoning": "short overall assessment"
}"""

FOCUS_AREAS = (
    "How well the resume matches the job requirements",
    "Missing keywords or skills from the job description",
    "Areas where the resume could be strengthened",
    "Prioritized actions that improve ATS compatibility",
    "Content quality and professional presentation",
    "Keyword density and relevance",
    "Experience alignment with job requirements",
)


@dataclass(frozen=True)
class ReviewExample:
    resume_snippet: str
    job_snippet: str
    review_result: dict[str, Any]


@dataclass(frozen=True)
class ReviewPromptTemplate:
    system_message: str
    task_description: str
    output_format: str
    focus_areas: tuple[str, ...]
    examples: tuple[ReviewExample, ...] = field(default_factory=tuple)


REVIEW_EXAMPLES = (
    ReviewExample(
        resume_snippet=json.dumps(
            {
                "experience": [
                    {
                        "company": "Tech Corp",
                        "role": "Software Engineer",
                        "bulletPoints": [
                            "Worked on web applications",
                            "Fixed bugs",
                            "Attended meetings",
                        ],
                    }
                ]
            }
        ),
        job_snippet=json.dumps(
            {"keywords": ["React", "TypeScript", "Node.js"], "requiredSkills": ["JavaScript", "React"]}
        ),
        review_result={
            "strengths": ["Has relevant software engineering experience"],
            "weaknesses": [
                "Missing technologies named in the job (React, TypeScript)",
                "Bullet points are generic and lack impact",
            ],
            "opportunities": [
                "Bullet points can highlight React and TypeScript work",
                "Existing achievements can be stated with stronger verbs",
            ],
            "prioritizedActions": [
                {
                    "type": "enhance",
                    "section": "experience",
                    "priority": "high",
                    "reason": "Bullet points should carry job-relevant keywords naturally",
                    "suggestedChange": "Mention React and TypeScript where the work used them",
                }
            ],
            "confidence": 0.85,
            "reasoning": "Good foundation that needs keyword alignment and stronger impact statements",
        },
    ),
)


def get_review_prompt_template() -> ReviewPromptTemplate:
    return ReviewPromptTemplate(
        system_message=SYSTEM_MESSAGE,
        task_description=TASK_DESCRIPTION,
        output_format=OUTPUT_FORMAT,
        focus_areas=FOCUS_AREAS,
        examples=REVIEW_EXAMPLES,
    )
