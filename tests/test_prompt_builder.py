import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ai.ai.prompts import (  # noqa: E402
    PromptBuildError,
    PromptBuilderOptions,
    PromptContext,
    build_modify_prompt,
    build_review_prompt,
    compress_prompt,
    estimate_prompt_tokens,
    get_enhancement_areas_for_mode,
    get_modify_prompt_template,
    get_review_prompt_template,
    truncate_prompt,
)
from resume_ai.ai.prompts.builder import TRUNCATION_MARKER  # noqa: E402
from resume_ai.schemas import ParsedJobDescription, Resume, ReviewResult  # noqa: E402


def make_context(with_review: bool = True) -> PromptContext:
    resume = Resume.model_validate(
        {
            "personalInfo": {"name": "Jane Doe", "email": "jane@example.com"},
            "summary": "Backend engineer",
            "experience": [
                {
                    "company": "Tech Corp",
                    "role": "Software Engineer",
                    "startDate": "2020-01",
                    "endDate": "2022-12",
                    "bulletPoints": ["Built APIs using Java"],
                }
            ],
        }
    )
    job = ParsedJobDescription(keywords=["Java", "Spring"], required_skills=["Java"], job_title="Backend Engineer")
    review = ReviewResult(strengths=["Java"], weaknesses=["No Spring"], confidence=0.8) if with_review else None
    return PromptContext(resume=resume, job_info=job, review_result=review)


class ReviewPromptTests(unittest.TestCase):
    def test_sections_appear_in_order(self):
        prompt = build_review_prompt(make_context())

        markers = ["## CONTEXT", "### RESUME:", "### JOB REQUIREMENTS:", "## ANALYSIS FOCUS", "## EXAMPLES", "## OUTPUT FORMAT"]
        positions = [prompt.index(marker) for marker in markers]
        self.assertEqual(positions, sorted(positions))
        self.assertTrue(prompt.startswith(get_review_prompt_template().system_message))

    def test_resume_and_job_serialised_as_camel_case_json(self):
        prompt = build_review_prompt(make_context())

        self.assertIn('"personalInfo"', prompt)
        self.assertIn('"bulletPoints"', prompt)
        self.assertIn('"requiredSkills"', prompt)
        self.assertIn("Tech Corp", prompt)

    def test_examples_can_be_omitted(self):
        prompt = build_review_prompt(make_context(), PromptBuilderOptions(include_examples=False))
        self.assertNotIn("## EXAMPLES", prompt)

    def test_focus_areas_numbered(self):
        template = get_review_prompt_template()
        prompt = build_review_prompt(make_context())
        self.assertIn(f"1. {template.focus_areas[0]}", prompt)


class ModifyPromptTests(unittest.TestCase):
    def test_requires_review_result(self):
        with self.assertRaises(PromptBuildError) as ctx:
            build_modify_prompt(make_context(with_review=False))
        self.assertEqual(str(ctx.exception), "Review result is required for modify prompt")

    def test_contains_review_findings_and_rules(self):
        prompt = build_modify_prompt(make_context())

        for marker in ("### ORIGINAL RESUME:", "### REVIEW FINDINGS:", "## CRITICAL RULES (MUST FOLLOW)", "## ENHANCEMENT FOCUS"):
            self.assertIn(marker, prompt)
        self.assertIn("No Spring", prompt)
        self.assertIn("NEVER add experiences", prompt)

    def test_mode_limits_enhancement_areas(self):
        prompt = build_modify_prompt(make_context(), PromptBuilderOptions(mode="skills"))

        self.assertIn("Focus ONLY on reordering and enhancing the skills section", prompt)
        self.assertIn("Only the 'skills' section may be changed", prompt)
        self.assertNotIn("Only the 'full' section", build_modify_prompt(make_context()))

    def test_mode_templates(self):
        self.assertEqual(get_modify_prompt_template().mode, "full")
        self.assertEqual(get_modify_prompt_template("summary").mode, "summary")
        self.assertNotEqual(get_enhancement_areas_for_mode("bulletPoints"), get_enhancement_areas_for_mode("full"))

    def test_examples_do_not_invent_metrics(self):
        for example in get_modify_prompt_template().examples:
            self.assertNotIn("%", example.enhanced)


class PromptUtilityTests(unittest.TestCase):
    def test_compress_collapses_blank_lines_and_trims(self):
        self.assertEqual(compress_prompt("a  \n\n\n\n   b\n"), "a\n\nb\n")

    def test_compress_option_applies_to_built_prompt(self):
        prompt = build_review_prompt(make_context(), PromptBuilderOptions(compress=True))
        self.assertNotIn("\n\n\n", prompt)

    def test_estimate_tokens_rounds_up(self):
        self.assertEqual(estimate_prompt_tokens(""), 0)
        self.assertEqual(estimate_prompt_tokens("abcd"), 1)
        self.assertEqual(estimate_prompt_tokens("abcde"), 2)

    def test_truncate_leaves_short_prompts_alone(self):
        self.assertEqual(truncate_prompt("short", 10), "short")

    def test_truncate_prefers_sentence_boundary(self):
        prompt = "a" * 35 + ". " + "b" * 20
        result = truncate_prompt(prompt, 10)

        self.assertEqual(result, "a" * 35 + "." + TRUNCATION_MARKER)

    def test_truncate_hard_cut_without_late_boundary(self):
        prompt = "x" * 100
        result = truncate_prompt(prompt, 10)

        self.assertEqual(result, "x" * 40 + TRUNCATION_MARKER)

    def test_max_context_length_only_warns(self):
        with self.assertLogs("resume_ai.ai.prompts.builder", level="WARNING"):
            prompt = build_review_prompt(make_context(), PromptBuilderOptions(max_context_length=10))
        self.assertGreater(len(prompt), 10)


if __name__ == "__main__":
    unittest.main()
