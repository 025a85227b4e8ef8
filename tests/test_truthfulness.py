import sys
import tempfile
import unittest
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_ai.schemas import Resume  # noqa: E402
from resume_ai.truthfulness import (  # noqa: E402
    InferencePolicy,
    TruthfulnessOptions,
    validate_bullet_points_only,
    validate_experiences_only,
    validate_skills_only,
    validate_truthfulness,
)
from resume_ai.truthfulness.policy import contains_phrase, terms_related  # noqa: E402
from resume_ai.truthfulness.validator import experience_years, extract_metrics  # noqa: E402

BASE_RESUME = {
    "personalInfo": {
        "name": "John Doe",
        "email": "john@example.com",
        "phone": "123-456-7890",
        "location": "San Francisco, CA",
    },
    "experience": [
        {
            "company": "Tech Corp",
            "role": "Software Engineer",
            "startDate": "2020-01",
            "endDate": "2022-12",
            "location": "San Francisco, CA",
            "bulletPoints": [
                "Developed web applications using React and TypeScript",
                "Improved performance by 30%",
                "Collaborated with team of 5 developers",
            ],
        }
    ],
    "education": [
        {
            "institution": "University of California",
            "degree": "Bachelor of Science",
            "field": "Computer Science",
            "graduationDate": "2019-05",
        }
    ],
    "skills": {
        "categories": [
            {"name": "Programming Languages", "items": ["Java", "JavaScript", "TypeScript"]},
            {"name": "Frameworks", "items": ["React", "Node.js"]},
        ]
    },
    "summary": "Experienced software engineer with 3 years of experience in web development.",
}


def base_resume() -> Resume:
    return Resume.model_validate(BASE_RESUME)


def with_changes(**overrides) -> Resume:
    payload = Resume.model_validate(BASE_RESUME).to_wire()
    payload.update(overrides)
    return Resume.model_validate(payload)


def with_bullets(bullets, company="Tech Corp") -> Resume:
    entry = dict(BASE_RESUME["experience"][0], bulletPoints=bullets, company=company)
    return with_changes(experience=[entry])


def with_extra_skills(items, name="Extra") -> Resume:
    categories = BASE_RESUME["skills"]["categories"] + [{"name": name, "items": items}]
    return with_changes(skills={"categories": categories})


class ValidateTruthfulnessTests(unittest.TestCase):
    def test_identical_resumes_are_truthful(self):
        result = validate_truthfulness(base_resume(), base_resume())

        self.assertTrue(result.is_truthful)
        self.assertEqual(result.errors, [])

    def test_new_experience_is_fabrication_under_any_options(self):
        extra = {
            "company": "New Company",
            "role": "Senior Engineer",
            "startDate": "2023-01",
            "endDate": "Present",
            "bulletPoints": ["Led a team"],
        }
        enhanced = with_changes(experience=BASE_RESUME["experience"] + [extra])

        for options in (
            TruthfulnessOptions(),
            TruthfulnessOptions(strictness="lenient"),
            TruthfulnessOptions(allow_inference=True, strictness="lenient", generate_suggestions=False),
        ):
            result = validate_truthfulness(base_resume(), enhanced, options)
            self.assertFalse(result.is_truthful)
            self.assertEqual(result.details.experiences.new_experiences_detected, 1)

    def test_identity_field_changes_are_errors(self):
        entry = dict(BASE_RESUME["experience"][0])
        cases = {
            "mismatched_companies": dict(entry, company="Other Corp"),
            "mismatched_roles": dict(entry, role="Staff Engineer"),
            "mismatched_dates": dict(entry, startDate="2019-01"),
        }
        for field_name, changed in cases.items():
            result = validate_truthfulness(
                base_resume(),
                with_changes(experience=[changed]),
                TruthfulnessOptions(strictness="lenient"),
            )
            self.assertFalse(result.is_truthful, field_name)
            self.assertTrue(getattr(result.details.experiences, field_name), field_name)

    def test_inferred_skills_accepted_when_inference_allowed(self):
        enhanced = with_extra_skills(["backend development", "server-side programming"], name="Backend")
        result = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(allow_inference=True))

        self.assertEqual(result.details.skills.inferred_skills, ["backend development", "server-side programming"])
        self.assertEqual(result.details.skills.unrelated_skills, [])
        self.assertTrue(result.is_truthful)

    def test_inferred_skills_rejected_when_inference_disabled(self):
        enhanced = with_extra_skills(["backend development"])
        result = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(allow_inference=False))

        self.assertFalse(result.is_truthful)

    def test_unrelated_skills_rejected_under_any_setting(self):
        enhanced = with_extra_skills(["Quantum Computing", "Blockchain"])
        for strictness in ("lenient", "moderate", "strict"):
            result = validate_truthfulness(
                base_resume(),
                enhanced,
                TruthfulnessOptions(allow_inference=True, strictness=strictness),
            )
            self.assertFalse(result.is_truthful)
            self.assertEqual(result.details.skills.unrelated_skills, ["Quantum Computing", "Blockchain"])

    def test_kubernetes_not_inferable_from_docker(self):
        original = with_changes(skills={"categories": [{"name": "Tools", "items": ["Docker"]}]})
        enhanced = with_changes(skills={"categories": [{"name": "Tools", "items": ["Docker", "Kubernetes"]}]})

        result = validate_truthfulness(original, enhanced)
        self.assertEqual(result.details.skills.unrelated_skills, ["Kubernetes"])

    def test_education_changes(self):
        school = dict(BASE_RESUME["education"][0])
        institution = validate_truthfulness(
            base_resume(), with_changes(education=[dict(school, institution="Different University")])
        )
        degree = validate_truthfulness(base_resume(), with_changes(education=[dict(school, degree="Master of Science")]))
        added = validate_truthfulness(base_resume(), with_changes(education=[school, dict(school, degree="PhD")]))

        self.assertTrue(institution.details.education.mismatched_institutions)
        self.assertTrue(degree.details.education.mismatched_degrees)
        self.assertEqual(added.details.education.new_entries_detected, 1)
        self.assertFalse(any(result.is_truthful for result in (institution, degree, added)))

    def test_inferred_technologies_in_bullets(self):
        enhanced = with_bullets(
            [
                "Developed web applications using React and TypeScript",
                "Built backend services using Java and RESTful APIs",
                "Improved performance by 30%",
            ]
        )
        result = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(allow_inference=True))

        self.assertEqual(result.details.bullet_points.inferred_technologies, ["RESTful APIs"])
        self.assertEqual(result.details.bullet_points.unrelated_technologies, [])
        self.assertTrue(result.is_truthful)

    def test_fabricated_metrics(self):
        enhanced = with_bullets(
            [
                "Developed web applications using React and TypeScript",
                "Improved performance by 30%",
                "Increased revenue by 50%",
            ]
        )
        moderate = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(strictness="moderate"))
        lenient = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(strictness="lenient"))

        self.assertEqual(moderate.details.bullet_points.fabricated_metrics, ["experience[0].bulletPoints[2]: 50%"])
        self.assertFalse(moderate.is_truthful)
        self.assertTrue(lenient.is_truthful)
        self.assertTrue(lenient.warnings)

    def test_mismatched_summary_years(self):
        enhanced = with_changes(summary="Experienced software engineer with 10 years of experience in web development.")
        result = validate_truthfulness(base_resume(), enhanced)

        self.assertEqual(result.details.summary.mismatched_claims, ["10 years of experience"])
        self.assertFalse(result.is_truthful)

    def test_added_summary_is_an_error(self):
        original = with_changes(summary=None)
        result = validate_truthfulness(original, base_resume())

        self.assertFalse(result.is_truthful)
        self.assertIn("summary section added", result.details.summary.mismatched_claims)

    def test_suggestions_generated(self):
        enhanced = with_changes(
            experience=[dict(BASE_RESUME["experience"][0], company="Different Corp")],
            skills={"categories": BASE_RESUME["skills"]["categories"] + [{"name": "X", "items": ["Quantum Computing"]}]},
        )
        result = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(generate_suggestions=True))
        silent = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(generate_suggestions=False))

        self.assertIn("Restore original company names and role titles.", result.suggestions)
        self.assertTrue(any("Quantum Computing" in item for item in result.suggestions))
        self.assertEqual(silent.suggestions, [])

    def test_strictness_only_changes_warning_volume_for_inferred_content(self):
        enhanced = with_extra_skills(["backend development"])
        strict = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(strictness="strict"))
        lenient = validate_truthfulness(base_resume(), enhanced, TruthfulnessOptions(strictness="lenient"))

        self.assertTrue(strict.is_truthful)
        self.assertTrue(lenient.is_truthful)
        self.assertGreater(len(strict.warnings), 0)
        self.assertLessEqual(len(lenient.warnings), len(strict.warnings))

    def test_missing_sections_are_handled(self):
        for overrides in ({"skills": None}, {"experience": []}, {"summary": None}):
            resume = with_changes(**overrides)
            self.assertTrue(validate_truthfulness(resume, resume).is_truthful)

    def test_single_education_object(self):
        resume = with_changes(education=BASE_RESUME["education"][0])
        self.assertTrue(validate_truthfulness(resume, resume).is_truthful)


class NarrowValidatorTests(unittest.TestCase):
    def test_experiences_only(self):
        self.assertTrue(validate_experiences_only(base_resume(), base_resume()))
        extra = dict(BASE_RESUME["experience"][0], company="New Company")
        self.assertFalse(
            validate_experiences_only(base_resume(), with_changes(experience=BASE_RESUME["experience"] + [extra]))
        )

    def test_skills_only(self):
        self.assertTrue(validate_skills_only(base_resume(), base_resume()))
        self.assertFalse(validate_skills_only(base_resume(), with_extra_skills(["Quantum Computing"])))
        self.assertTrue(
            validate_skills_only(
                base_resume(), with_extra_skills(["backend development"]), TruthfulnessOptions(allow_inference=True)
            )
        )

    def test_bullet_points_only(self):
        self.assertTrue(validate_bullet_points_only(base_resume(), base_resume()))
        self.assertFalse(
            validate_bullet_points_only(base_resume(), with_bullets(["Developed applications using Quantum Computing"]))
        )
        self.assertTrue(
            validate_bullet_points_only(
                base_resume(),
                with_bullets(["Developed backend services using Java and RESTful APIs"]),
                TruthfulnessOptions(allow_inference=True),
            )
        )


class InferencePatternTests(unittest.TestCase):
    def _only_skills(self, items):
        return with_changes(skills={"categories": [{"name": "Core", "items": items}]})

    def test_seed_specific_inferences(self):
        cases = (
            (["Java"], ["backend development", "server-side programming"]),
            (["React"], ["frontend development", "user interface"]),
            (["AWS"], ["cloud infrastructure", "cloud deployment"]),
            (["Python"], ["data science", "automation"]),
            (["Docker"], ["containerization"]),
        )
        for seed, added in cases:
            result = validate_truthfulness(self._only_skills(seed), self._only_skills(seed + added))
            self.assertEqual(result.details.skills.inferred_skills, added, seed)
            self.assertTrue(result.is_truthful, seed)

    def test_reverse_inference_from_related_term(self):
        result = validate_truthfulness(self._only_skills(["Python"]), self._only_skills(["Python", "Django"]))
        self.assertEqual(result.details.skills.inferred_skills, ["Django"])

    def test_custom_policy_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "policy.yaml"
            path.write_text("inferences:\n  docker: [kubernetes]\n", encoding="utf-8")
            policy = InferencePolicy(path)

            original = self._only_skills(["Docker"])
            enhanced = self._only_skills(["Docker", "Kubernetes"])
            result = validate_truthfulness(original, enhanced, policy=policy)

        self.assertTrue(result.is_truthful)
        self.assertEqual(policy.related_terms("Docker"), ("kubernetes",))

    def test_invalid_policy_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "policy.yaml"
            path.write_text("- just a list\n", encoding="utf-8")
            with self.assertRaises(RuntimeError):
                InferencePolicy(path)
            with self.assertRaises(RuntimeError):
                InferencePolicy(Path(tmp) / "missing.yaml")


class HelperTests(unittest.TestCase):
    def test_contains_phrase_respects_word_boundaries(self):
        self.assertTrue(contains_phrase("Java and Spring", "java"))
        self.assertFalse(contains_phrase("JavaScript only", "java"))
        self.assertTrue(contains_phrase("uses node.js daily", "Node.js"))

    def test_terms_related(self):
        self.assertTrue(terms_related("RESTful APIs", "restful apis"))
        self.assertTrue(terms_related("cloud infrastructure design", "cloud infrastructure"))
        self.assertFalse(terms_related("cloud", "cloud infrastructure"))

    def test_extract_metrics(self):
        metrics = extract_metrics("Cut costs by $1,200 and latency by 40% across 3x nodes")
        self.assertIn(("by $1,200", "1200"), metrics)
        self.assertIn(("40%", "40"), metrics)
        self.assertIn(("3x", "3"), metrics)

    def test_experience_years(self):
        self.assertEqual(experience_years(base_resume()), 3.0)
        ongoing = with_changes(experience=[dict(BASE_RESUME["experience"][0], endDate="Present")])
        self.assertEqual(experience_years(ongoing, today=date(2020, 12, 15)), 1.0)
        self.assertIsNone(experience_years(with_changes(experience=[])))


if __name__ == "__main__":
    unittest.main()
