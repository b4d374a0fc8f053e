import unittest
from unittest.mock import AsyncMock, patch

from jobnexus.schemas.resume import ResumeData, JobContext
from jobnexus.services.llm import LLMNotConfiguredError, LLMResponseError
from jobnexus.services.resume_enhancer import (
    METHOD_AI, METHOD_FALLBACK,
    apply_fallback_enhancement, enhance_description, enhance_resume, enhance_skills,
    enhance_summary, extract_job_keywords, validate_resume_structure,
)

from .helpers import SAMPLE_RESUME


def _job(**overrides) -> JobContext:
    data = {
        "title": "Senior Python Developer",
        "company": "Acme",
        "skills": ["Python", "FastAPI"],
        "requirements": ["5 years building APIs"],
        "description": "Own payments services. Payments experience wanted.",
    }
    data.update(overrides)
    return JobContext(**data)


class KeywordExtractionTests(unittest.TestCase):
    def test_skills_come_first_then_title_and_requirement_words(self):
        keywords = extract_job_keywords(_job())
        self.assertEqual(keywords[:4], ["Python", "FastAPI", "Senior", "Developer"])
        self.assertIn("building", keywords)
        self.assertIn("APIs", keywords)

    def test_keywords_are_unique_and_skip_short_words(self):
        keywords = extract_job_keywords(_job())
        self.assertEqual(len(keywords), len(set(keywords)))
        self.assertNotIn("5", keywords)
        self.assertNotIn("Own", keywords)

    def test_requirements_accept_newline_separated_text(self):
        job = JobContext(title="Dev", requirements="Kubernetes clusters\nTerraform modules")
        self.assertEqual(job.requirements, ["Kubernetes clusters", "Terraform modules"])


class FallbackHeuristicTests(unittest.TestCase):
    def test_short_summary_is_rewritten_around_the_job(self):
        summary = enhance_summary("Backend engineer.", _job(), ["Python", "FastAPI", "Senior"])
        self.assertEqual(
            summary,
            "Experienced professional with expertise in Python, FastAPI, Senior, "
            "seeking the Senior Python Developer position at Acme. Backend engineer."
        )

    def test_long_summary_gets_a_closing_sentence(self):
        original = "Engineer with eight years of experience shipping reliable backend services."
        summary = enhance_summary(original, _job(), ["Python"])
        self.assertEqual(
            summary,
            original + " Seeking to leverage these skills as a Senior Python Developer at Acme."
        )

    def test_summary_naming_the_company_is_kept(self):
        original = "Engineer with eight years of experience, currently looking at roles with Acme."
        self.assertEqual(enhance_summary(original, _job(), ["Python"]), original)

    def test_empty_summary_stays_empty(self):
        self.assertEqual(enhance_summary("", _job(), ["Python"]), "")

    def test_matching_skills_move_to_the_front(self):
        skills = enhance_skills(["Docker", "python", "Go"], ["Python", "FastAPI"])
        self.assertEqual(skills, ["python", "Docker", "Go"])

    def test_description_without_keywords_gets_expertise_sentence(self):
        description = enhance_description("Maintained billing services", ["Python", "FastAPI", "Docker", "AWS"])
        self.assertEqual(
            description,
            "Maintained billing services Developed expertise in Python, FastAPI, Docker through this role."
        )

    def test_description_mentioning_a_keyword_is_unchanged(self):
        description = "Built Python services"
        self.assertEqual(enhance_description(description, ["python"]), description)

    def test_description_without_any_keywords_available_is_unchanged(self):
        self.assertEqual(enhance_description("Built services", []), "Built services")
        self.assertEqual(enhance_description("", ["Python"]), "")

    def test_fallback_keeps_structure_and_counts(self):
        resume = ResumeData.model_validate(SAMPLE_RESUME)
        enhanced = apply_fallback_enhancement(resume, _job())

        self.assertEqual(len(enhanced.experience), 1)
        self.assertEqual(enhanced.personal_info.name, "Jane Doe")
        self.assertEqual(enhanced.skills[0], "Python")
        self.assertEqual(sorted(enhanced.skills), sorted(resume.skills))
        self.assertIn("Developed expertise in", enhanced.experience[0].description)
        self.assertEqual(enhanced.experience[0].achievements, [])
        # the input is not mutated
        self.assertEqual(resume.experience[0].description, "Maintained billing services")


class StructureValidationTests(unittest.TestCase):
    def test_valid_structure_gets_default_summary(self):
        data = {"personal_info": {}, "skills": [], "experience": []}
        self.assertTrue(validate_resume_structure(data))
        self.assertEqual(data["summary"], "")

    def test_missing_sections_fail(self):
        self.assertFalse(validate_resume_structure({"personal_info": {}, "skills": []}))
        self.assertFalse(validate_resume_structure({"skills": [], "experience": []}))

    def test_experience_entries_need_title_company_and_description(self):
        data = {
            "personal_info": {},
            "skills": [],
            "experience": [{"title": "Engineer", "company": ""}],
        }
        self.assertFalse(validate_resume_structure(data))


class EnhanceResumeTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.resume = ResumeData.model_validate(SAMPLE_RESUME)
        self.job = _job()

    async def test_falls_back_when_gemini_is_not_configured(self):
        with patch(
            "jobnexus.services.resume_enhancer.generate_json",
            AsyncMock(side_effect=LLMNotConfiguredError("no key")),
        ):
            data, method = await enhance_resume(self.resume, self.job)
        self.assertEqual(method, METHOD_FALLBACK)
        self.assertEqual(data.skills[0], "Python")

    async def test_falls_back_on_bad_model_output(self):
        with patch(
            "jobnexus.services.resume_enhancer.generate_json",
            AsyncMock(side_effect=LLMResponseError("not json")),
        ):
            _, method = await enhance_resume(self.resume, self.job)
        self.assertEqual(method, METHOD_FALLBACK)

    async def test_falls_back_when_model_changes_the_shape(self):
        with patch(
            "jobnexus.services.resume_enhancer.generate_json",
            AsyncMock(return_value={"resume": "rewritten"}),
        ):
            _, method = await enhance_resume(self.resume, self.job)
        self.assertEqual(method, METHOD_FALLBACK)

    async def test_uses_model_answer_when_valid(self):
        answer = dict(SAMPLE_RESUME, summary="Python engineer ready for Acme.")
        mock = AsyncMock(return_value=answer)
        with patch("jobnexus.services.resume_enhancer.generate_json", mock):
            data, method = await enhance_resume(self.resume, self.job)

        self.assertEqual(method, METHOD_AI)
        self.assertEqual(data.summary, "Python engineer ready for Acme.")
        prompt = mock.await_args.args[0]
        self.assertIn("Senior Python Developer", prompt)
        self.assertIn("Maintained billing services", prompt)
