import unittest
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient

from jobnexus.config import get_settings
from jobnexus.main import app
from jobnexus.services.document_parser import VISION_API_URL
from jobnexus.services.llm import LLMResponseError

from .helpers import SAMPLE_RESUME, register_user
from .test_resume_parser import RESUME_TEXT

JOB_DETAILS = {
    "title": "Senior Python Developer",
    "company": "Acme",
    "skills": ["Python", "FastAPI"],
    "description": "Build payment APIs.",
}


class ResumeParserApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        _, cls.headers = register_user(cls.client, "applicant")

    def _upload(self, filename, content, content_type):
        return self.client.post(
            "/api/resume-parser", files={"file": (filename, content, content_type)}, headers=self.headers
        )

    def test_plain_text_resume_is_parsed_heuristically(self):
        response = self._upload("resume.txt", RESUME_TEXT.encode(), "text/plain")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["method"], "heuristic")
        self.assertTrue(body["id"].startswith("resume_"))
        self.assertEqual(body["data"]["personal_info"]["name"], "Jane Doe")
        self.assertEqual(body["data"]["skills"], ["Python", "SQL", "Docker"])

    def test_type_is_guessed_from_the_extension(self):
        response = self._upload("resume.txt", RESUME_TEXT.encode(), "application/octet-stream")
        self.assertEqual(response.status_code, 200)

    def test_rejected_uploads(self):
        self.assertEqual(self._upload("tool.exe", b"MZ", "application/x-msdownload").status_code, 400)
        self.assertEqual(self._upload("empty.txt", b"", "text/plain").status_code, 400)

        with patch.object(get_settings(), "max_upload_mb", 0):
            self.assertEqual(self._upload("resume.txt", b"abc", "text/plain").status_code, 413)

    def test_unreadable_image_is_422(self):
        failing = AsyncMock(return_value=httpx.Response(500, request=httpx.Request("POST", VISION_API_URL)))
        with patch.object(get_settings(), "google_cloud_api_key", "vision-key"), \
                patch("httpx.AsyncClient.post", failing):
            response = self._upload("scan.png", b"\x89PNG", "image/png")

        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["detail"], "Failed to extract text from image with Cloud Vision API")

    def test_requires_authentication(self):
        response = self.client.post("/api/resume-parser", files={"file": ("r.txt", b"abc", "text/plain")})
        self.assertEqual(response.status_code, 401)


class AiJsonApiTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.client = TestClient(app)
        _, cls.headers = register_user(cls.client, "applicant")

    def test_enhancer_falls_back_without_gemini(self):
        response = self.client.post(
            "/api/resume-enhancer", json={"resume": SAMPLE_RESUME, "job": JOB_DETAILS}, headers=self.headers
        )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["method"], "fallback")
        self.assertEqual(body["data"]["skills"][0], "Python")
        self.assertIn("Senior Python Developer", body["data"]["summary"])

    def test_enhancer_accepts_camel_case_resumes(self):
        resume = {
            "personalInfo": {"name": "Jane Doe", "title": "Backend Engineer"},
            "summary": "Backend engineer building APIs.",
            "experience": [{"title": "Software Engineer", "company": "Initech", "startDate": "2019-01", "endDate": "Present"}],
            "skills": ["SQL", "Python"],
        }
        job = {**JOB_DETAILS, "experienceLevel": "Senior"}
        response = self.client.post("/api/resume-enhancer", json={"resume": resume, "job": job}, headers=self.headers)
        self.assertEqual(response.status_code, 200)

        data = response.json()["data"]
        self.assertEqual(data["personal_info"]["name"], "Jane Doe")
        self.assertEqual(data["experience"][0]["start_date"], "2019-01")
        self.assertEqual(data["experience"][0]["end_date"], "Present")
        self.assertNotIn("personalInfo", data)

    def test_match_requires_both_inputs(self):
        response = self.client.post("/api/resume-match", json={"resume_data": SAMPLE_RESUME}, headers=self.headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json()["detail"], "Missing resume data or job details")

    def test_match_without_gemini_is_503(self):
        response = self.client.post(
            "/api/resume-match", json={"resume_data": SAMPLE_RESUME, "job_details": JOB_DETAILS}, headers=self.headers
        )
        self.assertEqual(response.status_code, 503)

    def test_match_result_is_clamped_and_snake_cased(self):
        answer = {
            "overallScore": 140,
            "matchLevel": "Strong Match",
            "keyMatchingFactors": [{"factor": "Python", "score": -5, "explanation": "Core skill"}],
            "cultureFit": {"score": "70"},
            "summary": None,
        }
        with patch("jobnexus.services.resume_match.generate_json", AsyncMock(return_value=answer)):
            response = self.client.post(
                "/api/resume-match",
                json={"resume_data": SAMPLE_RESUME, "job_details": JOB_DETAILS},
                headers=self.headers,
            )
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertEqual(body["overall_score"], 100)
        self.assertEqual(body["key_matching_factors"][0]["score"], 0)
        self.assertEqual(body["culture_fit"]["score"], 70)
        self.assertEqual(body["summary"]["overall_assessment"], "")

    def test_match_with_unusable_model_output_is_502(self):
        mock = AsyncMock(side_effect=LLMResponseError("Failed to extract JSON from Gemini API response"))
        with patch("jobnexus.services.resume_match.generate_json", mock):
            response = self.client.post(
                "/api/resume-match",
                json={"resume_data": SAMPLE_RESUME, "job_details": JOB_DETAILS},
                headers=self.headers,
            )
        self.assertEqual(response.status_code, 502)

    def test_job_analyzer(self):
        self.assertEqual(
            self.client.post("/api/job-analyzer", json={"description": "  "}, headers=self.headers).status_code, 400
        )
        self.assertEqual(
            self.client.post("/api/job-analyzer", json={"description": "Build APIs"}, headers=self.headers).status_code,
            503,
        )

        answer = {
            "skills": ["Python", "REST"],
            "improvementTips": ["Add a salary range"],
            "qualityScore": 64,
            "jobSimulation": "You start the day reviewing pull requests.",
            "keyQualifications": ["3+ years backend"],
        }
        with patch("jobnexus.services.job_analyzer.generate_json", AsyncMock(return_value=answer)):
            response = self.client.post("/api/job-analyzer", json={"description": "Build APIs"}, headers=self.headers)

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {
            "skills": ["Python", "REST"],
            "improvement_tips": ["Add a salary range"],
            "quality_score": 64,
            "job_simulation": "You start the day reviewing pull requests.",
            "key_qualifications": ["3+ years backend"],
            "success": True,
        })
