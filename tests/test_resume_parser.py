import unittest

from jobnexus.services.resume_parser import heuristic_parse_resume, parse_resume, transform_resume_data

RESUME_TEXT = """Jane Doe
jane.doe@example.com | +1 555 123 4567
Summary
Backend engineer focused on APIs.
Experience
Senior Engineer at Acme Corp, Jan 2020 - Present
* Built billing APIs
* Led migration to FastAPI
Education
BSc Computer Science, State University, 2012 - 2016
Skills
Languages: Python, SQL; Docker"""


class HeuristicParseTests(unittest.TestCase):
    def setUp(self):
        self.resume = heuristic_parse_resume(RESUME_TEXT)

    def test_contact_details(self):
        info = self.resume.personal_info
        self.assertEqual(info.name, "Jane Doe")
        self.assertEqual(info.email, "jane.doe@example.com")
        self.assertEqual(info.phone, "+1 555 123 4567")
        self.assertEqual(info.title, "Senior Engineer")

    def test_experience_heading_and_bullets(self):
        self.assertEqual(len(self.resume.experience), 1)
        entry = self.resume.experience[0]
        self.assertEqual(entry.title, "Senior Engineer")
        self.assertEqual(entry.company, "Acme Corp")
        self.assertEqual(entry.start_date, "Jan 2020")
        self.assertEqual(entry.end_date, "Present")
        self.assertEqual(entry.description, "Built billing APIs\nLed migration to FastAPI")

    def test_education(self):
        self.assertEqual(len(self.resume.education), 1)
        entry = self.resume.education[0]
        self.assertEqual(entry.degree, "BSc Computer Science")
        self.assertEqual(entry.institution, "State University")
        self.assertEqual((entry.start_date, entry.end_date), ("2012", "2016"))

    def test_summary_and_skills(self):
        self.assertEqual(self.resume.summary, "Backend engineer focused on APIs.")
        self.assertEqual(self.resume.skills, ["Python", "SQL", "Docker"])

    def test_text_without_sections(self):
        resume = heuristic_parse_resume("Just a name")
        self.assertEqual(resume.personal_info.name, "Just a name")
        self.assertEqual(resume.experience, [])
        self.assertEqual(resume.skills, [])


class TransformTests(unittest.TestCase):
    def test_model_answer_is_mapped_onto_resume_data(self):
        resume = transform_resume_data({
            "name": "Jane Doe",
            "title": "Engineer",
            "skills": ["Python"],
            "workExperience": [
                {"company": "Acme", "position": "Engineer", "startDate": "2020-01", "current": True},
                "not an entry",
            ],
            "education": [{"institution": "State University", "degree": "BSc", "endDate": "2016-06"}],
            "projects": [{"name": "Billing", "skills": ["Python", ""]}],
        })
        self.assertEqual(resume.personal_info.name, "Jane Doe")
        self.assertEqual(len(resume.experience), 1)
        self.assertEqual(resume.experience[0].title, "Engineer")
        self.assertEqual(resume.experience[0].end_date, "Present")
        self.assertEqual(resume.education[0].end_date, "2016-06")
        self.assertEqual(resume.projects[0].skills, ["Python"])


class ParseResumeTests(unittest.IsolatedAsyncioTestCase):
    async def test_without_gemini_uses_heuristics(self):
        data, method = await parse_resume(RESUME_TEXT)
        self.assertEqual(method, "heuristic")
        self.assertEqual(data.personal_info.name, "Jane Doe")
