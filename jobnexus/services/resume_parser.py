"""
Resume Parser Service - turns extracted resume text into ResumeData.
Gemini does the structuring when configured; a section-based heuristic
parse is used otherwise.
"""
import logging
import re
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .llm import generate_json, LLMNotConfiguredError, LLMResponseError
from .document_parser import extract_resume_sections
from ..schemas.resume import (
    ResumeData, PersonalInfo, ExperienceEntry, EducationEntry,
    CertificationEntry, ProjectEntry
)

logger = logging.getLogger(__name__)


RESUME_PARSER_PROMPT = """
You are a resume parsing expert. I'm providing you with text extracted from a resume.
Extract all structured information and return ONLY a JSON object with the following structure:
{
  "name": "Full Name",
  "title": "Professional Title or what position they seem most suited for based on experience",
  "email": "email@example.com",
  "phone": "phone number",
  "location": "City, State/Province, Country",
  "summary": "Professional summary (max 3 sentences)",
  "skills": ["Skill 1", "Skill 2", ...],
  "workExperience": [
    {
      "company": "Company Name",
      "position": "Job Title",
      "startDate": "YYYY-MM",
      "endDate": "YYYY-MM",
      "current": boolean,
      "description": "Job description"
    }
  ],
  "education": [
    {
      "institution": "University Name",
      "degree": "Degree Type",
      "field": "Field of Study",
      "startDate": "YYYY-MM",
      "endDate": "YYYY-MM",
      "current": boolean
    }
  ],
  "projects": [
    {
      "name": "Project Name",
      "description": "Project description",
      "skills": ["Skill 1", "Skill 2", ...],
      "url": "Project URL"
    }
  ],
  "certifications": [
    {
      "name": "Certification Name",
      "issuer": "Issuing Organization",
      "date": "YYYY-MM",
      "url": "Verification URL"
    }
  ]
}

If you can't find information for a field, use empty strings or empty arrays as appropriate.
Parse dates in YYYY-MM format when possible.
For 'current' fields, set to true if the text suggests this is their current position/education.
Your response should be ONLY valid JSON with no other text.

Here is the content to extract information from:
"""


def _text(value) -> str:
    if value is None:
        return ""
    return str(value).strip()


def _end_date(item: dict) -> str:
    return "Present" if item.get("current") else _text(item.get("endDate"))


def _dicts(value) -> List[dict]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def transform_resume_data(raw: dict) -> ResumeData:
    """Map the model's flat answer onto the ResumeData structure."""
    return ResumeData(
        personal_info=PersonalInfo(
            name=_text(raw.get("name")),
            title=_text(raw.get("title")),
            email=_text(raw.get("email")),
            phone=_text(raw.get("phone")),
            location=_text(raw.get("location")),
        ),
        summary=_text(raw.get("summary")),
        experience=[
            ExperienceEntry(
                title=_text(item.get("position")),
                company=_text(item.get("company")),
                start_date=_text(item.get("startDate")),
                end_date=_end_date(item),
                description=_text(item.get("description")),
                achievements=[],
            )
            for item in _dicts(raw.get("workExperience"))
        ],
        education=[
            EducationEntry(
                degree=_text(item.get("degree")),
                institution=_text(item.get("institution")),
                field=_text(item.get("field")),
                start_date=_text(item.get("startDate")),
                end_date=_end_date(item),
                gpa="",
            )
            for item in _dicts(raw.get("education"))
        ],
        skills=raw.get("skills") if isinstance(raw.get("skills"), list) else [],
        certifications=[
            CertificationEntry(
                name=_text(item.get("name")),
                issuer=_text(item.get("issuer")),
                date=_text(item.get("date")),
                url=_text(item.get("url")),
            )
            for item in _dicts(raw.get("certifications"))
        ],
        projects=[
            ProjectEntry(
                name=_text(item.get("name")),
                description=_text(item.get("description")),
                skills=[_text(s) for s in item.get("skills") or [] if _text(s)],
                url=_text(item.get("url")),
            )
            for item in _dicts(raw.get("projects"))
        ],
    )


async def parse_resume_text(text: str) -> ResumeData:
    """Structure resume text with Gemini."""
    raw = await generate_json(
        RESUME_PARSER_PROMPT + text,
        temperature=0.2,
        top_k=40,
        top_p=0.8,
        max_output_tokens=2048,
    )
    try:
        return transform_resume_data(raw)
    except ValidationError as e:
        raise LLMResponseError("Gemini API returned an unexpected resume structure") from e


# ============================================================================
# Heuristic fallback
# ============================================================================

EMAIL_RE = re.compile(r"[\w.+-]+@[\w-]+(?:\.[\w-]+)+")
PHONE_RE = re.compile(r"\+?\d[\d\s().-]{7,}\d")
DATE_RANGE_RE = re.compile(
    r"((?:[A-Za-z]{3,9}\.?\s+)?\d{4})\s*(?:-|–|to)\s*((?:[A-Za-z]{3,9}\.?\s+)?\d{4}|Present|Current)",
    re.IGNORECASE,
)
HEADING_SPLIT_RE = re.compile(r"^(.*?)(?:\s+(?:at|@|\||-|–)\s+|\s*,\s+)(.*)$")
BULLET_PREFIX = ("*", "-", "•")


def _is_bullet(line: str) -> bool:
    return line.startswith(BULLET_PREFIX)


def _strip_bullet(line: str) -> str:
    return line.lstrip("*-• ").strip()


def _split_heading(line: str) -> Tuple[str, str, str, str]:
    """'Engineer at Acme, Jan 2020 - Present' -> (Engineer, Acme, Jan 2020, Present)"""
    start = end = ""
    match = DATE_RANGE_RE.search(line)
    if match:
        start, end = match.group(1).strip(), match.group(2).strip()
        if end.lower() == "current":
            end = "Present"
        line = (line[:match.start()] + line[match.end():]).strip(" ,|-–()")

    heading = HEADING_SPLIT_RE.match(line)
    if heading:
        return heading.group(1).strip(), heading.group(2).strip(" ,|-–"), start, end
    return line, "", start, end


def _entries(body: str) -> List[Tuple[str, List[str]]]:
    """Group a section body into (heading, bullet lines)."""
    entries: List[Tuple[str, List[str]]] = []
    for line in body.split("\n"):
        line = line.strip()
        if not line:
            continue
        if _is_bullet(line) and entries:
            entries[-1][1].append(_strip_bullet(line))
        elif _is_bullet(line):
            entries.append(("", [_strip_bullet(line)]))
        else:
            entries.append((line, []))
    return entries


def _split_skills(body: str) -> List[str]:
    skills: List[str] = []
    for part in re.split(r"[,;|\n]", body):
        skill = _strip_bullet(part)
        # "Languages: Python" -> "Python"
        if ":" in skill:
            skill = skill.split(":", 1)[1].strip()
        if skill and skill not in skills:
            skills.append(skill)
    return skills


def heuristic_parse_resume(text: str) -> ResumeData:
    """Best-effort structure from section headers and regexes."""
    sections = extract_resume_sections(text)
    lines = [line.strip() for line in text.split("\n") if line.strip()]

    email_match = EMAIL_RE.search(text)
    phone_match = PHONE_RE.search(text)

    experience = []
    for heading, bullets in _entries(sections.get("experience", "")):
        title, company, start, end = _split_heading(heading)
        experience.append(ExperienceEntry(
            title=title,
            company=company,
            start_date=start,
            end_date=end,
            description="\n".join(bullets),
        ))

    education = []
    for heading, bullets in _entries(sections.get("education", "")):
        degree, institution, start, end = _split_heading(heading)
        education.append(EducationEntry(
            degree=degree,
            institution=institution,
            start_date=start,
            end_date=end,
        ))

    projects = []
    for heading, bullets in _entries(sections.get("projects", "")):
        projects.append(ProjectEntry(name=heading, description="\n".join(bullets)))

    certifications = [
        CertificationEntry(name=_strip_bullet(line))
        for line in sections.get("certifications", "").split("\n")
        if _strip_bullet(line)
    ]

    return ResumeData(
        personal_info=PersonalInfo(
            name=lines[0] if lines else "",
            title=experience[0].title if experience else "",
            email=email_match.group(0) if email_match else "",
            phone=phone_match.group(0).strip() if phone_match else "",
        ),
        summary=" ".join(sections.get("summary", "").split("\n")).strip(),
        experience=experience,
        education=education,
        skills=_split_skills(sections.get("skills", "")),
        certifications=certifications,
        projects=projects,
    )


async def parse_resume(text: str) -> Tuple[ResumeData, str]:
    """
    Structure resume text, returning the data and the method used
    ("gemini" or "heuristic").
    """
    try:
        return await parse_resume_text(text), "gemini"
    except LLMNotConfiguredError:
        logger.info("Gemini not configured, using heuristic resume parsing")
    except LLMResponseError as e:
        logger.warning(f"Gemini resume parsing failed, using heuristic parsing: {e}")
    return heuristic_parse_resume(text), "heuristic"
