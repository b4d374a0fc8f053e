"""
Resume Enhancer - tailors a structured resume to a job posting.

Gemini rewrites the resume when available. If the call fails, returns no
JSON or returns something that does not look like a resume, a deterministic
keyword-based enhancement is applied instead, so enhancement never fails.
"""
import copy
import json
import logging
from collections import Counter
from typing import List, Tuple

from pydantic import ValidationError

from .llm import generate_json, LLMNotConfiguredError, LLMResponseError
from ..schemas.resume import ResumeData, JobContext

logger = logging.getLogger(__name__)

METHOD_AI = "gemini-ai"
METHOD_FALLBACK = "fallback"

RESUME_ENHANCER_PROMPT = """
You are an expert resume optimizer. I'm providing you with a person's resume and a job description.
Your task is to enhance the resume to better align with the job requirements.

Please analyze both the resume and job requirements carefully and return a modified version of the resume that:

1. Better emphasizes skills that match the job requirements
2. Tailors the professional summary to highlight relevant experience
3. Rephrases work experience descriptions to better match job requirements
4. Prioritizes the most relevant skills, experiences, and achievements
5. Adds quantifiable achievements to experience descriptions where possible
6. Uses relevant keywords from the job description
7. Creates a more compelling professional story

The goal is to optimize the resume without inventing false information. Only work with the facts provided, but phrase them in a way that maximizes appeal for this specific job.

For each work experience entry, try to highlight specific achievements and use metrics where possible.
Make sure to maintain the EXACT SAME DATA STRUCTURE as the input resume.

Return ONLY a JSON object that follows exactly the same structure as the original resume, with your enhancements applied.

Here is the resume to enhance:
{resume}

Here is the job information:
{job}

Your response should contain only the enhanced resume JSON with no other text and follow the exact same structure as the original.
"""


def validate_resume_structure(data: dict) -> bool:
    """
    Check that a model answer still has the resume shape. A missing summary
    is filled in with an empty string.
    """
    if (
        not isinstance(data.get("personal_info"), dict)
        or not isinstance(data.get("skills"), list)
        or not isinstance(data.get("experience"), list)
    ):
        logger.info("Enhanced resume failed validation: missing required properties")
        return False

    if data["experience"]:
        first = data["experience"][0]
        if (
            not isinstance(first, dict)
            or not first.get("title")
            or not first.get("company")
            or "description" not in first
        ):
            logger.info("Enhanced resume failed validation: invalid experience structure")
            return False

    if not data.get("summary"):
        data["summary"] = ""
    return True


# ============================================================================
# Fallback heuristics
# ============================================================================

def _long_words(text: str) -> List[str]:
    return [word for word in text.split() if len(word) > 3]


def extract_job_keywords(job: JobContext) -> List[str]:
    """
    Keywords in priority order: job skills, title words, requirement words,
    then the ten most frequent description words.
    """
    keywords: List[str] = list(job.skills)

    if job.title:
        keywords.extend(_long_words(job.title))

    if job.requirements:
        words = _long_words(" ".join(job.requirements))
        keywords.extend([w for w in words if w not in keywords])

    if job.description:
        words = [w for w in _long_words(job.description) if w not in keywords]
        # most_common keeps first-seen order for equal counts
        keywords.extend(word for word, _ in Counter(words).most_common(10))

    unique: List[str] = []
    for keyword in keywords:
        if keyword and keyword not in unique:
            unique.append(keyword)
    return unique


def enhance_summary(summary: str, job: JobContext, keywords: List[str]) -> str:
    if not summary:
        return summary

    if len(summary) < 50:
        return (
            f"Experienced professional with expertise in {', '.join(keywords[:3])}, "
            f"seeking the {job.title} position at {job.company}. {summary}"
        )

    if job.title not in summary and job.company not in summary:
        return f"{summary} Seeking to leverage these skills as a {job.title} at {job.company}."

    return summary


def _matches(skill: str, keyword: str) -> bool:
    skill, keyword = skill.lower(), keyword.lower()
    return skill in keyword or keyword in skill


def enhance_skills(skills: List[str], keywords: List[str]) -> List[str]:
    """Move skills that match a job keyword to the front, keeping relative order."""
    matching = [s for s in skills if any(_matches(s, k) for k in keywords)]
    remaining = [s for s in skills if s not in matching]
    return matching + remaining


def enhance_description(description: str, keywords: List[str]) -> str:
    if not description:
        return ""

    lowered = description.lower()
    if not keywords or any(k.lower() in lowered for k in keywords):
        return description

    return f"{description} Developed expertise in {', '.join(keywords[:3])} through this role."


def apply_fallback_enhancement(resume: ResumeData, job: JobContext) -> ResumeData:
    logger.info("Applying fallback resume enhancement")
    enhanced = copy.deepcopy(resume.model_dump())
    keywords = extract_job_keywords(job)

    if enhanced["summary"]:
        enhanced["summary"] = enhance_summary(enhanced["summary"], job, keywords)

    if enhanced["skills"]:
        enhanced["skills"] = enhance_skills(enhanced["skills"], keywords)

    enhanced["experience"] = [
        {
            **entry,
            "description": enhance_description(entry.get("description", ""), keywords),
            "achievements": entry.get("achievements") or [],
        }
        for entry in enhanced["experience"]
    ]

    return ResumeData.model_validate(enhanced)


async def enhance_resume(resume: ResumeData, job: JobContext) -> Tuple[ResumeData, str]:
    """Return the enhanced resume and the method used ("gemini-ai" or "fallback")."""
    logger.info(
        "Enhancing resume: experience=%d skills=%d summary=%s job_skills=%d",
        len(resume.experience), len(resume.skills), bool(resume.summary), len(job.skills),
    )

    prompt = RESUME_ENHANCER_PROMPT.format(
        resume=json.dumps(resume.model_dump()),
        job=json.dumps(job.model_dump()),
    )

    try:
        raw = await generate_json(
            prompt,
            temperature=0.2,
            top_k=40,
            top_p=0.8,
            max_output_tokens=4096,
        )
    except LLMNotConfiguredError:
        return apply_fallback_enhancement(resume, job), METHOD_FALLBACK
    except LLMResponseError as e:
        logger.warning(f"Gemini enhancement failed: {e}")
        return apply_fallback_enhancement(resume, job), METHOD_FALLBACK

    if not validate_resume_structure(raw):
        return apply_fallback_enhancement(resume, job), METHOD_FALLBACK

    try:
        return ResumeData.model_validate(raw), METHOD_AI
    except ValidationError:
        logger.warning("Enhanced resume did not validate, using fallback enhancement")
        return apply_fallback_enhancement(resume, job), METHOD_FALLBACK
