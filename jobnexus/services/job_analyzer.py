"""
Job Analyzer - reviews a job description and suggests improvements.
"""
import logging

from pydantic import ValidationError

from .llm import generate_json, LLMResponseError
from ..schemas.resume import JobAnalysis

logger = logging.getLogger(__name__)


JOB_ANALYZER_PROMPT = """
You are an AI job posting analyzer and enhancer. Your task is to analyze a job description and provide useful feedback and enhancements.

Please analyze the following job description and provide:
1. A list of 5-10 skills that are relevant to this job but may not be explicitly mentioned
2. A list of 3-5 improvement tips to make the job posting more attractive
3. A quality score (0-100) based on the completeness and clarity of the description
4. A job simulation that describes what a typical day might look like in this role (about 150-200 words)
5. A list of 5-7 key qualifications for this role extracted from the job description

Return ONLY a JSON object with the following structure:
{
  "skills": ["skill1", "skill2", ...],
  "improvementTips": ["tip1", "tip2", ...],
  "qualityScore": number,
  "jobSimulation": "string",
  "keyQualifications": ["qualification1", "qualification2", ...]
}

Here is the job description to analyze:
"""


async def analyze_job_description(description: str) -> JobAnalysis:
    raw = await generate_json(
        JOB_ANALYZER_PROMPT + description,
        temperature=0.2,
        top_k=40,
        top_p=0.8,
        max_output_tokens=2048,
    )
    try:
        return JobAnalysis.model_validate(raw)
    except ValidationError as e:
        raise LLMResponseError("Gemini API returned an invalid job analysis") from e
