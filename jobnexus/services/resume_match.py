"""
Resume Match - scores how well a candidate's resume fits a job posting.
"""
import json
import logging

from pydantic import ValidationError

from .llm import generate_json, LLMResponseError
from ..schemas.resume import ResumeMatchResult

logger = logging.getLogger(__name__)


RESUME_MATCH_PROMPT = """
You are an expert recruiter analyzing how well a candidate matches a job position.

Given a resume and job details, analyze and provide a detailed match assessment.
Return ONLY a JSON object with the following structure:

{
  "overallScore": <number between 0-100>,
  "matchLevel": "<Excellent Match|Strong Match|Good Match|Fair Match|Poor Match>",
  "keyMatchingFactors": [
    {"factor": "<factor name>", "score": <number between 0-100>, "explanation": "<brief explanation>"}
  ],
  "strengths": [
    {"title": "<strength title>", "description": "<detailed description>", "relevantExperience": ["<specific experience from resume>"]}
  ],
  "gaps": [
    {"requirement": "<missing requirement>", "importance": "<High|Medium|Low>", "suggestion": "<recommendation to address gap>"}
  ],
  "skillsAnalysis": {
    "required": [
      {"skill": "<skill name>", "required": true, "hasSkill": boolean, "proficiency": "<Expert|Advanced|Intermediate|Basic|None>"}
    ],
    "preferred": [
      {"skill": "<skill name>", "required": false, "hasSkill": boolean, "proficiency": "<Expert|Advanced|Intermediate|Basic|None>"}
    ]
  },
  "experienceAnalysis": {
    "totalYears": <number>,
    "relevantYears": <number>,
    "matchesRequirement": boolean,
    "experienceLevel": "<Junior|Mid-Level|Senior|Executive>",
    "relevantRoles": [
      {"company": "<company name>", "position": "<position>", "relevanceScore": <number between 0-100>, "keyContributions": ["<contribution 1>", "<contribution 2>"]}
    ]
  },
  "educationAnalysis": {
    "meetsRequirements": boolean,
    "educationScore": <number between 0-100>,
    "relevantDegrees": [
      {"degree": "<degree name>", "institution": "<institution>", "relevance": "<High|Medium|Low>"}
    ]
  },
  "cultureFit": {
    "score": <number between 0-100>,
    "indicators": ["<indicator 1>", "<indicator 2>"],
    "assessments": ["<assessment 1>", "<assessment 2>"]
  },
  "recommendations": {
    "forRecruiter": [
      {"action": "<recommended action>", "reasoning": "<why this is recommended>", "priority": "<High|Medium|Low>"}
    ],
    "forCandidate": [
      {"improvement": "<suggested improvement>", "benefit": "<how this will help>", "timeline": "<Immediate|Short-term|Long-term>"}
    ]
  },
  "summary": {
    "overallAssessment": "<2-3 sentence executive summary>",
    "topStrengths": ["<strength 1>", "<strength 2>", "<strength 3>"],
    "topConcerns": ["<concern 1>", "<concern 2>", "<concern 3>"],
    "recommendation": "<Strongly Recommend|Recommend|Consider|Not Recommended>"
  }
}
"""


async def analyze_resume_match(resume_data: dict, job_details: dict) -> ResumeMatchResult:
    """
    Ask Gemini for a structured match assessment.

    Raises LLMNotConfiguredError / LLMResponseError; there is no heuristic
    fallback for scoring.
    """
    prompt = (
        RESUME_MATCH_PROMPT
        + "\nResume Data:\n" + json.dumps(resume_data, indent=2, default=str)
        + "\n\nJob Details:\n" + json.dumps(job_details, indent=2, default=str)
    )

    raw = await generate_json(
        prompt,
        temperature=0.3,
        top_k=40,
        top_p=0.9,
        max_output_tokens=4096,
    )

    try:
        result = ResumeMatchResult.model_validate(raw)
    except ValidationError as e:
        raise LLMResponseError("Gemini API returned an invalid match assessment") from e

    logger.info(f"Resume match scored {result.overall_score:.0f} ({result.match_level})")
    return result
