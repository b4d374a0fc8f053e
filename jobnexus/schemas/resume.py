"""
Structured resume and AI analysis schemas shared by the parser, enhancer,
matcher and job analyzer.
"""
from typing import List, Optional, Any
from pydantic import AliasGenerator, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class _Lenient(BaseModel):
    """LLM output often carries nulls where we want the field default."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {k: v for k, v in data.items() if v is not None}
        return data


class _CamelLenient(_Lenient):
    """Accepts camelCase or snake_case keys; always serializes snake_case."""
    model_config = ConfigDict(
        alias_generator=AliasGenerator(validation_alias=to_camel),
        populate_by_name=True
    )


# ============================================================================
# Structured resume
# ============================================================================

class PersonalInfo(_CamelLenient):
    name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""


class ExperienceEntry(_CamelLenient):
    title: str = ""
    company: str = ""
    start_date: str = ""
    end_date: str = ""
    description: str = ""
    achievements: List[str] = Field(default_factory=list)


class EducationEntry(_CamelLenient):
    degree: str = ""
    institution: str = ""
    field: str = ""
    start_date: str = ""
    end_date: str = ""
    gpa: str = ""


class CertificationEntry(_CamelLenient):
    name: str = ""
    issuer: str = ""
    date: str = ""
    url: str = ""


class ProjectEntry(_CamelLenient):
    name: str = ""
    description: str = ""
    skills: List[str] = Field(default_factory=list)
    url: str = ""


class ResumeData(_CamelLenient):
    """Complete structured resume"""
    personal_info: PersonalInfo = Field(default_factory=PersonalInfo)
    summary: str = ""
    experience: List[ExperienceEntry] = Field(default_factory=list)
    education: List[EducationEntry] = Field(default_factory=list)
    skills: List[str] = Field(default_factory=list)
    certifications: List[CertificationEntry] = Field(default_factory=list)
    projects: List[ProjectEntry] = Field(default_factory=list)

    @field_validator("skills", mode="before")
    @classmethod
    def _skill_names(cls, value):
        # Models sometimes answer with [{"name": "Python"}, ...]
        if isinstance(value, list):
            names = []
            for item in value:
                if isinstance(item, dict):
                    item = item.get("name") or ""
                if item:
                    names.append(str(item))
            return names
        return value


class JobContext(_CamelLenient):
    """The slice of a job posting the resume tools work against."""
    title: str = ""
    company: str = ""
    description: str = ""
    skills: List[str] = Field(default_factory=list)
    requirements: List[str] = Field(default_factory=list)
    experience_level: Optional[str] = None

    @field_validator("requirements", mode="before")
    @classmethod
    def _split_requirements(cls, value):
        if isinstance(value, str):
            return [line.strip() for line in value.splitlines() if line.strip()]
        return value


# ============================================================================
# Parser / enhancer API
# ============================================================================

class ResumeParseResponse(BaseModel):
    success: bool = True
    data: ResumeData
    id: str
    method: str


class ResumeEnhanceRequest(BaseModel):
    resume: ResumeData
    job: JobContext


class ResumeEnhanceResponse(BaseModel):
    success: bool = True
    data: ResumeData
    method: str


# ============================================================================
# Resume match
# ============================================================================

def _clamp_score(value):
    try:
        score = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(0.0, min(100.0, score))


class MatchingFactor(_CamelLenient):
    factor: str = ""
    score: float = 0
    explanation: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class MatchStrength(_CamelLenient):
    title: str = ""
    description: str = ""
    relevant_experience: List[str] = Field(default_factory=list)


class MatchGap(_CamelLenient):
    requirement: str = ""
    importance: str = ""
    suggestion: str = ""


class SkillAssessment(_CamelLenient):
    skill: str = ""
    required: bool = False
    has_skill: bool = False
    proficiency: str = "None"


class SkillsAnalysis(_CamelLenient):
    required: List[SkillAssessment] = Field(default_factory=list)
    preferred: List[SkillAssessment] = Field(default_factory=list)


class RelevantRole(_CamelLenient):
    company: str = ""
    position: str = ""
    relevance_score: float = 0
    key_contributions: List[str] = Field(default_factory=list)

    @field_validator("relevance_score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class ExperienceAnalysis(_CamelLenient):
    total_years: float = 0
    relevant_years: float = 0
    matches_requirement: bool = False
    experience_level: str = ""
    relevant_roles: List[RelevantRole] = Field(default_factory=list)


class RelevantDegree(_CamelLenient):
    degree: str = ""
    institution: str = ""
    relevance: str = ""


class EducationAnalysis(_CamelLenient):
    meets_requirements: bool = False
    education_score: float = 0
    relevant_degrees: List[RelevantDegree] = Field(default_factory=list)

    @field_validator("education_score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class CultureFit(_CamelLenient):
    score: float = 0
    indicators: List[str] = Field(default_factory=list)
    assessments: List[str] = Field(default_factory=list)

    @field_validator("score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class RecruiterRecommendation(_CamelLenient):
    action: str = ""
    reasoning: str = ""
    priority: str = ""


class CandidateRecommendation(_CamelLenient):
    improvement: str = ""
    benefit: str = ""
    timeline: str = ""


class Recommendations(_CamelLenient):
    for_recruiter: List[RecruiterRecommendation] = Field(default_factory=list)
    for_candidate: List[CandidateRecommendation] = Field(default_factory=list)


class MatchSummary(_CamelLenient):
    overall_assessment: str = ""
    top_strengths: List[str] = Field(default_factory=list)
    top_concerns: List[str] = Field(default_factory=list)
    recommendation: str = ""


class ResumeMatchResult(_CamelLenient):
    overall_score: float = 0
    match_level: str = ""
    key_matching_factors: List[MatchingFactor] = Field(default_factory=list)
    strengths: List[MatchStrength] = Field(default_factory=list)
    gaps: List[MatchGap] = Field(default_factory=list)
    skills_analysis: SkillsAnalysis = Field(default_factory=SkillsAnalysis)
    experience_analysis: ExperienceAnalysis = Field(default_factory=ExperienceAnalysis)
    education_analysis: EducationAnalysis = Field(default_factory=EducationAnalysis)
    culture_fit: CultureFit = Field(default_factory=CultureFit)
    recommendations: Recommendations = Field(default_factory=Recommendations)
    summary: MatchSummary = Field(default_factory=MatchSummary)

    @field_validator("overall_score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class ResumeMatchRequest(BaseModel):
    resume_data: Optional[dict] = None
    job_details: Optional[dict] = None


# ============================================================================
# Job analyzer
# ============================================================================

class JobAnalysisRequest(BaseModel):
    description: Optional[str] = None


class JobAnalysis(_CamelLenient):
    skills: List[str] = Field(default_factory=list)
    improvement_tips: List[str] = Field(default_factory=list)
    quality_score: float = 0
    job_simulation: str = ""
    key_qualifications: List[str] = Field(default_factory=list)

    @field_validator("quality_score", mode="before")
    @classmethod
    def clamp_score(cls, value):
        return _clamp_score(value)


class JobAnalysisResponse(JobAnalysis):
    success: bool = True
