from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from .resume import ResumeData


class ProfileUpdate(BaseModel):
    headline: Optional[str] = Field(None, max_length=255)
    summary: Optional[str] = None
    location: Optional[str] = Field(None, max_length=255)
    skills: Optional[List[str]] = None
    experience_years: Optional[float] = Field(None, ge=0)
    resume_data: Optional[ResumeData] = None


class ProfileResponse(BaseModel):
    user_id: str
    headline: Optional[str] = None
    summary: Optional[str] = None
    location: Optional[str] = None
    skills: List[str] = []
    experience_years: Optional[float] = None
    resume_url: Optional[str] = None
    resume_filename: Optional[str] = None
    resume_data: Optional[ResumeData] = None
    resume_parsed_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================================================
# Saved Resumes
# ============================================================================

class SavedResumeCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    data: ResumeData


class SavedResumeUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    data: Optional[ResumeData] = None


class SavedResumeResponse(BaseModel):
    id: int
    user_id: str
    name: str
    data: ResumeData
    job_id: Optional[int] = None
    is_enhanced: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class EnhanceSavedResumeRequest(BaseModel):
    """Tailor a saved resume (or the profile resume when no id is given) to a job"""
    job_id: int
    saved_resume_id: Optional[int] = None
    name: Optional[str] = None


class EnhanceSavedResumeResponse(BaseModel):
    resume: SavedResumeResponse
    method: str


class ResumeUploadResponse(BaseModel):
    status: str = "processing"
    job_id: int
    resume_url: str


class ResumeParsingJobResponse(BaseModel):
    job_id: int
    status: str
    error_message: Optional[str] = None
    resume_url: Optional[str] = None
    parse_method: Optional[str] = None
    created_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CandidateSummary(BaseModel):
    """Recruiter-facing row in the candidate search"""
    user_id: str
    name: str
    title: Optional[str] = None
    avatar_url: Optional[str] = None
    headline: Optional[str] = None
    location: Optional[str] = None
    skills: List[str] = []
    experience_years: Optional[float] = None
    has_resume: bool = False
