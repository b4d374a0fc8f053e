from pydantic import BaseModel, Field
from typing import Optional, Literal
from datetime import datetime
from ..models.job import ApplicationStatus, InterviewStatus
from .resume import ResumeData


class ApplicationCreate(BaseModel):
    apply_summary: Optional[str] = None
    cover_letter: Optional[str] = None
    availability: Optional[str] = Field(None, max_length=255)
    expected_salary: Optional[str] = Field(None, max_length=100)
    referral_source: Optional[str] = Field(None, max_length=255)
    resume_url: Optional[str] = Field(None, max_length=500)
    resume_filename: Optional[str] = Field(None, max_length=255)
    saved_resume_id: Optional[int] = None


class ApplicationResponse(BaseModel):
    id: int
    job_id: int
    applicant_id: str
    recruiter_id: str
    applicant_name: Optional[str] = None
    applicant_email: Optional[str] = None
    apply_summary: Optional[str] = None
    cover_letter: Optional[str] = None
    availability: Optional[str] = None
    expected_salary: Optional[str] = None
    referral_source: Optional[str] = None
    resume_url: Optional[str] = None
    resume_filename: Optional[str] = None
    saved_resume_id: Optional[int] = None
    resume_data: Optional[ResumeData] = None
    status: ApplicationStatus
    interview_at: Optional[datetime] = None
    interview_status: Optional[InterviewStatus] = None
    viewed_at: Optional[datetime] = None
    match_score: Optional[float] = None
    match_analysis: Optional[dict] = None
    submitted_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    # Filled from the job for list views
    job_title: Optional[str] = None
    company: Optional[str] = None

    class Config:
        from_attributes = True


class ApplicationStatusUpdate(BaseModel):
    # Withdrawal is the applicant's own action
    status: Literal["pending", "reviewed", "shortlisted", "rejected", "hired"]


class InterviewSchedule(BaseModel):
    interview_at: datetime


class InterviewResponse(BaseModel):
    accept: bool
