from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime
from ..models.job import JobStatus, ApplicationStatus


def _split_lines(value):
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    return value


class JobBase(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    company: str = Field(..., min_length=1, max_length=255)
    location: Optional[str] = None
    employment_type: str = "Full-time"
    experience_level: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_period: str = "yearly"
    salary_currency: str = "USD"
    description: Optional[str] = None
    requirements: List[str] = []
    benefits: Optional[str] = None
    skills: List[str] = []
    application_type: Literal["internal", "external"] = "internal"
    external_url: Optional[str] = None
    remote: Literal["no", "hybrid", "fully"] = "no"
    visa_sponsorship: bool = False
    job_simulation: Optional[str] = None
    key_qualifications: List[str] = []


class JobCreate(JobBase):
    """Requirements may arrive as a newline-separated block of text"""

    @field_validator("requirements", mode="before")
    @classmethod
    def split_requirements(cls, value):
        return _split_lines(value)


class JobUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    company: Optional[str] = Field(None, min_length=1, max_length=255)
    location: Optional[str] = None
    employment_type: Optional[str] = None
    experience_level: Optional[str] = None
    salary_min: Optional[float] = Field(None, ge=0)
    salary_max: Optional[float] = Field(None, ge=0)
    salary_period: Optional[str] = None
    salary_currency: Optional[str] = None
    description: Optional[str] = None
    requirements: Optional[List[str]] = None
    benefits: Optional[str] = None
    skills: Optional[List[str]] = None
    application_type: Optional[Literal["internal", "external"]] = None
    external_url: Optional[str] = None
    remote: Optional[Literal["no", "hybrid", "fully"]] = None
    visa_sponsorship: Optional[bool] = None
    job_simulation: Optional[str] = None
    key_qualifications: Optional[List[str]] = None
    status: Optional[JobStatus] = None

    @field_validator(
        "title", "company", "employment_type", "salary_period", "salary_currency",
        "requirements", "skills", "application_type", "remote", "visa_sponsorship",
        "key_qualifications", "status",
        mode="before"
    )
    @classmethod
    def reject_null(cls, value):
        # Leave the field out to keep it; these columns always hold a value
        if value is None:
            raise ValueError("may be omitted but not null")
        return value

    @field_validator("requirements", mode="before")
    @classmethod
    def split_requirements(cls, value):
        return _split_lines(value)


class JobResponse(JobBase):
    id: int
    recruiter_id: str
    status: JobStatus
    applicants_count: int = 0
    views: int = 0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    application_status: Optional[ApplicationStatus] = None

    class Config:
        from_attributes = True


class JobStats(BaseModel):
    total_jobs: int
    applied: int
    in_review: int
    hired: int
    rejected: int
