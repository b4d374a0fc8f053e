from datetime import datetime, timezone
from sqlalchemy import (
    Column, Integer, String, Text, DateTime, Boolean, Float, JSON,
    Enum as SQLEnum, ForeignKey, UniqueConstraint
)
from ..database import Base
import enum


class JobStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"
    FILLED = "filled"


class ApplicationStatus(str, enum.Enum):
    PENDING = "pending"
    REVIEWED = "reviewed"
    SHORTLISTED = "shortlisted"
    REJECTED = "rejected"
    HIRED = "hired"
    WITHDRAWN = "withdrawn"


class InterviewStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class Job(Base):
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True)
    recruiter_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    company = Column(String(255), nullable=False)
    location = Column(String(255), nullable=True)
    employment_type = Column(String(50), default="Full-time")
    experience_level = Column(String(50), nullable=True)

    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    salary_period = Column(String(20), default="yearly")
    salary_currency = Column(String(10), default="USD")

    description = Column(Text, nullable=True)
    requirements = Column(JSON, default=list)
    benefits = Column(Text, nullable=True)
    skills = Column(JSON, default=list)

    application_type = Column(String(20), default="internal")  # internal / external
    external_url = Column(String(500), nullable=True)
    remote = Column(String(20), default="no")  # no / hybrid / fully
    visa_sponsorship = Column(Boolean, default=False)

    # AI job analyzer output the recruiter chose to keep
    job_simulation = Column(Text, nullable=True)
    key_qualifications = Column(JSON, default=list)

    status = Column(SQLEnum(JobStatus), default=JobStatus.ACTIVE, nullable=False)
    applicants_count = Column(Integer, default=0)
    views = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class JobApplication(Base):
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_application_job_applicant"),
    )

    id = Column(Integer, primary_key=True, index=True)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="CASCADE"), nullable=False, index=True)
    applicant_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    recruiter_id = Column(String(128), ForeignKey("users.id"), nullable=False, index=True)

    applicant_name = Column(String(255), nullable=True)
    applicant_email = Column(String(255), nullable=True)
    apply_summary = Column(Text, nullable=True)
    cover_letter = Column(Text, nullable=True)
    availability = Column(String(255), nullable=True)
    expected_salary = Column(String(100), nullable=True)
    referral_source = Column(String(255), nullable=True)

    resume_url = Column(String(500), nullable=True)
    resume_filename = Column(String(255), nullable=True)
    saved_resume_id = Column(Integer, ForeignKey("saved_resumes.id", ondelete="SET NULL"), nullable=True)
    resume_data = Column(JSON, nullable=True)

    status = Column(SQLEnum(ApplicationStatus), default=ApplicationStatus.PENDING, nullable=False)
    interview_at = Column(DateTime(timezone=True), nullable=True)
    interview_status = Column(SQLEnum(InterviewStatus), nullable=True)
    viewed_at = Column(DateTime(timezone=True), nullable=True)

    match_score = Column(Float, nullable=True)
    match_analysis = Column(JSON, nullable=True)

    submitted_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )
