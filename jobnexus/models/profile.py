"""
Candidate profile and saved resume models.
"""
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON
from ..database import Base


class CandidateProfile(Base):
    """Applicant-facing profile, one per applicant user."""
    __tablename__ = "candidate_profiles"

    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True)
    headline = Column(String(255), nullable=True)
    summary = Column(Text, nullable=True)
    location = Column(String(255), nullable=True)
    skills = Column(JSON, default=list)
    experience_years = Column(Float, nullable=True)

    # Uploaded resume file and its parsed structure
    resume_url = Column(String(500), nullable=True)
    resume_filename = Column(String(255), nullable=True)
    resume_data = Column(JSON, nullable=True)
    resume_parsed_at = Column(DateTime(timezone=True), nullable=True)

    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc)
    )


class SavedResume(Base):
    """
    A named copy of structured resume data. Enhanced resumes keep a
    reference to the job they were tailored for.
    """
    __tablename__ = "saved_resumes"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    data = Column(JSON, nullable=False)
    job_id = Column(Integer, ForeignKey("jobs.id", ondelete="SET NULL"), nullable=True)
    is_enhanced = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))
