"""
Resume parsing jobs - one row per uploaded profile resume, updated by
the background parser.
"""
from enum import Enum
from datetime import datetime, timezone
from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Enum as SQLEnum
from ..database import Base


class ResumeParsingStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class ResumeParsingJob(Base):
    __tablename__ = "resume_parsing_jobs"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    resume_filename = Column(String(255), nullable=False)
    resume_url = Column(String(500), nullable=True)

    status = Column(
        SQLEnum(ResumeParsingStatus),
        default=ResumeParsingStatus.PENDING,
        nullable=False
    )
    # "gemini" or "heuristic" once parsed
    parse_method = Column(String(20), nullable=True)
    error_message = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    started_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
