"""
Notification Model - In-app alerts addressed to a single user
"""
from datetime import datetime, timezone
from enum import Enum
from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, JSON, Enum as SQLEnum
from ..database import Base


class NotificationType(str, Enum):
    # Applicant side
    APPLICATION_VIEWED = "application_viewed"
    STATUS_CHANGE = "status_change"
    MESSAGE = "message"
    INTERVIEW = "interview"
    JOB_UPDATE = "job_update"
    SYSTEM = "system"
    # Recruiter side
    NEW_APPLICATION = "new_application"
    APPLICATION_UPDATE = "application_update"
    CANDIDATE_MESSAGE = "candidate_message"
    JOB_STATS = "job_stats"


class Notification(Base):
    """
    A notification for one user, with read state and optional
    call-to-action links stored as a list of {label, url}.
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(128), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    type = Column(SQLEnum(NotificationType), nullable=False)
    is_read = Column(Boolean, default=False, index=True)
    read_at = Column(DateTime(timezone=True), nullable=True)

    # Context for rendering (job or application id, names)
    related_id = Column(String(64), nullable=True)
    job_title = Column(String(255), nullable=True)
    company_name = Column(String(255), nullable=True)
    candidate_name = Column(String(255), nullable=True)
    actions = Column(JSON, default=list)

    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), index=True)
