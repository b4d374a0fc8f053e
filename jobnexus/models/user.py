from datetime import datetime, timezone
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum
from ..database import Base
import enum


class UserRole(str, enum.Enum):
    APPLICANT = "applicant"
    RECRUITER = "recruiter"


class User(Base):
    """
    Registered user. The id is the subject of the identity provider's token
    (e.g. a Firebase uid), so it is a string rather than an autoincrement key.
    """
    __tablename__ = "users"

    id = Column(String(128), primary_key=True, index=True)
    email = Column(String(255), index=True, nullable=False)
    name = Column(String(255), nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False)
    company = Column(String(255), nullable=True)  # recruiters
    title = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    location = Column(String(255), nullable=True)
    avatar_url = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = Column(DateTime(timezone=True), onupdate=lambda: datetime.now(timezone.utc))
