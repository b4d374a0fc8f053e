from pydantic import BaseModel, EmailStr
from typing import Optional
from datetime import datetime
from ..models.user import UserRole


class UserBase(BaseModel):
    email: EmailStr
    name: str
    role: UserRole


class UserUpsert(UserBase):
    company: Optional[str] = None
    title: Optional[str] = None
    phone: Optional[str] = None
    location: Optional[str] = None
    avatar_url: Optional[str] = None


class UserResponse(UserUpsert):
    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserCard(BaseModel):
    """Public view of a user shown next to jobs, applications and messages"""
    id: str
    name: str
    role: UserRole
    title: Optional[str] = None
    company: Optional[str] = None
    avatar_url: Optional[str] = None

    class Config:
        from_attributes = True
