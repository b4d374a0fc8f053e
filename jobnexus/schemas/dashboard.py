from pydantic import BaseModel
from typing import Dict, List
from .application import ApplicationResponse


class ApplicantDashboard(BaseModel):
    applications_by_status: Dict[str, int]
    total_applications: int
    recent_applications: List[ApplicationResponse]
    unread_notifications: int
    unread_messages: int
    saved_resumes: int


class RecruiterDashboard(BaseModel):
    active_jobs: int
    total_jobs: int
    total_applicants: int
    total_views: int
    applications_by_status: Dict[str, int]
    recent_applications: List[ApplicationResponse]
    unread_notifications: int
    unread_messages: int
