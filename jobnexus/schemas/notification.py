"""
Notification Schemas - Request/Response models for notifications API
"""
from datetime import datetime
from typing import Optional, List, Dict
from pydantic import BaseModel, Field
from ..models.notification import NotificationType


class NotificationAction(BaseModel):
    """Call-to-action link rendered with a notification"""
    label: str
    url: str


class NotificationCreate(BaseModel):
    """Schema for creating a notification addressed to one user"""
    user_id: str = Field(..., min_length=1)
    title: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    type: NotificationType
    related_id: Optional[str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    candidate_name: Optional[str] = None
    actions: List[NotificationAction] = []


class NotificationResponse(BaseModel):
    """Schema for notification response"""
    id: int
    user_id: str
    title: str
    message: str
    type: NotificationType
    is_read: bool = False
    read_at: Optional[datetime] = None
    related_id: Optional[str] = None
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    candidate_name: Optional[str] = None
    actions: List[NotificationAction] = []
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class NotificationList(BaseModel):
    """Paginated list of notifications"""
    notifications: List[NotificationResponse]
    total: int
    unread_count: int


class NotificationUpdate(BaseModel):
    read: bool


class NotificationCountResponse(BaseModel):
    count: int


class NotificationTypeCounts(BaseModel):
    type_counts: Dict[str, int]
    total: int


class MarkAllReadResponse(BaseModel):
    success: bool = True
    count: int


class NotificationDeleted(BaseModel):
    id: int
    deleted: bool = True
