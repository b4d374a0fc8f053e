from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime
from .user import UserCard


class ConversationCreate(BaseModel):
    participant_id: str = Field(..., min_length=1)
    application_id: Optional[int] = None
    initial_message: Optional[str] = None


class MessageCreate(BaseModel):
    content: str = ""
    attachment_url: Optional[str] = Field(None, max_length=500)
    attachment_name: Optional[str] = Field(None, max_length=255)

    @model_validator(mode="after")
    def require_body(self):
        if not self.content.strip() and not self.attachment_url:
            raise ValueError("Message content cannot be empty")
        return self


class MessageResponse(BaseModel):
    id: int
    conversation_id: int
    sender_id: str
    receiver_id: str
    content: str = ""
    attachment_url: Optional[str] = None
    attachment_name: Optional[str] = None
    is_read: bool = False
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    id: int
    application_id: Optional[int] = None
    job_id: Optional[int] = None
    participant: Optional[UserCard] = None
    last_message: str = ""
    last_message_at: Optional[datetime] = None
    unread_count: int = 0
    created_at: Optional[datetime] = None


class MarkReadResponse(BaseModel):
    marked: int


class UnreadMessagesResponse(BaseModel):
    unread_count: int


# ============================================================================
# Message Templates
# ============================================================================

class MessageTemplateCreate(BaseModel):
    name: str = Field(..., max_length=200)
    content: str

    @model_validator(mode="after")
    def require_text(self):
        if not self.name.strip() or not self.content.strip():
            raise ValueError("Template name and content are required")
        return self


class MessageTemplateUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    content: Optional[str] = None

    @model_validator(mode="after")
    def require_text(self):
        if self.name is not None and not self.name.strip():
            raise ValueError("Template name cannot be blank")
        if self.content is not None and not self.content.strip():
            raise ValueError("Template content cannot be blank")
        return self


class MessageTemplateResponse(BaseModel):
    id: int
    recruiter_id: str
    name: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
