"""
Messages Router - applicant/recruiter conversations and recruiter message
templates. Clients poll for new messages with an ``after_id`` cursor.
"""
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from ..database import get_db
from ..models import (
    User, UserRole, Job, JobApplication, Conversation, ConversationParticipant,
    Message, MessageTemplate
)
from ..schemas.message import (
    ConversationCreate, ConversationResponse, MessageCreate, MessageResponse,
    MarkReadResponse, UnreadMessagesResponse,
    MessageTemplateCreate, MessageTemplateUpdate, MessageTemplateResponse
)
from ..schemas.user import UserCard
from ..services.auth import get_current_user, require_recruiter
from ..services.notification_service import (
    notify, recruiter_message_notification, candidate_message_notification
)

router = APIRouter(prefix="/api/conversations", tags=["Messages"])
templates_router = APIRouter(prefix="/api/message-templates", tags=["Messages"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_participant(
    db: AsyncSession,
    conversation_id: int,
    user_id: str
) -> Optional[ConversationParticipant]:
    result = await db.execute(
        select(ConversationParticipant).where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id == user_id
        )
    )
    return result.scalar_one_or_none()


async def get_conversation_for_user(db: AsyncSession, conversation_id: int, user: User) -> Conversation:
    result = await db.execute(select(Conversation).where(Conversation.id == conversation_id))
    conversation = result.scalar_one_or_none()
    if not conversation:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Conversation not found"
        )
    if await get_participant(db, conversation_id, user.id) is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not a participant in this conversation"
        )
    return conversation


async def get_other_participant(db: AsyncSession, conversation_id: int, user_id: str) -> Optional[User]:
    result = await db.execute(
        select(User)
        .join(ConversationParticipant, ConversationParticipant.user_id == User.id)
        .where(
            ConversationParticipant.conversation_id == conversation_id,
            ConversationParticipant.user_id != user_id
        )
    )
    return result.scalars().first()


async def find_conversation_between(db: AsyncSession, user_a: str, user_b: str) -> Optional[Conversation]:
    """The existing conversation that has exactly these two users in it"""
    shared = (
        select(ConversationParticipant.conversation_id)
        .where(ConversationParticipant.user_id.in_([user_a, user_b]))
        .group_by(ConversationParticipant.conversation_id)
        .having(func.count(func.distinct(ConversationParticipant.user_id)) == 2)
    )
    result = await db.execute(
        select(Conversation)
        .where(Conversation.id.in_(shared))
        .order_by(Conversation.id)
    )
    return result.scalars().first()


async def to_conversation_response(
    db: AsyncSession,
    conversation: Conversation,
    user: User
) -> ConversationResponse:
    participant = await get_participant(db, conversation.id, user.id)
    other = await get_other_participant(db, conversation.id, user.id)
    return ConversationResponse(
        id=conversation.id,
        application_id=conversation.application_id,
        job_id=conversation.job_id,
        participant=UserCard.model_validate(other) if other else None,
        last_message=conversation.last_message or "",
        last_message_at=conversation.last_message_at,
        unread_count=participant.unread_count if participant else 0,
        created_at=conversation.created_at
    )


async def _job_for_conversation(db: AsyncSession, conversation: Conversation) -> Optional[Job]:
    if conversation.job_id is None:
        return None
    result = await db.execute(select(Job).where(Job.id == conversation.job_id))
    return result.scalar_one_or_none()


async def send_message(
    db: AsyncSession,
    conversation: Conversation,
    sender: User,
    receiver: User,
    message_data: MessageCreate,
    background_tasks: Optional[BackgroundTasks] = None
) -> Message:
    """Store a message, bump the receiver's unread counter and notify them"""
    now = datetime.now(timezone.utc)
    message = Message(
        conversation_id=conversation.id,
        sender_id=sender.id,
        receiver_id=receiver.id,
        content=message_data.content.strip(),
        attachment_url=message_data.attachment_url,
        attachment_name=message_data.attachment_name,
        is_read=False,
        created_at=now
    )
    db.add(message)

    if message.content:
        conversation.last_message = message.content
    else:
        conversation.last_message = f"Sent an attachment: {message_data.attachment_name or 'file'}"
    conversation.last_message_at = now

    await db.execute(
        update(ConversationParticipant)
        .where(
            ConversationParticipant.conversation_id == conversation.id,
            ConversationParticipant.user_id == receiver.id
        )
        .values(unread_count=ConversationParticipant.unread_count + 1)
    )

    await db.flush()

    job = await _job_for_conversation(db, conversation)
    job_title = job.title if job else "an open position"
    if sender.role == UserRole.RECRUITER:
        payload = recruiter_message_notification(
            user_id=receiver.id,
            conversation_id=conversation.id,
            job_title=job_title,
            company_name=job.company if job else (sender.company or "their company"),
            recruiter_name=sender.name,
        )
    else:
        payload = candidate_message_notification(
            user_id=receiver.id,
            conversation_id=conversation.id,
            job_title=job_title,
            candidate_name=sender.name,
        )
    await notify(db, payload, background_tasks)
    return message


# ============================================================================
# Conversations
# ============================================================================

@router.post("", response_model=ConversationResponse, status_code=status.HTTP_201_CREATED)
async def start_conversation(
    conversation_data: ConversationCreate,
    response: Response,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Start a conversation, or reuse the one these two users already share.
    An initial message is delivered either way.
    """
    if conversation_data.participant_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot start a conversation with yourself"
        )

    result = await db.execute(select(User).where(User.id == conversation_data.participant_id))
    other = result.scalar_one_or_none()
    if not other:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    existing = await find_conversation_between(db, current_user.id, other.id)
    if existing is not None:
        if conversation_data.initial_message and conversation_data.initial_message.strip():
            await send_message(
                db, existing, current_user, other,
                MessageCreate(content=conversation_data.initial_message),
                background_tasks
            )
            await db.commit()
        response.status_code = status.HTTP_200_OK
        return await to_conversation_response(db, existing, current_user)

    job_id = None
    if conversation_data.application_id is not None:
        result = await db.execute(
            select(JobApplication).where(JobApplication.id == conversation_data.application_id)
        )
        application = result.scalar_one_or_none()
        if not application or {application.applicant_id, application.recruiter_id} != {current_user.id, other.id}:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Application does not belong to these participants"
            )
        job_id = application.job_id

    conversation = Conversation(
        application_id=conversation_data.application_id,
        job_id=job_id,
        last_message="",
        last_message_at=datetime.now(timezone.utc)
    )
    db.add(conversation)
    await db.flush()

    db.add_all([
        ConversationParticipant(conversation_id=conversation.id, user_id=current_user.id, unread_count=0),
        ConversationParticipant(conversation_id=conversation.id, user_id=other.id, unread_count=0),
    ])
    await db.flush()

    if conversation_data.initial_message and conversation_data.initial_message.strip():
        await send_message(
            db, conversation, current_user, other,
            MessageCreate(content=conversation_data.initial_message),
            background_tasks
        )

    await db.commit()
    return await to_conversation_response(db, conversation, current_user)


@router.get("", response_model=List[ConversationResponse])
async def list_conversations(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """The caller's conversations, most recently active first"""
    result = await db.execute(
        select(Conversation)
        .join(ConversationParticipant, ConversationParticipant.conversation_id == Conversation.id)
        .where(ConversationParticipant.user_id == current_user.id)
        .order_by(Conversation.last_message_at.desc(), Conversation.id.desc())
    )
    return [
        await to_conversation_response(db, conversation, current_user)
        for conversation in result.scalars().all()
    ]


@router.get("/unread-count", response_model=UnreadMessagesResponse)
async def get_unread_message_count(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    result = await db.execute(
        select(func.coalesce(func.sum(ConversationParticipant.unread_count), 0)).where(
            ConversationParticipant.user_id == current_user.id
        )
    )
    return UnreadMessagesResponse(unread_count=result.scalar() or 0)


@router.get("/{conversation_id}", response_model=ConversationResponse)
async def get_conversation(
    conversation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    conversation = await get_conversation_for_user(db, conversation_id, current_user)
    return await to_conversation_response(db, conversation, current_user)


@router.get("/{conversation_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    conversation_id: int,
    after_id: Optional[int] = None,
    limit: int = Query(100, ge=1, le=500),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Messages in sending order; pass the last seen id as ``after_id`` to poll"""
    await get_conversation_for_user(db, conversation_id, current_user)

    query = select(Message).where(Message.conversation_id == conversation_id)
    if after_id is not None:
        query = query.where(Message.id > after_id)

    result = await db.execute(query.order_by(Message.id.asc()).limit(limit))
    return result.scalars().all()


@router.post(
    "/{conversation_id}/messages",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED
)
async def post_message(
    conversation_id: int,
    message_data: MessageCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    conversation = await get_conversation_for_user(db, conversation_id, current_user)
    receiver = await get_other_participant(db, conversation.id, current_user.id)
    if receiver is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Conversation has no other participant"
        )

    message = await send_message(db, conversation, current_user, receiver, message_data, background_tasks)
    await db.commit()
    await db.refresh(message)
    return message


@router.put("/{conversation_id}/read", response_model=MarkReadResponse)
async def mark_conversation_read(
    conversation_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark every message addressed to the caller as read"""
    await get_conversation_for_user(db, conversation_id, current_user)

    result = await db.execute(
        update(Message)
        .where(
            Message.conversation_id == conversation_id,
            Message.receiver_id == current_user.id,
            Message.is_read == False
        )
        .values(is_read=True)
    )

    participant = await get_participant(db, conversation_id, current_user.id)
    participant.unread_count = 0
    participant.last_read_at = datetime.now(timezone.utc)

    await db.commit()
    return MarkReadResponse(marked=result.rowcount or 0)


# ============================================================================
# Message Templates
# ============================================================================

async def get_owned_template(db: AsyncSession, template_id: int, recruiter: User) -> MessageTemplate:
    result = await db.execute(
        select(MessageTemplate).where(
            MessageTemplate.id == template_id,
            MessageTemplate.recruiter_id == recruiter.id
        )
    )
    template = result.scalar_one_or_none()
    if not template:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Template not found"
        )
    return template


async def ensure_unique_template_name(
    db: AsyncSession,
    recruiter: User,
    name: str,
    exclude_id: Optional[int] = None
):
    query = select(MessageTemplate.id).where(
        MessageTemplate.recruiter_id == recruiter.id,
        MessageTemplate.name == name
    )
    if exclude_id is not None:
        query = query.where(MessageTemplate.id != exclude_id)
    result = await db.execute(query)
    if result.first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A template with this name already exists"
        )


@templates_router.get("", response_model=List[MessageTemplateResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    result = await db.execute(
        select(MessageTemplate)
        .where(MessageTemplate.recruiter_id == recruiter.id)
        .order_by(MessageTemplate.name)
    )
    return result.scalars().all()


@templates_router.post("", response_model=MessageTemplateResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    template_data: MessageTemplateCreate,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    name = template_data.name.strip()
    await ensure_unique_template_name(db, recruiter, name)

    template = MessageTemplate(
        recruiter_id=recruiter.id,
        name=name,
        content=template_data.content
    )
    db.add(template)
    await db.commit()
    await db.refresh(template)
    return template


@templates_router.put("/{template_id}", response_model=MessageTemplateResponse)
async def update_template(
    template_id: int,
    template_data: MessageTemplateUpdate,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    template = await get_owned_template(db, template_id, recruiter)

    if template_data.name is not None:
        name = template_data.name.strip()
        await ensure_unique_template_name(db, recruiter, name, exclude_id=template.id)
        template.name = name
    if template_data.content is not None:
        template.content = template_data.content

    await db.commit()
    await db.refresh(template)
    return template


@templates_router.delete("/{template_id}")
async def delete_template(
    template_id: int,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    template = await get_owned_template(db, template_id, recruiter)
    await db.delete(template)
    await db.commit()
    return {"id": template_id, "deleted": True}
