"""
Notification Router - per-user notifications
"""
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, update

from ..database import get_db
from ..models import User, Notification, NotificationType
from ..services.auth import get_current_user
from ..services.notification_service import notify
from ..schemas.notification import (
    NotificationCreate, NotificationResponse, NotificationList, NotificationUpdate,
    NotificationCountResponse, NotificationTypeCounts, MarkAllReadResponse, NotificationDeleted
)

router = APIRouter(prefix="/api/notifications", tags=["Notifications"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_owned_notification(
    db: AsyncSession,
    notification_id: int,
    user: User
) -> Notification:
    """Load a notification owned by ``user``; other users' notifications are 404"""
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.user_id == user.id
        )
    )
    notification = result.scalar_one_or_none()
    if not notification:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Notification not found"
        )
    return notification


def parse_read_filter(read: Optional[str]) -> Optional[bool]:
    """'true' / 'false' filter by read state, 'all' (or nothing) does not"""
    if read is None:
        return None
    read = read.strip().lower()
    if read == "all":
        return None
    if read in ("true", "1"):
        return True
    if read in ("false", "0"):
        return False
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail="read must be 'true', 'false' or 'all'"
    )


async def count_unread(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.count()).select_from(Notification).where(
            Notification.user_id == user_id,
            Notification.is_read == False
        )
    )
    return result.scalar() or 0


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=NotificationList)
async def list_notifications(
    read: Optional[str] = None,
    type: Optional[NotificationType] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get current user's notifications, newest first"""
    filters = [Notification.user_id == current_user.id]
    read_filter = parse_read_filter(read)
    if read_filter is not None:
        filters.append(Notification.is_read == read_filter)
    if type is not None:
        filters.append(Notification.type == type)

    total_result = await db.execute(
        select(func.count()).select_from(Notification).where(*filters)
    )
    total = total_result.scalar() or 0

    result = await db.execute(
        select(Notification)
        .where(*filters)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset(skip)
        .limit(limit)
    )
    notifications = result.scalars().all()

    return NotificationList(
        notifications=[NotificationResponse.model_validate(n) for n in notifications],
        total=total,
        unread_count=await count_unread(db, current_user.id)
    )


@router.post("", response_model=NotificationResponse, status_code=status.HTTP_201_CREATED)
async def create_notification(
    notification_data: NotificationCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Create a notification for any registered user"""
    result = await db.execute(select(User.id).where(User.id == notification_data.user_id))
    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    notification = await notify(db, notification_data, background_tasks)
    await db.commit()
    await db.refresh(notification)
    return notification


@router.get("/count", response_model=NotificationCountResponse)
async def get_notification_count(
    read: Optional[str] = "false",
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Unread count by default; read=true counts read ones, read=all counts everything"""
    query = select(func.count()).select_from(Notification).where(
        Notification.user_id == current_user.id
    )
    read_filter = parse_read_filter(read)
    if read_filter is not None:
        query = query.where(Notification.is_read == read_filter)

    result = await db.execute(query)
    return NotificationCountResponse(count=result.scalar() or 0)


@router.get("/types", response_model=NotificationTypeCounts)
async def get_notification_type_counts(
    read: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Notification counts grouped by type"""
    query = (
        select(Notification.type, func.count())
        .where(Notification.user_id == current_user.id)
        .group_by(Notification.type)
    )
    read_filter = parse_read_filter(read)
    if read_filter is not None:
        query = query.where(Notification.is_read == read_filter)

    result = await db.execute(query)
    type_counts = {notification_type.value: count for notification_type, count in result.all()}
    return NotificationTypeCounts(type_counts=type_counts, total=sum(type_counts.values()))


@router.put("/read-all", response_model=MarkAllReadResponse)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark all notifications as read"""
    result = await db.execute(
        update(Notification)
        .where(
            Notification.user_id == current_user.id,
            Notification.is_read == False
        )
        .values(is_read=True, read_at=datetime.now(timezone.utc))
    )
    await db.commit()
    return MarkAllReadResponse(count=result.rowcount or 0)


@router.get("/{notification_id}", response_model=NotificationResponse)
async def get_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return await get_owned_notification(db, notification_id, current_user)


@router.patch("/{notification_id}", response_model=NotificationResponse)
async def update_notification(
    notification_id: int,
    update_data: NotificationUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Mark a notification as read or unread"""
    notification = await get_owned_notification(db, notification_id, current_user)

    notification.is_read = update_data.read
    notification.read_at = datetime.now(timezone.utc) if update_data.read else None

    await db.commit()
    await db.refresh(notification)
    return notification


@router.delete("/{notification_id}", response_model=NotificationDeleted)
async def delete_notification(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    notification = await get_owned_notification(db, notification_id, current_user)

    await db.delete(notification)
    await db.commit()

    return NotificationDeleted(id=notification_id)
