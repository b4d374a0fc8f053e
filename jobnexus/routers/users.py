"""
Users Router - registration of identity-provider users and public cards
"""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from ..database import get_db
from ..models import User, UserRole, CandidateProfile
from ..schemas.user import UserUpsert, UserResponse, UserCard
from ..services.auth import get_token_subject, get_current_user

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.put("/me", response_model=UserResponse)
async def upsert_me(
    user_data: UserUpsert,
    user_id: str = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db)
):
    """Create or update the caller's user record"""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        user = User(id=user_id, **user_data.model_dump())
        db.add(user)
        if user_data.role == UserRole.APPLICANT:
            db.add(CandidateProfile(user_id=user_id, skills=[]))
    else:
        if user_data.role != user.role:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Role cannot be changed"
            )
        for field, value in user_data.model_dump(exclude={"role"}).items():
            setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user


@router.get("/me", response_model=UserResponse)
async def get_me(
    user_id: str = Depends(get_token_subject),
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user


@router.get("/{user_id}", response_model=UserCard)
async def get_user_card(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Public card for another user"""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    return user
