"""
Candidates Router - recruiter search over applicant profiles
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_

from ..database import get_db
from ..models import User, UserRole, CandidateProfile
from ..schemas.profile import CandidateSummary
from ..services.auth import require_recruiter

router = APIRouter(prefix="/api/candidates", tags=["Candidates"])


@router.get("", response_model=List[CandidateSummary])
async def search_candidates(
    q: Optional[str] = None,
    skill: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """
    Search applicant profiles. ``q`` matches the name or headline,
    ``skill`` matches any listed skill regardless of case.
    """
    query = (
        select(User, CandidateProfile)
        .join(CandidateProfile, CandidateProfile.user_id == User.id)
        .where(User.role == UserRole.APPLICANT)
        .order_by(CandidateProfile.updated_at.desc(), User.id)
    )
    if q and q.strip():
        pattern = f"%{q.strip()}%"
        query = query.where(or_(User.name.ilike(pattern), CandidateProfile.headline.ilike(pattern)))

    result = await db.execute(query)
    rows = result.all()

    # Skills live in a JSON column, so the skill filter runs here
    if skill and skill.strip():
        wanted = skill.strip().lower()
        rows = [
            (user, profile) for user, profile in rows
            if any(wanted == str(s).strip().lower() for s in (profile.skills or []))
        ]

    return [
        CandidateSummary(
            user_id=user.id,
            name=user.name,
            title=user.title,
            avatar_url=user.avatar_url,
            headline=profile.headline,
            location=profile.location or user.location,
            skills=profile.skills or [],
            experience_years=profile.experience_years,
            has_resume=bool(profile.resume_url or profile.resume_data)
        )
        for user, profile in rows[skip:skip + limit]
    ]
