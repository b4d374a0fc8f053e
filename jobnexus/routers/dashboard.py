"""
Dashboard Router - per-role summary counters for the landing pages
"""
from typing import Dict
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from ..database import get_db
from ..models import (
    User, Job, JobStatus, JobApplication, ApplicationStatus,
    ConversationParticipant, SavedResume
)
from ..schemas.dashboard import ApplicantDashboard, RecruiterDashboard
from ..services.auth import require_applicant, require_recruiter
from .applications import to_application_response
from .notification import count_unread

router = APIRouter(prefix="/api/dashboard", tags=["Dashboard"])

RECENT_APPLICATIONS_LIMIT = 5


async def count_unread_messages(db: AsyncSession, user_id: str) -> int:
    result = await db.execute(
        select(func.coalesce(func.sum(ConversationParticipant.unread_count), 0)).where(
            ConversationParticipant.user_id == user_id
        )
    )
    return result.scalar() or 0


async def applications_by_status(db: AsyncSession, condition) -> Dict[str, int]:
    counts = {s.value: 0 for s in ApplicationStatus}
    result = await db.execute(
        select(JobApplication.status, func.count())
        .where(condition)
        .group_by(JobApplication.status)
    )
    for app_status, count in result.all():
        counts[ApplicationStatus(app_status).value] = count
    return counts


async def recent_applications(db: AsyncSession, condition):
    result = await db.execute(
        select(JobApplication, Job)
        .join(Job, Job.id == JobApplication.job_id)
        .where(condition)
        .order_by(JobApplication.submitted_at.desc(), JobApplication.id.desc())
        .limit(RECENT_APPLICATIONS_LIMIT)
    )
    return [to_application_response(application, job) for application, job in result.all()]


@router.get("/applicant", response_model=ApplicantDashboard)
async def get_applicant_dashboard(
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    own = JobApplication.applicant_id == applicant.id
    by_status = await applications_by_status(db, own)

    saved = await db.execute(
        select(func.count()).select_from(SavedResume).where(SavedResume.user_id == applicant.id)
    )

    return ApplicantDashboard(
        applications_by_status=by_status,
        total_applications=sum(by_status.values()),
        recent_applications=await recent_applications(db, own),
        unread_notifications=await count_unread(db, applicant.id),
        unread_messages=await count_unread_messages(db, applicant.id),
        saved_resumes=saved.scalar() or 0
    )


@router.get("/recruiter", response_model=RecruiterDashboard)
async def get_recruiter_dashboard(
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    result = await db.execute(
        select(
            func.count(Job.id),
            func.coalesce(func.sum(Job.applicants_count), 0),
            func.coalesce(func.sum(Job.views), 0),
        ).where(Job.recruiter_id == recruiter.id)
    )
    total_jobs, total_applicants, total_views = result.one()

    active = await db.execute(
        select(func.count()).select_from(Job).where(
            Job.recruiter_id == recruiter.id,
            Job.status == JobStatus.ACTIVE
        )
    )

    received = JobApplication.recruiter_id == recruiter.id
    return RecruiterDashboard(
        active_jobs=active.scalar() or 0,
        total_jobs=total_jobs or 0,
        total_applicants=total_applicants or 0,
        total_views=total_views or 0,
        applications_by_status=await applications_by_status(db, received),
        recent_applications=await recent_applications(db, received),
        unread_notifications=await count_unread(db, recruiter.id),
        unread_messages=await count_unread_messages(db, recruiter.id)
    )
