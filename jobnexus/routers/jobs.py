from typing import Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, or_, delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm.attributes import set_committed_value

from ..database import get_db
from ..models import (
    User, UserRole, Job, JobApplication, JobStatus, ApplicationStatus,
    CandidateProfile, SavedResume
)
from ..schemas.job import JobCreate, JobUpdate, JobResponse, JobStats
from ..schemas.application import ApplicationCreate, ApplicationResponse
from ..services.auth import get_current_user, require_recruiter, require_applicant
from ..services.notification_service import (
    notify, job_update_notification, job_stats_notification, new_application_notification,
    VIEW_MILESTONES, APPLICATION_MILESTONES
)
from .applications import to_application_response

router = APIRouter(prefix="/api/jobs", tags=["Jobs"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_job_or_404(db: AsyncSession, job_id: int) -> Job:
    result = await db.execute(select(Job).where(Job.id == job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise HTTPException(status_code=404, detail="Job not found")
    return job


async def increment_job_counter(db: AsyncSession, job: Job, counter: str) -> int:
    """Bump ``views`` or ``applicants_count`` in the database and return the new value"""
    column = getattr(Job, counter)
    result = await db.execute(
        update(Job)
        .where(Job.id == job.id)
        .values({counter: func.coalesce(column, 0) + 1})
        .returning(column)
        .execution_options(synchronize_session=False)
    )
    value = result.scalar_one()
    set_committed_value(job, counter, value)
    return value


async def insert_application(db: AsyncSession, application: JobApplication) -> None:
    """Flush a new application; a racing duplicate trips the unique key"""
    db.add(application)
    try:
        await db.flush()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=400, detail="Already applied to this job")


async def get_owned_job(db: AsyncSession, job_id: int, recruiter: User) -> Job:
    job = await get_job_or_404(db, job_id)
    if job.recruiter_id != recruiter.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only manage your own job postings"
        )
    return job


def to_job_response(job: Job, application_status: Optional[ApplicationStatus] = None) -> JobResponse:
    response = JobResponse.model_validate(job)
    response.application_status = application_status
    return response


async def notify_applicants_of_update(
    db: AsyncSession,
    job: Job,
    update_type: str,
    background_tasks: BackgroundTasks
):
    result = await db.execute(
        select(JobApplication.applicant_id).where(
            JobApplication.job_id == job.id,
            JobApplication.status != ApplicationStatus.WITHDRAWN
        )
    )
    for applicant_id in result.scalars().all():
        await notify(db, job_update_notification(
            user_id=applicant_id,
            job_id=job.id,
            job_title=job.title,
            company_name=job.company,
            update_type=update_type,
        ), background_tasks)


# ============================================================================
# Browse
# ============================================================================

@router.get("", response_model=list[JobResponse])
async def get_all_jobs(
    q: Optional[str] = None,
    location: Optional[str] = None,
    employment_type: Optional[str] = None,
    experience_level: Optional[str] = None,
    remote: Optional[str] = None,
    skill: Optional[str] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get all active jobs, newest first"""
    query = select(Job).where(Job.status == JobStatus.ACTIVE)

    if q:
        pattern = f"%{q}%"
        query = query.where(or_(
            Job.title.ilike(pattern),
            Job.company.ilike(pattern),
            Job.description.ilike(pattern)
        ))
    if location:
        query = query.where(Job.location.ilike(f"%{location}%"))
    if employment_type:
        query = query.where(Job.employment_type == employment_type)
    if experience_level:
        query = query.where(Job.experience_level == experience_level)
    if remote:
        query = query.where(Job.remote == remote)

    query = query.order_by(Job.created_at.desc(), Job.id.desc())

    if skill:
        # Skills live in a JSON list, so this filter runs in Python before paging
        result = await db.execute(query)
        wanted = skill.lower()
        jobs = [
            job for job in result.scalars().all()
            if any(wanted == s.lower() for s in (job.skills or []))
        ][skip:skip + limit]
    else:
        result = await db.execute(query.offset(skip).limit(limit))
        jobs = result.scalars().all()

    applications = {}
    if current_user.role == UserRole.APPLICANT and jobs:
        app_result = await db.execute(
            select(JobApplication.job_id, JobApplication.status).where(
                JobApplication.applicant_id == current_user.id,
                JobApplication.job_id.in_([job.id for job in jobs])
            )
        )
        applications = dict(app_result.all())

    return [to_job_response(job, applications.get(job.id)) for job in jobs]


@router.get("/mine", response_model=list[JobResponse])
async def get_my_jobs(
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Get the recruiter's own postings in any status"""
    result = await db.execute(
        select(Job)
        .where(Job.recruiter_id == recruiter.id)
        .order_by(Job.created_at.desc(), Job.id.desc())
    )
    return [to_job_response(job) for job in result.scalars().all()]


@router.get("/stats", response_model=JobStats)
async def get_job_stats(
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """Get job statistics for the current applicant"""
    total_result = await db.execute(
        select(func.count()).select_from(Job).where(Job.status == JobStatus.ACTIVE)
    )
    total_jobs = total_result.scalar() or 0

    result = await db.execute(
        select(JobApplication.status, func.count())
        .where(JobApplication.applicant_id == applicant.id)
        .group_by(JobApplication.status)
    )
    counts = dict(result.all())

    return JobStats(
        total_jobs=total_jobs,
        applied=sum(counts.values()),
        in_review=sum(counts.get(s, 0) for s in (
            ApplicationStatus.PENDING, ApplicationStatus.REVIEWED, ApplicationStatus.SHORTLISTED
        )),
        hired=counts.get(ApplicationStatus.HIRED, 0),
        rejected=counts.get(ApplicationStatus.REJECTED, 0)
    )


@router.get("/{job_id}", response_model=JobResponse)
async def get_job(
    job_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """Get a job. Views by anyone but the owner are counted."""
    job = await get_job_or_404(db, job_id)

    application_status = None
    if job.recruiter_id != current_user.id:
        views = await increment_job_counter(db, job, "views")
        if views in VIEW_MILESTONES:
            await notify(db, job_stats_notification(
                user_id=job.recruiter_id,
                job_id=job.id,
                job_title=job.title,
                stat_type="views",
                value=views,
            ), background_tasks)
        await db.commit()
        await db.refresh(job)

    if current_user.role == UserRole.APPLICANT:
        result = await db.execute(
            select(JobApplication.status).where(
                JobApplication.job_id == job.id,
                JobApplication.applicant_id == current_user.id
            )
        )
        application_status = result.scalar_one_or_none()

    return to_job_response(job, application_status)


# ============================================================================
# Manage (recruiter)
# ============================================================================

@router.post("", response_model=JobResponse, status_code=status.HTTP_201_CREATED)
async def create_job(
    job_data: JobCreate,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Post a new job"""
    job = Job(
        **job_data.model_dump(),
        recruiter_id=recruiter.id,
        status=JobStatus.ACTIVE,
        applicants_count=0,
        views=0
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)
    return to_job_response(job)


@router.put("/{job_id}", response_model=JobResponse)
async def update_job(
    job_id: int,
    job_data: JobUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Partially update a posting and tell applicants about it"""
    job = await get_owned_job(db, job_id, recruiter)

    changes = job_data.model_dump(exclude_unset=True)
    new_status = changes.pop("status", None)

    content_changed = False
    for field, value in changes.items():
        if getattr(job, field) != value:
            setattr(job, field, value)
            content_changed = True

    status_changed = new_status is not None and new_status != job.status
    if status_changed:
        job.status = new_status

    if status_changed and new_status in (JobStatus.CLOSED, JobStatus.FILLED):
        await notify_applicants_of_update(db, job, new_status.value, background_tasks)
    elif content_changed:
        await notify_applicants_of_update(db, job, "modified", background_tasks)

    await db.commit()
    await db.refresh(job)
    return to_job_response(job)


@router.delete("/{job_id}")
async def delete_job(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Delete a posting along with its applications"""
    job = await get_owned_job(db, job_id, recruiter)

    await db.execute(delete(JobApplication).where(JobApplication.job_id == job.id))
    await db.delete(job)
    await db.commit()

    return {"id": job_id, "deleted": True}


# ============================================================================
# Apply (applicant)
# ============================================================================

@router.post("/{job_id}/apply", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def apply_to_job(
    job_id: int,
    application_data: ApplicationCreate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """Apply to a job"""
    job = await get_job_or_404(db, job_id)

    if job.status != JobStatus.ACTIVE:
        raise HTTPException(status_code=400, detail="This job is no longer accepting applications")
    if job.application_type == "external":
        raise HTTPException(status_code=400, detail="This job takes applications on an external site")

    # Check not already applied
    result = await db.execute(
        select(JobApplication)
        .where(JobApplication.applicant_id == applicant.id)
        .where(JobApplication.job_id == job_id)
    )
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Already applied to this job")

    profile_result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == applicant.id)
    )
    profile = profile_result.scalar_one_or_none()

    resume_data = profile.resume_data if profile else None
    if application_data.saved_resume_id is not None:
        saved_result = await db.execute(
            select(SavedResume).where(
                SavedResume.id == application_data.saved_resume_id,
                SavedResume.user_id == applicant.id
            )
        )
        saved = saved_result.scalar_one_or_none()
        if not saved:
            raise HTTPException(status_code=404, detail="Saved resume not found")
        resume_data = saved.data

    fields = application_data.model_dump()
    if not fields["resume_url"] and profile:
        fields["resume_url"] = profile.resume_url
        fields["resume_filename"] = fields["resume_filename"] or profile.resume_filename

    application = JobApplication(
        **fields,
        job_id=job.id,
        applicant_id=applicant.id,
        recruiter_id=job.recruiter_id,
        applicant_name=applicant.name,
        applicant_email=applicant.email,
        resume_data=resume_data,
        status=ApplicationStatus.PENDING
    )
    await insert_application(db, application)
    applicants_count = await increment_job_counter(db, job, "applicants_count")

    await notify(db, new_application_notification(
        user_id=job.recruiter_id,
        application_id=application.id,
        job_id=job.id,
        job_title=job.title,
        candidate_name=applicant.name,
    ), background_tasks)

    if applicants_count in APPLICATION_MILESTONES:
        await notify(db, job_stats_notification(
            user_id=job.recruiter_id,
            job_id=job.id,
            job_title=job.title,
            stat_type="applications",
            value=applicants_count,
        ), background_tasks)

    await db.commit()
    await db.refresh(application)
    return to_application_response(application, job)
