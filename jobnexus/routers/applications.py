"""
Applications Router - tracking, review, interviews and match scoring
"""
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from ..database import get_db
from ..models import User, UserRole, Job, JobApplication, ApplicationStatus, InterviewStatus
from ..schemas.application import (
    ApplicationResponse, ApplicationStatusUpdate, InterviewSchedule, InterviewResponse
)
from ..schemas.resume import ResumeMatchResult
from ..services.auth import get_current_user, require_recruiter, require_applicant
from ..services.llm import LLMNotConfiguredError, LLMResponseError
from ..services.resume_match import analyze_resume_match
from ..services.notification_service import (
    notify, application_viewed_notification, status_change_notification,
    interview_notification, application_update_notification
)
from .ai import llm_unavailable, llm_bad_response

router = APIRouter(prefix="/api/applications", tags=["Applications"])


# ============================================================================
# Helper Functions
# ============================================================================

def to_application_response(application: JobApplication, job: Optional[Job] = None) -> ApplicationResponse:
    response = ApplicationResponse.model_validate(application)
    if job is not None:
        response.job_title = job.title
        response.company = job.company
    return response


async def get_application_with_job(db: AsyncSession, application_id: int):
    result = await db.execute(
        select(JobApplication, Job)
        .join(Job, Job.id == JobApplication.job_id)
        .where(JobApplication.id == application_id)
    )
    row = result.first()
    if not row:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Application not found"
        )
    return row


def ensure_recruiter_owner(application: JobApplication, user: User):
    if application.recruiter_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to manage this application"
        )


def ensure_applicant_owner(application: JobApplication, user: User):
    if application.applicant_id != user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to access this application"
        )


def job_details_for_match(job: Job) -> dict:
    return {
        "title": job.title,
        "company": job.company,
        "location": job.location,
        "employment_type": job.employment_type,
        "experience_level": job.experience_level,
        "description": job.description,
        "requirements": job.requirements or [],
        "skills": job.skills or [],
        "key_qualifications": job.key_qualifications or [],
    }


# ============================================================================
# Listing
# ============================================================================

@router.get("/me", response_model=List[ApplicationResponse])
async def get_my_applications(
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """Get the applicant's applications, newest first"""
    query = (
        select(JobApplication, Job)
        .join(Job, Job.id == JobApplication.job_id)
        .where(JobApplication.applicant_id == applicant.id)
    )
    if status_filter is not None:
        query = query.where(JobApplication.status == status_filter)

    result = await db.execute(
        query.order_by(JobApplication.submitted_at.desc(), JobApplication.id.desc())
    )
    return [to_application_response(application, job) for application, job in result.all()]


@router.get("", response_model=List[ApplicationResponse])
async def get_received_applications(
    job_id: Optional[int] = None,
    status_filter: Optional[ApplicationStatus] = Query(None, alias="status"),
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Get applications to the recruiter's jobs"""
    query = (
        select(JobApplication, Job)
        .join(Job, Job.id == JobApplication.job_id)
        .where(JobApplication.recruiter_id == recruiter.id)
    )
    if job_id is not None:
        query = query.where(JobApplication.job_id == job_id)
    if status_filter is not None:
        query = query.where(JobApplication.status == status_filter)

    result = await db.execute(
        query.order_by(JobApplication.submitted_at.desc(), JobApplication.id.desc())
    )
    return [to_application_response(application, job) for application, job in result.all()]


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Get one application. The recruiter's first look marks it viewed,
    moves it from pending to reviewed and lets the applicant know.
    """
    application, job = await get_application_with_job(db, application_id)

    if current_user.role == UserRole.RECRUITER:
        ensure_recruiter_owner(application, current_user)
        if application.viewed_at is None:
            application.viewed_at = datetime.now(timezone.utc)
            if application.status == ApplicationStatus.PENDING:
                application.status = ApplicationStatus.REVIEWED
            await notify(db, application_viewed_notification(
                user_id=application.applicant_id,
                application_id=application.id,
                job_title=job.title,
                company_name=job.company,
                recruiter_name=current_user.name,
            ), background_tasks)
            await db.commit()
            await db.refresh(application)
    else:
        ensure_applicant_owner(application, current_user)

    return to_application_response(application, job)


# ============================================================================
# Recruiter actions
# ============================================================================

@router.put("/{application_id}/status", response_model=ApplicationResponse)
async def update_application_status(
    application_id: int,
    status_data: ApplicationStatusUpdate,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    application, job = await get_application_with_job(db, application_id)
    ensure_recruiter_owner(application, recruiter)

    if application.status == ApplicationStatus.WITHDRAWN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application has been withdrawn"
        )

    new_status = ApplicationStatus(status_data.status)
    if new_status == application.status:
        return to_application_response(application, job)

    application.status = new_status
    await notify(db, status_change_notification(
        user_id=application.applicant_id,
        application_id=application.id,
        job_title=job.title,
        company_name=job.company,
        status=new_status.value,
    ), background_tasks)

    await db.commit()
    await db.refresh(application)
    return to_application_response(application, job)


@router.post("/{application_id}/interview", response_model=ApplicationResponse)
async def schedule_interview(
    application_id: int,
    interview_data: InterviewSchedule,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    application, job = await get_application_with_job(db, application_id)
    ensure_recruiter_owner(application, recruiter)

    if application.status == ApplicationStatus.WITHDRAWN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application has been withdrawn"
        )

    application.interview_at = interview_data.interview_at
    application.interview_status = InterviewStatus.SCHEDULED
    await notify(db, interview_notification(
        user_id=application.applicant_id,
        application_id=application.id,
        job_title=job.title,
        company_name=job.company,
        interview_at=interview_data.interview_at,
    ), background_tasks)

    await db.commit()
    await db.refresh(application)
    return to_application_response(application, job)


@router.post("/{application_id}/match", response_model=ResumeMatchResult)
async def score_application(
    application_id: int,
    db: AsyncSession = Depends(get_db),
    recruiter: User = Depends(require_recruiter)
):
    """Run the resume match for this application and keep the result"""
    application, job = await get_application_with_job(db, application_id)
    ensure_recruiter_owner(application, recruiter)

    if not application.resume_data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application has no parsed resume to score"
        )

    try:
        result = await analyze_resume_match(application.resume_data, job_details_for_match(job))
    except LLMNotConfiguredError:
        raise llm_unavailable()
    except LLMResponseError as e:
        raise llm_bad_response("Failed to analyze resume match", e)

    application.match_score = result.overall_score
    application.match_analysis = result.model_dump()
    await db.commit()
    return result


# ============================================================================
# Applicant actions
# ============================================================================

@router.post("/{application_id}/withdraw", response_model=ApplicationResponse)
async def withdraw_application(
    application_id: int,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    application, job = await get_application_with_job(db, application_id)
    ensure_applicant_owner(application, applicant)

    if application.status == ApplicationStatus.WITHDRAWN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Application already withdrawn"
        )

    application.status = ApplicationStatus.WITHDRAWN
    await db.execute(
        update(Job)
        .where(Job.id == job.id, Job.applicants_count > 0)
        .values(applicants_count=Job.applicants_count - 1)
        .execution_options(synchronize_session=False)
    )
    await notify(db, application_update_notification(
        user_id=application.recruiter_id,
        application_id=application.id,
        job_title=job.title,
        candidate_name=applicant.name,
        update_type="withdrawn",
    ), background_tasks)

    await db.commit()
    await db.refresh(application)
    return to_application_response(application, job)


@router.post("/{application_id}/interview/respond", response_model=ApplicationResponse)
async def respond_to_interview(
    application_id: int,
    response_data: InterviewResponse,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    application, job = await get_application_with_job(db, application_id)
    ensure_applicant_owner(application, applicant)

    if application.interview_status != InterviewStatus.SCHEDULED:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No scheduled interview to respond to"
        )

    if response_data.accept:
        application.interview_status = InterviewStatus.ACCEPTED
        update_type = "accepted_interview"
    else:
        application.interview_status = InterviewStatus.DECLINED
        update_type = "declined_interview"

    await notify(db, application_update_notification(
        user_id=application.recruiter_id,
        application_id=application.id,
        job_title=job.title,
        candidate_name=applicant.name,
        update_type=update_type,
    ), background_tasks)

    await db.commit()
    await db.refresh(application)
    return to_application_response(application, job)
