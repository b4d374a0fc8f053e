"""
Profile Router - candidate profile, resume upload with background parsing,
and saved resumes
"""
import logging
import os
import re
import uuid
from datetime import datetime, timezone
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, UploadFile, File, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import aiofiles

from ..config import get_settings
from ..database import get_db
from ..models import (
    User, CandidateProfile, SavedResume, Job, ResumeParsingJob, ResumeParsingStatus
)
from ..schemas.profile import (
    ProfileUpdate, ProfileResponse, SavedResumeCreate, SavedResumeUpdate, SavedResumeResponse,
    EnhanceSavedResumeRequest, EnhanceSavedResumeResponse, ResumeUploadResponse,
    ResumeParsingJobResponse
)
from ..schemas.resume import ResumeData, JobContext
from ..services.auth import require_applicant
from ..services import cloudinary_service
from ..services.document_parser import (
    extract_text, preprocess_resume_text, DocumentParsingError, UnsupportedFileTypeError
)
from ..services.resume_parser import parse_resume
from ..services.resume_enhancer import enhance_resume
from .ai import read_resume_upload

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api/profile", tags=["Profile"])


# ============================================================================
# Helper Functions
# ============================================================================

async def get_or_create_profile(db: AsyncSession, user_id: str) -> CandidateProfile:
    result = await db.execute(
        select(CandidateProfile).where(CandidateProfile.user_id == user_id)
    )
    profile = result.scalar_one_or_none()
    if profile is None:
        profile = CandidateProfile(user_id=user_id, skills=[])
        db.add(profile)
        await db.flush()
    return profile


async def get_owned_saved_resume(db: AsyncSession, resume_id: int, user: User) -> SavedResume:
    result = await db.execute(
        select(SavedResume).where(
            SavedResume.id == resume_id,
            SavedResume.user_id == user.id
        )
    )
    saved = result.scalar_one_or_none()
    if not saved:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Saved resume not found"
        )
    return saved


def _safe_filename(filename: str) -> str:
    safe = filename.replace(" ", "_").replace("/", "_").replace("\\", "_")
    safe = re.sub(r"[^\w\-_\.]", "", safe)
    return re.sub(r"_+", "_", safe) or "resume"


def _safe_truncate(value: Optional[str], max_len: int) -> Optional[str]:
    """Safely truncate a string to max_len characters."""
    if value is None:
        return None
    return value[:max_len]


async def store_resume_file(user_id: str, filename: str, content: bytes) -> str:
    """Store the file in Cloudinary when configured, otherwise on local disk"""
    unique_id = uuid.uuid4().hex[:12]
    stored_name = f"user_{_safe_filename(user_id)}_{unique_id}_{_safe_filename(filename)}"

    uploaded_url = await cloudinary_service.upload_resume(content, public_id=stored_name)
    if uploaded_url:
        logger.info("Resume uploaded to Cloudinary")
        return uploaded_url

    resumes_dir = os.path.join(settings.uploads_dir, "resumes")
    os.makedirs(resumes_dir, exist_ok=True)
    async with aiofiles.open(os.path.join(resumes_dir, stored_name), "wb") as f:
        await f.write(content)

    logger.info("Resume saved to local storage")
    return f"/uploads/resumes/{stored_name}"


# ============================================================================
# Background Processing Function
# ============================================================================

async def process_resume_background(
    job_id: int,
    user_id: str,
    content: bytes,
    content_type: str
):
    """
    Parse an uploaded resume into the profile. The file is already stored,
    so a failure here only marks the parsing job failed.
    """
    from ..database import async_session_maker

    async with async_session_maker() as db:
        result = await db.execute(select(ResumeParsingJob).where(ResumeParsingJob.id == job_id))
        job = result.scalar_one_or_none()
        if job is None:
            return

        job.status = ResumeParsingStatus.PROCESSING
        job.started_at = datetime.now(timezone.utc)
        await db.commit()

        try:
            text = preprocess_resume_text(await extract_text(content, content_type))
            data, method = await parse_resume(text)

            profile = await get_or_create_profile(db, user_id)
            profile.resume_data = data.model_dump()
            if not profile.skills:
                profile.skills = list(data.skills)
            profile.resume_parsed_at = datetime.now(timezone.utc)

            job.status = ResumeParsingStatus.COMPLETED
            job.parse_method = method
            job.completed_at = datetime.now(timezone.utc)
            await db.commit()
            logger.info(f"Resume parsing job {job_id} completed ({method})")
        except (DocumentParsingError, UnsupportedFileTypeError) as e:
            await db.rollback()
            await _mark_job_failed(db, job_id, str(e))
        except Exception as e:
            logger.exception(f"Resume parsing job {job_id} crashed")
            await db.rollback()
            await _mark_job_failed(db, job_id, f"{type(e).__name__}: {e}")


async def _mark_job_failed(db: AsyncSession, job_id: int, message: str):
    result = await db.execute(select(ResumeParsingJob).where(ResumeParsingJob.id == job_id))
    job = result.scalar_one()
    job.status = ResumeParsingStatus.FAILED
    job.error_message = message[:500]
    job.completed_at = datetime.now(timezone.utc)
    await db.commit()
    logger.warning(f"Resume parsing job {job_id} failed: {message}")


# ============================================================================
# Profile
# ============================================================================

@router.get("", response_model=ProfileResponse)
async def get_my_profile(
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    profile = await get_or_create_profile(db, applicant.id)
    await db.commit()
    return profile


@router.put("", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    profile = await get_or_create_profile(db, applicant.id)

    changes = profile_data.model_dump(exclude_unset=True)
    for field, value in changes.items():
        setattr(profile, field, value)

    await db.commit()
    await db.refresh(profile)
    return profile


@router.post("/resume", response_model=ResumeUploadResponse, status_code=status.HTTP_202_ACCEPTED)
async def upload_resume(
    background_tasks: BackgroundTasks,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """
    Store the resume first, then parse it in the background.
    Even if parsing fails the file stays attached to the profile.
    """
    content, content_type = await read_resume_upload(file)
    filename = file.filename or "resume"

    resume_url = await store_resume_file(applicant.id, filename, content)

    profile = await get_or_create_profile(db, applicant.id)
    profile.resume_filename = _safe_truncate(filename, 255)
    profile.resume_url = _safe_truncate(resume_url, 500)
    profile.resume_parsed_at = None

    job = ResumeParsingJob(
        user_id=applicant.id,
        resume_filename=_safe_truncate(filename, 255),
        resume_url=_safe_truncate(resume_url, 500),
        status=ResumeParsingStatus.PENDING
    )
    db.add(job)
    await db.commit()
    await db.refresh(job)

    background_tasks.add_task(process_resume_background, job.id, applicant.id, content, content_type)

    return ResumeUploadResponse(job_id=job.id, resume_url=resume_url)


@router.get("/resume-status/{job_id}", response_model=ResumeParsingJobResponse)
async def get_resume_status(
    job_id: int,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """Check the status of a resume parsing job."""
    result = await db.execute(
        select(ResumeParsingJob).where(
            ResumeParsingJob.id == job_id,
            ResumeParsingJob.user_id == applicant.id
        )
    )
    job = result.scalar_one_or_none()

    if not job:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Job not found"
        )

    return ResumeParsingJobResponse(
        job_id=job.id,
        status=job.status.value,
        error_message=job.error_message,
        resume_url=job.resume_url,
        parse_method=job.parse_method,
        created_at=job.created_at,
        started_at=job.started_at,
        completed_at=job.completed_at
    )


# ============================================================================
# Saved Resumes
# ============================================================================

@router.get("/resumes", response_model=List[SavedResumeResponse])
async def list_saved_resumes(
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    result = await db.execute(
        select(SavedResume)
        .where(SavedResume.user_id == applicant.id)
        .order_by(SavedResume.created_at.desc(), SavedResume.id.desc())
    )
    return result.scalars().all()


@router.post("/resumes", response_model=SavedResumeResponse, status_code=status.HTTP_201_CREATED)
async def create_saved_resume(
    resume_data: SavedResumeCreate,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    saved = SavedResume(
        user_id=applicant.id,
        name=resume_data.name,
        data=resume_data.data.model_dump(),
        is_enhanced=False
    )
    db.add(saved)
    await db.commit()
    await db.refresh(saved)
    return saved


@router.post("/resumes/enhance", response_model=EnhanceSavedResumeResponse, status_code=status.HTTP_201_CREATED)
async def enhance_saved_resume(
    request: EnhanceSavedResumeRequest,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    """Tailor a saved resume (or the profile resume) to a job and keep it as a new saved resume"""
    result = await db.execute(select(Job).where(Job.id == request.job_id))
    job = result.scalar_one_or_none()
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job not found")

    if request.saved_resume_id is not None:
        source = await get_owned_saved_resume(db, request.saved_resume_id, applicant)
        source_name, source_data = source.name, source.data
    else:
        profile = await get_or_create_profile(db, applicant.id)
        if not profile.resume_data:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="No parsed resume to enhance. Upload a resume first."
            )
        source_name, source_data = "Profile Resume", profile.resume_data

    job_context = JobContext(
        title=job.title,
        company=job.company,
        description=job.description or "",
        skills=job.skills or [],
        requirements=job.requirements or [],
        experience_level=job.experience_level
    )
    enhanced, method = await enhance_resume(ResumeData.model_validate(source_data), job_context)

    saved = SavedResume(
        user_id=applicant.id,
        name=_safe_truncate(request.name or f"{source_name} - Enhanced for {job.title}", 255),
        data=enhanced.model_dump(),
        job_id=job.id,
        is_enhanced=True
    )
    db.add(saved)
    await db.commit()
    await db.refresh(saved)
    return EnhanceSavedResumeResponse(resume=SavedResumeResponse.model_validate(saved), method=method)


@router.get("/resumes/{resume_id}", response_model=SavedResumeResponse)
async def get_saved_resume(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    return await get_owned_saved_resume(db, resume_id, applicant)


@router.put("/resumes/{resume_id}", response_model=SavedResumeResponse)
async def update_saved_resume(
    resume_id: int,
    resume_data: SavedResumeUpdate,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    saved = await get_owned_saved_resume(db, resume_id, applicant)

    if resume_data.name is not None:
        saved.name = resume_data.name
    if resume_data.data is not None:
        saved.data = resume_data.data.model_dump()

    await db.commit()
    await db.refresh(saved)
    return saved


@router.delete("/resumes/{resume_id}")
async def delete_saved_resume(
    resume_id: int,
    db: AsyncSession = Depends(get_db),
    applicant: User = Depends(require_applicant)
):
    saved = await get_owned_saved_resume(db, resume_id, applicant)
    await db.delete(saved)
    await db.commit()
    return {"id": resume_id, "deleted": True}
