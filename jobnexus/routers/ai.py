"""
AI Router - resume parsing, enhancement, resume/job matching and job
description analysis
"""
import logging
import time
from typing import Tuple
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File, status

from ..config import get_settings
from ..models import User
from ..schemas.resume import (
    ResumeParseResponse, ResumeEnhanceRequest, ResumeEnhanceResponse,
    ResumeMatchRequest, ResumeMatchResult, JobAnalysisRequest, JobAnalysisResponse
)
from ..services.auth import get_current_user
from ..services.llm import LLMNotConfiguredError, LLMResponseError
from ..services.document_parser import (
    SUPPORTED_MIME_TYPES, UNSUPPORTED_FILE_MESSAGE, DocumentParsingError, UnsupportedFileTypeError,
    resolve_content_type, extract_text, preprocess_resume_text
)
from ..services.resume_parser import parse_resume
from ..services.resume_enhancer import enhance_resume
from ..services.resume_match import analyze_resume_match
from ..services.job_analyzer import analyze_job_description

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api", tags=["AI"])


# ============================================================================
# Helper Functions
# ============================================================================

def llm_unavailable() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="AI service is not configured"
    )


def llm_bad_response(detail: str, error: Exception) -> HTTPException:
    logger.error(f"{detail}: {error}")
    return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=detail)


async def read_resume_upload(file: UploadFile) -> Tuple[bytes, str]:
    """Validate type and size of an uploaded resume and return its bytes and MIME type"""
    content_type = resolve_content_type(file.filename, file.content_type)
    if content_type not in SUPPORTED_MIME_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UNSUPPORTED_FILE_MESSAGE
        )

    content = await file.read()
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty"
        )
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(
            status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            detail=f"File size must be less than {settings.max_upload_mb}MB"
        )
    return content, content_type


async def extract_resume_text(content: bytes, content_type: str) -> str:
    try:
        text = await extract_text(content, content_type)
    except UnsupportedFileTypeError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=UNSUPPORTED_FILE_MESSAGE
        )
    except DocumentParsingError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e)
        )
    return preprocess_resume_text(text)


# ============================================================================
# Endpoints
# ============================================================================

@router.post("/resume-parser", response_model=ResumeParseResponse)
async def parse_resume_file(
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user)
):
    """Extract text from an uploaded resume and structure it"""
    content, content_type = await read_resume_upload(file)
    logger.info(f"Parsing resume upload ({content_type}, {len(content)} bytes)")

    text = await extract_resume_text(content, content_type)
    data, method = await parse_resume(text)

    return ResumeParseResponse(
        data=data,
        id=f"resume_{int(time.time() * 1000)}",
        method=method
    )


@router.post("/resume-enhancer", response_model=ResumeEnhanceResponse)
async def enhance_resume_for_job(
    request: ResumeEnhanceRequest,
    current_user: User = Depends(get_current_user)
):
    """Tailor a resume to a job. Falls back to keyword heuristics when AI is unavailable."""
    data, method = await enhance_resume(request.resume, request.job)
    return ResumeEnhanceResponse(data=data, method=method)


@router.post("/resume-match", response_model=ResumeMatchResult)
async def match_resume_to_job(
    request: ResumeMatchRequest,
    current_user: User = Depends(get_current_user)
):
    if not request.resume_data or not request.job_details:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Missing resume data or job details"
        )

    try:
        return await analyze_resume_match(request.resume_data, request.job_details)
    except LLMNotConfiguredError:
        raise llm_unavailable()
    except LLMResponseError as e:
        raise llm_bad_response("Failed to analyze resume match", e)


@router.post("/job-analyzer", response_model=JobAnalysisResponse)
async def analyze_job(
    request: JobAnalysisRequest,
    current_user: User = Depends(get_current_user)
):
    if not request.description or not request.description.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Job description is required"
        )

    try:
        analysis = await analyze_job_description(request.description)
    except LLMNotConfiguredError:
        raise llm_unavailable()
    except LLMResponseError as e:
        raise llm_bad_response("Failed to analyze job description", e)

    return JobAnalysisResponse(**analysis.model_dump())
