from .auth import (
    create_access_token,
    get_token_subject,
    get_current_user,
    require_recruiter,
    require_applicant,
    bearer_scheme
)
from .llm import (
    generate_json,
    extract_json_object,
    LLMNotConfiguredError,
    LLMResponseError
)
from .document_parser import (
    extract_text,
    preprocess_resume_text,
    extract_resume_sections,
    DocumentParsingError,
    UnsupportedFileTypeError
)
from .resume_parser import (
    parse_resume,
    parse_resume_text,
    heuristic_parse_resume,
    transform_resume_data
)
from .resume_enhancer import enhance_resume, apply_fallback_enhancement
from .resume_match import analyze_resume_match
from .job_analyzer import analyze_job_description
from .notification_service import notify
from .email import send_notification_email
from .cloudinary_service import upload_resume, is_cloudinary_available

__all__ = [
    # Auth
    "create_access_token",
    "get_token_subject",
    "get_current_user",
    "require_recruiter",
    "require_applicant",
    "bearer_scheme",
    # LLM
    "generate_json",
    "extract_json_object",
    "LLMNotConfiguredError",
    "LLMResponseError",
    # Documents
    "extract_text",
    "preprocess_resume_text",
    "extract_resume_sections",
    "DocumentParsingError",
    "UnsupportedFileTypeError",
    # Resume pipeline
    "parse_resume",
    "parse_resume_text",
    "heuristic_parse_resume",
    "transform_resume_data",
    "enhance_resume",
    "apply_fallback_enhancement",
    "analyze_resume_match",
    "analyze_job_description",
    # Notifications
    "notify",
    "send_notification_email",
    # Cloudinary
    "upload_resume",
    "is_cloudinary_available"
]
