"""
Document text extraction for uploaded resumes.

PDFs are read with PyMuPDF; scanned PDFs and images go through Google Cloud
Vision OCR. Word documents are read with python-docx.
"""
import base64
import io
import logging
import mimetypes
import re
from typing import Dict, List, Optional

import fitz  # PyMuPDF
import httpx
from docx import Document

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

VISION_API_URL = "https://vision.googleapis.com/v1/images:annotate"
NO_TEXT_DETECTED = "No text detected in the image."

PDF_MIME = "application/pdf"
DOC_MIME = "application/msword"
DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
TEXT_MIME = "text/plain"
IMAGE_MIMES = ("image/jpeg", "image/png", "image/tiff")

SUPPORTED_MIME_TYPES = (PDF_MIME, DOC_MIME, DOCX_MIME, TEXT_MIME) + IMAGE_MIMES

UNSUPPORTED_FILE_MESSAGE = (
    "Invalid file type. Please upload a PDF, Word document, image, or plain text file."
)


class DocumentParsingError(Exception):
    """Raised when a supported document cannot be turned into text"""


class UnsupportedFileTypeError(Exception):
    """Raised for uploads outside SUPPORTED_MIME_TYPES"""

    def __init__(self, content_type: Optional[str]):
        self.content_type = content_type
        super().__init__(UNSUPPORTED_FILE_MESSAGE)


def resolve_content_type(filename: Optional[str], declared: Optional[str]) -> Optional[str]:
    """
    Trust the declared type when it is one we handle, otherwise guess from
    the file extension (browsers often send application/octet-stream).
    """
    declared = (declared or "").split(";")[0].strip().lower()
    if declared in SUPPORTED_MIME_TYPES:
        return declared
    if filename:
        guessed, _ = mimetypes.guess_type(filename)
        if guessed in SUPPORTED_MIME_TYPES:
            return guessed
    return declared or None


# ============================================================================
# Extractors
# ============================================================================

async def extract_text_with_vision(image_bytes: bytes) -> str:
    """OCR a single image with Google Cloud Vision TEXT_DETECTION"""
    api_key = settings.google_cloud_api_key
    if not api_key:
        raise DocumentParsingError("Google Cloud API key not configured")

    payload = {
        "requests": [
            {
                "image": {"content": base64.b64encode(image_bytes).decode("ascii")},
                "features": [{"type": "TEXT_DETECTION", "maxResults": 1}],
            }
        ]
    }

    try:
        async with httpx.AsyncClient(timeout=60.0) as client:
            response = await client.post(VISION_API_URL, params={"key": api_key}, json=payload)
            response.raise_for_status()
            data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"Cloud Vision request failed: {type(e).__name__}")
        raise DocumentParsingError(
            "Failed to extract text from image with Cloud Vision API"
        ) from e

    responses = data.get("responses") or [{}]
    annotations = responses[0].get("textAnnotations") or []
    if not annotations:
        return NO_TEXT_DETECTED
    # The first annotation holds the full text
    return annotations[0].get("description") or ""


def pdf_to_images(pdf_bytes: bytes, dpi: int = 150) -> List[bytes]:
    """
    Convert PDF to list of PNG images using PyMuPDF (no poppler dependency).

    Args:
        pdf_bytes: Raw PDF file bytes
        dpi: Resolution for conversion (default 150 for good quality without huge size)

    Returns:
        List of PNG image bytes, one per page
    """
    images = []
    pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")

    # Scale factor for DPI (default PDF is 72 DPI)
    zoom = dpi / 72.0
    matrix = fitz.Matrix(zoom, zoom)

    for page in pdf_document:
        pix = page.get_pixmap(matrix=matrix)
        images.append(pix.tobytes("png"))

    pdf_document.close()
    return images


def _pdf_text_layer(pdf_bytes: bytes) -> str:
    try:
        pdf_document = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise DocumentParsingError("Could not open PDF file") from e

    try:
        pages = [page.get_text() for page in pdf_document]
    finally:
        pdf_document.close()
    return "\n\n".join(p.strip() for p in pages if p.strip())


async def extract_pdf_text(pdf_bytes: bytes) -> str:
    text = _pdf_text_layer(pdf_bytes)
    if text:
        return text

    # Scanned PDF: no text layer, OCR each page
    if not settings.google_cloud_api_key:
        raise DocumentParsingError(
            "PDF has no extractable text and OCR is not configured"
        )
    logger.info("PDF has no text layer, running OCR page by page")
    pages = [await extract_text_with_vision(image) for image in pdf_to_images(pdf_bytes)]
    text = "\n\n".join(p.strip() for p in pages if p.strip() and p != NO_TEXT_DETECTED)
    if not text:
        raise DocumentParsingError("No text could be extracted from the PDF")
    return text


def extract_docx_text(content: bytes) -> str:
    try:
        document = Document(io.BytesIO(content))
    except Exception as e:
        raise DocumentParsingError("Could not read Word document") from e
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


async def extract_text(content: bytes, content_type: Optional[str]) -> str:
    """Extract raw text from an uploaded resume based on its MIME type."""
    if content_type not in SUPPORTED_MIME_TYPES:
        raise UnsupportedFileTypeError(content_type)

    if content_type == TEXT_MIME:
        return content.decode("utf-8", errors="replace")
    if content_type in IMAGE_MIMES:
        return await extract_text_with_vision(content)
    if content_type == PDF_MIME:
        return await extract_pdf_text(content)
    return extract_docx_text(content)


# ============================================================================
# Text clean-up
# ============================================================================

_BULLETS = re.compile(r"[•●○◦◘□]")
_CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")
_INLINE_SPACE = re.compile(r"[ \t]+")

OCR_CORRECTIONS = {
    "Objeclive": "Objective",
    "Educalion": "Education",
    "Expehence": "Experience",
    "Skílls": "Skills",
    "Achievemenls": "Achievements",
}


def preprocess_resume_text(text: str) -> str:
    """Normalise line breaks, bullets and whitespace and fix common OCR slips."""
    processed = text.replace("\r\n", "\n").replace("\r", "\n")
    processed = _BULLETS.sub("* ", processed)
    processed = _CONTROL_CHARS.sub("", processed)
    processed = _INLINE_SPACE.sub(" ", processed)
    processed = "\n".join(line.strip() for line in processed.split("\n"))

    for error, correction in OCR_CORRECTIONS.items():
        processed = re.sub(re.escape(error), correction, processed, flags=re.IGNORECASE)

    return processed.strip()


SECTION_PATTERNS = [
    ("summary", re.compile(r"\b(summary|profile|objective|about|professional\s+summary)\b", re.I)),
    ("education", re.compile(r"\b(education|academic|qualification|degree)\b", re.I)),
    ("experience", re.compile(r"\b(experience|employment|work\s+history|professional\s+experience)\b", re.I)),
    ("skills", re.compile(r"\b(skills|technical\s+skills|core\s+competencies|expertise)\b", re.I)),
    ("projects", re.compile(r"\b(projects|personal\s+projects|project\s+experience)\b", re.I)),
    ("certifications", re.compile(r"\b(certifications|certificates|credentials|qualifications)\b", re.I)),
]


def _section_for_header(line: str) -> Optional[str]:
    # Headers are short and start with a capital letter
    if len(line) >= 50 or not re.match(r"[A-Z]", line):
        return None
    for name, pattern in SECTION_PATTERNS:
        if pattern.search(line):
            return name
    return None


def extract_resume_sections(text: str) -> Dict[str, str]:
    """
    Split resume text into named sections keyed by
    summary/education/experience/skills/projects/certifications.
    Anything before the first header is kept under ``other``.
    """
    sections: Dict[str, str] = {}
    current = "other"
    content: List[str] = []

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line:
            continue

        section = _section_for_header(line)
        if section is None:
            content.append(line)
            continue

        if content:
            sections[current] = "\n".join(content)
        current = section
        content = []

    if content:
        sections[current] = "\n".join(content)
    return sections
