import unittest
from unittest.mock import AsyncMock, patch

import fitz
import httpx

from jobnexus.config import get_settings
from jobnexus.services.document_parser import (
    NO_TEXT_DETECTED, PDF_MIME, TEXT_MIME, VISION_API_URL, DocumentParsingError, UnsupportedFileTypeError,
    extract_resume_sections, extract_text, preprocess_resume_text, resolve_content_type,
)


def make_pdf(text=None) -> bytes:
    """One-page PDF; without text it looks like a scanned page"""
    document = fitz.open()
    page = document.new_page()
    if text:
        page.insert_text((72, 72), text)
    data = document.tobytes()
    document.close()
    return data


def vision_response(description=None, status_code=200) -> httpx.Response:
    annotations = [{"description": description}] if description else []
    return httpx.Response(
        status_code,
        json={"responses": [{"textAnnotations": annotations}]},
        request=httpx.Request("POST", VISION_API_URL),
    )


class PreprocessTests(unittest.TestCase):
    def test_normalises_whitespace_bullets_and_ocr_slips(self):
        raw = "  John   Doe \r\n• Python\tdeveloper\r\nExpehence\x07 "
        self.assertEqual(preprocess_resume_text(raw), "John Doe\n* Python developer\nExperience")

    def test_keeps_line_structure(self):
        self.assertEqual(preprocess_resume_text("Skills\n\nPython"), "Skills\n\nPython")


class SectionTests(unittest.TestCase):
    def test_splits_on_section_headers(self):
        text = (
            "Jane Doe\njane@example.com\n"
            "Summary\nBackend engineer\n"
            "Experience\nEngineer at Acme\n"
            "Skills\nPython, SQL"
        )
        self.assertEqual(extract_resume_sections(text), {
            "other": "Jane Doe\njane@example.com",
            "summary": "Backend engineer",
            "experience": "Engineer at Acme",
            "skills": "Python, SQL",
        })

    def test_long_or_lowercase_lines_are_not_headers(self):
        text = (
            "Summary\n"
            "experience with large systems\n"
            "Worked on a wide range of experience-driven products for many years"
        )
        sections = extract_resume_sections(text)
        self.assertEqual(list(sections), ["summary"])


class ContentTypeTests(unittest.TestCase):
    def test_declared_supported_type_wins(self):
        self.assertEqual(resolve_content_type("resume.bin", PDF_MIME), PDF_MIME)

    def test_generic_type_is_guessed_from_extension(self):
        self.assertEqual(resolve_content_type("resume.pdf", "application/octet-stream"), PDF_MIME)
        self.assertEqual(resolve_content_type("notes.txt", None), TEXT_MIME)

    def test_unknown_type_is_returned_as_is(self):
        self.assertEqual(resolve_content_type("tool.exe", "application/x-msdownload"), "application/x-msdownload")


class ExtractTextTests(unittest.IsolatedAsyncioTestCase):
    async def test_plain_text_is_decoded(self):
        self.assertEqual(await extract_text("Jane Doe\nPython".encode(), TEXT_MIME), "Jane Doe\nPython")

    async def test_unsupported_type_raises(self):
        with self.assertRaises(UnsupportedFileTypeError):
            await extract_text(b"MZ", "application/x-msdownload")

    async def test_pdf_text_layer_is_read_without_ocr(self):
        with patch("httpx.AsyncClient.post", AsyncMock()) as vision:
            text = await extract_text(make_pdf("Jane Doe Python Developer"), PDF_MIME)

        self.assertIn("Jane Doe Python Developer", text)
        vision.assert_not_awaited()

    async def test_scanned_pdf_without_ocr_key_fails(self):
        with self.assertRaises(DocumentParsingError) as raised:
            await extract_text(make_pdf(), PDF_MIME)
        self.assertEqual(str(raised.exception), "PDF has no extractable text and OCR is not configured")

    async def test_scanned_pdf_pages_are_sent_to_vision(self):
        vision = AsyncMock(return_value=vision_response("Jane Doe\nPython"))
        with patch.object(get_settings(), "google_cloud_api_key", "vision-key"), \
                patch("httpx.AsyncClient.post", vision):
            text = await extract_text(make_pdf(), PDF_MIME)

        self.assertEqual(text, "Jane Doe\nPython")
        self.assertEqual(vision.await_args.kwargs["params"], {"key": "vision-key"})
        request = vision.await_args.kwargs["json"]["requests"][0]
        self.assertEqual(request["features"][0]["type"], "TEXT_DETECTION")
        self.assertTrue(request["image"]["content"])

    async def test_scanned_pdf_with_no_detected_text_fails(self):
        with patch.object(get_settings(), "google_cloud_api_key", "vision-key"), \
                patch("httpx.AsyncClient.post", AsyncMock(return_value=vision_response())):
            with self.assertRaises(DocumentParsingError) as raised:
                await extract_text(make_pdf(), PDF_MIME)
        self.assertEqual(str(raised.exception), "No text could be extracted from the PDF")

    async def test_image_with_no_detected_text(self):
        with patch.object(get_settings(), "google_cloud_api_key", "vision-key"), \
                patch("httpx.AsyncClient.post", AsyncMock(return_value=vision_response())):
            self.assertEqual(await extract_text(b"\x89PNG", "image/png"), NO_TEXT_DETECTED)

    async def test_vision_http_failure(self):
        with patch.object(get_settings(), "google_cloud_api_key", "vision-key"), \
                patch("httpx.AsyncClient.post", AsyncMock(return_value=vision_response(status_code=500))):
            with self.assertRaises(DocumentParsingError) as raised:
                await extract_text(b"\x89PNG", "image/png")
        self.assertEqual(str(raised.exception), "Failed to extract text from image with Cloud Vision API")
