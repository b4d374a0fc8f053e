"""
Cloudinary Service - remote storage for uploaded resumes.
Without credentials the profile router keeps files on local disk.
"""
import asyncio
import io
import logging
from functools import lru_cache
from typing import Optional

import cloudinary
import cloudinary.uploader

from ..config import get_settings

logger = logging.getLogger(__name__)

RESUME_FOLDER = "jobnexus/resumes"


@lru_cache()
def is_cloudinary_available() -> bool:
    """Configure the SDK once; False when credentials are missing"""
    settings = get_settings()
    credentials = (
        settings.cloudinary_cloud_name,
        settings.cloudinary_api_key,
        settings.cloudinary_api_secret,
    )
    if not all(credentials):
        logger.warning("Cloudinary credentials not configured. Resume files will be stored locally.")
        return False

    cloudinary.config(
        cloud_name=settings.cloudinary_cloud_name,
        api_key=settings.cloudinary_api_key,
        api_secret=settings.cloudinary_api_secret,
        secure=True
    )
    logger.info(f"Cloudinary initialized: {settings.cloudinary_cloud_name}")
    return True


async def upload_resume(content: bytes, public_id: str) -> Optional[str]:
    """
    Upload resume bytes as a raw asset and return its https URL.
    Returns None when Cloudinary is not configured or the upload fails,
    so the caller can fall back to local storage.
    """
    if not is_cloudinary_available():
        return None

    try:
        result = await asyncio.to_thread(
            cloudinary.uploader.upload,
            io.BytesIO(content),
            folder=RESUME_FOLDER,
            public_id=public_id,
            resource_type="raw",
        )
    except Exception as e:
        logger.error(f"Failed to upload resume {public_id}: {e}")
        return None

    return result.get("secure_url")
