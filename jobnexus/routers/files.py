"""
File proxy - streams stored resumes and attachments back inline so the
browser can preview them without cross-origin download prompts.
"""
import logging
from typing import Optional
from urllib.parse import urlparse

import httpx
from fastapi import APIRouter, HTTPException, status
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/api", tags=["Files"])

PROXY_TIMEOUT = httpx.Timeout(30.0, connect=10.0)
MAX_REDIRECTS = 5


def validate_proxy_url(url: Optional[str]) -> str:
    """Only https URLs on the configured storage hosts may be proxied"""
    if not url or not url.strip():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No URL provided"
        )

    url = url.strip()
    parsed = urlparse(url)
    if parsed.scheme != "https" or not parsed.hostname:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only https URLs can be proxied"
        )
    if parsed.hostname.lower() not in settings.get_proxy_allowed_hosts():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Host is not allowed"
        )
    return url


async def open_upstream(client: httpx.AsyncClient, target: str) -> httpx.Response:
    """
    Follow redirects by hand so every hop goes through the same
    https and host checks as the original URL.
    """
    for _ in range(MAX_REDIRECTS + 1):
        upstream = await client.send(client.build_request("GET", target), stream=True)
        if not upstream.is_redirect:
            return upstream

        location = upstream.headers["location"]
        await upstream.aclose()
        try:
            target = validate_proxy_url(str(httpx.URL(target).join(location)))
        except HTTPException:
            logger.warning(f"File proxy refused redirect from {urlparse(target).hostname}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Redirect target is not allowed"
            )

    raise HTTPException(
        status_code=status.HTTP_502_BAD_GATEWAY,
        detail="Too many redirects"
    )


@router.get("/proxy-file")
async def proxy_file(url: Optional[str] = None):
    target = validate_proxy_url(url)

    client = httpx.AsyncClient(timeout=PROXY_TIMEOUT)
    try:
        upstream = await open_upstream(client, target)
    except httpx.HTTPError as e:
        await client.aclose()
        logger.warning(f"File proxy transport error for host {urlparse(target).hostname}: {e}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Failed to fetch file"
        )
    except HTTPException:
        await client.aclose()
        raise

    if upstream.status_code < 200 or upstream.status_code >= 300:
        await upstream.aclose()
        await client.aclose()
        logger.warning(f"File proxy upstream returned {upstream.status_code}")
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to fetch file: {upstream.status_code}"
        )

    async def close_upstream():
        await upstream.aclose()
        await client.aclose()

    return StreamingResponse(
        upstream.aiter_bytes(),
        media_type=upstream.headers.get("content-type", "application/octet-stream"),
        headers={"Content-Disposition": "inline"},
        background=BackgroundTask(close_upstream),
    )
