"""
Gemini access shared by the resume parser, enhancer, matcher and job analyzer.
Every caller asks for a single JSON object back.
"""
import json
import logging
import re
from typing import Optional

from google import genai

from ..config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


class LLMNotConfiguredError(Exception):
    """Raised when no Gemini API key is configured"""


class LLMResponseError(Exception):
    """Raised when the model call fails or its reply holds no usable JSON"""


# Lazy initialization of Gemini client
_genai_client = None


def get_genai_client():
    """Get the Gemini client, initializing lazily if needed."""
    global _genai_client
    if _genai_client is None:
        if not settings.gemini_api_key:
            logger.warning("GEMINI_API_KEY not set - AI features disabled")
            return None
        _genai_client = genai.Client(api_key=settings.gemini_api_key)
    return _genai_client


def extract_json_object(text: Optional[str]) -> dict:
    """Pull the outermost JSON object out of a model reply."""
    if not text:
        raise LLMResponseError("Empty response from Gemini API")

    response_text = text.strip()
    # Clean up response if it has markdown code blocks
    if response_text.startswith("```json"):
        response_text = response_text[7:]
    if response_text.startswith("```"):
        response_text = response_text[3:]
    if response_text.endswith("```"):
        response_text = response_text[:-3]

    match = _JSON_OBJECT.search(response_text)
    if not match:
        raise LLMResponseError("Failed to extract JSON from Gemini API response")

    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise LLMResponseError(f"Gemini API returned malformed JSON: {e}") from e

    if not isinstance(data, dict):
        raise LLMResponseError("Gemini API response is not a JSON object")
    return data


async def generate_json(
    prompt: str,
    *,
    temperature: float = 0.2,
    top_p: Optional[float] = None,
    top_k: Optional[int] = None,
    max_output_tokens: int = 2048,
) -> dict:
    """
    Send ``prompt`` to the configured Gemini model and return the JSON object
    in its reply.

    Raises:
        LLMNotConfiguredError: no API key
        LLMResponseError: transport/SDK failure, empty or non-JSON reply
    """
    client = get_genai_client()
    if client is None:
        raise LLMNotConfiguredError("Gemini API not configured. Please set GEMINI_API_KEY.")

    try:
        response = await client.aio.models.generate_content(
            model=settings.gemini_model,
            contents=prompt,
            config=genai.types.GenerateContentConfig(
                temperature=temperature,
                top_p=top_p,
                top_k=top_k,
                max_output_tokens=max_output_tokens,
            ),
        )
    except Exception as e:
        logger.error(f"Gemini request failed: {type(e).__name__}: {e}")
        raise LLMResponseError("Gemini API request failed") from e

    return extract_json_object(response.text)
