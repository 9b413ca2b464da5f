from __future__ import annotations

import asyncio
import base64
import binascii
import json
import logging
import math
import random
import re
from functools import lru_cache

import httpx
from fastapi import HTTPException, status
from google import genai
from google.genai import types

from ..core.config import settings
from ..schemas import Sticker, ValidationVerdict
from .stickers import reference_url

logger = logging.getLogger(__name__)

SERVER_ERROR_REASON = "Server error. Please try again."
UNREADABLE_VERDICT = ValidationVerdict(valid=False, confidence=0, reason="Could not analyze photo.")

_JSON_BLOCK = re.compile(r"\{[\s\S]*\}")

_VERDICT_FORMAT = """Respond with JSON only, no other text:
{
  "valid": true or false,
  "confidence": 0-100,
  "reason": "one sentence explanation"
}"""

_COMPARE_RULES = """Does the user's photo show the same sticker as the reference image?

Rules:
- The sticker may appear at different angles, sizes, or lighting conditions
- It may be partially obscured or weathered, that's fine
- The key artwork and shapes should match
- Ignore background differences (wall color, surroundings)
- A clear, deliberate photo of the same sticker design = valid

""" + _VERDICT_FORMAT

_DESCRIBE_RULES = """Does this photo clearly show a street art sticker or graffiti tag?

Rules:
- Must be a real photo (not a screenshot of the app)
- Must show some kind of sticker, tag, or street art
- Must be in focus enough to identify it
- Selfies or unrelated photos = invalid

""" + _VERDICT_FORMAT


@lru_cache
def get_gemini_client() -> genai.Client:
    if not settings.gemini_api_key:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="GEMINI_API_KEY is not configured.",
        )
    try:
        return genai.Client(api_key=settings.gemini_api_key)
    except Exception as exc:  # pragma: no cover
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Gemini client init failed: {exc}") from exc


def decode_photo(photo_base64: str) -> bytes:
    """Decode a base64 photo, accepting an optional ``data:...;base64,`` prefix."""
    if photo_base64.startswith("data:") and "," in photo_base64:
        photo_base64 = photo_base64.split(",", 1)[1]
    try:
        return base64.b64decode(photo_base64, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Photo is not valid base64") from exc


async def fetch_reference_image(sticker: Sticker) -> tuple[bytes, str] | None:
    url = reference_url(sticker)
    if not url:
        return None
    try:
        async with httpx.AsyncClient(timeout=settings.request_timeout) as client:
            response = await client.get(url)
    except httpx.HTTPError as exc:
        logger.warning("Reference image for %s unavailable: %s", sticker.id, exc)
        return None
    if response.status_code != 200:
        logger.info("Reference image for %s returned %s, validating by description", sticker.id, response.status_code)
        return None
    mime_type = response.headers.get("content-type", "image/jpeg").split(";")[0].strip() or "image/jpeg"
    return response.content, mime_type


def build_contents(photo: bytes, sticker_name: str, reference: tuple[bytes, str] | None) -> list[types.Part]:
    if reference is not None:
        ref_bytes, ref_mime = reference
        return [
            types.Part.from_text(
                text="You are validating a street art sticker hunt.\n\n"
                "Reference sticker image (what the sticker looks like):"
            ),
            types.Part.from_bytes(data=ref_bytes, mime_type=ref_mime),
            types.Part.from_text(text="User's photo (what they photographed in the real world):"),
            types.Part.from_bytes(data=photo, mime_type="image/jpeg"),
            types.Part.from_text(text=_COMPARE_RULES),
        ]
    return [
        types.Part.from_text(
            text=f'You are validating a street art sticker hunt for a sticker called "{sticker_name}".\n\n'
            "The user claims to have found and photographed this sticker in the real world."
        ),
        types.Part.from_bytes(data=photo, mime_type="image/jpeg"),
        types.Part.from_text(text=_DESCRIBE_RULES),
    ]


async def _invoke_gemini(contents: list[types.Part]) -> str:
    client = get_gemini_client()
    try:
        response = await asyncio.to_thread(
            client.models.generate_content,
            model=settings.gemini_model,
            contents=contents,
            config=types.GenerateContentConfig(max_output_tokens=settings.gemini_max_output_tokens),
        )
    except Exception as exc:
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Gemini API call failed: {exc}",
        ) from exc
    return response.text or ""


def _as_confidence(value: object) -> float:
    try:
        number = float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return 0
    return number if math.isfinite(number) else 0


def parse_verdict(text: str) -> ValidationVerdict:
    """Pull the first JSON object out of the model reply.

    A reply without any ``{...}`` block is an unreadable verdict; a block that
    is not valid JSON raises ``ValueError``.
    """
    match = _JSON_BLOCK.search(text or "")
    if not match:
        return UNREADABLE_VERDICT.model_copy()
    data = json.loads(match.group(0))
    if not isinstance(data, dict):
        raise ValueError("Verdict is not a JSON object")
    reason = data.get("reason")
    return ValidationVerdict(
        valid=bool(data.get("valid")),
        confidence=_as_confidence(data.get("confidence")),
        reason="" if reason is None else str(reason),
    )


async def judge_photo(photo: bytes, sticker: Sticker, sticker_name: str | None = None) -> ValidationVerdict:
    """Ask the model whether the photo shows ``sticker``."""
    reference = await fetch_reference_image(sticker)
    contents = build_contents(photo, sticker_name or sticker.name, reference)
    raw = await _invoke_gemini(contents)
    return parse_verdict(raw)


async def simulate_verdict(sticker: Sticker, rng: random.Random | None = None) -> ValidationVerdict:
    rng = rng or random.Random()
    await asyncio.sleep(settings.demo_validation_delay)
    valid = rng.random() > 0.3
    if valid:
        return ValidationVerdict(valid=True, confidence=rng.randint(75, 99), reason=f"{sticker.name} confirmed.")
    return ValidationVerdict(valid=False, confidence=rng.randint(20, 59), reason="Photo doesn't match the sticker.")


async def validate_sticker(photo_base64: str | None, sticker: Sticker) -> ValidationVerdict:
    if settings.is_demo:
        return await simulate_verdict(sticker)
    if not photo_base64:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Missing photo")
    return await judge_photo(decode_photo(photo_base64), sticker)
