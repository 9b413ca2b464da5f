from __future__ import annotations

import base64
import random
from typing import Any

import pytest
from fastapi import HTTPException

from backend.app.services import stickers, validation

PHOTO = b"\xff\xd8\xff\xe0fake-jpeg"


@pytest.fixture
def dead_eye():
    return stickers.find_sticker("s1")


@pytest.mark.contract
@pytest.mark.parametrize(
    ("reply", "expected"),
    [
        ('{"valid": true, "confidence": 91, "reason": "Same skull artwork."}', (True, 91, "Same skull artwork.")),
        ('Sure!\n```json\n{"valid": false, "confidence": "12", "reason": "Blurry"}\n```', (False, 12, "Blurry")),
        ('{"valid": 1, "confidence": "high"}', (True, 0, "")),
        ('{"valid": true, "confidence": 80, "reason": 42}', (True, 80, "42")),
        ('{"valid": true, "confidence": "Infinity", "reason": "ok"}', (True, 0, "ok")),
        ('{"valid": true, "confidence": -Infinity, "reason": "ok"}', (True, 0, "ok")),
        ('{"valid": false, "confidence": NaN, "reason": "no"}', (False, 0, "no")),
    ],
)
def test_parse_verdict_coerces_fields(reply: str, expected: tuple[bool, float, str]) -> None:
    verdict = validation.parse_verdict(reply)
    assert (verdict.valid, verdict.confidence, verdict.reason) == expected


@pytest.mark.contract
def test_reply_without_json_is_unreadable() -> None:
    verdict = validation.parse_verdict("I cannot tell.")
    assert verdict.valid is False
    assert verdict.confidence == 0
    assert verdict.reason == "Could not analyze photo."


@pytest.mark.contract
def test_malformed_json_block_raises() -> None:
    with pytest.raises(ValueError):
        validation.parse_verdict("{valid: yes}")


def test_decode_photo_accepts_data_url() -> None:
    encoded = base64.b64encode(PHOTO).decode()
    assert validation.decode_photo(encoded) == PHOTO
    assert validation.decode_photo(f"data:image/jpeg;base64,{encoded}") == PHOTO
    with pytest.raises(HTTPException) as excinfo:
        validation.decode_photo("***not base64***")
    assert excinfo.value.status_code == 400


def test_contents_with_reference_compare_two_images() -> None:
    parts = validation.build_contents(PHOTO, "Dead Eye", (b"ref-bytes", "image/png"))
    images = [p for p in parts if p.inline_data is not None]
    assert [img.inline_data.mime_type for img in images] == ["image/png", "image/jpeg"]
    assert "same sticker as the reference image" in parts[-1].text


def test_contents_without_reference_describe_by_name() -> None:
    parts = validation.build_contents(PHOTO, "Dead Eye", None)
    assert len([p for p in parts if p.inline_data is not None]) == 1
    assert '"Dead Eye"' in parts[0].text
    assert "street art sticker or graffiti tag" in parts[-1].text


@pytest.mark.contract
@pytest.mark.asyncio
async def test_judge_photo_uses_reference_when_available(monkeypatch: pytest.MonkeyPatch, dead_eye) -> None:
    seen: dict[str, Any] = {}

    async def fake_reference(sticker):
        return b"ref", "image/jpeg"

    async def fake_invoke(contents):
        seen["contents"] = contents
        return '{"valid": true, "confidence": 88, "reason": "Dead Eye confirmed."}'

    monkeypatch.setattr(validation, "fetch_reference_image", fake_reference)
    monkeypatch.setattr(validation, "_invoke_gemini", fake_invoke)

    verdict = await validation.judge_photo(PHOTO, dead_eye)

    assert verdict.valid is True
    assert verdict.confidence == 88
    assert len([p for p in seen["contents"] if p.inline_data is not None]) == 2


@pytest.mark.asyncio
async def test_validate_sticker_requires_photo_outside_demo(supabase, dead_eye) -> None:
    with pytest.raises(HTTPException) as excinfo:
        await validation.validate_sticker(None, dead_eye)
    assert excinfo.value.status_code == 400


@pytest.mark.asyncio
async def test_missing_api_key_is_a_server_error(monkeypatch: pytest.MonkeyPatch, supabase, dead_eye) -> None:
    async def no_reference(sticker):
        return None

    monkeypatch.setattr(validation, "fetch_reference_image", no_reference)
    monkeypatch.setattr(validation.settings, "gemini_api_key", "")
    validation.get_gemini_client.cache_clear()

    with pytest.raises(HTTPException) as excinfo:
        await validation.validate_sticker(base64.b64encode(PHOTO).decode(), dead_eye)
    assert excinfo.value.status_code == 500


@pytest.mark.asyncio
async def test_simulated_verdict_ranges(dead_eye) -> None:
    rng = random.Random(7)
    for _ in range(30):
        verdict = await validation.simulate_verdict(dead_eye, rng)
        if verdict.valid:
            assert 75 <= verdict.confidence <= 99
            assert verdict.reason == "Dead Eye confirmed."
        else:
            assert 20 <= verdict.confidence <= 59
            assert verdict.reason == "Photo doesn't match the sticker."
