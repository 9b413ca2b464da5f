"""Avatar descriptors.

A profile stores its avatar as a JSON string tagged by kind::

    {"type": "emoji", "value": "🪦"}
    {"type": "upload", "value": "https://.../avatars/<user>/avatar.jpg"}

Older profiles hold a bare sticker id (``"s1"``) instead.
"""
from __future__ import annotations

import base64
import json
from dataclasses import dataclass

from ..schemas import AvatarChoice
from . import stickers as sticker_catalog

EMOJI_AVATARS: list[AvatarChoice] = [
    AvatarChoice(type="emoji", value="🪦", label="Headstone"),
    AvatarChoice(type="emoji", value="💀", label="Skull"),
]


@dataclass
class AvatarUpload:
    filename: str
    content: bytes
    content_type: str = "image/jpeg"

    def as_data_url(self) -> str:
        encoded = base64.b64encode(self.content).decode("ascii")
        return f"data:{self.content_type};base64,{encoded}"


def emoji_avatar(value: str) -> str:
    return json.dumps({"type": "emoji", "value": value}, ensure_ascii=False)


def upload_avatar(value: str) -> str:
    return json.dumps({"type": "upload", "value": value})


def is_offered_emoji(value: str) -> bool:
    return any(choice.value == value for choice in EMOJI_AVATARS)


def describe_avatar(avatar_id: str | None) -> dict[str, str]:
    """Resolve a stored descriptor into ``{"type", "value"}`` for rendering."""
    if avatar_id:
        try:
            parsed = json.loads(avatar_id)
        except ValueError:
            parsed = None
        if isinstance(parsed, dict) and parsed.get("type") in ("emoji", "upload"):
            value = parsed.get("value") or parsed.get("preview") or ""
            return {"type": parsed["type"], "value": str(value)}

    sticker = sticker_catalog.find_sticker(avatar_id) or sticker_catalog.PLACEHOLDER_STICKER
    return {"type": "sticker", "value": sticker.id, "art_url": sticker.art_url or "", "color": sticker.color}
