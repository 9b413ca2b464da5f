from typing import Any

from fastapi import APIRouter

from ...core.config import settings
from ...services.avatars import EMOJI_AVATARS
from ...services.stickers import RARITY_STYLES

router = APIRouter()


@router.get("/", summary="Public client configuration")
async def get_client_config() -> dict[str, Any]:
    return {
        "project_name": settings.project_name,
        "demo": settings.is_demo,
        "rarity_styles": {rarity.value: style.model_dump() for rarity, style in RARITY_STYLES.items()},
        "avatars": [choice.model_dump() for choice in EMOJI_AVATARS],
    }
