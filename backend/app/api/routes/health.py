from typing import Any

from fastapi import APIRouter

from ...core.config import settings
from ...db.redis import RedisConnectionManager
from ...services import stickers as sticker_catalog

router = APIRouter()


@router.get("/health", summary="Liveness check")
async def healthcheck() -> dict[str, Any]:
    """Always 200 while the process serves; storage and store mode are reported, not enforced."""
    return {
        "status": "ok",
        "mode": "demo" if settings.is_demo else "live",
        "stickers": len(sticker_catalog.get_catalog()),
        "device_storage": "up" if await RedisConnectionManager.ping() else "down",
    }
