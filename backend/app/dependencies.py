from collections.abc import AsyncGenerator

from fastapi import Depends, Header, HTTPException, status
from redis.asyncio import Redis

from .core.config import settings
from .db.redis import RedisConnectionManager
from .db.storage import DeviceStorage
from .db.supabase import SupabaseClient, SupabaseConnectionManager
from .services.game import GameSession, GameSessionRegistry


async def get_redis() -> AsyncGenerator[Redis, None]:
    client = RedisConnectionManager.get_client()
    try:
        yield client
    finally:
        # Shared client, closed by the application lifespan
        pass


def get_supabase() -> SupabaseClient | None:
    if settings.is_demo:
        return None
    return SupabaseConnectionManager.get_client()


async def get_device_storage(
    x_device_id: str | None = Header(default=None),
    redis: Redis = Depends(get_redis),
) -> DeviceStorage:
    if not x_device_id or not x_device_id.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="X-Device-Id header is required.")
    return DeviceStorage(redis, x_device_id.strip())


async def get_game_session(
    storage: DeviceStorage = Depends(get_device_storage),
    client: SupabaseClient | None = Depends(get_supabase),
) -> GameSession:
    session = GameSessionRegistry.get(storage, client)
    if not session.restored:
        await session.restore()
    return session
