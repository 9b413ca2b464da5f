import logging

from redis.asyncio import Redis
from redis.exceptions import RedisError

from ..core.config import settings

logger = logging.getLogger(__name__)


class RedisConnectionManager:
    """Process-wide Redis client backing per-device storage."""

    client: Redis | None = None

    @classmethod
    def get_client(cls) -> Redis:
        if cls.client is None:
            cls.client = Redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        return cls.client

    @classmethod
    async def ping(cls) -> bool:
        try:
            return bool(await cls.get_client().ping())
        except RedisError as exc:
            logger.warning("Device storage unreachable: %s", exc)
            return False

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            await cls.client.aclose()
            cls.client = None
