"""Per-device key/value storage, the server-side stand-in for a browser's localStorage."""
from __future__ import annotations

from redis.asyncio import Redis

DEVICE_KEY_PREFIX = "device:"


class DeviceStorage:
    def __init__(self, redis: Redis, device_id: str) -> None:
        if not device_id:
            raise ValueError("device_id is required")
        self._redis = redis
        self.device_id = device_id

    def _key(self, name: str) -> str:
        return f"{DEVICE_KEY_PREFIX}{self.device_id}:{name}"

    async def get_item(self, name: str) -> str | None:
        return await self._redis.get(self._key(name))

    async def set_item(self, name: str, value: str) -> None:
        await self._redis.set(self._key(name), value)

    async def remove_item(self, name: str) -> None:
        await self._redis.delete(self._key(name))
