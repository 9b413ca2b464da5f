"""Offline cache: one JSON blob per device, shallow-merged on every write."""
from __future__ import annotations

import json
import logging
from typing import Any

from redis.exceptions import RedisError

from ..core.config import settings
from ..db.storage import DeviceStorage

logger = logging.getLogger(__name__)


class OfflineCache:
    def __init__(self, storage: DeviceStorage, key: str | None = None) -> None:
        self._storage = storage
        self.key = key or settings.cache_key

    async def read(self) -> dict[str, Any]:
        try:
            raw = await self._storage.get_item(self.key)
        except RedisError as exc:
            logger.warning("Offline cache unavailable for %s: %s", self._storage.device_id, exc)
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding corrupt offline cache for %s", self._storage.device_id)
            return {}
        return data if isinstance(data, dict) else {}

    async def write(self, data: dict[str, Any]) -> None:
        merged = {**await self.read(), **data}
        try:
            await self._storage.set_item(self.key, json.dumps(merged))
        except (TypeError, ValueError, RedisError) as exc:
            logger.warning("Offline cache write failed for %s: %s", self._storage.device_id, exc)

    async def clear(self) -> None:
        await self._storage.remove_item(self.key)
