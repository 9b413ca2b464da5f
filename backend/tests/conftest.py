from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any
from urllib.parse import unquote

import httpx
import jwt
import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.core.config import settings  # noqa: E402
from backend.app.db.redis import RedisConnectionManager  # noqa: E402
from backend.app.db.storage import DeviceStorage  # noqa: E402
from backend.app.db.supabase import SupabaseClient, SupabaseConnectionManager  # noqa: E402
from backend.app.services import stickers as sticker_catalog  # noqa: E402
from backend.app.services.game import GameSessionRegistry  # noqa: E402


class MemoryRedis:
    """Just enough of redis.asyncio.Redis for device storage."""

    def __init__(self) -> None:
        self.data: dict[str, str] = {}

    async def get(self, key: str) -> str | None:
        return self.data.get(key)

    async def set(self, key: str, value: str, ex: int | None = None) -> None:
        self.data[key] = value

    async def delete(self, *keys: str) -> int:
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def ping(self) -> bool:
        return True

    async def aclose(self) -> None:
        return None


class FakeSupabase:
    """In-memory PostgREST/Auth/Storage backend served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {"users": [], "drops": [], "stickers": []}
        self.requests: list[httpx.Request] = []
        self.fail_paths: set[str] = set()
        self.uploads: dict[str, bytes] = {}

    def _filtered(self, table: str, params: httpx.QueryParams) -> list[dict[str, Any]]:
        rows = list(self.tables.get(table, []))
        for column, expr in params.multi_items():
            if column in ("select", "order", "limit"):
                continue
            op, _, value = expr.partition(".")
            if op == "eq":
                rows = [r for r in rows if str(r.get(column)).lower() == value.lower()]
        order = params.get("order")
        if order:
            column, _, direction = order.partition(".")
            rows.sort(key=lambda r: r.get(column) or 0, reverse=direction == "desc")
        if params.get("limit"):
            rows = rows[: int(params["limit"])]
        return rows

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.path)
        if any(path.startswith(prefix) for prefix in self.fail_paths):
            return httpx.Response(500, json={"message": "boom"})

        if path == "/auth/v1/otp":
            return httpx.Response(200, json={})
        if path == "/auth/v1/token":
            body = json.loads(request.content)
            if body.get("token") != "good-token":
                return httpx.Response(401, json={"error": "invalid"})
            return httpx.Response(200, json={"access_token": make_token("user-9", "nine@example.com"), "refresh_token": "r9"})
        if path.startswith("/storage/v1/object/avatars/"):
            self.uploads[path.removeprefix("/storage/v1/object/avatars/")] = request.content
            return httpx.Response(200, json={"Key": path})

        table = path.removeprefix("/rest/v1/")
        if request.method == "GET":
            return httpx.Response(200, json=self._filtered(table, request.url.params))
        if request.method == "POST":
            body = json.loads(request.content)
            rows = body if isinstance(body, list) else [body]
            existing = self.tables.setdefault(table, [])
            if "merge-duplicates" in request.headers.get("Prefer", ""):
                for row in rows:
                    match = next((r for r in existing if r.get("user_id") == row.get("user_id")), None)
                    if match is not None:
                        match.update(row)
                    else:
                        existing.append(dict(row))
            else:
                for row in rows:
                    existing.append({"id": len(existing) + 1, **row})
            return httpx.Response(201, json=rows)
        if request.method == "PATCH":
            body = json.loads(request.content)
            rows = self._filtered(table, request.url.params)
            for row in rows:
                row.update(body)
            return httpx.Response(200, json=rows)
        return httpx.Response(405)


def make_token(sub: str, email: str) -> str:
    return jwt.encode({"sub": sub, "email": email}, "streethunt-test-signing-secret-0123456789", algorithm="HS256")


@pytest.fixture
def memory_redis() -> MemoryRedis:
    return MemoryRedis()


@pytest.fixture
def storage(memory_redis: MemoryRedis) -> DeviceStorage:
    return DeviceStorage(memory_redis, "device-1")


@pytest.fixture(autouse=True)
def stub_infrastructure(monkeypatch: pytest.MonkeyPatch, memory_redis: MemoryRedis) -> None:
    """Demo mode, in-memory Redis, default catalog and no live sessions for every test."""
    monkeypatch.setattr(settings, "supabase_url", "")
    monkeypatch.setattr(settings, "supabase_anon", "")
    monkeypatch.setattr(settings, "demo_validation_delay", 0.0)
    monkeypatch.setattr(RedisConnectionManager, "client", memory_redis)

    async def _noop_close(cls: type) -> None:
        return None

    monkeypatch.setattr(RedisConnectionManager, "close", classmethod(_noop_close))
    GameSessionRegistry.clear()
    sticker_catalog.set_catalog(sticker_catalog.DEFAULT_STICKERS)
    yield
    GameSessionRegistry.clear()
    sticker_catalog.set_catalog(sticker_catalog.DEFAULT_STICKERS)


@pytest.fixture
def fake_store() -> FakeSupabase:
    return FakeSupabase()


@pytest.fixture
def supabase(monkeypatch: pytest.MonkeyPatch, fake_store: FakeSupabase) -> SupabaseClient:
    """Leave demo mode and route every store call to ``fake_store``."""
    monkeypatch.setattr(settings, "supabase_url", "https://project.supabase.test")
    monkeypatch.setattr(settings, "supabase_anon", "anon-key")
    client = SupabaseClient(
        settings.supabase_url,
        settings.supabase_anon,
        transport=httpx.MockTransport(fake_store.handler),
    )
    monkeypatch.setattr(SupabaseConnectionManager, "client", client)

    async def _noop_close(cls: type) -> None:
        return None

    monkeypatch.setattr(SupabaseConnectionManager, "close", classmethod(_noop_close))
    return client


@pytest.fixture
def token_factory():
    return make_token
