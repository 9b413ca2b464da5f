"""Thin async client for the Supabase REST, Auth and Storage endpoints.

No SDK: every call is a single httpx request. Non-2xx responses raise
:class:`SupabaseError`; callers decide whether to fall back.
"""
from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.config import settings

logger = logging.getLogger(__name__)

AVATAR_BUCKET = "avatars"


class SupabaseError(Exception):
    def __init__(self, status_code: int, payload: Any = None) -> None:
        self.status_code = status_code
        self.payload = payload
        super().__init__(f"Supabase request failed ({status_code}): {payload}")


def _decode(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class Table:
    """Row operations against one PostgREST table.

    ``filters`` maps a column to a PostgREST operator expression, e.g.
    ``{"user_id": "eq.abc"}``.
    """

    def __init__(self, client: SupabaseClient, name: str, access_token: str | None = None) -> None:
        self._client = client
        self.name = name
        self._access_token = access_token

    @property
    def _path(self) -> str:
        return f"/rest/v1/{self.name}"

    async def select(
        self,
        columns: str = "*",
        filters: dict[str, str] | None = None,
        *,
        order: str | None = None,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"select": columns, **(filters or {})}
        if order:
            params["order"] = order
        if limit is not None:
            params["limit"] = limit
        data = await self._client.request("GET", self._path, params=params, access_token=self._access_token)
        return data or []

    async def insert(self, rows: dict[str, Any] | list[dict[str, Any]]) -> list[dict[str, Any]]:
        body = rows if isinstance(rows, list) else [rows]
        return await self._client.request(
            "POST",
            self._path,
            json=body,
            access_token=self._access_token,
            headers={"Prefer": "return=representation"},
        ) or []

    async def upsert(self, row: dict[str, Any]) -> list[dict[str, Any]]:
        return await self._client.request(
            "POST",
            self._path,
            json=row,
            access_token=self._access_token,
            headers={"Prefer": "resolution=merge-duplicates,return=representation"},
        ) or []

    async def update(self, body: dict[str, Any], filters: dict[str, str]) -> list[dict[str, Any]]:
        return await self._client.request(
            "PATCH",
            self._path,
            params=filters,
            json=body,
            access_token=self._access_token,
            headers={"Prefer": "return=representation"},
        ) or []


class SupabaseClient:
    def __init__(
        self,
        url: str,
        anon_key: str,
        *,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.url = url.rstrip("/")
        self.anon_key = anon_key
        self._http = httpx.AsyncClient(base_url=self.url, timeout=timeout, transport=transport)

    def _headers(self, access_token: str | None, extra: dict[str, str] | None = None) -> dict[str, str]:
        headers = {"apikey": self.anon_key, "Content-Type": "application/json"}
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
        content: bytes | None = None,
        access_token: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        response = await self._http.request(
            method,
            path,
            params=params,
            json=json,
            content=content,
            headers=self._headers(access_token, headers),
        )
        if not response.is_success:
            raise SupabaseError(response.status_code, _decode(response))
        return _decode(response)

    def table(self, name: str, access_token: str | None = None) -> Table:
        return Table(self, name, access_token)

    async def send_magic_link(self, email: str, redirect_to: str) -> None:
        await self.request(
            "POST",
            "/auth/v1/otp",
            json={"email": email, "options": {"emailRedirectTo": redirect_to}},
        )

    async def exchange_token(self, token: str) -> dict[str, Any]:
        data = await self.request(
            "POST",
            "/auth/v1/token",
            params={"grant_type": "magiclink"},
            json={"token": token},
        )
        if not isinstance(data, dict) or not data.get("access_token"):
            raise SupabaseError(200, data)
        return data

    def avatar_public_url(self, path: str) -> str:
        return f"{self.url}/storage/v1/object/public/{AVATAR_BUCKET}/{path}"

    async def upload_avatar(
        self,
        user_id: str,
        filename: str,
        content: bytes,
        content_type: str,
        access_token: str | None = None,
    ) -> str:
        """Upload (overwriting) ``{user_id}/avatar.{ext}`` and return its public URL."""
        ext = filename.rsplit(".", 1)[-1] if "." in filename else "jpg"
        path = f"{user_id}/avatar.{ext or 'jpg'}"
        await self.request(
            "POST",
            f"/storage/v1/object/{AVATAR_BUCKET}/{path}",
            content=content,
            headers={
                "Authorization": f"Bearer {access_token or self.anon_key}",
                "Content-Type": content_type or "application/octet-stream",
                "x-upsert": "true",
            },
        )
        return self.avatar_public_url(path)

    async def aclose(self) -> None:
        await self._http.aclose()


class SupabaseConnectionManager:
    client: SupabaseClient | None = None

    @classmethod
    def get_client(cls) -> SupabaseClient:
        if cls.client is None:
            cls.client = SupabaseClient(
                settings.supabase_url,
                settings.supabase_anon,
                timeout=settings.request_timeout,
            )
            logger.info("Supabase client created for %s", settings.supabase_url or "<demo>")
        return cls.client

    @classmethod
    async def close(cls) -> None:
        if cls.client:
            await cls.client.aclose()
            cls.client = None
