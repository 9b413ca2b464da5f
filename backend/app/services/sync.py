"""Best-effort mirroring of profiles and drops to the remote store.

Every helper is a no-op in demo mode and swallows store failures after
logging them; the offline cache stays authoritative for the device.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

import httpx

from ..core.config import settings
from ..db.supabase import SupabaseClient, SupabaseError
from ..schemas import Drop

logger = logging.getLogger(__name__)

USERS_TABLE = "users"
DROPS_TABLE = "drops"
LEADERBOARD_SIZE = 10


def _enabled(client: SupabaseClient | None) -> bool:
    return client is not None and not settings.is_demo


async def fetch_profile(client: SupabaseClient | None, user_id: str, token: str | None = None) -> dict[str, Any] | None:
    if not _enabled(client):
        return None
    try:
        rows = await client.table(USERS_TABLE, token).select("*", {"user_id": f"eq.{user_id}"})
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Profile fetch failed for %s: %s", user_id, exc)
        return None
    return rows[0] if rows else None


async def save_profile(
    client: SupabaseClient | None,
    user_id: str,
    fields: dict[str, Any],
    token: str | None = None,
) -> None:
    if not _enabled(client):
        return
    row = {"user_id": user_id, **fields, "updated_at": datetime.now(timezone.utc).isoformat()}
    try:
        await client.table(USERS_TABLE, token).upsert(row)
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Profile save failed for %s: %s", user_id, exc)


async def save_drop(client: SupabaseClient | None, user_id: str, drop: Drop, token: str | None = None) -> None:
    if not _enabled(client):
        return
    row = {
        "user_id": user_id,
        "sticker_id": drop.sticker_id,
        "lat": drop.lat,
        "lng": drop.lng,
        "city": drop.city,
        "pts": drop.pts,
        "pioneer": drop.pioneer,
    }
    try:
        await client.table(DROPS_TABLE, token).insert(row)
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Drop save failed for %s: %s", user_id, exc)


def row_to_drop(row: dict[str, Any]) -> Drop:
    return Drop(
        id=str(row.get("id")),
        sticker_id=str(row.get("sticker_id")),
        lat=float(row.get("lat") or 0),
        lng=float(row.get("lng") or 0),
        owner=row.get("username") or "you",
        city=row.get("city") or "",
        time="synced",
        pts=int(row.get("pts") or 0),
        pioneer=bool(row.get("pioneer")),
        is_own=True,
    )


async def load_drops(client: SupabaseClient | None, user_id: str, token: str | None = None) -> list[Drop]:
    if not _enabled(client):
        return []
    try:
        rows = await client.table(DROPS_TABLE, token).select(
            "*", {"user_id": f"eq.{user_id}"}, order="created_at.desc"
        )
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Drop history fetch failed for %s: %s", user_id, exc)
        return []
    return [row_to_drop(row) for row in rows]


async def fetch_leaderboard(client: SupabaseClient | None, limit: int = LEADERBOARD_SIZE) -> list[dict[str, Any]]:
    if not _enabled(client):
        return []
    try:
        return await client.table(USERS_TABLE).select(
            "username,total_score,avatar_id", order="total_score.desc", limit=limit
        )
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Leaderboard fetch failed: %s", exc)
        return []
