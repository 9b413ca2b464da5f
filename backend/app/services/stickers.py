"""Sticker catalog.

The catalog is a single module-level list, replaced wholesale by
:func:`load_catalog`. Until the store answers (or whenever it cannot), the
hardcoded defaults are served.
"""
from __future__ import annotations

import logging

import httpx
from pydantic import ValidationError

from ..core.config import settings
from ..db.supabase import SupabaseClient, SupabaseError
from ..schemas import Rarity, RarityStyle, Sticker

logger = logging.getLogger(__name__)

CATALOG_COLUMNS = "id,name,rarity,pts,hint,color,art_url,reference_url"

DEFAULT_STICKERS: list[Sticker] = [
    Sticker(id="s1", name="Dead Eye", rarity=Rarity.COMMON, pts=10, hint="Near a red wall", color="#FF4444"),
    Sticker(id="s2", name="Neon Reaper", rarity=Rarity.RARE, pts=20, hint="Dark alley wall", color="#C6FF00"),
    Sticker(id="s3", name="Grin", rarity=Rarity.COMMON, pts=10, hint="Bus stop or bench", color="#ffffff"),
    Sticker(id="s4", name="Void King", rarity=Rarity.EPIC, pts=35, hint="Underground spot", color="#8B5CF6"),
    Sticker(id="s5", name="Rust Face", rarity=Rarity.RARE, pts=20, hint="Industrial area", color="#FF8C00"),
    Sticker(id="s6", name="Ghost Tag", rarity=Rarity.COMMON, pts=10, hint="Stairwell or corner", color="#88ccff"),
    Sticker(id="s7", name="Gold Tooth", rarity=Rarity.LEGENDARY, pts=50, hint="Only 3 exist in Jakarta", color="#FFD700"),
    Sticker(id="s8", name="Static", rarity=Rarity.EPIC, pts=35, hint="Near electronics shops", color="#00FFCC"),
]

# Reference artwork served by the web shell, used when a row has no reference_url
STICKER_REFERENCES: dict[str, str] = {
    "s1": "/stickers/dead-eye.jpg",
    "s2": "/stickers/neon-reaper.jpg",
    "s3": "/stickers/grin.jpg",
    "s4": "/stickers/void-king.jpg",
    "s5": "/stickers/rust-face.jpg",
    "s6": "/stickers/ghost-tag.jpg",
    "s7": "/stickers/gold-tooth.jpg",
    "s8": "/stickers/static.jpg",
}

RARITY_STYLES: dict[Rarity, RarityStyle] = {
    Rarity.COMMON: RarityStyle(color="#aaa", bg="rgba(170,170,170,0.08)", border="rgba(170,170,170,0.2)"),
    Rarity.RARE: RarityStyle(color="#8B5CF6", bg="rgba(139,92,246,0.1)", border="rgba(139,92,246,0.3)"),
    Rarity.EPIC: RarityStyle(color="#EC4899", bg="rgba(236,72,153,0.1)", border="rgba(236,72,153,0.3)"),
    Rarity.LEGENDARY: RarityStyle(color="#FFD700", bg="rgba(255,215,0,0.1)", border="rgba(255,215,0,0.35)"),
}

PLACEHOLDER_STICKER = Sticker(id="?", name="?", pts=0, color="#C6FF00")

_catalog: list[Sticker] = list(DEFAULT_STICKERS)


def get_catalog() -> list[Sticker]:
    return _catalog


def set_catalog(stickers: list[Sticker]) -> None:
    global _catalog
    _catalog = list(stickers)


def find_sticker(sticker_id: str | None) -> Sticker | None:
    if not sticker_id:
        return None
    return next((s for s in _catalog if s.id == sticker_id), None)


def rarity_style(rarity: Rarity | str) -> RarityStyle:
    try:
        return RARITY_STYLES[Rarity(rarity)]
    except ValueError:
        return RARITY_STYLES[Rarity.COMMON]


def reference_url(sticker: Sticker) -> str | None:
    if sticker.reference_url:
        return sticker.reference_url
    path = STICKER_REFERENCES.get(sticker.id)
    if not path:
        return None
    return f"{settings.app_url.rstrip('/')}{path}"


async def fetch_stickers(client: SupabaseClient | None) -> list[Sticker]:
    """Active stickers from the store, or the defaults on any failure or empty result."""
    if settings.is_demo or client is None:
        return list(DEFAULT_STICKERS)
    try:
        rows = await client.table("stickers").select(
            CATALOG_COLUMNS, {"active": "eq.true"}, order="id"
        )
    except (SupabaseError, httpx.HTTPError) as exc:
        logger.warning("Sticker catalog fetch failed, using defaults: %s", exc)
        return list(DEFAULT_STICKERS)

    stickers: list[Sticker] = []
    for row in rows:
        try:
            stickers.append(Sticker.model_validate(row))
        except ValidationError as exc:
            logger.warning("Skipping malformed sticker row %s: %s", row.get("id"), exc)
    return stickers or list(DEFAULT_STICKERS)


async def load_catalog(client: SupabaseClient | None) -> list[Sticker]:
    stickers = await fetch_stickers(client)
    set_catalog(stickers)
    logger.info("Sticker catalog loaded: %d stickers", len(stickers))
    return stickers
