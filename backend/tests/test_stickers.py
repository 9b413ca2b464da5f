from __future__ import annotations

import pytest

from backend.app.core.config import settings
from backend.app.schemas import Rarity
from backend.app.services import stickers


@pytest.mark.asyncio
async def test_demo_mode_serves_defaults() -> None:
    assert await stickers.fetch_stickers(None) == stickers.DEFAULT_STICKERS


@pytest.mark.asyncio
async def test_empty_store_falls_back_to_defaults(supabase) -> None:
    assert await stickers.fetch_stickers(supabase) == stickers.DEFAULT_STICKERS


@pytest.mark.asyncio
async def test_store_error_falls_back_to_defaults(supabase, fake_store) -> None:
    fake_store.fail_paths.add("/rest/v1/stickers")
    assert await stickers.fetch_stickers(supabase) == stickers.DEFAULT_STICKERS


@pytest.mark.asyncio
async def test_load_catalog_replaces_wholesale(supabase, fake_store) -> None:
    fake_store.tables["stickers"] = [
        {"id": "a1", "name": "Moth", "rarity": "Epic", "pts": 35, "hint": "Rooftop", "color": "#123456",
         "art_url": "https://cdn.test/moth.png", "reference_url": None, "active": True},
        {"id": "a2", "name": "Retired", "rarity": "Common", "pts": 10, "hint": "", "color": "#fff",
         "art_url": None, "reference_url": None, "active": False},
        {"id": "a3", "name": "Broken", "rarity": "Mythic", "pts": 10, "hint": "", "color": "#fff",
         "art_url": None, "reference_url": None, "active": True},
    ]

    catalog = await stickers.load_catalog(supabase)

    assert [s.id for s in catalog] == ["a1"]
    assert stickers.get_catalog() == catalog
    assert stickers.find_sticker("s1") is None
    assert stickers.find_sticker("a1").rarity is Rarity.EPIC
    params = fake_store.requests[-1].url.params
    assert params["active"] == "eq.true"
    assert params["order"] == "id"


def test_reference_url_prefers_row_then_bundled_artwork(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "app_url", "https://hunt.test/")
    dead_eye = stickers.find_sticker("s1")
    assert stickers.reference_url(dead_eye) == "https://hunt.test/stickers/dead-eye.jpg"

    custom = dead_eye.model_copy(update={"reference_url": "https://cdn.test/ref.jpg"})
    assert stickers.reference_url(custom) == "https://cdn.test/ref.jpg"

    unknown = dead_eye.model_copy(update={"id": "zz"})
    assert stickers.reference_url(unknown) is None


def test_rarity_style_unknown_falls_back_to_common() -> None:
    assert stickers.rarity_style("Mythic") == stickers.RARITY_STYLES[Rarity.COMMON]
    assert stickers.rarity_style(Rarity.LEGENDARY).color == "#FFD700"
