from __future__ import annotations

import pytest

from backend.app.db.supabase import SupabaseError


@pytest.mark.asyncio
async def test_select_sends_apikey_bearer_and_filters(supabase, fake_store) -> None:
    fake_store.tables["users"] = [{"user_id": "u1", "username": "grin"}, {"user_id": "u2", "username": "void"}]

    rows = await supabase.table("users", "tok-1").select("*", {"user_id": "eq.u2"})

    assert rows == [{"user_id": "u2", "username": "void"}]
    request = fake_store.requests[-1]
    assert request.headers["apikey"] == "anon-key"
    assert request.headers["Authorization"] == "Bearer tok-1"
    assert request.url.params["select"] == "*"


@pytest.mark.asyncio
async def test_anonymous_table_has_no_authorization(supabase, fake_store) -> None:
    await supabase.table("users").select("username", order="total_score.desc", limit=10)
    request = fake_store.requests[-1]
    assert "Authorization" not in request.headers
    assert request.url.params["limit"] == "10"


@pytest.mark.asyncio
async def test_upsert_merges_duplicates(supabase, fake_store) -> None:
    users = supabase.table("users")
    await users.upsert({"user_id": "u1", "total_score": 10})
    await users.upsert({"user_id": "u1", "total_score": 30})

    assert fake_store.tables["users"] == [{"user_id": "u1", "total_score": 30}]
    assert "resolution=merge-duplicates" in fake_store.requests[-1].headers["Prefer"]


@pytest.mark.asyncio
async def test_insert_wraps_single_row_and_update_patches(supabase, fake_store) -> None:
    drops = supabase.table("drops")
    await drops.insert({"user_id": "u1", "pts": 10})
    await drops.update({"pts": 99}, {"user_id": "eq.u1"})

    assert fake_store.tables["drops"][0]["pts"] == 99
    assert fake_store.requests[-1].method == "PATCH"


@pytest.mark.asyncio
async def test_error_status_raises_with_payload(supabase, fake_store) -> None:
    fake_store.fail_paths.add("/rest/v1/users")
    with pytest.raises(SupabaseError) as excinfo:
        await supabase.table("users").select()
    assert excinfo.value.status_code == 500
    assert excinfo.value.payload == {"message": "boom"}


@pytest.mark.asyncio
async def test_upload_avatar_returns_public_url(supabase, fake_store) -> None:
    url = await supabase.upload_avatar("u1", "me.PNG", b"\x89PNG", "image/png", "tok-1")

    assert url == "https://project.supabase.test/storage/v1/object/public/avatars/u1/avatar.PNG"
    assert fake_store.uploads["u1/avatar.PNG"] == b"\x89PNG"
    request = fake_store.requests[-1]
    assert request.headers["x-upsert"] == "true"
    assert request.headers["Content-Type"] == "image/png"
