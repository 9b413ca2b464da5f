from fastapi import APIRouter, Depends

from ...dependencies import get_supabase
from ...db.supabase import SupabaseClient
from ...schemas import Sticker
from ...services import stickers as sticker_catalog

router = APIRouter()


@router.get("/", response_model=list[Sticker])
async def list_stickers() -> list[Sticker]:
    return sticker_catalog.get_catalog()


@router.post("/reload", response_model=list[Sticker])
async def reload_stickers(client: SupabaseClient | None = Depends(get_supabase)) -> list[Sticker]:
    """Replace the catalog with the store's active stickers (defaults on failure)."""
    return await sticker_catalog.load_catalog(client)
