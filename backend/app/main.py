from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .core.config import settings
from .db.redis import RedisConnectionManager
from .db.supabase import SupabaseConnectionManager
from .services.stickers import load_catalog

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Create shared clients up front; the catalog is served from defaults until the store answers
    try:
        RedisConnectionManager.get_client()
        logger.info("Redis client initialised")
    except Exception as exc:  # pragma: no cover - startup connection failure is logged only
        logger.warning("Redis client initialisation failed: %s", exc)
    client = None if settings.is_demo else SupabaseConnectionManager.get_client()
    if settings.is_demo:
        logger.info("Supabase not configured, running in demo mode")
    await load_catalog(client)
    yield
    await SupabaseConnectionManager.close()
    await RedisConnectionManager.close()


app = FastAPI(title=settings.project_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix=settings.api_prefix)
