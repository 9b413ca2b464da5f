from fastapi import APIRouter

from .routes import (
    auth,
    config,
    game,
    health,
    leaderboard,
    map as map_routes,
    profile,
    stickers,
    validate,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(config.router, prefix="/config", tags=["config"])
api_router.include_router(stickers.router, prefix="/stickers", tags=["stickers"])
api_router.include_router(validate.router, prefix="/validate", tags=["validate"])
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(game.router, prefix="/game", tags=["game"])
api_router.include_router(leaderboard.router, prefix="/leaderboard", tags=["leaderboard"])
api_router.include_router(map_routes.router, prefix="/map", tags=["map"])
api_router.include_router(profile.router, prefix="/profile", tags=["profile"])
