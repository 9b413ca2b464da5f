from fastapi import APIRouter, Depends

from ...dependencies import get_game_session
from ...schemas import MapView
from ...services.game import GameSession

router = APIRouter()


@router.get("/drops", response_model=MapView)
async def get_map_drops(game: GameSession = Depends(get_game_session)) -> MapView:
    return game.map_view()
