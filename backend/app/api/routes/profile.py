from fastapi import APIRouter, Depends

from ...dependencies import get_game_session
from ...schemas import ProfileView
from ...services.game import GameSession

router = APIRouter()


@router.get("/", response_model=ProfileView)
async def get_profile(game: GameSession = Depends(get_game_session)) -> ProfileView:
    return game.profile_view()
