from fastapi import APIRouter, Depends

from ...dependencies import get_game_session
from ...schemas import Leaderboard
from ...services.game import GameSession

router = APIRouter()


@router.get("/", response_model=Leaderboard)
async def get_leaderboard(game: GameSession = Depends(get_game_session)) -> Leaderboard:
    """Top ten by total score; just the player's own row when the store is unavailable."""
    return await game.leaderboard()
