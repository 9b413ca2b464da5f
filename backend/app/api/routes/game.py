from fastapi import APIRouter, Depends

from ...dependencies import get_game_session
from ...schemas import CaptureRequest, GameState, SelectRequest
from ...services.game import GameSession

router = APIRouter()


@router.get("/state", response_model=GameState)
async def get_state(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.state()


@router.post("/hunt", response_model=GameState)
async def start_hunt(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.hunt()


@router.post("/select", response_model=GameState)
async def select_sticker(payload: SelectRequest, game: GameSession = Depends(get_game_session)) -> GameState:
    return game.select(payload.sticker_id)


@router.post("/capture", response_model=GameState)
async def capture_photo(payload: CaptureRequest, game: GameSession = Depends(get_game_session)) -> GameState:
    """Validate the captured photo; lands on the dashboard (scored) or the failed screen."""
    return await game.capture(payload.photo_base64)


@router.post("/retry", response_model=GameState)
async def retry_capture(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.retry()


@router.post("/back", response_model=GameState)
async def go_back(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.back()


@router.post("/map", response_model=GameState)
async def open_map(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.open_map()


@router.post("/profile", response_model=GameState)
async def open_profile(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.open_profile()


@router.post("/dismiss", response_model=GameState)
async def dismiss_result(game: GameSession = Depends(get_game_session)) -> GameState:
    return game.dismiss_result()
