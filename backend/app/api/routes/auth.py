from fastapi import APIRouter, Depends, File, Form, UploadFile

from ...core.config import settings
from ...dependencies import get_game_session
from ...schemas import AuthCallbackRequest, GameState, MagicLinkRequest, MagicLinkResponse
from ...services.avatars import AvatarUpload
from ...services.game import GameSession, GameSessionRegistry

router = APIRouter()


@router.post("/magic-link", response_model=MagicLinkResponse)
async def request_magic_link(
    payload: MagicLinkRequest,
    game: GameSession = Depends(get_game_session),
) -> MagicLinkResponse:
    stage = await game.request_magic_link(payload.email)
    return MagicLinkResponse(stage=stage, demo=settings.is_demo)


@router.post("/callback", response_model=GameState)
async def auth_callback(
    payload: AuthCallbackRequest,
    game: GameSession = Depends(get_game_session),
) -> GameState:
    """Finish sign-in from the redirect fragment the email link opened."""
    return await game.handle_redirect(payload.fragment)


@router.post("/verify", response_model=GameState)
async def verify_token(
    token: str = Form(...),
    game: GameSession = Depends(get_game_session),
) -> GameState:
    return await game.exchange_token(token)


@router.post("/profile", response_model=GameState)
async def complete_profile(
    username: str = Form(...),
    emoji: str | None = Form(default=None),
    avatar: UploadFile | None = File(default=None),
    game: GameSession = Depends(get_game_session),
) -> GameState:
    upload = None
    if avatar is not None:
        upload = AvatarUpload(
            filename=avatar.filename or "avatar.jpg",
            content=await avatar.read(),
            content_type=avatar.content_type or "image/jpeg",
        )
    return await game.complete_profile(username, emoji=emoji, upload=upload)


@router.post("/sign-out", response_model=GameState)
async def sign_out(game: GameSession = Depends(get_game_session)) -> GameState:
    state = await game.sign_out()
    GameSessionRegistry.discard(game.storage.device_id)
    return state
