from .auth import (
    AuthCallbackRequest,
    AuthSession,
    AvatarChoice,
    MagicLinkRequest,
    MagicLinkResponse,
    SessionUser,
)
from .drop import Drop, MapMarker, MapView
from .game import (
    CaptureRequest,
    FindResult,
    GameState,
    Leaderboard,
    LeaderboardEntry,
    ScoreLine,
    ScoreResult,
    SelectRequest,
)
from .sticker import Rarity, RarityStyle, Sticker
from .user import ProfileView, StickerProgress, UserProfile
from .validation import ValidateRequest, ValidationVerdict

__all__ = [
    "AuthCallbackRequest",
    "AuthSession",
    "AvatarChoice",
    "MagicLinkRequest",
    "MagicLinkResponse",
    "SessionUser",
    "Drop",
    "MapMarker",
    "MapView",
    "CaptureRequest",
    "FindResult",
    "GameState",
    "Leaderboard",
    "LeaderboardEntry",
    "ScoreLine",
    "ScoreResult",
    "SelectRequest",
    "Rarity",
    "RarityStyle",
    "Sticker",
    "ProfileView",
    "StickerProgress",
    "UserProfile",
    "ValidateRequest",
    "ValidationVerdict",
]
