from pydantic import BaseModel, Field

from .drop import Drop
from .user import UserProfile


class ScoreLine(BaseModel):
    label: str
    pts: int


class ScoreResult(BaseModel):
    total: int
    breakdown: list[ScoreLine] = Field(default_factory=list)


class FindResult(BaseModel):
    sticker_id: str
    total: int
    breakdown: list[ScoreLine]
    is_pioneer: bool
    confidence: float


class GameState(BaseModel):
    screen: str
    user: UserProfile | None = None
    total_score: int = 0
    finds: int = 0
    discovered: list[str] = Field(default_factory=list)
    drops: list[Drop] = Field(default_factory=list)
    selected: str | None = None
    result: FindResult | None = None
    fail_reason: str = ""
    pending_setup: bool = False


class SelectRequest(BaseModel):
    sticker_id: str


class CaptureRequest(BaseModel):
    photo_base64: str | None = None


class LeaderboardEntry(BaseModel):
    tag: str
    pts: int
    avatar_id: str | None = None
    avatar: dict[str, str] = Field(default_factory=dict)
    own: bool = False


class Leaderboard(BaseModel):
    entries: list[LeaderboardEntry]
    rank: int
