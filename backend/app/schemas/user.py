from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    user_id: str
    username: str
    avatar_id: str
    total_score: int = 0
    finds: int = 0
    discovered: list[str] = Field(default_factory=list)


class StickerProgress(BaseModel):
    id: str
    name: str
    rarity: str
    found: bool


class ProfileView(BaseModel):
    username: str
    avatar_id: str
    total_score: int
    found: int
    catalog_size: int
    own_drops: int
    stickers: list[StickerProgress]
    avatar: dict[str, str] = Field(default_factory=dict)
