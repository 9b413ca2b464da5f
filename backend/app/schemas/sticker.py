from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Rarity(str, Enum):
    COMMON = "Common"
    RARE = "Rare"
    EPIC = "Epic"
    LEGENDARY = "Legendary"


class Sticker(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    rarity: Rarity = Rarity.COMMON
    pts: int = Field(ge=0)
    hint: str = ""
    color: str = "#C6FF00"
    art_url: str | None = None
    reference_url: str | None = None


class RarityStyle(BaseModel):
    color: str
    bg: str
    border: str
