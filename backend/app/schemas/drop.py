from pydantic import BaseModel

from .sticker import RarityStyle, Sticker


class Drop(BaseModel):
    id: str
    sticker_id: str
    lat: float
    lng: float
    owner: str
    city: str
    time: str
    pts: int
    pioneer: bool = False
    is_own: bool = False


class MapMarker(BaseModel):
    drop: Drop
    sticker: Sticker
    color: str
    rarity_style: RarityStyle


class MapView(BaseModel):
    total: int
    markers: list[MapMarker]
    focus: tuple[float, float] | None = None
