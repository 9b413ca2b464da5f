from __future__ import annotations

from ..schemas import Rarity, ScoreLine, ScoreResult, Sticker

FIRST_FIND_BONUS = 50
PIONEER_BONUS = 15
RARITY_BONUS: dict[Rarity, int] = {
    Rarity.COMMON: 0,
    Rarity.RARE: 5,
    Rarity.EPIC: 15,
    Rarity.LEGENDARY: 30,
}


def calc_score(sticker: Sticker, is_first: bool, is_pioneer: bool) -> ScoreResult:
    """Points for one validated find, with a line per non-zero component."""
    total = sticker.pts
    breakdown = [ScoreLine(label="Base find", pts=sticker.pts)]
    if is_first:
        total += FIRST_FIND_BONUS
        breakdown.append(ScoreLine(label="🎉 First find ever", pts=FIRST_FIND_BONUS))
    if is_pioneer:
        total += PIONEER_BONUS
        breakdown.append(ScoreLine(label="🏴 Pioneer drop", pts=PIONEER_BONUS))
    rarity_bonus = RARITY_BONUS.get(sticker.rarity, 0)
    if rarity_bonus:
        total += rarity_bonus
        breakdown.append(ScoreLine(label=f"⭐ {sticker.rarity.value}", pts=rarity_bonus))
    return ScoreResult(total=total, breakdown=breakdown)
