from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.services.stickers import DEFAULT_STICKERS, RARITY_STYLES, STICKER_REFERENCES


def check_default_stickers() -> list[str]:
    problems: list[str] = []
    if len(DEFAULT_STICKERS) < 2:
        problems.append("DEFAULT_STICKERS needs at least two entries.")

    seen: set[str] = set()
    for sticker in DEFAULT_STICKERS:
        if sticker.id in seen:
            problems.append(f"Duplicate sticker id {sticker.id}.")
        seen.add(sticker.id)
        if not sticker.name:
            problems.append(f"{sticker.id} has no name.")
        if not sticker.hint:
            problems.append(f"{sticker.id} has no hint.")
        if sticker.pts <= 0:
            problems.append(f"{sticker.id} awards no points.")
        if sticker.id not in STICKER_REFERENCES:
            problems.append(f"{sticker.id} has no reference artwork path.")
        if sticker.rarity not in RARITY_STYLES:
            problems.append(f"{sticker.id} rarity {sticker.rarity} has no display style.")
    return problems


def main() -> int:
    issues = check_default_stickers()
    if issues:
        for issue in issues:
            print(f"[warning] {issue}", file=sys.stderr)
        return 1

    print("Sticker catalog check passed.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
