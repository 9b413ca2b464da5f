from __future__ import annotations

import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from backend.app.main import app


def main() -> int:
    spec = app.openapi()
    paths = spec.get("paths", {})
    required_paths = [
        "/api/health",
        "/api/validate",
        "/api/game/capture",
        "/api/leaderboard/",
        "/api/map/drops",
    ]

    missing = [path for path in required_paths if path not in paths]
    if missing:
        for path in missing:
            print(f"[error] OpenAPI schema is missing {path}", file=sys.stderr)
        return 1

    print("OpenAPI required paths present")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
