"""Run the unvoted-penalty sweep once (for a system crontab instead of the HTTP route)."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from dotenv import load_dotenv

from config import get_settings_module

from src.team_attendance.team_attendance.container import build_container


def main() -> int:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    container = build_container(db_config=dict(settings.DB_CONFIG))
    results = container.auto_penalty_service.sweep()
    for r in results:
        print(f"event {r.event_id}: penalized {r.penalized}")
    print(f"OK: {len(results)} events processed")
    return 0


if __name__ == "__main__":
    sys.exit(main())
