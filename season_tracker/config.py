from __future__ import annotations

import os


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./season_tracker.db")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

# Off by default: wins/podiums count by position alone, whatever the status.
CLASSIFIED_ONLY_PODIUMS = _flag("CLASSIFIED_ONLY_PODIUMS")
