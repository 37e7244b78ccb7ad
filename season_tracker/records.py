from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Optional, Tuple

from season_tracker.rules import FINISHED, GRAND_PRIX


@dataclass(frozen=True)
class TeamRecord:
    id: str
    name: str
    color: str = ""


@dataclass(frozen=True)
class DriverRecord:
    id: str
    name: str
    country: str = ""
    team_id: Optional[str] = None  # None = unaffiliated


@dataclass(frozen=True)
class EventRecord:
    id: str
    name: str
    round: int
    date: str = ""  # ISO YYYY-MM-DD
    kind: str = GRAND_PRIX


@dataclass(frozen=True)
class ResultEntry:
    event_id: str
    driver_id: str
    position: int = 1
    status: str = FINISHED
    fastest_lap: bool = False


@dataclass(frozen=True)
class SeasonSnapshot:
    """Read-only view of one season, handed to every standings computation."""

    teams: Tuple[TeamRecord, ...] = field(default_factory=tuple)
    drivers: Tuple[DriverRecord, ...] = field(default_factory=tuple)
    events: Tuple[EventRecord, ...] = field(default_factory=tuple)
    results: Tuple[ResultEntry, ...] = field(default_factory=tuple)


def new_id() -> str:
    return uuid.uuid4().hex[:12]
