from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Iterable, List, Optional, Sequence

if TYPE_CHECKING:
    from season_tracker.records import EventRecord, ResultEntry


GRAND_PRIX = "GP"
SPRINT = "Sprint"
EVENT_KINDS = (GRAND_PRIX, SPRINT)

FINISHED = "FIN"
DID_NOT_FINISH = "DNF"
DID_NOT_START = "DNS"
RESULT_STATUSES = (FINISHED, DID_NOT_FINISH, DID_NOT_START)

RACE_POINTS = (25, 18, 15, 12, 10, 8, 6, 4, 2, 1)
SPRINT_POINTS = (8, 7, 6, 5, 4, 3, 2, 1)

FASTEST_LAP_BONUS = 1
FASTEST_LAP_CUTOFF = 10
PODIUM_CUTOFF = 3
BEST_FINISH_SENTINEL = 99


@dataclass(frozen=True)
class ScoredOutcome:
    driver_id: str
    points: int
    position: int
    status: str
    fastest_lap_bonus: bool


def points_for_position(position: int, kind: str) -> int:
    table = SPRINT_POINTS if kind == SPRINT else RACE_POINTS
    if 1 <= position <= len(table):
        return table[position - 1]
    return 0


def fastest_lap_bonus(kind: str, claimed: bool, position: int) -> int:
    """
    +1 for the fastest lap, Grand Prix only, top-10 only.
    The finishing status is not checked.
    """
    if kind == GRAND_PRIX and claimed and position <= FASTEST_LAP_CUTOFF:
        return FASTEST_LAP_BONUS
    return 0


def is_win(position: int) -> bool:
    return position == 1


def is_podium(position: int) -> bool:
    return 1 <= position <= PODIUM_CUTOFF


def score_event(event: EventRecord, entries: Sequence[ResultEntry]) -> List[ScoredOutcome]:
    """
    Turn one event's grid into per-driver outcomes, best position first.
    DNF/DNS entries earn no base points but may still take the fastest-lap bonus.
    """
    outcomes: List[ScoredOutcome] = []
    for entry in sorted(entries, key=lambda e: e.position):
        base = points_for_position(entry.position, event.kind) if entry.status == FINISHED else 0
        bonus = fastest_lap_bonus(event.kind, entry.fastest_lap, entry.position)
        outcomes.append(
            ScoredOutcome(
                driver_id=entry.driver_id,
                points=base + bonus,
                position=entry.position,
                status=entry.status,
                fastest_lap_bonus=bonus > 0,
            )
        )
    return outcomes


def average(values: Iterable[float]) -> Optional[float]:
    vals = list(values)
    if not vals:
        return None
    return float(sum(vals) / len(vals))
