from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Mapping, Sequence

from season_tracker.records import DriverRecord, EventRecord, ResultEntry, SeasonSnapshot, TeamRecord
from season_tracker.results import group_by_event
from season_tracker.rules import BEST_FINISH_SENTINEL, FINISHED, is_podium, is_win, score_event


logger = logging.getLogger(__name__)


@dataclass
class DriverStats:
    points: int = 0
    wins: int = 0
    podiums: int = 0
    best_finish: int = BEST_FINISH_SENTINEL
    finish_positions: List[int] = field(default_factory=list)


@dataclass(frozen=True)
class Aggregate:
    driver_stats: Dict[str, DriverStats]
    team_points: Dict[str, int]


@dataclass(frozen=True)
class DriverRow:
    rank: int
    driver: DriverRecord
    points: int
    wins: int
    podiums: int
    best_finish: int
    finish_positions: List[int]


@dataclass(frozen=True)
class TeamRow:
    rank: int
    team: TeamRecord
    points: int


@dataclass(frozen=True)
class Standings:
    drivers: List[DriverRow]
    teams: List[TeamRow]
    aggregate: Aggregate


def aggregate(
    drivers: Iterable[DriverRecord],
    teams: Iterable[TeamRecord],
    events: Iterable[EventRecord],
    results: Iterable[ResultEntry],
    classified_only: bool = False,
) -> Aggregate:
    """
    Fold every event's scored outcomes into season totals.

    Wins and podiums are counted from the recorded position alone, so a DNF
    entered in P1 still counts as a win. Pass classified_only=True to count
    only finishers.
    """
    driver_by_id = {d.id: d for d in drivers}
    stats: Dict[str, DriverStats] = {driver_id: DriverStats() for driver_id in driver_by_id}
    team_points: Dict[str, int] = {t.id: 0 for t in teams}

    by_event = group_by_event(results)
    skipped = 0
    for event in events:
        for outcome in score_event(event, by_event.get(event.id, [])):
            driver_stats = stats.get(outcome.driver_id)
            if driver_stats is None:
                skipped += 1
                continue

            counts = not classified_only or outcome.status == FINISHED
            driver_stats.points += outcome.points
            if counts and is_win(outcome.position):
                driver_stats.wins += 1
            if counts and is_podium(outcome.position):
                driver_stats.podiums += 1
            driver_stats.best_finish = min(driver_stats.best_finish, outcome.position)
            driver_stats.finish_positions.append(outcome.position)

            team_id = driver_by_id[outcome.driver_id].team_id
            if team_id and team_id in team_points:
                team_points[team_id] += outcome.points

    if skipped:
        logger.debug("Skipped %d result(s) for drivers no longer on the roster", skipped)
    return Aggregate(driver_stats=stats, team_points=team_points)


def _name_key(name: str):
    return (name.casefold(), name)


def rank_drivers(drivers: Sequence[DriverRecord], driver_stats: Mapping[str, DriverStats]) -> List[DriverRow]:
    """
    Points desc, wins desc, podiums desc, best finish asc, then name asc.
    """
    rows = []
    for d in drivers:
        s = driver_stats.get(d.id) or DriverStats()
        rows.append((d, s))

    rows.sort(
        key=lambda item: (
            -item[1].points,
            -item[1].wins,
            -item[1].podiums,
            item[1].best_finish,
            _name_key(item[0].name),
            item[0].id,
        )
    )
    return [
        DriverRow(
            rank=idx,
            driver=d,
            points=s.points,
            wins=s.wins,
            podiums=s.podiums,
            best_finish=s.best_finish,
            finish_positions=list(s.finish_positions),
        )
        for idx, (d, s) in enumerate(rows, start=1)
    ]


def rank_teams(teams: Sequence[TeamRecord], team_points: Mapping[str, int]) -> List[TeamRow]:
    ordered = sorted(
        teams,
        key=lambda t: (-team_points.get(t.id, 0), _name_key(t.name), t.id),
    )
    return [
        TeamRow(rank=idx, team=t, points=team_points.get(t.id, 0))
        for idx, t in enumerate(ordered, start=1)
    ]


def build_standings(snapshot: SeasonSnapshot, classified_only: bool = False) -> Standings:
    agg = aggregate(
        snapshot.drivers,
        snapshot.teams,
        snapshot.events,
        snapshot.results,
        classified_only=classified_only,
    )
    return Standings(
        drivers=rank_drivers(snapshot.drivers, agg.driver_stats),
        teams=rank_teams(snapshot.teams, agg.team_points),
        aggregate=agg,
    )
