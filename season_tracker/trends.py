from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from season_tracker.records import DriverRecord, EventRecord, ResultEntry
from season_tracker.results import group_by_event
from season_tracker.rules import DID_NOT_FINISH, DID_NOT_START, average, is_podium, score_event


@dataclass(frozen=True)
class DriverSummary:
    starts: int
    average_finish: Optional[float]  # None when the driver has no results
    podiums: int
    dnfs: int
    dns: int


@dataclass(frozen=True)
class Trend:
    rounds: List[int] = field(default_factory=list)
    event_ids: List[str] = field(default_factory=list)
    cumulative: Dict[str, List[int]] = field(default_factory=dict)
    summaries: Dict[str, DriverSummary] = field(default_factory=dict)


def order_by_round(events: Iterable[EventRecord]) -> List[EventRecord]:
    # sorted() is stable, so events sharing a round keep their input order.
    return sorted(events, key=lambda e: e.round)


def build_trend(
    drivers: Sequence[DriverRecord],
    events: Iterable[EventRecord],
    results: Iterable[ResultEntry],
) -> Trend:
    """
    Running points total per driver after each event, in round order.

    A driver without a result in an event carries the previous total forward.
    The per-driver summaries (average finish, podiums, DNFs) use every
    recorded position, whatever the status.
    """
    ordered = order_by_round(events)
    by_event = group_by_event(results)

    running = {d.id: 0 for d in drivers}
    cumulative: Dict[str, List[int]] = {d.id: [] for d in drivers}
    positions: Dict[str, List[int]] = {d.id: [] for d in drivers}
    dnfs = {d.id: 0 for d in drivers}
    dns = {d.id: 0 for d in drivers}

    for event in ordered:
        for outcome in score_event(event, by_event.get(event.id, [])):
            if outcome.driver_id not in running:
                continue
            running[outcome.driver_id] += outcome.points
            positions[outcome.driver_id].append(outcome.position)
            if outcome.status == DID_NOT_FINISH:
                dnfs[outcome.driver_id] += 1
            elif outcome.status == DID_NOT_START:
                dns[outcome.driver_id] += 1
        for driver_id, total in running.items():
            cumulative[driver_id].append(total)

    summaries = {
        driver_id: DriverSummary(
            starts=len(finishes),
            average_finish=average(finishes),
            podiums=sum(1 for p in finishes if is_podium(p)),
            dnfs=dnfs[driver_id],
            dns=dns[driver_id],
        )
        for driver_id, finishes in positions.items()
    }
    return Trend(
        rounds=[e.round for e in ordered],
        event_ids=[e.id for e in ordered],
        cumulative=cumulative,
        summaries=summaries,
    )
