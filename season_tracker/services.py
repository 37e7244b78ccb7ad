from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping, Optional

from fastapi import HTTPException
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from season_tracker.config import CLASSIFIED_ONLY_PODIUMS
from season_tracker.documents import snapshot_from_document, snapshot_to_document
from season_tracker.models import Driver, Event, Result, Season, Team
from season_tracker.records import (
    DriverRecord,
    EventRecord,
    ResultEntry,
    SeasonSnapshot,
    TeamRecord,
    new_id,
)
from season_tracker.results import coerce_result, replace_event_results, upsert_result
from season_tracker.standings import build_standings
from season_tracker.trends import build_trend


logger = logging.getLogger(__name__)


def get_or_404(db: Session, model: Any, key: Any, label: str):
    obj = db.get(model, key)
    if not obj:
        raise HTTPException(status_code=404, detail=f"{label} not found")
    return obj


def get_season_or_404(db: Session, season_id: int) -> Season:
    return get_or_404(db, Season, season_id, "Season")


def get_team_or_404(db: Session, season_id: int, team_id: str) -> Team:
    return get_or_404(db, Team, (season_id, team_id), "Team")


def get_driver_or_404(db: Session, season_id: int, driver_id: str) -> Driver:
    return get_or_404(db, Driver, (season_id, driver_id), "Driver")


def get_event_or_404(db: Session, season_id: int, event_id: str) -> Event:
    return get_or_404(db, Event, (season_id, event_id), "Event")


def _require_new_id(db: Session, model: Any, season_id: int, obj_id: str, label: str) -> None:
    if db.get(model, (season_id, obj_id)):
        raise HTTPException(status_code=400, detail=f"{label} id already exists")


def _require_team(db: Session, season_id: int, team_id: Optional[str]) -> Optional[str]:
    if not team_id:
        return None
    if not db.get(Team, (season_id, team_id)):
        raise HTTPException(status_code=400, detail="Team does not exist in this season")
    return team_id


# ---------------------------------------------------------------- seasons


def create_season(db: Session, name: str) -> Season:
    name = name.strip()
    existing = db.scalar(select(Season).where(Season.name == name))
    if existing:
        raise HTTPException(status_code=400, detail="Season name already exists")
    season = Season(name=name)
    db.add(season)
    db.flush()
    logger.info("Created season %s (%s)", season.id, season.name)
    return season


def list_seasons(db: Session) -> list[Season]:
    return list(db.scalars(select(Season).order_by(Season.id.asc())).all())


def delete_season(db: Session, season_id: int) -> None:
    season = get_season_or_404(db, season_id)
    db.delete(season)
    logger.info("Deleted season %s", season_id)


# ---------------------------------------------------------------- teams


def create_team(
    db: Session, season_id: int, name: str, color: str = "", team_id: Optional[str] = None
) -> Team:
    get_season_or_404(db, season_id)
    team_id = team_id or new_id()
    _require_new_id(db, Team, season_id, team_id, "Team")
    team = Team(season_id=season_id, id=team_id, name=name.strip(), color=color)
    db.add(team)
    db.flush()
    return team


def list_teams(db: Session, season_id: int) -> list[Team]:
    get_season_or_404(db, season_id)
    return list(
        db.scalars(select(Team).where(Team.season_id == season_id).order_by(Team.name.asc())).all()
    )


def update_team(db: Session, season_id: int, team_id: str, changes: Mapping[str, Any]) -> Team:
    team = get_team_or_404(db, season_id, team_id)
    if changes.get("name") is not None:
        team.name = changes["name"].strip()
    if changes.get("color") is not None:
        team.color = changes["color"]
    return team


def delete_team(db: Session, season_id: int, team_id: str) -> int:
    """Delete a team and detach its drivers. Returns how many drivers were detached."""
    team = get_team_or_404(db, season_id, team_id)
    drivers = db.scalars(
        select(Driver).where(Driver.season_id == season_id, Driver.team_id == team_id)
    ).all()
    for driver in drivers:
        driver.team_id = None
    db.delete(team)
    logger.info("Deleted team %s from season %s, detached %d driver(s)", team_id, season_id, len(drivers))
    return len(drivers)


# ---------------------------------------------------------------- drivers


def create_driver(
    db: Session,
    season_id: int,
    name: str,
    country: str = "",
    team_id: Optional[str] = None,
    driver_id: Optional[str] = None,
) -> Driver:
    get_season_or_404(db, season_id)
    driver_id = driver_id or new_id()
    _require_new_id(db, Driver, season_id, driver_id, "Driver")
    driver = Driver(
        season_id=season_id,
        id=driver_id,
        name=name.strip(),
        country=country.strip(),
        team_id=_require_team(db, season_id, team_id),
    )
    db.add(driver)
    db.flush()
    return driver


def list_drivers(db: Session, season_id: int) -> list[Driver]:
    get_season_or_404(db, season_id)
    return list(
        db.scalars(
            select(Driver).where(Driver.season_id == season_id).order_by(Driver.name.asc())
        ).all()
    )


def update_driver(db: Session, season_id: int, driver_id: str, changes: Mapping[str, Any]) -> Driver:
    driver = get_driver_or_404(db, season_id, driver_id)
    if changes.get("name") is not None:
        driver.name = changes["name"].strip()
    if changes.get("country") is not None:
        driver.country = changes["country"].strip()
    if "team_id" in changes:
        driver.team_id = _require_team(db, season_id, changes["team_id"])
    return driver


def delete_driver(db: Session, season_id: int, driver_id: str) -> None:
    # Results stay behind; standings skip drivers that are no longer listed.
    driver = get_driver_or_404(db, season_id, driver_id)
    db.delete(driver)
    logger.info("Deleted driver %s from season %s", driver_id, season_id)


# ---------------------------------------------------------------- events


def create_event(
    db: Session,
    season_id: int,
    name: str,
    kind: str,
    round_number: Optional[int] = None,
    event_date: Optional[str] = None,
    event_id: Optional[str] = None,
) -> Event:
    get_season_or_404(db, season_id)
    event_id = event_id or new_id()
    _require_new_id(db, Event, season_id, event_id, "Event")
    if round_number is None:
        count = db.scalar(select(func.count()).select_from(Event).where(Event.season_id == season_id))
        round_number = (count or 0) + 1
    event = Event(
        season_id=season_id,
        id=event_id,
        name=name.strip(),
        round=round_number,
        date=event_date or date.today().isoformat(),
        kind=kind,
    )
    db.add(event)
    db.flush()
    return event


def list_events(db: Session, season_id: int) -> list[Event]:
    get_season_or_404(db, season_id)
    return list(
        db.scalars(
            select(Event)
            .where(Event.season_id == season_id)
            .order_by(Event.round.asc(), Event.date.asc(), Event.name.asc())
        ).all()
    )


def update_event(db: Session, season_id: int, event_id: str, changes: Mapping[str, Any]) -> Event:
    event = get_event_or_404(db, season_id, event_id)
    if changes.get("name") is not None:
        event.name = changes["name"].strip()
    if changes.get("round") is not None:
        event.round = changes["round"]
    if changes.get("date") is not None:
        event.date = changes["date"]
    if changes.get("kind") is not None:
        event.kind = changes["kind"]
    return event


def delete_event(db: Session, season_id: int, event_id: str) -> None:
    # Cascades to the event's results.
    event = get_event_or_404(db, season_id, event_id)
    db.delete(event)
    logger.info("Deleted event %s from season %s", event_id, season_id)


# ---------------------------------------------------------------- results


def _result_records(rows: Iterable[Result]) -> list[ResultEntry]:
    return [
        ResultEntry(
            event_id=r.event_id,
            driver_id=r.driver_id,
            position=r.position,
            status=r.status,
            fastest_lap=r.fastest_lap,
        )
        for r in rows
    ]


def stored_results(db: Session, season_id: int) -> list[ResultEntry]:
    rows = db.scalars(
        select(Result)
        .where(Result.season_id == season_id)
        .order_by(Result.event_id.asc(), Result.position.asc())
    ).all()
    return _result_records(rows)


def event_results(db: Session, season_id: int, event_id: str) -> list[ResultEntry]:
    event = get_event_or_404(db, season_id, event_id)
    return sorted(_result_records(event.results), key=lambda r: r.position)


def replace_results(
    db: Session, season_id: int, event_id: str, entries: Iterable[Mapping[str, Any]]
) -> list[ResultEntry]:
    """
    Replace the complete grid of one event. The caller commits.
    """
    event = get_event_or_404(db, season_id, event_id)
    entries = list(entries)

    seen: set[str] = set()
    for raw in entries:
        driver_id = raw.get("driver_id", raw.get("driverId"))
        if driver_id in seen:
            raise HTTPException(status_code=400, detail="Duplicate driver in grid")
        seen.add(driver_id)

    updated = replace_event_results(stored_results(db, season_id), event_id, entries)
    grid = [r for r in updated if r.event_id == event_id]

    event.results.clear()
    db.flush()
    event.results.extend(
        Result(
            season_id=season_id,
            event_id=event_id,
            driver_id=r.driver_id,
            position=r.position,
            status=r.status,
            fastest_lap=r.fastest_lap,
        )
        for r in grid
    )
    db.flush()
    logger.info("Replaced results of event %s in season %s (%d entries)", event_id, season_id, len(grid))
    return grid


def save_result(db: Session, season_id: int, entry: Mapping[str, Any]) -> ResultEntry:
    """
    Create or patch the result of one driver in one event.
    Only the fields present in `entry` are changed on an existing result.
    """
    event = get_event_or_404(db, season_id, entry.get("event_id"))
    target = coerce_result(entry)
    if target is None:
        raise HTTPException(status_code=400, detail="Result needs an event and a driver")

    merged = upsert_result(stored_results(db, season_id), entry)
    saved = next(
        r for r in merged if (r.event_id, r.driver_id) == (target.event_id, target.driver_id)
    )

    row = db.get(Result, (season_id, event.id, saved.driver_id))
    if row is None:
        row = Result(season_id=season_id, event_id=event.id, driver_id=saved.driver_id)
        event.results.append(row)
    row.position = saved.position
    row.status = saved.status
    row.fastest_lap = saved.fastest_lap
    db.flush()
    return saved


# ---------------------------------------------------------------- snapshots


def load_snapshot(db: Session, season_id: int) -> SeasonSnapshot:
    teams = list_teams(db, season_id)
    drivers = list_drivers(db, season_id)
    events = list_events(db, season_id)
    return SeasonSnapshot(
        teams=tuple(TeamRecord(id=t.id, name=t.name, color=t.color) for t in teams),
        drivers=tuple(
            DriverRecord(id=d.id, name=d.name, country=d.country, team_id=d.team_id)
            for d in drivers
        ),
        events=tuple(
            EventRecord(id=e.id, name=e.name, round=e.round, date=e.date, kind=e.kind)
            for e in events
        ),
        results=tuple(stored_results(db, season_id)),
    )


def season_standings(
    db: Session, season_id: int, classified_only: Optional[bool] = None
) -> dict[str, Any]:
    if classified_only is None:
        classified_only = CLASSIFIED_ONLY_PODIUMS
    snapshot = load_snapshot(db, season_id)
    standings = build_standings(snapshot, classified_only=classified_only)
    team_names = {t.id: t.name for t in snapshot.teams}

    return {
        "drivers": [
            {
                "rank": row.rank,
                "driver_id": row.driver.id,
                "driver_name": row.driver.name,
                "country": row.driver.country,
                "team_id": row.driver.team_id,
                "team_name": team_names.get(row.driver.team_id),
                "points": row.points,
                "wins": row.wins,
                "podiums": row.podiums,
                "best_finish": row.best_finish,
                "finish_positions": row.finish_positions,
            }
            for row in standings.drivers
        ],
        "teams": [
            {
                "rank": row.rank,
                "team_id": row.team.id,
                "team_name": row.team.name,
                "color": row.team.color,
                "points": row.points,
            }
            for row in standings.teams
        ],
    }


def season_trend(db: Session, season_id: int) -> dict[str, Any]:
    snapshot = load_snapshot(db, season_id)
    trend = build_trend(snapshot.drivers, snapshot.events, snapshot.results)
    events_by_id = {e.id: e for e in snapshot.events}

    drivers: List[Dict[str, Any]] = []
    for d in snapshot.drivers:
        summary = trend.summaries[d.id]
        drivers.append(
            {
                "driver_id": d.id,
                "driver_name": d.name,
                "cumulative": trend.cumulative[d.id],
                "starts": summary.starts,
                "average_finish": (
                    round(summary.average_finish, 2) if summary.average_finish is not None else None
                ),
                "podiums": summary.podiums,
                "dnfs": summary.dnfs,
                "dns": summary.dns,
            }
        )
    return {
        "rounds": trend.rounds,
        "events": [
            {"id": event_id, "name": events_by_id[event_id].name, "kind": events_by_id[event_id].kind}
            for event_id in trend.event_ids
        ],
        "drivers": drivers,
    }


def export_season(db: Session, season_id: int) -> dict[str, Any]:
    return snapshot_to_document(load_snapshot(db, season_id))


def import_season(db: Session, season_id: int, document: Mapping[str, Any]) -> dict[str, int]:
    """
    Replace everything stored for a season with the content of a season
    document. Results pointing at events missing from the document are dropped.
    """
    season = get_season_or_404(db, season_id)
    snapshot = snapshot_from_document(document)

    season.teams.clear()
    season.drivers.clear()
    season.events.clear()
    db.flush()

    teams = {t.id: t for t in snapshot.teams}
    drivers = {d.id: d for d in snapshot.drivers}
    events = {e.id: e for e in snapshot.events}
    season.teams.extend(Team(id=t.id, name=t.name, color=t.color) for t in teams.values())
    season.drivers.extend(
        Driver(id=d.id, name=d.name, country=d.country, team_id=d.team_id) for d in drivers.values()
    )
    event_rows = {
        e.id: Event(id=e.id, name=e.name, round=e.round, date=e.date or "", kind=e.kind)
        for e in events.values()
    }
    season.events.extend(event_rows.values())

    imported = 0
    for r in snapshot.results:
        event_row = event_rows.get(r.event_id)
        if event_row is None:
            continue
        event_row.results.append(
            Result(
                season_id=season_id,
                event_id=r.event_id,
                driver_id=r.driver_id,
                position=r.position,
                status=r.status,
                fastest_lap=r.fastest_lap,
            )
        )
        imported += 1
    db.flush()

    dropped = len(snapshot.results) - imported
    if dropped:
        logger.warning("Dropped %d imported result(s) for unknown events", dropped)
    logger.info("Imported season %s: %d teams, %d drivers, %d events, %d results",
                season_id, len(teams), len(drivers), len(events), imported)
    return {
        "teams": len(teams),
        "drivers": len(drivers),
        "events": len(events),
        "results": imported,
    }
