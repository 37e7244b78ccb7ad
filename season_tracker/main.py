from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, Query
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session

from season_tracker.config import LOG_LEVEL
from season_tracker.database import Base, engine, get_db
from season_tracker.models import Driver, Event, Season, Team
from season_tracker.records import ResultEntry
from season_tracker.schemas import (
    DriverCreate,
    DriverUpdate,
    EventCreate,
    EventResultsReplace,
    EventUpdate,
    ResultUpsert,
    SeasonCreate,
    TeamCreate,
    TeamUpdate,
)
from season_tracker.services import (
    create_driver,
    create_event,
    create_season,
    create_team,
    delete_driver,
    delete_event,
    delete_season,
    delete_team,
    event_results,
    export_season,
    get_season_or_404,
    import_season,
    list_drivers,
    list_events,
    list_seasons,
    list_teams,
    replace_results,
    save_result,
    season_standings,
    season_trend,
    update_driver,
    update_event,
    update_team,
)


logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

app = FastAPI(
    title="Season Tracker - Championship Standings",
    version="1.0.0",
    description=(
        "Teams, drivers, Grand Prix and Sprint events, per-event results, "
        "drivers' and constructors' standings, and points trends."
    ),
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    Base.metadata.create_all(bind=engine)


def _season_out(season: Season) -> dict[str, Any]:
    return {"id": season.id, "name": season.name, "created_at": season.created_at}


def _team_out(team: Team) -> dict[str, Any]:
    return {"id": team.id, "name": team.name, "color": team.color}


def _driver_out(driver: Driver) -> dict[str, Any]:
    return {
        "id": driver.id,
        "name": driver.name,
        "country": driver.country,
        "team_id": driver.team_id,
    }


def _event_out(event: Event) -> dict[str, Any]:
    return {
        "id": event.id,
        "name": event.name,
        "round": event.round,
        "date": event.date,
        "kind": event.kind,
    }


def _result_out(entry: ResultEntry) -> dict[str, Any]:
    return {
        "event_id": entry.event_id,
        "driver_id": entry.driver_id,
        "position": entry.position,
        "status": entry.status,
        "fastest_lap": entry.fastest_lap,
    }


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/seasons")
def create_season_route(payload: SeasonCreate, db: Session = Depends(get_db)):
    season = create_season(db, payload.name)
    db.commit()
    db.refresh(season)
    return _season_out(season)


@app.get("/seasons")
def list_seasons_route(db: Session = Depends(get_db)):
    return [_season_out(s) for s in list_seasons(db)]


@app.get("/seasons/{season_id}")
def get_season_route(season_id: int, db: Session = Depends(get_db)):
    return _season_out(get_season_or_404(db, season_id))


@app.delete("/seasons/{season_id}")
def delete_season_route(season_id: int, db: Session = Depends(get_db)):
    delete_season(db, season_id)
    db.commit()
    return {"id": season_id, "deleted": True}


@app.post("/seasons/{season_id}/teams")
def create_team_route(season_id: int, payload: TeamCreate, db: Session = Depends(get_db)):
    team = create_team(db, season_id, payload.name, payload.color, team_id=payload.id)
    db.commit()
    return _team_out(team)


@app.get("/seasons/{season_id}/teams")
def list_teams_route(season_id: int, db: Session = Depends(get_db)):
    return [_team_out(t) for t in list_teams(db, season_id)]


@app.patch("/seasons/{season_id}/teams/{team_id}")
def update_team_route(season_id: int, team_id: str, payload: TeamUpdate, db: Session = Depends(get_db)):
    team = update_team(db, season_id, team_id, payload.model_dump(exclude_unset=True))
    db.commit()
    return _team_out(team)


@app.delete("/seasons/{season_id}/teams/{team_id}")
def delete_team_route(season_id: int, team_id: str, db: Session = Depends(get_db)):
    detached = delete_team(db, season_id, team_id)
    db.commit()
    return {"id": team_id, "deleted": True, "detached_drivers": detached}


@app.post("/seasons/{season_id}/drivers")
def create_driver_route(season_id: int, payload: DriverCreate, db: Session = Depends(get_db)):
    driver = create_driver(
        db,
        season_id,
        payload.name,
        country=payload.country,
        team_id=payload.team_id,
        driver_id=payload.id,
    )
    db.commit()
    return _driver_out(driver)


@app.get("/seasons/{season_id}/drivers")
def list_drivers_route(season_id: int, db: Session = Depends(get_db)):
    return [_driver_out(d) for d in list_drivers(db, season_id)]


@app.patch("/seasons/{season_id}/drivers/{driver_id}")
def update_driver_route(
    season_id: int, driver_id: str, payload: DriverUpdate, db: Session = Depends(get_db)
):
    driver = update_driver(db, season_id, driver_id, payload.model_dump(exclude_unset=True))
    db.commit()
    return _driver_out(driver)


@app.delete("/seasons/{season_id}/drivers/{driver_id}")
def delete_driver_route(season_id: int, driver_id: str, db: Session = Depends(get_db)):
    delete_driver(db, season_id, driver_id)
    db.commit()
    return {"id": driver_id, "deleted": True}


@app.post("/seasons/{season_id}/events")
def create_event_route(season_id: int, payload: EventCreate, db: Session = Depends(get_db)):
    event = create_event(
        db,
        season_id,
        payload.name,
        payload.kind,
        round_number=payload.round,
        event_date=payload.date,
        event_id=payload.id,
    )
    db.commit()
    return _event_out(event)


@app.get("/seasons/{season_id}/events")
def list_events_route(season_id: int, db: Session = Depends(get_db)):
    return [_event_out(e) for e in list_events(db, season_id)]


@app.patch("/seasons/{season_id}/events/{event_id}")
def update_event_route(
    season_id: int, event_id: str, payload: EventUpdate, db: Session = Depends(get_db)
):
    event = update_event(db, season_id, event_id, payload.model_dump(exclude_unset=True))
    db.commit()
    return _event_out(event)


@app.delete("/seasons/{season_id}/events/{event_id}")
def delete_event_route(season_id: int, event_id: str, db: Session = Depends(get_db)):
    delete_event(db, season_id, event_id)
    db.commit()
    return {"id": event_id, "deleted": True}


@app.get("/seasons/{season_id}/events/{event_id}/results")
def get_event_results_route(season_id: int, event_id: str, db: Session = Depends(get_db)):
    return {
        "event_id": event_id,
        "results": [_result_out(r) for r in event_results(db, season_id, event_id)],
    }


@app.put("/seasons/{season_id}/events/{event_id}/results")
def replace_event_results_route(
    season_id: int,
    event_id: str,
    payload: EventResultsReplace,
    db: Session = Depends(get_db),
):
    grid = replace_results(db, season_id, event_id, [e.model_dump() for e in payload.entries])
    db.commit()
    return {"event_id": event_id, "results": [_result_out(r) for r in grid]}


@app.post("/seasons/{season_id}/results")
def save_result_route(season_id: int, payload: ResultUpsert, db: Session = Depends(get_db)):
    saved = save_result(db, season_id, payload.model_dump(exclude_unset=True))
    db.commit()
    return _result_out(saved)


@app.get("/seasons/{season_id}/standings")
def get_standings_route(
    season_id: int,
    classified_only: Optional[bool] = Query(default=None),
    db: Session = Depends(get_db),
):
    return {
        "season_id": season_id,
        **season_standings(db, season_id, classified_only=classified_only),
    }


@app.get("/seasons/{season_id}/trend")
def get_trend_route(season_id: int, db: Session = Depends(get_db)):
    return {"season_id": season_id, **season_trend(db, season_id)}


@app.get("/seasons/{season_id}/export")
def export_season_route(season_id: int, db: Session = Depends(get_db)):
    return export_season(db, season_id)


@app.post("/seasons/{season_id}/import")
def import_season_route(
    season_id: int,
    document: dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
):
    counts = import_season(db, season_id, document)
    db.commit()
    return {"season_id": season_id, "imported": counts}
