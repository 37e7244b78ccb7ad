"""
Conversion between a SeasonSnapshot and the JSON season document:

    {"teams": [...], "drivers": [...], "events": [...], "results": [...]}

Import is forgiving (defaults fill in whatever is missing); export always
writes every field, so exporting an imported document is a fixed point.
"""
from __future__ import annotations

from typing import Any, Dict, List, Mapping

from season_tracker.records import (
    DriverRecord,
    EventRecord,
    SeasonSnapshot,
    TeamRecord,
    new_id,
)
from season_tracker.results import coerce_position, normalize_results, result_to_document
from season_tracker.rules import EVENT_KINDS, GRAND_PRIX


def _items(document: Mapping[str, Any], key: str) -> List[Mapping[str, Any]]:
    value = document.get(key) if isinstance(document, Mapping) else None
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, Mapping)]


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _round(value: Any, fallback: int) -> int:
    if value is None or value == "":
        return fallback
    return coerce_position(value)


def team_from_document(item: Mapping[str, Any]) -> TeamRecord:
    return TeamRecord(
        id=_text(item.get("id")) or new_id(),
        name=_text(item.get("name")),
        color=_text(item.get("color")),
    )


def driver_from_document(item: Mapping[str, Any]) -> DriverRecord:
    return DriverRecord(
        id=_text(item.get("id")) or new_id(),
        name=_text(item.get("name")),
        country=_text(item.get("country")),
        team_id=_text(item.get("teamId")) or None,
    )


def event_from_document(item: Mapping[str, Any], index: int) -> EventRecord:
    kind = item.get("type", item.get("kind"))
    return EventRecord(
        id=_text(item.get("id")) or new_id(),
        name=_text(item.get("name")),
        round=_round(item.get("round"), index + 1),
        date=_text(item.get("date")),
        kind=kind if kind in EVENT_KINDS else GRAND_PRIX,
    )


def snapshot_from_document(document: Mapping[str, Any]) -> SeasonSnapshot:
    return SeasonSnapshot(
        teams=tuple(team_from_document(item) for item in _items(document, "teams")),
        drivers=tuple(driver_from_document(item) for item in _items(document, "drivers")),
        events=tuple(
            event_from_document(item, idx) for idx, item in enumerate(_items(document, "events"))
        ),
        results=tuple(normalize_results(_items(document, "results"))),
    )


def snapshot_to_document(snapshot: SeasonSnapshot) -> Dict[str, Any]:
    return {
        "teams": [{"id": t.id, "name": t.name, "color": t.color} for t in snapshot.teams],
        "drivers": [
            {"id": d.id, "name": d.name, "country": d.country, "teamId": d.team_id or ""}
            for d in snapshot.drivers
        ],
        "events": [
            {"id": e.id, "name": e.name, "round": e.round, "date": e.date, "type": e.kind}
            for e in snapshot.events
        ],
        "results": [result_to_document(r) for r in snapshot.results],
    }
