from __future__ import annotations

import logging
import math
from collections import defaultdict
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union

from season_tracker.records import ResultEntry
from season_tracker.rules import FINISHED, RESULT_STATUSES


logger = logging.getLogger(__name__)

RawResult = Union[Mapping[str, Any], ResultEntry]

# snake_case field -> key used in exported season documents
DOCUMENT_KEYS = {
    "event_id": "eventId",
    "driver_id": "driverId",
    "position": "position",
    "status": "status",
    "fastest_lap": "fastestLap",
}


def _read(raw: RawResult, name: str) -> Any:
    if not isinstance(raw, Mapping):
        return getattr(raw, name, None)
    if name in raw:
        return raw[name]
    return raw.get(DOCUMENT_KEYS[name])


def _coerce_id(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def coerce_position(value: Any) -> int:
    """Best-effort integer position, never below 1."""
    if isinstance(value, bool):
        number = int(value)
    elif isinstance(value, int):
        number = value
    elif isinstance(value, float):
        number = int(value) if math.isfinite(value) else 1
    elif isinstance(value, str):
        text = value.strip()
        try:
            number = int(text)
        except ValueError:
            try:
                parsed = float(text)
            except ValueError:
                parsed = 1.0
            number = int(parsed) if math.isfinite(parsed) else 1
    else:
        number = 1
    return max(1, number)


def coerce_status(value: Any) -> str:
    return value if value in RESULT_STATUSES else FINISHED


def coerce_result(raw: RawResult, event_id: Optional[str] = None) -> Optional[ResultEntry]:
    """
    Build a clean ResultEntry from one raw record.
    Returns None when the record has no event or no driver to point at.
    """
    resolved_event = event_id if event_id is not None else _coerce_id(_read(raw, "event_id"))
    driver_id = _coerce_id(_read(raw, "driver_id"))
    if not resolved_event or not driver_id:
        return None
    return ResultEntry(
        event_id=resolved_event,
        driver_id=driver_id,
        position=coerce_position(_read(raw, "position")),
        status=coerce_status(_read(raw, "status")),
        fastest_lap=bool(_read(raw, "fastest_lap")),
    )


def normalize_results(raw_entries: Iterable[RawResult]) -> List[ResultEntry]:
    """
    Sanitize raw results into ResultEntry records ordered by (event_id, position).

    A later record for the same (event_id, driver_id) replaces an earlier one.
    Records without an event id or driver id are dropped. Running the output
    through again returns it unchanged.
    """
    latest: Dict[Tuple[str, str], ResultEntry] = {}
    dropped = 0
    for raw in raw_entries:
        entry = coerce_result(raw)
        if entry is None:
            dropped += 1
            continue
        key = (entry.event_id, entry.driver_id)
        if key in latest:
            logger.debug(
                "Duplicate result for driver %s in event %s, keeping the later one",
                entry.driver_id,
                entry.event_id,
            )
            del latest[key]
        latest[key] = entry

    if dropped:
        logger.debug("Dropped %d result(s) without event or driver id", dropped)
    return sorted(latest.values(), key=lambda e: (e.event_id, e.position))


def replace_event_results(
    results: Iterable[RawResult],
    event_id: str,
    entries: Iterable[RawResult],
) -> List[ResultEntry]:
    """
    Swap the whole grid of one event: every stored result of `event_id` is
    discarded and `entries` (forced onto `event_id`) take their place.
    """
    kept = [r for r in normalize_results(results) if r.event_id != event_id]
    incoming = [coerce_result(raw, event_id=event_id) for raw in entries]
    return normalize_results(kept + [e for e in incoming if e is not None])


def result_to_document(entry: ResultEntry) -> Dict[str, Any]:
    return {
        "eventId": entry.event_id,
        "driverId": entry.driver_id,
        "position": entry.position,
        "status": entry.status,
        "fastestLap": entry.fastest_lap,
    }


def upsert_result(results: Iterable[RawResult], entry: RawResult) -> List[ResultEntry]:
    """
    Merge one result into the set by (event_id, driver_id).
    Fields given in a mapping override the stored ones; the rest are kept.
    """
    current = normalize_results(results)
    if isinstance(entry, ResultEntry):
        return normalize_results(current + [entry])

    patch = {DOCUMENT_KEYS.get(k, k): v for k, v in entry.items()}
    key = (_coerce_id(patch.get("eventId")), _coerce_id(patch.get("driverId")))
    merged: Dict[str, Any] = {}
    for existing in current:
        if (existing.event_id, existing.driver_id) == key:
            merged = result_to_document(existing)
            break
    merged.update(patch)
    return normalize_results(current + [merged])


def group_by_event(results: Iterable[ResultEntry]) -> Dict[str, List[ResultEntry]]:
    grouped: Dict[str, List[ResultEntry]] = defaultdict(list)
    for entry in results:
        grouped[entry.event_id].append(entry)
    return dict(grouped)
