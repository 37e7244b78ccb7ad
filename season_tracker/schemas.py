from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field


EventKind = Literal["GP", "Sprint"]


class SeasonCreate(BaseModel):
    name: str = Field(min_length=1, max_length=128)


class TeamCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=128)
    color: str = Field(default="", max_length=32)


class TeamUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    color: Optional[str] = Field(default=None, max_length=32)


class DriverCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=128)
    country: str = Field(default="", max_length=64)
    team_id: Optional[str] = None


class DriverUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    country: Optional[str] = Field(default=None, max_length=64)
    team_id: Optional[str] = None


class EventCreate(BaseModel):
    id: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: str = Field(min_length=1, max_length=128)
    round: Optional[int] = Field(default=None, ge=1)
    date: Optional[str] = Field(default=None, max_length=10)
    kind: EventKind = "GP"


class EventUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=128)
    round: Optional[int] = Field(default=None, ge=1)
    date: Optional[str] = Field(default=None, max_length=10)
    kind: Optional[EventKind] = None


class ResultEntryIn(BaseModel):
    # position/status are coerced by normalize_results
    driver_id: str = Field(min_length=1, max_length=64)
    position: Any = None
    status: Optional[str] = None
    fastest_lap: bool = False


class EventResultsReplace(BaseModel):
    entries: list[ResultEntryIn]


class ResultUpsert(ResultEntryIn):
    event_id: str = Field(min_length=1, max_length=64)
