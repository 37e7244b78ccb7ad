from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    ForeignKeyConstraint,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from season_tracker.database import Base
from season_tracker.rules import FINISHED, GRAND_PRIX


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Season(Base):
    __tablename__ = "seasons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    teams: Mapped[list["Team"]] = relationship(
        "Team", back_populates="season", cascade="all, delete-orphan"
    )
    drivers: Mapped[list["Driver"]] = relationship(
        "Driver", back_populates="season", cascade="all, delete-orphan"
    )
    events: Mapped[list["Event"]] = relationship(
        "Event", back_populates="season", cascade="all, delete-orphan"
    )


class Team(Base):
    __tablename__ = "teams"

    season_id: Mapped[int] = mapped_column(ForeignKey("seasons.id"), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    color: Mapped[str] = mapped_column(String(32), default="", nullable=False)

    season: Mapped[Season] = relationship("Season", back_populates="teams")


class Driver(Base):
    __tablename__ = "drivers"

    season_id: Mapped[int] = mapped_column(ForeignKey("seasons.id"), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    country: Mapped[str] = mapped_column(String(64), default="", nullable=False)
    # Not a foreign key: deleting a team detaches its drivers in the service layer.
    team_id: Mapped[str | None] = mapped_column(String(64), nullable=True)

    season: Mapped[Season] = relationship("Season", back_populates="drivers")


class Event(Base):
    __tablename__ = "events"

    season_id: Mapped[int] = mapped_column(ForeignKey("seasons.id"), primary_key=True)
    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(128), nullable=False)
    round: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    date: Mapped[str] = mapped_column(String(10), default="", nullable=False)  # ISO YYYY-MM-DD
    kind: Mapped[str] = mapped_column(String(16), default=GRAND_PRIX, nullable=False)  # GP / Sprint

    season: Mapped[Season] = relationship("Season", back_populates="events")
    results: Mapped[list["Result"]] = relationship(
        "Result", back_populates="event", cascade="all, delete-orphan"
    )


class Result(Base):
    __tablename__ = "results"

    season_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Kept when the driver is deleted; standings skip unknown drivers.
    driver_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    position: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String(3), default=FINISHED, nullable=False)  # FIN / DNF / DNS
    fastest_lap: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    event: Mapped[Event] = relationship("Event", back_populates="results")

    __table_args__ = (
        ForeignKeyConstraint(
            ["season_id", "event_id"],
            ["events.season_id", "events.id"],
            name="fk_result_event",
        ),
    )
