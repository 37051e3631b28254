"""SQLAlchemy ORM models for the CMR Dynasty database.

Tables: teams, records, results, meta, news_feed. Teams and meta are edited
in place, records are upserted per (season, team), results and news are
append-only.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import (
    DateTime,
    Float,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class TeamRow(Base):
    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    conference: Mapped[str | None] = mapped_column(String(100), nullable=True)
    stars: Mapped[float | None] = mapped_column(Float, nullable=True)
    taken_by: Mapped[str | None] = mapped_column(String(32), nullable=True)
    taken_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)

    __table_args__ = (
        Index("ix_teams_taken_by", "taken_by"),
        Index("ix_teams_stars", "stars"),
    )


class RecordRow(Base):
    """Per-season win/loss aggregate for one team.

    ``user_wins``/``user_losses`` only count games against human-controlled
    opponents. The occupant columns are denormalized at write time.
    """

    __tablename__ = "records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    team_name: Mapped[str] = mapped_column(String(100), nullable=False)
    taken_by: Mapped[str | None] = mapped_column(String(32), nullable=True)
    taken_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    wins: Mapped[int] = mapped_column(Integer, default=0)
    losses: Mapped[int] = mapped_column(Integer, default=0)
    user_wins: Mapped[int] = mapped_column(Integer, default=0)
    user_losses: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (UniqueConstraint("season", "team_id", name="uq_record_season_team"),)


class ResultRow(Base):
    """One submitted game, seen from the submitting (``user_team``) side."""

    __tablename__ = "results"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    user_team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_team_name: Mapped[str] = mapped_column(String(100), nullable=False)
    opponent_team_id: Mapped[int] = mapped_column(Integer, nullable=False)
    opponent_team_name: Mapped[str] = mapped_column(String(100), nullable=False)
    user_score: Mapped[int] = mapped_column(Integer, nullable=False)
    opponent_score: Mapped[int] = mapped_column(Integer, nullable=False)
    summary: Mapped[str] = mapped_column(Text, default="")
    result: Mapped[str] = mapped_column(String(1), nullable=False)
    taken_by: Mapped[str | None] = mapped_column(String(32), nullable=True)
    taken_by_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))

    __table_args__ = (Index("ix_results_season_week", "season", "week"),)


class MetaRow(Base):
    """Key-value league settings (``current_season``, ``current_week``)."""

    __tablename__ = "meta"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value: Mapped[str] = mapped_column(String(500), nullable=False)


class NewsFeedRow(Base):
    __tablename__ = "news_feed"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    season: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=lambda: datetime.now(UTC))
