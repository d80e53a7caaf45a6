"""tournaments, standings and standing_players table models."""

from __future__ import annotations

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Tournament(Base):
    """Tournament a game counts toward; its id is the game category."""

    __tablename__ = "tournaments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)


class Standing(Base):
    """Named standings bucket (group) of one tournament."""

    __tablename__ = "standings"
    __table_args__ = (Index("idx_standings_tournament", "tournament_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    standing_name: Mapped[str] = mapped_column(String(128), nullable=False)
    secondary_name: Mapped[str | None] = mapped_column(String(128), nullable=True)


class StandingPlayer(Base):
    """Membership of one player in one standings bucket."""

    __tablename__ = "standing_players"
    __table_args__ = (
        UniqueConstraint("standing_id", "player_id", name="uq_standing_players_standing_player"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    standing_id: Mapped[int] = mapped_column(ForeignKey("standings.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
