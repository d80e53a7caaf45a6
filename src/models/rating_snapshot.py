"""rating_snapshots table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class RatingSnapshot(Base):
    """Rating a player held right after one game (one row per player per game)."""

    __tablename__ = "rating_snapshots"
    __table_args__ = (
        UniqueConstraint("game_id", "player_id", name="uq_rating_snapshots_game_player"),
        Index("idx_rating_snapshots_player_event", "player_id", "event_time", "game_id"),
        Index("idx_rating_snapshots_game", "game_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    game_id: Mapped[int] = mapped_column(ForeignKey("games.id"), nullable=False)
    player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    opponent_player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    event_time: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    previous_rating: Mapped[int] = mapped_column(Integer, nullable=False)
    rating_delta: Mapped[int] = mapped_column(Integer, nullable=False)
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
