"""games table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class Game(Base):
    """One recorded game between side A and side B.

    The log order is ``(created_at, id)`` ascending; ``game_date`` and
    ``updated_at`` are informational only.
    """

    __tablename__ = "games"
    __table_args__ = (
        CheckConstraint("outcome IN ('1', '2', '3')", name="ck_games_outcome"),
        CheckConstraint("side_a_player_id <> side_b_player_id", name="ck_games_distinct_sides"),
        Index("idx_games_log_order", "created_at", "id"),
        Index("idx_games_category", "category_id"),
        Index("idx_games_side_a", "side_a_player_id"),
        Index("idx_games_side_b", "side_b_player_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    side_a_player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    side_b_player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    outcome: Mapped[str] = mapped_column(String(1), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    game_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_mode: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_turn: Mapped[int | None] = mapped_column(Integer, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    reporter_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    game_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
