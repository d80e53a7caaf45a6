"""schedule_slots table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class ScheduleSlot(Base):
    """Scheduled pairing; ``game_id`` is set once a game fulfils it."""

    __tablename__ = "schedule_slots"
    __table_args__ = (
        Index("idx_schedule_slots_tournament", "tournament_id"),
        Index("idx_schedule_slots_game", "game_id"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    tournament_id: Mapped[int] = mapped_column(ForeignKey("tournaments.id"), nullable=False)
    side_a_player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    side_b_player_id: Mapped[int] = mapped_column(ForeignKey("players.id"), nullable=False)
    game_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    due_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=False), nullable=True)
    # Plain column: scheduling owns this table and may create it before games exists.
    game_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
