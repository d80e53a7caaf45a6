"""game_audit_log table model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from models.base import Base


class GameAuditLog(Base):
    """Pre-change copy of a game that was edited or deleted."""

    __tablename__ = "game_audit_log"
    __table_args__ = (Index("idx_game_audit_log_game", "game_id"),)

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    # Plain column: the game row may be gone after a delete.
    game_id: Mapped[int] = mapped_column(Integer, nullable=False)
    operation: Mapped[str] = mapped_column(String(16), nullable=False)
    actor: Mapped[str] = mapped_column(String(256), nullable=False)
    side_a_player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    side_b_player_id: Mapped[int] = mapped_column(Integer, nullable=False)
    outcome: Mapped[str] = mapped_column(String(1), nullable=False)
    category_id: Mapped[int] = mapped_column(Integer, nullable=False)
    game_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_mode: Mapped[str | None] = mapped_column(String(64), nullable=True)
    end_turn: Mapped[int | None] = mapped_column(Integer, nullable=True)
    video_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    game_date: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    game_created_at: Mapped[datetime] = mapped_column(DateTime(timezone=False), nullable=False)
    logged_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        server_default=func.now(),
    )
