"""Append-only audit trail of edited and deleted games."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from models import Game, GameAuditLog


def archive_game(session: Session, game: Game, *, operation: str, actor: str) -> GameAuditLog:
    """Copy the pre-change field values of ``game`` together with the actor."""
    entry = GameAuditLog(
        game_id=game.id,
        operation=operation,
        actor=actor,
        side_a_player_id=game.side_a_player_id,
        side_b_player_id=game.side_b_player_id,
        outcome=game.outcome,
        category_id=game.category_id,
        game_code=game.game_code,
        end_mode=game.end_mode,
        end_turn=game.end_turn,
        video_url=game.video_url,
        game_date=game.game_date,
        game_created_at=game.created_at,
        logged_at=datetime.now(UTC).replace(tzinfo=None),
    )
    session.add(entry)
    session.flush()
    return entry


def fetch_audit_entries(session: Session, game_id: int) -> list[GameAuditLog]:
    statement = select(GameAuditLog).where(GameAuditLog.game_id == game_id).order_by(GameAuditLog.id)
    return list(session.execute(statement).scalars().all())
