"""Schedule-slot linkage for games that fulfil a scheduled pairing."""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from models import ScheduleSlot


def get_schedule_slot(session: Session, slot_id: int) -> ScheduleSlot | None:
    statement = select(ScheduleSlot).where(ScheduleSlot.id == slot_id)
    return session.execute(statement).scalar_one_or_none()


def link_schedule_slot(session: Session, slot_id: int, game_id: int) -> None:
    """Report that the slot's result is now ``game_id``."""
    session.execute(
        update(ScheduleSlot)
        .where(ScheduleSlot.id == slot_id)
        .values(game_id=game_id)
        .execution_options(synchronize_session="fetch")
    )


def unlink_game(session: Session, game_id: int) -> int:
    """Clear every slot that referenced ``game_id``; returns slots cleared."""
    result = session.execute(
        update(ScheduleSlot)
        .where(ScheduleSlot.game_id == game_id)
        .values(game_id=None)
        .execution_options(synchronize_session="fetch")
    )
    return int(result.rowcount or 0)


def fetch_slots_for_game(session: Session, game_id: int) -> list[ScheduleSlot]:
    statement = select(ScheduleSlot).where(ScheduleSlot.game_id == game_id).order_by(ScheduleSlot.id)
    return list(session.execute(statement).scalars().all())
