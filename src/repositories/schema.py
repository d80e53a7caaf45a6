"""Schema helpers for the ladder tables."""

from __future__ import annotations

from sqlalchemy import inspect
from sqlalchemy.engine import Engine

from models import (
    Base,
    Game,
    GameAuditLog,
    Player,
    RatingSnapshot,
    ScheduleSlot,
    Standing,
    StandingPlayer,
    Tournament,
)

# Tables owned by user management, tournament admin and scheduling.
COLLABORATOR_TABLES = (
    Player.__table__,
    Tournament.__table__,
    Standing.__table__,
    StandingPlayer.__table__,
    ScheduleSlot.__table__,
)
ENGINE_TABLES = (
    Game.__table__,
    RatingSnapshot.__table__,
    GameAuditLog.__table__,
)


def ensure_ladder_schema(engine: Engine, *, include_collaborator_tables: bool = False) -> None:
    """Create the ladder tables and indexes if they do not exist."""
    with engine.begin() as connection:
        if include_collaborator_tables:
            Base.metadata.create_all(bind=connection, tables=list(COLLABORATOR_TABLES), checkfirst=True)
        else:
            existing_tables = set(inspect(connection).get_table_names())
            missing = [table.name for table in COLLABORATOR_TABLES if table.name not in existing_tables]
            if missing:
                raise RuntimeError(
                    f"Collaborator tables missing: {missing}; create them first or pass "
                    "include_collaborator_tables=True"
                )
        Base.metadata.create_all(bind=connection, tables=list(ENGINE_TABLES), checkfirst=True)
