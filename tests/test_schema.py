"""Tests for ladder schema creation."""

from __future__ import annotations

from pathlib import Path

import pytest
from sqlalchemy import inspect

from db import create_db_engine
from models import Base, Player, ScheduleSlot, Standing, StandingPlayer, Tournament
from repositories.schema import ensure_ladder_schema


def test_schedule_slots_must_be_created_by_scheduling(tmp_path: Path) -> None:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ladder.db'}")
    tables = [Player.__table__, Tournament.__table__, Standing.__table__, StandingPlayer.__table__]
    Base.metadata.create_all(bind=engine, tables=tables)

    with pytest.raises(RuntimeError, match="schedule_slots"):
        ensure_ladder_schema(engine)
    assert "games" not in inspect(engine).get_table_names()

    Base.metadata.create_all(bind=engine, tables=[ScheduleSlot.__table__])
    ensure_ladder_schema(engine)

    assert {"games", "rating_snapshots", "game_audit_log"} <= set(inspect(engine).get_table_names())
    engine.dispose()


def test_collaborator_tables_can_be_created_alongside(tmp_path: Path) -> None:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ladder.db'}")

    ensure_ladder_schema(engine, include_collaborator_tables=True)

    assert {"players", "schedule_slots", "games"} <= set(inspect(engine).get_table_names())
    engine.dispose()
