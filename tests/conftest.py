"""Shared fixtures: a seeded SQLite ladder database per test."""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta
from pathlib import Path

import pytest
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from db import create_db_engine, create_session_factory
from domain.config import LadderConfig, default_ladder_config
from models import Player, ScheduleSlot, Standing, StandingPlayer, Tournament
from repositories.schema import ensure_ladder_schema
from repositories.transaction import unit_of_work

BASE_TIME = datetime(2026, 1, 1, 12, 0, 0)

RANKED_LADDER = 1
LEAGUE = 2
EMPTY_CUP = 3
FRIENDLY = 47


def at(minutes: int) -> datetime:
    return BASE_TIME + timedelta(minutes=minutes)


@pytest.fixture
def engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_db_engine(f"sqlite:///{tmp_path / 'ladder.db'}")
    ensure_ladder_schema(engine, include_collaborator_tables=True)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine: Engine) -> sessionmaker[Session]:
    factory = create_session_factory(engine)
    with unit_of_work(factory) as session:
        session.add_all(
            [
                Player(id=1, first_name="Ada", last_name="Lovelace", country_code="GB"),
                Player(id=2, first_name="Blaise", last_name="Pascal", country_code="FR"),
                Player(id=3, first_name="Carl", last_name="Gauss", country_code="DE"),
                Player(id=4, first_name="Dora", last_name="Maar", country_code="FR"),
                Player(id=5, first_name="Emmy", last_name="Noether", country_code="DE"),
                Player(id=6, first_name="Felix", last_name="Klein", country_code="DE"),
                Tournament(id=RANKED_LADDER, name="Ranked Ladder"),
                Tournament(id=LEAGUE, name="League"),
                Tournament(id=EMPTY_CUP, name="Empty Cup"),
                Tournament(id=FRIENDLY, name="Friendly"),
            ]
        )
        session.flush()
        session.add_all(
            [
                Standing(id=1, tournament_id=LEAGUE, standing_name="Group A", secondary_name="East"),
                Standing(id=2, tournament_id=LEAGUE, standing_name="Group B", secondary_name="West"),
            ]
        )
        session.flush()
        session.add_all(
            [
                StandingPlayer(standing_id=1, player_id=1),
                StandingPlayer(standing_id=1, player_id=2),
                StandingPlayer(standing_id=2, player_id=3),
                StandingPlayer(standing_id=2, player_id=4),
                ScheduleSlot(id=1, tournament_id=LEAGUE, side_a_player_id=1, side_b_player_id=2, game_code="L-01"),
                ScheduleSlot(id=2, tournament_id=LEAGUE, side_a_player_id=3, side_b_player_id=4, game_code="L-02"),
            ]
        )
    return factory


@pytest.fixture
def config() -> LadderConfig:
    return default_ladder_config()
