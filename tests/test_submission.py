"""Tests for recording games at the head of the log."""

from __future__ import annotations

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from conftest import FRIENDLY, LEAGUE, RANKED_LADDER, at
from domain.common import Outcome
from domain.config import LadderConfig
from domain.errors import ValidationError
from domain.submission import GameFields, parse_game_fields, submit_game
from models import Game, RatingSnapshot, ScheduleSlot
from repositories.ledger import fetch_snapshots_for_game, latest_rating


def _count(session_factory: sessionmaker[Session], model: type) -> int:
    with session_factory() as session:
        return int(session.scalar(select(func.count()).select_from(model)) or 0)


def test_submit_game_writes_game_and_both_snapshots(
    session_factory: sessionmaker[Session], config: LadderConfig
) -> None:
    submitted = submit_game(
        session_factory,
        GameFields(side_a_player_id=1, side_b_player_id=2, outcome="1", category_id=RANKED_LADDER, game_code="R-1"),
        config=config,
        now=at(0),
    )

    assert submitted.outcome is Outcome.A_WIN
    assert (submitted.previous_rating_a, submitted.previous_rating_b) == (5000, 5000)
    assert (submitted.new_rating_a, submitted.new_rating_b) == (5100, 4900)

    with session_factory() as session:
        game = session.get(Game, submitted.game_id)
        assert game is not None
        assert game.created_at == at(0)
        assert game.reporter_id == 1
        snapshots = fetch_snapshots_for_game(session, submitted.game_id)
        assert [(row.player_id, row.opponent_player_id, row.rating_delta) for row in snapshots] == [
            (1, 2, 100),
            (2, 1, -100),
        ]
        assert latest_rating(session, 1) == 5100
        assert latest_rating(session, 2) == 4900


def test_submit_game_accepts_string_ids(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    submitted = submit_game(
        session_factory,
        GameFields(side_a_player_id=" 3", side_b_player_id="4", outcome=" 3 ", category_id=str(FRIENDLY)),
        config=config,
        now=at(0),
    )
    assert submitted.side_a_player_id == 3
    assert submitted.outcome is Outcome.TIE
    assert (submitted.new_rating_a, submitted.new_rating_b) == (5000, 5000)


def test_ratings_chain_across_submissions(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    submit_game(session_factory, GameFields(1, 2, "1", RANKED_LADDER), config=config, now=at(0))
    second = submit_game(session_factory, GameFields(2, 3, "1", RANKED_LADDER), config=config, now=at(1))

    assert second.previous_rating_a == 4900
    assert second.new_rating_a == 5005
    assert second.new_rating_b == 4895


@pytest.mark.parametrize(
    "fields",
    [
        GameFields(side_a_player_id=1, side_b_player_id=1, outcome="1", category_id=RANKED_LADDER),
        GameFields(side_a_player_id=0, side_b_player_id=2, outcome="1", category_id=RANKED_LADDER),
        GameFields(side_a_player_id="abc", side_b_player_id=2, outcome="1", category_id=RANKED_LADDER),
        GameFields(side_a_player_id=1, side_b_player_id=2, outcome="4", category_id=RANKED_LADDER),
        GameFields(side_a_player_id=1, side_b_player_id=2, outcome="1", category_id=None),
        GameFields(side_a_player_id=1, side_b_player_id=2, outcome="1", category_id=1, end_turn="late"),
    ],
)
def test_malformed_fields_are_rejected(fields: GameFields) -> None:
    with pytest.raises(ValidationError):
        parse_game_fields(fields)


@pytest.mark.parametrize(
    "fields",
    [
        GameFields(side_a_player_id=1, side_b_player_id=99, outcome="1", category_id=RANKED_LADDER),
        GameFields(side_a_player_id=1, side_b_player_id=2, outcome="1", category_id=999),
    ],
)
def test_unknown_references_are_rejected_without_writes(
    session_factory: sessionmaker[Session], config: LadderConfig, fields: GameFields
) -> None:
    with pytest.raises(ValidationError):
        submit_game(session_factory, fields, config=config, now=at(0))

    assert _count(session_factory, Game) == 0
    assert _count(session_factory, RatingSnapshot) == 0


def test_submission_before_log_head_is_rejected(
    session_factory: sessionmaker[Session], config: LadderConfig
) -> None:
    submit_game(session_factory, GameFields(1, 2, "1", RANKED_LADDER), config=config, now=at(10))

    with pytest.raises(ValidationError, match="log head"):
        submit_game(session_factory, GameFields(3, 4, "1", RANKED_LADDER), config=config, now=at(5))

    assert _count(session_factory, Game) == 1


def test_schedule_slot_is_linked_to_the_game(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    submitted = submit_game(
        session_factory,
        GameFields(1, 2, "2", LEAGUE),
        config=config,
        schedule_slot_id="1",
        now=at(0),
    )
    assert submitted.schedule_slot_id == 1

    with session_factory() as session:
        slot = session.get(ScheduleSlot, 1)
        assert slot is not None
        assert slot.game_id == submitted.game_id


def test_fulfilled_or_mismatched_schedule_slot_is_rejected(
    session_factory: sessionmaker[Session], config: LadderConfig
) -> None:
    submit_game(session_factory, GameFields(1, 2, "1", LEAGUE), config=config, schedule_slot_id=1, now=at(0))

    with pytest.raises(ValidationError, match="already fulfilled"):
        submit_game(session_factory, GameFields(1, 2, "1", LEAGUE), config=config, schedule_slot_id=1, now=at(1))
    with pytest.raises(ValidationError, match="does not match"):
        submit_game(session_factory, GameFields(4, 3, "1", LEAGUE), config=config, schedule_slot_id=2, now=at(1))
    with pytest.raises(ValidationError, match="Unknown schedule slot"):
        submit_game(session_factory, GameFields(3, 4, "1", LEAGUE), config=config, schedule_slot_id=77, now=at(1))

    assert _count(session_factory, Game) == 1


def test_failed_snapshot_write_rolls_back_the_game(
    session_factory: sessionmaker[Session], config: LadderConfig, monkeypatch: pytest.MonkeyPatch
) -> None:
    def _fail(*_args: object, **_kwargs: object) -> None:
        raise RuntimeError("disk full")

    monkeypatch.setattr("domain.submission.record_snapshots", _fail)

    with pytest.raises(RuntimeError, match="disk full"):
        submit_game(session_factory, GameFields(1, 2, "1", LEAGUE), config=config, schedule_slot_id=1, now=at(0))

    assert _count(session_factory, Game) == 0
    assert _count(session_factory, RatingSnapshot) == 0
    with session_factory() as session:
        slot = session.get(ScheduleSlot, 1)
        assert slot is not None
        assert slot.game_id is None
