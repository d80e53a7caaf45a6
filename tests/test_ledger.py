"""Tests for ledger reads, history, leaderboard and lineage audit."""

from __future__ import annotations

import pytest
from sqlalchemy import update
from sqlalchemy.orm import Session, sessionmaker

from conftest import FRIENDLY, RANKED_LADDER, at
from domain.config import LadderConfig
from domain.errors import LedgerConsistencyError, ValidationError
from domain.queries import audit_lineage, current_rating, player_record, rating_history, top_rated_players
from domain.submission import GameFields, submit_game
from models import RatingSnapshot
from repositories.ledger import (
    check_entry_lineage,
    count_tracked_players,
    delete_snapshots_for_games,
    latest_rating,
    latest_snapshot,
)
from repositories.transaction import unit_of_work


def _play_round_robin(session_factory: sessionmaker[Session], config: LadderConfig) -> list[int]:
    games = [
        GameFields(1, 2, "1", RANKED_LADDER, end_mode="DEFCON"),
        GameFields(2, 3, "1", RANKED_LADDER, end_mode="Final Scoring"),
        GameFields(3, 1, "1", RANKED_LADDER, end_mode="Europe Control"),
        GameFields(1, 4, "3", FRIENDLY, end_mode="Mystery"),
    ]
    return [
        submit_game(session_factory, fields, config=config, now=at(minute)).game_id
        for minute, fields in enumerate(games)
    ]


def test_latest_rating_defaults_to_baseline(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    assert current_rating(session_factory, 6, config=config) == 5000
    with session_factory() as session:
        assert latest_rating(session, 6, baseline=1234) == 1234
        assert latest_snapshot(session, 6) is None


def test_latest_rating_before_a_log_position(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    game_ids = _play_round_robin(session_factory, config)

    with session_factory() as session:
        assert latest_rating(session, 1) == 4990
        assert latest_rating(session, 1, before=(at(0), game_ids[0])) == 5000
        assert latest_rating(session, 1, before=(at(2), game_ids[2])) == 5100
        # Same timestamp, earlier id still counts as before.
        assert latest_rating(session, 1, before=(at(0), game_ids[0] + 1000)) == 5100


def test_current_rating_rejects_malformed_ids(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    with pytest.raises(ValidationError):
        current_rating(session_factory, "not-a-number", config=config)


def test_delete_snapshots_for_games_reports_removed_rows(
    session_factory: sessionmaker[Session], config: LadderConfig
) -> None:
    game_ids = _play_round_robin(session_factory, config)

    with unit_of_work(session_factory) as session:
        assert delete_snapshots_for_games(session, game_ids[2:] + game_ids[2:]) == 4
        assert count_tracked_players(session) == 3
        assert latest_rating(session, 1) == 5100


def test_rating_history_is_newest_first(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    game_ids = _play_round_robin(session_factory, config)

    history = rating_history(session_factory, 1)
    assert [entry.game_id for entry in history] == list(reversed([game_ids[0], game_ids[2], game_ids[3]]))
    newest = history[0]
    assert newest.opponent_player_id == 4
    assert newest.played_side_a is True
    assert newest.previous_rating == 4990
    assert history[1].played_side_a is False
    assert history[1].rating_delta == -110


def test_top_rated_players_rank_by_latest_rating(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    _play_round_robin(session_factory, config)

    # Final ratings: P2 5005, P3 5005, P4 5000, P1 4990.
    leaders = top_rated_players(session_factory, page_size=10)
    assert [(player.rank, player.player_id, player.rating) for player in leaders] == [
        (1, 2, 5005),
        (1, 3, 5005),
        (3, 4, 5000),
        (4, 1, 4990),
    ]
    assert leaders[0].name == "Blaise Pascal"

    second_page = top_rated_players(session_factory, page=2, page_size=3)
    assert [player.player_id for player in second_page] == [1]

    filtered = top_rated_players(session_factory, player_ids=[1, "4"])
    assert [(player.rank, player.player_id) for player in filtered] == [(3, 4), (4, 1)]


def test_player_record_splits_by_side_and_end_mode(
    session_factory: sessionmaker[Session], config: LadderConfig
) -> None:
    _play_round_robin(session_factory, config)

    record = player_record(session_factory, 1)
    assert record.games == 3
    assert (record.side_a.wins, record.side_a.losses, record.side_a.ties) == (1, 0, 1)
    assert (record.side_b.wins, record.side_b.losses, record.side_b.ties) == (0, 1, 0)
    assert record.side_a.wins_by_end_mode == {"DEFCON": 1}
    assert record.side_b.losses_by_end_mode == {"Europe Control": 1}


def test_lineage_audit_finds_tampered_snapshots(session_factory: sessionmaker[Session], config: LadderConfig) -> None:
    game_ids = _play_round_robin(session_factory, config)
    assert audit_lineage(session_factory, config=config) == []

    with unit_of_work(session_factory) as session:
        session.execute(
            update(RatingSnapshot)
            .where(RatingSnapshot.game_id == game_ids[1], RatingSnapshot.player_id == 3)
            .values(previous_rating=4000)
        )

    breaks = audit_lineage(session_factory, config=config)
    assert [(entry.player_id, entry.game_id, entry.expected_previous_rating) for entry in breaks] == [
        (3, game_ids[1], 5000)
    ]

    with session_factory() as session:
        with pytest.raises(LedgerConsistencyError):
            check_entry_lineage(session, 3, before=(at(2), game_ids[2]))
        check_entry_lineage(session, 3, before=(at(1), game_ids[1]))
        check_entry_lineage(session, 2, before=(at(3), game_ids[3]))
