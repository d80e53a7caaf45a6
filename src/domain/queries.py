"""Read-only ledger queries for request handlers and scripts."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from domain.common import parse_id
from domain.config import LadderConfig
from repositories.games import PlayerRecord, fetch_player_record
from repositories.ledger import (
    LineageBreak,
    RatedPlayer,
    RatingHistoryEntry,
    fetch_rating_history,
    fetch_top_rated_players,
    find_lineage_breaks,
    latest_rating,
)


def current_rating(session_factory: sessionmaker[Session], player_id: Any, *, config: LadderConfig) -> int:
    """Latest rating of a player, or the baseline for a player without games."""
    parsed_id = parse_id(player_id, field="player_id")
    with session_factory() as session:
        return latest_rating(session, parsed_id, baseline=config.rating.baseline_rating)


def rating_history(
    session_factory: sessionmaker[Session],
    player_id: Any,
    *,
    since: datetime | None = None,
) -> list[RatingHistoryEntry]:
    parsed_id = parse_id(player_id, field="player_id")
    with session_factory() as session:
        return fetch_rating_history(session, parsed_id, since=since)


def top_rated_players(
    session_factory: sessionmaker[Session],
    *,
    page: int = 1,
    page_size: int = 20,
    player_ids: Sequence[Any] | None = None,
) -> list[RatedPlayer]:
    if page < 1 or page_size < 1:
        raise ValueError("page and page_size must be >= 1")
    parsed_ids = None if player_ids is None else [parse_id(value, field="player_id") for value in player_ids]
    with session_factory() as session:
        return fetch_top_rated_players(
            session,
            limit=page_size,
            offset=(page - 1) * page_size,
            player_ids=parsed_ids,
        )


def player_record(
    session_factory: sessionmaker[Session],
    player_id: Any,
    *,
    since: datetime | None = None,
) -> PlayerRecord:
    parsed_id = parse_id(player_id, field="player_id")
    with session_factory() as session:
        return fetch_player_record(session, parsed_id, since=since)


def audit_lineage(session_factory: sessionmaker[Session], *, config: LadderConfig) -> list[LineageBreak]:
    """Every snapshot that does not chain from its player's previous one."""
    with session_factory() as session:
        return find_lineage_breaks(session, baseline=config.rating.baseline_rating)


__all__ = ["audit_lineage", "current_rating", "player_record", "rating_history", "top_rated_players"]
