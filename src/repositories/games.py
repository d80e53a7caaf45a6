"""Game log reads and writes (the games table)."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from domain.common import GameResult, Outcome, parse_outcome
from models import Game, Player, Tournament

KNOWN_END_MODES = (
    "DEFCON",
    "Final Scoring",
    "Europe Control",
    "VP Track (+20)",
    "Wargames",
    "Forfeit",
    "Timer Expired",
    "Cuban Missile Crisis",
    "Scoring Card Held",
)
UNKNOWN_END_MODE = "Unknown"


@dataclass
class SideRecord:
    """Results of one player while playing one side."""

    games: int = 0
    wins: int = 0
    losses: int = 0
    ties: int = 0
    wins_by_end_mode: dict[str, int] = field(default_factory=dict)
    losses_by_end_mode: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class PlayerRecord:
    player_id: int
    side_a: SideRecord
    side_b: SideRecord

    @property
    def games(self) -> int:
        return self.side_a.games + self.side_b.games


def to_game_result(game: Game) -> GameResult:
    return GameResult(
        game_id=game.id,
        event_time=game.created_at,
        side_a_player_id=game.side_a_player_id,
        side_b_player_id=game.side_b_player_id,
        outcome=parse_outcome(game.outcome),
        category_id=game.category_id,
    )


def get_game(session: Session, game_id: int, *, for_update: bool = False) -> Game | None:
    statement = select(Game).where(Game.id == game_id)
    if for_update:
        statement = statement.with_for_update()
    return session.execute(statement).scalar_one_or_none()


def insert_game(session: Session, game: Game) -> Game:
    """Add a game and flush so its surrogate id is assigned."""
    session.add(game)
    session.flush()
    return game


def delete_game(session: Session, game: Game) -> None:
    session.delete(game)
    session.flush()


def latest_game_time(session: Session) -> datetime | None:
    statement = select(Game.created_at).order_by(Game.created_at.desc(), Game.id.desc()).limit(1)
    return session.execute(statement).scalar_one_or_none()


def fetch_affected_games(session: Session, since: datetime) -> list[Game]:
    """Every game created at or after ``since``, in log order."""
    statement = (
        select(Game)
        .where(Game.created_at >= since)
        .order_by(Game.created_at, Game.id)
    )
    return list(session.execute(statement).scalars().all())


def fetch_game_results(session: Session, *, tournament_id: int | None = None) -> list[GameResult]:
    """Fetch rating-relevant game payloads in deterministic log order."""
    statement = select(
        Game.id,
        Game.created_at,
        Game.side_a_player_id,
        Game.side_b_player_id,
        Game.outcome,
        Game.category_id,
    ).order_by(Game.created_at, Game.id)
    if tournament_id is not None:
        statement = statement.where(Game.category_id == tournament_id)

    rows = session.execute(statement).mappings().all()

    results: list[GameResult] = []
    for row in rows:
        event_time = row["created_at"]
        if not isinstance(event_time, datetime):
            raise ValueError(f"game_id={row['id']} has invalid created_at={event_time!r}")

        results.append(
            GameResult(
                game_id=row["id"],
                event_time=event_time,
                side_a_player_id=row["side_a_player_id"],
                side_b_player_id=row["side_b_player_id"],
                outcome=parse_outcome(row["outcome"]),
                category_id=row["category_id"],
            )
        )
    return results


def existing_player_ids(session: Session, player_ids: Iterable[int]) -> set[int]:
    ids = set(player_ids)
    if not ids:
        return set()
    statement = select(Player.id).where(Player.id.in_(ids))
    return set(session.execute(statement).scalars().all())


def tournament_exists(session: Session, tournament_id: int) -> bool:
    statement = select(Tournament.id).where(Tournament.id == tournament_id)
    return session.execute(statement).scalar_one_or_none() is not None


def fetch_player_record(
    session: Session,
    player_id: int,
    *,
    since: datetime | None = None,
) -> PlayerRecord:
    """Wins, losses and ties per side and end condition for one player."""
    statement = select(
        Game.side_a_player_id,
        Game.outcome,
        Game.end_mode,
    ).where(or_(Game.side_a_player_id == player_id, Game.side_b_player_id == player_id))
    if since is not None:
        statement = statement.where(Game.game_date >= since)

    side_a = SideRecord()
    side_b = SideRecord()
    for row in session.execute(statement).mappings():
        played_a = row["side_a_player_id"] == player_id
        record = side_a if played_a else side_b
        outcome = parse_outcome(row["outcome"])
        end_mode = row["end_mode"] if row["end_mode"] in KNOWN_END_MODES else UNKNOWN_END_MODE

        record.games += 1
        if outcome is Outcome.TIE:
            record.ties += 1
        elif (outcome is Outcome.A_WIN) == played_a:
            record.wins += 1
            record.wins_by_end_mode[end_mode] = record.wins_by_end_mode.get(end_mode, 0) + 1
        else:
            record.losses += 1
            record.losses_by_end_mode[end_mode] = record.losses_by_end_mode.get(end_mode, 0) + 1

    return PlayerRecord(player_id=player_id, side_a=side_a, side_b=side_b)
