"""Rating ledger reads and writes (the rating_snapshots table)."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime

from sqlalchemy import and_, delete, func, insert, or_, select
from sqlalchemy.orm import Session

from domain.common import LogPosition
from domain.errors import LedgerConsistencyError
from domain.rating.calculator import RatingSnapshotEvent
from models import Game, Player, RatingSnapshot

DEFAULT_BASELINE_RATING = 5000
_DELETE_CHUNK_SIZE = 5000


@dataclass(frozen=True)
class RatingHistoryEntry:
    game_id: int
    event_time: datetime
    game_date: datetime
    opponent_player_id: int
    played_side_a: bool
    previous_rating: int
    rating: int
    rating_delta: int


@dataclass(frozen=True)
class RatedPlayer:
    rank: int
    player_id: int
    name: str
    country_code: str | None
    rating: int


@dataclass(frozen=True)
class LineageBreak:
    """A snapshot whose inputs do not follow from the player's prior snapshot."""

    player_id: int
    game_id: int
    event_time: datetime
    expected_previous_rating: int
    previous_rating: int
    rating_delta: int
    rating: int


def _before_position(position: LogPosition):
    event_time, game_id = position
    return or_(
        RatingSnapshot.event_time < event_time,
        and_(RatingSnapshot.event_time == event_time, RatingSnapshot.game_id < game_id),
    )


def _latest_first():
    return (RatingSnapshot.event_time.desc(), RatingSnapshot.game_id.desc())


def latest_snapshot(
    session: Session,
    player_id: int,
    *,
    before: LogPosition | None = None,
) -> RatingSnapshot | None:
    """Most recent snapshot of one player, optionally strictly before a log position."""
    statement = select(RatingSnapshot).where(RatingSnapshot.player_id == player_id)
    if before is not None:
        statement = statement.where(_before_position(before))
    statement = statement.order_by(*_latest_first()).limit(1)
    return session.execute(statement).scalar_one_or_none()


def latest_rating(
    session: Session,
    player_id: int,
    *,
    before: LogPosition | None = None,
    baseline: int = DEFAULT_BASELINE_RATING,
) -> int:
    """Rating a player holds at a log position; the baseline without history."""
    statement = select(RatingSnapshot.rating).where(RatingSnapshot.player_id == player_id)
    if before is not None:
        statement = statement.where(_before_position(before))
    statement = statement.order_by(*_latest_first()).limit(1)
    rating = session.execute(statement).scalar_one_or_none()
    return baseline if rating is None else int(rating)


def check_entry_lineage(
    session: Session,
    player_id: int,
    *,
    before: LogPosition,
    baseline: int = DEFAULT_BASELINE_RATING,
) -> None:
    """Raise when the player's last snapshot before a position does not chain.

    Only the newest link is inspected; that is the rating a replay starting at
    ``before`` would build on.
    """
    statement = (
        select(RatingSnapshot)
        .where(RatingSnapshot.player_id == player_id, _before_position(before))
        .order_by(*_latest_first())
        .limit(2)
    )
    snapshots = session.execute(statement).scalars().all()
    if not snapshots:
        return

    newest = snapshots[0]
    expected_previous = snapshots[1].rating if len(snapshots) > 1 else baseline
    if newest.previous_rating != expected_previous or newest.previous_rating + newest.rating_delta != newest.rating:
        raise LedgerConsistencyError(
            f"player_id={player_id} snapshot for game_id={newest.game_id} has "
            f"previous_rating={newest.previous_rating} delta={newest.rating_delta} "
            f"rating={newest.rating}; expected previous_rating={expected_previous}"
        )


def record_snapshots(session: Session, events: Sequence[RatingSnapshotEvent]) -> None:
    """Append snapshot rows; existing rows are never updated."""
    if not events:
        return

    created_at = datetime.now(UTC).replace(tzinfo=None)
    payload = [
        {
            "game_id": event.game_id,
            "player_id": event.player_id,
            "opponent_player_id": event.opponent_player_id,
            "event_time": event.event_time,
            "previous_rating": event.previous_rating,
            "rating_delta": event.rating_delta,
            "rating": event.rating,
            "created_at": created_at,
        }
        for event in events
    ]
    session.execute(insert(RatingSnapshot), payload)


def delete_snapshots_for_games(session: Session, game_ids: Iterable[int]) -> int:
    """Delete every snapshot belonging to the given games; returns rows removed."""
    ids = sorted(set(game_ids))
    removed = 0
    for start in range(0, len(ids), _DELETE_CHUNK_SIZE):
        chunk = ids[start : start + _DELETE_CHUNK_SIZE]
        result = session.execute(
            delete(RatingSnapshot)
            .where(RatingSnapshot.game_id.in_(chunk))
            .execution_options(synchronize_session=False)
        )
        removed += int(result.rowcount or 0)
    return removed


def delete_all_snapshots(session: Session) -> int:
    result = session.execute(delete(RatingSnapshot).execution_options(synchronize_session=False))
    return int(result.rowcount or 0)


def fetch_snapshots_for_game(session: Session, game_id: int) -> list[RatingSnapshot]:
    statement = (
        select(RatingSnapshot)
        .where(RatingSnapshot.game_id == game_id)
        .order_by(RatingSnapshot.player_id)
    )
    return list(session.execute(statement).scalars().all())


def fetch_rating_history(
    session: Session,
    player_id: int,
    *,
    since: datetime | None = None,
) -> list[RatingHistoryEntry]:
    """Per-game rating movements of one player, newest first."""
    statement = (
        select(
            RatingSnapshot.game_id,
            RatingSnapshot.event_time,
            RatingSnapshot.opponent_player_id,
            RatingSnapshot.previous_rating,
            RatingSnapshot.rating,
            RatingSnapshot.rating_delta,
            Game.game_date,
            Game.side_a_player_id,
        )
        .join(Game, Game.id == RatingSnapshot.game_id)
        .where(RatingSnapshot.player_id == player_id)
        .order_by(*_latest_first())
    )
    if since is not None:
        statement = statement.where(Game.game_date >= since)

    rows = session.execute(statement).mappings().all()
    return [
        RatingHistoryEntry(
            game_id=row["game_id"],
            event_time=row["event_time"],
            game_date=row["game_date"],
            opponent_player_id=row["opponent_player_id"],
            played_side_a=row["side_a_player_id"] == player_id,
            previous_rating=row["previous_rating"],
            rating=row["rating"],
            rating_delta=row["rating_delta"],
        )
        for row in rows
    ]


def fetch_top_rated_players(
    session: Session,
    *,
    limit: int,
    offset: int = 0,
    player_ids: Sequence[int] | None = None,
) -> list[RatedPlayer]:
    """Players ranked by their latest rating; ranks are global even when filtered."""
    latest = select(
        RatingSnapshot.player_id.label("player_id"),
        RatingSnapshot.rating.label("rating"),
        func.row_number()
        .over(partition_by=RatingSnapshot.player_id, order_by=list(_latest_first()))
        .label("recency"),
    ).subquery("latest")

    ranked = (
        select(
            latest.c.player_id,
            latest.c.rating,
            func.rank().over(order_by=latest.c.rating.desc()).label("ranking"),
        )
        .where(latest.c.recency == 1)
        .subquery("ranked")
    )

    statement = (
        select(
            ranked.c.player_id,
            ranked.c.rating,
            ranked.c.ranking,
            Player.first_name,
            Player.last_name,
            Player.country_code,
        )
        .join(Player, Player.id == ranked.c.player_id)
        .order_by(ranked.c.ranking, ranked.c.player_id)
    )
    if player_ids is not None:
        statement = statement.where(ranked.c.player_id.in_(list(player_ids)))
    statement = statement.limit(limit).offset(offset)

    rows = session.execute(statement).mappings().all()
    return [
        RatedPlayer(
            rank=int(row["ranking"]),
            player_id=row["player_id"],
            name=f"{row['first_name']} {row['last_name']}".strip(),
            country_code=row["country_code"],
            rating=int(row["rating"]),
        )
        for row in rows
    ]


def find_lineage_breaks(
    session: Session,
    *,
    player_ids: Sequence[int] | None = None,
    baseline: int = DEFAULT_BASELINE_RATING,
) -> list[LineageBreak]:
    """Walk every player's snapshots in log order and report broken links."""
    statement = select(RatingSnapshot).order_by(
        RatingSnapshot.player_id,
        RatingSnapshot.event_time,
        RatingSnapshot.game_id,
    )
    if player_ids is not None:
        statement = statement.where(RatingSnapshot.player_id.in_(list(player_ids)))

    breaks: list[LineageBreak] = []
    current_player: int | None = None
    expected_previous = baseline
    for snapshot in session.execute(statement).scalars():
        if snapshot.player_id != current_player:
            current_player = snapshot.player_id
            expected_previous = baseline

        if (
            snapshot.previous_rating != expected_previous
            or snapshot.previous_rating + snapshot.rating_delta != snapshot.rating
        ):
            breaks.append(
                LineageBreak(
                    player_id=snapshot.player_id,
                    game_id=snapshot.game_id,
                    event_time=snapshot.event_time,
                    expected_previous_rating=expected_previous,
                    previous_rating=snapshot.previous_rating,
                    rating_delta=snapshot.rating_delta,
                    rating=snapshot.rating,
                )
            )
        expected_previous = snapshot.rating
    return breaks


def count_tracked_players(session: Session) -> int:
    """Count players with at least one snapshot."""
    result = session.scalar(select(func.count(func.distinct(RatingSnapshot.player_id))))
    return int(result or 0)
