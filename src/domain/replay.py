"""Linear replay of the game log onto the rating ledger."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy.orm import Session

from domain.common import GameResult
from domain.errors import CascadeTimeoutError, ReferentialError
from domain.rating.calculator import RatingParameters, apply_outcome, snapshot_events
from repositories.games import existing_player_ids
from repositories.ledger import check_entry_lineage, latest_rating, record_snapshots


@dataclass(frozen=True)
class ReplaySummary:
    replayed_games: int
    written_snapshots: int


def ensure_players_exist(session: Session, results: Sequence[GameResult]) -> None:
    """Raise when any participant of the replayed games is gone."""
    referenced = {player_id for result in results for player_id in result.player_ids}
    missing = referenced - existing_player_ids(session, referenced)
    if missing:
        raise ReferentialError(f"Players referenced by the game log no longer exist: {sorted(missing)}")


def verify_entry_lineage(session: Session, results: Sequence[GameResult], params: RatingParameters) -> None:
    """Check the rating each participant brings into its first replayed game."""
    checked: set[int] = set()
    for result in results:
        for player_id in result.player_ids:
            if player_id in checked:
                continue
            checked.add(player_id)
            check_entry_lineage(
                session,
                player_id,
                before=result.position,
                baseline=params.baseline_rating,
            )


def replay_games(
    session: Session,
    results: Sequence[GameResult],
    *,
    params: RatingParameters,
    deadline: float | None = None,
) -> ReplaySummary:
    """Apply ``results`` in order, reading each rating back from the ledger.

    Snapshots at or after the first result's position must already be gone;
    every read sees the snapshots written earlier in the same pass.
    """
    written = 0
    for index, result in enumerate(results):
        if deadline is not None and time.monotonic() > deadline:
            raise CascadeTimeoutError(
                f"Replay passed its deadline after {index}/{len(results)} games",
                partial_work=index > 0,
            )
        if result.side_a_player_id == result.side_b_player_id:
            raise ValueError(
                f"game_id={result.game_id} has identical players ({result.side_a_player_id})"
            )

        rating_a = latest_rating(
            session,
            result.side_a_player_id,
            before=result.position,
            baseline=params.baseline_rating,
        )
        rating_b = latest_rating(
            session,
            result.side_b_player_id,
            before=result.position,
            baseline=params.baseline_rating,
        )
        change = apply_outcome(rating_a, rating_b, result.outcome, result.category_id, params)
        events = snapshot_events(result, change)
        record_snapshots(session, events)
        written += len(events)

    return ReplaySummary(replayed_games=len(results), written_snapshots=written)


__all__ = ["ReplaySummary", "ensure_players_exist", "replay_games", "verify_entry_lineage"]
