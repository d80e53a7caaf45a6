"""Full rebuild of the rating ledger from the game log."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from domain.config import LadderConfig
from domain.rating.calculator import LadderRatingCalculator, RatingSnapshotEvent
from domain.replay import ensure_players_exist
from repositories.games import fetch_game_results
from repositories.ledger import count_tracked_players, delete_all_snapshots, record_snapshots
from repositories.transaction import ledger_transaction


@dataclass(frozen=True)
class RebuildSummary:
    """Outcome of one ledger rebuild."""

    ladder_name: str
    processed_games: int
    deleted_snapshots: int
    inserted_snapshots: int
    tracked_players: int
    dry_run: bool


def rebuild_ledger(
    *,
    session_factory: sessionmaker[Session],
    config: LadderConfig,
    batch_size: int = 5000,
    dry_run: bool = False,
    echo: Callable[[str], None] | None = None,
) -> RebuildSummary:
    """Discard every snapshot and replay the entire log in one transaction."""
    if batch_size <= 0:
        raise ValueError("batch_size must be greater than 0")

    calculator = LadderRatingCalculator(config.rating)

    if dry_run:
        with session_factory() as session:
            results = fetch_game_results(session)
        for result in results:
            calculator.process_game(result)
        if echo is not None:
            echo(
                f"[dry-run] ladder={config.name} "
                f"processed_games={len(results)} "
                f"tracked_players={calculator.tracked_player_count()}"
            )
        return RebuildSummary(
            ladder_name=config.name,
            processed_games=len(results),
            deleted_snapshots=0,
            inserted_snapshots=0,
            tracked_players=calculator.tracked_player_count(),
            dry_run=True,
        )

    inserted_snapshots = 0
    with ledger_transaction(session_factory, config.cascade, extended=True) as session:
        results = fetch_game_results(session)
        total_games = len(results)
        ensure_players_exist(session, results)
        deleted_snapshots = delete_all_snapshots(session)

        buffered_events: list[RatingSnapshotEvent] = []
        for index, result in enumerate(results, start=1):
            buffered_events.extend(calculator.process_game(result))

            if len(buffered_events) >= batch_size:
                payload = buffered_events[:]
                buffered_events.clear()
                record_snapshots(session, payload)
                inserted_snapshots += len(payload)

            if echo is not None and index % 10_000 == 0:
                echo(f"ladder={config.name} processed_games={index}/{total_games}")

        if buffered_events:
            payload = buffered_events[:]
            buffered_events.clear()
            record_snapshots(session, payload)
            inserted_snapshots += len(payload)

        tracked_players = count_tracked_players(session)

    if echo is not None:
        echo(
            "completed "
            f"ladder={config.name} "
            f"processed_games={total_games} "
            f"deleted_snapshots={deleted_snapshots} "
            f"inserted_snapshots={inserted_snapshots} "
            f"tracked_players={tracked_players}"
        )

    return RebuildSummary(
        ladder_name=config.name,
        processed_games=total_games,
        deleted_snapshots=deleted_snapshots,
        inserted_snapshots=inserted_snapshots,
        tracked_players=tracked_players,
        dry_run=False,
    )


__all__ = ["RebuildSummary", "rebuild_ledger"]
