"""Edit or delete a game and replay every rating that follows it.

Rating history is one global timeline: any later game may involve a player
whose opponent's rating changed, so the whole suffix starting at the edited
game's creation time is replayed, for every player, in log order.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from domain.common import GameResult, parse_id
from domain.config import LadderConfig
from domain.errors import CascadeAbortedError, LadderError, ReferentialError, ValidationError
from domain.rating.calculator import RatingParameters
from domain.replay import ReplaySummary, ensure_players_exist, replay_games, verify_entry_lineage
from domain.submission import (
    GameFields,
    SubmittedGame,
    ValidatedGameFields,
    check_slot_matches,
    parse_game_fields,
    submit_game,
    utc_now,
    validate_game_fields,
)
from logger import setup_logger
from models import Game
from repositories.audit import archive_game
from repositories.games import delete_game as delete_game_row
from repositories.games import fetch_affected_games, get_game, to_game_result
from repositories.ledger import delete_snapshots_for_games
from repositories.schedule import fetch_slots_for_game, unlink_game
from repositories.transaction import ledger_transaction

logger = setup_logger(__name__)

OPERATION_SUBMITTED = "submitted"
OPERATION_METADATA_UPDATED = "metadata_updated"
OPERATION_RECOMPUTED = "recomputed"
OPERATION_DELETED = "deleted"
OPERATION_REPAIRED = "repaired"


@dataclass(frozen=True)
class RecomputeRequest:
    """Edit (``fields``) or delete (``delete=True``) of ``old_game_id``.

    Without ``old_game_id`` the fields are submitted as a new game.
    """

    old_game_id: Any = None
    fields: GameFields | None = None
    delete: bool = False


@dataclass(frozen=True)
class RecomputeResult:
    operation: str
    game_id: int | None
    affected_games: int = 0
    deleted_snapshots: int = 0
    written_snapshots: int = 0
    submitted: SubmittedGame | None = None


def crosses_friendly_category(old_category_id: int, new_category_id: int, params: RatingParameters) -> bool:
    """True when a category change moves the game into or out of friendly stakes."""
    return old_category_id != new_category_id and (
        params.is_friendly(old_category_id) or params.is_friendly(new_category_id)
    )


def requires_recomputation(game: Game, fields: ValidatedGameFields, params: RatingParameters) -> bool:
    return (
        game.side_a_player_id != fields.side_a_player_id
        or game.side_b_player_id != fields.side_b_player_id
        or game.outcome != fields.outcome.value
        or crosses_friendly_category(game.category_id, fields.category_id, params)
    )


def recreate_or_delete_game(
    session_factory: sessionmaker[Session],
    request: RecomputeRequest,
    *,
    actor: str,
    config: LadderConfig,
    now: datetime | None = None,
) -> RecomputeResult:
    """Dispatch a recreate request to submission, edit or delete."""
    if request.old_game_id is None or str(request.old_game_id).strip() == "":
        if request.delete:
            raise ValidationError("A delete request needs old_game_id")
        if request.fields is None:
            raise ValidationError("A new game needs its fields")
        submitted = submit_game(session_factory, request.fields, config=config, now=now)
        return RecomputeResult(
            operation=OPERATION_SUBMITTED,
            game_id=submitted.game_id,
            written_snapshots=2,
            submitted=submitted,
        )

    if request.delete:
        return delete_game(session_factory, request.old_game_id, actor=actor, config=config)

    if request.fields is None:
        raise ValidationError("An edit request needs the new game fields")
    return edit_game(session_factory, request.old_game_id, request.fields, actor=actor, config=config, now=now)


def edit_game(
    session_factory: sessionmaker[Session],
    game_id: Any,
    fields: GameFields,
    *,
    actor: str,
    config: LadderConfig,
    now: datetime | None = None,
) -> RecomputeResult:
    """Replace a game's fields, replaying the ledger when ratings are affected."""
    target_id = parse_id(game_id, field="old_game_id")
    parse_game_fields(fields)
    updated_at = now or utc_now()

    with ledger_transaction(session_factory, config.cascade, extended=True) as session:
        deadline = time.monotonic() + config.cascade.timeout_seconds
        game = _require_game(session, target_id)
        validated = validate_game_fields(session, fields)
        for slot in fetch_slots_for_game(session, target_id):
            check_slot_matches(slot, validated)

        archive_game(session, game, operation="edit", actor=actor)

        if not requires_recomputation(game, validated, config.rating):
            _apply_fields(game, validated, updated_at=updated_at)
            session.flush()
            logger.info("Updated metadata of game_id=%s without recomputation (actor=%s)", target_id, actor)
            return RecomputeResult(operation=OPERATION_METADATA_UPDATED, game_id=target_id)

        affected = fetch_affected_games(session, game.created_at)
        results = [
            _edited_result(candidate, validated) if candidate.id == target_id else to_game_result(candidate)
            for candidate in affected
        ]
        logger.info(
            "Recomputing from game_id=%s created_at=%s affected_games=%s (actor=%s)",
            target_id,
            game.created_at.isoformat(),
            len(affected),
            actor,
        )

        ensure_players_exist(session, results)
        verify_entry_lineage(session, results, config.rating)

        deleted = delete_snapshots_for_games(session, [candidate.id for candidate in affected])
        _apply_fields(game, validated, updated_at=updated_at)
        session.flush()

        summary = _run_replay(session, results, params=config.rating, deadline=deadline)

    logger.info(
        "Recomputed game_id=%s affected_games=%s deleted_snapshots=%s written_snapshots=%s",
        target_id,
        len(affected),
        deleted,
        summary.written_snapshots,
    )
    return RecomputeResult(
        operation=OPERATION_RECOMPUTED,
        game_id=target_id,
        affected_games=len(affected),
        deleted_snapshots=deleted,
        written_snapshots=summary.written_snapshots,
    )


def delete_game(
    session_factory: sessionmaker[Session],
    game_id: Any,
    *,
    actor: str,
    config: LadderConfig,
) -> RecomputeResult:
    """Remove a game from the log and replay everything after it."""
    target_id = parse_id(game_id, field="old_game_id")

    with ledger_transaction(session_factory, config.cascade, extended=True) as session:
        deadline = time.monotonic() + config.cascade.timeout_seconds
        game = _require_game(session, target_id)

        archive_game(session, game, operation="delete", actor=actor)

        affected = fetch_affected_games(session, game.created_at)
        results = [to_game_result(candidate) for candidate in affected if candidate.id != target_id]
        logger.info(
            "Deleting game_id=%s created_at=%s affected_games=%s (actor=%s)",
            target_id,
            game.created_at.isoformat(),
            len(affected),
            actor,
        )

        ensure_players_exist(session, results)
        verify_entry_lineage(session, results, config.rating)

        deleted = delete_snapshots_for_games(session, [candidate.id for candidate in affected])
        unlinked = unlink_game(session, target_id)
        delete_game_row(session, game)

        summary = _run_replay(session, results, params=config.rating, deadline=deadline)

    logger.info(
        "Deleted game_id=%s unlinked_slots=%s replayed_games=%s deleted_snapshots=%s written_snapshots=%s",
        target_id,
        unlinked,
        len(results),
        deleted,
        summary.written_snapshots,
    )
    return RecomputeResult(
        operation=OPERATION_DELETED,
        game_id=target_id,
        affected_games=len(affected),
        deleted_snapshots=deleted,
        written_snapshots=summary.written_snapshots,
    )


def repair_from(
    session_factory: sessionmaker[Session],
    since: datetime,
    *,
    config: LadderConfig,
) -> RecomputeResult:
    """Replay the suffix starting at ``since`` without changing any game.

    The repair path for a drifted ledger: entry lineage is not checked, the
    ratings held just before ``since`` are taken as given.
    """
    with ledger_transaction(session_factory, config.cascade, extended=True) as session:
        deadline = time.monotonic() + config.cascade.timeout_seconds
        affected = fetch_affected_games(session, since)
        results = [to_game_result(candidate) for candidate in affected]

        ensure_players_exist(session, results)
        deleted = delete_snapshots_for_games(session, [candidate.id for candidate in affected])
        summary = _run_replay(session, results, params=config.rating, deadline=deadline)

    logger.info(
        "Repaired ledger since=%s affected_games=%s written_snapshots=%s",
        since.isoformat(),
        len(affected),
        summary.written_snapshots,
    )
    return RecomputeResult(
        operation=OPERATION_REPAIRED,
        game_id=None,
        affected_games=len(affected),
        deleted_snapshots=deleted,
        written_snapshots=summary.written_snapshots,
    )


def _require_game(session: Session, game_id: int) -> Game:
    game = get_game(session, game_id, for_update=True)
    if game is None:
        raise ReferentialError(f"Game {game_id} does not exist")
    return game


def _edited_result(game: Game, fields: ValidatedGameFields) -> GameResult:
    return GameResult(
        game_id=game.id,
        event_time=game.created_at,
        side_a_player_id=fields.side_a_player_id,
        side_b_player_id=fields.side_b_player_id,
        outcome=fields.outcome,
        category_id=fields.category_id,
    )


def _apply_fields(game: Game, fields: ValidatedGameFields, *, updated_at: datetime) -> None:
    game.side_a_player_id = fields.side_a_player_id
    game.side_b_player_id = fields.side_b_player_id
    game.outcome = fields.outcome.value
    game.category_id = fields.category_id
    game.game_code = fields.game_code
    game.end_mode = fields.end_mode
    game.end_turn = fields.end_turn
    game.video_url = fields.video_url
    game.reporter_id = fields.side_a_player_id
    game.updated_at = updated_at


def _run_replay(
    session: Session,
    results: list[GameResult],
    *,
    params: RatingParameters,
    deadline: float,
) -> ReplaySummary:
    try:
        return replay_games(session, results, params=params, deadline=deadline)
    except LadderError:
        raise
    except SQLAlchemyError as exc:
        raise CascadeAbortedError(
            f"Storage failure during replay; all changes rolled back: {exc}",
            partial_work=True,
        ) from exc


__all__ = [
    "RecomputeRequest",
    "RecomputeResult",
    "crosses_friendly_category",
    "delete_game",
    "edit_game",
    "recreate_or_delete_game",
    "repair_from",
    "requires_recomputation",
]
