"""Record new games at the head of the log."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from domain.common import GameResult, Outcome, parse_id, parse_outcome
from domain.config import LadderConfig
from domain.errors import ValidationError
from domain.rating.calculator import RatingParameters, apply_outcome, snapshot_events
from logger import setup_logger
from models import Game, ScheduleSlot
from repositories.games import existing_player_ids, insert_game, latest_game_time, tournament_exists
from repositories.ledger import latest_rating, record_snapshots
from repositories.schedule import get_schedule_slot, link_schedule_slot
from repositories.transaction import ledger_transaction

logger = setup_logger(__name__)


@dataclass(frozen=True)
class GameFields:
    """Submitted game fields before validation (ids may still be strings)."""

    side_a_player_id: Any
    side_b_player_id: Any
    outcome: Any
    category_id: Any
    game_code: str | None = None
    end_mode: str | None = None
    end_turn: Any = None
    video_url: str | None = None


@dataclass(frozen=True)
class ValidatedGameFields:
    side_a_player_id: int
    side_b_player_id: int
    outcome: Outcome
    category_id: int
    game_code: str | None
    end_mode: str | None
    end_turn: int | None
    video_url: str | None


@dataclass(frozen=True)
class SubmittedGame:
    game_id: int
    event_time: datetime
    side_a_player_id: int
    side_b_player_id: int
    outcome: Outcome
    category_id: int
    previous_rating_a: int
    previous_rating_b: int
    new_rating_a: int
    new_rating_b: int
    schedule_slot_id: int | None = None


def utc_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def parse_game_fields(fields: GameFields) -> ValidatedGameFields:
    """Shape checks that need no database access."""
    side_a = parse_id(fields.side_a_player_id, field="side_a_player_id")
    side_b = parse_id(fields.side_b_player_id, field="side_b_player_id")
    if side_a == side_b:
        raise ValidationError(f"A player cannot play against themselves (player_id={side_a})")

    end_turn: int | None = None
    if fields.end_turn is not None and str(fields.end_turn).strip() != "":
        try:
            end_turn = int(str(fields.end_turn).strip())
        except ValueError:
            raise ValidationError(f"end_turn must be an integer, got {fields.end_turn!r}") from None

    return ValidatedGameFields(
        side_a_player_id=side_a,
        side_b_player_id=side_b,
        outcome=parse_outcome(fields.outcome),
        category_id=parse_id(fields.category_id, field="category_id"),
        game_code=fields.game_code,
        end_mode=fields.end_mode,
        end_turn=end_turn,
        video_url=fields.video_url or None,
    )


def validate_game_fields(session: Session, fields: GameFields) -> ValidatedGameFields:
    """Full validation, including player and category existence."""
    validated = parse_game_fields(fields)

    requested = {validated.side_a_player_id, validated.side_b_player_id}
    missing = requested - existing_player_ids(session, requested)
    if missing:
        raise ValidationError(f"Unknown player ids: {sorted(missing)}")
    if not tournament_exists(session, validated.category_id):
        raise ValidationError(f"Unknown category (tournament) id: {validated.category_id}")
    return validated


def _validate_schedule_slot(session: Session, slot_id: int, game: ValidatedGameFields) -> None:
    slot = get_schedule_slot(session, slot_id)
    if slot is None:
        raise ValidationError(f"Unknown schedule slot: {slot_id}")
    if slot.game_id is not None:
        raise ValidationError(f"Schedule slot {slot_id} is already fulfilled by game_id={slot.game_id}")
    check_slot_matches(slot, game)


def check_slot_matches(slot: ScheduleSlot, game: ValidatedGameFields) -> None:
    """Raise when a game does not fit the pairing and tournament of its slot."""
    if (
        slot.side_a_player_id != game.side_a_player_id
        or slot.side_b_player_id != game.side_b_player_id
        or slot.tournament_id != game.category_id
    ):
        raise ValidationError(f"Schedule slot {slot.id} does not match the submitted players and tournament")


def record_game(
    session: Session,
    fields: GameFields,
    *,
    params: RatingParameters,
    schedule_slot_id: Any = None,
    reporter_id: int | None = None,
    now: datetime | None = None,
) -> SubmittedGame:
    """Insert a game and its two snapshots inside the caller's transaction."""
    validated = validate_game_fields(session, fields)
    slot_id = None if schedule_slot_id is None else parse_id(schedule_slot_id, field="schedule_slot_id")
    if slot_id is not None:
        _validate_schedule_slot(session, slot_id, validated)

    event_time = now or utc_now()
    head_time = latest_game_time(session)
    if head_time is not None and event_time < head_time:
        raise ValidationError(
            f"Submission time {event_time.isoformat()} is earlier than the log head "
            f"{head_time.isoformat()}; edit the log through recomputation instead"
        )

    game = insert_game(
        session,
        Game(
            side_a_player_id=validated.side_a_player_id,
            side_b_player_id=validated.side_b_player_id,
            outcome=validated.outcome.value,
            category_id=validated.category_id,
            game_code=validated.game_code,
            end_mode=validated.end_mode,
            end_turn=validated.end_turn,
            video_url=validated.video_url,
            reporter_id=reporter_id if reporter_id is not None else validated.side_a_player_id,
            game_date=event_time,
            created_at=event_time,
            updated_at=event_time,
        ),
    )
    result = GameResult(
        game_id=game.id,
        event_time=event_time,
        side_a_player_id=validated.side_a_player_id,
        side_b_player_id=validated.side_b_player_id,
        outcome=validated.outcome,
        category_id=validated.category_id,
    )

    rating_a = latest_rating(
        session, result.side_a_player_id, before=result.position, baseline=params.baseline_rating
    )
    rating_b = latest_rating(
        session, result.side_b_player_id, before=result.position, baseline=params.baseline_rating
    )
    change = apply_outcome(rating_a, rating_b, result.outcome, result.category_id, params)
    record_snapshots(session, snapshot_events(result, change))

    if slot_id is not None:
        link_schedule_slot(session, slot_id, game.id)

    return SubmittedGame(
        game_id=game.id,
        event_time=event_time,
        side_a_player_id=result.side_a_player_id,
        side_b_player_id=result.side_b_player_id,
        outcome=result.outcome,
        category_id=result.category_id,
        previous_rating_a=change.previous_rating_a,
        previous_rating_b=change.previous_rating_b,
        new_rating_a=change.new_rating_a,
        new_rating_b=change.new_rating_b,
        schedule_slot_id=slot_id,
    )


def submit_game(
    session_factory: sessionmaker[Session],
    fields: GameFields,
    *,
    config: LadderConfig,
    schedule_slot_id: Any = None,
    reporter_id: int | None = None,
    now: datetime | None = None,
) -> SubmittedGame:
    """Record one game atomically: game row, both snapshots and slot link, or nothing."""
    # Shape errors are rejected before a transaction is opened.
    parse_game_fields(fields)

    with ledger_transaction(session_factory, config.cascade) as session:
        submitted = record_game(
            session,
            fields,
            params=config.rating,
            schedule_slot_id=schedule_slot_id,
            reporter_id=reporter_id,
            now=now,
        )

    logger.info(
        "Recorded game_id=%s players=%s/%s outcome=%s category=%s ratings=%s->%s/%s->%s",
        submitted.game_id,
        submitted.side_a_player_id,
        submitted.side_b_player_id,
        submitted.outcome.value,
        submitted.category_id,
        submitted.previous_rating_a,
        submitted.new_rating_a,
        submitted.previous_rating_b,
        submitted.new_rating_b,
    )
    return submitted


__all__ = [
    "GameFields",
    "SubmittedGame",
    "ValidatedGameFields",
    "check_slot_matches",
    "parse_game_fields",
    "record_game",
    "submit_game",
    "validate_game_fields",
]
