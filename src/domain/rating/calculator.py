"""Ladder rating logic."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from math import floor

from domain.common import GameResult, Outcome


@dataclass(frozen=True)
class RatingParameters:
    baseline_rating: int = 5000
    ranked_stake: int = 100
    friendly_stake: int = 50
    difference_scale: float = 0.05
    max_change: int = 200
    min_change: int = 1
    friendly_category_id: int = 47

    def is_friendly(self, category_id: int) -> bool:
        return category_id == self.friendly_category_id

    def stake_for(self, category_id: int) -> int:
        return self.friendly_stake if self.is_friendly(category_id) else self.ranked_stake


@dataclass(frozen=True)
class RatingChange:
    previous_rating_a: int
    previous_rating_b: int
    new_rating_a: int
    new_rating_b: int

    @property
    def delta_a(self) -> int:
        return self.new_rating_a - self.previous_rating_a

    @property
    def delta_b(self) -> int:
        return self.new_rating_b - self.previous_rating_b


@dataclass(frozen=True)
class RatingSnapshotEvent:
    """Ledger row produced for one player by one game."""

    game_id: int
    player_id: int
    opponent_player_id: int
    event_time: datetime
    previous_rating: int
    rating_delta: int
    rating: int


def round_half_away_from_zero(value: float) -> int:
    magnitude = floor(abs(value) + 0.5)
    return -magnitude if value < 0 else magnitude


def rating_difference(
    loser_rating: int,
    winner_rating: int,
    base_stake: int,
    category_id: int,
    params: RatingParameters,
) -> int:
    """Points moved from loser to winner for one game.

    A negative result is only possible for a zero stake (tie evaluation).
    """
    movement = (loser_rating - winner_rating) * params.difference_scale
    if params.is_friendly(category_id):
        movement = movement / 2

    value = round_half_away_from_zero(movement) + base_stake
    if base_stake != 0 and value <= 0:
        return params.min_change
    if value > params.max_change:
        return params.max_change
    return value


def apply_outcome(
    rating_a: int,
    rating_b: int,
    outcome: Outcome,
    category_id: int,
    params: RatingParameters,
) -> RatingChange:
    """Compute both players' ratings after one game."""
    if outcome is Outcome.A_WIN:
        delta = rating_difference(rating_b, rating_a, params.stake_for(category_id), category_id, params)
        return RatingChange(rating_a, rating_b, rating_a + delta, rating_b - delta)

    if outcome is Outcome.B_WIN:
        delta = rating_difference(rating_a, rating_b, params.stake_for(category_id), category_id, params)
        return RatingChange(rating_a, rating_b, rating_a - delta, rating_b + delta)

    if outcome is Outcome.TIE:
        # Side A counts as the lower player on equal ratings; the delta is 0 then.
        a_is_lower = rating_a <= rating_b
        lower, higher = (rating_a, rating_b) if a_is_lower else (rating_b, rating_a)
        delta = abs(rating_difference(higher, lower, 0, category_id, params))
        if a_is_lower:
            return RatingChange(rating_a, rating_b, rating_a + delta, rating_b - delta)
        return RatingChange(rating_a, rating_b, rating_a - delta, rating_b + delta)

    raise ValueError(f"Unsupported outcome: {outcome!r}")


def snapshot_events(result: GameResult, change: RatingChange) -> tuple[RatingSnapshotEvent, RatingSnapshotEvent]:
    side_a_event = RatingSnapshotEvent(
        game_id=result.game_id,
        player_id=result.side_a_player_id,
        opponent_player_id=result.side_b_player_id,
        event_time=result.event_time,
        previous_rating=change.previous_rating_a,
        rating_delta=change.delta_a,
        rating=change.new_rating_a,
    )
    side_b_event = RatingSnapshotEvent(
        game_id=result.game_id,
        player_id=result.side_b_player_id,
        opponent_player_id=result.side_a_player_id,
        event_time=result.event_time,
        previous_rating=change.previous_rating_b,
        rating_delta=change.delta_b,
        rating=change.new_rating_b,
    )
    return side_a_event, side_b_event


class LadderRatingCalculator:
    """Stateful game-by-game calculator over an in-memory rating map."""

    def __init__(self, params: RatingParameters, *, initial_ratings: dict[int, int] | None = None) -> None:
        self.params = params
        self._ratings: dict[int, int] = dict(initial_ratings or {})

    def get_rating(self, player_id: int) -> int:
        return self._ratings.get(player_id, self.params.baseline_rating)

    def tracked_player_count(self) -> int:
        return len(self._ratings)

    def ratings(self) -> dict[int, int]:
        """Return a snapshot of current player ratings."""
        return dict(self._ratings)

    def process_game(self, result: GameResult) -> tuple[RatingSnapshotEvent, RatingSnapshotEvent]:
        if result.side_a_player_id == result.side_b_player_id:
            raise ValueError(
                f"game_id={result.game_id} has identical players ({result.side_a_player_id})"
            )

        change = apply_outcome(
            self.get_rating(result.side_a_player_id),
            self.get_rating(result.side_b_player_id),
            result.outcome,
            result.category_id,
            self.params,
        )
        self._ratings[result.side_a_player_id] = change.new_rating_a
        self._ratings[result.side_b_player_id] = change.new_rating_b
        return snapshot_events(result, change)
