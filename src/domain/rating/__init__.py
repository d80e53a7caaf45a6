"""Ladder rating function and in-memory calculator."""

from domain.rating.calculator import (
    LadderRatingCalculator,
    RatingChange,
    RatingParameters,
    RatingSnapshotEvent,
    apply_outcome,
    rating_difference,
    round_half_away_from_zero,
    snapshot_events,
)

__all__ = [
    "LadderRatingCalculator",
    "RatingChange",
    "RatingParameters",
    "RatingSnapshotEvent",
    "apply_outcome",
    "rating_difference",
    "round_half_away_from_zero",
    "snapshot_events",
]
