"""Shared types for the ladder rating engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from domain.errors import ValidationError

# Position of a game in the log: creation time, then surrogate id.
LogPosition = tuple[datetime, int]


class Outcome(str, Enum):
    """Stored outcome codes of a game."""

    A_WIN = "1"
    B_WIN = "2"
    TIE = "3"


def parse_outcome(value: Any) -> Outcome:
    """Coerce a stored or submitted outcome code, rejecting unknown codes."""
    if isinstance(value, Outcome):
        return value
    try:
        return Outcome(str(value).strip())
    except ValueError:
        raise ValidationError(f"Unknown outcome code: {value!r}") from None


def parse_id(value: Any, *, field: str) -> int:
    """Coerce an opaque numeric identifier, rejecting non-positive values."""
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a positive integer id, got {value!r}")
    try:
        parsed = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"{field} must be a positive integer id, got {value!r}") from None
    if parsed <= 0:
        raise ValidationError(f"{field} must be a positive integer id, got {value!r}")
    return parsed


@dataclass(frozen=True)
class GameResult:
    """Canonical rating-relevant payload of one game in the log."""

    game_id: int
    event_time: datetime
    side_a_player_id: int
    side_b_player_id: int
    outcome: Outcome
    category_id: int

    @property
    def position(self) -> LogPosition:
        return (self.event_time, self.game_id)

    @property
    def player_ids(self) -> tuple[int, int]:
        return (self.side_a_player_id, self.side_b_player_id)


@dataclass(frozen=True)
class Registration:
    """One player registered in a tournament standings bucket."""

    player_id: int
    standing_name: str
    secondary_name: str | None = None
    name: str = ""
    country_code: str | None = None


__all__ = ["GameResult", "LogPosition", "Outcome", "Registration", "parse_id", "parse_outcome"]
