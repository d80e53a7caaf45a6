"""ORM models."""

from models.audit import GameAuditLog
from models.base import Base
from models.game import Game
from models.player import Player
from models.rating_snapshot import RatingSnapshot
from models.schedule import ScheduleSlot
from models.tournament import Standing, StandingPlayer, Tournament

__all__ = [
    "Base",
    "Game",
    "GameAuditLog",
    "Player",
    "RatingSnapshot",
    "ScheduleSlot",
    "Standing",
    "StandingPlayer",
    "Tournament",
]
