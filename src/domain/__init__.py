"""Ladder rating and standings domain modules."""

from domain.common import GameResult, Outcome, Registration
from domain.errors import LadderError

__all__ = ["GameResult", "LadderError", "Outcome", "Registration"]
