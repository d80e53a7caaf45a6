"""Typed failures raised by ladder operations.

Every failure leaves the database as it was before the operation started; the
``partial_work`` flag only says whether the rollback discarded replayed rows.
"""

from __future__ import annotations


class LadderError(Exception):
    """Base class for ladder engine failures."""

    def __init__(self, message: str, *, partial_work: bool = False) -> None:
        super().__init__(message)
        self.partial_work = partial_work


class ValidationError(LadderError):
    """Bad or missing ids, unknown outcome code, malformed category."""


class ReferentialError(LadderError):
    """A referenced game, player or tournament does not exist."""


class LedgerConsistencyError(LadderError):
    """Rating lineage was already broken before the operation began."""


class CascadeTimeoutError(LadderError):
    """A cascade ran past its deadline and was rolled back; retry later."""


class CascadeAbortedError(LadderError):
    """The storage layer failed mid-cascade; everything was rolled back."""


__all__ = [
    "CascadeAbortedError",
    "CascadeTimeoutError",
    "LadderError",
    "LedgerConsistencyError",
    "ReferentialError",
    "ValidationError",
]
