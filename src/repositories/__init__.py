"""Database repository helpers."""

from repositories.ledger import (
    DEFAULT_BASELINE_RATING,
    delete_snapshots_for_games,
    latest_rating,
    record_snapshots,
)
from repositories.schema import ensure_ladder_schema
from repositories.transaction import ledger_transaction, unit_of_work

__all__ = [
    "DEFAULT_BASELINE_RATING",
    "delete_snapshots_for_games",
    "ensure_ladder_schema",
    "latest_rating",
    "ledger_transaction",
    "record_snapshots",
    "unit_of_work",
]
