"""Unit-of-work helpers for operations that write the rating ledger."""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import text
from sqlalchemy.orm import Session, sessionmaker

from domain.config import CascadeParameters
from domain.errors import CascadeTimeoutError

# Fixed key for pg_advisory_xact_lock; the ledger is one global timeline.
LEDGER_ADVISORY_LOCK_KEY = 5_000_047

_ledger_lock = threading.Lock()


@contextmanager
def unit_of_work(session_factory: sessionmaker[Session]) -> Iterator[Session]:
    """Yield a session whose transaction commits on success and rolls back on error."""
    with session_factory() as session:
        with session.begin():
            yield session


@contextmanager
def ledger_transaction(
    session_factory: sessionmaker[Session],
    cascade: CascadeParameters,
    *,
    extended: bool = False,
) -> Iterator[Session]:
    """Serialised unit of work over the rating ledger.

    Writers are serialised in-process by a lock and across processes by a
    transaction-scoped advisory lock on Postgres. ``extended`` lifts the
    statement deadline for long cascades.
    """
    if not _ledger_lock.acquire(timeout=cascade.lock_wait_seconds):
        raise CascadeTimeoutError(
            f"Timed out after {cascade.lock_wait_seconds}s waiting for another ledger writer"
        )
    try:
        with session_factory() as session:
            with session.begin():
                _prepare_ledger_session(session, cascade, extended=extended)
                yield session
    finally:
        _ledger_lock.release()


def _prepare_ledger_session(session: Session, cascade: CascadeParameters, *, extended: bool) -> None:
    bind = session.get_bind()
    if bind is None or bind.dialect.name != "postgresql":
        return

    lock_wait_ms = int(cascade.lock_wait_seconds * 1000)
    session.execute(text(f"SET LOCAL lock_timeout = {lock_wait_ms}"))
    if extended:
        timeout_ms = int(cascade.timeout_seconds * 1000)
        session.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
    session.execute(
        text("SELECT pg_advisory_xact_lock(:key)"),
        {"key": LEDGER_ADVISORY_LOCK_KEY},
    )


__all__ = ["LEDGER_ADVISORY_LOCK_KEY", "ledger_transaction", "unit_of_work"]
