"""Tournament registration reads for standings."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from domain.common import Registration
from models import Player, Standing, StandingPlayer


def fetch_registrations(session: Session, tournament_id: int) -> list[Registration]:
    """Registered players of a tournament with their bucket and division tag."""
    statement = (
        select(
            StandingPlayer.player_id,
            Standing.standing_name,
            Standing.secondary_name,
            Player.first_name,
            Player.last_name,
            Player.country_code,
        )
        .join(Standing, Standing.id == StandingPlayer.standing_id)
        .outerjoin(Player, Player.id == StandingPlayer.player_id)
        .where(Standing.tournament_id == tournament_id)
        .order_by(Standing.id, StandingPlayer.id)
    )
    rows = session.execute(statement).mappings().all()
    return [
        Registration(
            player_id=row["player_id"],
            standing_name=row["standing_name"],
            secondary_name=row["secondary_name"],
            name=f"{row['first_name'] or ''} {row['last_name'] or ''}".strip(),
            country_code=row["country_code"],
        )
        for row in rows
    ]
