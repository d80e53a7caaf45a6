"""Tournament standings: win rate, strength of schedule and playoff order."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.orm import Session, sessionmaker

from domain.common import GameResult, Outcome, Registration, parse_id
from domain.errors import ReferentialError
from repositories.games import fetch_game_results, tournament_exists
from repositories.standings import fetch_registrations

FORFEIT_STANDING = "forfeit"


@dataclass(frozen=True)
class StandingEntry:
    player_id: int
    name: str
    country_code: str | None
    standing_name: str
    secondary_name: str | None
    games_won: int
    games_lost: int
    games_tied: int
    win_rate: float
    sos: float
    playoff_rank: int

    @property
    def games_played(self) -> int:
        return self.games_won + self.games_lost + self.games_tied


@dataclass
class _Tally:
    registration: Registration
    games_won: int = 0
    games_lost: int = 0
    games_tied: int = 0
    opponents: list[int] = field(default_factory=list)
    win_rate: float = 0.0
    sos: float = 0.0

    @property
    def games_played(self) -> int:
        return self.games_won + self.games_lost + self.games_tied


def aggregate_standings(
    registrations: Sequence[Registration],
    games: Iterable[GameResult],
    *,
    division: str | None = None,
) -> list[StandingEntry]:
    """Fold a tournament's games into ranked standings.

    Players with games but no registration (they forfeited their bucket) are
    counted under the ``forfeit`` bucket.
    """
    tallies: dict[int, _Tally] = {}
    for registration in registrations:
        tallies[registration.player_id] = _Tally(registration=registration)

    for game in games:
        for player_id in game.player_ids:
            if player_id not in tallies:
                tallies[player_id] = _Tally(
                    registration=Registration(player_id=player_id, standing_name=FORFEIT_STANDING)
                )

        side_a = tallies[game.side_a_player_id]
        side_b = tallies[game.side_b_player_id]
        side_a.opponents.append(game.side_b_player_id)
        side_b.opponents.append(game.side_a_player_id)

        if game.outcome is Outcome.A_WIN:
            side_a.games_won += 1
            side_b.games_lost += 1
        elif game.outcome is Outcome.B_WIN:
            side_b.games_won += 1
            side_a.games_lost += 1
        else:
            side_a.games_tied += 1
            side_b.games_tied += 1

    # Every win rate must be final before any SoS reads it.
    for tally in tallies.values():
        if tally.games_played:
            tally.win_rate = (tally.games_won + 0.5 * tally.games_tied) / tally.games_played

    for tally in tallies.values():
        if tally.opponents:
            tally.sos = sum(tallies[opponent].win_rate for opponent in tally.opponents) / len(tally.opponents)

    selected = [
        tally
        for tally in tallies.values()
        if division is None or tally.registration.secondary_name == division
    ]
    # TODO: add a head-to-head tie-break for equal win rate and SoS once the
    # tournament rules define how multi-player ties resolve.
    selected.sort(key=lambda tally: (-tally.win_rate, -tally.sos))

    return [
        StandingEntry(
            player_id=tally.registration.player_id,
            name=tally.registration.name,
            country_code=tally.registration.country_code,
            standing_name=tally.registration.standing_name,
            secondary_name=tally.registration.secondary_name,
            games_won=tally.games_won,
            games_lost=tally.games_lost,
            games_tied=tally.games_tied,
            win_rate=tally.win_rate,
            sos=tally.sos,
            playoff_rank=rank,
        )
        for rank, tally in enumerate(selected, start=1)
    ]


def compute_standings(
    session_factory: sessionmaker[Session],
    tournament_id: Any,
    *,
    division: str | None = None,
) -> list[StandingEntry]:
    """Standings of one tournament, recomputed from its whole game log."""
    parsed_id = parse_id(tournament_id, field="tournament_id")

    with session_factory() as session:
        if not tournament_exists(session, parsed_id):
            raise ReferentialError(f"Tournament {parsed_id} does not exist")

        registrations = fetch_registrations(session, parsed_id)
        if not registrations:
            return []
        games = fetch_game_results(session, tournament_id=parsed_id)

    return aggregate_standings(registrations, games, division=division)


__all__ = ["FORFEIT_STANDING", "StandingEntry", "aggregate_standings", "compute_standings"]
