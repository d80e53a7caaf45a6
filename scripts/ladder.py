#!/usr/bin/env python3
"""Maintenance jobs for the ladder rating ledger and tournament standings."""

from __future__ import annotations

import sys
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from sqlalchemy.orm import Session, sessionmaker

ROOT_DIR = Path(__file__).resolve().parents[1]
SRC_DIR = ROOT_DIR / "src"
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from db import DEFAULT_DB_URL, create_db_engine, create_session_factory
from domain.config import DEFAULT_CONFIG_PATH, LadderConfig, load_ladder_config
from domain.errors import LadderError
from domain.pipeline import rebuild_ledger
from domain.queries import audit_lineage, current_rating, rating_history, top_rated_players
from domain.recompute import repair_from
from domain.standings import compute_standings
from repositories.schema import ensure_ladder_schema

app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Ladder rating jobs.",
)

DbUrlOption = Annotated[
    str,
    typer.Option("--db-url", help="Database URL. Defaults to the local ladder postgres instance."),
]
ConfigOption = Annotated[
    Path,
    typer.Option("--config", help="Ladder TOML config file."),
]


def _load_config(config_path: Path) -> LadderConfig:
    try:
        return load_ladder_config(config_path)
    except (FileNotFoundError, ValueError) as exc:
        raise typer.BadParameter(str(exc)) from exc


def _session_factory(db_url: str) -> sessionmaker[Session]:
    engine = create_db_engine(db_url)
    ensure_ladder_schema(engine)
    return create_session_factory(engine)


@app.command("rebuild")
def rebuild(
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    batch_size: Annotated[
        int,
        typer.Option("--batch-size", help="Batch size for inserting rating snapshots."),
    ] = 5000,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Compute ratings without writing rating_snapshots."),
    ] = False,
) -> None:
    """Discard the rating ledger and replay every game in log order."""
    if batch_size <= 0:
        raise typer.BadParameter("--batch-size must be greater than 0")

    config = _load_config(config_path)
    typer.echo(f"ladder={config.name} config={config.as_config_json()}")
    rebuild_ledger(
        session_factory=_session_factory(db_url),
        config=config,
        batch_size=batch_size,
        dry_run=dry_run,
        echo=typer.echo,
    )


@app.command("verify")
def verify(
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
    repair: Annotated[
        bool,
        typer.Option("--repair", help="Replay the ledger from the earliest broken snapshot."),
    ] = False,
) -> None:
    """Report snapshots that do not chain from the player's previous snapshot."""
    config = _load_config(config_path)
    session_factory = _session_factory(db_url)

    breaks = audit_lineage(session_factory, config=config)
    typer.echo(f"lineage_breaks={len(breaks)}")
    for entry in breaks:
        typer.echo(
            f"player_id={entry.player_id} game_id={entry.game_id} event_time={entry.event_time} "
            f"expected_previous={entry.expected_previous_rating} previous={entry.previous_rating} "
            f"delta={entry.rating_delta} rating={entry.rating}"
        )

    if not breaks:
        return
    if not repair:
        raise typer.Exit(code=1)

    since = min(entry.event_time for entry in breaks)
    try:
        result = repair_from(session_factory, since, config=config)
    except LadderError as exc:
        typer.echo(f"repair failed: {exc}", err=True)
        raise typer.Exit(code=1) from exc
    typer.echo(
        "repaired "
        f"since={since} "
        f"affected_games={result.affected_games} "
        f"written_snapshots={result.written_snapshots}"
    )


@app.command("standings")
def standings(
    tournament_id: Annotated[int, typer.Argument(help="Tournament id.")],
    division: Annotated[
        str | None,
        typer.Option("--division", help="Only show players of this division (secondary name)."),
    ] = None,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Print tournament standings in playoff order."""
    try:
        entries = compute_standings(_session_factory(db_url), tournament_id, division=division)
    except LadderError as exc:
        raise typer.BadParameter(str(exc)) from exc

    if not entries:
        typer.echo(f"No standings for tournament_id={tournament_id}.")
        return

    for entry in entries:
        typer.echo(
            f"{entry.playoff_rank:3d}. {entry.name or entry.player_id!s:<28} "
            f"bucket={entry.standing_name} "
            f"w={entry.games_won} l={entry.games_lost} t={entry.games_tied} "
            f"win_rate={entry.win_rate:.3f} sos={entry.sos:.3f}"
        )


@app.command("rating")
def rating(
    player_id: Annotated[int, typer.Argument(help="Player id.")],
    history: Annotated[
        bool,
        typer.Option("--history", help="Also print the per-game rating history, newest first."),
    ] = False,
    since: Annotated[
        datetime | None,
        typer.Option("--since", help="Only include history from games played on or after this date."),
    ] = None,
    db_url: DbUrlOption = DEFAULT_DB_URL,
    config_path: ConfigOption = DEFAULT_CONFIG_PATH,
) -> None:
    """Print a player's current rating."""
    config = _load_config(config_path)
    session_factory = _session_factory(db_url)
    try:
        value = current_rating(session_factory, player_id, config=config)
    except LadderError as exc:
        raise typer.BadParameter(str(exc)) from exc
    typer.echo(f"player_id={player_id} rating={value}")

    if not history:
        return
    for entry in rating_history(session_factory, player_id, since=since):
        typer.echo(
            f"game_id={entry.game_id} game_date={entry.game_date} "
            f"opponent_id={entry.opponent_player_id} side={'A' if entry.played_side_a else 'B'} "
            f"rating={entry.previous_rating}->{entry.rating} ({entry.rating_delta:+d})"
        )


@app.command("top")
def top(
    top_n: Annotated[int, typer.Option("--top-n", help="Number of players to return.")] = 20,
    page: Annotated[int, typer.Option("--page", help="1-based page of --top-n players.")] = 1,
    db_url: DbUrlOption = DEFAULT_DB_URL,
) -> None:
    """Print players ranked by their latest rating."""
    if top_n <= 0:
        raise typer.BadParameter("--top-n must be greater than 0")
    if page <= 0:
        raise typer.BadParameter("--page must be greater than 0")

    players = top_rated_players(_session_factory(db_url), page=page, page_size=top_n)
    if not players:
        typer.echo("No rated players found.")
        return

    for player in players:
        typer.echo(
            f"{player.rank:3d}. {player.name:<28} "
            f"country={player.country_code or '-'} rating={player.rating}"
        )


if __name__ == "__main__":
    app()
