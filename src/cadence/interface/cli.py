"""cadence CLI: deck commands, config subgroup and server launcher."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer

from cadence.application.config import resolve_config
from cadence.application.scheduler import validate_rating
from cadence.application.stats.metrics_calculator import study_recommendation
from cadence.domain.errors import CardNotFound, InvalidRating
from cadence.infrastructure.deck_file import DeckFormatError, card_to_dict
from cadence.interface._common import DeckSession, _resolve_with_overrides

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="cadence: SM-2 spaced-repetition scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage cadence configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logger = logging.getLogger(__name__)

_LOG_LEVELS = {0: logging.WARNING, 1: logging.INFO}


def _configure_logging(verbose: int) -> None:
    logging.basicConfig(
        level=_LOG_LEVELS.get(verbose, logging.DEBUG),
        format="%(levelname)s:%(name)s:%(message)s",
        stream=sys.stderr,
        force=True,
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

DeckArg = Annotated[
    Path | None,
    typer.Argument(
        help="Deck file (YAML or JSON). Defaults to 'deck_path' in config, or ./deck.yaml."
    ),
]


def _json_default(o: Any) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    return str(o)


def _fmt(value: Any) -> Any:
    return value.isoformat() if isinstance(value, datetime) else value


def _dumps(data: Any) -> str:
    return json.dumps(data, indent=2, default=_json_default)


def _open_deck(deck: Path | None) -> DeckSession:
    config = _resolve_with_overrides(deck_path=deck)
    try:
        return DeckSession(config)
    except DeckFormatError as e:
        typer.secho(f"Cannot read deck: {e}", fg="red", err=True)
        raise typer.Exit(1) from e


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for cadence."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


# ---------------------------------------------------------------------------
# Deck commands
# ---------------------------------------------------------------------------


@app.command()
def new(
    deck: DeckArg = None,
    count: Annotated[int, typer.Option("--count", "-n", min=1, help="Cards to create.")] = 1,
):
    """[bold green]Create[/bold green] new cards, due immediately."""
    session = _open_deck(deck)

    async def run():
        return [await session.service.create_card() for _ in range(count)]

    created = asyncio.run(run())
    session.save()
    for card in created:
        typer.echo(card.card_id)


@app.command()
def review(
    card_id: Annotated[str, typer.Argument(help="Card to review.")],
    rating: Annotated[int, typer.Argument(help="0 (blackout) to 5 (perfect). 3+ is a pass.")],
    deck: DeckArg = None,
    time_spent: Annotated[
        float | None, typer.Option("--time-spent", help="Seconds spent on the card.")
    ] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Show the result without saving.")
    ] = False,
):
    """Record a review and reschedule the card."""
    try:
        validate_rating(rating)
    except InvalidRating as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(2) from e

    session = _open_deck(deck)
    try:
        card = asyncio.run(session.service.submit_review(card_id, rating, time_spent))
    except CardNotFound as e:
        typer.secho(str(e), fg="red", err=True)
        raise typer.Exit(1) from e

    if dry_run:
        typer.secho("[DRY RUN] Deck not modified.", fg="yellow")
    else:
        session.save()

    typer.echo(_dumps(card_to_dict(card)))


@app.command()
def queue(
    deck: DeckArg = None,
    limit: Annotated[
        int | None, typer.Option("--limit", min=1, help="Maximum cards in the session.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List due cards in review order: most overdue first, then hardest first."""
    session = _open_deck(deck)
    cards = asyncio.run(session.service.session_queue(limit or session.config.session_limit))

    if json_output:
        typer.echo(_dumps([card_to_dict(c) for c in cards]))
        return

    if not cards:
        typer.secho("No cards due.", fg="green")
        return

    typer.echo(f"Due cards: {len(cards)}")
    for card in cards:
        typer.echo(
            f"  {card.card_id}  ease={card.ease_factor:.2f}  "
            f"interval={card.interval}d  due={card.next_review.isoformat()}"
        )


@app.command()
def stats(
    deck: DeckArg = None,
    card: Annotated[str | None, typer.Option("--card", help="Show stats for one card.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show review statistics for the deck or a single card."""
    session = _open_deck(deck)

    if card:
        try:
            result = asdict(asyncio.run(session.service.card_stats(card)))
        except CardNotFound as e:
            typer.secho(str(e), fg="red", err=True)
            raise typer.Exit(1) from e
    else:

        async def run():
            overview = await session.service.overview()
            rec = await session.service.recommendation()
            return {**asdict(overview), "recommendation": asdict(rec)}

        result = asyncio.run(run())

    if json_output:
        typer.echo(_dumps(result))
        return

    for key, value in result.items():
        if isinstance(value, dict):
            typer.echo(f"{key}:")
            for sub_key, sub_value in value.items():
                typer.echo(f"  {sub_key}: {_fmt(sub_value)}")
        else:
            typer.echo(f"{key}: {_fmt(value)}")


@app.command()
def plan(
    due_count: Annotated[int, typer.Argument(help="Number of cards due today.")],
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Recommend how to split today's due cards into study sessions."""
    config = resolve_config()
    rec = study_recommendation(
        due_count,
        max_cards_per_session=config.max_cards_per_session,
        minutes_per_card=config.minutes_per_card,
        max_sessions_per_day=config.max_sessions_per_day,
    )

    if json_output:
        typer.echo(_dumps(asdict(rec)))
        return

    if rec.sessions_per_day == 0:
        typer.secho("Nothing due. Enjoy the day off.", fg="green")
        return

    typer.echo(
        f"{rec.sessions_per_day} session(s) of {rec.cards_per_session} cards, "
        f"~{rec.estimated_minutes:g} min each"
    )


@app.command()
def serve(
    host: Annotated[str | None, typer.Option(help="Host to bind the server to.")] = None,
    port: Annotated[int | None, typer.Option(help="Port to bind the server to.")] = None,
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    config = _resolve_with_overrides(host=host, port=port)
    uvicorn.run("cadence.server:app", host=config.host, port=config.port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
