"""Revue CLI — grading, scheduling, due selection, configuration, and the API server."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated

import typer
from pydantic import BaseModel, TypeAdapter, ValidationError, field_validator

from revue.application.config import resolve_config
from revue.application.srs.scheduler import as_utc
from revue.domain.constants import DEFAULT_EASINESS
from revue.domain.srs.models import CardScheduleState

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="revue: spaced-repetition scheduling for flashcards.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

config_app = typer.Typer(help="Manage revue configuration.")
app.add_typer(config_app, name="config")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_now(value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise typer.BadParameter(f"Not an ISO 8601 timestamp: {value!r}", param_hint="--now") from e
    # Naive timestamps are taken as UTC
    return as_utc(parsed)


def _state_to_dict(state: CardScheduleState) -> dict:
    d = asdict(state)
    d["next_review"] = state.next_review.isoformat() if state.next_review else None
    return d


def _echo_state(state: CardScheduleState, quality: int | None, json_output: bool):
    if json_output:
        payload = _state_to_dict(state)
        if quality is not None:
            payload = {"quality": quality, "state": payload}
        typer.echo(json.dumps(payload, indent=2))
        return

    if quality is not None:
        typer.echo(f"Quality: {quality}")
    typer.echo(f"Easiness: {state.easiness_factor:.2f}")
    typer.echo(f"Interval: {state.interval} day(s)")
    typer.echo(f"Repetitions: {state.repetitions}")
    typer.echo(f"Next review: {state.next_review.isoformat() if state.next_review else '-'}")


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for revue."""
    config = resolve_config()
    logging.getLogger("revue").setLevel(_log_level(config.verbose + verbose))
    _attach_file_log(config.log_dir)


def _log_level(verbosity: int) -> int:
    """0 or less is WARNING, 1 is INFO, 2 and up is DEBUG."""
    if verbosity <= 0:
        return logging.WARNING
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def _attach_file_log(log_dir: Path):
    """Mirror revue logs to a rotating file under log_dir."""
    from logging.handlers import RotatingFileHandler

    log_file = (log_dir / "revue.log").resolve()
    pkg_logger = logging.getLogger("revue")
    for h in list(pkg_logger.handlers):
        if isinstance(h, RotatingFileHandler):
            if h.baseFilename == str(log_file):
                return
            # log_dir changed since the handler was attached
            pkg_logger.removeHandler(h)
            h.close()

    log_dir.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        log_file, maxBytes=5 * 1024 * 1024, backupCount=2, encoding="utf-8"
    )
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    pkg_logger.addHandler(handler)


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def grade(
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ],
    latency_ms: Annotated[
        int, typer.Option("--latency-ms", min=0, help="Time taken to answer, in milliseconds.")
    ],
):
    """Turn an answer into a 0-5 recall grade."""
    from revue.application.srs.scheduler import estimate_quality

    config = resolve_config()
    quality = estimate_quality(
        correct,
        latency_ms,
        fast_ms=config.fast_answer_ms,
        slow_ms=config.slow_answer_ms,
    )
    typer.echo(str(quality))


@app.command()
def schedule(
    quality: Annotated[int, typer.Argument(min=0, max=5, help="Recall grade, 0-5.")],
    easiness: Annotated[
        float | None,
        typer.Option(min=1.3, help="Current easiness factor. Defaults to config."),
    ] = None,
    interval: Annotated[int, typer.Option(min=0, help="Current interval in days.")] = 0,
    repetitions: Annotated[
        int, typer.Option(min=0, help="Consecutive passing reviews so far.")
    ] = 0,
    now: Annotated[
        str | None, typer.Option(help="Reference moment (ISO 8601). Defaults to now.")
    ] = None,
    max_interval: Annotated[
        int | None, typer.Option(min=1, help="Cap on the resulting interval in days.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """[bold green]Schedule[/bold green] a card's next review from a recall grade."""
    from revue.application.srs.scheduler import schedule as schedule_card

    config = resolve_config({"max_interval_days": max_interval})
    state = schedule_card(
        quality,
        easiness if easiness is not None else config.default_easiness,
        interval,
        repetitions,
        now=_parse_now(now),
        max_interval=config.max_interval_days,
    )
    _echo_state(state, None, json_output)


@app.command()
def review(
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ],
    latency_ms: Annotated[
        int, typer.Option("--latency-ms", min=0, help="Time taken to answer, in milliseconds.")
    ],
    easiness: Annotated[
        float | None,
        typer.Option(min=1.3, help="Current easiness factor. Defaults to config."),
    ] = None,
    interval: Annotated[int, typer.Option(min=0, help="Current interval in days.")] = 0,
    repetitions: Annotated[
        int, typer.Option(min=0, help="Consecutive passing reviews so far.")
    ] = 0,
    now: Annotated[
        str | None, typer.Option(help="Reference moment (ISO 8601). Defaults to now.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Grade an answer and schedule the card in one step."""
    from revue.application.srs.scheduler import review as review_card
    from revue.domain.srs.models import ReviewOutcome

    config = resolve_config()
    state = CardScheduleState(
        easiness_factor=easiness if easiness is not None else config.default_easiness,
        interval=interval,
        repetitions=repetitions,
    )
    quality, next_state = review_card(
        state,
        ReviewOutcome(was_correct=correct, response_latency_ms=latency_ms),
        now=_parse_now(now),
        max_interval=config.max_interval_days,
        fast_ms=config.fast_answer_ms,
        slow_ms=config.slow_answer_ms,
    )
    _echo_state(next_state, quality, json_output)


class CardRow(BaseModel):
    """One card in a due-selection input file."""

    id: str
    easiness_factor: float = DEFAULT_EASINESS
    interval: int = 0
    repetitions: int = 0
    next_review: datetime | None = None

    @field_validator("next_review")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        return as_utc(v) if v is not None else None

    def to_state(self) -> CardScheduleState:
        return CardScheduleState(
            easiness_factor=self.easiness_factor,
            interval=self.interval,
            repetitions=self.repetitions,
            next_review=self.next_review,
        )


@app.command()
def due(
    path: Annotated[
        Path,
        typer.Argument(
            exists=True,
            dir_okay=False,
            help="JSON file holding a list of cards (id, easiness_factor, interval, "
            "repetitions, next_review).",
        ),
    ],
    now: Annotated[
        str | None, typer.Option(help="Reference moment (ISO 8601). Defaults to now.")
    ] = None,
    limit: Annotated[
        int | None, typer.Option(min=1, help="Maximum cards to list. Defaults to config.")
    ] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List the cards that are due, most overdue first."""
    from revue.application.srs.due import select_due_cards

    config = resolve_config({"due_limit": limit})
    try:
        rows = TypeAdapter(list[CardRow]).validate_json(path.read_bytes())
    except ValidationError as e:
        typer.secho(f"Invalid card file {path}: {e}", fg="red", err=True)
        raise typer.Exit(1) from e

    selected = select_due_cards(
        ((row.id, row.to_state()) for row in rows),
        now=_parse_now(now),
        limit=config.due_limit,
    )
    logger.debug(f"{len(selected)}/{len(rows)} cards due")

    if json_output:
        typer.echo(
            json.dumps(
                [{"id": cid, **_state_to_dict(state)} for cid, state in selected],
                indent=2,
            )
        )
        return

    if not selected:
        typer.secho("No cards due.", fg="yellow")
        return
    for cid, state in selected:
        when = state.next_review.isoformat() if state.next_review else "new"
        typer.echo(f"{cid}  {when}")


@app.command()
def serve(
    port: Annotated[int, typer.Option(help="Port to bind the server to.")] = 8787,
    host: Annotated[str, typer.Option(help="Host to bind the server to.")] = "127.0.0.1",
    reload: Annotated[bool, typer.Option(help="Enable auto-reload.")] = False,
):
    """Run the HTTP API."""
    import uvicorn

    typer.secho(f"Starting revue server on {host}:{port}", fg="green")
    uvicorn.run("revue.server:app", host=host, port=port, reload=reload)


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


def main():
    app()
