"""kioku CLI: answer cards, complete sessions, inspect the review queue."""

import asyncio
import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated

import typer
import yaml
from pydantic import ValidationError

from kioku.application.config import resolve_config
from kioku.application.review_queue import summarize_levels
from kioku.application.scheduler.engine import level_name
from kioku.application.scheduler.intervals import interval_ms, max_level
from kioku.application.session.service import ProgressNotSavedError
from kioku.domain.constants import DAY_MS, DEFAULT_SESSION_LIMIT, HOUR_MS, MINUTE_MS
from kioku.domain.progress.models import ProgressRecord, SchedulingPolicy, Skill
from kioku.interface.schemas import SessionResultsFile

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="kioku: spaced-repetition review scheduler.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage kioku configuration.")
app.add_typer(config_app, name="config")

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(levelname)s:%(name)s:%(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _resolve(ctx: typer.Context, **overrides):
    config = resolve_config({**overrides, "verbose": (ctx.obj or {}).get("verbose")})
    _apply_verbosity(config.verbose)
    return config


def _apply_verbosity(verbose: int) -> None:
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.getLogger().setLevel(level)


def _format_ts(ms: int) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat(timespec="seconds")


def _humanize_ms(ms: int) -> str:
    for unit, size in (("d", DAY_MS), ("h", HOUR_MS), ("m", MINUTE_MS)):
        if ms >= size and ms % size == 0:
            return f"{ms // size}{unit}"
    return f"{ms / MINUTE_MS:.1f}m"


def _record_to_dict(record: ProgressRecord) -> dict:
    d = asdict(record)
    d["level_name"] = level_name(record.srs_level)
    return d


def _print_record(record: ProgressRecord, json_output: bool) -> None:
    if json_output:
        typer.echo(json.dumps(_record_to_dict(record), indent=2))
        return
    typer.echo(f"{record.item_id}  level {record.srs_level} ({level_name(record.srs_level)})")
    typer.echo(f"  correct/incorrect: {record.correct_count}/{record.incorrect_count}")
    typer.echo(f"  next review: {_format_ts(record.next_review_date)}")
    stats = record.stats
    typer.echo(
        f"  accuracy: meaning {stats.meaning_accuracy:.2f}"
        f"  reading {stats.reading_accuracy:.2f}"
        f"  writing {stats.writing_accuracy:.2f}"
    )


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
    """Global settings for kioku."""
    ctx.ensure_object(dict)
    # Unset unless -v was given, so KIOKU_VERBOSE and the config file apply.
    ctx.obj["verbose"] = 1 + verbose if verbose else None


# ---------------------------------------------------------------------------
# Root commands
# ---------------------------------------------------------------------------


@app.command()
def answer(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Kanji or vocabulary item ID.")],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ] = True,
    skill: Annotated[Skill, typer.Option(help="Skill being tested.")] = Skill.MEANING,
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    policy: Annotated[
        SchedulingPolicy | None, typer.Option(help="Scheduling policy. Defaults to config.")
    ] = None,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Record one answer and reschedule the item immediately."""
    from kioku.application.factory import get_study_service

    config = _resolve(
        ctx, user_id=user, policy=policy.value if policy else None, db_path=db_path
    )
    service = get_study_service(config)

    try:
        record = asyncio.run(service.answer_card(config.user_id, item_id, correct, skill))
    except ProgressNotSavedError as e:
        typer.secho(f"Progress not saved: {e}", fg="red")
        raise typer.Exit(1)

    _print_record(record, json_output)


@app.command()
def complete(
    ctx: typer.Context,
    results_file: Annotated[
        Path, typer.Argument(help="YAML or JSON file with the session results.")
    ],
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    dry_run: Annotated[
        bool, typer.Option("--dry-run", help="Preview against stored progress without writing.")
    ] = False,
):
    """Complete a study session and reschedule every answered item."""
    from kioku.application.factory import get_study_service

    try:
        raw = yaml.safe_load(results_file.read_text(encoding="utf-8"))
        payload = SessionResultsFile.model_validate(raw or {})
    except (OSError, yaml.YAMLError, ValidationError) as e:
        typer.secho(f"Could not read session results: {e}", fg="red")
        raise typer.Exit(1)

    config = _resolve(ctx, user_id=user, db_path=db_path)
    service = get_study_service(config, dry_run=dry_run)

    try:
        summary = asyncio.run(
            service.complete_session(
                config.user_id,
                payload.collection_id,
                payload.answer_results(),
                payload.expected_items,
                payload.start_time,
                payload.end_time,
            )
        )
    except ProgressNotSavedError as e:
        typer.secho(f"Progress not saved: {e}", fg="red")
        raise typer.Exit(1)

    if not summary.saved:
        typer.secho(summary.reason or "Session not saved.", fg="yellow")
        raise typer.Exit(2)

    session = summary.session
    if dry_run:
        typer.secho(
            f"Dry run, nothing saved: {session.correct_count}/{session.reviewed_count} correct.",
            fg="yellow",
        )
    else:
        typer.secho(
            f"Saved {session.id}: {session.correct_count}/{session.reviewed_count} correct.",
            fg="green",
        )
    for record in summary.updated:
        typer.echo(
            f"  {record.item_id}: level {record.srs_level} "
            f"({level_name(record.srs_level)}), next {_format_ts(record.next_review_date)}"
        )


@app.command()
def due(
    ctx: typer.Context,
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    limit: Annotated[int | None, typer.Option(help="Maximum queue size.")] = None,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List items due for review, oldest first."""
    from kioku.application.factory import get_study_service

    config = _resolve(ctx, user_id=user, due_limit=limit, db_path=db_path)
    service = get_study_service(config)
    items = asyncio.run(service.due_items(config.user_id, limit=config.due_limit))

    if json_output:
        typer.echo(
            json.dumps(
                [
                    {
                        "item_id": i.item_id,
                        "due_date": i.due_date,
                        "srs_level": i.srs_level,
                        "review_type": i.review_type.value,
                    }
                    for i in items
                ],
                indent=2,
            )
        )
        return

    if not items:
        typer.secho("Nothing due.", fg="green")
        return

    typer.echo(f"Due: {len(items)}")
    by_level = summarize_levels(items)
    typer.echo("  " + ", ".join(f"{name} {count}" for name, count in by_level.items()))
    for i in items:
        typer.echo(f"  {i.item_id}  {level_name(i.srs_level)}  since {_format_ts(i.due_date)}")


@app.command()
def show(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item ID.")],
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show the stored progress of one item."""
    from kioku.application.factory import get_study_service

    config = _resolve(ctx, user_id=user, db_path=db_path)
    service = get_study_service(config)
    record = asyncio.run(service.get_progress(config.user_id, item_id))

    if record is None:
        typer.secho(f"No progress for {item_id}.", fg="yellow")
        raise typer.Exit(1)

    _print_record(record, json_output)


@app.command()
def sessions(
    ctx: typer.Context,
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    limit: Annotated[
        int, typer.Option(min=1, help="Maximum number of sessions.")
    ] = DEFAULT_SESSION_LIMIT,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """List completed study sessions, newest first."""
    from kioku.application.factory import get_study_service

    config = _resolve(ctx, user_id=user, db_path=db_path)
    service = get_study_service(config)
    history = asyncio.run(service.session_history(config.user_id, limit=limit))

    if json_output:
        typer.echo(json.dumps([asdict(s) for s in history], indent=2))
        return

    if not history:
        typer.secho("No sessions yet.", fg="yellow")
        return

    for s in history:
        typer.echo(
            f"{_format_ts(s.end_time)}  {s.collection_id}  "
            f"{s.correct_count}/{s.reviewed_count} correct  {s.study_time_seconds}s  {s.id}"
        )


@app.command()
def stats(
    ctx: typer.Context,
    user: Annotated[str | None, typer.Option(help="User ID. Defaults to config.")] = None,
    db_path: Annotated[Path | None, typer.Option(help="Progress database path.")] = None,
    json_output: Annotated[bool, typer.Option("--json", help="Output as JSON.")] = False,
):
    """Show aggregate study statistics."""
    from kioku.application.factory import get_study_service

    config = _resolve(ctx, user_id=user, db_path=db_path)
    service = get_study_service(config)
    user_stats = asyncio.run(service.user_stats(config.user_id))

    if json_output:
        typer.echo(json.dumps(asdict(user_stats), indent=2))
        return

    typer.echo(f"User: {user_stats.user_id}")
    typer.echo(f"  streak: {user_stats.study_streak}")
    typer.echo(f"  total reviews: {user_stats.total_reviews}")
    typer.echo(f"  study time: {user_stats.total_study_time}s")
    typer.echo(f"  last study date: {user_stats.last_study_date or '-'}")


@app.command()
def intervals(
    policy: Annotated[
        SchedulingPolicy, typer.Option(help="Scheduling policy.")
    ] = SchedulingPolicy.FINE,
):
    """Print the interval table of a policy."""
    for level in range(1, max_level(policy) + 1):
        typer.echo(f"{level:>2}  {level_name(level):<15} {_humanize_ms(interval_ms(level, policy))}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show():
    """Display final resolved configuration."""
    config = resolve_config()
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))
