"""Ritmo CLI: study a YAML learner state file from the terminal."""

import json
import logging
import sys
from dataclasses import asdict
from datetime import datetime
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError

from ritmo.application.clock import parse_timestamp
from ritmo.application.config import AppConfig, resolve_config
from ritmo.application.engine import LearnerEngine
from ritmo.application.factory import create_engine, new_learner_state
from ritmo.application.id_service import generate_event_id
from ritmo.domain.errors import RitmoError
from ritmo.domain.events import AchievementUnlocked, EngineEvent, ItemMastered, LevelUp, StreakAtRisk
from ritmo.infrastructure.adapters.yaml_state import (
    StateFileError,
    YamlLearnerStateRepository,
    item_to_dict,
)

# ---------------------------------------------------------------------------
# Root app
# ---------------------------------------------------------------------------

app = typer.Typer(
    help="ritmo: spaced-repetition scheduling and progression for language learners.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

config_app = typer.Typer(help="Manage ritmo configuration.")
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

AtOption = Annotated[
    str | None,
    typer.Option("--at", help="ISO-8601 timestamp to use as 'now' (default: current time)."),
]
JsonOption = Annotated[bool, typer.Option("--json", help="Output as JSON.")]


# ---------------------------------------------------------------------------
# Global callback
# ---------------------------------------------------------------------------


@app.callback()
def main_callback(
    ctx: typer.Context,
    state: Annotated[
        Path | None,
        typer.Option("--state", "-s", help="Learner state file. Defaults to 'state_file' in config."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose", "-v", count=True, help="Increase verbosity. Repeat for more detail."
        ),
    ] = 0,
):
    """Global settings for ritmo."""
    ctx.ensure_object(dict)
    ctx.obj["state_file"] = state
    # Each -v adds to the default level of 1; without -v the config value applies
    ctx.obj["verbose"] = 1 + verbose if verbose else None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _fail(message: str) -> typer.Exit:
    typer.secho(message, fg="red", err=True)
    return typer.Exit(1)


def _config(ctx: typer.Context) -> AppConfig:
    obj = ctx.obj or {}
    try:
        config = resolve_config(
            {"state_file": obj.get("state_file"), "verbose": obj.get("verbose")}
        )
    except ValidationError as e:
        raise _fail(f"Invalid configuration: {e}") from e

    if config.verbose > 1:
        logging.getLogger("ritmo").setLevel(logging.DEBUG)
    return config


def _parse_at(at: str | None) -> datetime | None:
    if at is None:
        return None
    try:
        return parse_timestamp(at)
    except RitmoError as e:
        raise _fail(str(e)) from e


def _echo_event(event: EngineEvent) -> None:
    if isinstance(event, LevelUp):
        typer.secho(f"Level up! You reached level {event.new_level} ({event.title}).", fg="green")
    elif isinstance(event, ItemMastered):
        typer.secho(f"Mastered '{event.item_id}'!", fg="green")
    elif isinstance(event, AchievementUnlocked):
        typer.secho(f"Achievement unlocked: {event.title} (+{event.points} XP)", fg="green")
    elif isinstance(event, StreakAtRisk):
        typer.secho(
            f"Your {event.current_streak}-day streak is at risk. Study today to keep it!",
            fg="yellow",
        )


def _open(
    ctx: typer.Context, at: str | None, quiet: bool = False
) -> tuple[YamlLearnerStateRepository, LearnerEngine]:
    config = _config(ctx)
    repo = YamlLearnerStateRepository(config.state_file)
    if not repo.exists():
        raise _fail(f"No learner state at {config.state_file}. Run 'ritmo init' first.")

    try:
        state = repo.load()
        engine_config = config.to_engine_config()
    except (StateFileError, ValidationError) as e:
        raise _fail(str(e)) from e

    now = _parse_at(at)
    engine = create_engine(
        state,
        engine_config,
        now_fn=(lambda: now) if now is not None else None,
        listeners=[] if quiet else [_echo_event],
    )
    return repo, engine


def _dump(data: Any) -> None:
    typer.echo(json.dumps(data, indent=2, default=str))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def init(
    ctx: typer.Context,
    learner_id: Annotated[
        str | None, typer.Option("--learner-id", help="Learner identifier.")
    ] = None,
    force: Annotated[
        bool, typer.Option("--force", "-f", help="Overwrite an existing state file.")
    ] = False,
):
    """Create an empty learner state file."""
    config = _config(ctx)
    repo = YamlLearnerStateRepository(config.state_file)
    if repo.exists() and not force:
        raise _fail(f"{config.state_file} already exists. Use --force to overwrite.")

    repo.save(new_learner_state(learner_id or config.learner_id))
    typer.secho(f"Created {config.state_file}", fg="green")


@app.command()
def add(
    ctx: typer.Context,
    item_ids: Annotated[list[str], typer.Argument(help="Ids of the items to add.")],
    at: AtOption = None,
):
    """Add items to the study set. They are due immediately."""
    repo, engine = _open(ctx, at)
    added = 0
    for item_id in item_ids:
        if item_id not in engine.state.items:
            engine.add_item(item_id)
            added += 1
    repo.save(engine.state)
    typer.echo(f"Added {added} item(s), {len(item_ids) - added} already present.")


@app.command()
def answer(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item that was answered.")],
    correct: Annotated[
        bool, typer.Option("--correct/--incorrect", help="Whether the answer was right.")
    ],
    confidence: Annotated[
        float | None,
        typer.Option(help="Self-rated confidence, 0.0-1.0.", min=0.0, max=1.0),
    ] = None,
    kind: Annotated[
        str, typer.Option(help="Activity kind: flashcard, quiz_question, review, lesson.")
    ] = "flashcard",
    difficulty: Annotated[
        str, typer.Option(help="Difficulty: beginner, intermediate, advanced.")
    ] = "beginner",
    event_id: Annotated[
        str | None,
        typer.Option(help="Answer-event id. Re-sending the same id is a no-op."),
    ] = None,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """[bold green]Record[/bold green] an answer and reschedule the item."""
    repo, engine = _open(ctx, at, quiet=json_output)
    try:
        result = engine.record_answer(
            item_id,
            correct,
            confidence,
            activity_kind=kind,
            difficulty=difficulty,
            event_id=event_id or generate_event_id(),
        )
    except (RitmoError, ValueError) as e:
        raise _fail(str(e)) from e

    repo.save(engine.state)

    item = result.outcome.item
    if json_output:
        _dump(
            {
                "applied": result.outcome.applied,
                "item": item_to_dict(item),
                "interval_days": result.outcome.interval_days,
                "xp_awarded": result.xp_awarded,
                "progression": asdict(result.progression),
                "events": [
                    {"type": type(e).__name__, **asdict(e)} for e in engine.events.drain()
                ],
            }
        )
        return

    if not result.outcome.applied:
        typer.secho("Answer already recorded; nothing changed.", fg="yellow")
        return

    typer.echo(
        f"{item.id}: {'correct' if correct else 'incorrect'}, "
        f"next review in {result.outcome.interval_days} day(s) "
        f"({item.next_review_at:%Y-%m-%d %H:%M} UTC), level {item.level}"
    )
    typer.echo(f"+{result.xp_awarded} XP (total {result.progression.xp})")


@app.command()
def due(
    ctx: typer.Context,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """List items due for review."""
    _, engine = _open(ctx, at, quiet=True)
    items = engine.due_items()

    if json_output:
        _dump([item_to_dict(i) for i in items])
        return

    if not items:
        typer.secho("Nothing due. All reviews complete!", fg="green")
        return
    for item in items:
        typer.echo(f"  {item.id}  (due {item.next_review_at:%Y-%m-%d %H:%M}, level {item.level})")
    typer.echo(f"{len(items)} item(s) due.")


@app.command()
def schedule(
    ctx: typer.Context,
    days: Annotated[int, typer.Option(help="Days in the calendar view.", min=1)] = 14,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """Show due counts for today, this week and next week."""
    _, engine = _open(ctx, at, quiet=True)
    buckets = engine.schedule()
    calendar = engine.calendar(days=days)

    if json_output:
        _dump(
            {
                **asdict(buckets),
                "calendar": [{"date": d.day.isoformat(), "count": d.count} for d in calendar],
            }
        )
        return

    typer.echo(f"Due today:     {buckets.due_today}")
    typer.echo(f"Due this week: {buckets.due_this_week}")
    typer.echo(f"Due next week: {buckets.due_next_week}")
    typer.echo("")
    for day in calendar:
        typer.echo(f"  {day.day:%a %Y-%m-%d}  {'#' * day.count} {day.count or ''}".rstrip())


@app.command()
def activity(
    ctx: typer.Context,
    at: AtOption = None,
):
    """Record a day of study activity without answering an item."""
    repo, engine = _open(ctx, at)
    try:
        update = engine.record_activity()
    except RitmoError as e:
        raise _fail(str(e)) from e
    repo.save(engine.state)
    typer.echo(f"Streak: {update.state.current_streak} day(s)")


@app.command()
def streak(
    ctx: typer.Context,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """Show the daily streak and whether it is at risk."""
    _, engine = _open(ctx, at, quiet=json_output)
    status = engine.check_streak()
    state = engine.state.streak

    if json_output:
        _dump(
            {
                "status": status.value,
                "current_streak": state.current_streak,
                "longest_streak": state.longest_streak,
                "last_activity_at": state.last_activity_at,
            }
        )
        return

    typer.echo(f"Status:  {status.value}")
    typer.echo(f"Current: {state.current_streak} day(s)")
    typer.echo(f"Longest: {state.longest_streak} day(s)")


@app.command()
def progress(
    ctx: typer.Context,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """Show XP, level, review performance and achievements."""
    _, engine = _open(ctx, at, quiet=True)
    progression = engine.progression()
    performance = engine.performance()
    unlocked = engine.state.achievements

    if json_output:
        _dump(
            {
                **asdict(progression),
                "progress": progression.progress,
                "performance": {**asdict(performance), "efficiency": performance.efficiency},
                "achievements": {aid: ts.isoformat() for aid, ts in unlocked.items()},
            }
        )
        return

    typer.echo(f"Level {progression.level} ({progression.level_title}), {progression.xp} XP")
    if progression.xp_to_next_level is not None:
        typer.echo(
            f"  {progression.progress:.0%} to level {progression.level + 1} "
            f"({progression.xp_to_next_level} XP to go)"
        )
    typer.echo(
        f"Reviews: {performance.total_reviews}, correct: {performance.correct_reviews} "
        f"({performance.efficiency:.1f}%), streak: {performance.streak_days} day(s)"
    )
    typer.echo(f"Achievements: {len(unlocked)}/{len(engine.achievements.catalogue)}")


@app.command()
def session(
    ctx: typer.Context,
    limit: Annotated[int | None, typer.Option(help="Maximum items in the session.", min=1)] = None,
    at: AtOption = None,
    json_output: JsonOption = False,
):
    """Plan a study session, weakest due items first."""
    _, engine = _open(ctx, at, quiet=True)
    queue = engine.session_queue(limit=limit)
    sessions = engine.recommended_sessions()

    if json_output:
        _dump(
            {
                "queue": [i.id for i in queue],
                "recommended": [asdict(s) for s in sessions],
            }
        )
        return

    for s in sessions:
        color = "red" if s.priority == "high" else "yellow"
        typer.secho(f"[{s.priority}] {s.title}: {s.description} (~{s.duration_minutes} min)", fg=color)
    if queue:
        typer.echo("Queue: " + ", ".join(i.id for i in queue))


@app.command()
def reset(
    ctx: typer.Context,
    item_id: Annotated[str, typer.Argument(help="Item to reset.")],
    at: AtOption = None,
):
    """Reset an item to its initial state, clearing mastery."""
    repo, engine = _open(ctx, at)
    try:
        engine.reset_item(item_id)
    except RitmoError as e:
        raise _fail(str(e)) from e
    repo.save(engine.state)
    typer.echo(f"Reset {item_id}")


# ---------------------------------------------------------------------------
# Config subgroup
# ---------------------------------------------------------------------------


@config_app.command("show")
def config_show(ctx: typer.Context):
    """Display final resolved configuration."""
    config = _config(ctx)
    d = {k: str(v) if isinstance(v, Path) else v for k, v in config.model_dump().items()}
    typer.echo(json.dumps(d, indent=2))


def run():
    app()
