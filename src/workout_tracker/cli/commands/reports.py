"""Report commands: programs, history, delete, report."""

import asyncio
from typing import Annotated, Optional

import typer

from ...core.config import RECENT_LOG_COUNT
from ...core.metrics import (
    TimeRange,
    exercise_progress,
    logs_in_range,
    recent_records,
    summary_stats,
    weekly_volume,
    week_to_date,
    workout_frequency,
)
from ...core.models import WorkoutLog, utc_now
from ...core.programs import get_registry
from ...io.document_store import StorageError
from .. import views
from ..app import DataDirOption, UserOption, app, get_services


@app.command("programs")
def programs() -> None:
    """List available workout programs and their days."""
    registry = get_registry()
    if not registry:
        views.print_info("No programs found.")
        return
    views.print_programs([registry[k] for k in sorted(registry)])


@app.command("history")
def history(
    limit: Annotated[
        int,
        typer.Option("--limit", "-n", min=1, help="Number of workouts to show"),
    ] = RECENT_LOG_COUNT,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Show recent completed workouts, newest first."""
    services = get_services(data_dir, user)
    try:
        logs = asyncio.run(services.store.list_workout_logs(services.user_id))
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_history(logs[:limit])


def _resolve_log(logs: list[WorkoutLog], target: str) -> WorkoutLog:
    """Find a log by its history number (1 = newest) or by id."""
    if target.isdigit():
        index = int(target)
        if 1 <= index <= len(logs):
            return logs[index - 1]
        raise KeyError(f"No workout #{index} in history")
    for log in logs:
        if log.id == target:
            return log
    raise KeyError(f"Workout log {target} not found")


@app.command("delete")
def delete(
    target: Annotated[str, typer.Argument(help="History number (1 = newest) or log id")],
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Delete a logged workout. Personal records and XP are kept."""
    services = get_services(data_dir, user)
    try:
        logs = asyncio.run(services.store.list_workout_logs(services.user_id))
        log = _resolve_log(logs, target)
        if not force and not views.confirm_action(
            f"Delete '{log.day_name}' from {log.started_at:%Y-%m-%d}?"
        ):
            views.print_info("Cancelled.")
            raise typer.Exit(0)
        asyncio.run(services.store.delete_workout_log(log.id))
    except KeyError as e:
        views.print_error(e.args[0])
        raise typer.Exit(1)
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    views.print_success(f"Deleted '{log.day_name}' ({log.id}).")


@app.command("report")
def report(
    time_range: Annotated[
        TimeRange,
        typer.Option("--range", "-r", help="Report window"),
    ] = TimeRange.MONTH,
    exercise: Annotated[
        Optional[str],
        typer.Option("--exercise", "-e", help="Also chart best sets for this exercise"),
    ] = None,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Volume, frequency and per-exercise progress over a time window."""
    services = get_services(data_dir, user)
    try:
        logs = asyncio.run(services.store.list_workout_logs(services.user_id))
        records = asyncio.run(services.store.list_personal_records(services.user_id))
    except StorageError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    now = utc_now()
    in_range = logs_in_range(logs, time_range, now)
    views.print_report(
        time_range,
        summary_stats(in_range),
        weekly_volume(in_range),
        workout_frequency(logs, now.date()),
        this_week=week_to_date(logs, now.date()),
        recent=recent_records(records),
    )
    if exercise is not None:
        views.print_progress(exercise, exercise_progress(in_range, exercise))
