"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of workout data.
"""

from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from ..core.metrics import (
    FrequencyPoint,
    ProgressPoint,
    ReportSummary,
    TimeRange,
    VolumePoint,
    WeekToDate,
    workout_volume,
)
from ..core.models import PersonalRecord, UserLevel, WorkoutLog, format_weight
from ..core.programs.base import ProgramTemplate
from ..core.session import CompletionResult

console = Console()

BAR_WIDTH = 30


def format_duration(seconds: float | None) -> str:
    """Render seconds as m:ss or h:mm:ss ("-" when unknown)."""
    if seconds is None:
        return "-"
    total = int(seconds)
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_volume(volume: float) -> str:
    return f"{volume:,.0f}"


def _bar(value: float, maximum: float) -> str:
    if maximum <= 0:
        return ""
    return "█" * max(0, round(BAR_WIDTH * value / maximum))


def print_workout(draft: WorkoutLog, elapsed_seconds: float, new_prs: set[str] | frozenset[str] = frozenset()) -> None:
    """
    Show the active workout: one table per exercise.

    Set and exercise numbers are 1-based, matching the CLI arguments.
    """
    title = draft.day_name
    if draft.program_name:
        title = f"{draft.program_name}: {draft.day_name}"
    console.print(f"[bold cyan]{title}[/bold cyan]  [dim]elapsed {format_duration(elapsed_seconds)}[/dim]")

    if not draft.exercises:
        console.print("[dim]No exercises yet. Use 'add-exercise' to add one.[/dim]")
        return

    for i, exercise in enumerate(draft.exercises, 1):
        marker = " [yellow]PR[/yellow]" if exercise.name in new_prs else ""
        table = Table(title=f"{i}. {exercise.name}{marker}", title_justify="left")
        table.add_column("Set", justify="right", style="dim", width=4)
        table.add_column("Target", justify="right")
        table.add_column("Reps", justify="right", style="bold")
        table.add_column("Weight", justify="right", style="bold")
        table.add_column("Last time", style="dim")
        table.add_column("Done", justify="center")

        for s in exercise.completed_sets:
            target = f"{s.target_reps} × {format_weight(s.target_weight)}"
            table.add_row(
                str(s.set_number),
                target,
                str(s.actual_reps),
                format_weight(s.weight),
                s.previous_performance or "-",
                "[green]✓[/green]" if s.is_completed else "",
            )
        console.print(table)


def print_completion(result: CompletionResult) -> None:
    """Summary shown after a workout is saved."""
    log = result.log
    console.print(f"[bold green]Workout complete:[/bold green] {log.day_name}")
    console.print(
        f"  Duration {format_duration(log.duration)}  ·  "
        f"{log.total_sets} sets  ·  volume {format_volume(workout_volume(log))}"
    )
    for name in sorted(result.new_prs):
        exercise = log.find_exercise(name)
        best = exercise.best_set if exercise is not None else None
        detail = f" ({format_weight(best.weight)} × {best.actual_reps})" if best is not None else ""
        console.print(f"  [yellow]New personal record: {name}{detail}[/yellow]")
    console.print(f"  +{result.xp_awarded} XP")
    if result.leveled_up:
        console.print(
            f"[bold magenta]Level up! {result.previous_level} → {result.level.current_level}[/bold magenta]"
        )
    print_level(result.level)


def print_level(level: UserLevel) -> None:
    """Level, progress bar and lifetime XP."""
    filled = int(BAR_WIDTH * level.progress_to_next_level)
    bar = "█" * filled + "░" * (BAR_WIDTH - filled)
    console.print(f"[bold]Level {level.current_level}[/bold]  {bar}  {level.formatted_progress}")
    console.print(f"[dim]Total XP: {level.total_xp}[/dim]")


def print_records(records: Sequence[PersonalRecord]) -> None:
    table = Table(title="Personal Records")
    table.add_column("Exercise", style="cyan")
    table.add_column("Record", justify="right", style="bold")
    table.add_column("Date")
    for record in sorted(records, key=lambda r: r.exercise_name.lower()):
        table.add_row(record.exercise_name, record.formatted_record, record.achieved_at.strftime("%Y-%m-%d"))
    console.print(table)


def print_programs(programs: Sequence[ProgramTemplate]) -> None:
    for program in programs:
        console.print(f"[bold cyan]{program.program_id}[/bold cyan]  {program.name}")
        if program.description:
            console.print(f"  [dim]{program.description}[/dim]")
        for i, day in enumerate(program.days, 1):
            exercises = ", ".join(f"{t.name} {t.formatted_target}" for t in day.exercises)
            console.print(f"  {i}. [bold]{day.name}[/bold]: {exercises}")
        console.print()


def format_history_table(logs: Sequence[WorkoutLog]) -> Table:
    """
    Create a Rich table of completed workouts.

    Args:
        logs: Logs to display, in display order

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Workout", style="magenta")
    table.add_column("Exercises", justify="right")
    table.add_column("Sets", justify="right")
    table.add_column("Volume", justify="right", style="bold")
    table.add_column("Duration", justify="right")
    table.add_column("PRs")

    for i, log in enumerate(logs, 1):
        prs = sorted({e.name for e in log.exercises if any(s.is_pr for s in e.completed_sets)})
        table.add_row(
            str(i),
            log.started_at.strftime("%Y-%m-%d %H:%M"),
            log.day_name,
            str(len(log.exercises)),
            str(log.total_sets),
            format_volume(workout_volume(log)),
            format_duration(log.duration),
            ", ".join(prs) or "-",
        )
    return table


def print_history(logs: Sequence[WorkoutLog]) -> None:
    if not logs:
        print_info("No workouts logged yet.")
        return
    console.print(format_history_table(logs))


def print_report(
    time_range: TimeRange,
    summary: ReportSummary,
    weekly: Sequence[VolumePoint],
    frequency: Sequence[FrequencyPoint],
    this_week: WeekToDate | None = None,
    recent: Sequence[PersonalRecord] = (),
) -> None:
    """Summary numbers plus weekly-volume and daily-frequency bar charts."""
    console.print(f"[bold cyan]Report: {time_range.value.replace('_', ' ')}[/bold cyan]")
    console.print(
        f"  Workouts {summary.total_workouts}  ·  volume {format_volume(summary.total_volume)}  ·  "
        f"avg duration {format_duration(summary.average_duration)}"
    )
    if this_week is not None:
        console.print(
            f"  This week: {this_week.workouts} workouts  ·  volume {format_volume(this_week.volume)}"
        )

    if weekly:
        console.print("\n[bold]Weekly volume[/bold]")
        peak = max(p.volume for p in weekly)
        for point in weekly:
            console.print(f"  {point.week_start:%Y-%m-%d}  {_bar(point.volume, peak):<{BAR_WIDTH}}  {format_volume(point.volume)}")

    console.print("\n[bold]Last 7 days[/bold]")
    for point in frequency:
        console.print(f"  {point.day:%a %d}  {'●' * point.count or '·'}")

    if recent:
        console.print("\n[bold]Recent PRs[/bold]")
        for record in recent:
            console.print(f"  {record.achieved_at:%Y-%m-%d}  {record.exercise_name}  {record.formatted_record}")


def print_progress(exercise_name: str, points: Sequence[ProgressPoint]) -> None:
    if not points:
        print_info(f"No weighted sets logged for {exercise_name}.")
        return
    console.print(f"\n[bold]{exercise_name} progress[/bold]")
    peak = max(p.weight for p in points)
    for point in points:
        console.print(
            f"  {point.day:%Y-%m-%d}  {_bar(point.weight, peak):<{BAR_WIDTH}}  "
            f"{format_weight(point.weight)} × {point.reps}"
        )


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")


def confirm_action(message: str) -> bool:
    """
    Prompt user for confirmation.

    Args:
        message: Confirmation message

    Returns:
        True if confirmed, False otherwise
    """
    response = console.input(f"{message} [y/N]: ")
    return response.lower() in ("y", "yes")
