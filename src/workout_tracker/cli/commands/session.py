"""Workout commands: start, status, exercise/set editing, complete, discard."""

import asyncio
from typing import Annotated, Optional

import typer

from ...core.programs import ExerciseTemplate, ProgramTemplate, WorkoutDayTemplate, find_day, get_program
from ...core.session import CompletionResult, SessionController
from .. import views
from ..app import DataDirOption, Services, UserOption, app, get_services

ExerciseArg = Annotated[int, typer.Argument(help="Exercise number (see 'status')")]
SetArg = Annotated[int, typer.Argument(help="Set number within the exercise")]


def _require_active(services: Services) -> SessionController:
    controller = services.controller
    if controller.draft is None:
        views.print_error("No workout in progress. Use 'start' to begin one.")
        raise typer.Exit(1)
    return controller


def _show(controller: SessionController) -> None:
    if controller.draft is not None:
        views.print_workout(controller.draft, controller.refresh_elapsed(), controller.new_prs)


async def _start_and_prepare(
    controller: SessionController,
    day: WorkoutDayTemplate | None,
    program: ProgramTemplate | None,
) -> None:
    controller.start(day, program)
    await controller.wait_for_background()


async def _add_and_prepare(controller: SessionController, template: ExerciseTemplate) -> bool:
    added = controller.add_exercise(template)
    await controller.wait_for_background()
    return added


@app.command("start")
def start(
    program_id: Annotated[
        Optional[str],
        typer.Option("--program", "-p", help="Program id (see 'programs'); omit for a blank workout"),
    ] = None,
    day: Annotated[
        Optional[str],
        typer.Option("--day", help="Day number or name within the program (default: first day)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Replace a workout that is already in progress"),
    ] = False,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Start a workout, from a program day or blank.

    Sets are pre-filled with the day's targets, and each exercise shows
    what you lifted the last time you did it.
    """
    if day is not None and program_id is None:
        views.print_error("--day requires --program")
        raise typer.Exit(1)

    program = None
    template_day = None
    if program_id is not None:
        try:
            program = get_program(program_id)
            template_day = find_day(program, day or "1")
        except ValueError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    services = get_services(data_dir, user)
    controller = services.controller
    if controller.draft is not None and not force:
        views.print_error(
            f"A workout is already in progress ({controller.draft.day_name}). "
            "Use 'complete', 'discard', or start --force."
        )
        raise typer.Exit(1)

    asyncio.run(_start_and_prepare(controller, template_day, program))
    views.print_success("Workout started.")
    _show(controller)


@app.command("status")
def status(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Show the workout in progress."""
    services = get_services(data_dir, user)
    if services.controller.draft is None:
        views.print_info("No workout in progress.")
        return
    _show(services.controller)


@app.command("add-exercise")
def add_exercise(
    name: Annotated[str, typer.Argument(help="Exercise name, e.g. 'Bench Press'")],
    sets: Annotated[int, typer.Option("--sets", "-s", min=0, help="Number of sets")] = 3,
    reps: Annotated[int, typer.Option("--reps", "-r", min=0, help="Target reps per set")] = 10,
    weight: Annotated[float, typer.Option("--weight", "-w", min=0.0, help="Target weight")] = 0.0,
    rest: Annotated[int, typer.Option("--rest", help="Rest between sets in seconds")] = 60,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Add an exercise to the workout in progress."""
    controller = _require_active(get_services(data_dir, user))
    try:
        template = ExerciseTemplate(name=name, sets=sets, reps=reps, weight=weight, rest_seconds=rest)
    except ValueError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if not asyncio.run(_add_and_prepare(controller, template)):
        views.print_error("Could not add exercise.")
        raise typer.Exit(1)
    views.print_success(f"Added {name}.")
    _show(controller)


@app.command("remove-exercise")
def remove_exercise(
    exercise: ExerciseArg,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Remove an exercise from the workout in progress."""
    controller = _require_active(get_services(data_dir, user))
    if not controller.remove_exercise(exercise - 1):
        views.print_error(f"No exercise #{exercise}.")
        raise typer.Exit(1)
    views.print_success(f"Removed exercise #{exercise}.")
    _show(controller)


@app.command("add-set")
def add_set(
    exercise: ExerciseArg,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Add a set to an exercise, copying the previous set."""
    controller = _require_active(get_services(data_dir, user))
    if not controller.add_set(exercise - 1):
        views.print_error(f"No exercise #{exercise}.")
        raise typer.Exit(1)
    _show(controller)


@app.command("remove-set")
def remove_set(
    exercise: ExerciseArg,
    set_number: SetArg,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Remove a set from an exercise."""
    controller = _require_active(get_services(data_dir, user))
    if not controller.remove_set(exercise - 1, set_number - 1):
        views.print_error(f"No set #{set_number} in exercise #{exercise}.")
        raise typer.Exit(1)
    _show(controller)


@app.command("log-set")
def log_set(
    exercise: ExerciseArg,
    set_number: SetArg,
    reps: Annotated[
        Optional[int],
        typer.Option("--reps", "-r", min=0, help="Reps performed (default: the pre-filled value)"),
    ] = None,
    weight: Annotated[
        Optional[float],
        typer.Option("--weight", "-w", min=0.0, help="Weight used (default: the pre-filled value)"),
    ] = None,
    undo: Annotated[
        bool,
        typer.Option("--undo", help="Mark the set as not done"),
    ] = False,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Record reps and weight for a set and mark it done."""
    controller = _require_active(get_services(data_dir, user))
    draft = controller.draft
    assert draft is not None

    ex_idx, set_idx = exercise - 1, set_number - 1
    if not 0 <= ex_idx < len(draft.exercises) or not 0 <= set_idx < len(draft.exercises[ex_idx].completed_sets):
        views.print_error(f"No set #{set_number} in exercise #{exercise}.")
        raise typer.Exit(1)
    current = draft.exercises[ex_idx].completed_sets[set_idx]

    updated = controller.update_set(
        ex_idx,
        set_idx,
        reps if reps is not None else current.actual_reps,
        weight if weight is not None else current.weight,
        not undo,
    )
    if not updated:
        views.print_error("Could not update set.")
        raise typer.Exit(1)
    _show(controller)


@app.command("complete")
def complete(
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """
    Finish the workout: save it, record PRs and award XP.

    If saving fails the workout is kept, so the command can be re-run.
    """
    controller = _require_active(get_services(data_dir, user))
    try:
        result: CompletionResult | None = asyncio.run(controller.complete())
    except Exception as e:
        views.print_error(f"Could not save workout: {e}")
        views.print_info("Your workout is still in progress; run 'complete' again to retry.")
        raise typer.Exit(1)

    if result is None:
        views.print_error("Workout could not be completed.")
        raise typer.Exit(1)
    views.print_completion(result)


@app.command("discard")
def discard(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Skip confirmation prompt"),
    ] = False,
    data_dir: DataDirOption = None,
    user: UserOption = None,
) -> None:
    """Throw away the workout in progress without saving."""
    controller = _require_active(get_services(data_dir, user))
    assert controller.draft is not None
    if not force and not views.confirm_action(f"Discard '{controller.draft.day_name}'?"):
        views.print_info("Cancelled.")
        raise typer.Exit(0)
    controller.discard()
    views.print_success("Workout discarded.")
