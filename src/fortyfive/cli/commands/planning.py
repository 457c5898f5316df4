"""Planning commands: generate, program, next, swap, deload, exercises."""

from typing import Annotated, Optional

import typer

from ...core.equipment import available_exercises
from ...core.errors import FortyFiveError
from ...core.models import PlannedWorkout, WeeklyProgram
from .. import views
from ..app import app, get_manager, get_stores, require_profile

WorkoutOption = Annotated[
    int,
    typer.Option("--workout", "-w", help="Workout position in the week (1-4)"),
]


def _select_program(stores, user_id: str, week: int | None) -> WeeklyProgram:
    """Active program, or the program of ``week``; exits if there is none."""
    try:
        if week is not None:
            program = stores.workouts.get_program_by_week(user_id, week)
        else:
            program = stores.workouts.get_current_week_program(user_id)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    if program is None:
        which = f"week {week}" if week is not None else "any week"
        views.print_error(f"No program for {which}. Run 'fortyfive generate' first.")
        raise typer.Exit(1)
    return program


def _workout_at(program: WeeklyProgram, position: int) -> PlannedWorkout:
    if not 1 <= position <= len(program.workouts):
        views.print_error(f"Workout must be between 1 and {len(program.workouts)}")
        raise typer.Exit(1)
    return program.workouts[position - 1]


@app.command()
def generate(
    week: Annotated[
        Optional[int],
        typer.Option("--week", help="Week number (default: current week)"),
    ] = None,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Regenerate even if the week exists"),
    ] = False,
    next_week: Annotated[
        bool,
        typer.Option("--next", help="Generate the week after the latest program"),
    ] = False,
) -> None:
    """
    Generate the weekly program: A, B, A, B + legs.

    Weights progress from last week's recorded RPE and are reduced when the
    stored recovery score is low.
    """
    stores = get_stores()
    profile = require_profile(stores)
    manager = get_manager(stores)

    if week is not None and week < 1:
        views.print_error("Week must be >= 1")
        raise typer.Exit(1)

    try:
        if next_week:
            program = manager.generate_next_week(profile.id)
        else:
            program = manager.generate_program(profile.id, week, force_regenerate=force)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Week {program.week_number} program ready.")
    views.print_program(program)


@app.command()
def program(
    week: Annotated[
        Optional[int],
        typer.Option("--week", help="Week to show (default: active program)"),
    ] = None,
) -> None:
    """Show the active weekly program."""
    stores = get_stores()
    profile = require_profile(stores)
    views.print_program(_select_program(stores, profile.id, week))


@app.command("next")
def next_cmd() -> None:
    """Show the next workout to do this week."""
    stores = get_stores()
    profile = require_profile(stores)
    current = _select_program(stores, profile.id, None)

    if current.is_completed:
        views.print_success(f"Week {current.week_number} is complete!")
        views.console.print("Run [bold]fortyfive generate --next[/bold] for next week.")
        return

    workout = current.next_workout()
    if workout is None:
        views.print_warning("This program has no workouts.")
        return
    position = current.workouts.index(workout) + 1
    views.console.print(views.format_workout_table(workout, position))
    views.console.print(f"\nStart it with [bold]fortyfive workout -w {position}[/bold]")


@app.command()
def swap(
    workout: WorkoutOption,
    exercise: Annotated[
        int,
        typer.Option("--exercise", "-x", help="Exercise position in the workout (1-based)"),
    ],
    to: Annotated[
        Optional[str],
        typer.Option("--to", "-t", help="Replacement exercise id (omit to list candidates)"),
    ] = None,
) -> None:
    """
    Replace an exercise in the active program, keeping its sets, reps and weight.
    """
    stores = get_stores()
    profile = require_profile(stores)
    manager = get_manager(stores)
    current = _select_program(stores, profile.id, None)
    planned_workout = _workout_at(current, workout)

    if not 1 <= exercise <= len(planned_workout.exercises):
        views.print_error(f"Exercise must be between 1 and {len(planned_workout.exercises)}")
        raise typer.Exit(1)
    original = planned_workout.exercises[exercise - 1].exercise

    try:
        candidates = manager.swap_candidates(original)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if to is None:
        if not candidates:
            views.print_warning(f"No alternatives to {original.name} with your equipment.")
            return
        views.console.print(
            views.format_exercise_table(candidates, title=f"Alternatives to {original.name}")
        )
        views.console.print("\nSwap with [bold]--to <id>[/bold]")
        return

    replacement = next((c for c in candidates if c.id == to), None)
    if replacement is None:
        views.print_error(f"'{to}' is not an available {original.muscle_group} exercise")
        raise typer.Exit(1)

    try:
        manager.replace_exercise_in_workout(current, planned_workout.id, exercise - 1, replacement)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_success(f"Replaced {original.name} with {replacement.name}.")


@app.command()
def deload() -> None:
    """
    Apply a deload to the active program if this week was too hard.

    A deload cuts every weight by 10% and removes one set per exercise. It
    is recommended when at least two sessions this week averaged above RPE 8.5.
    """
    stores = get_stores()
    profile = require_profile(stores)
    manager = get_manager(stores)

    try:
        adjusted, applied = manager.apply_deload(profile.id)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if adjusted is None:
        views.print_error("No program found. Run 'fortyfive generate' first.")
        raise typer.Exit(1)
    if not applied:
        views.print_info("No deload needed.")
        return

    views.print_success(adjusted.progression_notes)
    views.print_program(adjusted)


@app.command()
def exercises(
    query: Annotated[
        Optional[str],
        typer.Argument(help="Search text (name or muscle)"),
    ] = None,
    muscle: Annotated[
        Optional[str],
        typer.Option("--muscle", "-m", help="Only this muscle group"),
    ] = None,
    available: Annotated[
        bool,
        typer.Option("--available", help="Only exercises your equipment allows"),
    ] = False,
) -> None:
    """Browse the exercise catalog."""
    stores = get_stores()
    found = stores.catalog.search_exercises(query or "")
    if muscle is not None:
        found = [e for e in found if e.muscle_group.lower() == muscle.lower()]
    if available:
        try:
            found = available_exercises(found, stores.profiles.load_equipment())
        except FortyFiveError as e:
            views.print_error(str(e))
            raise typer.Exit(1)

    if not found:
        views.print_warning("No exercises match.")
        return
    views.console.print(views.format_exercise_table(found))
