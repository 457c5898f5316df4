"""
Rich console output for the CLI.

Every table builder returns a rich Table; the print_* helpers write to
the shared console.
"""

from rich.console import Console
from rich.table import Table

from ..core.metrics import SessionSummary
from ..core.models import Equipment, Exercise, PlannedExercise, PlannedWorkout, WeeklyProgram, WorkoutSession
from ..core.recovery import recovery_status, workout_recommendation
from ..core.session import ActiveSessionController
from ..core.templates import get_weekly_split
from ..core.tempo import format_tempo

console = Console()
err_console = Console(stderr=True)


def _fmt_weight(weight: float) -> str:
    return "BW" if weight == 0 else f"{weight:g} kg"


def _fmt_previous(planned: PlannedExercise) -> str:
    if planned.previous_weight is None:
        return "-"
    rpe = f" @ RPE {planned.previous_rpe:.1f}" if planned.previous_rpe is not None else ""
    return f"{_fmt_weight(planned.previous_weight)}{rpe}"


def format_workout_table(workout: PlannedWorkout, position: int | None = None) -> Table:
    """
    Create a Rich table for one planned workout.

    Args:
        workout: Workout to display
        position: 1-based position in the week, shown in the title

    Returns:
        Rich Table object
    """
    prefix = f"{position}. " if position is not None else ""
    done = " [green](done)[/green]" if workout.is_completed else ""
    table = Table(title=f"{prefix}Workout {workout.workout_type}: {workout.name}{done}")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("Muscle", style="magenta")
    table.add_column("Sets x Reps", justify="center")
    table.add_column("Weight", justify="right", style="bold")
    table.add_column("Rest", justify="right")
    table.add_column("Tempo", justify="center")
    table.add_column("Last week", justify="right", style="dim")

    for i, pe in enumerate(workout.exercises, 1):
        table.add_row(
            str(i),
            pe.exercise.name,
            pe.exercise.muscle_group,
            f"{pe.sets} x {pe.reps}",
            _fmt_weight(pe.weight),
            f"{pe.rest_time}s",
            format_tempo(pe.exercise.tempo),
            _fmt_previous(pe),
        )

    table.caption = f"~{workout.estimated_duration} min"
    return table


def print_program(program: WeeklyProgram) -> None:
    """Print every workout of a week plus its progression note."""
    active = " [green](active)[/green]" if program.is_active else ""
    console.print(f"\n[bold]Week {program.week_number}[/bold]{active}")
    console.print(f"[dim]{program.progression_notes}[/dim]")
    console.print(
        f"Completed {program.completed_count}/{len(program.workouts)} "
        f"({program.completion_percentage():.0f}%)\n"
    )
    split = get_weekly_split()
    for i, workout in enumerate(program.workouts, 1):
        console.print(format_workout_table(workout, i))
        if i <= len(split):
            console.print(f"[dim]Suggested day: {split[i - 1]['day']}[/dim]")
        if workout.required_equipment:
            console.print(f"[dim]Equipment: {', '.join(workout.required_equipment)}[/dim]")
        console.print()


def format_session_table(sessions: list[WorkoutSession]) -> Table:
    """
    Create a Rich table displaying session history.

    Args:
        sessions: Sessions to display, newest first

    Returns:
        Rich Table object
    """
    table = Table(title="Workout History")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Date", style="cyan")
    table.add_column("Week", justify="right")
    table.add_column("Type", style="magenta")
    table.add_column("Sets", justify="right")
    table.add_column("Volume (kg)", justify="right", style="bold")
    table.add_column("Avg RPE", justify="right")
    table.add_column("Minutes", justify="right")
    table.add_column("Status")

    for i, session in enumerate(sessions, 1):
        minutes = session.duration_minutes
        table.add_row(
            str(i),
            session.start_time.strftime("%Y-%m-%d %H:%M"),
            str(session.week_number),
            session.workout_type,
            str(session.total_sets),
            f"{session.total_volume_kg:.0f}",
            f"{session.rpe_average:.1f}" if session.rpe_average is not None else "-",
            str(minutes) if minutes is not None else "-",
            "[green]done[/green]" if session.completed else "[yellow]partial[/yellow]",
        )

    return table


def print_history(sessions: list[WorkoutSession]) -> None:
    if not sessions:
        console.print("[yellow]No sessions recorded yet.[/yellow]")
        return
    console.print(format_session_table(sessions))


def print_session_summary(summary: SessionSummary) -> None:
    """Print the post-workout summary."""
    console.print("\n[bold]Workout complete[/bold]")
    minutes = summary.duration_minutes if summary.duration_minutes is not None else 0
    target = "[green]within 45 min[/green]" if summary.met_time_target else "[yellow]over 45 min[/yellow]"
    console.print(f"Duration: {minutes} min ({target})")
    console.print(f"Sets: {summary.total_sets}   Volume: {summary.total_volume_kg:.0f} kg")
    if summary.average_rpe is not None:
        console.print(f"Average RPE: {summary.average_rpe:.1f}")
    console.print(f"Estimated calories: {summary.estimated_calories} kcal")

    if not summary.exercises:
        return
    table = Table(title="Exercises")
    table.add_column("Exercise", style="cyan")
    table.add_column("Sets", justify="right")
    table.add_column("On target", justify="right")
    table.add_column("Best set", justify="right")
    table.add_column("Volume (kg)", justify="right")
    for ex in summary.exercises:
        table.add_row(
            ex.exercise_name,
            str(ex.sets),
            str(ex.sets_on_target),
            f"{ex.best_reps} x {_fmt_weight(ex.best_weight)}",
            f"{ex.volume:.0f}",
        )
    console.print(table)


def format_equipment_table(equipment: list[Equipment]) -> Table:
    table = Table(title="Equipment")
    table.add_column("Type", style="cyan")
    table.add_column("Range", justify="right")
    table.add_column("Available")
    for item in equipment:
        if item.min_weight is not None and item.max_weight is not None:
            weight_range = f"{item.min_weight:g}-{item.max_weight:g} kg"
        else:
            weight_range = "-"
        table.add_row(
            item.type.display_name,
            weight_range,
            "[green]yes[/green]" if item.is_available else "[red]no[/red]",
        )
    return table


def format_exercise_table(exercises: list[Exercise], title: str = "Exercises") -> Table:
    table = Table(title=title)
    table.add_column("Id", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Muscle", style="magenta")
    table.add_column("Type")
    table.add_column("Equipment")
    table.add_column("Level")
    for ex in exercises:
        table.add_row(
            ex.id,
            ex.name,
            ex.muscle_group,
            "compound" if ex.is_compound else "isolation",
            ", ".join(ex.equipment_required) or "bodyweight",
            ex.difficulty,
        )
    return table


def print_recovery(score: float) -> None:
    console.print(f"Recovery score: [bold]{score:.0f}[/bold] ({recovery_status(score)})")
    console.print(workout_recommendation(score))


def print_current_set(controller: ActiveSessionController) -> None:
    """Header shown before each set of a live session."""
    planned = controller.current_planned_exercise
    if planned is None:
        return
    console.print(
        f"\n[bold cyan]{planned.exercise.name}[/bold cyan] "
        f"[dim](exercise {controller.exercise_index + 1}/{controller.total_exercises}, "
        f"{controller.progress:.0f}% done)[/dim]"
    )
    console.print(
        f"Set {controller.set_number}/{planned.sets}: {planned.reps} reps @ "
        f"{_fmt_weight(planned.weight)}, target RPE {planned.target_rpe:g}, "
        f"tempo {format_tempo(planned.exercise.tempo)}"
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
    response = console.input(f"{message} \\[y/N]: ")
    return response.lower() in ("y", "yes")
