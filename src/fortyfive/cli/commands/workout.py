"""Session commands: workout (live logging) and history."""

from typing import Annotated, Optional

import typer

from ...core.errors import FortyFiveError, PersistenceError, SessionStateError
from ...core.metrics import summarize_session
from ...core.models import WeeklyProgram, WorkoutSession
from ...core.program_manager import ProgramManager
from ...core.recovery import should_warn_before_workout
from ...core.session import ActiveSessionController, RestTicker
from .. import views
from ..app import app, get_manager, get_stores, require_profile

SET_PROMPT = "reps weight rpe \\[Enter = as planned, s = skip, r = replace, n/p = next/prev, q = quit]: "
REST_PROMPT = "Resting {remaining}s \\[Enter = go, +N/-N = adjust, p = pause/resume]: "


def _find_partial(
    sessions: list[WorkoutSession], workout_id: str
) -> WorkoutSession | None:
    for session in sessions:
        if session.workout_id == workout_id and not session.completed:
            return session
    return None


def _rest(controller: ActiveSessionController) -> None:
    """Count the rest down in the background until the user moves on."""
    with RestTicker(controller):
        while controller.is_resting:
            raw = views.console.input(REST_PROMPT.format(remaining=controller.rest_remaining)).strip()
            if not raw:
                controller.end_rest()
            elif raw.lower() == "p":
                if controller.is_paused:
                    controller.resume_from_pause()
                else:
                    controller.pause()
                    views.print_info("Rest timer paused.")
            elif raw[0] in "+-":
                try:
                    controller.add_rest_time(int(raw))
                except ValueError:
                    views.print_warning(f"Not a number of seconds: {raw}")
            else:
                views.print_warning(f"Unknown command: {raw}")


def _replace_current(controller: ActiveSessionController, manager: ProgramManager) -> None:
    current = controller.current_exercise
    if current is None:
        return
    candidates = manager.swap_candidates(current)
    if not candidates:
        views.print_warning(f"No alternatives to {current.name} with your equipment.")
        return
    for i, candidate in enumerate(candidates, 1):
        views.console.print(f"  [{i}] {candidate.name}")
    raw = views.console.input("Replace with (number, Enter to keep): ").strip()
    if not raw:
        return
    try:
        choice = candidates[int(raw) - 1]
    except (ValueError, IndexError):
        views.print_warning(f"Invalid choice: {raw}")
        return
    controller.replace_exercise(choice)
    views.print_success(f"Switched to {choice.name}.")


def _record_set(controller: ActiveSessionController, raw: str) -> None:
    """
    Record a set from "reps [weight [rpe]]" input.

    Missing values default to the prescription.
    """
    planned = controller.current_planned_exercise
    if planned is None:
        raise SessionStateError("All exercises are done; finish the session")
    parts = raw.replace(",", " ").split()
    if len(parts) > 3:
        raise ValueError("Enter at most: reps weight rpe")
    reps = int(parts[0]) if parts else planned.reps
    weight = float(parts[1]) if len(parts) > 1 else planned.weight
    rpe = int(parts[2]) if len(parts) > 2 else int(round(planned.target_rpe))
    try:
        controller.complete_set(reps, weight, rpe)
    except PersistenceError as e:
        views.print_warning(f"Set kept but not saved: {e}")


def _run_session(controller: ActiveSessionController, manager: ProgramManager) -> bool:
    """
    Drive the controller from console input.

    Returns:
        False if the user quit before the last exercise
    """
    while not controller.is_complete:
        views.print_current_set(controller)
        raw = views.console.input(SET_PROMPT).strip().lower()

        if raw == "q":
            return False
        try:
            if raw == "s":
                controller.skip_exercise()
            elif raw == "r":
                _replace_current(controller, manager)
            elif raw == "n":
                controller.go_to_next_exercise()
            elif raw == "p":
                controller.go_to_previous_exercise()
            else:
                _record_set(controller, raw)
        except (ValueError, FortyFiveError) as e:
            views.print_error(str(e))
            continue

        if controller.is_resting:
            _rest(controller)
    return True


@app.command()
def workout(
    position: Annotated[
        Optional[int],
        typer.Option("--workout", "-w", help="Workout position in the week (default: next)"),
    ] = None,
    resume: Annotated[
        bool,
        typer.Option("--resume", help="Continue an unfinished session of this workout"),
    ] = False,
) -> None:
    """
    Run a workout live, logging every set.

    Enter "reps weight rpe" after each set (Enter alone logs the set as
    planned).  A rest countdown runs between sets.  The session is saved
    after every set, and a summary is shown at the end.
    """
    stores = get_stores()
    profile = require_profile(stores)
    manager = get_manager(stores)

    try:
        current: WeeklyProgram | None = stores.workouts.get_current_week_program(profile.id)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
    if current is None:
        views.print_error("No program yet. Run 'fortyfive generate' first.")
        raise typer.Exit(1)

    if position is None:
        planned = current.next_workout()
        if planned is None:
            views.print_error("This program has no workouts.")
            raise typer.Exit(1)
    elif 1 <= position <= len(current.workouts):
        planned = current.workouts[position - 1]
    else:
        views.print_error(f"Workout must be between 1 and {len(current.workouts)}")
        raise typer.Exit(1)

    score = stores.profiles.current_recovery_score()
    if score is not None and should_warn_before_workout(score):
        views.print_recovery(score)
        if not views.confirm_action("Recovery is low. Train anyway?"):
            views.print_info("Cancelled.")
            raise typer.Exit(0)

    controller = ActiveSessionController(
        stores.workouts,
        on_completed=manager.on_session_completed,
        sinks=[stores.health_log],
    )

    try:
        partial = (
            _find_partial(stores.workouts.get_session_history(profile.id), planned.id)
            if resume
            else None
        )
        if partial is not None:
            controller.resume(partial, planned)
            views.print_info(f"Resuming session with {partial.total_sets} sets recorded.")
        else:
            controller.start(planned, profile.id, current.week_number)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.console.print(views.format_workout_table(planned))
    finished = _run_session(controller, manager)

    if not finished:
        has_sets = bool(controller.session and controller.session.sets)
        if not has_sets or not views.confirm_action("Finish and save the workout now?"):
            controller.cancel()
            views.print_info("Workout stopped. Resume it later with --resume.")
            return

    try:
        sealed = controller.finish()
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    views.print_session_summary(summarize_session(sealed))


@app.command()
def history(
    limit: Annotated[
        Optional[int],
        typer.Option("--limit", "-n", help="Show at most this many sessions"),
    ] = 10,
    week: Annotated[
        Optional[int],
        typer.Option("--week", help="Only sessions of this week"),
    ] = None,
) -> None:
    """Show recorded workout sessions, newest first."""
    stores = get_stores()
    profile = require_profile(stores)

    try:
        if week is not None:
            sessions = list(reversed(stores.workouts.get_sessions_by_week(profile.id, week)))
        else:
            sessions = stores.workouts.get_session_history(profile.id)
    except FortyFiveError as e:
        views.print_error(str(e))
        raise typer.Exit(1)

    if limit is not None:
        sessions = sessions[:limit]
    views.print_history(sessions)
