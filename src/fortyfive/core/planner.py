"""
Weekly program generation.

Turns the available exercise pool, last week's program and an optional
recovery score into four PlannedWorkouts (A, B, A, B+legs).

Generation is deterministic for identical inputs: exercise choice depends
only on catalog order and the selection strategy, and weights only on last
week's prescriptions, recorded RPEs and the recovery score.  Only ids and
timestamps differ between runs.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime

from .config import DEFAULT_RULES, WORKOUT_DURATION_MINUTES, WORKOUT_WITH_LEGS_DURATION_MINUTES, ProgramRules
from .equipment import available_exercises
from .errors import MissingPrerequisiteError
from .models import (
    BodyMetrics,
    Equipment,
    Exercise,
    PlannedExercise,
    PlannedWorkout,
    UserProfile,
    WeeklyProgram,
    WorkoutSession,
)
from .overload import adjusted_sets, base_weight, find_previous_performance, next_weight
from .selection import SelectionStrategy, first_match, select_exercise
from .templates import (
    WORKOUT_A_NAME,
    WORKOUT_B_LEGS_NAME,
    WORKOUT_B_NAME,
    WorkoutSlot,
    validate_workout_structure,
    workout_a_slots,
    workout_b_slots,
)

log = logging.getLogger(__name__)

IdFactory = Callable[[], str]


def new_id() -> str:
    """Random UUID4 string."""
    return str(uuid.uuid4())


def create_planned_exercise(
    exercise: Exercise,
    slot: WorkoutSlot,
    previous_week: WeeklyProgram | None,
    recovery_score: int | None,
    previous_sessions: Sequence[WorkoutSession] = (),
    rules: ProgramRules = DEFAULT_RULES,
) -> PlannedExercise:
    """
    Prescribe one slot: sets/reps from the template, weight from the
    overload and recovery rules.
    """
    previous = find_previous_performance(exercise.id, previous_week, previous_sessions)
    weight = next_weight(previous, base_weight(exercise, rules), recovery_score, rules)

    previous_rpe = None
    if previous is not None:
        previous_rpe = previous.avg_rpe if previous.avg_rpe is not None else previous.target_rpe

    return PlannedExercise(
        exercise=exercise,
        sets=adjusted_sets(slot.sets, recovery_score, rules),
        reps=slot.reps,
        weight=weight,
        rest_time=rules.rest_for_slot(slot.slot_type),
        target_rpe=rules.target_rpe,
        previous_weight=previous.weight if previous is not None else None,
        previous_rpe=previous_rpe,
    )


def required_equipment(exercises: Iterable[PlannedExercise]) -> list[str]:
    """Union of equipment tags across the exercises, in first-seen order."""
    tags: dict[str, None] = {}
    for planned in exercises:
        for tag in planned.exercise.equipment_required:
            tags.setdefault(tag, None)
    return list(tags)


def _fill_slots(
    slots: Sequence[WorkoutSlot],
    pool: Sequence[Exercise],
    previous_week: WeeklyProgram | None,
    recovery_score: int | None,
    previous_sessions: Sequence[WorkoutSession],
    rules: ProgramRules,
    strategy: SelectionStrategy,
) -> list[PlannedExercise]:
    chosen: list[PlannedExercise] = []
    chosen_ids: list[str] = []
    for slot in slots:
        exercise = select_exercise(
            pool,
            muscle_group=slot.muscle_group,
            is_compound=slot.is_compound,
            exclude_ids=chosen_ids,
            secondary_muscle=slot.secondary_focus,
            strategy=strategy,
        )
        if exercise is None:
            log.debug("No exercise for %s %s slot; omitted", slot.muscle_group, slot.slot_type)
            continue
        chosen_ids.append(exercise.id)
        chosen.append(
            create_planned_exercise(
                exercise, slot, previous_week, recovery_score, previous_sessions, rules
            )
        )
    return chosen


def build_workout_a(
    pool: Sequence[Exercise],
    previous_week: WeeklyProgram | None = None,
    recovery_score: int | None = None,
    *,
    previous_sessions: Sequence[WorkoutSession] = (),
    rules: ProgramRules = DEFAULT_RULES,
    strategy: SelectionStrategy = first_match,
    id_factory: IdFactory = new_id,
) -> PlannedWorkout:
    """
    Assemble workout A (push).

    Slots: chest compound 4x10, chest 3x12, shoulder compound 3x10,
    shoulder 3x12, triceps 3x12, abs 3x20.  Slots with no matching
    exercise are left out.
    """
    exercises = _fill_slots(
        workout_a_slots(), pool, previous_week, recovery_score, previous_sessions, rules, strategy
    )
    return PlannedWorkout(
        id=id_factory(),
        workout_type="A",
        name=WORKOUT_A_NAME,
        exercises=exercises,
        estimated_duration=WORKOUT_DURATION_MINUTES,
        required_equipment=required_equipment(exercises),
    )


def build_workout_b(
    pool: Sequence[Exercise],
    previous_week: WeeklyProgram | None = None,
    recovery_score: int | None = None,
    include_legs: bool = False,
    *,
    previous_sessions: Sequence[WorkoutSession] = (),
    rules: ProgramRules = DEFAULT_RULES,
    strategy: SelectionStrategy = first_match,
    id_factory: IdFactory = new_id,
) -> PlannedWorkout:
    """
    Assemble workout B (pull, optionally with legs).

    Slots: back compound 4x10, back 3x12, biceps 3x12, then with legs a
    leg compound 3x12 and leg accessory 3x15, and finally abs 3x20.
    """
    exercises = _fill_slots(
        workout_b_slots(include_legs),
        pool,
        previous_week,
        recovery_score,
        previous_sessions,
        rules,
        strategy,
    )
    return PlannedWorkout(
        id=id_factory(),
        workout_type="B",
        name=WORKOUT_B_LEGS_NAME if include_legs else WORKOUT_B_NAME,
        exercises=exercises,
        estimated_duration=(
            WORKOUT_WITH_LEGS_DURATION_MINUTES if include_legs else WORKOUT_DURATION_MINUTES
        ),
        required_equipment=required_equipment(exercises),
    )


def progression_notes(week_number: int, previous_week: WeeklyProgram | None) -> str:
    """Free-text note shown with a generated week."""
    if previous_week is None or week_number == 1:
        return "Week 1: Establishing baseline strength levels. Focus on form and tempo."
    return (
        f"Week {week_number}: Progressive overload applied based on Week {week_number - 1} "
        "performance. Continue pushing for strength gains while maintaining proper form."
    )


def generate_week(
    week_number: int,
    profile: UserProfile | None,
    equipment: Sequence[Equipment],
    catalog: Iterable[Exercise],
    previous_week: WeeklyProgram | None = None,
    recovery_score: int | None = None,
    latest_metrics: BodyMetrics | None = None,
    previous_sessions: Sequence[WorkoutSession] = (),
    rules: ProgramRules | None = None,
    strategy: SelectionStrategy | None = None,
    now: datetime | None = None,
    id_factory: IdFactory = new_id,
) -> WeeklyProgram:
    """
    Generate one training week: A, B, A, B+legs.

    The same ``previous_week`` is used for every workout, so an exercise
    appearing in several of last week's workouts resolves to its first
    occurrence.  ``latest_metrics`` is accepted but does not affect the
    prescription yet.

    Args:
        week_number: 1-based week number
        profile: The user's profile (required)
        equipment: The user's equipment (must not be empty)
        catalog: Exercise catalog in stable order
        previous_week: Week N-1 program, if any
        recovery_score: 0-100 recovery score, if known
        latest_metrics: Latest body measurement (unused)
        previous_sessions: Sessions recorded during week N-1
        rules: Rule overrides; defaults to DEFAULT_RULES
        strategy: Selection tie-break; defaults to first match
        now: Generation timestamp; defaults to datetime.now()
        id_factory: Id generator for program and workouts

    Returns:
        A new active WeeklyProgram

    Raises:
        MissingPrerequisiteError: If there is no profile or no equipment
    """
    if profile is None:
        raise MissingPrerequisiteError("No user profile found. Run 'init' first.")
    if not equipment:
        raise MissingPrerequisiteError("No equipment configured. Run 'equipment --set' first.")
    if week_number < 1:
        raise ValueError("week_number must be >= 1")

    rules = rules or DEFAULT_RULES
    strategy = strategy or first_match
    pool = available_exercises(catalog, equipment)
    log.info("Generating week %d from %d available exercises", week_number, len(pool))

    common = dict(
        previous_sessions=previous_sessions, rules=rules, strategy=strategy, id_factory=id_factory
    )
    workouts = [
        build_workout_a(pool, previous_week, recovery_score, **common),
        build_workout_b(pool, previous_week, recovery_score, **common),
        build_workout_a(pool, previous_week, recovery_score, **common),
        build_workout_b(pool, previous_week, recovery_score, include_legs=True, **common),
    ]
    for workout in workouts:
        log.info("  %s (%d exercises)", workout.name, len(workout.exercises))
        groups = [pe.exercise.muscle_group for pe in workout.exercises]
        if not validate_workout_structure(groups, workout.workout_type):
            log.warning("%s is missing key muscle groups; check equipment or catalog", workout.name)

    return WeeklyProgram(
        id=id_factory(),
        user_id=profile.id,
        week_number=week_number,
        generated_date=now or datetime.now(),
        workouts=workouts,
        progression_notes=progression_notes(week_number, previous_week),
        is_active=True,
    )
