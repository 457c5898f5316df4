"""
Progressive overload, recovery adjustment and deload.

Week-to-week weight rule, from last week's weight and average RPE:

    avg RPE <= 7.0  ->  weight + 2.0 kg
    avg RPE >= 9.0  ->  weight x 0.95
    otherwise       ->  weight unchanged

A recovery score (0-100) then scales the result:

    score < 50      ->  x 0.8  and one set fewer
    50 <= score < 70 -> x 0.9
    score >= 70     ->  unchanged

The final weight is clamped to the configured floor (0 kg by default).
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import replace

from .config import DEFAULT_RULES, ProgramRules
from .models import Exercise, PlannedExercise, PreviousPerformance, WeeklyProgram, WorkoutSession

log = logging.getLogger(__name__)


def base_weight(exercise: Exercise, rules: ProgramRules = DEFAULT_RULES) -> float:
    """
    Starting weight for an exercise with no history.

    Bodyweight-only exercises start at 0 kg; otherwise a lookup by muscle
    group and compound flag (unknown groups use the default).
    """
    if exercise.is_bodyweight_only:
        return 0.0
    weights = rules.base_weights.get(exercise.muscle_group)
    if weights is None:
        return rules.default_base_weight
    compound, isolation = weights
    return compound if exercise.is_compound else isolation


def apply_progressive_overload(
    previous: PreviousPerformance,
    base: float,
    rules: ProgramRules = DEFAULT_RULES,
) -> float:
    """
    Next week's weight from last week's performance.

    Args:
        previous: Last week's weight and average RPE (either may be missing)
        base: Weight to use when last week's weight is missing

    Returns:
        Unclamped next weight in kg
    """
    avg_rpe = previous.avg_rpe if previous.avg_rpe is not None else rules.default_avg_rpe
    last_weight = previous.weight if previous.weight is not None else base

    if avg_rpe <= rules.easy_rpe_threshold:
        return last_weight + rules.weight_increment_kg
    if avg_rpe >= rules.hard_rpe_threshold:
        return last_weight * rules.hard_reduction_factor
    return last_weight


def apply_recovery_adjustment(
    weight: float, recovery_score: int | None, rules: ProgramRules = DEFAULT_RULES
) -> float:
    """Scale a weight down for poor (x0.8) or moderate (x0.9) recovery."""
    if recovery_score is None:
        return weight
    if recovery_score < rules.recovery_low_threshold:
        return weight * rules.recovery_low_factor
    if recovery_score < rules.recovery_moderate_threshold:
        return weight * rules.recovery_moderate_factor
    return weight


def adjusted_sets(sets: int, recovery_score: int | None, rules: ProgramRules = DEFAULT_RULES) -> int:
    """One set fewer when recovery is poor, never below one set."""
    if recovery_score is not None and recovery_score < rules.recovery_low_threshold:
        return max(1, sets - 1)
    return sets


def next_weight(
    previous: PreviousPerformance | None,
    base: float,
    recovery_score: int | None = None,
    rules: ProgramRules = DEFAULT_RULES,
) -> float:
    """
    Full weight rule: overload (when there is history), recovery, floor.

    Example:
        previous weight 20.0, avg RPE 6.5, recovery 40
        -> (20.0 + 2.0) * 0.8 = 17.6
    """
    weight = base
    if previous is not None:
        weight = apply_progressive_overload(previous, base, rules)
    weight = apply_recovery_adjustment(weight, recovery_score, rules)
    return max(rules.weight_floor_kg, weight)


def average_recorded_rpe(exercise_id: str, sessions: Iterable[WorkoutSession]) -> float | None:
    """Mean RPE over every recorded set of the exercise, or None."""
    rpes = [s.rpe for session in sessions for s in session.sets if s.exercise_id == exercise_id]
    if not rpes:
        return None
    return sum(rpes) / len(rpes)


def find_previous_performance(
    exercise_id: str,
    previous_week: WeeklyProgram | None,
    previous_sessions: Iterable[WorkoutSession] = (),
) -> PreviousPerformance | None:
    """
    Look up an exercise in last week's program.

    Workouts are searched in order and the first matching prescription
    wins, whichever workout type it belongs to.  The average RPE comes from
    the sets actually recorded last week for that exercise.

    Returns:
        PreviousPerformance, or None if the exercise was not programmed
    """
    if previous_week is None:
        return None
    for workout in previous_week.workouts:
        for planned in workout.exercises:
            if planned.exercise.id == exercise_id:
                return PreviousPerformance(
                    weight=planned.weight,
                    reps=planned.reps,
                    target_rpe=planned.target_rpe,
                    avg_rpe=average_recorded_rpe(exercise_id, previous_sessions),
                )
    return None


def should_deload(
    sessions: list[WorkoutSession], rules: ProgramRules = DEFAULT_RULES
) -> tuple[bool, float]:
    """
    Decide whether the current week calls for a deload.

    Only finished sessions count, both toward the mean RPE and toward the
    minimum number of sessions.

    Returns:
        (deload recommended, mean session RPE)
    """
    completed = [s for s in sessions if s.completed]
    if not completed:
        return False, rules.default_avg_rpe
    values = [
        s.rpe_average if s.rpe_average is not None else rules.default_avg_rpe for s in completed
    ]
    mean_rpe = sum(values) / len(values)
    recommended = mean_rpe > rules.deload_rpe_threshold and len(completed) >= rules.deload_min_sessions
    return recommended, mean_rpe


def _deload_exercise(planned: PlannedExercise, rules: ProgramRules) -> PlannedExercise:
    return replace(
        planned,
        sets=planned.sets - 1 if planned.sets > 1 else planned.sets,
        weight=max(rules.weight_floor_kg, planned.weight * rules.deload_weight_factor),
    )


def adjust_program(
    program: WeeklyProgram,
    sessions: list[WorkoutSession],
    rules: ProgramRules = DEFAULT_RULES,
) -> WeeklyProgram:
    """
    Apply a deload to a program when the week's sessions were too hard.

    Deload: every weight x0.9 and one set fewer (exercises with a single
    set keep it).  Ids are preserved so the result replaces the stored
    program in place.

    Returns:
        A deloaded copy, or the program unchanged
    """
    recommended, mean_rpe = should_deload(sessions, rules)
    if not recommended:
        return program

    log.info("Deload applied to week %d (mean RPE %.1f)", program.week_number, mean_rpe)
    workouts = [
        replace(w, exercises=[_deload_exercise(pe, rules) for pe in w.exercises])
        for w in program.workouts
    ]
    return replace(
        program,
        workouts=workouts,
        progression_notes=(
            f"Deload week recommended due to high RPE ({mean_rpe:.1f}). "
            "Reduced weights and volume to promote recovery."
        ),
    )
