"""
Pure session metric functions.

Volume is always actual weight x actual reps.  Bodyweight sets (0 kg)
contribute no volume.
"""

from dataclasses import dataclass, field
from typing import Sequence

from .config import KCAL_PER_MINUTE
from .models import WorkoutSession, WorkoutSet


def session_total_volume(sets: Sequence[WorkoutSet]) -> float:
    """Sum of actual_weight x actual_reps."""
    return sum(s.volume for s in sets)


def session_average_rpe(sets: Sequence[WorkoutSet]) -> float | None:
    """Mean recorded RPE, or None when no sets were recorded."""
    if not sets:
        return None
    return sum(s.rpe for s in sets) / len(sets)


def estimate_calories(duration_minutes: float) -> int:
    """Rough resistance-training estimate: 5 kcal per minute."""
    return int(round(max(0.0, duration_minutes) * KCAL_PER_MINUTE))


def best_set(sets: Sequence[WorkoutSet]) -> WorkoutSet | None:
    """Heaviest set; ties broken by more reps, then earliest."""
    if not sets:
        return None
    return max(sets, key=lambda s: (s.actual_weight, s.actual_reps, -s.set_number))


def week_volume(sessions: Sequence[WorkoutSession]) -> float:
    """Total volume of the completed sessions."""
    return sum(s.total_volume_kg for s in sessions if s.completed)


@dataclass
class ExerciseSummary:
    """Per-exercise rollup of a session."""

    exercise_id: str
    exercise_name: str
    sets: int
    volume: float
    best_weight: float
    best_reps: int
    sets_on_target: int


@dataclass
class SessionSummary:
    """Summary of a finished (or partially recorded) session."""

    session_id: str
    workout_type: str
    week_number: int
    duration_minutes: int | None
    total_sets: int
    total_volume_kg: float
    average_rpe: float | None
    met_time_target: bool
    estimated_calories: int
    exercises: list[ExerciseSummary] = field(default_factory=list)


def summarize_session(session: WorkoutSession) -> SessionSummary:
    """
    Build a summary with per-exercise best set and on-target counts.

    Args:
        session: The session to summarize

    Returns:
        SessionSummary
    """
    exercises: list[ExerciseSummary] = []
    for exercise_id, sets in session.sets_by_exercise().items():
        top = best_set(sets)
        exercises.append(
            ExerciseSummary(
                exercise_id=exercise_id,
                exercise_name=sets[0].exercise_name,
                sets=len(sets),
                volume=session_total_volume(sets),
                best_weight=top.actual_weight if top else 0.0,
                best_reps=top.actual_reps if top else 0,
                sets_on_target=sum(1 for s in sets if s.is_complete),
            )
        )

    duration = session.duration_minutes
    return SessionSummary(
        session_id=session.id,
        workout_type=session.workout_type,
        week_number=session.week_number,
        duration_minutes=duration,
        total_sets=session.total_sets,
        total_volume_kg=session_total_volume(session.sets),
        average_rpe=session_average_rpe(session.sets),
        met_time_target=session.met_time_target,
        estimated_calories=estimate_calories(duration or 0),
        exercises=exercises,
    )
