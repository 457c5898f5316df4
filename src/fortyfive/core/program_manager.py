"""
Program orchestration over the stores.

ProgramManager wires the pure planner to the collaborators: it works out
which week is current, gathers every input for generation, keeps exactly
one program active per user and records workout completion.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import datetime

from .config import DEFAULT_RULES, ProgramRules
from .equipment import available_exercises
from .errors import MissingPrerequisiteError
from .models import Exercise, PlannedWorkout, WeeklyProgram, WorkoutSession
from .overload import adjust_program
from .planner import IdFactory, generate_week, new_id
from .protocols import (
    EquipmentStore,
    ExerciseCatalog,
    MetricsProvider,
    ProfileProvider,
    RecoveryProvider,
    WorkoutStore,
)
from .selection import SelectionStrategy

log = logging.getLogger(__name__)

DELOAD_NOTE_PREFIX = "Deload week"


class ProgramManager:
    """
    Generates, activates and updates weekly programs.

    Args:
        catalog: Exercise catalog
        workouts: Session and program store
        profiles: Profile provider
        equipment: Equipment provider
        recovery: Recovery score provider (optional)
        metrics: Body metrics provider (optional)
        rules: Program rules; defaults to DEFAULT_RULES
        strategy: Exercise selection tie-break
        clock: Source of generation timestamps
        id_factory: Id generator passed to the planner
    """

    def __init__(
        self,
        catalog: ExerciseCatalog,
        workouts: WorkoutStore,
        profiles: ProfileProvider,
        equipment: EquipmentStore,
        recovery: RecoveryProvider | None = None,
        metrics: MetricsProvider | None = None,
        *,
        rules: ProgramRules | None = None,
        strategy: SelectionStrategy | None = None,
        clock: Callable[[], datetime] = datetime.now,
        id_factory: IdFactory = new_id,
    ):
        self.catalog = catalog
        self.workouts = workouts
        self.profiles = profiles
        self.equipment = equipment
        self.recovery = recovery
        self.metrics = metrics
        self.rules = rules or DEFAULT_RULES
        self.strategy = strategy
        self._clock = clock
        self._new_id = id_factory

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def latest_program(self, user_id: str) -> WeeklyProgram | None:
        programs = self.workouts.get_all_programs(user_id)
        return programs[0] if programs else None

    def active_program(self, user_id: str) -> WeeklyProgram | None:
        """The active program, falling back to the latest one."""
        programs = self.workouts.get_all_programs(user_id)
        for program in programs:
            if program.is_active:
                return program
        return programs[0] if programs else None

    def current_week_number(self, user_id: str) -> int:
        """
        Week to train (or generate) now.

        The latest program's week, moving on by one once all of its
        workouts are completed.  1 when nothing has been generated.
        """
        latest = self.latest_program(user_id)
        if latest is None:
            return 1
        return latest.week_number + 1 if latest.is_completed else latest.week_number

    def next_workout(self, user_id: str) -> PlannedWorkout | None:
        program = self.active_program(user_id)
        return program.next_workout() if program is not None else None

    def completion_percentage(self, user_id: str) -> float:
        program = self.active_program(user_id)
        return program.completion_percentage() if program is not None else 0.0

    # ------------------------------------------------------------------
    # Generation
    # ------------------------------------------------------------------

    def generate_program(
        self,
        user_id: str,
        week_number: int | None = None,
        force_regenerate: bool = False,
    ) -> WeeklyProgram:
        """
        Generate, store and activate the program for a week.

        An existing program for the week is re-activated and returned unless
        ``force_regenerate`` is set.  Nothing is written until generation
        succeeds, so a failure leaves the previously active program as is.

        Args:
            user_id: Program owner
            week_number: Week to generate; defaults to the current week
            force_regenerate: Replace an existing program for the week

        Returns:
            The active program for the week

        Raises:
            MissingPrerequisiteError: If there is no profile or equipment
            PersistenceError: If the store cannot be written
        """
        week = week_number if week_number is not None else self.current_week_number(user_id)

        if not force_regenerate:
            existing = self.workouts.get_program_by_week(user_id, week)
            if existing is not None:
                log.info("Week %d already generated; re-activating it", week)
                self.workouts.set_active_program(user_id, existing.id)
                existing.is_active = True
                return existing

        profile = self.profiles.load_profile()
        if profile is not None and profile.id != user_id:
            raise MissingPrerequisiteError(f"No profile found for user {user_id}")

        previous_week = self.workouts.get_program_by_week(user_id, week - 1) if week > 1 else None
        previous_sessions = (
            self.workouts.get_sessions_by_week(user_id, week - 1) if previous_week is not None else []
        )

        program = generate_week(
            week,
            profile,
            self.equipment.load_equipment(),
            self.catalog.get_all_exercises(),
            previous_week=previous_week,
            recovery_score=self.recovery.current_recovery_score() if self.recovery else None,
            latest_metrics=self.metrics.latest_metrics() if self.metrics else None,
            previous_sessions=previous_sessions,
            rules=self.rules,
            strategy=self.strategy,
            now=self._clock(),
            id_factory=self._new_id,
        )

        self.workouts.save_weekly_program(program)
        self.workouts.set_active_program(user_id, program.id)
        return program

    def generate_next_week(self, user_id: str) -> WeeklyProgram:
        """Generate the week after the latest program (week 1 if none)."""
        latest = self.latest_program(user_id)
        week = latest.week_number + 1 if latest is not None else 1
        return self.generate_program(user_id, week)

    # ------------------------------------------------------------------
    # Updates
    # ------------------------------------------------------------------

    def mark_workout_completed(
        self, user_id: str, workout_id: str, when: datetime | None = None
    ) -> bool:
        """
        Stamp ``completed_at`` on a workout in whichever program holds it.

        Returns:
            False if no program of the user contains the workout
        """
        for program in self.workouts.get_all_programs(user_id):
            workout = program.find_workout(workout_id)
            if workout is None:
                continue
            updated = program.with_workout(workout.with_completed_at(when or self._clock()))
            self.workouts.update_program(updated)
            log.info("Workout %s of week %d marked completed", workout.name, program.week_number)
            return True
        log.warning("Workout %s not found in any program", workout_id)
        return False

    def on_session_completed(self, session: WorkoutSession, workout: PlannedWorkout) -> None:
        """Completion callback for ActiveSessionController."""
        self.mark_workout_completed(session.user_id, workout.id, session.end_time)

    def replace_exercise_in_workout(
        self,
        program: WeeklyProgram,
        workout_id: str,
        index: int,
        new_exercise: Exercise,
    ) -> WeeklyProgram:
        """
        Swap the exercise at ``index`` of a workout and store the program.

        Sets, reps, weight, rest and RPE targets stay as prescribed.

        Raises:
            KeyError: If the workout is not part of the program
            IndexError: If ``index`` is out of range
        """
        workout = program.find_workout(workout_id)
        if workout is None:
            raise KeyError(f"Workout {workout_id} not in program {program.id}")
        updated = program.with_workout(workout.with_exercise_replaced(index, new_exercise))
        self.workouts.update_program(updated)
        return updated

    def apply_deload(self, user_id: str) -> tuple[WeeklyProgram | None, bool]:
        """
        Deload the active program if this week's sessions were too hard.

        A program is deloaded at most once.

        Returns:
            (program, whether a deload was applied)
        """
        program = self.active_program(user_id)
        if program is None:
            return None, False
        if program.progression_notes.startswith(DELOAD_NOTE_PREFIX):
            return program, False
        sessions = [
            s for s in self.workouts.get_sessions_by_week(user_id, program.week_number) if s.completed
        ]
        adjusted = adjust_program(program, sessions, self.rules)
        if adjusted is program:
            return program, False
        self.workouts.update_program(adjusted)
        return adjusted, True

    def swap_candidates(
        self, exercise: Exercise, pool: Sequence[Exercise] | None = None
    ) -> list[Exercise]:
        """
        Exercises that can stand in for ``exercise``.

        Same muscle group, drawn from ``pool`` (default: the catalog filtered
        by the user's equipment).  Listed alternatives come first, then
        compound movements, then the rest by name.
        """
        if pool is None:
            pool = available_exercises(self.catalog.get_all_exercises(), self.equipment.load_equipment())
        candidates = [e for e in pool if e.muscle_group == exercise.muscle_group and e.id != exercise.id]
        alternatives = {alt: i for i, alt in enumerate(exercise.alternatives)}
        candidates.sort(
            key=lambda e: (
                alternatives.get(e.id, len(alternatives)),
                not e.is_compound,
                e.name,
            )
        )
        return candidates
