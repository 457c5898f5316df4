"""
Collaborator interfaces consumed by the core.

The io package provides file-backed implementations; tests use in-memory
fakes.  Every method is synchronous.
"""

from typing import Protocol

from .models import (
    BodyMetrics,
    Equipment,
    Exercise,
    UserProfile,
    WeeklyProgram,
    WorkoutSession,
)


class ExerciseCatalog(Protocol):
    def get_all_exercises(self) -> list[Exercise]: ...

    def get_exercise_by_id(self, exercise_id: str) -> Exercise | None: ...

    def search_exercises(self, query: str) -> list[Exercise]: ...


class EquipmentStore(Protocol):
    def load_equipment(self) -> list[Equipment]: ...


class ProfileProvider(Protocol):
    def load_profile(self) -> UserProfile | None: ...


class RecoveryProvider(Protocol):
    def current_recovery_score(self) -> int | None: ...


class MetricsProvider(Protocol):
    def latest_metrics(self) -> BodyMetrics | None: ...


class WorkoutStore(Protocol):
    """Sessions and programs, keyed by entity id with replace semantics."""

    def save_workout_session(self, session: WorkoutSession) -> None: ...

    def get_session(self, session_id: str) -> WorkoutSession | None: ...

    def get_sessions_by_week(self, user_id: str, week_number: int) -> list[WorkoutSession]: ...

    def save_weekly_program(self, program: WeeklyProgram) -> None: ...

    def get_program_by_week(self, user_id: str, week_number: int) -> WeeklyProgram | None: ...

    def get_all_programs(self, user_id: str) -> list[WeeklyProgram]: ...

    def update_program(self, program: WeeklyProgram) -> None: ...

    def set_active_program(self, user_id: str, program_id: str) -> None: ...


class SessionSink(Protocol):
    """Best-effort receiver of completed sessions (health log, nutrition refresh)."""

    def record_session(self, session: WorkoutSession, workout_name: str) -> None: ...
