"""
Data models for fortyfive.

Catalog exercises, owned equipment, generated programs and recorded
sessions.  Programs own their workouts and prescriptions by value: every
method that "changes" a program or workout returns a new object built from
copied lists, so edits never leak between workouts.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Literal

from .tempo import parse_tempo

WorkoutType = Literal["A", "B"]
Difficulty = Literal["beginner", "intermediate", "advanced"]

DIFFICULTIES: tuple[str, ...] = ("beginner", "intermediate", "advanced")
WORKOUT_TYPES: tuple[str, ...] = ("A", "B")

# Requirement tokens that mean "no equipment needed"
BODYWEIGHT_TOKENS: frozenset[str] = frozenset({"bodyweight", "none"})


@dataclass(frozen=True)
class Exercise:
    """
    A catalog exercise.  Read-only to the generator.

    ``equipment_required`` is a list of free-form tags (e.g. "dumbbells",
    "adjustable bench"); an empty list means bodyweight.
    """

    id: str
    name: str
    muscle_group: str
    secondary_muscles: list[str] = field(default_factory=list)
    equipment_required: list[str] = field(default_factory=list)
    is_compound: bool = False
    difficulty: Difficulty = "beginner"
    tempo: str = "3-0-1-0"
    alternatives: list[str] = field(default_factory=list)
    instructions: str = ""

    def __post_init__(self) -> None:
        """Validate exercise data."""
        if not self.id:
            raise ValueError("Exercise id must be non-empty")
        if not self.muscle_group:
            raise ValueError(f"Exercise {self.id!r} has no muscle_group")
        if self.difficulty not in DIFFICULTIES:
            raise ValueError(f"Invalid difficulty: {self.difficulty}")

    @property
    def is_bodyweight_only(self) -> bool:
        """True when no tag other than bodyweight/none is required."""
        return all(
            tag.strip().lower() in BODYWEIGHT_TOKENS for tag in self.equipment_required
        )

    @property
    def tempo_components(self) -> tuple[int, int, int, int]:
        """(eccentric, bottom pause, concentric, top pause) in seconds."""
        return parse_tempo(self.tempo)

    @property
    def time_under_tension(self) -> int:
        """Seconds under tension for one rep."""
        return sum(self.tempo_components)


class EquipmentType(str, Enum):
    """Kinds of equipment a user can own."""

    DUMBBELLS = "dumbbells"
    BENCH = "bench"
    PULLUP_BAR = "pullup_bar"
    BODYWEIGHT = "bodyweight"
    RESISTANCE_BANDS = "resistance_bands"
    KETTLEBELL = "kettlebell"
    OTHER = "other"

    @property
    def display_name(self) -> str:
        return _EQUIPMENT_DISPLAY_NAMES[self]

    @classmethod
    def from_value(cls, value: str) -> "EquipmentType":
        """
        Parse a stored or user-typed equipment name.

        Accepts "pullup_bar", "pullupBar", "Pull-up bar" and similar; unknown
        names map to OTHER.
        """
        key = value.strip().lower().replace(" ", "").replace("-", "").replace("_", "")
        for member in cls:
            if member.value.replace("_", "") == key:
                return member
        return cls.OTHER


_EQUIPMENT_DISPLAY_NAMES: dict[EquipmentType, str] = {
    EquipmentType.DUMBBELLS: "Dumbbells",
    EquipmentType.BENCH: "Bench",
    EquipmentType.PULLUP_BAR: "Pull-up Bar",
    EquipmentType.BODYWEIGHT: "Bodyweight",
    EquipmentType.RESISTANCE_BANDS: "Resistance Bands",
    EquipmentType.KETTLEBELL: "Kettlebell",
    EquipmentType.OTHER: "Other",
}


@dataclass
class Equipment:
    """
    A piece of equipment the user owns.

    min/max weight describe adjustable kit (e.g. dumbbells 2-40 kg).
    """

    id: str
    type: EquipmentType
    min_weight: float | None = None
    max_weight: float | None = None
    is_available: bool = True
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate equipment data."""
        if self.min_weight is not None and self.min_weight < 0:
            raise ValueError("min_weight must be non-negative")
        if (
            self.min_weight is not None
            and self.max_weight is not None
            and self.max_weight < self.min_weight
        ):
            raise ValueError("max_weight must not be below min_weight")

    def supports_weight(self, weight: float) -> bool:
        """True when the weight lies inside the adjustable range (or there is none)."""
        if self.min_weight is None or self.max_weight is None:
            return True
        return self.min_weight <= weight <= self.max_weight


@dataclass
class PlannedExercise:
    """
    One exercise slot of a planned workout with its prescription.

    previous_weight / previous_rpe carry last week's numbers for display.
    """

    exercise: Exercise
    sets: int
    reps: int
    weight: float
    rest_time: int  # seconds
    target_rpe: float
    previous_weight: float | None = None
    previous_rpe: float | None = None

    def __post_init__(self) -> None:
        """Validate prescription."""
        if self.sets < 1:
            raise ValueError("sets must be at least 1")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.rest_time < 0:
            raise ValueError("rest_time must be non-negative")
        if not 1.0 <= self.target_rpe <= 10.0:
            raise ValueError(f"target_rpe must be within 1-10, got {self.target_rpe}")

    @property
    def target_volume(self) -> float:
        """weight x reps x sets."""
        return self.weight * self.reps * self.sets


@dataclass
class PlannedWorkout:
    """An ordered list of prescriptions making up one training day."""

    id: str
    workout_type: WorkoutType
    name: str
    exercises: list[PlannedExercise] = field(default_factory=list)
    estimated_duration: int = 45  # minutes
    required_equipment: list[str] = field(default_factory=list)
    completed_at: datetime | None = None

    def __post_init__(self) -> None:
        """Validate workout data."""
        if self.workout_type not in WORKOUT_TYPES:
            raise ValueError(f"Invalid workout_type: {self.workout_type}")
        if self.estimated_duration <= 0:
            raise ValueError("estimated_duration must be positive")

    @property
    def is_completed(self) -> bool:
        return self.completed_at is not None

    @property
    def total_sets(self) -> int:
        return sum(pe.sets for pe in self.exercises)

    def copy(self) -> "PlannedWorkout":
        """Deep-enough copy: new lists, new PlannedExercise objects."""
        return replace(
            self,
            exercises=[replace(pe) for pe in self.exercises],
            required_equipment=list(self.required_equipment),
        )

    def with_exercise_replaced(self, index: int, exercise: Exercise) -> "PlannedWorkout":
        """
        Return a copy with the exercise at ``index`` swapped.

        The prescription (sets, reps, weight, rest, RPE, previous values)
        is kept.

        Raises:
            IndexError: If index is out of range
        """
        if not 0 <= index < len(self.exercises):
            raise IndexError(f"Exercise index {index} out of range")
        new = self.copy()
        new.exercises[index] = replace(new.exercises[index], exercise=exercise)
        return new

    def with_completed_at(self, when: datetime | None) -> "PlannedWorkout":
        new = self.copy()
        new.completed_at = when
        return new


@dataclass
class WeeklyProgram:
    """
    One generated training week: four workouts in A, B, A, B+legs order.
    """

    id: str
    user_id: str
    week_number: int
    generated_date: datetime
    workouts: list[PlannedWorkout] = field(default_factory=list)
    progression_notes: str = ""
    is_active: bool = False

    def __post_init__(self) -> None:
        """Validate program data."""
        if self.week_number < 1:
            raise ValueError("week_number must be >= 1")

    def get_workout(self, workout_type: str) -> PlannedWorkout | None:
        """First workout of the given type, or None."""
        for workout in self.workouts:
            if workout.workout_type == workout_type:
                return workout
        return None

    def find_workout(self, workout_id: str) -> PlannedWorkout | None:
        for workout in self.workouts:
            if workout.id == workout_id:
                return workout
        return None

    @property
    def completed_count(self) -> int:
        return sum(1 for w in self.workouts if w.is_completed)

    @property
    def is_completed(self) -> bool:
        """True when the program has workouts and all of them are done."""
        return bool(self.workouts) and self.completed_count == len(self.workouts)

    def completion_percentage(self) -> float:
        """Share of completed workouts, 0-100."""
        if not self.workouts:
            return 0.0
        return self.completed_count / len(self.workouts) * 100.0

    def next_workout(self) -> PlannedWorkout | None:
        """First incomplete workout; falls back to the first workout."""
        for workout in self.workouts:
            if not workout.is_completed:
                return workout
        return self.workouts[0] if self.workouts else None

    def copy(self) -> "WeeklyProgram":
        return replace(self, workouts=[w.copy() for w in self.workouts])

    def with_workout(self, workout: PlannedWorkout) -> "WeeklyProgram":
        """
        Return a copy with the workout sharing ``workout.id`` replaced.

        Raises:
            KeyError: If no workout has that id
        """
        if self.find_workout(workout.id) is None:
            raise KeyError(f"Workout {workout.id} not in week {self.week_number}")
        return replace(
            self,
            workouts=[workout.copy() if w.id == workout.id else w.copy() for w in self.workouts],
        )


@dataclass(frozen=True)
class WorkoutSet:
    """A recorded set.  Immutable once created."""

    id: str
    session_id: str
    exercise_id: str
    exercise_name: str
    set_number: int
    target_reps: int
    actual_reps: int
    target_weight: float
    actual_weight: float
    rpe: int
    rest_time_sec: int
    timestamp: datetime
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.actual_reps < 0:
            raise ValueError("actual_reps must be non-negative")
        if self.target_weight < 0:
            raise ValueError("target_weight must be non-negative")
        if self.actual_weight < 0:
            raise ValueError("actual_weight must be non-negative")
        if not 1 <= self.rpe <= 10:
            raise ValueError(f"rpe must be within 1-10, got {self.rpe}")
        if self.rest_time_sec < 0:
            raise ValueError("rest_time_sec must be non-negative")

    @property
    def volume(self) -> float:
        """actual_weight x actual_reps."""
        return self.actual_weight * self.actual_reps

    @property
    def is_complete(self) -> bool:
        """True when the target reps were reached."""
        return self.actual_reps >= self.target_reps

    @property
    def exceeded_target(self) -> bool:
        return self.actual_reps > self.target_reps or self.actual_weight > self.target_weight

    @property
    def difficulty_level(self) -> str:
        if self.rpe <= 7:
            return "Easy"
        if self.rpe <= 8:
            return "Moderate"
        return "Hard"


@dataclass
class WorkoutSession:
    """
    A live or historical execution of a planned workout.

    Created empty at start, grows by appended sets, sealed on finish
    (``completed=True``, ``end_time`` set).
    """

    id: str
    user_id: str
    workout_type: WorkoutType
    week_number: int
    start_time: datetime
    workout_id: str | None = None
    sets: list[WorkoutSet] = field(default_factory=list)
    end_time: datetime | None = None
    total_volume_kg: float = 0.0
    rpe_average: float | None = None
    notes: str | None = None
    completed: bool = False

    def __post_init__(self) -> None:
        """Validate session data."""
        if self.workout_type not in WORKOUT_TYPES:
            raise ValueError(f"Invalid workout_type: {self.workout_type}")
        if self.week_number < 1:
            raise ValueError("week_number must be >= 1")

    def calculate_total_volume(self) -> float:
        return sum(s.volume for s in self.sets)

    def calculate_average_rpe(self) -> float | None:
        if not self.sets:
            return None
        return sum(s.rpe for s in self.sets) / len(self.sets)

    @property
    def duration_minutes(self) -> int | None:
        """Whole minutes between start and end; None while unfinished."""
        if self.end_time is None:
            return None
        return int((self.end_time - self.start_time).total_seconds() // 60)

    @property
    def exercise_ids(self) -> list[str]:
        """Distinct exercise ids in the order they were first performed."""
        return list(dict.fromkeys(s.exercise_id for s in self.sets))

    @property
    def total_sets(self) -> int:
        return len(self.sets)

    @property
    def met_time_target(self) -> bool:
        """True when the session finished within 45 minutes."""
        duration = self.duration_minutes
        return duration is not None and duration <= 45

    def sets_by_exercise(self) -> dict[str, list[WorkoutSet]]:
        grouped: dict[str, list[WorkoutSet]] = {}
        for s in self.sets:
            grouped.setdefault(s.exercise_id, []).append(s)
        return grouped


@dataclass
class UserProfile:
    """
    The user's onboarding data.

    The generator only requires that a profile exists; goal and target
    muscles are shown in the CLI and stored for future personalisation.
    """

    id: str
    name: str
    age: int | None = None
    height_cm: float | None = None
    gender: str | None = None
    primary_goal: str = "strength"
    activity_level: str = "moderate"
    target_muscles: list[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        """Validate profile data."""
        if not self.id:
            raise ValueError("Profile id must be non-empty")
        if self.age is not None and not 10 <= self.age <= 120:
            raise ValueError(f"age must be within 10-120, got {self.age}")
        if self.height_cm is not None and self.height_cm <= 0:
            raise ValueError("height_cm must be positive")


@dataclass
class BodyMetrics:
    """A body measurement.  Accepted by the generator, not yet used by it."""

    id: str
    user_id: str
    weight_kg: float
    timestamp: datetime
    body_fat_pct: float | None = None

    def __post_init__(self) -> None:
        if self.weight_kg <= 0:
            raise ValueError("weight_kg must be positive")
        if self.body_fat_pct is not None and not 0 <= self.body_fat_pct <= 100:
            raise ValueError("body_fat_pct must be within 0-100")


@dataclass(frozen=True)
class PreviousPerformance:
    """
    Last week's numbers for one exercise, as input to the overload rule.

    ``avg_rpe`` is the mean recorded RPE from last week's sessions; None
    when nothing was recorded, in which case the default RPE applies.
    """

    weight: float | None = None
    reps: int | None = None
    target_rpe: float | None = None
    avg_rpe: float | None = None
