"""
JSON serialization for fortyfive data models.

Handles conversion between dataclasses and JSON-compatible dicts.  Keys are
snake_case; timestamps are ISO-8601 strings.
"""

import json
from datetime import datetime
from typing import Any

from ..core.errors import FortyFiveError
from ..core.models import (
    DIFFICULTIES,
    WORKOUT_TYPES,
    BodyMetrics,
    Equipment,
    EquipmentType,
    Exercise,
    PlannedExercise,
    PlannedWorkout,
    UserProfile,
    WeeklyProgram,
    WorkoutSession,
    WorkoutSet,
)


class ValidationError(FortyFiveError):
    """Raised when stored or user-supplied data fails validation."""

    pass


# ---------------------------------------------------------------------------
# Field validators
# ---------------------------------------------------------------------------


def parse_timestamp(value: str | None, name: str = "timestamp") -> datetime | None:
    """
    Parse an ISO-8601 timestamp.

    Args:
        value: ISO string or None
        name: Field name for error messages

    Returns:
        datetime, or None when value is None

    Raises:
        ValidationError: If the string is not ISO-8601
    """
    if value is None:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {name}: {value!r}") from e


def format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _required_timestamp(data: dict[str, Any], key: str) -> datetime:
    ts = parse_timestamp(data.get(key), key)
    if ts is None:
        raise ValidationError(f"Missing {key}")
    return ts


def validate_workout_type(workout_type: str) -> str:
    """
    Validate a workout type tag.

    Raises:
        ValidationError: If the tag is not "A" or "B"
    """
    if workout_type not in WORKOUT_TYPES:
        raise ValidationError(
            f"Invalid workout_type: {workout_type!r}. Must be one of {WORKOUT_TYPES}"
        )
    return workout_type


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def validate_rpe(value: int | float, name: str = "rpe") -> int | float:
    """
    Validate an RPE value on the 1-10 scale.

    Raises:
        ValidationError: If value is outside 1-10
    """
    if not 1 <= value <= 10:
        raise ValidationError(f"{name} must be within 1-10, got {value}")
    return value


def _build(factory, what: str):
    """Call a model constructor, converting its errors to ValidationError."""
    try:
        return factory()
    except KeyError as e:
        raise ValidationError(f"{what} is missing field {e}") from e
    except (TypeError, ValueError) as e:
        raise ValidationError(f"Invalid {what}: {e}") from e


# ---------------------------------------------------------------------------
# Exercise / equipment
# ---------------------------------------------------------------------------


def exercise_to_dict(exercise: Exercise) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": exercise.id,
        "name": exercise.name,
        "muscle_group": exercise.muscle_group,
        "secondary_muscles": list(exercise.secondary_muscles),
        "equipment_required": list(exercise.equipment_required),
        "is_compound": exercise.is_compound,
        "difficulty": exercise.difficulty,
        "tempo": exercise.tempo,
        "alternatives": list(exercise.alternatives),
    }
    if exercise.instructions:
        d["instructions"] = exercise.instructions
    return d


def dict_to_exercise(data: dict[str, Any]) -> Exercise:
    """
    Convert dict to Exercise.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    difficulty = str(data.get("difficulty", "beginner")).lower()
    if difficulty not in DIFFICULTIES:
        raise ValidationError(f"Invalid difficulty: {difficulty!r}")

    return _build(
        lambda: Exercise(
            id=str(data["id"]),
            name=str(data["name"]),
            muscle_group=str(data["muscle_group"]),
            secondary_muscles=[str(m) for m in data.get("secondary_muscles") or []],
            equipment_required=[str(t) for t in data.get("equipment_required") or []],
            is_compound=bool(data.get("is_compound", False)),
            difficulty=difficulty,  # type: ignore[arg-type]
            tempo=str(data.get("tempo") or "3-0-1-0"),
            alternatives=[str(a) for a in data.get("alternatives") or []],
            instructions=str(data.get("instructions") or ""),
        ),
        "exercise",
    )


def equipment_to_dict(equipment: Equipment) -> dict[str, Any]:
    return {
        "id": equipment.id,
        "type": equipment.type.value,
        "min_weight": equipment.min_weight,
        "max_weight": equipment.max_weight,
        "is_available": equipment.is_available,
        "notes": equipment.notes,
    }


def dict_to_equipment(data: dict[str, Any]) -> Equipment:
    """Convert dict to Equipment.  Unknown types become OTHER."""
    return _build(
        lambda: Equipment(
            id=str(data["id"]),
            type=EquipmentType.from_value(str(data.get("type", "other"))),
            min_weight=float(data["min_weight"]) if data.get("min_weight") is not None else None,
            max_weight=float(data["max_weight"]) if data.get("max_weight") is not None else None,
            is_available=bool(data.get("is_available", True)),
            notes=data.get("notes"),
        ),
        "equipment",
    )


# ---------------------------------------------------------------------------
# Programs
# ---------------------------------------------------------------------------


def planned_exercise_to_dict(planned: PlannedExercise) -> dict[str, Any]:
    return {
        "exercise": exercise_to_dict(planned.exercise),
        "sets": planned.sets,
        "reps": planned.reps,
        "weight": planned.weight,
        "rest_time": planned.rest_time,
        "target_rpe": planned.target_rpe,
        "previous_weight": planned.previous_weight,
        "previous_rpe": planned.previous_rpe,
    }


def dict_to_planned_exercise(data: dict[str, Any]) -> PlannedExercise:
    """
    Convert dict to PlannedExercise.

    Raises:
        ValidationError: If the prescription is invalid
    """
    validate_non_negative(data.get("weight", 0), "weight")
    validate_rpe(data.get("target_rpe", 8.0), "target_rpe")
    exercise = dict_to_exercise(data.get("exercise") or {})
    return _build(
        lambda: PlannedExercise(
            exercise=exercise,
            sets=int(data["sets"]),
            reps=int(data["reps"]),
            weight=float(data["weight"]),
            rest_time=int(data.get("rest_time", 90)),
            target_rpe=float(data.get("target_rpe", 8.0)),
            previous_weight=(
                float(data["previous_weight"]) if data.get("previous_weight") is not None else None
            ),
            previous_rpe=float(data["previous_rpe"]) if data.get("previous_rpe") is not None else None,
        ),
        "planned exercise",
    )


def planned_workout_to_dict(workout: PlannedWorkout) -> dict[str, Any]:
    return {
        "id": workout.id,
        "workout_type": workout.workout_type,
        "name": workout.name,
        "exercises": [planned_exercise_to_dict(pe) for pe in workout.exercises],
        "estimated_duration": workout.estimated_duration,
        "required_equipment": list(workout.required_equipment),
        "completed_at": format_timestamp(workout.completed_at),
    }


def dict_to_planned_workout(data: dict[str, Any]) -> PlannedWorkout:
    """
    Convert dict to PlannedWorkout.

    Raises:
        ValidationError: If data is invalid
    """
    validate_workout_type(data.get("workout_type", ""))
    exercises = [dict_to_planned_exercise(pe) for pe in data.get("exercises") or []]
    completed_at = parse_timestamp(data.get("completed_at"), "completed_at")
    return _build(
        lambda: PlannedWorkout(
            id=str(data["id"]),
            workout_type=data["workout_type"],
            name=str(data.get("name", "")),
            exercises=exercises,
            estimated_duration=int(data.get("estimated_duration", 45)),
            required_equipment=[str(t) for t in data.get("required_equipment") or []],
            completed_at=completed_at,
        ),
        "workout",
    )


def weekly_program_to_dict(program: WeeklyProgram) -> dict[str, Any]:
    return {
        "id": program.id,
        "user_id": program.user_id,
        "week_number": program.week_number,
        "generated_date": format_timestamp(program.generated_date),
        "workouts": [planned_workout_to_dict(w) for w in program.workouts],
        "progression_notes": program.progression_notes,
        "is_active": program.is_active,
    }


def dict_to_weekly_program(data: dict[str, Any]) -> WeeklyProgram:
    """
    Convert dict to WeeklyProgram.

    Raises:
        ValidationError: If data is invalid
    """
    generated = _required_timestamp(data, "generated_date")
    workouts = [dict_to_planned_workout(w) for w in data.get("workouts") or []]
    return _build(
        lambda: WeeklyProgram(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            week_number=int(data["week_number"]),
            generated_date=generated,
            workouts=workouts,
            progression_notes=str(data.get("progression_notes", "")),
            is_active=bool(data.get("is_active", False)),
        ),
        "program",
    )


# ---------------------------------------------------------------------------
# Sessions
# ---------------------------------------------------------------------------


def workout_set_to_dict(workout_set: WorkoutSet) -> dict[str, Any]:
    d: dict[str, Any] = {
        "id": workout_set.id,
        "session_id": workout_set.session_id,
        "exercise_id": workout_set.exercise_id,
        "exercise_name": workout_set.exercise_name,
        "set_number": workout_set.set_number,
        "target_reps": workout_set.target_reps,
        "actual_reps": workout_set.actual_reps,
        "target_weight": workout_set.target_weight,
        "actual_weight": workout_set.actual_weight,
        "rpe": workout_set.rpe,
        "rest_time_sec": workout_set.rest_time_sec,
        "timestamp": format_timestamp(workout_set.timestamp),
    }
    if workout_set.notes is not None:
        d["notes"] = workout_set.notes
    return d


def dict_to_workout_set(data: dict[str, Any]) -> WorkoutSet:
    """
    Convert dict to WorkoutSet.

    Raises:
        ValidationError: If data is invalid
    """
    validate_non_negative(data.get("actual_reps", 0), "actual_reps")
    validate_non_negative(data.get("actual_weight", 0), "actual_weight")
    validate_rpe(data.get("rpe", 0))
    timestamp = _required_timestamp(data, "timestamp")
    return _build(
        lambda: WorkoutSet(
            id=str(data["id"]),
            session_id=str(data["session_id"]),
            exercise_id=str(data["exercise_id"]),
            exercise_name=str(data.get("exercise_name", data["exercise_id"])),
            set_number=int(data["set_number"]),
            target_reps=int(data.get("target_reps", 0)),
            actual_reps=int(data["actual_reps"]),
            target_weight=float(data.get("target_weight", 0.0)),
            actual_weight=float(data["actual_weight"]),
            rpe=int(data["rpe"]),
            rest_time_sec=int(data.get("rest_time_sec", 0)),
            timestamp=timestamp,
            notes=data.get("notes"),
        ),
        "set",
    )


def workout_session_to_dict(session: WorkoutSession) -> dict[str, Any]:
    return {
        "id": session.id,
        "user_id": session.user_id,
        "workout_type": session.workout_type,
        "week_number": session.week_number,
        "workout_id": session.workout_id,
        "sets": [workout_set_to_dict(s) for s in session.sets],
        "start_time": format_timestamp(session.start_time),
        "end_time": format_timestamp(session.end_time),
        "total_volume_kg": session.total_volume_kg,
        "rpe_average": session.rpe_average,
        "notes": session.notes,
        "completed": session.completed,
    }


def dict_to_workout_session(data: dict[str, Any]) -> WorkoutSession:
    """
    Convert dict to WorkoutSession.

    Raises:
        ValidationError: If data is invalid
    """
    validate_workout_type(data.get("workout_type", ""))
    start = _required_timestamp(data, "start_time")
    end = parse_timestamp(data.get("end_time"), "end_time")
    sets = [dict_to_workout_set(s) for s in data.get("sets") or []]
    return _build(
        lambda: WorkoutSession(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            workout_type=data["workout_type"],
            week_number=int(data["week_number"]),
            start_time=start,
            workout_id=data.get("workout_id"),
            sets=sets,
            end_time=end,
            total_volume_kg=float(data.get("total_volume_kg", 0.0)),
            rpe_average=float(data["rpe_average"]) if data.get("rpe_average") is not None else None,
            notes=data.get("notes"),
            completed=bool(data.get("completed", False)),
        ),
        "session",
    )


def session_to_json_line(session: WorkoutSession) -> str:
    """Serialize a session to a single JSON line (no trailing newline)."""
    return json.dumps(workout_session_to_dict(session), separators=(",", ":"))


def json_line_to_session(line: str) -> WorkoutSession:
    """
    Deserialize a JSON line to a WorkoutSession.

    Raises:
        ValidationError: If JSON is invalid or data validation fails
    """
    try:
        data = json.loads(line.strip())
    except json.JSONDecodeError as e:
        raise ValidationError(f"Invalid JSON: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Session line must be a JSON object")
    return dict_to_workout_session(data)


# ---------------------------------------------------------------------------
# Profile / metrics
# ---------------------------------------------------------------------------


def user_profile_to_dict(profile: UserProfile) -> dict[str, Any]:
    return {
        "id": profile.id,
        "name": profile.name,
        "age": profile.age,
        "height_cm": profile.height_cm,
        "gender": profile.gender,
        "primary_goal": profile.primary_goal,
        "activity_level": profile.activity_level,
        "target_muscles": list(profile.target_muscles),
        "created_at": format_timestamp(profile.created_at),
        "updated_at": format_timestamp(profile.updated_at),
    }


def dict_to_user_profile(data: dict[str, Any]) -> UserProfile:
    """
    Convert dict to UserProfile.

    Raises:
        ValidationError: If data is invalid
    """
    created = parse_timestamp(data.get("created_at"), "created_at") or datetime.now()
    updated = parse_timestamp(data.get("updated_at"), "updated_at") or created
    return _build(
        lambda: UserProfile(
            id=str(data["id"]),
            name=str(data.get("name", "")),
            age=int(data["age"]) if data.get("age") is not None else None,
            height_cm=float(data["height_cm"]) if data.get("height_cm") is not None else None,
            gender=data.get("gender"),
            primary_goal=str(data.get("primary_goal", "strength")),
            activity_level=str(data.get("activity_level", "moderate")),
            target_muscles=[str(m) for m in data.get("target_muscles") or []],
            created_at=created,
            updated_at=updated,
        ),
        "profile",
    )


def body_metrics_to_dict(metrics: BodyMetrics) -> dict[str, Any]:
    return {
        "id": metrics.id,
        "user_id": metrics.user_id,
        "weight_kg": metrics.weight_kg,
        "body_fat_pct": metrics.body_fat_pct,
        "timestamp": format_timestamp(metrics.timestamp),
    }


def dict_to_body_metrics(data: dict[str, Any]) -> BodyMetrics:
    timestamp = _required_timestamp(data, "timestamp")
    return _build(
        lambda: BodyMetrics(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            weight_kg=float(data["weight_kg"]),
            timestamp=timestamp,
            body_fat_pct=float(data["body_fat_pct"]) if data.get("body_fat_pct") is not None else None,
        ),
        "body metrics",
    )


def parse_equipment_list(text: str) -> list[EquipmentType]:
    """
    Parse a comma-separated equipment list typed by the user.

    Example:
        "dumbbells, bench, pull-up bar" -> [DUMBBELLS, BENCH, PULLUP_BAR]

    Raises:
        ValidationError: If an item is not a known equipment type
    """
    types: list[EquipmentType] = []
    for raw in text.split(","):
        item = raw.strip()
        if not item:
            continue
        parsed = EquipmentType.from_value(item)
        if parsed == EquipmentType.OTHER and item.lower() != "other":
            valid = ", ".join(t.value for t in EquipmentType)
            raise ValidationError(f"Unknown equipment: {item!r}. Valid: {valid}")
        if parsed not in types:
            types.append(parsed)
    return types
