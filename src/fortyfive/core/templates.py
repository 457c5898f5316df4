"""
Workout A/B templates.

Each template is an ordered list of slots.  A slot names the muscle group,
whether a compound movement is required, an optional secondary-muscle focus
(e.g. "Triceps" within Arms) and the set/rep prescription.  The assembler in
planner.py fills every slot from the available exercise pool.
"""

from dataclasses import dataclass
from typing import Literal

SlotType = Literal["compound", "accessory", "isolation", "core"]


@dataclass(frozen=True)
class WorkoutSlot:
    """One exercise position in a workout template."""

    slot_type: SlotType
    muscle_group: str
    sets: int
    reps: int
    is_compound: bool | None = None
    secondary_focus: str | None = None
    notes: str = ""


WORKOUT_A_NAME = "Push (Chest/Shoulders/Triceps)"
WORKOUT_B_NAME = "Pull (Back/Biceps)"
WORKOUT_B_LEGS_NAME = "Pull + Legs (Back/Biceps/Legs)"

_CORE_SLOT = WorkoutSlot("core", "Abs", 3, 20, notes="Core stability work")

WORKOUT_A_SLOTS: tuple[WorkoutSlot, ...] = (
    WorkoutSlot("compound", "Chest", 4, 10, is_compound=True,
                notes="Primary compound movement, focus on progressive overload"),
    WorkoutSlot("accessory", "Chest", 3, 12, notes="Secondary chest exercise for volume"),
    WorkoutSlot("compound", "Shoulders", 3, 10, is_compound=True, notes="Overhead pressing movement"),
    WorkoutSlot("isolation", "Shoulders", 3, 12, notes="Lateral or front raises"),
    WorkoutSlot("isolation", "Arms", 3, 12, secondary_focus="Triceps",
                notes="Triceps isolation to finish push muscles"),
    _CORE_SLOT,
)

WORKOUT_B_SLOTS: tuple[WorkoutSlot, ...] = (
    WorkoutSlot("compound", "Back", 4, 10, is_compound=True,
                notes="Primary pulling movement (rows or pull-ups)"),
    WorkoutSlot("accessory", "Back", 3, 12, notes="Secondary back exercise for width or thickness"),
    WorkoutSlot("isolation", "Arms", 3, 12, secondary_focus="Biceps", notes="Biceps isolation"),
)

LEG_SLOTS: tuple[WorkoutSlot, ...] = (
    WorkoutSlot("compound", "Legs", 3, 12, is_compound=True,
                notes="Compound leg movement (squats or deadlifts)"),
    WorkoutSlot("accessory", "Legs", 3, 15, notes="Leg accessory (lunges, split squats)"),
)


def workout_a_slots() -> list[WorkoutSlot]:
    return list(WORKOUT_A_SLOTS)


def workout_b_slots(include_legs: bool = False) -> list[WorkoutSlot]:
    """Pull slots, optional leg slots, then core."""
    slots = list(WORKOUT_B_SLOTS)
    if include_legs:
        slots.extend(LEG_SLOTS)
    slots.append(_CORE_SLOT)
    return slots


WEEKLY_SPLIT: tuple[dict[str, str], ...] = (
    {"day": "Monday", "workout": "A", "focus": "Chest/Shoulders/Triceps", "type": "Push"},
    {"day": "Wednesday", "workout": "B", "focus": "Back/Biceps", "type": "Pull"},
    {"day": "Friday", "workout": "A", "focus": "Chest/Shoulders/Triceps", "type": "Push"},
    {"day": "Saturday", "workout": "B", "focus": "Back/Biceps/Legs", "type": "Pull + Legs"},
)


def get_weekly_split() -> list[dict[str, str]]:
    """Suggested training days for the four workouts of a week."""
    return [dict(day) for day in WEEKLY_SPLIT]


def validate_workout_structure(muscle_groups: list[str], workout_type: str) -> bool:
    """
    Check that a workout covers its template's key muscle groups.

    Workout A must hit Chest and Shoulders, workout B must hit Back.
    """
    if workout_type == "A":
        return "Chest" in muscle_groups and "Shoulders" in muscle_groups
    if workout_type == "B":
        return "Back" in muscle_groups
    return False
