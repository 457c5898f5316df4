"""
Equipment-aware exercise filtering.

Catalog exercises list free-form equipment tags ("Adjustable bench",
"pull-up bar", "dumbbells").  A tag is normalized (lower-case, no spaces,
hyphens or underscores) and resolved through an alias table to one of the
EquipmentType values.  Bodyweight is always owned.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .config import DUMBBELL_MAX_KG, DUMBBELL_MIN_KG
from .models import BODYWEIGHT_TOKENS, Equipment, EquipmentType, Exercise

log = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Alias table: normalized tag -> equipment type
# ---------------------------------------------------------------------------

EQUIPMENT_ALIASES: dict[str, EquipmentType] = {
    "adjustablebench": EquipmentType.BENCH,
    "declinebench": EquipmentType.BENCH,
    "inclinebench": EquipmentType.BENCH,
    "flatbench": EquipmentType.BENCH,
    "pullupbar": EquipmentType.PULLUP_BAR,
    "chinupbar": EquipmentType.PULLUP_BAR,
    "dumbbell": EquipmentType.DUMBBELLS,
    "bands": EquipmentType.RESISTANCE_BANDS,
    "resistanceband": EquipmentType.RESISTANCE_BANDS,
    "kettlebells": EquipmentType.KETTLEBELL,
}


def normalize_tag(tag: str) -> str:
    """Lower-case and strip spaces, hyphens and underscores."""
    return tag.strip().lower().replace(" ", "").replace("-", "").replace("_", "")


def resolve_tag(tag: str) -> EquipmentType | None:
    """
    Map a catalog equipment tag to an EquipmentType.

    Returns:
        The matching type, or None for tags that name no known equipment
    """
    key = normalize_tag(tag)
    if key in EQUIPMENT_ALIASES:
        return EQUIPMENT_ALIASES[key]
    for member in EquipmentType:
        if normalize_tag(member.value) == key:
            return member
    return None


def owned_types(equipment: Iterable[Equipment]) -> set[EquipmentType]:
    """Types of owned-and-available equipment, always including bodyweight."""
    owned = {item.type for item in equipment if item.is_available}
    owned.add(EquipmentType.BODYWEIGHT)
    return owned


def is_exercise_available(exercise: Exercise, owned: set[EquipmentType]) -> bool:
    """
    True when the exercise can be done with the owned equipment.

    Bodyweight-only exercises always pass.  Otherwise every non-bodyweight
    tag must resolve to an owned type; unknown tags fail the check.
    """
    if exercise.is_bodyweight_only:
        return True
    for tag in exercise.equipment_required:
        if tag.strip().lower() in BODYWEIGHT_TOKENS:
            continue
        resolved = resolve_tag(tag)
        if resolved is None or resolved not in owned:
            return False
    return True


def available_exercises(
    catalog: Iterable[Exercise], equipment: Iterable[Equipment]
) -> list[Exercise]:
    """
    Filter the catalog down to exercises the user can perform.

    Pure: keeps catalog order, never raises for unmatched requirements.

    Args:
        catalog: All known exercises
        equipment: The user's equipment list

    Returns:
        Available exercises in catalog order
    """
    owned = owned_types(equipment)
    result: list[Exercise] = []
    for exercise in catalog:
        if is_exercise_available(exercise, owned):
            result.append(exercise)
        else:
            log.debug(
                "Excluding %s: requires %s", exercise.id, ", ".join(exercise.equipment_required)
            )
    return result


def default_equipment_range(equipment_type: EquipmentType) -> tuple[float | None, float | None]:
    """Typical adjustable range for newly added equipment (dumbbells 2-40 kg)."""
    if equipment_type == EquipmentType.DUMBBELLS:
        return DUMBBELL_MIN_KG, DUMBBELL_MAX_KG
    return None, None
