"""
Configuration constants for the program generator and session controller.

All adjustable parameters are centralized here.  The values can be
overridden per user through fortyfive.yaml (see engine/config_loader.py),
which produces a ProgramRules instance.
"""

from dataclasses import dataclass, field
from typing import Final

# =============================================================================
# PROGRESSIVE OVERLOAD
# =============================================================================

DEFAULT_AVG_RPE: Final[float] = 8.0  # Assumed when no previous RPE was recorded
EASY_RPE_THRESHOLD: Final[float] = 7.0  # avg RPE <= this -> add weight
HARD_RPE_THRESHOLD: Final[float] = 9.0  # avg RPE >= this -> reduce weight
WEIGHT_INCREMENT_KG: Final[float] = 2.0
HARD_REDUCTION_FACTOR: Final[float] = 0.95
WEIGHT_FLOOR_KG: Final[float] = 0.0

# =============================================================================
# RECOVERY ADJUSTMENT
# =============================================================================

RECOVERY_LOW_THRESHOLD: Final[int] = 50  # score < this -> heavy reduction + one set fewer
RECOVERY_MODERATE_THRESHOLD: Final[int] = 70  # score < this -> light reduction
RECOVERY_LOW_FACTOR: Final[float] = 0.8
RECOVERY_MODERATE_FACTOR: Final[float] = 0.9
DEFAULT_RECOVERY_SCORE: Final[int] = 70  # Returned by the scorer when no data

# =============================================================================
# BASE WEIGHTS (kg, no history): muscle group -> (compound, isolation)
# =============================================================================

BASE_WEIGHTS: Final[dict[str, tuple[float, float]]] = {
    "Chest": (20.0, 15.0),
    "Back": (20.0, 15.0),
    "Shoulders": (15.0, 10.0),
    "Arms": (10.0, 10.0),
    "Legs": (25.0, 20.0),
}
DEFAULT_BASE_WEIGHT: Final[float] = 10.0

# =============================================================================
# PRESCRIPTION
# =============================================================================

DEFAULT_TARGET_RPE: Final[float] = 8.0
DEFAULT_REST_SECONDS: Final[int] = 90
MIN_REST_SECONDS: Final[int] = 30
MAX_REST_SECONDS: Final[int] = 300

# Display rest times by slot type (seconds)
REST_BY_SLOT_TYPE: Final[dict[str, int]] = {
    "compound": 120,
    "accessory": 90,
    "isolation": 60,
    "core": 45,
}

WORKOUT_DURATION_MINUTES: Final[int] = 45
WORKOUT_WITH_LEGS_DURATION_MINUTES: Final[int] = 60

# =============================================================================
# DELOAD
# =============================================================================

DELOAD_RPE_THRESHOLD: Final[float] = 8.5  # mean session RPE above this -> deload
DELOAD_MIN_SESSIONS: Final[int] = 2
DELOAD_WEIGHT_FACTOR: Final[float] = 0.9

# =============================================================================
# SESSION
# =============================================================================

KCAL_PER_MINUTE: Final[float] = 5.0  # Rough estimate for resistance training
DUMBBELL_MIN_KG: Final[float] = 2.0
DUMBBELL_MAX_KG: Final[float] = 40.0

# Rest policies understood by the workout assembler
REST_POLICY_FIXED: Final[str] = "fixed"
REST_POLICY_BY_SLOT_TYPE: Final[str] = "by_slot_type"


@dataclass(frozen=True)
class ProgramRules:
    """
    Tunable rule set used by the generator.

    Defaults mirror the module constants; ``load_program_rules`` builds a
    customised instance from YAML.
    """

    default_avg_rpe: float = DEFAULT_AVG_RPE
    easy_rpe_threshold: float = EASY_RPE_THRESHOLD
    hard_rpe_threshold: float = HARD_RPE_THRESHOLD
    weight_increment_kg: float = WEIGHT_INCREMENT_KG
    hard_reduction_factor: float = HARD_REDUCTION_FACTOR
    weight_floor_kg: float = WEIGHT_FLOOR_KG
    recovery_low_threshold: int = RECOVERY_LOW_THRESHOLD
    recovery_moderate_threshold: int = RECOVERY_MODERATE_THRESHOLD
    recovery_low_factor: float = RECOVERY_LOW_FACTOR
    recovery_moderate_factor: float = RECOVERY_MODERATE_FACTOR
    base_weights: dict[str, tuple[float, float]] = field(
        default_factory=lambda: dict(BASE_WEIGHTS)
    )
    default_base_weight: float = DEFAULT_BASE_WEIGHT
    target_rpe: float = DEFAULT_TARGET_RPE
    rest_seconds: int = DEFAULT_REST_SECONDS
    rest_policy: str = REST_POLICY_FIXED
    rest_by_slot_type: dict[str, int] = field(
        default_factory=lambda: dict(REST_BY_SLOT_TYPE)
    )
    deload_rpe_threshold: float = DELOAD_RPE_THRESHOLD
    deload_min_sessions: int = DELOAD_MIN_SESSIONS
    deload_weight_factor: float = DELOAD_WEIGHT_FACTOR

    def __post_init__(self) -> None:
        """Validate rule values."""
        if self.weight_floor_kg < 0:
            raise ValueError("weight_floor_kg must be non-negative")
        if self.easy_rpe_threshold >= self.hard_rpe_threshold:
            raise ValueError("easy_rpe_threshold must be below hard_rpe_threshold")
        if self.recovery_low_threshold > self.recovery_moderate_threshold:
            raise ValueError("recovery_low_threshold must not exceed recovery_moderate_threshold")
        if not MIN_REST_SECONDS <= self.rest_seconds <= MAX_REST_SECONDS:
            raise ValueError(
                f"rest_seconds must be within {MIN_REST_SECONDS}-{MAX_REST_SECONDS}"
            )
        if self.rest_policy not in (REST_POLICY_FIXED, REST_POLICY_BY_SLOT_TYPE):
            raise ValueError(f"Invalid rest_policy: {self.rest_policy!r}")

    def rest_for_slot(self, slot_type: str) -> int:
        """Rest seconds for a template slot under the active rest policy."""
        if self.rest_policy == REST_POLICY_BY_SLOT_TYPE:
            return self.rest_by_slot_type.get(slot_type, self.rest_seconds)
        return self.rest_seconds


DEFAULT_RULES: Final[ProgramRules] = ProgramRules()
