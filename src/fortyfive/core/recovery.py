"""
Daily recovery score (0-100).

    score = 0.4 x sleep + 0.4 x HRV + 0.2 x weight stability

The HRV component blends heart-rate variability (70%) with resting heart
rate (30%).  Weight stability compares today's weight with the recent
average; rapid change suggests overtraining or under-eating.  With no
measurements the score defaults to a moderate 70.
"""

from dataclasses import dataclass

from .config import DEFAULT_RECOVERY_SCORE

SLEEP_WEIGHT = 0.4
HRV_WEIGHT = 0.4
WEIGHT_STABILITY_WEIGHT = 0.2


@dataclass(frozen=True)
class RecoveryMetrics:
    """One night's recovery measurements."""

    sleep_hours: float
    hrv_ms: float
    resting_hr: float

    def __post_init__(self) -> None:
        if self.sleep_hours < 0:
            raise ValueError("sleep_hours must be non-negative")
        if self.hrv_ms < 0:
            raise ValueError("hrv_ms must be non-negative")
        if self.resting_hr <= 0:
            raise ValueError("resting_hr must be positive")


def sleep_score(sleep_hours: float) -> float:
    if sleep_hours >= 8.0:
        return 100.0
    if sleep_hours >= 7.0:
        return 85.0
    if sleep_hours >= 6.0:
        return 65.0
    if sleep_hours >= 5.0:
        return 45.0
    return 25.0


def hrv_score(hrv_ms: float, resting_hr: float) -> float:
    """HRV band score x 0.7 + resting HR band score x 0.3."""
    if hrv_ms >= 70:
        hrv = 100.0
    elif hrv_ms >= 50:
        hrv = 80.0
    elif hrv_ms >= 30:
        hrv = 60.0
    elif hrv_ms >= 20:
        hrv = 40.0
    else:
        hrv = 20.0

    if resting_hr <= 50:
        rhr = 100.0
    elif resting_hr <= 60:
        rhr = 85.0
    elif resting_hr <= 70:
        rhr = 70.0
    elif resting_hr <= 80:
        rhr = 55.0
    else:
        rhr = 40.0

    return hrv * 0.7 + rhr * 0.3


def weight_stability_score(current_weight: float | None, avg_weight: float | None) -> float:
    """Score by absolute % change from the average; 100 when unknown."""
    if current_weight is None or not avg_weight:
        return 100.0
    change = abs((current_weight - avg_weight) / avg_weight * 100)
    if change <= 0.5:
        return 100.0
    if change <= 1.0:
        return 90.0
    if change <= 2.0:
        return 75.0
    if change <= 3.0:
        return 55.0
    return 30.0


def calculate_recovery_score(
    metrics: RecoveryMetrics | None,
    current_weight: float | None = None,
    avg_weight: float | None = None,
) -> float:
    """
    Combine sleep, HRV and weight stability into a 0-100 score.

    Args:
        metrics: Last night's measurements; None gives the default score
        current_weight: Today's bodyweight in kg
        avg_weight: Recent average bodyweight in kg

    Returns:
        Recovery score clamped to 0-100
    """
    if metrics is None:
        return float(DEFAULT_RECOVERY_SCORE)
    total = (
        sleep_score(metrics.sleep_hours) * SLEEP_WEIGHT
        + hrv_score(metrics.hrv_ms, metrics.resting_hr) * HRV_WEIGHT
        + weight_stability_score(current_weight, avg_weight) * WEIGHT_STABILITY_WEIGHT
    )
    return max(0.0, min(100.0, total))


def recovery_status(score: float) -> str:
    if score >= 85:
        return "Excellent"
    if score >= 70:
        return "Good"
    if score >= 50:
        return "Moderate"
    return "Poor"


def workout_recommendation(score: float) -> str:
    """Advice for today's workout given the recovery score."""
    if score < 40:
        return "Critical recovery needed. Take a rest day or do light stretching/walking only."
    if score < 50:
        return "Low recovery detected. Consider a rest day or very light mobility work."
    if score < 60:
        return (
            "Below-average recovery. Reduce intensity by 20-30% and cut volume "
            "by 1 set per exercise."
        )
    if score < 70:
        return "Moderate recovery. Reduce intensity by 10-15% today and focus on technique."
    if score < 85:
        return "Good recovery. Proceed with planned workout at normal intensity."
    return "Excellent recovery! Perfect day for progressive overload, increase weight or reps!"


def should_warn_before_workout(score: float) -> bool:
    return score < 50
