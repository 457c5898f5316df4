"""
JSON storage for the user's profile, equipment, body metrics and recovery.

Everything lives in one ``profile.json``:

    {
      "profile":   {...},
      "equipment": [{...}, ...],
      "metrics":   [{...}, ...],        # append-only, oldest first
      "recovery":  {"score": 72, "recorded_at": "..."}
    }
"""

import json
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from ..core.errors import PersistenceError
from ..core.models import BodyMetrics, Equipment, UserProfile
from .serializers import (
    ValidationError,
    body_metrics_to_dict,
    dict_to_body_metrics,
    dict_to_equipment,
    dict_to_user_profile,
    equipment_to_dict,
    format_timestamp,
    parse_timestamp,
    user_profile_to_dict,
)

# A stored recovery score older than this is treated as unknown
RECOVERY_MAX_AGE = timedelta(hours=24)


class ProfileStore:
    """
    Profile, equipment, metrics and recovery provider backed by profile.json.
    """

    def __init__(self, data_dir: str | Path):
        self.data_dir = Path(data_dir)
        self.profile_path = self.data_dir / "profile.json"

    def exists(self) -> bool:
        return self.profile_path.exists()

    def _read(self) -> dict[str, Any]:
        if not self.profile_path.exists():
            return {}
        try:
            with open(self.profile_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.profile_path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.profile_path}: {e}") from e
        return data if isinstance(data, dict) else {}

    def _write(self, data: dict[str, Any]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.profile_path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.profile_path}: {e}") from e

    def _update(self, key: str, value: Any) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    # Profile ---------------------------------------------------------

    def load_profile(self) -> UserProfile | None:
        """
        Load the user profile.

        Returns:
            UserProfile if stored, None otherwise

        Raises:
            ValidationError: If the stored profile is malformed
        """
        raw = self._read().get("profile")
        return dict_to_user_profile(raw) if raw else None

    def save_profile(self, profile: UserProfile) -> None:
        self._update("profile", user_profile_to_dict(profile))

    # Equipment -------------------------------------------------------

    def load_equipment(self) -> list[Equipment]:
        return [dict_to_equipment(e) for e in self._read().get("equipment") or []]

    def save_equipment(self, equipment: list[Equipment]) -> None:
        self._update("equipment", [equipment_to_dict(e) for e in equipment])

    # Body metrics ----------------------------------------------------

    def load_metrics(self) -> list[BodyMetrics]:
        metrics = [dict_to_body_metrics(m) for m in self._read().get("metrics") or []]
        metrics.sort(key=lambda m: m.timestamp)
        return metrics

    def latest_metrics(self) -> BodyMetrics | None:
        metrics = self.load_metrics()
        return metrics[-1] if metrics else None

    def add_metrics(self, metrics: BodyMetrics) -> None:
        data = self._read()
        data.setdefault("metrics", []).append(body_metrics_to_dict(metrics))
        self._write(data)

    def average_weight(self, days: int = 7) -> float | None:
        """Mean bodyweight over the last ``days`` days of measurements."""
        metrics = self.load_metrics()
        if not metrics:
            return None
        cutoff = metrics[-1].timestamp - timedelta(days=days)
        recent = [m.weight_kg for m in metrics if m.timestamp >= cutoff]
        return sum(recent) / len(recent)

    # Recovery --------------------------------------------------------

    def save_recovery_score(self, score: int, recorded_at: datetime | None = None) -> None:
        if not 0 <= score <= 100:
            raise ValidationError(f"Recovery score must be within 0-100, got {score}")
        self._update(
            "recovery",
            {"score": int(score), "recorded_at": format_timestamp(recorded_at or datetime.now())},
        )

    def current_recovery_score(self, now: datetime | None = None) -> int | None:
        """Stored score if it was recorded within the last 24 hours."""
        raw = self._read().get("recovery")
        if not raw or raw.get("score") is None:
            return None
        recorded = parse_timestamp(raw.get("recorded_at"), "recorded_at")
        if recorded is None or (now or datetime.now()) - recorded > RECOVERY_MAX_AGE:
            return None
        return int(raw["score"])
