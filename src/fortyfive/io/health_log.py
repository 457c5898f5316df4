"""
Best-effort workout log.

Appends one summary line per finished session to ``health_log.jsonl``,
standing in for an external health/activity service.  The session
controller swallows any error raised here.
"""

import json
from pathlib import Path

from ..core.metrics import estimate_calories
from ..core.models import WorkoutSession
from .serializers import format_timestamp


class JsonlHealthLog:
    """Session sink that writes workout summaries as JSON lines."""

    def __init__(self, data_dir: str | Path):
        self.path = Path(data_dir) / "health_log.jsonl"

    def record_session(self, session: WorkoutSession, workout_name: str) -> None:
        minutes = session.duration_minutes or 0
        entry = {
            "session_id": session.id,
            "workout_name": workout_name,
            "start": format_timestamp(session.start_time),
            "end": format_timestamp(session.end_time),
            "duration_minutes": minutes,
            "estimated_calories": estimate_calories(minutes),
            "total_volume_kg": session.total_volume_kg,
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, separators=(",", ":")) + "\n")

    def read_entries(self) -> list[dict]:
        if not self.path.exists():
            return []
        with open(self.path, "r", encoding="utf-8") as f:
            return [json.loads(line) for line in f if line.strip()]

    def __repr__(self) -> str:
        return f"JsonlHealthLog({str(self.path)!r})"
