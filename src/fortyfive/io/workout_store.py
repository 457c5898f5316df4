"""
File-backed storage for workout sessions and weekly programs.

Sessions live in ``sessions.jsonl`` (one JSON object per line); programs in
``programs.json`` (a JSON list).  Saves replace any existing record with the
same id, so re-saving a session after each set is idempotent.
"""

import json
from pathlib import Path

from ..core.errors import PersistenceError
from ..core.models import PlannedWorkout, WeeklyProgram, WorkoutSession, WorkoutSet
from .serializers import (
    ValidationError,
    dict_to_weekly_program,
    json_line_to_session,
    session_to_json_line,
    weekly_program_to_dict,
)


class JsonWorkoutStore:
    """
    Manages sessions and programs under one data directory.

    Missing files read as empty; they are created on the first write.
    OS-level failures are raised as PersistenceError, malformed content as
    ValidationError.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the store.

        Args:
            data_dir: Directory holding sessions.jsonl and programs.json
        """
        self.data_dir = Path(data_dir)
        self.sessions_path = self.data_dir / "sessions.jsonl"
        self.programs_path = self.data_dir / "programs.json"

    def exists(self) -> bool:
        """Check if any workout data has been written."""
        return self.sessions_path.exists() or self.programs_path.exists()

    def init(self) -> None:
        """Create the data directory and empty files if needed."""
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            if not self.sessions_path.exists():
                self.sessions_path.touch()
            if not self.programs_path.exists():
                self.programs_path.write_text("[]\n")
        except OSError as e:
            raise PersistenceError(f"Cannot initialise {self.data_dir}: {e}") from e

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def _load_sessions(self) -> list[WorkoutSession]:
        if not self.sessions_path.exists():
            return []

        sessions: list[WorkoutSession] = []
        try:
            with open(self.sessions_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        sessions.append(json_line_to_session(line))
                    except ValidationError as e:
                        raise ValidationError(
                            f"Error parsing line {line_num} in {self.sessions_path}: {e}"
                        ) from e
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.sessions_path}: {e}") from e
        return sessions

    def _write_sessions(self, sessions: list[WorkoutSession]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.sessions_path, "w", encoding="utf-8") as f:
                for session in sessions:
                    f.write(session_to_json_line(session) + "\n")
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.sessions_path}: {e}") from e

    def save_workout_session(self, session: WorkoutSession) -> None:
        """
        Insert or replace a session (keyed by id).

        Args:
            session: Session to save
        """
        sessions = self._load_sessions()
        for i, existing in enumerate(sessions):
            if existing.id == session.id:
                sessions[i] = session
                break
        else:
            sessions.append(session)
        self._write_sessions(sessions)

    def get_session(self, session_id: str) -> WorkoutSession | None:
        for session in self._load_sessions():
            if session.id == session_id:
                return session
        return None

    def get_sessions_by_week(self, user_id: str, week_number: int) -> list[WorkoutSession]:
        """Sessions of one training week, oldest first."""
        sessions = [
            s for s in self._load_sessions() if s.user_id == user_id and s.week_number == week_number
        ]
        sessions.sort(key=lambda s: s.start_time)
        return sessions

    def get_session_history(self, user_id: str, limit: int | None = None) -> list[WorkoutSession]:
        """
        All of a user's sessions, newest first.

        Args:
            user_id: Owner
            limit: Maximum number of sessions to return
        """
        sessions = [s for s in self._load_sessions() if s.user_id == user_id]
        sessions.sort(key=lambda s: s.start_time, reverse=True)
        return sessions[:limit] if limit is not None else sessions

    def get_sessions_by_type(self, user_id: str, workout_type: str) -> list[WorkoutSession]:
        return [s for s in self.get_session_history(user_id) if s.workout_type == workout_type]

    def get_completed_sessions(self, user_id: str) -> list[WorkoutSession]:
        return [s for s in self.get_session_history(user_id) if s.completed]

    def get_last_exercise_performance(self, user_id: str, exercise_id: str) -> WorkoutSet | None:
        """Most recent recorded set of an exercise, or None."""
        latest: WorkoutSet | None = None
        for session in self._load_sessions():
            if session.user_id != user_id:
                continue
            for s in session.sets:
                if s.exercise_id == exercise_id and (latest is None or s.timestamp > latest.timestamp):
                    latest = s
        return latest

    def get_total_volume(self, user_id: str) -> float:
        """Volume lifted across all completed sessions."""
        return sum(s.total_volume_kg for s in self.get_completed_sessions(user_id))

    def get_week_completion_count(self, user_id: str, week_number: int) -> int:
        return sum(1 for s in self.get_sessions_by_week(user_id, week_number) if s.completed)

    def delete_session(self, session_id: str) -> bool:
        """Remove a session; returns False if it did not exist."""
        sessions = self._load_sessions()
        kept = [s for s in sessions if s.id != session_id]
        if len(kept) == len(sessions):
            return False
        self._write_sessions(kept)
        return True

    # ------------------------------------------------------------------
    # Programs
    # ------------------------------------------------------------------

    def _load_programs(self) -> list[WeeklyProgram]:
        if not self.programs_path.exists():
            return []
        try:
            with open(self.programs_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Invalid JSON in {self.programs_path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Cannot read {self.programs_path}: {e}") from e
        if not isinstance(data, list):
            raise ValidationError(f"{self.programs_path} must contain a JSON list")
        return [dict_to_weekly_program(p) for p in data]

    def _write_programs(self, programs: list[WeeklyProgram]) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with open(self.programs_path, "w", encoding="utf-8") as f:
                json.dump([weekly_program_to_dict(p) for p in programs], f, indent=2)
        except OSError as e:
            raise PersistenceError(f"Cannot write {self.programs_path}: {e}") from e

    def save_weekly_program(self, program: WeeklyProgram) -> None:
        """Insert or replace a program (keyed by id)."""
        programs = self._load_programs()
        for i, existing in enumerate(programs):
            if existing.id == program.id:
                programs[i] = program
                break
        else:
            programs.append(program)
        self._write_programs(programs)

    def update_program(self, program: WeeklyProgram) -> None:
        """
        Replace a stored program.

        Raises:
            PersistenceError: If no program with that id is stored
        """
        programs = self._load_programs()
        for i, existing in enumerate(programs):
            if existing.id == program.id:
                programs[i] = program
                self._write_programs(programs)
                return
        raise PersistenceError(f"Program {program.id} not found")

    def get_program_by_week(self, user_id: str, week_number: int) -> WeeklyProgram | None:
        """Newest program generated for the week (regeneration keeps older ones)."""
        matches = [
            p for p in self._load_programs() if p.user_id == user_id and p.week_number == week_number
        ]
        if not matches:
            return None
        return max(matches, key=lambda p: p.generated_date)

    def get_all_programs(self, user_id: str) -> list[WeeklyProgram]:
        """A user's programs, highest week first."""
        programs = [p for p in self._load_programs() if p.user_id == user_id]
        programs.sort(key=lambda p: (p.week_number, p.generated_date), reverse=True)
        return programs

    def set_active_program(self, user_id: str, program_id: str) -> None:
        """
        Make one program the user's only active program.

        Raises:
            PersistenceError: If the program is not stored
        """
        programs = self._load_programs()
        if not any(p.id == program_id and p.user_id == user_id for p in programs):
            raise PersistenceError(f"Program {program_id} not found")
        for p in programs:
            if p.user_id == user_id:
                p.is_active = p.id == program_id
        self._write_programs(programs)

    def get_active_program(self, user_id: str) -> WeeklyProgram | None:
        for p in self.get_all_programs(user_id):
            if p.is_active:
                return p
        return None

    def get_current_week_program(self, user_id: str) -> WeeklyProgram | None:
        """The active program, falling back to the newest one."""
        active = self.get_active_program(user_id)
        if active is not None:
            return active
        programs = self.get_all_programs(user_id)
        return programs[0] if programs else None

    def get_workout(self, workout_id: str) -> tuple[WeeklyProgram, PlannedWorkout] | None:
        """Find a workout by id across all programs."""
        for program in self._load_programs():
            workout = program.find_workout(workout_id)
            if workout is not None:
                return program, workout
        return None

    def delete_program(self, program_id: str) -> bool:
        programs = self._load_programs()
        kept = [p for p in programs if p.id != program_id]
        if len(kept) == len(programs):
            return False
        self._write_programs(kept)
        return True
