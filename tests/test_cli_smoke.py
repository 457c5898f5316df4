"""
Smoke tests for the fortyfive CLI.

Tests basic functionality:
- App runs without errors
- Profile and data files are created
- A week is generated and shown
- A workout can be logged interactively
"""

import json
import tempfile
from pathlib import Path

import pytest
from typer.testing import CliRunner

from factories import InMemoryWorkoutStore, counter_ids, make_exercise, make_planned, make_workout

from fortyfive.cli.commands.workout import _record_set
from fortyfive.cli.main import app
from fortyfive.core.errors import SessionStateError
from fortyfive.core.session import ActiveSessionController


runner = CliRunner()


@pytest.fixture
def data_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def invoke(data_dir: Path, *args: str, input: str | None = None):
    return runner.invoke(app, ["--data-dir", str(data_dir), *args], input=input)


def init_profile(data_dir: Path, equipment: str = "dumbbells,bench"):
    result = invoke(data_dir, "init", "--name", "Sam", "--equipment", equipment, "--weight-kg", "80")
    assert result.exit_code == 0, result.output
    return result


class TestCLISmoke:
    """Basic smoke tests for CLI commands."""

    def test_app_help(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "workout" in result.output.lower()

    def test_init_creates_files(self, data_dir):
        result = init_profile(data_dir)
        assert "Profile saved" in result.output
        assert (data_dir / "profile.json").exists()
        assert (data_dir / "sessions.jsonl").exists()
        stored = json.loads((data_dir / "profile.json").read_text())
        assert stored["profile"]["name"] == "Sam"
        assert [e["type"] for e in stored["equipment"]] == ["dumbbells", "bench"]
        assert stored["metrics"][0]["weight_kg"] == 80.0

    def test_init_rejects_unknown_equipment(self, data_dir):
        result = invoke(data_dir, "init", "--equipment", "dumbbells,treadmill")
        assert result.exit_code == 1
        assert "Unknown equipment" in result.output

    def test_init_again_keeps_profile_id(self, data_dir):
        init_profile(data_dir)
        first = json.loads((data_dir / "profile.json").read_text())["profile"]["id"]
        result = invoke(data_dir, "init", "--name", "Sam", input="y\n")
        assert result.exit_code == 0
        assert json.loads((data_dir / "profile.json").read_text())["profile"]["id"] == first

    def test_commands_need_profile(self, data_dir):
        result = invoke(data_dir, "generate")
        assert result.exit_code == 1
        assert "fortyfive init" in result.output

    def test_generate_and_show(self, data_dir):
        init_profile(data_dir)

        result = invoke(data_dir, "generate")
        assert result.exit_code == 0, result.output
        assert "Week 1 program ready" in result.output

        programs = json.loads((data_dir / "programs.json").read_text())
        assert len(programs) == 1
        assert [w["workout_type"] for w in programs[0]["workouts"]] == ["A", "B", "A", "B"]
        assert programs[0]["is_active"] is True

        result = invoke(data_dir, "program")
        assert result.exit_code == 0
        assert "Week 1" in result.output
        assert "Suggested day: Monday" in result.output

        result = invoke(data_dir, "next")
        assert result.exit_code == 0
        assert "fortyfive workout -w 1" in result.output

    def test_generate_invalid_week(self, data_dir):
        init_profile(data_dir)
        result = invoke(data_dir, "generate", "--week", "0")
        assert result.exit_code == 1

    def test_program_before_generate(self, data_dir):
        init_profile(data_dir)
        result = invoke(data_dir, "program")
        assert result.exit_code == 1
        assert "fortyfive generate" in result.output

    def test_exercises_and_equipment(self, data_dir):
        init_profile(data_dir)

        result = invoke(data_dir, "exercises", "--muscle", "Legs")
        assert result.exit_code == 0
        assert "Legs" in result.output
        assert "Chest" not in result.output

        result = invoke(data_dir, "exercises", "zzz-no-match")
        assert "No exercises match" in result.output

        result = invoke(data_dir, "equipment", "--add", "pull-up bar")
        assert result.exit_code == 0
        assert "Equipment updated" in result.output
        stored = json.loads((data_dir / "profile.json").read_text())
        assert [e["type"] for e in stored["equipment"]] == ["dumbbells", "bench", "pullup_bar"]

    def test_recovery_score(self, data_dir):
        init_profile(data_dir)

        result = invoke(data_dir, "recovery", "--score", "45")
        assert result.exit_code == 0
        assert "Recovery score saved" in result.output
        assert "Recovery is low" in result.output

        result = invoke(data_dir, "recovery")
        assert "Recovery score: 45" in result.output

        result = invoke(data_dir, "recovery", "--sleep", "8")
        assert result.exit_code == 1

    def test_swap_and_deload(self, data_dir):
        init_profile(data_dir)
        invoke(data_dir, "generate")

        result = invoke(data_dir, "swap", "-w", "1", "-x", "1")
        assert result.exit_code == 0, result.output
        assert "Swap with" in result.output

        result = invoke(data_dir, "swap", "-w", "1", "-x", "1", "--to", "push_up")
        assert result.exit_code == 0, result.output
        assert "Replaced" in result.output
        programs = json.loads((data_dir / "programs.json").read_text())
        assert programs[0]["workouts"][0]["exercises"][0]["exercise"]["id"] == "push_up"

        result = invoke(data_dir, "swap", "-w", "1", "-x", "1", "--to", "db_goblet_squat")
        assert result.exit_code == 1

        result = invoke(data_dir, "deload")
        assert result.exit_code == 0
        assert "No deload needed" in result.output

    def test_workout_logs_and_finishes(self, data_dir):
        init_profile(data_dir)
        invoke(data_dir, "generate")

        # first set as planned, end the rest, quit, confirm finishing
        result = invoke(data_dir, "workout", "-w", "1", input="\n\nq\ny\n")
        assert result.exit_code == 0, result.output
        assert "Workout complete" in result.output

        lines = [l for l in (data_dir / "sessions.jsonl").read_text().splitlines() if l.strip()]
        assert len(lines) == 1
        session = json.loads(lines[0])
        assert session["completed"] is True
        assert len(session["sets"]) == 1
        assert session["sets"][0]["exercise_id"] == "db_bench_press"
        assert session["sets"][0]["rpe"] == 8

        programs = json.loads((data_dir / "programs.json").read_text())
        assert programs[0]["workouts"][0]["completed_at"] is not None
        assert (data_dir / "health_log.jsonl").exists()

        result = invoke(data_dir, "history")
        assert result.exit_code == 0
        assert "Workout History" in result.output

    def test_workout_quit_and_resume(self, data_dir):
        init_profile(data_dir)
        invoke(data_dir, "generate")

        result = invoke(data_dir, "workout", "-w", "1", input="\n\nq\nn\n")
        assert result.exit_code == 0, result.output
        assert "Resume it later" in result.output

        # resume, log the second set, end rest, quit and finish
        result = invoke(data_dir, "workout", "-w", "1", "--resume", input="\n\nq\ny\n")
        assert result.exit_code == 0, result.output
        assert "Resuming session with 1 sets recorded" in result.output

        lines = [l for l in (data_dir / "sessions.jsonl").read_text().splitlines() if l.strip()]
        assert len(lines) == 1
        session = json.loads(lines[0])
        assert [s["set_number"] for s in session["sets"]] == [1, 2]
        assert session["completed"] is True


class TestRecordSetInput:
    def _controller(self):
        workout = make_workout(make_planned(make_exercise("press"), sets=1, reps=10, weight=20.0))
        controller = ActiveSessionController(InMemoryWorkoutStore(), id_factory=counter_ids("x"))
        controller.start(workout, "user-1", 1)
        return controller

    def test_blank_input_uses_prescription(self):
        controller = self._controller()
        _record_set(controller, "")
        recorded = controller.session.sets[0]
        assert (recorded.actual_reps, recorded.actual_weight, recorded.rpe) == (10, 20.0, 8)

    def test_set_after_last_exercise_is_rejected(self):
        controller = self._controller()
        controller.skip_exercise()
        assert controller.is_complete
        with pytest.raises(SessionStateError):
            _record_set(controller, "10 20 8")
