"""
Serializers, file stores, catalog loading and YAML configuration.
"""

import json
import tempfile
import warnings
from datetime import timedelta
from pathlib import Path

import pytest

from factories import (
    T0,
    counter_ids,
    full_catalog,
    make_equipment,
    make_exercise,
    make_planned,
    make_profile,
    make_session,
    make_set,
    make_workout,
)

from fortyfive.core.config import DEFAULT_RULES
from fortyfive.core.engine.config_loader import load_program_rules, rules_from_config
from fortyfive.core.errors import PersistenceError
from fortyfive.core.models import BodyMetrics, EquipmentType
from fortyfive.core.planner import generate_week
from fortyfive.io.catalog import YamlExerciseCatalog, load_catalog
from fortyfive.io.health_log import JsonlHealthLog
from fortyfive.io.profile_store import ProfileStore
from fortyfive.io.serializers import (
    ValidationError,
    dict_to_planned_workout,
    dict_to_weekly_program,
    dict_to_workout_session,
    json_line_to_session,
    parse_equipment_list,
    planned_workout_to_dict,
    weekly_program_to_dict,
    workout_session_to_dict,
)
from fortyfive.io.workout_store import JsonWorkoutStore


@pytest.fixture
def data_dir():
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


def _program(week=1, **kwargs):
    return generate_week(
        week,
        make_profile(),
        make_equipment(EquipmentType.DUMBBELLS, EquipmentType.BENCH),
        full_catalog(),
        now=T0 + timedelta(days=7 * (week - 1)),
        id_factory=counter_ids(f"w{week}"),
        **kwargs,
    )


class TestSerializers:
    def test_planned_workout_round_trip(self):
        workout = make_workout(
            make_planned(make_exercise("press", "Chest", True, secondary=("Triceps",)), weight=22.5),
            make_planned(make_exercise("plank", "Abs", equipment=()), weight=0.0),
        )
        workout.completed_at = T0
        data = json.loads(json.dumps(planned_workout_to_dict(workout)))
        assert dict_to_planned_workout(data) == workout

    def test_weekly_program_round_trip(self):
        program = _program()
        data = json.loads(json.dumps(weekly_program_to_dict(program)))
        assert dict_to_weekly_program(data) == program

    def test_session_round_trip(self):
        session = make_session("s1", [make_set("press", 8), make_set("press", 9, set_number=2)])
        data = json.loads(json.dumps(workout_session_to_dict(session)))
        assert dict_to_workout_session(data) == session

    def test_invalid_workout_type(self):
        data = planned_workout_to_dict(make_workout())
        data["workout_type"] = "C"
        with pytest.raises(ValidationError):
            dict_to_planned_workout(data)

    def test_invalid_rpe_in_set(self):
        data = workout_session_to_dict(make_session("s1", [make_set("press", 8)]))
        data["sets"][0]["rpe"] = 12
        with pytest.raises(ValidationError):
            dict_to_workout_session(data)

    def test_bad_json_line(self):
        with pytest.raises(ValidationError):
            json_line_to_session("{not json")

    def test_missing_timestamp(self):
        data = weekly_program_to_dict(_program())
        del data["generated_date"]
        with pytest.raises(ValidationError):
            dict_to_weekly_program(data)

    def test_parse_equipment_list(self):
        assert parse_equipment_list("dumbbells, Pull-up bar,bench,dumbbells") == [
            EquipmentType.DUMBBELLS,
            EquipmentType.PULLUP_BAR,
            EquipmentType.BENCH,
        ]
        assert parse_equipment_list("") == []
        with pytest.raises(ValidationError):
            parse_equipment_list("treadmill")


class TestJsonWorkoutStore:
    def test_missing_files_read_empty(self, data_dir):
        store = JsonWorkoutStore(data_dir / "nothing")
        assert store.get_session_history("user-1") == []
        assert store.get_all_programs("user-1") == []
        assert store.exists() is False

    def test_init_creates_files(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        store.init()
        assert store.sessions_path.exists()
        assert json.loads(store.programs_path.read_text()) == []

    def test_session_upsert_is_idempotent(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        session = make_session("s1", [make_set("press", 8)], completed=False)
        store.save_workout_session(session)
        session.sets.append(make_set("press", 9, set_number=2))
        store.save_workout_session(session)
        store.save_workout_session(session)

        lines = [l for l in store.sessions_path.read_text().splitlines() if l.strip()]
        assert len(lines) == 1
        assert len(store.get_session("s1").sets) == 2

    def test_session_queries(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        older = make_session("s1", [make_set("press", 8, weight=20.0)], week_number=1)
        newer = make_session(
            "s2", [make_set("press", 9, weight=22.0, set_number=2, session_id="s2")], week_number=2
        )
        newer.start_time = T0 + timedelta(days=2)
        partial = make_session("s3", week_number=2, completed=False)
        partial.start_time = T0 + timedelta(days=3)
        for s in (older, newer, partial):
            store.save_workout_session(s)

        assert [s.id for s in store.get_session_history("user-1")] == ["s3", "s2", "s1"]
        assert [s.id for s in store.get_session_history("user-1", limit=1)] == ["s3"]
        assert [s.id for s in store.get_sessions_by_week("user-1", 2)] == ["s2", "s3"]
        assert [s.id for s in store.get_completed_sessions("user-1")] == ["s2", "s1"]
        assert store.get_week_completion_count("user-1", 2) == 1
        assert store.get_total_volume("user-1") == pytest.approx(200.0 + 220.0)
        assert store.get_last_exercise_performance("user-1", "press").actual_weight == 22.0
        assert store.delete_session("s3") is True
        assert store.delete_session("s3") is False

    def test_active_program_is_unique(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        week1 = _program(1)
        week2 = _program(2)
        store.save_weekly_program(week1)
        store.save_weekly_program(week2)
        store.set_active_program("user-1", week2.id)

        assert [p.week_number for p in store.get_all_programs("user-1")] == [2, 1]
        assert store.get_active_program("user-1").id == week2.id
        assert store.get_program_by_week("user-1", 1).is_active is False

        store.set_active_program("user-1", week1.id)
        active = [p for p in store.get_all_programs("user-1") if p.is_active]
        assert [p.id for p in active] == [week1.id]

    def test_update_and_lookup(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        program = _program()
        store.save_weekly_program(program)
        workout = program.workouts[2]
        store.update_program(program.with_workout(workout.with_completed_at(T0)))

        found_program, found_workout = store.get_workout(workout.id)
        assert found_program.id == program.id
        assert found_workout.completed_at == T0
        assert store.get_workout("missing") is None

    def test_update_missing_program(self, data_dir):
        with pytest.raises(PersistenceError):
            JsonWorkoutStore(data_dir).update_program(_program())

    def test_set_active_missing_program(self, data_dir):
        with pytest.raises(PersistenceError):
            JsonWorkoutStore(data_dir).set_active_program("user-1", "nope")

    def test_corrupt_sessions_file(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        store.sessions_path.write_text("{broken\n")
        with pytest.raises(ValidationError, match="line 1"):
            store.get_session_history("user-1")


class TestProfileStore:
    def test_profile_and_equipment(self, data_dir):
        store = ProfileStore(data_dir)
        assert store.load_profile() is None
        store.save_profile(make_profile())
        store.save_equipment(make_equipment(EquipmentType.DUMBBELLS, EquipmentType.PULLUP_BAR))

        assert store.load_profile().id == "user-1"
        assert [e.type for e in store.load_equipment()] == [
            EquipmentType.DUMBBELLS,
            EquipmentType.PULLUP_BAR,
        ]

    def test_metrics(self, data_dir):
        store = ProfileStore(data_dir)
        for day, weight in ((0, 80.0), (3, 81.0), (20, 82.0)):
            store.add_metrics(
                BodyMetrics(id=f"m{day}", user_id="user-1", weight_kg=weight, timestamp=T0 + timedelta(days=day))
            )
        assert store.latest_metrics().weight_kg == 82.0
        # only day 20 lies within 7 days of the latest measurement
        assert store.average_weight() == 82.0
        assert store.average_weight(days=30) == pytest.approx(81.0)

    def test_recovery_score_expires(self, data_dir):
        store = ProfileStore(data_dir)
        store.save_recovery_score(45, recorded_at=T0)
        assert store.current_recovery_score(now=T0 + timedelta(hours=23)) == 45
        assert store.current_recovery_score(now=T0 + timedelta(hours=25)) is None

    def test_recovery_score_range(self, data_dir):
        with pytest.raises(ValidationError):
            ProfileStore(data_dir).save_recovery_score(101)


class TestHealthLog:
    def test_appends_summary(self, data_dir):
        log = JsonlHealthLog(data_dir)
        log.record_session(make_session("s1", [make_set("press", 8)]), "Push")
        log.record_session(make_session("s2"), "Pull")

        entries = log.read_entries()
        assert [e["workout_name"] for e in entries] == ["Push", "Pull"]
        # 40 minutes x 5 kcal
        assert entries[0]["estimated_calories"] == 200
        assert entries[0]["total_volume_kg"] == 200.0


class TestCatalog:
    def _write(self, directory: Path, name: str, text: str) -> None:
        directory.mkdir(parents=True, exist_ok=True)
        (directory / name).write_text(text)

    def test_bundled_catalog_loads(self, data_dir):
        catalog = YamlExerciseCatalog(data_home=data_dir)
        exercises = catalog.get_all_exercises()
        groups = {e.muscle_group for e in exercises}
        assert {"Chest", "Back", "Shoulders", "Arms", "Legs", "Abs"} <= groups
        assert catalog.get_exercise_by_id("push_up").is_bodyweight_only
        assert catalog.get_exercise_by_id("missing") is None
        assert any(e.id == "db_biceps_curl" for e in catalog.search_exercises("biceps"))

    def test_bundled_catalog_fills_every_slot(self, data_dir):
        catalog = YamlExerciseCatalog(data_home=data_dir)
        program = generate_week(
            1,
            make_profile(),
            make_equipment(EquipmentType.DUMBBELLS, EquipmentType.BENCH),
            catalog.get_all_exercises(),
        )
        assert [len(w.exercises) for w in program.workouts] == [6, 4, 6, 6]

    def test_user_override_merges_by_id(self, data_dir):
        bundled = data_dir / "bundled"
        user = data_dir / "user"
        self._write(bundled, "chest.yaml", """
exercises:
  - id: press
    name: Press
    muscle_group: Chest
    is_compound: true
    equipment_required: [dumbbells]
  - id: fly
    name: Fly
    muscle_group: Chest
""")
        self._write(user, "mine.yaml", """
exercises:
  - id: press
    tempo: "4-0-1-0"
  - id: floor_press
    name: Floor Press
    muscle_group: Chest
""")
        exercises = load_catalog(bundled, user)
        assert [e.id for e in exercises] == ["press", "fly", "floor_press"]
        assert exercises[0].tempo == "4-0-1-0"
        assert exercises[0].name == "Press"

    def test_bad_entries_are_skipped(self, data_dir):
        bundled = data_dir / "bundled"
        self._write(bundled, "a.yaml", """
exercises:
  - id: ok
    name: Ok
    muscle_group: Chest
  - id: broken
    name: Broken
    muscle_group: Chest
    difficulty: impossible
  - name: No id
    muscle_group: Chest
""")
        self._write(bundled, "b.yaml", "exercises: [unclosed")
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            exercises = load_catalog(bundled, None)
        assert [e.id for e in exercises] == ["ok"]
        assert len(caught) == 3


class TestConfigLoader:
    def test_bundled_defaults_match_constants(self, data_dir):
        assert load_program_rules(data_dir) == DEFAULT_RULES

    def test_user_override(self, data_dir):
        (data_dir / "fortyfive.yaml").write_text(
            "rules:\n  weight_increment_kg: 2.5\n  rest_policy: by_slot_type\n"
            "  base_weights:\n    Chest: [24, 16]\n"
        )
        rules = load_program_rules(data_dir)
        assert rules.weight_increment_kg == 2.5
        assert rules.rest_for_slot("compound") == 120
        assert rules.base_weights["Chest"] == (24.0, 16.0)
        assert rules.base_weights["Back"] == DEFAULT_RULES.base_weights["Back"]

    def test_invalid_rules_fall_back(self):
        with pytest.warns(UserWarning):
            rules = rules_from_config({"rules": {"easy_rpe_threshold": 9.5}})
        assert rules == DEFAULT_RULES

    def test_unknown_keys_ignored(self):
        assert rules_from_config({"rules": {"colour": "blue"}}) == DEFAULT_RULES


class TestModelHelpers:
    def test_set_and_session_derived_values(self):
        easy = make_set("press", 7, weight=20.0, reps=12)
        hard = make_set("row", 9, weight=22.0, reps=8, set_number=2)
        assert easy.difficulty_level == "Easy"
        assert hard.difficulty_level == "Hard"
        assert easy.exceeded_target is False
        assert make_set("press", 8, weight=20.0).difficulty_level == "Moderate"

        session = make_session("s1", [easy, hard])
        assert session.exercise_ids == ["press", "row"]
        # 12 x 20 + 8 x 22 = 416
        assert session.calculate_total_volume() == pytest.approx(416.0)
        assert session.calculate_average_rpe() == pytest.approx(8.0)

    def test_prescription_and_equipment(self):
        planned = make_planned(make_exercise("press"), sets=4, reps=10, weight=20.0)
        assert planned.target_volume == 800.0
        dumbbells = make_equipment(EquipmentType.DUMBBELLS)[0]
        assert dumbbells.supports_weight(100.0)
        dumbbells.min_weight, dumbbells.max_weight = 2.0, 40.0
        assert dumbbells.supports_weight(40.0)
        assert not dumbbells.supports_weight(42.5)

    def test_store_extras(self, data_dir):
        store = JsonWorkoutStore(data_dir)
        program = _program()
        store.save_weekly_program(program)
        store.save_workout_session(make_session("s1"))
        assert [s.id for s in store.get_sessions_by_type("user-1", "A")] == ["s1"]
        assert store.get_sessions_by_type("user-1", "B") == []
        assert store.delete_program(program.id) is True
        assert store.delete_program(program.id) is False

        catalog = YamlExerciseCatalog(data_home=data_dir)
        assert {e.muscle_group for e in catalog.get_by_muscle_group("legs")} == {"Legs"}
