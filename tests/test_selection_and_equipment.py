"""
Equipment filtering and template-slot exercise selection.
"""

from factories import full_catalog, make_equipment, make_exercise

from fortyfive.core.equipment import (
    available_exercises,
    default_equipment_range,
    normalize_tag,
    resolve_tag,
)
from fortyfive.core.models import EquipmentType
from fortyfive.core.selection import first_match, rotate_by_week, select_exercise


class TestEquipmentTags:
    def test_normalize_strips_case_spaces_and_hyphens(self):
        assert normalize_tag(" Pull-up Bar ") == "pullupbar"
        assert normalize_tag("resistance_bands") == "resistancebands"

    def test_bench_aliases(self):
        for tag in ("Adjustable bench", "Decline bench", "incline bench", "flat-bench", "bench"):
            assert resolve_tag(tag) == EquipmentType.BENCH

    def test_pullup_bar_aliases(self):
        assert resolve_tag("pull-up bar") == EquipmentType.PULLUP_BAR
        assert resolve_tag("Chin-up bar") == EquipmentType.PULLUP_BAR

    def test_singular_and_plural(self):
        assert resolve_tag("dumbbell") == EquipmentType.DUMBBELLS
        assert resolve_tag("Dumbbells") == EquipmentType.DUMBBELLS
        assert resolve_tag("kettlebells") == EquipmentType.KETTLEBELL

    def test_unknown_tag(self):
        assert resolve_tag("rowing machine") is None

    def test_dumbbell_default_range(self):
        assert default_equipment_range(EquipmentType.DUMBBELLS) == (2.0, 40.0)
        assert default_equipment_range(EquipmentType.BENCH) == (None, None)


class TestAvailableExercises:
    def test_bodyweight_always_available(self):
        catalog = [
            make_exercise("push_up", equipment=("bodyweight",)),
            make_exercise("plank", "Abs", equipment=()),
            make_exercise("dead_bug", "Abs", equipment=("none",)),
        ]
        assert available_exercises(catalog, []) == catalog
        assert available_exercises(catalog, make_equipment(EquipmentType.DUMBBELLS)) == catalog

    def test_requires_every_tag(self):
        bench_press = make_exercise("db_bench_press", equipment=("dumbbells", "Adjustable bench"))
        only_dumbbells = make_equipment(EquipmentType.DUMBBELLS)
        both = make_equipment(EquipmentType.DUMBBELLS, EquipmentType.BENCH)

        assert available_exercises([bench_press], only_dumbbells) == []
        assert available_exercises([bench_press], both) == [bench_press]

    def test_unavailable_equipment_does_not_count(self):
        curl = make_exercise("curl", "Arms", equipment=("dumbbells",))
        broken = make_equipment(EquipmentType.DUMBBELLS, available=False)
        assert available_exercises([curl], broken) == []

    def test_unknown_tag_excludes(self):
        rower = make_exercise("row_erg", "Back", equipment=("rowing machine",))
        everything = make_equipment(*EquipmentType)
        assert available_exercises([rower], everything) == []

    def test_keeps_catalog_order_and_is_subset(self):
        catalog = full_catalog()
        result = available_exercises(catalog, make_equipment(EquipmentType.DUMBBELLS))
        assert all(e in catalog for e in result)
        assert [e.id for e in result] == [e.id for e in catalog if e in result]
        # bench exercises and the pull-up need kit we do not own
        assert "db_bench_press" not in [e.id for e in result]
        assert "pull_up" not in [e.id for e in result]
        assert "push_up" in [e.id for e in result]


class TestSelectExercise:
    def setup_method(self):
        self.pool = [
            make_exercise("fly", "Chest", False),
            make_exercise("bench", "Chest", True),
            make_exercise("incline", "Chest", True),
            make_exercise("raise", "Shoulders", False),
            make_exercise("kickback", "Arms", False, secondary=("Triceps",)),
            make_exercise("curl", "Arms", False, secondary=("Biceps",)),
        ]

    def test_first_match_in_catalog_order(self):
        chosen = select_exercise(self.pool, muscle_group="Chest", is_compound=True)
        assert chosen.id == "bench"

    def test_exclusions(self):
        chosen = select_exercise(
            self.pool, muscle_group="Chest", is_compound=True, exclude_ids=["bench"]
        )
        assert chosen.id == "incline"

    def test_secondary_muscle_substring(self):
        assert select_exercise(self.pool, muscle_group="Arms", secondary_muscle="Bicep").id == "curl"
        assert select_exercise(self.pool, muscle_group="Arms", secondary_muscle="Triceps").id == "kickback"

    def test_compound_fallback_drops_flag(self):
        # No compound shoulder exercise: retry with muscle group only
        chosen = select_exercise(self.pool, muscle_group="Shoulders", is_compound=True)
        assert chosen.id == "raise"

    def test_fallback_keeps_exclusions(self):
        chosen = select_exercise(
            self.pool, muscle_group="Shoulders", is_compound=True, exclude_ids=["raise"]
        )
        assert chosen is None

    def test_no_fallback_without_compound_constraint(self):
        assert select_exercise(self.pool, muscle_group="Legs") is None

    def test_secondary_filter_without_match_and_no_compound(self):
        assert select_exercise(self.pool, muscle_group="Arms", secondary_muscle="Forearms") is None

    def test_empty_pool(self):
        assert select_exercise([], muscle_group="Chest", is_compound=True) is None

    def test_strategies(self):
        candidates = [e for e in self.pool if e.muscle_group == "Chest"]
        assert first_match(candidates).id == "fly"
        assert rotate_by_week(1)(candidates).id == "fly"
        assert rotate_by_week(2)(candidates).id == "bench"
        assert rotate_by_week(4)(candidates).id == "fly"

    def test_custom_strategy_is_used(self):
        chosen = select_exercise(
            self.pool, muscle_group="Chest", strategy=lambda candidates: candidates[-1]
        )
        assert chosen.id == "incline"
