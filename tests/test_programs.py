"""Tests for YAML program templates and the registry."""

import pytest
import yaml

from workout_tracker.core.programs import ExerciseTemplate, find_day, get_program, get_registry
from workout_tracker.core.programs.loader import load_programs_from_yaml, program_from_dict
from workout_tracker.core.programs.registry import reload_registry


@pytest.fixture(autouse=True)
def fresh_registry():
    reload_registry()
    yield
    reload_registry()


def _write(path, data) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.safe_dump(data), encoding="utf-8")


class TestBundledPrograms:
    def test_bundled_programs_load(self):
        registry = get_registry()
        assert {"full_body", "push_pull_legs"} <= set(registry)

    def test_full_body_contents(self):
        program = get_program("full_body")
        day_a = program.days[0]
        assert day_a.name == "Day A"
        squat = day_a.exercises[0]
        assert (squat.name, squat.sets, squat.reps, squat.weight) == ("Squat", 3, 5, 135)
        assert [e.order for e in day_a.exercises] == [0, 1, 2]

    def test_unknown_program(self):
        with pytest.raises(ValueError, match="Unknown program"):
            get_program("couch_to_5k")


class TestFindDay:
    def test_by_index_and_name(self):
        program = get_program("push_pull_legs")
        assert find_day(program, "2").name == "Pull"
        assert find_day(program, "legs").name == "Legs"

    @pytest.mark.parametrize("key", ["0", "9", "Arms"])
    def test_no_match(self, key):
        with pytest.raises(ValueError):
            find_day(get_program("push_pull_legs"), key)


class TestLoader:
    def test_user_override_is_merged(self, tmp_path):
        bundled, user = tmp_path / "bundled", tmp_path / "user"
        _write(bundled / "basic.yaml", {
            "program_id": "basic", "name": "Basic",
            "days": [{"name": "Only", "exercises": [{"name": "Squat"}]}],
        })
        _write(user / "basic.yaml", {"name": "Basic (mine)"})

        programs = load_programs_from_yaml(bundled, user)
        assert programs["basic"].name == "Basic (mine)"
        assert programs["basic"].days[0].exercises[0].sets == 3

    def test_user_only_program(self, tmp_path):
        bundled, user = tmp_path / "bundled", tmp_path / "user"
        bundled.mkdir()
        _write(user / "mine.yaml", {
            "program_id": "mine", "name": "Mine",
            "days": [{"name": "Day", "exercises": [{"name": "Curl", "weight": 25}]}],
        })
        assert load_programs_from_yaml(bundled, user)["mine"].days[0].exercises[0].weight == 25

    def test_invalid_file_is_skipped(self, tmp_path):
        bundled = tmp_path / "bundled"
        _write(bundled / "broken.yaml", {"name": "No id or days"})
        with pytest.warns(UserWarning, match="skipping program"):
            programs = load_programs_from_yaml(bundled, tmp_path / "none")
        assert programs == {}

    def test_program_from_dict_requires_fields(self):
        with pytest.raises(ValueError, match="missing fields"):
            program_from_dict({"program_id": "x"})


class TestExerciseTemplate:
    def test_formatted_target(self):
        assert ExerciseTemplate(name="Squat", sets=3, reps=5, weight=135).formatted_target == "3 × 5 @ 135"
        assert ExerciseTemplate(name="Pull-Up", sets=3, reps=8).formatted_target == "3 × 8"

    def test_rejects_negative(self):
        with pytest.raises(ValueError):
            ExerciseTemplate(name="Squat", reps=-1)
        with pytest.raises(ValueError):
            ExerciseTemplate(name=" ")
