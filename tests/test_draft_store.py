"""Tests for local draft persistence and crash recovery."""

import pytest
from conftest import T0, USER

from workout_tracker.core.models import ExerciseEntry, SetEntry, WorkoutLog
from workout_tracker.io.draft_store import FileDraftPersistence, MemoryDraftPersistence, SessionStore
from workout_tracker.io.serializers import ValidationError


@pytest.fixture
def draft() -> WorkoutLog:
    return WorkoutLog(
        user_id=USER,
        day_name="Push",
        started_at=T0,
        program_id="push_pull_legs",
        program_name="Push / Pull / Legs",
        exercises=[
            ExerciseEntry(name="Bench Press", order=0, rest_seconds=120, completed_sets=[
                SetEntry(set_number=1, target_reps=8, target_weight=135, actual_reps=8, weight=135,
                         is_completed=True, previous_performance="8×130"),
                SetEntry(set_number=2, target_reps=8, target_weight=135, actual_reps=8, weight=135),
            ]),
        ],
    )


class TestFileDraftPersistence:
    def test_survives_restart(self, tmp_path, draft):
        SessionStore(FileDraftPersistence(tmp_path)).save(draft)
        SessionStore(FileDraftPersistence(tmp_path)).save_clock_start(T0)

        revived = SessionStore(FileDraftPersistence(tmp_path))
        assert revived.load() == draft
        assert revived.load_clock_start() == T0
        assert revived.has_draft() is True

    def test_save_replaces_previous(self, tmp_path, draft):
        store = SessionStore(FileDraftPersistence(tmp_path))
        store.save(draft)
        draft.exercises[0].completed_sets[1].is_completed = True
        store.save(draft)
        assert store.load().exercises[0].completed_sets[1].is_completed is True
        assert not list(tmp_path.glob("*.tmp"))

    def test_clear(self, tmp_path, draft):
        store = SessionStore(FileDraftPersistence(tmp_path))
        store.save(draft)
        store.save_clock_start(T0)
        store.clear()
        assert store.load() is None
        assert store.load_clock_start() is None
        assert store.has_draft() is False

    def test_clear_when_empty(self, tmp_path):
        SessionStore(FileDraftPersistence(tmp_path / "missing")).clear()

    def test_corrupt_draft_raises(self, tmp_path):
        persistence = FileDraftPersistence(tmp_path)
        persistence.draft_path.write_bytes(b"\x00garbage")
        with pytest.raises(ValidationError):
            SessionStore(persistence).load()

    def test_unreadable_clock_start(self, tmp_path):
        persistence = FileDraftPersistence(tmp_path)
        persistence.clock_path.write_text("yesterday-ish")
        assert persistence.load_clock_start() is None


class TestMemoryDraftPersistence:
    def test_round_trip(self, draft):
        store = SessionStore(MemoryDraftPersistence())
        assert store.load() is None
        store.save(draft)
        assert store.load() == draft
        assert store.load() is not draft

    def test_missing_required_field(self):
        persistence = MemoryDraftPersistence()
        persistence.save_draft(b'{"id": "x", "user_id": "u"}')
        with pytest.raises(ValidationError):
            SessionStore(persistence).load()
