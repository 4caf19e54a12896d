"""Shared fixtures: an in-memory document store, a steppable clock, isolated app home."""

import asyncio
import copy
from datetime import datetime, timedelta, timezone

import pytest

from workout_tracker.core.leveling import LevelingGateway, LevelTracker
from workout_tracker.core.models import PersonalRecord, UserLevel, WorkoutLog
from workout_tracker.core.session import SessionController
from workout_tracker.io.document_store import LevelUpdate, StorageError
from workout_tracker.io.draft_store import MemoryDraftPersistence, SessionStore

USER = "user-1"
T0 = datetime(2026, 3, 2, 9, 0, tzinfo=timezone.utc)  # a Monday


class FakeClock:
    """Fixed clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class InMemoryDocumentStore:
    """
    DocumentStore fake.

    Add an operation name to ``fail_on`` to make it raise StorageError.
    Set ``history_gate`` to an asyncio.Event to hold history lookups until
    the test releases them.
    """

    def __init__(self) -> None:
        self.levels: dict[str, UserLevel] = {}
        self.records: dict[tuple[str, str], PersonalRecord] = {}
        self.logs: dict[str, WorkoutLog] = {}
        self.fail_on: set[str] = set()
        self.calls: list[str] = []
        self.history_gate: asyncio.Event | None = None
        self._lock: asyncio.Lock | None = None

    def _check(self, op: str) -> None:
        self.calls.append(op)
        if op in self.fail_on:
            raise StorageError(f"injected failure: {op}")

    async def get_user_level(self, user_id: str) -> UserLevel | None:
        self._check("get_user_level")
        return copy.deepcopy(self.levels.get(user_id))

    async def run_atomic(self, user_id: str, update_fn: LevelUpdate) -> UserLevel:
        self._check("run_atomic")
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            current = copy.deepcopy(self.levels.get(user_id))
            await asyncio.sleep(0)  # give concurrent awards a chance to interleave
            updated = update_fn(current)
            self.levels[user_id] = copy.deepcopy(updated)
            return updated

    async def get_personal_record(self, user_id: str, exercise_name: str) -> PersonalRecord | None:
        self._check("get_personal_record")
        return copy.deepcopy(self.records.get((user_id, exercise_name)))

    async def list_personal_records(self, user_id: str) -> list[PersonalRecord]:
        self._check("list_personal_records")
        return [copy.deepcopy(r) for (uid, _), r in self.records.items() if uid == user_id]

    async def put_personal_record(self, record: PersonalRecord) -> None:
        self._check("put_personal_record")
        self.records[(record.user_id, record.exercise_name)] = copy.deepcopy(record)

    async def put_workout_log(self, log: WorkoutLog) -> None:
        self._check("put_workout_log")
        self.logs[log.id] = copy.deepcopy(log)

    async def list_workout_logs(self, user_id: str) -> list[WorkoutLog]:
        self._check("list_workout_logs")
        mine = [copy.deepcopy(log) for log in self.logs.values() if log.user_id == user_id]
        return sorted(mine, key=lambda log: log.started_at, reverse=True)

    async def get_recent_log_containing(self, user_id: str, exercise_name: str) -> WorkoutLog | None:
        if self.history_gate is not None:
            await self.history_gate.wait()
        self._check("get_recent_log_containing")
        for log in sorted(self.logs.values(), key=lambda log: log.started_at, reverse=True):
            if log.user_id == user_id and log.find_exercise(exercise_name) is not None:
                return copy.deepcopy(log)
        return None

    async def delete_workout_log(self, log_id: str) -> None:
        self._check("delete_workout_log")
        del self.logs[log_id]


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point the app home at a temp dir so real user settings are never read."""
    home = tmp_path / "home"
    monkeypatch.setenv("WORKOUT_TRACKER_HOME", str(home))
    return home


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def persistence() -> MemoryDraftPersistence:
    return MemoryDraftPersistence()


@pytest.fixture
def session_store(persistence) -> SessionStore:
    return SessionStore(persistence)


@pytest.fixture
def gateway(store, clock) -> LevelingGateway:
    return LevelingGateway(store, clock=clock)


@pytest.fixture
def tracker(gateway, clock) -> LevelTracker:
    return LevelTracker(USER, gateway, clock=clock)


@pytest.fixture
def controller(store, session_store, gateway, tracker, clock) -> SessionController:
    return SessionController(USER, store, session_store, gateway, level_tracker=tracker, clock=clock)
