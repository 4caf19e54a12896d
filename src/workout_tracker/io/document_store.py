"""
Durable document storage for logs, personal records and user levels.

DocumentStore is the interface the session engine depends on; the engine
never talks to files directly, so a remote database or an in-memory fake
can be swapped in. JsonDocumentStore is the local, file-backed
implementation used by the CLI:

- workout_logs.jsonl      one completed workout per line, upserted by id
- personal_records.json   {user_id: {exercise_name: record}}
- user_levels.json        {user_id: level}
"""

import asyncio
import json
import os
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import structlog

from ..core.config import PERSONAL_RECORDS_FILE, USER_LEVELS_FILE, WORKOUT_LOGS_FILE
from ..core.models import PersonalRecord, UserLevel, WorkoutLog
from .serializers import (
    ValidationError,
    dict_to_personal_record,
    dict_to_user_level,
    dict_to_workout_log,
    personal_record_to_dict,
    user_level_to_dict,
    workout_to_json_line,
)

logger = structlog.get_logger(__name__)

LevelUpdate = Callable[[UserLevel | None], UserLevel]


class StorageError(Exception):
    """Raised when the durable store cannot be read or written."""

    pass


class DocumentStore(Protocol):
    """Async document storage consumed by the session engine."""

    async def get_user_level(self, user_id: str) -> UserLevel | None: ...

    async def run_atomic(self, user_id: str, update_fn: LevelUpdate) -> UserLevel:
        """
        Apply update_fn to a consistent read of the user's level and commit
        the result indivisibly with respect to other run_atomic calls for
        the same user. update_fn may be invoked more than once.
        """
        ...

    async def get_personal_record(self, user_id: str, exercise_name: str) -> PersonalRecord | None: ...

    async def list_personal_records(self, user_id: str) -> list[PersonalRecord]: ...

    async def put_personal_record(self, record: PersonalRecord) -> None: ...

    async def put_workout_log(self, log: WorkoutLog) -> None: ...

    async def list_workout_logs(self, user_id: str) -> list[WorkoutLog]: ...

    async def get_recent_log_containing(self, user_id: str, exercise_name: str) -> WorkoutLog | None: ...

    async def delete_workout_log(self, log_id: str) -> None: ...


class JsonDocumentStore:
    """
    File-backed DocumentStore.

    File I/O runs in a worker thread. Each file has its own asyncio.Lock,
    held across every read-modify-write of that file, which serializes
    concurrent level awards within one process.
    """

    def __init__(self, data_dir: str | Path):
        """
        Initialize the document store.

        Args:
            data_dir: Directory holding the data files (created on first write)
        """
        self.data_dir = Path(data_dir)
        self.logs_path = self.data_dir / WORKOUT_LOGS_FILE
        self.records_path = self.data_dir / PERSONAL_RECORDS_FILE
        self.levels_path = self.data_dir / USER_LEVELS_FILE
        self._locks: dict[Path, asyncio.Lock] = {}

    def _lock(self, path: Path) -> asyncio.Lock:
        if path not in self._locks:
            self._locks[path] = asyncio.Lock()
        return self._locks[path]

    # ------------------------------------------------------------------
    # Raw file helpers (run in worker threads)
    # ------------------------------------------------------------------

    def _read_json(self, path: Path) -> dict[str, Any]:
        if not path.exists():
            return {}
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"Cannot read {path}: expected a JSON object")
        return data

    def _write_text(self, path: Path, text: str) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            tmp = path.with_name(path.name + ".tmp")
            with open(tmp, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp, path)
        except OSError as e:
            raise StorageError(f"Cannot write {path}: {e}") from e

    def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        self._write_text(path, json.dumps(data, indent=2, ensure_ascii=False))

    def _read_logs(self) -> list[WorkoutLog]:
        if not self.logs_path.exists():
            return []
        logs: list[WorkoutLog] = []
        try:
            with open(self.logs_path, "r", encoding="utf-8") as f:
                for line_num, line in enumerate(f, 1):
                    line = line.strip()
                    if not line:
                        continue
                    try:
                        logs.append(dict_to_workout_log(json.loads(line)))
                    except (json.JSONDecodeError, ValidationError) as e:
                        raise StorageError(
                            f"Error parsing line {line_num} in {self.logs_path}: {e}"
                        ) from e
        except OSError as e:
            raise StorageError(f"Cannot read {self.logs_path}: {e}") from e
        return logs

    def _write_logs(self, logs: list[WorkoutLog]) -> None:
        self._write_text(self.logs_path, "".join(workout_to_json_line(log) + "\n" for log in logs))

    # ------------------------------------------------------------------
    # User levels
    # ------------------------------------------------------------------

    def _load_level(self, user_id: str) -> UserLevel | None:
        raw = self._read_json(self.levels_path).get(user_id)
        if raw is None:
            return None
        try:
            return dict_to_user_level(raw)
        except ValidationError as e:
            raise StorageError(f"Invalid level for user {user_id}: {e}") from e

    async def get_user_level(self, user_id: str) -> UserLevel | None:
        return await asyncio.to_thread(self._load_level, user_id)

    async def run_atomic(self, user_id: str, update_fn: LevelUpdate) -> UserLevel:
        async with self._lock(self.levels_path):
            return await asyncio.to_thread(self._apply_level_update, user_id, update_fn)

    def _apply_level_update(self, user_id: str, update_fn: LevelUpdate) -> UserLevel:
        data = self._read_json(self.levels_path)
        raw = data.get(user_id)
        try:
            current = dict_to_user_level(raw) if raw is not None else None
        except ValidationError as e:
            raise StorageError(f"Invalid level for user {user_id}: {e}") from e
        updated = update_fn(current)
        data[user_id] = user_level_to_dict(updated)
        self._write_json(self.levels_path, data)
        return updated

    # ------------------------------------------------------------------
    # Personal records
    # ------------------------------------------------------------------

    def _load_records(self, user_id: str) -> list[PersonalRecord]:
        by_exercise = self._read_json(self.records_path).get(user_id, {})
        try:
            return [dict_to_personal_record(r) for r in by_exercise.values()]
        except ValidationError as e:
            raise StorageError(f"Invalid personal record for user {user_id}: {e}") from e

    async def get_personal_record(self, user_id: str, exercise_name: str) -> PersonalRecord | None:
        records = await asyncio.to_thread(self._load_records, user_id)
        for record in records:
            if record.exercise_name == exercise_name:
                return record
        return None

    async def list_personal_records(self, user_id: str) -> list[PersonalRecord]:
        records = await asyncio.to_thread(self._load_records, user_id)
        return sorted(records, key=lambda r: r.achieved_at, reverse=True)

    async def put_personal_record(self, record: PersonalRecord) -> None:
        async with self._lock(self.records_path):
            await asyncio.to_thread(self._store_record, record)
        logger.info(
            "personal_record_saved",
            exercise=record.exercise_name,
            record=record.formatted_record,
        )

    def _store_record(self, record: PersonalRecord) -> None:
        data = self._read_json(self.records_path)
        data.setdefault(record.user_id, {})[record.exercise_name] = personal_record_to_dict(record)
        self._write_json(self.records_path, data)

    # ------------------------------------------------------------------
    # Workout logs
    # ------------------------------------------------------------------

    async def put_workout_log(self, log: WorkoutLog) -> None:
        async with self._lock(self.logs_path):
            await asyncio.to_thread(self._upsert_log, log)
        logger.info("workout_log_saved", log_id=log.id, day_name=log.day_name)

    def _upsert_log(self, log: WorkoutLog) -> None:
        logs = self._read_logs()
        for i, existing in enumerate(logs):
            if existing.id == log.id:
                logs[i] = log
                break
        else:
            logs.append(log)
        logs.sort(key=lambda entry: entry.started_at)
        self._write_logs(logs)

    async def list_workout_logs(self, user_id: str) -> list[WorkoutLog]:
        """All of the user's logs, newest first."""
        logs = await asyncio.to_thread(self._read_logs)
        mine = [log for log in logs if log.user_id == user_id]
        mine.sort(key=lambda entry: entry.started_at, reverse=True)
        return mine

    async def get_recent_log_containing(self, user_id: str, exercise_name: str) -> WorkoutLog | None:
        for log in await self.list_workout_logs(user_id):
            if log.find_exercise(exercise_name) is not None:
                return log
        return None

    async def delete_workout_log(self, log_id: str) -> None:
        async with self._lock(self.logs_path):
            await asyncio.to_thread(self._delete_log, log_id)

    def _delete_log(self, log_id: str) -> None:
        logs = self._read_logs()
        remaining = [log for log in logs if log.id != log_id]
        if len(remaining) == len(logs):
            raise KeyError(f"Workout log {log_id} not found")
        self._write_logs(remaining)
