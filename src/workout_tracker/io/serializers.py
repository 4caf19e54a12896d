"""
JSON serialization for workout data models.

Handles conversion between dataclasses and JSON-compatible dicts, plus
the byte encoding used for the persisted active draft.
"""

import json
from datetime import datetime
from typing import Any

from ..core.models import (
    ExerciseEntry,
    PersonalRecord,
    SetEntry,
    UserLevel,
    WorkoutLog,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def format_datetime(value: datetime | None) -> str | None:
    """Render a datetime as ISO 8601 (None passes through)."""
    return value.isoformat() if value is not None else None


def parse_datetime(value: Any, name: str) -> datetime:
    """
    Parse an ISO 8601 timestamp.

    Args:
        value: ISO string
        name: Field name for error messages

    Returns:
        Timezone-aware datetime

    Raises:
        ValidationError: If value is not a valid tz-aware ISO timestamp
    """
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be an ISO timestamp string, got {value!r}")
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"Invalid {name}: {value}") from e
    if parsed.tzinfo is None:
        raise ValidationError(f"{name} must include a UTC offset: {value}")
    return parsed


def parse_optional_datetime(value: Any, name: str) -> datetime | None:
    if value is None:
        return None
    return parse_datetime(value, name)


def validate_non_negative(value: int | float, name: str) -> int | float:
    """
    Validate that a value is non-negative.

    Raises:
        ValidationError: If value is negative
    """
    if value < 0:
        raise ValidationError(f"{name} must be non-negative, got {value}")
    return value


def _require(data: dict[str, Any], *keys: str) -> None:
    missing = [k for k in keys if k not in data]
    if missing:
        raise ValidationError(f"Missing fields: {', '.join(missing)}")


# ---------------------------------------------------------------------------
# Sets and exercises
# ---------------------------------------------------------------------------


def set_entry_to_dict(entry: SetEntry) -> dict[str, Any]:
    """Convert SetEntry to JSON-compatible dict."""
    return {
        "set_number": entry.set_number,
        "target_reps": entry.target_reps,
        "target_weight": entry.target_weight,
        "actual_reps": entry.actual_reps,
        "weight": entry.weight,
        "is_completed": entry.is_completed,
        "is_pr": entry.is_pr,
        "previous_performance": entry.previous_performance,
    }


def dict_to_set_entry(data: dict[str, Any]) -> SetEntry:
    """
    Convert dict to SetEntry.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        _require(data, "set_number", "target_reps")
        validate_non_negative(data["target_reps"], "target_reps")
        validate_non_negative(data.get("actual_reps", 0), "actual_reps")
        validate_non_negative(data.get("target_weight", 0), "target_weight")
        validate_non_negative(data.get("weight", 0), "weight")
        if int(data["set_number"]) < 1:
            raise ValidationError(f"set_number must be >= 1, got {data['set_number']}")

        return SetEntry(
            set_number=int(data["set_number"]),
            target_reps=int(data["target_reps"]),
            target_weight=float(data.get("target_weight", 0.0)),
            actual_reps=int(data.get("actual_reps", 0)),
            weight=float(data.get("weight", 0.0)),
            is_completed=bool(data.get("is_completed", False)),
            is_pr=bool(data.get("is_pr", False)),
            previous_performance=data.get("previous_performance"),
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid set entry: {e}") from e


def exercise_entry_to_dict(entry: ExerciseEntry) -> dict[str, Any]:
    """Convert ExerciseEntry to JSON-compatible dict."""
    return {
        "name": entry.name,
        "order": entry.order,
        "rest_seconds": entry.rest_seconds,
        "completed_sets": [set_entry_to_dict(s) for s in entry.completed_sets],
    }


def dict_to_exercise_entry(data: dict[str, Any]) -> ExerciseEntry:
    """Convert dict to ExerciseEntry."""
    try:
        _require(data, "name", "order")
        return ExerciseEntry(
            name=str(data["name"]),
            order=int(data["order"]),
            rest_seconds=int(data.get("rest_seconds", 60)),
            completed_sets=[dict_to_set_entry(s) for s in data.get("completed_sets", [])],
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid exercise entry: {e}") from e


# ---------------------------------------------------------------------------
# Workout logs
# ---------------------------------------------------------------------------


def workout_log_to_dict(log: WorkoutLog) -> dict[str, Any]:
    """
    Convert WorkoutLog to JSON-compatible dict.

    Optional fields are omitted when unset to keep log lines short.
    """
    result: dict[str, Any] = {
        "id": log.id,
        "user_id": log.user_id,
        "day_name": log.day_name,
        "started_at": format_datetime(log.started_at),
        "exercises": [exercise_entry_to_dict(e) for e in log.exercises],
    }
    if log.completed_at is not None:
        result["completed_at"] = format_datetime(log.completed_at)
    if log.duration is not None:
        result["duration"] = log.duration
    if log.program_id is not None:
        result["program_id"] = log.program_id
    if log.program_name is not None:
        result["program_name"] = log.program_name
    if log.notes:
        result["notes"] = log.notes
    return result


def dict_to_workout_log(data: dict[str, Any]) -> WorkoutLog:
    """
    Convert dict to WorkoutLog.

    Raises:
        ValidationError: If data is invalid
    """
    try:
        _require(data, "id", "user_id", "day_name", "started_at")
        duration = data.get("duration")
        if duration is not None:
            validate_non_negative(duration, "duration")

        return WorkoutLog(
            id=str(data["id"]),
            user_id=str(data["user_id"]),
            day_name=str(data["day_name"]),
            started_at=parse_datetime(data["started_at"], "started_at"),
            exercises=[dict_to_exercise_entry(e) for e in data.get("exercises", [])],
            completed_at=parse_optional_datetime(data.get("completed_at"), "completed_at"),
            duration=float(duration) if duration is not None else None,
            program_id=data.get("program_id"),
            program_name=data.get("program_name"),
            notes=data.get("notes"),
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid workout log: {e}") from e


def workout_to_json_line(log: WorkoutLog) -> str:
    """Serialize a workout log as a single compact JSON line."""
    return json.dumps(workout_log_to_dict(log), ensure_ascii=False, separators=(",", ":"))


def draft_to_bytes(draft: WorkoutLog) -> bytes:
    """Encode the active draft for local persistence."""
    return json.dumps(workout_log_to_dict(draft), ensure_ascii=False).encode("utf-8")


def bytes_to_draft(payload: bytes) -> WorkoutLog:
    """
    Decode a persisted draft.

    Raises:
        ValidationError: If the payload is not a valid encoded draft
    """
    try:
        data = json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValidationError(f"Corrupt draft payload: {e}") from e
    if not isinstance(data, dict):
        raise ValidationError("Corrupt draft payload: expected an object")
    return dict_to_workout_log(data)


# ---------------------------------------------------------------------------
# Personal records and levels
# ---------------------------------------------------------------------------


def personal_record_to_dict(record: PersonalRecord) -> dict[str, Any]:
    """Convert PersonalRecord to JSON-compatible dict."""
    return {
        "id": record.id,
        "user_id": record.user_id,
        "exercise_name": record.exercise_name,
        "weight": record.weight,
        "reps": record.reps,
        "achieved_at": format_datetime(record.achieved_at),
        "workout_log_id": record.workout_log_id,
    }


def dict_to_personal_record(data: dict[str, Any]) -> PersonalRecord:
    """Convert dict to PersonalRecord."""
    try:
        _require(data, "user_id", "exercise_name", "weight", "reps", "achieved_at")
        validate_non_negative(data["weight"], "weight")
        validate_non_negative(data["reps"], "reps")
        kwargs: dict[str, Any] = {}
        if data.get("id"):
            kwargs["id"] = str(data["id"])
        return PersonalRecord(
            user_id=str(data["user_id"]),
            exercise_name=str(data["exercise_name"]),
            weight=float(data["weight"]),
            reps=int(data["reps"]),
            achieved_at=parse_datetime(data["achieved_at"], "achieved_at"),
            workout_log_id=data.get("workout_log_id"),
            **kwargs,
        )
    except (TypeError, AttributeError, ValueError) as e:
        raise ValidationError(f"Invalid personal record: {e}") from e


def user_level_to_dict(level: UserLevel) -> dict[str, Any]:
    """Convert UserLevel to JSON-compatible dict."""
    return {
        "user_id": level.user_id,
        "current_level": level.current_level,
        "current_xp": level.current_xp,
        "total_xp": level.total_xp,
        "last_level_up_date": format_datetime(level.last_level_up_date),
        "updated_at": format_datetime(level.updated_at),
    }


def dict_to_user_level(data: dict[str, Any]) -> UserLevel:
    """Convert dict to UserLevel."""
    _require(data, "user_id", "current_level", "current_xp", "total_xp")
    kwargs: dict[str, Any] = {}
    if data.get("updated_at"):
        kwargs["updated_at"] = parse_datetime(data["updated_at"], "updated_at")
    try:
        return UserLevel(
            user_id=str(data["user_id"]),
            current_level=int(data["current_level"]),
            current_xp=int(data["current_xp"]),
            total_xp=int(data["total_xp"]),
            last_level_up_date=parse_optional_datetime(
                data.get("last_level_up_date"), "last_level_up_date"
            ),
            **kwargs,
        )
    except (TypeError, ValueError) as e:
        raise ValidationError(str(e)) from e
