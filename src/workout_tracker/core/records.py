"""
Personal record detection.

Pure functions over in-memory snapshots; no I/O happens here. The
session controller fetches a snapshot once per session and re-checks
against the remote record right before each write.
"""

from collections.abc import Iterable, Mapping
from datetime import datetime

from .models import ExerciseEntry, PersonalRecord, SetEntry, WorkoutLog


def is_new_record(
    candidate_weight: float,
    candidate_reps: int,
    existing: PersonalRecord | None,
) -> bool:
    """
    Decide whether a lift beats the current record.

    Ordering: heavier weight wins outright; at equal weight, strictly more
    reps wins. Equal weight with equal or fewer reps never supersedes.

    Args:
        candidate_weight: Weight of the new lift
        candidate_reps: Reps of the new lift
        existing: Current record, or None if there is none

    Returns:
        True if the candidate should become the record
    """
    if existing is None:
        return True
    if candidate_weight > existing.weight:
        return True
    return candidate_weight == existing.weight and candidate_reps > existing.reps


def best_set(exercise: ExerciseEntry) -> SetEntry | None:
    """Best completed set with positive weight (see ExerciseEntry.best_set)."""
    return exercise.best_set


def evaluate_workout(
    draft: WorkoutLog,
    record_snapshot: Mapping[str, PersonalRecord],
) -> set[str]:
    """
    Find the exercises in a workout that set a new record.

    Each exercise is judged only by its best set. Exercises without a
    completed, weighted set contribute nothing.

    Args:
        draft: Workout being completed
        record_snapshot: exercise name -> current record

    Returns:
        Names of the record-setting exercises
    """
    new_prs: set[str] = set()
    for exercise in draft.exercises:
        top = exercise.best_set
        if top is None:
            continue
        if is_new_record(top.weight, top.actual_reps, record_snapshot.get(exercise.name)):
            new_prs.add(exercise.name)
    return new_prs


def build_record(
    user_id: str,
    exercise: ExerciseEntry,
    workout_log_id: str | None,
    achieved_at: datetime,
) -> PersonalRecord | None:
    """Create a PersonalRecord from the exercise's best set, or None if it has none."""
    top = exercise.best_set
    if top is None:
        return None
    return PersonalRecord(
        user_id=user_id,
        exercise_name=exercise.name,
        weight=top.weight,
        reps=top.actual_reps,
        achieved_at=achieved_at,
        workout_log_id=workout_log_id,
    )


def snapshot_from_records(records: Iterable[PersonalRecord]) -> dict[str, PersonalRecord]:
    """
    Index records by exercise name.

    If several documents exist for one exercise (e.g. archived copies), the
    best one by the record ordering is kept.
    """
    snapshot: dict[str, PersonalRecord] = {}
    for record in records:
        current = snapshot.get(record.exercise_name)
        if is_new_record(record.weight, record.reps, current):
            snapshot[record.exercise_name] = record
    return snapshot
