"""
Pure report computations over completed workout logs.

Nothing here touches storage; callers pass in the logs they loaded.
Logs that are still active (no completed_at) are ignored everywhere.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from .config import FREQUENCY_WINDOW_DAYS, PROGRESS_POINT_LIMIT, RECENT_RECORD_COUNT, TIME_RANGE_DAYS
from .models import ExerciseEntry, PersonalRecord, SetEntry, WorkoutLog


class TimeRange(str, Enum):
    """Report window selectable from the CLI."""

    WEEK = "week"
    MONTH = "month"
    THREE_MONTHS = "three_months"
    YEAR = "year"
    ALL_TIME = "all_time"

    @property
    def days(self) -> int:
        return TIME_RANGE_DAYS[self.value]


@dataclass(frozen=True)
class ReportSummary:
    total_workouts: int
    total_volume: float
    total_duration: float  # seconds
    average_duration: float  # seconds


@dataclass(frozen=True)
class WeekToDate:
    week_start: date  # Monday
    workouts: int
    volume: float


@dataclass(frozen=True)
class VolumePoint:
    week_start: date  # Monday
    volume: float


@dataclass(frozen=True)
class FrequencyPoint:
    day: date
    count: int


@dataclass(frozen=True)
class ProgressPoint:
    day: date
    weight: float
    reps: int


def _completed(logs: Sequence[WorkoutLog]) -> list[WorkoutLog]:
    return [log for log in logs if not log.is_active]


def _log_date(log: WorkoutLog) -> date:
    return log.started_at.date()


def set_volume(entry: SetEntry) -> float:
    """reps × weight, counted only for completed sets."""
    return entry.volume


def exercise_volume(exercise: ExerciseEntry) -> float:
    return sum(set_volume(s) for s in exercise.completed_sets)


def workout_volume(log: WorkoutLog) -> float:
    return sum(exercise_volume(e) for e in log.exercises)


def summary_stats(logs: Sequence[WorkoutLog]) -> ReportSummary:
    """
    Totals across completed workouts.

    Args:
        logs: Workout logs in any order

    Returns:
        ReportSummary; averages are 0.0 when there are no workouts
    """
    done = _completed(logs)
    total_duration = sum(log.duration or 0.0 for log in done)
    return ReportSummary(
        total_workouts=len(done),
        total_volume=sum(workout_volume(log) for log in done),
        total_duration=total_duration,
        average_duration=total_duration / len(done) if done else 0.0,
    )


def weekly_volume(logs: Sequence[WorkoutLog]) -> list[VolumePoint]:
    """
    Total volume per calendar week.

    Weeks start on Monday. Only weeks with at least one workout appear.

    Returns:
        Points sorted by week_start ascending
    """
    by_week: dict[date, float] = {}
    for log in _completed(logs):
        day = _log_date(log)
        monday = day - timedelta(days=day.weekday())
        by_week[monday] = by_week.get(monday, 0.0) + workout_volume(log)
    return [VolumePoint(week, volume) for week, volume in sorted(by_week.items())]


def workout_frequency(
    logs: Sequence[WorkoutLog],
    today: date,
    days: int = FREQUENCY_WINDOW_DAYS,
) -> list[FrequencyPoint]:
    """
    Workouts per day over the last ``days`` days, ending today.

    Days without a workout are included with a count of 0.
    """
    if days <= 0:
        return []
    first = today - timedelta(days=days - 1)
    counts = {first + timedelta(days=i): 0 for i in range(days)}
    for log in _completed(logs):
        day = _log_date(log)
        if day in counts:
            counts[day] += 1
    return [FrequencyPoint(day, count) for day, count in counts.items()]


def exercise_progress(
    logs: Sequence[WorkoutLog],
    exercise_name: str,
    limit: int = PROGRESS_POINT_LIMIT,
) -> list[ProgressPoint]:
    """
    Best set of an exercise in each workout, oldest first.

    Workouts where the exercise has no completed weighted set are skipped.
    At most ``limit`` of the most recent points are returned.
    """
    points: list[ProgressPoint] = []
    for log in sorted(_completed(logs), key=lambda entry: entry.started_at):
        best: SetEntry | None = None
        for exercise in log.exercises:
            if exercise.name != exercise_name:
                continue
            top = exercise.best_set
            if top is not None and (best is None or (top.weight, top.actual_reps) > (best.weight, best.actual_reps)):
                best = top
        if best is not None:
            points.append(ProgressPoint(_log_date(log), best.weight, best.actual_reps))
    if limit <= 0:
        return []
    return points[-limit:]


def logs_in_range(
    logs: Sequence[WorkoutLog],
    time_range: TimeRange,
    now: datetime,
) -> list[WorkoutLog]:
    """Completed logs started within the window ending at ``now``."""
    cutoff = now - timedelta(days=time_range.days)
    return [log for log in _completed(logs) if cutoff <= log.started_at <= now]


def week_to_date(logs: Sequence[WorkoutLog], today: date) -> WeekToDate:
    """Workouts and volume since Monday of the week containing ``today``."""
    monday = today - timedelta(days=today.weekday())
    this_week = [log for log in _completed(logs) if monday <= _log_date(log) <= today]
    return WeekToDate(
        week_start=monday,
        workouts=len(this_week),
        volume=sum(workout_volume(log) for log in this_week),
    )


def recent_records(
    records: Sequence[PersonalRecord],
    limit: int = RECENT_RECORD_COUNT,
) -> list[PersonalRecord]:
    """The most recently achieved records, newest first."""
    if limit <= 0:
        return []
    return sorted(records, key=lambda r: r.achieved_at, reverse=True)[:limit]
