"""Tests for report computations."""

from datetime import date, timedelta

from conftest import T0, USER

from workout_tracker.core.metrics import (
    TimeRange,
    exercise_progress,
    exercise_volume,
    logs_in_range,
    recent_records,
    summary_stats,
    week_to_date,
    weekly_volume,
    workout_frequency,
    workout_volume,
)
from workout_tracker.core.models import ExerciseEntry, PersonalRecord, SetEntry, WorkoutLog


def _set(n: int, reps: int, weight: float, done: bool = True) -> SetEntry:
    return SetEntry(set_number=n, target_reps=reps, target_weight=weight,
                    actual_reps=reps, weight=weight, is_completed=done)


def _log(days_ago: float, *exercises: ExerciseEntry, duration: float = 3600.0, done: bool = True) -> WorkoutLog:
    started = T0 - timedelta(days=days_ago)
    return WorkoutLog(
        user_id=USER,
        day_name="Workout",
        started_at=started,
        exercises=list(exercises),
        completed_at=started + timedelta(seconds=duration) if done else None,
        duration=duration if done else None,
    )


def _squat(*sets: SetEntry) -> ExerciseEntry:
    return ExerciseEntry(name="Squat", order=0, completed_sets=list(sets))


class TestVolume:
    def test_only_completed_sets_count(self):
        ex = _squat(_set(1, 5, 200), _set(2, 5, 200, done=False))
        assert exercise_volume(ex) == 1000

    def test_workout_volume(self):
        bench = ExerciseEntry(name="Bench Press", order=1, completed_sets=[_set(1, 10, 100)])
        assert workout_volume(_log(0, _squat(_set(1, 5, 200)), bench)) == 2000


class TestSummaryStats:
    def test_totals(self):
        logs = [
            _log(1, _squat(_set(1, 5, 100)), duration=1800),
            _log(2, _squat(_set(1, 10, 100)), duration=3600),
            _log(0, _squat(_set(1, 10, 999)), done=False),
        ]
        summary = summary_stats(logs)
        assert summary.total_workouts == 2
        assert summary.total_volume == 1500
        assert summary.total_duration == 5400
        assert summary.average_duration == 2700

    def test_empty(self):
        summary = summary_stats([])
        assert (summary.total_workouts, summary.average_duration) == (0, 0.0)


class TestWeeklyVolume:
    def test_groups_by_monday(self):
        # T0 is Monday 2026-03-02
        logs = [
            _log(0, _squat(_set(1, 1, 100))),     # Mon
            _log(-3, _squat(_set(1, 1, 50))),     # Thu same week
            _log(1, _squat(_set(1, 1, 10))),      # Sun previous week
        ]
        points = weekly_volume(logs)
        assert [(p.week_start, p.volume) for p in points] == [
            (date(2026, 2, 23), 10),
            (date(2026, 3, 2), 150),
        ]


class TestWorkoutFrequency:
    def test_zero_filled_window(self):
        logs = [_log(0, _squat()), _log(0.5, _squat()), _log(2, _squat()), _log(30, _squat())]
        points = workout_frequency(logs, T0.date(), days=7)
        assert len(points) == 7
        assert points[0].day == T0.date() - timedelta(days=6)
        assert points[-1].day == T0.date()
        counts = {p.day: p.count for p in points}
        assert counts[T0.date()] == 1
        assert counts[T0.date() - timedelta(days=1)] == 1
        assert counts[T0.date() - timedelta(days=2)] == 1
        assert sum(counts.values()) == 3

    def test_non_positive_window(self):
        assert workout_frequency([], T0.date(), days=0) == []


class TestExerciseProgress:
    def test_best_set_per_workout_in_date_order(self):
        logs = [
            _log(1, _squat(_set(1, 5, 205), _set(2, 8, 185))),
            _log(8, _squat(_set(1, 5, 195))),
            _log(4, _squat(_set(1, 0, 0))),  # no weighted set
        ]
        points = exercise_progress(logs, "Squat")
        assert [(p.weight, p.reps) for p in points] == [(195, 5), (205, 5)]

    def test_limit_keeps_most_recent(self):
        logs = [_log(d, _squat(_set(1, 5, 100 + d))) for d in range(10)]
        points = exercise_progress(logs, "Squat", limit=3)
        assert [p.weight for p in points] == [102, 101, 100]


class TestLogsInRange:
    def test_week(self):
        logs = [_log(1, _squat()), _log(6, _squat()), _log(8, _squat()), _log(0, _squat(), done=False)]
        in_range = logs_in_range(logs, TimeRange.WEEK, T0)
        assert len(in_range) == 2

    def test_range_days(self):
        assert TimeRange.THREE_MONTHS.days == 91
        assert TimeRange.ALL_TIME.days == 3650


class TestWeekToDate:
    def test_counts_from_monday(self):
        today = (T0 + timedelta(days=2)).date()  # Wednesday
        logs = [
            _log(0, _squat(_set(1, 5, 100))),    # Mon this week
            _log(-2, _squat(_set(1, 2, 100))),   # Wed this week
            _log(1, _squat(_set(1, 9, 100))),    # Sun last week
            _log(-1, _squat(_set(1, 9, 100)), done=False),
        ]
        week = week_to_date(logs, today)
        assert week.week_start == T0.date()
        assert (week.workouts, week.volume) == (2, 700)


class TestRecentRecords:
    def _record(self, name: str, days_ago: int) -> PersonalRecord:
        return PersonalRecord(user_id=USER, exercise_name=name, weight=100, reps=5,
                              achieved_at=T0 - timedelta(days=days_ago))

    def test_newest_first_and_limited(self):
        records = [self._record(f"Lift {d}", d) for d in (4, 0, 6, 2, 1, 5, 3)]
        recent = recent_records(records)
        assert [r.exercise_name for r in recent] == ["Lift 0", "Lift 1", "Lift 2", "Lift 3", "Lift 4"]

    def test_zero_limit(self):
        assert recent_records([self._record("Squat", 0)], limit=0) == []
