"""
Data models for workout-tracker.

All core dataclasses representing workouts, sets, personal records and
leveling state. A workout that is still in progress (the "draft") is a
WorkoutLog whose completed_at is None.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone

from .config import DEFAULT_REST_SECONDS, STARTING_LEVEL
from .progression import xp_for_next_level


def utc_now() -> datetime:
    """Current wall-clock time as a tz-aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate an opaque document identifier."""
    return uuid.uuid4().hex


def format_weight(weight: float) -> str:
    """Render a weight without a trailing .0 (135.0 -> "135", 102.5 -> "102.5")."""
    return f"{weight:g}"


@dataclass
class SetEntry:
    """
    A single set within a logged exercise.

    target_* come from the template; actual_reps/weight are what the user
    reports. previous_performance is a display hint only and never feeds
    into record or XP logic.
    """

    set_number: int  # 1-based, contiguous within the exercise
    target_reps: int
    target_weight: float = 0.0
    actual_reps: int = 0
    weight: float = 0.0
    is_completed: bool = False
    is_pr: bool = False
    previous_performance: str | None = None

    def __post_init__(self) -> None:
        """Validate set data."""
        if self.set_number < 1:
            raise ValueError("set_number must be >= 1")
        if self.target_reps < 0:
            raise ValueError("target_reps must be non-negative")
        if self.actual_reps < 0:
            raise ValueError("actual_reps must be non-negative")
        if self.target_weight < 0:
            raise ValueError("target_weight must be non-negative")
        if self.weight < 0:
            raise ValueError("weight must be non-negative")

    @property
    def volume(self) -> float:
        """reps × weight for a completed set, 0 otherwise."""
        if not self.is_completed:
            return 0.0
        return self.actual_reps * self.weight


@dataclass
class ExerciseEntry:
    """
    One exercise inside a workout, with its sets in order.
    """

    name: str
    order: int  # 0-based position, contiguous within the workout
    completed_sets: list[SetEntry] = field(default_factory=list)
    rest_seconds: int = DEFAULT_REST_SECONDS

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("exercise name must be non-empty")
        if self.order < 0:
            raise ValueError("order must be non-negative")

    @property
    def best_set(self) -> SetEntry | None:
        """
        The set that counts for record purposes.

        Only completed sets with positive weight qualify. Highest weight
        wins; equal weights are broken by more reps. The earliest set wins
        an exact tie.
        """
        best: SetEntry | None = None
        for s in self.completed_sets:
            if not s.is_completed or s.weight <= 0:
                continue
            if best is None or (s.weight, s.actual_reps) > (best.weight, best.actual_reps):
                best = s
        return best

    @property
    def total_volume(self) -> float:
        return sum(s.volume for s in self.completed_sets)

    @property
    def completed_count(self) -> int:
        return sum(1 for s in self.completed_sets if s.is_completed)


@dataclass
class WorkoutLog:
    """
    A workout session.

    While completed_at is None this is the active draft. started_at is
    captured once at start and never recomputed; completed_at and duration
    (seconds) are set exactly once, at completion.
    """

    user_id: str
    day_name: str
    started_at: datetime
    id: str = field(default_factory=new_id)
    exercises: list[ExerciseEntry] = field(default_factory=list)
    completed_at: datetime | None = None
    duration: float | None = None
    program_id: str | None = None
    program_name: str | None = None
    notes: str | None = None

    def __post_init__(self) -> None:
        """Validate workout data."""
        if not self.user_id:
            raise ValueError("user_id must be non-empty")
        if self.started_at.tzinfo is None:
            raise ValueError("started_at must be timezone-aware")
        if self.duration is not None and self.duration < 0:
            raise ValueError("duration must be non-negative")

    @property
    def is_active(self) -> bool:
        return self.completed_at is None

    @property
    def total_volume(self) -> float:
        """Sum of reps × weight over every completed set."""
        return sum(e.total_volume for e in self.exercises)

    @property
    def total_sets(self) -> int:
        return sum(e.completed_count for e in self.exercises)

    def find_exercise(self, name: str) -> ExerciseEntry | None:
        """Return the first exercise with the given name, or None."""
        for exercise in self.exercises:
            if exercise.name == name:
                return exercise
        return None


@dataclass
class PersonalRecord:
    """
    The current best lift for one (user_id, exercise_name) pair.

    Writing a new record for the same pair overwrites the old one.
    """

    user_id: str
    exercise_name: str
    weight: float
    reps: int
    achieved_at: datetime
    workout_log_id: str | None = None
    id: str = field(default_factory=new_id)

    def __post_init__(self) -> None:
        if self.weight < 0:
            raise ValueError("weight must be non-negative")
        if self.reps < 0:
            raise ValueError("reps must be non-negative")

    @property
    def formatted_record(self) -> str:
        """e.g. "185 × 5"."""
        return f"{format_weight(self.weight)} × {self.reps}"


@dataclass
class UserLevel:
    """
    A user's leveling progress.

    current_xp is XP earned inside the current level and always stays below
    xp_for_next_level; total_xp is the lifetime counter.
    """

    user_id: str
    current_level: int = STARTING_LEVEL
    current_xp: int = 0
    total_xp: int = 0
    last_level_up_date: datetime | None = None
    updated_at: datetime = field(default_factory=utc_now)

    def __post_init__(self) -> None:
        """Validate level data."""
        if self.current_level < 1:
            raise ValueError("current_level must be >= 1")
        if self.current_xp < 0:
            raise ValueError("current_xp must be non-negative")
        if self.total_xp < 0:
            raise ValueError("total_xp must be non-negative")

    @property
    def xp_for_next_level(self) -> int:
        """XP needed to leave the current level."""
        return xp_for_next_level(self.current_level)

    @property
    def progress_to_next_level(self) -> float:
        """Progress toward the next level, 0.0 to 1.0."""
        needed = self.xp_for_next_level
        if needed <= 0:
            return 0.0
        return self.current_xp / needed

    @property
    def formatted_progress(self) -> str:
        """e.g. "450/1000 XP"."""
        return f"{self.current_xp}/{self.xp_for_next_level} XP"


@dataclass(frozen=True)
class LevelUpEvent:
    """A level-up to celebrate in the UI."""

    previous_level: int
    new_level: int
    timestamp: datetime

    @property
    def level_gain(self) -> int:
        return self.new_level - self.previous_level
