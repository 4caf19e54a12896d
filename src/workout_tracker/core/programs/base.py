"""
Base types for workout program templates.

A ProgramTemplate is a named set of WorkoutDayTemplates; each day lists
the ExerciseTemplates a session started from it will contain.
"""

from dataclasses import dataclass, field

from ..config import DEFAULT_REPS, DEFAULT_REST_SECONDS, DEFAULT_SETS, DEFAULT_WEIGHT
from ..models import format_weight


@dataclass(frozen=True)
class ExerciseTemplate:
    """Target prescription for one exercise."""

    name: str
    sets: int = DEFAULT_SETS
    reps: int = DEFAULT_REPS
    weight: float = DEFAULT_WEIGHT
    rest_seconds: int = DEFAULT_REST_SECONDS
    order: int = 0

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValueError("ExerciseTemplate.name must be non-empty")
        if self.sets < 0:
            raise ValueError("ExerciseTemplate.sets must be non-negative")
        if self.reps < 0:
            raise ValueError("ExerciseTemplate.reps must be non-negative")
        if self.weight < 0:
            raise ValueError("ExerciseTemplate.weight must be non-negative")

    @property
    def formatted_target(self) -> str:
        """e.g. "3 × 10 @ 135" or "3 × 10" when unweighted."""
        base = f"{self.sets} × {self.reps}"
        if self.weight > 0:
            return f"{base} @ {format_weight(self.weight)}"
        return base


@dataclass(frozen=True)
class WorkoutDayTemplate:
    """One training day of a program."""

    name: str
    order: int
    exercises: tuple[ExerciseTemplate, ...] = ()
    notes: str = ""


@dataclass(frozen=True)
class ProgramTemplate:
    """
    A complete program.

    Loaded from YAML; see loader.py for the file format.
    """

    program_id: str
    name: str
    description: str = ""
    days: tuple[WorkoutDayTemplate, ...] = field(default_factory=tuple)
