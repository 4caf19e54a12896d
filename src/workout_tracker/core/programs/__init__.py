"""
Workout program templates for workout-tracker.

Each program is described by a ProgramTemplate loaded from YAML; a
session can be started from any of its days.
"""

from .base import ExerciseTemplate, ProgramTemplate, WorkoutDayTemplate
from .registry import find_day, get_program, get_registry

__all__ = [
    "ExerciseTemplate",
    "ProgramTemplate",
    "WorkoutDayTemplate",
    "find_day",
    "get_program",
    "get_registry",
]
