"""
CLI entry point using Typer.

Provides commands for logging workouts:
- programs: List available program templates
- start / status / discard / complete: Workout lifecycle
- add-exercise, remove-exercise, add-set, remove-set, log-set: Edit the active workout
- level, records: Progress
- history, report: Past workouts and volume statistics
"""

from .app import app
from .commands import progress, reports, session  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
