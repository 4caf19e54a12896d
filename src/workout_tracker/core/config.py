"""
Configuration constants for the workout tracker.

All adjustable parameters are centralized here for easy tuning.
"""

from typing import Final

# =============================================================================
# XP AND LEVELING
# =============================================================================

BASE_WORKOUT_XP: Final[int] = 100  # XP for any completed workout
PR_XP_MULTIPLIER: Final[float] = 2.0  # Applied once if the workout set any PR
LEVEL_BASE_XP: Final[float] = 100.0  # Threshold scale: base × growth^level
LEVEL_GROWTH: Final[float] = 1.5  # Geometric growth per level
STARTING_LEVEL: Final[int] = 1

# =============================================================================
# SESSION DEFAULTS
# =============================================================================

QUICK_WORKOUT_NAME: Final[str] = "Quick Workout"  # Label for blank sessions
DEFAULT_SETS: Final[int] = 3
DEFAULT_REPS: Final[int] = 10
DEFAULT_WEIGHT: Final[float] = 0.0
DEFAULT_REST_SECONDS: Final[int] = 60

# =============================================================================
# REPORTS
# =============================================================================

FREQUENCY_WINDOW_DAYS: Final[int] = 7  # Days shown in the frequency chart
PROGRESS_POINT_LIMIT: Final[int] = 30  # Max data points per exercise chart
RECENT_LOG_COUNT: Final[int] = 10
RECENT_RECORD_COUNT: Final[int] = 5  # Records listed under a report

TIME_RANGE_DAYS: Final[dict[str, int]] = {
    "week": 7,
    "month": 30,
    "three_months": 91,
    "year": 365,
    "all_time": 3650,
}

# =============================================================================
# STORAGE LAYOUT
# =============================================================================

APP_DIR_NAME: Final[str] = ".workout-tracker"
HOME_ENV_VAR: Final[str] = "WORKOUT_TRACKER_HOME"

WORKOUT_LOGS_FILE: Final[str] = "workout_logs.jsonl"
PERSONAL_RECORDS_FILE: Final[str] = "personal_records.json"
USER_LEVELS_FILE: Final[str] = "user_levels.json"

ACTIVE_WORKOUT_FILE: Final[str] = "active_workout.json"
ACTIVE_WORKOUT_START_FILE: Final[str] = "active_workout_start.txt"
