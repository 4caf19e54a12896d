"""
XP and level progression formulas.

All functions are pure and deterministic so that any client recomputing a
level from the same inputs gets the same answer.

    xp_for_next_level(L) = floor(LEVEL_BASE_XP × LEVEL_GROWTH^L)
"""

import math
from typing import NamedTuple

from .config import (
    BASE_WORKOUT_XP,
    LEVEL_BASE_XP,
    LEVEL_GROWTH,
    PR_XP_MULTIPLIER,
    STARTING_LEVEL,
)


class XPResult(NamedTuple):
    """Outcome of adding XP to a level state."""

    new_level: int
    new_current_xp: int
    new_total_xp: int
    leveled_up: bool


def xp_for_next_level(level: int) -> int:
    """
    XP required to advance from ``level`` to ``level + 1``.

    Uses an integer floor (not round): L=1 -> 150, L=5 -> 759, L=10 -> 5766.

    Args:
        level: Current level (>= 1)

    Returns:
        Threshold in XP
    """
    return math.floor(LEVEL_BASE_XP * LEVEL_GROWTH ** level)


def workout_xp(has_prs: bool) -> int:
    """
    XP earned for completing a workout.

    A workout with any personal record earns the base award times the PR
    multiplier, truncated to an integer. The number of PRs does not matter.

    Args:
        has_prs: Whether the workout set at least one new record

    Returns:
        XP amount (100 or 200 with default constants)
    """
    if has_prs:
        return int(BASE_WORKOUT_XP * PR_XP_MULTIPLIER)
    return BASE_WORKOUT_XP


def add_xp(current_level: int, current_xp: int, total_xp: int, earned_xp: int) -> XPResult:
    """
    Add earned XP and roll over any level thresholds.

    Several levels may be gained in one call; the loop subtracts each
    level's threshold in turn until current XP is below the next one.
    Non-positive ``earned_xp`` returns the inputs unchanged.

    Args:
        current_level: Level before the award
        current_xp: XP inside the current level
        total_xp: Lifetime XP
        earned_xp: XP to add

    Returns:
        XPResult(new_level, new_current_xp, new_total_xp, leveled_up)
    """
    if earned_xp <= 0:
        return XPResult(current_level, current_xp, total_xp, False)

    level = current_level
    xp = current_xp + earned_xp
    leveled_up = False

    while xp >= xp_for_next_level(level):
        xp -= xp_for_next_level(level)
        level += 1
        leveled_up = True

    return XPResult(level, xp, total_xp + earned_xp, leveled_up)


def level_from_total_xp(total_xp: int) -> tuple[int, int]:
    """
    Recompute (level, current_xp) from lifetime XP alone.

    Useful for reconciling a stored level against its total_xp.

    Args:
        total_xp: Lifetime XP

    Returns:
        (level, xp inside that level)
    """
    result = add_xp(STARTING_LEVEL, 0, 0, total_xp)
    return result.new_level, result.new_current_xp


def progress_fraction(level: int, current_xp: int) -> float:
    """Fraction of the way from ``level`` to the next one, clipped to [0, 1]."""
    needed = xp_for_next_level(level)
    if needed <= 0:
        return 0.0
    return max(0.0, min(1.0, current_xp / needed))
