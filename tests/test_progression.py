"""
Unit tests for XP and level formulas.

Values are hand-computed from xp_for_next_level(L) = floor(100 × 1.5^L).
"""

import pytest

from workout_tracker.core.progression import (
    add_xp,
    level_from_total_xp,
    progress_fraction,
    workout_xp,
    xp_for_next_level,
)


class TestXpForNextLevel:
    @pytest.mark.parametrize(
        "level, expected",
        [(1, 150), (2, 225), (3, 337), (5, 759), (10, 5766)],
    )
    def test_spot_values(self, level, expected):
        assert xp_for_next_level(level) == expected

    def test_thresholds_grow(self):
        values = [xp_for_next_level(level) for level in range(1, 20)]
        assert values == sorted(values)
        assert len(set(values)) == len(values)


class TestWorkoutXp:
    def test_plain_workout(self):
        assert workout_xp(False) == 100

    def test_workout_with_prs(self):
        assert workout_xp(True) == 200


class TestAddXp:
    def test_below_threshold_stays_on_level(self):
        result = add_xp(1, 0, 0, 100)
        assert (result.new_level, result.new_current_xp, result.new_total_xp) == (1, 100, 100)
        assert result.leveled_up is False

    def test_exact_threshold_levels_up(self):
        result = add_xp(1, 0, 0, 150)
        assert (result.new_level, result.new_current_xp) == (2, 0)
        assert result.leveled_up is True

    def test_pr_workout_from_fresh_user(self):
        result = add_xp(1, 0, 0, 200)
        assert (result.new_level, result.new_current_xp, result.new_total_xp) == (2, 50, 200)

    def test_multi_level_jump(self):
        # 500 - 150 (L1) - 225 (L2) = 125, below L3's 337
        result = add_xp(1, 0, 0, 500)
        assert result == (3, 125, 500, True)

    def test_carries_existing_xp(self):
        result = add_xp(2, 200, 350, 100)
        # 300 >= 225 -> level 3 with 75
        assert result == (3, 75, 450, True)

    @pytest.mark.parametrize("earned", [0, -50])
    def test_non_positive_is_noop(self, earned):
        assert add_xp(4, 12, 900, earned) == (4, 12, 900, False)


class TestLevelFromTotalXp:
    def test_zero(self):
        assert level_from_total_xp(0) == (1, 0)

    def test_matches_incremental_awards(self):
        level, xp, total = 1, 0, 0
        for earned in (100, 200, 100, 200, 200):
            level, xp, total, _ = add_xp(level, xp, total, earned)
        assert level_from_total_xp(total) == (level, xp)

    def test_multi_level(self):
        assert level_from_total_xp(500) == (3, 125)


class TestProgressFraction:
    def test_halfway(self):
        assert progress_fraction(1, 75) == pytest.approx(0.5)

    def test_clipped(self):
        assert progress_fraction(1, 1000) == 1.0
        assert progress_fraction(1, -5) == 0.0
