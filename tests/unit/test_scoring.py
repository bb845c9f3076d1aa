"""
Unit tests for match scoring.
Tests: placement table, kill points, total points, custom tables
"""
import pytest
from tracker.scoring import ScoringCalculator, PLACEMENT_POINTS, placement_points, calculate_points


class TestPlacementPoints:
    """Tests for the placement points table."""

    @pytest.mark.parametrize('placement,expected', [
        (1, 10), (2, 6), (3, 5), (4, 4), (5, 3), (6, 2), (7, 1), (8, 1),
    ])
    def test_table_values(self, placement, expected):
        """Each ranked placement maps to its table value."""
        assert placement_points(placement) == expected

    @pytest.mark.parametrize('placement', [0, -1, 9, 12, 100])
    def test_unlisted_placement_scores_zero(self, placement):
        """Placements outside the table give no points."""
        assert placement_points(placement) == 0

    def test_missing_placement_scores_zero(self):
        assert placement_points(None) == 0

    def test_table_is_non_increasing(self):
        """A better placement never scores less than a worse one."""
        values = [PLACEMENT_POINTS[p] for p in sorted(PLACEMENT_POINTS)]
        assert values == sorted(values, reverse=True)


class TestCalculatePoints:
    """Tests for total points of one match."""

    def test_win_with_kills(self):
        """First place with 5 kills scores 15."""
        assert calculate_points(1, 5) == 15

    def test_kills_only(self):
        """Placement outside the table still scores kills."""
        assert calculate_points(9, 3) == 3
        assert calculate_points(12, 3) == 3

    def test_no_kills(self):
        assert calculate_points(2, 0) == 6

    def test_missing_values(self):
        """Unknown placement and kills contribute nothing."""
        assert calculate_points(None, None) == 0
        assert calculate_points(None, 4) == 4
        assert calculate_points(3, None) == 5

    def test_negative_kills_rejected(self):
        with pytest.raises(ValueError):
            calculate_points(1, -1)


class TestCustomCalculator:
    """Tests for a calculator with its own rules."""

    def test_custom_table(self):
        calc = ScoringCalculator(placement_points={1: 25, 2: 20})
        assert calc.placement_points(1) == 25
        assert calc.placement_points(3) == 0

    def test_empty_table(self):
        """An explicitly empty table scores kills only."""
        calc = ScoringCalculator(placement_points={})
        assert calc.placement_points(1) == 0
        assert calc.calculate_points(1, 4) == 4

    def test_custom_kill_value(self):
        calc = ScoringCalculator(points_per_kill=2)
        assert calc.calculate_points(1, 4) == 18

    def test_custom_table_does_not_alias_default(self):
        """Changing one calculator's table leaves the module table alone."""
        calc = ScoringCalculator()
        calc.placement_table[1] = 99
        assert PLACEMENT_POINTS[1] == 10
        assert placement_points(1) == 10
