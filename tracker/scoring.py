from typing import Dict, Optional

# Placement points for one match; any placement not listed scores 0
PLACEMENT_POINTS: Dict[int, int] = {
    1: 10,
    2: 6,
    3: 5,
    4: 4,
    5: 3,
    6: 2,
    7: 1,
    8: 1,
}

POINTS_PER_KILL = 1


class ScoringCalculator:
    """
    Match scoring: placement points from a fixed table plus one point per kill.
    The same instance rules apply at upload, at manual correction and in standings.
    """

    def __init__(self, placement_points: Dict[int, int] = None, points_per_kill: int = POINTS_PER_KILL):
        self.placement_table = dict(PLACEMENT_POINTS if placement_points is None else placement_points)
        self.points_per_kill = points_per_kill

    def placement_points(self, placement: Optional[int]) -> int:
        """Points for a placement. Unknown, out-of-range or missing placements give 0."""
        if placement is None:
            return 0
        return self.placement_table.get(placement, 0)

    def kill_points(self, kills: Optional[int]) -> int:
        if kills is None:
            return 0
        if kills < 0:
            raise ValueError(f"Kill count cannot be negative: {kills}")
        return kills * self.points_per_kill

    def calculate_points(self, placement: Optional[int], kills: Optional[int]) -> int:
        """
        Total points for one match.

        Args:
            placement: Final rank of the team (1 = first), or None if unknown
            kills: Number of kills, or None if unknown

        Returns:
            placement points + kill points
        """
        return self.placement_points(placement) + self.kill_points(kills)


_default_calculator = ScoringCalculator()


def placement_points(placement: Optional[int]) -> int:
    return _default_calculator.placement_points(placement)


def calculate_points(placement: Optional[int], kills: Optional[int]) -> int:
    return _default_calculator.calculate_points(placement, kills)
