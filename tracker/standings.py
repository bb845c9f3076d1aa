from typing import Dict, Iterable, List

from .models import Team, MatchScreenshot, Tournament
from .scoring import ScoringCalculator


def compute_standings(teams: Iterable, screenshots: Iterable, calculator: ScoringCalculator = None) -> List[Dict]:
    """
    Aggregate screenshot rows into one standings row per team.

    `teams` are Team-like objects (id, team_id, name, logo_url) in display order;
    `screenshots` are MatchScreenshot-like objects (team_id, placement, kills, points).
    Rows are sorted by total points; equal totals keep the order of `teams`.
    """
    calculator = calculator or ScoringCalculator()

    by_team: Dict[int, List] = {}
    for shot in screenshots:
        by_team.setdefault(shot.team_id, []).append(shot)

    standings = []
    for team in teams:
        matches = by_team.get(team.id, [])
        total_kills = sum(m.kills or 0 for m in matches)
        standings.append({
            'team_id': team.team_id,
            'name': team.name,
            'logo_url': team.logo_url,
            'total_points': sum(m.points or 0 for m in matches),
            'placement_points': sum(calculator.placement_points(m.placement) for m in matches),
            'kill_points': total_kills,
            'total_kills': total_kills,
            'matches_played': len(matches),
            'wins': sum(1 for m in matches if m.placement == 1),
        })

    # sort() is stable, so ties stay in team order
    standings.sort(key=lambda s: s['total_points'], reverse=True)

    for i, s in enumerate(standings):
        s['rank'] = i + 1

    return standings


def get_tournament_standings(tournament: Tournament) -> List[Dict]:
    teams = Team.query.filter_by(tournament_id=tournament.id).order_by(Team.id).all()
    team_ids = [t.id for t in teams]
    if not team_ids:
        return []

    screenshots = MatchScreenshot.query.filter(MatchScreenshot.team_id.in_(team_ids)).all()
    return compute_standings(teams, screenshots)
