from flask import Blueprint, request, jsonify, current_app
from flask_login import current_user, login_required

from tracker.auth import admin_required

bp = Blueprint('screenshots', __name__)


def get_tournament_or_404(tournament_id):
    tournament = current_app.registry.get_tournament(tournament_id)
    if not tournament:
        return None, (jsonify({'error': 'Tournament not found'}), 404)
    return tournament, None


@bp.route('/api/v1/teams/<team_id>/screenshots', methods=['POST'])
@login_required
def upload_screenshots(team_id):
    """Upload up to 4 match screenshots for a team (multipart: day, files)."""
    try:
        day = int(request.form.get('day', 1))
    except (TypeError, ValueError):
        return jsonify({'error': 'Day must be 1, 2 or 3'}), 400

    files = [f for f in request.files.getlist('files') if f and f.filename]

    report, message = current_app.screenshots.upload_screenshots(
        team_id=team_id,
        player_id=current_user.get_id(),
        day=day,
        files=files
    )

    if report is None:
        status = 404 if message == 'Team not found' else 400
        return jsonify({'error': message}), status

    status = 201 if report.success_count else 422
    return jsonify(dict(report.to_dict(), message=message)), status


@bp.route('/api/v1/tournaments/<tournament_id>/screenshots', methods=['GET'])
@admin_required
def list_screenshots(tournament_id):
    """Verification list: every screenshot in the tournament, newest first."""
    tournament, error = get_tournament_or_404(tournament_id)
    if error:
        return error

    screenshots = current_app.screenshots.list_for_verification(tournament)
    return jsonify({
        'screenshots': [s.to_dict() for s in screenshots],
        'count': len(screenshots)
    })


@bp.route('/api/v1/tournaments/<tournament_id>/gallery', methods=['GET'])
@login_required
def gallery(tournament_id):
    """Screenshots grouped by team name and day, with optional team/day filters."""
    tournament, error = get_tournament_or_404(tournament_id)
    if error:
        return error

    team_id = request.args.get('team_id', 'all')
    day = request.args.get('day', 0, type=int)
    if day not in (0, 1, 2, 3):
        return jsonify({'error': 'Day must be 0 (all), 1, 2 or 3'}), 400

    screenshots = current_app.screenshots.list_for_gallery(tournament, team_id=team_id, day=day)
    return jsonify({
        'tournament_id': tournament.tournament_id,
        'team_id': team_id,
        'day': day,
        'count': len(screenshots),
        'groups': current_app.screenshots.group_by_team_and_day(screenshots)
    })


@bp.route('/api/v1/tournaments/<tournament_id>/upload-counts', methods=['GET'])
@login_required
def upload_counts(tournament_id):
    tournament, error = get_tournament_or_404(tournament_id)
    if error:
        return error

    return jsonify({
        'max_per_team': current_app.screenshots.max_per_team,
        'teams': current_app.screenshots.upload_counts(tournament)
    })


@bp.route('/api/v1/screenshots/<screenshot_id>', methods=['PATCH'])
@admin_required
def update_screenshot(screenshot_id):
    """Correct the placement and kills read from a screenshot."""
    data = request.get_json(silent=True) or {}

    shot, message = current_app.screenshots.update_screenshot(
        screenshot_id,
        placement=data.get('placement'),
        kills=data.get('kills')
    )
    if not shot:
        status = {'Screenshot not found': 404, 'Failed to update screenshot': 500}.get(message, 400)
        return jsonify({'error': message}), status

    return jsonify({'message': message, 'screenshot': shot.to_dict()})


@bp.route('/api/v1/screenshots/<screenshot_id>', methods=['DELETE'])
@admin_required
def delete_screenshot(screenshot_id):
    success, message = current_app.screenshots.delete_screenshot(screenshot_id)
    if not success:
        status = 404 if message == 'Screenshot not found' else 500
        return jsonify({'error': message}), status
    return jsonify({'message': message})
