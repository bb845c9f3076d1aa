from flask import Blueprint, request, jsonify
from flask_login import current_user, login_required

from tracker import auth

bp = Blueprint('auth', __name__, url_prefix='/api/v1/auth')


@bp.route('/player', methods=['POST'])
def player_sign_in():
    """Direct player access for screenshot submission."""
    if current_user.is_authenticated:
        return jsonify({'message': 'Already signed in', 'session': current_user.to_dict()})

    session = auth.sign_in_player()
    return jsonify({
        'message': 'Welcome! Redirecting to dashboard...',
        'session': session.to_dict()
    }), 201


@bp.route('/access-code', methods=['POST'])
def access_code_sign_in():
    """Sign in with an access code (admins)."""
    if current_user.is_authenticated:
        return jsonify({'message': 'Already signed in', 'session': current_user.to_dict()})

    data = request.get_json(silent=True) or {}
    session, message = auth.sign_in_with_code(data.get('code'))

    if not session:
        status = 400 if message == 'Please enter an access code' else 401
        return jsonify({'error': message}), status

    return jsonify({
        'message': message,
        'session': session.to_dict()
    }), 201


@bp.route('/me', methods=['GET'])
@login_required
def me():
    return jsonify(current_user.to_dict())


@bp.route('/sign-out', methods=['POST'])
@login_required
def sign_out():
    auth.sign_out()
    return jsonify({'message': 'Signed out'})
