import uuid
import logging
from functools import wraps
from typing import Optional, Tuple

from flask import jsonify
from flask_login import LoginManager, current_user, login_user, logout_user

from .models import db, Session, AccessCode, hash_code, ROLE_PLAYER, PLAYER_DIRECT_CODE

logger = logging.getLogger(__name__)

login_manager = LoginManager()


@login_manager.user_loader
def load_user(user_id: str) -> Optional[Session]:
    return Session.query.filter_by(user_id=user_id).first()


@login_manager.unauthorized_handler
def unauthorized():
    return jsonify({'error': 'Authentication required'}), 401


def admin_required(view):
    """Allow only signed-in admin sessions."""
    @wraps(view)
    def wrapped(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        if not current_user.is_admin:
            return jsonify({'error': 'Admin access required'}), 403
        return view(*args, **kwargs)
    return wrapped


def normalize_code(code: str) -> str:
    return (code or '').strip().upper()


def validate_access_code(code: str) -> Optional[Tuple[str, Optional[int]]]:
    """
    Map an access code to (role, team_id).

    Returns None for empty, unknown or deactivated codes.
    """
    normalized = normalize_code(code)
    if not normalized:
        return None

    access_code = AccessCode.query.filter_by(code_hash=hash_code(normalized), is_active=True).first()
    if not access_code:
        return None

    return access_code.role, access_code.team_id


def _new_user_id() -> str:
    return uuid.uuid4().hex


def _start_session(code_used: str, role: str, team_id: int = None) -> Session:
    session = Session.create_session(
        user_id=_new_user_id(),
        code_used=code_used,
        role=role,
        team_id=team_id
    )
    db.session.add(session)
    db.session.commit()

    login_user(session)
    logger.info(f"Started {role} session {session.user_id[:8]}")
    return session


def sign_in_player() -> Session:
    """Direct player sign-in; the team is chosen per upload."""
    return _start_session(PLAYER_DIRECT_CODE, ROLE_PLAYER)


def sign_in_with_code(code: str) -> Tuple[Optional[Session], str]:
    """Sign in with an access code. Returns (session, message)."""
    normalized = normalize_code(code)
    if not normalized:
        return None, "Please enter an access code"

    result = validate_access_code(normalized)
    if result is None:
        logger.warning("Rejected invalid access code")
        return None, "Invalid access code"

    role, team_id = result
    session = _start_session(normalized, role, team_id)
    return session, f"Welcome {role}!"


def sign_out() -> bool:
    """Tear down the current session row and log out."""
    if not current_user.is_authenticated:
        return False

    session = Session.query.filter_by(user_id=current_user.get_id()).first()
    logout_user()
    if session:
        db.session.delete(session)
        db.session.commit()
    return True
