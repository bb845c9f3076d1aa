"""
Unit tests for access control.
Tests: access code hashing, validate_access_code, sign_in_player, sign_in_with_code, sign_out
"""
import pytest
from flask_login import current_user

from tracker import auth
from tracker.models import (
    Session, AccessCode, hash_code, encrypt_code, decrypt_code,
    ROLE_ADMIN, ROLE_PLAYER, PLAYER_DIRECT_CODE
)


@pytest.fixture
def admin_code(db_session):
    db_session.add(AccessCode.create_code('ADMIN2025', role=ROLE_ADMIN, label='organizers'))
    db_session.commit()
    return 'ADMIN2025'


class TestCodeHelpers:
    """Tests for code hashing and encryption."""

    def test_hash_normalizes(self):
        assert hash_code('  admin2025 ') == hash_code('ADMIN2025')

    def test_hash_differs_per_code(self):
        assert hash_code('ADMIN2025') != hash_code('ADMIN2026')

    def test_encrypt_roundtrip(self):
        encrypted = encrypt_code('ADMIN2025')

        assert encrypted != 'ADMIN2025'
        assert decrypt_code(encrypted) == 'ADMIN2025'

    @pytest.mark.parametrize('raw,expected', [
        (' abc ', 'ABC'),
        ('', ''),
        (None, ''),
    ])
    def test_normalize_code(self, raw, expected):
        assert auth.normalize_code(raw) == expected


class TestValidateAccessCode:
    """Tests for validate_access_code."""

    def test_valid_code(self, db_session, admin_code):
        assert auth.validate_access_code('ADMIN2025') == (ROLE_ADMIN, None)

    def test_case_and_whitespace_ignored(self, db_session, admin_code):
        assert auth.validate_access_code('  admin2025\n') == (ROLE_ADMIN, None)

    def test_unknown_code(self, db_session, admin_code):
        assert auth.validate_access_code('WRONG') is None

    def test_empty_code(self, db_session, admin_code):
        assert auth.validate_access_code('   ') is None

    def test_deactivated_code(self, db_session, admin_code):
        code = AccessCode.query.first()
        code.is_active = False
        db_session.commit()

        assert auth.validate_access_code('ADMIN2025') is None

    def test_team_code(self, db_session, sample_teams):
        db_session.add(AccessCode.create_code('TEAM1', role=ROLE_PLAYER, team_id=sample_teams[0].id))
        db_session.commit()

        assert auth.validate_access_code('team1') == (ROLE_PLAYER, sample_teams[0].id)


class TestSignIn:
    """Tests for session creation."""

    def test_player_sign_in(self, app, db_session):
        with app.test_request_context():
            session = auth.sign_in_player()

            assert session.role == ROLE_PLAYER
            assert session.code_used == PLAYER_DIRECT_CODE
            assert session.is_admin is False
            assert current_user.is_authenticated
            assert current_user.get_id() == session.user_id

        assert Session.query.count() == 1

    def test_each_player_gets_own_identity(self, app, db_session):
        with app.test_request_context():
            first = auth.sign_in_player()
        with app.test_request_context():
            second = auth.sign_in_player()

        assert first.user_id != second.user_id

    def test_code_sign_in(self, app, db_session, admin_code):
        with app.test_request_context():
            session, message = auth.sign_in_with_code(' admin2025 ')

            assert message == "Welcome admin!"
            assert session.is_admin
            assert session.code_used == 'ADMIN2025'
            assert current_user.is_authenticated

    def test_invalid_code(self, app, db_session, admin_code):
        with app.test_request_context():
            assert auth.sign_in_with_code('NOPE') == (None, "Invalid access code")
            assert not current_user.is_authenticated

        assert Session.query.count() == 0

    def test_empty_code(self, app, db_session):
        with app.test_request_context():
            assert auth.sign_in_with_code('  ') == (None, "Please enter an access code")

    def test_code_not_stored_in_plaintext(self, app, db_session, admin_code):
        with app.test_request_context():
            session, _ = auth.sign_in_with_code('ADMIN2025')

        assert 'ADMIN2025' not in session.code_used_encrypted
        assert 'ADMIN2025' not in AccessCode.query.first().code_hash


class TestSignOut:
    """Tests for sign_out."""

    def test_sign_out_deletes_session(self, app, db_session):
        with app.test_request_context():
            auth.sign_in_player()

            assert auth.sign_out() is True
            assert not current_user.is_authenticated

        assert Session.query.count() == 0

    def test_sign_out_anonymous(self, app, db_session):
        with app.test_request_context():
            assert auth.sign_out() is False


class TestUserLoader:
    """Tests for the Flask-Login user loader."""

    def test_load_existing(self, db_session):
        db_session.add(Session.create_session('u-1', PLAYER_DIRECT_CODE, ROLE_PLAYER))
        db_session.commit()

        assert auth.load_user('u-1').role == ROLE_PLAYER

    def test_load_missing(self, db_session):
        assert auth.load_user('u-missing') is None
