from datetime import datetime
from flask_sqlalchemy import SQLAlchemy
from flask_login import UserMixin
from cryptography.fernet import Fernet
import os
import base64
import hashlib

db = SQLAlchemy()

ROLE_ADMIN = 'admin'
ROLE_PLAYER = 'player'
PLAYER_DIRECT_CODE = 'PLAYER_DIRECT'

# Largest value a db.Integer column holds on every supported backend
MAX_COLUMN_INT = 2 ** 31 - 1


def get_encryption_key():
    """Get or generate encryption key from SECRET_KEY."""
    secret = os.getenv('SECRET_KEY', 'point-tracker-secret')
    key = hashlib.sha256(secret.encode()).digest()
    return base64.urlsafe_b64encode(key)

def encrypt_code(code: str) -> str:
    """Encrypt an access code for storage on the session."""
    f = Fernet(get_encryption_key())
    return f.encrypt(code.encode()).decode()

def decrypt_code(encrypted: str) -> str:
    f = Fernet(get_encryption_key())
    return f.decrypt(encrypted.encode()).decode()

def hash_code(code: str) -> str:
    """Lookup digest for an access code (trimmed, upper-cased)."""
    return hashlib.sha256(code.strip().upper().encode()).hexdigest()


class Tournament(db.Model):
    __tablename__ = 'tournaments'

    id = db.Column(db.Integer, primary_key=True)
    tournament_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    name = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text, nullable=True)
    total_matches = db.Column(db.Integer, nullable=False, default=12)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    teams = db.relationship('Team', back_populates='tournament', cascade='all, delete-orphan',
                            order_by='Team.id')

    def to_dict(self):
        return {
            'id': self.id,
            'tournament_id': self.tournament_id,
            'name': self.name,
            'description': self.description,
            'total_matches': self.total_matches,
            'team_count': len(self.teams),
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Team(db.Model):
    __tablename__ = 'teams'

    id = db.Column(db.Integer, primary_key=True)
    team_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    tournament_id = db.Column(db.Integer, db.ForeignKey('tournaments.id', ondelete='CASCADE'), nullable=False)
    name = db.Column(db.String(100), nullable=False)
    logo_url = db.Column(db.String(500), nullable=True)
    logo_path = db.Column(db.String(300), nullable=True)  # Object key in the team-logos bucket
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    tournament = db.relationship('Tournament', back_populates='teams')
    screenshots = db.relationship('MatchScreenshot', back_populates='team', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'team_id': self.team_id,
            'tournament_id': self.tournament.tournament_id if self.tournament else None,
            'name': self.name,
            'logo_url': self.logo_url,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class MatchScreenshot(db.Model):
    __tablename__ = 'match_screenshots'

    id = db.Column(db.Integer, primary_key=True)
    screenshot_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=False, index=True)
    player_id = db.Column(db.String(50), nullable=False)  # Session user_id of the uploader
    day = db.Column(db.Integer, nullable=False, default=1)
    screenshot_url = db.Column(db.String(500), nullable=False)
    storage_path = db.Column(db.String(300), nullable=True)  # Object key in the match-screenshots bucket

    # Extracted by the analyzer, corrected by admins
    placement = db.Column(db.Integer, nullable=True)
    kills = db.Column(db.Integer, nullable=True)
    points = db.Column(db.Integer, nullable=True)

    analyzed_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    team = db.relationship('Team', back_populates='screenshots')

    __table_args__ = (
        db.CheckConstraint('day >= 1 AND day <= 3', name='match_screenshots_day_range'),
    )

    def to_dict(self):
        return {
            'screenshot_id': self.screenshot_id,
            'team_id': self.team.team_id if self.team else None,
            'team_name': self.team.name if self.team else None,
            'player_id': self.player_id,
            'day': self.day,
            'screenshot_url': self.screenshot_url,
            'placement': self.placement,
            'kills': self.kills,
            'points': self.points,
            'analyzed_at': self.analyzed_at.isoformat() if self.analyzed_at else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class Session(UserMixin, db.Model):
    """An authenticated identity bound to a role. Deleted at sign-out."""
    __tablename__ = 'sessions'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(50), unique=True, nullable=False, index=True)
    code_used_encrypted = db.Column(db.String(500), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_PLAYER)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='SET NULL'), nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    team = db.relationship('Team')

    def get_id(self):
        """Return the user ID for Flask-Login session management."""
        return self.user_id

    @property
    def code_used(self) -> str:
        return decrypt_code(self.code_used_encrypted)

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN

    @staticmethod
    def create_session(user_id: str, code_used: str, role: str, team_id: int = None) -> 'Session':
        return Session(
            user_id=user_id,
            code_used_encrypted=encrypt_code(code_used),
            role=role,
            team_id=team_id
        )

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'role': self.role,
            'team_id': self.team.team_id if self.team else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }


class AccessCode(db.Model):
    __tablename__ = 'access_codes'

    id = db.Column(db.Integer, primary_key=True)
    code_hash = db.Column(db.String(64), unique=True, nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False, default=ROLE_ADMIN)
    team_id = db.Column(db.Integer, db.ForeignKey('teams.id', ondelete='CASCADE'), nullable=True)
    label = db.Column(db.String(100), nullable=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    team = db.relationship('Team')

    @staticmethod
    def create_code(code: str, role: str = ROLE_ADMIN, team_id: int = None, label: str = None) -> 'AccessCode':
        return AccessCode(
            code_hash=hash_code(code),
            role=role,
            team_id=team_id,
            label=label
        )
