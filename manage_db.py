#!/usr/bin/env python3
"""
Database management script for deployment.

Usage:
    python manage_db.py                              # apply migrations
    python manage_db.py create-code CODE [ROLE]      # add an access code (role: admin or player)
"""
import os
import sys

# Add current directory to path so we can import tracker
sys.path.append(os.getcwd())

# Tables come from the migrations, not from create_all()
os.environ['AUTO_CREATE_TABLES'] = 'false'

from tracker.app import create_app
from tracker.models import db, AccessCode, ROLE_ADMIN, ROLE_PLAYER
from tracker.auth import normalize_code
from flask_migrate import upgrade


def deploy():
    """Run deployment tasks."""
    print("Starting database migration...")
    app = create_app()
    with app.app_context():
        try:
            upgrade()
            print("✓ Database migrations applied.")
        except Exception as e:
            print(f"Error applying migrations: {e}")
            sys.exit(1)


def create_code(code: str, role: str = ROLE_ADMIN):
    """Register an access code."""
    if role not in (ROLE_ADMIN, ROLE_PLAYER):
        print(f"Unknown role: {role}")
        sys.exit(1)
    
    code = normalize_code(code)
    if not code:
        print("Access code cannot be empty")
        sys.exit(1)
    
    app = create_app()
    with app.app_context():
        db.session.add(AccessCode.create_code(code, role=role))
        db.session.commit()
        print(f"✓ Access code created for role '{role}'.")


if __name__ == '__main__':
    command = sys.argv[1] if len(sys.argv) > 1 else 'upgrade'
    
    if command == 'upgrade':
        deploy()
    elif command == 'create-code' and len(sys.argv) >= 3:
        create_code(sys.argv[2], sys.argv[3] if len(sys.argv) > 3 else ROLE_ADMIN)
    else:
        print(__doc__)
        sys.exit(1)
