"""initial schema

Revision ID: 3b7c1e9a2d40
Revises:
Create Date: 2025-11-04 00:22:22.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '3b7c1e9a2d40'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        'tournaments',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('tournament_id', sa.String(length=50), nullable=False),
        sa.Column('name', sa.String(length=200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('total_matches', sa.Integer(), nullable=False, server_default='12'),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_tournaments_tournament_id'), 'tournaments', ['tournament_id'], unique=True)

    op.create_table(
        'teams',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('team_id', sa.String(length=50), nullable=False),
        sa.Column('tournament_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=100), nullable=False),
        sa.Column('logo_url', sa.String(length=500), nullable=True),
        sa.Column('logo_path', sa.String(length=300), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['tournament_id'], ['tournaments.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_teams_team_id'), 'teams', ['team_id'], unique=True)

    op.create_table(
        'match_screenshots',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('screenshot_id', sa.String(length=50), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=False),
        sa.Column('player_id', sa.String(length=50), nullable=False),
        sa.Column('day', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('screenshot_url', sa.String(length=500), nullable=False),
        sa.Column('storage_path', sa.String(length=300), nullable=True),
        sa.Column('placement', sa.Integer(), nullable=True),
        sa.Column('kills', sa.Integer(), nullable=True),
        sa.Column('points', sa.Integer(), nullable=True),
        sa.Column('analyzed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.CheckConstraint('day >= 1 AND day <= 3', name='match_screenshots_day_range'),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_match_screenshots_screenshot_id'), 'match_screenshots', ['screenshot_id'], unique=True)
    op.create_index(op.f('ix_match_screenshots_team_id'), 'match_screenshots', ['team_id'], unique=False)
    op.create_index(op.f('ix_match_screenshots_created_at'), 'match_screenshots', ['created_at'], unique=False)

    op.create_table(
        'sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=50), nullable=False),
        sa.Column('code_used_encrypted', sa.String(length=500), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_sessions_user_id'), 'sessions', ['user_id'], unique=True)

    op.create_table(
        'access_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('code_hash', sa.String(length=64), nullable=False),
        sa.Column('role', sa.String(length=20), nullable=False),
        sa.Column('team_id', sa.Integer(), nullable=True),
        sa.Column('label', sa.String(length=100), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['team_id'], ['teams.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_access_codes_code_hash'), 'access_codes', ['code_hash'], unique=True)


def downgrade():
    op.drop_index(op.f('ix_access_codes_code_hash'), table_name='access_codes')
    op.drop_table('access_codes')
    op.drop_index(op.f('ix_sessions_user_id'), table_name='sessions')
    op.drop_table('sessions')
    op.drop_index(op.f('ix_match_screenshots_created_at'), table_name='match_screenshots')
    op.drop_index(op.f('ix_match_screenshots_team_id'), table_name='match_screenshots')
    op.drop_index(op.f('ix_match_screenshots_screenshot_id'), table_name='match_screenshots')
    op.drop_table('match_screenshots')
    op.drop_index(op.f('ix_teams_team_id'), table_name='teams')
    op.drop_table('teams')
    op.drop_index(op.f('ix_tournaments_tournament_id'), table_name='tournaments')
    op.drop_table('tournaments')
