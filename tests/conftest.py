"""
Pytest configuration and fixtures for point tracker tests.
"""
import io
import os
import sys
import tempfile
import pytest

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

# Set testing environment before importing app
os.environ['FLASK_ENV'] = 'testing'
os.environ['SECRET_KEY'] = 'test-secret-key'
os.environ['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///:memory:'
os.environ['STORAGE_LOCAL_ROOT'] = tempfile.mkdtemp(prefix='tracker-test-storage-')

from werkzeug.datastructures import FileStorage

from tracker.app import create_app
from tracker.models import db, Tournament, Team, MatchScreenshot, AccessCode, ROLE_ADMIN
from tracker.scoring import calculate_points

ADMIN_CODE = 'ADMIN2025'


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app('testing')

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(autouse=True)
def clean_db(app):
    """Clear all tables before each test."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
    yield


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Push an app context for service-level tests and yield the session."""
    with app.app_context():
        yield db.session
        db.session.rollback()


# ==================== ORM fixtures (use with db_session) ====================

@pytest.fixture
def sample_tournament(db_session):
    """Create a sample tournament for testing."""
    tournament = Tournament(
        tournament_id='t_test000001',
        name='Test Tournament',
        description='Three day qualifier',
        total_matches=12
    )
    db_session.add(tournament)
    db_session.commit()
    return tournament


@pytest.fixture
def sample_teams(db_session, sample_tournament):
    """Create sample teams for testing."""
    teams = []
    for i in range(4):
        team = Team(
            team_id=f'tm_team{i + 1}',
            tournament_id=sample_tournament.id,
            name=f'Team {i + 1}'
        )
        db_session.add(team)
        teams.append(team)

    db_session.commit()
    return teams


@pytest.fixture
def add_screenshot(db_session):
    """Factory inserting a scored screenshot row for a team (caller commits)."""
    def _add(team, placement, kills, day=1, player_id='player-1'):
        index = MatchScreenshot.query.count() + 1
        shot = MatchScreenshot(
            screenshot_id=f'ss_{team.team_id}_{index}',
            team_id=team.id,
            player_id=player_id,
            day=day,
            screenshot_url=f'http://localhost/storage/match-screenshots/{player_id}/{index}.png',
            storage_path=f'{player_id}/{index}.png',
            placement=placement,
            kills=kills,
            points=calculate_points(placement, kills)
        )
        db_session.add(shot)
        db_session.flush()
        return shot
    return _add


# ==================== HTTP fixtures (no app context held) ====================

@pytest.fixture
def admin_client(app):
    """Test client signed in with an admin access code."""
    with app.app_context():
        db.session.add(AccessCode.create_code(ADMIN_CODE, role=ROLE_ADMIN, label='test admin'))
        db.session.commit()

    client = app.test_client()
    response = client.post('/api/v1/auth/access-code', json={'code': ADMIN_CODE})
    assert response.status_code == 201
    return client


@pytest.fixture
def player_client(app):
    """Test client signed in through direct player access."""
    client = app.test_client()
    response = client.post('/api/v1/auth/player')
    assert response.status_code == 201
    return client


@pytest.fixture
def seeded_tournament(app):
    """A tournament with two teams; returns their public IDs."""
    with app.app_context():
        tournament = Tournament(tournament_id='t_seeded00001', name='Seeded Cup', total_matches=12)
        db.session.add(tournament)
        db.session.flush()

        team_ids = []
        for name in ('Alpha', 'Bravo'):
            team = Team(team_id=f'tm_{name.lower()}', tournament_id=tournament.id, name=name)
            db.session.add(team)
            team_ids.append(team.team_id)
        db.session.commit()

        return {'tournament_id': tournament.tournament_id, 'team_ids': team_ids}


FAKE_PNG = b'\x89PNG\r\n\x1a\nfake-image'


@pytest.fixture
def image_file():
    """Factory for multipart file tuples sent through the test client."""
    def _make(name='match.png', content=FAKE_PNG, mimetype='image/png'):
        return (io.BytesIO(content), name, mimetype)
    return _make


@pytest.fixture
def file_storage():
    """Factory for FileStorage objects passed to services directly."""
    def _make(name='match.png', content=FAKE_PNG, mimetype='image/png'):
        return FileStorage(stream=io.BytesIO(content), filename=name, content_type=mimetype)
    return _make
