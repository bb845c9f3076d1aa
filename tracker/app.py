import os
import json
import redis
from flask import Flask, request, jsonify, Response, send_from_directory, abort
from flask_login import login_required
from flask_migrate import Migrate

from .config import config
from .models import db
from .auth import login_manager, admin_required
from .storage import StorageManager, StorageError, BUCKETS
from .analyzer import ScreenshotAnalyzer
from .pubsub import EventPublisher, tournament_channel
from .tournament_registry import TournamentRegistry
from .screenshot_service import ScreenshotService
from .standings import get_tournament_standings

migrate = Migrate()


def create_app(config_name: str = None) -> Flask:
    """Application factory for the point tracker service."""
    if config_name is None:
        config_name = os.getenv('FLASK_ENV', 'development')

    app = Flask(__name__)
    app.config.from_object(config[config_name])

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    login_manager.init_app(app)

    # Initialize services
    app.storage = StorageManager.from_config(app.config)
    app.analyzer = ScreenshotAnalyzer.from_config(app.config)
    app.events = EventPublisher.from_url(app.config.get('REDIS_URL'))
    app.registry = TournamentRegistry(storage=app.storage, events=app.events)
    app.screenshots = ScreenshotService(
        storage=app.storage,
        analyzer=app.analyzer,
        events=app.events,
        max_per_team=app.config['MAX_SCREENSHOTS_PER_TEAM'],
        max_per_upload=app.config['MAX_FILES_PER_UPLOAD']
    )

    # Create tables (deployments apply migrations instead)
    if app.config.get('AUTO_CREATE_TABLES'):
        with app.app_context():
            db.create_all()

    # Register routes
    register_api_routes(app)
    register_storage_routes(app)

    from .routes import auth, screenshots
    app.register_blueprint(auth.bp)
    app.register_blueprint(screenshots.bp)

    return app


def register_api_routes(app: Flask):
    """Register API routes."""

    # ==================== Tournament CRUD ====================

    @app.route('/api/v1/tournaments', methods=['GET'])
    @login_required
    def api_list_tournaments():
        """List tournaments, newest first."""
        limit = request.args.get('limit', 50, type=int)
        offset = request.args.get('offset', 0, type=int)

        tournaments = app.registry.list_tournaments(limit=limit, offset=offset)

        return jsonify({
            'tournaments': [t.to_dict() for t in tournaments],
            'count': len(tournaments),
            'limit': limit,
            'offset': offset
        })

    @app.route('/api/v1/tournaments', methods=['POST'])
    @admin_required
    def api_create_tournament():
        """Create a new tournament."""
        data = request.get_json(silent=True) or {}

        tournament, message = app.registry.create_tournament(
            name=data.get('name'),
            description=data.get('description'),
            total_matches=data.get('total_matches', 12)
        )
        if not tournament:
            return jsonify({'error': message}), 400

        return jsonify({
            'message': message,
            'tournament': tournament.to_dict()
        }), 201

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['GET'])
    @login_required
    def api_get_tournament(tournament_id: str):
        """Get tournament details."""
        tournament = app.registry.get_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404

        return jsonify(tournament.to_dict())

    @app.route('/api/v1/tournaments/<tournament_id>', methods=['DELETE'])
    @admin_required
    def api_delete_tournament(tournament_id: str):
        """Delete a tournament with its teams and screenshots."""
        success, message = app.registry.delete_tournament(tournament_id)
        if not success:
            return jsonify({'error': message}), 404
        return jsonify({'message': message})

    # ==================== Teams ====================

    @app.route('/api/v1/tournaments/<tournament_id>/teams', methods=['GET'])
    @login_required
    def api_list_teams(tournament_id: str):
        """List teams in a tournament."""
        tournament = app.registry.get_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404

        order = request.args.get('order', 'created')
        teams = app.registry.list_teams(tournament, order=order)
        return jsonify({
            'teams': [t.to_dict() for t in teams],
            'count': len(teams)
        })

    @app.route('/api/v1/tournaments/<tournament_id>/teams', methods=['POST'])
    @admin_required
    def api_create_team(tournament_id: str):
        """Create a team; accepts JSON or a multipart form with a logo file."""
        if request.files or request.form:
            name = request.form.get('name')
            logo = request.files.get('logo')
        else:
            data = request.get_json(silent=True) or {}
            name = data.get('name')
            logo = None

        team, message = app.registry.create_team(tournament_id, name, logo=logo)
        if not team:
            status = 404 if message == 'Tournament not found' else 400
            return jsonify({'error': message}), status

        return jsonify({
            'message': message,
            'team': team.to_dict()
        }), 201

    @app.route('/api/v1/teams/<team_id>', methods=['DELETE'])
    @admin_required
    def api_delete_team(team_id: str):
        """Delete a team and its screenshots."""
        success, message = app.registry.delete_team(team_id)
        if not success:
            return jsonify({'error': message}), 404
        return jsonify({'message': message})

    # ==================== Standings ====================

    @app.route('/api/v1/tournaments/<tournament_id>/standings')
    @login_required
    def api_standings(tournament_id: str):
        tournament = app.registry.get_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404

        return jsonify({
            'tournament_id': tournament.tournament_id,
            'standings': get_tournament_standings(tournament)
        })

    # ==================== Real-time Events (SSE) ====================

    @app.route('/api/v1/events/tournaments/<tournament_id>')
    @login_required
    def api_tournament_events(tournament_id: str):
        """SSE endpoint for a tournament's screenshot and team events."""
        tournament = app.registry.get_tournament(tournament_id)
        if not tournament:
            return jsonify({'error': 'Tournament not found'}), 404

        if not app.events.enabled:
            return jsonify({'error': 'Event stream not configured'}), 503

        connected = json.dumps({'type': 'connected', 'tournament_id': tournament.tournament_id})

        def generate():
            # Dedicated connection with no read timeout for the long-lived stream
            sse_redis = redis.from_url(
                app.config['REDIS_URL'],
                decode_responses=True,
                socket_timeout=None,
                socket_connect_timeout=5
            )
            pubsub = sse_redis.pubsub(ignore_subscribe_messages=True)
            pubsub.subscribe(tournament_channel(tournament_id))

            try:
                yield f"data: {connected}\n\n"

                while True:
                    message = pubsub.get_message(timeout=30)
                    if message and message['type'] == 'message':
                        yield f"data: {message['data']}\n\n"
                    else:
                        yield ": keepalive\n\n"
            finally:
                pubsub.close()

        return Response(generate(), mimetype='text/event-stream', headers={
            'Cache-Control': 'no-cache',
            'X-Accel-Buffering': 'no'
        })

    # ==================== Health Check ====================

    @app.route('/api/v1/health')
    def health_check():
        """Health check endpoint."""
        try:
            db.session.execute(db.text('SELECT 1'))
            db_ok = True
        except Exception:
            db_ok = False

        redis_status = 'disabled'
        if app.events.enabled:
            try:
                app.events.redis.ping()
                redis_status = 'connected'
            except Exception:
                redis_status = 'disconnected'

        healthy = db_ok and redis_status != 'disconnected'

        return jsonify({
            'status': 'healthy' if healthy else 'unhealthy',
            'database': 'connected' if db_ok else 'disconnected',
            'redis': redis_status
        }), 200 if healthy else 503


def register_storage_routes(app: Flask):
    """Serve locally stored files at the public URLs the local backend hands out."""

    @app.route('/storage/<bucket>/<path:path>')
    def storage_file(bucket: str, path: str):
        if not app.storage.is_local or bucket not in BUCKETS:
            abort(404)

        try:
            full_path = app.storage.local_path(bucket, path)
        except StorageError:
            abort(404)

        return send_from_directory(os.path.dirname(full_path), os.path.basename(full_path))
