from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from sqlalchemy import inspect, text
from scoreboard.config import config
from scoreboard.logging_config import get_logger, setup_logging

db = SQLAlchemy()

log = get_logger(__name__)


def _parse_allowed_origins(raw_origins):
    if not raw_origins:
        return '*'

    if isinstance(raw_origins, (list, tuple, set)):
        cleaned = [origin for origin in raw_origins if origin]
        return cleaned or '*'

    raw_text = str(raw_origins).strip()
    if not raw_text or raw_text == '*':
        return '*'

    origins = [origin.strip() for origin in raw_text.split(',') if origin.strip()]
    return origins or '*'


def _run_lightweight_migrations():
    """Apply small schema updates for local/dev databases without Alembic."""
    inspector = inspect(db.engine)
    table_names = inspector.get_table_names()
    if 'match' not in table_names:
        return

    match_columns = {col['name'] for col in inspector.get_columns('match')}
    snapshot_columns = (
        'player1_rating_before', 'player1_rating_after',
        'player2_rating_before', 'player2_rating_after',
    )
    with db.engine.begin() as connection:
        if 'confirmed_at' not in match_columns:
            connection.execute(text(
                'ALTER TABLE "match" ADD COLUMN confirmed_at TIMESTAMP'
            ))
        for column in snapshot_columns:
            if column not in match_columns:
                connection.execute(text(
                    f'ALTER TABLE "match" ADD COLUMN {column} INTEGER'
                ))
        connection.execute(text(
            'CREATE INDEX IF NOT EXISTS ix_match_status_confirmed '
            'ON "match" (status, confirmed_at)'
        ))
        connection.execute(text(
            'CREATE INDEX IF NOT EXISTS ix_match_players '
            'ON "match" (player1_id, player2_id)'
        ))

        if 'match_request' in table_names:
            connection.execute(text(
                'CREATE INDEX IF NOT EXISTS ix_match_request_confirming_status '
                'ON match_request (confirming_player_id, status)'
            ))


def _register_error_handlers(app):
    from scoreboard.services.errors import ScoreboardError

    @app.errorhandler(ScoreboardError)
    def _handle_scoreboard_error(exc):
        return jsonify({'error': exc.message, 'code': exc.code}), exc.status_code


def create_app(config_name='development', config_overrides=None):
    app = Flask(__name__)
    app.config.from_object(config[config_name])
    if config_overrides:
        app.config.update(config_overrides)

    setup_logging(app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = _parse_allowed_origins(app.config.get('CORS_ALLOWED_ORIGINS', '*'))
    if str(config_name).strip().lower() == 'production':
        secret_key = str(app.config.get('SECRET_KEY') or '').strip()
        if not secret_key or secret_key == 'dev-secret-key-change-in-prod':
            raise RuntimeError('SECRET_KEY must be set to a non-default value in production')
        if allowed_origins == '*':
            raise RuntimeError('CORS_ALLOWED_ORIGINS must be explicitly set in production')

    db.init_app(app)
    CORS(app, resources={r'/api/*': {'origins': allowed_origins}})

    from scoreboard.routes.matches import matches_bp
    from scoreboard.routes.public import public_bp

    app.register_blueprint(matches_bp, url_prefix='/api/matches')
    app.register_blueprint(public_bp, url_prefix='/api/public')
    _register_error_handlers(app)

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    with app.app_context():
        from scoreboard import models  # noqa: F401
        db.create_all()
        _run_lightweight_migrations()

    log.debug('App created with config=%s db=%s', config_name,
              app.config.get('SQLALCHEMY_DATABASE_URI'))
    return app
