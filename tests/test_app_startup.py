"""Tests for app startup helpers, production guards and schema upgrades."""
import logging

import pytest
from sqlalchemy import create_engine, inspect, text

from scoreboard.app import _parse_allowed_origins, create_app, db


def test_parse_allowed_origins():
    assert _parse_allowed_origins(None) == '*'
    assert _parse_allowed_origins(' * ') == '*'
    assert _parse_allowed_origins('https://a.example.com, https://b.example.com') == [
        'https://a.example.com',
        'https://b.example.com',
    ]
    assert _parse_allowed_origins(['https://a.example.com', '']) == ['https://a.example.com']
    assert _parse_allowed_origins(' , ') == '*'


def test_production_requires_real_secret_key():
    with pytest.raises(RuntimeError, match='SECRET_KEY'):
        create_app('production', {
            'SECRET_KEY': 'dev-secret-key-change-in-prod',
            'CORS_ALLOWED_ORIGINS': 'https://scores.example.com',
        })


def test_production_requires_explicit_cors_origins():
    with pytest.raises(RuntimeError, match='CORS_ALLOWED_ORIGINS'):
        create_app('production', {
            'SECRET_KEY': 'a-real-secret',
            'CORS_ALLOWED_ORIGINS': '*',
        })


def test_logging_handler_is_not_duplicated():
    create_app('testing')
    create_app('testing')
    logger = logging.getLogger('scoreboard')
    named = [h for h in logger.handlers if h.get_name() == 'scoreboard']
    assert len(named) == 1
    assert logger.level == logging.WARNING


def test_legacy_match_table_is_upgraded(tmp_path):
    uri = f"sqlite:///{tmp_path / 'legacy.db'}"
    engine = create_engine(uri)
    with engine.begin() as connection:
        connection.execute(text(
            'CREATE TABLE "match" ('
            'id INTEGER PRIMARY KEY, player1_id INTEGER NOT NULL, '
            'player2_id INTEGER NOT NULL, player1_score INTEGER NOT NULL, '
            'player2_score INTEGER NOT NULL, winner_id INTEGER NOT NULL, '
            'status VARCHAR(20) NOT NULL, created_at DATETIME)'
        ))
    engine.dispose()

    app = create_app('testing', {'SQLALCHEMY_DATABASE_URI': uri})
    with app.app_context():
        inspector = inspect(db.engine)
        columns = {col['name'] for col in inspector.get_columns('match')}
        assert {
            'confirmed_at',
            'player1_rating_before', 'player1_rating_after',
            'player2_rating_before', 'player2_rating_after',
        } <= columns
        indexes = {index['name'] for index in inspector.get_indexes('match')}
        assert {'ix_match_status_confirmed', 'ix_match_players'} <= indexes
        assert 'match_request' in inspector.get_table_names()
        db.engine.dispose()
