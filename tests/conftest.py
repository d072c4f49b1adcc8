import threading

import pytest
from scoreboard.app import create_app, db
from scoreboard.auth_utils import generate_token
from scoreboard.models import Player


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_player(app):
    """Factory that inserts and commits a Player."""
    def _make(username, rating=1200, is_admin=False):
        player = Player(username=username, rating=rating, is_admin=is_admin)
        db.session.add(player)
        db.session.commit()
        return player
    return _make


@pytest.fixture
def players(make_player):
    """alice, bob and carol at the starting rating, plus one admin."""
    return {
        'alice': make_player('alice'),
        'bob': make_player('bob'),
        'carol': make_player('carol'),
        'admin': make_player('admin', is_admin=True),
    }


@pytest.fixture
def auth_headers(app):
    """Build bearer headers for a player."""
    def _headers(player):
        token = generate_token(player.id)
        return {'Authorization': f'Bearer {token}', 'Content-Type': 'application/json'}
    return _headers


@pytest.fixture
def threaded_app(tmp_path):
    """App on a file database so worker threads each get their own connection."""
    app = create_app('testing', {
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'scoreboard.db'}",
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.engine.dispose()


@pytest.fixture
def race():
    """Run callables at the same moment, each thread inside its own app context.

    Returns each callable's result, or the exception it raised.
    """
    def _race(app, *calls):
        barrier = threading.Barrier(len(calls))
        results = [None] * len(calls)

        def worker(index, call):
            with app.app_context():
                barrier.wait()
                try:
                    results[index] = call()
                except Exception as exc:
                    results[index] = exc
                finally:
                    db.session.remove()

        threads = [
            threading.Thread(target=worker, args=(index, call))
            for index, call in enumerate(calls)
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)
        return results
    return _race
