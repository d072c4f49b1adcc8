"""Tests for the unauthenticated /api/public views."""
import json

import pytest

from scoreboard.services.match_workflow import APPROVE, MatchWorkflow


@pytest.fixture
def played(players):
    """alice beats bob once, confirmed; carol has a pending report against bob."""
    workflow = MatchWorkflow()
    match = workflow.report(players['alice'].id, players['bob'].id, 11, 4)
    workflow.respond(match.id, players['bob'].id, APPROVE)
    workflow.report(players['carol'].id, players['bob'].id, 11, 8)
    return players


def test_health(client):
    res = client.get('/api/health')
    assert json.loads(res.data) == {'status': 'ok'}


def test_leaderboard_defaults_to_players_with_matches(client, played):
    data = json.loads(client.get('/api/public/leaderboard').data)
    board = data['leaderboard']
    assert [row['username'] for row in board] == ['alice', 'bob']
    assert board[0]['rating'] == 1216
    assert board[0]['win_rate'] == 100.0
    assert board[1]['losses'] == 1
    assert data['min_matches'] == 1


def test_leaderboard_min_matches_and_limit(client, played):
    data = json.loads(client.get('/api/public/leaderboard?min_matches=0').data)
    assert len(data['leaderboard']) == 4

    data = json.loads(client.get('/api/public/leaderboard?min_matches=0&limit=1').data)
    assert [row['username'] for row in data['leaderboard']] == ['alice']


def test_recent_matches_only_confirmed(client, played):
    data = json.loads(client.get('/api/public/recent-matches').data)
    assert len(data['matches']) == 1
    assert data['matches'][0]['status'] == 'confirmed'


def test_player_profile(client, played):
    data = json.loads(client.get('/api/public/player/alice').data)
    assert data['player']['username'] == 'alice'
    assert data['stats']['rank'] == 1
    assert data['stats']['wins'] == 1
    assert len(data['recent_matches']) == 1

    assert client.get('/api/public/player/nobody').status_code == 404


def test_player_rating_history(client, played):
    data = json.loads(client.get('/api/public/player/bob/rating-history').data)
    assert data['current_rating'] == 1184
    assert [point['rating'] for point in data['history']] == [1200, 1184]

    assert client.get('/api/public/player/nobody/rating-history').status_code == 404


def test_league_stats(client, played):
    data = json.loads(client.get('/api/public/stats').data)
    assert data['total_players'] == 4
    assert data['total_matches'] == 1
    assert data['pending_matches'] == 1
    assert data['highest_rating'] == 1216
