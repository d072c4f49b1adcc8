"""Public read-only views: leaderboard, recent matches, player profiles, stats."""
from flask import Blueprint, current_app, request, jsonify
from scoreboard.services.errors import UnknownPlayerError
from scoreboard.services.leaderboard import MAX_RECENT_MATCHES, LeaderboardProjector
from scoreboard.services.match_store import MatchRecordStore

public_bp = Blueprint('public', __name__)

MAX_LEADERBOARD_LIMIT = 100


def _player_or_404(username):
    player = MatchRecordStore().get_player_by_username(username)
    if not player:
        raise UnknownPlayerError()
    return player


@public_bp.route('/leaderboard', methods=['GET'])
def get_leaderboard():
    min_matches = request.args.get(
        'min_matches', current_app.config.get('LEADERBOARD_MIN_MATCHES', 1), type=int,
    )
    limit = request.args.get(
        'limit', current_app.config.get('LEADERBOARD_LIMIT', 50), type=int,
    )
    limit = min(max(limit or 1, 1), MAX_LEADERBOARD_LIMIT)
    min_matches = max(min_matches or 0, 0)

    standings = LeaderboardProjector().rank(min_matches=min_matches, limit=limit)
    return jsonify({
        'leaderboard': [standing.to_dict() for standing in standings],
        'min_matches': min_matches,
    })


@public_bp.route('/recent-matches', methods=['GET'])
def recent_matches():
    limit = request.args.get('limit', 20, type=int)
    limit = min(max(limit or 1, 1), MAX_RECENT_MATCHES)
    matches = LeaderboardProjector().recent_matches(limit=limit)
    return jsonify({'matches': [match.to_dict() for match in matches]})


@public_bp.route('/player/<username>', methods=['GET'])
def player_profile(username):
    player = _player_or_404(username)
    projector = LeaderboardProjector()
    standing = projector.standing_for(player.id)
    return jsonify({
        'player': player.to_dict(),
        'stats': standing.to_dict(),
        'recent_matches': [
            match.to_dict() for match in projector.recent_matches(limit=10, player_id=player.id)
        ],
    })


@public_bp.route('/player/<username>/rating-history', methods=['GET'])
def player_rating_history(username):
    player = _player_or_404(username)
    return jsonify({
        'username': player.username,
        'current_rating': player.rating,
        'history': LeaderboardProjector().rating_history(player.id),
    })


@public_bp.route('/stats', methods=['GET'])
def league_stats():
    return jsonify(LeaderboardProjector().league_stats())
