"""Match reporting, confirmation and history routes."""
from flask import Blueprint, request, jsonify
from scoreboard.auth_utils import login_required
from scoreboard.services.match_workflow import APPROVE, MatchWorkflow
from scoreboard.services.match_store import MAX_PAGE_SIZE

matches_bp = Blueprint('matches', __name__)


def _parse_score(value):
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if not isinstance(value, str):
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def _parse_player_id(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@matches_bp.route('', methods=['POST'])
@login_required
def report_match():
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON payload'}), 400
    opponent_id = _parse_player_id(data.get('opponent_id'))
    if not opponent_id:
        return jsonify({'error': 'Opponent ID required'}), 400

    match = MatchWorkflow().report(
        request.current_user.id,
        opponent_id,
        _parse_score(data.get('player_score')),
        _parse_score(data.get('opponent_score')),
    )
    return jsonify({
        'match': match.to_dict(),
        'message': 'Match reported, waiting for opponent confirmation',
    }), 201


@matches_bp.route('/<int:match_id>/confirm', methods=['PUT'])
@login_required
def respond_to_match(match_id):
    data = request.get_json(silent=True) or {}
    if not isinstance(data, dict):
        return jsonify({'error': 'Invalid JSON payload'}), 400

    outcome = MatchWorkflow().respond(match_id, request.current_user.id, data.get('action'))
    payload = outcome.to_dict()
    payload['message'] = (
        'Match confirmed and ratings updated' if outcome.decision == APPROVE
        else 'Match denied'
    )
    return jsonify(payload)


@matches_bp.route('/pending', methods=['GET'])
@login_required
def pending_requests():
    pending = MatchWorkflow().list_pending(request.current_user.id)
    return jsonify({'pending_requests': [
        {'match': match.to_dict(), 'request': match_request.to_dict()}
        for match, match_request in pending
    ]})


@matches_bp.route('/<int:match_id>', methods=['DELETE'])
@login_required
def cancel_match(match_id):
    MatchWorkflow().cancel(match_id, request.current_user.id)
    return jsonify({'message': 'Match cancelled'})


@matches_bp.route('', methods=['GET'])
@login_required
def list_matches():
    status = str(request.args.get('status', 'confirmed')).strip().lower()
    if status == 'all':
        status = None
    elif status not in ('pending', 'confirmed', 'denied'):
        return jsonify({'error': 'Invalid status filter'}), 400
    player_id = request.args.get('player_id', type=int)
    page = max(request.args.get('page', 1, type=int) or 1, 1)
    limit = min(max(request.args.get('limit', 20, type=int) or 20, 1), MAX_PAGE_SIZE)

    matches, total = MatchWorkflow().list_matches(
        status=status, player_id=player_id, page=page, limit=limit,
    )
    return jsonify({
        'matches': [match.to_dict() for match in matches],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': total,
            'pages': (total + limit - 1) // limit,
        },
    })


@matches_bp.route('/<int:match_id>', methods=['GET'])
@login_required
def get_match(match_id):
    workflow = MatchWorkflow()
    match = workflow.get_match(match_id)
    payload = {'match': match.to_dict()}
    if match.status == 'pending' and match.request is not None:
        delta1, delta2 = workflow.projected_changes(match)
        payload['request_info'] = match.request.to_dict()
        payload['projected_changes'] = {
            str(delta.player_id): delta.to_dict() for delta in (delta1, delta2)
        }
    return jsonify(payload)
