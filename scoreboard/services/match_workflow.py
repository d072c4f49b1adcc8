"""Match confirmation workflow.

A reported match stays ``pending`` until the opponent responds. Approval
applies the rating change and confirms the match in one transaction;
denial only closes the match. Either way the match never leaves its terminal
state again.

Locking: ``respond`` and ``cancel`` hold the per-match lock from the first
read of the request until commit. Approval also holds both players' locks
(ascending id) before any write, so two matches sharing a player cannot lose
a rating update. The conditional status update in ``MatchRecordStore.finalize``
backs this up across processes.
"""
from dataclasses import dataclass, field

from flask import current_app

from scoreboard.logging_config import get_logger
from scoreboard.models import Match, MatchRequest
from scoreboard.services import elo
from scoreboard.services.errors import (
    AlreadyProcessedError,
    InvalidDecisionError,
    InvalidScoreError,
    NotAuthorizedError,
    NotFoundError,
    SelfMatchError,
    StorageError,
    TieNotAllowedError,
    UnknownPlayerError,
)
from scoreboard.services.locks import match_locks, player_locks
from scoreboard.services.match_store import MatchRecordStore
from scoreboard.time_utils import utcnow_naive

log = get_logger(__name__)

APPROVE = 'approve'
DENY = 'deny'
DECISIONS = (APPROVE, DENY)

MIN_SCORE = 0
MAX_SCORE = 99


@dataclass
class MatchOutcome:
    match: Match
    request: MatchRequest
    decision: str
    deltas: list = field(default_factory=list)

    def to_dict(self):
        return {
            'decision': self.decision,
            'match': self.match.to_dict(),
            'rating_changes': {
                str(delta.player_id): delta.to_dict() for delta in self.deltas
            },
        }


def _is_valid_score(value):
    return (
        isinstance(value, int)
        and not isinstance(value, bool)
        and MIN_SCORE <= value <= MAX_SCORE
    )


class MatchWorkflow:

    def __init__(self, store=None, k_factor=None, adaptive_k_factor=None):
        self.store = store or MatchRecordStore()
        self._k_factor = k_factor
        self._adaptive = adaptive_k_factor

    @property
    def k_factor(self):
        if self._k_factor is not None:
            return self._k_factor
        return current_app.config.get('ELO_K_FACTOR', elo.DEFAULT_K_FACTOR)

    @property
    def adaptive(self):
        if self._adaptive is not None:
            return self._adaptive
        return bool(current_app.config.get('ELO_ADAPTIVE_K_FACTOR', False))

    # ── Report ────────────────────────────────────────────────────────

    def report(self, reporter_id, opponent_id, reporter_score, opponent_score):
        if reporter_id == opponent_id:
            raise SelfMatchError()
        if self.store.get_player(reporter_id) is None:
            raise UnknownPlayerError('Reporting player not found')
        if self.store.get_player(opponent_id) is None:
            raise UnknownPlayerError('Opponent not found')
        if not (_is_valid_score(reporter_score) and _is_valid_score(opponent_score)):
            raise InvalidScoreError()
        if reporter_score == opponent_score:
            raise TieNotAllowedError()

        winner_id = reporter_id if reporter_score > opponent_score else opponent_id
        match = Match(
            player1_id=reporter_id, player2_id=opponent_id,
            player1_score=reporter_score, player2_score=opponent_score,
            winner_id=winner_id, status='pending',
        )
        request = MatchRequest(
            requesting_player_id=reporter_id,
            confirming_player_id=opponent_id,
            status='pending',
        )
        with self.store.transaction():
            self.store.add_match_with_request(match, request)

        log.info('Match %s reported by %s vs %s (%s-%s), awaiting confirmation',
                 match.id, reporter_id, opponent_id, reporter_score, opponent_score)
        return match

    # ── Respond ───────────────────────────────────────────────────────

    def respond(self, match_id, responding_player_id, decision):
        decision = str(decision or '').strip().lower()
        if decision not in DECISIONS:
            raise InvalidDecisionError()

        with match_locks.hold(match_id):
            request = self.store.get_request(match_id)
            if request is None:
                raise NotFoundError()
            if request.confirming_player_id != responding_player_id:
                raise NotAuthorizedError('Only the opponent can confirm or deny this match')
            if request.status != 'pending':
                log.warning('Match %s response rejected: request already %s',
                            match_id, request.status)
                raise AlreadyProcessedError()

            if decision == DENY:
                return self._deny(request)
            return self._approve(request)

    def _deny(self, request):
        match_id = request.match_id
        with self.store.transaction():
            if not self.store.finalize(match_id, 'denied', utcnow_naive()):
                log.warning('Match %s deny rejected: match no longer pending', match_id)
                raise AlreadyProcessedError()

        log.info('Match %s denied by %s', match_id, request.confirming_player_id)
        return MatchOutcome(
            match=self.store.get_match(match_id),
            request=self.store.get_request(match_id),
            decision=DENY,
        )

    def _k_factors(self, player1, player2):
        if not self.adaptive:
            return self.k_factor, self.k_factor
        return (
            elo.adaptive_k_factor(player1.rating, self.store.confirmed_match_count(player1.id)),
            elo.adaptive_k_factor(player2.rating, self.store.confirmed_match_count(player2.id)),
        )

    def _compute(self, match, player1, player2):
        k1, k2 = self._k_factors(player1, player2)
        delta1, delta2 = elo.apply_match(
            player1.rating, player2.rating,
            match.player1_score, match.player2_score,
            k_factor=k1, k_factor_b=k2,
        )
        return (
            elo.RatingDelta(delta1.old_rating, delta1.new_rating, delta1.change, player1.id),
            elo.RatingDelta(delta2.old_rating, delta2.new_rating, delta2.change, player2.id),
        )

    def _approve(self, request):
        match = self.store.get_match(request.match_id)
        player_ids = (match.player1_id, match.player2_id)

        with player_locks.hold(*player_ids):
            with self.store.transaction():
                players = self.store.lock_players(player_ids)
                player1 = players[match.player1_id]
                player2 = players[match.player2_id]
                delta1, delta2 = self._compute(match, player1, player2)

                confirmed = self.store.finalize(
                    match.id, 'confirmed', utcnow_naive(),
                    player1_rating_before=delta1.old_rating,
                    player1_rating_after=delta1.new_rating,
                    player2_rating_before=delta2.old_rating,
                    player2_rating_after=delta2.new_rating,
                )
                if not confirmed:
                    log.warning('Match %s approve rejected: match no longer pending',
                                match.id)
                    raise AlreadyProcessedError()
                for delta in (delta1, delta2):
                    if not self.store.set_rating(delta.player_id, delta.old_rating,
                                                 delta.new_rating):
                        log.warning('Match %s approve rejected: rating of player %s '
                                    'changed underneath', match.id, delta.player_id)
                        raise StorageError('Player rating changed concurrently, try again')

        log.info('Match %s confirmed: player %s %s->%s (%+d), player %s %s->%s (%+d)',
                 request.match_id,
                 delta1.player_id, delta1.old_rating, delta1.new_rating, delta1.change,
                 delta2.player_id, delta2.old_rating, delta2.new_rating, delta2.change)
        return MatchOutcome(
            match=self.store.get_match(request.match_id),
            request=self.store.get_request(request.match_id),
            decision=APPROVE,
            deltas=[delta1, delta2],
        )

    # ── Pending / cancel ──────────────────────────────────────────────

    def list_pending(self, player_id):
        return self.store.pending_for(player_id)

    def cancel(self, match_id, requester_id):
        requester = self.store.get_player(requester_id)
        with match_locks.hold(match_id):
            match = self.store.get_match(match_id)
            if match is None or match.status != 'pending':
                raise NotFoundError('Pending match not found')
            is_admin = bool(requester and requester.is_admin)
            if match.player1_id != requester_id and not is_admin:
                raise NotAuthorizedError()

            with self.store.transaction():
                if not self.store.delete_pending(match_id):
                    raise AlreadyProcessedError()

        log.info('Match %s cancelled by %s', match_id, requester_id)

    # ── Reads ─────────────────────────────────────────────────────────

    def get_match(self, match_id):
        match = self.store.get_match(match_id)
        if match is None:
            raise NotFoundError('Match not found')
        return match

    def projected_changes(self, match):
        """What approving ``match`` would do at today's ratings. No writes."""
        return self._compute(match, match.player1, match.player2)

    def list_matches(self, status='confirmed', player_id=None, page=1, limit=20):
        return self.store.query_matches(
            status=status, player_id=player_id, page=page, limit=limit,
        )
