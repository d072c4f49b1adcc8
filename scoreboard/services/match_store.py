"""Persistence for players, matches and their confirmation requests.

The workflow only talks to the database through ``MatchRecordStore``. Every
multi-row write goes through ``transaction()``, which commits on success and
rolls back on any error, translating SQLAlchemy failures to ``StorageError``.
"""
from contextlib import contextmanager

from sqlalchemy import delete, func, or_, select, update
from sqlalchemy.exc import SQLAlchemyError

from scoreboard.app import db
from scoreboard.logging_config import get_logger
from scoreboard.models import Match, MatchRequest, Player
from scoreboard.services.errors import StorageError
from scoreboard.time_utils import utcnow_naive

log = get_logger(__name__)

MAX_PAGE_SIZE = 100


class MatchRecordStore:

    @property
    def session(self):
        return db.session

    @contextmanager
    def transaction(self):
        try:
            yield self.session
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            log.error('Store transaction rolled back: %s', exc, exc_info=True)
            raise StorageError() from exc
        except Exception:
            self.session.rollback()
            raise

    # ── Players ───────────────────────────────────────────────────────

    def get_player(self, player_id):
        if player_id is None:
            return None
        return self.session.get(Player, player_id)

    def get_player_by_username(self, username):
        return Player.query.filter_by(username=username).first()

    def lock_players(self, player_ids):
        """Re-read players with row locks, bypassing stale identity-map state."""
        rows = self.session.execute(
            select(Player)
            .where(Player.id.in_(list(player_ids)))
            .order_by(Player.id.asc())
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalars().all()
        return {player.id: player for player in rows}

    def set_rating(self, player_id, old_rating, new_rating):
        """Write a rating only if it still holds the value it was computed from.

        Row locks are a no-op on SQLite, so this compare-and-set is what keeps
        two processes on one database file from losing an update.
        """
        updated = self.session.execute(
            update(Player)
            .where(Player.id == player_id, Player.rating == old_rating)
            .values(rating=new_rating, updated_at=utcnow_naive())
        )
        return updated.rowcount == 1

    def confirmed_match_count(self, player_id):
        return self.session.scalar(
            select(func.count(Match.id)).where(
                Match.status == 'confirmed',
                or_(Match.player1_id == player_id, Match.player2_id == player_id),
            )
        ) or 0

    # ── Matches and requests ──────────────────────────────────────────

    def add_match_with_request(self, match, request):
        self.session.add(match)
        self.session.flush()
        request.match_id = match.id
        self.session.add(request)
        self.session.flush()
        return match

    def get_match(self, match_id):
        return self.session.get(Match, match_id, populate_existing=True)

    def get_request(self, match_id):
        return self.session.execute(
            select(MatchRequest)
            .where(MatchRequest.match_id == match_id)
            .execution_options(populate_existing=True)
        ).scalars().first()

    def finalize(self, match_id, status, responded_at, **match_values):
        """Move a pending match and its request to ``status``.

        Returns False when the match was no longer pending, in which case
        nothing was changed.
        """
        values = dict(match_values, status=status)
        if status == 'confirmed':
            values['confirmed_at'] = responded_at
        moved = self.session.execute(
            update(Match)
            .where(Match.id == match_id, Match.status == 'pending')
            .values(**values)
        )
        if moved.rowcount != 1:
            return False
        self.session.execute(
            update(MatchRequest)
            .where(MatchRequest.match_id == match_id, MatchRequest.status == 'pending')
            .values(status=status, responded_at=responded_at)
        )
        return True

    def delete_pending(self, match_id):
        self.session.execute(
            delete(MatchRequest).where(
                MatchRequest.match_id == match_id,
                MatchRequest.status == 'pending',
            )
        )
        removed = self.session.execute(
            delete(Match).where(Match.id == match_id, Match.status == 'pending')
        )
        return removed.rowcount == 1

    def pending_for(self, player_id):
        rows = self.session.execute(
            select(Match, MatchRequest)
            .join(MatchRequest, MatchRequest.match_id == Match.id)
            .where(
                MatchRequest.confirming_player_id == player_id,
                MatchRequest.status == 'pending',
                Match.status == 'pending',
            )
            .order_by(MatchRequest.created_at.desc(), MatchRequest.id.desc())
        ).all()
        return [(match, request) for match, request in rows]

    def query_matches(self, status='confirmed', player_id=None, page=1, limit=20):
        page = max(int(page or 1), 1)
        limit = min(max(int(limit or 20), 1), MAX_PAGE_SIZE)

        query = Match.query
        if status:
            query = query.filter(Match.status == status)
        if player_id:
            query = query.filter(or_(Match.player1_id == player_id,
                                     Match.player2_id == player_id))
        total = query.count()
        matches = query.order_by(
            func.coalesce(Match.confirmed_at, Match.created_at).desc(),
            Match.id.desc(),
        ).offset((page - 1) * limit).limit(limit).all()
        return matches, total
