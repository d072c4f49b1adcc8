"""Read-only projections over confirmed matches and current ratings."""
from dataclasses import dataclass

from sqlalchemy import and_, case, func, or_, select

from scoreboard.app import db
from scoreboard.models import Match, Player
from scoreboard.services.errors import UnknownPlayerError

MAX_RECENT_MATCHES = 50
MOST_ACTIVE_LIMIT = 5


def win_rate(wins, total):
    if not total:
        return 0.0
    return round(wins / total * 100, 1)


@dataclass
class PlayerStanding:
    player: Player
    rating: int
    total_confirmed_matches: int
    wins: int
    losses: int
    win_rate: float
    rank: int = 0

    @property
    def sort_key(self):
        return (-self.rating, -self.total_confirmed_matches, self.player.id)

    def to_dict(self):
        return {
            'rank': self.rank,
            'player_id': self.player.id,
            'username': self.player.username,
            'rating': self.rating,
            'total_matches': self.total_confirmed_matches,
            'wins': self.wins,
            'losses': self.losses,
            'win_rate': self.win_rate,
        }


class LeaderboardProjector:

    @property
    def session(self):
        return db.session

    def _standings_query(self):
        played = func.count(Match.id)
        wins = func.coalesce(func.sum(case((Match.winner_id == Player.id, 1), else_=0)), 0)
        query = (
            select(Player, played.label('total'), wins.label('wins'))
            .outerjoin(Match, and_(
                or_(Match.player1_id == Player.id, Match.player2_id == Player.id),
                Match.status == 'confirmed',
            ))
            .group_by(Player.id)
        )
        return query, played

    @staticmethod
    def _to_standing(row):
        player, total, wins = row
        total = int(total or 0)
        wins = int(wins or 0)
        return PlayerStanding(
            player=player, rating=player.rating,
            total_confirmed_matches=total, wins=wins, losses=total - wins,
            win_rate=win_rate(wins, total),
        )

    def rank(self, min_matches=1, limit=None):
        """Players with at least ``min_matches`` confirmed matches, best first.

        Ordered by rating, then confirmed match count, then player id so
        exact ties always come out the same way.
        """
        min_matches = max(int(min_matches or 0), 0)
        query, played = self._standings_query()
        query = query.having(played >= min_matches).order_by(
            Player.rating.desc(), played.desc(), Player.id.asc(),
        )
        if limit:
            query = query.limit(limit)

        standings = [self._to_standing(row) for row in self.session.execute(query).all()]
        for position, standing in enumerate(standings, 1):
            standing.rank = position
        return standings

    def standing_for(self, player_id):
        query, _ = self._standings_query()
        row = self.session.execute(query.where(Player.id == player_id)).first()
        if row is None:
            raise UnknownPlayerError()
        standing = self._to_standing(row)
        ahead = [
            other for other in self.rank(min_matches=1)
            if other.player.id != player_id and other.sort_key < standing.sort_key
        ]
        standing.rank = len(ahead) + 1
        return standing

    def recent_matches(self, limit=20, player_id=None):
        limit = min(max(int(limit or 20), 1), MAX_RECENT_MATCHES)
        query = Match.query.filter(Match.status == 'confirmed')
        if player_id:
            query = query.filter(or_(Match.player1_id == player_id,
                                     Match.player2_id == player_id))
        return query.order_by(Match.confirmed_at.desc(), Match.id.desc()).limit(limit).all()

    def rating_history(self, player_id):
        matches = Match.query.filter(
            Match.status == 'confirmed',
            or_(Match.player1_id == player_id, Match.player2_id == player_id),
            Match.player1_rating_before.isnot(None),
            Match.player2_rating_before.isnot(None),
        ).order_by(Match.confirmed_at.asc(), Match.id.asc()).all()
        if not matches:
            return []

        points = []
        for match in matches:
            is_player1 = match.player1_id == player_id
            before = match.player1_rating_before if is_player1 else match.player2_rating_before
            after = match.player1_rating_after if is_player1 else match.player2_rating_after
            opponent = match.player2 if is_player1 else match.player1
            if not points:
                points.append({'date': None, 'rating': before, 'is_starting': True})
            points.append({
                'date': match.confirmed_at.isoformat() if match.confirmed_at else None,
                'rating': after,
                'change': after - before,
                'result': 'win' if match.winner_id == player_id else 'loss',
                'opponent': opponent.username if opponent else None,
                'player_score': match.player1_score if is_player1 else match.player2_score,
                'opponent_score': match.player2_score if is_player1 else match.player1_score,
                'is_starting': False,
            })
        return points

    def league_stats(self):
        rating_stats = self.session.execute(
            select(
                func.count(Player.id),
                func.max(Player.rating),
                func.min(Player.rating),
                func.avg(Player.rating),
            )
        ).one()
        status_counts = dict(self.session.execute(
            select(Match.status, func.count(Match.id)).group_by(Match.status)
        ).all())

        active = sorted(
            self.rank(min_matches=1),
            key=lambda s: (-s.total_confirmed_matches, s.player.id),
        )[:MOST_ACTIVE_LIMIT]

        total_players, highest, lowest, average = rating_stats
        return {
            'total_players': int(total_players or 0),
            'total_matches': int(status_counts.get('confirmed', 0)),
            'pending_matches': int(status_counts.get('pending', 0)),
            'highest_rating': highest,
            'lowest_rating': lowest,
            'average_rating': round(average) if average is not None else None,
            'most_active_players': [
                {'username': s.player.username, 'match_count': s.total_confirmed_matches}
                for s in active
            ],
        }
