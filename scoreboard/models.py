from scoreboard.app import db
from scoreboard.services.elo import DEFAULT_RATING
from scoreboard.time_utils import isoformat_or_none, utcnow_naive

MATCH_STATUSES = ('pending', 'confirmed', 'denied')


class Player(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(50), unique=True, nullable=False)
    rating = db.Column(db.Integer, default=DEFAULT_RATING, nullable=False)
    is_admin = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    updated_at = db.Column(db.DateTime, default=lambda: utcnow_naive(),
                           onupdate=lambda: utcnow_naive())

    def to_dict(self):
        return {
            'id': self.id, 'username': self.username,
            'rating': self.rating, 'is_admin': self.is_admin,
            'created_at': isoformat_or_none(self.created_at),
        }


class Match(db.Model):
    """A reported singles result between the reporter (player1) and the opponent (player2)."""
    id = db.Column(db.Integer, primary_key=True)
    player1_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    player2_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    player1_score = db.Column(db.Integer, nullable=False)
    player2_score = db.Column(db.Integer, nullable=False)
    winner_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    # pending = waiting for the opponent to respond
    # confirmed = opponent approved, ratings applied
    # denied = opponent rejected, ratings untouched
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    confirmed_at = db.Column(db.DateTime, nullable=True)
    player1_rating_before = db.Column(db.Integer, nullable=True)
    player1_rating_after = db.Column(db.Integer, nullable=True)
    player2_rating_before = db.Column(db.Integer, nullable=True)
    player2_rating_after = db.Column(db.Integer, nullable=True)

    __table_args__ = (
        db.CheckConstraint('player1_id <> player2_id', name='ck_match_distinct_players'),
        db.CheckConstraint(
            "status in ('pending','confirmed','denied')", name='ck_match_status',
        ),
        db.Index('ix_match_status_confirmed', 'status', 'confirmed_at'),
        db.Index('ix_match_players', 'player1_id', 'player2_id'),
    )

    player1 = db.relationship('Player', foreign_keys=[player1_id])
    player2 = db.relationship('Player', foreign_keys=[player2_id])
    winner = db.relationship('Player', foreign_keys=[winner_id])
    request = db.relationship('MatchRequest', backref='match', uselist=False,
                              cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'player1_id': self.player1_id, 'player2_id': self.player2_id,
            'player1_username': self.player1.username if self.player1 else None,
            'player2_username': self.player2.username if self.player2 else None,
            'player1_score': self.player1_score, 'player2_score': self.player2_score,
            'winner_id': self.winner_id,
            'winner_username': self.winner.username if self.winner else None,
            'status': self.status,
            'player1_rating_before': self.player1_rating_before,
            'player1_rating_after': self.player1_rating_after,
            'player2_rating_before': self.player2_rating_before,
            'player2_rating_after': self.player2_rating_after,
            'created_at': isoformat_or_none(self.created_at),
            'confirmed_at': isoformat_or_none(self.confirmed_at),
        }


class MatchRequest(db.Model):
    """The opponent's pending approval for a reported match."""
    id = db.Column(db.Integer, primary_key=True)
    match_id = db.Column(db.Integer, db.ForeignKey('match.id'), nullable=False, unique=True)
    requesting_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    confirming_player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False)
    status = db.Column(db.String(20), default='pending', nullable=False)
    created_at = db.Column(db.DateTime, default=lambda: utcnow_naive())
    responded_at = db.Column(db.DateTime, nullable=True)

    __table_args__ = (
        db.CheckConstraint(
            'requesting_player_id <> confirming_player_id',
            name='ck_match_request_distinct_players',
        ),
        db.Index('ix_match_request_confirming_status', 'confirming_player_id', 'status'),
    )

    requesting_player = db.relationship('Player', foreign_keys=[requesting_player_id])
    confirming_player = db.relationship('Player', foreign_keys=[confirming_player_id])

    def to_dict(self):
        return {
            'id': self.id, 'match_id': self.match_id,
            'requesting_player_id': self.requesting_player_id,
            'confirming_player_id': self.confirming_player_id,
            'requesting_username': (
                self.requesting_player.username if self.requesting_player else None
            ),
            'confirming_username': (
                self.confirming_player.username if self.confirming_player else None
            ),
            'status': self.status,
            'created_at': isoformat_or_none(self.created_at),
            'responded_at': isoformat_or_none(self.responded_at),
        }
