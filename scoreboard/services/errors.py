"""Domain errors raised by the match workflow and surfaced to callers.

Each error carries the HTTP status the JSON layer answers with and a short
machine-readable ``code``.
"""


class ScoreboardError(Exception):
    status_code = 400
    code = 'scoreboard_error'
    default_message = 'Request could not be processed'

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class MatchValidationError(ScoreboardError):
    """Rejected before anything is written."""
    code = 'invalid_match'


class SelfMatchError(MatchValidationError):
    code = 'self_match'
    default_message = 'Cannot create match against yourself'


class TieNotAllowedError(MatchValidationError):
    code = 'tie_not_allowed'
    default_message = 'Matches cannot end in a tie in ping pong'


class InvalidScoreError(MatchValidationError):
    code = 'invalid_score'
    default_message = 'Scores must be whole numbers between 0 and 99'


class InvalidDecisionError(MatchValidationError):
    code = 'invalid_decision'
    default_message = 'Action must be "approve" or "deny"'


class UnknownPlayerError(ScoreboardError):
    status_code = 404
    code = 'unknown_player'
    default_message = 'Player not found'


class NotFoundError(ScoreboardError):
    status_code = 404
    code = 'not_found'
    default_message = 'Match request not found'


class NotAuthorizedError(ScoreboardError):
    status_code = 403
    code = 'not_authorized'
    default_message = 'Access denied'


class AlreadyProcessedError(ScoreboardError):
    status_code = 409
    code = 'already_processed'
    default_message = 'Match request already processed'


class StorageError(ScoreboardError):
    status_code = 503
    code = 'storage_error'
    default_message = 'Could not save match changes'
