"""Business-rule errors raised by the bracket services and rendered by the API layer."""


class BracketError(Exception):
    """Base error. `code` is the machine-readable name returned to callers."""

    status_code = 400
    default_message = "Invalid request."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def code(self):
        return type(self).__name__


class NotFoundError(BracketError):
    status_code = 404
    default_message = "Resource not found."


class TournamentNotFound(NotFoundError):
    default_message = "Tournament not found"


class MatchNotFound(NotFoundError):
    default_message = "Match not found"


class TeamNotFound(NotFoundError):
    default_message = "Team not found"


class RegistrationNotFound(NotFoundError):
    default_message = "Registration not found"


class AlreadyGenerated(BracketError):
    default_message = "Bracket already generated. Delete the matches before generating again."


class InsufficientTeams(BracketError):
    default_message = "Not enough confirmed teams to generate the bracket."


class UnsupportedBracketSize(BracketError):
    default_message = "Bracket generation supports only 2, 4, 8, 16 or 32 teams."


class BracketLocked(BracketError):
    default_message = "This change is not allowed once the bracket is generated."


class MatchNotReady(BracketError):
    default_message = "Match does not have both teams assigned yet."


class MatchAlreadyDecided(BracketError):
    default_message = "Match already has a winner."


class TieNotResolved(BracketError):
    default_message = "Scores are tied. Provide distinct penalty scores to decide the winner."


class InvalidScore(BracketError):
    default_message = "Scores must be non-negative integers."


class ValidationError(BracketError):
    default_message = "Invalid data."


class DuplicateRegistration(BracketError):
    default_message = "This team is already registered."


class NotAuthorized(BracketError):
    status_code = 403
    default_message = "Not authorized"


class InternalError(BracketError):
    status_code = 500
    default_message = "Internal error. The operation was not applied."
