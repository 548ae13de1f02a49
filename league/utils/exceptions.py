"""
Custom exceptions for the league core with user-friendly error messages.

Every exception carries a technical message (for logs) and a user_message
that is safe to show to a caller. The four recoverable kinds are NotFound,
ValidationError, ConflictError and PreconditionFailed.
"""

class LeagueException(Exception):
    """Base exception for league-related errors."""
    kind = "LeagueError"

    def __init__(self, message: str, user_message: str = None):
        super().__init__(message)
        self.user_message = user_message or message

# ---------------------------------------------------------------------------
# Kinds
# ---------------------------------------------------------------------------

class NotFoundError(LeagueException):
    """Raised when a tournament, match or player does not exist."""
    kind = "NotFound"

class ValidationError(LeagueException):
    """Raised for malformed or out-of-range input."""
    kind = "ValidationError"

class ConflictError(LeagueException):
    """Raised when an operation would duplicate existing state."""
    kind = "ConflictError"

class PreconditionFailed(LeagueException):
    """Raised when the current state does not allow the operation."""
    kind = "PreconditionFailed"

class DatabaseError(LeagueException):
    """Raised when database operations fail unexpectedly."""
    kind = "DatabaseError"

    def __init__(self, operation: str, details: str = None):
        super().__init__(
            f"Database error during {operation}: {details}",
            "Database error occurred. Please try again later."
        )

# ---------------------------------------------------------------------------
# NotFound
# ---------------------------------------------------------------------------

class PlayerNotFound(NotFoundError):
    def __init__(self, player_id):
        super().__init__(
            f"Player {player_id} not found",
            "Player not found."
        )
        self.player_id = player_id

class TournamentNotFound(NotFoundError):
    def __init__(self, tournament_id):
        super().__init__(
            f"Tournament {tournament_id} not found",
            "Tournament not found."
        )
        self.tournament_id = tournament_id

class MatchNotFound(NotFoundError):
    def __init__(self, match_id):
        super().__init__(
            f"Match {match_id} not found",
            "Match not found."
        )
        self.match_id = match_id

# ---------------------------------------------------------------------------
# ValidationError
# ---------------------------------------------------------------------------

class InvalidScore(ValidationError):
    def __init__(self, score, reason: str):
        super().__init__(
            f"Invalid score {score!r}: {reason}",
            reason
        )

class DrawNotAllowed(ValidationError):
    def __init__(self, match_id, score: int):
        super().__init__(
            f"Draw {score}-{score} reported for match {match_id}",
            "Draws are not allowed. One player must have the higher score."
        )

class InvalidCategory(ValidationError):
    def __init__(self, category, allowed=None):
        if allowed:
            user_message = f"Invalid category. Allowed: {', '.join(allowed)}."
        else:
            user_message = "Invalid category."
        super().__init__(f"Invalid category {category!r}", user_message)

class InvalidTournamentData(ValidationError):
    """Raised when tournament fields fail validation."""
    pass

class InvalidPlayerData(ValidationError):
    """Raised when player fields fail validation."""
    pass

class UnsupportedBracketType(ValidationError):
    def __init__(self, bracket_type):
        super().__init__(
            f"Bracket type {bracket_type} is not implemented",
            "Only single-elimination brackets can be generated."
        )

# ---------------------------------------------------------------------------
# ConflictError
# ---------------------------------------------------------------------------

class DuplicatePlayer(ConflictError):
    def __init__(self, document: str):
        super().__init__(
            f"Player with document {document!r} already exists",
            "This player already exists."
        )

class DuplicateTournament(ConflictError):
    def __init__(self, name: str, category: str):
        super().__init__(
            f"Tournament {name!r} in {category!r} already exists for that start date",
            "A tournament with this name, category and start date already exists."
        )

class AlreadyEnrolled(ConflictError):
    def __init__(self, player_id, tournament_id):
        super().__init__(
            f"Player {player_id} already enrolled in tournament {tournament_id}",
            "Player is already enrolled."
        )

class MatchAlreadyPlayed(ConflictError):
    def __init__(self, match_id):
        super().__init__(
            f"Match {match_id} already has a result",
            "This match already has a result."
        )

# ---------------------------------------------------------------------------
# PreconditionFailed
# ---------------------------------------------------------------------------

class InsufficientPlayers(PreconditionFailed):
    def __init__(self, tournament_id, enrolled: int, required: int = 2):
        super().__init__(
            f"Tournament {tournament_id} has {enrolled} players, {required} required",
            f"At least {required} players are needed to generate the bracket."
        )
        self.enrolled = enrolled

class IncompleteMatch(PreconditionFailed):
    def __init__(self, match_id):
        super().__init__(
            f"Match {match_id} does not have both players yet",
            "This match is not complete yet."
        )

class EnrollmentClosed(PreconditionFailed):
    def __init__(self, tournament_id, status: str):
        super().__init__(
            f"Tournament {tournament_id} is {status}, enrollment is closed",
            "Enrollment is closed for this tournament."
        )
