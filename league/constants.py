"""
League-wide constants.

This module contains the fixed numbers of the league rules and the limits
used when validating input, so they live in one place.
"""

class RankingConstants:
    """Constants related to ranking points."""

    # Points awarded for every won match (byes award nothing)
    WIN_POINTS = 100

    # Ranking totals never drop below this floor
    MIN_POINTS = 0

    # Reason recorded in a player's ranking history for a win
    WIN_REASON_TEMPLATE = "Win in {category} (round {round_number})"

class BracketConstants:
    """Constants for bracket generation."""

    # A single-elimination bracket needs at least two players
    MIN_PLAYERS = 2

    # Round numbering starts at 1, as does slot numbering within a round
    FIRST_ROUND = 1
    FIRST_SLOT = 1

class PaginationConstants:
    """Constants for paginated ranking listings."""

    DEFAULT_PAGE_SIZE = 10
    MAX_PAGE_SIZE = 50

    # Default number of positions shown above and below a player
    DEFAULT_AROUND_RADIUS = 3

    # Default size of the "top N" listing
    DEFAULT_TOP_COUNT = 10

class ValidationConstants:
    """Limits for user-supplied names."""

    TOURNAMENT_NAME_MIN_LENGTH = 3
    TOURNAMENT_NAME_MAX_LENGTH = 120
    PLAYER_NAME_MAX_LENGTH = 120
    CATEGORY_MAX_LENGTH = 60

    # Largest value an INTEGER column can hold (signed 64-bit)
    MAX_INT = 2 ** 63 - 1
