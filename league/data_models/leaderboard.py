"""
Ranking data models.

Provides immutable data transfer objects for ranked listings.
"""

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class LeaderboardEntry:
    """Single ranking row."""
    rank: int
    entry_id: int
    player_id: int
    player_name: str
    category: str
    points: int


@dataclass(frozen=True)
class LeaderboardPage:
    """Paginated ranking data."""
    entries: List[LeaderboardEntry]
    current_page: int
    total_pages: int
    total_players: int
    category: Optional[str] = None


@dataclass(frozen=True)
class RankingWindow:
    """A player's position plus the rows around it."""
    center: Optional[LeaderboardEntry]
    entries: List[LeaderboardEntry]
