"""
Bracket data models.

Immutable data transfer objects returned by bracket generation and result
reporting.
"""

from dataclasses import dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class ResultReport:
    """Outcome of a recorded match result."""
    match_id: int
    winner_id: int
    points_awarded: int
    next_match_id: Optional[int] = None
    tournament_finished: bool = False


@dataclass(frozen=True)
class BracketSummary:
    """Shape of a freshly generated bracket."""
    tournament_id: int
    category: str
    size: int
    player_count: int
    bye_count: int
    round_count: int
    match_ids: List[int] = field(default_factory=list)
