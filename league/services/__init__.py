"""
Services package for the league.

Read-side services that sit on top of the database session factory.
"""

from .base import BaseService
from .leaderboard import LeaderboardService

__all__ = ['BaseService', 'LeaderboardService']
