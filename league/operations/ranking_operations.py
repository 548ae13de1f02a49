"""
Ranking Operations Module

This module is the single write path for per-category ranking totals.
Nothing else in the league changes RankingEntry.points.

Key functionality:
- add_points(): Upsert a (player, category) total by a delta, floored at zero
- set_points(): Administrative correction to an exact total
- reset_category(): Bulk delete every total of one category

All methods accept an optional session so they can join a caller's
transaction (the result cascade in MatchOperations relies on this).
"""

from typing import Optional
from contextlib import asynccontextmanager
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from league.constants import RankingConstants, ValidationConstants
from league.database.models import Player, RankingEntry
from league.utils.exceptions import PlayerNotFound, ValidationError
from league.utils.validation import normalize_category, is_storable_int
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class RankingOperations:
    """Keyed store of ranking totals: (player, category) -> points."""

    def __init__(self, database):
        """Initialize with database instance"""
        self.db = database
        self.logger = logger

    @asynccontextmanager
    async def _get_session_context(self, session: Optional[AsyncSession] = None):
        """
        Provides a session context. Uses the provided session if available,
        otherwise opens a transaction that commits on exit.
        """
        if session:
            # If a session is provided, we do not manage its lifecycle
            yield session
        else:
            async with self.db.transaction() as new_session:
                yield new_session

    async def _get_or_create_entry(self, session: AsyncSession, player_id: int, category: str) -> RankingEntry:
        # NOTE: On SQLite, with_for_update() relies on the database-level write lock,
        # not true row-level locking.
        result = await session.execute(
            select(RankingEntry).where(
                (RankingEntry.player_id == player_id) &
                (RankingEntry.category == category)
            ).with_for_update()
        )
        entry = result.scalar_one_or_none()

        if entry is None:
            player = await session.get(Player, player_id)
            if player is None:
                raise PlayerNotFound(player_id)

            entry = RankingEntry(player_id=player_id, category=category, points=0)
            session.add(entry)
            await session.flush()
            self.logger.debug(f"Created ranking entry for player {player_id} in '{category}'")

        return entry

    async def add_points(
        self,
        player_id: int,
        category: str,
        delta: int,
        session: Optional[AsyncSession] = None
    ) -> RankingEntry:
        """
        Add (or subtract) points for a player in a category.

        The entry is created on first use and the total never drops below zero.

        Raises:
            ValidationError: If delta is not an integer
            PlayerNotFound: If the player does not exist
        """
        if not is_storable_int(delta):
            raise ValidationError(f"Invalid delta {delta!r}", "Points delta must be a whole number.")
        category = normalize_category(category)

        async with self._get_session_context(session) as s:
            entry = await self._get_or_create_entry(s, player_id, category)
            new_points = max(RankingConstants.MIN_POINTS, entry.points + delta)
            if new_points > ValidationConstants.MAX_INT:
                raise ValidationError(
                    f"Ranking total overflow for player {player_id} in '{category}'",
                    "Points total is too large."
                )
            entry.points = new_points
            await s.flush()

            self.logger.info(f"Ranking {category}: player {player_id} {delta:+d} -> {entry.points}")
            return entry

    async def set_points(
        self,
        player_id: int,
        category: str,
        points: int,
        session: Optional[AsyncSession] = None
    ) -> RankingEntry:
        """Set an exact total (administrative correction)."""
        if not is_storable_int(points) or points < RankingConstants.MIN_POINTS:
            raise ValidationError(f"Invalid points {points!r}", "Points must be a non-negative whole number.")
        category = normalize_category(category)

        async with self._get_session_context(session) as s:
            entry = await self._get_or_create_entry(s, player_id, category)
            old_points = entry.points
            entry.points = points
            await s.flush()

            self.logger.info(f"Ranking {category}: player {player_id} set {old_points} -> {points}")
            return entry

    async def reset_category(self, category: str, session: Optional[AsyncSession] = None) -> int:
        """Delete every ranking entry of a category. Returns the deleted count."""
        category = normalize_category(category)

        async with self._get_session_context(session) as s:
            result = await s.execute(
                delete(RankingEntry).where(RankingEntry.category == category)
            )
            deleted = result.rowcount or 0

        self.logger.info(f"Reset ranking category '{category}': {deleted} entries deleted")
        return deleted

    async def get_points(self, player_id: int, category: str) -> int:
        """Current total, 0 when the player has no entry yet"""
        entry = await self.db.get_ranking_entry(player_id, normalize_category(category))
        return entry.points if entry else 0
