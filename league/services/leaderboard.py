"""
Leaderboard service.

Provides ranked listings of the per-category ranking totals: the full
ordered table, pagination, top-N, a player's own position and the rows
around it.
"""

from typing import Optional, List
import logging

from sqlalchemy import select, func
from sqlalchemy.orm import selectinload

from league.constants import PaginationConstants
from league.services.base import BaseService
from league.data_models.leaderboard import LeaderboardEntry, LeaderboardPage, RankingWindow
from league.database.models import RankingEntry
from league.utils.exceptions import ValidationError
from league.utils.ranking import RankingUtility
from league.utils.validation import normalize_category, is_storable_int

logger = logging.getLogger(__name__)


class LeaderboardService(BaseService):
    """Service for ranking queries and pagination."""

    def __init__(self, session_factory):
        super().__init__(session_factory)

    @staticmethod
    def _to_entry(row) -> LeaderboardEntry:
        return LeaderboardEntry(
            rank=row.rank,
            entry_id=row.entry_id,
            player_id=row.player_id,
            player_name=row.player_name,
            category=row.category,
            points=row.points
        )

    async def get_ranking(self, category: Optional[str] = None) -> List[RankingEntry]:
        """
        Ranking entries ordered by points descending, then id ascending.

        With no category every entry is returned in that global order.
        """
        query = (
            select(RankingEntry)
            .options(selectinload(RankingEntry.player))
            .order_by(*RankingUtility.ordering())
        )
        if category is not None:
            query = query.where(RankingEntry.category == normalize_category(category))

        async with self.get_session() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def get_page(
        self,
        category: str,
        page: int = 1,
        page_size: int = PaginationConstants.DEFAULT_PAGE_SIZE
    ) -> LeaderboardPage:
        """Get one page of a category's ranking."""
        if not RankingUtility.validate_pagination(page, page_size):
            raise ValidationError(
                f"Invalid pagination page={page!r} page_size={page_size!r}",
                f"Page must be 1 or more and page size between 1 and {PaginationConstants.MAX_PAGE_SIZE}."
            )
        category = normalize_category(category)

        async with self.get_session() as session:
            ranking_cte = RankingUtility.create_ranking_cte(category)

            total_count = await session.scalar(select(func.count()).select_from(ranking_cte)) or 0

            offset = (page - 1) * page_size
            result = await session.execute(
                select(ranking_cte)
                .order_by(ranking_cte.c.rank)
                .limit(page_size)
                .offset(offset)
            )
            entries = [self._to_entry(row) for row in result]

        return LeaderboardPage(
            entries=entries,
            current_page=page,
            total_pages=RankingUtility.total_pages(total_count, page_size),
            total_players=total_count,
            category=category
        )

    async def top(self, category: str, n: int = PaginationConstants.DEFAULT_TOP_COUNT) -> List[LeaderboardEntry]:
        """The first n rows of a category's ranking."""
        if not is_storable_int(n) or n < 1:
            raise ValidationError(f"Invalid top count {n!r}", "Top count must be a positive whole number.")
        category = normalize_category(category)

        async with self.get_session() as session:
            ranking_cte = RankingUtility.create_ranking_cte(category)
            result = await session.execute(
                select(ranking_cte).order_by(ranking_cte.c.rank).limit(n)
            )
            return [self._to_entry(row) for row in result]

    async def get_player_rank(self, player_id: int, category: str) -> Optional[LeaderboardEntry]:
        """A player's row in a category, or None when they have no entry."""
        category = normalize_category(category)

        async with self.get_session() as session:
            ranking_cte = RankingUtility.create_ranking_cte(category)
            result = await session.execute(
                select(ranking_cte).where(ranking_cte.c.player_id == player_id)
            )
            row = result.first()
            return self._to_entry(row) if row else None

    async def get_around(
        self,
        player_id: int,
        category: str,
        radius: int = PaginationConstants.DEFAULT_AROUND_RADIUS
    ) -> RankingWindow:
        """
        The rows within radius positions of a player.

        An unranked player gets an empty window with no center.
        """
        if not is_storable_int(radius) or radius < 0:
            raise ValidationError(f"Invalid radius {radius!r}", "Radius must be a non-negative whole number.")
        category = normalize_category(category)

        async with self.get_session() as session:
            ranking_cte = RankingUtility.create_ranking_cte(category)

            result = await session.execute(
                select(ranking_cte).where(ranking_cte.c.player_id == player_id)
            )
            row = result.first()
            if row is None:
                return RankingWindow(center=None, entries=[])

            center = self._to_entry(row)
            result = await session.execute(
                select(ranking_cte)
                .where(ranking_cte.c.rank.between(center.rank - radius, center.rank + radius))
                .order_by(ranking_cte.c.rank)
            )
            entries = [self._to_entry(r) for r in result]

        logger.debug(f"Ranking window for player {player_id} in '{category}': {len(entries)} rows")
        return RankingWindow(center=center, entries=entries)
