"""
Shared ranking utilities.

Provides the ranking CTE used by every ranked listing so pages, top-N,
player positions and windows all agree on the same order.
"""

from typing import Optional
from sqlalchemy import select, func
from sqlalchemy.sql import Select

from league.constants import PaginationConstants
from league.database.models import Player, RankingEntry


class RankingUtility:
    """Shared ranking logic for consistent CTE pattern usage."""

    @staticmethod
    def ordering():
        """Points descending, then entry id ascending"""
        return (RankingEntry.points.desc(), RankingEntry.id.asc())

    @staticmethod
    def create_ranking_cte(category: Optional[str] = None) -> Select:
        """
        Create a CTE that ranks ranking entries within their category.

        The id tie-break makes every position unique, so rank() never
        repeats inside a category.
        """
        query = (
            select(
                RankingEntry.id.label('entry_id'),
                RankingEntry.player_id,
                Player.name.label('player_name'),
                RankingEntry.category,
                RankingEntry.points,
                func.rank().over(
                    partition_by=RankingEntry.category,
                    order_by=RankingUtility.ordering()
                ).label('rank')
            )
            .select_from(RankingEntry)
            .join(Player, Player.id == RankingEntry.player_id)
        )

        if category is not None:
            query = query.where(RankingEntry.category == category)

        return query.cte('ranked_entries')

    @staticmethod
    def validate_pagination(page: int, page_size: int) -> bool:
        """Check page/page_size against the allowed bounds."""
        if isinstance(page, bool) or isinstance(page_size, bool):
            return False
        if not isinstance(page, int) or page < 1:
            return False
        if not isinstance(page_size, int):
            return False
        return 1 <= page_size <= PaginationConstants.MAX_PAGE_SIZE

    @staticmethod
    def total_pages(total: int, page_size: int) -> int:
        """Number of pages, never less than one."""
        return max(1, (total + page_size - 1) // page_size)
