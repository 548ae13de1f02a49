import asyncio
from typing import Optional, List, Any

from league.config import Config
from league.constants import PaginationConstants
from league.database.database import Database
from league.database.match_operations import MatchOperations
from league.database.models import Player, Tournament, Match, RankingEntry
from league.data_models.bracket import BracketSummary, ResultReport
from league.data_models.leaderboard import LeaderboardEntry, LeaderboardPage, RankingWindow
from league.operations.bracket_operations import BracketOperations
from league.operations.player_operations import PlayerOperations
from league.operations.ranking_operations import RankingOperations
from league.operations.tournament_operations import TournamentOperations
from league.services.leaderboard import LeaderboardService
from league.utils.locks import TournamentLocks
from league.utils.logger import setup_logger


class LeagueApp:
    """
    Entry point wiring the database, operations and services together.

    Every operation shares one TournamentLocks registry so enrollment,
    bracket generation and result reports on a tournament never interleave.
    """

    def __init__(self):
        self.db: Optional[Database] = None
        self.locks = TournamentLocks()
        self.player_ops: Optional[PlayerOperations] = None
        self.ranking_ops: Optional[RankingOperations] = None
        self.tournament_ops: Optional[TournamentOperations] = None
        self.match_ops: Optional[MatchOperations] = None
        self.bracket_ops: Optional[BracketOperations] = None
        self.leaderboard: Optional[LeaderboardService] = None
        self.logger = setup_logger(__name__)

    async def setup(self, database_url: Optional[str] = None):
        """Called when the league is starting up"""
        self.logger.info("Setting up League...")

        self.db = Database(database_url)
        await self.db.initialize()

        self.player_ops = PlayerOperations(self.db)
        self.ranking_ops = RankingOperations(self.db)
        self.tournament_ops = TournamentOperations(self.db, locks=self.locks)
        self.match_ops = MatchOperations(
            self.db,
            ranking_ops=self.ranking_ops,
            player_ops=self.player_ops,
            locks=self.locks
        )
        self.bracket_ops = BracketOperations(self.db, match_ops=self.match_ops, locks=self.locks)
        self.leaderboard = LeaderboardService(self.db.session_factory)

        self.logger.info("League setup complete!")

    async def close(self):
        """Cleanup when shutting down"""
        if self.db:
            await self.db.close()
        self.logger.info("League closed")

    # Players

    async def create_player(self, name: str, **fields) -> Player:
        return await self.player_ops.create_player(name, **fields)

    async def get_player(self, player_id: int) -> Player:
        return await self.player_ops.get_player(player_id)

    async def list_players(self) -> List[Player]:
        return await self.player_ops.list_players()

    # Tournaments

    async def create_tournament(
        self,
        name: str,
        category: str,
        bracket_type: Any = None,
        start_date: Any = None,
        end_date: Any = None
    ) -> Tournament:
        return await self.tournament_ops.create_tournament(
            name, category, bracket_type=bracket_type, start_date=start_date, end_date=end_date
        )

    async def get_tournament(self, tournament_id: int) -> Tournament:
        return await self.tournament_ops.get_tournament(tournament_id)

    async def list_tournaments(self) -> List[Tournament]:
        return await self.tournament_ops.list_tournaments()

    async def enroll_player(self, tournament_id: int, player_id: int) -> List[int]:
        return await self.tournament_ops.enroll_player(tournament_id, player_id)

    async def get_enrolled_players(self, tournament_id: int) -> List[Player]:
        return await self.tournament_ops.get_enrolled_players(tournament_id)

    # Brackets and results

    async def build_bracket(self, tournament_id: int) -> BracketSummary:
        return await self.bracket_ops.build_bracket(tournament_id)

    async def reset_bracket(self, tournament_id: int) -> int:
        return await self.bracket_ops.reset_bracket(tournament_id)

    async def get_bracket(self, tournament_id: int) -> List[Match]:
        return await self.bracket_ops.get_bracket(tournament_id)

    async def report_result(self, match_id: int, score_a: int, score_b: int) -> ResultReport:
        return await self.match_ops.report_result(match_id, score_a, score_b)

    # Ranking

    async def get_ranking(self, category: Optional[str] = None) -> List[RankingEntry]:
        return await self.leaderboard.get_ranking(category)

    async def get_ranking_page(
        self,
        category: str,
        page: int = 1,
        page_size: int = PaginationConstants.DEFAULT_PAGE_SIZE
    ) -> LeaderboardPage:
        return await self.leaderboard.get_page(category, page=page, page_size=page_size)

    async def get_top(self, category: str, n: int = PaginationConstants.DEFAULT_TOP_COUNT) -> List[LeaderboardEntry]:
        return await self.leaderboard.top(category, n)

    async def get_player_rank(self, player_id: int, category: str) -> Optional[LeaderboardEntry]:
        return await self.leaderboard.get_player_rank(player_id, category)

    async def get_ranking_around(
        self,
        player_id: int,
        category: str,
        radius: int = PaginationConstants.DEFAULT_AROUND_RADIUS
    ) -> RankingWindow:
        return await self.leaderboard.get_around(player_id, category, radius=radius)

    async def set_points(self, player_id: int, category: str, points: int) -> RankingEntry:
        return await self.ranking_ops.set_points(player_id, category, points)

    async def reset_category(self, category: str) -> int:
        return await self.ranking_ops.reset_category(category)


async def main():
    """Main entry point"""
    Config.validate()

    app = LeagueApp()

    try:
        await app.setup()
        tournaments = await app.list_tournaments()
        players = await app.list_players()
        app.logger.info(f"League ready: {len(players)} players, {len(tournaments)} tournaments")
    finally:
        await app.close()


def cli():
    """Console script entry point"""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
