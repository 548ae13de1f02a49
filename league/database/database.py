from typing import Optional, List
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import selectinload
from sqlalchemy import select, event
from contextlib import asynccontextmanager

from league.config import Config
from league.database.models import (
    Base, Player, Tournament, TournamentEnrollment, Match, RankingEntry
)
from league.utils.logger import setup_logger

class Database:
    def __init__(self, database_url: Optional[str] = None):
        self.logger = setup_logger(__name__)
        self.database_url = database_url
        self.engine = None
        self.async_session = None

    @property
    def session_factory(self):
        return self.async_session

    async def initialize(self):
        """Initialize the database connection and create tables"""
        self.logger.info("Initializing database...")

        # Convert sqlite URL to async if needed
        database_url = Config.get_async_database_url(self.database_url)

        self.engine = create_async_engine(
            database_url,
            echo=Config.DEBUG,
            future=True
        )

        if database_url.startswith('sqlite'):
            # SQLite leaves foreign keys off unless asked per connection
            @event.listens_for(self.engine.sync_engine, "connect")
            def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        self.async_session = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        # Create all tables
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

        self.logger.info("Database initialized successfully")

    @asynccontextmanager
    async def get_session(self):
        """Get a database session"""
        async with self.async_session() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    @asynccontextmanager
    async def transaction(self):
        """
        Create a transaction boundary for atomic operations.

        All operations within the context are committed together on success,
        or rolled back together on failure.

        Usage:
            async with db.transaction() as session:
                await ranking_ops.add_points(..., session=session)
                await player_ops.record_ranking_award(..., session=session)
                # All operations commit together here

        The caller passes the yielded session to every participating
        operation. Exceptions must propagate out of the context for the
        rollback to happen.
        """
        async with self.async_session() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()

    async def close(self):
        """Close the database connection"""
        if self.engine:
            await self.engine.dispose()
            self.logger.info("Database connection closed")

    # Player queries
    async def get_player_by_id(self, player_id: int) -> Optional[Player]:
        """Get a player with their ranking history"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Player)
                .options(selectinload(Player.ranking_history))
                .where(Player.id == player_id)
            )
            return result.scalar_one_or_none()

    async def get_all_players(self) -> List[Player]:
        """Get all players sorted by name"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Player).order_by(Player.name, Player.id)
            )
            return list(result.scalars().all())

    # Tournament queries
    async def get_tournament_by_id(self, tournament_id: int) -> Optional[Tournament]:
        """Get a tournament with its ordered enrollment list"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Tournament)
                .options(
                    selectinload(Tournament.enrollments).selectinload(TournamentEnrollment.player)
                )
                .where(Tournament.id == tournament_id)
            )
            return result.scalar_one_or_none()

    async def get_all_tournaments(self) -> List[Tournament]:
        """Get all tournaments, newest first"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Tournament)
                .options(selectinload(Tournament.enrollments))
                .order_by(Tournament.created_at.desc(), Tournament.id.desc())
            )
            return list(result.scalars().all())

    # Match queries
    async def get_match_by_id(self, match_id: int) -> Optional[Match]:
        async with self.get_session() as session:
            result = await session.execute(
                select(Match).where(Match.id == match_id)
            )
            return result.scalar_one_or_none()

    async def get_matches_for_tournament(self, tournament_id: int) -> List[Match]:
        """Get every match of a tournament ordered by round, then slot"""
        async with self.get_session() as session:
            result = await session.execute(
                select(Match)
                .where(Match.tournament_id == tournament_id)
                .order_by(Match.round_number, Match.slot)
            )
            return list(result.scalars().all())

    # Ranking queries
    async def get_ranking_entry(self, player_id: int, category: str) -> Optional[RankingEntry]:
        async with self.get_session() as session:
            result = await session.execute(
                select(RankingEntry).where(
                    (RankingEntry.player_id == player_id) &
                    (RankingEntry.category == category)
                )
            )
            return result.scalar_one_or_none()
