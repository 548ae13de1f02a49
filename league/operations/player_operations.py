"""
Player Operations Module

This module provides business logic operations for Player management.

Key functionality:
- create_player(): Validated player creation with duplicate detection
- get_player() / list_players(): Lookups that raise domain errors
- record_ranking_award(): Keeps the player's cached ranking score and
  ranking history in step with awarded points (called only from the
  result cascade)
"""

from typing import Optional, List
from contextlib import asynccontextmanager
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from league.constants import ValidationConstants
from league.database.models import Player, RankingHistory, utcnow
from league.utils.exceptions import (
    PlayerNotFound, InvalidPlayerData, DuplicatePlayer
)
from league.utils.validation import normalize_text, normalize_category, is_storable_int
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class PlayerOperations:
    """
    Business logic operations for Player management.
    """

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

    async def create_player(
        self,
        name: str,
        category: Optional[str] = None,
        document: Optional[str] = None,
        age: Optional[int] = None,
        ranking_score: int = 0,
        session: Optional[AsyncSession] = None
    ) -> Player:
        """
        Create a new player.

        Args:
            name: Display name
            category: Competitive division the player belongs to
            document: Optional identity document, unique when present
            age: Optional non-negative age
            ranking_score: Initial ranking score used for seeding

        Returns:
            Player: The newly created player

        Raises:
            InvalidPlayerData: If any field fails validation
            DuplicatePlayer: If another player has the same document
        """
        name = normalize_text(name)
        if not name:
            raise InvalidPlayerData("Player name is empty", "Player name is required.")
        if len(name) > ValidationConstants.PLAYER_NAME_MAX_LENGTH:
            raise InvalidPlayerData(
                f"Player name too long ({len(name)} chars)",
                f"Player name must be at most {ValidationConstants.PLAYER_NAME_MAX_LENGTH} characters."
            )
        if age is not None and (not is_storable_int(age) or age < 0):
            raise InvalidPlayerData(f"Invalid age {age!r}", "Age must be a non-negative whole number.")
        if not is_storable_int(ranking_score) or ranking_score < 0:
            raise InvalidPlayerData(
                f"Invalid ranking score {ranking_score!r}",
                "Ranking score must be a non-negative whole number."
            )

        category = normalize_category(category) if category is not None else None
        document = normalize_text(document) or None

        async with self._get_session_context(session) as s:
            if document is not None:
                existing = await s.execute(select(Player.id).where(Player.document == document))
                if existing.scalar_one_or_none() is not None:
                    raise DuplicatePlayer(document)

            player = Player(
                name=name,
                category=category,
                document=document,
                age=age,
                ranking_score=ranking_score
            )
            s.add(player)
            try:
                await s.flush()
            except IntegrityError:
                raise DuplicatePlayer(document)

            self.logger.info(f"Created Player {player.id} '{name}'")
            return player

    async def get_player(self, player_id: int) -> Player:
        """Get a player (with ranking history) or raise PlayerNotFound"""
        player = await self.db.get_player_by_id(player_id)
        if player is None:
            raise PlayerNotFound(player_id)
        return player

    async def list_players(self) -> List[Player]:
        """All players sorted by name"""
        return await self.db.get_all_players()

    async def record_ranking_award(
        self,
        player_id: int,
        points: int,
        reason: str,
        session: AsyncSession
    ) -> Player:
        """
        Apply awarded points to the player's cached score and history.

        Must run inside the caller's transaction, next to the matching
        RankingOperations.add_points() call.
        """
        result = await session.execute(
            select(Player).where(Player.id == player_id).with_for_update()
        )
        player = result.scalar_one_or_none()
        if player is None:
            raise PlayerNotFound(player_id)

        player.ranking_score = (player.ranking_score or 0) + points
        session.add(RankingHistory(
            player_id=player_id,
            recorded_at=utcnow(),
            points=points,
            reason=reason
        ))
        await session.flush()

        self.logger.debug(f"Player {player_id} ranking score now {player.ranking_score} ({reason})")
        return player
