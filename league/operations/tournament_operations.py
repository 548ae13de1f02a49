"""
Tournament Operations Module

This module provides business logic operations for Tournament management:
creation with field validation, lookups, and enrollment of players.

Enrollment is an ordered, duplicate-free list and is only open while the
tournament is in the CREATED state; generating the bracket freezes it and
resetting the bracket reopens it (the enrolled players are kept).
"""

from typing import Optional, List, Union, Any
from contextlib import asynccontextmanager
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from league.constants import ValidationConstants
from league.database.models import (
    Player, Tournament, TournamentEnrollment, TournamentStatus, BracketType
)
from league.utils.exceptions import (
    TournamentNotFound, PlayerNotFound, InvalidTournamentData,
    DuplicateTournament, AlreadyEnrolled, EnrollmentClosed
)
from league.utils.locks import TournamentLocks
from league.utils.validation import normalize_text, normalize_category, parse_date
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class TournamentOperations:
    """
    Business logic operations for Tournament lifecycle and enrollment.
    """

    def __init__(self, database, locks: Optional[TournamentLocks] = None):
        """Initialize with database instance and the shared tournament locks"""
        self.db = database
        self.locks = locks or TournamentLocks()
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

    @staticmethod
    def _parse_bracket_type(bracket_type: Union[BracketType, str, None]) -> BracketType:
        if bracket_type is None:
            return BracketType.SINGLE_ELIMINATION
        if isinstance(bracket_type, BracketType):
            return bracket_type
        try:
            return BracketType(str(bracket_type).strip().lower())
        except ValueError:
            raise InvalidTournamentData(
                f"Unknown bracket type {bracket_type!r}",
                "Invalid bracket type."
            )

    async def create_tournament(
        self,
        name: str,
        category: str,
        bracket_type: Union[BracketType, str, None] = None,
        start_date: Any = None,
        end_date: Any = None,
        session: Optional[AsyncSession] = None
    ) -> Tournament:
        """
        Create a tournament in the CREATED state with no players.

        Raises:
            InvalidTournamentData: Bad name, bracket type or date range
            InvalidCategory: Category rejected by the category policy
            DuplicateTournament: Same name, category and start date exists
        """
        name = normalize_text(name)
        if not name:
            raise InvalidTournamentData("Tournament name is empty", "Tournament name is required.")
        if not (ValidationConstants.TOURNAMENT_NAME_MIN_LENGTH
                <= len(name)
                <= ValidationConstants.TOURNAMENT_NAME_MAX_LENGTH):
            raise InvalidTournamentData(
                f"Tournament name length {len(name)} out of range",
                f"Tournament name must be between {ValidationConstants.TOURNAMENT_NAME_MIN_LENGTH} "
                f"and {ValidationConstants.TOURNAMENT_NAME_MAX_LENGTH} characters."
            )

        category = normalize_category(category)
        bracket = self._parse_bracket_type(bracket_type)
        start = parse_date(start_date, 'start_date')
        end = parse_date(end_date, 'end_date')
        if start and end and end < start:
            raise InvalidTournamentData(
                f"End date {end} before start date {start}",
                "The end date cannot be before the start date."
            )

        if start is not None:
            same_start = Tournament.start_date == start
        else:
            same_start = Tournament.start_date.is_(None)

        async with self._get_session_context(session) as s:
            duplicate = await s.execute(
                select(Tournament.id).where(
                    (Tournament.name == name) &
                    (Tournament.category == category) &
                    same_start
                )
            )
            if duplicate.first() is not None:
                raise DuplicateTournament(name, category)

            tournament = Tournament(
                name=name,
                category=category,
                bracket_type=bracket,
                start_date=start,
                end_date=end,
                status=TournamentStatus.CREATED,
                enrollments=[]
            )
            s.add(tournament)
            try:
                await s.flush()
            except IntegrityError:
                raise DuplicateTournament(name, category)

            self.logger.info(f"Created Tournament {tournament.id} '{name}' ({category}, {bracket.value})")

        return tournament

    async def get_tournament(self, tournament_id: int) -> Tournament:
        """Get a tournament with its enrollment list or raise TournamentNotFound"""
        tournament = await self.db.get_tournament_by_id(tournament_id)
        if tournament is None:
            raise TournamentNotFound(tournament_id)
        return tournament

    async def list_tournaments(self) -> List[Tournament]:
        """All tournaments, newest first"""
        return await self.db.get_all_tournaments()

    async def enroll_player(self, tournament_id: int, player_id: int) -> List[int]:
        """
        Append a player to the tournament's enrollment list.

        Returns:
            The enrolled player ids in enrollment order

        Raises:
            TournamentNotFound / PlayerNotFound: Unknown ids
            EnrollmentClosed: The bracket has already been generated
            AlreadyEnrolled: The player is already on the list
        """
        async with self.locks.hold(tournament_id):
            async with self.db.transaction() as s:
                result = await s.execute(
                    select(Tournament).where(Tournament.id == tournament_id).with_for_update()
                )
                tournament = result.scalar_one_or_none()
                if tournament is None:
                    raise TournamentNotFound(tournament_id)
                if tournament.status != TournamentStatus.CREATED:
                    raise EnrollmentClosed(tournament_id, tournament.status.value)

                if await s.get(Player, player_id) is None:
                    raise PlayerNotFound(player_id)

                existing = await s.execute(
                    select(TournamentEnrollment.id).where(
                        (TournamentEnrollment.tournament_id == tournament_id) &
                        (TournamentEnrollment.player_id == player_id)
                    )
                )
                if existing.first() is not None:
                    raise AlreadyEnrolled(player_id, tournament_id)

                max_position = await s.scalar(
                    select(func.max(TournamentEnrollment.position))
                    .where(TournamentEnrollment.tournament_id == tournament_id)
                )
                s.add(TournamentEnrollment(
                    tournament_id=tournament_id,
                    player_id=player_id,
                    position=(max_position or 0) + 1
                ))
                try:
                    await s.flush()
                except IntegrityError:
                    raise AlreadyEnrolled(player_id, tournament_id)

                enrolled = await s.execute(
                    select(TournamentEnrollment.player_id)
                    .where(TournamentEnrollment.tournament_id == tournament_id)
                    .order_by(TournamentEnrollment.position)
                )
                player_ids = list(enrolled.scalars().all())

        self.logger.info(f"Enrolled Player {player_id} in Tournament {tournament_id} ({len(player_ids)} enrolled)")
        return player_ids

    async def get_enrolled_players(self, tournament_id: int) -> List[Player]:
        """Enrolled players in enrollment order"""
        tournament = await self.get_tournament(tournament_id)
        return [enrollment.player for enrollment in tournament.enrollments]
