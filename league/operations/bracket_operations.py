"""
Bracket Operations Module

This module builds, resets and reads single-elimination brackets.

Key functionality:
- build_bracket(): Seed the enrolled players, create every round's matches
  and resolve round-1 byes, all in one transaction
- reset_bracket(): Delete every match and reopen the tournament
- get_bracket(): Matches ordered by round, then slot

Regenerating a bracket first deletes the tournament's existing matches for
its category, so building twice on the same enrollment gives the same tree.
"""

from typing import List, Optional
from sqlalchemy import select, delete
from sqlalchemy.orm import selectinload
from sqlalchemy.exc import SQLAlchemyError

from league.constants import BracketConstants
from league.database.match_operations import MatchOperations
from league.database.models import (
    Match, MatchStatus, Tournament, TournamentEnrollment, TournamentStatus, BracketType
)
from league.data_models.bracket import BracketSummary
from league.utils.bracket import BracketCalculator
from league.utils.exceptions import (
    LeagueException, DatabaseError, TournamentNotFound,
    InsufficientPlayers, UnsupportedBracketType
)
from league.utils.locks import TournamentLocks
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class BracketOperations:
    """
    Business logic operations for bracket generation and reset.
    """

    def __init__(
        self,
        database,
        match_ops: Optional[MatchOperations] = None,
        locks: Optional[TournamentLocks] = None
    ):
        """Initialize with database instance, match operations and shared locks"""
        self.db = database
        self.locks = locks or TournamentLocks()
        self.match_ops = match_ops or MatchOperations(database, locks=self.locks)
        self.logger = logger

    async def build_bracket(self, tournament_id: int) -> BracketSummary:
        """
        Generate the full single-elimination bracket for a tournament.

        Players are seeded by ranking score (descending) then name, padded
        with byes to the next power of two and paired 1 vs N, 2 vs N-1, ...
        All later rounds are created empty, and every round-1 match with a
        single player is resolved immediately without awarding points.

        Returns:
            BracketSummary: Size, byes, rounds and the created match ids

        Raises:
            TournamentNotFound: Unknown tournament
            UnsupportedBracketType: Tournament is not single elimination
            InsufficientPlayers: Fewer than two players enrolled
        """
        async with self.locks.hold(tournament_id):
            try:
                async with self.db.transaction() as session:
                    result = await session.execute(
                        select(Tournament)
                        .options(
                            selectinload(Tournament.enrollments).selectinload(TournamentEnrollment.player)
                        )
                        .where(Tournament.id == tournament_id)
                        .with_for_update()
                    )
                    tournament = result.scalar_one_or_none()
                    if tournament is None:
                        raise TournamentNotFound(tournament_id)
                    if tournament.bracket_type != BracketType.SINGLE_ELIMINATION:
                        raise UnsupportedBracketType(tournament.bracket_type.value)

                    players = [enrollment.player for enrollment in tournament.enrollments]
                    if len(players) < BracketConstants.MIN_PLAYERS:
                        raise InsufficientPlayers(tournament_id, len(players), BracketConstants.MIN_PLAYERS)

                    category = tournament.category

                    # Regeneration starts from a clean slate
                    await session.execute(
                        delete(Match).where(
                            (Match.tournament_id == tournament_id) &
                            (Match.category == category)
                        )
                    )
                    tournament.winner_player_id = None
                    tournament.winner_category = None
                    tournament.finished_at = None

                    seeded = sorted(
                        players,
                        key=lambda p: BracketCalculator.seed_key(p.ranking_score, p.name, p.id)
                    )
                    size = BracketCalculator.next_power_of_two(len(seeded))
                    rounds = BracketCalculator.round_count(size)

                    first_round = []
                    for index, (player_a, player_b) in enumerate(BracketCalculator.first_round_pairs(seeded)):
                        first_round.append(Match(
                            tournament_id=tournament_id,
                            category=category,
                            round_number=BracketConstants.FIRST_ROUND,
                            slot=index + 1,
                            player_a_id=player_a.id if player_a else None,
                            player_b_id=player_b.id if player_b else None,
                            status=MatchStatus.PENDING
                        ))

                    later_rounds = [
                        Match(
                            tournament_id=tournament_id,
                            category=category,
                            round_number=round_number,
                            slot=slot,
                            status=MatchStatus.PENDING
                        )
                        for round_number in range(BracketConstants.FIRST_ROUND + 1, rounds + 1)
                        for slot in range(1, BracketCalculator.matches_in_round(size, round_number) + 1)
                    ]

                    session.add_all(first_round + later_rounds)
                    await session.flush()

                    # Byes advance without points
                    for match in first_round:
                        if match.is_bye:
                            winner_id = match.player_a_id if match.player_a_id is not None else match.player_b_id
                            await self.match_ops.advance_winner(session, match, winner_id, award_points=False)

                    tournament.status = TournamentStatus.IN_PROGRESS

                    summary = BracketSummary(
                        tournament_id=tournament_id,
                        category=category,
                        size=size,
                        player_count=len(seeded),
                        bye_count=BracketCalculator.bye_count(len(seeded)),
                        round_count=rounds,
                        match_ids=[m.id for m in first_round + later_rounds]
                    )
            except LeagueException:
                raise
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to build bracket for Tournament {tournament_id}: {e}", exc_info=True)
                raise DatabaseError("build_bracket", str(e))

        self.logger.info(
            f"Built bracket for Tournament {tournament_id}: {summary.player_count} players, "
            f"size {summary.size}, {summary.bye_count} byes, {summary.round_count} rounds"
        )
        return summary

    async def reset_bracket(self, tournament_id: int) -> int:
        """
        Delete every match of the tournament and reopen it.

        Status goes back to CREATED and the winner record is cleared; the
        enrolled players are kept.

        Returns:
            Number of deleted matches
        """
        async with self.locks.hold(tournament_id):
            try:
                async with self.db.transaction() as session:
                    result = await session.execute(
                        select(Tournament).where(Tournament.id == tournament_id).with_for_update()
                    )
                    tournament = result.scalar_one_or_none()
                    if tournament is None:
                        raise TournamentNotFound(tournament_id)

                    deleted = await session.execute(
                        delete(Match).where(Match.tournament_id == tournament_id)
                    )
                    deleted_count = deleted.rowcount or 0

                    tournament.status = TournamentStatus.CREATED
                    tournament.winner_player_id = None
                    tournament.winner_category = None
                    tournament.finished_at = None
            except LeagueException:
                raise
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to reset bracket for Tournament {tournament_id}: {e}", exc_info=True)
                raise DatabaseError("reset_bracket", str(e))

        self.logger.info(f"Reset bracket for Tournament {tournament_id}: {deleted_count} matches deleted")
        return deleted_count

    async def get_bracket(self, tournament_id: int) -> List[Match]:
        """All matches of the tournament ordered by round, then slot"""
        if await self.db.get_tournament_by_id(tournament_id) is None:
            raise TournamentNotFound(tournament_id)
        return await self.db.get_matches_for_tournament(tournament_id)
