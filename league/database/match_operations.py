"""
Match Operations Module

This module provides the result side of a single-elimination bracket:
recording a reported score, awarding ranking points, and moving the winner
into the next round (or closing the tournament after the final).

Architecture Patterns:
- Every check runs before the first write, so a rejected report leaves no trace
- The whole cascade (match -> ranking -> player cache -> next match or
  tournament) happens inside one transaction via advance_winner()
- Reports on the same tournament are serialised with TournamentLocks, and the
  match status is re-checked under the lock so a result is recorded only once
"""

from typing import Optional
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from league.constants import RankingConstants
from league.database.models import (
    Match, MatchStatus, Tournament, TournamentStatus, utcnow
)
from league.data_models.bracket import ResultReport
from league.operations.player_operations import PlayerOperations
from league.operations.ranking_operations import RankingOperations
from league.utils.bracket import BracketCalculator
from league.utils.exceptions import (
    LeagueException, DatabaseError, MatchNotFound, TournamentNotFound,
    IncompleteMatch, DrawNotAllowed, MatchAlreadyPlayed
)
from league.utils.locks import TournamentLocks
from league.utils.validation import validate_score
from league.utils.logger import setup_logger

logger = setup_logger(__name__)


class MatchOperations:
    """
    Core service class for match results and winner propagation.
    """

    def __init__(
        self,
        database,
        ranking_ops: Optional[RankingOperations] = None,
        player_ops: Optional[PlayerOperations] = None,
        locks: Optional[TournamentLocks] = None
    ):
        """Initialize with database instance and collaborating operations"""
        self.db = database
        self.ranking_ops = ranking_ops or RankingOperations(database)
        self.player_ops = player_ops or PlayerOperations(database)
        self.locks = locks or TournamentLocks()
        self.logger = logger

    async def get_match(self, match_id: int) -> Match:
        """
        Load a match by id

        Args:
            match_id: Match to load

        Returns:
            Match: The stored match

        Raises:
            MatchNotFound: Unknown match
        """
        match = await self.db.get_match_by_id(match_id)
        if match is None:
            raise MatchNotFound(match_id)
        return match

    async def report_result(self, match_id: int, score_a: int, score_b: int) -> ResultReport:
        """
        Record the score of a match and propagate its winner.

        Args:
            match_id: Match being reported
            score_a: Score of the player in slot A
            score_b: Score of the player in slot B

        Returns:
            ResultReport: Winner, points awarded and where the winner went

        Raises:
            MatchNotFound: Unknown match
            InvalidScore: A score is not a non-negative integer
            MatchAlreadyPlayed: The match already has a result
            IncompleteMatch: One of the player slots is still empty
            DrawNotAllowed: Both scores are equal
        """
        match = await self.get_match(match_id)
        validate_score(score_a)
        validate_score(score_b)

        async with self.locks.hold(match.tournament_id):
            try:
                async with self.db.transaction() as session:
                    # Re-read under the lock; another report may have landed first
                    result = await session.execute(
                        select(Match).where(Match.id == match_id).with_for_update()
                    )
                    match = result.scalar_one_or_none()
                    if match is None:
                        raise MatchNotFound(match_id)
                    if match.status == MatchStatus.PLAYED:
                        raise MatchAlreadyPlayed(match_id)
                    if not match.is_complete:
                        raise IncompleteMatch(match_id)
                    if score_a == score_b:
                        raise DrawNotAllowed(match_id, score_a)

                    match.score_a = score_a
                    match.score_b = score_b
                    winner_id = match.player_a_id if score_a > score_b else match.player_b_id

                    report = await self.advance_winner(session, match, winner_id, award_points=True)
            except LeagueException:
                raise
            except SQLAlchemyError as e:
                self.logger.error(f"Failed to record result for Match {match_id}: {e}", exc_info=True)
                raise DatabaseError("report_result", str(e))

        self.logger.info(
            f"Match {match_id} result {score_a}-{score_b}: winner Player {report.winner_id}"
            + (" (tournament finished)" if report.tournament_finished else "")
        )
        return report

    async def advance_winner(
        self,
        session: AsyncSession,
        match: Match,
        winner_id: int,
        award_points: bool = True
    ) -> ResultReport:
        """
        Close a match and cascade its winner through the bracket.

        Marks the match played, optionally awards the win points (ranking
        entry, player cache, history), then fills the destination slot of the
        next round or, when there is none, finishes the tournament.

        Runs inside the caller's transaction; it never commits.
        """
        match.winner_id = winner_id
        match.status = MatchStatus.PLAYED
        match.completed_at = utcnow()

        points = 0
        if award_points:
            points = RankingConstants.WIN_POINTS
            await self.ranking_ops.add_points(winner_id, match.category, points, session=session)
            reason = RankingConstants.WIN_REASON_TEMPLATE.format(
                category=match.category, round_number=match.round_number
            )
            await self.player_ops.record_ranking_award(winner_id, points, reason, session=session)

        next_round, next_slot, takes_side_a = BracketCalculator.destination(match.round_number, match.slot)
        result = await session.execute(
            select(Match).where(
                (Match.tournament_id == match.tournament_id) &
                (Match.category == match.category) &
                (Match.round_number == next_round) &
                (Match.slot == next_slot)
            ).with_for_update()
        )
        destination = result.scalar_one_or_none()

        if destination is not None:
            if takes_side_a:
                destination.player_a_id = winner_id
            else:
                destination.player_b_id = winner_id
            await session.flush()

            self.logger.debug(
                f"Player {winner_id} advanced from R{match.round_number}S{match.slot} "
                f"to R{next_round}S{next_slot} side {'A' if takes_side_a else 'B'}"
            )
            return ResultReport(
                match_id=match.id,
                winner_id=winner_id,
                points_awarded=points,
                next_match_id=destination.id
            )

        # No destination: this was the final
        result = await session.execute(
            select(Tournament).where(Tournament.id == match.tournament_id).with_for_update()
        )
        tournament = result.scalar_one_or_none()
        if tournament is None:
            raise TournamentNotFound(match.tournament_id)

        tournament.status = TournamentStatus.FINISHED
        tournament.winner_player_id = winner_id
        tournament.winner_category = match.category
        tournament.finished_at = utcnow()
        await session.flush()

        self.logger.info(f"Tournament {tournament.id} finished, winner Player {winner_id}")
        return ResultReport(
            match_id=match.id,
            winner_id=winner_id,
            points_awarded=points,
            tournament_finished=True
        )
