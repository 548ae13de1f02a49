import math
import unicodedata
from typing import List, Optional, Sequence, Tuple, TypeVar

from league.constants import BracketConstants

T = TypeVar('T')


class BracketCalculator:
    """Handles single-elimination bracket math (sizes, seeding, addressing)"""

    @staticmethod
    def next_power_of_two(count: int) -> int:
        """
        Smallest power of two greater than or equal to count

        Args:
            count: Number of players (must be positive)

        Returns:
            Bracket size
        """
        if count < 1:
            raise ValueError("count must be positive")
        size = 1
        while size < count:
            size *= 2
        return size

    @staticmethod
    def bye_count(player_count: int) -> int:
        """
        Empty slots needed to fill the bracket

        Args:
            player_count: Number of enrolled players

        Returns:
            Bracket size minus player count
        """
        return BracketCalculator.next_power_of_two(player_count) - player_count

    @staticmethod
    def round_count(size: int) -> int:
        """Number of rounds for a bracket of the given (power of two) size"""
        return int(math.log2(size))

    @staticmethod
    def matches_in_round(size: int, round_number: int) -> int:
        """Round 1 has size/2 matches, each following round half as many"""
        return size // (2 ** round_number)

    @staticmethod
    def name_key(name: Optional[str]) -> str:
        """Accent- and case-insensitive form of a name ('Álvaro' sorts as 'alvaro')"""
        decomposed = unicodedata.normalize('NFKD', name or '')
        return decomposed.encode('ascii', 'ignore').decode('ascii').casefold()

    @staticmethod
    def seed_key(
        ranking_score: Optional[int],
        name: Optional[str],
        player_id: int = 0
    ) -> Tuple[int, str, str, int]:
        """
        Sort key for seeding: ranking descending, then name ascending

        Names compare without regard to case or accents; the raw name and
        then the player id break any remaining tie so the order is fully
        deterministic.
        """
        return (-(ranking_score or 0), BracketCalculator.name_key(name), name or '', player_id)

    @staticmethod
    def first_round_pairs(seeded: Sequence[T]) -> List[Tuple[Optional[T], Optional[T]]]:
        """
        Pair seeds 1 vs N, 2 vs N-1, ... after padding with byes

        Args:
            seeded: Players already ordered by seed

        Returns:
            size/2 pairs in slot order; None marks a bye
        """
        size = BracketCalculator.next_power_of_two(len(seeded))
        padded: List[Optional[T]] = list(seeded) + [None] * (size - len(seeded))
        return [(padded[i], padded[size - 1 - i]) for i in range(size // 2)]

    @staticmethod
    def destination(round_number: int, slot: int) -> Tuple[int, int, bool]:
        """
        Where the winner of a match goes next

        Args:
            round_number: Round of the decided match
            slot: Slot of the decided match within its round

        Returns:
            (next round, next slot, True if the winner takes side A)
        """
        if round_number < BracketConstants.FIRST_ROUND or slot < BracketConstants.FIRST_SLOT:
            raise ValueError("round_number and slot start at 1")
        return round_number + 1, math.ceil(slot / 2), slot % 2 == 1
