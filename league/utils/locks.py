"""
Per-tournament serialisation of mutating operations.

Bracket builds, resets, enrollments and result reports on the same
tournament run one at a time; different tournaments proceed in parallel.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import Dict


class TournamentLocks:
    """Registry of one asyncio.Lock per tournament id."""

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}

    def get(self, tournament_id: int) -> asyncio.Lock:
        lock = self._locks.get(tournament_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[tournament_id] = lock
        return lock

    @asynccontextmanager
    async def hold(self, tournament_id: int):
        """Hold the tournament's lock for the duration of the block"""
        async with self.get(tournament_id):
            yield

    def is_locked(self, tournament_id: int) -> bool:
        lock = self._locks.get(tournament_id)
        return lock is not None and lock.locked()
