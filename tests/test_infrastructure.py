"""
Configuration, error payload and locking tests.
"""
import asyncio

import pytest

from league.config import Config
from league.utils.error_messages import ErrorMessages, format_error
from league.utils.exceptions import (
    DatabaseError, DrawNotAllowed, InsufficientPlayers, MatchAlreadyPlayed, MatchNotFound
)
from league.utils.locks import TournamentLocks


# ============================================================================
# Config
# ============================================================================

def test_async_database_url_rewrites_sqlite():
    assert Config.get_async_database_url("sqlite:///league.db") == "sqlite+aiosqlite:///league.db"
    assert Config.get_async_database_url("sqlite+aiosqlite:///x.db") == "sqlite+aiosqlite:///x.db"
    assert Config.get_async_database_url("postgresql+asyncpg://h/db") == "postgresql+asyncpg://h/db"


def test_allowed_categories_are_parsed(monkeypatch):
    monkeypatch.setattr(Config, "ALLOWED_CATEGORIES", " Mayores , Sub-21,, Libre ")
    assert Config.get_allowed_categories() == ["Mayores", "Sub-21", "Libre"]


def test_validate_rejects_empty_allowed_list(monkeypatch):
    monkeypatch.setattr(Config, "VALIDATE_CATEGORIES", True)
    monkeypatch.setattr(Config, "ALLOWED_CATEGORIES", " , ")
    with pytest.raises(ValueError):
        Config.validate()


# ============================================================================
# Error payloads
# ============================================================================

@pytest.mark.parametrize("error,kind", [
    (MatchNotFound(3), "NotFound"),
    (DrawNotAllowed(3, 2), "ValidationError"),
    (MatchAlreadyPlayed(3), "ConflictError"),
    (InsufficientPlayers(1, 1), "PreconditionFailed"),
])
def test_format_error_uses_kind_and_user_message(error, kind):
    payload = format_error(error)
    assert payload == {"error": kind, "message": error.user_message}


def test_database_error_hides_details():
    payload = format_error(DatabaseError("report_result", "UNIQUE constraint failed: matches.id"))
    assert payload["error"] == "DatabaseError"
    assert "UNIQUE" not in payload["message"]


def test_unexpected_errors_are_generic():
    payload = format_error(RuntimeError("secret path /var/db"))
    assert payload == {"error": "InternalError", "message": ErrorMessages.GENERIC_MESSAGE}


# ============================================================================
# Locks
# ============================================================================

async def test_tournament_locks_serialise_per_tournament():
    locks = TournamentLocks()
    order = []

    async def worker(tournament_id, label):
        async with locks.hold(tournament_id):
            order.append(f"{label}-start")
            await asyncio.sleep(0.01)
            order.append(f"{label}-end")

    await asyncio.gather(worker(1, "a"), worker(1, "b"))
    assert order == ["a-start", "a-end", "b-start", "b-end"]


async def test_tournament_locks_are_independent():
    locks = TournamentLocks()
    async with locks.hold(1):
        assert locks.is_locked(1)
        assert not locks.is_locked(2)
    assert not locks.is_locked(1)
    assert locks.get(1) is locks.get(1)
