"""
Shared fixtures for the league test suite.

Every test gets its own file-backed SQLite database under tmp_path, fully
wired through LeagueApp.
"""
import os

# Keep test runs from writing dated log files into the working tree
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest

from league.config import Config
from league.main import LeagueApp


@pytest.fixture(autouse=True)
def open_category_policy(monkeypatch):
    """Categories are opaque strings unless a test switches validation on."""
    monkeypatch.setattr(Config, "VALIDATE_CATEGORIES", False)
    monkeypatch.setattr(Config, "LOG_TO_FILE", False)


@pytest.fixture
async def app(tmp_path):
    """Fully wired league on a fresh database."""
    league = LeagueApp()
    await league.setup(f"sqlite:///{tmp_path / 'league_test.db'}")
    yield league
    await league.close()


@pytest.fixture
async def make_players(app):
    """Factory creating players with the given (name, ranking_score) pairs."""
    async def _make(*entries):
        players = []
        for entry in entries:
            if isinstance(entry, tuple):
                name, score = entry
            else:
                name, score = entry, 0
            players.append(await app.create_player(name, ranking_score=score))
        return players
    return _make


@pytest.fixture
async def make_tournament(app, make_players):
    """Factory creating a tournament and enrolling fresh players into it."""
    counter = {"n": 0}

    async def _make(*entries, category="Mayores", name=None):
        counter["n"] += 1
        tournament = await app.create_tournament(
            name or f"Open {counter['n']}",
            category,
            start_date="2024-03-01"
        )
        players = await make_players(*entries)
        for player in players:
            await app.enroll_player(tournament.id, player.id)
        return tournament, players
    return _make
