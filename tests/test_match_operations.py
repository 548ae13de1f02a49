"""
Result reporting and winner propagation tests.
"""
import asyncio

import pytest

from league.constants import RankingConstants
from league.database.models import MatchStatus, TournamentStatus
from league.utils.exceptions import (
    MatchNotFound, IncompleteMatch, DrawNotAllowed, InvalidScore, MatchAlreadyPlayed
)


def by_position(matches):
    return {(m.round_number, m.slot): m for m in matches}


async def bracket_of(app, tournament_id):
    return by_position(await app.get_bracket(tournament_id))


async def points_of(app, player_id, category="Mayores"):
    return await app.ranking_ops.get_points(player_id, category)


# ============================================================================
# Propagation
# ============================================================================

async def test_four_player_bracket_runs_to_a_winner(app, make_tournament):
    tournament, (a, b, c, d) = await make_tournament(("A", 400), ("B", 300), ("C", 200), ("D", 100))
    await app.build_bracket(tournament.id)
    bracket = await bracket_of(app, tournament.id)
    final_id = bracket[(2, 1)].id

    report = await app.report_result(bracket[(1, 1)].id, 3, 1)
    assert report.winner_id == a.id
    assert report.points_awarded == 100
    assert report.next_match_id == final_id
    assert not report.tournament_finished
    assert await points_of(app, a.id) == 100

    bracket = await bracket_of(app, tournament.id)
    assert bracket[(2, 1)].player_a_id == a.id
    assert bracket[(2, 1)].player_b_id is None

    report = await app.report_result(bracket[(1, 2)].id, 3, 2)
    assert report.winner_id == b.id
    assert await points_of(app, b.id) == 100

    bracket = await bracket_of(app, tournament.id)
    assert (bracket[(2, 1)].player_a_id, bracket[(2, 1)].player_b_id) == (a.id, b.id)

    report = await app.report_result(final_id, 3, 0)
    assert report.winner_id == a.id
    assert report.next_match_id is None
    assert report.tournament_finished

    finished = await app.get_tournament(tournament.id)
    assert finished.status == TournamentStatus.FINISHED
    assert finished.winner_player_id == a.id
    assert finished.winner_category == "Mayores"
    assert finished.finished_at is not None
    assert finished.winner["player_id"] == a.id

    assert await points_of(app, a.id) == 200
    assert await points_of(app, b.id) == 100
    assert await points_of(app, c.id) == 0
    assert await points_of(app, d.id) == 0


async def test_side_b_winner_takes_its_score(app, make_tournament):
    tournament, (a, b) = await make_tournament(("A", 10), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    report = await app.report_result(final.id, 1, 3)
    assert report.winner_id == b.id

    (final,) = await app.get_bracket(tournament.id)
    assert (final.score_a, final.score_b) == (1, 3)
    assert final.winner_id == b.id
    assert final.status == MatchStatus.PLAYED
    assert final.completed_at is not None


async def test_win_updates_player_cache_and_history(app, make_tournament):
    tournament, (a, b) = await make_tournament(("A", 40), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    await app.report_result(final.id, 3, 1)

    winner = await app.get_player(a.id)
    assert winner.ranking_score == 40 + RankingConstants.WIN_POINTS
    assert len(winner.ranking_history) == 1
    entry = winner.ranking_history[0]
    assert entry.points == 100
    assert "Mayores" in entry.reason
    assert "round 1" in entry.reason

    loser = await app.get_player(b.id)
    assert loser.ranking_score == 0
    assert loser.ranking_history == []


async def test_points_are_conserved(app, make_tournament):
    tournament, players = await make_tournament(*[(name, 0) for name in "ABCDEFGH"])
    await app.build_bracket(tournament.id)

    wins = {}
    for round_number in (1, 2, 3):
        bracket = await bracket_of(app, tournament.id)
        for (r, _), match in sorted(bracket.items()):
            if r != round_number:
                continue
            report = await app.report_result(match.id, 3, 1)
            wins[report.winner_id] = wins.get(report.winner_id, 0) + 1

    assert sum(wins.values()) == 7
    for player in players:
        assert await points_of(app, player.id) == 100 * wins.get(player.id, 0)

    ranking = await app.get_ranking("Mayores")
    assert sum(e.points for e in ranking) == 700


# ============================================================================
# Byes
# ============================================================================

async def test_bye_then_real_win_awards_exactly_one_hundred(app, make_tournament):
    tournament, (s1, s2, s3) = await make_tournament(("S1", 300), ("S2", 200), ("S3", 100))
    await app.build_bracket(tournament.id)
    bracket = await bracket_of(app, tournament.id)

    assert bracket[(1, 1)].status == MatchStatus.PLAYED
    assert bracket[(2, 1)].player_a_id == s1.id
    assert await points_of(app, s1.id) == 0

    await app.report_result(bracket[(1, 2)].id, 2, 3)
    assert await points_of(app, s3.id) == 100

    bracket = await bracket_of(app, tournament.id)
    assert (bracket[(2, 1)].player_a_id, bracket[(2, 1)].player_b_id) == (s1.id, s3.id)

    report = await app.report_result(bracket[(2, 1)].id, 3, 2)
    assert report.tournament_finished
    assert await points_of(app, s1.id) == 100


async def test_reporting_a_bye_match_is_rejected(app, make_tournament):
    tournament, _ = await make_tournament(("S1", 300), ("S2", 200), ("S3", 100))
    await app.build_bracket(tournament.id)
    bracket = await bracket_of(app, tournament.id)

    with pytest.raises(MatchAlreadyPlayed):
        await app.report_result(bracket[(1, 1)].id, 3, 0)


# ============================================================================
# Rejections leave no trace
# ============================================================================

async def test_draw_is_rejected_and_nothing_changes(app, make_tournament):
    tournament, (a, b) = await make_tournament(("A", 10), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    with pytest.raises(DrawNotAllowed):
        await app.report_result(final.id, 2, 2)

    (final,) = await app.get_bracket(tournament.id)
    assert final.status == MatchStatus.PENDING
    assert final.winner_id is None
    assert (final.score_a, final.score_b) == (0, 0)
    assert await app.get_ranking("Mayores") == []
    assert (await app.get_tournament(tournament.id)).status == TournamentStatus.IN_PROGRESS


async def test_incomplete_match_is_rejected(app, make_tournament):
    tournament, _ = await make_tournament("A", "B", "C", "D")
    await app.build_bracket(tournament.id)
    bracket = await bracket_of(app, tournament.id)

    with pytest.raises(IncompleteMatch):
        await app.report_result(bracket[(2, 1)].id, 3, 1)

    await app.report_result(bracket[(1, 1)].id, 3, 1)
    with pytest.raises(IncompleteMatch):
        await app.report_result(bracket[(2, 1)].id, 3, 1)


async def test_unknown_match(app):
    with pytest.raises(MatchNotFound):
        await app.report_result(12345, 3, 1)


@pytest.mark.parametrize("score_a,score_b", [
    (-1, 3), (3, -2), (2.5, 1), ("3", 1), (True, 0), (10 ** 20, 1), (1, 2 ** 63)
])
async def test_invalid_scores(app, make_tournament, score_a, score_b):
    tournament, _ = await make_tournament("A", "B")
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    with pytest.raises(InvalidScore):
        await app.report_result(final.id, score_a, score_b)

    (final,) = await app.get_bracket(tournament.id)
    assert final.status == MatchStatus.PENDING


async def test_failure_mid_cascade_rolls_everything_back(app, make_tournament, monkeypatch):
    tournament, (a, _) = await make_tournament(("A", 10), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    async def broken_award(*args, **kwargs):
        raise RuntimeError("history write failed")

    monkeypatch.setattr(app.player_ops, "record_ranking_award", broken_award)

    with pytest.raises(RuntimeError):
        await app.report_result(final.id, 3, 1)

    (final,) = await app.get_bracket(tournament.id)
    assert final.status == MatchStatus.PENDING
    assert await points_of(app, a.id) == 0
    assert (await app.get_tournament(tournament.id)).status == TournamentStatus.IN_PROGRESS


# ============================================================================
# Double submission
# ============================================================================

async def test_second_report_is_rejected(app, make_tournament):
    tournament, (a, _) = await make_tournament(("A", 10), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    await app.report_result(final.id, 3, 1)
    with pytest.raises(MatchAlreadyPlayed):
        await app.report_result(final.id, 1, 3)

    assert await points_of(app, a.id) == 100


async def test_concurrent_reports_award_once(app, make_tournament):
    tournament, (a, b) = await make_tournament(("A", 10), ("B", 0))
    await app.build_bracket(tournament.id)
    (final,) = await app.get_bracket(tournament.id)

    results = await asyncio.gather(
        app.report_result(final.id, 3, 1),
        app.report_result(final.id, 3, 1),
        return_exceptions=True
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], MatchAlreadyPlayed)
    assert await points_of(app, a.id) == 100
    assert (await app.get_player(a.id)).ranking_score == 110
