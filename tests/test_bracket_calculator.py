"""
Bracket math tests (no database).
"""
import pytest

from league.utils.bracket import BracketCalculator


# ============================================================================
# Sizes
# ============================================================================

@pytest.mark.parametrize("count,size", [(1, 1), (2, 2), (3, 4), (4, 4), (5, 8), (8, 8), (9, 16), (17, 32)])
def test_next_power_of_two(count, size):
    assert BracketCalculator.next_power_of_two(count) == size


def test_next_power_of_two_rejects_zero():
    with pytest.raises(ValueError):
        BracketCalculator.next_power_of_two(0)


@pytest.mark.parametrize("count,byes", [(2, 0), (3, 1), (5, 3), (6, 2), (8, 0), (12, 4)])
def test_bye_count(count, byes):
    assert BracketCalculator.bye_count(count) == byes


def test_round_count_and_matches_per_round():
    assert BracketCalculator.round_count(2) == 1
    assert BracketCalculator.round_count(8) == 3
    assert [BracketCalculator.matches_in_round(8, r) for r in (1, 2, 3)] == [4, 2, 1]


# ============================================================================
# Seeding
# ============================================================================

def test_seed_key_orders_by_score_then_name():
    players = [
        (50, "Zoe", 1),
        (100, "Bruno", 2),
        (50, "Ana", 3),
        (None, "Carla", 4),
    ]
    ordered = sorted(players, key=lambda p: BracketCalculator.seed_key(*p))
    assert [p[1] for p in ordered] == ["Bruno", "Ana", "Zoe", "Carla"]


def test_seed_key_falls_back_to_id():
    assert BracketCalculator.seed_key(10, "Ana", 1) < BracketCalculator.seed_key(10, "Ana", 2)


def test_seed_key_ignores_case_and_accents():
    names = ["bea", "Zoe", "Álvaro", "Carlos"]
    ordered = sorted(names, key=lambda n: BracketCalculator.seed_key(0, n))
    assert ordered == ["Álvaro", "bea", "Carlos", "Zoe"]


def test_name_key():
    assert BracketCalculator.name_key("Álvaro Núñez") == "alvaro nunez"
    assert BracketCalculator.name_key(None) == ""


def test_first_round_pairs_four_players():
    assert BracketCalculator.first_round_pairs(["s1", "s2", "s3", "s4"]) == [("s1", "s4"), ("s2", "s3")]


def test_first_round_pairs_five_players_gives_three_byes():
    pairs = BracketCalculator.first_round_pairs(["s1", "s2", "s3", "s4", "s5"])
    assert pairs == [("s1", None), ("s2", None), ("s3", None), ("s4", "s5")]


def test_first_round_pairs_three_players():
    assert BracketCalculator.first_round_pairs(["s1", "s2", "s3"]) == [("s1", None), ("s2", "s3")]


# ============================================================================
# Addressing
# ============================================================================

@pytest.mark.parametrize("round_number,slot,expected", [
    (1, 1, (2, 1, True)),
    (1, 2, (2, 1, False)),
    (1, 3, (2, 2, True)),
    (1, 4, (2, 2, False)),
    (2, 1, (3, 1, True)),
    (2, 2, (3, 1, False)),
])
def test_destination(round_number, slot, expected):
    assert BracketCalculator.destination(round_number, slot) == expected


def test_destination_rejects_zero_indexes():
    with pytest.raises(ValueError):
        BracketCalculator.destination(0, 1)
    with pytest.raises(ValueError):
        BracketCalculator.destination(1, 0)
