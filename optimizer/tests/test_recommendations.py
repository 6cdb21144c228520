"""Tests for the recommendation rankings in repertoire_optimizer.py"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from errors import NonFiniteFrequencyError
from models import BookMoveCode, Transition
from position import STARTING_FEN, Position
from repertoire_optimizer import (
    narrowing_score,
    recommend_for_addition,
    recommend_for_narrowing,
    recommend_for_reduction,
    recommend_for_removal,
    reduction_score,
)


def make_position(frequency: float, transitions: int) -> Position:
    position = Position(STARTING_FEN)
    position.frequency = frequency
    for i in range(transitions):
        position.transitions[f"destination {i}"] = Transition(STARTING_FEN, BookMoveCode("e2e4"), 1.0 / transitions)
    return position


@pytest.fixture
def positions():
    return {
        "leaf_rare": make_position(0.01, 0),
        "leaf_common": make_position(0.30, 0),
        "leaf_mid": make_position(0.10, 0),
        "single": make_position(0.05, 1),
        "pair": make_position(0.50, 2),
        "triple": make_position(0.60, 3),
        "wide_rare": make_position(0.02, 4),
    }


def names(selected, positions):
    lookup = {id(pos): name for name, pos in positions.items()}
    return [lookup[id(pos)] for pos in selected]


def test_addition_picks_most_frequent_unprepared(positions):
    selected = recommend_for_addition(list(positions.values()), 2)
    assert names(selected, positions) == ["leaf_common", "leaf_mid"]


def test_removal_picks_least_frequent_prepared(positions):
    selected = recommend_for_removal(list(positions.values()), 3)
    assert names(selected, positions) == ["wide_rare", "single", "pair"]


def test_narrowing_orders_by_frequency_per_move(positions):
    selected = recommend_for_narrowing(list(positions.values()), 10)
    # 0.02 / 4, 0.60 / 3, 0.50 / 2
    assert names(selected, positions) == ["wide_rare", "triple", "pair"]


def test_reduction_orders_by_frequency_times_moves(positions):
    selected = recommend_for_reduction(list(positions.values()), 10)
    # 0.60 * 3, 0.50 * 2, 0.02 * 4
    assert names(selected, positions) == ["triple", "pair", "wide_rare"]


def test_scores_for_three_prepared_moves():
    position = make_position(0.6, 3)
    assert narrowing_score(position) == pytest.approx(0.2)
    assert reduction_score(position) == pytest.approx(1.8)


def test_count_truncates_and_zero_count_is_empty(positions):
    assert len(recommend_for_addition(list(positions.values()), 1)) == 1
    assert recommend_for_reduction(list(positions.values()), 0) == []


def test_rankings_are_idempotent(positions):
    candidates = list(positions.values())
    for recommend in (recommend_for_addition, recommend_for_removal, recommend_for_narrowing, recommend_for_reduction):
        first = recommend(candidates, 5)
        second = recommend(candidates, 5)
        assert [id(p) for p in first] == [id(p) for p in second]


def test_rankings_do_not_mutate_input(positions):
    candidates = list(positions.values())
    before = [(id(p), p.frequency, p.transition_count) for p in candidates]
    recommend_for_narrowing(candidates, 3)
    recommend_for_addition(candidates, 3)
    assert [(id(p), p.frequency, p.transition_count) for p in candidates] == before


@pytest.mark.parametrize("bad", [float("nan"), float("inf")])
def test_non_finite_frequency_is_fatal(bad):
    with pytest.raises(NonFiniteFrequencyError):
        recommend_for_addition([make_position(0.5, 0), make_position(bad, 0)], 5)
    with pytest.raises(NonFiniteFrequencyError):
        recommend_for_reduction([make_position(bad, 2)], 5)
