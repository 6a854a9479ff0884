"""Tests for cross-strategy ranking and deduplication."""

from __future__ import annotations

import pytest

from album_finder.aggregate import ResultAggregator, position_score
from album_finder.models import Album


def album(album_id: str, name: str = "") -> Album:
    return Album(id=album_id, name=name or album_id)


@pytest.fixture
def aggregator():
    return ResultAggregator()


def test_position_score():
    assert position_score(0, 5) == 1.0
    assert position_score(2, 4) == pytest.approx(0.85)
    assert position_score(9, 10) == pytest.approx(0.73)


def test_later_strategy_can_outrank_earlier_position(aggregator):
    # A is second of two at 0.85 -> 0.85 * 0.85 = 0.7225
    # A is first of one at 0.81 -> 0.81
    first = ([album("B"), album("A", "old")], 0.85)
    second = ([album("A", "new")], 0.81)

    ranked = aggregator.score([first, second])

    scores = {scored.album.id: scored.score for scored in ranked}
    assert scores["A"] == pytest.approx(0.81)
    assert scores["B"] == pytest.approx(0.85)
    assert [scored.album.id for scored in ranked] == ["B", "A"]
    assert ranked[1].album.name == "new"


def test_equal_score_keeps_first_album(aggregator):
    first = ([album("A", "first")], 0.5)
    second = ([album("A", "second")], 0.5)

    ranked = aggregator.score([first, second])

    assert len(ranked) == 1
    assert ranked[0].album.name == "first"


def test_lower_score_does_not_replace(aggregator):
    ranked = aggregator.score([([album("A", "high")], 0.9), ([album("A", "low")], 0.4)])

    assert ranked[0].album.name == "high"
    assert ranked[0].score == pytest.approx(0.9)


def test_ties_keep_discovery_order(aggregator):
    ranked = aggregator.score(
        [
            ([album("X")], 0.6),
            ([album("Y")], 0.6),
            ([album("Z")], 0.6),
        ]
    )

    assert [scored.album.id for scored in ranked] == ["X", "Y", "Z"]


def test_improved_score_keeps_discovery_slot_for_ties(aggregator):
    # C is seen first at a low score, later raised to tie with D
    ranked = aggregator.score(
        [
            ([album("C")], 0.3),
            ([album("D")], 0.7),
            ([album("C")], 0.7),
        ]
    )

    assert [scored.album.id for scored in ranked] == ["C", "D"]


def test_output_sorted_descending_and_unique(aggregator):
    ranked = aggregator.score(
        [
            ([album("a"), album("b"), album("c")], 0.4),
            ([album("c"), album("d")], 0.9),
            ([album("a")], 0.6),
        ]
    )

    ids = [scored.album.id for scored in ranked]
    assert len(ids) == len(set(ids)) == 4
    scores = [scored.score for scored in ranked]
    assert scores == sorted(scores, reverse=True)


def test_empty_input(aggregator):
    assert aggregator.score([]) == []
    assert aggregator.aggregate([([], 0.9)]) == []


def test_aggregate_returns_albums(aggregator):
    albums = aggregator.aggregate([([album("A"), album("B")], 0.9)])

    assert [a.id for a in albums] == ["A", "B"]
