"""Tests for minesolver.probability and the witness web."""

import pytest

from minesolver.probability import ProbabilityEngine
from minesolver.settings import SolverSettings
from minesolver.web import WitnessWeb

OPEN_BOARD = """
1 . . .
. . . .
"""

CORNER_BOARD = """
1 .
. .
"""


@pytest.fixture
def run_engine(web_inputs, binomial):
    def factory(info, **settings):
        witnesses, witnessed = web_inputs(info)
        pe = ProbabilityEngine(
            info,
            witnesses,
            witnessed,
            info.tiles_left,
            info.mines_left,
            binomial,
            SolverSettings(**settings),
        )
        pe.process()
        return pe

    return factory


def test_single_box_with_off_edge_tiles(make_info, run_engine):
    info = make_info(OPEN_BOARD, mines=2)
    pe = run_engine(info)

    assert not pe.is_infeasible
    assert len(pe.boxes) == 1
    assert pe.tiles_off_edge == 4
    assert pe.probability(info.tile(1, 0)) == pytest.approx(2 / 3)
    assert pe.probability(info.tile(1, 1)) == pytest.approx(2 / 3)
    assert pe.off_edge_probability == pytest.approx(3 / 4)
    assert pe.probability(info.tile(3, 1)) == pytest.approx(3 / 4)
    assert pe.best_probability == pytest.approx(3 / 4)
    assert pe.solution_count == 12


def test_single_box_without_off_edge_tiles(make_info, run_engine):
    info = make_info(CORNER_BOARD, mines=1)
    pe = run_engine(info)

    for x, y in [(1, 0), (0, 1), (1, 1)]:
        assert pe.probability(info.tile(x, y)) == pytest.approx(2 / 3)
    assert pe.solution_count == 3


def test_all_dead_tiles_detected(make_info, run_engine):
    info = make_info(CORNER_BOARD, mines=1)
    run_engine(info)

    assert {t.as_text() for t in info.dead_tiles} == {"(1,0)", "(0,1)", "(1,1)"}
    assert all(info.tile(x, y).is_dead for x, y in [(1, 0), (0, 1), (1, 1)])


def test_tile_whose_neighbours_hold_one_mine_is_dead(make_info, run_engine):
    info = make_info(OPEN_BOARD, mines=2)
    run_engine(info)

    # (0,1) only sees the clue's other two tiles, which always hold its mine
    assert info.tile(0, 1).is_dead
    assert not info.tile(1, 0).is_dead
    assert not info.tile(1, 1).is_dead


def test_local_clear(make_info, run_engine):
    info = make_info(
        """
        . . .
        1 2 1
        """,
        mines=2,
    )
    pe = run_engine(info)

    assert [t.as_text() for t in pe.local_clears] == ["(1,0)"]


def test_proven_mine(make_info, run_engine):
    info = make_info("1 . .", mines=2)
    pe = run_engine(info)

    assert pe.mines_found == [info.tile(1, 0)]
    assert info.tile(1, 0).is_mine
    assert pe.off_edge_probability == 0.0


def test_infeasible_board(make_info, run_engine):
    info = make_info("2 .", mines=1)
    pe = run_engine(info)
    assert pe.is_infeasible


def test_box_bounds(make_info, web_inputs, binomial):
    info = make_info(
        """
        . . .
        1 2 1
        """,
        mines=2,
    )
    witnesses, witnessed = web_inputs(info)
    web = WitnessWeb(info, witnesses, witnessed, 3, 2, binomial)

    bounds = {
        tuple(t.as_text() for t in box.tiles): (box.min_mines, box.max_mines)
        for box in web.boxes
    }
    assert bounds == {("(0,0)",): (0, 1), ("(1,0)",): (0, 1), ("(2,0)",): (0, 1)}


def test_equivalent_witnesses_are_pruned(make_info, web_inputs, binomial):
    info = make_info(
        """
        1 1
        . .
        """,
        mines=1,
    )
    witnesses, witnessed = web_inputs(info)
    web = WitnessWeb(info, witnesses, witnessed, info.tiles_left, info.mines_left, binomial)

    assert len(web.box_witnesses) == 2
    assert len(web.pruned_witnesses) == 1
    assert len(web.boxes) == 1


def test_independent_edges_are_combined(make_info, run_engine):
    info = make_info(
        """
        1 . . . 1
        . . . . .
        """,
        mines=2,
    )
    pe = run_engine(info)

    # each clue holds one mine among its three tiles, leaving none off the edge
    assert len(pe.edges) == 2
    assert pe.probability(info.tile(1, 0)) == pytest.approx(2 / 3)
    assert pe.probability(info.tile(3, 1)) == pytest.approx(2 / 3)
    assert pe.off_edge_probability == pytest.approx(1.0)
    assert pe.solution_count == 9


def test_isolated_edge_is_prepared(make_info, run_engine):
    info = make_info(". 1 0 1 . .", mines=2)
    pe = run_engine(info)

    assert pe.isolated_edge is not None
    assert pe.isolated_edge.witnessed == [info.tile(0, 0)]
    assert pe.isolated_edge.mines_left == 1
    assert pe.isolated_edge.tiles_off_edge == 0


def test_best_candidates_skip_dead_tiles(make_info, run_engine):
    info = make_info(OPEN_BOARD, mines=2)
    pe = run_engine(info)

    candidates = pe.best_candidates(0.5)
    assert {(c.x, c.y) for c in candidates} == {(1, 0), (1, 1)}
    assert all(c.safe_probability == pytest.approx(2 / 3) for c in candidates)


def test_best_candidates_respect_threshold(make_info, run_engine):
    info = make_info(OPEN_BOARD, mines=2)
    pe = run_engine(info)

    # 2/3 is below the best probability of 3/4
    assert pe.best_candidates(1.0) == []


def test_significant_range_leaves_small_boards_alone(make_info, run_engine):
    info = make_info(OPEN_BOARD, mines=2)
    pe = run_engine(info, significant_range_only=True)

    assert not pe.truncated
    assert pe.off_edge_probability == pytest.approx(3 / 4)
