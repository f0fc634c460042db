"""Tests for minesolver.board."""

import pytest

from minesolver.board import SolverInfo
from minesolver.errors import ContractViolationError
from minesolver.game import (
    ActionResult,
    GameDescription,
    GameResult,
    GameStatus,
    ResultType,
)


def _result(*results: ActionResult) -> GameResult:
    return GameResult(GameStatus.IN_PLAY, list(results))


def test_ingest_cleared_tiles(make_info):
    info = make_info(
        """
        1 1 .
        . . .
        """,
        mines=1,
    )
    assert info.game_status is GameStatus.IN_PLAY
    assert info.tiles_left == 4
    assert info.mines_left == 1
    assert [t.as_text() for t in info.witnesses] == ["(0,0)", "(1,0)"]
    assert info.tile(1, 0).value == 1
    assert not info.tile(1, 0).is_hidden
    assert [t.as_text() for t in info.new_clears] == ["(0,0)", "(1,0)"]


def test_clearing_twice_is_ignored(make_info):
    info = make_info("1 . .", mines=1)
    info.add_information(_result(ActionResult(0, 0, ResultType.CLEARED, 1)))
    assert info.tiles_left == 2
    assert info.new_clears == []


def test_exhausted_witness_is_dropped(make_info):
    info = make_info("0 . .", mines=1)
    witness = info.tile(0, 0)
    assert witness in info.witnesses

    info.add_information(_result(ActionResult(1, 0, ResultType.CLEARED, 1)))
    assert witness.is_exhausted
    assert witness not in info.witnesses
    assert info.tile(1, 0) in info.witnesses


def test_adjacent_tiles_and_info():
    info = SolverInfo(GameDescription(3, 3, 2))
    assert len(info.adjacent_tiles(info.tile(0, 0))) == 3
    assert len(info.adjacent_tiles(info.tile(1, 0))) == 5
    assert len(info.adjacent_tiles(info.tile(1, 1))) == 8
    assert info.adjacent_tiles(info.tile(1, 1)) is info.adjacent_tiles(info.tile(1, 1))

    info.mine_found(info.tile(0, 0))
    assert info.adjacent_info(info.tile(1, 1)) == (1, 7)


def test_is_adjacent():
    info = SolverInfo(GameDescription(3, 3, 2))
    centre = info.tile(1, 1)
    assert centre.is_adjacent(info.tile(0, 0))
    assert not centre.is_adjacent(centre)
    assert not info.tile(0, 0).is_adjacent(info.tile(2, 0))


def test_mine_found_is_idempotent():
    info = SolverInfo(GameDescription(3, 3, 2))
    tile = info.tile(2, 2)

    assert info.mine_found(tile) is False
    assert info.mine_found(tile) is False
    assert info.tiles_left == 8
    assert info.mines_left == 1
    assert info.known_mines == [tile]
    assert tile.is_mine and not tile.is_hidden


def test_flag_results_toggle(make_info):
    info = make_info("1 .", mines=1)
    tile = info.tile(1, 0)
    info.flag_requested(tile)

    info.add_information(_result(ActionResult(1, 0, ResultType.FLAGGED)))
    assert tile.is_flagged
    assert not info.is_flag_requested(tile)

    info.add_information(_result(ActionResult(1, 0, ResultType.HIDDEN)))
    assert not tile.is_flagged


def test_explosion_records_mine_and_drops_tree(make_info):
    info = make_info("1 . .", mines=1)
    info.brute_force_analysis = object()  # type: ignore[assignment]

    info.add_information(
        GameResult(GameStatus.LOST, [ActionResult(2, 0, ResultType.EXPLODED)])
    )
    assert info.tile(2, 0).is_mine
    assert info.brute_force_analysis is None
    assert info.game_status is GameStatus.LOST


def test_set_tile_to_dead_on_mine_raises():
    info = SolverInfo(GameDescription(3, 3, 2))
    tile = info.tile(0, 0)
    info.mine_found(tile)
    with pytest.raises(ContractViolationError):
        info.set_tile_to_dead(tile)


def test_dead_tile_revealed_leaves_dead_set(make_info):
    info = make_info("1 . .", mines=1)
    tile = info.tile(2, 0)
    info.set_tile_to_dead(tile)
    assert info.dead_tiles == [tile]

    info.add_information(_result(ActionResult(2, 0, ResultType.CLEARED, 0)))
    assert info.dead_tiles == []


def test_get_probability_without_analysis(make_info):
    info = make_info("1 . .", mines=1)
    assert info.get_probability(-1, 0) is None
    assert info.get_probability(3, 0) is None
    assert info.get_probability(0, 0) is None
    assert info.get_probability(1, 0) is None

    info.clear_found(info.tile(2, 0))
    assert info.get_probability(2, 0) == 1.0
    assert info.pending_clears == [info.tile(2, 0)]

    info.mine_found(info.tile(1, 0))
    assert info.get_probability(1, 0) == 0.0
