"""Tests for the game simulator and text helpers."""

import pytest

from minesolver.actions import SolverAction
from minesolver.game import (
    ActionType,
    GameAction,
    GameDescription,
    GameStatus,
    Minesweeper,
    ResultType,
)
from minesolver.utils import get_neighborhoods, parse_board


def _play(game, x, y, kind=ActionType.CLEAR):
    return game.process_actions([GameAction(x, y, kind)])


def _opened_two_mine_game():
    """Mines in opposite corners; the centre shows 2 so nothing floods."""
    game = Minesweeper.from_text(
        """
        *..
        ...
        ..*
        """
    )
    _play(game, 1, 1)
    return game


# ---------------------------------------------------------------------------
# Description
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "args",
    [
        (0, 5, 1),
        (5, 0, 1),
        (3, 3, 9),
        (3, 3, -1),
        (3, 3, 1, "no_such_rule"),
    ],
)
def test_invalid_description(args):
    with pytest.raises(ValueError):
        GameDescription(*args)


def test_safe_neighborhood_needs_room():
    with pytest.raises(ValueError):
        Minesweeper(GameDescription(4, 4, 8, "safe_neighborhood_rule"))


# ---------------------------------------------------------------------------
# Mine placement
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("seed", range(10))
def test_first_click_is_safe(seed):
    game = Minesweeper(GameDescription(9, 9, 70), seed=seed)
    result = _play(game, 4, 4)

    assert game.status is not GameStatus.LOST
    assert (4, 4) not in game.exploded
    assert sum(row.count("M") for row in game.board) == 70
    assert result.action_results[0].result_type is ResultType.CLEARED


@pytest.mark.parametrize("seed", range(10))
def test_first_click_neighbourhood_is_safe(seed):
    game = Minesweeper(GameDescription(9, 9, 60, "safe_neighborhood_rule"), seed=seed)
    result = _play(game, 4, 4)

    assert result.action_results[0].value == 0
    for nx, ny in game.neighbors(4, 4):
        assert not game.is_mine(nx, ny)
        assert game.revealed[ny][nx]


def test_same_seed_same_board():
    a = Minesweeper(GameDescription(16, 16, 40), seed=3)
    b = Minesweeper(GameDescription(16, 16, 40), seed=3)
    _play(a, 0, 0)
    _play(b, 0, 0)
    assert a.board == b.board


def test_fixed_layout_must_match_description():
    with pytest.raises(ValueError):
        Minesweeper(GameDescription(3, 3, 2), mines=[(0, 0)])


# ---------------------------------------------------------------------------
# Moves
# ---------------------------------------------------------------------------


def test_from_text_and_flood_fill():
    game = Minesweeper.from_text(
        """
        ...
        ...
        ..*
        """
    )
    result = _play(game, 0, 0)

    # every safe tile opens and the remaining mine is flagged for the player
    assert game.status is GameStatus.WON
    cleared = [r for r in result.action_results if r.result_type is ResultType.CLEARED]
    assert len(cleared) == 8
    assert result.action_results[-1][:3] == (2, 2, ResultType.FLAGGED)


def test_explosion_reports_remaining_mines_and_wrong_flags():
    game = Minesweeper.from_text(
        """
        .*.
        ...
        *..
        """
    )
    _play(game, 2, 2)
    _play(game, 2, 0, ActionType.FLAG)

    result = _play(game, 1, 0)

    assert game.status is GameStatus.LOST
    kinds = {(r.x, r.y): r.result_type for r in result.action_results}
    assert kinds[(1, 0)] is ResultType.EXPLODED
    assert kinds[(0, 2)] is ResultType.MINE
    assert kinds[(2, 0)] is ResultType.FLAGGED_WRONG


def test_moves_after_game_over_are_ignored():
    game = Minesweeper.from_text("*..")
    _play(game, 0, 0)
    assert game.status is GameStatus.LOST

    assert _play(game, 2, 0).action_results == []


def test_flag_toggles():
    game = _opened_two_mine_game()

    assert _play(game, 0, 0, ActionType.FLAG).action_results[0].result_type is ResultType.FLAGGED
    assert _play(game, 0, 0, ActionType.FLAG).action_results[0].result_type is ResultType.HIDDEN


def test_flagged_tile_cannot_be_cleared():
    game = _opened_two_mine_game()
    _play(game, 0, 0, ActionType.FLAG)

    assert _play(game, 0, 0).action_results == []
    assert game.status is GameStatus.IN_PLAY


def test_chord_clears_around_satisfied_clue():
    game = Minesweeper.from_text(
        """
        *..
        ...
        ...
        """
    )
    _play(game, 1, 0)
    _play(game, 0, 0, ActionType.FLAG)

    result = _play(game, 1, 0, ActionType.CHORD)

    assert game.status is GameStatus.WON
    assert any(r[:2] == (0, 1) for r in result.action_results)


def test_dead_action_is_advisory():
    game = _opened_two_mine_game()

    assert _play(game, 1, 0, ActionType.DEAD).action_results == []


def test_solver_actions_are_played_directly():
    game = _opened_two_mine_game()

    result = game.process_actions(
        [
            SolverAction(0, 0, ActionType.FLAG, 0.0),
            SolverAction(1, 0, ActionType.CLEAR, 1.0),
        ]
    )

    assert [(r.x, r.y, r.result_type) for r in result.action_results] == [
        (0, 0, ResultType.FLAGGED),
        (1, 0, ResultType.CLEARED),
    ]
    assert result.action_results[1].value == 1


def test_out_of_range_move():
    game = _opened_two_mine_game()
    with pytest.raises(ValueError):
        _play(game, 3, 0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def test_neighborhoods():
    hoods = get_neighborhoods(3, 2)

    assert hoods[(0, 0)] == ((1, 0), (0, 1), (1, 1))
    assert len(hoods[(1, 0)]) == 5
    with pytest.raises(ValueError):
        get_neighborhoods(0, 3)


def test_parse_board():
    description, result = parse_board(
        """
        1 F .
        0 1 H
        """,
        mines=1,
    )

    assert (description.width, description.height, description.mines) == (3, 2, 1)
    assert result.status is GameStatus.IN_PLAY
    kinds = {(r.x, r.y): (r.result_type, r.value) for r in result.action_results}
    assert kinds == {
        (0, 0): (ResultType.CLEARED, 1),
        (1, 0): (ResultType.FLAGGED, 0),
        (0, 1): (ResultType.CLEARED, 0),
        (1, 1): (ResultType.CLEARED, 1),
    }


def test_parse_board_compact_rows():
    description, result = parse_board("1.\n..", mines=1)
    assert (description.width, description.height) == (2, 2)
    assert len(result.action_results) == 1


@pytest.mark.parametrize("text", ["1 .\n.", "1 ?", "9 .", ""])
def test_parse_board_rejects_bad_text(text):
    with pytest.raises(ValueError):
        parse_board(text, mines=1)
