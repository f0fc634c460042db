"""End-to-end tests for MinesweeperSolver.find_actions."""

import pytest

from minesolver.counter import SolutionCounter
from minesolver.game import (
    ActionResult,
    ActionType,
    GameAction,
    GameDescription,
    GameResult,
    GameStatus,
    Minesweeper,
    ResultType,
)
from minesolver.solver import MinesweeperSolver

CORNER_BOARD = """
1 .
. .
"""

OPEN_BOARD = """
1 . . .
. . . .
"""


def _feed(solver, *results):
    solver.add_information(GameResult(GameStatus.IN_PLAY, list(results)))


def _coords(actions):
    return [(a.x, a.y) for a in actions]


def test_nothing_to_do_before_the_game_starts():
    solver = MinesweeperSolver(GameDescription(3, 3, 1))

    header = solver.find_actions()
    assert header.actions == []
    assert solver.cycles == 0


def test_trivial_flag(make_solver):
    solver = make_solver("1 .", mines=1)

    header = solver.find_actions()

    assert _coords(header.actions) == [(1, 0)]
    assert header.actions[0].action is ActionType.FLAG
    assert solver.trivial_count == 1
    assert solver.get_probability(1, 0) == 0.0


def test_flag_then_off_edge_clears(make_solver):
    solver = make_solver("1 . . .", mines=1)

    header = solver.find_actions()
    assert _coords(header.actions) == [(1, 0)]
    assert header.actions[0].action is ActionType.FLAG

    _feed(solver, ActionResult(1, 0, ResultType.FLAGGED))
    header = solver.find_actions()

    assert sorted(_coords(header.actions)) == [(2, 0), (3, 0)]
    assert all(a.action is ActionType.CLEAR for a in header.actions)
    assert all(a.safe_probability == 1.0 for a in header.actions)
    assert solver.probability_count == 2
    assert solver.get_probability(3, 0) == 1.0


def test_off_edge_mines_are_flagged(make_solver):
    solver = make_solver("1 . . .", mines=3)
    solver.find_actions()
    _feed(solver, ActionResult(1, 0, ResultType.FLAGGED))

    header = solver.find_actions()

    assert sorted(_coords(header.actions)) == [(2, 0), (3, 0)]
    assert all(a.action is ActionType.FLAG for a in header.actions)
    assert solver.info.mines_left == 0


def test_unplayed_flags_are_reissued(make_solver):
    solver = make_solver("1 . . .", mines=1)
    first = solver.find_actions()

    again = solver.find_actions()

    assert _coords(again.actions) == _coords(first.actions)
    assert again.actions[0].action is ActionType.FLAG
    assert solver.trivial_count == 1


def test_infeasible_board(make_solver):
    solver = make_solver("2 .", mines=1)

    header = solver.find_actions()

    assert header.infeasible
    assert header.actions == []
    assert solver.infeasible_count == 1


def test_guess_off_edge_prefers_corner(make_solver):
    solver = make_solver(OPEN_BOARD, mines=2, brute_force_enabled=False)

    header = solver.find_actions()

    assert _coords(header.actions) == [(3, 0)]
    assert header.actions[0].safe_probability == pytest.approx(0.75)
    assert solver.guess_count == 1
    assert solver.get_probability(1, 0) == pytest.approx(2 / 3)
    assert [(a.x, a.y) for a in header.dead_actions] == [(0, 1)]
    assert header.dead_actions[0].action is ActionType.DEAD


def test_brute_force_picks_the_move(make_solver):
    solver = make_solver(OPEN_BOARD, mines=2)

    header = solver.find_actions()

    assert solver.brute_force_count == 1
    assert len(header.actions) == 1
    action = header.actions[0]
    assert action.action is ActionType.CLEAR
    assert action.safe_probability == pytest.approx(solver.get_probability(action.x, action.y))

    analysis = solver.info.brute_force_analysis
    assert analysis is not None
    assert analysis.expected_move is solver.info.tile(action.x, action.y)


def test_tree_is_discarded_when_move_not_played(make_solver):
    solver = make_solver(OPEN_BOARD, mines=2)
    solver.find_actions()

    assert solver._replay_tree() is None
    assert solver.info.brute_force_analysis is None


def test_brute_force_skipped_above_solution_limit(make_solver):
    solver = make_solver(OPEN_BOARD, mines=2, max_bfda_solutions=11)

    header = solver.find_actions()

    assert solver.brute_force_count == 0
    assert _coords(header.actions) == [(3, 0)]


def test_all_dead_board(make_solver):
    solver = make_solver(CORNER_BOARD, mines=1)

    header = solver.find_actions()

    assert len(header.actions) == 1
    assert header.actions[0].action is ActionType.CLEAR
    assert header.actions[0].safe_probability == pytest.approx(2 / 3)
    assert sorted(_coords(header.dead_actions)) == [(0, 1), (1, 0), (1, 1)]
    assert solver.guess_count == 1

    # every hidden tile is now known to be dead
    header = solver.find_actions()
    assert header.actions[0].safe_probability == pytest.approx(2 / 3)
    assert solver.guess_count == 2


def test_counters_keys(make_solver):
    solver = make_solver("1 .", mines=1)
    solver.find_actions()

    assert solver.counters() == {
        "cycles": 1,
        "trivial": 1,
        "local_clear": 0,
        "probability": 0,
        "brute_force": 0,
        "guess": 0,
        "infeasible": 0,
    }


def test_actions_sorted_by_safe_probability(make_solver):
    solver = make_solver(
        """
        . . .
        1 2 1
        """,
        mines=2,
    )

    header = solver.find_actions()
    probabilities = [a.safe_probability for a in header.actions]
    assert probabilities == sorted(probabilities)
    assert {(a.x, a.y, a.action) for a in header.actions} == {
        (2, 0, ActionType.FLAG),
        (1, 0, ActionType.CLEAR),
    }


# ---------------------------------------------------------------------------
# Probability engine steps without the single-clue shortcuts
# ---------------------------------------------------------------------------


@pytest.fixture
def no_trivial(monkeypatch):
    monkeypatch.setattr("minesolver.solver.find_trivial_actions", lambda info: [])


def test_local_clear_leaves_other_tiles_unknown(make_solver, no_trivial):
    solver = make_solver(
        """
        . . .
        1 2 1
        """,
        mines=2,
    )

    header = solver.find_actions()

    assert _coords(header.actions) == [(1, 0)]
    assert header.actions[0].safe_probability == 1.0
    assert solver.local_clear_count == 1
    assert solver.info.probability_engine is None
    assert solver.get_probability(1, 0) == 1.0
    assert solver.get_probability(0, 0) is None
    assert solver.get_probability(2, 0) is None


def test_flagged_mines_leave_the_web(make_solver, no_trivial, monkeypatch):
    counted = []

    class RecordingCounter(SolutionCounter):
        def process(self):
            super().process()
            counted.append(self)

    monkeypatch.setattr("minesolver.solver.SolutionCounter", RecordingCounter)
    solver = make_solver(
        """
        F 2 F . .
        1 2 2 . .
        """,
        mines=4,
    )

    header = solver.find_actions()

    # both flags are proven, so there is nothing new to flag
    assert all(a.action is not ActionType.FLAG for a in header.actions)
    assert sorted(_coords(solver.info.known_mines)) == [(0, 0), (2, 0)]
    assert solver.info.mines_left == 2
    assert solver.get_probability(3, 0) == pytest.approx(0.5)
    assert solver.get_probability(4, 1) == pytest.approx(0.5)

    assert len(counted) == 1
    assert sorted(_coords(counted[0].witnessed)) == [(3, 0), (3, 1)]
    assert counted[0].tiles_off_edge == 2
    assert counted[0].solution_count == 4


# ---------------------------------------------------------------------------
# Decision tree replay through a real game
# ---------------------------------------------------------------------------


def test_tree_continues_after_its_move_is_played():
    game = Minesweeper.from_text(
        """
        ...*
        *...
        """
    )
    solver = MinesweeperSolver(game.description)
    solver.add_information(game.process_actions([GameAction(0, 0, ActionType.CLEAR)]))

    first = solver.find_actions()
    assert solver.brute_force_count == 1
    assert _coords(first.actions) in ([(2, 0)], [(2, 1)])
    assert first.actions[0].safe_probability == pytest.approx(0.75)
    analysis = solver.info.brute_force_analysis

    result = game.process_actions(first.actions)
    assert result.status is GameStatus.IN_PLAY
    assert result.action_results[0].value == 1
    solver.add_information(result)

    second = solver.find_actions()

    assert solver.brute_force_count == 2
    assert solver.info.brute_force_analysis is analysis
    assert second.actions == [analysis.get_next_move()]
    action = second.actions[0]
    assert (action.x, action.y) in {(1, 0), (1, 1)}
    assert action.safe_probability == 1.0
    assert analysis.expected_move is solver.info.tile(action.x, action.y)
