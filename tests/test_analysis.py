"""Tests for minesolver.analysis."""

import math

import matplotlib.pyplot as plt
import pytest
from matplotlib.figure import Figure

from minesolver import analysis
from minesolver.actions import SolverAction
from minesolver.analysis import (
    choose_actions_to_play,
    first_click,
    format_solver_knowledge,
    play_game,
    plot_safe_probabilities,
    run_solver_many_tests,
    run_solver_single_test,
    safe_probability_grid,
)
from minesolver.game import ActionType, GameDescription, Minesweeper


def _action(x, kind, p):
    return SolverAction(x, 0, kind, p, False)


def test_first_click():
    assert first_click(GameDescription(9, 9, 10)) == (0, 0)
    assert first_click(GameDescription(30, 16, 99, "safe_neighborhood_rule")) == (3, 3)
    assert first_click(GameDescription(3, 3, 0, "safe_neighborhood_rule")) == (2, 2)


def test_choose_certain_actions():
    actions = [
        _action(0, ActionType.FLAG, 0.0),
        _action(1, ActionType.CLEAR, 0.5),
        _action(2, ActionType.CLEAR, 1.0),
    ]
    assert choose_actions_to_play(actions) == [actions[0], actions[2]]


def test_choose_safest_guess():
    actions = [
        _action(0, ActionType.CLEAR, 0.5),
        _action(1, ActionType.CLEAR, 0.8),
    ]
    assert choose_actions_to_play(actions) == [actions[1]]
    assert choose_actions_to_play([]) == []


def test_format_solver_knowledge(make_solver):
    solver = make_solver("1 . . .", mines=1)
    solver.find_actions()

    assert format_solver_knowledge(solver, show_coords=False) == " 1  M  .  ."
    lines = format_solver_knowledge(solver).splitlines()
    assert lines[0] == "    0  1  2  3"
    assert lines[2].startswith(" 0 |")


def test_format_marks_dead_tiles(make_solver):
    solver = make_solver("1 .\n. .", mines=1)
    solver.find_actions()

    assert format_solver_knowledge(solver, show_coords=False) == " 1  x\n x  x"


def test_play_fixed_game():
    game = Minesweeper.from_text("..*.")

    played, solver, payload = play_game(game.description, game=game)

    assert played is game
    assert payload["won"] is True
    assert payload["status"] == "won"
    assert payload["moves"] == 3
    assert payload["trivial"] == 1
    assert payload["probability"] == 1
    assert payload["cycles"] == 2
    assert solver.info.tile(2, 0).is_mine


def test_play_game_won_on_first_click():
    game = Minesweeper.from_text(
        """
        ...
        ...
        ..*
        """
    )
    _, solver, payload = play_game(game.description, game=game)

    assert payload["won"] is True
    assert payload["moves"] == 1
    assert solver.cycles == 0


def test_single_test_prints_boards(capsys):
    payload = run_solver_single_test(GameDescription(5, 5, 3), seed=1, show_boards=True)

    out = capsys.readouterr().out
    assert "Underlying board" in out
    assert payload["status"] in ("won", "lost")


def test_many_tests_summary():
    results = run_solver_many_tests(GameDescription(6, 6, 4), runs=4, seed=0)

    for key in analysis.COUNTER_KEYS + ("moves",):
        assert f"avg_{key}" in results
    assert 0.0 <= results["win_rate"] <= 1.0
    assert results["win_rate_stderr"] >= 0.0
    assert 0.0 <= results["guess_success_rate"] <= 1.0
    assert results["avg_moves"] >= 1.0


def test_many_tests_are_reproducible():
    a = run_solver_many_tests(GameDescription(6, 6, 4), runs=3, seed=11)
    b = run_solver_many_tests(GameDescription(6, 6, 4), runs=3, seed=11)
    assert a == b


def test_many_tests_rejects_zero_runs():
    with pytest.raises(ValueError):
        run_solver_many_tests(GameDescription(5, 5, 3), runs=0)


def test_level_analysis_uses_every_level(monkeypatch):
    seen = []

    def fake_many_tests(description, runs, *, seed=None, settings=None):
        seen.append(description.as_text())
        return {
            "avg_trivial": 1.0,
            "avg_local_clear": 0.0,
            "avg_probability": 2.0,
            "avg_brute_force": 0.0,
            "avg_guess": 1.0,
            "win_rate": 0.5,
            "win_rate_stderr": 0.1,
        }

    monkeypatch.setattr(analysis, "run_solver_many_tests", fake_many_tests)
    monkeypatch.setattr(plt, "show", lambda: None)

    results = analysis.run_solver_expert_level_analysis(2, "safe_neighborhood_rule")
    plt.close("all")

    assert list(results) == ["beginner", "intermediate", "expert"]
    assert all(text.endswith("safe_neighborhood_rule") for text in seen)


def test_safe_probability_grid(make_solver):
    solver = make_solver("1 . . .\n. . . .", mines=2, brute_force_enabled=False)
    solver.find_actions()

    grid = safe_probability_grid(solver)

    assert grid.shape == (2, 4)
    assert math.isnan(grid[0, 0])
    assert grid[0, 1] == pytest.approx(2 / 3)
    assert grid[1, 3] == pytest.approx(3 / 4)


def test_plot_safe_probabilities(make_solver):
    solver = make_solver("1 . . .\n. . . .", mines=2, brute_force_enabled=False)
    solver.find_actions()

    fig = plot_safe_probabilities(solver)
    try:
        assert isinstance(fig, Figure)
    finally:
        plt.close(fig)
