"""Analysis and benchmarking tools for the Minesweeper solver."""

import logging
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from .actions import SolverAction
from .game import (
    BEGINNER_SAFE,
    BEGINNER_ZERO,
    EXPERT_SAFE,
    EXPERT_ZERO,
    INTERMEDIATE_SAFE,
    INTERMEDIATE_ZERO,
    ActionType,
    GameAction,
    GameDescription,
    GameStatus,
    Minesweeper,
)
from .settings import SolverSettings
from .solver import MinesweeperSolver

logger = logging.getLogger(__name__)

COUNTER_KEYS = (
    "cycles",
    "trivial",
    "local_clear",
    "probability",
    "brute_force",
    "guess",
    "infeasible",
)


def format_solver_knowledge(
    solver: MinesweeperSolver, *, show_coords: bool = True
) -> str:
    """
    Format the solver's current knowledge grid as a human-readable string.

    Args:
        solver: Solver instance whose knowledge will be displayed.
        show_coords: If True, include coordinate labels and a header.

    Returns:
        A text grid: revealed values as digits, flagged mines as 'F', known
        but unflagged mines as 'M', dead tiles as 'x' and other hidden tiles
        as '.'.
    """
    info = solver.info
    w, h = info.width, info.height

    def cell_char(x: int, y: int) -> str:
        tile = info.tile(x, y)
        if tile.is_mine:
            return "F" if tile.is_flagged else "M"
        if not tile.is_hidden:
            return str(tile.value)
        if tile.is_dead:
            return "x"
        return "."

    lines: List[str] = []
    if show_coords:
        header = " ".join(f"{x:2d}" for x in range(w))
        lines.append("   " + header)
        lines.append("   " + "-" * (3 * w - 1))

    for y in range(h):
        row = " ".join(f" {cell_char(x, y)}" for x in range(w))
        lines.append(f"{y:2d} |" + row if show_coords else row)

    return "\n".join(lines)


def first_click(description: GameDescription) -> Tuple[int, int]:
    """
    Opening move for a description.

    A safe corner when only the first tile is protected; (3, 3) when its whole
    neighbourhood is, so the opening is guaranteed to cascade away from the edge.
    """
    if description.mines_generation_algorithm == "safe_first_action_rule":
        return 0, 0
    return min(3, description.width - 1), min(3, description.height - 1)


def choose_actions_to_play(actions: List[SolverAction]) -> List[SolverAction]:
    """Play every certain action; otherwise only the safest guess."""
    certain = [
        action
        for action in actions
        if action.action is ActionType.FLAG or action.safe_probability == 1
    ]
    if certain:
        return certain
    return actions[-1:]


def play_game(
    description: GameDescription,
    *,
    seed: Optional[int] = None,
    settings: Optional[SolverSettings] = None,
    game: Optional[Minesweeper] = None,
    max_cycles: int = 10_000,
) -> Tuple[Minesweeper, MinesweeperSolver, Dict[str, object]]:
    """
    Play one game end to end, feeding every result batch back into the solver.

    Args:
        description: Board dimensions, mines and safety rule.
        seed: Seed for mine placement.
        settings: Solver settings; defaults when None.
        game: Optional pre-built game (e.g. a fixed layout); overrides
            description and seed.
        max_cycles: Safety bound on solver cycles.

    Returns:
        (game, solver, payload) where payload holds "status", "won", "moves"
        and the solver's counters.
    """
    if game is None:
        game = Minesweeper(description, seed=seed)
    solver = MinesweeperSolver(game.description, settings)

    x, y = first_click(game.description)
    solver.add_information(game.process_actions([GameAction(x, y, ActionType.CLEAR)]))
    moves = 1

    while game.status is GameStatus.IN_PLAY and solver.cycles < max_cycles:
        header = solver.find_actions()
        if header.infeasible or not header.actions:
            logger.warning(
                "Solver stopped without a move (infeasible=%s)", header.infeasible
            )
            break

        to_play = choose_actions_to_play(header.actions)
        moves += len(to_play)
        solver.add_information(game.process_actions(to_play))

    payload: Dict[str, object] = {
        "status": game.status.value,
        "won": game.status is GameStatus.WON,
        "moves": moves,
    }
    payload.update(solver.counters())
    return game, solver, payload


def run_solver_single_test(
    description: GameDescription,
    *,
    seed: Optional[int] = None,
    settings: Optional[SolverSettings] = None,
    show_boards: bool = False,
) -> Dict[str, object]:
    """
    Run one end-to-end game with MinesweeperSolver on a fresh Minesweeper instance.

    Args:
        description: Board dimensions, mines and safety rule.
        seed: Seed for mine placement.
        settings: Solver settings; defaults when None.
        show_boards: If True, print the underlying board and the solver's final
            knowledge state.

    Returns:
        The payload of ``play_game``.
    """
    game, solver, payload = play_game(description, seed=seed, settings=settings)

    if show_boards:
        print(f"Game: {description.as_text()}")
        print("Underlying board (mines visible):")
        print(game.format_board(reveal_all=True))
        print()
        print("Solver knowledge (unknowns shown as '.'):")
        print(format_solver_knowledge(solver, show_coords=True))
        print()
        print(f"Finished with status {payload['status']}.")

    return payload


def run_solver_many_tests(
    description: GameDescription,
    runs: int,
    *,
    seed: Optional[int] = None,
    settings: Optional[SolverSettings] = None,
) -> Dict[str, float]:
    """
    Run many independent games and return averaged counters plus win rate.

    Args:
        description: Board dimensions, mines and safety rule.
        runs: Number of independent games to run, must be > 0.
        seed: Base seed; game i uses seed + i. None draws fresh seeds.
        settings: Solver settings; defaults when None.

    Returns:
        "avg_<counter>" for every solver counter and for "moves", plus:
        - win_rate
        - win_rate_stderr
        - guess_success_rate: share of guesses that did not explode

    Raises:
        ValueError: If runs is not positive.
    """
    if runs <= 0:
        raise ValueError("runs must be positive.")

    keys = COUNTER_KEYS + ("moves",)
    table = np.zeros((runs, len(keys)), dtype=float)
    wins = np.zeros(runs, dtype=bool)

    for i in range(runs):
        game_seed = None if seed is None else seed + i
        _, _, payload = play_game(description, seed=game_seed, settings=settings)
        wins[i] = bool(payload["won"])
        table[i] = [float(payload[k]) for k in keys]  # type: ignore[arg-type]

    means = table.mean(axis=0)
    out: Dict[str, float] = {f"avg_{k}": float(m) for k, m in zip(keys, means)}

    win_rate = float(wins.mean())
    out["win_rate"] = win_rate
    out["win_rate_stderr"] = float(np.sqrt(win_rate * (1.0 - win_rate) / runs))

    total_guesses = float(table[:, keys.index("guess")].sum())
    losses = float(runs - wins.sum())
    out["guess_success_rate"] = (
        1.0 - losses / total_guesses if total_guesses > 0 else 1.0
    )

    logger.info(
        "%s: %d games, win rate %.4f +/- %.4f",
        description.as_text(),
        runs,
        win_rate,
        out["win_rate_stderr"],
    )
    return out


def run_solver_expert_level_analysis(
    runs: int,
    mines_generation_algorithm: str,
    *,
    seed: Optional[int] = None,
    settings: Optional[SolverSettings] = None,
    show_plots: bool = True,
) -> Dict[str, Dict[str, float]]:
    """
    Run aggregated solver tests on standard Minesweeper difficulty levels and plot summaries.

    Args:
        runs: Number of independent games to run per difficulty level.
        mines_generation_algorithm: Mine placement rule
            ("safe_first_action_rule" or "safe_neighborhood_rule").
        seed: Base seed for every level.
        settings: Solver settings; defaults when None.
        show_plots: If True, draw the summary charts.

    Returns:
        Mapping from level name to statistics dict returned by run_solver_many_tests().

    Standard difficulty levels:
        - Beginner: 9x9, 10 mines
        - Intermediate: 16x16, 40 mines
        - Expert: 30x16, 99 mines
    """
    if mines_generation_algorithm == "safe_first_action_rule":
        levels = {
            "beginner": BEGINNER_SAFE,
            "intermediate": INTERMEDIATE_SAFE,
            "expert": EXPERT_SAFE,
        }
    else:
        levels = {
            "beginner": BEGINNER_ZERO,
            "intermediate": INTERMEDIATE_ZERO,
            "expert": EXPERT_ZERO,
        }

    results: Dict[str, Dict[str, float]] = {}
    for level, description in levels.items():
        results[level] = run_solver_many_tests(
            description, runs, seed=seed, settings=settings
        )

    if show_plots:
        plot_level_summary(results)

    return results


def plot_level_summary(results: Dict[str, Dict[str, float]]) -> None:
    """Bar charts of moves by strategy and win rate per level."""
    level_names = list(results.keys())
    x = np.arange(len(level_names))

    # 1) Moves found by each strategy
    strategies = ["trivial", "local_clear", "probability", "brute_force", "guess"]
    bar_w = 0.8 / len(strategies)
    plt.figure()  # type: ignore[misc]
    for i, name in enumerate(strategies):
        values = [results[n][f"avg_{name}"] for n in level_names]
        offset = (i - (len(strategies) - 1) / 2) * bar_w
        plt.bar(x + offset, values, width=bar_w, label=name)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Average count")  # type: ignore[misc]
    plt.title("Average moves by strategy (per game)")  # type: ignore[misc]
    plt.legend()  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]

    # 2) Win rate by level
    win_rates = [results[n]["win_rate"] for n in level_names]
    errors = [results[n]["win_rate_stderr"] for n in level_names]

    plt.figure()  # type: ignore[misc]
    plt.bar(x, win_rates, yerr=errors)  # type: ignore[misc]
    plt.xticks(x, level_names)  # type: ignore[misc]
    plt.ylabel("Win rate")  # type: ignore[misc]
    plt.ylim(0.0, 1.0)  # type: ignore[misc]
    plt.title("Win rate by difficulty level")  # type: ignore[misc]
    plt.tight_layout()
    plt.show()  # type: ignore[misc]


def safe_probability_grid(solver: MinesweeperSolver) -> np.ndarray:
    """
    Return the solver's safe probabilities as a (height, width) array.

    Tiles with no known probability (revealed, or not analysed yet) are NaN.
    """
    info = solver.info
    grid = np.full((info.height, info.width), np.nan)
    for y in range(info.height):
        for x in range(info.width):
            probability = solver.get_probability(x, y)
            if probability is not None:
                grid[y, x] = probability
    return grid


def plot_safe_probabilities(solver: MinesweeperSolver, ax=None):
    """
    Draw the safe probability of every hidden tile as a heat map.

    Args:
        solver: Solver whose latest analysis is shown.
        ax: Optional matplotlib axes to draw into.

    Returns:
        The matplotlib figure.
    """
    grid = safe_probability_grid(solver)
    if ax is None:
        fig, ax = plt.subplots(figsize=(grid.shape[1] * 0.45 + 1, grid.shape[0] * 0.45 + 1))
    else:
        fig = ax.figure

    image = ax.imshow(grid, cmap="RdYlGn", vmin=0.0, vmax=1.0)
    info = solver.info
    for tile in info.tiles():
        if not tile.is_hidden and not tile.is_mine:
            ax.text(tile.x, tile.y, str(tile.value), ha="center", va="center", fontsize=8)
        elif tile.is_mine:
            ax.text(tile.x, tile.y, "F", ha="center", va="center", fontsize=8)

    ax.set_xticks([])
    ax.set_yticks([])
    ax.set_title("Safe probability")
    fig.colorbar(image, ax=ax, fraction=0.046, pad=0.04)
    return fig
