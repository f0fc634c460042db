"""
Minesweeper Exact Solver

An exact-inference Minesweeper solver built from several strategies:
- Trivial deductions: single-clue rules and clue subtraction
- Probability engine: exact per-tile safe probabilities over boxes and edges
- Brute force: decision-tree search over every consistent configuration
- Guessing: the safest tile, preferring tiles whose value gives information
"""

from .actions import SolverAction, SolverActionHeader
from .binomial import Binomial, PrimeSieve
from .board import AdjacentInfo, SolverInfo, SolverTile
from .errors import ContractViolationError, SolverError
from .game import (
    BEGINNER,
    EXPERT,
    INTERMEDIATE,
    ActionResult,
    ActionType,
    GameAction,
    GameDescription,
    GameResult,
    GameStatus,
    Minesweeper,
    ResultType,
)
from .probability import ProbabilityEngine
from .settings import SolverSettings
from .solver import MinesweeperSolver
from .utils import parse_board
from .analysis import (
    format_solver_knowledge,
    play_game,
    plot_safe_probabilities,
    run_solver_single_test,
    run_solver_many_tests,
    run_solver_expert_level_analysis,
)

__version__ = "1.0.0"

__all__ = [
    # Core classes
    "MinesweeperSolver",
    "SolverSettings",
    "SolverInfo",
    "SolverTile",
    "AdjacentInfo",
    "SolverAction",
    "SolverActionHeader",
    "ProbabilityEngine",
    "Binomial",
    "PrimeSieve",
    # Errors
    "SolverError",
    "ContractViolationError",
    # Game interface
    "Minesweeper",
    "GameDescription",
    "GameAction",
    "GameResult",
    "ActionResult",
    "ActionType",
    "GameStatus",
    "ResultType",
    "BEGINNER",
    "INTERMEDIATE",
    "EXPERT",
    "parse_board",
    # Analysis functions
    "format_solver_knowledge",
    "play_game",
    "plot_safe_probabilities",
    "run_solver_single_test",
    "run_solver_many_tests",
    "run_solver_expert_level_analysis",
]
