import matplotlib

matplotlib.use("Agg")

import pytest

from minesolver.binomial import Binomial
from minesolver.board import SolverInfo
from minesolver.settings import SolverSettings
from minesolver.solver import MinesweeperSolver
from minesolver.utils import parse_board


@pytest.fixture
def make_info():
    """Build a SolverInfo from a text board."""

    def factory(text: str, mines: int) -> SolverInfo:
        description, result = parse_board(text, mines)
        info = SolverInfo(description)
        info.add_information(result)
        return info

    return factory


@pytest.fixture
def make_solver():
    """Build a MinesweeperSolver that has ingested a text board."""

    def factory(text: str, mines: int, **settings) -> MinesweeperSolver:
        description, result = parse_board(text, mines)
        solver = MinesweeperSolver(description, SolverSettings(**settings))
        solver.add_information(result)
        return solver

    return factory


@pytest.fixture
def binomial() -> Binomial:
    return Binomial()


@pytest.fixture
def web_inputs():
    """Witnesses and witnessed tiles for the whole board, in board order."""

    def collect(info: SolverInfo):
        witnesses = info.witnesses
        witnessed = {}
        for witness in witnesses:
            for tile in info.adjacent_tiles(witness):
                if tile.is_hidden:
                    witnessed[tile] = None
        return witnesses, list(witnessed)

    return collect
