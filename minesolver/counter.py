"""Solution counting over the witness web."""

import logging
from typing import List

from .board import SolverTile
from .web import WitnessWeb

logger = logging.getLogger(__name__)


class SolutionCounter(WitnessWeb):
    """
    Counts the board configurations consistent with every witness.

    Runs the same decomposition and merge as the probability engine but keeps
    no per-tile probabilities, dead candidates or early exits. Besides the
    count it reports the boxes that are mine-free in every counted line.
    """

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.solution_count: int = 0
        self.clear_count: int = 0
        self.clear_tiles: List[SolverTile] = []

    def process(self) -> None:
        """Walk the web and total the solutions."""
        self.walk()
        if self.is_infeasible:
            logger.warning("Solution counter found an impossible position")
            return

        total = 0
        empty = [True] * len(self.boxes)
        for line in self.held:
            if line.mine_count < self.min_total_mines:
                continue

            mult = self.binomial.choose(
                self.tiles_off_edge, self.mines_left - line.mine_count
            )
            total += mult * line.solution_count
            for i, count in enumerate(line.mine_box_count):
                if count != 0:
                    empty[i] = False

        if total > 0:
            for i, box in enumerate(self.boxes):
                if empty[i]:
                    self.clear_tiles.extend(box.tiles)
            self.clear_count = len(self.clear_tiles)
        else:
            self.is_infeasible = True

        self.solution_count = total * self.solution_count_multiplier
        logger.debug(
            "Solution counter: %d solutions, %d clear tiles",
            self.solution_count,
            self.clear_count,
        )
