"""Exact per-tile safe probabilities from the witness web."""

import logging
from typing import Dict, List, Optional

from .actions import SolverAction
from .binomial import Binomial
from .board import SolverInfo, SolverTile
from .game import ActionType
from .settings import SolverSettings
from .utils import ratio
from .web import Box, DeadCandidate, EdgeStore, WitnessWeb

logger = logging.getLogger(__name__)


class ProbabilityEngine(WitnessWeb):
    """
    Computes the safe probability of every hidden tile.

    Besides probabilities, ``process`` reports:
        - ``local_clears``: tiles safe in every line of their own edge. The
          engine stops as soon as an edge yields some, so no probabilities are
          available in that case.
        - ``mines_found``: tiles proven to be mines across the whole board
          (already recorded on ``info``).
        - ``dead_edges``: edges with a single mine count whose tiles are all dead.
        - ``isolated_edge``: the first edge, other than the whole web, that has
          a single mine count and no hidden neighbours outside itself, prepared
          as a standalone web for brute force.
        - ``is_infeasible``: no configuration satisfies every witness.
    """

    def __init__(
        self,
        info: SolverInfo,
        witnesses: List[SolverTile],
        witnessed: List[SolverTile],
        tiles_left: int,
        mines_left: int,
        binomial: Binomial,
        settings: Optional[SolverSettings] = None,
    ) -> None:
        super().__init__(
            info, witnesses, witnessed, tiles_left, mines_left, binomial, settings
        )

        self.dead_candidates: List[DeadCandidate] = []
        self.local_clears: List[SolverTile] = []
        self.mines_found: List[SolverTile] = []
        self.dead_edges: List[List[SolverTile]] = []
        self.isolated_edge: Optional[WitnessWeb] = None

        self.off_edge_probability: float = 0.0
        self.best_probability: float = 0.0
        self.solution_count: int = 0
        self._ranked_boxes: List[Box] = []

    # -------------------------------------------------------------------------
    # Core functionality methods
    # -------------------------------------------------------------------------

    def process(self) -> None:
        """Run the full analysis."""
        self._find_dead_candidates()
        self.walk()

        if self.is_infeasible:
            logger.warning(
                "No consistent solution for %d witnesses and %d mines left",
                len(self.box_witnesses),
                self.mines_left,
            )
            return

        if self.local_clears:
            logger.debug("%d local clears found", len(self.local_clears))
            return

        self._calculate_box_probabilities()

    def probability(self, tile: SolverTile) -> float:
        """Return the safe probability of a hidden tile."""
        box = self.box_lookup.get(tile)
        if box is None:
            return self.off_edge_probability
        return box.safe_probability

    def best_candidates(self, threshold: float = 1.0) -> List[SolverAction]:
        """
        Return the tiles worth guessing.

        Args:
            threshold: Fraction of the best probability a box must reach; a best
                probability of 1 admits only certain tiles.

        Returns:
            Actions for qualifying box tiles, ascending by safe probability.
            Dead tiles are left out unless certainly safe. A qualifying box
            proven to hold only mines yields flag actions.
        """
        if self.best_probability == 1:
            test = self.best_probability
        else:
            test = self.best_probability * threshold

        best: List[SolverAction] = []
        for box in self._ranked_boxes:
            if box.safe_probability < test:
                break
            for tile in box.tiles:
                if tile.is_dead and box.safe_probability != 1:
                    continue
                if box.safe_probability == 0:
                    self.info.mine_found(tile)
                    best.append(SolverAction.from_tile(tile, ActionType.FLAG, 0.0))
                else:
                    best.append(
                        SolverAction.from_tile(tile, ActionType.CLEAR, box.safe_probability)
                    )

        best.sort(key=lambda action: action.safe_probability)
        return best

    # -------------------------------------------------------------------------
    # Edge hooks
    # -------------------------------------------------------------------------

    def _end_of_edge(self) -> bool:
        self._check_dead_candidates()

        for i, masked in enumerate(self.mask):
            if not masked:
                continue
            if all(line.mine_box_count[i] == 0 for line in self.working):
                for tile in self.boxes[i].tiles:
                    logger.debug("%s is locally clear", tile.as_text())
                    self.local_clears.append(tile)

        return not self.local_clears

    def _edge_stored(self, edge: EdgeStore) -> None:
        if len(edge.lines) != 1:
            return

        edge_boxes = [box for box, masked in zip(self.boxes, edge.mask) if masked]
        edge_tiles = [tile for box in edge_boxes for tile in box.tiles]

        if all(box.is_dead for box in edge_boxes):
            logger.info(
                "Dead edge of %d tiles holding %d mines",
                len(edge_tiles),
                edge.lines[0].mine_count,
            )
            self.dead_edges.append(edge_tiles)

        if self.isolated_edge is None and len(edge_boxes) < len(self.boxes):
            self._check_isolated_edge(edge_boxes, edge_tiles, edge.lines[0].mine_count)

    def _check_isolated_edge(
        self, edge_boxes: List[Box], edge_tiles: List[SolverTile], mines: int
    ) -> None:
        inside = set(edge_tiles)
        for tile in edge_tiles:
            for adjacent in self.info.adjacent_tiles(tile):
                if adjacent.is_hidden and adjacent not in inside:
                    return

        witnesses: Dict[SolverTile, None] = {}
        for box in edge_boxes:
            for box_witness in box.witnesses:
                witnesses[box_witness.tile] = None

        sub_web = WitnessWeb(
            self.info,
            list(witnesses),
            edge_tiles,
            len(edge_tiles),
            mines,
            self.binomial,
            self.settings,
        )
        sub_web.generate_independent_witnesses()
        self.isolated_edge = sub_web
        logger.info(
            "Isolated edge of %d tiles and %d witnesses holding %d mines",
            len(edge_tiles),
            len(witnesses),
            mines,
        )

    # -------------------------------------------------------------------------
    # Dead tiles
    # -------------------------------------------------------------------------

    def _find_dead_candidates(self) -> None:
        for tile in self.witnessed:
            if tile.is_dead:
                continue

            adjacent_boxes = self._adjacent_boxes(tile)
            if adjacent_boxes is None:
                continue

            candidate = DeadCandidate(tile, self.box_lookup[tile])
            for box in adjacent_boxes:
                if all(t.is_adjacent(tile) or t is tile for t in box.tiles):
                    candidate.good_boxes.append(box)
                else:
                    candidate.bad_boxes.append(box)

            self.dead_candidates.append(candidate)

        logger.debug("%d dead candidates", len(self.dead_candidates))

    def _adjacent_boxes(self, tile: SolverTile) -> Optional[List[Box]]:
        """Return the boxes around tile, or None if a hidden neighbour is unboxed."""
        result: List[Box] = []
        for adjacent in self.info.adjacent_tiles(tile):
            if not adjacent.is_hidden:
                continue
            box = self.box_lookup.get(adjacent)
            if box is None:
                return None
            if box not in result:
                result.append(box)
        return result

    def _check_dead_candidates(self) -> None:
        complete_scan = self.tiles_off_edge == 0 and all(self.mask)

        for candidate in self.dead_candidates:
            if candidate.is_alive:
                continue

            boxes = candidate.good_boxes + candidate.bad_boxes
            in_scope = sum(1 for box in boxes if self.mask[box.uid])
            if in_scope == 0:
                continue
            if in_scope != len(boxes):
                # its boxes straddle edges
                candidate.is_alive = True
                continue

            okay = True
            mine_lines = 0
            lines = 0
            my_box = candidate.my_box
            for line in self.working:
                if complete_scan and line.mine_count != self.mines_left:
                    continue
                lines += 1

                if line.mine_box_count[my_box.uid] == len(my_box.tiles):
                    mine_lines += 1
                    continue

                if any(line.mine_box_count[b.uid] != 0 for b in candidate.bad_boxes):
                    okay = False
                    break

                tally = sum(line.mine_box_count[b.uid] for b in candidate.good_boxes)
                if not candidate.check_total(tally):
                    okay = False
                    break

            if not okay or mine_lines == lines:
                candidate.is_alive = True
            else:
                logger.debug("%s is dead", candidate.candidate.as_text())
                self.info.set_tile_to_dead(candidate.candidate)

    # -------------------------------------------------------------------------
    # Probabilities
    # -------------------------------------------------------------------------

    def _calculate_box_probabilities(self) -> None:
        box_count = len(self.boxes)
        tally = [0] * box_count
        total = 0
        outside = 0

        for line in self.held:
            if line.mine_count < self.min_total_mines:
                continue

            off_edge_mines = self.mines_left - line.mine_count
            mult = self.binomial.choose(self.tiles_off_edge, off_edge_mines)

            outside += mult * off_edge_mines * line.solution_count
            total += mult * line.solution_count
            for j in range(box_count):
                tally[j] += mult * line.mine_box_count[j] // len(self.boxes[j].tiles)

        if total == 0:
            self.is_infeasible = True
            logger.warning("Total solution tally is zero")
            return

        for i, box in enumerate(self.boxes):
            if tally[i] == total:
                logger.debug("%r contains only mines", box)
                for tile in box.tiles:
                    if not tile.is_mine:
                        self.mines_found.append(tile)
                    self.info.mine_found(tile)
                box.safe_probability = 0.0
            else:
                box.safe_probability = 1 - ratio(tally[i], total)

        if self.tiles_off_edge != 0:
            self.off_edge_probability = 1 - ratio(outside, total * self.tiles_off_edge)
        else:
            self.off_edge_probability = 0.0

        self.solution_count = total * self.solution_count_multiplier

        best = self.off_edge_probability
        for box in self.boxes:
            living = any(not tile.is_dead for tile in box.tiles)
            if living or box.safe_probability == 1:
                best = max(best, box.safe_probability)
        self.best_probability = best

        self._ranked_boxes = sorted(
            self.boxes, key=lambda b: b.safe_probability, reverse=True
        )

        logger.debug(
            "Off edge probability %.6f, best probability %.6f, %d solutions",
            self.off_edge_probability,
            self.best_probability,
            self.solution_count,
        )
