"""Minesweeper solver combining exact inference, brute force and guessing."""

import logging
from typing import Dict, List, Optional, Tuple

from .actions import SolverAction, SolverActionHeader
from .binomial import Binomial
from .board import SolverInfo, SolverTile
from .brute_force import build_iterators, perform_brute_force
from .counter import SolutionCounter
from .game import ActionType, GameDescription, GameResult, GameStatus
from .probability import ProbabilityEngine
from .settings import SolverSettings
from .tree import BruteForceAnalysis
from .trivial import find_trivial_actions
from .web import WitnessWeb

logger = logging.getLogger(__name__)


class MinesweeperSolver:
    """
    Per-game solver with a tiered strategy.

    Each call to ``find_actions`` tries, in order:
    1. Trivial deductions from single clues
    2. Replaying a retained brute-force decision tree
    3. Exact probabilities: local clears, off-edge certainties, proven mines
    4. Brute force over an isolated edge, then over the whole board when the
       solution count is small
    5. The safest guess
    """

    def __init__(
        self,
        description: GameDescription,
        settings: Optional[SolverSettings] = None,
    ) -> None:
        """
        Initialize a solver for one game.

        Args:
            description: Board dimensions and mine count of the game.
            settings: Budgets and switches; defaults when None.
        """
        self.description: GameDescription = description
        self.settings: SolverSettings = settings or SolverSettings()
        self.binomial: Binomial = Binomial(
            self.settings.binomial_max_exact, self.settings.binomial_lookup_limit
        )
        self.info: SolverInfo = SolverInfo(description)

        # Metrics / counters (for analysis)
        self.cycles: int = 0
        self.trivial_count: int = 0
        self.local_clear_count: int = 0
        self.probability_count: int = 0
        self.brute_force_count: int = 0
        self.guess_count: int = 0
        self.infeasible_count: int = 0

    # -------------------------------------------------------------------------
    # Board model delegation
    # -------------------------------------------------------------------------

    def add_information(self, result: GameResult) -> None:
        """Ingest a move-result batch from the game."""
        self.info.add_information(result)

    def get_probability(self, x: int, y: int) -> Optional[float]:
        """Return the safe probability of a tile, or None when unknown."""
        return self.info.get_probability(x, y)

    def counters(self) -> Dict[str, int]:
        """Return the per-strategy counters as a dictionary."""
        return {
            "cycles": self.cycles,
            "trivial": self.trivial_count,
            "local_clear": self.local_clear_count,
            "probability": self.probability_count,
            "brute_force": self.brute_force_count,
            "guess": self.guess_count,
            "infeasible": self.infeasible_count,
        }

    # -------------------------------------------------------------------------
    # Main solving cycle
    # -------------------------------------------------------------------------

    def find_actions(self) -> SolverActionHeader:
        """
        Compute the next actions for the current board.

        Returns:
            A header with the actions ascending by safe probability (certain
            clears at 1, flags at 0), the advisory dead tiles, and whether the
            board is inconsistent. Nothing is returned unless the game is in play.
        """
        info = self.info
        if info.game_status is not GameStatus.IN_PLAY:
            return SolverActionHeader.empty()

        self.cycles += 1

        actions = find_trivial_actions(info)
        if actions:
            self.trivial_count += len(actions)
            return self._header(actions)

        actions = self._outstanding_actions()
        if actions:
            logger.debug("Re-issuing %d outstanding actions", len(actions))
            return self._header(actions)

        action = self._replay_tree()
        if action is not None:
            self.brute_force_count += 1
            return self._header([action])

        hidden = info.hidden_tiles()
        if hidden and all(tile.is_dead for tile in hidden):
            logger.info("Every remaining tile is dead, %d mines left", info.mines_left)
            self.guess_count += 1
            return self._header(
                [SolverAction.from_tile(hidden[0], ActionType.CLEAR, self._density())]
            )

        while True:
            witnesses, witnessed = self._web_inputs()
            pe = ProbabilityEngine(
                info,
                witnesses,
                witnessed,
                info.tiles_left,
                info.mines_left,
                self.binomial,
                self.settings,
            )
            pe.process()

            if pe.is_infeasible:
                self.infeasible_count += 1
                logger.warning("Board is inconsistent; no actions available")
                return self._header([], infeasible=True)

            if pe.local_clears:
                actions = []
                for tile in pe.local_clears:
                    info.clear_found(tile)
                    actions.append(SolverAction.from_tile(tile, ActionType.CLEAR, 1.0))
                self.local_clear_count += len(actions)
                return self._header(actions)

            info.probability_engine = pe
            off_edge = [tile for tile in info.hidden_tiles() if tile not in pe.box_lookup]

            actions = self._off_edge_certainties(pe, off_edge)
            if actions:
                self.probability_count += len(actions)
                return self._header(actions)

            actions = self._flag_actions(pe.mines_found)
            if actions:
                self.probability_count += len(actions)
                return self._header(actions)

            if not pe.mines_found:
                break

            # the new mines are already flagged, so rebuild the web without them
            logger.debug("Rebuilding the web without %d flagged mines", len(pe.mines_found))

        if self.settings.brute_force_enabled and pe.best_probability < 1:
            action = None
            if pe.isolated_edge is not None:
                action = self._isolated_edge_brute_force(pe.isolated_edge)
            if action is None:
                action = self._full_brute_force(witnesses, witnessed)
            if action is not None:
                self.brute_force_count += 1
                return self._header([action])

        return self._best_guess(pe, off_edge)

    # -------------------------------------------------------------------------
    # Cycle steps
    # -------------------------------------------------------------------------

    def _header(
        self, actions: List[SolverAction], infeasible: bool = False
    ) -> SolverActionHeader:
        actions = sorted(actions, key=lambda action: action.safe_probability)

        dead_actions: List[SolverAction] = []
        for tile in self.info.dead_tiles:
            probability = self.info.get_probability(tile.x, tile.y)
            if probability is None:
                probability = self._density()
            dead_actions.append(SolverAction.from_tile(tile, ActionType.DEAD, probability))

        return SolverActionHeader(actions, dead_actions, infeasible)

    def _density(self) -> float:
        """Safe probability of a tile when only the mine count is known."""
        info = self.info
        if info.tiles_left == 0:
            return 0.0
        return 1 - info.mines_left / info.tiles_left

    def _web_inputs(self) -> Tuple[List[SolverTile], List[SolverTile]]:
        """Living witnesses with hidden neighbours, and those neighbours in order."""
        info = self.info
        witnesses: List[SolverTile] = []
        witnessed: Dict[SolverTile, None] = {}
        for witness in info.witnesses:
            hidden = [tile for tile in info.adjacent_tiles(witness) if tile.is_hidden]
            if not hidden:
                continue
            witnesses.append(witness)
            for tile in hidden:
                witnessed[tile] = None
        return witnesses, list(witnessed)

    def _outstanding_actions(self) -> List[SolverAction]:
        """Recommendations made earlier that have not been played yet."""
        actions = [
            SolverAction.from_tile(tile, ActionType.CLEAR, 1.0)
            for tile in self.info.pending_clears
        ]
        for mine in self.info.known_mines:
            if not mine.is_flagged and self.info.is_flag_requested(mine):
                actions.append(SolverAction.from_tile(mine, ActionType.FLAG, 0.0))
        return actions

    def _flag_actions(self, mines: List[SolverTile]) -> List[SolverAction]:
        actions: List[SolverAction] = []
        for tile in mines:
            if self.info.mine_found(tile) or self.info.is_flag_requested(tile):
                continue
            self.info.flag_requested(tile)
            actions.append(SolverAction.from_tile(tile, ActionType.FLAG, 0.0))
        return actions

    def _replay_tree(self) -> Optional[SolverAction]:
        """Follow the retained decision tree if its last move has been played."""
        analysis = self.info.brute_force_analysis
        if analysis is None:
            return None

        expected = analysis.expected_move
        if expected is not None and not expected.is_hidden and not expected.is_mine:
            action = analysis.get_next_move()
            if action is not None:
                logger.info("Decision tree continues with %s", action.as_text())
                return action

        logger.debug("Discarding the decision tree")
        self.info.brute_force_analysis = None
        return None

    def _off_edge_certainties(
        self, pe: ProbabilityEngine, off_edge: List[SolverTile]
    ) -> List[SolverAction]:
        if not off_edge:
            return []

        if pe.off_edge_probability == 1:
            logger.info("All %d off-edge tiles are safe", len(off_edge))
            actions = []
            for tile in off_edge:
                self.info.clear_found(tile)
                actions.append(SolverAction.from_tile(tile, ActionType.CLEAR, 1.0))
            return actions

        if pe.off_edge_probability == 0:
            logger.info("All %d off-edge tiles are mines", len(off_edge))
            return self._flag_actions(off_edge)

        return []

    def _expected_iterations(self, web: WitnessWeb, tiles: int, mines: int) -> int:
        """Samples the iterator would generate, or 0 when the counts cannot fit."""
        rest_tiles = tiles - web.independent_tiles
        rest_mines = mines - web.independent_mines
        if rest_mines < 0 or rest_mines > rest_tiles:
            return 0
        return web.independent_iterations * self.binomial.choose(rest_tiles, rest_mines)

    def _run_brute_force(
        self, web: WitnessWeb, tiles: List[SolverTile], mines: int
    ) -> Optional[BruteForceAnalysis]:
        """Brute force over tiles; return the completed analysis or None."""
        expected = self._expected_iterations(web, len(tiles), mines)
        if expected == 0:
            return None
        if expected > self.settings.brute_force_max_iterations:
            logger.info(
                "Brute force skipped: %d expected iterations exceed %d",
                expected,
                self.settings.brute_force_max_iterations,
            )
            return None

        iterators = build_iterators(web, tiles, mines)
        analysis = perform_brute_force(self.info, iterators, web.box_witnesses, self.settings)
        if analysis.too_many:
            return None

        analysis.process()
        if not analysis.is_complete:
            logger.info("Decision tree incomplete after %d nodes, ignored", analysis.node_count)
            return None

        return analysis

    def _isolated_edge_brute_force(self, web: WitnessWeb) -> Optional[SolverAction]:
        analysis = self._run_brute_force(web, web.witnessed, web.mines_left)
        if analysis is None:
            return None

        action = analysis.get_next_move()
        if action is not None:
            logger.info("Isolated edge brute force plays %s", action.as_text())
        return action

    def _full_brute_force(
        self, witnesses: List[SolverTile], witnessed: List[SolverTile]
    ) -> Optional[SolverAction]:
        info = self.info
        counter = SolutionCounter(
            info,
            witnesses,
            witnessed,
            info.tiles_left,
            info.mines_left,
            self.binomial,
            self.settings,
        )
        counter.process()
        if counter.is_infeasible:
            return None
        if counter.solution_count > self.settings.max_bfda_solutions:
            logger.debug(
                "Brute force skipped: %d solutions exceed %d",
                counter.solution_count,
                self.settings.max_bfda_solutions,
            )
            return None

        counter.generate_independent_witnesses()
        analysis = self._run_brute_force(counter, info.hidden_tiles(), info.mines_left)
        if analysis is None:
            return None

        info.brute_force_analysis = analysis
        action = analysis.get_next_move()
        if action is None:
            info.brute_force_analysis = None
        else:
            logger.info(
                "Brute force over %d solutions plays %s",
                analysis.solution_count,
                action.as_text(),
            )
        return action

    def _best_guess(
        self, pe: ProbabilityEngine, off_edge: List[SolverTile]
    ) -> SolverActionHeader:
        candidates = pe.best_candidates(self.settings.guess_threshold)

        if candidates and (
            not off_edge or candidates[-1].safe_probability >= pe.off_edge_probability
        ):
            certain = [a for a in candidates if a.safe_probability == 1]
            if len(certain) == len(candidates):
                for action in certain:
                    self.info.clear_found(self.info.tile(action.x, action.y))
                self.probability_count += len(certain)
            else:
                self.guess_count += 1
                logger.info(
                    "Guessing %s from %d candidates",
                    candidates[-1].as_text(),
                    len(candidates),
                )
            return self._header(candidates)

        tile = self._off_edge_guess(off_edge)
        if tile is not None:
            self.guess_count += 1
            logger.info(
                "Guessing off edge at %s, safe %.4f",
                tile.as_text(),
                pe.off_edge_probability,
            )
            return self._header(
                [SolverAction.from_tile(tile, ActionType.CLEAR, pe.off_edge_probability)]
            )

        dead = self.info.dead_tiles
        if dead:
            self.guess_count += 1
            tile = dead[0]
            return self._header(
                [SolverAction.from_tile(tile, ActionType.CLEAR, pe.probability(tile))]
            )

        logger.warning("No candidate move found")
        return self._header([])

    def _off_edge_guess(self, off_edge: List[SolverTile]) -> Optional[SolverTile]:
        """Prefer a corner, then the off-edge tile with the fewest hidden neighbours."""
        if not off_edge:
            return None

        last_x = self.info.width - 1
        last_y = self.info.height - 1
        for tile in off_edge:
            if tile.x in (0, last_x) and tile.y in (0, last_y):
                return tile

        return min(off_edge, key=lambda tile: self.info.adjacent_info(tile).hidden)
